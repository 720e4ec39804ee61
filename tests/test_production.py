"""
Tests for the production model (production.py, reliability.py).

Covers:
  - Arps hyperbolic / exponential decline equations
  - Ramp-up, plateau and decline phases
  - Logistic water cut, capacity cap and reserves cap
  - Detailed mode: workover downtime and water volumes
  - Reserves-based peak sizing and presets
"""

from __future__ import annotations

import math

import numpy as np
import pytest

from oilfield_economics.models import DeclineRate, FailureProfile, ReliabilityAssumptions
from oilfield_economics.production import (
    KBPD_TO_MMBBL,
    apply_production_preset,
    arps_exponential,
    arps_hyperbolic,
    arps_rate,
    build_production_profile,
    peak_from_reserves,
    potential_rate,
    water_cut,
)
from oilfield_economics.reliability import (
    downtime_efficiency,
    failure_rate_at_year,
    resolve_workover_cost,
    workover_cost_at_year,
)


# ── Arps equations ────────────────────────────────────────────────────────────

class TestArpsDecline:
    def test_at_t_zero_equals_qi(self):
        q = arps_hyperbolic(np.array([0.0]), qi=180.0, Di=0.08, b=0.5)
        assert q[0] == pytest.approx(180.0)

    def test_declining_over_time(self):
        q = arps_hyperbolic(np.array([0.0, 5.0, 10.0]), qi=180.0, Di=0.08, b=0.5)
        assert q[0] > q[1] > q[2]

    def test_b_zero_uses_exponential_branch(self):
        assert arps_rate(3.0, 180.0, 0.08, 0.0) == pytest.approx(180.0 * math.exp(-0.24))

    def test_small_b_approximates_exponential(self):
        t = np.array([0.0, 5.0, 10.0])
        np.testing.assert_allclose(
            arps_hyperbolic(t, 180.0, 0.08, 1e-7), arps_exponential(t, 180.0, 0.08), rtol=1e-3,
        )

    def test_higher_b_gives_slower_decline(self):
        assert arps_rate(10.0, 180.0, 0.1, 0.9) > arps_rate(10.0, 180.0, 0.1, 0.3)


class TestDeclineRate:
    def test_derived_equals_base_without_uplift(self):
        assert DeclineRate(base_value=8.0).derived_value == pytest.approx(8.0)

    def test_uplift_flattens_decline(self):
        rate = DeclineRate(base_value=8.0, technology_uplift_pct=100.0)
        assert rate.base_value == 8.0
        assert rate.derived_value == pytest.approx(4.0)


# ── Profile phases ────────────────────────────────────────────────────────────

class TestPotentialRate:
    def test_zero_before_first_oil(self, base_params):
        assert potential_rate(base_params.production, 0) == 0.0

    def test_linear_ramp_up(self, base_params):
        prod = base_params.production
        assert potential_rate(prod, 1) == pytest.approx(60.0)
        assert potential_rate(prod, 2) == pytest.approx(120.0)
        assert potential_rate(prod, 3) == pytest.approx(180.0)

    def test_plateau(self, base_params):
        prod = base_params.production
        assert all(potential_rate(prod, p) == pytest.approx(180.0) for p in range(3, 8))

    def test_decline_after_plateau(self, base_params):
        prod = base_params.production
        expected = 180.0 / (1.0 + 0.5 * 0.08 * 1.0) ** 2.0
        assert potential_rate(prod, 8) == pytest.approx(expected)
        assert potential_rate(prod, 9) < potential_rate(prod, 8)

    def test_decline_years_stops_production(self, make_params):
        prod = make_params(production={"decline_years": 2}).production
        assert potential_rate(prod, 9) > 0
        assert potential_rate(prod, 10) == 0.0


class TestWaterCut:
    def test_reaches_two_percent_at_breakthrough(self, base_params):
        assert water_cut(base_params.production, 7) == pytest.approx(0.02)

    def test_monotonic_and_bounded(self, base_params):
        prod = base_params.production
        cuts = [water_cut(prod, p) for p in range(1, 40)]
        assert all(b >= a for a, b in zip(cuts, cuts[1:]))
        assert max(cuts) < prod.bsw_max_pct / 100.0

    def test_zero_before_first_oil(self, base_params):
        assert water_cut(base_params.production, 0) == 0.0

    def test_extreme_inputs_do_not_overflow(self, make_params):
        prod = make_params(production={"bsw_breakthrough_year": 500.0, "bsw_growth_rate": 10.0}).production
        assert water_cut(prod, 1) == pytest.approx(0.0, abs=1e-12)


# ── Full profile ──────────────────────────────────────────────────────────────

class TestBuildProductionProfile:
    def test_one_entry_per_year(self, base_params):
        profile = build_production_profile(base_params)
        assert len(profile.oil_rate_kbpd) == base_params.economics.project_duration_years + 1

    def test_no_production_during_construction(self, base_params):
        profile = build_production_profile(base_params)
        assert profile.oil_rate_kbpd[:5] == [0.0] * 5
        assert profile.oil_rate_kbpd[5] == pytest.approx(60.0)

    def test_no_production_in_decommissioning_year(self, base_params):
        profile = build_production_profile(base_params)
        assert profile.oil_rate_kbpd[-1] == 0.0

    def test_capacity_caps_oil(self, base_params):
        profile = build_production_profile(base_params)
        capacity = base_params.production.liquid_capacity_bpd / 1000.0
        for oil, bsw in zip(profile.oil_rate_kbpd, profile.water_cut):
            assert oil <= capacity * (1.0 - bsw) + 1e-9

    def test_capacity_binds_once_water_arrives(self, base_params):
        profile = build_production_profile(base_params)
        binding = [
            y for y, (oil, pot) in enumerate(zip(profile.oil_rate_kbpd, profile.potential_kbpd))
            if oil < pot - 1e-9
        ]
        assert binding, "water cut should eventually constrain oil below potential"

    def test_cumulative_never_exceeds_reserves(self, make_params):
        params = make_params(production={"total_reserves_mmbbl": 100.0})
        profile = build_production_profile(params)
        assert profile.cumulative_oil_mmbbl <= 100.0 + 1e-9
        assert profile.cumulative_oil_mmbbl == pytest.approx(100.0)

    def test_volume_matches_rate(self, base_params):
        profile = build_production_profile(base_params)
        for rate, volume in zip(profile.oil_rate_kbpd, profile.oil_volume_mmbbl):
            assert volume == pytest.approx(rate * KBPD_TO_MMBBL)

    def test_zero_capacity_warns_and_shuts_in(self, make_params):
        profile = build_production_profile(make_params(production={"liquid_capacity_bpd": 0.0}))
        assert sum(profile.oil_rate_kbpd) == 0.0
        assert any("capacity" in w.lower() for w in profile.warnings)

    def test_simple_mode_has_no_water_volume(self, base_params):
        profile = build_production_profile(base_params)
        assert sum(profile.water_rate_kbpd) == 0.0
        assert profile.liquid_rate_kbpd == profile.oil_rate_kbpd

    def test_detailed_mode_water_within_capacity(self, detailed_params):
        profile = build_production_profile(detailed_params)
        capacity = detailed_params.production.liquid_capacity_bpd / 1000.0
        assert sum(profile.water_rate_kbpd) > 0.0
        assert all(liquid <= capacity + 1e-9 for liquid in profile.liquid_rate_kbpd)

    def test_detailed_mode_applies_downtime(self, base_params, detailed_params):
        simple = build_production_profile(base_params)
        detailed = build_production_profile(detailed_params)
        # First-oil year is unconstrained by capacity in both modes
        assert detailed.oil_rate_kbpd[5] < simple.oil_rate_kbpd[5]

    def test_rates_are_finite_and_non_negative(self, detailed_params):
        profile = build_production_profile(detailed_params)
        for series in (profile.oil_rate_kbpd, profile.water_rate_kbpd, profile.liquid_rate_kbpd):
            assert all(math.isfinite(v) and v >= 0 for v in series)


# ── Reliability ───────────────────────────────────────────────────────────────

class TestReliability:
    def test_constant_profile(self):
        rel = ReliabilityAssumptions(failure_rate=0.15)
        assert failure_rate_at_year(rel, 0, 30) == pytest.approx(0.15)
        assert failure_rate_at_year(rel, 29, 30) == pytest.approx(0.15)

    def test_wearout_rises_with_age(self):
        rel = ReliabilityAssumptions(failure_rate=0.15, failure_profile=FailureProfile.wearout)
        assert failure_rate_at_year(rel, 29, 30) > failure_rate_at_year(rel, 0, 30)

    def test_bathtub_shape(self):
        rel = ReliabilityAssumptions(failure_rate=0.2, failure_profile=FailureProfile.bathtub)
        early = failure_rate_at_year(rel, 0, 31)
        mid = failure_rate_at_year(rel, 15, 31)
        late = failure_rate_at_year(rel, 30, 31)
        assert mid == pytest.approx(0.1)
        assert early == pytest.approx(0.4)
        assert late == pytest.approx(0.4)

    def test_downtime_efficiency(self):
        rel = ReliabilityAssumptions(failure_rate=0.15, wait_days=60.0)
        assert downtime_efficiency(rel, 5, 30) == pytest.approx(1.0 - 0.15 * 60.0 / 365.0)

    def test_zero_lambda_no_downtime(self):
        rel = ReliabilityAssumptions(failure_rate=0.0)
        assert downtime_efficiency(rel, 5, 30) == 1.0
        assert workover_cost_at_year(rel, 5, 30) == 0.0

    def test_lookup_and_override(self):
        rel = ReliabilityAssumptions(well_type="post_salt", complexity="low")
        cost = resolve_workover_cost(rel)
        assert (cost.mobilization_usd, cost.daily_rate_usd, cost.duration_days) == (4e6, 650e3, 10.0)

        overridden = resolve_workover_cost(ReliabilityAssumptions(daily_rate_usd=1e6))
        assert overridden.daily_rate_usd == 1e6
        assert overridden.mobilization_usd == 8e6

    def test_workover_cost_scales_with_wells(self):
        rel = ReliabilityAssumptions(num_wells=16, failure_rate=0.15)
        assert workover_cost_at_year(rel, 5, 30) == pytest.approx(16 * 0.15 * (8e6 + 800e3 * 20))


# ── Reserves sizing & presets ─────────────────────────────────────────────────

class TestPeakFromReserves:
    def test_recovers_reserves_over_window(self, base_params):
        prod = base_params.production
        peak = peak_from_reserves(prod, 25)
        recovered = sum(potential_rate(prod, p, peak_rate_kbpd=peak) for p in range(1, 26)) * KBPD_TO_MMBBL
        assert recovered == pytest.approx(prod.total_reserves_mmbbl)

    def test_zero_window(self, base_params):
        assert peak_from_reserves(base_params.production, 0) == 0.0

    def test_apply_preset(self, base_params):
        updated = apply_production_preset(base_params, "post_salt")
        assert updated.production.ramp_up_years == 4
        assert updated.production.plateau_years == 2
        assert updated.production.decline.base_value == 12.0
        assert updated.production.peak_rate_kbpd != base_params.production.peak_rate_kbpd
        # Input snapshot untouched
        assert base_params.production.ramp_up_years == 3

    def test_unknown_preset(self, base_params):
        with pytest.raises(KeyError):
            apply_production_preset(base_params, "arctic")
