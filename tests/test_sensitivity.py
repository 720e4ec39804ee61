"""Tests for the tornado and capex sweep (sensitivity.py)."""

from __future__ import annotations

import pytest

from oilfield_economics.errors import ConfigurationError
from oilfield_economics.models import OpexMode, ProductionMode, ProjectParameters
from oilfield_economics.sensitivity import (
    CAPEX_SWEEP_PCT,
    DEFAULT_TORNADO_VARIABLES,
    WELL_CAPEX_GENERAL_SHARE,
    WELL_CAPEX_SHARE,
    detailed_case,
    pearson_correlation,
    perturb,
    run_capex_sensitivity,
    run_tornado,
    validate_trial,
)


def _variable(key):
    return next(v for v in DEFAULT_TORNADO_VARIABLES if v.key == key)


# ── Perturbation ──────────────────────────────────────────────────────────────

class TestPerturb:
    def test_detailed_case_forces_modes(self, base_params):
        detailed = detailed_case(base_params)
        assert detailed.production.mode == ProductionMode.detailed
        assert detailed.opex.mode == OpexMode.detailed
        assert base_params.production.mode == ProductionMode.simple

    def test_setter(self, base_params):
        trial = perturb(base_params, _variable("failure_rate"), 0.3)
        assert trial.opex.reliability.failure_rate == 0.3
        assert base_params.opex.reliability.failure_rate == 0.15

    def test_capex_multiplier_scales_general_well_share(self, base_params):
        trial = perturb(base_params, _variable("capex_multiplier"), 1.1)
        expected = 6e9 * (1.0 + WELL_CAPEX_SHARE * WELL_CAPEX_GENERAL_SHARE * 0.1)
        assert trial.capex.total_capex_usd == pytest.approx(expected)

    def test_rig_multiplier_moves_day_rate_and_capex(self, base_params):
        trial = perturb(base_params, _variable("rig_rate_multiplier"), 1.1)
        assert trial.opex.reliability.daily_rate_usd == pytest.approx(880e3)
        assert trial.capex.total_capex_usd > base_params.capex.total_capex_usd

    def test_value_clamped_to_model_bounds(self, make_params):
        params = make_params(production={"hyperbolic_exponent": 1.95})
        trial = perturb(params, _variable("hyperbolic_exponent"), 1.95 * 1.1)
        assert trial.production.hyperbolic_exponent == 2.0

    @pytest.mark.parametrize("key,overrides,attr,ceiling", [
        ("failure_rate", {"opex": {"reliability": {"failure_rate": 5.0}}}, ("opex", "reliability", "failure_rate"), 5.0),
        ("bsw_growth_rate", {"production": {"bsw_growth_rate": 10.0}}, ("production", "bsw_growth_rate"), 10.0),
        ("wait_days", {"opex": {"reliability": {"wait_days": 365.0}}}, ("opex", "reliability", "wait_days"), 365.0),
        ("decline_rate", {"production": {"decline": {"base_value": 100.0}}}, ("production", "decline", "base_value"), 100.0),
    ])
    def test_high_bound_at_field_ceiling(self, make_params, key, overrides, attr, ceiling):
        params = make_params(**overrides)
        trial = perturb(params, _variable(key), ceiling * 1.1)
        node = trial
        for name in attr:
            node = getattr(node, name)
        assert node == ceiling

    def test_cross_field_failure_is_configuration_error(self, base_params):
        data = base_params.model_dump()
        data["capex"]["peak_year"] = data["capex"]["duration_years"] + 1
        with pytest.raises(ConfigurationError, match="Invalid trial parameters"):
            validate_trial(data)


# ── Tornado ───────────────────────────────────────────────────────────────────

class TestTornado:
    @pytest.fixture(scope="class")
    def rows(self):
        return run_tornado(ProjectParameters())

    def test_one_row_per_variable(self, rows):
        assert len(rows) == len(DEFAULT_TORNADO_VARIABLES) == 8
        assert {r.variable for r in rows} == {v.key for v in DEFAULT_TORNADO_VARIABLES}

    def test_sorted_by_swing(self, rows):
        swings = [r.swing_usd for r in rows]
        assert swings == sorted(swings, reverse=True)

    def test_swing_is_absolute_difference(self, rows):
        for r in rows:
            assert r.swing_usd == pytest.approx(abs(r.npv_high_usd - r.npv_low_usd))

    def test_shared_base_npv(self, rows):
        assert len({r.base_npv_usd for r in rows}) == 1

    def test_bounds(self, rows):
        for r in rows:
            assert r.low_value == pytest.approx(r.base_value * 0.9) or r.low_value == pytest.approx(0.9)
            assert r.high_value == pytest.approx(r.base_value * 1.1) or r.high_value == pytest.approx(1.1)

    def test_capex_is_negatively_correlated(self, rows):
        capex = next(r for r in rows if r.variable == "capex_multiplier")
        assert not capex.positive_correlation
        assert capex.npv_high_usd < capex.base_npv_usd < capex.npv_low_usd

    def test_failure_rate_hurts_npv(self, rows):
        failure = next(r for r in rows if r.variable == "failure_rate")
        assert failure.npv_high_usd < failure.npv_low_usd

    def test_variables_at_field_ceilings(self, make_params):
        params = make_params(
            production={"bsw_growth_rate": 10.0, "hyperbolic_exponent": 2.0},
            opex={"reliability": {"failure_rate": 5.0, "wait_days": 365.0}},
        )
        rows = run_tornado(params)
        assert len(rows) == len(DEFAULT_TORNADO_VARIABLES)
        failure = next(r for r in rows if r.variable == "failure_rate")
        assert failure.high_value == pytest.approx(5.5)

    def test_base_params_not_modified(self, base_params):
        before = base_params.model_dump()
        run_tornado(base_params, variables=DEFAULT_TORNADO_VARIABLES[:2])
        assert base_params.model_dump() == before


# ── Capex sweep ───────────────────────────────────────────────────────────────

class TestCapexSensitivity:
    @pytest.fixture(scope="class")
    def sweep(self):
        return run_capex_sensitivity(ProjectParameters())

    def test_one_point_per_variation(self, sweep):
        assert [p.variation_pct for p in sweep.points] == list(CAPEX_SWEEP_PCT)

    def test_capex_scaled(self, sweep):
        for p in sweep.points:
            assert p.total_capex_usd == pytest.approx(6e9 * (1.0 + p.variation_pct / 100.0))

    def test_irr_falls_as_capex_rises(self, sweep):
        irrs = [p.irr_pct for p in sweep.points]
        assert all(b < a for a, b in zip(irrs, irrs[1:]))

    def test_spread_and_ratio_move_together(self, sweep):
        assert sweep.correlation is not None
        assert sweep.correlation > 0.9


class TestPearson:
    def test_perfect_correlation(self):
        assert pearson_correlation([1.0, 2.0, 3.0], [2.0, 4.0, 6.0]) == pytest.approx(1.0)

    def test_constant_series(self):
        assert pearson_correlation([1.0, 1.0, 1.0], [1.0, 2.0, 3.0]) == 0.0

    def test_too_few_points(self):
        assert pearson_correlation([1.0], [1.0]) is None
