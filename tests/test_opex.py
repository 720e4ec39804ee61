"""Tests for the opex model (opex.py)."""

from __future__ import annotations

import pytest

from oilfield_economics.opex import (
    build_opex_schedule,
    gas_injection_cost,
    inflation_factor,
)
from oilfield_economics.production import build_production_profile


def _revenue(params, profile, price=70.0):
    return [v * 1e6 * price for v in profile.oil_volume_mmbbl]


class TestHelpers:
    def test_inflation_from_first_oil(self):
        assert inflation_factor(2.0, 1) == 1.0
        assert inflation_factor(2.0, 3) == pytest.approx(1.02 ** 2)

    def test_gas_injection_below_threshold(self):
        assert gas_injection_cost(50.0, 150.0, 1.5e6) == 0.0

    def test_gas_injection_above_threshold(self):
        assert gas_injection_cost(50.0, 300.0, 1.5e6) == pytest.approx(50.0 * 100.0 / 1000.0 * 1.5e6)


class TestSimpleMode:
    def test_margin_of_revenue(self, base_params):
        profile = build_production_profile(base_params)
        revenue = _revenue(base_params, profile)
        schedule = build_opex_schedule(base_params, profile, revenue)
        for y in range(len(revenue)):
            assert schedule.total_usd[y] == pytest.approx(revenue[y] * 0.20)

    def test_no_opex_outside_production(self, base_params):
        profile = build_production_profile(base_params)
        schedule = build_opex_schedule(base_params, profile, _revenue(base_params, profile))
        assert schedule.total_usd[:5] == [0.0] * 5
        assert schedule.total_usd[-1] == 0.0


class TestDetailedMode:
    def test_first_oil_year_components(self, detailed_params):
        profile = build_production_profile(detailed_params)
        schedule = build_opex_schedule(detailed_params, profile, _revenue(detailed_params, profile))
        y = 5
        assert schedule.fixed_usd[y] == pytest.approx(100e6)
        assert schedule.variable_usd[y] == pytest.approx(4.0 * profile.oil_volume_mmbbl[y] * 1e6)
        assert schedule.workover_usd[y] == pytest.approx(16 * 0.15 * 24e6)
        assert schedule.gas_injection_usd[y] == 0.0

    def test_fixed_cost_escalates(self, detailed_params):
        profile = build_production_profile(detailed_params)
        schedule = build_opex_schedule(detailed_params, profile, _revenue(detailed_params, profile))
        assert schedule.fixed_usd[7] == pytest.approx(100e6 * 1.02 ** 2)

    def test_static_workover_when_lambda_zero(self, make_params):
        params = make_params(
            production={"mode": "detailed"},
            opex={"mode": "detailed", "reliability": {"failure_rate": 0.0}},
        )
        profile = build_production_profile(params)
        schedule = build_opex_schedule(params, profile, _revenue(params, profile))
        assert schedule.workover_usd[5] == pytest.approx(10e6)

    def test_gas_injection_for_high_gor(self, make_params):
        params = make_params(production={"mode": "detailed", "gor_m3_m3": 400.0})
        profile = build_production_profile(params)
        schedule = build_opex_schedule(params, profile, _revenue(params, profile))
        assert schedule.gas_injection_usd[5] > 0.0
        assert schedule.gas_injection_usd[0] == 0.0
