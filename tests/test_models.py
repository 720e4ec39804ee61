"""Tests for input model validation (models.py)."""

from __future__ import annotations

import math

import pytest
from pydantic import ValidationError

from oilfield_economics.models import (
    CapexSplit,
    DepreciationMethod,
    DepreciationRule,
    EconomicAssumptions,
    ProjectParameters,
    clamp_to_field_bounds,
)


class TestInputValidation:
    def test_defaults_are_valid(self):
        params = ProjectParameters()
        assert params.economics.discount_rate_pct == 10.0
        assert params.fiscal.regime.value == "sharing"

    def test_frozen(self, base_params):
        with pytest.raises(ValidationError):
            base_params.economics.discount_rate_pct = 12.0

    @pytest.mark.parametrize("value", [math.nan, math.inf, -math.inf])
    def test_non_finite_rejected(self, value):
        with pytest.raises(ValidationError):
            EconomicAssumptions(discount_rate_pct=value)

    def test_split_must_total_100(self):
        with pytest.raises(ValidationError):
            CapexSplit(platform=50.0, wells=40.0, subsea=20.0)

    def test_peak_year_within_construction(self, make_params):
        with pytest.raises(ValidationError):
            make_params(capex={"duration_years": 2, "peak_year": 3})


class TestDepreciationRule:
    def test_default_lives(self):
        assert DepreciationRule(method=DepreciationMethod.linear).useful_life == 10
        assert DepreciationRule(method=DepreciationMethod.accelerated).useful_life == 5

    def test_explicit_life(self):
        assert DepreciationRule(method="linear", years=8).useful_life == 8


class TestClampToFieldBounds:
    def test_nested_values_clamped(self):
        data = ProjectParameters().model_dump()
        data["production"]["plateau_years"] = 52
        data["opex"]["reliability"]["failure_rate"] = 5.5
        data["capex"]["concentration_pct"] = -3.0
        clamp_to_field_bounds(ProjectParameters, data)
        assert data["production"]["plateau_years"] == 50
        assert data["opex"]["reliability"]["failure_rate"] == 5.0
        assert data["capex"]["concentration_pct"] == 0.0
        assert ProjectParameters.model_validate(data).production.plateau_years == 50

    def test_in_range_values_untouched(self):
        data = ProjectParameters().model_dump()
        assert clamp_to_field_bounds(ProjectParameters, data) == ProjectParameters().model_dump()

    def test_non_numeric_and_optional_fields_skipped(self):
        data = ProjectParameters().model_dump()
        data["production"]["decline_years"] = None
        clamp_to_field_bounds(ProjectParameters, data)
        assert data["production"]["decline_years"] is None
        assert data["fiscal"]["regime"] == "sharing"
