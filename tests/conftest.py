"""Shared fixtures for the oilfield economics test suite."""
from __future__ import annotations

from typing import Any

import pytest

from oilfield_economics.models import ProjectParameters


def _merge(base: dict, overrides: dict) -> dict:
    for key, value in overrides.items():
        if isinstance(value, dict) and isinstance(base.get(key), dict):
            _merge(base[key], value)
        else:
            base[key] = value
    return base


def build_params(**sections: Any) -> ProjectParameters:
    """ProjectParameters from defaults with nested section overrides, e.g. capex={"duration_years": 3}."""
    return ProjectParameters.model_validate(_merge(ProjectParameters().model_dump(), sections))


# ── Parameter fixtures ───────────────────────────────────────────────────────


@pytest.fixture()
def base_params() -> ProjectParameters:
    return ProjectParameters()


@pytest.fixture()
def detailed_params() -> ProjectParameters:
    return build_params(
        production={"mode": "detailed"},
        opex={"mode": "detailed"},
    )


@pytest.fixture()
def concession_params() -> ProjectParameters:
    return build_params(fiscal={"regime": "concession"})


@pytest.fixture()
def make_params():
    return build_params
