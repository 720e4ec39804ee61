"""
Deterministic sensitivity analysis.

Tornado (one-at-a-time):
  - Each variable is set to its low and high bound while all others stay at base
  - Multipliers swing 0.9 / 1.1; other variables swing base × 0.9 / × 1.1
  - Production and opex run in detailed mode so every driver has an effect
  - Rows sorted by NPV swing (largest impact first)

Capex sweep:
  - Total capex varied −30% … +30%; reports IRR spread and NPV / investment
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass

import numpy as np
from pydantic import ValidationError

from oilfield_economics.calculator import calculate_npv, compute_metrics
from oilfield_economics.cash_flow import build_cash_flows
from oilfield_economics.errors import ConfigurationError, EngineFailure
from oilfield_economics.models import (
    CapexSensitivity,
    CapexSensitivityPoint,
    OpexMode,
    ProductionMode,
    ProjectParameters,
    SensitivityScenario,
    clamp_to_field_bounds,
)
from oilfield_economics.reliability import resolve_workover_cost

log = logging.getLogger(__name__)

LOW_FACTOR = 0.9
HIGH_FACTOR = 1.1

# Share of total capex that is rig-dependent (wells), and how that share
# splits between general well cost and rig day-rate exposure
WELL_CAPEX_SHARE = 0.40
WELL_CAPEX_GENERAL_SHARE = 0.30
WELL_CAPEX_RIG_SHARE = 0.70

CAPEX_SWEEP_PCT: tuple[float, ...] = (-30.0, -20.0, -10.0, 0.0, 10.0, 20.0, 30.0)

Applier = Callable[[dict, float], None]


@dataclass(frozen=True)
class TornadoVariable:
    """A perturbable driver: how to read its base value and how to write a trial value."""
    key: str
    label: str
    is_multiplier: bool
    base_value: Callable[[ProjectParameters], float]
    apply: Applier


# ── Appliers (mutate a model_dump() dict in place) ───────────────────────────

def _apply_capex_multiplier(data: dict, m: float) -> None:
    total = data["capex"]["total_capex_usd"]
    data["capex"]["total_capex_usd"] = total + total * WELL_CAPEX_SHARE * WELL_CAPEX_GENERAL_SHARE * (m - 1.0)


def _apply_rig_rate_multiplier(data: dict, m: float) -> None:
    rel = ProjectParameters.model_validate(data).opex.reliability
    data["opex"]["reliability"]["daily_rate_usd"] = resolve_workover_cost(rel).daily_rate_usd * m
    total = data["capex"]["total_capex_usd"]
    data["capex"]["total_capex_usd"] = total + total * WELL_CAPEX_SHARE * WELL_CAPEX_RIG_SHARE * (m - 1.0)


def _setter(*path: str) -> Applier:
    def apply(data: dict, value: float) -> None:
        node = data
        for key in path[:-1]:
            node = node[key]
        node[path[-1]] = value
    return apply


DEFAULT_TORNADO_VARIABLES: list[TornadoVariable] = [
    TornadoVariable(
        "capex_multiplier", "CAPEX Multiplier", True,
        lambda p: 1.0, _apply_capex_multiplier,
    ),
    TornadoVariable(
        "failure_rate", "Workover Failure Rate (λ)", False,
        lambda p: p.opex.reliability.failure_rate, _setter("opex", "reliability", "failure_rate"),
    ),
    TornadoVariable(
        "rig_rate_multiplier", "Rig Day-Rate Multiplier", True,
        lambda p: 1.0, _apply_rig_rate_multiplier,
    ),
    TornadoVariable(
        "wait_days", "Workover Wait Time (days)", False,
        lambda p: p.opex.reliability.wait_days, _setter("opex", "reliability", "wait_days"),
    ),
    TornadoVariable(
        "decline_rate", "Decline Rate (%/yr)", False,
        lambda p: p.production.decline.base_value, _setter("production", "decline", "base_value"),
    ),
    TornadoVariable(
        "hyperbolic_exponent", "Hyperbolic Exponent (b)", False,
        lambda p: p.production.hyperbolic_exponent, _setter("production", "hyperbolic_exponent"),
    ),
    TornadoVariable(
        "bsw_breakthrough_year", "Water Breakthrough (yr)", False,
        lambda p: p.production.bsw_breakthrough_year, _setter("production", "bsw_breakthrough_year"),
    ),
    TornadoVariable(
        "bsw_growth_rate", "Water-Cut Growth Rate", False,
        lambda p: p.production.bsw_growth_rate, _setter("production", "bsw_growth_rate"),
    ),
]


def detailed_case(params: ProjectParameters) -> ProjectParameters:
    """Copy of the parameters with production and opex forced to detailed mode."""
    data = params.model_dump()
    data["production"]["mode"] = ProductionMode.detailed.value
    data["opex"]["mode"] = OpexMode.detailed.value
    return ProjectParameters.model_validate(data)


def validate_trial(data: dict) -> ProjectParameters:
    """
    Validate an edited model_dump() dict as a trial case.

    Values pushed past a field bound are clamped back onto it first.

    Raises:
        ConfigurationError: if the trial still fails validation (cross-field checks)
    """
    try:
        return ProjectParameters.model_validate(clamp_to_field_bounds(ProjectParameters, data))
    except ValidationError as e:
        raise ConfigurationError(f"Invalid trial parameters: {e}") from e


def perturb(params: ProjectParameters, variable: TornadoVariable, value: float) -> ProjectParameters:
    """Return a freshly validated copy with one variable set to `value`."""
    data = params.model_dump()
    variable.apply(data, value)
    return validate_trial(data)


def _npv(params: ProjectParameters) -> float:
    build = build_cash_flows(params)
    return calculate_npv(build.free_cash_flows, params.economics.discount_rate_pct)


def _evaluate_variable(
    base: ProjectParameters,
    base_npv: float,
    variable: TornadoVariable,
    low_factor: float,
    high_factor: float,
) -> SensitivityScenario:
    base_value = variable.base_value(base)
    if variable.is_multiplier:
        low, high = low_factor, high_factor
    else:
        low, high = base_value * low_factor, base_value * high_factor

    npv_low = _npv(perturb(base, variable, low))
    npv_high = _npv(perturb(base, variable, high))
    log.debug("Tornado %s: low %.4g → $%.0fM, high %.4g → $%.0fM",
              variable.key, low, npv_low / 1e6, high, npv_high / 1e6)

    return SensitivityScenario(
        variable=variable.key,
        label=variable.label,
        base_value=base_value,
        low_value=low,
        high_value=high,
        base_npv_usd=base_npv,
        npv_low_usd=npv_low,
        npv_high_usd=npv_high,
        swing_usd=abs(npv_high - npv_low),
        positive_correlation=npv_high > npv_low,
    )


def run_tornado(
    params: ProjectParameters,
    variables: list[TornadoVariable] | None = None,
    low_factor: float = LOW_FACTOR,
    high_factor: float = HIGH_FACTOR,
) -> list[SensitivityScenario]:
    """
    One-way sensitivity on NPV.

    Args:
        params: Base case ProjectParameters (not modified)
        variables: Drivers to perturb; defaults to DEFAULT_TORNADO_VARIABLES
        low_factor / high_factor: Bounds as multiples of the base value

    Returns:
        List of SensitivityScenario, sorted by swing descending
    """
    if variables is None:
        variables = DEFAULT_TORNADO_VARIABLES

    base = detailed_case(params)
    base_npv = _npv(base)

    rows = [_evaluate_variable(base, base_npv, v, low_factor, high_factor) for v in variables]
    rows.sort(key=lambda r: r.swing_usd, reverse=True)
    return rows


# ── Capex sweep ───────────────────────────────────────────────────────────────

def pearson_correlation(x: list[float], y: list[float]) -> float | None:
    """Pearson r, or None with fewer than two points; 0.0 when either series is constant."""
    if len(x) < 2 or len(x) != len(y):
        return None
    xa = np.asarray(x, dtype=float)
    ya = np.asarray(y, dtype=float)
    if np.std(xa) == 0 or np.std(ya) == 0:
        return 0.0
    return float(np.corrcoef(xa, ya)[0, 1])


def run_capex_sensitivity(
    params: ProjectParameters,
    variations_pct: tuple[float, ...] = CAPEX_SWEEP_PCT,
) -> CapexSensitivity:
    """Sweep total capex and report spread and NPV / investment at each step."""
    points: list[CapexSensitivityPoint] = []
    for variation in variations_pct:
        data = params.model_dump()
        data["capex"]["total_capex_usd"] *= 1.0 + variation / 100.0
        try:
            trial = validate_trial(data)
            build = build_cash_flows(trial)
        except EngineFailure as e:
            log.warning("Capex sweep %+.0f%% skipped: %s", variation, e)
            continue
        metrics = compute_metrics(trial, build.records, include_breakeven=False)
        points.append(CapexSensitivityPoint(
            variation_pct=variation,
            total_capex_usd=trial.capex.total_capex_usd,
            irr_pct=metrics.irr_pct,
            spread_pct=metrics.spread_pct,
            npv_investment_ratio=metrics.npv_investment_ratio,
        ))

    valid = [p for p in points if p.spread_pct is not None and p.npv_investment_ratio is not None]
    correlation = pearson_correlation(
        [p.spread_pct for p in valid], [p.npv_investment_ratio for p in valid],
    )
    return CapexSensitivity(points=points, correlation=correlation)
