"""
Monte Carlo correlation analysis.

Each trial draws uniform perturbations of the capex, production-shape and
opex drivers, re-runs the deterministic pipeline on a freshly validated
copy of the parameters, and records IRR spread and NPV / investment. The
Pearson correlation and a least-squares trend line are computed over trials
where both metrics are defined.

Perturbations:
  capex ±20%, concentration ±30%, capex peak year ~ U{1..duration}
  peak rate ±20%, ramp-up / plateau ~ U{max(1, x−1)..x+2}, decline ±20%
  opex margin ±20%, fixed and variable opex ±15%

Drawn values are clamped to the bounds of the fields they land in.

A seed makes the run reproducible; seed=None draws fresh entropy.
"""

from __future__ import annotations

import logging
import math

import numpy as np

from oilfield_economics.calculator import compute_metrics
from oilfield_economics.cash_flow import build_cash_flows
from oilfield_economics.models import (
    MonteCarloSample,
    MonteCarloSummary,
    ProjectParameters,
    TrendPoint,
)
from oilfield_economics.sensitivity import pearson_correlation, validate_trial

log = logging.getLogger(__name__)

DEFAULT_ITERATIONS = 500

# Dotted paths of every input a trial may change
PERTURBED_FIELDS: tuple[str, ...] = (
    "capex.total_capex_usd",
    "capex.concentration_pct",
    "capex.peak_year",
    "production.peak_rate_kbpd",
    "production.ramp_up_years",
    "production.plateau_years",
    "production.decline.base_value",
    "opex.margin_pct",
    "opex.fixed_cost_usd_year",
    "opex.variable_cost_usd_bbl",
)


def _vary(rng: np.random.Generator, value: float, pct: float) -> float:
    return float(value) * (1.0 + rng.uniform(-pct, pct) / 100.0)


def _vary_years(rng: np.random.Generator, value: int) -> int:
    return int(rng.integers(max(1, value - 1), value + 2 + 1))


def draw_parameters(
    base: ProjectParameters,
    rng: np.random.Generator,
) -> tuple[ProjectParameters, dict[str, float]]:
    """
    Draw one trial.

    Returns:
        (trial parameters, {dotted field path: value used}): only the
        fields listed in PERTURBED_FIELDS differ from `base`.

    Raises:
        ConfigurationError: if the drawn trial fails cross-field validation
    """
    data = base.model_dump()
    capex = data["capex"]
    prod = data["production"]
    opex = data["opex"]

    capex["total_capex_usd"] = _vary(rng, capex["total_capex_usd"], 20.0)
    capex["concentration_pct"] = _vary(rng, capex["concentration_pct"], 30.0)
    capex["peak_year"] = int(rng.integers(1, capex["duration_years"] + 1))

    prod["peak_rate_kbpd"] = _vary(rng, prod["peak_rate_kbpd"], 20.0)
    prod["ramp_up_years"] = _vary_years(rng, prod["ramp_up_years"])
    prod["plateau_years"] = _vary_years(rng, prod["plateau_years"])
    prod["decline"]["base_value"] = _vary(rng, prod["decline"]["base_value"], 20.0)

    opex["margin_pct"] = _vary(rng, opex["margin_pct"], 20.0)
    opex["fixed_cost_usd_year"] = _vary(rng, opex["fixed_cost_usd_year"], 15.0)
    opex["variable_cost_usd_bbl"] = _vary(rng, opex["variable_cost_usd_bbl"], 15.0)

    trial = validate_trial(data)
    clamped = trial.model_dump()

    perturbation: dict[str, float] = {}
    for path in PERTURBED_FIELDS:
        node = clamped
        for key in path.split("."):
            node = node[key]
        perturbation[path] = float(node)

    return trial, perturbation


def evaluate_sample(sample_id: int, trial: ProjectParameters, perturbation: dict[str, float]) -> MonteCarloSample:
    """Run the pipeline for one trial; samples with undefined metrics are kept but marked invalid."""
    build = build_cash_flows(trial)
    metrics = compute_metrics(trial, build.records, include_breakeven=False)
    valid = (
        metrics.spread_pct is not None
        and metrics.npv_investment_ratio is not None
        and math.isfinite(metrics.spread_pct)
        and math.isfinite(metrics.npv_investment_ratio)
    )
    return MonteCarloSample(
        sample_id=sample_id,
        npv_usd=metrics.npv_usd,
        irr_pct=metrics.irr_pct,
        spread_pct=metrics.spread_pct,
        npv_investment_ratio=metrics.npv_investment_ratio,
        valid=valid,
        perturbation=perturbation,
    )


def trend_line(x: list[float], y: list[float]) -> list[TrendPoint]:
    """Least-squares line through (x, y), returned as its two end points over the x range."""
    if len(x) < 2 or min(x) == max(x):
        return []
    slope, intercept = np.polyfit(np.asarray(x, dtype=float), np.asarray(y, dtype=float), 1)
    x_lo, x_hi = min(x), max(x)
    return [
        TrendPoint(spread_pct=x_lo, npv_investment_ratio=float(slope * x_lo + intercept)),
        TrendPoint(spread_pct=x_hi, npv_investment_ratio=float(slope * x_hi + intercept)),
    ]


def run_monte_carlo(
    params: ProjectParameters,
    iterations: int = DEFAULT_ITERATIONS,
    seed: int | None = None,
) -> MonteCarloSummary:
    """
    Sample `iterations` trials and correlate IRR spread with NPV / investment.

    All draws are taken up front from one generator, so a given seed yields
    the same trial set regardless of how the evaluations are scheduled.
    """
    rng = np.random.default_rng(seed)
    draws = [draw_parameters(params, rng) for _ in range(iterations)]
    samples = [evaluate_sample(i, trial, perturbation) for i, (trial, perturbation) in enumerate(draws)]

    valid = [s for s in samples if s.valid]
    x = [s.spread_pct for s in valid]
    y = [s.npv_investment_ratio for s in valid]

    log.info("Monte Carlo: %d/%d valid samples", len(valid), iterations)
    return MonteCarloSummary(
        iterations=iterations,
        seed=seed,
        samples=samples,
        valid_samples=len(valid),
        correlation=pearson_correlation(x, y),
        trend_line=trend_line(x, y),
    )
