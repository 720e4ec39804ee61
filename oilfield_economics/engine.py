"""
Oilfield development economics — main orchestrator.

Architecture-agnostic: callable from the CLI, a web backend or a notebook.
The engine performs no I/O; inputs arrive as a ProjectParameters model, a
plain dict, or None for the documented base case.

Usage (Python API):
    from oilfield_economics.engine import run_analysis
    results = run_analysis({"fiscal": {"regime": "concession"}}, seed=42)
    print(results.metrics.npv_usd, results.metrics.irr_pct)

Usage (single evaluation — used by the sensitivity loops):
    from oilfield_economics.engine import evaluate_project
    evaluation = evaluate_project(ProjectParameters())
"""

from __future__ import annotations

import logging
from typing import Any

from pydantic import ValidationError

from oilfield_economics.calculator import calculate_npv_profile, compute_metrics
from oilfield_economics.cash_flow import build_cash_flows
from oilfield_economics.errors import ConfigurationError, EngineFailure
from oilfield_economics.models import (
    EngineError,
    ProjectEvaluation,
    ProjectParameters,
    Results,
    RunStatus,
)
from oilfield_economics.monte_carlo import DEFAULT_ITERATIONS, run_monte_carlo
from oilfield_economics.sensitivity import run_capex_sensitivity, run_tornado
from oilfield_economics.validator import validate_metrics

log = logging.getLogger(__name__)


def parse_parameters(params: ProjectParameters | dict[str, Any] | None) -> ProjectParameters:
    """
    Coerce user input into ProjectParameters.

    Raises:
        ConfigurationError: on any validation failure (non-finite, out-of-range,
            inconsistent fields)
    """
    if params is None:
        return ProjectParameters()
    if isinstance(params, ProjectParameters):
        return params
    try:
        return ProjectParameters.model_validate(params)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid project parameters: {e}") from e


def evaluate_project(params: ProjectParameters, include_breakeven: bool = True) -> ProjectEvaluation:
    """
    One deterministic pass: cash flows, metrics and NPV profile.

    Pure with respect to `params`: the same snapshot always yields an
    identical evaluation.

    Raises:
        ConfigurationError: if the parameters admit no valid projection
    """
    build = build_cash_flows(params)
    metrics = compute_metrics(params, build.records, include_breakeven=include_breakeven)
    return ProjectEvaluation(
        records=build.records,
        metrics=metrics,
        npv_profile=calculate_npv_profile(build.free_cash_flows),
        price_curve=build.price_curve.points(),
        warnings=build.warnings,
    )


def _error_result(error: EngineFailure, warnings: list[str] | None = None) -> Results:
    return Results(
        status=RunStatus.error,
        warnings=warnings or [],
        error=EngineError(kind=error.kind.value, message=str(error)),
    )


def run_analysis(
    params: ProjectParameters | dict[str, Any] | None = None,
    run_tornado_analysis: bool = True,
    run_capex_sweep: bool = True,
    run_monte_carlo_analysis: bool = True,
    monte_carlo_iterations: int = DEFAULT_ITERATIONS,
    seed: int | None = None,
) -> Results:
    """
    Main entry point: full evaluation plus sensitivity diagnostics.

    Pipeline:
      Step 1 — Parse + validate parameters
      Step 2 — Deterministic evaluation (cash flows, metrics, NPV profile)
      Step 3 — Tornado sensitivity
      Step 4 — Capex sensitivity sweep
      Step 5 — Monte Carlo correlation analysis
      Step 6 — Validate + flag against benchmarks

    Never raises: configuration problems come back as status="error" with an
    EngineError describing the failure kind.

    Args:
        params: ProjectParameters model, dict, or None for the base case
        run_tornado_analysis: Whether to run the tornado sensitivity
        run_capex_sweep: Whether to run the capex sweep
        run_monte_carlo_analysis: Whether to run Monte Carlo sampling
        monte_carlo_iterations: Number of Monte Carlo trials (default 500)
        seed: Monte Carlo seed; None gives a non-reproducible run

    Returns:
        Results with yearly records, metrics, sensitivity outputs and flags
    """
    # ── Step 1: Parse + validate parameters ───────────────────────────────────
    log.info("Step 1: Parsing and validating parameters")
    try:
        parsed = parse_parameters(params)
    except ConfigurationError as e:
        log.warning("Parameter validation failed: %s", e)
        return _error_result(e)

    log.info(
        "Parameters valid: %s regime | %d-yr horizon | %.0f%% discount | $%.0fM capex | %.0f kbpd peak",
        parsed.fiscal.regime.value,
        parsed.economics.project_duration_years,
        parsed.economics.discount_rate_pct,
        parsed.capex.total_capex_usd / 1e6,
        parsed.production.peak_rate_kbpd,
    )

    # ── Step 2: Deterministic evaluation ──────────────────────────────────────
    log.info("Step 2: Evaluating base case")
    try:
        evaluation = evaluate_project(parsed)
    except EngineFailure as e:
        log.warning("Base case evaluation failed: %s", e)
        return _error_result(e)

    metrics = evaluation.metrics
    log.info(
        "Base case: NPV $%.0fM | IRR %s | payback %s",
        metrics.npv_usd / 1e6,
        f"{metrics.irr_pct:.1f}%" if metrics.irr_pct is not None else "n/a",
        f"{metrics.payback_years:.1f} yr" if metrics.payback_years is not None else "n/a",
    )

    results = Results(
        status=RunStatus.success,
        yearly_records=evaluation.records,
        metrics=metrics,
        npv_profile=evaluation.npv_profile,
        price_curve=evaluation.price_curve,
        warnings=list(evaluation.warnings),
    )

    # ── Step 3: Tornado sensitivity ───────────────────────────────────────────
    if run_tornado_analysis:
        log.info("Step 3: Running tornado sensitivity")
        try:
            results.tornado = run_tornado(parsed)
        except EngineFailure as e:
            log.warning("Tornado sensitivity failed: %s", e)
            results.warnings.append(f"Tornado sensitivity skipped: {e}")

    # ── Step 4: Capex sweep ───────────────────────────────────────────────────
    if run_capex_sweep:
        log.info("Step 4: Running capex sensitivity sweep")
        results.capex_sensitivity = run_capex_sensitivity(parsed)

    # ── Step 5: Monte Carlo ───────────────────────────────────────────────────
    if run_monte_carlo_analysis:
        log.info("Step 5: Running Monte Carlo (%d iterations, seed=%s)", monte_carlo_iterations, seed)
        try:
            results.monte_carlo = run_monte_carlo(parsed, iterations=monte_carlo_iterations, seed=seed)
        except EngineFailure as e:
            log.warning("Monte Carlo failed: %s", e)
            results.warnings.append(f"Monte Carlo skipped: {e}")

    # ── Step 6: Validate + flag ───────────────────────────────────────────────
    log.info("Step 6: Validating against benchmarks")
    results.flags = validate_metrics(metrics, evaluation.records, parsed.economics.discount_rate_pct)

    crit = sum(1 for f in results.flags if "CRITICAL" in f.severity)
    warn = sum(1 for f in results.flags if "WARNING" in f.severity)
    log.info("Analysis complete: %d critical, %d warning flags", crit, warn)
    return results
