"""
Investment metrics for a cash-flow projection.

Metrics:
  NPV               — Σ FCF_t / (1+r)^t, t counted from year 0
  IRR               — rate where NPV = 0, bracketed on a grid then solved with brentq
  Payback           — first crossing of cumulative (discounted) cash flow to ≥ 0
  Breakeven price   — flat Brent price that makes NPV = 0 (full pipeline re-run)
  NPV / Investment  — NPV over the present value of capex outlays
  Spread            — IRR − discount rate (percentage points)

All calculators are pure functions of their inputs; an undefined metric is
returned as None and `compute_metrics` records why in `Metrics.unavailable`.
"""

from __future__ import annotations

import copy
import logging
from collections.abc import Sequence

import numpy as np
from scipy import optimize

from oilfield_economics.cash_flow import build_cash_flows
from oilfield_economics.errors import ArithmeticDegeneracy, NumericalNonConvergence
from oilfield_economics.models import (
    Metrics,
    NpvProfilePoint,
    PriceStrategy,
    ProjectParameters,
    YearlyRecord,
)

log = logging.getLogger(__name__)

NPV_PROFILE_RATES: tuple[float, ...] = (0.0, 5.0, 10.0, 15.0, 20.0, 25.0, 30.0, 35.0, 40.0)

# IRR search window (fractions) and bracketing grid
IRR_LOWER = -0.99
IRR_UPPER = 10.0
_IRR_GRID = np.unique(np.concatenate([
    np.linspace(IRR_LOWER, 1.0, 200),
    np.linspace(1.0, IRR_UPPER, 91),
]))

BREAKEVEN_LOWER_USD_BBL = 0.0
BREAKEVEN_UPPER_USD_BBL = 200.0
BREAKEVEN_MAX_USD_BBL = 3200.0

PAYBACK_UNAVAILABLE = "> project duration"


# ── NPV ───────────────────────────────────────────────────────────────────────

def calculate_npv(cash_flows: Sequence[float], discount_rate_pct: float) -> float:
    """NPV = Σ CF_t / (1+r)^t with end-of-year discounting from t = 0."""
    flows = np.asarray(cash_flows, dtype=float)
    r = discount_rate_pct / 100.0
    t = np.arange(len(flows))
    return float(np.sum(flows / (1.0 + r) ** t))


def calculate_npv_profile(
    cash_flows: Sequence[float],
    rates_pct: Sequence[float] = NPV_PROFILE_RATES,
) -> list[NpvProfilePoint]:
    """NPV evaluated at each discount rate (defaults to 0–40% in 5% steps)."""
    return [NpvProfilePoint(rate_pct=rate, npv_usd=calculate_npv(cash_flows, rate)) for rate in rates_pct]


# ── IRR ───────────────────────────────────────────────────────────────────────

def solve_irr(cash_flows: Sequence[float]) -> float:
    """
    Internal Rate of Return (%) by bracketed root finding.

    NPV is scanned over [-99%, 1000%]; the first sign change at a
    non-negative rate is preferred (else the first one overall) and refined
    with scipy's brentq.

    Raises:
        NumericalNonConvergence: no sign change in the flows, no bracket, or
            the solver failed to converge
    """
    flows = np.asarray(cash_flows, dtype=float)
    if not (flows > 0).any() or not (flows < 0).any():
        raise NumericalNonConvergence("no sign change in cash flows")

    t = np.arange(len(flows))
    with np.errstate(over="ignore", invalid="ignore"):
        values = (1.0 + _IRR_GRID)[:, None] ** (-t[None, :]) @ flows

    brackets = [
        i for i in range(len(_IRR_GRID) - 1)
        if np.isfinite(values[i]) and np.isfinite(values[i + 1]) and values[i] * values[i + 1] <= 0
    ]
    if not brackets:
        raise NumericalNonConvergence("no root bracketed in [-99%, 1000%]")

    preferred = [i for i in brackets if _IRR_GRID[i] >= 0]
    i = preferred[0] if preferred else brackets[0]

    def npv_at_rate(rate: float) -> float:
        return float(np.sum(flows / (1.0 + rate) ** t))

    try:
        root = optimize.brentq(npv_at_rate, _IRR_GRID[i], _IRR_GRID[i + 1], xtol=1e-12, maxiter=200)
    except (RuntimeError, ValueError) as e:
        raise NumericalNonConvergence(f"IRR solver failed: {e}") from e
    return float(root) * 100.0


def calculate_irr(cash_flows: Sequence[float]) -> float | None:
    """IRR (%) or None when it is undefined."""
    try:
        return solve_irr(cash_flows)
    except NumericalNonConvergence as e:
        log.debug("IRR unavailable: %s", e)
        return None


# ── Payback ───────────────────────────────────────────────────────────────────

def calculate_payback(
    cash_flows: Sequence[float],
    discount_rate_pct: float | None = None,
) -> float | None:
    """
    Years until cumulative cash flow first turns non-negative.

    Fractional by linear interpolation within the crossing year:
        payback = t* − 1 + |cum(t*−1)| / CF(t*)

    With `discount_rate_pct` the discounted flows are used. Returns 0.0 when
    the cumulative never goes negative and None when it never recovers.
    """
    flows = list(cash_flows)
    if discount_rate_pct is not None:
        r = discount_rate_pct / 100.0
        flows = [cf / (1.0 + r) ** t for t, cf in enumerate(flows)]

    cumulative = 0.0
    went_negative = False
    for t, cf in enumerate(flows):
        previous = cumulative
        cumulative += cf
        if cumulative < 0:
            went_negative = True
        elif went_negative:
            return t - 1 + abs(previous) / cf
    return None if went_negative else 0.0


# ── NPV / Investment ──────────────────────────────────────────────────────────

def calculate_investment_pv(records: Sequence[YearlyRecord], discount_rate_pct: float) -> float:
    """Present value of capex outlays, excluding decommissioning years."""
    r = discount_rate_pct / 100.0
    return float(sum(
        rec.capex_usd / (1.0 + r) ** rec.year for rec in records if not rec.is_decom_year
    ))


def calculate_npv_investment_ratio(npv_usd: float, investment_pv_usd: float) -> float:
    """
    NPV per dollar of discounted investment.

    Raises:
        ArithmeticDegeneracy: if the investment PV is not positive
    """
    if investment_pv_usd <= 0:
        raise ArithmeticDegeneracy("present value of investment is zero")
    return npv_usd / investment_pv_usd


# ── Breakeven price ───────────────────────────────────────────────────────────

def calculate_breakeven_price(params: ProjectParameters) -> float:
    """
    Flat Brent price ($/bbl) at which project NPV is zero.

    The price strategy is forced to constant and the full pipeline re-run
    for each trial price. The bracket starts at [$0, $200] and the upper
    bound doubles until NPV turns non-negative.

    Raises:
        NumericalNonConvergence: if no price in [$0, $3200] brackets NPV = 0
    """
    base = params.model_dump()
    base["price"]["strategy"] = PriceStrategy.constant.value
    rate = params.economics.discount_rate_pct

    def npv_at_price(price: float) -> float:
        data = copy.deepcopy(base)
        data["price"]["initial_price_usd_bbl"] = price
        build = build_cash_flows(ProjectParameters.model_validate(data))
        return calculate_npv(build.free_cash_flows, rate)

    lower = BREAKEVEN_LOWER_USD_BBL
    if npv_at_price(lower) >= 0:
        raise NumericalNonConvergence("NPV is non-negative at zero price")

    upper = BREAKEVEN_UPPER_USD_BBL
    while npv_at_price(upper) < 0:
        upper *= 2.0
        if upper > BREAKEVEN_MAX_USD_BBL:
            raise NumericalNonConvergence(f"NPV stays negative up to ${BREAKEVEN_MAX_USD_BBL:.0f}/bbl")

    try:
        price = optimize.brentq(npv_at_price, lower, upper, xtol=1e-10, maxiter=200)
    except (RuntimeError, ValueError) as e:
        raise NumericalNonConvergence(f"breakeven solver failed: {e}") from e
    return float(price)


# ── Aggregation ───────────────────────────────────────────────────────────────

def compute_metrics(
    params: ProjectParameters,
    records: Sequence[YearlyRecord],
    include_breakeven: bool = True,
) -> Metrics:
    """Compute every headline metric; undefined ones are None with a reason."""
    rate = params.economics.discount_rate_pct
    flows = [rec.free_cash_flow_usd for rec in records]
    unavailable: dict[str, str] = {}

    npv = calculate_npv(flows, rate)

    irr: float | None = None
    spread: float | None = None
    try:
        irr = solve_irr(flows)
        spread = irr - rate
    except NumericalNonConvergence as e:
        unavailable["irr_pct"] = str(e)
        unavailable["spread_pct"] = "IRR unavailable"

    investment_pv = calculate_investment_pv(records, rate)
    ratio: float | None = None
    try:
        ratio = calculate_npv_investment_ratio(npv, investment_pv)
    except ArithmeticDegeneracy as e:
        unavailable["npv_investment_ratio"] = str(e)

    payback = calculate_payback(flows)
    if payback is None:
        unavailable["payback_years"] = PAYBACK_UNAVAILABLE
    discounted_payback = calculate_payback(flows, rate)
    if discounted_payback is None:
        unavailable["discounted_payback_years"] = PAYBACK_UNAVAILABLE

    breakeven: float | None = None
    if include_breakeven:
        try:
            breakeven = calculate_breakeven_price(params)
        except NumericalNonConvergence as e:
            unavailable["breakeven_price_usd_bbl"] = str(e)
    else:
        unavailable["breakeven_price_usd_bbl"] = "not requested"

    return Metrics(
        npv_usd=npv,
        irr_pct=irr,
        spread_pct=spread,
        investment_pv_usd=investment_pv,
        npv_investment_ratio=ratio,
        payback_years=payback,
        discounted_payback_years=discounted_payback,
        breakeven_price_usd_bbl=breakeven,
        unavailable=unavailable,
    )
