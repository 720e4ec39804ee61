"""
Benchmark validation and quality flags for a project evaluation.

Checks headline metrics against deepwater development screening ranges and
returns QualityFlag objects with severity and an actionable message.
"""

from __future__ import annotations

from collections.abc import Sequence

from oilfield_economics.models import Metrics, QualityFlag, YearlyRecord

_SEVERITY_ORDER = {"🔴 CRITICAL": 0, "🟡 WARNING": 1, "🟢 INFO": 2}


def _flag(severity: str, metric: str, value: float | None, threshold: str, message: str) -> QualityFlag:
    return QualityFlag(severity=severity, metric=metric, value=value, threshold=threshold, message=message)


def government_take_pct(records: Sequence[YearlyRecord]) -> float | None:
    """(Government take + corporate tax) as % of life-of-field gross revenue."""
    revenue = sum(r.gross_revenue_usd for r in records)
    if revenue <= 0:
        return None
    take = sum(r.government_take_usd + r.corporate_tax_usd for r in records)
    return take / revenue * 100.0


def validate_metrics(
    metrics: Metrics,
    records: Sequence[YearlyRecord],
    discount_rate_pct: float,
) -> list[QualityFlag]:
    """
    Validate headline metrics against benchmark ranges.

    Deepwater screening ranges:
    - IRR hurdle 15%; pre-salt projects typically 15–25%
    - Payback (from first capex) under 8 years preferred, 12 acceptable
    - Full-cycle breakeven under $45/bbl competitive, above $60/bbl marginal
    - Government take 65–80% typical for Brazil; >80% is a red flag

    Returns list of QualityFlag sorted by severity (🔴 first).
    """
    flags: list[QualityFlag] = []

    # ── NPV / IRR ──────────────────────────────────────────────────────────────

    if metrics.irr_pct is not None:
        if metrics.irr_pct < discount_rate_pct:
            flags.append(_flag(
                "🔴 CRITICAL", "IRR", metrics.irr_pct,
                f">{discount_rate_pct:.0f}% cost of capital",
                f"IRR {metrics.irr_pct:.1f}% is below the {discount_rate_pct:.0f}% discount rate — project destroys value",
            ))
        elif metrics.irr_pct < 15.0:
            flags.append(_flag(
                "🟡 WARNING", "IRR", metrics.irr_pct,
                ">15% hurdle", f"IRR {metrics.irr_pct:.1f}% is below typical 15% hurdle rate; marginal project economics",
            ))
        elif metrics.irr_pct >= 25.0:
            flags.append(_flag(
                "🟢 INFO", "IRR", metrics.irr_pct,
                "Benchmark: 15–25% strong", f"IRR {metrics.irr_pct:.1f}% is strong — verify assumptions for optimism bias",
            ))
    else:
        flags.append(_flag(
            "🟡 WARNING", "IRR", None, "defined",
            f"IRR could not be computed ({metrics.unavailable.get('irr_pct', 'unknown reason')})",
        ))

    if metrics.npv_usd < 0:
        flags.append(_flag(
            "🔴 CRITICAL", "NPV", metrics.npv_usd,
            ">0 required", f"NPV is negative (${metrics.npv_usd/1e6:,.1f}M) — project destroys value at this price deck",
        ))

    if metrics.npv_investment_ratio is not None and 0 <= metrics.npv_investment_ratio < 0.2:
        flags.append(_flag(
            "🟡 WARNING", "NPV/Investment", metrics.npv_investment_ratio,
            ">0.2 preferred", f"NPV/Investment of {metrics.npv_investment_ratio:.2f} leaves little capital efficiency headroom",
        ))

    # ── Payback ────────────────────────────────────────────────────────────────

    if metrics.payback_years is not None:
        if metrics.payback_years > 12.0:
            flags.append(_flag(
                "🔴 CRITICAL", "Payback Period", metrics.payback_years,
                "<8yr preferred, <12yr acceptable", f"Payback of {metrics.payback_years:.1f} years is very long — significant reservoir and price risk",
            ))
        elif metrics.payback_years > 8.0:
            flags.append(_flag(
                "🟡 WARNING", "Payback Period", metrics.payback_years,
                "<8yr preferred", f"Payback of {metrics.payback_years:.1f} years is above 8yr preference — exposure to oil price cycle risk",
            ))
    else:
        flags.append(_flag(
            "🔴 CRITICAL", "Payback Period", None,
            "within project life", "Cumulative cash flow never turns positive within the project duration",
        ))

    # ── Breakeven ──────────────────────────────────────────────────────────────

    if metrics.breakeven_price_usd_bbl is not None:
        if metrics.breakeven_price_usd_bbl > 60.0:
            flags.append(_flag(
                "🔴 CRITICAL", "Breakeven Price", metrics.breakeven_price_usd_bbl,
                "<$45/bbl preferred", f"Breakeven ${metrics.breakeven_price_usd_bbl:.1f}/bbl is close to or above long-term price expectations",
            ))
        elif metrics.breakeven_price_usd_bbl > 45.0:
            flags.append(_flag(
                "🟡 WARNING", "Breakeven Price", metrics.breakeven_price_usd_bbl,
                "<$45/bbl preferred", f"Breakeven ${metrics.breakeven_price_usd_bbl:.1f}/bbl is above the competitive pre-salt range",
            ))

    # ── Government Take ────────────────────────────────────────────────────────

    take = government_take_pct(records)
    if take is not None:
        if take > 80.0:
            flags.append(_flag(
                "🔴 CRITICAL", "Government Take", take,
                "<80%", f"Government take of {take:.1f}% of revenue is a red flag for project economics",
            ))
        elif take > 65.0:
            flags.append(_flag(
                "🟡 WARNING", "Government Take", take,
                "65–80% typical", f"Government take of {take:.1f}% is at the high end of the Brazilian range",
            ))

    flags.sort(key=lambda f: _SEVERITY_ORDER.get(f.severity, 3))
    return flags
