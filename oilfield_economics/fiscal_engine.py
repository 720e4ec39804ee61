"""
Fiscal regime calculations.

Covers the three Brazilian upstream regimes:
  concession      — royalties + special participation (SP) on quarterly net revenue
  sharing         — royalties + cost oil / profit oil split with the government
  cession_onerosa — royalties only

Corporate tax (IRPJ + CSLL) applies on top of every regime, with tax losses
carried forward and offset against at most 30% of a later year's taxable income.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from oilfield_economics.models import (
    FiscalRegime,
    FiscalTerms,
    SpecialParticipationBracket,
    SpecialParticipationMode,
)

log = logging.getLogger(__name__)

QUARTERS_PER_YEAR = 4


@dataclass
class FiscalSchedule:
    """Per-year government take and corporate tax (USD)."""
    royalties:             list[float] = field(default_factory=list)
    special_participation: list[float] = field(default_factory=list)
    cost_oil:              list[float] = field(default_factory=list)
    profit_oil:            list[float] = field(default_factory=list)
    profit_oil_gov:        list[float] = field(default_factory=list)
    unrecovered_cost:      list[float] = field(default_factory=list)
    government_take:       list[float] = field(default_factory=list)
    taxable_income:        list[float] = field(default_factory=list)
    loss_offset_used:      list[float] = field(default_factory=list)
    loss_pool:             list[float] = field(default_factory=list)   # closing balance
    corporate_tax:         list[float] = field(default_factory=list)


# ── Royalties ─────────────────────────────────────────────────────────────────

def calculate_royalties(gross_revenue_usd: float, royalty_rate_pct: float) -> float:
    """Royalty = gross revenue × royalty rate. Applied before any other deductions."""
    return gross_revenue_usd * royalty_rate_pct / 100.0


# ── Concession: Special Participation ─────────────────────────────────────────

def progressive_special_participation(
    quarterly_base_usd: float,
    brackets: tuple[SpecialParticipationBracket, ...] | list[SpecialParticipationBracket],
) -> float:
    """
    Marginal-bracket SP for one quarter.

    Each bracket's rate applies only to the slice of the base between its
    threshold and the next one; nothing is due below the lowest threshold.
    """
    if quarterly_base_usd <= 0 or not brackets:
        return 0.0
    due = 0.0
    for i, bracket in enumerate(brackets):
        upper = brackets[i + 1].threshold_usd if i + 1 < len(brackets) else float("inf")
        slice_usd = min(quarterly_base_usd, upper) - bracket.threshold_usd
        if slice_usd <= 0:
            break
        due += slice_usd * bracket.rate_pct / 100.0
    return due


def calculate_special_participation(
    gross_revenue_usd: float,
    royalties_usd: float,
    opex_usd: float,
    depreciation_usd: float,
    terms: FiscalTerms,
) -> float:
    """
    SP on net revenue = revenue − royalties − opex − depreciation.

    Progressive mode evaluates the bracket table on the quarterly base
    (annual / 4) and multiplies by four; flat mode applies a single rate.
    """
    net_revenue = gross_revenue_usd - royalties_usd - opex_usd - depreciation_usd
    if net_revenue <= 0:
        return 0.0
    if terms.special_participation_mode == SpecialParticipationMode.flat:
        return net_revenue * terms.special_participation_rate_pct / 100.0
    quarterly = net_revenue / QUARTERS_PER_YEAR
    return QUARTERS_PER_YEAR * progressive_special_participation(quarterly, terms.special_participation_brackets)


# ── Sharing: cost oil / profit oil ────────────────────────────────────────────

def calculate_cost_oil(gross_revenue_usd: float, recoverable_usd: float, cost_oil_cap_pct: float) -> tuple[float, float]:
    """
    Cost oil = min(revenue × cap, recoverable costs).

    Returns:
        (cost_oil, unrecovered) where unrecovered is the recoverable amount above the cap.
    """
    ceiling = max(gross_revenue_usd, 0.0) * cost_oil_cap_pct / 100.0
    recoverable = max(recoverable_usd, 0.0)
    cost_oil = min(ceiling, recoverable)
    return cost_oil, recoverable - cost_oil


def calculate_profit_oil(
    gross_revenue_usd: float,
    royalties_usd: float,
    cost_oil_usd: float,
    gov_share_pct: float,
) -> tuple[float, float]:
    """Profit oil = max(0, revenue − royalties − cost oil); returns (profit_oil, government share)."""
    profit_oil = max(0.0, gross_revenue_usd - royalties_usd - cost_oil_usd)
    return profit_oil, profit_oil * gov_share_pct / 100.0


# ── Corporate tax ─────────────────────────────────────────────────────────────

def apply_corporate_tax(
    taxable_income_usd: float,
    loss_pool_usd: float,
    tax_rate_pct: float,
    loss_offset_limit_pct: float,
) -> tuple[float, float, float]:
    """
    Corporate tax with loss carry-forward.

    A loss adds to the pool and no tax is due. A profit is first reduced by
    pool usage capped at `loss_offset_limit_pct` of the profit.

    Returns:
        (tax, loss_used, closing_pool)
    """
    if taxable_income_usd < 0:
        return 0.0, 0.0, loss_pool_usd - taxable_income_usd
    used = min(loss_pool_usd, taxable_income_usd * loss_offset_limit_pct / 100.0)
    tax = (taxable_income_usd - used) * tax_rate_pct / 100.0
    return tax, used, loss_pool_usd - used


# ── Regime driver ─────────────────────────────────────────────────────────────

def run_fiscal_regime(
    terms: FiscalTerms,
    gross_revenue_usd: list[float],
    opex_usd: list[float],
    depreciation_usd: list[float],
    capex_usd: list[float],
) -> FiscalSchedule:
    """
    Apply royalties, the regime-specific government take and corporate tax
    year by year. `opex_usd` must include any charter payments.

    Taxable income = revenue − government take − opex − depreciation.
    """
    schedule = FiscalSchedule()
    loss_pool = 0.0

    for revenue, opex, dep, capex in zip(gross_revenue_usd, opex_usd, depreciation_usd, capex_usd):
        royalties = calculate_royalties(revenue, terms.royalty_rate_pct)
        sp = cost_oil = profit_oil = gov_profit = unrecovered = 0.0

        if terms.regime == FiscalRegime.concession:
            sp = calculate_special_participation(revenue, royalties, opex, dep, terms)
        elif terms.regime == FiscalRegime.sharing:
            cost_oil, unrecovered = calculate_cost_oil(revenue, opex + dep + capex, terms.cost_oil_cap_pct)
            profit_oil, gov_profit = calculate_profit_oil(
                revenue, royalties, cost_oil, terms.profit_oil_gov_share_pct,
            )

        gov_take = royalties + sp + gov_profit
        taxable = revenue - gov_take - opex - dep
        tax, used, loss_pool = apply_corporate_tax(
            taxable, loss_pool, terms.corporate_tax_rate_pct, terms.loss_offset_limit_pct,
        )

        schedule.royalties.append(royalties)
        schedule.special_participation.append(sp)
        schedule.cost_oil.append(cost_oil)
        schedule.profit_oil.append(profit_oil)
        schedule.profit_oil_gov.append(gov_profit)
        schedule.unrecovered_cost.append(unrecovered)
        schedule.government_take.append(gov_take)
        schedule.taxable_income.append(taxable)
        schedule.loss_offset_used.append(used)
        schedule.loss_pool.append(loss_pool)
        schedule.corporate_tax.append(tax)

    log.debug(
        "Fiscal (%s): gov take $%.0fM, corporate tax $%.0fM, closing loss pool $%.0fM",
        terms.regime.value,
        sum(schedule.government_take) / 1e6,
        sum(schedule.corporate_tax) / 1e6,
        loss_pool / 1e6,
    )
    return schedule


# ── Fiscal Templates (Field Presets) ─────────────────────────────────────────

FISCAL_TEMPLATES: dict[str, dict] = {
    "marlim_roncador": {
        "regime": "concession",
        "royalty_rate_pct": 10.0,
        "special_participation_mode": "flat",
        "special_participation_rate_pct": 35.0,   # Effective SP for giant mature Campos fields
        "regime_description": "Campos basin concession; high-volume fields pay top SP brackets",
    },
    "jubarte_tupi": {
        "regime": "concession",
        "royalty_rate_pct": 10.0,
        "special_participation_mode": "flat",
        "special_participation_rate_pct": 25.0,
        "regime_description": "Early pre-salt concession (BM-S-11 / Parque das Baleias)",
    },
    "mero_buzios": {
        "regime": "sharing",
        "royalty_rate_pct": 15.0,
        "cost_oil_cap_pct": 50.0,
        "profit_oil_gov_share_pct": 45.0,
        "regime_description": "Pre-salt production sharing; high government profit oil bid",
    },
    "sepia_itapu": {
        "regime": "sharing",
        "royalty_rate_pct": 15.0,
        "cost_oil_cap_pct": 50.0,
        "profit_oil_gov_share_pct": 30.0,
        "regime_description": "Transfer-of-rights surplus auctioned under production sharing",
    },
}


def get_fiscal_template(name: str, base: FiscalTerms | None = None) -> FiscalTerms:
    """
    Return FiscalTerms pre-populated for a named field template.
    Fields the template does not set keep their values from `base` (or defaults).
    """
    key = name.lower().replace("-", "_").replace("/", "_")
    if key not in FISCAL_TEMPLATES:
        raise KeyError(f"Unknown fiscal template '{name}' (expected one of {sorted(FISCAL_TEMPLATES)})")
    data = (base or FiscalTerms()).model_dump()
    data.update({k: v for k, v in FISCAL_TEMPLATES[key].items() if k != "regime_description"})
    return FiscalTerms.model_validate(data)
