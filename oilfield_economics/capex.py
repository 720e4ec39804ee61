"""
Capital expenditure scheduling and depreciation.

Phasing:   share_i = (1 − c)·flat + c·triangular(peak), renormalised to 1
Gross-up:  cost_c = base_c × (1 + (1 − incentive_c) × capex_tax_rate)
Charter:   annuity(PV, r, n) × (charter% + service% × (1 + service tax))

Depreciation starts at first oil on each category's after-incentive base:
  linear / accelerated — base / useful life per year
  uop                  — balance × production(t) / remaining reserves(t−1)
Total depreciation never exceeds the base.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

import numpy as np

from oilfield_economics.models import (
    CAPEX_CATEGORIES,
    AssetOwnership,
    CapexAssumptions,
    CharterTerms,
    DecommissioningMode,
    DepreciationMethod,
    DepreciationMode,
    ProjectParameters,
)
from oilfield_economics.production import ProductionProfile, decommissioning_years

log = logging.getLogger(__name__)

# Pool name used when depreciation_mode is simple
SIMPLE_POOL = "pool"


# ── Data classes ──────────────────────────────────────────────────────────────

@dataclass
class CapexSchedule:
    """Yearly capital outlays for project years 0..N (USD)."""
    phasing_shares:     list[float]                  # construction-year shares, sum to 1
    outlay_usd:         list[float]                  # after-incentive, tax inclusive
    tax_usd:            list[float]                  # capex tax component of outlay_usd
    by_category_usd:    dict[str, list[float]]
    category_base_usd:  dict[str, float]             # after-incentive totals (depreciation base)
    pre_tax_total_usd:  float
    charter_cost_usd:   list[float] = field(default_factory=list)
    decommissioning_usd: list[float] = field(default_factory=list)

    @property
    def total_usd(self) -> float:
        return float(sum(self.outlay_usd))


@dataclass
class DepreciationSchedule:
    by_category_usd: dict[str, list[float]]
    total_usd:       list[float]
    base_usd:        dict[str, float]


# ── Phasing ───────────────────────────────────────────────────────────────────

def phasing_shares(duration_years: int, peak_year: int, concentration_pct: float) -> list[float]:
    """
    Split capex across construction years.

    Blends a flat allocation with a triangular one peaking at `peak_year`
    (1-based). Concentration 0 → flat, 100 → fully triangular.
    """
    n = max(int(duration_years), 1)
    idx = np.arange(n)
    peak_idx = min(max(peak_year - 1, 0), n - 1)

    flat = np.full(n, 1.0 / n)
    triangular = n - np.abs(idx - peak_idx).astype(float)
    triangular = triangular / triangular.sum()

    c = concentration_pct / 100.0
    shares = (1.0 - c) * flat + c * triangular
    shares = shares / shares.sum()
    return [float(s) for s in shares]


def gross_up_factor(capex: CapexAssumptions, category: str) -> float:
    """Multiplier on pre-tax cost: untaxed share passes at par, the remainder bears capex tax."""
    exempt = capex.incentive_ratio_pct.get(category) / 100.0
    return 1.0 + (1.0 - exempt) * capex.capex_tax_rate_pct / 100.0


def pre_tax_category_base(capex: CapexAssumptions, category: str) -> float:
    if category == "platform" and capex.ownership == AssetOwnership.chartered:
        return 0.0
    return capex.total_capex_usd * capex.split.get(category) / 100.0


# ── Charter ───────────────────────────────────────────────────────────────────

def charter_annuity(present_value_usd: float, discount_rate_pct: float, years: int) -> float:
    """Level annual payment with the given present value: PV·r / (1 − (1+r)^−n)."""
    if years <= 0:
        return 0.0
    r = discount_rate_pct / 100.0
    if r <= 0:
        return present_value_usd / years
    return present_value_usd * r / (1.0 - (1.0 + r) ** (-years))


def charter_cost_per_year(terms: CharterTerms, discount_rate_pct: float, years: int) -> float:
    """Annual charter + service payment, service part grossed up by its tax."""
    annuity = charter_annuity(terms.present_value_usd, discount_rate_pct, years)
    charter_part = annuity * terms.charter_share_pct / 100.0
    service_part = annuity * terms.service_share_pct / 100.0
    return charter_part + service_part * (1.0 + terms.service_tax_pct / 100.0)


# ── Decommissioning ───────────────────────────────────────────────────────────

def decommissioning_total(capex: CapexAssumptions) -> float:
    """Abandonment cost (USD): % of capex, or wells + subsea removal + platform."""
    decom = capex.decommissioning
    if decom.mode == DecommissioningMode.simple:
        return capex.total_capex_usd * decom.simple_rate_pct / 100.0

    wells = decom.num_wells * decom.cost_per_well_usd
    subsea = pre_tax_category_base(capex, "subsea") * decom.subsea_removal_pct / 100.0
    platform = 0.0 if capex.ownership == AssetOwnership.chartered else decom.platform_removal_usd
    return wells + subsea + platform


# ── Main schedule builder ─────────────────────────────────────────────────────

def build_capex_schedule(params: ProjectParameters) -> CapexSchedule:
    """
    Phase capex over construction (and optionally the first two production
    years), apply the capex tax gross-up, and lay out charter and
    abandonment costs across project years 0..N.
    """
    capex = params.capex
    duration = params.economics.project_duration_years
    n_years = duration + 1
    n_build = capex.duration_years

    shares = phasing_shares(n_build, capex.peak_year, capex.concentration_pct)
    construction = 1.0 - capex.post_first_oil_fraction

    year_fraction = [0.0] * n_years
    for i, share in enumerate(shares):
        year_fraction[min(i, duration)] += construction * share
    if capex.post_first_oil_fraction > 0:
        for offset in (0, 1):
            year_fraction[min(n_build + offset, duration)] += capex.post_first_oil_fraction / 2.0

    by_category: dict[str, list[float]] = {}
    category_base: dict[str, float] = {}
    outlay = [0.0] * n_years
    tax = [0.0] * n_years
    pre_tax_total = 0.0

    for category in CAPEX_CATEGORIES:
        base = pre_tax_category_base(capex, category)
        factor = gross_up_factor(capex, category)
        pre_tax_total += base
        category_base[category] = base * factor
        series = [base * factor * f for f in year_fraction]
        by_category[category] = series
        for y, f in enumerate(year_fraction):
            outlay[y] += base * factor * f
            tax[y] += base * (factor - 1.0) * f

    decom_years = decommissioning_years(params)
    producing = [
        y for y in range(n_build, n_years) if y not in decom_years
    ]

    charter = [0.0] * n_years
    if capex.ownership == AssetOwnership.chartered and producing:
        annual = charter_cost_per_year(capex.charter, params.economics.discount_rate_pct, len(producing))
        for y in producing:
            charter[y] = annual

    decommissioning = [0.0] * n_years
    decom_total = decommissioning_total(capex)
    for y in decom_years:
        decommissioning[y] = decom_total / len(decom_years)

    log.debug(
        "Capex schedule: pre-tax $%.0fM, after-incentive $%.0fM, decom $%.0fM",
        pre_tax_total / 1e6, sum(outlay) / 1e6, decom_total / 1e6,
    )
    return CapexSchedule(
        phasing_shares=shares,
        outlay_usd=outlay,
        tax_usd=tax,
        by_category_usd=by_category,
        category_base_usd=category_base,
        pre_tax_total_usd=pre_tax_total,
        charter_cost_usd=charter,
        decommissioning_usd=decommissioning,
    )


# ── Depreciation ──────────────────────────────────────────────────────────────

def straight_line_depreciation(base_usd: float, useful_life: int, first_year: int, n_years: int) -> list[float]:
    """base / life per year from `first_year`, never exceeding the remaining balance."""
    charges = [0.0] * n_years
    if base_usd <= 0 or useful_life <= 0:
        return charges
    annual = base_usd / useful_life
    balance = base_usd
    for y in range(first_year, min(first_year + useful_life, n_years)):
        charge = min(annual, balance)
        charges[y] = charge
        balance -= charge
    return charges


def units_of_production_depreciation(
    base_usd: float,
    volumes_mmbbl: list[float],
    total_reserves_mmbbl: float,
) -> list[float]:
    """
    Balance-based unit-of-production depreciation.

    charge(t) = balance(t−1) × volume(t) / remaining_reserves(t−1).
    Stops when remaining reserves reach zero; charges the full balance when
    the year's production exhausts them.
    """
    charges = [0.0] * len(volumes_mmbbl)
    balance = base_usd
    remaining = total_reserves_mmbbl
    for y, volume in enumerate(volumes_mmbbl):
        if balance <= 0 or remaining <= 0:
            break
        if volume <= 0:
            continue
        charge = balance if volume >= remaining else balance * volume / remaining
        charges[y] = charge
        balance -= charge
        remaining -= volume
    return charges


def build_depreciation_schedule(
    params: ProjectParameters,
    capex: CapexSchedule,
    production: ProductionProfile,
) -> DepreciationSchedule:
    """Depreciation per category (or a single simple pool) for project years 0..N."""
    cfg = params.capex
    n_years = params.economics.project_duration_years + 1
    first_oil = cfg.duration_years

    if cfg.depreciation_mode == DepreciationMode.simple:
        base = sum(capex.category_base_usd.values())
        by_category = {
            SIMPLE_POOL: straight_line_depreciation(base, cfg.simple_depreciation_years, first_oil, n_years)
        }
        bases = {SIMPLE_POOL: base}
    else:
        by_category = {}
        bases = dict(capex.category_base_usd)
        for category in CAPEX_CATEGORIES:
            rule = cfg.depreciation.get(category)
            base = bases[category]
            if rule.method == DepreciationMethod.uop:
                by_category[category] = units_of_production_depreciation(
                    base, production.oil_volume_mmbbl, params.production.total_reserves_mmbbl,
                )
            else:
                by_category[category] = straight_line_depreciation(base, rule.useful_life, first_oil, n_years)

    total = [sum(series[y] for series in by_category.values()) for y in range(n_years)]
    return DepreciationSchedule(by_category_usd=by_category, total_usd=total, base_usd=bases)
