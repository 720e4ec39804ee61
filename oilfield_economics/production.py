"""
Field production profile.

Phases (production year p counted from first oil, p = 1 is the first-oil year):
  ramp-up  — linear build to the plateau rate
  plateau  — constant peak rate
  decline  — Arps hyperbolic q = qi / (1 + b·Di·t)^(1/b), exponential when b → 0

Constraints applied every year:
  - water cut follows a logistic curve; facility liquids capacity caps oil at
    Capacity × (1 − BSW); excess potential is lost, not deferred
  - cumulative oil never exceeds total reserves
  - detailed mode also applies workover downtime and derives water volumes

Pre-salt Santos basin benchmarks (used for presets):
  - ramp-up 3 yr, plateau 4 yr, decline 8 %/yr
  - post-salt Campos: 4 / 2 / 12; onshore: 1 / 6 / 6
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field

import numpy as np

from oilfield_economics.models import ProductionAssumptions, ProductionMode, ProjectParameters
from oilfield_economics.reliability import downtime_efficiency

log = logging.getLogger(__name__)

# kbpd sustained for a year → MMbbl
KBPD_TO_MMBBL = 0.365

# Water cut that defines breakthrough
BREAKTHROUGH_WATER_CUT = 0.02

# Below this b-factor the exponential limit is used
B_EXPONENTIAL_THRESHOLD = 1e-4

# Largest exponent passed to exp() in the water-cut logistic
_MAX_EXPONENT = 700.0


# ── Data classes ──────────────────────────────────────────────────────────────

@dataclass
class ProductionProfile:
    """Per-year production series for project years 0..N."""
    production_year:   list[int]   = field(default_factory=list)   # 0 = pre first oil
    potential_kbpd:    list[float] = field(default_factory=list)   # before capacity / reserves caps
    oil_rate_kbpd:     list[float] = field(default_factory=list)
    water_rate_kbpd:   list[float] = field(default_factory=list)
    liquid_rate_kbpd:  list[float] = field(default_factory=list)
    oil_volume_mmbbl:  list[float] = field(default_factory=list)
    water_cut:         list[float] = field(default_factory=list)   # fraction 0–1
    warnings:          list[str]   = field(default_factory=list)

    @property
    def cumulative_oil_mmbbl(self) -> float:
        return float(sum(self.oil_volume_mmbbl))


# ── Timeline ──────────────────────────────────────────────────────────────────

def production_year_of(year: int, capex_duration_years: int) -> int:
    """Production year for a project year; ≤ 0 while the field is under construction."""
    return year - capex_duration_years + 1


def decommissioning_years(params: ProjectParameters) -> range:
    """Terminal project years carrying abandonment cost and no production."""
    duration = params.economics.project_duration_years
    n = params.capex.decommissioning.years
    return range(duration - n + 1, duration + 1)


# ── Arps equations ────────────────────────────────────────────────────────────

def arps_hyperbolic(t: np.ndarray | float, qi: float, Di: float, b: float) -> np.ndarray | float:
    """
    Arps hyperbolic decline: q(t) = qi / (1 + b·Di·t)^(1/b)

    Args:
        t:  Years since decline start.
        qi: Rate at decline start (kbpd).
        Di: Nominal annual decline (fraction/yr).
        b:  Hyperbolic exponent.
    """
    return qi / np.power(1.0 + b * Di * t, 1.0 / b)


def arps_exponential(t: np.ndarray | float, qi: float, Di: float) -> np.ndarray | float:
    """Arps exponential decline: q(t) = qi · exp(−Di·t)"""
    return qi * np.exp(-Di * t)


def arps_rate(t: float, qi: float, Di: float, b: float) -> float:
    if b <= B_EXPONENTIAL_THRESHOLD:
        return float(arps_exponential(t, qi, Di))
    return float(arps_hyperbolic(t, qi, Di, b))


# ── Profile components ────────────────────────────────────────────────────────

def potential_rate(prod: ProductionAssumptions, p: int, peak_rate_kbpd: float | None = None) -> float:
    """Unconstrained oil rate (kbpd) in production year p."""
    peak = prod.peak_rate_kbpd if peak_rate_kbpd is None else peak_rate_kbpd
    if p < 1:
        return 0.0
    if prod.ramp_up_years > 0 and p <= prod.ramp_up_years:
        return peak * p / prod.ramp_up_years

    decline_start = prod.ramp_up_years + prod.plateau_years
    if p <= decline_start:
        return peak

    t = p - decline_start
    if prod.decline_years is not None and t > prod.decline_years:
        return 0.0
    return arps_rate(t, peak, prod.decline.derived_value / 100.0, prod.hyperbolic_exponent)


def water_cut(prod: ProductionAssumptions, p: int) -> float:
    """
    Logistic basic sediment & water fraction.

    BSW(p) = BSWmax / (1 + e^(−k·(p − t_infl))), with the inflection placed so
    that BSW reaches 2 % at the breakthrough year.
    """
    bsw_max = prod.bsw_max_pct / 100.0
    if p < 1 or bsw_max <= 0:
        return 0.0

    k = prod.bsw_growth_rate
    ratio = bsw_max / BREAKTHROUGH_WATER_CUT - 1.0
    if ratio > 0:
        t_inflection = prod.bsw_breakthrough_year + math.log(ratio) / k
    else:
        # Plateau below the breakthrough cut: centre the curve on the breakthrough year
        t_inflection = prod.bsw_breakthrough_year

    exponent = min(_MAX_EXPONENT, -k * (p - t_inflection))
    return bsw_max / (1.0 + math.exp(exponent))


def _clean_rate(q: float) -> float:
    if not math.isfinite(q) or q < 0:
        return 0.0
    return q


# ── Main profile builder ──────────────────────────────────────────────────────

def build_production_profile(params: ProjectParameters) -> ProductionProfile:
    """
    Build oil, water and liquid rates for project years 0..N.

    First oil falls in the first year after construction; decommissioning
    years produce nothing. Rates are clamped to be finite and non-negative.
    """
    prod = params.production
    duration = params.economics.project_duration_years
    capex_years = params.capex.duration_years
    decom = decommissioning_years(params)
    reliability = params.opex.reliability
    detailed = prod.mode == ProductionMode.detailed
    capacity_kbpd = prod.liquid_capacity_bpd / 1000.0

    profile = ProductionProfile()
    if capacity_kbpd <= 0 and prod.peak_rate_kbpd > 0:
        msg = "Liquids capacity is zero: oil production forced to zero"
        log.warning(msg)
        profile.warnings.append(msg)

    remaining = prod.total_reserves_mmbbl

    for year in range(duration + 1):
        p = production_year_of(year, capex_years)
        bsw = water_cut(prod, p)

        if p < 1 or year in decom:
            potential = 0.0
        else:
            potential = potential_rate(prod, p)
            if detailed:
                potential *= downtime_efficiency(reliability, year, duration)
        potential = _clean_rate(potential)

        oil = _clean_rate(min(potential, capacity_kbpd * (1.0 - bsw)))
        volume = oil * KBPD_TO_MMBBL
        if volume > remaining:
            volume = max(remaining, 0.0)
            oil = volume / KBPD_TO_MMBBL
        remaining -= volume

        water = 0.0
        if detailed and oil > 0:
            water = oil * bsw / (1.0 - bsw)
            water = min(water, max(capacity_kbpd - oil, 0.0))

        profile.production_year.append(max(p, 0))
        profile.potential_kbpd.append(potential)
        profile.oil_rate_kbpd.append(oil)
        profile.water_rate_kbpd.append(water)
        profile.liquid_rate_kbpd.append(oil + water)
        profile.oil_volume_mmbbl.append(volume)
        profile.water_cut.append(bsw)

    log.debug(
        "Production profile: %.1f MMbbl over %d years (reserves %.1f MMbbl)",
        profile.cumulative_oil_mmbbl, duration + 1, prod.total_reserves_mmbbl,
    )
    return profile


# ── Reserves sizing & presets ─────────────────────────────────────────────────

def peak_from_reserves(prod: ProductionAssumptions, production_years: int) -> float:
    """
    Plateau rate (kbpd) that recovers `total_reserves_mmbbl` over the given
    number of producing years with the configured profile shape.
    """
    shape = sum(potential_rate(prod, p, peak_rate_kbpd=1.0) for p in range(1, production_years + 1))
    if shape <= 0:
        return 0.0
    return prod.total_reserves_mmbbl / (shape * KBPD_TO_MMBBL)


PRODUCTION_PRESETS: dict[str, dict] = {
    "pre_salt": {
        "ramp_up_years": 3,
        "plateau_years": 4,
        "decline_pct": 8.0,
        "description": "Santos pre-salt carbonate: fast ramp-up, sustained plateau, moderate decline",
    },
    "post_salt": {
        "ramp_up_years": 4,
        "plateau_years": 2,
        "decline_pct": 12.0,
        "description": "Campos post-salt turbidite: slower ramp-up, short plateau, steep decline",
    },
    "onshore": {
        "ramp_up_years": 1,
        "plateau_years": 6,
        "decline_pct": 6.0,
        "description": "Onshore mature basin: near-immediate ramp-up, long plateau, gentle decline",
    },
}


def apply_production_preset(
    params: ProjectParameters,
    preset: str,
    size_from_reserves: bool = True,
) -> ProjectParameters:
    """
    Return a copy of ProjectParameters with a named production shape applied.
    When `size_from_reserves` is set the peak rate is re-derived from reserves.
    """
    if preset not in PRODUCTION_PRESETS:
        raise KeyError(f"Unknown production preset '{preset}' (expected one of {sorted(PRODUCTION_PRESETS)})")
    shape = PRODUCTION_PRESETS[preset]

    data = params.model_dump()
    data["production"]["ramp_up_years"] = shape["ramp_up_years"]
    data["production"]["plateau_years"] = shape["plateau_years"]
    data["production"]["decline"]["base_value"] = shape["decline_pct"]
    updated = ProjectParameters.model_validate(data)

    if size_from_reserves:
        producing = (
            params.economics.project_duration_years + 1
            - params.capex.duration_years
            - params.capex.decommissioning.years
        )
        data["production"]["peak_rate_kbpd"] = peak_from_reserves(updated.production, max(producing, 0))
        updated = ProjectParameters.model_validate(data)
    return updated
