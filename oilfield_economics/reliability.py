"""
Well reliability and workover intervention model.

A failed well waits `wait_days` for a rig and is then worked over at
mobilisation cost + day rate × duration. Failure frequency λ follows one of
three life-cycle profiles over normalised project time τ = year / (N − 1):

  constant — λ throughout
  wearout  — λ · (1 + 1.5·(τ − 0.5)), rising with equipment age
  bathtub  — high infant mortality and late wear-out, minimum 0.5λ mid-life

Used by production (downtime) and opex (intervention cost).
"""

from __future__ import annotations

from dataclasses import dataclass

from oilfield_economics.models import (
    FailureProfile,
    ReliabilityAssumptions,
    WellComplexity,
    WellType,
)

DAYS_PER_YEAR = 365.0

WEAROUT_SLOPE = 1.5
BATHTUB_FLOOR = 0.5
BATHTUB_CEILING = 2.0


@dataclass(frozen=True)
class WorkoverCost:
    mobilization_usd: float
    daily_rate_usd: float
    duration_days: float

    @property
    def per_event_usd(self) -> float:
        return self.mobilization_usd + self.daily_rate_usd * self.duration_days


# Rig cost by well type × completion complexity
WORKOVER_COST_TABLE: dict[tuple[WellType, WellComplexity], WorkoverCost] = {
    (WellType.pre_salt, WellComplexity.high): WorkoverCost(8e6, 800e3, 20.0),
    (WellType.pre_salt, WellComplexity.low): WorkoverCost(6e6, 800e3, 14.0),
    (WellType.post_salt, WellComplexity.high): WorkoverCost(5e6, 650e3, 15.0),
    (WellType.post_salt, WellComplexity.low): WorkoverCost(4e6, 650e3, 10.0),
}


def resolve_workover_cost(rel: ReliabilityAssumptions) -> WorkoverCost:
    """Look up the rig cost for the well category, then apply any explicit overrides."""
    base = WORKOVER_COST_TABLE[(rel.well_type, rel.complexity)]
    return WorkoverCost(
        mobilization_usd=base.mobilization_usd if rel.mobilization_cost_usd is None else rel.mobilization_cost_usd,
        daily_rate_usd=base.daily_rate_usd if rel.daily_rate_usd is None else rel.daily_rate_usd,
        duration_days=base.duration_days if rel.intervention_days is None else rel.intervention_days,
    )


def failure_rate_at_year(rel: ReliabilityAssumptions, year: int, duration_years: int) -> float:
    """Failures per well-year in a given project year."""
    lam = rel.failure_rate
    if lam <= 0:
        return 0.0

    tau = year / max(duration_years - 1, 1)

    if rel.failure_profile == FailureProfile.wearout:
        return lam * max(0.0, 1.0 + WEAROUT_SLOPE * (tau - 0.5))

    if rel.failure_profile == FailureProfile.bathtub:
        # Quadratic through 2λ at τ=0 and τ=1 with minimum 0.5λ at τ=0.5
        curvature = 4.0 * (BATHTUB_CEILING - BATHTUB_FLOOR) * lam
        rate = curvature * (tau - 0.5) ** 2 + BATHTUB_FLOOR * lam
        return min(rate, BATHTUB_CEILING * lam)

    return lam


def downtime_efficiency(rel: ReliabilityAssumptions, year: int, duration_years: int) -> float:
    """Fraction of the year the well stock is on line after waiting on workover rigs."""
    lam = failure_rate_at_year(rel, year, duration_years)
    return max(0.0, 1.0 - lam * rel.wait_days / DAYS_PER_YEAR)


def workover_cost_at_year(rel: ReliabilityAssumptions, year: int, duration_years: int) -> float:
    """Expected intervention spend for the whole well stock (USD, un-inflated)."""
    lam = failure_rate_at_year(rel, year, duration_years)
    return rel.num_wells * lam * resolve_workover_cost(rel).per_event_usd
