"""
Operating expenditure.

Simple mode:    opex = gross revenue × margin
Detailed mode:  opex = fixed·(1+i)^(p−1) + variable × volume + workover(t)·(1+i)^(p−1)

Workover spend uses the reliability model when λ > 0, otherwise a static
annual budget. Gas injection is charged on gas produced above a GOR of
200 m³/m³ when the production model runs in detailed mode.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from oilfield_economics.models import OpexMode, ProductionMode, ProjectParameters
from oilfield_economics.production import ProductionProfile, decommissioning_years
from oilfield_economics.reliability import workover_cost_at_year

# GOR above which associated gas must be re-injected (m³/m³)
GAS_INJECTION_GOR_THRESHOLD = 200.0


@dataclass
class OpexSchedule:
    """Per-year operating cost for project years 0..N (USD)."""
    total_usd:         list[float] = field(default_factory=list)
    fixed_usd:         list[float] = field(default_factory=list)
    variable_usd:      list[float] = field(default_factory=list)
    workover_usd:      list[float] = field(default_factory=list)
    gas_injection_usd: list[float] = field(default_factory=list)


def inflation_factor(cost_inflation_pct: float, production_year: int) -> float:
    """Escalation relative to the first-oil year."""
    return (1.0 + cost_inflation_pct / 100.0) ** max(production_year - 1, 0)


def gas_injection_cost(volume_mmbbl: float, gor_m3_m3: float, cost_per_mm_m3: float) -> float:
    if gor_m3_m3 <= GAS_INJECTION_GOR_THRESHOLD or volume_mmbbl <= 0:
        return 0.0
    return volume_mmbbl * (gor_m3_m3 - GAS_INJECTION_GOR_THRESHOLD) / 1000.0 * cost_per_mm_m3


def build_opex_schedule(
    params: ProjectParameters,
    production: ProductionProfile,
    gross_revenue_usd: list[float],
) -> OpexSchedule:
    """
    Opex for every producing year; construction and decommissioning years carry none.

    Args:
        params: Project parameters
        production: Production profile (volumes drive the variable cost)
        gross_revenue_usd: Per-year revenue (drives simple-mode opex)
    """
    cfg = params.opex
    duration = params.economics.project_duration_years
    inflation = params.economics.cost_inflation_pct
    decom = decommissioning_years(params)
    reliability = cfg.reliability

    schedule = OpexSchedule()
    for year in range(duration + 1):
        p = production.production_year[year]
        producing = p >= 1 and year not in decom
        volume = production.oil_volume_mmbbl[year]

        fixed = variable = workover = gas = 0.0
        if producing:
            if params.production.mode == ProductionMode.detailed:
                gas = gas_injection_cost(volume, params.production.gor_m3_m3, cfg.gas_injection_cost_usd_per_mm_m3)

            if cfg.mode == OpexMode.simple:
                variable = gross_revenue_usd[year] * cfg.margin_pct / 100.0
            else:
                escalation = inflation_factor(inflation, p)
                fixed = cfg.fixed_cost_usd_year * escalation
                variable = cfg.variable_cost_usd_bbl * volume * 1e6
                if reliability.failure_rate > 0:
                    workover = workover_cost_at_year(reliability, year, duration) * escalation
                else:
                    workover = cfg.workover_cost_usd_year * escalation

        schedule.fixed_usd.append(fixed)
        schedule.variable_usd.append(variable)
        schedule.workover_usd.append(workover)
        schedule.gas_injection_usd.append(gas)
        schedule.total_usd.append(fixed + variable + workover + gas)
    return schedule
