"""
Cash-flow assembly: merges price, production, capex, opex and fiscal
schedules into one YearlyRecord per project year 0..N.

FCF = revenue − government take − opex − charter − corporate tax − capex − decommissioning
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from oilfield_economics.capex import (
    CapexSchedule,
    DepreciationSchedule,
    build_capex_schedule,
    build_depreciation_schedule,
)
from oilfield_economics.errors import ConfigurationError
from oilfield_economics.fiscal_engine import FiscalSchedule, run_fiscal_regime
from oilfield_economics.models import ProjectParameters, YearlyRecord
from oilfield_economics.opex import OpexSchedule, build_opex_schedule
from oilfield_economics.price_deck import PriceCurve, build_price_curve
from oilfield_economics.production import (
    ProductionProfile,
    build_production_profile,
    decommissioning_years,
)

log = logging.getLogger(__name__)


@dataclass
class CashFlowBuild:
    """Yearly records plus the intermediate schedules they were assembled from."""
    records:      list[YearlyRecord]
    price_curve:  PriceCurve
    production:   ProductionProfile
    capex:        CapexSchedule
    depreciation: DepreciationSchedule
    opex:         OpexSchedule
    fiscal:       FiscalSchedule
    warnings:     list[str] = field(default_factory=list)

    @property
    def free_cash_flows(self) -> list[float]:
        return [r.free_cash_flow_usd for r in self.records]


def check_configuration(params: ProjectParameters) -> None:
    """Cross-field checks that pydantic field constraints cannot express."""
    duration = params.economics.project_duration_years
    build_years = params.capex.duration_years
    decom_years = params.capex.decommissioning.years

    if build_years + decom_years > duration:
        raise ConfigurationError(
            f"Construction ({build_years} yr) + decommissioning ({decom_years} yr) leaves no "
            f"production window in a {duration}-year project"
        )

    prod = params.production
    if prod.total_reserves_mmbbl <= 0 and prod.peak_rate_kbpd > 0:
        raise ConfigurationError(
            f"total_reserves_mmbbl is {prod.total_reserves_mmbbl} but peak_rate_kbpd is "
            f"{prod.peak_rate_kbpd}: a producing field needs positive reserves"
        )


def build_cash_flows(params: ProjectParameters) -> CashFlowBuild:
    """
    Run the deterministic pipeline for one parameter snapshot.

    Pipeline:
      1. Price curve
      2. Production profile
      3. Capex phasing, charter and abandonment
      4. Revenue and opex
      5. Depreciation
      6. Fiscal regime (royalties, SP / profit oil, corporate tax)
      7. Free cash flow and discounting

    Raises:
        ConfigurationError: if the parameters admit no valid projection
    """
    check_configuration(params)

    duration = params.economics.project_duration_years
    n_years = duration + 1
    r = params.economics.discount_rate_pct / 100.0

    prices = build_price_curve(params.price, duration, params.production.oil_api)
    production = build_production_profile(params)
    capex = build_capex_schedule(params)

    revenue = [
        production.oil_volume_mmbbl[y] * 1e6 * prices.realized[y] for y in range(n_years)
    ]
    opex = build_opex_schedule(params, production, revenue)
    depreciation = build_depreciation_schedule(params, capex, production)

    deductible_opex = [opex.total_usd[y] + capex.charter_cost_usd[y] for y in range(n_years)]
    fiscal = run_fiscal_regime(params.fiscal, revenue, deductible_opex, depreciation.total_usd, capex.outlay_usd)

    decom = decommissioning_years(params)
    records: list[YearlyRecord] = []
    cumulative = 0.0
    cumulative_discounted = 0.0

    for year in range(n_years):
        fcf = (
            revenue[year]
            - fiscal.government_take[year]
            - opex.total_usd[year]
            - capex.charter_cost_usd[year]
            - fiscal.corporate_tax[year]
            - capex.outlay_usd[year]
            - capex.decommissioning_usd[year]
        )
        dcf = fcf / (1.0 + r) ** year
        cumulative += fcf
        cumulative_discounted += dcf

        records.append(YearlyRecord(
            year=year,
            production_year=production.production_year[year],
            is_decom_year=year in decom,
            oil_rate_kbpd=production.oil_rate_kbpd[year],
            water_rate_kbpd=production.water_rate_kbpd[year],
            liquid_rate_kbpd=production.liquid_rate_kbpd[year],
            oil_volume_mmbbl=production.oil_volume_mmbbl[year],
            water_cut=production.water_cut[year],
            brent_price_usd_bbl=prices.brent[year],
            realized_price_usd_bbl=prices.realized[year],
            gross_revenue_usd=revenue[year],
            capex_usd=capex.outlay_usd[year],
            capex_tax_usd=capex.tax_usd[year],
            opex_usd=opex.total_usd[year],
            charter_cost_usd=capex.charter_cost_usd[year],
            depreciation_usd=depreciation.total_usd[year],
            royalties_usd=fiscal.royalties[year],
            special_participation_usd=fiscal.special_participation[year],
            cost_oil_usd=fiscal.cost_oil[year],
            profit_oil_gov_usd=fiscal.profit_oil_gov[year],
            government_take_usd=fiscal.government_take[year],
            taxable_income_usd=fiscal.taxable_income[year],
            loss_offset_used_usd=fiscal.loss_offset_used[year],
            corporate_tax_usd=fiscal.corporate_tax[year],
            decommissioning_cost_usd=capex.decommissioning_usd[year],
            free_cash_flow_usd=fcf,
            discounted_cash_flow_usd=dcf,
            cumulative_cash_flow_usd=cumulative,
            cumulative_discounted_cash_flow_usd=cumulative_discounted,
        ))

    log.debug("Cash flows: %d records, undiscounted total $%.0fM", len(records), cumulative / 1e6)
    return CashFlowBuild(
        records=records,
        price_curve=prices,
        production=production,
        capex=capex,
        depreciation=depreciation,
        opex=opex,
        fiscal=fiscal,
        warnings=list(production.warnings),
    )
