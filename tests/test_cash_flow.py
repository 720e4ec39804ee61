"""
Tests for cash-flow assembly (cash_flow.py).

Covers:
  - Timeline shape (years 0..N, construction, production, decommissioning)
  - FCF reconciliation against its components
  - Discounting and cumulative series
  - Configuration errors that admit no valid projection
"""

from __future__ import annotations

import pytest

from oilfield_economics.cash_flow import build_cash_flows, check_configuration
from oilfield_economics.errors import ConfigurationError, ErrorKind


# ── Timeline ──────────────────────────────────────────────────────────────────

class TestTimeline:
    def test_one_record_per_year(self, base_params):
        build = build_cash_flows(base_params)
        assert len(build.records) == 31
        assert [r.year for r in build.records] == list(range(31))

    def test_construction_years_have_no_revenue(self, base_params):
        records = build_cash_flows(base_params).records
        for rec in records[:5]:
            assert rec.production_year == 0
            assert rec.gross_revenue_usd == 0.0
            assert rec.capex_usd > 0.0
            assert rec.free_cash_flow_usd < 0.0

    def test_first_oil_year(self, base_params):
        rec = build_cash_flows(base_params).records[5]
        assert rec.production_year == 1
        assert rec.gross_revenue_usd > 0.0

    def test_decommissioning_year_flagged(self, base_params):
        records = build_cash_flows(base_params).records
        assert records[-1].is_decom_year
        assert not any(r.is_decom_year for r in records[:-1])
        assert records[-1].oil_volume_mmbbl == 0.0
        assert records[-1].decommissioning_cost_usd == pytest.approx(9e8)

    def test_multi_year_decommissioning(self, make_params):
        records = build_cash_flows(make_params(capex={"decommissioning": {"years": 3}})).records
        assert [r.year for r in records if r.is_decom_year] == [28, 29, 30]


# ── Reconciliation ────────────────────────────────────────────────────────────

class TestReconciliation:
    @pytest.mark.parametrize("regime", ["concession", "sharing", "cession_onerosa"])
    def test_fcf_identity(self, make_params, regime):
        params = make_params(fiscal={"regime": regime}, capex={"ownership": "chartered"})
        for rec in build_cash_flows(params).records:
            expected = (
                rec.gross_revenue_usd
                - rec.government_take_usd
                - rec.opex_usd
                - rec.charter_cost_usd
                - rec.corporate_tax_usd
                - rec.capex_usd
                - rec.decommissioning_cost_usd
            )
            assert rec.free_cash_flow_usd == pytest.approx(expected, abs=1e-3)

    def test_government_take_components(self, concession_params):
        for rec in build_cash_flows(concession_params).records:
            assert rec.government_take_usd == pytest.approx(
                rec.royalties_usd + rec.special_participation_usd + rec.profit_oil_gov_usd
            )

    def test_revenue_is_volume_times_realised_price(self, base_params):
        for rec in build_cash_flows(base_params).records:
            assert rec.gross_revenue_usd == pytest.approx(rec.oil_volume_mmbbl * 1e6 * rec.realized_price_usd_bbl)

    def test_discounting(self, base_params):
        records = build_cash_flows(base_params).records
        for rec in records:
            assert rec.discounted_cash_flow_usd == pytest.approx(rec.free_cash_flow_usd / 1.1 ** rec.year)

    def test_cumulative_series(self, base_params):
        build = build_cash_flows(base_params)
        assert build.records[-1].cumulative_cash_flow_usd == pytest.approx(sum(build.free_cash_flows))
        assert build.records[-1].cumulative_discounted_cash_flow_usd == pytest.approx(
            sum(r.discounted_cash_flow_usd for r in build.records)
        )

    def test_deterministic(self, detailed_params):
        first = build_cash_flows(detailed_params).free_cash_flows
        second = build_cash_flows(detailed_params).free_cash_flows
        assert first == second

    def test_production_warnings_propagate(self, make_params):
        build = build_cash_flows(make_params(production={"liquid_capacity_bpd": 0.0}))
        assert build.warnings


# ── Configuration errors ──────────────────────────────────────────────────────

class TestConfiguration:
    def test_no_production_window(self, make_params):
        params = make_params(economics={"project_duration_years": 6}, capex={"decommissioning": {"years": 2}})
        with pytest.raises(ConfigurationError) as excinfo:
            check_configuration(params)
        assert excinfo.value.kind == ErrorKind.configuration_error

    def test_zero_reserves_with_peak_rate(self, make_params):
        with pytest.raises(ConfigurationError):
            build_cash_flows(make_params(production={"total_reserves_mmbbl": 0.0}))

    def test_zero_reserves_without_rate_is_accepted(self, make_params):
        params = make_params(production={"total_reserves_mmbbl": 0.0, "peak_rate_kbpd": 0.0})
        build = build_cash_flows(params)
        assert all(r.gross_revenue_usd == 0.0 for r in build.records)

    def test_peak_year_beyond_construction_rejected(self, make_params):
        with pytest.raises(ValueError):
            make_params(capex={"duration_years": 3, "peak_year": 4})
