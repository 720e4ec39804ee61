"""Pydantic data models for the oilfield development economics engine."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, computed_field, model_validator


# ── Enumerations ──────────────────────────────────────────────────────────────

class PriceStrategy(str, Enum):
    constant = "constant"
    bull = "bull"
    bear = "bear"
    custom = "custom"


class ProductionMode(str, Enum):
    simple = "simple"
    detailed = "detailed"


class OpexMode(str, Enum):
    simple = "simple"
    detailed = "detailed"


class DepreciationMode(str, Enum):
    simple = "simple"
    detailed = "detailed"


class DepreciationMethod(str, Enum):
    linear = "linear"
    accelerated = "accelerated"
    uop = "uop"


class AssetOwnership(str, Enum):
    owned = "owned"
    chartered = "chartered"


class DecommissioningMode(str, Enum):
    simple = "simple"
    detailed = "detailed"


class FiscalRegime(str, Enum):
    concession = "concession"
    sharing = "sharing"
    cession_onerosa = "cession_onerosa"


class SpecialParticipationMode(str, Enum):
    progressive = "progressive"
    flat = "flat"


class FailureProfile(str, Enum):
    constant = "constant"
    wearout = "wearout"
    bathtub = "bathtub"


class WellType(str, Enum):
    pre_salt = "pre_salt"
    post_salt = "post_salt"


class WellComplexity(str, Enum):
    high = "high"
    low = "low"


class RunStatus(str, Enum):
    success = "success"
    error = "error"


# Capex categories, in reporting order
CAPEX_CATEGORIES: tuple[str, ...] = ("platform", "wells", "subsea")

# Accelerated schedules must be materially shorter than the linear default
DEFAULT_LINEAR_YEARS = 10
DEFAULT_ACCELERATED_YEARS = 5


class _Assumptions(BaseModel):
    """Immutable input block; rejects NaN and ±inf at construction."""
    model_config = ConfigDict(frozen=True, allow_inf_nan=False)


def clamp_to_field_bounds(model: type[BaseModel], data: dict) -> dict:
    """
    Clamp every numeric value in a model_dump() dict to its Field ge/le bounds,
    recursing into nested models. Mutates and returns `data`.

    Strict bounds (gt/lt) and cross-field validators are left to validation.
    """
    for name, info in model.model_fields.items():
        if name not in data:
            continue
        value = data[name]
        annotation = info.annotation
        if isinstance(annotation, type) and issubclass(annotation, BaseModel):
            if isinstance(value, dict):
                clamp_to_field_bounds(annotation, value)
            continue
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            continue
        for constraint in info.metadata:
            lower = getattr(constraint, "ge", None)
            upper = getattr(constraint, "le", None)
            if lower is not None and value < lower:
                value = lower
            if upper is not None and value > upper:
                value = upper
        data[name] = value
    return data


# ── Economic & Price Assumptions ──────────────────────────────────────────────

class EconomicAssumptions(_Assumptions):
    """Discounting horizon and cost escalation."""
    discount_rate_pct: float = Field(10.0, ge=0.0, le=100.0, description="Annual discount rate (%)")
    project_duration_years: int = Field(30, ge=1, le=100, description="Evaluation horizon; records span years 0..N")
    cost_inflation_pct: float = Field(2.0, ge=-50.0, le=100.0, description="Annual opex escalation (%)")


class PriceAssumptions(_Assumptions):
    """Brent price deck. Peak / long-term values only apply to the custom strategy."""
    strategy: PriceStrategy = PriceStrategy.constant
    initial_price_usd_bbl: float = Field(70.0, ge=0.0, description="Year-0 Brent price ($/bbl)")
    peak_price_usd_bbl: float = Field(90.0, ge=0.0, description="Custom curve peak price ($/bbl)")
    peak_year: int = Field(5, ge=0, le=100, description="Custom curve year of peak price")
    long_term_price_usd_bbl: float = Field(60.0, ge=0.0, description="Custom curve long-run price ($/bbl)")
    brent_spread_pct: float = Field(0.0, ge=-100.0, le=100.0, description="Discount of realised crude to Brent (%)")


# ── Production Assumptions ────────────────────────────────────────────────────

class DeclineRate(_Assumptions):
    """Annual decline rate with an optional technology uplift.

    The uplift (smart wells, forced-oil-handling) flattens the decline:
    derived = base / (1 + uplift / 100). Both values are kept so results can
    always be traced back to the un-adjusted input.
    """
    base_value: float = Field(8.0, ge=0.0, le=100.0, description="Un-adjusted annual decline (%)")
    technology_uplift_pct: float = Field(0.0, ge=0.0, le=1000.0, description="Decline mitigation from technology (%)")

    @computed_field  # type: ignore[prop-decorator]
    @property
    def derived_value(self) -> float:
        return self.base_value / (1.0 + self.technology_uplift_pct / 100.0)


class ProductionAssumptions(_Assumptions):
    """Plateau/decline profile, water-cut curve and facility limits."""
    mode: ProductionMode = ProductionMode.simple
    peak_rate_kbpd: float = Field(180.0, ge=0.0, description="Plateau oil rate (kbpd)")
    ramp_up_years: int = Field(3, ge=0, le=50)
    plateau_years: int = Field(4, ge=0, le=50)
    decline_years: int | None = Field(None, ge=0, description="Length of decline phase (None = until abandonment)")
    decline: DeclineRate = Field(default_factory=DeclineRate)
    hyperbolic_exponent: float = Field(0.5, ge=0.0, le=2.0, description="Arps b-factor (0 = exponential)")
    oil_api: float = Field(28.0, ge=5.0, le=70.0, description="Crude API gravity")
    gor_m3_m3: float = Field(150.0, ge=0.0, description="Gas-oil ratio (m³/m³)")
    bsw_max_pct: float = Field(95.0, ge=0.0, lt=100.0, description="Asymptotic water cut (%)")
    bsw_breakthrough_year: float = Field(7.0, ge=0.0, description="Production year at which water cut reaches 2%")
    bsw_growth_rate: float = Field(0.7, gt=0.0, le=10.0, description="Logistic steepness of the water-cut curve")
    liquid_capacity_bpd: float = Field(200_000.0, ge=0.0, description="Facility total liquids capacity (bpd)")
    total_reserves_mmbbl: float = Field(1000.0, ge=0.0, description="Recoverable oil reserves (MMbbl)")


# ── Capex Assumptions ─────────────────────────────────────────────────────────

class CategoryValues(_Assumptions):
    """One percentage per capex category."""
    platform: float = Field(..., ge=0.0, le=100.0)
    wells: float = Field(..., ge=0.0, le=100.0)
    subsea: float = Field(..., ge=0.0, le=100.0)

    def get(self, category: str) -> float:
        return getattr(self, category)


class CapexSplit(CategoryValues):
    """Capex allocation across categories (%)."""
    platform: float = Field(40.0, ge=0.0, le=100.0)
    wells: float = Field(40.0, ge=0.0, le=100.0)
    subsea: float = Field(20.0, ge=0.0, le=100.0)

    @model_validator(mode="after")
    def check_total(self) -> "CapexSplit":
        total = self.platform + self.wells + self.subsea
        if abs(total - 100.0) > 0.01:
            raise ValueError(f"platform + wells + subsea must sum to 100% (got {total:.2f}%)")
        return self


class IncentiveCoverage(CategoryValues):
    """Share of each category exempt from capex tax (Repetro-style relief, %)."""
    platform: float = Field(100.0, ge=0.0, le=100.0)
    wells: float = Field(100.0, ge=0.0, le=100.0)
    subsea: float = Field(100.0, ge=0.0, le=100.0)


class DepreciationRule(_Assumptions):
    method: DepreciationMethod = DepreciationMethod.linear
    years: int | None = Field(None, ge=1, le=100, description="Useful life; defaults by method")

    @property
    def useful_life(self) -> int:
        if self.years is not None:
            return self.years
        if self.method == DepreciationMethod.accelerated:
            return DEFAULT_ACCELERATED_YEARS
        return DEFAULT_LINEAR_YEARS


class CategoryDepreciation(_Assumptions):
    platform: DepreciationRule = DepreciationRule(method=DepreciationMethod.accelerated, years=5)
    wells: DepreciationRule = DepreciationRule(method=DepreciationMethod.uop)
    subsea: DepreciationRule = DepreciationRule(method=DepreciationMethod.accelerated, years=5)

    def get(self, category: str) -> DepreciationRule:
        return getattr(self, category)


class CharterTerms(_Assumptions):
    """Chartered production unit: PV of the charter, annuitised over the project life."""
    present_value_usd: float = Field(2.0e9, ge=0.0)
    charter_share_pct: float = Field(85.0, ge=0.0, le=100.0, description="Bareboat charter part of the annuity")
    service_share_pct: float = Field(15.0, ge=0.0, le=100.0, description="O&M service part of the annuity")
    service_tax_pct: float = Field(14.25, ge=0.0, le=100.0, description="Tax levied on the service part")


class DecommissioningAssumptions(_Assumptions):
    """Abandonment cost. Simple = % of capex; detailed = wells + subsea removal + platform."""
    mode: DecommissioningMode = DecommissioningMode.simple
    simple_rate_pct: float = Field(15.0, ge=0.0, le=100.0, description="% of total capex")
    num_wells: int = Field(16, ge=0)
    cost_per_well_usd: float = Field(25e6, ge=0.0)
    subsea_removal_pct: float = Field(25.0, ge=0.0, le=100.0, description="% of subsea capex")
    platform_removal_usd: float = Field(150e6, ge=0.0)
    years: int = Field(1, ge=1, le=10, description="Terminal years over which the cost is ramped evenly")


class CapexAssumptions(_Assumptions):
    """Development capital, its phasing, taxation and depreciation."""
    total_capex_usd: float = Field(6.0e9, ge=0.0, description="Pre-tax development capex (USD)")
    duration_years: int = Field(5, ge=1, le=30, description="Construction years before first oil")
    peak_year: int = Field(4, ge=1, le=30, description="Construction year with peak spend (1-based)")
    concentration_pct: float = Field(50.0, ge=0.0, le=100.0, description="0 = flat, 100 = fully triangular")
    post_first_oil_fraction: float = Field(0.0, ge=0.0, le=1.0, description="Share of capex spent in production years 1–2")
    split: CapexSplit = Field(default_factory=CapexSplit)
    ownership: AssetOwnership = AssetOwnership.owned
    charter: CharterTerms = Field(default_factory=CharterTerms)
    capex_tax_rate_pct: float = Field(40.0, ge=0.0, le=100.0, description="Tax on imported capital goods (%)")
    incentive_ratio_pct: IncentiveCoverage = Field(default_factory=IncentiveCoverage)
    depreciation_mode: DepreciationMode = DepreciationMode.detailed
    simple_depreciation_years: int = Field(DEFAULT_LINEAR_YEARS, ge=1, le=100)
    depreciation: CategoryDepreciation = Field(default_factory=CategoryDepreciation)
    decommissioning: DecommissioningAssumptions = Field(default_factory=DecommissioningAssumptions)


# ── Opex Assumptions ──────────────────────────────────────────────────────────

class ReliabilityAssumptions(_Assumptions):
    """Well failure and workover intervention parameters."""
    num_wells: int = Field(16, ge=0)
    failure_rate: float = Field(0.15, ge=0.0, le=5.0, description="Failures per well-year (λ)")
    failure_profile: FailureProfile = FailureProfile.constant
    wait_days: float = Field(60.0, ge=0.0, le=365.0, description="Shut-in days awaiting a rig per failure")
    well_type: WellType = WellType.pre_salt
    complexity: WellComplexity = WellComplexity.high
    mobilization_cost_usd: float | None = Field(None, ge=0.0, description="Override rig mobilisation cost")
    daily_rate_usd: float | None = Field(None, ge=0.0, description="Override rig day rate")
    intervention_days: float | None = Field(None, ge=0.0, description="Override intervention duration")


class OpexAssumptions(_Assumptions):
    mode: OpexMode = OpexMode.simple
    margin_pct: float = Field(20.0, ge=0.0, le=100.0, description="Opex as % of gross revenue (simple mode)")
    fixed_cost_usd_year: float = Field(100e6, ge=0.0)
    variable_cost_usd_bbl: float = Field(4.0, ge=0.0)
    workover_cost_usd_year: float = Field(10e6, ge=0.0, description="Static workover budget when λ = 0")
    gas_injection_cost_usd_per_mm_m3: float = Field(1.5e6, ge=0.0)
    reliability: ReliabilityAssumptions = Field(default_factory=ReliabilityAssumptions)


# ── Fiscal Terms ──────────────────────────────────────────────────────────────

class SpecialParticipationBracket(_Assumptions):
    """Marginal rate applied to quarterly net revenue above `threshold_usd`."""
    threshold_usd: float = Field(..., ge=0.0)
    rate_pct: float = Field(..., ge=0.0, le=100.0)


DEFAULT_SP_BRACKETS: tuple[SpecialParticipationBracket, ...] = (
    SpecialParticipationBracket(threshold_usd=150e6, rate_pct=10.0),
    SpecialParticipationBracket(threshold_usd=300e6, rate_pct=20.0),
    SpecialParticipationBracket(threshold_usd=600e6, rate_pct=30.0),
    SpecialParticipationBracket(threshold_usd=1.2e9, rate_pct=35.0),
    SpecialParticipationBracket(threshold_usd=2.4e9, rate_pct=40.0),
)


class FiscalTerms(_Assumptions):
    """Fiscal regime and tax parameters."""
    regime: FiscalRegime = FiscalRegime.sharing
    royalty_rate_pct: float = Field(10.0, ge=0.0, le=100.0)
    special_participation_mode: SpecialParticipationMode = SpecialParticipationMode.progressive
    special_participation_rate_pct: float = Field(0.0, ge=0.0, le=100.0, description="Flat-mode rate (%)")
    special_participation_brackets: tuple[SpecialParticipationBracket, ...] = DEFAULT_SP_BRACKETS
    # Sharing-regime fields
    cost_oil_cap_pct: float = Field(50.0, ge=0.0, le=100.0, description="Cost oil ceiling as % of revenue")
    profit_oil_gov_share_pct: float = Field(30.0, ge=0.0, le=100.0)
    corporate_tax_rate_pct: float = Field(34.0, ge=0.0, le=100.0, description="IRPJ + CSLL combined (%)")
    loss_offset_limit_pct: float = Field(30.0, ge=0.0, le=100.0, description="Max share of taxable income offset by losses")

    @model_validator(mode="after")
    def check_brackets(self) -> "FiscalTerms":
        thresholds = [b.threshold_usd for b in self.special_participation_brackets]
        if thresholds != sorted(thresholds):
            raise ValueError("special_participation_brackets must be in ascending threshold order")
        return self


# ── Top-level Input ───────────────────────────────────────────────────────────

class ProjectParameters(_Assumptions):
    """Complete, immutable input snapshot for one evaluation."""
    economics: EconomicAssumptions = Field(default_factory=EconomicAssumptions)
    price: PriceAssumptions = Field(default_factory=PriceAssumptions)
    production: ProductionAssumptions = Field(default_factory=ProductionAssumptions)
    capex: CapexAssumptions = Field(default_factory=CapexAssumptions)
    opex: OpexAssumptions = Field(default_factory=OpexAssumptions)
    fiscal: FiscalTerms = Field(default_factory=FiscalTerms)

    @model_validator(mode="after")
    def check_timeline(self) -> "ProjectParameters":
        if self.capex.peak_year > self.capex.duration_years:
            raise ValueError(
                f"capex.peak_year ({self.capex.peak_year}) must fall within "
                f"capex.duration_years ({self.capex.duration_years})"
            )
        return self


# ── Output Models ─────────────────────────────────────────────────────────────

class YearlyRecord(BaseModel):
    """One year of the project cash-flow projection (all money in USD, nominal)."""
    year: int
    production_year: int              # 0 before first oil, 1 = first oil year
    is_decom_year: bool = False
    oil_rate_kbpd: float = 0.0
    water_rate_kbpd: float = 0.0
    liquid_rate_kbpd: float = 0.0
    oil_volume_mmbbl: float = 0.0
    water_cut: float = 0.0            # fraction 0–1
    brent_price_usd_bbl: float = 0.0
    realized_price_usd_bbl: float = 0.0
    gross_revenue_usd: float = 0.0
    capex_usd: float = 0.0            # after-incentive, tax inclusive
    capex_tax_usd: float = 0.0        # tax component already inside capex_usd
    opex_usd: float = 0.0
    charter_cost_usd: float = 0.0
    depreciation_usd: float = 0.0
    royalties_usd: float = 0.0
    special_participation_usd: float = 0.0
    cost_oil_usd: float = 0.0
    profit_oil_gov_usd: float = 0.0
    government_take_usd: float = 0.0  # royalties + special participation + gov profit oil
    taxable_income_usd: float = 0.0
    loss_offset_used_usd: float = 0.0
    corporate_tax_usd: float = 0.0
    decommissioning_cost_usd: float = 0.0
    free_cash_flow_usd: float = 0.0
    discounted_cash_flow_usd: float = 0.0
    cumulative_cash_flow_usd: float = 0.0
    cumulative_discounted_cash_flow_usd: float = 0.0


class Metrics(BaseModel):
    """Headline investment metrics. A None value always has a reason in `unavailable`."""
    npv_usd: float
    irr_pct: float | None = None
    spread_pct: float | None = None           # IRR − discount rate, percentage points
    investment_pv_usd: float | None = None
    npv_investment_ratio: float | None = None
    payback_years: float | None = None
    discounted_payback_years: float | None = None
    breakeven_price_usd_bbl: float | None = None
    unavailable: dict[str, str] = Field(default_factory=dict)


class NpvProfilePoint(BaseModel):
    rate_pct: float
    npv_usd: float


class PricePoint(BaseModel):
    year: int
    brent_usd_bbl: float
    realized_usd_bbl: float


class SensitivityScenario(BaseModel):
    """One bar of the tornado chart."""
    variable: str
    label: str
    base_value: float
    low_value: float
    high_value: float
    base_npv_usd: float
    npv_low_usd: float
    npv_high_usd: float
    swing_usd: float
    positive_correlation: bool        # True when NPV rises with the input


class CapexSensitivityPoint(BaseModel):
    variation_pct: float
    total_capex_usd: float
    irr_pct: float | None = None
    spread_pct: float | None = None
    npv_investment_ratio: float | None = None


class CapexSensitivity(BaseModel):
    points: list[CapexSensitivityPoint] = Field(default_factory=list)
    correlation: float | None = None  # Pearson r between spread and NPV/investment


class MonteCarloSample(BaseModel):
    sample_id: int
    npv_usd: float
    irr_pct: float | None = None
    spread_pct: float | None = None
    npv_investment_ratio: float | None = None
    valid: bool = True
    perturbation: dict[str, float] = Field(default_factory=dict)


class TrendPoint(BaseModel):
    spread_pct: float
    npv_investment_ratio: float


class MonteCarloSummary(BaseModel):
    iterations: int
    seed: int | None = None
    samples: list[MonteCarloSample] = Field(default_factory=list)
    valid_samples: int = 0
    correlation: float | None = None  # Pearson r (spread vs NPV/investment) over valid samples
    trend_line: list[TrendPoint] = Field(default_factory=list)


class QualityFlag(BaseModel):
    """A single benchmark/quality flag on a computed metric."""
    severity: str                     # "🔴 CRITICAL" | "🟡 WARNING" | "🟢 INFO"
    metric: str
    value: float | None
    threshold: str
    message: str


class EngineError(BaseModel):
    kind: str                         # ErrorKind value
    message: str


class ProjectEvaluation(BaseModel):
    """Deterministic result of one pass through the pipeline."""
    records: list[YearlyRecord]
    metrics: Metrics
    npv_profile: list[NpvProfilePoint] = Field(default_factory=list)
    price_curve: list[PricePoint] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)


class Results(BaseModel):
    """Complete output of one analysis run."""
    status: RunStatus
    yearly_records: list[YearlyRecord] = Field(default_factory=list)
    metrics: Metrics | None = None
    npv_profile: list[NpvProfilePoint] = Field(default_factory=list)
    price_curve: list[PricePoint] = Field(default_factory=list)
    tornado: list[SensitivityScenario] = Field(default_factory=list)
    capex_sensitivity: CapexSensitivity | None = None
    monte_carlo: MonteCarloSummary | None = None
    flags: list[QualityFlag] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    error: EngineError | None = None
