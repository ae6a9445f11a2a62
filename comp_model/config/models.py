# comp_model/config/models.py
"""
Pydantic models for the value records exchanged with the engine: market
benchmarks, conversion-factor models, call-pay tiers, provider records and
the results derived from them.

All records are frozen. The engine never mutates its inputs, and results are
derived values rather than a source of truth.
"""

import logging
from enum import Enum
from typing import Annotated, Any, Dict, List, Literal, Optional, Tuple, Union

import numpy as np
from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, model_validator

from comp_model.utils.constants import (
    ALIGNED_DELTA,
    DEFAULT_BASE_CF,
    DEFAULT_PERCENTILE,
    HIGH_TCC_PERCENTILE,
    MILD_DRIFT_DELTA,
    MODERATE_TCC_PERCENTILE,
    P100_MULTIPLIER,
)

logger = logging.getLogger(__name__)


class FrozenModel(BaseModel):
    """Base for immutable value records."""

    model_config = ConfigDict(frozen=True)


# --- Enumerations ---


class AlignmentStatus(str, Enum):
    ALIGNED = "Aligned"
    MILD_DRIFT = "Mild Drift"
    RISK_ZONE = "Risk Zone"


class FMVRiskLevel(str, Enum):
    LOW = "LOW"
    MODERATE = "MODERATE"
    HIGH = "HIGH"


class TierType(str, Enum):
    THRESHOLD = "threshold"
    PERCENTAGE = "percentage"


class CoverageType(str, Enum):
    IN_HOUSE = "In-house"
    RESTRICTED_HOME = "Restricted home"
    UNRESTRICTED_HOME = "Unrestricted home"
    BACKUP_ONLY = "Backup only"


class PaymentMethod(str, Enum):
    ANNUAL_STIPEND = "Annual stipend"
    DAILY_SHIFT_RATE = "Daily / shift rate"
    HOURLY_RATE = "Hourly rate"
    MONTHLY_RETAINER = "Monthly retainer"
    PER_PROCEDURE = "Per procedure"
    PER_WRVU = "Per wRVU"


class BlendingMode(str, Enum):
    SURVEY_ONLY = "survey-only"
    INTERNAL_ONLY = "internal-only"
    BLENDED = "blended"


class Metric(str, Enum):
    WRVU = "wrvu"
    TCC = "tcc"
    CF = "cf"


# --- Benchmarks ---


class BenchmarkPoints(FrozenModel):
    """One metric's sparse survey curve: the 25th/50th/75th/90th percentiles."""

    p25: Optional[float] = None
    p50: Optional[float] = None
    p75: Optional[float] = None
    p90: Optional[float] = None

    def available(self) -> Dict[int, float]:
        """Map of rank -> value for the usable points (present and positive)."""
        points = {25: self.p25, 50: self.p50, 75: self.p75, 90: self.p90}
        return {rank: float(v) for rank, v in points.items() if v is not None and v > 0}

    @property
    def is_empty(self) -> bool:
        return not self.available()


class MarketBenchmarks(FrozenModel):
    """Survey benchmarks at 1.0 FTE. Any field may be absent."""

    wrvu25: Optional[float] = None
    wrvu50: Optional[float] = None
    wrvu75: Optional[float] = None
    wrvu90: Optional[float] = None
    tcc25: Optional[float] = None
    tcc50: Optional[float] = None
    tcc75: Optional[float] = None
    tcc90: Optional[float] = None
    cf25: Optional[float] = None
    cf50: Optional[float] = None
    cf75: Optional[float] = None
    cf90: Optional[float] = None

    @model_validator(mode="after")
    def warn_on_inverted_points(self) -> "MarketBenchmarks":
        """Log, but accept, curves whose values fall as rank rises."""
        for metric in Metric:
            values = list(self.points(metric).available().values())
            if any(b < a for a, b in zip(values, values[1:])):
                logger.warning(
                    f"{metric.value} benchmarks are not non-decreasing by percentile: {values}"
                )
        return self

    def points(self, metric: Union[Metric, str]) -> BenchmarkPoints:
        key = Metric(metric).value
        return BenchmarkPoints(
            p25=getattr(self, f"{key}25"),
            p50=getattr(self, f"{key}50"),
            p75=getattr(self, f"{key}75"),
            p90=getattr(self, f"{key}90"),
        )

    @property
    def has_cf_data(self) -> bool:
        return not self.points(Metric.CF).is_empty


# --- Conversion factor models ---


class SingleCFModel(FrozenModel):
    model_type: Literal["single"] = "single"
    cf: float = Field(..., ge=0.0, description="Dollars per wRVU")


class TieredCFTier(FrozenModel):
    threshold: Optional[float] = Field(
        None,
        ge=0.0,
        description="Upper bound of the tier in wRVUs, or in percent of total wRVUs",
    )
    cf: float = Field(..., ge=0.0)


class TieredCFModel(FrozenModel):
    model_type: Literal["tiered"] = "tiered"
    tier_type: TierType = TierType.THRESHOLD
    tiers: Tuple[TieredCFTier, ...] = ()


class PercentileTieredCFTier(FrozenModel):
    percentile_threshold: Optional[float] = Field(None, ge=0.0, le=100.0)
    cf: float = Field(..., ge=0.0)


class PercentileTieredCFModel(FrozenModel):
    model_type: Literal["percentile-tiered"] = "percentile-tiered"
    tiers: Tuple[PercentileTieredCFTier, ...] = ()


class BudgetNeutralCFModel(FrozenModel):
    model_type: Literal["budget-neutral"] = "budget-neutral"
    target_tcc_percentile: float = Field(..., ge=0.0, le=100.0)
    base_cf: Optional[float] = Field(
        None, ge=0.0, description=f"Fallback CF; {DEFAULT_BASE_CF:g} when omitted"
    )


class QualityWeightedCFModel(FrozenModel):
    model_type: Literal["quality-weighted"] = "quality-weighted"
    base_cf: float = Field(..., ge=0.0)
    quality_score: float = Field(..., description="0-1.0, or 0-100 when greater than 1")


class FTEAdjustedTier(FrozenModel):
    fte_min: float = Field(..., ge=0.0)
    fte_max: Optional[float] = Field(None, ge=0.0)
    cf: float = Field(..., ge=0.0)


class FTEAdjustedCFModel(FrozenModel):
    model_type: Literal["fte-adjusted"] = "fte-adjusted"
    tiers: Tuple[FTEAdjustedTier, ...] = ()


ConversionFactorModel = Annotated[
    Union[
        SingleCFModel,
        TieredCFModel,
        PercentileTieredCFModel,
        BudgetNeutralCFModel,
        QualityWeightedCFModel,
        FTEAdjustedCFModel,
    ],
    Field(discriminator="model_type"),
]

_CF_MODEL_ADAPTER = TypeAdapter(ConversionFactorModel)


def parse_cf_model(data: Any):
    """Build a conversion factor model from plain data keyed by ``model_type``."""
    return _CF_MODEL_ADAPTER.validate_python(data)


# --- Scenarios ---


class ProviderProfile(FrozenModel):
    base_pay: float = Field(0.0, ge=0.0)
    fte: float = Field(1.0, gt=0.0, le=1.0)


class ProductivityScenario(FrozenModel):
    id: Optional[str] = None
    name: str = "Scenario"
    wrvus: float = Field(..., ge=0.0)
    fixed_comp: Optional[float] = Field(
        None, ge=0.0, description="Fixed compensation counted in TCC; defaults to base pay"
    )


class PercentileEstimate(FrozenModel):
    percentile: float
    is_default: bool = False


class AlignmentResult(FrozenModel):
    status: AlignmentStatus
    fmv_risk: FMVRiskLevel
    delta: float


class ScenarioResult(FrozenModel):
    scenario: ProductivityScenario
    cf_model_type: str
    cf_model_summary: str
    wrvu_percentile: float
    tcc_percentile: float
    cf_percentile: Optional[float] = None
    effective_cf: float
    incentive_pay: float
    clinical_dollars: float
    modeled_tcc: float
    survey_tcc: float
    alignment_status: AlignmentStatus
    alignment_delta: float
    fmv_risk_level: FMVRiskLevel
    recommended_cf: Optional[float] = None
    low_confidence: bool = False


class EnginePolicy(FrozenModel):
    """Overridable policy constants. Defaults need domain sign-off to change."""

    p100_multiplier: float = Field(P100_MULTIPLIER, gt=1.0)
    default_percentile: float = Field(DEFAULT_PERCENTILE, ge=0.0, le=100.0)
    aligned_delta: float = Field(ALIGNED_DELTA, ge=0.0)
    mild_drift_delta: float = Field(MILD_DRIFT_DELTA, ge=0.0)
    moderate_tcc_percentile: float = Field(MODERATE_TCC_PERCENTILE, ge=0.0, le=100.0)
    high_tcc_percentile: float = Field(HIGH_TCC_PERCENTILE, ge=0.0, le=100.0)

    @model_validator(mode="after")
    def check_ordering(self) -> "EnginePolicy":
        if self.mild_drift_delta < self.aligned_delta:
            raise ValueError("mild_drift_delta must be >= aligned_delta")
        if self.high_tcc_percentile < self.moderate_tcc_percentile:
            raise ValueError("high_tcc_percentile must be >= moderate_tcc_percentile")
        return self


# --- Call pay ---


class CallTierRate(FrozenModel):
    weekday: float = Field(0.0, ge=0.0)
    weekend: float = Field(0.0, ge=0.0)
    holiday: float = Field(0.0, ge=0.0)
    trauma_uplift_percent: Optional[float] = Field(None, ge=0.0)


class CallTierBurden(FrozenModel):
    weekday_calls_per_month: float = Field(0.0, ge=0.0)
    weekend_calls_per_month: float = Field(0.0, ge=0.0)
    holidays_per_year: float = Field(0.0, ge=0.0)
    avg_callbacks_per_24h: float = Field(0.0, ge=0.0)
    avg_cases_per_24h: Optional[float] = Field(None, ge=0.0)

    @property
    def calls_per_month(self) -> float:
        return self.weekday_calls_per_month + self.weekend_calls_per_month

    @property
    def calls_per_year(self) -> float:
        return self.calls_per_month * 12 + self.holidays_per_year

    @property
    def cases_per_call(self) -> float:
        """Cases per 24h when given, otherwise callbacks per 24h."""
        return self.avg_cases_per_24h or self.avg_callbacks_per_24h


class CallTier(FrozenModel):
    id: str
    name: Optional[str] = None
    coverage_type: CoverageType = CoverageType.IN_HOUSE
    payment_method: PaymentMethod = PaymentMethod.DAILY_SHIFT_RATE
    rates: CallTierRate = Field(default_factory=CallTierRate)
    burden: CallTierBurden = Field(default_factory=CallTierBurden)
    enabled: bool = True

    @property
    def label(self) -> str:
        return self.name or self.id


class CallPayContext(FrozenModel):
    specialty: str = ""
    service_line: str = ""
    providers_on_call: int = Field(..., ge=0)
    rotation_ratio: float = Field(..., ge=0.0, description="1-in-N call rotation")
    model_year: int


class TierImpact(FrozenModel):
    tier_id: str
    tier_name: str
    annual_pay_per_provider: float
    annual_pay_for_group: float
    effective_dollars_per_24h: float
    effective_dollars_per_call: float


class CallPayImpact(FrozenModel):
    tiers: Tuple[TierImpact, ...] = ()
    total_annual_call_spend: float = 0.0
    average_call_pay_per_provider: float = 0.0
    call_pay_per_1fte: float = 0.0
    call_pay_as_percent_of_tcc: Optional[float] = None


class CallPayResults(FrozenModel):
    monthly_pay: float
    annual_pay: float
    effective_rate: float


class CallPayBenchmarks(FrozenModel):
    weekday: Optional[BenchmarkPoints] = None
    weekend: Optional[BenchmarkPoints] = None
    holiday: Optional[BenchmarkPoints] = None


class RatePercentiles(FrozenModel):
    weekday_percentile: float
    weekend_percentile: float
    holiday_percentile: float


class ValidationResult(FrozenModel):
    """Errors block a configuration; warnings only ask for a second look."""

    errors: Tuple[str, ...] = ()
    warnings: Tuple[str, ...] = ()

    @property
    def is_valid(self) -> bool:
        return not self.errors


class CallProvider(FrozenModel):
    id: str
    name: Optional[str] = None
    fte: float = Field(1.0, ge=0.0, le=1.0)
    tier_id: Optional[str] = Field(None, description="Tier this provider covers; None for all")
    eligible_for_call: bool = True


class ProviderBurden(FrozenModel):
    provider_id: str
    provider_name: Optional[str] = None
    fte: float
    expected_weekday_calls: float = 0.0
    expected_weekend_calls: float = 0.0
    expected_holiday_calls: float = 0.0
    total_expected_calls: float = 0.0
    burden_index: float = Field(0.0, description="Percent above (+) or below (-) the group average")


class FairnessSummary(FrozenModel):
    average_calls: float = 0.0
    min_calls: float = 0.0
    max_calls: float = 0.0
    standard_deviation: float = 0.0
    fairness_score: float = Field(100.0, ge=0.0, le=100.0)
    total_eligible_fte: float = 0.0
    eligible_provider_count: int = 0


# --- Forecasting ---


class ForecastAssumptions(FrozenModel):
    rate_increase_percent: float = Field(0.0, description="Annual rate increase, e.g. 2.5")
    provider_growth_percent: float = Field(0.0, description="Annual provider growth, e.g. 5")
    years_to_forecast: int = Field(3, ge=0)


class YearlyForecast(FrozenModel):
    year: int
    base_budget: float
    adjusted_budget: float
    rate_increase: float
    provider_growth: float
    total_providers: int
    average_pay_per_provider: float
    cumulative_rate_multiplier: float


class MultiYearForecast(FrozenModel):
    base_year: int
    base_budget: float
    forecasts: Tuple[YearlyForecast, ...] = ()
    total_projected_spend: float
    assumptions: ForecastAssumptions


class BudgetVariance(FrozenModel):
    variance: float
    variance_percent: float
    is_over_budget: bool


# --- Internal benchmarks ---


class ProviderRecord(FrozenModel):
    id: Optional[str] = None
    name: Optional[str] = None
    fte: float = Field(..., ge=0.0)
    wrvus: float = Field(..., ge=0.0)
    tcc: float = Field(..., ge=0.0)
    notes: Optional[str] = None


class InternalPercentiles(FrozenModel):
    wrvu25: float
    wrvu50: float
    wrvu75: float
    wrvu90: float
    tcc25: float
    tcc50: float
    tcc75: float
    tcc90: float

    def to_market_benchmarks(self) -> MarketBenchmarks:
        return MarketBenchmarks(**self.model_dump())


class BlendingWeights(FrozenModel):
    internal_weight: float = Field(0.5, ge=0.0, le=1.0)
    survey_weight: float = Field(0.5, ge=0.0, le=1.0)

    @model_validator(mode="after")
    def check_sum(self) -> "BlendingWeights":
        total = self.internal_weight + self.survey_weight
        if not np.isclose(total, 1.0):
            logger.warning(f"Blending weights sum to {total:.4f}, not 1.0")
        return self


class BlendedBenchmarks(InternalPercentiles):
    mode: BlendingMode
    weights: Optional[BlendingWeights] = None

    def to_market_benchmarks(self) -> MarketBenchmarks:
        return MarketBenchmarks(**self.model_dump(exclude={"mode", "weights"}))


class CFRecommendation(FrozenModel):
    min_cf: float
    max_cf: float
    median_cf: float
    justification: str
    commentary: str = ""
    model_year: int


class PercentileDifferences(FrozenModel):
    p25: float
    p50: float
    p75: float
    p90: float


class ComparisonMetrics(FrozenModel):
    wrvu_difference: PercentileDifferences
    tcc_difference: PercentileDifferences
    wrvu_percent_difference: PercentileDifferences
    tcc_percent_difference: PercentileDifferences


# --- Stewardship ---


class StewardshipScenario(FrozenModel):
    id: str
    name: str
    wrvus: float
    percentile: float
    is_actual: bool = False


class StewardshipComparison(FrozenModel):
    scenario: StewardshipScenario
    current_incentive_pay: float
    current_survey_tcc: float
    current_tcc_percentile: float
    current_alignment_status: AlignmentStatus
    proposed_incentive_pay: float
    proposed_survey_tcc: float
    proposed_tcc_percentile: float
    proposed_alignment_status: AlignmentStatus
    percentile_match: float
    alignment_status: AlignmentStatus


class BudgetImpact(FrozenModel):
    median_wrvus: float
    provider_count: int
    current_tcc_per_fte: float
    proposed_tcc_per_fte: float
    delta_per_fte: float
    total_budget_impact: float
    average_provider_impact: float


class MarketMovement(FrozenModel):
    tcc_median_change: Optional[float] = None
    wrvu_median_change: Optional[float] = None
    last_year_tcc_median: Optional[float] = None
    current_year_tcc_median: Optional[float] = None
    last_year_wrvu_median: Optional[float] = None
    current_year_wrvu_median: Optional[float] = None


# --- Call-pay FMV ---


class FMVBenchmark(FrozenModel):
    id: str
    specialty: str
    coverage_type: str
    source: str = "Other"
    survey_year: int
    median_rate_per_24h: float = Field(..., gt=0.0)
    p25_rate_per_24h: Optional[float] = None
    p75_rate_per_24h: Optional[float] = None
    p90_rate_per_24h: Optional[float] = None

    def points(self) -> BenchmarkPoints:
        return BenchmarkPoints(
            p25=self.p25_rate_per_24h,
            p50=self.median_rate_per_24h,
            p75=self.p75_rate_per_24h,
            p90=self.p90_rate_per_24h,
        )


class FMVEvaluationInput(FrozenModel):
    specialty: str
    coverage_type: str
    effective_rate_per_24h: float = Field(..., ge=0.0)
    burden_score: Optional[float] = Field(None, ge=0.0, le=100.0)


class FMVEvaluationResult(FrozenModel):
    benchmark: Optional[FMVBenchmark] = None
    percentile_estimate: Optional[float] = None
    risk_level: FMVRiskLevel
    notes: Tuple[str, ...] = ()
    narrative_summary: str = ""


# --- Provider mix ---


class ProviderRole(str, Enum):
    CORE_PCP = "Core PCP"
    LEAD = "Lead"
    ACADEMIC = "Academic"
    PART_TIME = "Part-time"
    OTHER = "Other"


class NonClinicalMethod(str, Enum):
    MANUAL = "manual"
    ADMIN_FTE = "formula-admin-fte"
    STIPEND = "formula-stipend"
    ROLE_BASED = "role-based"


class NonClinicalCompensation(FrozenModel):
    method: NonClinicalMethod = NonClinicalMethod.MANUAL
    manual_amount: Optional[float] = Field(None, ge=0.0)
    stipend_amount: Optional[float] = Field(None, ge=0.0)
    role_stipend_amount: Optional[float] = Field(None, ge=0.0)


class GroupProvider(FrozenModel):
    """A provider in a group, with clinical and administrative FTE split out."""

    id: str
    name: str = ""
    role: ProviderRole = ProviderRole.CORE_PCP
    clinical_fte: float = Field(1.0, ge=0.0, le=1.0)
    admin_fte: float = Field(0.0, ge=0.0, le=1.0)
    call_burden: bool = False
    actual_wrvus: Optional[float] = Field(None, ge=0.0)
    call_pay: Optional[float] = Field(None, ge=0.0)
    non_clinical: Optional[NonClinicalCompensation] = None
    notes: Optional[str] = None

    @model_validator(mode="after")
    def check_total_fte(self) -> "GroupProvider":
        if self.clinical_fte + self.admin_fte > 1.0 + 1e-9:
            raise ValueError(
                f"Provider {self.id}: clinical_fte + admin_fte must not exceed 1.0 "
                f"(got {self.clinical_fte} + {self.admin_fte})"
            )
        return self


class ProviderTCCBreakdown(FrozenModel):
    clinical_base_pay: float
    clinical_incentive_pay: float = Field(..., ge=0.0)
    non_clinical_comp: float
    call_pay_amount: float
    total_tcc: float


class ProviderAnalysis(FrozenModel):
    provider: GroupProvider
    wrvus: float
    breakdown: ProviderTCCBreakdown
    normalized_tcc: float
    normalized_wrvus: float
    wrvu_percentile: float
    tcc_percentile: float
    effective_cf: float = 0.0
    alignment_status: AlignmentStatus
    risk_factors: Tuple[str, ...] = ()

    @property
    def total_tcc(self) -> float:
        return self.breakdown.total_tcc


class ProviderMixProfile(FrozenModel):
    analysis: ProviderAnalysis
    specialty: str = ""
    model_year: Optional[int] = None
    base_pay: float
    fmv_risk_level: FMVRiskLevel
    recommendations: Tuple[str, ...] = ()


class GroupSummary(FrozenModel):
    total_providers: int = 0
    average_clinical_fte: float = 0.0
    average_admin_fte: float = 0.0
    providers_at_risk: int = 0
    average_tcc: float = 0.0
    weighted_average_cf: float = Field(0.0, description="Effective CF weighted by clinical FTE")


# --- Plan configuration (YAML) ---


class CallPaySection(FrozenModel):
    context: CallPayContext
    tiers: List[CallTier] = Field(default_factory=list)
    providers: List[CallProvider] = Field(default_factory=list)
    tcc_reference: Optional[float] = Field(None, ge=0.0)
    benchmarks: Optional[CallPayBenchmarks] = None


class InternalBenchmarkSection(FrozenModel):
    records: List[ProviderRecord] = Field(default_factory=list)
    mode: BlendingMode = BlendingMode.BLENDED
    weights: Optional[BlendingWeights] = None
    model_year: Optional[int] = None


class ProviderMixSection(FrozenModel):
    providers: List[GroupProvider] = Field(default_factory=list)
    base_pay: Optional[float] = Field(
        None, ge=0.0, description="Full-time base salary; defaults to provider.base_pay"
    )
    include_call_pay: bool = False
    specialty: str = ""
    model_year: Optional[int] = None


class PlanConfig(FrozenModel):
    """Top-level plan file: every section is optional except what a run needs."""

    benchmarks: Optional[MarketBenchmarks] = None
    cf_model: Optional[ConversionFactorModel] = None
    provider: ProviderProfile = Field(default_factory=ProviderProfile)
    scenarios: List[ProductivityScenario] = Field(default_factory=list)
    call_pay: Optional[CallPaySection] = None
    forecast: Optional[ForecastAssumptions] = None
    internal_benchmarks: Optional[InternalBenchmarkSection] = None
    policy: EnginePolicy = Field(default_factory=EnginePolicy)
    fmv_benchmarks: List[FMVBenchmark] = Field(default_factory=list)
    provider_mix: Optional[ProviderMixSection] = None

    @model_validator(mode="after")
    def check_sections(self) -> "PlanConfig":
        if self.scenarios and self.cf_model is None:
            raise ValueError("scenarios require a cf_model section")
        if self.forecast is not None and self.call_pay is None:
            raise ValueError("forecast requires a call_pay section")
        if self.provider_mix is not None and self.cf_model is None:
            raise ValueError("provider_mix requires a cf_model section")
        return self
