import pytest

from comp_model.config.models import (
    BenchmarkPoints,
    CallPayBenchmarks,
    CallTier,
    CallTierBurden,
    CallTierRate,
    CoverageType,
    PaymentMethod,
)
from comp_model.engines.call_pay import (
    call_pay_impact,
    effective_dollars_per_24h,
    effective_dollars_per_call,
    per_call_stipend,
    per_shift_pay,
    rate_percentile,
    rate_percentiles,
    tier_annual_pay,
    tier_monthly_pay,
    tiered_call_pay,
)


def stipend_tier(amount=60000, method=PaymentMethod.ANNUAL_STIPEND):
    return CallTier(id="S1", payment_method=method, rates=CallTierRate(weekday=amount))


@pytest.mark.regression
def test_shift_rate_tier_annual_pay(shift_tier, call_context):
    # (15 x 500 + 4 x 600 + 8/12 x 800) x 12 / 4
    assert tier_monthly_pay(shift_tier) == pytest.approx(10433.3333, abs=1e-3)
    assert tier_annual_pay(shift_tier, call_context) == pytest.approx(31300.0, abs=0.05)


@pytest.mark.regression
def test_group_budget_scales_with_providers(shift_tier, call_context):
    impact = call_pay_impact([shift_tier], call_context)
    assert impact.tiers[0].annual_pay_for_group == pytest.approx(250400.0, abs=0.5)
    assert impact.total_annual_call_spend == pytest.approx(250400.0, abs=0.5)


def test_effective_rates_for_shift_tier(shift_tier, call_context):
    annual = tier_annual_pay(shift_tier, call_context)
    # (15 + 4) x 12 + 8 = 236 calls per year
    assert effective_dollars_per_24h(shift_tier, call_context) == pytest.approx(annual / 236)
    assert effective_dollars_per_call(shift_tier, call_context) == pytest.approx(annual / 236)


@pytest.mark.regression
def test_annual_stipend_divided_by_rotation(call_context):
    context = call_context.model_copy(update={"providers_on_call": 12, "rotation_ratio": 6})
    tier = stipend_tier()
    assert tier_annual_pay(tier, context) == pytest.approx(10000)
    assert call_pay_impact([tier], context).total_annual_call_spend == pytest.approx(120000)


@pytest.mark.regression
def test_trauma_uplift(call_context):
    tier = CallTier(
        id="C1",
        name="C1 - Trauma",
        rates=CallTierRate(weekday=800, weekend=1000, holiday=1200, trauma_uplift_percent=15),
        burden=CallTierBurden(
            weekday_calls_per_month=10,
            weekend_calls_per_month=3,
            holidays_per_year=6,
            avg_callbacks_per_24h=3.5,
        ),
    )
    # 11,600 monthly x 1.15 = 13,340; x 12 / 4
    assert tier_annual_pay(tier, call_context) == pytest.approx(40020)


@pytest.mark.regression
def test_per_procedure_uses_cases_per_call(call_context):
    tier = CallTier(
        id="P1",
        payment_method=PaymentMethod.PER_PROCEDURE,
        rates=CallTierRate(weekday=500, weekend=500, holiday=500),
        burden=CallTierBurden(
            weekday_calls_per_month=10,
            weekend_calls_per_month=3,
            avg_cases_per_24h=2.5,
        ),
    )
    # 2.5 cases x 13 calls x 500 = 16,250 monthly
    assert tier_annual_pay(tier, call_context) == pytest.approx(48750)
    # 156 calls x 2.5 cases per year
    assert effective_dollars_per_call(tier, call_context) == pytest.approx(48750 / 390)


def test_per_case_pay_uses_weekday_rate_only():
    burden = CallTierBurden(
        weekday_calls_per_month=10,
        weekend_calls_per_month=3,
        holidays_per_year=10,
        avg_cases_per_24h=2,
    )
    flat = CallTier(
        id="P2",
        payment_method=PaymentMethod.PER_PROCEDURE,
        rates=CallTierRate(weekday=300),
        burden=burden,
    )
    premium_rates = CallTierRate(weekday=300, weekend=900, holiday=2000)
    premium = flat.model_copy(update={"rates": premium_rates})
    # 2 cases x 13 calls x 300; weekend and holiday rates and holiday days do not enter
    assert tier_monthly_pay(flat) == pytest.approx(7800)
    assert tier_monthly_pay(premium) == pytest.approx(7800)


def test_per_wrvu_falls_back_to_callbacks(call_context):
    tier = CallTier(
        id="W1",
        payment_method=PaymentMethod.PER_WRVU,
        rates=CallTierRate(weekday=40),
        burden=CallTierBurden(weekday_calls_per_month=10, avg_callbacks_per_24h=2),
    )
    assert tier_monthly_pay(tier) == pytest.approx(2 * 10 * 40)


def test_hourly_rate_is_24_hour_shift(shift_tier):
    hourly = shift_tier.model_copy(update={"payment_method": PaymentMethod.HOURLY_RATE})
    assert tier_monthly_pay(hourly) == pytest.approx(tier_monthly_pay(shift_tier) * 24)


def test_monthly_retainer(call_context):
    tier = stipend_tier(5000, PaymentMethod.MONTHLY_RETAINER)
    assert tier_monthly_pay(tier) == 5000
    assert tier_annual_pay(tier, call_context) == pytest.approx(15000)


def test_disabled_tier_pays_nothing(shift_tier, call_context):
    disabled = shift_tier.model_copy(update={"enabled": False})
    assert tier_annual_pay(disabled, call_context) == 0
    assert effective_dollars_per_24h(disabled, call_context) == 0
    assert effective_dollars_per_call(disabled, call_context) == 0
    assert call_pay_impact([disabled], call_context).tiers == ()


def test_zero_burden_pays_nothing(call_context):
    tier = CallTier(id="Z", rates=CallTierRate(weekday=500, weekend=600, holiday=800))
    assert tier_annual_pay(tier, call_context) == 0
    assert effective_dollars_per_24h(tier, call_context) == 0


@pytest.mark.property
def test_doubling_rotation_halves_pay(call_context):
    tier = stipend_tier(5000, PaymentMethod.MONTHLY_RETAINER)
    one_in_3 = tier_annual_pay(tier, call_context.model_copy(update={"rotation_ratio": 3}))
    one_in_6 = tier_annual_pay(tier, call_context.model_copy(update={"rotation_ratio": 6}))
    assert one_in_6 == pytest.approx(one_in_3 / 2)


def test_non_positive_rotation_pays_nothing(shift_tier, call_context):
    context = call_context.model_copy(update={"rotation_ratio": 0})
    assert tier_annual_pay(shift_tier, context) == 0


def test_impact_aggregates_enabled_tiers(shift_tier, call_context):
    retainer = stipend_tier(5000, PaymentMethod.MONTHLY_RETAINER)
    disabled = stipend_tier(99999).model_copy(update={"id": "OFF", "enabled": False})
    impact = call_pay_impact([shift_tier, retainer, disabled], call_context, tcc_reference=400000)

    assert [t.tier_id for t in impact.tiers] == ["C1", "S1"]
    assert impact.total_annual_call_spend == pytest.approx(
        sum(t.annual_pay_for_group for t in impact.tiers)
    )
    average = (31300 + 15000) / 2
    assert impact.average_call_pay_per_provider == pytest.approx(average, abs=0.05)
    assert impact.call_pay_per_1fte == pytest.approx(average * 4, abs=0.2)
    assert impact.call_pay_as_percent_of_tcc == pytest.approx(average / 400000 * 100, abs=1e-4)


def test_impact_without_tiers(call_context):
    impact = call_pay_impact([], call_context, tcc_reference=0)
    assert impact.total_annual_call_spend == 0
    assert impact.average_call_pay_per_provider == 0
    assert impact.call_pay_as_percent_of_tcc is None


def test_tier_name_defaults_to_id(call_context):
    impact = call_pay_impact([stipend_tier()], call_context)
    assert impact.tiers[0].tier_name == "S1"


def test_rate_percentiles():
    weekday = BenchmarkPoints(p25=1000, p50=1500, p75=2000, p90=2500)
    benchmarks = CallPayBenchmarks(weekday=weekday)
    result = rate_percentiles(1750, 900, 1200, benchmarks)
    assert result.weekday_percentile == pytest.approx(62.5)
    assert result.weekend_percentile == 50.0
    assert result.holiday_percentile == 50.0
    assert rate_percentile(1500) == 50.0


def test_per_call_stipend():
    result = per_call_stipend(10, 4, 500, 750)
    assert result.monthly_pay == 8000
    assert result.annual_pay == 96000
    assert result.effective_rate == pytest.approx(8000 / 14)


def test_per_shift_pay_without_shifts():
    result = per_shift_pay(0, 0, 1000, 1200)
    assert result.monthly_pay == 0
    assert result.effective_rate == 0


def test_tiered_call_pay():
    above = tiered_call_pay(10, 100, 150, 12)
    assert above.monthly_pay == pytest.approx(1300)
    assert above.effective_rate == pytest.approx(1300 / 12)
    below = tiered_call_pay(10, 100, 150, 8)
    assert below.annual_pay == pytest.approx(9600)


def test_coverage_type_parses_display_value():
    tier = CallTier.model_validate({"id": "X", "coverage_type": "Restricted home"})
    assert tier.coverage_type == CoverageType.RESTRICTED_HOME
