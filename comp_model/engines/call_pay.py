# comp_model/engines/call_pay.py
"""
Call-pay tier arithmetic: monthly and annual pay per provider, effective
rates, group-level impact, and rate percentiles against call-pay surveys.

Annual pay per provider is ``monthly x 12 / rotation_ratio``: monthly pay is
what the whole call schedule earns, and a 1-in-N rotation gives each
provider an N-th of it.
"""

import logging
from typing import Iterable, Optional

from comp_model.config.models import (
    BenchmarkPoints,
    CallPayBenchmarks,
    CallPayContext,
    CallPayImpact,
    CallPayResults,
    CallTier,
    PaymentMethod,
    RatePercentiles,
    TierImpact,
)
from comp_model.engines.percentile import percentile_of
from comp_model.utils.constants import DEFAULT_PERCENTILE, HOURS_PER_SHIFT, MONTHS_PER_YEAR

logger = logging.getLogger(__name__)


def _shift_monthly(tier: CallTier) -> float:
    rates, burden = tier.rates, tier.burden
    return (
        burden.weekday_calls_per_month * rates.weekday
        + burden.weekend_calls_per_month * rates.weekend
        + (burden.holidays_per_year / MONTHS_PER_YEAR) * rates.holiday
    )


def _hourly_monthly(tier: CallTier) -> float:
    return _shift_monthly(tier) * HOURS_PER_SHIFT


def _stipend_monthly(tier: CallTier) -> float:
    return tier.rates.weekday / MONTHS_PER_YEAR


def _retainer_monthly(tier: CallTier) -> float:
    return tier.rates.weekday


def _per_case_monthly(tier: CallTier) -> float:
    """
    Weekday rate x cases per call x calls per month.

    Every case is priced at the weekday rate; weekend and holiday cases
    are not priced separately, and holidays add no cases.
    """
    return tier.burden.cases_per_call * tier.burden.calls_per_month * tier.rates.weekday


_MONTHLY_PAY = {
    PaymentMethod.ANNUAL_STIPEND: _stipend_monthly,
    PaymentMethod.DAILY_SHIFT_RATE: _shift_monthly,
    PaymentMethod.HOURLY_RATE: _hourly_monthly,
    PaymentMethod.MONTHLY_RETAINER: _retainer_monthly,
    PaymentMethod.PER_PROCEDURE: _per_case_monthly,
    PaymentMethod.PER_WRVU: _per_case_monthly,
}

# Methods whose $/call is measured against callbacks/cases rather than calls.
_PER_CASE_METHODS = frozenset({PaymentMethod.PER_PROCEDURE, PaymentMethod.PER_WRVU})


def tier_monthly_pay(tier: CallTier) -> float:
    """Schedule-level monthly pay for an enabled tier, trauma uplift included."""
    if not tier.enabled:
        return 0.0
    monthly = _MONTHLY_PAY[tier.payment_method](tier)
    uplift = tier.rates.trauma_uplift_percent
    if uplift and uplift > 0:
        monthly *= 1 + uplift / 100.0
    return monthly


def tier_annual_pay(tier: CallTier, context: CallPayContext) -> float:
    """Annual call pay per provider for ``tier`` under the context's rotation."""
    if not tier.enabled:
        return 0.0
    if context.rotation_ratio <= 0:
        logger.warning(
            f"Tier {tier.label}: rotation ratio {context.rotation_ratio} is not positive; "
            "annual pay set to 0"
        )
        return 0.0
    return tier_monthly_pay(tier) * MONTHS_PER_YEAR / context.rotation_ratio


def effective_dollars_per_24h(tier: CallTier, context: CallPayContext) -> float:
    """Annual pay per provider divided by calls per year (holidays included)."""
    if not tier.enabled:
        return 0.0
    total_calls = tier.burden.calls_per_year
    if total_calls == 0:
        return 0.0
    return tier_annual_pay(tier, context) / total_calls


def effective_dollars_per_call(tier: CallTier, context: CallPayContext) -> float:
    """
    Annual pay per provider per unit of work.

    Per-procedure and per-wRVU tiers divide by callbacks/cases per year; every
    other method divides by calls per year.
    """
    if not tier.enabled:
        return 0.0
    denominator = tier.burden.calls_per_year
    if tier.payment_method in _PER_CASE_METHODS:
        denominator *= tier.burden.cases_per_call
    if denominator == 0:
        return 0.0
    return tier_annual_pay(tier, context) / denominator


def call_pay_impact(
    tiers: Iterable[CallTier],
    context: CallPayContext,
    tcc_reference: Optional[float] = None,
) -> CallPayImpact:
    """Roll enabled tiers up into per-tier and group-level call spend."""
    impacts = []
    for tier in tiers:
        if not tier.enabled:
            continue
        per_provider = tier_annual_pay(tier, context)
        impacts.append(
            TierImpact(
                tier_id=tier.id,
                tier_name=tier.label,
                annual_pay_per_provider=per_provider,
                annual_pay_for_group=per_provider * context.providers_on_call,
                effective_dollars_per_24h=effective_dollars_per_24h(tier, context),
                effective_dollars_per_call=effective_dollars_per_call(tier, context),
            )
        )

    total = sum(i.annual_pay_for_group for i in impacts)
    average = sum(i.annual_pay_per_provider for i in impacts) / len(impacts) if impacts else 0.0
    pct_of_tcc = (
        average / tcc_reference * 100.0 if tcc_reference and tcc_reference > 0 else None
    )
    logger.debug(
        f"Call pay impact for {context.specialty or 'unspecified specialty'}: "
        f"{len(impacts)} tiers, total spend {total:,.2f}"
    )
    return CallPayImpact(
        tiers=tuple(impacts),
        total_annual_call_spend=total,
        average_call_pay_per_provider=average,
        call_pay_per_1fte=average * context.rotation_ratio,
        call_pay_as_percent_of_tcc=pct_of_tcc,
    )


# --- Rate benchmarking ---


def rate_percentile(rate: float, points: Optional[BenchmarkPoints] = None) -> float:
    """Percentile of a call rate; the neutral default without a survey curve."""
    if points is None:
        return DEFAULT_PERCENTILE
    return percentile_of(rate, points)


def rate_percentiles(
    weekday_rate: float,
    weekend_rate: float,
    holiday_rate: float,
    benchmarks: CallPayBenchmarks,
) -> RatePercentiles:
    return RatePercentiles(
        weekday_percentile=rate_percentile(weekday_rate, benchmarks.weekday),
        weekend_percentile=rate_percentile(weekend_rate, benchmarks.weekend),
        holiday_percentile=rate_percentile(holiday_rate, benchmarks.holiday),
    )


# --- Simple call-pay structures ---


def _results(monthly_pay: float, units: float) -> CallPayResults:
    return CallPayResults(
        monthly_pay=monthly_pay,
        annual_pay=monthly_pay * MONTHS_PER_YEAR,
        effective_rate=monthly_pay / units if units > 0 else 0.0,
    )


def per_call_stipend(
    weekday_calls_per_month: float,
    weekend_calls_per_month: float,
    weekday_stipend: float,
    weekend_stipend: float,
) -> CallPayResults:
    monthly = weekday_calls_per_month * weekday_stipend + weekend_calls_per_month * weekend_stipend
    return _results(monthly, weekday_calls_per_month + weekend_calls_per_month)


def per_shift_pay(
    weekday_shifts_per_month: float,
    weekend_shifts_per_month: float,
    weekday_rate: float,
    weekend_rate: float,
) -> CallPayResults:
    monthly = weekday_shifts_per_month * weekday_rate + weekend_shifts_per_month * weekend_rate
    return _results(monthly, weekday_shifts_per_month + weekend_shifts_per_month)


def tiered_call_pay(
    threshold: float,
    rate_below_threshold: float,
    rate_above_threshold: float,
    actual_calls_or_shifts: float,
) -> CallPayResults:
    """Calls up to ``threshold`` pay the lower rate, the rest the upper rate."""
    if actual_calls_or_shifts <= threshold:
        monthly = actual_calls_or_shifts * rate_below_threshold
    else:
        monthly = (
            threshold * rate_below_threshold
            + (actual_calls_or_shifts - threshold) * rate_above_threshold
        )
    return _results(monthly, actual_calls_or_shifts)


__all__ = [
    "tier_monthly_pay",
    "tier_annual_pay",
    "effective_dollars_per_24h",
    "effective_dollars_per_call",
    "call_pay_impact",
    "rate_percentile",
    "rate_percentiles",
    "per_call_stipend",
    "per_shift_pay",
    "tiered_call_pay",
]
