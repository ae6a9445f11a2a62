# comp_model/engines/call_pay_validation.py
"""
Plausibility checks for a call-pay setup.

Errors mark a schedule that cannot be priced (a rotation the group cannot
staff); warnings mark values outside the usual range that are still
computable. Nothing here raises: callers decide whether to stop.

QuickStart:
    result = validate_call_pay(section.context, section.tiers)
    if not result.is_valid:
        ...
"""

import logging
from typing import Iterable, List

from comp_model.config.models import (
    CallPayContext,
    CallTier,
    PaymentMethod,
    ValidationResult,
)
from comp_model.utils.constants import (
    MAX_HOLIDAYS_PER_YEAR,
    MAX_MODEL_YEAR,
    MAX_WEEKDAY_CALLS_PER_MONTH,
    MAX_WEEKEND_CALLS_PER_MONTH,
    MIN_MODEL_YEAR,
)

logger = logging.getLogger(__name__)

_RATE_METHODS = frozenset({PaymentMethod.DAILY_SHIFT_RATE, PaymentMethod.HOURLY_RATE})
_CASE_METHODS = frozenset({PaymentMethod.PER_PROCEDURE, PaymentMethod.PER_WRVU})

ROTATION_TOO_LOW = "Rotation ratio must be at least 1."


def _schedule_warnings(tier: CallTier) -> List[str]:
    burden, rates = tier.burden, tier.rates
    warnings = []
    if burden.weekday_calls_per_month > MAX_WEEKDAY_CALLS_PER_MONTH:
        warnings.append(
            f"Weekday calls ({burden.weekday_calls_per_month:g}) exceeds typical business days "
            f"per month ({MAX_WEEKDAY_CALLS_PER_MONTH}). Verify this is correct."
        )
    if burden.weekend_calls_per_month > MAX_WEEKEND_CALLS_PER_MONTH:
        warnings.append(
            f"Weekend calls ({burden.weekend_calls_per_month:g}) exceeds typical weekends per "
            "month (8-9). Verify this is correct."
        )
    if burden.holidays_per_year > MAX_HOLIDAYS_PER_YEAR:
        warnings.append(
            f"Holidays per year ({burden.holidays_per_year:g}) seems high. Typical range is 8-12."
        )
    all_zero = not (rates.weekday or rates.weekend or rates.holiday)
    if tier.payment_method in _RATE_METHODS and all_zero:
        warnings.append("All rates are $0. Verify this is intentional.")
    if tier.payment_method in _CASE_METHODS and not (
        burden.avg_cases_per_24h or burden.avg_callbacks_per_24h
    ):
        warnings.append(
            f'{tier.payment_method.value} requires "Avg Cases per 24h" or '
            '"Avg Callbacks per 24h" to calculate pay.'
        )
    return warnings


def _rotation_errors(context: CallPayContext) -> List[str]:
    errors = []
    if context.rotation_ratio > context.providers_on_call:
        errors.append(
            f"Rotation ratio (1-in-{context.rotation_ratio:g}) exceeds providers on call "
            f"({context.providers_on_call}). This is mathematically impossible."
        )
    if context.rotation_ratio < 1:
        errors.append(ROTATION_TOO_LOW)
    return errors


def validate_tier(tier: CallTier, context: CallPayContext) -> ValidationResult:
    """Check one tier's schedule and the rotation it runs on. Disabled tiers always pass."""
    if not tier.enabled:
        return ValidationResult()
    return ValidationResult(
        errors=tuple(_rotation_errors(context)),
        warnings=tuple(_schedule_warnings(tier)),
    )


def validate_context(context: CallPayContext) -> ValidationResult:
    errors, warnings = [], []
    if context.providers_on_call < 1:
        errors.append("Must have at least 1 provider on call.")
    if context.rotation_ratio < 1:
        errors.append(ROTATION_TOO_LOW)
    if not MIN_MODEL_YEAR <= context.model_year <= MAX_MODEL_YEAR:
        warnings.append("Model year seems unusual. Verify this is correct.")
    return ValidationResult(errors=tuple(errors), warnings=tuple(warnings))


def validate_call_pay(context: CallPayContext, tiers: Iterable[CallTier]) -> ValidationResult:
    """
    Context checks plus every enabled tier's checks, as one result.

    Rotation errors are reported once, not per tier. Tier warnings are
    prefixed with the tier label.
    """
    context_result = validate_context(context)
    errors = list(context_result.errors)
    warnings = list(context_result.warnings)

    enabled = [t for t in tiers if t.enabled]
    if enabled:
        errors.extend(e for e in _rotation_errors(context) if e not in errors)
    for tier in enabled:
        warnings.extend(f"{tier.label}: {w}" for w in _schedule_warnings(tier))

    result = ValidationResult(errors=tuple(errors), warnings=tuple(warnings))
    logger.debug(
        f"Call-pay validation: {len(result.errors)} errors, {len(result.warnings)} warnings "
        f"across {len(enabled)} enabled tiers"
    )
    return result


__all__ = ["validate_tier", "validate_context", "validate_call_pay"]
