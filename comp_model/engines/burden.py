# comp_model/engines/burden.py
"""
Expected call burden per provider and how evenly a group shares it.

A tier's annual calls (weekday and weekend calls per month x 12, plus
holidays) are split across eligible providers in proportion to FTE. The
burden index is each provider's percent deviation from an even per-head
split, so part-time providers show negative indices.

QuickStart:
    results = expected_burden(section.providers, tier.burden)
    summary = fairness_metrics(results)
"""

import logging
from typing import Iterable, List, Sequence

import numpy as np

from comp_model.config.models import (
    CallProvider,
    CallTier,
    CallTierBurden,
    FairnessSummary,
    ProviderBurden,
)
from comp_model.utils.constants import MONTHS_PER_YEAR
from comp_model.utils.rounding import round_half_up

logger = logging.getLogger(__name__)


def providers_for_tier(providers: Iterable[CallProvider], tier: CallTier) -> List[CallProvider]:
    """Providers assigned to ``tier``; a provider without a tier covers every tier."""
    return [p for p in providers if p.tier_id is None or p.tier_id == tier.id]


def expected_burden(
    providers: Iterable[CallProvider], burden: CallTierBurden
) -> List[ProviderBurden]:
    """
    FTE-proportional share of a tier's annual calls for each eligible provider.

    Returns an empty list when nobody is eligible, and all-zero rows when the
    eligible providers carry no FTE between them.
    """
    eligible = [p for p in providers if p.eligible_for_call]
    if not eligible:
        return []

    weekday = burden.weekday_calls_per_month * MONTHS_PER_YEAR
    weekend = burden.weekend_calls_per_month * MONTHS_PER_YEAR
    holiday = burden.holidays_per_year
    total_fte = sum(p.fte for p in eligible)

    if total_fte == 0:
        logger.warning(f"{len(eligible)} eligible providers have zero total FTE")
        return [
            ProviderBurden(provider_id=p.id, provider_name=p.name, fte=p.fte) for p in eligible
        ]

    group_average = (weekday + weekend + holiday) / len(eligible)
    results = []
    for provider in eligible:
        share = provider.fte / total_fte
        total = (weekday + weekend + holiday) * share
        index = (total - group_average) / group_average * 100.0 if group_average > 0 else 0.0
        results.append(
            ProviderBurden(
                provider_id=provider.id,
                provider_name=provider.name,
                fte=provider.fte,
                expected_weekday_calls=weekday * share,
                expected_weekend_calls=weekend * share,
                expected_holiday_calls=holiday * share,
                total_expected_calls=total,
                burden_index=index,
            )
        )
    return results


def fairness_metrics(results: Sequence[ProviderBurden]) -> FairnessSummary:
    """
    Spread of expected calls across providers.

    The fairness score is ``100 x (1 - 2 x CV)`` clamped to [0, 100], where
    CV is the population standard deviation over the mean; a CV of 0.5 or
    more scores 0. Scores are rounded to one decimal.
    """
    if not results:
        return FairnessSummary()

    calls = np.array([r.total_expected_calls for r in results], dtype=float)
    average = float(calls.mean())
    std = float(calls.std())

    score = 100.0
    if average > 0:
        score = float(np.clip(100.0 * (1 - 2 * std / average), 0.0, 100.0))

    return FairnessSummary(
        average_calls=average,
        min_calls=float(calls.min()),
        max_calls=float(calls.max()),
        standard_deviation=std,
        fairness_score=round_half_up(score, 1),
        total_eligible_fte=sum(r.fte for r in results),
        eligible_provider_count=len(results),
    )


__all__ = ["providers_for_tier", "expected_burden", "fairness_metrics"]
