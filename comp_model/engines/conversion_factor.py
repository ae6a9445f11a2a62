# comp_model/engines/conversion_factor.py
"""
Engine for turning wRVU productivity into incentive pay under the six
conversion factor (CF) model variants.

Every variant returns *signed* incentive pay: derived wRVU compensation minus
base pay. Callers decide whether to floor the result at zero.

Note that threshold tiers *partition* wRVUs across bands while percentile
tiers *select* a single rate for all wRVUs. The two look alike in
configuration but are deliberately computed differently.
"""

import logging
from typing import Callable, Dict, List, Optional, Tuple

from comp_model.config.models import (
    BudgetNeutralCFModel,
    FTEAdjustedCFModel,
    FTEAdjustedTier,
    MarketBenchmarks,
    PercentileTieredCFModel,
    PercentileTieredCFTier,
    QualityWeightedCFModel,
    SingleCFModel,
    TieredCFModel,
    TierType,
)
from comp_model.engines.percentile import tcc_value_at_percentile, wrvu_percentile
from comp_model.utils.constants import DEFAULT_BASE_CF, P100_MULTIPLIER
from comp_model.utils.normalization import denormalize_from_fte, normalize_wrvus
from comp_model.utils.rounding import to_fixed

logger = logging.getLogger(__name__)


class ConfigurationError(ValueError):
    """A CF model was invoked without the inputs its variant requires."""


# --- Variant calculators ---


def _single(wrvus: float, cf: float, base_pay: float) -> float:
    return wrvus * cf - base_pay


def threshold_allocations(wrvus: float, model: TieredCFModel) -> List[float]:
    """
    wRVUs falling in each band of a threshold-tiered model, in tier order.

    Each threshold is the upper bound of its band; the last band (or the
    first band without a threshold) is unbounded and takes the remainder.
    """
    allocations = [0.0] * len(model.tiers)
    previous_threshold = 0.0
    for i, tier in enumerate(model.tiers):
        is_last = i == len(model.tiers) - 1
        if not is_last and tier.threshold is not None:
            band = max(0.0, tier.threshold - previous_threshold)
            allocations[i] = max(0.0, min(wrvus - previous_threshold, band))
            previous_threshold = max(previous_threshold, tier.threshold)
        else:
            allocations[i] = max(0.0, wrvus - previous_threshold)
            break
    return allocations


def percentage_allocations(wrvus: float, model: TieredCFModel) -> List[float]:
    """wRVUs in each band of a percentage-tiered model; bands are % of total."""
    allocations = [0.0] * len(model.tiers)
    previous_pct = 0.0
    for i, tier in enumerate(model.tiers):
        is_last = i == len(model.tiers) - 1
        if not is_last and tier.threshold is not None:
            end_pct = min(100.0, max(previous_pct, tier.threshold))
            allocations[i] = (end_pct - previous_pct) / 100.0 * wrvus
            previous_pct = end_pct
        else:
            allocations[i] = (100.0 - previous_pct) / 100.0 * wrvus
            break
    return allocations


def tier_allocations(wrvus: float, model: TieredCFModel) -> List[float]:
    if model.tier_type == TierType.PERCENTAGE:
        return percentage_allocations(wrvus, model)
    return threshold_allocations(wrvus, model)


def _tiered(wrvus, model: TieredCFModel, base_pay, fte, benchmarks, **kwargs) -> float:
    if not model.tiers:
        logger.warning("Tiered CF model has no tiers; wRVU compensation is 0")
        return -base_pay
    allocations = tier_allocations(wrvus, model)
    total = sum(alloc * tier.cf for alloc, tier in zip(allocations, model.tiers))
    return total - base_pay


def select_percentile_tier(
    percentile: float, tiers: Tuple[PercentileTieredCFTier, ...]
) -> PercentileTieredCFTier:
    """Tier whose [start, threshold) range contains ``percentile``; last tier otherwise."""
    for i, tier in enumerate(tiers):
        tier_start = 0.0 if i == 0 else (tiers[i - 1].percentile_threshold or 0.0)
        is_last = i == len(tiers) - 1
        if not is_last and tier.percentile_threshold is not None:
            if tier_start <= percentile < tier.percentile_threshold:
                return tier
        elif percentile >= tier_start:
            return tier
    return tiers[-1]


def _percentile_tiered(
    wrvus, model: PercentileTieredCFModel, base_pay, fte, benchmarks, **kwargs
) -> float:
    if benchmarks is None:
        raise ConfigurationError("Market benchmarks required for percentile-tiered CF model")
    if not model.tiers:
        raise ConfigurationError("Percentile-tiered CF model must have at least one tier")

    percentile = wrvu_percentile(
        normalize_wrvus(wrvus, fte or 1.0),
        benchmarks,
        p100_multiplier=kwargs.get("p100_multiplier", P100_MULTIPLIER),
    )
    tier = select_percentile_tier(percentile, model.tiers)
    logger.debug(f"wRVU percentile {percentile:.1f} selects CF ${tier.cf:.2f}")
    return _single(wrvus, tier.cf, base_pay)


def budget_neutral_cf(
    wrvus: float,
    model: BudgetNeutralCFModel,
    base_pay: float,
    fte: float,
    benchmarks: MarketBenchmarks,
    p100_multiplier: float = P100_MULTIPLIER,
) -> float:
    """CF that lands TCC at the model's target percentile (>= 0)."""
    target = tcc_value_at_percentile(
        model.target_tcc_percentile, benchmarks, p100_multiplier=p100_multiplier
    )
    if not target or target <= 0:
        fallback = model.base_cf or DEFAULT_BASE_CF
        logger.warning(
            f"Cannot resolve TCC at the {model.target_tcc_percentile:g}th percentile; "
            f"falling back to base CF ${fallback:.2f}"
        )
        return fallback

    required_tcc = denormalize_from_fte(target, fte)
    required_incentive = required_tcc - base_pay
    cf = (required_incentive + base_pay) / wrvus if wrvus > 0 else 0.0
    return max(0.0, cf)


def _budget_neutral(
    wrvus, model: BudgetNeutralCFModel, base_pay, fte, benchmarks, **kwargs
) -> float:
    if benchmarks is None:
        raise ConfigurationError("Market benchmarks required for budget-neutral CF model")
    cf = budget_neutral_cf(
        wrvus,
        model,
        base_pay,
        fte,
        benchmarks,
        p100_multiplier=kwargs.get("p100_multiplier", P100_MULTIPLIER),
    )
    return _single(wrvus, cf, base_pay)


def quality_multiplier(quality_score: float) -> float:
    """Quality score in [0, 1]; scores above 1 are read on a 0-100 scale."""
    normalized = quality_score / 100.0 if quality_score > 1 else quality_score
    return max(0.0, min(1.0, normalized))


def _quality_weighted(
    wrvus, model: QualityWeightedCFModel, base_pay, fte, benchmarks, **kwargs
) -> float:
    return _single(wrvus, model.base_cf * quality_multiplier(model.quality_score), base_pay)


def select_fte_tier(fte: float, tiers: Tuple[FTEAdjustedTier, ...]) -> FTEAdjustedTier:
    """Tier with fte_min <= fte < fte_max; the last tier's max is inclusive."""
    for i, tier in enumerate(tiers):
        if fte < tier.fte_min:
            continue
        if tier.fte_max is None:
            return tier
        is_last = i == len(tiers) - 1
        if fte < tier.fte_max or (is_last and fte <= tier.fte_max):
            return tier
    logger.debug(f"No FTE tier contains {fte}; using the last tier")
    return tiers[-1]


def _fte_adjusted(wrvus, model: FTEAdjustedCFModel, base_pay, fte, benchmarks, **kwargs) -> float:
    if not model.tiers:
        raise ConfigurationError("FTE-adjusted CF model must have at least one tier")
    return _single(wrvus, select_fte_tier(fte, model.tiers).cf, base_pay)


def _single_model(wrvus, model: SingleCFModel, base_pay, fte, benchmarks, **kwargs) -> float:
    return _single(wrvus, model.cf, base_pay)


_CALCULATORS: Dict[type, Callable[..., float]] = {
    SingleCFModel: _single_model,
    TieredCFModel: _tiered,
    PercentileTieredCFModel: _percentile_tiered,
    BudgetNeutralCFModel: _budget_neutral,
    QualityWeightedCFModel: _quality_weighted,
    FTEAdjustedCFModel: _fte_adjusted,
}


def incentive_pay(
    wrvus: float,
    model,
    base_pay: float,
    fte: float,
    benchmarks: Optional[MarketBenchmarks] = None,
    p100_multiplier: float = P100_MULTIPLIER,
) -> float:
    """
    Incentive pay for ``wrvus`` under a CF model.

    Args:
        wrvus: Annual wRVUs (not FTE-normalized)
        model: Any ConversionFactorModel variant
        base_pay: Base salary subtracted from wRVU compensation
        fte: Clinical FTE in (0, 1]
        benchmarks: Market benchmarks; required for percentile-tiered and
            budget-neutral models

    Returns:
        Signed incentive pay (negative when wRVU compensation is below base pay)

    Raises:
        ConfigurationError: a benchmark-dependent model without benchmarks
    """
    calculator = _CALCULATORS.get(type(model))
    if calculator is None:
        raise TypeError(f"Unknown CF model type: {type(model).__name__}")
    return calculator(wrvus, model, base_pay, fte, benchmarks, p100_multiplier=p100_multiplier)


def clinical_dollars(
    wrvus: float,
    model,
    fte: float,
    benchmarks: Optional[MarketBenchmarks] = None,
    p100_multiplier: float = P100_MULTIPLIER,
) -> float:
    """wRVU compensation produced by a model, floored at 0."""
    if isinstance(model, SingleCFModel):
        return wrvus * model.cf
    return max(0.0, incentive_pay(wrvus, model, 0.0, fte, benchmarks, p100_multiplier))


def effective_cf(
    wrvus: float,
    model,
    fte: float,
    benchmarks: Optional[MarketBenchmarks] = None,
    p100_multiplier: float = P100_MULTIPLIER,
) -> float:
    """Clinical dollars per wRVU implied by ``model``; 0 when wRVUs are 0."""
    if wrvus <= 0:
        return 0.0
    return clinical_dollars(wrvus, model, fte, benchmarks, p100_multiplier) / wrvus


# --- Summaries ---


def _num(value: float) -> str:
    """Shortest plain rendering of a number: 4000 -> '4000', 4.5 -> '4.5'."""
    value = float(value)
    if value.is_integer():
        return str(int(value))
    return repr(value)


def _thousands(value: float) -> str:
    return f"{_num(value / 1000)}K" if value >= 1000 else _num(value)


def _money(value: float) -> str:
    return f"${to_fixed(value)}"


def _summarize_single(model: SingleCFModel) -> str:
    return f"Single CF: ${to_fixed(model.cf, grouping=True)}/wRVU"


def _summarize_tiered(model: TieredCFModel) -> str:
    # Unlike the allocation loop, a non-final tier without a threshold does
    # not end the summary; later tiers are still listed.
    parts = []
    previous = 0.0
    for i, tier in enumerate(model.tiers):
        is_last = i == len(model.tiers) - 1
        if not is_last and tier.threshold is not None:
            if model.tier_type == TierType.THRESHOLD:
                parts.append(
                    f"{_thousands(previous)}-{_thousands(tier.threshold)} @ {_money(tier.cf)}"
                )
            else:
                parts.append(f"{_num(previous)}%-{_num(tier.threshold)}% @ {_money(tier.cf)}")
            previous = tier.threshold
        elif model.tier_type == TierType.THRESHOLD:
            parts.append(f"{_thousands(previous)}+ @ {_money(tier.cf)}")
        else:
            parts.append(f"{_num(previous)}%+ @ {_money(tier.cf)}")
    return f"Tiered: {'; '.join(parts)}"


def _summarize_percentile_tiered(model: PercentileTieredCFModel) -> str:
    parts = []
    previous = 0.0
    for i, tier in enumerate(model.tiers):
        is_last = i == len(model.tiers) - 1
        if not is_last and tier.percentile_threshold is not None:
            parts.append(f"{_num(previous)}-{_num(tier.percentile_threshold)}th @ {_money(tier.cf)}")
            previous = tier.percentile_threshold
        else:
            parts.append(f"{_num(previous)}th+ @ {_money(tier.cf)}")
    return f"Percentile Tiered: {'; '.join(parts)}"


def _summarize_budget_neutral(model: BudgetNeutralCFModel) -> str:
    return f"Budget Neutral: Target {_num(model.target_tcc_percentile)}th percentile"


def _summarize_quality_weighted(model: QualityWeightedCFModel) -> str:
    score = model.quality_score
    quality_pct = score if score > 1 else score * 100
    return f"Quality Weighted: {_money(model.base_cf)} base @ {to_fixed(quality_pct, 0)}% quality"


def _summarize_fte_adjusted(model: FTEAdjustedCFModel) -> str:
    parts = []
    last_index = len(model.tiers) - 1
    for i, tier in enumerate(model.tiers):
        if i == 0 and tier.fte_min == 0 and tier.fte_max is not None:
            parts.append(f"<{_num(tier.fte_max)} @ {_money(tier.cf)}")
        elif i == last_index or tier.fte_max is None:
            parts.append(f">{_num(tier.fte_min)} @ {_money(tier.cf)}")
        else:
            parts.append(f"{_num(tier.fte_min)}-{_num(tier.fte_max)} @ {_money(tier.cf)}")
    return f"FTE Adjusted: {'; '.join(parts)}"


_SUMMARIZERS: Dict[type, Callable[..., str]] = {
    SingleCFModel: _summarize_single,
    TieredCFModel: _summarize_tiered,
    PercentileTieredCFModel: _summarize_percentile_tiered,
    BudgetNeutralCFModel: _summarize_budget_neutral,
    QualityWeightedCFModel: _summarize_quality_weighted,
    FTEAdjustedCFModel: _summarize_fte_adjusted,
}


def cf_model_summary(model) -> str:
    """Human-readable one-line description of a CF model configuration."""
    summarizer = _SUMMARIZERS.get(type(model))
    if summarizer is None:
        return "Unknown CF Model"
    return summarizer(model)


__all__ = [
    "ConfigurationError",
    "incentive_pay",
    "clinical_dollars",
    "effective_cf",
    "budget_neutral_cf",
    "quality_multiplier",
    "tier_allocations",
    "threshold_allocations",
    "percentage_allocations",
    "select_percentile_tier",
    "select_fte_tier",
    "cf_model_summary",
]
