# comp_model/benchmarks/internal.py
"""
Internal benchmarks: percentiles computed from the organization's own
provider records, optionally blended with survey data, and the CF range
recommended from the result.

QuickStart:
    internal = percentiles_from_records(records)          # list or DataFrame
    blended = blend(internal, survey, BlendingMode.BLENDED)
    rec = recommend_cf(blended, model_year=2025)
"""

import logging
from typing import Iterable, Optional, Union

import numpy as np
import pandas as pd

from comp_model.config.models import (
    BlendedBenchmarks,
    BlendingMode,
    BlendingWeights,
    CFRecommendation,
    ComparisonMetrics,
    InternalPercentiles,
    MarketBenchmarks,
    PercentileDifferences,
    ProviderRecord,
)
from comp_model.engines.percentile import tcc_percentile
from comp_model.utils.constants import (
    BENCHMARK_PERCENTILES,
    CF_COLLAR_PCT,
    DEFAULT_BLEND_WEIGHT,
)
from comp_model.utils.normalization import calculate_effective_cf

logger = logging.getLogger(__name__)

RECORD_COLS = ["wrvus", "tcc", "fte"]

_METRICS = ("wrvu", "tcc")

RecordsLike = Union[pd.DataFrame, Iterable[ProviderRecord]]


def _to_frame(records: RecordsLike) -> pd.DataFrame:
    if isinstance(records, pd.DataFrame):
        missing = [c for c in RECORD_COLS if c not in records.columns]
        if missing:
            raise KeyError(f"Provider records missing columns: {missing}")
        return records[RECORD_COLS].astype(float)
    rows = [r.model_dump(include=set(RECORD_COLS)) for r in records]
    return pd.DataFrame(rows, columns=RECORD_COLS, dtype=float)


def normalize_provider_data(records: RecordsLike) -> pd.DataFrame:
    """
    FTE-normalized wRVUs and TCC for every record with positive FTE.

    Returns a DataFrame with ``normalized_wrvus`` and ``normalized_tcc``
    columns; records with zero FTE are dropped.
    """
    df = _to_frame(records)
    active = df[df["fte"] > 0]
    dropped = len(df) - len(active)
    if dropped:
        logger.debug(f"Dropped {dropped} provider records with non-positive FTE")
    return pd.DataFrame(
        {
            "normalized_wrvus": active["wrvus"] / active["fte"],
            "normalized_tcc": active["tcc"] / active["fte"],
        }
    ).reset_index(drop=True)


def percentiles_from_records(records: RecordsLike) -> Optional[InternalPercentiles]:
    """
    25th/50th/75th/90th percentiles of FTE-normalized wRVUs and TCC.

    Order statistics use linear interpolation between adjacent ranks at
    ``index = p/100 x (n - 1)``. Returns None when no record has positive FTE.
    """
    normalized = normalize_provider_data(records)
    if normalized.empty:
        logger.warning("No provider records with positive FTE; internal percentiles unavailable")
        return None

    values = {}
    for metric, column in zip(_METRICS, normalized.columns):
        quantiles = np.percentile(
            normalized[column].to_numpy(), BENCHMARK_PERCENTILES, method="linear"
        )
        for rank, q in zip(BENCHMARK_PERCENTILES, quantiles):
            values[f"{metric}{rank}"] = float(q)
    logger.debug(f"Internal percentiles from {len(normalized)} providers: {values}")
    return InternalPercentiles(**values)


def _survey_value(survey: MarketBenchmarks, key: str) -> float:
    return getattr(survey, key) or 0.0


def blend(
    internal: InternalPercentiles,
    survey: MarketBenchmarks,
    mode: Union[BlendingMode, str],
    weights: Optional[BlendingWeights] = None,
) -> BlendedBenchmarks:
    """
    Combine internal and survey percentiles point by point.

    ``survey-only`` and ``internal-only`` pass one source through (a missing
    survey point becomes 0). ``blended`` takes a weighted mean; a zero or
    missing weight falls back to 0.5.
    """
    mode = BlendingMode(mode)
    keys = [f"{m}{rank}" for m in _METRICS for rank in BENCHMARK_PERCENTILES]

    if mode == BlendingMode.SURVEY_ONLY:
        return BlendedBenchmarks(mode=mode, **{k: _survey_value(survey, k) for k in keys})
    if mode == BlendingMode.INTERNAL_ONLY:
        return BlendedBenchmarks(mode=mode, **{k: getattr(internal, k) for k in keys})

    internal_weight = (weights.internal_weight if weights else 0.0) or DEFAULT_BLEND_WEIGHT
    survey_weight = (weights.survey_weight if weights else 0.0) or DEFAULT_BLEND_WEIGHT
    applied = BlendingWeights(internal_weight=internal_weight, survey_weight=survey_weight)
    blended = {
        k: getattr(internal, k) * internal_weight + _survey_value(survey, k) * survey_weight
        for k in keys
    }
    return BlendedBenchmarks(mode=mode, weights=applied, **blended)


def _justification(blended: BlendedBenchmarks) -> str:
    if blended.mode == BlendingMode.BLENDED:
        weights = blended.weights or BlendingWeights()
        source = (
            f"({weights.internal_weight * 100:.0f}% internal / "
            f"{weights.survey_weight * 100:.0f}% survey)"
        )
    else:
        source = blended.mode.value
    return f"Based on blended {source} benchmarks"


def recommend_cf(blended: BlendedBenchmarks, model_year: int) -> CFRecommendation:
    """
    CF range implied by the blended curves.

    Median is TCC50/wRVU50; the range is at least +/-10% around it and
    widens to the 25th/75th implied CFs when those are further out.
    """
    cf = {
        rank: calculate_effective_cf(getattr(blended, f"tcc{rank}"), getattr(blended, f"wrvu{rank}"))
        for rank in BENCHMARK_PERCENTILES
    }
    return CFRecommendation(
        min_cf=min(cf[25], cf[50] * (1 - CF_COLLAR_PCT)),
        max_cf=max(cf[75], cf[50] * (1 + CF_COLLAR_PCT)),
        median_cf=cf[50],
        justification=_justification(blended),
        model_year=model_year,
    )


def _differences(internal: InternalPercentiles, survey: MarketBenchmarks, metric: str):
    absolute, percent = {}, {}
    for rank in BENCHMARK_PERCENTILES:
        mine = getattr(internal, f"{metric}{rank}")
        theirs = getattr(survey, f"{metric}{rank}")
        if not theirs:
            absolute[f"p{rank}"] = percent[f"p{rank}"] = 0.0
            continue
        absolute[f"p{rank}"] = mine - theirs
        percent[f"p{rank}"] = (mine - theirs) / theirs * 100.0
    return PercentileDifferences(**absolute), PercentileDifferences(**percent)


def comparison_metrics(internal: InternalPercentiles, survey: MarketBenchmarks) -> ComparisonMetrics:
    """Absolute and percent gaps of internal over survey, per percentile."""
    wrvu_abs, wrvu_pct = _differences(internal, survey, "wrvu")
    tcc_abs, tcc_pct = _differences(internal, survey, "tcc")
    return ComparisonMetrics(
        wrvu_difference=wrvu_abs,
        tcc_difference=tcc_abs,
        wrvu_percent_difference=wrvu_pct,
        tcc_percent_difference=tcc_pct,
    )


def justification_text(
    internal: InternalPercentiles,
    survey: MarketBenchmarks,
    blended: BlendedBenchmarks,
    recommendation: CFRecommendation,
) -> str:
    """Executive summary sentence set for the recommended CF range."""
    metrics = comparison_metrics(internal, survey)
    wrvu_gap = metrics.wrvu_percent_difference.p50
    tcc_gap = metrics.tcc_percent_difference.p50
    internal_tcc_pct = tcc_percentile(internal.tcc50, survey)

    lines = [
        f"For FY{recommendation.model_year} - Suggested CF Range: "
        f"${recommendation.min_cf:.2f}-${recommendation.max_cf:.2f}",
        f"Median internal provider TCC is at the {internal_tcc_pct:.0f}th percentile of survey data.",
    ]
    if wrvu_gap > 0:
        lines.append(f"Internal productivity levels are {abs(wrvu_gap):.0f}% above survey median,")
    elif wrvu_gap < 0:
        lines.append(f"Internal productivity levels are {abs(wrvu_gap):.0f}% below survey median,")
    else:
        lines.append("Internal productivity levels align with survey median,")

    if tcc_gap > 5:
        lines.append(
            "suggesting current CF may be above market. Consider reviewing compensation structure."
        )
    elif tcc_gap < -5:
        lines.append(
            "suggesting current CF may be below market. "
            "Consider adjustment to remain competitive."
        )
    else:
        lines.append(
            "suggesting current CF is likely sufficient. "
            "Recommend no increase unless recruitment pressure emerges."
        )
    logger.debug(f"Justification built from {blended.mode.value} benchmarks")
    return " ".join(lines)


__all__ = [
    "normalize_provider_data",
    "percentiles_from_records",
    "blend",
    "recommend_cf",
    "comparison_metrics",
    "justification_text",
]
