# comp_model/engines/percentile.py
"""
Percentile <-> value conversion against sparse survey curves.

The four published points (25th/50th/75th/90th) are treated as a
piecewise-linear monotone curve:

- below the 25th: a straight line through the origin,
- above the 90th: a line to a synthetic 100th point at ``p100_multiplier`` x p90,
- in between: linear interpolation across the bracketing pair of adjacent
  published points.

When the curve cannot bracket a value the neutral default (50th) is returned
and the estimate is flagged as a default so callers can surface low
confidence.
"""

import logging
from typing import Dict, Mapping, Optional, Union

from comp_model.config.models import (
    BenchmarkPoints,
    MarketBenchmarks,
    Metric,
    PercentileEstimate,
)
from comp_model.utils.constants import DEFAULT_PERCENTILE, P100_MULTIPLIER

logger = logging.getLogger(__name__)

# Adjacent published ranks, in curve order.
_BRACKETS = ((25, 50), (50, 75), (75, 90))

PointsLike = Union[BenchmarkPoints, Mapping[str, Optional[float]], None]


def _as_points(points: PointsLike) -> BenchmarkPoints:
    if points is None:
        return BenchmarkPoints()
    if isinstance(points, BenchmarkPoints):
        return points
    return BenchmarkPoints(**dict(points))


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def estimate_percentile(
    value: float,
    points: PointsLike,
    p100_multiplier: float = P100_MULTIPLIER,
    default_percentile: float = DEFAULT_PERCENTILE,
) -> PercentileEstimate:
    """
    Locate ``value`` on the benchmark curve.

    Returns:
        PercentileEstimate with ``is_default`` set when the neutral default
        was used because the curve had no usable bracket.
    """
    avail: Dict[int, float] = _as_points(points).available()
    if not avail:
        logger.debug("No benchmark points available; using default percentile")
        return PercentileEstimate(percentile=default_percentile, is_default=True)

    if value <= 0:
        return PercentileEstimate(percentile=0.0)

    p25 = avail.get(25)
    if p25 is not None and value < p25:
        return PercentileEstimate(percentile=_clamp(25.0 * value / p25, 0.0, 25.0))

    p90 = avail.get(90)
    if p90 is not None and value > p90:
        p100 = p90 * p100_multiplier
        if value >= p100:
            return PercentileEstimate(percentile=100.0)
        ratio = (value - p90) / (p100 - p90)
        return PercentileEstimate(percentile=_clamp(90.0 + ratio * 10.0, 90.0, 100.0))

    for lo_rank, hi_rank in _BRACKETS:
        lo, hi = avail.get(lo_rank), avail.get(hi_rank)
        if lo is None or hi is None or not lo <= value <= hi:
            continue
        if hi == lo:
            return PercentileEstimate(percentile=float(lo_rank))
        ratio = (value - lo) / (hi - lo)
        return PercentileEstimate(percentile=lo_rank + ratio * (hi_rank - lo_rank))

    for rank, point in avail.items():
        if value == point:
            return PercentileEstimate(percentile=float(rank))

    logger.debug(
        f"Value {value} cannot be bracketed by benchmark points {avail}; "
        f"using default percentile {default_percentile}"
    )
    return PercentileEstimate(percentile=default_percentile, is_default=True)


def percentile_of(
    value: float,
    points: PointsLike,
    p100_multiplier: float = P100_MULTIPLIER,
    default_percentile: float = DEFAULT_PERCENTILE,
) -> float:
    """Percentile in [0, 100] of ``value`` against a 4-point benchmark curve."""
    return estimate_percentile(value, points, p100_multiplier, default_percentile).percentile


def value_at_percentile(
    percentile: float,
    points: PointsLike,
    p100_multiplier: float = P100_MULTIPLIER,
) -> Optional[float]:
    """
    Inverse of :func:`percentile_of`: the value sitting at ``percentile``.

    Returns None when there are no benchmark points or the requested
    percentile falls in a gap of the curve.
    """
    avail = _as_points(points).available()
    if not avail:
        return None

    if percentile <= 0:
        return 0.0

    p90 = avail.get(90)
    if percentile >= 100:
        return p90 * p100_multiplier if p90 is not None else None

    p25 = avail.get(25)
    if percentile < 25 and p25 is not None:
        return p25 * (percentile / 25.0)

    if percentile > 90 and p90 is not None:
        p100 = p90 * p100_multiplier
        return p90 + (p100 - p90) * ((percentile - 90.0) / 10.0)

    for lo_rank, hi_rank in _BRACKETS:
        lo, hi = avail.get(lo_rank), avail.get(hi_rank)
        if lo is None or hi is None or not lo_rank <= percentile <= hi_rank:
            continue
        ratio = (percentile - lo_rank) / (hi_rank - lo_rank)
        return lo + (hi - lo) * ratio

    if percentile in avail:
        return avail[int(percentile)]

    logger.debug(f"Percentile {percentile} falls in a gap of benchmark points {avail}")
    return None


# --- Metric wrappers over MarketBenchmarks ---


def wrvu_percentile(normalized_wrvus: float, benchmarks: MarketBenchmarks, **kwargs) -> float:
    return percentile_of(normalized_wrvus, benchmarks.points(Metric.WRVU), **kwargs)


def tcc_percentile(normalized_tcc: float, benchmarks: MarketBenchmarks, **kwargs) -> float:
    return percentile_of(normalized_tcc, benchmarks.points(Metric.TCC), **kwargs)


def cf_percentile(effective_cf: float, benchmarks: MarketBenchmarks, **kwargs) -> float:
    return percentile_of(effective_cf, benchmarks.points(Metric.CF), **kwargs)


def percentile_for_value(
    value: float,
    metric: Union[Metric, str],
    benchmarks: MarketBenchmarks,
    **kwargs,
) -> float:
    """Percentile of ``value`` on the curve for ``metric`` (wrvu, tcc or cf)."""
    try:
        metric = Metric(metric)
    except ValueError:
        logger.warning(f"Unknown benchmark metric {metric!r}; using default percentile")
        return kwargs.get("default_percentile", DEFAULT_PERCENTILE)
    return percentile_of(value, benchmarks.points(metric), **kwargs)


def tcc_value_at_percentile(
    percentile: float, benchmarks: MarketBenchmarks, **kwargs
) -> Optional[float]:
    return value_at_percentile(percentile, benchmarks.points(Metric.TCC), **kwargs)


def wrvu_value_at_percentile(
    percentile: float, benchmarks: MarketBenchmarks, **kwargs
) -> Optional[float]:
    return value_at_percentile(percentile, benchmarks.points(Metric.WRVU), **kwargs)


__all__ = [
    "estimate_percentile",
    "percentile_of",
    "value_at_percentile",
    "wrvu_percentile",
    "tcc_percentile",
    "cf_percentile",
    "percentile_for_value",
    "tcc_value_at_percentile",
    "wrvu_value_at_percentile",
]
