# comp_model/engines/fmv.py
"""
Fair-market-value review of an effective call rate ($ per 24h) against
call-pay survey benchmarks.

The rate is placed into coarse percentile buckets on the benchmark (or,
when asked, interpolated like wRVU and TCC), then classified into a risk
level. A burden score (0-100) can soften or harden the verdict for rates
above the 75th.
"""

import logging
import math
from typing import List, Optional, Sequence

from comp_model.config.models import (
    FMVBenchmark,
    FMVEvaluationInput,
    FMVEvaluationResult,
    FMVRiskLevel,
)
from comp_model.engines.percentile import percentile_of
from comp_model.utils.constants import HIGH_BURDEN_SCORE, LOW_BURDEN_SCORE

logger = logging.getLogger(__name__)

ALL_SPECIALTIES = "All Specialties"

_SOURCE_NAMES = {"SC": "SullivanCotter"}

NO_BENCHMARK_NOTES = (
    "No direct benchmark data available for this specialty/coverage type combination",
    "Professional judgment required",
)


def find_best_matching_benchmark(
    specialty: str, coverage_type: str, benchmarks: Sequence[FMVBenchmark]
) -> Optional[FMVBenchmark]:
    """
    First benchmark matching, in priority order: specialty and coverage,
    specialty alone, "All Specialties" with the coverage, any "All Specialties".
    """
    matchers = (
        lambda b: b.specialty == specialty and b.coverage_type == coverage_type,
        lambda b: b.specialty == specialty,
        lambda b: b.specialty == ALL_SPECIALTIES and b.coverage_type == coverage_type,
        lambda b: b.specialty == ALL_SPECIALTIES,
    )
    for matches in matchers:
        for benchmark in benchmarks:
            if matches(benchmark):
                return benchmark
    return None


def estimate_rate_percentile(effective_rate_per_24h: float, benchmark: FMVBenchmark) -> float:
    """
    Coarse percentile position of a call rate on an FMV benchmark.

    Rates land in fixed buckets: 15 below p25, 37 below the median, 50 or 62
    between the median and p75 (whichever point is nearer), 82 or 87 between
    p75 and p90, and 95-99 at or above p90 scaled by the excess over the
    p75-p90 spread. A rate sitting exactly on p75 or p90 falls into the
    bucket above it.
    """
    rate = effective_rate_per_24h
    median = benchmark.median_rate_per_24h
    p25 = benchmark.p25_rate_per_24h
    p75 = benchmark.p75_rate_per_24h
    p90 = benchmark.p90_rate_per_24h

    if p25 and rate < p25:
        return 15.0
    if p25 and p25 <= rate < median:
        return 37.0
    if rate >= median and (not p75 or rate < p75):
        if p75:
            return 50.0 if abs(rate - median) < abs(rate - p75) else 62.0
        return 50.0
    if p75 and rate >= p75 and (not p90 or rate < p90):
        if p90:
            return 82.0 if abs(rate - p75) < abs(rate - p90) else 87.0
        return 82.0
    if p90 and rate >= p90:
        spread = p90 - (p75 or median)
        if spread > 0:
            return float(min(95 + math.floor((rate - p90) / spread * 5), 99))
        return 95.0
    return 50.0


def determine_risk_level(percentile: float, burden_score: Optional[float] = None) -> FMVRiskLevel:
    if burden_score is not None:
        if burden_score >= HIGH_BURDEN_SCORE and 75 <= percentile < 90:
            return FMVRiskLevel.MODERATE
        if burden_score < LOW_BURDEN_SCORE and percentile >= 90:
            return FMVRiskLevel.HIGH
        if burden_score >= HIGH_BURDEN_SCORE and percentile >= 90:
            return FMVRiskLevel.MODERATE

    if percentile < 25:
        return FMVRiskLevel.MODERATE  # underpayment
    if percentile <= 75:
        return FMVRiskLevel.LOW
    if percentile <= 90:
        return FMVRiskLevel.MODERATE
    return FMVRiskLevel.HIGH


def generate_notes(
    percentile: float,
    benchmark: FMVBenchmark,
    effective_rate_per_24h: float,
    burden_score: Optional[float] = None,
) -> List[str]:
    notes = []
    p75, p90 = benchmark.p75_rate_per_24h, benchmark.p90_rate_per_24h

    if percentile < 25:
        notes.append("Below 25th percentile of market rates")
    elif percentile < 50:
        notes.append("Below median market rate")
    elif percentile <= 75:
        notes.append("Within typical market range (25th-75th percentile)")
    elif percentile <= 90:
        notes.append("Above 75th percentile of market rates")
        if p90:
            notes.append("Approaching 90th percentile")
    else:
        notes.append("Above 90th percentile of market rates")
        if p90 and p75:
            excess, spread = effective_rate_per_24h - p90, p90 - p75
            if excess > 0 and spread > 0 and excess / spread > 0.5:
                notes.append("Significantly above market benchmarks")

    if burden_score is not None:
        if burden_score >= HIGH_BURDEN_SCORE and percentile >= 75:
            notes.append("High call burden supports above-median rate")
        elif burden_score < LOW_BURDEN_SCORE and percentile >= 90:
            notes.append("High rate with relatively low call burden")
        elif burden_score >= HIGH_BURDEN_SCORE:
            notes.append("High call burden context considered")

    return notes


def _money(value: float) -> str:
    if float(value).is_integer():
        return f"${value:,.0f}"
    return f"${value:,.2f}"


def _placement(percentile: float) -> str:
    approx = f"{percentile:.0f}th percentile"
    if percentile < 25:
        return f"falls below the 25th percentile (approximately {approx})"
    if percentile < 50:
        return f"falls below the median, approximately at the {approx}"
    if percentile <= 75:
        return f"falls within the typical market range, approximately at the {approx}"
    if percentile <= 90:
        return f"falls above the 75th percentile, approximately at the {approx}"
    return f"falls above the 90th percentile (approximately {approx})"


_RISK_LANGUAGE = {
    FMVRiskLevel.LOW: "This rate appears reasonable and consistent with market FMV ranges.",
    FMVRiskLevel.MODERATE: (
        "This rate may warrant additional review or documentation to support FMV compliance."
    ),
    FMVRiskLevel.HIGH: (
        "This rate may be considered above typical FMV and requires formal valuation "
        "and comprehensive documentation to support compliance."
    ),
}


def build_fmv_narrative(
    evaluation_input: FMVEvaluationInput,
    benchmark: Optional[FMVBenchmark],
    percentile: Optional[float],
    risk_level: FMVRiskLevel,
) -> str:
    """Committee-ready paragraph summarizing the evaluation."""
    rate = _money(evaluation_input.effective_rate_per_24h)
    if benchmark is None:
        return (
            f"No direct market benchmark data is available for {evaluation_input.specialty} "
            f"with {evaluation_input.coverage_type} coverage type. FMV determination requires "
            "professional judgment and may benefit from a formal valuation. The effective rate "
            f"of {rate} per 24-hour period should be evaluated against comparable arrangements "
            "and documented with appropriate justification."
        )

    source = _SOURCE_NAMES.get(benchmark.source, benchmark.source)
    parts = [
        f"Based on {source} {benchmark.survey_year} survey data for {benchmark.specialty} "
        f"with {benchmark.coverage_type} coverage, the effective rate of {rate} per "
        "24-hour period"
    ]
    if percentile is not None:
        parts[0] += f" {_placement(percentile)}."

    burden = evaluation_input.burden_score
    if burden is not None:
        if burden >= HIGH_BURDEN_SCORE:
            parts.append(
                f"The arrangement includes high call burden (burden score: {burden:g}), "
                "which supports the compensation level."
            )
        elif burden < LOW_BURDEN_SCORE:
            parts.append(
                f"The arrangement includes relatively low call burden (burden score: {burden:g})."
            )

    parts.append(_RISK_LANGUAGE[risk_level])
    parts.append(
        "The median market rate for this specialty and coverage type is "
        f"{_money(benchmark.median_rate_per_24h)} per 24-hour period."
    )
    return " ".join(parts)


def evaluate_fmv(
    evaluation_input: FMVEvaluationInput,
    benchmarks: Sequence[FMVBenchmark],
    interpolate: bool = False,
) -> FMVEvaluationResult:
    """
    Match a benchmark, place the rate on it, and classify FMV risk.

    The rate is bucketed with ``estimate_rate_percentile``; pass
    ``interpolate=True`` to place it on the curve with ``percentile_of``
    instead.
    """
    benchmark = find_best_matching_benchmark(
        evaluation_input.specialty, evaluation_input.coverage_type, benchmarks
    )
    if benchmark is None:
        logger.warning(
            f"No FMV benchmark for {evaluation_input.specialty} / "
            f"{evaluation_input.coverage_type}; defaulting to MODERATE risk"
        )
        return FMVEvaluationResult(
            risk_level=FMVRiskLevel.MODERATE,
            notes=NO_BENCHMARK_NOTES,
            narrative_summary=build_fmv_narrative(
                evaluation_input, None, None, FMVRiskLevel.MODERATE
            ),
        )

    rate = evaluation_input.effective_rate_per_24h
    if interpolate:
        percentile = percentile_of(rate, benchmark.points())
    else:
        percentile = estimate_rate_percentile(rate, benchmark)
    risk = determine_risk_level(percentile, evaluation_input.burden_score)
    notes = generate_notes(percentile, benchmark, rate, evaluation_input.burden_score)
    return FMVEvaluationResult(
        benchmark=benchmark,
        percentile_estimate=percentile,
        risk_level=risk,
        notes=tuple(notes),
        narrative_summary=build_fmv_narrative(evaluation_input, benchmark, percentile, risk),
    )


__all__ = [
    "find_best_matching_benchmark",
    "estimate_rate_percentile",
    "determine_risk_level",
    "generate_notes",
    "build_fmv_narrative",
    "evaluate_fmv",
]
