import pytest

from comp_model.config.models import FMVBenchmark, FMVEvaluationInput, FMVRiskLevel
from comp_model.engines.fmv import (
    NO_BENCHMARK_NOTES,
    build_fmv_narrative,
    determine_risk_level,
    estimate_rate_percentile,
    evaluate_fmv,
    find_best_matching_benchmark,
)


def _benchmark(id, specialty, coverage_type, **kwargs):
    values = dict(
        source="SC",
        survey_year=2024,
        p25_rate_per_24h=1200,
        median_rate_per_24h=1600,
        p75_rate_per_24h=2000,
        p90_rate_per_24h=2500,
    )
    values.update(kwargs)
    return FMVBenchmark(id=id, specialty=specialty, coverage_type=coverage_type, **values)


@pytest.fixture
def fmv_benchmarks():
    return [
        _benchmark("all-home", "All Specialties", "Restricted home"),
        _benchmark("all-inhouse", "All Specialties", "In-house"),
        _benchmark("cardio-home", "Cardiology", "Restricted home"),
        _benchmark("cardio-inhouse", "Cardiology", "In-house"),
    ]


@pytest.mark.parametrize(
    "specialty, coverage, expected",
    [
        ("Cardiology", "In-house", "cardio-inhouse"),
        ("Cardiology", "Backup only", "cardio-home"),
        ("Neurology", "In-house", "all-inhouse"),
        ("Neurology", "Backup only", "all-home"),
    ],
)
def test_matching_priority(fmv_benchmarks, specialty, coverage, expected):
    assert find_best_matching_benchmark(specialty, coverage, fmv_benchmarks).id == expected


def test_no_match():
    assert find_best_matching_benchmark("Cardiology", "In-house", []) is None


@pytest.mark.parametrize(
    "percentile, burden, expected",
    [
        (10, None, FMVRiskLevel.MODERATE),
        (50, None, FMVRiskLevel.LOW),
        (75, None, FMVRiskLevel.LOW),
        (90, None, FMVRiskLevel.MODERATE),
        (90.1, None, FMVRiskLevel.HIGH),
        (80, 85, FMVRiskLevel.MODERATE),
        (95, 85, FMVRiskLevel.MODERATE),
        (95, 50, FMVRiskLevel.HIGH),
        (95, 70, FMVRiskLevel.HIGH),
        (50, 90, FMVRiskLevel.LOW),
    ],
)
def test_risk_levels(percentile, burden, expected):
    assert determine_risk_level(percentile, burden) == expected


@pytest.mark.parametrize(
    "rate, expected",
    [
        (1199, 15.0),
        (1200, 37.0),
        (1600, 50.0),
        (1799, 50.0),
        (1800, 62.0),
        (2000, 82.0),
        (2249, 82.0),
        (2250, 87.0),
        (2500, 95.0),
        (2600, 96.0),
        (3000, 99.0),
    ],
)
def test_rate_buckets(rate, expected):
    benchmark = _benchmark("cardio", "Cardiology", "In-house")
    assert estimate_rate_percentile(rate, benchmark) == expected


def test_rate_buckets_with_missing_points():
    no_p90 = _benchmark("a", "Cardiology", "In-house", p90_rate_per_24h=None)
    assert estimate_rate_percentile(2600, no_p90) == 82.0
    no_upper = _benchmark(
        "b", "Cardiology", "In-house", p75_rate_per_24h=None, p90_rate_per_24h=None
    )
    assert estimate_rate_percentile(5000, no_upper) == 50.0
    no_p25 = _benchmark("c", "Cardiology", "In-house", p25_rate_per_24h=None)
    assert estimate_rate_percentile(1000, no_p25) == 50.0


def test_rates_on_p75_and_p90_move_up_a_bucket():
    benchmark = _benchmark(
        "tight",
        "Cardiology",
        "In-house",
        p25_rate_per_24h=1000,
        median_rate_per_24h=1100,
        p75_rate_per_24h=1300,
        p90_rate_per_24h=1600,
    )
    at_p75 = evaluate_fmv(
        FMVEvaluationInput(
            specialty="Cardiology", coverage_type="In-house", effective_rate_per_24h=1300
        ),
        [benchmark],
    )
    assert at_p75.percentile_estimate == pytest.approx(82.0)
    assert at_p75.risk_level == FMVRiskLevel.MODERATE

    at_p90 = evaluate_fmv(
        FMVEvaluationInput(
            specialty="Cardiology", coverage_type="In-house", effective_rate_per_24h=1600
        ),
        [benchmark],
    )
    assert at_p90.percentile_estimate == pytest.approx(95.0)
    assert at_p90.risk_level == FMVRiskLevel.HIGH
    assert at_p90.notes[0] == "Above 90th percentile of market rates"


def test_interpolated_placement_is_opt_in(fmv_benchmarks):
    evaluation_input = FMVEvaluationInput(
        specialty="Cardiology", coverage_type="In-house", effective_rate_per_24h=2000
    )
    assert evaluate_fmv(evaluation_input, fmv_benchmarks).percentile_estimate == 82.0
    interpolated = evaluate_fmv(evaluation_input, fmv_benchmarks, interpolate=True)
    assert interpolated.percentile_estimate == pytest.approx(75.0)
    assert interpolated.risk_level == FMVRiskLevel.LOW


def test_rate_within_market_range(fmv_benchmarks):
    result = evaluate_fmv(
        FMVEvaluationInput(
            specialty="Cardiology", coverage_type="In-house", effective_rate_per_24h=1800
        ),
        fmv_benchmarks,
    )
    assert result.benchmark.id == "cardio-inhouse"
    assert result.percentile_estimate == pytest.approx(62.0)
    assert result.risk_level == FMVRiskLevel.LOW
    assert result.notes == ("Within typical market range (25th-75th percentile)",)
    assert "SullivanCotter 2024 survey data" in result.narrative_summary
    assert "$1,800 per 24-hour period" in result.narrative_summary
    assert "$1,600 per 24-hour period" in result.narrative_summary


def test_rate_well_above_p90(fmv_benchmarks):
    result = evaluate_fmv(
        FMVEvaluationInput(
            specialty="Cardiology", coverage_type="In-house", effective_rate_per_24h=2800
        ),
        fmv_benchmarks,
    )
    assert result.percentile_estimate == pytest.approx(98.0)
    assert result.risk_level == FMVRiskLevel.HIGH
    assert "Significantly above market benchmarks" in result.notes
    assert "requires formal valuation" in result.narrative_summary


def test_high_burden_softens_high_rate(fmv_benchmarks):
    result = evaluate_fmv(
        FMVEvaluationInput(
            specialty="Cardiology",
            coverage_type="In-house",
            effective_rate_per_24h=2800,
            burden_score=85,
        ),
        fmv_benchmarks,
    )
    assert result.risk_level == FMVRiskLevel.MODERATE
    assert "High call burden supports above-median rate" in result.notes
    assert "burden score: 85" in result.narrative_summary


def test_low_burden_flags_high_rate(fmv_benchmarks):
    result = evaluate_fmv(
        FMVEvaluationInput(
            specialty="Cardiology",
            coverage_type="In-house",
            effective_rate_per_24h=2800,
            burden_score=50,
        ),
        fmv_benchmarks,
    )
    assert result.risk_level == FMVRiskLevel.HIGH
    assert "High rate with relatively low call burden" in result.notes


def test_rate_between_p75_and_p90(fmv_benchmarks):
    result = evaluate_fmv(
        FMVEvaluationInput(
            specialty="Cardiology", coverage_type="In-house", effective_rate_per_24h=2200
        ),
        fmv_benchmarks,
    )
    assert result.percentile_estimate == pytest.approx(82.0)
    assert result.risk_level == FMVRiskLevel.MODERATE
    assert result.notes == ("Above 75th percentile of market rates", "Approaching 90th percentile")


def test_underpayment_is_moderate(fmv_benchmarks):
    result = evaluate_fmv(
        FMVEvaluationInput(
            specialty="Cardiology", coverage_type="In-house", effective_rate_per_24h=1000
        ),
        fmv_benchmarks,
    )
    assert result.percentile_estimate == pytest.approx(15.0)
    assert result.risk_level == FMVRiskLevel.MODERATE
    assert result.notes[0] == "Below 25th percentile of market rates"


def test_missing_benchmark_defaults_to_moderate():
    evaluation_input = FMVEvaluationInput(
        specialty="Neurology", coverage_type="In-house", effective_rate_per_24h=1500.5
    )
    result = evaluate_fmv(evaluation_input, [])
    assert result.benchmark is None
    assert result.percentile_estimate is None
    assert result.risk_level == FMVRiskLevel.MODERATE
    assert result.notes == NO_BENCHMARK_NOTES
    assert result.narrative_summary.startswith(
        "No direct market benchmark data is available for Neurology with In-house"
    )
    assert "$1,500.50 per 24-hour period" in result.narrative_summary


def test_unknown_source_name_is_kept():
    benchmark = _benchmark("mgma", "Cardiology", "In-house", source="MGMA")
    narrative = build_fmv_narrative(
        FMVEvaluationInput(
            specialty="Cardiology", coverage_type="In-house", effective_rate_per_24h=1600
        ),
        benchmark,
        50.0,
        FMVRiskLevel.LOW,
    )
    assert narrative.startswith("Based on MGMA 2024 survey data for Cardiology")
    assert "consistent with market FMV ranges" in narrative
