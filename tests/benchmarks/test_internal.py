import pandas as pd
import pytest

from comp_model.benchmarks.internal import (
    blend,
    comparison_metrics,
    justification_text,
    normalize_provider_data,
    percentiles_from_records,
    recommend_cf,
)
from comp_model.config.models import (
    BlendingMode,
    BlendingWeights,
    MarketBenchmarks,
    ProviderRecord,
)


@pytest.fixture
def internal(provider_records):
    return percentiles_from_records(provider_records)


def test_zero_fte_records_are_dropped(provider_records):
    df = normalize_provider_data(provider_records)
    assert len(df) == 4
    # 0.5 FTE provider scales to 6000 wRVUs / 340k TCC
    assert df["normalized_wrvus"].tolist() == [4000, 5000, 6000, 7000]
    assert df["normalized_tcc"].tolist() == [240000, 300000, 340000, 400000]


def test_percentiles_use_linear_interpolation(internal):
    assert internal.wrvu25 == pytest.approx(4750)
    assert internal.wrvu50 == pytest.approx(5500)
    assert internal.wrvu75 == pytest.approx(6250)
    assert internal.wrvu90 == pytest.approx(6700)
    assert internal.tcc25 == pytest.approx(285000)
    assert internal.tcc50 == pytest.approx(320000)
    assert internal.tcc75 == pytest.approx(355000)
    assert internal.tcc90 == pytest.approx(382000)


def test_dataframe_input_matches_records(provider_records, internal):
    df = pd.DataFrame([r.model_dump() for r in provider_records])
    assert percentiles_from_records(df) == internal


def test_dataframe_missing_column():
    with pytest.raises(KeyError):
        percentiles_from_records(pd.DataFrame({"wrvus": [5000], "fte": [1.0]}))


def test_no_usable_records():
    assert percentiles_from_records([]) is None
    assert percentiles_from_records([ProviderRecord(fte=0, wrvus=100, tcc=100)]) is None


def test_single_record_fills_every_percentile():
    result = percentiles_from_records([ProviderRecord(fte=1.0, wrvus=5000, tcc=300000)])
    assert result.wrvu25 == result.wrvu90 == 5000


def test_blend_even_weights(internal, benchmarks):
    blended = blend(internal, benchmarks, BlendingMode.BLENDED)
    assert blended.wrvu50 == pytest.approx(5250)
    assert blended.tcc50 == pytest.approx(310000)
    assert blended.weights == BlendingWeights(internal_weight=0.5, survey_weight=0.5)


def test_blend_custom_weights(internal, benchmarks):
    weights = BlendingWeights(internal_weight=0.6, survey_weight=0.4)
    blended = blend(internal, benchmarks, "blended", weights)
    assert blended.wrvu50 == pytest.approx(5500 * 0.6 + 5000 * 0.4)


def test_blend_zero_weight_uses_default(internal, benchmarks):
    weights = BlendingWeights(internal_weight=0.0, survey_weight=1.0)
    blended = blend(internal, benchmarks, BlendingMode.BLENDED, weights)
    assert blended.weights.internal_weight == 0.5
    assert blended.wrvu50 == pytest.approx(5500 * 0.5 + 5000 * 1.0)


def test_blend_passthrough_modes(internal, benchmarks):
    survey = blend(internal, benchmarks, BlendingMode.SURVEY_ONLY)
    assert survey.tcc75 == 375000
    assert survey.weights is None
    assert blend(internal, benchmarks, BlendingMode.INTERNAL_ONLY).tcc75 == pytest.approx(355000)


def test_survey_only_missing_point_is_zero(internal):
    blended = blend(internal, MarketBenchmarks(tcc50=300000), BlendingMode.SURVEY_ONLY)
    assert blended.tcc50 == 300000
    assert blended.wrvu50 == 0.0


def test_recommend_cf(internal, benchmarks):
    rec = recommend_cf(blend(internal, benchmarks, BlendingMode.BLENDED), 2025)
    median = 310000 / 5250
    assert rec.median_cf == pytest.approx(median)
    # the +/-10% collar is wider than the implied 25th/75th CFs here
    assert rec.min_cf == pytest.approx(median * 0.9)
    assert rec.max_cf == pytest.approx(median * 1.1)
    assert rec.model_year == 2025
    assert rec.justification == "Based on blended (50% internal / 50% survey) benchmarks"


def test_recommend_cf_survey_only_justification(internal, benchmarks):
    rec = recommend_cf(blend(internal, benchmarks, BlendingMode.SURVEY_ONLY), 2025)
    assert rec.justification == "Based on blended survey-only benchmarks"
    assert rec.median_cf == pytest.approx(60.0)


def test_comparison_metrics(internal, benchmarks):
    metrics = comparison_metrics(internal, benchmarks)
    assert metrics.wrvu_difference.p50 == pytest.approx(500)
    assert metrics.wrvu_percent_difference.p50 == pytest.approx(10.0)
    assert metrics.tcc_difference.p25 == pytest.approx(35000)
    assert metrics.tcc_percent_difference.p50 == pytest.approx(20000 / 300000 * 100)


def test_comparison_metrics_missing_survey_point(internal):
    metrics = comparison_metrics(internal, MarketBenchmarks(wrvu50=5000))
    assert metrics.wrvu_difference.p25 == 0.0
    assert metrics.wrvu_percent_difference.p90 == 0.0
    assert metrics.wrvu_difference.p50 == pytest.approx(500)


def test_justification_text(internal, benchmarks):
    blended = blend(internal, benchmarks, BlendingMode.BLENDED)
    rec = recommend_cf(blended, 2025)
    text = justification_text(internal, benchmarks, blended, rec)
    assert text.startswith("For FY2025 - Suggested CF Range: $53.14-$64.95")
    assert "at the 57th percentile of survey data" in text
    assert "10% above survey median," in text
    assert "current CF may be above market" in text


def test_justification_text_aligned_market(benchmarks):
    internal = percentiles_from_records(
        [ProviderRecord(fte=1.0, wrvus=5000, tcc=300000)]
    )
    blended = blend(internal, benchmarks, BlendingMode.BLENDED)
    text = justification_text(internal, benchmarks, blended, recommend_cf(blended, 2025))
    assert "align with survey median," in text
    assert "current CF is likely sufficient" in text
