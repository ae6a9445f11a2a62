import pytest

from comp_model.config.models import CallProvider, CallTier, CallTierBurden, FairnessSummary
from comp_model.engines.burden import expected_burden, fairness_metrics, providers_for_tier


@pytest.fixture
def call_providers():
    return [
        CallProvider(id="A", name="Dr. A", fte=1.0),
        CallProvider(id="B", name="Dr. B", fte=1.0),
        CallProvider(id="C", name="Dr. C", fte=0.5),
        CallProvider(id="D", name="Dr. D", fte=1.0, eligible_for_call=False),
    ]


@pytest.mark.regression
def test_calls_split_by_fte(call_providers, shift_tier):
    # (15 + 4) x 12 + 8 = 236 calls shared over 2.5 eligible FTE
    results = expected_burden(call_providers, shift_tier.burden)
    assert [r.provider_id for r in results] == ["A", "B", "C"]
    assert results[0].expected_weekday_calls == pytest.approx(72.0)
    assert results[0].expected_weekend_calls == pytest.approx(19.2)
    assert results[0].expected_holiday_calls == pytest.approx(3.2)
    assert [r.total_expected_calls for r in results] == pytest.approx([94.4, 94.4, 47.2])
    assert [r.burden_index for r in results] == pytest.approx([20.0, 20.0, -40.0])
    assert sum(r.total_expected_calls for r in results) == pytest.approx(236.0)
    assert results[2].provider_name == "Dr. C"


@pytest.mark.regression
def test_fairness_of_uneven_split(call_providers, shift_tier):
    summary = fairness_metrics(expected_burden(call_providers, shift_tier.burden))
    assert summary.average_calls == pytest.approx(236.0 / 3)
    assert summary.min_calls == pytest.approx(47.2)
    assert summary.max_calls == pytest.approx(94.4)
    # population std is sqrt(0.08) x the mean
    assert summary.standard_deviation == pytest.approx(236.0 / 3 * 0.08 ** 0.5)
    assert summary.fairness_score == 43.4
    assert summary.total_eligible_fte == pytest.approx(2.5)
    assert summary.eligible_provider_count == 3


def test_equal_fte_is_perfectly_fair(shift_tier):
    providers = [CallProvider(id=str(i), fte=0.8) for i in range(4)]
    results = expected_burden(providers, shift_tier.burden)
    assert all(r.burden_index == pytest.approx(0.0) for r in results)
    assert fairness_metrics(results).fairness_score == 100.0


def test_wide_spread_scores_zero(shift_tier):
    providers = [CallProvider(id="full", fte=1.0), CallProvider(id="sliver", fte=0.1)]
    assert fairness_metrics(expected_burden(providers, shift_tier.burden)).fairness_score == 0.0


def test_no_eligible_providers(shift_tier):
    providers = [CallProvider(id="X", eligible_for_call=False)]
    assert expected_burden(providers, shift_tier.burden) == []
    assert fairness_metrics([]) == FairnessSummary()
    assert fairness_metrics([]).fairness_score == 100.0


def test_zero_fte_assigns_no_calls(shift_tier):
    providers = [CallProvider(id="X", fte=0.0), CallProvider(id="Y", fte=0.0)]
    results = expected_burden(providers, shift_tier.burden)
    assert [r.total_expected_calls for r in results] == [0.0, 0.0]
    assert [r.burden_index for r in results] == [0.0, 0.0]
    assert fairness_metrics(results).fairness_score == 100.0


def test_empty_schedule_has_no_burden():
    providers = [CallProvider(id="A", fte=1.0), CallProvider(id="B", fte=0.5)]
    results = expected_burden(providers, CallTierBurden())
    assert [r.burden_index for r in results] == [0.0, 0.0]
    assert fairness_metrics(results).fairness_score == 100.0


def test_providers_for_tier():
    providers = [
        CallProvider(id="any"),
        CallProvider(id="c1", tier_id="C1"),
        CallProvider(id="c2", tier_id="C2"),
    ]
    assert [p.id for p in providers_for_tier(providers, CallTier(id="C1"))] == ["any", "c1"]
