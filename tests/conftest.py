import pytest

from comp_model.config.models import (
    CallPayContext,
    CallTier,
    CallTierBurden,
    CallTierRate,
    CoverageType,
    MarketBenchmarks,
    PaymentMethod,
    ProviderRecord,
)


def pytest_configure(config):
    config.addinivalue_line("markers", "regression: pinned figures from worked examples")
    config.addinivalue_line("markers", "property: invariants checked across many inputs")
    config.addinivalue_line("markers", "integration: runs the CLI end to end")


@pytest.fixture
def benchmarks():
    """Survey curve used throughout: wRVU 4000/5000/6500/8000, TCC 250k/300k/375k/450k."""
    return MarketBenchmarks(
        wrvu25=4000,
        wrvu50=5000,
        wrvu75=6500,
        wrvu90=8000,
        tcc25=250000,
        tcc50=300000,
        tcc75=375000,
        tcc90=450000,
    )


@pytest.fixture
def benchmarks_with_cf(benchmarks):
    return benchmarks.model_copy(update={"cf25": 50.0, "cf50": 55.0, "cf75": 60.0, "cf90": 70.0})


@pytest.fixture
def call_context():
    return CallPayContext(
        specialty="Cardiology",
        service_line="Cardiac Surgery",
        providers_on_call=8,
        rotation_ratio=4,
        model_year=2024,
    )


@pytest.fixture
def shift_tier():
    return CallTier(
        id="C1",
        name="C1",
        coverage_type=CoverageType.IN_HOUSE,
        payment_method=PaymentMethod.DAILY_SHIFT_RATE,
        rates=CallTierRate(weekday=500, weekend=600, holiday=800),
        burden=CallTierBurden(
            weekday_calls_per_month=15,
            weekend_calls_per_month=4,
            holidays_per_year=8,
            avg_callbacks_per_24h=2.5,
        ),
    )


@pytest.fixture
def provider_records():
    return [
        ProviderRecord(id="P1", fte=1.0, wrvus=4000, tcc=240000),
        ProviderRecord(id="P2", fte=1.0, wrvus=5000, tcc=300000),
        ProviderRecord(id="P3", fte=0.5, wrvus=3000, tcc=170000),
        ProviderRecord(id="P4", fte=1.0, wrvus=7000, tcc=400000),
        ProviderRecord(id="P5", fte=0.0, wrvus=1000, tcc=50000),
    ]
