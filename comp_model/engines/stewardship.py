# comp_model/engines/stewardship.py
"""
CF stewardship: compare a current CF model against a proposed one at the
survey productivity levels, price the change across a group, and track
year-over-year market movement.
"""

import logging
from typing import Iterable, List, Optional

from comp_model.config.models import (
    AlignmentStatus,
    BudgetImpact,
    EnginePolicy,
    MarketBenchmarks,
    MarketMovement,
    ProductivityScenario,
    SingleCFModel,
    StewardshipComparison,
    StewardshipScenario,
)
from comp_model.engines.alignment import alignment_status
from comp_model.engines.scenario import calculate_scenario_result
from comp_model.utils.constants import BENCHMARK_PERCENTILES

logger = logging.getLogger(__name__)


def generate_stewardship_scenarios(benchmarks: MarketBenchmarks) -> List[StewardshipScenario]:
    """One scenario per published wRVU percentile."""
    available = benchmarks.points("wrvu").available()
    return [
        StewardshipScenario(
            id=f"percentile-{rank}",
            name=f"{rank}th Percentile",
            wrvus=available[rank],
            percentile=rank,
        )
        for rank in BENCHMARK_PERCENTILES
        if rank in available
    ]


def stewardship_comparison(
    scenario: StewardshipScenario,
    current_model,
    proposed_model,
    base_pay: float,
    fte: float,
    benchmarks: MarketBenchmarks,
    policy: Optional[EnginePolicy] = None,
) -> StewardshipComparison:
    """Run ``scenario`` under both models; alignment is judged on the proposal."""
    productivity = ProductivityScenario(id=scenario.id, name=scenario.name, wrvus=scenario.wrvus)
    current = calculate_scenario_result(
        productivity, current_model, base_pay, fte, benchmarks, policy
    )
    proposed = calculate_scenario_result(
        productivity, proposed_model, base_pay, fte, benchmarks, policy
    )

    return StewardshipComparison(
        scenario=scenario,
        current_incentive_pay=current.incentive_pay,
        current_survey_tcc=current.survey_tcc,
        current_tcc_percentile=current.tcc_percentile,
        current_alignment_status=current.alignment_status,
        proposed_incentive_pay=proposed.incentive_pay,
        proposed_survey_tcc=proposed.survey_tcc,
        proposed_tcc_percentile=proposed.tcc_percentile,
        proposed_alignment_status=proposed.alignment_status,
        percentile_match=proposed.tcc_percentile - proposed.wrvu_percentile,
        alignment_status=alignment_status(
            proposed.wrvu_percentile, proposed.tcc_percentile, policy
        ),
    )


def evaluate_cf_proposal(
    comparisons: Iterable[StewardshipComparison],
    policy: Optional[EnginePolicy] = None,
) -> AlignmentStatus:
    """
    Overall verdict on a proposal from its worst percentile gap.

    A gap at or beyond the mild-drift delta is a Risk Zone; beyond the
    aligned delta it is Mild Drift.
    """
    policy = policy or EnginePolicy()
    gaps = [abs(c.percentile_match) for c in comparisons]
    if not gaps:
        return AlignmentStatus.ALIGNED

    worst = max(gaps)
    if worst >= policy.mild_drift_delta:
        return AlignmentStatus.RISK_ZONE
    if worst > policy.aligned_delta:
        return AlignmentStatus.MILD_DRIFT
    return AlignmentStatus.ALIGNED


def budget_impact(
    median_wrvus: float,
    provider_count: int,
    current_model,
    proposed_model,
    base_pay: float,
    fte: float,
    benchmarks: MarketBenchmarks,
    policy: Optional[EnginePolicy] = None,
) -> BudgetImpact:
    """Group-level cost of moving from ``current_model`` to ``proposed_model``."""
    median = ProductivityScenario(id="median-impact", name="Median", wrvus=median_wrvus)
    current = calculate_scenario_result(median, current_model, base_pay, fte, benchmarks, policy)
    proposed = calculate_scenario_result(median, proposed_model, base_pay, fte, benchmarks, policy)

    delta = proposed.survey_tcc - current.survey_tcc
    logger.info(
        f"Budget impact at {median_wrvus:,.0f} wRVUs: {delta:+,.2f} per FTE "
        f"across {provider_count} providers"
    )
    return BudgetImpact(
        median_wrvus=median_wrvus,
        provider_count=provider_count,
        current_tcc_per_fte=current.survey_tcc,
        proposed_tcc_per_fte=proposed.survey_tcc,
        delta_per_fte=delta,
        total_budget_impact=delta * provider_count,
        average_provider_impact=delta,
    )


def _pct_change(current: Optional[float], last: Optional[float]) -> Optional[float]:
    if not current or not last or last <= 0:
        return None
    return (current - last) / last * 100.0


def market_movement(
    current: MarketBenchmarks, last_year: Optional[MarketBenchmarks] = None
) -> MarketMovement:
    """Year-over-year change of the TCC and wRVU medians, in percent."""
    if last_year is None:
        return MarketMovement()
    return MarketMovement(
        tcc_median_change=_pct_change(current.tcc50, last_year.tcc50),
        wrvu_median_change=_pct_change(current.wrvu50, last_year.wrvu50),
        last_year_tcc_median=last_year.tcc50,
        current_year_tcc_median=current.tcc50,
        last_year_wrvu_median=last_year.wrvu50,
        current_year_wrvu_median=current.wrvu50,
    )


def apply_percentage_adjustment(model, adjustment_percent: float):
    """Scale a Single CF by ``adjustment_percent``; other variants come back unchanged."""
    if isinstance(model, SingleCFModel):
        return SingleCFModel(cf=model.cf * (1 + adjustment_percent / 100.0))
    logger.debug(
        f"Percentage adjustment not supported for '{model.model_type}' models; "
        "returning model unchanged"
    )
    return model


__all__ = [
    "generate_stewardship_scenarios",
    "stewardship_comparison",
    "evaluate_cf_proposal",
    "budget_impact",
    "market_movement",
    "apply_percentage_adjustment",
]
