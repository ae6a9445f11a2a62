# comp_model/engines/scenario.py
"""
Scenario modelling: run one productivity level through a CF model and place
the resulting pay on the survey curves.

QuickStart:
    result = calculate_scenario_result(
        ProductivityScenario(wrvus=6000), SingleCFModel(cf=55), 0.0, 1.0, benchmarks
    )
"""

import logging
from typing import Optional

from comp_model.config.models import (
    EnginePolicy,
    MarketBenchmarks,
    ProductivityScenario,
    ScenarioResult,
)
from comp_model.engines.alignment import classify
from comp_model.engines.conversion_factor import cf_model_summary, clinical_dollars
from comp_model.engines.percentile import (
    cf_percentile,
    estimate_percentile,
    tcc_value_at_percentile,
)
from comp_model.utils.normalization import denormalize_from_fte, normalize_tcc, normalize_wrvus

logger = logging.getLogger(__name__)


def calculate_recommended_cf(
    scenario: ProductivityScenario,
    fixed_comp: float,
    fte: float,
    benchmarks: MarketBenchmarks,
    policy: Optional[EnginePolicy] = None,
) -> Optional[float]:
    """
    Flat CF that would put TCC at the same percentile as productivity.

    wRVU percentile -> TCC at that percentile -> minus fixed comp -> per wRVU.
    Returns None when wRVUs are not positive or the TCC curve cannot answer.
    """
    if scenario.wrvus <= 0:
        return None
    policy = policy or EnginePolicy()

    pct = estimate_percentile(
        normalize_wrvus(scenario.wrvus, fte or 1.0),
        benchmarks.points("wrvu"),
        p100_multiplier=policy.p100_multiplier,
        default_percentile=policy.default_percentile,
    ).percentile
    target_tcc = tcc_value_at_percentile(pct, benchmarks, p100_multiplier=policy.p100_multiplier)
    if not target_tcc or target_tcc <= 0:
        return None

    target_clinical_dollars = denormalize_from_fte(target_tcc, fte) - fixed_comp
    return max(0.0, target_clinical_dollars / scenario.wrvus)


def calculate_scenario_result(
    scenario: ProductivityScenario,
    cf_model,
    base_pay: float,
    fte: float,
    benchmarks: MarketBenchmarks,
    policy: Optional[EnginePolicy] = None,
) -> ScenarioResult:
    """
    Model compensation for a productivity scenario under ``cf_model``.

    Modeled TCC is fixed comp (the scenario's, else base pay) plus clinical
    dollars. Percentiles are computed on FTE-normalized values; the CF
    percentile is only reported when the benchmarks carry CF points.
    """
    policy = policy or EnginePolicy()
    fixed_comp = scenario.fixed_comp if scenario.fixed_comp is not None else base_pay

    dollars = clinical_dollars(
        scenario.wrvus, cf_model, fte, benchmarks, p100_multiplier=policy.p100_multiplier
    )
    eff_cf = dollars / scenario.wrvus if scenario.wrvus > 0 else 0.0
    modeled_tcc = fixed_comp + dollars

    wrvu_est = estimate_percentile(
        normalize_wrvus(scenario.wrvus, fte or 1.0),
        benchmarks.points("wrvu"),
        p100_multiplier=policy.p100_multiplier,
        default_percentile=policy.default_percentile,
    )
    tcc_est = estimate_percentile(
        normalize_tcc(modeled_tcc, fte),
        benchmarks.points("tcc"),
        p100_multiplier=policy.p100_multiplier,
        default_percentile=policy.default_percentile,
    )
    cf_pct = (
        cf_percentile(eff_cf, benchmarks, p100_multiplier=policy.p100_multiplier)
        if benchmarks.has_cf_data
        else None
    )

    alignment = classify(wrvu_est.percentile, tcc_est.percentile, policy)
    incentive = dollars - base_pay
    low_confidence = wrvu_est.is_default or tcc_est.is_default
    if low_confidence:
        logger.warning(
            f"Scenario '{scenario.name}': benchmark data insufficient, "
            "percentiles fall back to the neutral default"
        )

    return ScenarioResult(
        scenario=scenario,
        cf_model_type=cf_model.model_type,
        cf_model_summary=cf_model_summary(cf_model),
        wrvu_percentile=wrvu_est.percentile,
        tcc_percentile=tcc_est.percentile,
        cf_percentile=cf_pct,
        effective_cf=eff_cf,
        incentive_pay=incentive,
        clinical_dollars=dollars,
        modeled_tcc=modeled_tcc,
        survey_tcc=base_pay + max(0.0, incentive),
        alignment_status=alignment.status,
        alignment_delta=alignment.delta,
        fmv_risk_level=alignment.fmv_risk,
        recommended_cf=calculate_recommended_cf(scenario, fixed_comp, fte, benchmarks, policy),
        low_confidence=low_confidence,
    )


__all__ = ["calculate_recommended_cf", "calculate_scenario_result"]
