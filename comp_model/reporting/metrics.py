# comp_model/reporting/metrics.py
"""
Summary tables and plots built from engine output.

Every function takes engine result records and returns a pandas DataFrame
(or writes a PNG), so the CLI and notebooks share one presentation layer.
"""

import logging
from pathlib import Path
from typing import Iterable, Mapping, Optional, Sequence

import matplotlib

matplotlib.use("Agg")  # Use a non-interactive backend
import matplotlib.pyplot as plt
import matplotlib.ticker as mtick
import pandas as pd

from comp_model.config.models import (
    CallPayImpact,
    FairnessSummary,
    FMVEvaluationResult,
    FMVRiskLevel,
    MultiYearForecast,
    ProviderBurden,
    ProviderMixProfile,
    ScenarioResult,
    ValidationResult,
)
from comp_model.projections.forecast import forecast_to_frame

logger = logging.getLogger(__name__)

SCENARIO_COLS = [
    "scenario",
    "wrvus",
    "cf_model",
    "clinical_dollars",
    "incentive_pay",
    "modeled_tcc",
    "effective_cf",
    "wrvu_percentile",
    "tcc_percentile",
    "cf_percentile",
    "alignment_status",
    "fmv_risk_level",
    "recommended_cf",
    "low_confidence",
]

TIER_IMPACT_COLS = [
    "tier_id",
    "tier_name",
    "annual_pay_per_provider",
    "annual_pay_for_group",
    "effective_dollars_per_24h",
    "effective_dollars_per_call",
]


def scenario_summary_frame(results: Iterable[ScenarioResult]) -> pd.DataFrame:
    """One row per scenario result, enums rendered as their display values."""
    rows = [
        {
            "scenario": r.scenario.name,
            "wrvus": r.scenario.wrvus,
            "cf_model": r.cf_model_summary,
            "clinical_dollars": r.clinical_dollars,
            "incentive_pay": r.incentive_pay,
            "modeled_tcc": r.modeled_tcc,
            "effective_cf": r.effective_cf,
            "wrvu_percentile": r.wrvu_percentile,
            "tcc_percentile": r.tcc_percentile,
            "cf_percentile": r.cf_percentile,
            "alignment_status": r.alignment_status.value,
            "fmv_risk_level": r.fmv_risk_level.value,
            "recommended_cf": r.recommended_cf,
            "low_confidence": r.low_confidence,
        }
        for r in results
    ]
    return pd.DataFrame(rows, columns=SCENARIO_COLS)


def fmv_risk_counts(results: Iterable[ScenarioResult]) -> pd.Series:
    """Count of scenarios per FMV risk level; every level is present."""
    levels = [level.value for level in FMVRiskLevel]
    observed = pd.Series([r.fmv_risk_level.value for r in results], dtype="object")
    return observed.value_counts().reindex(levels, fill_value=0).astype("int64")


def tier_impact_frame(impact: CallPayImpact) -> pd.DataFrame:
    """Per-tier call-pay impact with a trailing ``Total`` row."""
    df = pd.DataFrame([t.model_dump() for t in impact.tiers], columns=TIER_IMPACT_COLS)
    total = {
        "tier_id": "Total",
        "tier_name": "Total",
        "annual_pay_per_provider": impact.average_call_pay_per_provider,
        "annual_pay_for_group": impact.total_annual_call_spend,
        "effective_dollars_per_24h": None,
        "effective_dollars_per_call": None,
    }
    return pd.concat([df, pd.DataFrame([total], columns=TIER_IMPACT_COLS)], ignore_index=True)


def fmv_evaluation_frame(evaluations: Iterable[FMVEvaluationResult]) -> pd.DataFrame:
    rows = [
        {
            "benchmark_id": e.benchmark.id if e.benchmark else None,
            "percentile_estimate": e.percentile_estimate,
            "risk_level": e.risk_level.value,
            "notes": "; ".join(e.notes),
        }
        for e in evaluations
    ]
    return pd.DataFrame(
        rows, columns=["benchmark_id", "percentile_estimate", "risk_level", "notes"]
    )


VALIDATION_COLS = ["severity", "message"]


def validation_frame(result: ValidationResult) -> pd.DataFrame:
    """Errors first, then warnings; empty when the setup is clean."""
    rows = [{"severity": "error", "message": m} for m in result.errors]
    rows += [{"severity": "warning", "message": m} for m in result.warnings]
    return pd.DataFrame(rows, columns=VALIDATION_COLS)


BURDEN_COLS = [
    "tier_id",
    "provider_id",
    "provider_name",
    "fte",
    "expected_weekday_calls",
    "expected_weekend_calls",
    "expected_holiday_calls",
    "total_expected_calls",
    "burden_index",
]

FAIRNESS_COLS = ["tier_id", *FairnessSummary.model_fields]


def burden_frame(burden_by_tier: Mapping[str, Sequence[ProviderBurden]]) -> pd.DataFrame:
    rows = [
        {"tier_id": tier_id, **r.model_dump()}
        for tier_id, results in burden_by_tier.items()
        for r in results
    ]
    return pd.DataFrame(rows, columns=BURDEN_COLS)


def fairness_frame(fairness_by_tier: Mapping[str, FairnessSummary]) -> pd.DataFrame:
    rows = [{"tier_id": tier_id, **s.model_dump()} for tier_id, s in fairness_by_tier.items()]
    return pd.DataFrame(rows, columns=FAIRNESS_COLS)


PROVIDER_MIX_COLS = [
    "provider_id",
    "name",
    "role",
    "clinical_fte",
    "admin_fte",
    "wrvus",
    "clinical_base_pay",
    "clinical_incentive_pay",
    "non_clinical_comp",
    "call_pay_amount",
    "total_tcc",
    "wrvu_percentile",
    "tcc_percentile",
    "effective_cf",
    "alignment_status",
    "fmv_risk_level",
    "risk_factors",
    "recommendations",
]


def provider_mix_frame(profiles: Iterable[ProviderMixProfile]) -> pd.DataFrame:
    """One row per provider: TCC components, placement and review notes."""
    rows = []
    for profile in profiles:
        a = profile.analysis
        rows.append(
            {
                "provider_id": a.provider.id,
                "name": a.provider.name,
                "role": a.provider.role.value,
                "clinical_fte": a.provider.clinical_fte,
                "admin_fte": a.provider.admin_fte,
                "wrvus": a.wrvus,
                **a.breakdown.model_dump(),
                "wrvu_percentile": a.wrvu_percentile,
                "tcc_percentile": a.tcc_percentile,
                "effective_cf": a.effective_cf,
                "alignment_status": a.alignment_status.value,
                "fmv_risk_level": profile.fmv_risk_level.value,
                "risk_factors": "; ".join(a.risk_factors),
                "recommendations": " ".join(profile.recommendations),
            }
        )
    return pd.DataFrame(rows, columns=PROVIDER_MIX_COLS)


def plot_forecast(forecast: MultiYearForecast, output_dir: Path) -> Optional[Path]:
    """
    Bar chart of adjusted budget per year with providers on a second axis.
    Returns the PNG path, or None when the forecast has no years.
    """
    df = forecast_to_frame(forecast)
    if df.empty:
        logger.warning("Forecast has no years. Skipping plotting.")
        return None

    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    fig, ax1 = plt.subplots(figsize=(10, 6))
    color = "tab:blue"
    ax1.set_xlabel("Year")
    ax1.set_ylabel("Adjusted Budget", color=color)
    ax1.bar(df["year"], df["adjusted_budget"], color=color, alpha=0.7)
    ax1.tick_params(axis="y", labelcolor=color)
    ax1.yaxis.set_major_formatter(mtick.StrMethodFormatter("${x:,.0f}"))

    ax2 = ax1.twinx()
    color = "tab:red"
    ax2.set_ylabel("Providers on Call", color=color)
    ax2.plot(df["year"], df["total_providers"], color=color, marker="o", linestyle="--")
    ax2.tick_params(axis="y", labelcolor=color)

    fig.tight_layout()
    plt.title(f"Call Pay Budget Forecast from {forecast.base_year}")
    plot_path = output_dir / "budget_forecast_plot.png"
    plt.savefig(plot_path)
    plt.close(fig)
    logger.info(f"Saved forecast plot to {plot_path}")
    return plot_path


__all__ = [
    "scenario_summary_frame",
    "fmv_risk_counts",
    "tier_impact_frame",
    "fmv_evaluation_frame",
    "validation_frame",
    "burden_frame",
    "fairness_frame",
    "provider_mix_frame",
    "plot_forecast",
]
