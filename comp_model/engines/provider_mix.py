# comp_model/engines/provider_mix.py
"""
Provider-level TCC for a mixed group: clinical pay through the CF model,
prorated by clinical FTE, plus non-clinical pay and optional call pay.

Only clinical FTE enters CF modelling and percentile placement; admin time
is paid separately and never inflates the productivity comparison.

QuickStart:
    analyses = [provider_analysis(p, cf_model, base_pay, benchmarks) for p in providers]
    summary = group_summary(analyses)
"""

import logging
from typing import Callable, Dict, List, Optional, Sequence

from comp_model.config.models import (
    AlignmentStatus,
    EnginePolicy,
    FMVRiskLevel,
    GroupProvider,
    GroupSummary,
    MarketBenchmarks,
    NonClinicalMethod,
    ProviderAnalysis,
    ProviderMixProfile,
    ProviderTCCBreakdown,
)
from comp_model.engines.alignment import classify
from comp_model.engines.conversion_factor import effective_cf, incentive_pay
from comp_model.engines.percentile import tcc_percentile, wrvu_percentile
from comp_model.utils.constants import (
    ADMIN_FTE_NOTE,
    HIGH_ADMIN_FTE,
    P100_MULTIPLIER,
    TCC_OVER_WRVU_FLAG,
    TCC_OVER_WRVU_WATCH,
)
from comp_model.utils.normalization import normalize_tcc, normalize_wrvus
from comp_model.utils.rounding import round_half_up, to_fixed

logger = logging.getLogger(__name__)

_DEFAULT_POLICY = EnginePolicy()

_NON_CLINICAL: Dict[NonClinicalMethod, Callable[..., float]] = {
    NonClinicalMethod.MANUAL: lambda cfg, provider, base_pay: cfg.manual_amount or 0.0,
    NonClinicalMethod.ADMIN_FTE: lambda cfg, provider, base_pay: provider.admin_fte * base_pay,
    NonClinicalMethod.STIPEND: lambda cfg, provider, base_pay: cfg.stipend_amount or 0.0,
    NonClinicalMethod.ROLE_BASED: lambda cfg, provider, base_pay: cfg.role_stipend_amount or 0.0,
}

_RECOMMENDATIONS = {
    AlignmentStatus.RISK_ZONE: (
        "Review CF model - significant misalignment detected. Consider adjusting CF or "
        "provider expectations before implementation."
    ),
    AlignmentStatus.MILD_DRIFT: (
        "Monitor annual productivity before raising CF further. Consider FTE adjustment "
        "if expectations misalign."
    ),
}

NO_CONCERNS = "Compensation model appears aligned with productivity levels."


def provider_wrvus(provider: GroupProvider, benchmarks: MarketBenchmarks) -> float:
    """Actual wRVUs when recorded, else the survey median, else 0."""
    return provider.actual_wrvus or benchmarks.wrvu50 or 0.0


def non_clinical_compensation(provider: GroupProvider, base_pay: float) -> float:
    """Admin, stipend or manual pay outside the CF model; 0 when none is configured."""
    config = provider.non_clinical
    if config is None:
        return 0.0
    return _NON_CLINICAL[config.method](config, provider, base_pay)


def provider_tcc(
    provider: GroupProvider,
    wrvus: float,
    cf_model,
    base_pay: float,
    benchmarks: Optional[MarketBenchmarks] = None,
    include_call_pay: bool = False,
    p100_multiplier: float = P100_MULTIPLIER,
) -> ProviderTCCBreakdown:
    """
    TCC components for one provider.

    Base pay and the CF incentive (computed on the full wRVU count) are both
    prorated by clinical FTE; a negative incentive contributes nothing. Call
    pay counts only when requested and the provider takes call.
    """
    clinical_base = base_pay * provider.clinical_fte
    clinical_incentive = 0.0
    if provider.clinical_fte > 0:
        full_incentive = incentive_pay(
            wrvus, cf_model, base_pay, provider.clinical_fte, benchmarks, p100_multiplier
        )
        clinical_incentive = max(0.0, full_incentive * provider.clinical_fte)

    non_clinical = non_clinical_compensation(provider, base_pay)
    call_pay = (provider.call_pay or 0.0) if include_call_pay and provider.call_burden else 0.0

    return ProviderTCCBreakdown(
        clinical_base_pay=clinical_base,
        clinical_incentive_pay=clinical_incentive,
        non_clinical_comp=non_clinical,
        call_pay_amount=call_pay,
        total_tcc=clinical_base + clinical_incentive + non_clinical + call_pay,
    )


def _risk_factors(
    provider: GroupProvider, wrvu_pct: float, tcc_pct: float, policy: EnginePolicy
) -> List[str]:
    factors = []
    if tcc_pct >= wrvu_pct + TCC_OVER_WRVU_FLAG:
        factors.append(
            f"TCC percentile ({round_half_up(tcc_pct):.0f}th) significantly exceeds "
            f"wRVU percentile ({round_half_up(wrvu_pct):.0f}th)"
        )
    if provider.admin_fte > HIGH_ADMIN_FTE:
        factors.append(
            f"High admin FTE ({to_fixed(provider.admin_fte * 100, 0)}%) may impact clinical "
            "productivity expectations"
        )
    if tcc_pct > policy.high_tcc_percentile:
        factors.append(
            f"TCC exceeds {policy.high_tcc_percentile:g}th percentile - potential FMV concern"
        )
    return factors


def provider_analysis(
    provider: GroupProvider,
    cf_model,
    base_pay: float,
    benchmarks: MarketBenchmarks,
    include_call_pay: bool = False,
    wrvus: Optional[float] = None,
    policy: Optional[EnginePolicy] = None,
) -> ProviderAnalysis:
    """
    Place one provider's clinical-FTE-normalized wRVUs and TCC on the survey
    curves and classify the pair.

    ``wrvus`` overrides the provider's own count (see :func:`provider_wrvus`).
    """
    policy = policy or _DEFAULT_POLICY
    if wrvus is None:
        wrvus = provider_wrvus(provider, benchmarks)

    breakdown = provider_tcc(
        provider, wrvus, cf_model, base_pay, benchmarks, include_call_pay, policy.p100_multiplier
    )
    normalized_tcc = normalize_tcc(breakdown.total_tcc, provider.clinical_fte)
    normalized_wrvus = normalize_wrvus(wrvus, provider.clinical_fte or 1.0)

    lookup = dict(
        p100_multiplier=policy.p100_multiplier, default_percentile=policy.default_percentile
    )
    wrvu_pct = wrvu_percentile(normalized_wrvus, benchmarks, **lookup)
    tcc_pct = tcc_percentile(normalized_tcc, benchmarks, **lookup)
    status = classify(wrvu_pct, tcc_pct, policy).status

    cf = 0.0
    if provider.clinical_fte > 0:
        cf = effective_cf(
            wrvus, cf_model, provider.clinical_fte, benchmarks, policy.p100_multiplier
        )

    factors = _risk_factors(provider, wrvu_pct, tcc_pct, policy)
    if status != AlignmentStatus.ALIGNED:
        logger.info(
            f"Provider {provider.id}: {status.value} (wRVU {wrvu_pct:.1f}, TCC {tcc_pct:.1f})"
        )

    return ProviderAnalysis(
        provider=provider,
        wrvus=wrvus,
        breakdown=breakdown,
        normalized_tcc=normalized_tcc,
        normalized_wrvus=normalized_wrvus,
        wrvu_percentile=wrvu_pct,
        tcc_percentile=tcc_pct,
        effective_cf=cf,
        alignment_status=status,
        risk_factors=tuple(factors),
    )


def provider_profile(
    analysis: ProviderAnalysis,
    base_pay: float,
    specialty: str = "",
    model_year: Optional[int] = None,
    policy: Optional[EnginePolicy] = None,
) -> ProviderMixProfile:
    """FMV risk level and review recommendations for one analysed provider."""
    policy = policy or _DEFAULT_POLICY
    wrvu_pct, tcc_pct = analysis.wrvu_percentile, analysis.tcc_percentile
    admin_fte = analysis.provider.admin_fte

    if tcc_pct >= wrvu_pct + TCC_OVER_WRVU_FLAG or tcc_pct > policy.high_tcc_percentile:
        risk = FMVRiskLevel.HIGH
    elif tcc_pct >= wrvu_pct + TCC_OVER_WRVU_WATCH or tcc_pct > policy.moderate_tcc_percentile:
        risk = FMVRiskLevel.MODERATE
    else:
        risk = FMVRiskLevel.LOW

    recommendations = []
    if analysis.alignment_status in _RECOMMENDATIONS:
        recommendations.append(_RECOMMENDATIONS[analysis.alignment_status])
    if admin_fte > ADMIN_FTE_NOTE:
        recommendations.append(
            "Ensure clinical productivity expectations account for "
            f"{to_fixed(admin_fte * 100, 0)}% admin FTE."
        )
    if tcc_pct > policy.moderate_tcc_percentile:
        recommendations.append(
            f"TCC exceeds {policy.moderate_tcc_percentile:g}th percentile - document "
            "justification for above-market compensation."
        )
    if not recommendations:
        recommendations.append(NO_CONCERNS)

    return ProviderMixProfile(
        analysis=analysis,
        specialty=specialty,
        model_year=model_year,
        base_pay=base_pay,
        fmv_risk_level=risk,
        recommendations=tuple(recommendations),
    )


def group_summary(analyses: Sequence[ProviderAnalysis]) -> GroupSummary:
    """
    Group averages over the analysed providers.

    The weighted average CF weights each provider's effective CF by clinical
    FTE; providers without wRVUs or clinical time are left out of it.
    """
    if not analyses:
        return GroupSummary()

    count = len(analyses)
    weighted = [a for a in analyses if a.wrvus > 0 and a.provider.clinical_fte > 0]
    weight = sum(a.provider.clinical_fte for a in weighted)
    weighted_cf = (
        sum(a.effective_cf * a.provider.clinical_fte for a in weighted) / weight if weight else 0.0
    )

    return GroupSummary(
        total_providers=count,
        average_clinical_fte=sum(a.provider.clinical_fte for a in analyses) / count,
        average_admin_fte=sum(a.provider.admin_fte for a in analyses) / count,
        providers_at_risk=sum(a.alignment_status == AlignmentStatus.RISK_ZONE for a in analyses),
        average_tcc=sum(a.total_tcc for a in analyses) / count,
        weighted_average_cf=weighted_cf,
    )


__all__ = [
    "provider_wrvus",
    "non_clinical_compensation",
    "provider_tcc",
    "provider_analysis",
    "provider_profile",
    "group_summary",
]
