# comp_model/engines/alignment.py
"""
Alignment and FMV risk classification of a (wRVU percentile, TCC percentile) pair.

Absolute pay dominates: once TCC clears the moderate threshold the pair is a
Risk Zone no matter how well it tracks productivity. Only at or below that
threshold does the TCC - wRVU delta decide between Aligned, Mild Drift and
Risk Zone.
"""

import logging
from typing import Iterable, Optional

from comp_model.config.models import (
    AlignmentResult,
    AlignmentStatus,
    EnginePolicy,
    FMVRiskLevel,
)

logger = logging.getLogger(__name__)

_DEFAULT_POLICY = EnginePolicy()

_SEVERITY = {
    AlignmentStatus.ALIGNED: 0,
    AlignmentStatus.MILD_DRIFT: 1,
    AlignmentStatus.RISK_ZONE: 2,
}


def classify(
    wrvu_pct: float,
    tcc_pct: float,
    policy: Optional[EnginePolicy] = None,
) -> AlignmentResult:
    """Classify alignment status and FMV risk; checks run in priority order."""
    policy = policy or _DEFAULT_POLICY
    delta = tcc_pct - wrvu_pct

    if tcc_pct > policy.high_tcc_percentile:
        return AlignmentResult(
            status=AlignmentStatus.RISK_ZONE, fmv_risk=FMVRiskLevel.HIGH, delta=delta
        )
    if policy.moderate_tcc_percentile <= tcc_pct <= policy.high_tcc_percentile:
        return AlignmentResult(
            status=AlignmentStatus.RISK_ZONE, fmv_risk=FMVRiskLevel.MODERATE, delta=delta
        )

    if abs(delta) <= policy.aligned_delta:
        status = AlignmentStatus.ALIGNED
    elif abs(delta) <= policy.mild_drift_delta:
        status = AlignmentStatus.MILD_DRIFT
    else:
        status = AlignmentStatus.RISK_ZONE
    return AlignmentResult(status=status, fmv_risk=FMVRiskLevel.LOW, delta=delta)


def alignment_status(
    wrvu_pct: float, tcc_pct: float, policy: Optional[EnginePolicy] = None
) -> AlignmentStatus:
    return classify(wrvu_pct, tcc_pct, policy).status


def fmv_risk_level(
    wrvu_pct: float, tcc_pct: float, policy: Optional[EnginePolicy] = None
) -> FMVRiskLevel:
    return classify(wrvu_pct, tcc_pct, policy).fmv_risk


def worst_alignment_status(statuses: Iterable[AlignmentStatus]) -> AlignmentStatus:
    """Most severe status in ``statuses``; Aligned when empty."""
    statuses = list(statuses)
    if not statuses:
        return AlignmentStatus.ALIGNED
    return max(statuses, key=_SEVERITY.__getitem__)


__all__ = ["classify", "alignment_status", "fmv_risk_level", "worst_alignment_status"]
