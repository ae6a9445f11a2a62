# comp_model/utils/normalization.py
"""
FTE normalization helpers. Survey benchmarks are quoted at 1.0 FTE, so raw
provider values are scaled up before any percentile lookup.
"""


def normalize_to_fte(value: float, fte: float) -> float:
    """Scale ``value`` to a 1.0 FTE equivalent; 0 when FTE is 0."""
    if not fte:
        return 0.0
    return value / fte


def normalize_wrvus(wrvus: float, fte: float) -> float:
    return normalize_to_fte(wrvus, fte)


def normalize_tcc(total_tcc: float, fte: float) -> float:
    return normalize_to_fte(total_tcc, fte)


def denormalize_from_fte(value: float, fte: float) -> float:
    """Scale a 1.0 FTE value down to ``fte``; a missing FTE counts as 1.0."""
    return value * (fte or 1.0)


def calculate_effective_cf(normalized_tcc: float, normalized_wrvus: float) -> float:
    """Effective conversion factor (TCC / wRVUs); 0 when wRVUs are 0."""
    if not normalized_wrvus:
        return 0.0
    return normalized_tcc / normalized_wrvus


__all__ = [
    "normalize_to_fte",
    "normalize_wrvus",
    "normalize_tcc",
    "denormalize_from_fte",
    "calculate_effective_cf",
]
