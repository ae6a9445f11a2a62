from .normalization import (
    calculate_effective_cf,
    denormalize_from_fte,
    normalize_tcc,
    normalize_to_fte,
    normalize_wrvus,
)
from .rounding import round_half_up, to_fixed

__all__ = [
    "calculate_effective_cf",
    "denormalize_from_fte",
    "normalize_tcc",
    "normalize_to_fte",
    "normalize_wrvus",
    "round_half_up",
    "to_fixed",
]
