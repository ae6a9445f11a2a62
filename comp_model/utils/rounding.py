# comp_model/utils/rounding.py

import math
from decimal import ROUND_HALF_UP, Decimal

# Standard quantization unit for money
TWO_PLACES = Decimal("0.01")


def to_fixed(value: float, places: int = 2, grouping: bool = False) -> str:
    """
    Render ``value`` with exactly ``places`` decimals, ties rounded up.

    The float is converted exactly, so 55.125 renders as '55.13' while
    1.005 (stored just below the tie) renders as '1.00'.
    """
    quantum = Decimal(1).scaleb(-places)
    quantized = Decimal(value).quantize(quantum, rounding=ROUND_HALF_UP)
    fmt = f",.{places}f" if grouping else f".{places}f"
    return format(quantized, fmt)


def round_half_up(value: float, places: int = 0) -> float:
    """Nearest multiple of 10**-places with halves rounded up, unlike ``round``."""
    scale = 10 ** places
    return math.floor(value * scale + 0.5) / scale


__all__ = ["TWO_PLACES", "to_fixed", "round_half_up"]
