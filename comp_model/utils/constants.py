"""
comp_model/utils/constants.py

Policy constants for benchmark interpolation and FMV alignment.

These are undocumented survey-practice defaults. Every function that uses one
accepts an override (directly or through ``EnginePolicy``); change the
defaults only with compensation-committee sign-off.
"""

# Standard survey percentile ranks, in curve order.
BENCHMARK_PERCENTILES = (25, 50, 75, 90)

# Synthetic 100th percentile expressed as a multiple of the 90th.
P100_MULTIPLIER = 1.3

# Percentile returned when the benchmark curve cannot bracket a value.
DEFAULT_PERCENTILE = 50.0

# |TCC% - wRVU%| bands used while TCC sits at or below the 75th percentile.
ALIGNED_DELTA = 10.0
MILD_DRIFT_DELTA = 15.0

# Absolute TCC percentile thresholds for FMV risk.
MODERATE_TCC_PERCENTILE = 75.0
HIGH_TCC_PERCENTILE = 90.0

# Budget-neutral fallback conversion factor ($/wRVU).
DEFAULT_BASE_CF = 50.0

# Internal/survey blend and CF recommendation collar.
DEFAULT_BLEND_WEIGHT = 0.5
CF_COLLAR_PCT = 0.10

# Call-pay FMV burden-score cut points.
HIGH_BURDEN_SCORE = 80.0
LOW_BURDEN_SCORE = 60.0

HOURS_PER_SHIFT = 24
MONTHS_PER_YEAR = 12

# Call schedule plausibility limits (warnings, not errors).
MAX_WEEKDAY_CALLS_PER_MONTH = 22
MAX_WEEKEND_CALLS_PER_MONTH = 9
MAX_HOLIDAYS_PER_YEAR = 15
MIN_MODEL_YEAR = 2020
MAX_MODEL_YEAR = 2100

# Provider-mix review thresholds.
TCC_OVER_WRVU_FLAG = 15.0
TCC_OVER_WRVU_WATCH = 10.0
HIGH_ADMIN_FTE = 0.3
ADMIN_FTE_NOTE = 0.2

__all__ = [
    "BENCHMARK_PERCENTILES",
    "P100_MULTIPLIER",
    "DEFAULT_PERCENTILE",
    "ALIGNED_DELTA",
    "MILD_DRIFT_DELTA",
    "MODERATE_TCC_PERCENTILE",
    "HIGH_TCC_PERCENTILE",
    "DEFAULT_BASE_CF",
    "DEFAULT_BLEND_WEIGHT",
    "CF_COLLAR_PCT",
    "HIGH_BURDEN_SCORE",
    "LOW_BURDEN_SCORE",
    "HOURS_PER_SHIFT",
    "MONTHS_PER_YEAR",
    "MAX_WEEKDAY_CALLS_PER_MONTH",
    "MAX_WEEKEND_CALLS_PER_MONTH",
    "MAX_HOLIDAYS_PER_YEAR",
    "MIN_MODEL_YEAR",
    "MAX_MODEL_YEAR",
    "TCC_OVER_WRVU_FLAG",
    "TCC_OVER_WRVU_WATCH",
    "HIGH_ADMIN_FTE",
    "ADMIN_FTE_NOTE",
]
