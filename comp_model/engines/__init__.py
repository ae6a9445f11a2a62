"""
Engines package for the compensation model.

This package contains the pure calculation engines: percentile
interpolation, conversion-factor formulas, alignment classification,
scenario modelling, stewardship, call pay and FMV review.
"""

from .alignment import classify
from .call_pay import call_pay_impact, tier_annual_pay
from .conversion_factor import ConfigurationError, incentive_pay
from .percentile import percentile_of, value_at_percentile

__all__ = [
    "classify",
    "call_pay_impact",
    "tier_annual_pay",
    "ConfigurationError",
    "incentive_pay",
    "percentile_of",
    "value_at_percentile",
]
