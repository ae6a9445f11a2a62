# comp_model/projections/forecast.py
"""
Multi-year call-pay budget forecasting.

Rate increases compound year over year; provider headcount grows from the
base count and is rounded to whole providers each year.

QuickStart:
    impact = call_pay_impact(tiers, context)
    forecast = generate_budget_forecast(context, tiers, impact, assumptions)
    df = forecast_to_frame(forecast)
"""

import logging
from typing import Iterable

import pandas as pd

from comp_model.config.models import (
    BudgetVariance,
    CallPayContext,
    CallPayImpact,
    CallTier,
    ForecastAssumptions,
    MultiYearForecast,
    YearlyForecast,
)
from comp_model.utils.rounding import round_half_up
from logging_config import FORECAST_LOGGER

logger = logging.getLogger(__name__)
forecast_logger = logging.getLogger(FORECAST_LOGGER)

FORECAST_COLS = [
    "year",
    "base_budget",
    "adjusted_budget",
    "rate_increase",
    "provider_growth",
    "total_providers",
    "average_pay_per_provider",
    "cumulative_rate_multiplier",
]


def generate_budget_forecast(
    context: CallPayContext,
    tiers: Iterable[CallTier],
    impact: CallPayImpact,
    assumptions: ForecastAssumptions,
) -> MultiYearForecast:
    """
    Project call spend for ``assumptions.years_to_forecast`` years past the
    model year.

    ``impact`` supplies the base budget and average pay per provider; the
    tiers are accepted for callers that recompute impact per year and are
    only used for logging here.
    """
    base_budget = impact.total_annual_call_spend
    base_providers = context.providers_on_call
    base_average = impact.average_call_pay_per_provider
    rate_step = 1 + assumptions.rate_increase_percent / 100.0
    growth_step = 1 + assumptions.provider_growth_percent / 100.0

    forecast_logger.info(
        f"Forecasting {assumptions.years_to_forecast} years from {context.model_year}: "
        f"base budget {base_budget:,.2f}, {base_providers} providers, "
        f"{len(list(tiers))} tiers"
    )

    forecasts = []
    cumulative = 1.0
    for offset in range(1, assumptions.years_to_forecast + 1):
        cumulative *= rate_step
        providers = int(round_half_up(base_providers * growth_step ** offset))
        growth = (providers - base_providers) / base_providers * 100.0 if base_providers else 0.0
        average = base_average * cumulative
        adjusted = average * providers

        forecasts.append(
            YearlyForecast(
                year=context.model_year + offset,
                base_budget=base_budget,
                adjusted_budget=adjusted,
                rate_increase=(cumulative - 1) * 100.0,
                provider_growth=growth,
                total_providers=providers,
                average_pay_per_provider=average,
                cumulative_rate_multiplier=cumulative,
            )
        )
        forecast_logger.debug(
            f"Year {context.model_year + offset}: {providers} providers, "
            f"multiplier {cumulative:.4f}, budget {adjusted:,.2f}"
        )

    total = base_budget + sum(f.adjusted_budget for f in forecasts)
    forecast_logger.info(f"Total projected spend {total:,.2f}")
    return MultiYearForecast(
        base_year=context.model_year,
        base_budget=base_budget,
        forecasts=tuple(forecasts),
        total_projected_spend=total,
        assumptions=assumptions,
    )


def budget_variance(actual: float, budgeted: float) -> BudgetVariance:
    variance = actual - budgeted
    return BudgetVariance(
        variance=variance,
        variance_percent=variance / budgeted * 100.0 if budgeted > 0 else 0.0,
        is_over_budget=variance > 0,
    )


def forecast_to_frame(forecast: MultiYearForecast) -> pd.DataFrame:
    """One row per forecast year, in year order."""
    rows = [f.model_dump() for f in forecast.forecasts]
    df = pd.DataFrame(rows, columns=FORECAST_COLS)
    return df.astype({"year": "int64", "total_providers": "int64"})


__all__ = ["generate_budget_forecast", "budget_variance", "forecast_to_frame"]
