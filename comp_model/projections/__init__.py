from .forecast import budget_variance, forecast_to_frame, generate_budget_forecast

__all__ = ["budget_variance", "forecast_to_frame", "generate_budget_forecast"]
