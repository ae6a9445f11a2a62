from .metrics import fmv_risk_counts, plot_forecast, scenario_summary_frame, tier_impact_frame

__all__ = ["fmv_risk_counts", "plot_forecast", "scenario_summary_frame", "tier_impact_frame"]
