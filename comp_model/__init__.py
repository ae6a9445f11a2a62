from comp_model.config.loaders import load_plan_config
from comp_model.engines.conversion_factor import cf_model_summary, incentive_pay
from comp_model.engines.percentile import percentile_of, value_at_percentile
from comp_model.engines.scenario import calculate_scenario_result

__all__ = [
    "load_plan_config",
    "cf_model_summary",
    "incentive_pay",
    "percentile_of",
    "value_at_percentile",
    "calculate_scenario_result",
]
