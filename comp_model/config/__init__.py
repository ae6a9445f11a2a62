from .loaders import ConfigLoadError, load_plan_config
from .models import PlanConfig, parse_cf_model

__all__ = ["ConfigLoadError", "load_plan_config", "PlanConfig", "parse_cf_model"]
