import logging
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml
from cerberus import Validator
from pydantic import ValidationError

from comp_model.config.models import PlanConfig

# Configure logger for this module
logger = logging.getLogger(__name__)


class ConfigLoadError(Exception):
    """Custom exception for errors during config loading."""

    pass


_BENCHMARK_KEYS = [f"{m}{rank}" for m in ("wrvu", "tcc", "cf") for rank in (25, 50, 75, 90)]

# Top-level shape of a plan file. Field-level rules live in the pydantic models.
PLAN_SCHEMA: Dict[str, Any] = {
    "benchmarks": {
        "type": "dict",
        "required": False,
        "nullable": True,
        "schema": {k: {"type": "number", "nullable": True} for k in _BENCHMARK_KEYS},
    },
    "cf_model": {
        "type": "dict",
        "required": False,
        "nullable": True,
        "allow_unknown": True,
        "schema": {
            "model_type": {
                "type": "string",
                "required": True,
                "allowed": [
                    "single",
                    "tiered",
                    "percentile-tiered",
                    "budget-neutral",
                    "quality-weighted",
                    "fte-adjusted",
                ],
            },
        },
    },
    "provider": {
        "type": "dict",
        "required": False,
        "schema": {
            "base_pay": {"type": "number", "min": 0},
            "fte": {"type": "number", "min": 0, "max": 1},
        },
    },
    "scenarios": {"type": "list", "required": False, "schema": {"type": "dict"}},
    "call_pay": {
        "type": "dict",
        "required": False,
        "nullable": True,
        "allow_unknown": True,
        "schema": {
            "context": {"type": "dict", "required": True},
            "tiers": {"type": "list", "schema": {"type": "dict"}},
            "providers": {"type": "list", "schema": {"type": "dict"}},
        },
    },
    "forecast": {
        "type": "dict",
        "required": False,
        "nullable": True,
        "schema": {
            "rate_increase_percent": {"type": "number"},
            "provider_growth_percent": {"type": "number"},
            "years_to_forecast": {"type": "integer", "min": 0},
        },
    },
    "internal_benchmarks": {
        "type": "dict",
        "required": False,
        "nullable": True,
        "allow_unknown": True,
        "schema": {
            "records": {"type": "list", "schema": {"type": "dict"}},
            "mode": {"type": "string", "allowed": ["survey-only", "internal-only", "blended"]},
        },
    },
    "policy": {"type": "dict", "required": False},
    "fmv_benchmarks": {"type": "list", "required": False, "schema": {"type": "dict"}},
    "provider_mix": {
        "type": "dict",
        "required": False,
        "nullable": True,
        "allow_unknown": True,
        "schema": {
            "providers": {"type": "list", "schema": {"type": "dict"}},
            "base_pay": {"type": "number", "min": 0, "nullable": True},
            "include_call_pay": {"type": "boolean"},
        },
    },
}


def load_yaml_config(config_path: Union[Path, str]) -> Optional[Dict[str, Any]]:
    """
    Loads configuration data from a YAML file.

    Args:
        config_path: Path object pointing to the YAML configuration file.

    Returns:
        A dictionary containing the loaded configuration.

    Raises:
        ConfigLoadError: If the file cannot be found or parsed.
    """
    if not isinstance(config_path, Path):
        config_path = Path(config_path)

    logger.info(f"Attempting to load configuration from: {config_path}")

    try:
        if not config_path.is_file():
            logger.error(f"Configuration file not found at path: {config_path}")
            raise ConfigLoadError(f"Configuration file not found: {config_path}")

        with open(config_path, "r", encoding="utf-8") as f:
            config_data = yaml.safe_load(f)

        if not isinstance(config_data, dict):
            logger.error(f"Configuration file {config_path} did not parse into a dictionary.")
            raise ConfigLoadError(
                f"Invalid configuration format in {config_path}: Expected a dictionary."
            )

        logger.info(f"Successfully loaded configuration from {config_path}")
        return config_data

    except ConfigLoadError:
        raise
    except FileNotFoundError as e:
        logger.error(f"Configuration file not found (FileNotFoundError): {config_path}")
        raise ConfigLoadError(f"Configuration file not found: {config_path}") from e
    except yaml.YAMLError as e:
        logger.exception(f"Error parsing YAML configuration file {config_path}: {e}")
        raise ConfigLoadError(f"Error parsing YAML file {config_path}") from e
    except OSError as e:
        logger.exception(f"An unexpected error occurred while loading config {config_path}: {e}")
        raise ConfigLoadError(f"Unexpected error loading config {config_path}") from e


def validate_plan_data(config_data: Dict[str, Any]) -> PlanConfig:
    """
    Validate an already-parsed plan mapping: cerberus checks the top-level
    shape, pydantic builds the typed sections.

    Raises:
        ConfigLoadError: On either validation failure.
    """
    v = Validator(PLAN_SCHEMA)
    if not v.validate(config_data):
        raise ConfigLoadError(f"Config validation failed: {v.errors}")

    try:
        plan = PlanConfig.model_validate(config_data)
    except ValidationError as e:
        logger.error(f"Plan configuration failed model validation: {e}")
        raise ConfigLoadError(f"Invalid plan configuration: {e}") from e

    logger.debug(f"Plan configuration loaded: {plan}")
    return plan


def load_plan_config(config_path: Union[Path, str]) -> PlanConfig:
    """
    Loads a YAML plan file and validates it into a :class:`PlanConfig`.
    Raises ConfigLoadError on I/O, parse or validation errors.
    """
    config_data = load_yaml_config(config_path)
    if config_data is None:
        raise ConfigLoadError(f"No config at {config_path}")
    return validate_plan_data(config_data)


# Expose for import
__all__ = [
    "load_yaml_config",
    "validate_plan_data",
    "load_plan_config",
    "ConfigLoadError",
    "PLAN_SCHEMA",
]
