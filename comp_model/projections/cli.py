# comp_model/projections/cli.py
# Command-line interface entry point (argparse)
import argparse
import logging
import sys
from pathlib import Path
from typing import Dict, List, Optional

import numpy as np
import pandas as pd

from comp_model.benchmarks.internal import (
    blend,
    comparison_metrics,
    justification_text,
    percentiles_from_records,
    recommend_cf,
)
from comp_model.config.loaders import ConfigLoadError, load_plan_config
from comp_model.config.models import FMVEvaluationInput, MarketBenchmarks, PlanConfig
from comp_model.engines.burden import expected_burden, fairness_metrics, providers_for_tier
from comp_model.engines.call_pay import call_pay_impact, effective_dollars_per_24h
from comp_model.engines.call_pay_validation import validate_call_pay
from comp_model.engines.conversion_factor import ConfigurationError
from comp_model.engines.fmv import evaluate_fmv
from comp_model.engines.provider_mix import group_summary, provider_analysis, provider_profile
from comp_model.engines.scenario import calculate_scenario_result
from comp_model.projections.forecast import forecast_to_frame, generate_budget_forecast
from comp_model.reporting.metrics import (
    burden_frame,
    fairness_frame,
    fmv_evaluation_frame,
    fmv_risk_counts,
    plot_forecast,
    provider_mix_frame,
    scenario_summary_frame,
    tier_impact_frame,
    validation_frame,
)

# Import logging configuration
from logging_config import DEBUG_LOGGER, ENGINE_LOGGER, ERROR_LOGGER, setup_logging

# Get logger for this module
logger = logging.getLogger(__name__)

# Directory for log files
LOG_DIR = Path("output_dev/comp_logs")


def parse_arguments(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Run physician compensation scenarios, call pay and budget forecasts."
    )

    # Required arguments
    parser.add_argument(
        "--config",
        type=str,
        required=True,
        help="Path to the YAML plan configuration file."
    )

    # Optional arguments
    parser.add_argument(
        "--output-dir",
        type=str,
        default="output_dev/comp_results",
        help="Directory to save output files."
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging"
    )
    parser.add_argument(
        "--log-dir",
        type=str,
        default=str(LOG_DIR),
        help=f"Directory to store log files (default: {LOG_DIR})"
    )
    parser.add_argument(
        "--no-plots",
        action="store_true",
        help="Skip writing the forecast plot."
    )

    return parser.parse_args(argv)


def initialize_logging(debug: bool = False, log_dir: Path = LOG_DIR) -> None:
    """Initialize the logging configuration.

    Args:
        debug: Whether to enable debug logging
        log_dir: Directory to store log files
    """
    setup_logging(log_dir=log_dir, debug=debug)

    logger.info("Starting compensation model run")
    logger.info(f"Command line arguments: {sys.argv}")
    logger.info(f"Pandas version: {pd.__version__}")
    logger.info(f"NumPy version: {np.__version__}")

    if debug:
        logging.getLogger(DEBUG_LOGGER).debug("Debug logging enabled")


def _write_csv(df: pd.DataFrame, path: Path, written: Dict[str, Path], key: str) -> None:
    df.to_csv(path, index=False)
    written[key] = path
    logger.info(f"Wrote {len(df)} rows to {path}")


def run_plan(plan: PlanConfig, output_path: Path, plots: bool = True) -> Dict[str, Path]:
    """Run every section present in ``plan`` and write its summaries.

    Args:
        plan: Validated plan configuration
        output_path: Directory for CSV and PNG outputs
        plots: Whether to render the forecast plot

    Returns:
        Mapping of output name to the file written.

    Call-pay validation errors are logged to the error log and written out;
    they do not stop the run.

    Raises:
        ConfigurationError: If a CF model needs data the plan does not supply
    """
    engine_logger = logging.getLogger(ENGINE_LOGGER)
    err_logger = logging.getLogger(ERROR_LOGGER)
    output_path.mkdir(parents=True, exist_ok=True)
    written: Dict[str, Path] = {}
    benchmarks = plan.benchmarks or MarketBenchmarks()

    # 1. Productivity scenarios
    if plan.scenarios:
        results = [
            calculate_scenario_result(
                scenario,
                plan.cf_model,
                plan.provider.base_pay,
                plan.provider.fte,
                benchmarks,
                plan.policy,
            )
            for scenario in plan.scenarios
        ]
        engine_logger.info(f"Modeled {len(results)} scenarios")
        _write_csv(
            scenario_summary_frame(results), output_path / "scenario_results.csv", written, "scenarios"
        )
        risk = fmv_risk_counts(results).rename_axis("fmv_risk_level").reset_index(name="count")
        _write_csv(risk, output_path / "fmv_risk_counts.csv", written, "fmv_risk")

    # 2. Call pay: validation, burden, FMV review and forecast
    if plan.call_pay is not None:
        section = plan.call_pay
        impact = call_pay_impact(section.tiers, section.context, section.tcc_reference)
        _write_csv(tier_impact_frame(impact), output_path / "call_pay_impact.csv", written, "call_pay")

        validation = validate_call_pay(section.context, section.tiers)
        for message in validation.errors:
            err_logger.error(f"Call pay configuration: {message}")
        for message in validation.warnings:
            logger.warning(f"Call pay configuration: {message}")
        _write_csv(
            validation_frame(validation),
            output_path / "call_pay_validation.csv",
            written,
            "call_pay_validation",
        )

        if section.providers:
            burden_by_tier, fairness_by_tier = {}, {}
            for tier in section.tiers:
                if not tier.enabled:
                    continue
                burden = expected_burden(providers_for_tier(section.providers, tier), tier.burden)
                burden_by_tier[tier.id] = burden
                fairness_by_tier[tier.id] = fairness_metrics(burden)
                engine_logger.info(
                    f"Tier {tier.label}: {len(burden)} eligible providers, "
                    f"fairness score {fairness_by_tier[tier.id].fairness_score:g}"
                )
            _write_csv(
                burden_frame(burden_by_tier), output_path / "call_burden.csv", written, "burden"
            )
            _write_csv(
                fairness_frame(fairness_by_tier),
                output_path / "call_fairness.csv",
                written,
                "fairness",
            )

        if plan.fmv_benchmarks:
            evaluations = [
                evaluate_fmv(
                    FMVEvaluationInput(
                        specialty=section.context.specialty,
                        coverage_type=tier.coverage_type.value,
                        effective_rate_per_24h=effective_dollars_per_24h(tier, section.context),
                    ),
                    plan.fmv_benchmarks,
                )
                for tier in section.tiers
                if tier.enabled
            ]
            _write_csv(
                fmv_evaluation_frame(evaluations), output_path / "fmv_evaluations.csv", written, "fmv"
            )

        if plan.forecast is not None:
            forecast = generate_budget_forecast(
                section.context, section.tiers, impact, plan.forecast
            )
            _write_csv(
                forecast_to_frame(forecast), output_path / "budget_forecast.csv", written, "forecast"
            )
            if plots:
                plot_path = plot_forecast(forecast, output_path)
                if plot_path is not None:
                    written["forecast_plot"] = plot_path

    # 3. Internal benchmarks
    if plan.internal_benchmarks is not None:
        section = plan.internal_benchmarks
        internal = percentiles_from_records(section.records)
        if internal is None:
            logger.warning("Internal benchmark section has no usable provider records; skipping")
        else:
            blended = blend(internal, benchmarks, section.mode, section.weights)
            model_year = section.model_year or (
                plan.call_pay.context.model_year if plan.call_pay else 0
            )
            rec = recommend_cf(blended, model_year)
            metrics = comparison_metrics(internal, benchmarks)
            row = {
                **rec.model_dump(),
                "wrvu50_gap_pct": metrics.wrvu_percent_difference.p50,
                "tcc50_gap_pct": metrics.tcc_percent_difference.p50,
                "narrative": justification_text(internal, benchmarks, blended, rec),
            }
            _write_csv(pd.DataFrame([row]), output_path / "cf_recommendation.csv", written, "cf")

    # 4. Provider mix
    if plan.provider_mix is not None:
        section = plan.provider_mix
        base_pay = section.base_pay if section.base_pay is not None else plan.provider.base_pay
        context = plan.call_pay.context if plan.call_pay else None
        specialty = section.specialty or (context.specialty if context else "")
        model_year = section.model_year or (context.model_year if context else None)
        analyses = [
            provider_analysis(
                provider,
                plan.cf_model,
                base_pay,
                benchmarks,
                section.include_call_pay,
                policy=plan.policy,
            )
            for provider in section.providers
        ]
        profiles = [
            provider_profile(a, base_pay, specialty, model_year, plan.policy) for a in analyses
        ]
        summary = group_summary(analyses)
        engine_logger.info(
            f"Provider mix: {summary.total_providers} providers, "
            f"{summary.providers_at_risk} in the Risk Zone"
        )
        _write_csv(provider_mix_frame(profiles), output_path / "provider_mix.csv", written, "mix")
        _write_csv(
            pd.DataFrame([summary.model_dump()]),
            output_path / "provider_mix_summary.csv",
            written,
            "mix_summary",
        )

    return written


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the compensation model CLI."""
    # Get error logger early in case we need it for initialization errors
    err_logger = logging.getLogger(ERROR_LOGGER)

    args = parse_arguments(argv)
    initialize_logging(debug=args.debug, log_dir=Path(args.log_dir))
    logger.info(f"Starting run with arguments: {vars(args)}")

    try:
        plan = load_plan_config(args.config)
        written = run_plan(plan, Path(args.output_dir), plots=not args.no_plots)
    except ConfigLoadError as e:
        err_logger.error(f"Could not load plan configuration: {e}", exc_info=True)
        return 1
    except ConfigurationError as e:
        err_logger.error(f"Invalid plan configuration: {e}", exc_info=True)
        return 1

    logger.info(f"Run complete; {len(written)} outputs in {args.output_dir}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
