from pathlib import Path

import pandas as pd
import pytest

import logging_config
from comp_model.config.models import PlanConfig
from comp_model.engines.conversion_factor import ConfigurationError
from comp_model.projections.cli import main, parse_arguments, run_plan

EXAMPLE_PLAN = Path(__file__).resolve().parents[2] / "config" / "plan_example.yaml"

pytestmark = pytest.mark.integration


@pytest.fixture(autouse=True)
def isolated_logging():
    logging_config.reset_logging()
    yield
    logging_config.reset_logging()


def test_parse_arguments_defaults():
    args = parse_arguments(["--config", "plan.yaml"])
    assert args.config == "plan.yaml"
    assert args.output_dir == "output_dev/comp_results"
    assert not args.debug
    assert not args.no_plots


def test_config_is_required():
    with pytest.raises(SystemExit):
        parse_arguments([])


def test_example_plan_end_to_end(tmp_path):
    out, logs = tmp_path / "out", tmp_path / "logs"
    code = main(["--config", str(EXAMPLE_PLAN), "--output-dir", str(out), "--log-dir", str(logs)])
    assert code == 0

    for name in (
        "scenario_results.csv",
        "fmv_risk_counts.csv",
        "call_pay_impact.csv",
        "fmv_evaluations.csv",
        "budget_forecast.csv",
        "budget_forecast_plot.png",
        "cf_recommendation.csv",
        "call_pay_validation.csv",
        "call_burden.csv",
        "call_fairness.csv",
        "provider_mix.csv",
        "provider_mix_summary.csv",
    ):
        assert (out / name).exists(), name

    scenarios = pd.read_csv(out / "scenario_results.csv")
    assert scenarios["scenario"].tolist() == [
        "Low productivity",
        "Median productivity",
        "High productivity",
    ]
    forecast = pd.read_csv(out / "budget_forecast.csv")
    assert forecast["year"].tolist() == [2026, 2027, 2028]
    impact = pd.read_csv(out / "call_pay_impact.csv")
    assert impact["tier_id"].tolist() == ["C1", "C2", "Total"]
    assert pd.read_csv(out / "call_pay_validation.csv").empty
    burden = pd.read_csv(out / "call_burden.csv")
    assert burden["tier_id"].tolist() == ["C1", "C1", "C1", "C2", "C2"]
    assert burden["provider_id"].tolist() == ["P1", "P2", "P3", "P1", "P3"]
    mix = pd.read_csv(out / "provider_mix.csv")
    assert mix["provider_id"].tolist() == ["P1", "P2", "P3"]
    assert mix.loc[1, "call_pay_amount"] == 25000
    assert (logs / "combined.log").exists()
    assert (logs / "forecast_events.log").exists()


def test_no_plots_flag(tmp_path):
    out = tmp_path / "out"
    code = main(
        [
            "--config", str(EXAMPLE_PLAN),
            "--output-dir", str(out),
            "--log-dir", str(tmp_path / "logs"),
            "--no-plots",
        ]
    )
    assert code == 0
    assert not (out / "budget_forecast_plot.png").exists()


def test_bad_config_returns_error(tmp_path):
    bad = tmp_path / "bad.yaml"
    bad.write_text("cf_model:\n  model_type: bogus\n")
    code = main(
        ["--config", str(bad), "--output-dir", str(tmp_path / "out"), "--log-dir", str(tmp_path / "logs")]
    )
    assert code == 1
    assert not (tmp_path / "out").exists()


def test_empty_percentile_tiers_fail_the_run(tmp_path):
    plan = PlanConfig(
        cf_model={"model_type": "percentile-tiered", "tiers": []},
        scenarios=[{"wrvus": 5000}],
        benchmarks={"wrvu50": 5000, "tcc50": 300000},
    )
    with pytest.raises(ConfigurationError):
        run_plan(plan, tmp_path)


def test_run_plan_only_writes_present_sections(tmp_path):
    plan = PlanConfig(
        cf_model={"model_type": "single", "cf": 55},
        scenarios=[{"name": "Median", "wrvus": 5000}],
        benchmarks={"wrvu50": 5000, "tcc50": 300000},
    )
    written = run_plan(plan, tmp_path, plots=False)
    assert set(written) == {"scenarios", "fmv_risk"}
    risk = pd.read_csv(written["fmv_risk"])
    assert risk["fmv_risk_level"].tolist() == ["LOW", "MODERATE", "HIGH"]


def test_call_pay_problems_are_reported_not_fatal(tmp_path):
    plan = PlanConfig(
        call_pay={
            "context": {"providers_on_call": 2, "rotation_ratio": 4, "model_year": 2025},
            "tiers": [
                {"id": "PP", "name": "Procedures", "payment_method": "Per procedure"},
            ],
        }
    )
    written = run_plan(plan, tmp_path, plots=False)
    assert "call_pay" in written
    report = pd.read_csv(written["call_pay_validation"])
    assert report["severity"].tolist() == ["error", "warning"]
    assert report["message"].iloc[0].startswith("Rotation ratio (1-in-4) exceeds providers on call (2)")
    assert report["message"].iloc[1].startswith("Procedures: Per procedure requires")
