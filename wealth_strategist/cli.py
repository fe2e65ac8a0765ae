"""
Wealth Strategist CLI entry point.

All commands follow this pattern:
  1. Load ``AppConfig`` via ``load_config()``.
  2. Configure logging.
  3. Load the provider payload from ``--input``.
  4. Run the pipeline or forecast.
  5. Write outputs and print a summary to stdout.

Install and run::

    pip install -e .
    wealth-strategist --help
    wealth-strategist validate-config
    wealth-strategist generate --input packet.json
    wealth-strategist forecast --input packet.json --all
    wealth-strategist quality --input packet.json
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Optional

import typer

app = typer.Typer(
    name="wealth-strategist",
    help="Wealth Strategist: ranked, explainable financial strategy recommendations.",
    add_completion=False,
)


# ── Helpers ───────────────────────────────────────────────────────────────────

def _load_config_or_exit(config_path: Optional[str] = None):
    """Load AppConfig, printing a friendly error and exiting on failure."""
    from wealth_strategist.config import load_config

    try:
        cfg_path = Path(config_path) if config_path else None
        return load_config(cfg_path)
    except FileNotFoundError as exc:
        typer.echo(f"[ERROR] {exc}", err=True)
        raise typer.Exit(code=1)
    except Exception as exc:
        typer.echo(f"[ERROR] Config validation failed: {exc}", err=True)
        raise typer.Exit(code=1)


def _configure_logging(config):
    """Set up logging from config."""
    from wealth_strategist.utils.logging import configure_logging
    configure_logging(config.logging)


def _load_provider_or_exit(input_path: str):
    """Load the JSON packet export, exiting with code 1 when unreadable."""
    from wealth_strategist.aggregation.providers import StaticDataProvider

    try:
        return StaticDataProvider.from_json_file(Path(input_path))
    except FileNotFoundError as exc:
        typer.echo(f"[ERROR] {exc}", err=True)
        raise typer.Exit(code=1)
    except json.JSONDecodeError as exc:
        typer.echo(f"[ERROR] Invalid JSON in {input_path}: {exc}", err=True)
        raise typer.Exit(code=1)


def _build_orchestrator(config, provider):
    from wealth_strategist.aggregation.providers import DataProviders
    from wealth_strategist.pipeline.orchestrator import StrategyOrchestrator

    return StrategyOrchestrator(config, DataProviders.from_single(provider))


# ── Commands ──────────────────────────────────────────────────────────────────

@app.command("validate-config")
def validate_config(
    config_path: Optional[str] = typer.Option(
        None,
        "--config",
        help="Path to TOML config file (default: config/default.toml).",
    ),
    show_full: bool = typer.Option(
        False,
        "--full",
        help="Print full config including all fields.",
    ),
) -> None:
    """Validate the configuration file and print parsed values.

    Exits with code 1 if the config fails validation.
    """
    config = _load_config_or_exit(config_path)

    typer.echo("Configuration validated successfully.")
    typer.echo("")
    typer.echo(f"  Max debt-to-income:   {config.safeguards.max_debt_to_income:.0%}")
    typer.echo(f"  Min emergency fund:   {config.safeguards.min_emergency_fund:g} months")
    typer.echo(f"  Max leverage:         {config.safeguards.max_leverage_ratio:.0%}")
    typer.echo(f"  Market rates:         {', '.join(f'{k}={v:.2%}' for k, v in config.analyzer.market_rates.items())}")
    typer.echo(f"  Scenario spread:      ±{config.forecast.scenario_spread:.0%}")
    typer.echo(f"  Limited-mode below:   {config.pipeline.limited_mode_threshold:g}")
    typer.echo(f"  Max workers:          {config.pipeline.max_workers}")
    typer.echo(f"  Output dir:           {config.pipeline.output_dir}")
    typer.echo(f"  Log level:            {config.logging.level}")
    typer.echo(f"  Debug mode:           {config.debug}")

    if show_full:
        typer.echo("")
        typer.echo("Full config (JSON):")
        typer.echo(json.dumps(config.model_dump(), indent=2, default=str))


@app.command("generate")
def generate(
    input_path: str = typer.Option(..., "--input", help="JSON packet export (snapshot, preferences, ...)."),
    user_id: Optional[str] = typer.Option(None, "--user-id", help="Override the user id in the input."),
    output_dir: Optional[str] = typer.Option(None, "--output-dir", help="Override PipelineConfig.output_dir."),
    config_path: Optional[str] = typer.Option(None, "--config", help="Path to TOML config file."),
) -> None:
    """Generate ranked recommendations and conflict groups for one user."""
    from wealth_strategist.reporting.reporter import (
        write_conflicts_json,
        write_recommendations_json,
    )
    from wealth_strategist.scoring.scorer import sbs_rating

    config = _load_config_or_exit(config_path)
    _configure_logging(config)
    provider = _load_provider_or_exit(input_path)
    uid = user_id or provider.user_id

    result = _build_orchestrator(config, provider).generate(uid)

    out = Path(output_dir or config.pipeline.output_dir)
    rec_path = write_recommendations_json(result, out)
    conflict_path = write_conflicts_json(result, out)

    quality = result.quality
    typer.echo(f"Strategy run for {uid}: {result.status}")
    typer.echo(
        f"  Data quality:     {quality.overall_score if quality else 0}/100"
        f"{' (limited mode)' if result.limited_mode else ''}"
    )
    typer.echo(
        f"  Findings:         {result.findings_count} "
        f"(rejected {result.rejected_count}, filtered {result.filtered_count})"
    )
    typer.echo(f"  Recommendations:  {len(result.recommendations)}")
    for rec in result.recommendations[:10]:
        typer.echo(f"    {rec.sbs_score:5.1f} {sbs_rating(rec.sbs_score):<8} [{rec.severity:<8}] {rec.title}")
    typer.echo(f"  Conflicts:        {len(result.conflicts)}")
    for group in result.conflicts:
        typer.echo(f"    {group.id}: prefer {group.preferred_id}")
    typer.echo(f"  Resolved plan:    {len(result.resolved)}")
    for rec in result.resolved[:10]:
        typer.echo(f"    P{rec.priority} {rec.title}")
    if result.errors:
        typer.echo(f"  Notes:            {len(result.errors)}")
        for err in result.errors:
            typer.echo(f"    - {err}")
    typer.echo(f"  Wrote: {rec_path}")
    typer.echo(f"  Wrote: {conflict_path}")

    if result.status == "failed":
        raise typer.Exit(code=1)


@app.command("forecast")
def forecast(
    input_path: str = typer.Option(..., "--input", help="JSON packet export."),
    scenario: str = typer.Option("DEFAULT", "--scenario", help="CONSERVATIVE, DEFAULT or AGGRESSIVE."),
    all_scenarios: bool = typer.Option(False, "--all", help="Run all three scenarios."),
    user_id: Optional[str] = typer.Option(None, "--user-id", help="Override the user id in the input."),
    output_dir: Optional[str] = typer.Option(None, "--output-dir", help="Override PipelineConfig.output_dir."),
    config_path: Optional[str] = typer.Option(None, "--config", help="Path to TOML config file."),
) -> None:
    """Project net worth year by year and write one CSV per scenario."""
    from wealth_strategist.reporting.reporter import write_forecast_csv
    from wealth_strategist.taxonomy.strategy_taxonomy import Scenario

    config = _load_config_or_exit(config_path)
    _configure_logging(config)

    try:
        chosen = Scenario(scenario.upper())
    except ValueError:
        valid = ", ".join(s.value for s in Scenario)
        typer.echo(f"[ERROR] Unknown scenario '{scenario}'. Valid: {valid}", err=True)
        raise typer.Exit(code=1)

    provider = _load_provider_or_exit(input_path)
    uid = user_id or provider.user_id
    orchestrator = _build_orchestrator(config, provider)

    if all_scenarios:
        results = list(orchestrator.forecast_all(uid).values())
    else:
        results = [orchestrator.forecast(uid, chosen)]

    out = Path(output_dir or config.pipeline.output_dir)
    typer.echo(f"Forecast for {uid}:")
    for res in results:
        s = res.summary
        path = write_forecast_csv(res, out, uid)
        typer.echo(
            f"  {res.scenario:<12} retire at {s.retirement_age}: "
            f"${s.net_worth_at_retirement:,.0f} | income ${s.projected_retirement_income:,.0f}/yr "
            f"| replacement {s.replacement_ratio:.0%} "
            f"| {'on track' if s.can_retire_comfortably else 'short'}"
        )
        typer.echo(f"    Wrote: {path}")


@app.command("quality")
def quality(
    input_path: str = typer.Option(..., "--input", help="JSON packet export."),
    user_id: Optional[str] = typer.Option(None, "--user-id", help="Override the user id in the input."),
    config_path: Optional[str] = typer.Option(None, "--config", help="Path to TOML config file."),
) -> None:
    """Print source completeness and the limited-mode decision."""
    from wealth_strategist.aggregation.quality import (
        available_sources,
        build_quality_report,
        calculate_confidence_level,
    )
    from wealth_strategist.utils.time_utils import age_in_days

    config = _load_config_or_exit(config_path)
    _configure_logging(config)
    provider = _load_provider_or_exit(input_path)
    uid = user_id or provider.user_id

    packet = _build_orchestrator(config, provider).collect(uid)
    report = build_quality_report(packet, config.pipeline.limited_mode_threshold)

    typer.echo(f"Data quality for {uid}: {report.overall_score}/100 ({report.status})")
    for source, pct in report.completeness.items():
        typer.echo(f"  {source:<14} {pct:>3}%")
    typer.echo(f"  Limited mode:  {'yes' if report.limited_mode else 'no'}")
    level = calculate_confidence_level(
        report.overall_score, age_in_days(packet.timestamp), available_sources(packet)
    )
    typer.echo(f"  Confidence:    {level}")
    if report.missing_critical:
        typer.echo("  Missing critical data:")
        for item in report.missing_critical:
            typer.echo(f"    - {item}")
    if report.recommendations:
        typer.echo("  To improve:")
        for tip in report.recommendations:
            typer.echo(f"    - {tip}")


if __name__ == "__main__":
    app()
