"""Typer based command line entry points for quoteflow."""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional

import typer

from quoteflow.core.errors import ConfigError
from quoteflow.core.logger import get_logger, set_level
from quoteflow.core.settings import ensure_work_dirs, load_settings
from quoteflow.runner import ScenarioRunner, write_report
from quoteflow.scenarios import get_scenario, load_scenarios

app = typer.Typer(help="Run insurance quote form scenarios in a real browser.")


@app.callback()
def main_callback(
    log_level: str = typer.Option(
        "INFO",
        "--log-level",
        help="Set global logging level (e.g. DEBUG/INFO/WARNING).",
    ),
) -> None:
    """Configure global CLI behaviour before executing commands."""

    try:
        set_level(log_level)
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc


@app.command("list")
def list_scenarios(
    scenario_file: Optional[Path] = typer.Option(None, "--scenario-file", help="Alternate scenarios YAML."),
) -> None:
    """Print the available scenarios."""

    for scenario in load_scenarios(scenario_file):
        typer.echo(f"{scenario.label:<32} {scenario.expect.describe():<48} {scenario.title}")


@app.command("run")
def run_scenarios(
    scenario: Optional[List[str]] = typer.Option(
        None,
        "--scenario",
        "-s",
        help="Scenario id or name to run; repeat for several. Default: all.",
    ),
    url: Optional[str] = typer.Option(None, "--url", help="Override the form URL."),
    headed: bool = typer.Option(False, "--headed", help="Show the browser window."),
    variant: Optional[str] = typer.Option(None, "--variant", help="Selector variant from selectors/quote_form.yaml."),
    scenario_file: Optional[Path] = typer.Option(None, "--scenario-file", help="Alternate scenarios YAML."),
    report_dir: Optional[Path] = typer.Option(None, "--report-dir", help="Directory for the run report."),
) -> None:
    """Run scenarios against the quote form and write a report."""

    logger = get_logger()
    try:
        settings = load_settings().with_overrides(
            form_url=url,
            headless=False if headed else None,
            selectors_variant=variant,
        )
        pool = load_scenarios(scenario_file)
        selected = [get_scenario(key, pool) for key in scenario] if scenario else pool
        runner = ScenarioRunner(settings)
    except KeyError as exc:
        raise typer.BadParameter(str(exc.args[0]) if exc.args else str(exc)) from exc
    except ConfigError as exc:
        typer.secho(f"配置错误: {exc}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=2) from exc

    results = runner.run_all(selected)
    for result in results:
        status = "PASS" if result.passed else "FAIL"
        colour = typer.colors.GREEN if result.passed else typer.colors.RED
        detail = result.error or repr(result.actual)
        typer.secho(f"{status} {result.scenario_id:<32} {detail}", fg=colour)

    output_dir = report_dir or ensure_work_dirs(settings.work_dir)["out"]
    report_path, _ = write_report(results, output_dir, environment=runner.environment)
    failed = sum(1 for r in results if not r.passed)
    logger.info("报告已生成: %s", report_path)
    typer.echo(f"{len(results) - failed}/{len(results)} passed. Report: {report_path}")
    if failed:
        raise typer.Exit(code=1)


if __name__ == "__main__":
    app()
