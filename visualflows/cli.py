"""CLI entry point for running visual flows."""

from __future__ import annotations

import asyncio
import logging
import sys

import click
from pydantic import ValidationError
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from visualflows.executor.runner import ScenarioRunner
from visualflows.models.config import SuiteConfig
from visualflows.models.scenario import Scenario, load_scenarios
from visualflows.reporter.console import print_batch_summary
from visualflows.scenarios.catalog import SCENARIOS

console = Console()


def setup_logging(verbose: bool = False) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True)],
    )


def _select_scenarios(names: tuple[str, ...], scenarios_file: str | None) -> list[Scenario]:
    available = dict(SCENARIOS)
    if scenarios_file:
        available = {s.name: s for s in load_scenarios(scenarios_file)}
    if not names:
        return list(available.values())
    unknown = [n for n in names if n not in available]
    if unknown:
        raise click.BadParameter(
            f"Unknown scenario(s): {', '.join(unknown)}. Known: {', '.join(sorted(available))}",
            param_hint="SCENARIO",
        )
    return [available[n] for n in names]


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def cli(verbose: bool) -> None:
    """Visual regression flows checked with Applitools Eyes."""
    setup_logging(verbose)


@cli.command()
@click.argument("scenario", nargs=-1)
@click.option("--config", "-c", default=None, help="JSON suite config (defaults to environment)")
@click.option("--scenarios-file", "-f", default=None, help="JSON file with scenario definitions")
@click.option("--batch", "-b", default=None, help="Batch name shown in the Eyes dashboard")
@click.option("--close-mode", type=click.Choice(["async", "blocking"]), default=None,
              help="Wait for visual results per scenario (blocking) or only at batch end (async)")
@click.option("--concurrency", type=click.IntRange(min=1), default=None, help="Scenarios run in parallel")
def run(
    scenario: tuple[str, ...],
    config: str | None,
    scenarios_file: str | None,
    batch: str | None,
    close_mode: str | None,
    concurrency: int | None,
) -> None:
    """Run SCENARIO(s) (all built-in ones when omitted)."""
    overrides = {"batch_name": batch, "close_mode": close_mode, "concurrency": concurrency}
    try:
        if config:
            loaded = SuiteConfig.load(config)
            cfg = SuiteConfig.model_validate(
                {**loaded.model_dump(), **{k: v for k, v in overrides.items() if v is not None}}
            )
        else:
            cfg = SuiteConfig.from_env(**overrides)
        scenarios = _select_scenarios(scenario, scenarios_file)
    except (FileNotFoundError, ValueError, ValidationError) as e:
        console.print(f"[red]{escape(str(e))}[/red]")
        sys.exit(1)

    if not cfg.api_key:
        console.print("[yellow]APPLITOOLS_API_KEY is not set; Eyes sessions will fail to open.[/yellow]")

    runner = ScenarioRunner(cfg)
    result = asyncio.run(runner.run_suite(scenarios))

    console.print()
    print_batch_summary(result, console)
    if not result.ok:
        sys.exit(1)


@cli.command("list")
@click.option("--scenarios-file", "-f", default=None, help="JSON file with scenario definitions")
def list_scenarios(scenarios_file: str | None) -> None:
    """List the available scenarios and their checkpoints."""
    if scenarios_file:
        available = {s.name: s for s in load_scenarios(scenarios_file)}
    else:
        available = SCENARIOS

    table = Table(title="Scenarios")
    table.add_column("Key", style="bold")
    table.add_column("Test name")
    table.add_column("Steps")
    table.add_column("Checkpoints")
    for key, sc in available.items():
        table.add_row(escape(key), escape(sc.name), str(len(sc.steps)), ", ".join(c.name for c in sc.checkpoints))
    console.print(table)


if __name__ == "__main__":
    cli()
