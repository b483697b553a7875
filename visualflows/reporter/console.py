"""Console output for batch results."""

from __future__ import annotations

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from visualflows.models.results import BatchResult

_RESULT_STYLES = {"pass": "green", "fail": "red", "error": "red", "skip": "yellow"}
_VISUAL_STYLES = {"Passed": "green", "Unresolved": "yellow", "Failed": "red", "Error": "red"}


def summarize_batch(result: BatchResult) -> str:
    """One-line summary of a batch for logs."""
    return (
        f"Batch '{result.batch_name}': {result.passed} passed, {result.failed} failed, "
        f"{result.errors} errors across {result.total_scenarios} scenario(s); "
        f"{result.checkpoints_submitted} checkpoint(s) submitted; visual: "
        f"{result.visual_passed} passed, {result.visual_unresolved} unresolved, "
        f"{result.visual_failed} failed ({result.duration_seconds:.1f}s)"
    )


def print_batch_summary(result: BatchResult, console: Console | None = None) -> None:
    """Render the aggregated batch result as rich tables."""
    console = console or Console()

    table = Table(title=f"Batch: {escape(result.batch_name)}")
    table.add_column("Scenario", style="bold")
    table.add_column("Result")
    table.add_column("Checkpoints")
    table.add_column("Visual")
    table.add_column("Duration")
    table.add_column("Details")

    for sr in result.scenario_results:
        style = _RESULT_STYLES.get(sr.result, "white")
        visual = sr.visual.status if sr.visual else "-"
        visual_style = _VISUAL_STYLES.get(visual, "white")
        details = sr.failure_reason or ""
        if sr.visual and sr.visual.url:
            details = f"{details} {sr.visual.url}".strip()
        table.add_row(
            escape(sr.scenario_name),
            f"[{style}]{sr.result.upper()}[/{style}]",
            ", ".join(c.name for c in sr.checkpoints) or "-",
            f"[{visual_style}]{visual}[/{visual_style}]",
            f"{sr.duration_seconds:.1f}s",
            escape(details),
        )
    console.print(table)

    totals = Table(title="Totals")
    totals.add_column("Metric", style="bold")
    totals.add_column("Value")
    totals.add_row("Scenarios", str(result.total_scenarios))
    totals.add_row("Passed", f"[green]{result.passed}[/green]")
    totals.add_row("Failed", f"[red]{result.failed}[/red]")
    totals.add_row("Errors", f"[red]{result.errors}[/red]")
    totals.add_row("Checkpoints", str(result.checkpoints_submitted))
    totals.add_row("Visual passed", f"[green]{result.visual_passed}[/green]")
    totals.add_row("Visual unresolved", f"[yellow]{result.visual_unresolved}[/yellow]")
    totals.add_row("Visual failed", f"[red]{result.visual_failed}[/red]")
    totals.add_row("Duration", f"{result.duration_seconds:.1f}s")
    console.print(totals)
