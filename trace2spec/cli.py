"""
Trace2Spec CLI.

Command-line interface for running the inference stages over a recorded trace.
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from .core.config import get_config
from .core.logging import setup_logging
from .core.types import StageReport

app = typer.Typer(
    name="trace2spec",
    help="Infer screens, flows, entities and business rules from recorded web traces",
    add_completion=False,
)

console = Console()


def version_callback(value: bool) -> None:
    """Show version and exit."""
    if value:
        from . import __version__
        console.print(f"Trace2Spec v{__version__}")
        raise typer.Exit()


@app.callback()
def callback(
    version: bool = typer.Option(
        False,
        "--version",
        "-v",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit",
    ),
) -> None:
    """Trace2Spec: recorded web traces to behavioral specifications."""
    pass


def _report(report: StageReport, title: str, rows: list[tuple[str, str]]) -> None:
    """Print a stage report, exiting non-zero on failure."""
    if not report.success:
        console.print(f"\n[bold red]✗ {title} failed![/bold red]")
        for error in report.errors:
            console.print(f"Error: {error}")
        raise typer.Exit(1)

    console.print(f"\n[bold green]✓ {title} complete![/bold green]\n")

    table = Table(title=title)
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="green")
    for metric, value in rows:
        table.add_row(metric, value)
    table.add_row("Duration", f"{report.duration_ms:.0f}ms")
    table.add_row("Diagnostics", str(len(report.diagnostics)))
    console.print(table)

    for diagnostic in report.diagnostics:
        console.print(f"  [yellow]•[/yellow] [dim]{diagnostic}[/dim]")


@app.command()
def flows(
    trace: Path = typer.Argument(..., help="Path to the trace JSON file"),
    screens_out: Path = typer.Option(Path("screens.json"), "--screens-out", help="Output screens.json path"),
    flows_out: Path = typer.Option(Path("flows.json"), "--flows-out", help="Output flows.json path"),
    min_steps: Optional[int] = typer.Option(
        None, "--min-steps", min=0, help="Minimum steps before a navigation to emit a flow"
    ),
    max_duration: Optional[float] = typer.Option(
        None, "--max-duration", min=1, help="Drop flows longer than this many milliseconds"
    ),
) -> None:
    """Extract screens and flows from a trace."""
    from .services.flows import FlowsConfig, extract_flows

    cfg = get_config()
    setup_logging(cfg)

    config = FlowsConfig(
        trace_path=trace,
        screens_out=screens_out,
        flows_out=flows_out,
        min_steps_for_flow=min_steps if min_steps is not None else cfg.flows.min_steps_for_flow,
        max_flow_duration_ms=max_duration if max_duration is not None else cfg.flows.max_flow_duration_ms,
    )
    result = asyncio.run(extract_flows(config))

    _report(result, "Flow Extraction", [
        ("Screens", str(result.screens_found)),
        ("Flows", str(result.flows_found)),
        ("Screens File", result.screens_path),
        ("Flows File", result.flows_path),
    ])


@app.command()
def entities(
    trace: Path = typer.Argument(..., help="Path to the trace JSON file"),
    out: Path = typer.Option(Path("entities.json"), "--out", "-o", help="Output entities.json path"),
    min_occurrences: Optional[int] = typer.Option(
        None, "--min-occurrences", min=1, help="Minimum network observations per entity"
    ),
    ignore: Optional[list[str]] = typer.Option(
        None, "--ignore", help="Endpoint pattern to skip (substring or /regex/); repeatable"
    ),
    no_relationships: bool = typer.Option(
        False, "--no-relationships", help="Skip relationship inference"
    ),
) -> None:
    """Extract data entities and their CRUD operations from a trace."""
    from .services.entities import EntitiesConfig, extract_entities

    cfg = get_config()
    setup_logging(cfg)

    settings = cfg.entities.model_copy(deep=True)
    if min_occurrences is not None:
        settings.min_occurrences = min_occurrences
    if ignore:
        settings.ignore_endpoints = [*settings.ignore_endpoints, *ignore]
    if no_relationships:
        settings.infer_relationships = False

    result = asyncio.run(extract_entities(EntitiesConfig(trace_path=trace, out=out, settings=settings)))

    _report(result, "Entity Extraction", [
        ("Entities", str(result.entities_found)),
        ("Operations", str(result.operations_found)),
        ("Output File", result.output_path),
    ])


@app.command()
def rules(
    trace: Path = typer.Argument(..., help="Path to the trace JSON file"),
    flows_path: Path = typer.Option(..., "--flows", help="flows.json produced by the flows command"),
    entities_path: Path = typer.Option(..., "--entities", help="entities.json produced by the entities command"),
    screens_path: Optional[Path] = typer.Option(
        None, "--screens", help="Optional screens.json; flows referencing unknown screens are reported"
    ),
    out: Path = typer.Option(Path("rules.json"), "--out", "-o", help="Output rules.json path"),
) -> None:
    """Extract state machines and business rules."""
    from .services.rules import RulesConfig, extract_rules

    cfg = get_config()
    setup_logging(cfg)

    config = RulesConfig(
        trace_path=trace,
        flows_path=flows_path,
        entities_path=entities_path,
        screens_path=screens_path,
        out=out,
        settings=cfg.entities,
    )
    result = asyncio.run(extract_rules(config))

    _report(result, "Rule Extraction", [
        ("State Machines", str(result.state_machines_found)),
        ("Validation Rules", str(result.validation_rules_found)),
        ("Permission Rules", str(result.permission_rules_found)),
        ("Business Rules", str(result.business_rules_found)),
        ("Output File", result.output_path),
    ])


@app.command()
def run(
    trace: Path = typer.Argument(..., help="Path to the trace JSON file"),
    output_dir: Optional[Path] = typer.Option(
        None, "--output", "-o", help="Output directory for all artifacts"
    ),
    verbose: bool = typer.Option(False, "--verbose", help="Enable verbose logging"),
) -> None:
    """Run flows, entities and rules over a trace."""
    from .orchestration import run_pipeline

    cfg = get_config()
    if verbose:
        cfg = cfg.model_copy(update={"log_level": "DEBUG"})
    setup_logging(cfg)

    output = output_dir or cfg.storage.base_path

    console.print(Panel.fit(
        "[bold blue]Trace2Spec[/bold blue]\n"
        "Trace → Flows → Entities → Rules",
        border_style="blue",
    ))
    console.print(f"\n[bold]Input Trace:[/bold] {trace}")
    console.print(f"[bold]Output:[/bold] {output}\n")

    result = asyncio.run(run_pipeline(trace, output, config=cfg))

    if not result.success:
        console.print("\n[bold red]✗ Pipeline failed![/bold red]")
        console.print(f"Error: {result.error}")
        if result.failed_stage:
            console.print(f"Failed at: {result.failed_stage}")
        raise typer.Exit(1)

    console.print("\n[bold green]✓ Pipeline completed successfully![/bold green]\n")

    table = Table(title="Pipeline Results")
    table.add_column("Stage", style="cyan")
    table.add_column("Status")
    table.add_column("Duration")
    table.add_column("Diagnostics")
    for stage in result.run.stages:
        table.add_row(
            stage.stage_name,
            f"[green]{stage.status.value}[/green]",
            f"{stage.duration_seconds:.2f}s",
            str(len(stage.diagnostics)),
        )
    console.print(table)

    summary = Table(title="Extracted")
    summary.add_column("Metric", style="cyan")
    summary.add_column("Value", style="green")
    summary.add_row("Run ID", result.run_id)
    if result.flows:
        summary.add_row("Screens", str(result.flows.screens_found))
        summary.add_row("Flows", str(result.flows.flows_found))
    if result.entities:
        summary.add_row("Entities", str(result.entities.entities_found))
        summary.add_row("Operations", str(result.entities.operations_found))
    if result.rules:
        summary.add_row("State Machines", str(result.rules.state_machines_found))
        summary.add_row("Validation Rules", str(result.rules.validation_rules_found))
        summary.add_row("Permission Rules", str(result.rules.permission_rules_found))
        summary.add_row("Business Rules", str(result.rules.business_rules_found))
    console.print(summary)

    console.print(f"\n[bold]Artifacts:[/bold] {result.output_directory}")


@app.command()
def config() -> None:
    """Show the effective configuration."""
    cfg = get_config()

    table = Table(title="Current Configuration")
    table.add_column("Setting", style="cyan")
    table.add_column("Value")

    table.add_row("Log Level", cfg.log_level)
    table.add_row("Output Path", str(cfg.storage.base_path))
    table.add_row("Min Steps For Flow", str(cfg.flows.min_steps_for_flow))
    table.add_row("Max Flow Duration", f"{cfg.flows.max_flow_duration_ms:.0f}ms")
    table.add_row("Min Occurrences", str(cfg.entities.min_occurrences))
    table.add_row("Infer Relationships", str(cfg.entities.infer_relationships))
    table.add_row("Required After", f"{cfg.entities.min_required_observations} request shapes")

    console.print(table)

    console.print("\n[dim]Configure via environment variables:[/dim]")
    console.print("  T2S_LOG_LEVEL, T2S_OUTPUT_PATH")
    console.print("  T2S_MIN_STEPS_FOR_FLOW, T2S_MAX_FLOW_DURATION_MS")
    console.print("  T2S_MIN_OCCURRENCES, T2S_INFER_RELATIONSHIPS")


def main() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
