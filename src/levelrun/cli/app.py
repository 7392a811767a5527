"""levelrun command line: run the pipeline, check one solution, list levels."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import NoReturn, Optional

import typer
from loguru import logger
from rich.console import Console
from rich.live import Live
from rich.markup import escape
from rich.table import Table

from levelrun.config import Settings, get_settings
from levelrun.core.evaluator import evaluate, matched_marker
from levelrun.errors import LevelrunError
from levelrun.logging_utils import configure_logging
from levelrun.pipeline.host import SandboxHost
from levelrun.pipeline.levels import LevelCatalog, LevelDescriptor, builtin_catalog, load_catalog
from levelrun.pipeline.orchestrator import LevelTestOrchestrator
from levelrun.pipeline.report import render_overlay, render_report
from levelrun.pipeline.runner import run_pipeline

FAST_SPEEDUP = 50.0

console = Console()

app = typer.Typer(
    name="levelrun",
    help="Replay every level's reference solution and report which ones still pass.",
    add_completion=False,
    rich_markup_mode="rich",
)

CatalogOption = typer.Option(None, "--catalog", "-c", help="JSON catalog; defaults to the built-in curriculum")


def _exit_with_error(message: str, code: int = 2) -> NoReturn:
    console.print(f"[bold red]Error:[/bold red] {escape(message)}")
    raise typer.Exit(code)


def _load_catalog(path: Optional[Path]) -> LevelCatalog:
    if path is None:
        return builtin_catalog()
    return load_catalog(path)


def _settings(**overrides: object) -> Settings:
    settings = get_settings(**overrides)
    configure_logging(profile=settings.log_profile, level=settings.log_level, console=console)
    return settings


@app.command()
def run(
    catalog: Optional[Path] = CatalogOption,
    start: Optional[int] = typer.Option(None, "--start", help="Index of the first level to verify"),
    max_levels: Optional[int] = typer.Option(None, "--max-levels", help="Verify at most this many levels"),
    fast: bool = typer.Option(False, "--fast", help=f"Compress every delay {FAST_SPEEDUP:g}x"),
    live: bool = typer.Option(False, "--live/--no-live", help="Show the progress overlay while running"),
) -> None:
    """Verify every level by typing and executing its reference solution."""
    try:
        settings = _settings(start_level=start, max_levels=max_levels, log_profile="live" if live else None)
        level_catalog = _load_catalog(catalog)
        orchestrator = LevelTestOrchestrator(
            SandboxHost(session_logging=settings.session_logging),
            level_catalog,
            timings=settings.timings(speedup=FAST_SPEEDUP if fast else 1.0),
            start_level=settings.start_level,
            max_levels=settings.max_levels,
        )
    except LevelrunError as exc:
        _exit_with_error(str(exc))

    frame_interval = settings.frame_interval / (FAST_SPEEDUP if fast else 1.0)
    logger.info(
        "cli.run levels={} ceiling={:.1f}s",
        orchestrator.levels_planned,
        orchestrator.estimated_max_duration(frame_interval),
    )
    try:
        if live:
            with Live(render_overlay(orchestrator), console=console, refresh_per_second=30, transient=True) as display:
                report = asyncio.run(
                    run_pipeline(
                        orchestrator,
                        frame_interval=frame_interval,
                        on_frame=lambda current: display.update(render_overlay(current)),
                    )
                )
        else:
            report = asyncio.run(run_pipeline(orchestrator, frame_interval=frame_interval))
    except KeyboardInterrupt:
        console.print("[yellow]Interrupted.[/yellow]")
        raise typer.Exit(130) from None

    render_report(report, console)
    if not report.all_passed:
        raise typer.Exit(1)


def _select_level(level_catalog: LevelCatalog, selector: Optional[str]) -> LevelDescriptor:
    if not level_catalog.levels:
        raise LevelrunError("catalog has no levels")
    if selector is None:
        return level_catalog.levels[0]
    found = level_catalog.find(selector)
    if found is not None:
        return found
    if selector.isdigit() and int(selector) < len(level_catalog.levels):
        return level_catalog.levels[int(selector)]
    raise LevelrunError(f"unknown level {selector!r}")


@app.command()
def check(
    source_file: Path = typer.Argument(..., exists=True, dir_okay=False, readable=True, help="Solution source"),
    level: Optional[str] = typer.Option(None, "--level", "-l", help="Level name or index; defaults to the first"),
    catalog: Optional[Path] = CatalogOption,
) -> None:
    """Run one source file against one level, without the typing simulation."""
    try:
        _settings()
        descriptor = _select_level(_load_catalog(catalog), level)
    except LevelrunError as exc:
        _exit_with_error(str(exc))

    host = SandboxHost()
    host.load_level(descriptor)
    result = asyncio.run(host.execute(source_file.read_text(encoding="utf-8")))

    console.print(f"[bold]{escape(descriptor.name)}[/bold]")
    table = Table()
    table.add_column("Output")
    table.add_column("Text")
    for event in result.events:
        table.add_row(event.kind.title, escape(event.text))
    console.print(table)
    console.print(f"Position: {result.final_position}  Turns: {result.turns_taken}  Items: {len(host.inventory)}")
    if result.error:
        console.print(f"[red]{escape(result.error)}[/red]")

    satisfied = evaluate(descriptor.completion_flag, result, host.world, descriptor.completion_markers)
    if satisfied:
        marker = None if descriptor.completion_flag else matched_marker(result, descriptor.completion_markers)
        suffix = f" (marker {marker!r})" if marker else ""
        console.print(f"[bold green]Completion satisfied[/bold green]{suffix}")
        return
    console.print(f"[bold red]Completion not satisfied[/bold red] (flag {descriptor.completion_flag!r})")
    raise typer.Exit(1)


@app.command()
def levels(catalog: Optional[Path] = CatalogOption) -> None:
    """List levels with their completion flag and whether a solution exists."""
    try:
        level_catalog = _load_catalog(catalog)
    except LevelrunError as exc:
        _exit_with_error(str(exc))

    table = Table(title="Levels")
    table.add_column("#", justify="right")
    table.add_column("Name")
    table.add_column("Completion")
    table.add_column("Solution", justify="center")
    for index, descriptor in enumerate(level_catalog.levels):
        completion = descriptor.completion_flag or "markers: " + ", ".join(descriptor.completion_markers)
        solution = "yes" if level_catalog.solution_for(descriptor.name) is not None else "[red]missing[/red]"
        table.add_row(str(index), escape(descriptor.name), escape(completion), solution)
    console.print(table)


if __name__ == "__main__":
    app()
