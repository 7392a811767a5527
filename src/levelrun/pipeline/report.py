"""Read-only summaries of an outcome log, in plain text and rich."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from levelrun.pipeline.orchestrator import LevelTestOrchestrator, OrchestratorState
from levelrun.pipeline.outcomes import LevelTestOutcome


@dataclass(frozen=True)
class PipelineReport:
    outcomes: tuple[LevelTestOutcome, ...]
    passed: int
    failed: int

    @classmethod
    def from_outcomes(cls, outcomes: Iterable[LevelTestOutcome]) -> PipelineReport:
        entries = tuple(outcomes)
        passed = sum(1 for outcome in entries if outcome.success)
        return cls(outcomes=entries, passed=passed, failed=len(entries) - passed)

    @property
    def total(self) -> int:
        return len(self.outcomes)

    @property
    def success_rate(self) -> float:
        if not self.outcomes:
            return 0.0
        return self.passed / self.total

    @property
    def all_passed(self) -> bool:
        return self.failed == 0

    def summary_line(self) -> str:
        return f"{self.passed} passed, {self.failed} failed"

    def format_summary(self) -> str:
        """Plain-text report, one line per level plus an indented error line."""
        lines = ["=== Level Test Summary ==="]
        for outcome in self.outcomes:
            status = "PASS" if outcome.success else "FAIL"
            lines.append(f"[{status}] {outcome.level_index}: {outcome.level_name} ({outcome.duration:.2f}s)")
            if outcome.error:
                lines.append(f"    error: {outcome.error}")
        lines.append(f"Total: {self.total}, {self.summary_line()} ({self.success_rate:.0%})")
        return "\n".join(lines)


@dataclass(frozen=True)
class OverlaySnapshot:
    """What a progress overlay shows for one frame."""

    state_label: str
    level_index: int
    level_name: str
    typing_percent: int
    typing: bool
    passed: int
    failed: int

    @classmethod
    def capture(cls, orchestrator: LevelTestOrchestrator) -> OverlaySnapshot:
        level = orchestrator.current_level
        log = orchestrator.outcome_log
        return cls(
            state_label=orchestrator.state.label,
            level_index=orchestrator.level_index,
            level_name=level.name if level is not None else "-",
            typing_percent=int(orchestrator.typing_progress * 100),
            typing=orchestrator.state is OrchestratorState.INPUTTING_SOLUTION,
            passed=log.passed,
            failed=log.failed,
        )

    def lines(self) -> list[str]:
        lines = [self.state_label, f"Level {self.level_index}: {self.level_name}"]
        if self.typing:
            lines.append(f"Typing: {self.typing_percent}%")
        lines.append(f"Passed: {self.passed}  Failed: {self.failed}")
        return lines


def build_report_table(report: PipelineReport) -> Table:
    table = Table(title="Level Test Summary", show_lines=False)
    table.add_column("#", justify="right", style="dim")
    table.add_column("Level")
    table.add_column("Result", justify="center")
    table.add_column("Duration", justify="right")
    table.add_column("Error", style="red")
    for outcome in report.outcomes:
        result = Text("PASS", style="bold green") if outcome.success else Text("FAIL", style="bold red")
        table.add_row(
            str(outcome.level_index),
            escape(outcome.level_name),
            result,
            f"{outcome.duration:.2f}s",
            escape(outcome.error or ""),
        )
    return table


def render_report(report: PipelineReport, console: Console) -> None:
    console.print(build_report_table(report))
    style = "bold green" if report.all_passed else "bold red"
    console.print(f"[{style}]{report.summary_line()}[/{style}] [dim]({report.success_rate:.0%})[/dim]")


def build_overlay(snapshot: OverlaySnapshot) -> Panel:
    body = Text("\n".join(snapshot.lines()))
    return Panel(body, title="Level Test Runner", border_style="cyan", expand=False)


def render_overlay(orchestrator: LevelTestOrchestrator) -> Panel:
    return build_overlay(OverlaySnapshot.capture(orchestrator))
