from rich.console import Console

from levelrun.pipeline.host import SandboxHost
from levelrun.pipeline.levels import builtin_catalog
from levelrun.pipeline.orchestrator import LevelTestOrchestrator
from levelrun.pipeline.outcomes import LevelTestOutcome
from levelrun.pipeline.report import OverlaySnapshot, PipelineReport, render_overlay, render_report

OUTCOMES = (
    LevelTestOutcome("Level 1 - Hello Rust!", 0, True, duration=3.25),
    LevelTestOutcome("Level 2: Functions and Loops", 1, False, error="Timed out after 5.0s waiting for completion", duration=17.5),
)


def test_report_tallies_outcomes() -> None:
    report = PipelineReport.from_outcomes(OUTCOMES)

    assert (report.passed, report.failed, report.total) == (1, 1, 2)
    assert report.success_rate == 0.5
    assert report.all_passed is False
    assert report.summary_line() == "1 passed, 1 failed"


def test_empty_report() -> None:
    report = PipelineReport.from_outcomes([])

    assert report.summary_line() == "0 passed, 0 failed"
    assert report.success_rate == 0.0
    assert report.all_passed is True


def test_format_summary_lists_each_level_with_its_error() -> None:
    text = PipelineReport.from_outcomes(OUTCOMES).format_summary()

    assert text.splitlines() == [
        "=== Level Test Summary ===",
        "[PASS] 0: Level 1 - Hello Rust! (3.25s)",
        "[FAIL] 1: Level 2: Functions and Loops (17.50s)",
        "    error: Timed out after 5.0s waiting for completion",
        "Total: 2, 1 passed, 1 failed (50%)",
    ]


def test_render_report_prints_table_and_summary() -> None:
    console = Console(record=True, width=160)

    render_report(PipelineReport.from_outcomes(OUTCOMES), console)

    output = console.export_text()
    assert "Level 1 - Hello Rust!" in output
    assert "FAIL" in output
    assert "1 passed, 1 failed" in output


def test_overlay_snapshot_reflects_orchestrator_state() -> None:
    orchestrator = LevelTestOrchestrator(SandboxHost(), builtin_catalog(), clock=lambda: 0.0)

    snapshot = OverlaySnapshot.capture(orchestrator)

    assert snapshot.state_label == "Loading level..."
    assert snapshot.level_name == "Level 1 - Hello Rust!"
    assert snapshot.typing is False
    assert snapshot.lines() == [
        "Loading level...",
        "Level 0: Level 1 - Hello Rust!",
        "Passed: 0  Failed: 0",
    ]


def test_overlay_shows_typing_progress() -> None:
    snapshot = OverlaySnapshot(
        state_label="Typing solution into editor...",
        level_index=2,
        level_name="Level 3",
        typing_percent=42,
        typing=True,
        passed=2,
        failed=0,
    )

    assert "Typing: 42%" in snapshot.lines()


def test_render_overlay_returns_a_panel() -> None:
    orchestrator = LevelTestOrchestrator(SandboxHost(), builtin_catalog(), clock=lambda: 0.0)
    console = Console(record=True, width=80)

    console.print(render_overlay(orchestrator))

    assert "Level Test Runner" in console.export_text()
