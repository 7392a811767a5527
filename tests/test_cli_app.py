import importlib
import json
from pathlib import Path

import pytest
from rich.console import Console
from typer.testing import CliRunner

cli_app_module = importlib.import_module("levelrun.cli.app")

runner = CliRunner()

FAST_ENV = {
    "LEVELRUN_LOAD_DELAY": "0",
    "LEVELRUN_TYPING_RATE": "100000",
    "LEVELRUN_EXECUTE_DELAY": "0",
    "LEVELRUN_COMPLETION_TIMEOUT": "0.2",
    "LEVELRUN_COMPLETE_HOLD": "0",
    "LEVELRUN_NEXT_LEVEL_DELAY": "0",
    "LEVELRUN_FRAME_INTERVAL": "0.001",
}


@pytest.fixture(autouse=True)
def _quiet_fast_cli(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.chdir(tmp_path)
    for name, value in FAST_ENV.items():
        monkeypatch.setenv(name, value)
    monkeypatch.setattr(cli_app_module, "configure_logging", lambda **_: None)
    monkeypatch.setattr(cli_app_module, "console", Console(width=200))


def _write_catalog(path: Path) -> Path:
    path.write_text(
        json.dumps(
            {
                "levels": [
                    {"name": "Orphan", "completion_flag": "println:hi"},
                    {"name": "Greeter", "completion_flag": "println:hi"},
                ],
                "solutions": {"Greeter": 'fn main() { println!("hi"); }'},
            }
        ),
        encoding="utf-8",
    )
    return path


def test_run_builtin_curriculum_passes() -> None:
    result = runner.invoke(cli_app_module.app, ["run"])

    assert result.exit_code == 0, result.output
    assert "4 passed, 0 failed" in result.output
    assert "Level 4: Exploration" in result.output


def test_run_with_window_and_fast_mode() -> None:
    result = runner.invoke(cli_app_module.app, ["run", "--fast", "--start", "2", "--max-levels", "1"])

    assert result.exit_code == 0, result.output
    assert "1 passed, 0 failed" in result.output
    assert "Level 3: Doors and Error Output" in result.output


def test_run_with_live_overlay(monkeypatch: pytest.MonkeyPatch) -> None:
    logging_calls: list[dict[str, object]] = []
    monkeypatch.setattr(cli_app_module, "configure_logging", lambda **kwargs: logging_calls.append(kwargs))

    result = runner.invoke(cli_app_module.app, ["run", "--live", "--max-levels", "1"])

    assert result.exit_code == 0, result.output
    assert "1 passed, 0 failed" in result.output
    [call] = logging_calls
    assert call["profile"] == "live"
    assert call["console"] is cli_app_module.console


def test_run_exits_with_failure_when_a_level_fails(tmp_path: Path) -> None:
    catalog = _write_catalog(tmp_path / "catalog.json")

    result = runner.invoke(cli_app_module.app, ["run", "--catalog", str(catalog)])

    assert result.exit_code == 1
    assert "No solution found for level 'Orphan'" in result.output
    assert "1 passed, 1 failed" in result.output


def test_run_reports_configuration_errors(tmp_path: Path) -> None:
    missing = runner.invoke(cli_app_module.app, ["run", "--catalog", str(tmp_path / "nope.json")])
    bad_start = runner.invoke(cli_app_module.app, ["run", "--start", "9"])

    assert missing.exit_code == 2
    assert "Error:" in missing.output
    assert bad_start.exit_code == 2
    assert "start level 9" in bad_start.output


def test_check_evaluates_one_source_file(tmp_path: Path) -> None:
    source = tmp_path / "hello.rs"
    source.write_text('fn main() {\n    println!("Hello, Rust!");\n}\n', encoding="utf-8")

    result = runner.invoke(cli_app_module.app, ["check", str(source)])

    assert result.exit_code == 0, result.output
    assert "Program Output" in result.output
    assert "Completion satisfied" in result.output


def test_check_selects_level_by_index_and_fails_unsatisfied(tmp_path: Path) -> None:
    source = tmp_path / "hello.rs"
    source.write_text('fn main() { move_bot("right"); println!("hello"); }', encoding="utf-8")

    result = runner.invoke(cli_app_module.app, ["check", str(source), "--level", "1"])

    assert result.exit_code == 1
    assert "Level 2: Functions and Loops" in result.output
    assert "Completion not satisfied" in result.output


def test_check_reports_marker_for_flagless_levels(tmp_path: Path) -> None:
    source = tmp_path / "goal.rs"
    source.write_text('fn main() { println!("Goal reached"); }', encoding="utf-8")

    result = runner.invoke(cli_app_module.app, ["check", str(source), "--level", "Level 4: Exploration"])

    assert result.exit_code == 0, result.output
    assert "marker 'Goal reached'" in result.output


def test_check_unknown_level(tmp_path: Path) -> None:
    source = tmp_path / "hello.rs"
    source.write_text("fn main() {}", encoding="utf-8")

    result = runner.invoke(cli_app_module.app, ["check", str(source), "--level", "nope"])

    assert result.exit_code == 2
    assert "unknown level 'nope'" in result.output


def test_levels_lists_flags_and_missing_solutions(tmp_path: Path) -> None:
    builtin = runner.invoke(cli_app_module.app, ["levels"])
    custom = runner.invoke(cli_app_module.app, ["levels", "--catalog", str(_write_catalog(tmp_path / "c.json"))])

    assert builtin.exit_code == 0
    assert "println:Hello, Rust!" in builtin.output
    assert "markers: Goal reached" in builtin.output
    assert custom.exit_code == 0
    assert "missing" in custom.output
