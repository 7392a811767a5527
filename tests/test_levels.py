import json
from pathlib import Path

import pytest
from pydantic import ValidationError

from levelrun.core.evaluator import evaluate
from levelrun.core.session import ExecutionSession
from levelrun.core.types import Position
from levelrun.errors import CatalogError
from levelrun.pipeline.levels import BUILTIN_SOLUTIONS, LevelDescriptor, builtin_catalog, load_catalog


def test_builtin_catalog_has_a_solution_for_every_level() -> None:
    catalog = builtin_catalog()

    assert len(catalog.levels) == 4
    for level in catalog.levels:
        assert catalog.solution_for(level.name) == BUILTIN_SOLUTIONS[level.name]
    assert catalog.solution_for("Level 99") is None
    assert catalog.find("Level 1 - Hello Rust!") is catalog.levels[0]
    assert catalog.find("missing") is None


@pytest.mark.parametrize("level", builtin_catalog().levels, ids=lambda level: level.name)
def test_builtin_solutions_satisfy_their_levels(level: LevelDescriptor) -> None:
    session = ExecutionSession(level.session_config())

    result = session.run_sync(BUILTIN_SOLUTIONS[level.name])

    assert result.success
    assert evaluate(level.completion_flag, result, session.world, level.completion_markers)


def test_empty_solution_does_not_satisfy_any_builtin_level() -> None:
    for level in builtin_catalog().levels:
        session = ExecutionSession(level.session_config())
        result = session.run_sync("fn main() {}")
        assert not evaluate(level.completion_flag, result, session.world, level.completion_markers)


def test_session_config_mirrors_the_descriptor() -> None:
    level = LevelDescriptor(
        name="Room",
        grid_width=4,
        grid_height=3,
        start=(0, 2),
        items=[{"name": "key", "x": 3, "y": 0}],
        blockers=[(1, 1)],
        doors=[(2, 2)],
        grabber_range=2,
    )

    config = level.session_config(enable_logging=True)

    assert (config.grid_width, config.grid_height, config.start_x, config.start_y) == (4, 3, 0, 2)
    assert config.items == {Position(3, 0): "key"}
    assert config.blockers == frozenset({Position(1, 1)})
    assert config.doors == frozenset({Position(2, 2)})
    assert config.grabber_range == 2
    assert config.enable_logging is True


@pytest.mark.parametrize(
    "layout",
    [
        {"start": (6, 0)},
        {"items": [{"name": "key", "x": -1, "y": 0}]},
        {"blockers": [(1, 1)], "start": (1, 1)},
    ],
)
def test_descriptor_rejects_impossible_layouts(layout: dict) -> None:
    with pytest.raises(ValidationError):
        LevelDescriptor(name="Broken", **layout)


def test_load_catalog_reads_levels_and_solutions(tmp_path: Path) -> None:
    path = tmp_path / "catalog.json"
    path.write_text(
        json.dumps(
            {
                "levels": [
                    {"name": "Greeter", "completion_flag": "println:hi"},
                    {"name": "Explorer", "completion_markers": ["Done"], "grid_width": 3, "grid_height": 3},
                ],
                "solutions": {"Greeter": 'println!("hi");'},
            }
        ),
        encoding="utf-8",
    )

    catalog = load_catalog(path)

    assert [level.name for level in catalog.levels] == ["Greeter", "Explorer"]
    assert catalog.levels[1].completion_markers == ("Done",)
    assert catalog.solution_for("Greeter") == 'println!("hi");'
    assert catalog.solution_for("Explorer") is None


def test_load_catalog_wraps_every_failure(tmp_path: Path) -> None:
    missing = tmp_path / "missing.json"
    not_json = tmp_path / "broken.json"
    not_json.write_text("{levels", encoding="utf-8")
    invalid = tmp_path / "invalid.json"
    invalid.write_text(json.dumps({"levels": [{"name": ""}]}), encoding="utf-8")

    for path in (missing, not_json, invalid):
        with pytest.raises(CatalogError):
            load_catalog(path)
