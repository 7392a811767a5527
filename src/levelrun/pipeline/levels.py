"""Level descriptors, the solutions table, and the built-in curriculum."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from levelrun.core.evaluator import DEFAULT_COMPLETION_MARKERS
from levelrun.core.session import SessionConfig
from levelrun.core.types import Position
from levelrun.errors import CatalogError


class ItemPlacement(BaseModel):
    """One collectable item on the grid."""

    model_config = ConfigDict(frozen=True)

    name: str
    x: int
    y: int


class LevelDescriptor(BaseModel):
    """Read-only description of one level."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(min_length=1)
    completion_flag: Optional[str] = Field(default=None, description="e.g. 'println:Hello, Rust!'")
    completion_markers: tuple[str, ...] = DEFAULT_COMPLETION_MARKERS
    grid_width: int = Field(default=6, ge=1)
    grid_height: int = Field(default=6, ge=1)
    start: tuple[int, int] = (1, 1)
    items: tuple[ItemPlacement, ...] = ()
    blockers: tuple[tuple[int, int], ...] = ()
    doors: tuple[tuple[int, int], ...] = ()
    grabber_range: int = Field(default=1, ge=0)

    @model_validator(mode="after")
    def _check_layout(self) -> LevelDescriptor:
        cells = [self.start, *((item.x, item.y) for item in self.items), *self.blockers, *self.doors]
        for x, y in cells:
            if not (0 <= x < self.grid_width and 0 <= y < self.grid_height):
                raise ValueError(f"cell ({x}, {y}) is outside the {self.grid_width}x{self.grid_height} grid")
        if self.start in self.blockers:
            raise ValueError("start position is blocked")
        return self

    def session_config(self, *, enable_logging: bool = False) -> SessionConfig:
        return SessionConfig(
            grid_width=self.grid_width,
            grid_height=self.grid_height,
            start_x=self.start[0],
            start_y=self.start[1],
            enable_logging=enable_logging,
            grabber_range=self.grabber_range,
            items={Position(item.x, item.y): item.name for item in self.items},
            blockers=frozenset(Position(x, y) for x, y in self.blockers),
            doors=frozenset(Position(x, y) for x, y in self.doors),
        )


class LevelCatalog(BaseModel):
    """Ordered levels plus the reference solutions keyed by level name."""

    levels: list[LevelDescriptor] = Field(default_factory=list)
    solutions: dict[str, str] = Field(default_factory=dict)

    def solution_for(self, level_name: str) -> str | None:
        return self.solutions.get(level_name)

    def find(self, level_name: str) -> LevelDescriptor | None:
        for level in self.levels:
            if level.name == level_name:
                return level
        return None


def load_catalog(path: Path) -> LevelCatalog:
    """Load a JSON catalog of the form {"levels": [...], "solutions": {...}}."""
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise CatalogError(f"cannot read catalog {path}: {exc}") from exc
    except json.JSONDecodeError as exc:
        raise CatalogError(f"catalog {path} is not valid JSON: {exc}") from exc
    try:
        return LevelCatalog.model_validate(payload)
    except ValidationError as exc:
        raise CatalogError(f"catalog {path} is invalid: {exc}") from exc


LEVEL_1 = LevelDescriptor(
    name="Level 1 - Hello Rust!",
    completion_flag="println:Hello, Rust!",
    grid_width=12,
    grid_height=8,
    start=(1, 1),
    items=(ItemPlacement(name="hello_world_tip", x=10, y=6), ItemPlacement(name="goal_item", x=8, y=2)),
)

LEVEL_2 = LevelDescriptor(
    name="Level 2: Functions and Loops",
    completion_flag="items_collected:2",
    grid_width=6,
    grid_height=6,
    start=(0, 0),
    items=(ItemPlacement(name="key", x=3, y=0), ItemPlacement(name="goal_item", x=5, y=5)),
)

LEVEL_3 = LevelDescriptor(
    name="Level 3: Doors and Error Output",
    completion_flag="items_collected:1",
    grid_width=5,
    grid_height=3,
    start=(0, 1),
    items=(ItemPlacement(name="credit_gem", x=4, y=1),),
    blockers=((2, 0), (2, 2)),
    doors=((2, 1),),
)

LEVEL_4 = LevelDescriptor(
    name="Level 4: Exploration",
    completion_markers=("Goal reached",),
    grid_width=6,
    grid_height=4,
    start=(0, 0),
    blockers=((1, 1), (2, 1), (3, 1)),
    items=(ItemPlacement(name="scanner", x=5, y=3),),
)

BUILTIN_SOLUTIONS: dict[str, str] = {
    LEVEL_1.name: """fn main() {
    println!("Hello, Rust!");
}""",
    LEVEL_2.name: """fn scan_level() {
    println!("Beginning level scan...");
    move_bot("right");
    move_bot("right");
    grab();
}

fn main() {
    scan_level();
    move_bot("right");
    move_bot("right");
    move_bot("right");
    move_bot("down");
    move_bot("down");
    move_bot("down");
    move_bot("down");
    grab();
    println!("All tasks complete! Moving to goal...");
}""",
    LEVEL_3.name: """fn main() {
    eprintln!("Door sensor offline, opening manually");
    move_bot("right");
    open_door();
    move_bot("right");
    move_bot("right");
    let found = scan("right");
    grab();
    println!("Collected the gem");
}""",
    LEVEL_4.name: """fn main() {
    // walk around the wall
    for _ in 0..5 {
        move_bot("right");
    }
    move_bot("right");
    move_bot("right");
    move_bot("right");
    move_bot("right");
    scan(down);
    move_bot("down");
    move_bot("down");
    let target = "Goal";
    println!("{} reached at the east side", target);
}""",
}


def builtin_catalog() -> LevelCatalog:
    """The curriculum shipped with the package."""
    return LevelCatalog(levels=[LEVEL_1, LEVEL_2, LEVEL_3, LEVEL_4], solutions=dict(BUILTIN_SOLUTIONS))
