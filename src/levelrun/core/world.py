"""Simulated world state acted upon by one execution session."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from levelrun.core.types import Position

if TYPE_CHECKING:
    from levelrun.core.session import SessionConfig


@dataclass
class Grid:
    """Static layout plus the bookkeeping the executor updates."""

    width: int
    height: int
    blockers: set[Position] = field(default_factory=set)
    doors: set[Position] = field(default_factory=set)
    open_doors: set[Position] = field(default_factory=set)
    items: dict[Position, str] = field(default_factory=dict)
    known: set[Position] = field(default_factory=set)

    def in_bounds(self, pos: Position) -> bool:
        return 0 <= pos.x < self.width and 0 <= pos.y < self.height

    def is_blocked(self, pos: Position) -> bool:
        return pos in self.blockers

    def is_door(self, pos: Position) -> bool:
        return pos in self.doors

    def is_door_open(self, pos: Position) -> bool:
        return pos in self.open_doors

    def open_door(self, pos: Position) -> bool:
        if not self.is_door(pos) or self.is_door_open(pos):
            return False
        self.open_doors.add(pos)
        return True

    def reveal(self, pos: Position) -> bool:
        """Mark a tile as known; returns True when it was unknown before."""
        if not self.in_bounds(pos) or pos in self.known:
            return False
        self.known.add(pos)
        return True

    def take_item(self, pos: Position) -> str | None:
        return self.items.pop(pos, None)


@dataclass
class WorldModel:
    """Robot position, turn counter, grid and inventory."""

    position: Position
    grid: Grid
    turns: int = 0
    inventory: list[str] = field(default_factory=list)
    grabber_range: int = 1
    enable_logging: bool = False

    @classmethod
    def from_config(cls, config: SessionConfig) -> WorldModel:
        grid = Grid(
            width=config.grid_width,
            height=config.grid_height,
            blockers=set(config.blockers),
            doors=set(config.doors),
            items=dict(config.items),
        )
        start = Position(config.start_x, config.start_y)
        grid.reveal(start)
        return cls(
            position=start,
            grid=grid,
            grabber_range=config.grabber_range,
            enable_logging=config.enable_logging,
        )
