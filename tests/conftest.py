from __future__ import annotations

from dataclasses import dataclass

import pytest

from levelrun.core.session import SessionConfig
from levelrun.core.types import Position


@dataclass
class FakeClock:
    now: float = 0.0

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def room_config() -> SessionConfig:
    """5x5 room: wall east of start, closed door south of start, key two tiles north."""
    return SessionConfig(
        grid_width=5,
        grid_height=5,
        start_x=2,
        start_y=2,
        items={Position(2, 0): "key"},
        blockers=frozenset({Position(3, 2)}),
        doors=frozenset({Position(2, 3)}),
    )
