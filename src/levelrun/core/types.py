"""Shared core dataclasses."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TypeAlias
from enum import Enum


class Direction(Enum):
    """Grid direction with its (dx, dy) step."""

    UP = (0, -1)
    DOWN = (0, 1)
    LEFT = (-1, 0)
    RIGHT = (1, 0)
    CURRENT = (0, 0)

    @property
    def delta(self) -> tuple[int, int]:
        return self.value

    @property
    def label(self) -> str:
        return self.name.lower()


@dataclass(frozen=True)
class Position:
    """Integer grid coordinates."""

    x: int
    y: int

    def offset(self, direction: Direction) -> Position:
        dx, dy = direction.delta
        return Position(self.x + dx, self.y + dy)

    def distance_to(self, other: Position) -> int:
        return abs(self.x - other.x) + abs(self.y - other.y)

    def __str__(self) -> str:
        return f"({self.x}, {self.y})"


@dataclass(frozen=True)
class Move:
    direction: Direction


@dataclass(frozen=True)
class Scan:
    direction: Direction


@dataclass(frozen=True)
class Grab:
    pass


@dataclass(frozen=True)
class OpenDoor:
    pass


@dataclass(frozen=True)
class Wait:
    pass


@dataclass(frozen=True)
class NoOp:
    """Known call whose arguments could not be understood."""

    raw: str = ""


Action: TypeAlias = Move | Scan | Grab | OpenDoor | Wait | NoOp


class OutputKind(Enum):
    STDOUT = "stdout"
    STDERR = "stderr"
    PANIC = "panic"
    ROBOT_ACTION = "robot_action"
    INFO = "info"

    @property
    def title(self) -> str:
        return _OUTPUT_TITLES[self]


_OUTPUT_TITLES: dict[OutputKind, str] = {
    OutputKind.STDOUT: "Program Output",
    OutputKind.STDERR: "Error Output",
    OutputKind.PANIC: "Panic",
    OutputKind.ROBOT_ACTION: "Robot Action Results",
    OutputKind.INFO: "Info",
}


@dataclass(frozen=True)
class OutputEvent:
    """One captured message produced during a session."""

    kind: OutputKind
    text: str

    @classmethod
    def stdout(cls, text: str) -> OutputEvent:
        return cls(OutputKind.STDOUT, text)

    @classmethod
    def stderr(cls, text: str) -> OutputEvent:
        return cls(OutputKind.STDERR, text)

    @classmethod
    def panic(cls, text: str) -> OutputEvent:
        return cls(OutputKind.PANIC, text)

    @classmethod
    def robot_action(cls, text: str) -> OutputEvent:
        return cls(OutputKind.ROBOT_ACTION, text)

    @classmethod
    def info(cls, text: str) -> OutputEvent:
        return cls(OutputKind.INFO, text)


@dataclass(frozen=True)
class ExecutionResult:
    """Complete outcome of running one solution through one session."""

    success: bool
    final_position: Position
    turns_taken: int
    events: tuple[OutputEvent, ...] = ()
    raw_trace: str = "[]"
    error: str | None = None

    def texts(self, kind: OutputKind) -> list[str]:
        return [event.text for event in self.events if event.kind is kind]

    @property
    def stdout_lines(self) -> list[str]:
        return self.texts(OutputKind.STDOUT)

    @property
    def stderr_lines(self) -> list[str]:
        return self.texts(OutputKind.STDERR)
