"""Completion flag grammar and evaluation."""

from __future__ import annotations

import re
from collections.abc import Sequence
from dataclasses import dataclass
from typing import TypeAlias

from levelrun.core.types import ExecutionResult, OutputKind
from levelrun.core.world import WorldModel

COUNT_RE = re.compile(r"[0-9]+")
DEFAULT_COMPLETION_MARKERS: tuple[str, ...] = ("Level complete", "Goal reached", "Mission complete")
MARKER_EVENT_KINDS = frozenset({OutputKind.STDOUT, OutputKind.ROBOT_ACTION})


@dataclass(frozen=True)
class PrintContains:
    text: str


@dataclass(frozen=True)
class StderrContains:
    text: str


@dataclass(frozen=True)
class ItemsCollected:
    count: int


@dataclass(frozen=True)
class TurnsAtLeast:
    count: int


@dataclass(frozen=True)
class AnyOutput:
    kind: OutputKind


@dataclass(frozen=True)
class Malformed:
    """Known flag whose argument does not parse; never satisfied."""

    raw: str


@dataclass(frozen=True)
class Unrecognized:
    raw: str


@dataclass(frozen=True)
class NoFlag:
    pass


CompletionFlag: TypeAlias = (
    PrintContains | StderrContains | ItemsCollected | TurnsAtLeast | AnyOutput | Malformed | Unrecognized | NoFlag
)

_BARE_FLAGS: dict[str, CompletionFlag] = {
    "println": AnyOutput(OutputKind.STDOUT),
    "eprintln": AnyOutput(OutputKind.STDERR),
    "error": AnyOutput(OutputKind.STDERR),
    "panic": AnyOutput(OutputKind.PANIC),
    "items_collected": ItemsCollected(1),
}


def parse_flag(raw: str | None) -> CompletionFlag:
    """Parse `type:value` or bare `type` completion flag text."""

    if raw is None or not raw.strip():
        return NoFlag()

    flag_type, sep, value = raw.partition(":")
    flag_type = flag_type.strip()
    if not sep:
        return _BARE_FLAGS.get(flag_type, Unrecognized(raw))

    if flag_type == "println":
        return PrintContains(value)
    if flag_type in ("eprintln", "error"):
        return StderrContains(value)
    if flag_type in ("items_collected", "moves_made"):
        count = _parse_count(value)
        if count is None:
            return Malformed(raw)
        return ItemsCollected(count) if flag_type == "items_collected" else TurnsAtLeast(count)
    return Unrecognized(raw)


def _parse_count(value: str) -> int | None:
    value = value.strip()
    if COUNT_RE.fullmatch(value) is None:
        return None
    try:
        return int(value)
    except ValueError:
        # past the interpreter's digit limit for int()
        return None


def evaluate(
    flag: CompletionFlag | str | None,
    result: ExecutionResult,
    world: WorldModel,
    markers: Sequence[str] = DEFAULT_COMPLETION_MARKERS,
) -> bool:
    """Decide whether a level is satisfied. Pure; never raises."""

    if flag is None or isinstance(flag, str):
        flag = parse_flag(flag)

    if isinstance(flag, PrintContains):
        return any(flag.text in line for line in result.stdout_lines)
    if isinstance(flag, StderrContains):
        return any(flag.text in line for line in result.stderr_lines)
    if isinstance(flag, ItemsCollected):
        return len(world.inventory) >= flag.count
    if isinstance(flag, TurnsAtLeast):
        return world.turns >= flag.count
    if isinstance(flag, AnyOutput):
        return any(event.kind is flag.kind for event in result.events)
    if isinstance(flag, Malformed):
        return False
    return matched_marker(result, markers) is not None


def matched_marker(result: ExecutionResult, markers: Sequence[str]) -> str | None:
    """First marker, in priority order, found in stdout or robot action output."""

    texts = [event.text for event in result.events if event.kind in MARKER_EVENT_KINDS]
    for marker in markers:
        if marker and any(marker in text for text in texts):
            return marker
    return None
