"""Per-level outcome records and the append-only outcome log."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass

from levelrun.errors import OutcomeLogError


@dataclass(frozen=True)
class LevelTestOutcome:
    """Permanent record of one level's verification attempt."""

    level_name: str
    level_index: int
    success: bool
    error: str | None = None
    duration: float = 0.0


class OutcomeLog:
    """Append-only; one entry per level index, strictly increasing."""

    def __init__(self) -> None:
        self._entries: list[LevelTestOutcome] = []

    def append(self, outcome: LevelTestOutcome) -> None:
        if self._entries and outcome.level_index <= self._entries[-1].level_index:
            raise OutcomeLogError(
                f"outcome for level {outcome.level_index} follows level {self._entries[-1].level_index}"
            )
        self._entries.append(outcome)

    def has(self, level_index: int) -> bool:
        return any(entry.level_index == level_index for entry in self._entries)

    @property
    def passed(self) -> int:
        return sum(1 for entry in self._entries if entry.success)

    @property
    def failed(self) -> int:
        return len(self._entries) - self.passed

    def entries(self) -> tuple[LevelTestOutcome, ...]:
        return tuple(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[LevelTestOutcome]:
        return iter(tuple(self._entries))
