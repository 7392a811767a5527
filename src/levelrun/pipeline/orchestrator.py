"""Level test orchestrator: a per-frame state machine over the whole curriculum."""

from __future__ import annotations

import time
from collections.abc import Callable
from contextvars import ContextVar
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

from loguru import logger

from levelrun.core.evaluator import evaluate
from levelrun.core.types import ExecutionResult
from levelrun.errors import ConfigurationError
from levelrun.pipeline.outcomes import LevelTestOutcome, OutcomeLog

if TYPE_CHECKING:
    from levelrun.pipeline.host import GameHost
    from levelrun.pipeline.levels import LevelCatalog, LevelDescriptor

_level_context: ContextVar[str] = ContextVar("level")
# float noise from accumulated frame times must not drop a keystroke
_TYPING_EPSILON = 1e-9


def current_level() -> str:
    """Name of the level the orchestrator is working on, for log records."""
    return _level_context.get("-")


class OrchestratorState(Enum):
    LOADING = "Loading"
    INPUTTING_SOLUTION = "InputtingSolution"
    EXECUTING_CODE = "ExecutingCode"
    WAITING_FOR_COMPLETION = "WaitingForCompletion"
    LEVEL_COMPLETE = "LevelComplete"
    NEXT_LEVEL = "NextLevel"
    TESTS_COMPLETE = "TestsComplete"

    @property
    def label(self) -> str:
        return _STATE_LABELS[self]


_STATE_LABELS: dict[OrchestratorState, str] = {
    OrchestratorState.LOADING: "Loading level...",
    OrchestratorState.INPUTTING_SOLUTION: "Typing solution into editor...",
    OrchestratorState.EXECUTING_CODE: "Executing code...",
    OrchestratorState.WAITING_FOR_COMPLETION: "Waiting for completion...",
    OrchestratorState.LEVEL_COMPLETE: "Level finished!",
    OrchestratorState.NEXT_LEVEL: "Loading next level...",
    OrchestratorState.TESTS_COMPLETE: "All levels tested!",
}


@dataclass(frozen=True)
class PipelineTimings:
    """Per-state thresholds in seconds; typing_rate in characters per second."""

    load_delay: float = 1.0
    typing_rate: float = 20.0
    execute_delay: float = 1.0
    completion_timeout: float = 5.0
    complete_hold: float = 2.0
    next_level_delay: float = 0.5

    def __post_init__(self) -> None:
        if self.typing_rate <= 0:
            raise ConfigurationError(f"typing_rate must be positive, got {self.typing_rate}")
        if self.completion_timeout <= 0:
            raise ConfigurationError(f"completion_timeout must be positive, got {self.completion_timeout}")
        for name in ("load_delay", "execute_delay", "complete_hold", "next_level_delay"):
            if getattr(self, name) < 0:
                raise ConfigurationError(f"{name} must not be negative")

    def typing_duration(self, characters: int) -> float:
        return characters / self.typing_rate

    def level_ceiling(self, characters: int | None) -> float:
        """Longest wall-clock time one level can take, ignoring frame granularity."""
        if characters is None:
            return self.load_delay + self.next_level_delay
        return (
            self.load_delay
            + self.typing_duration(characters)
            + self.execute_delay
            + self.completion_timeout
            + self.complete_hold
            + self.next_level_delay
        )


class LevelTestOrchestrator:
    """Types each reference solution, runs it, and records one outcome per level.

    Advance it with `await tick()` once per host frame. Only ExecutingCode
    suspends; every other state compares elapsed wall-clock time against its
    threshold and returns immediately.
    """

    def __init__(
        self,
        host: GameHost,
        catalog: LevelCatalog,
        *,
        timings: PipelineTimings | None = None,
        start_level: int = 0,
        max_levels: int | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        level_count = len(catalog.levels)
        if start_level < 0 or (level_count and start_level >= level_count):
            raise ConfigurationError(f"start level {start_level} is outside 0..{max(level_count - 1, 0)}")
        if max_levels is not None and max_levels < 1:
            raise ConfigurationError(f"max_levels must be at least 1, got {max_levels}")

        self.host = host
        self.catalog = catalog
        self.timings = timings or PipelineTimings()
        self.start_level = start_level
        self.end_level = level_count if max_levels is None else min(start_level + max_levels, level_count)
        self._clock = clock
        self._outcomes = OutcomeLog()

        self.level_index = start_level
        self._solution = ""
        self._typed = 0
        self._result: ExecutionResult | None = None

        now = clock()
        self.started_at = now
        self.finished_at: float | None = None
        self._level_started = now
        self._state_entered = now
        self._state = OrchestratorState.LOADING
        if self.start_level >= self.end_level:
            self._state = OrchestratorState.TESTS_COMPLETE
            self.finished_at = now

    @property
    def state(self) -> OrchestratorState:
        return self._state

    @property
    def is_complete(self) -> bool:
        return self._state is OrchestratorState.TESTS_COMPLETE

    @property
    def outcome_log(self) -> OutcomeLog:
        return self._outcomes

    @property
    def outcomes(self) -> tuple[LevelTestOutcome, ...]:
        return self._outcomes.entries()

    @property
    def current_level(self) -> LevelDescriptor | None:
        if 0 <= self.level_index < len(self.catalog.levels):
            return self.catalog.levels[self.level_index]
        return None

    @property
    def last_result(self) -> ExecutionResult | None:
        return self._result

    @property
    def typing_progress(self) -> float:
        if not self._solution:
            return 0.0
        return self._typed / len(self._solution)

    @property
    def levels_planned(self) -> int:
        return self.end_level - self.start_level

    def elapsed_in_state(self) -> float:
        return self._clock() - self._state_entered

    def estimated_max_duration(self, frame_interval: float = 0.0) -> float:
        """Upper bound on total run time for the selected levels."""
        total = 0.0
        for level in self.catalog.levels[self.start_level : self.end_level]:
            solution = self.catalog.solution_for(level.name)
            characters = None if solution is None else len(solution)
            states = 2 if solution is None else 6
            total += self.timings.level_ceiling(characters) + states * frame_interval
        return total

    async def tick(self) -> OrchestratorState:
        """Advance the machine by at most one step; call once per frame."""
        level = self.current_level
        token = _level_context.set(level.name if level is not None else "-")
        try:
            await self._step()
        finally:
            _level_context.reset(token)
        return self._state

    async def _step(self) -> None:
        elapsed = self.elapsed_in_state()
        timings = self.timings
        state = self._state
        if state is OrchestratorState.LOADING:
            if elapsed >= timings.load_delay:
                self._start_level()
        elif state is OrchestratorState.INPUTTING_SOLUTION:
            self._type_due_characters(elapsed)
        elif state is OrchestratorState.EXECUTING_CODE:
            if elapsed >= timings.execute_delay:
                await self._execute_solution()
        elif state is OrchestratorState.WAITING_FOR_COMPLETION:
            self._poll_completion(elapsed)
        elif state is OrchestratorState.LEVEL_COMPLETE:
            if elapsed >= timings.complete_hold:
                self._advance_level()
        elif state is OrchestratorState.NEXT_LEVEL:
            if elapsed >= timings.next_level_delay:
                self._load_next_or_finish()

    def _enter(self, state: OrchestratorState) -> None:
        logger.debug("pipeline.state from={} to={}", self._state.value, state.value)
        self._state = state
        self._state_entered = self._clock()

    def _start_level(self) -> None:
        level = self.current_level
        if level is None:
            self._enter(OrchestratorState.TESTS_COMPLETE)
            return

        solution = self.catalog.solution_for(level.name)
        if solution is None:
            logger.warning("pipeline.level.no_solution index={} name={!r}", self.level_index, level.name)
            self._record(False, f"No solution found for level '{level.name}'")
            self._advance_level()
            return

        self.host.load_level(level)
        self._solution = solution
        self._typed = 0
        self._result = None
        logger.info("pipeline.level.start index={} name={!r} chars={}", self.level_index, level.name, len(solution))
        self._enter(OrchestratorState.INPUTTING_SOLUTION)

    def _type_due_characters(self, elapsed: float) -> None:
        due = min(len(self._solution), int(elapsed * self.timings.typing_rate + _TYPING_EPSILON))
        while self._typed < due:
            self.host.insert_char(self._solution[self._typed])
            self._typed += 1
        if self._typed >= len(self._solution):
            logger.info("pipeline.typing.done chars={} code_length={}", self._typed, len(self.host.current_code))
            self._enter(OrchestratorState.EXECUTING_CODE)

    async def _execute_solution(self) -> None:
        try:
            self._result = await self.host.execute(self.host.current_code)
        except Exception as exc:
            logger.exception("pipeline.execute.error")
            self._complete_level(False, f"Execution failed: {exc!s}")
            return
        logger.info(
            "pipeline.execute.done success={} turns={} events={}",
            self._result.success,
            self._result.turns_taken,
            len(self._result.events),
        )
        self._enter(OrchestratorState.WAITING_FOR_COMPLETION)

    def _poll_completion(self, elapsed: float) -> None:
        level = self.current_level
        result = self._result
        if level is None or result is None:
            self._complete_level(False, "No execution result available")
            return
        try:
            satisfied = evaluate(level.completion_flag, result, self.host.world, level.completion_markers)
        except Exception as exc:
            logger.exception("pipeline.evaluate.error")
            self._complete_level(False, f"Completion check failed: {exc!s}")
            return
        if satisfied:
            self._complete_level(True, None)
            return
        if elapsed >= self.timings.completion_timeout:
            error = f"Timed out after {self.timings.completion_timeout:.1f}s waiting for completion"
            if result.error:
                error = f"{error} ({result.error})"
            self._complete_level(False, error)

    def _complete_level(self, success: bool, error: str | None) -> None:
        self._record(success, error)
        self._enter(OrchestratorState.LEVEL_COMPLETE)

    def _record(self, success: bool, error: str | None) -> None:
        level = self.current_level
        outcome = LevelTestOutcome(
            level_name=level.name if level is not None else f"Unknown Level {self.level_index}",
            level_index=self.level_index,
            success=success,
            error=error,
            duration=self._clock() - self._level_started,
        )
        self._outcomes.append(outcome)
        if success:
            logger.info("pipeline.level.pass index={} name={!r} duration={:.2f}s", outcome.level_index, outcome.level_name, outcome.duration)
        else:
            logger.error("pipeline.level.fail index={} name={!r} error={}", outcome.level_index, outcome.level_name, error)

    def _advance_level(self) -> None:
        self.level_index += 1
        self._enter(OrchestratorState.NEXT_LEVEL)

    def _load_next_or_finish(self) -> None:
        if self.level_index < self.end_level:
            self._level_started = self._clock()
            self._enter(OrchestratorState.LOADING)
            return
        self.finished_at = self._clock()
        logger.info(
            "pipeline.done passed={} failed={} levels={}",
            self._outcomes.passed,
            self._outcomes.failed,
            len(self._outcomes),
        )
        self._enter(OrchestratorState.TESTS_COMPLETE)
