"""Execution session: extract, replay, and assemble one result."""

from __future__ import annotations

import asyncio
from collections.abc import Mapping
from contextvars import copy_context
from dataclasses import dataclass, field, replace
from functools import partial

from loguru import logger

from levelrun.core import extractor
from levelrun.core.executor import execute
from levelrun.core.types import Action, ExecutionResult, OutputEvent, Position
from levelrun.core.world import WorldModel

TRIVIAL_OUTCOME_MARKER = "executed"


@dataclass(frozen=True)
class SessionConfig:
    """World setup for one session."""

    grid_width: int = 6
    grid_height: int = 6
    start_x: int = 1
    start_y: int = 1
    enable_logging: bool = False
    grabber_range: int = 1
    items: Mapping[Position, str] = field(default_factory=dict)
    blockers: frozenset[Position] = frozenset()
    doors: frozenset[Position] = frozenset()

    def with_grid_size(self, width: int, height: int) -> SessionConfig:
        return replace(self, grid_width=width, grid_height=height)

    def with_robot_start_position(self, x: int, y: int) -> SessionConfig:
        return replace(self, start_x=x, start_y=y)

    def with_logging(self, enabled: bool) -> SessionConfig:
        return replace(self, enable_logging=enabled)


class ExecutionSession:
    """Owns one world model and runs one source text against it."""

    def __init__(self, config: SessionConfig | None = None) -> None:
        self.config = config or SessionConfig()
        self.world = WorldModel.from_config(self.config)

    async def run(self, source: str) -> ExecutionResult:
        ctx = copy_context()
        return await asyncio.get_running_loop().run_in_executor(None, ctx.run, partial(self.run_sync, source))

    def run_sync(self, source: str) -> ExecutionResult:
        self.world = WorldModel.from_config(self.config)
        try:
            return self._run(source)
        except Exception as exc:
            logger.exception("session.run.error")
            return ExecutionResult(
                success=False,
                final_position=self.world.position,
                turns_taken=self.world.turns,
                events=(),
                raw_trace="[]",
                error=f"execution_error: {exc!s}",
            )

    def _run(self, source: str) -> ExecutionResult:
        actions, print_events = extractor.extract(source)
        events = [event for raw in print_events if (event := parse_print_event(raw)) is not None]

        outcomes: list[str] = []
        for action in actions:
            outcome = execute(self.world, action)
            outcomes.append(outcome)
            if self.world.enable_logging:
                logger.info("session.action action={} outcome={}", action, outcome)

        meaningful = [outcome for outcome in outcomes if not is_trivial_outcome(outcome)]
        if meaningful:
            events.append(OutputEvent.robot_action("\n".join(meaningful)))

        logger.debug(
            "session.run.done actions={} prints={} turns={}",
            len(actions),
            len(print_events),
            self.world.turns,
        )
        return ExecutionResult(
            success=True,
            final_position=self.world.position,
            turns_taken=self.world.turns,
            events=tuple(events),
            raw_trace=format_trace(actions),
            error=None,
        )


def parse_print_event(raw: str) -> OutputEvent | None:
    if raw.startswith(extractor.STDOUT_PREFIX):
        return OutputEvent.stdout(raw.removeprefix(extractor.STDOUT_PREFIX))
    if raw.startswith(extractor.STDERR_PREFIX):
        return OutputEvent.stderr(raw.removeprefix(extractor.STDERR_PREFIX))
    return None


def is_trivial_outcome(outcome: str) -> bool:
    return not outcome or TRIVIAL_OUTCOME_MARKER in outcome


def format_trace(actions: list[Action]) -> str:
    return repr(actions)
