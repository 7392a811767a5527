"""Host handle: editor buffer, captured output, and the sandboxed world."""

from __future__ import annotations

from typing import Protocol

from loguru import logger

from levelrun.core.session import ExecutionSession, SessionConfig
from levelrun.core.types import ExecutionResult
from levelrun.core.world import WorldModel
from levelrun.pipeline.levels import LevelDescriptor


class GameHost(Protocol):
    """What the orchestrator needs from the hosting game."""

    current_code: str
    cursor_position: int
    world: WorldModel

    def load_level(self, level: LevelDescriptor) -> None: ...

    def insert_char(self, ch: str) -> None: ...

    async def execute(self, code: str) -> ExecutionResult: ...


class SandboxHost:
    """In-process game handle backed by one execution session per level."""

    def __init__(self, *, session_logging: bool = False) -> None:
        self._session_logging = session_logging
        self._session = ExecutionSession(SessionConfig(enable_logging=session_logging))
        self.level: LevelDescriptor | None = None
        self.world: WorldModel = self._session.world
        self.current_code = ""
        self.cursor_position = 0
        self.stdout_lines: list[str] = []
        self.stderr_lines: list[str] = []
        self.execution_result: ExecutionResult | None = None
        self.executions = 0

    @property
    def inventory(self) -> list[str]:
        return self.world.inventory

    def load_level(self, level: LevelDescriptor) -> None:
        self.level = level
        self._session = ExecutionSession(level.session_config(enable_logging=self._session_logging))
        self.world = self._session.world
        self.clear_code()
        self.clear_output()
        logger.info("host.level.loaded name={!r} grid={}x{}", level.name, level.grid_width, level.grid_height)

    def clear_code(self) -> None:
        self.current_code = ""
        self.cursor_position = 0

    def clear_output(self) -> None:
        self.stdout_lines.clear()
        self.stderr_lines.clear()
        self.execution_result = None

    def insert_char(self, ch: str) -> None:
        """Type one character at the cursor, exactly like a keystroke."""
        cursor = min(self.cursor_position, len(self.current_code))
        self.current_code = self.current_code[:cursor] + ch + self.current_code[cursor:]
        self.cursor_position = cursor + len(ch)

    async def execute(self, code: str) -> ExecutionResult:
        result = await self._session.run(code)
        self.world = self._session.world
        self.execution_result = result
        self.stdout_lines.extend(result.stdout_lines)
        self.stderr_lines.extend(result.stderr_lines)
        self.executions += 1
        return result
