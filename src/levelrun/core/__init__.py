"""Core module for levelrun."""

from .evaluator import CompletionFlag, evaluate, parse_flag
from .extractor import extract
from .executor import execute
from .session import ExecutionSession, SessionConfig
from .types import Direction, ExecutionResult, OutputEvent, OutputKind, Position
from .world import Grid, WorldModel

__all__ = [
    "CompletionFlag",
    "Direction",
    "ExecutionResult",
    "ExecutionSession",
    "Grid",
    "OutputEvent",
    "OutputKind",
    "Position",
    "SessionConfig",
    "WorldModel",
    "evaluate",
    "execute",
    "extract",
    "parse_flag",
]
