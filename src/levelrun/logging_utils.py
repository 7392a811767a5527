"""Loguru setup for levelrun.

Every record carries `extra[level_name]`, the level the orchestrator is
working on ("-" outside a tick). The `default` profile is a plain stderr
sink. The `live` profile hands records to a `RichHandler` bound to the same
console that draws the progress overlay, so log lines scroll above it
instead of tearing it.
"""

from __future__ import annotations

import os
import sys
from logging import Handler
from typing import Literal

import loguru
from loguru import logger
from rich import get_console
from rich.console import Console
from rich.logging import RichHandler

LogProfile = Literal["default", "live"]

DEFAULT_FORMAT = "{time:HH:mm:ss.SSS} | {level:<7} | {extra[level_name]} | {name}:{line} | {message}"
# RichHandler draws the log level and time columns itself
LIVE_FORMAT = "[{extra[level_name]}] {message}"

_CONFIGURED_PROFILE: LogProfile | None = None


def _tag_level_name(record: loguru.Record) -> None:
    from levelrun.pipeline.orchestrator import current_level

    record["extra"]["level_name"] = current_level()


def _build_live_handler(console: Console | None) -> Handler:
    return RichHandler(
        console=console or get_console(),
        show_time=True,
        omit_repeated_times=True,
        show_path=False,
        markup=False,
        rich_tracebacks=False,
    )


def configure_logging(
    *,
    profile: LogProfile = "default",
    level: str | None = None,
    console: Console | None = None,
) -> None:
    """Install the sink for `profile`; a repeated call with the same profile is a no-op."""
    global _CONFIGURED_PROFILE
    if profile == _CONFIGURED_PROFILE:
        return

    threshold = (level or os.getenv("LEVELRUN_LOG_LEVEL", "INFO")).upper()
    logger.remove()
    logger.configure(patcher=_tag_level_name)
    if profile == "live":
        logger.add(_build_live_handler(console), level=threshold, format=LIVE_FORMAT, backtrace=False, diagnose=False)
    else:
        logger.add(sys.stderr, level=threshold, format=DEFAULT_FORMAT, backtrace=False, diagnose=False)
    _CONFIGURED_PROFILE = profile
