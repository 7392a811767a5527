"""Configuration management for levelrun."""

from __future__ import annotations

from typing import Any, Literal, Optional

from pydantic import Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from .errors import ConfigurationError
from .pipeline.orchestrator import PipelineTimings


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(
        env_prefix="LEVELRUN_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Pipeline timings (seconds)
    load_delay: float = Field(default=1.0, ge=0, description="Settle time before typing starts")
    typing_rate: float = Field(default=20.0, gt=0, description="Simulated keystrokes per second")
    execute_delay: float = Field(default=1.0, ge=0, description="Pause between typing and execution")
    completion_timeout: float = Field(default=5.0, gt=0, description="Ceiling for completion polling")
    complete_hold: float = Field(default=2.0, ge=0, description="Hold after recording an outcome")
    next_level_delay: float = Field(default=0.5, ge=0, description="Pause before loading the next level")
    frame_interval: float = Field(default=1 / 60, gt=0, description="Seconds between orchestrator ticks")

    # Curriculum selection
    start_level: int = Field(default=0, ge=0, description="Index of the first level to verify")
    max_levels: Optional[int] = Field(default=None, ge=1, description="Cap on levels verified in one run")

    # Logging Configuration
    session_logging: bool = Field(default=False, description="Log every replayed action outcome")
    log_level: str = Field(default="INFO", description="Log level")
    log_profile: Literal["default", "live"] = Field(default="default", description="Log output profile")

    def timings(self, *, speedup: float = 1.0) -> PipelineTimings:
        """Build orchestrator timings, optionally compressed by `speedup`."""
        if speedup <= 0:
            raise ConfigurationError(f"speedup must be positive, got {speedup}")
        return PipelineTimings(
            load_delay=self.load_delay / speedup,
            typing_rate=self.typing_rate * speedup,
            execute_delay=self.execute_delay / speedup,
            completion_timeout=self.completion_timeout / speedup,
            complete_hold=self.complete_hold / speedup,
            next_level_delay=self.next_level_delay / speedup,
        )


def get_settings(**overrides: Any) -> Settings:
    """Get application settings.

    Args:
        overrides: Explicit values that take precedence over env and .env

    Returns:
        Settings instance
    """
    values = {key: value for key, value in overrides.items() if value is not None}
    try:
        return Settings(**values)
    except ValidationError as exc:
        raise ConfigurationError(f"invalid settings: {exc}") from exc
