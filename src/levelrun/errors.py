"""Application-level exception types for levelrun."""

from __future__ import annotations


class LevelrunError(Exception):
    """Base exception for levelrun."""


class ConfigurationError(LevelrunError):
    """Raised for invalid settings or pipeline options."""


class CatalogError(ConfigurationError):
    """Raised when a level catalog cannot be read or validated."""


class OutcomeLogError(LevelrunError):
    """Raised when an outcome would break the log's one-per-level ordering."""
