"""Command line interface for levelrun."""

from .app import app

__all__ = ["app"]
