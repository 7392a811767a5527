"""levelrun CLI bootstrap."""

from __future__ import annotations

from levelrun.cli import app

if __name__ == "__main__":
    app()
