"""Level verification pipeline: catalog, host, orchestrator, report."""

from .host import GameHost, SandboxHost
from .levels import LevelCatalog, LevelDescriptor, builtin_catalog, load_catalog
from .orchestrator import LevelTestOrchestrator, OrchestratorState, PipelineTimings, current_level
from .outcomes import LevelTestOutcome, OutcomeLog
from .report import OverlaySnapshot, PipelineReport, render_overlay, render_report
from .runner import run_pipeline

__all__ = [
    "GameHost",
    "LevelCatalog",
    "LevelDescriptor",
    "LevelTestOrchestrator",
    "LevelTestOutcome",
    "OrchestratorState",
    "OutcomeLog",
    "OverlaySnapshot",
    "PipelineReport",
    "PipelineTimings",
    "SandboxHost",
    "builtin_catalog",
    "current_level",
    "load_catalog",
    "render_overlay",
    "render_report",
    "run_pipeline",
]
