"""levelrun - replay reference solutions through every level and report."""

from .pipeline import LevelTestOrchestrator, PipelineReport, SandboxHost, builtin_catalog, run_pipeline

__version__ = "0.1.0"

__all__ = ["LevelTestOrchestrator", "PipelineReport", "SandboxHost", "builtin_catalog", "run_pipeline"]
