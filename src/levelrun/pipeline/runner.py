"""Frame loop that drives the orchestrator until every level has an outcome."""

from __future__ import annotations

import asyncio
from collections.abc import Callable

from loguru import logger

from levelrun.pipeline.orchestrator import LevelTestOrchestrator
from levelrun.pipeline.report import PipelineReport

FrameCallback = Callable[[LevelTestOrchestrator], None]


async def run_pipeline(
    orchestrator: LevelTestOrchestrator,
    *,
    frame_interval: float,
    stop_event: asyncio.Event | None = None,
    on_frame: FrameCallback | None = None,
) -> PipelineReport:
    """Tick once per frame; stopping between ticks keeps the outcome log consistent."""
    frames = 0
    logger.info(
        "pipeline.run.start levels={} frame_interval={:.4f}",
        orchestrator.levels_planned,
        frame_interval,
    )
    while not orchestrator.is_complete:
        if stop_event is not None and stop_event.is_set():
            logger.warning("pipeline.run.stopped frames={} outcomes={}", frames, len(orchestrator.outcome_log))
            break
        await orchestrator.tick()
        frames += 1
        if on_frame is not None:
            on_frame(orchestrator)
        if not orchestrator.is_complete:
            await asyncio.sleep(frame_interval)

    report = PipelineReport.from_outcomes(orchestrator.outcomes)
    logger.info("pipeline.run.finish frames={} summary={!r}", frames, report.summary_line())
    return report
