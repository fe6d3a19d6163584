"""Host entry points: logging setup and the serve loop."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from cadence.config import settings

if TYPE_CHECKING:
    import asyncio

    from cadence.scheduler.runner import TaskRunner

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(level: str | None = None) -> None:
    """Configure root logging once for the host process."""
    logging.basicConfig(
        format=LOG_FORMAT,
        level=getattr(logging, (level or settings.log_level).upper()),
    )
    # APScheduler logs every job submission at INFO
    logging.getLogger("apscheduler").setLevel(logging.WARNING)


async def serve(runner: TaskRunner, stop_event: asyncio.Event) -> None:
    """Start *runner*, keep it armed until *stop_event* is set, then stop it."""
    await runner.start()
    logger.info("Serving %d recurring task(s)", len(runner.task_ids))
    try:
        await stop_event.wait()
    finally:
        await runner.stop()
