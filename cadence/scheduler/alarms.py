"""AlarmClock — one-shot wake-ups per task ID on top of APScheduler."""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.date import DateTrigger

from cadence.config import settings

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

logger = logging.getLogger(__name__)


def _to_datetime(value_ms: int) -> datetime:
    return datetime.fromtimestamp(value_ms / 1000, UTC)


class AlarmClock:
    """Keeps at most one pending wake-up per task ID.

    Each wake-up is a ``DateTrigger`` job whose job ID is the task ID, so
    scheduling again for the same ID replaces the pending job instead of
    adding a second one.

    Args:
        timezone: IANA timezone string (default from settings).
    """

    def __init__(self, timezone: str | None = None) -> None:
        self._timezone = timezone or settings.scheduler_timezone
        self._scheduler = AsyncIOScheduler(timezone=self._timezone)
        self._running = False

    @property
    def running(self) -> bool:
        return self._running

    # -- Lifecycle -------------------------------------------------------------

    def start(self) -> None:
        """Start delivering wake-ups. Jobs added earlier fire from now on."""
        if self._running:
            return
        self._scheduler.start()
        self._running = True
        logger.info("Alarm clock started (tz=%s)", self._timezone)

    def stop(self) -> None:
        """Shut down the scheduler. Pending wake-ups are dropped."""
        if self._running:
            self._scheduler.shutdown(wait=False)
            self._running = False
            logger.info("Alarm clock stopped")

    # -- Wake-ups --------------------------------------------------------------

    def schedule_at(
        self,
        task_id: str,
        when_ms: int,
        callback: Callable[..., Awaitable[None]],
        *args: Any,
    ) -> None:
        """Arm a wake-up for *task_id* at *when_ms*, superseding any pending one."""
        if not self._running:
            # Pending jobs are only de-duplicated once the scheduler starts.
            self.cancel(task_id)
        self._scheduler.add_job(
            callback,
            trigger=DateTrigger(run_date=_to_datetime(when_ms), timezone=UTC),
            id=task_id,
            name=task_id,
            args=list(args),
            misfire_grace_time=None,
            # The firing callback re-arms the same ID before it returns.
            max_instances=2,
            replace_existing=True,
        )
        logger.info("Armed wake-up for %s at %s", task_id, _to_datetime(when_ms).isoformat())

    def cancel(self, task_id: str) -> bool:
        """Drop the pending wake-up for *task_id*. Returns True if one existed."""
        try:
            self._scheduler.remove_job(task_id)
        except JobLookupError:
            logger.debug("No pending wake-up for %s", task_id)
            return False
        logger.info("Cancelled wake-up for %s", task_id)
        return True

    def next_fire_ms(self, task_id: str) -> int | None:
        """Return the pending wake-up time for *task_id* in epoch ms, or None."""
        job = self._scheduler.get_job(task_id)
        if job is None:
            return None
        return round(job.trigger.run_date.timestamp() * 1000)
