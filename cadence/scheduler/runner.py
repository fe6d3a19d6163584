"""TaskRunner — wires the store, the scheduler core and the alarm clock."""

from __future__ import annotations

import asyncio
import logging
import time
from typing import TYPE_CHECKING, Any

from cadence.scheduler.alarms import AlarmClock
from cadence.scheduler.core import evaluate, validate_config
from cadence.scheduler.store import ExecutionStore

if TYPE_CHECKING:
    import random
    from datetime import tzinfo

    from cadence.scheduler.models import Decision, RecurringTask

logger = logging.getLogger(__name__)


def _now_ms() -> int:
    return time.time_ns() // 1_000_000


class TaskRunner:
    """Runs registered recurring tasks and keeps each one armed.

    Every trigger, whether it comes from a caller or from a wake-up, goes
    through :meth:`trigger`: the task body runs only when enough time has
    passed since the last recorded execution, and a new wake-up is armed
    either way.

    Args:
        store: ExecutionStore holding last execution times (default: the
            shared ``ExecutionStore.get()``).
        alarms: AlarmClock delivering wake-ups (default: a new one).
        rng: Optional random generator for jitter.
        tz: Optional zone for the daily window (default from settings).
    """

    def __init__(
        self,
        store: ExecutionStore | None = None,
        alarms: AlarmClock | None = None,
        rng: random.Random | None = None,
        tz: tzinfo | None = None,
    ) -> None:
        self._store = store or ExecutionStore.get()
        self._alarms = alarms or AlarmClock()
        self._rng = rng
        self._tz = tz
        self._tasks: dict[str, RecurringTask] = {}
        self._locks: dict[str, asyncio.Lock] = {}

    @property
    def task_ids(self) -> list[str]:
        return list(self._tasks)

    # -- Registration ----------------------------------------------------------

    def register(self, task: RecurringTask) -> None:
        """Add a task. Raises ConfigError for invalid timing rules."""
        validate_config(task.config)
        if task.task_id in self._tasks:
            msg = f"Task already registered: {task.task_id}"
            raise ValueError(msg)
        self._tasks[task.task_id] = task
        self._locks[task.task_id] = asyncio.Lock()
        logger.info(
            "Registered task %s (interval=%dms window=%02d-%02d jitter=%dms)",
            task.task_id,
            task.config.min_interval_ms,
            task.config.hour_min,
            task.config.hour_max,
            task.config.jitter_max_ms,
        )

    async def unregister(self, task_id: str, *, forget: bool = False) -> bool:
        """Remove a task and its pending wake-up. Returns False if unknown.

        Waits for an in-flight trigger of the same task to finish first. With
        *forget*, the task's execution record is deleted as well, so a later
        registration under the same key starts as "never ran".
        """
        lock = self._locks.get(task_id)
        if lock is None:
            return False
        async with lock:
            task = self._tasks.pop(task_id, None)
            if task is None:
                return False
            self._locks.pop(task_id, None)
            self._alarms.cancel(task_id)
            if forget:
                await self._store.delete(task.last_execution_key)
            else:
                await self._store.set_next_scheduled(task.last_execution_key, None)
        logger.info("Unregistered task %s", task_id)
        return True

    # -- Lifecycle -------------------------------------------------------------

    async def start(self) -> None:
        """Start the alarm clock and trigger every registered task once."""
        self._alarms.start()
        for task_id in list(self._tasks):
            await self.trigger(task_id)
        logger.info("Task runner started with %d task(s)", len(self._tasks))

    async def stop(self) -> None:
        self._alarms.stop()
        logger.info("Task runner stopped")

    # -- Triggering ------------------------------------------------------------

    async def trigger(
        self,
        task_id: str,
        payload: Any = None,
        *,
        now_ms: int | None = None,
    ) -> Decision:
        """Consider running *task_id* now and arm its next wake-up.

        Raises:
            KeyError: If no task is registered under *task_id*.
        """
        task = self._tasks.get(task_id)
        if task is None:
            raise KeyError(task_id)

        async with self._locks[task_id]:
            if self._tasks.get(task_id) is not task:
                # Unregistered while waiting for the lock
                raise KeyError(task_id)
            now = _now_ms() if now_ms is None else now_ms
            last = await self._store.get_last_execution(task.last_execution_key)
            decision = evaluate(now, last, task.config, rng=self._rng, tz=self._tz)

            if decision.should_run_now:
                await self._store.set_last_execution(
                    task.last_execution_key, decision.effective_last_run_ms
                )
                await self._run_body(task, payload)
            else:
                logger.info(
                    "Skipping %s: last ran %dms ago (interval %dms)",
                    task_id,
                    now - last,
                    task.config.min_interval_ms,
                )

            self._alarms.schedule_at(task_id, decision.next_scheduled_ms, self._on_alarm, task_id)
            await self._store.set_next_scheduled(
                task.last_execution_key, decision.next_scheduled_ms
            )
        return decision

    async def _on_alarm(self, task_id: str) -> None:
        """Wake-up callback invoked by the alarm clock."""
        if task_id not in self._tasks:
            logger.warning("Wake-up for unknown task: %s", task_id)
            return
        try:
            await self.trigger(task_id)
        except KeyError:
            logger.warning("Wake-up for task unregistered meanwhile: %s", task_id)

    async def _run_body(self, task: RecurringTask, payload: Any) -> None:
        logger.info("Running task %s", task.task_id)
        try:
            await task.body(payload)
            logger.info("Task completed: %s", task.task_id)
        except Exception:
            logger.exception("Task body failed: %s", task.task_id)
