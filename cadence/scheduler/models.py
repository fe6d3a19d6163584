"""Recurring task data model."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable


class ConfigError(ValueError):
    """Raised when a TaskConfig cannot be scheduled."""


@dataclass(frozen=True)
class TaskConfig:
    """Timing rules for one recurring task.

    Attributes:
        min_interval_ms: Minimum milliseconds between two executions.
        task_id: Unique ID within the process. Also the alarm key, so two
            tasks sharing an ID supersede each other's wake-ups.
        hour_min: Earliest hour of the day (0-23); runs at HH:00 or later.
        hour_max: Latest hour of the day (1-24); runs at HH:59 or earlier.
        jitter_max_ms: Upper bound (exclusive) of a random delay added to
            each scheduled run. ``0`` disables jitter.
    """

    min_interval_ms: int
    task_id: str
    hour_min: int = 0
    hour_max: int = 24
    jitter_max_ms: int = 0

    @property
    def has_window(self) -> bool:
        """False when the task may run at any hour."""
        return not (self.hour_min == 0 and self.hour_max == 24)


@dataclass(frozen=True)
class Decision:
    """Outcome of one trigger.

    ``effective_last_run_ms`` is what the caller persists when
    ``should_run_now`` is true.
    """

    should_run_now: bool
    next_scheduled_ms: int
    effective_last_run_ms: int


@dataclass
class RecurringTask:
    """A task definition: timing config plus the body to run.

    Attributes:
        config: Timing rules.
        body: Async callable invoked with the trigger payload when the task
            is eligible to run.
        last_execution_key: Store key for the last execution timestamp.
            Defaults to ``"last_execution:<task_id>"``.
    """

    config: TaskConfig
    body: Callable[[Any], Awaitable[None]]
    last_execution_key: str = field(default="")

    def __post_init__(self) -> None:
        if not self.last_execution_key:
            self.last_execution_key = f"last_execution:{self.config.task_id}"

    @property
    def task_id(self) -> str:
        return self.config.task_id
