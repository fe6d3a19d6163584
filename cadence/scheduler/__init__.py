"""Recurring task system — models, scheduling core, persistence and wake-ups."""

from cadence.scheduler.alarms import AlarmClock
from cadence.scheduler.core import clamp_to_window, draw_jitter, evaluate, validate_config
from cadence.scheduler.models import ConfigError, Decision, RecurringTask, TaskConfig
from cadence.scheduler.runner import TaskRunner
from cadence.scheduler.store import ExecutionStore

__all__ = [
    "AlarmClock",
    "ConfigError",
    "Decision",
    "ExecutionStore",
    "RecurringTask",
    "TaskConfig",
    "TaskRunner",
    "clamp_to_window",
    "draw_jitter",
    "evaluate",
    "validate_config",
]
