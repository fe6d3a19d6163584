"""Eligibility and next-run computation for recurring tasks.

Everything here is pure: the caller supplies the current time, the last
recorded execution and (optionally) the random generator and time zone.
Persisting the last run and arming the wake-up are left to the caller, see
``cadence.scheduler.runner``.
"""

from __future__ import annotations

import logging
import random
from datetime import datetime, time, timedelta
from typing import TYPE_CHECKING

from cadence.config import settings
from cadence.scheduler.models import ConfigError, Decision, TaskConfig

if TYPE_CHECKING:
    from datetime import tzinfo

logger = logging.getLogger(__name__)


def validate_config(config: TaskConfig) -> None:
    """Raise ConfigError if *config* cannot be scheduled."""
    if not 0 <= config.hour_min <= 23:
        msg = f"hour_min must be within 0-23, got {config.hour_min} ({config.task_id})"
        raise ConfigError(msg)
    if not 1 <= config.hour_max <= 24:
        msg = f"hour_max must be within 1-24, got {config.hour_max} ({config.task_id})"
        raise ConfigError(msg)
    if config.hour_max < config.hour_min:
        msg = (
            f"hour_max ({config.hour_max}) is earlier than hour_min "
            f"({config.hour_min}) ({config.task_id})"
        )
        raise ConfigError(msg)
    if config.min_interval_ms < 0:
        msg = f"min_interval_ms must not be negative ({config.task_id})"
        raise ConfigError(msg)
    if config.jitter_max_ms < 0:
        msg = f"jitter_max_ms must not be negative ({config.task_id})"
        raise ConfigError(msg)


def draw_jitter(jitter_max_ms: int, rng: random.Random | None = None) -> int:
    """Return a uniform random delay in ``[0, jitter_max_ms)``, or 0 when disabled."""
    if jitter_max_ms <= 0:
        return 0
    return (rng or random).randrange(jitter_max_ms)


def clamp_to_window(candidate_ms: int, hour_min: int, hour_max: int, tz: tzinfo) -> int:
    """Move *candidate_ms* into the daily ``[hour_min:00, hour_max:59]`` window.

    Only the hour is checked. A candidate already inside the window is
    returned untouched (minutes and seconds included). One before
    ``hour_min`` moves to ``hour_min:00`` the same local day; one after
    ``hour_max`` moves to ``hour_min:00`` the following local day.
    """
    if hour_min == 0 and hour_max == 24:
        return candidate_ms

    local = datetime.fromtimestamp(candidate_ms / 1000, tz)
    if local.hour < hour_min:
        target = datetime.combine(local.date(), time(hour_min), tzinfo=tz)
    elif local.hour > hour_max:
        target = datetime.combine(local.date() + timedelta(days=1), time(hour_min), tzinfo=tz)
    else:
        return candidate_ms

    logger.debug(
        "Clamped %s to %s (window %02d-%02d)",
        local.isoformat(),
        target.isoformat(),
        hour_min,
        hour_max,
    )
    return int(target.timestamp()) * 1000


def evaluate(
    now_ms: int,
    last_execution_ms: int,
    config: TaskConfig,
    *,
    rng: random.Random | None = None,
    tz: tzinfo | None = None,
) -> Decision:
    """Decide whether a task may run now and when it should be tried next.

    Args:
        now_ms: Current time, epoch milliseconds.
        last_execution_ms: Last recorded execution, epoch milliseconds
            (``0`` if the task never ran).
        config: The task's timing rules.
        rng: Random generator for jitter. Defaults to the process-wide one.
        tz: Zone whose local hours define the daily window. Defaults to
            ``settings.scheduler_timezone``.

    Raises:
        ConfigError: If *config* is invalid.
    """
    validate_config(config)

    should_run_now = (now_ms - last_execution_ms) > config.min_interval_ms
    effective_last_run_ms = now_ms if should_run_now else last_execution_ms

    candidate_ms = effective_last_run_ms + config.min_interval_ms
    candidate_ms += draw_jitter(config.jitter_max_ms, rng)

    if config.has_window:
        candidate_ms = clamp_to_window(
            candidate_ms,
            config.hour_min,
            config.hour_max,
            tz or settings.get_timezone(),
        )

    return Decision(
        should_run_now=should_run_now,
        next_scheduled_ms=candidate_ms,
        effective_last_run_ms=effective_last_run_ms,
    )
