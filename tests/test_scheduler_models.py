"""Tests for the recurring task data model."""

import dataclasses
from unittest.mock import AsyncMock

import pytest

from cadence.scheduler.models import ConfigError, Decision, RecurringTask, TaskConfig

# -- TaskConfig ----------------------------------------------------------------


def test_default_values() -> None:
    config = TaskConfig(min_interval_ms=1000, task_id="sync")
    assert config.hour_min == 0
    assert config.hour_max == 24
    assert config.jitter_max_ms == 0


def test_config_is_frozen() -> None:
    config = TaskConfig(min_interval_ms=1000, task_id="sync")
    with pytest.raises(dataclasses.FrozenInstanceError):
        config.min_interval_ms = 5  # type: ignore[misc]


def test_has_window() -> None:
    assert TaskConfig(1000, "a").has_window is False
    assert TaskConfig(1000, "a", hour_min=8).has_window is True
    assert TaskConfig(1000, "a", hour_max=20).has_window is True


def test_construction_does_not_validate() -> None:
    # Validation is deferred to evaluate() / TaskRunner.register()
    config = TaskConfig(min_interval_ms=-1, task_id="bad", hour_min=10, hour_max=5)
    assert config.hour_max == 5


def test_config_error_is_value_error() -> None:
    assert issubclass(ConfigError, ValueError)


# -- Decision ------------------------------------------------------------------


def test_decision_fields() -> None:
    decision = Decision(should_run_now=True, next_scheduled_ms=1500, effective_last_run_ms=1000)
    assert decision.should_run_now is True
    assert decision.next_scheduled_ms == 1500
    assert decision.effective_last_run_ms == 1000


# -- RecurringTask -------------------------------------------------------------


def test_default_last_execution_key() -> None:
    task = RecurringTask(config=TaskConfig(1000, "digest"), body=AsyncMock())
    assert task.last_execution_key == "last_execution:digest"
    assert task.task_id == "digest"


def test_explicit_last_execution_key_not_overwritten() -> None:
    task = RecurringTask(
        config=TaskConfig(1000, "digest"),
        body=AsyncMock(),
        last_execution_key="digest_pref",
    )
    assert task.last_execution_key == "digest_pref"
