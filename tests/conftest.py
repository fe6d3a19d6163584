"""Shared test fixtures."""

import zoneinfo
from pathlib import Path

import pytest

from cadence.scheduler.store import ExecutionStore


@pytest.fixture
def utc() -> zoneinfo.ZoneInfo:
    return zoneinfo.ZoneInfo("UTC")


@pytest.fixture
def store(tmp_path: Path) -> ExecutionStore:
    """Create an ExecutionStore backed by a temp database."""
    ExecutionStore._reset()
    s = ExecutionStore(db_path=tmp_path / "test.db")
    yield s
    ExecutionStore._reset()
