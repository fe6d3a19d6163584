"""ExecutionStore — aiosqlite persistence for last execution timestamps."""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import TYPE_CHECKING

import aiosqlite

from cadence.config import settings

if TYPE_CHECKING:
    from pathlib import Path

logger = logging.getLogger(__name__)

_CREATE_TABLE = """
CREATE TABLE IF NOT EXISTS task_executions (
    key TEXT PRIMARY KEY,
    last_execution_ms INTEGER NOT NULL DEFAULT 0,
    next_scheduled_ms INTEGER,
    updated_at TEXT NOT NULL
)
"""


class ExecutionStore:
    """Persists per-task execution timestamps in SQLite.

    Values are epoch milliseconds. A key that was never written reads as
    ``0`` ("never ran").

    Singleton accessed via ``ExecutionStore.get()``.  Pass an explicit
    *db_path* for test isolation (e.g. ``tmp_path / "test.db"``).
    """

    _instance: ExecutionStore | None = None

    def __init__(self, db_path: Path | None = None) -> None:
        self._db_path = db_path or settings.database_path
        self._initialised = False

    @classmethod
    def get(cls) -> ExecutionStore:
        """Return the shared ExecutionStore instance."""
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    @classmethod
    def _reset(cls) -> None:
        """Reset the singleton (for testing)."""
        cls._instance = None

    # -- Internal helpers ------------------------------------------------------

    async def _connect(self) -> aiosqlite.Connection:
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        db = await aiosqlite.connect(str(self._db_path))
        if not self._initialised:
            await db.execute(_CREATE_TABLE)
            await db.commit()
            self._initialised = True
        return db

    @staticmethod
    def _now() -> str:
        return datetime.now(UTC).isoformat()

    # -- Last execution --------------------------------------------------------

    async def get_last_execution(self, key: str) -> int:
        """Return the last execution time for *key*, or 0 if it never ran."""
        db = await self._connect()
        try:
            cursor = await db.execute(
                "SELECT last_execution_ms FROM task_executions WHERE key = ?", (key,)
            )
            row = await cursor.fetchone()
            return int(row[0]) if row else 0
        finally:
            await db.close()

    async def set_last_execution(self, key: str, value_ms: int) -> None:
        """Record *value_ms* as the last execution time for *key*."""
        db = await self._connect()
        try:
            await db.execute(
                """
                INSERT INTO task_executions (key, last_execution_ms, updated_at)
                VALUES (?, ?, ?)
                ON CONFLICT(key) DO UPDATE SET
                    last_execution_ms = excluded.last_execution_ms,
                    updated_at = excluded.updated_at
                """,
                (key, value_ms, self._now()),
            )
            await db.commit()
            logger.debug("Recorded last execution for %s: %d", key, value_ms)
        finally:
            await db.close()

    # -- Next scheduled --------------------------------------------------------

    async def get_next_scheduled(self, key: str) -> int | None:
        """Return the armed wake-up time for *key*, or None."""
        db = await self._connect()
        try:
            cursor = await db.execute(
                "SELECT next_scheduled_ms FROM task_executions WHERE key = ?", (key,)
            )
            row = await cursor.fetchone()
            return row[0] if row else None
        finally:
            await db.close()

    async def set_next_scheduled(self, key: str, value_ms: int | None) -> None:
        """Set or clear the armed wake-up time for *key*."""
        db = await self._connect()
        try:
            await db.execute(
                """
                INSERT INTO task_executions (key, next_scheduled_ms, updated_at)
                VALUES (?, ?, ?)
                ON CONFLICT(key) DO UPDATE SET
                    next_scheduled_ms = excluded.next_scheduled_ms,
                    updated_at = excluded.updated_at
                """,
                (key, value_ms, self._now()),
            )
            await db.commit()
        finally:
            await db.close()

    # -- Removal ---------------------------------------------------------------

    async def delete(self, key: str) -> bool:
        """Forget everything stored under *key*. Returns True if a row was removed."""
        db = await self._connect()
        try:
            cursor = await db.execute("DELETE FROM task_executions WHERE key = ?", (key,))
            await db.commit()
            deleted = cursor.rowcount > 0
            if deleted:
                logger.info("Deleted execution record: %s", key)
            return deleted
        finally:
            await db.close()
