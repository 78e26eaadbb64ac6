"""
SQLite connection management.

One long-lived aiosqlite connection serves the whole process. Reads go
straight to the connection (WAL allows them to run alongside a writer);
writes go through :meth:`ConnectionManager.transaction`, which serialises
writers with a semaphore and commits or rolls back as a unit.

Usage
-----
    connection = ConnectionManager()
    await connection.open(path)

    async with connection.read() as conn:
        rows = await conn.execute_fetchall("SELECT ...")

    async with connection.transaction() as conn:
        await conn.execute("INSERT ...")

    await connection.close()
"""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator

import aiosqlite

from sortchannels.util.logger import get_logger

logger = get_logger("database_connection")

_PRAGMAS = [
    "PRAGMA journal_mode = WAL",
    "PRAGMA foreign_keys = ON",
    "PRAGMA synchronous = NORMAL",
    "PRAGMA busy_timeout = 5000",
]


class ConnectionManager:
    """Owns the single aiosqlite connection used by the guild store."""

    def __init__(self) -> None:
        self._conn: aiosqlite.Connection | None = None
        self._write_sem = asyncio.Semaphore(1)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def open(self, path: Path) -> None:
        """Open the database file at ``path`` and apply pragmas.

        Calling this on an already open manager logs a warning and does nothing.
        """
        if self._conn is not None:
            logger.warning("[DB CONNECTION] open() called but connection already exists; ignoring")
            return

        path.parent.mkdir(parents=True, exist_ok=True)

        self._conn = await aiosqlite.connect(path)
        for pragma in _PRAGMAS:
            await self._conn.execute(pragma)
        await self._conn.commit()

        logger.info("[DB CONNECTION] Opened connection to %s", path)

    async def close(self) -> None:
        """Checkpoint the WAL and close the connection."""
        if self._conn is None:
            return

        try:
            await self._conn.execute("PRAGMA wal_checkpoint(TRUNCATE)")
            await self._conn.commit()
        except Exception:
            logger.exception("[DB CONNECTION] WAL checkpoint failed during close")
        finally:
            await self._conn.close()
            self._conn = None
            logger.info("[DB CONNECTION] Connection closed")

    @property
    def is_open(self) -> bool:
        return self._conn is not None

    # ------------------------------------------------------------------
    # Connection access
    # ------------------------------------------------------------------

    @property
    def connection(self) -> aiosqlite.Connection:
        """
        The raw connection.

        Raises:
            RuntimeError: If the connection has not been opened yet.
        """
        if self._conn is None:
            raise RuntimeError("ConnectionManager: connection is not open. Call await open(path) first.")
        return self._conn

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[aiosqlite.Connection]:
        """Serialised write transaction; commits on clean exit, rolls back on error."""
        conn = self.connection

        async with self._write_sem:
            try:
                yield conn
                await conn.commit()
            except Exception:
                await conn.rollback()
                raise

    @asynccontextmanager
    async def read(self) -> AsyncIterator[aiosqlite.Connection]:
        """Read access; symmetrical with :meth:`transaction`, acquires nothing."""
        yield self.connection
