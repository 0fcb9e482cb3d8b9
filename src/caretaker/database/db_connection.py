"""
Database connection management - singleton connection model.

Design rationale
----------------
SQLite performs best with a **single long-lived connection** rather than
opening/closing a connection per operation:
  - Avoids repeated handshake and pragma setup overhead
  - Keeps the page cache warm across operations
  - WAL mode allows one writer + unlimited concurrent readers safely

Concurrency model
-----------------
SQLite is inherently single-writer.  We enforce this at the application
layer with a write semaphore (``_write_sem``) so async tasks queue up
without fighting SQLite's busy-timeout.

Every read the moderation hot path performs (settings, exclusions, actions)
is a single statement, so reads share the connection without a lock.

Usage
-----
    await db_connection.open(DB_PATH)

    async with db_connection.read() as conn:
        rows = await conn.execute_fetchall("SELECT ...")

    async with db_connection.transaction() as conn:
        await conn.execute("INSERT ...")
        # commits on clean exit, rolls back on exception

    await db_connection.close()
"""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator

import aiosqlite

from caretaker.util.logger import get_logger

logger = get_logger("database_connection")

# Pragmas applied once when the connection is opened
_PRAGMAS = [
    "PRAGMA journal_mode = WAL",
    "PRAGMA foreign_keys = ON",
    "PRAGMA synchronous = NORMAL",    # safe with WAL; faster than FULL
    "PRAGMA cache_size = -65536",     # 64 MB page cache
    "PRAGMA temp_store = MEMORY",
    "PRAGMA busy_timeout = 5000",
]


class ConnectionManager:
    """
    Wrapper around a single aiosqlite connection.

    One connection is opened for the entire bot lifecycle.  All
    repositories and services call through this object instead of
    opening their own connections.

    Thread / task safety
    --------------------
    * Reads  - ``async with read()``; WAL allows concurrent reads.
    * Writes - ``async with transaction()``; writes are serialised by
      ``_write_sem`` so no two coroutines write at the same time.
    """

    def __init__(self) -> None:
        self._conn: aiosqlite.Connection | None = None
        self._write_sem = asyncio.Semaphore(1)   # one writer at a time
        self._path: Path | None = None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @property
    def is_open(self) -> bool:
        return self._conn is not None

    @property
    def path(self) -> Path | None:
        return self._path

    async def open(self, path: Path) -> None:
        """
        Open the database and apply performance pragmas.

        Should be called **once** during bot startup, before any
        repository or service is used.
        """
        if self._conn is not None:
            logger.warning("[DB CONNECTION] open() called but connection already exists, ignoring")
            return

        self._path = path
        path.parent.mkdir(parents=True, exist_ok=True)

        self._conn = await aiosqlite.connect(path)

        for pragma in _PRAGMAS:
            await self._conn.execute(pragma)
        await self._conn.commit()

        logger.info("[DB CONNECTION] Opened connection to %s", path)

    async def close(self) -> None:
        """Flush the WAL and close the connection."""
        if self._conn is None:
            return

        try:
            await self._conn.execute("PRAGMA wal_checkpoint(TRUNCATE)")
            await self._conn.commit()
        except aiosqlite.Error:
            logger.exception("[DB CONNECTION] WAL checkpoint failed during close")
        finally:
            await self._conn.close()
            self._conn = None
            logger.info("[DB CONNECTION] Connection closed")

    # ------------------------------------------------------------------
    # Connection access
    # ------------------------------------------------------------------

    @property
    def connection(self) -> aiosqlite.Connection:
        """
        The raw aiosqlite connection.

        Raises:
            RuntimeError: If the connection has not been opened yet.
        """
        if self._conn is None:
            raise RuntimeError(
                "ConnectionManager: connection is not open. "
                "Call await db_connection.open(path) at startup."
            )
        return self._conn

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[aiosqlite.Connection]:
        """
        Async context manager that provides a serialised write transaction.

        * Acquires the write semaphore so only one transaction is active at
          a time (SQLite's single-writer constraint).
        * Commits automatically on clean exit.
        * Rolls back automatically if an exception is raised.
        """
        conn = self.connection

        async with self._write_sem:
            try:
                yield conn
                await conn.commit()
            except BaseException:
                await conn.rollback()
                raise

    @asynccontextmanager
    async def read(self) -> AsyncIterator[aiosqlite.Connection]:
        """
        Async context manager for read operations.

        No semaphore is acquired; this only mirrors ``transaction()`` so call
        sites read the same way.
        """
        yield self.connection


# Module-level singleton
db_connection = ConnectionManager()
