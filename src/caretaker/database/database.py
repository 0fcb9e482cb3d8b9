"""
Database initialization and lifecycle for SQLite.

The Database class coordinates opening the shared connection and creating
the schema. Row-level access lives in ``caretaker.repositories``; the
``ModuleService`` is the only caller of those repositories.

Lifecycle:
    1. ``await database.initialize(path)`` at program startup
    2. Hand ``database.connection`` to the services
    3. ``await database.shutdown()`` at program end
"""

from __future__ import annotations

from pathlib import Path

from caretaker.database.db_connection import ConnectionManager, db_connection
from caretaker.database.db_schema import SchemaManager
from caretaker.util.logger import get_logger

logger = get_logger("database")

DB_PATH = Path("./data/caretaker.db").resolve()


class Database:
    """Owns the connection manager and the schema bootstrap."""

    def __init__(self, connection: ConnectionManager | None = None) -> None:
        self.connection = connection or ConnectionManager()
        self._initialized = False

    @property
    def initialized(self) -> bool:
        return self._initialized

    async def initialize(self, db_path: Path = DB_PATH) -> None:
        """
        Open the connection and create the schema.

        Raises whatever aiosqlite raises; startup treats that as fatal.
        """
        if self._initialized:
            logger.debug("[DATABASE] Already initialized, skipping")
            return

        await self.connection.open(db_path)
        async with self.connection.transaction() as conn:
            await SchemaManager.initialize_schema(conn)

        self._initialized = True
        logger.info("[DATABASE] Database initialized at %s", db_path)

    async def shutdown(self) -> None:
        """Close the connection. Safe to call more than once."""
        if not self._initialized:
            return

        await self.connection.close()
        self._initialized = False
        logger.info("[DATABASE] Database shutdown complete")


# Global Database instance, sharing the module-level connection
database = Database(db_connection)
