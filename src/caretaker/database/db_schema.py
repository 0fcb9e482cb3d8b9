"""
Database schema initialization.

Creates the four module tables, their indexes, and the schema version row.
"""

import aiosqlite
from caretaker.util.logger import get_logger

logger = get_logger("database_schema")

SCHEMA_VERSION = 1


class SchemaManager:
    """Creates the database schema and tracks its version."""

    @staticmethod
    async def initialize_schema(db: aiosqlite.Connection) -> None:
        """
        Create all tables and indexes if they do not exist yet.

        Args:
            db: Open database connection
        """
        await SchemaManager._create_tables(db)
        await SchemaManager._create_indexes(db)
        await SchemaManager._update_schema_version(db)
        await db.commit()
        logger.info("[SCHEMA] Database schema initialized (version %d)", SCHEMA_VERSION)

    @staticmethod
    async def _create_tables(db: aiosqlite.Connection) -> None:
        """Create all required database tables."""
        # Enabled flag per (guild, module). No row means disabled.
        await db.execute("""
            CREATE TABLE IF NOT EXISTS modules (
                guild_id INTEGER NOT NULL,
                module TEXT NOT NULL,
                enabled INTEGER NOT NULL DEFAULT 0,
                PRIMARY KEY (guild_id, module)
            )
        """)

        # One row per overridden setting. Missing rows fall back to defaults.
        await db.execute("""
            CREATE TABLE IF NOT EXISTS module_settings (
                guild_id INTEGER NOT NULL,
                module TEXT NOT NULL,
                setting TEXT NOT NULL,
                value TEXT NOT NULL,
                PRIMARY KEY (guild_id, module, setting)
            )
        """)

        await db.execute("""
            CREATE TABLE IF NOT EXISTS module_exclusions (
                guild_id INTEGER NOT NULL,
                module TEXT NOT NULL,
                kind TEXT NOT NULL CHECK (kind IN ('user', 'role')),
                id INTEGER NOT NULL,
                PRIMARY KEY (guild_id, module, kind, id)
            )
        """)

        # Insertion order (id) is the order actions are listed and indexed in
        await db.execute("""
            CREATE TABLE IF NOT EXISTS actions (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                guild_id INTEGER NOT NULL,
                module TEXT NOT NULL,
                action TEXT NOT NULL CHECK (action IN ('remove-message', 'notify')),
                in_channel INTEGER,
                message TEXT
            )
        """)

        await db.execute("""
            CREATE TABLE IF NOT EXISTS schema_version (
                version INTEGER PRIMARY KEY,
                applied_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
        """)

    @staticmethod
    async def _create_indexes(db: aiosqlite.Connection) -> None:
        await db.execute("CREATE INDEX IF NOT EXISTS idx_actions_module ON actions(guild_id, module, id)")

    @staticmethod
    async def _update_schema_version(db: aiosqlite.Connection) -> None:
        await db.execute("INSERT OR IGNORE INTO schema_version (version) VALUES (?)", (SCHEMA_VERSION,))
