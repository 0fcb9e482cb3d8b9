"""
Repository for the module_settings table.

Settings are stored as untyped ``(setting, value)`` text rows; the typed
view lives in ``caretaker.modules.settings``.
"""

from __future__ import annotations

from typing import List, Tuple

import aiosqlite

from caretaker.datatypes.discord_datatypes import GuildID


class ModuleSettingsRepository:
    """CRUD for the module_settings table."""

    async def get_rows(
        self, conn: aiosqlite.Connection, guild_id: GuildID, module: str
    ) -> List[Tuple[str, str]]:
        """Return all stored ``(setting, value)`` rows of one module."""
        async with conn.execute(
            "SELECT setting, value FROM module_settings WHERE guild_id = ? AND module = ? ORDER BY setting",
            (int(guild_id), module),
        ) as cursor:
            rows = await cursor.fetchall()
        return [(row[0], row[1]) for row in rows]

    async def upsert(
        self,
        conn: aiosqlite.Connection,
        guild_id: GuildID,
        module: str,
        setting: str,
        value: str,
    ) -> None:
        """Insert or update a single setting row, leaving its siblings untouched."""
        await conn.execute(
            """
            INSERT INTO module_settings (guild_id, module, setting, value)
            VALUES (?, ?, ?, ?)
            ON CONFLICT(guild_id, module, setting) DO UPDATE SET
                value = excluded.value
            """,
            (int(guild_id), module, setting, value),
        )

    async def delete(
        self, conn: aiosqlite.Connection, guild_id: GuildID, module: str, setting: str
    ) -> None:
        """Drop one stored setting so it falls back to its default."""
        await conn.execute(
            "DELETE FROM module_settings WHERE guild_id = ? AND module = ? AND setting = ?",
            (int(guild_id), module, setting),
        )
