"""
Repository for the module_exclusions table.
"""

from __future__ import annotations

from typing import List, Tuple

import aiosqlite

from caretaker.datatypes.discord_datatypes import GuildID
from caretaker.datatypes.exclusion_datatypes import Exclusion


class ExclusionsRepository:
    """CRUD for the module_exclusions table."""

    async def get_rows(
        self, conn: aiosqlite.Connection, guild_id: GuildID, module: str
    ) -> List[Tuple[str, int]]:
        """Return ``(kind, id)`` rows of one module."""
        async with conn.execute(
            "SELECT kind, id FROM module_exclusions WHERE guild_id = ? AND module = ?",
            (int(guild_id), module),
        ) as cursor:
            rows = await cursor.fetchall()
        return [(row[0], row[1]) for row in rows]

    async def insert(
        self, conn: aiosqlite.Connection, guild_id: GuildID, module: str, exclusion: Exclusion
    ) -> None:
        await conn.execute(
            "INSERT INTO module_exclusions (guild_id, module, kind, id) VALUES (?, ?, ?, ?)",
            (int(guild_id), module, exclusion.kind.value, exclusion.id),
        )

    async def delete(
        self, conn: aiosqlite.Connection, guild_id: GuildID, module: str, exclusion: Exclusion
    ) -> int:
        """Delete one exclusion and return the number of deleted rows."""
        cursor = await conn.execute(
            "DELETE FROM module_exclusions WHERE guild_id = ? AND module = ? AND kind = ? AND id = ?",
            (int(guild_id), module, exclusion.kind.value, exclusion.id),
        )
        return cursor.rowcount
