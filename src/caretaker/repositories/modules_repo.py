"""
Repository for the modules table (enabled flag per guild and module).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List

import aiosqlite

from caretaker.datatypes.discord_datatypes import GuildID


@dataclass
class ModuleRow:
    """Raw DB row of the modules table."""
    guild_id: int
    module: str
    enabled: bool


class ModulesRepository:
    """CRUD for the modules table only."""

    async def get(
        self, conn: aiosqlite.Connection, guild_id: GuildID, module: str
    ) -> ModuleRow | None:
        async with conn.execute(
            "SELECT guild_id, module, enabled FROM modules WHERE guild_id = ? AND module = ?",
            (int(guild_id), module),
        ) as cursor:
            row = await cursor.fetchone()

        if row is None:
            return None
        return ModuleRow(guild_id=row[0], module=row[1], enabled=bool(row[2]))

    async def get_all(self, conn: aiosqlite.Connection) -> List[ModuleRow]:
        """Fetch every module row across all guilds."""
        async with conn.execute("SELECT guild_id, module, enabled FROM modules") as cursor:
            rows = await cursor.fetchall()
        return [ModuleRow(guild_id=row[0], module=row[1], enabled=bool(row[2])) for row in rows]

    async def upsert(
        self, conn: aiosqlite.Connection, guild_id: GuildID, module: str, enabled: bool
    ) -> None:
        """Insert or update the enabled flag of one module."""
        await conn.execute(
            """
            INSERT INTO modules (guild_id, module, enabled)
            VALUES (?, ?, ?)
            ON CONFLICT(guild_id, module) DO UPDATE SET
                enabled = excluded.enabled
            """,
            (int(guild_id), module, 1 if enabled else 0),
        )
