"""
Repository for the actions table.

Actions are listed in insertion order; the position in that list is the
index operators use to remove them.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional

import aiosqlite

from caretaker.datatypes.discord_datatypes import GuildID


@dataclass
class ActionRow:
    """Raw DB row of the actions table."""
    id: int
    guild_id: int
    module: str
    action: str
    in_channel: Optional[int]
    message: Optional[str]


class ActionsRepository:
    """CRUD for the actions table."""

    async def get_for_module(
        self, conn: aiosqlite.Connection, guild_id: GuildID, module: str
    ) -> List[ActionRow]:
        async with conn.execute(
            """
            SELECT id, guild_id, module, action, in_channel, message
            FROM actions
            WHERE guild_id = ? AND module = ?
            ORDER BY id
            """,
            (int(guild_id), module),
        ) as cursor:
            rows = await cursor.fetchall()
        return [ActionRow(*row) for row in rows]

    async def count(
        self, conn: aiosqlite.Connection, guild_id: GuildID, module: str
    ) -> int:
        async with conn.execute(
            "SELECT COUNT(*) FROM actions WHERE guild_id = ? AND module = ?",
            (int(guild_id), module),
        ) as cursor:
            row = await cursor.fetchone()
        return row[0] if row else 0

    async def insert(
        self,
        conn: aiosqlite.Connection,
        guild_id: GuildID,
        module: str,
        action: str,
        in_channel: Optional[int],
        message: Optional[str],
    ) -> int:
        """Insert an action and return its row id."""
        cursor = await conn.execute(
            "INSERT INTO actions (guild_id, module, action, in_channel, message) VALUES (?, ?, ?, ?, ?)",
            (int(guild_id), module, action, in_channel, message),
        )
        return cursor.lastrowid

    async def delete(self, conn: aiosqlite.Connection, action_id: int) -> None:
        await conn.execute("DELETE FROM actions WHERE id = ?", (action_id,))
