"""
Thin adapter over the py-cord client for the two calls actions make.

Keeping the platform behind ``delete_message`` / ``send_message`` lets the
action runner be exercised with an ``AsyncMock`` in tests.
"""

from __future__ import annotations

import discord

from caretaker.datatypes.discord_datatypes import ChannelID
from caretaker.util.logger import get_logger

logger = get_logger("platform")


class DiscordPlatform:
    """Performs remediation side effects through a ``discord.Bot``."""

    def __init__(self, bot: discord.Bot) -> None:
        self.bot = bot

    async def delete_message(self, message: discord.Message) -> None:
        await message.delete()

    async def send_message(self, channel_id: ChannelID, text: str) -> discord.Message:
        """
        Send ``text`` to a channel, resolving it from the cache first.

        Mentions are limited to users and roles so a template cannot be
        used to ping @everyone.
        """
        channel = self.bot.get_channel(channel_id.to_int())
        if channel is None:
            logger.debug("[PLATFORM] Channel %s not cached, fetching", channel_id)
            channel = await self.bot.fetch_channel(channel_id.to_int())

        return await channel.send(
            text,
            allowed_mentions=discord.AllowedMentions(everyone=False, users=True, roles=True),
        )
