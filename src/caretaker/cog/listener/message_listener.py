"""Message listener Cog for Caretaker.

This cog has exactly ONE responsibility: listen to Discord message events and
publish qualifying messages into the message broadcast.

All matching and action logic lives in the dispatch layer, NOT here.
"""

import discord
from discord.ext import commands

from caretaker.dispatch.broadcast import MessageBroadcast
from caretaker.errors import ChannelClosed
from caretaker.util.logger import get_logger

logger = get_logger("message_listener_cog")

REGULAR_MESSAGE_TYPES = (discord.MessageType.default, discord.MessageType.reply)


def should_process_message(message: discord.Message) -> bool:
    """Only regular messages by humans in a guild are moderated."""
    if message.author.bot:
        return False
    if message.type not in REGULAR_MESSAGE_TYPES:
        return False
    return message.guild is not None


class MessageListenerCog(commands.Cog):
    """Thin event listener that feeds the matcher runners."""

    def __init__(self, bot: discord.Bot, broadcast: MessageBroadcast) -> None:
        self.bot = bot
        self._broadcast = broadcast
        logger.info("[MESSAGE LISTENER] Message listener cog loaded")

    @commands.Cog.listener(name="on_message")
    async def on_message(self, message: discord.Message) -> None:
        if not should_process_message(message):
            return

        logger.debug(
            "Received message %s from %s in guild %s, %.0fms after it was posted",
            message.id,
            message.author.id,
            message.guild.id,
            (discord.utils.utcnow() - message.created_at).total_seconds() * 1000,
        )

        try:
            self._broadcast.send(message)
        except ChannelClosed:
            logger.error("[MESSAGE LISTENER] Sending message to broadcast failed (channel closed)")


def setup(discord_bot_instance, broadcast: MessageBroadcast):
    discord_bot_instance.add_cog(MessageListenerCog(discord_bot_instance, broadcast))
