"""
Execution of configured actions against a matched message.

Each call handles exactly one action. Failures are logged and swallowed here
so that one action of a matched message never affects another: a template
that does not render is a configuration problem reported at WARNING, a
platform call that fails is a transport problem reported at ERROR.
"""

from __future__ import annotations

import discord

from caretaker.datatypes.action_datatypes import Action, ActionKind
from caretaker.datatypes.discord_datatypes import ChannelID
from caretaker.errors import InvalidNotifyTemplate
from caretaker.util.discord.platform import DiscordPlatform
from caretaker.util.format_utils import build_notify_variables, render_template
from caretaker.util.logger import get_logger

logger = get_logger("action_runner")


class ActionRunner:
    """Dispatches an :class:`Action` to the matching platform call."""

    def __init__(self, platform: DiscordPlatform) -> None:
        self.platform = platform

    async def run(self, action: Action, message: discord.Message) -> bool:
        """Execute ``action``. Returns True on success."""
        if action.kind is ActionKind.REMOVE_MESSAGE:
            return await self._remove_message(message)
        if action.kind is ActionKind.NOTIFY:
            return await self._notify(action, message)
        raise ValueError(f"Unhandled action kind: {action.kind}")

    async def _remove_message(self, message: discord.Message) -> bool:
        try:
            await self.platform.delete_message(message)
        except discord.NotFound:
            logger.info("[ACTION] Message %s was already deleted", message.id)
            return False
        except discord.HTTPException as exc:
            logger.error(
                "[ACTION] Failed to delete message %s in guild %s: %s",
                message.id,
                getattr(message.guild, "id", None),
                exc,
            )
            return False

        logger.debug("[ACTION] Deleted message %s", message.id)
        return True

    async def _notify(self, action: Action, message: discord.Message) -> bool:
        try:
            text = render_template(action.message or "", build_notify_variables(message))
        except InvalidNotifyTemplate as exc:
            logger.warning(
                "[ACTION] Notify template of guild %s is misconfigured: %s",
                getattr(message.guild, "id", None),
                exc,
            )
            return False

        target = action.channel_id or ChannelID.from_discord(message.channel)
        try:
            await self.platform.send_message(target, text)
        except discord.HTTPException as exc:
            logger.error(
                "[ACTION] Failed to notify in channel %s for message %s: %s",
                target,
                message.id,
                exc,
            )
            return False

        logger.debug("[ACTION] Sent notification to channel %s for message %s", target, message.id)
        return True
