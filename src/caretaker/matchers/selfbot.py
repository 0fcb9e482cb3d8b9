"""Rich embeds posted through a user account."""

from __future__ import annotations

import discord

from caretaker.datatypes.module_datatypes import ModuleKind
from caretaker.matchers.base import Matcher
from caretaker.modules.settings import SelfbotSettings

RICH_EMBED = "rich"


class SelfbotMatcher(Matcher):
    """
    Flags messages whose first embed is a rich embed.

    Link previews generated by Discord have other embed types; a user
    account can only attach a rich embed by calling the API directly. The
    embed type is only a loose hint from the API, so this is a heuristic.
    """

    kind = ModuleKind.SELFBOT
    settings_type = SelfbotSettings

    async def matches(self, settings: SelfbotSettings, message: discord.Message) -> bool:
        embeds = message.embeds
        if not embeds:
            return False
        return embeds[0].type == RICH_EMBED
