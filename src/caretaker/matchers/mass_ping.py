"""Messages that ping @everyone or @here."""

from __future__ import annotations

import discord

from caretaker.datatypes.module_datatypes import ModuleKind
from caretaker.matchers.base import Matcher
from caretaker.modules.settings import MassPingSettings


class MassPingMatcher(Matcher):
    kind = ModuleKind.MASS_PING
    settings_type = MassPingSettings

    async def matches(self, settings: MassPingSettings, message: discord.Message) -> bool:
        # The flag is only set when the author could actually ping everyone;
        # the literal text "@everyone" alone does not count.
        return bool(message.mention_everyone)
