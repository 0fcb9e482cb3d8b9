"""Messages mentioning lots of users or roles."""

from __future__ import annotations

import discord

from caretaker.datatypes.module_datatypes import ModuleKind
from caretaker.matchers.base import Matcher
from caretaker.modules.settings import MentionSpamSettings


class MentionSpamMatcher(Matcher):
    kind = ModuleKind.MENTION_SPAM
    settings_type = MentionSpamSettings

    async def matches(self, settings: MentionSpamSettings, message: discord.Message) -> bool:
        users = {user.id for user in message.mentions}
        roles = {role.id for role in message.role_mentions}
        return len(users) + len(roles) >= settings.max_mentions
