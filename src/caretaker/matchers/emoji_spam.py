"""Messages with lots of emoji."""

from __future__ import annotations

import re

import discord

from caretaker.datatypes.module_datatypes import ModuleKind
from caretaker.matchers.base import Matcher
from caretaker.modules.settings import EmojiSpamSettings

# Custom emoji (<:name:id>, animated <a:name:id>) or one unicode emoji codepoint
EMOJI_PATTERN = re.compile(
    r"<a?:\w+:\d+>"
    r"|[\U0001F300-\U0001F5FF"
    r"\U0001F600-\U0001F64F"
    r"\U0001F680-\U0001F6FF"
    r"\U0001F900-\U0001F9FF"
    r"\U0001FA70-\U0001FAFF"
    r"\u2600-\u26FF"
    r"\u2700-\u27BF]"
)


def count_emojis(content: str) -> int:
    return len(EMOJI_PATTERN.findall(content))


class EmojiSpamMatcher(Matcher):
    kind = ModuleKind.EMOJI_SPAM
    settings_type = EmojiSpamSettings

    async def matches(self, settings: EmojiSpamSettings, message: discord.Message) -> bool:
        return count_emojis(message.content or "") >= settings.max_emojis
