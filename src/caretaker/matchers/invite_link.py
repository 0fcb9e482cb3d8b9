"""Discord invite links."""

from __future__ import annotations

from urllib.parse import urlparse

import discord

from caretaker.datatypes.module_datatypes import ModuleKind
from caretaker.matchers.base import Matcher
from caretaker.modules.settings import InviteLinkSettings
from caretaker.util.logger import get_logger

logger = get_logger("matcher.invite_link")

DISCORD_HOSTS = frozenset({"discord.com", "discord.gg"})
INVITE_PATH = "invite"


class InviteLinkMatcher(Matcher):
    kind = ModuleKind.INVITE_LINK
    settings_type = InviteLinkSettings

    async def matches(self, settings: InviteLinkSettings, message: discord.Message) -> bool:
        for word in (message.content or "").split():
            try:
                url = urlparse(word)
                host = url.hostname
            except ValueError:
                continue
            if not url.scheme or not url.netloc or host not in DISCORD_HOSTS:
                continue

            logger.debug("[MATCHER invite-link] %s is a Discord URL", word)
            # A non-empty last segment other than the bare "invite" path
            # (as in discord.com/invite) is most likely an invite code
            last_segment = url.path.split("/")[-1]
            if last_segment and last_segment != INVITE_PATH:
                logger.info("[MATCHER invite-link] %s looks like an invite", word)
                return True

        return False
