"""
Module kinds and the per-guild module record.

A *module* is one detection rule (mass pings, cross-posting, invite links ...)
together with its enabled flag inside a single guild.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum

from caretaker.datatypes.discord_datatypes import GuildID


class ModuleKind(Enum):
    """Closed enumeration of the detection rules Caretaker ships."""

    MASS_PING = "mass-ping"
    CROSSPOST = "crosspost"
    EMOJI_SPAM = "emoji-spam"
    MENTION_SPAM = "mention-spam"
    SELFBOT = "selfbot"
    INVITE_LINK = "invite-link"
    CHANNEL_ACTIVITY = "channel-activity"
    USER_ACTIVITY = "user-activity"

    def __str__(self) -> str:
        return self.value


MODULE_DESCRIPTIONS: dict[ModuleKind, str] = {
    ModuleKind.MASS_PING: "Messages that ping @everyone or @here",
    ModuleKind.CROSSPOST: "The same message posted in several channels",
    ModuleKind.EMOJI_SPAM: "Messages with lots of emoji",
    ModuleKind.MENTION_SPAM: "Messages mentioning lots of users or roles",
    ModuleKind.SELFBOT: "Rich embeds posted through a user account",
    ModuleKind.INVITE_LINK: "Discord invite links",
    ModuleKind.CHANNEL_ACTIVITY: "Bursts of messages in a single channel",
    ModuleKind.USER_ACTIVITY: "Bursts of messages from a single user",
}


@dataclass(frozen=True, slots=True)
class Module:
    """
    One module of one guild.

    Absence in storage means "not configured yet", which is always treated
    as disabled.
    """

    guild_id: GuildID
    kind: ModuleKind
    enabled: bool = False

    @classmethod
    def default(cls, guild_id: GuildID, kind: ModuleKind) -> "Module":
        return cls(guild_id=guild_id, kind=kind, enabled=False)

    def with_enabled(self, enabled: bool) -> "Module":
        return replace(self, enabled=bool(enabled))
