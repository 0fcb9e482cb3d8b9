"""
Registry of the message matchers, one per module kind.

``MATCHERS`` must cover every :class:`ModuleKind`; a missing kind fails at
import time rather than silently never firing.
"""

from typing import Dict, Type

from caretaker.datatypes.module_datatypes import ModuleKind
from caretaker.matchers.activity import ChannelActivityMatcher, UserActivityMatcher
from caretaker.matchers.base import Matcher
from caretaker.matchers.crosspost import CrosspostMatcher
from caretaker.matchers.emoji_spam import EmojiSpamMatcher
from caretaker.matchers.invite_link import InviteLinkMatcher
from caretaker.matchers.mass_ping import MassPingMatcher
from caretaker.matchers.mention_spam import MentionSpamMatcher
from caretaker.matchers.selfbot import SelfbotMatcher

MATCHERS: Dict[ModuleKind, Type[Matcher]] = {
    ModuleKind.MASS_PING: MassPingMatcher,
    ModuleKind.CROSSPOST: CrosspostMatcher,
    ModuleKind.EMOJI_SPAM: EmojiSpamMatcher,
    ModuleKind.MENTION_SPAM: MentionSpamMatcher,
    ModuleKind.SELFBOT: SelfbotMatcher,
    ModuleKind.INVITE_LINK: InviteLinkMatcher,
    ModuleKind.CHANNEL_ACTIVITY: ChannelActivityMatcher,
    ModuleKind.USER_ACTIVITY: UserActivityMatcher,
}

_missing = set(ModuleKind) - set(MATCHERS)
if _missing:
    raise RuntimeError(f"Module kinds without a matcher: {sorted(k.value for k in _missing)}")

__all__ = [
    "MATCHERS",
    "Matcher",
    "MassPingMatcher",
    "CrosspostMatcher",
    "EmojiSpamMatcher",
    "MentionSpamMatcher",
    "SelfbotMatcher",
    "InviteLinkMatcher",
    "ChannelActivityMatcher",
    "UserActivityMatcher",
]
