"""
Duplicate cross-posting detection.

Every message long enough to be considered is hashed with Nilsimsa, a
locality-sensitive digest where similar texts produce similar digests. The
last few digests of each (guild, author) pair are kept together with the
channel and the time they were posted. A new message matches when it is
similar enough to a recent message by the same author in *another* channel.

Nilsimsa comparison scores range from -128 (entirely different) to 128
(equal).
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Deque, Dict, Optional, Tuple

import discord
from nilsimsa import Nilsimsa, compare_digests

from caretaker.datatypes.module_datatypes import ModuleKind
from caretaker.matchers.base import Matcher
from caretaker.modules.settings import CrosspostSettings
from caretaker.util.logger import get_logger

logger = get_logger("matcher.crosspost")

HISTORY_SIZE = 3


@dataclass(frozen=True, slots=True)
class HistoryEntry:
    digest: str
    channel_id: int
    timestamp: datetime


def digest(content: str) -> str:
    return Nilsimsa(content).hexdigest()


class CrosspostMatcher(Matcher):
    kind = ModuleKind.CROSSPOST
    settings_type = CrosspostSettings

    def __init__(self, clock: Optional[Callable[[], datetime]] = None) -> None:
        self._clock = clock or discord.utils.utcnow
        self._history: Dict[Tuple[int, int], Deque[HistoryEntry]] = {}

    @classmethod
    def build(cls, deps):
        return cls.kind, cls(clock=deps.clock)

    def history_for(self, guild_id: int, author_id: int) -> Tuple[HistoryEntry, ...]:
        return tuple(self._history.get((guild_id, author_id), ()))

    async def matches(self, settings: CrosspostSettings, message: discord.Message) -> bool:
        content = message.content or ""

        # Counted in characters, not bytes
        if not content or len(content) < settings.minimum_length:
            logger.debug("[MATCHER crosspost] Not matching a message of length %d", len(content))
            return False

        new_digest = digest(content)
        key = (message.guild.id, message.author.id)
        history = self._history.get(key)
        if history is None:
            history = self._history[key] = deque(maxlen=HISTORY_SIZE)

        now = self._clock()
        timeout = timedelta(seconds=settings.timeout)
        for entry in history:
            if entry.channel_id == message.channel.id or now - entry.timestamp >= timeout:
                continue

            score = compare_digests(new_digest, entry.digest)
            logger.debug("[MATCHER crosspost] %s : %s -> %d", new_digest, entry.digest, score)
            if score >= settings.threshold:
                return True

        history.append(HistoryEntry(new_digest, message.channel.id, message.created_at))
        return False
