"""
Bursts of messages in one channel or from one user.

Both matchers keep a sliding window of message timestamps per key and
match once the window holds more than ``max_messages`` timestamps. The
window is anchored at the newest message's own timestamp, so replays and
delayed delivery do not distort it.

A key whose newest timestamp has aged past the interval is dropped on the
next message, so memory follows recent posters only.
"""

from __future__ import annotations

from collections import deque
from datetime import datetime, timedelta
from typing import Deque, Dict, Hashable

import discord

from caretaker.datatypes.module_datatypes import ModuleKind
from caretaker.matchers.base import Matcher
from caretaker.modules.settings import ChannelActivitySettings, UserActivitySettings


class _ActivityMatcher(Matcher):
    def __init__(self) -> None:
        self._windows: Dict[Hashable, Deque[datetime]] = {}
        # Keys in least recently touched order, with the time their window runs dry
        self._expiry: Dict[Hashable, datetime] = {}

    def key_for(self, message: discord.Message) -> Hashable:
        raise NotImplementedError

    def window_size(self, key: Hashable) -> int:
        return len(self._windows.get(key, ()))

    def tracked_keys(self) -> int:
        return len(self._windows)

    def _evict_idle(self, now: datetime) -> None:
        while self._expiry:
            key, expires_at = next(iter(self._expiry.items()))
            if expires_at > now:
                break
            del self._expiry[key]
            self._windows.pop(key, None)

    async def matches(self, settings, message: discord.Message) -> bool:
        key = self.key_for(message)
        now = message.created_at
        interval = timedelta(seconds=settings.interval)
        self._evict_idle(now)

        window = self._windows.setdefault(key, deque())
        window.append(now)
        cutoff = now - interval
        while window and window[0] <= cutoff:
            window.popleft()

        self._expiry.pop(key, None)
        self._expiry[key] = now + interval

        return len(window) > settings.max_messages


class ChannelActivityMatcher(_ActivityMatcher):
    kind = ModuleKind.CHANNEL_ACTIVITY
    settings_type = ChannelActivitySettings

    def key_for(self, message: discord.Message) -> Hashable:
        return (message.guild.id, message.channel.id)


class UserActivityMatcher(_ActivityMatcher):
    kind = ModuleKind.USER_ACTIVITY
    settings_type = UserActivitySettings

    def key_for(self, message: discord.Message) -> Hashable:
        return (message.guild.id, message.author.id)
