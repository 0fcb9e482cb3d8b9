"""
Matcher runners: one long-lived task per module kind.

Each runner owns one broadcast subscription and one matcher. For every
message it resolves, in order, the guild, the enabled flag (from the module
cache), the exclusions and the settings (fresh from the database), runs the
predicate, and forwards matches into the bounded action queue. A full queue
blocks the runner; matches are never dropped.

A failure while processing one message is logged and the runner moves on to
the next. Only a closed broadcast ends the loop.
"""

from __future__ import annotations

import asyncio
from typing import List, Tuple

import discord

from caretaker.datatypes.discord_datatypes import GuildID
from caretaker.datatypes.module_datatypes import ModuleKind
from caretaker.dispatch.broadcast import Lagged, MessageBroadcast, Subscription
from caretaker.dispatch.dependencies import Dependencies
from caretaker.errors import ChannelClosed, InternalError
from caretaker.matchers import MATCHERS
from caretaker.matchers.base import Matcher
from caretaker.util.logger import get_logger

logger = get_logger("matcher_runner")

MatchItem = Tuple[ModuleKind, discord.Message]


class MatcherRunner:
    """Drives one matcher from its broadcast subscription."""

    def __init__(
        self,
        kind: ModuleKind,
        matcher: Matcher,
        subscription: Subscription[discord.Message],
        action_queue: asyncio.Queue,
        deps: Dependencies,
    ) -> None:
        self.kind = kind
        self.matcher = matcher
        self.subscription = subscription
        self.action_queue = action_queue
        self.deps = deps

    async def run(self) -> None:
        logger.debug("[MATCHER %s] Runner started", self.kind)
        while True:
            try:
                message = await self.subscription.recv()
            except Lagged as lag:
                logger.warning("[MATCHER %s] Lagged behind, %d messages skipped", self.kind, lag.skipped)
                continue
            except ChannelClosed:
                logger.info("[MATCHER %s] Broadcast closed, runner stopping", self.kind)
                return

            try:
                await self.process(message)
            except InternalError as exc:
                logger.error(
                    "[MATCHER %s] Internal error on message %s, this is a bug: %s",
                    self.kind,
                    message.id,
                    exc,
                )
            except Exception:
                logger.exception(
                    "[MATCHER %s] Failed to process message %s in guild %s",
                    self.kind,
                    message.id,
                    getattr(message.guild, "id", None),
                )

    async def process(self, message: discord.Message) -> bool:
        """Gate, evaluate and forward one message. Returns True if it matched."""
        if message.guild is None:
            return False
        guild_id = GuildID.from_discord(message.guild)

        module = await self.deps.cache.get(guild_id, self.kind)
        if not module.enabled:
            return False

        exclusions = await self.deps.service.get_exclusions(guild_id, self.kind)
        if exclusions.should_exclude(message.author):
            logger.debug("[MATCHER %s] Author %s is excluded in guild %s", self.kind, message.author.id, guild_id)
            return False

        settings = await self.deps.service.get_settings(guild_id, self.kind)
        if not await self.matcher.is_match(settings, message):
            return False

        logger.info(
            "[MATCHER %s] Message %s by %s in guild %s matched",
            self.kind,
            message.id,
            message.author.id,
            guild_id,
        )
        await self.action_queue.put((self.kind, message))
        return True


def spawn_message_matchers(
    broadcast: MessageBroadcast[discord.Message],
    action_queue: asyncio.Queue,
    deps: Dependencies,
) -> List[asyncio.Task]:
    """
    Build every registered matcher and start its runner task.

    Subscriptions are taken before the tasks start, so no message sent after
    this call returns is missed.
    """
    tasks = []
    for matcher_cls in MATCHERS.values():
        kind, matcher = matcher_cls.build(deps)
        runner = MatcherRunner(kind, matcher, broadcast.subscribe(), action_queue, deps)
        tasks.append(asyncio.create_task(runner.run(), name=f"matcher-{kind}"))

    logger.info("[MATCHER RUNNER] Started %d matcher runners", len(tasks))
    return tasks
