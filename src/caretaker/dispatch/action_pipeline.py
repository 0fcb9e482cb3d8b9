"""
Action pipeline: the single consumer of the action queue.

For every ``(kind, message)`` match it loads the module's configured actions
and runs each one in its own task. Actions of one match run concurrently and
independently. A ``None`` item stops the consumer once everything queued
before it has been handled; ``drain()`` then waits for the action tasks
still running.
"""

from __future__ import annotations

import asyncio
from typing import List, Optional, Set

import discord

from caretaker.actions.action_runner import ActionRunner
from caretaker.datatypes.action_datatypes import Action
from caretaker.datatypes.discord_datatypes import GuildID
from caretaker.datatypes.module_datatypes import ModuleKind
from caretaker.dispatch.dependencies import Dependencies
from caretaker.errors import MissingGuildID
from caretaker.util.logger import get_logger

logger = get_logger("action_pipeline")


class ActionPipeline:
    def __init__(
        self,
        queue: asyncio.Queue,
        deps: Dependencies,
        runner: Optional[ActionRunner] = None,
    ) -> None:
        self.queue = queue
        self.deps = deps
        self.runner = runner or ActionRunner(deps.platform)
        self._tasks: Set[asyncio.Task] = set()

    @property
    def in_flight(self) -> int:
        return len(self._tasks)

    async def run(self) -> None:
        logger.debug("[ACTION PIPELINE] Started")
        while True:
            item = await self.queue.get()
            try:
                if item is None:
                    logger.info("[ACTION PIPELINE] Stopping")
                    return
                kind, message = item
                await self.handle(kind, message)
            except Exception:
                logger.exception("[ACTION PIPELINE] Failed to handle queued match")
            finally:
                self.queue.task_done()

    async def handle(self, kind: ModuleKind, message: discord.Message) -> List[asyncio.Task]:
        """Spawn one task per configured action of ``kind``."""
        if message.guild is None:
            logger.error("[ACTION PIPELINE] %s, dropping message %s", MissingGuildID(), message.id)
            return []
        guild_id = GuildID.from_discord(message.guild)

        module = await self.deps.cache.get(guild_id, kind)
        try:
            actions = await self.deps.service.get_actions(guild_id, kind)
        except Exception:
            logger.exception(
                "[ACTION PIPELINE] Failed to load actions of %s in guild %s for message %s",
                kind,
                guild_id,
                message.id,
            )
            return []

        logger.debug(
            "[ACTION PIPELINE] Running %d actions of %s (enabled=%s) in guild %s for message %s",
            len(actions),
            kind,
            module.enabled,
            guild_id,
            message.id,
        )

        spawned = []
        for action in actions:
            task = asyncio.create_task(self._run_action(kind, action, message), name=f"action-{action.kind}")
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)
            spawned.append(task)
        return spawned

    async def _run_action(self, kind: ModuleKind, action: Action, message: discord.Message) -> None:
        try:
            await self.runner.run(action, message)
        except Exception:
            logger.exception(
                "[ACTION PIPELINE] %s action of %s failed for message %s",
                action.kind,
                kind,
                message.id,
            )

    async def stop(self) -> None:
        """Queue the stop marker behind every match already queued."""
        await self.queue.put(None)

    async def drain(self, timeout: Optional[float] = None) -> int:
        """
        Wait for running action tasks. Returns how many were still pending
        when ``timeout`` expired.
        """
        if not self._tasks:
            return 0
        _done, pending = await asyncio.wait(set(self._tasks), timeout=timeout)
        if pending:
            logger.warning("[ACTION PIPELINE] %d actions still running after %ss", len(pending), timeout)
        return len(pending)
