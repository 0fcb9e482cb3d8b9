"""
In-memory cache of the per-guild module enabled flags.

Populated once at startup from every persisted module row, then read by
every matcher runner on every message. Configuration commands update it
after writing to the database, so the hot path never needs a database round
trip to decide whether a module is enabled.

Concurrency
-----------
Writers serialise on an ``asyncio.Lock`` and publish a fresh mapping
(copy-on-write). Readers never take a lock: they grab the current mapping
reference, which is always a complete snapshot, so reads cannot be starved
by writers and never observe a half-applied update.
"""

from __future__ import annotations

import asyncio
from types import MappingProxyType
from typing import Dict, Iterable, Mapping

from caretaker.datatypes.discord_datatypes import GuildID
from caretaker.datatypes.module_datatypes import Module, ModuleKind
from caretaker.util.logger import get_logger

logger = get_logger("module_cache")

_GuildModules = Mapping[ModuleKind, Module]


class ModuleCache:
    """Shared handle over ``guild -> (kind -> Module)``."""

    def __init__(self, guilds: Dict[GuildID, Dict[ModuleKind, Module]] | None = None) -> None:
        self._guilds: Mapping[GuildID, _GuildModules] = MappingProxyType(
            {guild: MappingProxyType(dict(modules)) for guild, modules in (guilds or {}).items()}
        )
        self._write_lock = asyncio.Lock()

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    @classmethod
    def populate(cls, modules: Iterable[Module]) -> "ModuleCache":
        """
        Build the cache from persisted modules.

        Guilds and kinds missing from ``modules`` stay missing; ``get``
        supplies the disabled default for them.
        """
        guilds: Dict[GuildID, Dict[ModuleKind, Module]] = {}
        count = 0
        for module in modules:
            guilds.setdefault(module.guild_id, {})[module.kind] = module
            count += 1

        logger.debug(
            "[MODULE CACHE] Module cache populated. %d modules in total across %d guilds",
            count,
            len(guilds),
        )
        return cls(guilds)

    async def reload(self, modules: Iterable[Module]) -> None:
        """Replace the whole cache contents, e.g. with a fresh database load."""
        fresh = self.populate(modules)
        async with self._write_lock:
            self._guilds = fresh._guilds

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def get(self, guild_id: GuildID, kind: ModuleKind) -> Module:
        """Return the cached module or the disabled default. Never raises."""
        modules = self._guilds.get(guild_id)
        if modules is not None:
            module = modules.get(kind)
            if module is not None:
                return module
        return Module.default(guild_id, kind)

    async def get_all_for_guild(self, guild_id: GuildID) -> Dict[ModuleKind, Module]:
        """Return every module kind of a guild, defaults included."""
        modules = self._guilds.get(guild_id, {})
        return {kind: modules.get(kind) or Module.default(guild_id, kind) for kind in ModuleKind}

    def __len__(self) -> int:
        return sum(len(modules) for modules in self._guilds.values())

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def update(self, module: Module) -> None:
        """Insert or replace one module entry."""
        async with self._write_lock:
            guilds = dict(self._guilds)
            modules = dict(guilds.get(module.guild_id, {}))
            modules[module.kind] = module
            guilds[module.guild_id] = MappingProxyType(modules)
            self._guilds = MappingProxyType(guilds)

        logger.debug(
            "[MODULE CACHE] %s for guild %s is now %s",
            module.kind,
            module.guild_id,
            "enabled" if module.enabled else "disabled",
        )
