"""
ModuleService - the single entry point to module configuration.

Responsibilities:
- Read modules, settings, exclusions and actions for the matcher runners and
  the action pipeline (one independent read per call, no caching except the
  enabled flag which lives in ``ModuleCache``)
- Apply configuration changes from the command layer, enforcing the limits
  and duplicate rules, each in one write transaction
- Keep the module cache in step with the ``modules`` table

All raw DB access is delegated to the four repositories.
The service never does SQL itself.
"""

from __future__ import annotations

from typing import List

from caretaker.database.db_connection import ConnectionManager
from caretaker.datatypes.action_datatypes import MAX_ACTIONS, Action, ActionKind
from caretaker.datatypes.discord_datatypes import ChannelID, GuildID
from caretaker.datatypes.exclusion_datatypes import MAX_EXCLUSIONS, Exclusion, ModuleExclusions
from caretaker.datatypes.module_datatypes import Module, ModuleKind
from caretaker.errors import (
    ActionLimit,
    ExclusionAlreadyExists,
    ExclusionLimit,
    IndexOutOfRange,
    InvalidField,
    MissingActionValue,
    MissingField,
    NoSuchExclusion,
)
from caretaker.modules.module_cache import ModuleCache
from caretaker.modules.settings import Settings, settings_from_rows
from caretaker.repositories import (
    ActionsRepository,
    ExclusionsRepository,
    ModuleSettingsRepository,
    ModulesRepository,
)
from caretaker.repositories.actions_repo import ActionRow
from caretaker.util.format_utils import validate_template
from caretaker.util.logger import get_logger

logger = get_logger("module_service")


class ModuleService:
    """
    Repository-style interface over the module configuration tables.

    - No SQL here, only repository calls and transactions.
    - Every mutation that depends on current state (limits, duplicates,
      positional indices) re-reads that state inside its own transaction.
    """

    def __init__(self, connection: ConnectionManager, cache: ModuleCache) -> None:
        self._connection = connection
        self._cache = cache
        self._modules_repo = ModulesRepository()
        self._settings_repo = ModuleSettingsRepository()
        self._exclusions_repo = ExclusionsRepository()
        self._actions_repo = ActionsRepository()

    @property
    def cache(self) -> ModuleCache:
        return self._cache

    # ------------------------------------------------------------------
    # Modules
    # ------------------------------------------------------------------

    async def get_all_modules(self) -> List[Module]:
        """Load every persisted module across all guilds."""
        async with self._connection.read() as conn:
            rows = await self._modules_repo.get_all(conn)

        modules = []
        for row in rows:
            try:
                kind = ModuleKind(row.module)
            except ValueError:
                logger.warning("[MODULE SERVICE] Skipping unknown module %r of guild %s", row.module, row.guild_id)
                continue
            modules.append(Module(GuildID.from_int(row.guild_id), kind, row.enabled))

        logger.info("[MODULE SERVICE] Loaded %d modules from database", len(modules))
        return modules

    async def get_module(self, guild_id: GuildID, kind: ModuleKind) -> Module:
        """Read one module from storage, defaulting to disabled."""
        async with self._connection.read() as conn:
            row = await self._modules_repo.get(conn, guild_id, kind.value)

        if row is None:
            return Module.default(guild_id, kind)
        return Module(guild_id, kind, row.enabled)

    async def set_enabled(self, guild_id: GuildID, kind: ModuleKind, enabled: bool) -> Module:
        """Persist the enabled flag, then publish it to the cache."""
        async with self._connection.transaction() as conn:
            await self._modules_repo.upsert(conn, guild_id, kind.value, enabled)

        module = Module(guild_id, kind, bool(enabled))
        await self._cache.update(module)

        logger.info(
            "[MODULE SERVICE] %s %s for guild %s", "Enabled" if enabled else "Disabled", kind, guild_id
        )
        return module

    # ------------------------------------------------------------------
    # Settings
    # ------------------------------------------------------------------

    async def get_settings(self, guild_id: GuildID, kind: ModuleKind) -> Settings:
        async with self._connection.read() as conn:
            rows = await self._settings_repo.get_rows(conn, guild_id, kind.value)
        return settings_from_rows(kind, rows)

    async def set_setting(self, guild_id: GuildID, kind: ModuleKind, name: str, value: str) -> Settings:
        """
        Parse and store one setting.

        Raises:
            NoSuchSetting: ``name`` is not a setting of ``kind``.
            InvalidSettingValue: ``value`` does not parse or is out of range.
        """
        async with self._connection.transaction() as conn:
            settings = settings_from_rows(kind, await self._settings_repo.get_rows(conn, guild_id, kind.value))
            settings.set(name, value)
            await self._settings_repo.upsert(conn, guild_id, kind.value, name, str(settings.get(name)))

        logger.debug("[MODULE SERVICE] Set %s.%s = %s for guild %s", kind, name, value, guild_id)
        return settings

    async def reset_setting(self, guild_id: GuildID, kind: ModuleKind, name: str) -> Settings:
        async with self._connection.transaction() as conn:
            settings = settings_from_rows(kind, await self._settings_repo.get_rows(conn, guild_id, kind.value))
            settings.reset(name)
            await self._settings_repo.delete(conn, guild_id, kind.value, name)

        logger.debug("[MODULE SERVICE] Reset %s.%s for guild %s", kind, name, guild_id)
        return settings

    # ------------------------------------------------------------------
    # Exclusions
    # ------------------------------------------------------------------

    async def get_exclusions(self, guild_id: GuildID, kind: ModuleKind) -> ModuleExclusions:
        async with self._connection.read() as conn:
            rows = await self._exclusions_repo.get_rows(conn, guild_id, kind.value)
        return ModuleExclusions.from_rows(rows)

    async def add_exclusion(self, guild_id: GuildID, kind: ModuleKind, exclusion: Exclusion) -> None:
        """
        Raises:
            ExclusionLimit: The module already has ``MAX_EXCLUSIONS`` entries.
            ExclusionAlreadyExists: ``exclusion`` is already present.
        """
        async with self._connection.transaction() as conn:
            current = ModuleExclusions.from_rows(await self._exclusions_repo.get_rows(conn, guild_id, kind.value))
            if len(current) >= MAX_EXCLUSIONS:
                raise ExclusionLimit(len(current), MAX_EXCLUSIONS)
            if exclusion in current:
                raise ExclusionAlreadyExists()
            await self._exclusions_repo.insert(conn, guild_id, kind.value, exclusion)

        logger.debug("[MODULE SERVICE] Added %s exclusion %s to %s in guild %s", exclusion.kind, exclusion.id, kind, guild_id)

    async def remove_exclusion(self, guild_id: GuildID, kind: ModuleKind, exclusion: Exclusion) -> None:
        async with self._connection.transaction() as conn:
            deleted = await self._exclusions_repo.delete(conn, guild_id, kind.value, exclusion)
            if not deleted:
                raise NoSuchExclusion()

        logger.debug("[MODULE SERVICE] Removed %s exclusion %s from %s in guild %s", exclusion.kind, exclusion.id, kind, guild_id)

    # ------------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------------

    async def get_actions(self, guild_id: GuildID, kind: ModuleKind) -> List[Action]:
        """Return the configured actions in insertion order."""
        async with self._connection.read() as conn:
            rows = await self._actions_repo.get_for_module(conn, guild_id, kind.value)
        return [_row_to_action(row) for row in rows]

    async def add_action(self, guild_id: GuildID, kind: ModuleKind, action: Action) -> None:
        """
        Append an action to the module.

        Raises:
            MissingActionValue: A notify action has no message.
            InvalidNotifyTemplate: The notify message does not render.
            ActionLimit: The module already has ``MAX_ACTIONS`` actions.
        """
        if action.kind is ActionKind.NOTIFY:
            if not action.message:
                raise MissingActionValue("message")
            validate_template(action.message)

        async with self._connection.transaction() as conn:
            count = await self._actions_repo.count(conn, guild_id, kind.value)
            if count >= MAX_ACTIONS:
                raise ActionLimit(count, MAX_ACTIONS)
            await self._actions_repo.insert(
                conn,
                guild_id,
                kind.value,
                action.kind.value,
                action.channel_id.to_int() if action.channel_id is not None else None,
                action.message,
            )

        logger.debug("[MODULE SERVICE] Added %s action to %s in guild %s", action.kind, kind, guild_id)

    async def remove_action(self, guild_id: GuildID, kind: ModuleKind, index: int) -> Action:
        """
        Remove the action at ``index`` of the current list.

        The list is read inside the write transaction, so the index always
        refers to the list as it is at removal time.

        Raises:
            IndexOutOfRange: ``index`` is negative or past the end.
        """
        async with self._connection.transaction() as conn:
            rows = await self._actions_repo.get_for_module(conn, guild_id, kind.value)
            if index < 0 or index >= len(rows):
                raise IndexOutOfRange(index)
            row = rows[index]
            await self._actions_repo.delete(conn, row.id)

        logger.debug("[MODULE SERVICE] Removed action %d (%s) from %s in guild %s", index, row.action, kind, guild_id)
        return _row_to_action(row)


# ---------------------------------------------------------------------------
# Pure helpers
# ---------------------------------------------------------------------------

def _row_to_action(row: ActionRow) -> Action:
    try:
        kind = ActionKind(row.action)
    except ValueError:
        raise InvalidField(row.action) from None

    channel_id = ChannelID.from_int(row.in_channel) if row.in_channel is not None else None
    if kind is ActionKind.REMOVE_MESSAGE:
        return Action(kind=kind, channel_id=channel_id)
    if not row.message:
        raise MissingField("message")
    return Action(kind=kind, channel_id=channel_id, message=row.message)
