import asyncio
import sqlite3

import pytest

from caretaker.datatypes.action_datatypes import MAX_ACTIONS, Action, ActionKind
from caretaker.datatypes.discord_datatypes import ChannelID, GuildID
from caretaker.datatypes.exclusion_datatypes import MAX_EXCLUSIONS, Exclusion
from caretaker.datatypes.module_datatypes import Module, ModuleKind
from caretaker.errors import (
    ActionLimit,
    ExclusionAlreadyExists,
    ExclusionLimit,
    IndexOutOfRange,
    InvalidNotifyTemplate,
    InvalidSettingValue,
    MissingActionValue,
    NoSuchExclusion,
    NoSuchSetting,
)
from caretaker.modules.module_cache import ModuleCache
from caretaker.modules.settings import CrosspostSettings
from caretaker.services.module_service import ModuleService

GUILD = GuildID(1)
OTHER_GUILD = GuildID(2)


@pytest.mark.asyncio
async def test_schema_creates_tables(connection):
    conn = sqlite3.connect(connection.path)
    try:
        tables = {row[0] for row in conn.execute("SELECT name FROM sqlite_master WHERE type='table'")}
    finally:
        conn.close()

    assert {"modules", "module_settings", "module_exclusions", "actions", "schema_version"} <= tables


# ---------------------------------------------------------------------------
# Modules
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_set_enabled_persists_and_updates_cache(service):
    await service.set_enabled(GUILD, ModuleKind.CROSSPOST, True)

    assert await service.get_module(GUILD, ModuleKind.CROSSPOST) == Module(GUILD, ModuleKind.CROSSPOST, True)
    assert (await service.cache.get(GUILD, ModuleKind.CROSSPOST)).enabled is True
    assert (await service.get_module(OTHER_GUILD, ModuleKind.CROSSPOST)).enabled is False


@pytest.mark.asyncio
async def test_get_all_modules_feeds_a_fresh_cache(connection, service):
    await service.set_enabled(GUILD, ModuleKind.CROSSPOST, True)
    await service.set_enabled(GUILD, ModuleKind.SELFBOT, False)
    await service.set_enabled(OTHER_GUILD, ModuleKind.MASS_PING, True)

    cache = ModuleCache()
    await cache.reload(await ModuleService(connection, cache).get_all_modules())

    assert len(cache) == 3
    assert (await cache.get(GUILD, ModuleKind.CROSSPOST)).enabled is True
    assert (await cache.get(GUILD, ModuleKind.SELFBOT)).enabled is False
    assert (await cache.get(OTHER_GUILD, ModuleKind.MASS_PING)).enabled is True


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_settings_default_when_nothing_stored(service):
    assert await service.get_settings(GUILD, ModuleKind.CROSSPOST) == CrosspostSettings()


@pytest.mark.asyncio
async def test_set_and_reset_setting_round_trip(service):
    await service.set_setting(GUILD, ModuleKind.CROSSPOST, "threshold", "100")

    settings = await service.get_settings(GUILD, ModuleKind.CROSSPOST)
    assert settings.threshold == 100
    assert settings.timeout == 3600
    assert (await service.get_settings(OTHER_GUILD, ModuleKind.CROSSPOST)).threshold == 80

    await service.reset_setting(GUILD, ModuleKind.CROSSPOST, "threshold")
    assert (await service.get_settings(GUILD, ModuleKind.CROSSPOST)).threshold == 80


@pytest.mark.asyncio
async def test_set_setting_errors_leave_storage_untouched(service):
    await service.set_setting(GUILD, ModuleKind.CROSSPOST, "timeout", "60")

    with pytest.raises(NoSuchSetting):
        await service.set_setting(GUILD, ModuleKind.CROSSPOST, "nope", "1")
    with pytest.raises(InvalidSettingValue):
        await service.set_setting(GUILD, ModuleKind.CROSSPOST, "timeout", "soon")
    with pytest.raises(NoSuchSetting):
        await service.set_setting(GUILD, ModuleKind.MASS_PING, "threshold", "1")

    assert (await service.get_settings(GUILD, ModuleKind.CROSSPOST)).timeout == 60


@pytest.mark.asyncio
async def test_concurrent_reads_never_see_defaults_for_untouched_settings(service):
    await service.set_setting(GUILD, ModuleKind.CROSSPOST, "threshold", "100")

    async def read_threshold():
        return (await service.get_settings(GUILD, ModuleKind.CROSSPOST)).threshold

    async def write_timeout(seconds):
        await service.set_setting(GUILD, ModuleKind.CROSSPOST, "timeout", str(seconds))

    reads = [read_threshold() for _ in range(200)]
    writes = [write_timeout(60 + i) for i in range(50)]
    results = await asyncio.gather(*reads, *writes)

    assert set(results[:200]) == {100}
    assert 60 <= (await service.get_settings(GUILD, ModuleKind.CROSSPOST)).timeout <= 109


@pytest.mark.asyncio
async def test_reset_only_touches_the_named_setting(service):
    await service.set_setting(GUILD, ModuleKind.CROSSPOST, "threshold", "100")
    await service.set_setting(GUILD, ModuleKind.CROSSPOST, "timeout", "60")

    async def read_threshold():
        return (await service.get_settings(GUILD, ModuleKind.CROSSPOST)).threshold

    reads = [read_threshold() for _ in range(50)]
    results = await asyncio.gather(*reads, service.reset_setting(GUILD, ModuleKind.CROSSPOST, "timeout"))

    assert set(results[:50]) == {100}
    settings = await service.get_settings(GUILD, ModuleKind.CROSSPOST)
    assert settings.timeout == 3600
    assert settings.threshold == 100


# ---------------------------------------------------------------------------
# Exclusions
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_exclusion_add_remove(service):
    await service.add_exclusion(GUILD, ModuleKind.INVITE_LINK, Exclusion.user(10))
    await service.add_exclusion(GUILD, ModuleKind.INVITE_LINK, Exclusion.role(10))

    exclusions = await service.get_exclusions(GUILD, ModuleKind.INVITE_LINK)
    assert set(exclusions) == {Exclusion.user(10), Exclusion.role(10)}
    assert (await service.get_exclusions(GUILD, ModuleKind.CROSSPOST)).is_empty()

    await service.remove_exclusion(GUILD, ModuleKind.INVITE_LINK, Exclusion.user(10))
    assert list(await service.get_exclusions(GUILD, ModuleKind.INVITE_LINK)) == [Exclusion.role(10)]


@pytest.mark.asyncio
async def test_exclusion_duplicate_and_missing(service):
    await service.add_exclusion(GUILD, ModuleKind.INVITE_LINK, Exclusion.user(10))

    with pytest.raises(ExclusionAlreadyExists):
        await service.add_exclusion(GUILD, ModuleKind.INVITE_LINK, Exclusion.user(10))
    with pytest.raises(NoSuchExclusion):
        await service.remove_exclusion(GUILD, ModuleKind.INVITE_LINK, Exclusion.role(10))


@pytest.mark.asyncio
async def test_exclusion_limit(service):
    for user_id in range(MAX_EXCLUSIONS):
        await service.add_exclusion(GUILD, ModuleKind.SELFBOT, Exclusion.user(user_id))

    with pytest.raises(ExclusionLimit):
        await service.add_exclusion(GUILD, ModuleKind.SELFBOT, Exclusion.user(999))

    assert len(await service.get_exclusions(GUILD, ModuleKind.SELFBOT)) == MAX_EXCLUSIONS


# ---------------------------------------------------------------------------
# Actions
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_actions_keep_insertion_order(service):
    first = Action.remove_message()
    second = Action.notify("{user} crossposted in {channel}", ChannelID(55))
    third = Action.notify("see {link}")

    for action in (first, second, third):
        await service.add_action(GUILD, ModuleKind.CROSSPOST, action)

    assert await service.get_actions(GUILD, ModuleKind.CROSSPOST) == [first, second, third]
    assert await service.get_actions(GUILD, ModuleKind.SELFBOT) == []


@pytest.mark.asyncio
async def test_remove_index_zero_twice_removes_two_distinct_actions(service):
    actions = [Action.notify(f"note {i}") for i in range(3)]
    for action in actions:
        await service.add_action(GUILD, ModuleKind.CROSSPOST, action)

    assert await service.remove_action(GUILD, ModuleKind.CROSSPOST, 0) == actions[0]
    assert await service.remove_action(GUILD, ModuleKind.CROSSPOST, 0) == actions[1]
    assert await service.get_actions(GUILD, ModuleKind.CROSSPOST) == [actions[2]]


@pytest.mark.asyncio
async def test_stale_index_is_rejected_and_removes_nothing(service):
    for i in range(2):
        await service.add_action(GUILD, ModuleKind.CROSSPOST, Action.notify(f"note {i}"))
    await service.remove_action(GUILD, ModuleKind.CROSSPOST, 0)

    # Index 1 was valid before the removal above
    with pytest.raises(IndexOutOfRange):
        await service.remove_action(GUILD, ModuleKind.CROSSPOST, 1)
    with pytest.raises(IndexOutOfRange):
        await service.remove_action(GUILD, ModuleKind.CROSSPOST, -1)

    assert len(await service.get_actions(GUILD, ModuleKind.CROSSPOST)) == 1


@pytest.mark.asyncio
async def test_action_limit(service):
    for _ in range(MAX_ACTIONS):
        await service.add_action(GUILD, ModuleKind.MASS_PING, Action.remove_message())

    with pytest.raises(ActionLimit):
        await service.add_action(GUILD, ModuleKind.MASS_PING, Action.remove_message())


@pytest.mark.asyncio
async def test_invalid_notify_template_is_rejected_on_add(service):
    with pytest.raises(InvalidNotifyTemplate):
        await service.add_action(GUILD, ModuleKind.MASS_PING, Action.notify("{usr} pinged everyone"))

    assert await service.get_actions(GUILD, ModuleKind.MASS_PING) == []


@pytest.mark.asyncio
async def test_notify_channel_is_stored(service):
    await service.add_action(GUILD, ModuleKind.MASS_PING, Action.notify("hi", ChannelID(77)))

    [action] = await service.get_actions(GUILD, ModuleKind.MASS_PING)
    assert action.kind is ActionKind.NOTIFY
    assert action.channel_id == ChannelID(77)


@pytest.mark.asyncio
async def test_notify_without_message_is_an_operator_error(service):
    with pytest.raises(MissingActionValue):
        await service.add_action(GUILD, ModuleKind.MASS_PING, Action(kind=ActionKind.NOTIFY))

    assert await service.get_actions(GUILD, ModuleKind.MASS_PING) == []
