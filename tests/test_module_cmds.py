from types import SimpleNamespace
from unittest.mock import MagicMock

import discord
import pytest

from caretaker.cog.commands import module_cmds
from caretaker.datatypes.action_datatypes import Action
from caretaker.datatypes.discord_datatypes import GuildID
from caretaker.datatypes.module_datatypes import ModuleKind

GUILD = GuildID(10)


class Ctx:
    def __init__(self, guild_id=10, manage_guild=True):
        self.guild_id = guild_id
        self.user = MagicMock(spec=discord.Member)
        self.user.guild_permissions = SimpleNamespace(manage_guild=manage_guild)
        self.responses = []

    async def respond(self, *args, **kwargs):
        self.responses.append((args, kwargs))

    @property
    def text(self):
        return self.responses[-1][0][0]


def _callback(name):
    return getattr(module_cmds.ModuleCog, name).callback


def test_setup_adds_cog():
    captured = {}

    fake_bot = SimpleNamespace(add_cog=lambda cog: captured.setdefault("cog", cog))
    module_cmds.setup(fake_bot, service=MagicMock())

    assert isinstance(captured["cog"], module_cmds.ModuleCog)


@pytest.mark.asyncio
async def test_enabled_set_writes_through_service(service):
    cog = module_cmds.ModuleCog(SimpleNamespace(), service)
    ctx = Ctx()

    await _callback("enabled_set")(cog, ctx, "crosspost", True)

    assert (await service.cache.get(GUILD, ModuleKind.CROSSPOST)).enabled is True
    assert ctx.responses[-1][1]["ephemeral"] is True


@pytest.mark.asyncio
async def test_argument_errors_are_shown_verbatim(service):
    cog = module_cmds.ModuleCog(SimpleNamespace(), service)
    ctx = Ctx()

    await _callback("setting_set")(cog, ctx, "crosspost", "threshold", "lots")

    assert ctx.text.startswith("Invalid value for threshold")
    assert (await service.get_settings(GUILD, ModuleKind.CROSSPOST)).threshold == 80


@pytest.mark.asyncio
async def test_action_add_notify_without_message(service):
    cog = module_cmds.ModuleCog(SimpleNamespace(), service)
    ctx = Ctx()

    await _callback("action_add")(cog, ctx, "mass-ping", "notify", None, None)

    assert "requires a value for 'message'" in ctx.text
    assert await service.get_actions(GUILD, ModuleKind.MASS_PING) == []


@pytest.mark.asyncio
async def test_action_remove_out_of_range(service):
    await service.add_action(GUILD, ModuleKind.MASS_PING, Action.remove_message())
    cog = module_cmds.ModuleCog(SimpleNamespace(), service)
    ctx = Ctx()

    await _callback("action_remove")(cog, ctx, "mass-ping", 3)

    assert ctx.text == "The index 3 is out of range"
    assert len(await service.get_actions(GUILD, ModuleKind.MASS_PING)) == 1


@pytest.mark.asyncio
async def test_requires_manage_server(service):
    cog = module_cmds.ModuleCog(SimpleNamespace(), service)
    ctx = Ctx(manage_guild=False)

    await _callback("enabled_set")(cog, ctx, "crosspost", True)

    assert ctx.text == "You need Manage Server permission."
    assert (await service.cache.get(GUILD, ModuleKind.CROSSPOST)).enabled is False


@pytest.mark.asyncio
async def test_rejected_in_direct_messages(service):
    cog = module_cmds.ModuleCog(SimpleNamespace(), service)
    ctx = Ctx(guild_id=None)

    await _callback("exclusion_get")(cog, ctx, "crosspost")

    assert ctx.text == "That command cannot be used in my DMs"
