import asyncio
from unittest.mock import AsyncMock, MagicMock

import discord
import pytest

import caretaker.actions.action_runner as action_runner
from caretaker.actions.action_runner import ActionRunner
from caretaker.datatypes.action_datatypes import Action, ActionKind
from caretaker.datatypes.discord_datatypes import ChannelID, GuildID
from caretaker.datatypes.module_datatypes import ModuleKind
from caretaker.dispatch.action_pipeline import ActionPipeline
from caretaker.errors import MissingActionValue
from caretaker.util.discord.platform import DiscordPlatform
from conftest import make_message

GUILD = GuildID(1)


def _http_error(cls=discord.HTTPException, status=500):
    return cls(MagicMock(status=status, reason="error"), "error")


def test_notify_requires_a_message():
    with pytest.raises(MissingActionValue):
        Action.notify("")
    with pytest.raises(MissingActionValue):
        Action.notify(None)


def test_friendly_names_and_descriptions():
    assert ActionKind.REMOVE_MESSAGE.friendly_name == "Remove the user's message"
    assert Action.notify("hi").description() == "In the same channel with `hi`"
    assert Action.notify("hi", ChannelID(5)).description() == "In <#5> with `hi`"


# ---------------------------------------------------------------------------
# ActionRunner
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_remove_message_deletes(platform):
    message = make_message("spam")

    assert await ActionRunner(platform).run(Action.remove_message(), message) is True
    platform.delete_message.assert_awaited_once_with(message)


@pytest.mark.asyncio
async def test_remove_message_failure_is_logged_not_raised(platform, monkeypatch):
    logger = MagicMock()
    monkeypatch.setattr(action_runner, "logger", logger)
    platform.delete_message.side_effect = _http_error(discord.Forbidden, 403)

    assert await ActionRunner(platform).run(Action.remove_message(), make_message("spam")) is False
    assert platform.delete_message.await_count == 1
    logger.error.assert_called_once()


@pytest.mark.asyncio
async def test_notify_defaults_to_message_channel(platform):
    message = make_message("spam", channel_id=10, author_id=3)

    await ActionRunner(platform).run(Action.notify("{user} please stop"), message)

    platform.send_message.assert_awaited_once_with(ChannelID(10), "<@3> please stop")


@pytest.mark.asyncio
async def test_notify_uses_configured_channel(platform):
    message = make_message("spam", channel_id=10)

    await ActionRunner(platform).run(Action.notify("{link}", ChannelID(99)), message)

    platform.send_message.assert_awaited_once_with(ChannelID(99), message.jump_url)


@pytest.mark.asyncio
async def test_bad_template_is_a_configuration_warning(platform, monkeypatch):
    logger = MagicMock()
    monkeypatch.setattr(action_runner, "logger", logger)
    action = Action(kind=ActionKind.NOTIFY, message="{nope}")

    assert await ActionRunner(platform).run(action, make_message("x")) is False

    platform.send_message.assert_not_called()
    logger.warning.assert_called_once()
    logger.error.assert_not_called()


@pytest.mark.asyncio
async def test_send_failure_is_a_transport_error(platform, monkeypatch):
    logger = MagicMock()
    monkeypatch.setattr(action_runner, "logger", logger)
    platform.send_message.side_effect = _http_error()

    assert await ActionRunner(platform).run(Action.notify("hi"), make_message("x")) is False

    logger.error.assert_called_once()
    logger.warning.assert_not_called()


# ---------------------------------------------------------------------------
# DiscordPlatform
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_platform_falls_back_to_fetch_channel():
    channel = MagicMock()
    channel.send = AsyncMock()
    bot = MagicMock()
    bot.get_channel.return_value = None
    bot.fetch_channel = AsyncMock(return_value=channel)

    await DiscordPlatform(bot).send_message(ChannelID(5), "hello")

    bot.fetch_channel.assert_awaited_once_with(5)
    assert channel.send.await_args.args == ("hello",)


@pytest.mark.asyncio
async def test_platform_delete_message():
    message = MagicMock()
    message.delete = AsyncMock()

    await DiscordPlatform(MagicMock()).delete_message(message)

    message.delete.assert_awaited_once()


# ---------------------------------------------------------------------------
# ActionPipeline
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_pipeline_runs_every_action_even_if_one_fails(deps, platform):
    await deps.service.add_action(GUILD, ModuleKind.MASS_PING, Action.remove_message())
    await deps.service.add_action(GUILD, ModuleKind.MASS_PING, Action.notify("{user} pinged everyone"))
    platform.delete_message.side_effect = RuntimeError("gone")
    message = make_message("@everyone", author_id=5)

    pipeline = ActionPipeline(asyncio.Queue(), deps)
    tasks = await pipeline.handle(ModuleKind.MASS_PING, message)
    assert len(tasks) == 2
    assert await pipeline.drain(timeout=1) == 0

    platform.delete_message.assert_awaited_once_with(message)
    platform.send_message.assert_awaited_once_with(ChannelID(10), "<@5> pinged everyone")
    assert pipeline.in_flight == 0


@pytest.mark.asyncio
async def test_pipeline_drops_messages_without_guild(deps, platform):
    pipeline = ActionPipeline(asyncio.Queue(), deps)

    assert await pipeline.handle(ModuleKind.MASS_PING, make_message("x", guild_id=None)) == []


@pytest.mark.asyncio
async def test_pipeline_survives_action_lookup_failure(deps, platform):
    deps.service.get_actions = AsyncMock(side_effect=RuntimeError("database is locked"))
    pipeline = ActionPipeline(asyncio.Queue(), deps)

    assert await pipeline.handle(ModuleKind.MASS_PING, make_message("x")) == []


@pytest.mark.asyncio
async def test_pipeline_consumes_queue_until_stopped(deps, platform):
    await deps.service.add_action(GUILD, ModuleKind.SELFBOT, Action.remove_message())
    queue = asyncio.Queue()
    pipeline = ActionPipeline(queue, deps)
    messages = [make_message(str(i)) for i in range(3)]

    for message in messages:
        await queue.put((ModuleKind.SELFBOT, message))
    await pipeline.stop()
    await asyncio.wait_for(pipeline.run(), timeout=2)
    await pipeline.drain(timeout=1)

    assert sorted(call.args[0].id for call in platform.delete_message.await_args_list) == [m.id for m in messages]
    assert queue.empty()
