import discord
import pytest

from caretaker.cog.listener.message_listener import MessageListenerCog, should_process_message
from caretaker.dispatch.broadcast import MessageBroadcast
from conftest import make_message


@pytest.mark.parametrize(
    "message, expected",
    [
        (make_message("hi"), True),
        (make_message("hi", message_type=discord.MessageType.reply), True),
        (make_message("hi", bot=True), False),
        (make_message("hi", guild_id=None), False),
        (make_message("", message_type=discord.MessageType.pins_add), False),
        (make_message("", message_type=discord.MessageType.new_member), False),
    ],
)
def test_should_process_message(message, expected):
    assert should_process_message(message) is expected


@pytest.mark.asyncio
async def test_on_message_publishes_to_broadcast():
    broadcast = MessageBroadcast(capacity=4)
    subscription = broadcast.subscribe()
    cog = MessageListenerCog(bot=None, broadcast=broadcast)
    message = make_message("hi")

    await cog.on_message(message)
    await cog.on_message(make_message("beep", bot=True))

    assert len(subscription) == 1
    assert await subscription.recv() is message


@pytest.mark.asyncio
async def test_on_message_after_close_does_not_raise():
    broadcast = MessageBroadcast(capacity=4)
    broadcast.close()
    cog = MessageListenerCog(bot=None, broadcast=broadcast)

    await cog.on_message(make_message("hi"))
