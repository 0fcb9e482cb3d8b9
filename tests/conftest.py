"""
Pytest configuration and fixtures for Caretaker tests.
"""

import sys
from datetime import datetime, timezone
from pathlib import Path
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio

# Add src directory to path so imports work
src_path = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_path))

import discord  # noqa: E402

from caretaker.database.db_connection import ConnectionManager  # noqa: E402
from caretaker.database.db_schema import SchemaManager  # noqa: E402
from caretaker.dispatch.dependencies import Dependencies  # noqa: E402
from caretaker.modules.module_cache import ModuleCache  # noqa: E402
from caretaker.services.module_service import ModuleService  # noqa: E402

BASE_TIME = datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)

_message_ids = iter(range(1_000, 1_000_000))


def make_message(
    content="",
    *,
    guild_id=1,
    channel_id=10,
    author_id=100,
    role_ids=(),
    created_at=BASE_TIME,
    mention_everyone=False,
    embed_types=(),
    mention_ids=(),
    role_mention_ids=(),
    bot=False,
    message_type=discord.MessageType.default,
):
    """Build a SimpleNamespace standing in for ``discord.Message``."""
    message_id = next(_message_ids)
    return SimpleNamespace(
        id=message_id,
        content=content,
        guild=SimpleNamespace(id=guild_id) if guild_id is not None else None,
        channel=SimpleNamespace(id=channel_id, mention=f"<#{channel_id}>"),
        author=SimpleNamespace(
            id=author_id,
            bot=bot,
            mention=f"<@{author_id}>",
            roles=[SimpleNamespace(id=role_id) for role_id in role_ids],
        ),
        created_at=created_at,
        mention_everyone=mention_everyone,
        embeds=[SimpleNamespace(type=embed_type) for embed_type in embed_types],
        mentions=[SimpleNamespace(id=user_id) for user_id in mention_ids],
        role_mentions=[SimpleNamespace(id=role_id) for role_id in role_mention_ids],
        jump_url=f"https://discord.com/channels/{guild_id}/{channel_id}/{message_id}",
        type=message_type,
    )


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, now=BASE_TIME):
        self.now = now

    def __call__(self):
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest_asyncio.fixture
async def connection(tmp_path):
    """A ConnectionManager on a fresh database file with the schema applied."""
    manager = ConnectionManager()
    await manager.open(tmp_path / "caretaker.db")
    async with manager.transaction() as conn:
        await SchemaManager.initialize_schema(conn)
    yield manager
    await manager.close()


@pytest_asyncio.fixture
async def service(connection):
    return ModuleService(connection, ModuleCache())


@pytest.fixture
def platform():
    platform = MagicMock()
    platform.delete_message = AsyncMock()
    platform.send_message = AsyncMock()
    return platform


@pytest_asyncio.fixture
async def deps(service, platform, clock):
    return Dependencies(service=service, cache=service.cache, platform=platform, clock=clock)
