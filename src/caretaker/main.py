"""
Caretaker
=========

A Discord bot that watches guild messages for spam patterns (mass pings,
cross-posting, invite links, ...) and runs the remediation each guild has
configured for them.
"""

import os
import sys
from pathlib import Path


def resolve_base_dir() -> Path:
    """Determine the base directory of the project.
    Resolution order:
    1. CARETAKER_HOME environment variable, if set.
    2. If running in a frozen/compiled context (e.g., PyInstaller, Nuitka), use the executable's directory.
    3. Otherwise, assume running from source and use the repository root.
    """
    if env_home := os.getenv("CARETAKER_HOME"):
        return Path(env_home).resolve()

    if getattr(sys, "frozen", False) or getattr(sys, "compiled", False):
        return Path(sys.argv[0]).resolve().parent

    return Path(__file__).resolve().parents[2]


BASE_DIR = resolve_base_dir()
os.chdir(BASE_DIR)

import asyncio
import signal
from dataclasses import dataclass, field
from typing import List, Optional

import discord
from dotenv import load_dotenv

from caretaker.cog.commands import module_cmds
from caretaker.cog.listener import message_listener
from caretaker.configuration.app_configuration import app_config
from caretaker.database.database import database
from caretaker.dispatch.action_pipeline import ActionPipeline
from caretaker.dispatch.broadcast import MessageBroadcast
from caretaker.dispatch.dependencies import Dependencies
from caretaker.dispatch.matcher_runner import spawn_message_matchers
from caretaker.modules.module_cache import ModuleCache
from caretaker.services.module_service import ModuleService
from caretaker.util.discord.platform import DiscordPlatform
from caretaker.util.logger import get_logger, handle_exception, set_log_level


logger = get_logger("main")


@dataclass
class Runtime:
    """Everything started by ``async_main`` that shutdown has to stop."""
    bot: discord.Bot
    broadcast: MessageBroadcast
    action_queue: asyncio.Queue
    pipeline: ActionPipeline
    runner_tasks: List[asyncio.Task] = field(default_factory=list)
    pipeline_task: Optional[asyncio.Task] = None


def load_environment() -> str:
    """Load environment variables and return the Discord bot token.

    Raises
    ------
    SystemExit
        If the required ``DISCORD_BOT_TOKEN`` variable is missing.
    """
    load_dotenv(dotenv_path=BASE_DIR / ".env")
    token = os.getenv("DISCORD_BOT_TOKEN")
    if not token:
        logger.critical("'DISCORD_BOT_TOKEN' environment variable not set. Bot cannot start.")
        sys.exit(1)
    return token


def build_intents() -> discord.Intents:
    """Guild messages with their content, plus members for role exclusions."""
    intents = discord.Intents.default()
    intents.message_content = True
    intents.guilds = True
    intents.messages = True
    intents.members = True
    return intents


def create_bot(service: ModuleService, broadcast: MessageBroadcast) -> discord.Bot:
    """Instantiate the Discord bot and register all cogs."""
    bot = discord.Bot(intents=build_intents())
    message_listener.setup(bot, broadcast)
    module_cmds.setup(bot, service)
    logger.info("All cogs loaded successfully.")
    return bot


async def start_bot(bot: discord.Bot, token: str) -> None:
    logger.info("Attempting to connect to Discord…")
    try:
        await bot.start(token)
    except asyncio.CancelledError:
        logger.info("Discord bot start cancelled; shutting down")
    finally:
        logger.info("Discord bot start routine finished.")


async def shutdown_runtime(runtime: Runtime) -> None:
    """Stop the gateway first, then let matches and actions in flight finish."""
    grace = app_config.shutdown_grace_seconds

    if not runtime.bot.is_closed():
        try:
            await runtime.bot.close()
        except Exception as exc:
            logger.exception("Error while closing the Discord connection: %s", exc)

    # Runners exit once they have consumed what is already buffered
    runtime.broadcast.close()
    if runtime.runner_tasks:
        _done, pending = await asyncio.wait(runtime.runner_tasks, timeout=grace)
        for task in pending:
            task.cancel()

    if runtime.pipeline_task is not None and not runtime.pipeline_task.done():
        await runtime.pipeline.stop()
        try:
            await asyncio.wait_for(runtime.pipeline_task, timeout=grace)
        except asyncio.TimeoutError:
            logger.warning("Action pipeline did not finish within %ss", grace)

    pending_actions = await runtime.pipeline.drain(timeout=grace)
    if pending_actions:
        logger.warning("Abandoning %d in-flight actions", pending_actions)

    try:
        await database.shutdown()
    except Exception as exc:
        logger.exception("Error during database shutdown: %s", exc)

    logger.info("Shutdown complete.")


def install_signal_handlers(bot: discord.Bot) -> None:
    """Close the bot on SIGINT/SIGTERM so ``bot.start`` returns normally."""
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, lambda s=sig: _request_close(bot, s))
        except (NotImplementedError, RuntimeError):
            # Not supported on this platform; KeyboardInterrupt still works
            pass


def _request_close(bot: discord.Bot, sig: signal.Signals) -> None:
    logger.info("Received %s, shutting down", sig.name)
    asyncio.get_running_loop().create_task(bot.close())


async def async_main() -> int:
    """Bootstrap the database, dispatch tasks and bot, returning an exit code."""
    set_log_level(app_config.log_level)
    token = load_environment()

    try:
        logger.info("Initializing database...")
        await database.initialize(app_config.database_path)
    except Exception as exc:
        logger.critical("Failed to initialize database: %s", exc)
        return 1

    cache = ModuleCache()
    service = ModuleService(database.connection, cache)
    try:
        await cache.reload(await service.get_all_modules())
    except Exception as exc:
        logger.critical("Failed to load modules: %s", exc)
        await database.shutdown()
        return 1

    broadcast: MessageBroadcast[discord.Message] = MessageBroadcast(app_config.broadcast_capacity)
    action_queue: asyncio.Queue = asyncio.Queue(maxsize=app_config.action_queue_size)

    try:
        bot = create_bot(service, broadcast)
    except Exception as exc:
        logger.critical("Failed to initialize Discord bot: %s", exc)
        await database.shutdown()
        return 1

    deps = Dependencies(service=service, cache=cache, platform=DiscordPlatform(bot))
    pipeline = ActionPipeline(action_queue, deps)
    runtime = Runtime(bot=bot, broadcast=broadcast, action_queue=action_queue, pipeline=pipeline)
    runtime.runner_tasks = spawn_message_matchers(broadcast, action_queue, deps)
    runtime.pipeline_task = asyncio.create_task(pipeline.run(), name="action-pipeline")

    install_signal_handlers(bot)

    exit_code = 0
    try:
        await start_bot(bot, token)
    except Exception as exc:
        logger.critical("Discord bot runtime error: %s", exc)
        exit_code = 1
    finally:
        await shutdown_runtime(runtime)

    return exit_code


def main() -> int:
    """Entrypoint that runs the async runtime and returns the process code."""
    sys.excepthook = handle_exception
    logger.info("Starting Caretaker…")
    try:
        return asyncio.run(async_main())
    except KeyboardInterrupt:
        logger.info("Shutdown requested by user.")
        return 0
    except SystemExit as exit_exc:
        code = exit_exc.code
        if isinstance(code, int):
            return code
        if code is None:
            return 1
        try:
            return int(code)
        except (ValueError, TypeError):
            logger.warning("SystemExit.code is not an int (%r); defaulting to 1", code)
            return 1
    except Exception as exc:
        logger.critical("An unexpected error occurred while running the bot: %s", exc)
        return 1


if __name__ == "__main__":
    sys.exit(main())
