"""Typed handles shared by the matcher runners and the action pipeline."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Callable

import discord

from caretaker.modules.module_cache import ModuleCache
from caretaker.services.module_service import ModuleService
from caretaker.util.discord.platform import DiscordPlatform


@dataclass
class Dependencies:
    """
    Attributes:
        service: Reads settings, exclusions and actions per message
        cache: Enabled flags, consulted before anything else
        platform: Side effects of the actions
        clock: Current aware UTC time, replaceable in tests
    """
    service: ModuleService
    cache: ModuleCache
    platform: DiscordPlatform
    clock: Callable[[], datetime] = discord.utils.utcnow
