"""
Base class of the message matchers.

A matcher is the detection predicate of one module kind. It receives the
module's typed settings (resolved by the runner, fresh for every message)
and the message, and answers whether the message is a violation. Matchers
never read the database or the module cache themselves.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, ClassVar, Tuple, Type

import discord

from caretaker.datatypes.module_datatypes import ModuleKind
from caretaker.errors import SettingsMismatch
from caretaker.modules.settings import Settings

if TYPE_CHECKING:
    from caretaker.dispatch.dependencies import Dependencies


class Matcher:
    """
    Predicate of one module kind.

    Subclasses set ``kind`` and ``settings_type`` and implement ``matches``.
    State that spans messages (history, counters) lives on the instance and
    is owned by the single runner task that drives it.
    """

    kind: ClassVar[ModuleKind]
    settings_type: ClassVar[Type[Settings]]

    @classmethod
    def build(cls, deps: "Dependencies") -> Tuple[ModuleKind, "Matcher"]:
        """Construct the matcher once at startup."""
        return cls.kind, cls()

    def check_settings(self, settings: Settings) -> None:
        if not isinstance(settings, self.settings_type):
            raise SettingsMismatch(self.settings_type.__name__, type(settings).__name__)

    async def is_match(self, settings: Settings, message: discord.Message) -> bool:
        """
        Check ``settings`` against this matcher's kind and run the predicate.

        Raises:
            SettingsMismatch: ``settings`` belongs to another module kind.
        """
        self.check_settings(settings)
        return await self.matches(settings, message)

    async def matches(self, settings, message: discord.Message) -> bool:
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"<{type(self).__name__} kind={self.kind}>"
