"""
Users and roles exempt from a module.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterable, Iterator, Tuple

from caretaker.util.logger import get_logger

logger = get_logger("exclusions")

# Maximum number of exclusions per (guild, module)
MAX_EXCLUSIONS = 10


class ExclusionKind(Enum):
    USER = "user"
    ROLE = "role"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True, slots=True)
class Exclusion:
    """A single exempt user or role."""

    kind: ExclusionKind
    id: int

    @classmethod
    def user(cls, user_id: int) -> "Exclusion":
        return cls(ExclusionKind.USER, int(user_id))

    @classmethod
    def role(cls, role_id: int) -> "Exclusion":
        return cls(ExclusionKind.ROLE, int(role_id))

    def mention(self) -> str:
        if self.kind is ExclusionKind.USER:
            return f"<@{self.id}>"
        return f"<@&{self.id}>"


class ModuleExclusions:
    """Set of exclusions of one module in one guild."""

    __slots__ = ("_exclusions",)

    def __init__(self, exclusions: Iterable[Exclusion] = ()) -> None:
        self._exclusions: frozenset[Exclusion] = frozenset(exclusions)

    @classmethod
    def from_rows(cls, rows: Iterable[Tuple[str, int]]) -> "ModuleExclusions":
        """Build from ``(kind, id)`` rows as stored in ``module_exclusions``."""
        return cls(Exclusion(ExclusionKind(kind), int(id_)) for kind, id_ in rows)

    def __len__(self) -> int:
        return len(self._exclusions)

    def __iter__(self) -> Iterator[Exclusion]:
        return iter(sorted(self._exclusions, key=lambda e: (e.kind.value, e.id)))

    def __contains__(self, exclusion: object) -> bool:
        return exclusion in self._exclusions

    def is_empty(self) -> bool:
        return not self._exclusions

    def should_exclude(self, author: Any) -> bool:
        """
        Return True if the author is excluded directly or through a role.

        ``author`` is a ``discord.Member`` (or ``discord.User`` for authors that
        are no longer members, which simply have no roles).
        """
        if not self._exclusions:
            return False

        if Exclusion.user(author.id) in self._exclusions:
            logger.debug("Matched user exclusion: %s", author.id)
            return True

        for role in getattr(author, "roles", None) or ():
            if Exclusion.role(role.id) in self._exclusions:
                logger.debug("Matched role exclusion: %s", role.id)
                return True

        return False
