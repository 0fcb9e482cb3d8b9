"""
Type-safe wrappers for Discord snowflake identifiers.

Every scope key the moderation core works with (guild, channel, user, role,
message) is a 64-bit snowflake. Wrapping them keeps a guild ID from being
passed where a channel ID is expected and gives the cache and the history
stores hashable, comparable keys.
"""

from __future__ import annotations

from typing import Any, Union


class Snowflake:
    """
    Base class for the typed snowflake wrappers.

    The value is stored as an int. Subclasses only differ by name and by the
    ``from_*`` helpers that pull the ID off a Discord object.

    Example:
        >>> gid = GuildID(123456789012345678)
        >>> gid.to_int()
        123456789012345678
        >>> GuildID("123456789012345678") == gid
        True
    """

    __slots__ = ("_value",)

    def __init__(self, value: Union[str, int, "Snowflake"]) -> None:
        """
        Initialize from a string, int, or another wrapper of the same type.

        Raises:
            ValueError: If the value cannot be converted to a snowflake.
        """
        if isinstance(value, Snowflake):
            if not isinstance(value, type(self)):
                raise ValueError(f"Cannot create {type(self).__name__} from {type(value).__name__}")
            self._value = value._value
        elif isinstance(value, bool):
            raise ValueError(f"Cannot create {type(self).__name__} from bool")
        elif isinstance(value, int):
            self._value = value
        elif isinstance(value, str):
            self._value = int(value.strip())
        else:
            raise ValueError(f"Cannot create {type(self).__name__} from {type(value).__name__}: {value}")

        if self._value < 0:
            raise ValueError(f"Snowflake IDs cannot be negative: {self._value}")

    @classmethod
    def from_int(cls, value: int):
        return cls(value)

    @classmethod
    def from_discord(cls, obj: Any):
        """Create the wrapper from any Discord object exposing ``.id``."""
        return cls(obj.id)

    def to_int(self) -> int:
        return self._value

    def __int__(self) -> int:
        return self._value

    def __str__(self) -> str:
        return str(self._value)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._value!r})"

    def __eq__(self, other: object) -> bool:
        if type(other) is type(self):
            return self._value == other._value  # type: ignore[attr-defined]
        if isinstance(other, int) and not isinstance(other, bool):
            return self._value == other
        if isinstance(other, str):
            return str(self._value) == other
        return NotImplemented

    def __hash__(self) -> int:
        return hash((type(self).__name__, self._value))


class GuildID(Snowflake):
    """Snowflake of a guild, the top-level scope of all configuration."""

    __slots__ = ()


class ChannelID(Snowflake):
    """Snowflake of a guild channel or thread."""

    __slots__ = ()

    def mention(self) -> str:
        return f"<#{self._value}>"


class UserID(Snowflake):
    """Snowflake of a user or member."""

    __slots__ = ()

    def mention(self) -> str:
        return f"<@{self._value}>"


class RoleID(Snowflake):
    """Snowflake of a guild role."""

    __slots__ = ()

    def mention(self) -> str:
        return f"<@&{self._value}>"


class MessageID(Snowflake):
    """Snowflake of a message."""

    __slots__ = ()
