"""
Error taxonomy for Caretaker.

Three families of failures travel through the moderation pipeline:

- :class:`ArgumentError` - user/configuration errors. Their message is shown
  to the operator verbatim; they are never logged as failures.
- :class:`InternalError` - programming errors (bad wiring, impossible
  state). Logged at ERROR severity as a bug signal, contained to the unit of
  work that raised them.
- :class:`ChannelClosed` - the broadcast or the action queue went away. Fatal
  to the task that observed it, nothing else.

Transient infrastructure failures are whatever ``aiosqlite`` or ``discord``
raise and are not wrapped.
"""

from __future__ import annotations


class CaretakerError(Exception):
    """Base class for every error raised by Caretaker itself."""


# ---------------------------------------------------------------------------
# User / configuration errors
# ---------------------------------------------------------------------------

class ArgumentError(CaretakerError):
    """An operator supplied something the module configuration rejects."""


class NoSuchSetting(ArgumentError):
    def __init__(self, name: str) -> None:
        super().__init__(f"No such setting: {name}")
        self.name = name


class InvalidSettingValue(ArgumentError):
    def __init__(self, name: str, value: str, expected: str) -> None:
        super().__init__(f"Invalid value for {name}: {value!r}, expected {expected}")
        self.name = name
        self.value = value
        self.expected = expected


class ExclusionAlreadyExists(ArgumentError):
    def __init__(self) -> None:
        super().__init__("That exclusion already exists for this module")


class NoSuchExclusion(ArgumentError):
    def __init__(self) -> None:
        super().__init__("No such exclusion for this module")


class ExclusionLimit(ArgumentError):
    def __init__(self, count: int, limit: int) -> None:
        super().__init__(f"This module already has {count} out of {limit} exclusions")
        self.count = count
        self.limit = limit


class ActionLimit(ArgumentError):
    def __init__(self, count: int, limit: int) -> None:
        super().__init__(f"This module already has {count} out of {limit} actions")
        self.count = count
        self.limit = limit


class IndexOutOfRange(ArgumentError):
    def __init__(self, index: int) -> None:
        super().__init__(f"The index {index} is out of range")
        self.index = index


class MissingActionValue(ArgumentError):
    def __init__(self, field: str) -> None:
        super().__init__(f"This action requires a value for '{field}'")
        self.field = field


class InvalidNotifyTemplate(ArgumentError):
    def __init__(self, detail: str) -> None:
        super().__init__(f"Invalid notify message: {detail}")
        self.detail = detail


class NotSupportedInDM(ArgumentError):
    def __init__(self) -> None:
        super().__init__("That command cannot be used in my DMs")


# ---------------------------------------------------------------------------
# Internal / programming errors
# ---------------------------------------------------------------------------

class InternalError(CaretakerError):
    """Something that should be impossible in a correctly wired system."""


class InvalidField(InternalError):
    def __init__(self, name: str) -> None:
        super().__init__(f"Invalid field '{name}' in model")
        self.name = name


class MissingField(InternalError):
    def __init__(self, name: str) -> None:
        super().__init__(f"Missing field '{name}' in model")
        self.name = name


class MissingGuildID(InternalError):
    def __init__(self) -> None:
        super().__init__("Message has no guild ID")


class SettingsMismatch(InternalError):
    def __init__(self, expected: str, got: str) -> None:
        super().__init__(f"Tried to use {got} where {expected} was expected. This is a bug!")
        self.expected = expected
        self.got = got


# ---------------------------------------------------------------------------
# Channel errors
# ---------------------------------------------------------------------------

class ChannelClosed(CaretakerError):
    """The sending side of a broadcast or queue is gone."""
