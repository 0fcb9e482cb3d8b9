"""
Typed per-module settings.

Settings are persisted as untyped ``(setting, value)`` text rows scoped to a
guild and a module. This module turns those rows into one typed record per
module kind, with a static default and a description for every field.

The set of settings classes is closed: ``SETTINGS_CLASSES`` maps every
:class:`ModuleKind` to exactly one class, and a matcher for kind K only ever
receives an instance of K's class.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar, Dict, Iterable, List, Optional, Tuple, Type, Union

from caretaker.datatypes.module_datatypes import ModuleKind
from caretaker.errors import InvalidField, InvalidSettingValue, NoSuchSetting


@dataclass(frozen=True, slots=True)
class SettingSpec:
    """Static description of one integer setting."""

    name: str
    default: int
    description: str
    minimum: Optional[int] = None
    maximum: Optional[int] = None

    @property
    def expected(self) -> str:
        if self.minimum is not None and self.maximum is not None:
            return f"an integer between {self.minimum} and {self.maximum}"
        if self.minimum is not None:
            return f"an integer of at least {self.minimum}"
        if self.maximum is not None:
            return f"an integer of at most {self.maximum}"
        return "an integer"

    def parse(self, raw: str) -> int:
        """Parse ``raw`` into this setting's value or raise InvalidSettingValue."""
        try:
            value = int(str(raw).strip())
        except ValueError:
            raise InvalidSettingValue(self.name, str(raw), self.expected) from None
        return self.validate(value, raw)

    def validate(self, value: int, raw: object = None) -> int:
        if isinstance(value, bool) or not isinstance(value, int):
            raise InvalidSettingValue(self.name, str(value if raw is None else raw), self.expected)
        if self.minimum is not None and value < self.minimum:
            raise InvalidSettingValue(self.name, str(value if raw is None else raw), self.expected)
        if self.maximum is not None and value > self.maximum:
            raise InvalidSettingValue(self.name, str(value if raw is None else raw), self.expected)
        return value


class Settings:
    """
    Base class of the per-module settings records.

    Subclasses declare ``KIND`` and ``FIELDS``; field values are plain
    instance attributes named after their spec. A subclass without fields is
    the empty record: ``get_all()`` is empty and every name lookup fails
    with :class:`NoSuchSetting`.
    """

    KIND: ClassVar[ModuleKind]
    FIELDS: ClassVar[Tuple[SettingSpec, ...]] = ()

    def __init__(self, **values: int) -> None:
        for spec in self.FIELDS:
            setattr(self, spec.name, spec.default)
        for name, value in values.items():
            spec = self.spec_for(name)
            setattr(self, name, spec.validate(value))

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    @classmethod
    def from_rows(cls, rows: Iterable[Tuple[str, str]]):
        """
        Build the record from stored ``(setting, value)`` rows.

        Absent fields keep their defaults. A row naming a field this record
        does not have means the storage is inconsistent, which is an internal
        error rather than an operator mistake.
        """
        settings = cls()
        for name, value in rows:
            spec = cls._find_spec(name)
            if spec is None:
                raise InvalidField(name)
            setattr(settings, name, spec.parse(value))
        return settings

    # ------------------------------------------------------------------
    # Static lookups
    # ------------------------------------------------------------------

    @classmethod
    def _find_spec(cls, name: str) -> Optional[SettingSpec]:
        for spec in cls.FIELDS:
            if spec.name == name:
                return spec
        return None

    @classmethod
    def spec_for(cls, name: str) -> SettingSpec:
        spec = cls._find_spec(name)
        if spec is None:
            raise NoSuchSetting(name)
        return spec

    @classmethod
    def description_for(cls, name: str) -> str:
        return cls.spec_for(name).description

    @classmethod
    def default_for(cls, name: str) -> str:
        return str(cls.spec_for(name).default)

    # ------------------------------------------------------------------
    # Values
    # ------------------------------------------------------------------

    def get(self, name: str) -> int:
        self.spec_for(name)
        return getattr(self, name)

    def get_all(self) -> List[Tuple[str, str]]:
        """Return ``(name, value)`` pairs in declaration order."""
        return [(spec.name, str(getattr(self, spec.name))) for spec in self.FIELDS]

    def set(self, name: str, value: str) -> None:
        spec = self.spec_for(name)
        setattr(self, name, spec.parse(value))

    def reset(self, name: str) -> None:
        spec = self.spec_for(name)
        setattr(self, name, spec.default)

    def __eq__(self, other: object) -> bool:
        if type(other) is not type(self):
            return NotImplemented
        return self.get_all() == other.get_all()

    def __repr__(self) -> str:
        values = ", ".join(f"{name}={value}" for name, value in self.get_all())
        return f"{type(self).__name__}({values})"


# ---------------------------------------------------------------------------
# Concrete settings, one per module kind
# ---------------------------------------------------------------------------

class MassPingSettings(Settings):
    KIND = ModuleKind.MASS_PING


class CrosspostSettings(Settings):
    KIND = ModuleKind.CROSSPOST
    FIELDS = (
        SettingSpec("minimum_length", 5, "Ignore messages below this length", minimum=0),
        SettingSpec(
            "threshold",
            80,
            "The similarity threshold. Must be an integer between -128 and 128 "
            "where 128 means entirely similar, i.e. equal",
            minimum=-128,
            maximum=128,
        ),
        SettingSpec("timeout", 3600, "Ignore older messages than this timeout. The value is in seconds", minimum=0),
    )

    minimum_length: int
    threshold: int
    timeout: int


class EmojiSpamSettings(Settings):
    KIND = ModuleKind.EMOJI_SPAM
    FIELDS = (
        SettingSpec("max_emojis", 5, "Match messages with at least this many emoji", minimum=1),
    )

    max_emojis: int


class MentionSpamSettings(Settings):
    KIND = ModuleKind.MENTION_SPAM
    FIELDS = (
        SettingSpec(
            "max_mentions", 5, "Match messages mentioning at least this many distinct users and roles", minimum=1
        ),
    )

    max_mentions: int


class SelfbotSettings(Settings):
    KIND = ModuleKind.SELFBOT


class InviteLinkSettings(Settings):
    KIND = ModuleKind.INVITE_LINK


class ChannelActivitySettings(Settings):
    KIND = ModuleKind.CHANNEL_ACTIVITY
    FIELDS = (
        SettingSpec("max_messages", 10, "Messages allowed in one channel within the interval", minimum=1),
        SettingSpec("interval", 10, "Length of the sliding window in seconds", minimum=1),
    )

    max_messages: int
    interval: int


class UserActivitySettings(Settings):
    KIND = ModuleKind.USER_ACTIVITY
    FIELDS = (
        SettingSpec("max_messages", 5, "Messages allowed from one user within the interval", minimum=1),
        SettingSpec("interval", 5, "Length of the sliding window in seconds", minimum=1),
    )

    max_messages: int
    interval: int


ModuleSettings = Union[
    MassPingSettings,
    CrosspostSettings,
    EmojiSpamSettings,
    MentionSpamSettings,
    SelfbotSettings,
    InviteLinkSettings,
    ChannelActivitySettings,
    UserActivitySettings,
]

SETTINGS_CLASSES: Dict[ModuleKind, Type[Settings]] = {
    ModuleKind.MASS_PING: MassPingSettings,
    ModuleKind.CROSSPOST: CrosspostSettings,
    ModuleKind.EMOJI_SPAM: EmojiSpamSettings,
    ModuleKind.MENTION_SPAM: MentionSpamSettings,
    ModuleKind.SELFBOT: SelfbotSettings,
    ModuleKind.INVITE_LINK: InviteLinkSettings,
    ModuleKind.CHANNEL_ACTIVITY: ChannelActivitySettings,
    ModuleKind.USER_ACTIVITY: UserActivitySettings,
}

_missing = set(ModuleKind) - set(SETTINGS_CLASSES)
if _missing:
    raise RuntimeError(f"Module kinds without settings: {sorted(k.value for k in _missing)}")


def settings_class_for(kind: ModuleKind) -> Type[Settings]:
    return SETTINGS_CLASSES[kind]


def settings_from_rows(kind: ModuleKind, rows: Iterable[Tuple[str, str]]) -> Settings:
    """Build the settings record of ``kind`` from stored rows."""
    return SETTINGS_CLASSES[kind].from_rows(rows)
