"""
Action kinds and the configured action record.

This module defines the ActionKind enum and the Action dataclass used to
represent the remediation configured for a module.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from caretaker.datatypes.discord_datatypes import ChannelID
from caretaker.errors import MissingActionValue

# Maximum number of actions configurable per (guild, module)
MAX_ACTIONS = 5


class ActionKind(Enum):
    """Enumeration of supported remediation actions."""

    REMOVE_MESSAGE = "remove-message"
    NOTIFY = "notify"

    def __str__(self) -> str:
        return self.value

    @property
    def friendly_name(self) -> str:
        return ACTION_FRIENDLY_NAMES[self]


ACTION_FRIENDLY_NAMES: dict[ActionKind, str] = {
    ActionKind.REMOVE_MESSAGE: "Remove the user's message",
    ActionKind.NOTIFY: "Notify about the message",
}


@dataclass(frozen=True, slots=True)
class Action:
    """A configured action.

    Attributes:
        kind: Which remediation to perform
        channel_id: Target channel for notify; None means the channel of the
            triggering message
        message: Message template for notify, None for remove-message
    """
    kind: ActionKind
    channel_id: Optional[ChannelID] = None
    message: Optional[str] = None

    @classmethod
    def remove_message(cls) -> "Action":
        return cls(kind=ActionKind.REMOVE_MESSAGE)

    @classmethod
    def notify(cls, message: Optional[str], channel_id: Optional[ChannelID] = None) -> "Action":
        if not message:
            raise MissingActionValue("message")
        return cls(kind=ActionKind.NOTIFY, channel_id=channel_id, message=message)

    def description(self) -> str:
        """Human-readable summary used when listing a module's actions."""
        if self.kind is ActionKind.REMOVE_MESSAGE:
            return "Remove the message, nothing special about it"
        if self.channel_id is None:
            return f"In the same channel with `{self.message}`"
        return f"In {self.channel_id.mention()} with `{self.message}`"
