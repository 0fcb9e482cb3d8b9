"""
Notify message templates.

Templates use curly-brace placeholders (``{user}``, ``{channel}``,
``{timestamp}``, ``{link}``); ``{{`` and ``}}`` produce literal braces.
Nothing but plain substitution is allowed: no attribute access, indexing,
conversions or format specs.
"""

from __future__ import annotations

import string
from typing import Any, Dict, Mapping

from caretaker.errors import InvalidNotifyTemplate

NOTIFY_VARIABLES: Dict[str, str] = {
    "user": "Mention of the message author",
    "channel": "Mention of the channel the message was posted in",
    "timestamp": "Time the message was posted (ISO 8601)",
    "link": "Link to the message",
}

_formatter = string.Formatter()


def validate_template(template: str) -> None:
    """
    Check that ``template`` renders against the notify variables.

    Raises:
        InvalidNotifyTemplate: Malformed braces or an unknown placeholder.
    """
    try:
        parsed = list(_formatter.parse(template))
    except ValueError as exc:
        raise InvalidNotifyTemplate(str(exc)) from None

    allowed = ", ".join(f"{{{name}}}" for name in NOTIFY_VARIABLES)
    for _literal, field_name, format_spec, conversion in parsed:
        if field_name is None:
            continue
        if field_name not in NOTIFY_VARIABLES:
            shown = f"{{{field_name}}}" if field_name else "{}"
            raise InvalidNotifyTemplate(f"unknown placeholder {shown}, use one of {allowed}")
        if format_spec or conversion:
            raise InvalidNotifyTemplate(f"placeholder {{{field_name}}} cannot have a conversion or format spec")


def render_template(template: str, variables: Mapping[str, Any]) -> str:
    """Validate and render ``template`` with ``variables``."""
    validate_template(template)
    return template.format_map({name: str(variables.get(name, "")) for name in NOTIFY_VARIABLES})


def build_notify_variables(message: Any) -> Dict[str, str]:
    """Collect the template variables of a ``discord.Message``."""
    created_at = getattr(message, "created_at", None)
    return {
        "user": message.author.mention,
        "channel": message.channel.mention,
        "timestamp": created_at.isoformat() if created_at is not None else "",
        "link": message.jump_url,
    }
