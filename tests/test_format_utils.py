from datetime import datetime, timezone

import pytest

from caretaker.errors import InvalidNotifyTemplate
from caretaker.util.format_utils import (
    NOTIFY_VARIABLES,
    build_notify_variables,
    render_template,
    validate_template,
)
from conftest import make_message

VARIABLES = {
    "user": "<@1>",
    "channel": "<#2>",
    "timestamp": "2024-05-01T12:00:00+00:00",
    "link": "https://discord.com/channels/3/2/4",
}


def test_render_all_placeholders():
    result = render_template("{user} posted in {channel} at {timestamp}: {link}", VARIABLES)

    assert result == "<@1> posted in <#2> at 2024-05-01T12:00:00+00:00: https://discord.com/channels/3/2/4"


def test_render_escaped_braces_and_repeats():
    assert render_template("{{user}} is {user}, again {user}", VARIABLES) == "{user} is <@1>, again <@1>"


def test_plain_text_renders_unchanged():
    assert render_template("Please don't do that", VARIABLES) == "Please don't do that"


@pytest.mark.parametrize(
    "template",
    [
        "{usr} did something",
        "{}",
        "{0}",
        "{user.name}",
        "{user[0]}",
        "{user!r}",
        "{user:>10}",
        "unbalanced {user",
        "stray } brace",
    ],
)
def test_invalid_templates(template):
    with pytest.raises(InvalidNotifyTemplate):
        validate_template(template)
    with pytest.raises(InvalidNotifyTemplate):
        render_template(template, VARIABLES)


def test_build_notify_variables_from_message():
    created = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
    message = make_message("x", guild_id=3, channel_id=2, author_id=1, created_at=created)

    variables = build_notify_variables(message)

    assert set(variables) == set(NOTIFY_VARIABLES)
    assert variables["user"] == "<@1>"
    assert variables["channel"] == "<#2>"
    assert variables["timestamp"] == "2024-05-01T12:00:00+00:00"
    assert variables["link"] == message.jump_url
