from types import SimpleNamespace

import pytest

from caretaker.datatypes.discord_datatypes import ChannelID, GuildID, MessageID, RoleID, UserID


def test_guildid_from_int_and_str_and_equality_and_hash():
    g1 = GuildID(12345)
    assert int(g1) == 12345
    assert str(g1) == "12345"
    assert g1.to_int() == 12345

    g2 = GuildID("12345")
    assert g1 == g2
    assert hash(g1) == hash(g2)
    assert len({g1, g2}) == 1

    # equality with raw types
    assert g1 == 12345
    assert g1 == "12345"


def test_from_discord_reads_id():
    assert ChannelID.from_discord(SimpleNamespace(id=77)) == ChannelID(77)
    assert MessageID.from_int(5) == MessageID(5)


def test_different_wrappers_are_not_equal():
    assert GuildID(1) != ChannelID(1)
    assert hash(GuildID(1)) != hash(ChannelID(1))


def test_copy_from_same_type_only():
    assert UserID(UserID(3)) == UserID(3)
    with pytest.raises(ValueError):
        UserID(GuildID(3))


@pytest.mark.parametrize("value", [True, -1, "abc", 1.5, None])
def test_rejects_invalid_values(value):
    with pytest.raises(ValueError):
        GuildID(value)


def test_mentions():
    assert ChannelID(1).mention() == "<#1>"
    assert UserID(2).mention() == "<@2>"
    assert RoleID(3).mention() == "<@&3>"
