from __future__ import annotations

import pytest

from roompages.pages.directory import Directory, Rank, to_id


def test_to_id_keeps_lowercase_alphanumerics() -> None:
    assert to_id("Ali ce!") == "alice"
    assert to_id("  Mr. X-2 ") == "mrx2"
    assert to_id("!!!") == ""


def test_room_lookup_by_id_title_or_alias() -> None:
    d = Directory()
    room = d.add_room(title="Tournaments Hub", alias="Tours")

    assert room.id == "tournamentshub"
    assert d.search_room("Tournaments Hub") is room
    assert d.search_room("tours") is room
    assert d.search_room("nowhere") is None
    assert d.search_room("") is None


def test_ranks_are_ordered() -> None:
    d = Directory()
    lobby = d.add_room(title="Lobby")
    other = d.add_room(title="Other")
    mod = d.add_user("Mod", ranks={"Lobby": "moderator"})

    assert d.has_minimum_rank(lobby, mod, Rank.driver)
    assert d.has_minimum_rank(lobby, mod, "moderator")
    assert not d.has_minimum_rank(lobby, mod, Rank.roomowner)
    # No rank in a room means regular.
    assert not d.has_minimum_rank(other, mod, "voice")
    assert d.has_minimum_rank(other, mod, "regular")


def test_developers_are_elevated() -> None:
    d = Directory()
    assert d.is_elevated(d.add_user("Dev", developer=True))
    assert not d.is_elevated(d.add_user("Guest"))


def test_rename_carries_ranks_and_drops_old_id() -> None:
    d = Directory()
    d.add_user("Alice", ranks={"lobby": "voice"})

    renamed = d.rename_user("alice", "Alicia")

    assert renamed.user_id == "alicia"
    assert renamed.ranks == {"lobby": Rank.voice}
    assert d.resolve_viewer("alice") is None
    assert d.resolve_viewer("alicia") is renamed


def test_invalid_names_are_rejected() -> None:
    d = Directory()
    with pytest.raises(ValueError):
        d.add_user("???")
    with pytest.raises(ValueError):
        d.add_room(title="   ")
    with pytest.raises(ValueError):
        d.rename_user("ghost", "Someone")


def test_staff_flag_from_rank_or_developer(make_page, host) -> None:
    host.directory.add_user("Helper", ranks={"lobby": "driver"})
    host.directory.add_user("Dev", developer=True)

    assert make_page("alice").is_room_staff is False
    assert make_page("helper").is_room_staff is True
    assert make_page("dev").is_room_staff is True
