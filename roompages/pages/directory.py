from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field, replace
from enum import Enum

logger = logging.getLogger(__name__)


def to_id(name: str) -> str:
    """Chat-style identity token: lowercase alphanumerics only."""

    return re.sub(r"[^a-z0-9]+", "", name.casefold())


class Rank(str, Enum):
    regular = "regular"
    voice = "voice"
    driver = "driver"
    moderator = "moderator"
    roomowner = "roomowner"


RANK_ORDER: tuple[Rank, ...] = (Rank.regular, Rank.voice, Rank.driver, Rank.moderator, Rank.roomowner)


@dataclass(frozen=True, slots=True)
class Room:
    id: str
    title: str
    alias: str = ""


@dataclass(frozen=True, slots=True)
class Viewer:
    """A connected user as seen by pages."""

    user_id: str
    name: str
    developer: bool = False
    # room_id -> rank held in that room
    ranks: dict[str, Rank] = field(default_factory=dict)

    def rank_in(self, room: Room) -> Rank:
        return self.ranks.get(room.id, Rank.regular)


class Directory:
    """In-process lookup of connected users and known rooms.

    Users disappear on disconnect; pages treat a missing user as a viewer that
    went away and skip delivery.
    """

    def __init__(self) -> None:
        self._users: dict[str, Viewer] = {}
        self._rooms: dict[str, Room] = {}

    # Rooms

    def add_room(self, *, title: str, alias: str = "") -> Room:
        room_id = to_id(title)
        if not room_id:
            raise ValueError("Room title must contain letters or digits")
        room = Room(id=room_id, title=title.strip(), alias=to_id(alias))
        self._rooms[room_id] = room
        return room

    def get_room(self, room_id: str) -> Room | None:
        return self._rooms.get(room_id)

    def search_room(self, name: str) -> Room | None:
        rid = to_id(name)
        if not rid:
            return None
        room = self._rooms.get(rid)
        if room is not None:
            return room
        return next((r for r in self._rooms.values() if r.alias and r.alias == rid), None)

    # Users

    def add_user(self, name: str, *, ranks: dict[str, Rank | str] | None = None, developer: bool = False) -> Viewer:
        user_id = to_id(name)
        if not user_id:
            raise ValueError("User name must contain letters or digits")
        viewer = Viewer(
            user_id=user_id,
            name=name.strip(),
            developer=developer,
            ranks={to_id(room_id): Rank(rank) for room_id, rank in (ranks or {}).items()},
        )
        self._users[user_id] = viewer
        return viewer

    def remove_user(self, user_id: str) -> Viewer | None:
        return self._users.pop(user_id, None)

    def rename_user(self, old_id: str, new_name: str) -> Viewer:
        viewer = self._users.get(old_id)
        if viewer is None:
            raise ValueError("User not found")
        new_id = to_id(new_name)
        if not new_id:
            raise ValueError("User name must contain letters or digits")

        renamed = replace(viewer, user_id=new_id, name=new_name.strip())
        del self._users[old_id]
        # A rename onto a connected identity replaces it.
        self._users[new_id] = renamed
        logger.debug("renamed user %s -> %s", old_id, new_id)
        return renamed

    def resolve_viewer(self, user_id: str) -> Viewer | None:
        return self._users.get(user_id)

    def has_minimum_rank(self, room: Room, viewer: Viewer, rank: Rank | str) -> bool:
        return RANK_ORDER.index(viewer.rank_in(room)) >= RANK_ORDER.index(Rank(rank))

    def is_elevated(self, viewer: Viewer) -> bool:
        return viewer.developer
