from __future__ import annotations

import os
from dataclasses import dataclass

from roompages.pages.directory import to_id


def _env_list(name: str) -> tuple[str, ...]:
    raw = os.environ.get(name, "")
    return tuple(s.strip().lower() for s in raw.split(",") if s.strip())


def _env_room_map(name: str) -> tuple[tuple[str, str], ...]:
    """Parse `room:other room,...` into `(room_id, other_room_id)` pairs."""

    pairs = []
    for item in os.environ.get(name, "").split(","):
        room, sep, target = item.partition(":")
        if not sep or not to_id(room) or not to_id(target):
            continue
        pairs.append((to_id(room), to_id(target)))
    return tuple(pairs)


@dataclass(frozen=True, slots=True)
class Settings:
    command_character: str
    bot_name: str
    # Minimum room rank that marks a viewer as staff.
    staff_rank: str
    # Empty => the points shop is served in every room.
    points_shop_rooms: tuple[str, ...]
    # (room_id, trainer card room_id): rooms whose shop sells another room's ribbons.
    trainer_card_rooms: tuple[tuple[str, str], ...] = ()

    def points_shop_enabled(self, room_id: str) -> bool:
        return not self.points_shop_rooms or room_id in self.points_shop_rooms

    def trainer_card_room(self, room_id: str) -> str:
        return dict(self.trainer_card_rooms).get(room_id, room_id)


def settings_from_env() -> Settings:
    return Settings(
        command_character=os.environ.get("ROOMPAGES_COMMAND_CHARACTER", "."),
        bot_name=os.environ.get("ROOMPAGES_BOT_NAME", "Roompages"),
        staff_rank=os.environ.get("ROOMPAGES_STAFF_RANK", "driver"),
        points_shop_rooms=_env_list("ROOMPAGES_POINTS_SHOP_ROOMS"),
        trainer_card_rooms=_env_room_map("ROOMPAGES_TRAINER_CARD_ROOMS"),
    )
