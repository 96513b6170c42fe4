from __future__ import annotations

from typing import Literal, cast

import redis

Leaderboard = Literal["tournament", "game"]

# Annual points: tournament leaderboard = "points", game leaderboard = "bits".
POINTS_KEY_PREFIX = "roompages:points:"  # + {room_id}:{leaderboard}
UNLOCKED_KEY_PREFIX = "roompages:unlocked-ribbons:"  # + {room_id}:{user_id}
CARD_RIBBONS_KEY_PREFIX = "roompages:card-ribbons:"  # + {room_id}:{user_id}


def _points_key(room_id: str, leaderboard: Leaderboard) -> str:
    return f"{POINTS_KEY_PREFIX}{room_id}:{leaderboard}"


def _unlocked_key(room_id: str, user_id: str) -> str:
    return f"{UNLOCKED_KEY_PREFIX}{room_id}:{user_id}"


def _card_ribbons_key(room_id: str, user_id: str) -> str:
    return f"{CARD_RIBBONS_KEY_PREFIX}{room_id}:{user_id}"


def get_annual_points(*, r: redis.Redis, room_id: str, leaderboard: Leaderboard, user_id: str) -> int:
    raw = r.hget(_points_key(room_id, leaderboard), user_id)
    if not raw:
        return 0
    return int(cast(str, raw))


def add_annual_points(*, r: redis.Redis, room_id: str, leaderboard: Leaderboard, user_id: str, amount: int) -> int:
    if leaderboard not in ("tournament", "game"):
        raise ValueError(f"Unknown leaderboard: {leaderboard}")
    total = r.hincrby(_points_key(room_id, leaderboard), user_id, amount)
    return int(cast(int, total))


def get_unlocked_ribbons(*, r: redis.Redis, room_id: str, user_id: str) -> set[str]:
    return set(cast(set[str], r.smembers(_unlocked_key(room_id, user_id))))


def get_card_ribbons(*, r: redis.Redis, room_id: str, user_id: str) -> list[str]:
    return list(cast(list[str], r.lrange(_card_ribbons_key(room_id, user_id), 0, -1)))


def unlock_ribbon(*, r: redis.Redis, room_id: str, user_id: str, ribbon_id: str) -> bool:
    """Record an unlocked ribbon and show it on the user's trainer card.

    Returns False if the ribbon was already unlocked.
    """

    added = r.sadd(_unlocked_key(room_id, user_id), ribbon_id)
    if not added:
        return False

    card_key = _card_ribbons_key(room_id, user_id)
    if ribbon_id not in get_card_ribbons(r=r, room_id=room_id, user_id=user_id):
        r.rpush(card_key, ribbon_id)
    return True
