from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping, cast

import redis


@dataclass(frozen=True, slots=True)
class Mailbox:
    user_id: str

    @property
    def key(self) -> str:
        return f"mailbox:{self.user_id}"


def publish_to_mailbox(*, r: redis.Redis, mailbox: Mailbox, fields: Mapping[str, str]) -> str:
    """Append an entry to a user's mailbox stream."""

    # redis-py stubs expect field/value unions; in our app we only use string fields/values.
    stream_id = r.xadd(mailbox.key, {str(k): str(v) for k, v in fields.items()})
    return cast(str, stream_id)


def read_mailbox(
    *,
    r: redis.Redis,
    mailbox: Mailbox,
    count: int = 20,
    start: str = "-",
    end: str = "+",
) -> list[tuple[str, dict[str, str]]]:
    entries = r.xrange(mailbox.key, min=start, max=end, count=count)
    return [(cast(str, mid), cast(dict[str, str], fields)) for mid, fields in entries]


def latest_mailbox_id(*, r: redis.Redis, mailbox: Mailbox) -> str | None:
    """Id of the newest entry in a user's mailbox, or None when it is empty."""

    entries = r.xrevrange(mailbox.key, count=1)
    if not entries:
        return None
    return cast(str, entries[0][0])
