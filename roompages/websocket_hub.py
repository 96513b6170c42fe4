from __future__ import annotations

import asyncio
import logging

from fastapi import WebSocket, WebSocketDisconnect

from roompages.streams import Mailbox

logger = logging.getLogger(__name__)


class PageUpdateHub:
    """Pushes page-update nudges to each user's open websockets.

    Contract:
      - sockets are keyed by user id and follow the user through renames (`move`).
      - a nudge names the page that changed, the user's mailbox stream and the newest
        entry id in it; clients read the mailbox up to that id and apply deliveries.
      - a socket that fails to receive is dropped.
    """

    def __init__(self) -> None:
        self._by_user: dict[str, set[WebSocket]] = {}
        self._lock = asyncio.Lock()

    async def connect(self, user_id: str, websocket: WebSocket) -> None:
        await websocket.accept()
        async with self._lock:
            self._by_user.setdefault(user_id, set()).add(websocket)

    async def disconnect(self, websocket: WebSocket) -> None:
        # The socket may have moved to another user id since it connected.
        async with self._lock:
            self._discard(websocket)

    async def move(self, old_id: str, new_id: str) -> None:
        if old_id == new_id:
            return
        async with self._lock:
            conns = self._by_user.pop(old_id, None)
            if conns:
                self._by_user.setdefault(new_id, set()).update(conns)
                logger.debug("moved %d socket(s) %s -> %s", len(conns), old_id, new_id)

    def connections(self, user_id: str) -> int:
        return len(self._by_user.get(user_id, ()))

    async def notify_pages_updated(self, user_id: str, *, page_id: str, latest_id: str | None) -> int:
        """Nudge every socket of `user_id`. Returns how many sockets received it."""

        async with self._lock:
            conns = list(self._by_user.get(user_id, ()))
        if not conns:
            return 0

        payload = {
            "type": "pages_updated",
            "user_id": user_id,
            "page_id": page_id,
            "mailbox": Mailbox(user_id=user_id).key,
            "latest_id": latest_id,
        }

        dead: list[WebSocket] = []
        for ws in conns:
            try:
                await ws.send_json(payload)
            except (WebSocketDisconnect, RuntimeError, OSError) as e:
                logger.debug("dropping socket of %s: %s", user_id, e)
                dead.append(ws)

        if dead:
            async with self._lock:
                for ws in dead:
                    self._discard(ws)
        return len(conns) - len(dead)

    def _discard(self, websocket: WebSocket) -> None:
        for user_id, conns in list(self._by_user.items()):
            conns.discard(websocket)
            if not conns:
                del self._by_user[user_id]


hub = PageUpdateHub()
