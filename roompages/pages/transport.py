from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Literal, Protocol

import redis

from roompages.pages.directory import Room, Viewer
from roompages.streams import Mailbox, publish_to_mailbox

logger = logging.getLogger(__name__)

DeliveryKind = Literal["page_html", "page_close", "overlay_html"]


class Transport(Protocol):
    """Delivers rendered pages to a viewer's client.

    Calls are fire-and-forget from the page's point of view.
    """

    def deliver_standalone(self, room: Room, viewer: Viewer, page_id: str, html: str) -> None:  # pragma: no cover
        ...

    def retract_standalone(self, room: Room, viewer: Viewer, page_id: str) -> None:  # pragma: no cover
        ...

    def deliver_overlay(self, room: Room, viewer: Viewer, overlay_name: str, html: str) -> None:  # pragma: no cover
        ...


@dataclass(frozen=True, slots=True)
class Delivery:
    kind: DeliveryKind
    room_id: str
    user_id: str
    # page_id for standalone pages, overlay name for overlays
    name: str
    html: str = ""


class RecordingTransport:
    """Keeps every delivery in memory, in order."""

    def __init__(self) -> None:
        self.deliveries: list[Delivery] = []

    def deliver_standalone(self, room: Room, viewer: Viewer, page_id: str, html: str) -> None:
        self.deliveries.append(Delivery("page_html", room.id, viewer.user_id, page_id, html))

    def retract_standalone(self, room: Room, viewer: Viewer, page_id: str) -> None:
        self.deliveries.append(Delivery("page_close", room.id, viewer.user_id, page_id))

    def deliver_overlay(self, room: Room, viewer: Viewer, overlay_name: str, html: str) -> None:
        self.deliveries.append(Delivery("overlay_html", room.id, viewer.user_id, overlay_name, html))

    def of_kind(self, kind: DeliveryKind) -> list[Delivery]:
        return [d for d in self.deliveries if d.kind == kind]

    def clear(self) -> None:
        self.deliveries.clear()


class MailboxTransport:
    """Publishes deliveries to the viewer's Redis Stream mailbox.

    Clients read `mailbox:{user_id}` (or get a websocket nudge) and apply entries in order.
    """

    def __init__(self, r: redis.Redis) -> None:
        self._r = r

    def _publish(self, delivery: Delivery) -> None:
        publish_to_mailbox(
            r=self._r,
            mailbox=Mailbox(user_id=delivery.user_id),
            fields={
                "type": delivery.kind,
                "room_id": delivery.room_id,
                "name": delivery.name,
                "html": delivery.html,
            },
        )
        logger.debug("published %s %s to %s", delivery.kind, delivery.name, delivery.user_id)

    def deliver_standalone(self, room: Room, viewer: Viewer, page_id: str, html: str) -> None:
        self._publish(Delivery("page_html", room.id, viewer.user_id, page_id, html))

    def retract_standalone(self, room: Room, viewer: Viewer, page_id: str) -> None:
        self._publish(Delivery("page_close", room.id, viewer.user_id, page_id))

    def deliver_overlay(self, room: Room, viewer: Viewer, overlay_name: str, html: str) -> None:
        self._publish(Delivery("overlay_html", room.id, viewer.user_id, overlay_name, html))
