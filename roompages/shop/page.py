from __future__ import annotations

from html import escape

import redis

from roompages.pages.base import HtmlPage, PageServices
from roompages.pages.buttons import ButtonOptions
from roompages.pages.components import Pagination
from roompages.pages.directory import Room, Viewer
from roompages.pages.registry import PageRegistry
from roompages.shop import store
from roompages.shop.catalog import Ribbon, RibbonCatalog, RibbonCost

PAGE_ID = "tournament-points-shop"
BASE_COMMAND = "tournamentpointsshop"
BASE_COMMAND_ALIAS = "tpshop"
UNLOCK_RIBBON_COMMAND = "unlockribbon"
RIBBON_PAGE_COMMAND = "ribbonpage"

RIBBONS_PER_PAGE = 8


class PointsShopPage(HtmlPage):
    """Lets a user unlock trainer card ribbons with their annual points or bits.

    Points and bits are not spent; they only gate what can be unlocked. Ribbons come
    from the trainer card room's catalog (usually the page's own room) and are
    priced for the page's room.
    """

    page_id = PAGE_ID
    show_switch_location_button = True

    def __init__(
        self,
        room: Room,
        viewer: Viewer,
        registry: PageRegistry,
        services: PageServices,
        *,
        r: redis.Redis,
        catalog: RibbonCatalog,
        card_room_id: str | None = None,
    ) -> None:
        self.r = r
        self.catalog = catalog
        self.card_room_id = card_room_id or room.id
        super().__init__(room, viewer, BASE_COMMAND_ALIAS, registry, services)

        self.base_overlay_name = f"{PAGE_ID}-{room.id}"
        self.pagination = Pagination(
            RIBBON_PAGE_COMMAND,
            page_command=self.page_command,
            build_button=self.build_quiet_button,
            per_page=RIBBONS_PER_PAGE,
        )
        self.components = [self.pagination]
        # Page buttons can arrive before the first render.
        self.pagination.update_rows(self._ribbon_rows())

    def _balances(self) -> tuple[int, int]:
        points = store.get_annual_points(r=self.r, room_id=self.room.id, leaderboard="tournament", user_id=self.user_id)
        bits = store.get_annual_points(r=self.r, room_id=self.room.id, leaderboard="game", user_id=self.user_id)
        return points, bits

    def _unlocked(self) -> set[str]:
        return store.get_unlocked_ribbons(r=self.r, room_id=self.card_room_id, user_id=self.user_id)

    def cost_of(self, ribbon: Ribbon) -> RibbonCost:
        return ribbon.cost_in(self.room.id)

    def can_unlock(self, ribbon: Ribbon, *, points: int, bits: int) -> bool:
        cost = self.cost_of(ribbon)
        if cost.staff_only:
            return self.is_room_staff
        return bool((cost.points and points >= cost.points) or (cost.bits and bits >= cost.bits))

    def unlock_ribbon(self, ribbon_id: str) -> str | None:
        ribbon = self.catalog.get(self.card_room_id, ribbon_id)
        if ribbon is None:
            return f"'{ribbon_id}' is not an unlockable ribbon."

        if ribbon.id in self._unlocked():
            return None

        points, bits = self._balances()
        if not self.can_unlock(ribbon, points=points, bits=bits):
            return f"You do not meet the requirements for the {ribbon.name} yet."

        store.unlock_ribbon(r=self.r, room_id=self.card_room_id, user_id=self.user_id, ribbon_id=ribbon.id)
        self.send()
        return None

    def _ribbon_image(self, ribbon: Ribbon) -> str:
        return f"<img src='{escape(ribbon.source, quote=True)}' width={ribbon.width}px height={ribbon.height}px />"

    def _card_html(self) -> str:
        ids = store.get_card_ribbons(r=self.r, room_id=self.card_room_id, user_id=self.user_id)
        ribbons = [r for r in (self.catalog.get(self.card_room_id, i) for i in ids) if r is not None]
        if not ribbons:
            return ""
        images = "".join(self._ribbon_image(r) for r in ribbons)
        return f"<b>{escape(self.user_name)}'s trainer card ribbons</b><br />{images}"

    def _ribbon_rows(self) -> list[str]:
        points, bits = self._balances()
        unlocked = self._unlocked()

        rows: list[str] = []
        for ribbon in self.catalog.ribbons_for(self.card_room_id):
            is_unlocked = ribbon.id in unlocked
            row = self.build_quiet_button(
                self.page_command(f"{UNLOCK_RIBBON_COMMAND}, {ribbon.id}"),
                f"{self._ribbon_image(ribbon)}<br />{escape(ribbon.name)}",
                ButtonOptions(
                    disabled=is_unlocked or not self.can_unlock(ribbon, points=points, bits=bits),
                    selected=is_unlocked,
                ),
            )
            row += "&nbsp;-&nbsp;" + self.cost_of(ribbon).text()
            if is_unlocked:
                row += "&nbsp;(<b>unlocked</b>)"
            row += "<br /><br />"
            rows.append(row)
        return rows

    def _items_html(self) -> str:
        rows = self._ribbon_rows()
        self.pagination.update_rows(rows)
        if not rows:
            return "<b>There are no items available at the moment!</b>"

        return (
            "<b>The following items are able to be unlocked if you have the required amount of annual points or bits!</b>"
            "<br /><ul><li>Your points and bits will not be removed</li>"
            "<li>Requirements may be different between rooms</li></ul>"
            "<hr /><b>Ribbons</b>: these are displayed in the footer of your tournament trainer card<br /><br />"
            + self.pagination.render()
        )

    def render(self, on_open: bool = False) -> str:
        html = (
            "<div class='chat' style='margin-top: 4px;margin-left: 4px'><center><b>"
            + escape(self.room.title)
            + ": Tournament Points Shop</b>"
        )
        if self.close_button_html:
            html += "&nbsp;" + self.close_button_html
        if self.switch_location_button_html:
            html += "&nbsp;" + self.switch_location_button_html

        card = self._card_html()
        if card:
            html += "<br />" + card

        html += "</center><br /><br />"
        html += self._items_html()
        html += "</div>"
        return html
