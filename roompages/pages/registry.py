from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from roompages.pages.directory import Viewer

if TYPE_CHECKING:
    from roompages.pages.base import HtmlPage

logger = logging.getLogger(__name__)


class PageRegistry:
    """The live pages of one page type, keyed by user id.

    Holds at most one page per user: registering a page destroys whatever the user
    had before. Only `register`, `reconcile_rename` and `remove` (called from
    `HtmlPage.destroy`) write the mapping.
    """

    def __init__(self, page_id: str) -> None:
        self.page_id = page_id
        self._pages: dict[str, HtmlPage] = {}

    def __contains__(self, user_id: object) -> bool:
        return user_id in self._pages

    def __len__(self) -> int:
        return len(self._pages)

    def get(self, user_id: str) -> HtmlPage | None:
        return self._pages.get(user_id)

    def user_ids(self) -> list[str]:
        return sorted(self._pages)

    def register(self, user_id: str, page: HtmlPage) -> None:
        previous = self._pages.get(user_id)
        if previous is not None and previous is not page:
            previous.destroy()
        self._pages[user_id] = page

    def remove(self, user_id: str, page: HtmlPage) -> None:
        if self._pages.get(user_id) is page:
            del self._pages[user_id]

    def reconcile_rename(self, viewer: Viewer, old_id: str) -> None:
        """Move a user's page after their identity changed from `old_id` to `viewer.user_id`."""

        page = self._pages.get(old_id)
        if page is None:
            return

        if old_id == viewer.user_id:
            page.user_name = viewer.name
            return

        if viewer.user_id in self._pages:
            # The identity being renamed into already has a page; that one wins.
            page.destroy()
            logger.debug("%s: dropped page of %s after rename to %s", self.page_id, old_id, viewer.user_id)
        else:
            page.set_user(viewer)
            page.refresh_buttons()
            self._pages[viewer.user_id] = page
            logger.debug("%s: moved page %s -> %s", self.page_id, old_id, viewer.user_id)

        self._pages.pop(old_id, None)
