from __future__ import annotations

import logging

import redis

from roompages.config import Settings, settings_from_env
from roompages.pages.base import HtmlPage, PageServices
from roompages.pages.directory import Directory, Viewer
from roompages.pages.registry import PageRegistry
from roompages.pages.transport import MailboxTransport, Transport

logger = logging.getLogger(__name__)


class PageHost:
    """Owns the page registries (one per page type) and the services pages share."""

    def __init__(
        self,
        *,
        transport: Transport,
        r: redis.Redis | None = None,
        directory: Directory | None = None,
        settings: Settings | None = None,
    ) -> None:
        self.settings = settings or settings_from_env()
        self.redis = r
        self.directory = directory or Directory()
        self.services = PageServices(
            transport=transport,
            directory=self.directory,
            command_character=self.settings.command_character,
            bot_name=self.settings.bot_name,
            staff_rank=self.settings.staff_rank,
        )
        self._registries: dict[str, PageRegistry] = {}

    @property
    def transport(self) -> Transport:
        return self.services.transport

    def registry(self, page_id: str) -> PageRegistry:
        reg = self._registries.get(page_id)
        if reg is None:
            reg = PageRegistry(page_id)
            self._registries[page_id] = reg
        return reg

    def find_page(self, page_id: str, user_id: str) -> HtmlPage | None:
        reg = self._registries.get(page_id)
        return reg.get(user_id) if reg is not None else None

    def require_redis(self) -> redis.Redis:
        if self.redis is None:
            raise RuntimeError("Page host has no Redis client")
        return self.redis

    def rename_user(self, old_id: str, new_name: str) -> Viewer:
        """Rename a connected user and move their pages to the new identity."""

        viewer = self.directory.rename_user(old_id, new_name)
        self.on_rename_user(viewer, old_id)
        return viewer

    def on_rename_user(self, viewer: Viewer, old_id: str) -> None:
        for reg in self._registries.values():
            reg.reconcile_rename(viewer, old_id)
        logger.info("reconciled pages for rename %s -> %s", old_id, viewer.user_id)


_HOST: PageHost | None = None


def init_page_host(*, r: redis.Redis, settings: Settings | None = None) -> PageHost:
    """Create the process-wide page host once and cache it.

    Safe to call multiple times; subsequent calls return the already created instance.
    """

    global _HOST
    if _HOST is None:
        _HOST = PageHost(transport=MailboxTransport(r), r=r, settings=settings)
    return _HOST


def reset_page_host_for_tests() -> None:
    """Drop the cached host so tests can install their own."""

    global _HOST
    _HOST = None


def get_page_host() -> PageHost:
    if _HOST is None:
        raise RuntimeError("Page host not initialized. Call init_page_host() at startup.")
    return _HOST
