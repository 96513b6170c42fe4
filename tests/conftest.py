from __future__ import annotations

import os
from pathlib import Path

import pytest


@pytest.fixture(scope="session", autouse=True)
def _load_dotenv_for_tests() -> None:
    """Load repo .env for local runs (PyCharm/CLI).

    In CI, we *don't* auto-load `.env` by default so local overrides (e.g. a custom
    command character) can't leak into the test run.
    Opt-in with: ROOMPAGES_LOAD_DOTENV_FOR_TESTS=1
    """

    if os.environ.get("CI") and os.environ.get("ROOMPAGES_LOAD_DOTENV_FOR_TESTS") != "1":
        return

    env_path = Path(__file__).resolve().parents[1] / ".env"
    if env_path.exists():
        from dotenv import load_dotenv

        load_dotenv(dotenv_path=env_path, override=False)


@pytest.fixture(scope="session", autouse=True)
def _init_catalog_from_test_fixtures() -> None:
    """Initialize the ribbon catalog from `tests/assets` and forbid the fallback catalog.

    This keeps tests hermetic and prevents coupling to the repo's real catalog.
    """

    os.environ["ROOMPAGES_STRICT_ASSETS"] = "1"

    from roompages.shop.catalog import init_catalog, reset_catalog_for_tests

    reset_catalog_for_tests()

    # Point the loader at a fake project root: tests/ contains an assets/ dir.
    test_root = Path(__file__).resolve().parent
    init_catalog(project_root=test_root)


@pytest.fixture()
def settings():
    from roompages.config import Settings

    return Settings(command_character=".", bot_name="Roompages", staff_rank="driver", points_shop_rooms=())


@pytest.fixture()
def transport():
    from roompages.pages.transport import RecordingTransport

    return RecordingTransport()


@pytest.fixture()
def host(transport, settings):
    """A page host on fakeredis that records deliveries instead of publishing them."""

    import fakeredis

    from roompages.pages.host import PageHost

    host = PageHost(transport=transport, r=fakeredis.FakeRedis(decode_responses=True), settings=settings)
    host.directory.add_room(title="Lobby", alias="main")
    host.directory.add_user("Alice", ranks={"lobby": "regular"})
    return host


@pytest.fixture()
def make_page(host):
    """Factory for a minimal page whose output is whatever `body` holds."""

    from roompages.pages.base import HtmlPage

    class NotePage(HtmlPage):
        page_id = "note"
        show_switch_location_button = True

        def __init__(self, room, viewer, registry, services):
            self.body = "hello"
            self.veto = False
            self.hook_calls: list[str] = []
            super().__init__(room, viewer, "note", registry, services)
            self.base_overlay_name = f"note-{room.id}"

        def render(self, on_open: bool = False) -> str:
            return f"<div>{self.body}{self.close_button_html}{self.switch_location_button_html}</div>"

        def before_send(self, on_open: bool) -> bool:
            return not self.veto

        def on_send(self, on_open: bool) -> None:
            self.hook_calls.append("open" if on_open else "send")

        def on_close(self) -> None:
            self.hook_calls.append("close")

    def _make(user_id: str = "alice", room_id: str = "lobby") -> NotePage:
        viewer = host.directory.resolve_viewer(user_id)
        room = host.directory.get_room(room_id)
        assert viewer is not None and room is not None
        return NotePage(room, viewer, host.registry("note"), host.services)

    return _make


@pytest.fixture()
def client_and_redis():
    """FastAPI TestClient wired to a fakeredis-backed page host.

    Deliveries go through the real mailbox transport, so tests read them back from
    the user's Redis Stream.
    """

    from collections.abc import Generator

    import fakeredis
    from fastapi.testclient import TestClient

    from roompages.api.deps import get_redis
    from roompages.main import app
    from roompages.pages.host import init_page_host, reset_page_host_for_tests

    r = fakeredis.FakeRedis(decode_responses=True)

    reset_page_host_for_tests()
    init_page_host(r=r)

    def _override() -> Generator[fakeredis.FakeRedis, None, None]:
        yield r

    app.dependency_overrides[get_redis] = _override
    with TestClient(app) as c:
        yield c, r
    app.dependency_overrides.clear()
    reset_page_host_for_tests()
