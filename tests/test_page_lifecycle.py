from __future__ import annotations

from collections.abc import Sequence

import pytest

from roompages.pages.base import MOVED_TO_HTML_PAGE_NOTICE, PageLifecycleError
from roompages.pages.components import PageComponent


class _EchoComponent(PageComponent):
    def __init__(self, command_name: str, reply: str | None = None, *, active: bool = True) -> None:
        super().__init__(command_name, active=active)
        self.reply = reply
        self.calls: list[list[str]] = []

    def try_command(self, args: Sequence[str]) -> str | None:
        self.calls.append(list(args))
        return self.reply


def test_close_retracts_and_unregisters(make_page, host, transport) -> None:
    page = make_page()
    page.open()
    transport.clear()

    page.close()

    assert [d.kind for d in transport.deliveries] == ["page_close"]
    assert transport.deliveries[0].name == "note"
    assert page.closed
    assert page.hook_calls[-1] == "close"
    assert host.registry("note").get("alice") is None


def test_close_twice_is_a_lifecycle_error(make_page) -> None:
    page = make_page()
    page.close()

    with pytest.raises(PageLifecycleError) as e:
        page.close()
    assert "already closed" in str(e.value)


def test_try_close_is_idempotent(make_page, transport) -> None:
    page = make_page()
    page.try_close()
    transport.clear()

    page.try_close()

    assert page.closed
    assert transport.deliveries == []


def test_close_in_overlay_mode_skips_retraction(make_page, transport) -> None:
    page = make_page()
    page.open()
    page.switch_location()
    transport.clear()

    page.close()

    assert transport.of_kind("page_close") == []
    assert page.closed


def test_destroy_releases_state_but_keeps_identity(make_page) -> None:
    page = make_page()
    component = _EchoComponent("echo")
    page.components.append(component)
    page.open()

    page.destroy()

    assert component.destroyed
    assert page.components == []
    assert page.last_render == ""
    assert page.close_button_html == ""
    assert (page.page_id, page.user_id, page.user_name) == ("note", "alice", "Alice")
    assert page.lifecycle.current_state.id == "destroyed"

    # A second destroy does nothing.
    page.destroy()
    assert page.closed


def test_temporarily_close_keeps_page_alive(make_page, host, transport) -> None:
    page = make_page()
    page.open()

    page.temporarily_close()

    assert transport.deliveries[-1].kind == "page_close"
    assert not page.closed
    assert host.registry("note").get("alice") is page


def test_switch_location_is_self_inverse(make_page) -> None:
    page = make_page()
    page.open()
    assert not page.channel.is_overlay
    assert "Move to chat" in page.switch_location_button_html
    assert page.close_button_html

    page.switch_location()
    assert page.channel.is_overlay
    assert page.channel.overlay_name == "note-lobby"
    assert page.close_button_html == ""
    assert "Move to HTML page" in page.switch_location_button_html

    page.switch_location()
    assert not page.channel.is_overlay
    assert page.channel.overlay_name == ""
    assert "Close page" in page.close_button_html
    assert "Move to chat" in page.switch_location_button_html


def test_switch_to_overlay_delivers_overlay_and_retracts_page(make_page, transport) -> None:
    page = make_page()
    page.open()
    transport.clear()

    page.switch_location()

    assert [d.kind for d in transport.deliveries] == ["overlay_html", "page_close"]
    assert transport.deliveries[0].name == "note-lobby"


def test_switch_back_delivers_page_and_notice(make_page, transport) -> None:
    page = make_page()
    page.open()
    page.switch_location()
    transport.clear()

    page.switch_location()

    assert [d.kind for d in transport.deliveries] == ["page_html", "overlay_html"]
    assert transport.deliveries[1].name == "note-lobby"
    assert transport.deliveries[1].html == MOVED_TO_HTML_PAGE_NOTICE


def test_switch_location_requires_an_overlay_name(make_page) -> None:
    page = make_page()
    page.base_overlay_name = ""

    with pytest.raises(PageLifecycleError):
        page.switch_location()
    assert not page.channel.is_overlay


def test_switch_location_on_closed_page_raises(make_page) -> None:
    page = make_page()
    page.close()

    with pytest.raises(PageLifecycleError):
        page.switch_location()


def test_component_dispatch_uses_first_active_match(make_page) -> None:
    page = make_page()
    inactive = _EchoComponent("echo", "inactive", active=False)
    first = _EchoComponent("echo", None)
    second = _EchoComponent("echo", "second")
    page.components.extend([inactive, first, second])

    result = page.check_component_command("echo", ["a", "b"])

    assert result is None
    assert inactive.calls == []
    assert first.calls == [["a", "b"]]
    assert second.calls == []
    assert page.force_next_send is True


def test_component_error_message_is_returned(make_page) -> None:
    page = make_page()
    page.components.append(_EchoComponent("echo", "Bad input."))

    assert page.check_component_command("echo", []) == "Bad input."


def test_unknown_sub_command_is_reported_not_raised(make_page) -> None:
    page = make_page()
    page.components.append(_EchoComponent("echo", active=False))

    assert page.check_component_command("echo", []) == "Unknown sub-command 'echo'."
    assert page.check_component_command("zap", []) == "Unknown sub-command 'zap'."
    assert page.force_next_send is False


def test_closed_page_rejects_component_commands(make_page) -> None:
    page = make_page()
    page.close()

    with pytest.raises(PageLifecycleError):
        page.check_component_command("echo", [])


def test_readonly_page_disables_its_buttons(make_page) -> None:
    page = make_page()
    page.readonly = True
    page.refresh_buttons()

    assert 'class="button disabled" disabled' in page.close_button_html


def test_full_page_scenario(make_page, host, transport) -> None:
    page = make_page()

    page.open()
    assert [d.kind for d in transport.deliveries] == ["page_html"]
    first_html = transport.deliveries[0].html

    page.send()
    assert len(transport.deliveries) == 1

    page.body = "new content"
    page.send()
    assert [d.kind for d in transport.deliveries] == ["page_html", "page_html"]
    assert transport.deliveries[1].html != first_html

    transport.clear()
    page.switch_location()
    assert sorted(d.kind for d in transport.deliveries) == ["overlay_html", "page_close"]

    page.switch_location()
    transport.clear()
    page.close()
    assert [d.kind for d in transport.deliveries] == ["page_close"]
    assert host.registry("note").get("alice") is None
