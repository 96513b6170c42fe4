from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING

from roompages.pages.buttons import ButtonOptions, build_quiet_pm_button, resolve_button_options
from roompages.pages.components import PageComponent
from roompages.pages.directory import Directory, Room, Viewer
from roompages.pages.fsm import PageLifecycle
from roompages.pages.transport import Transport

if TYPE_CHECKING:
    from roompages.pages.registry import PageRegistry

logger = logging.getLogger(__name__)

CLOSE_COMMAND = "closehtmlpage"
SWITCH_LOCATION_COMMAND = "switchhtmlpagelocation"
MOVED_TO_HTML_PAGE_NOTICE = "<div>Successfully moved to an HTML page.</div>"


class PageLifecycleError(RuntimeError):
    """A page was used in a way its lifecycle does not allow (e.g. closed twice)."""


@dataclass(frozen=True, slots=True)
class DeliveryChannel:
    """Where a page is shown: its own HTML page, or inline in chat under `overlay_name`."""

    overlay_name: str = ""

    @property
    def is_overlay(self) -> bool:
        return bool(self.overlay_name)


@dataclass(frozen=True, slots=True)
class PageServices:
    """Collaborators shared by every page a host creates."""

    transport: Transport
    directory: Directory
    command_character: str = "."
    bot_name: str = "Roompages"
    staff_rank: str = "driver"


class HtmlPage(ABC):
    """Base class for per-user HTML pages.

    Contract:
      - constructing a page registers it, destroying any previous page the user had
        in the same registry.
      - `send()` renders and delivers only when the output changed, unless a command
        was handled since the last render.
      - `close()` retracts and destroys; closing twice is a `PageLifecycleError`.

    Subclasses set `page_id`, implement `render()`, and may override the
    `before_send` / `on_send` / `on_close` hooks.
    """

    page_id: str
    global_room_page: bool = False
    show_switch_location_button: bool = False

    def __init__(
        self,
        room: Room,
        viewer: Viewer,
        base_command: str,
        registry: PageRegistry,
        services: PageServices,
    ) -> None:
        self.room = room
        self.base_command = base_command
        self.command_prefix = f"{services.command_character}{base_command} {room.alias or room.id}"
        self.registry = registry
        self.services = services
        self.lifecycle = PageLifecycle()

        self.channel = DeliveryChannel()
        self.base_overlay_name = ""
        self.components: list[PageComponent] = []
        self.readonly = False

        self.last_render = ""
        # Set whenever a command was handled; the next send skips the unchanged-render check.
        self.force_next_send = False

        self.close_button_html = ""
        self.close_button_options: ButtonOptions | None = None
        self.switch_location_button_html = ""

        self.set_user(viewer)
        self.set_close_button()
        self.set_switch_location_button()

        registry.register(self.user_id, self)

    @abstractmethod
    def render(self, on_open: bool = False) -> str:
        raise NotImplementedError

    @property
    def closed(self) -> bool:
        return self.lifecycle.is_closed

    # Hooks

    def before_send(self, on_open: bool) -> bool:
        return True

    def on_send(self, on_open: bool) -> None:
        return None

    def on_close(self) -> None:
        return None

    # Lifecycle

    def open(self) -> None:
        if self.closed:
            return
        self.lifecycle.open_page()
        self.force_next_send = True
        self.send(on_open=True)

    def send(self, on_open: bool = False) -> None:
        if self.closed:
            return

        if not self.before_send(on_open):
            return

        viewer = self.services.directory.resolve_viewer(self.user_id)
        if viewer is None:
            logger.debug("%s: viewer %s is gone, not sending", self.page_id, self.user_id)
            return

        html = self.render(on_open)
        if html == self.last_render and not self.force_next_send:
            return

        self.last_render = html
        self.force_next_send = False

        if self.channel.is_overlay:
            self.services.transport.deliver_overlay(self.room, viewer, self.channel.overlay_name, html)
        else:
            self.services.transport.deliver_standalone(self.room, viewer, self.page_id, html)
        logger.debug("%s: sent %d chars to %s", self.page_id, len(html), self.user_id)

        self.on_send(on_open)

    def close(self) -> None:
        if self.closed:
            raise PageLifecycleError(f"{self.page_id} page already closed for user {self.user_id}")

        self.lifecycle.start_closing()
        if not self.channel.is_overlay:
            self.temporarily_close()

        self.on_close()
        self.destroy()

    def try_close(self) -> None:
        if not self.closed:
            self.close()

    def temporarily_close(self) -> None:
        viewer = self.services.directory.resolve_viewer(self.user_id)
        if viewer is not None:
            self.services.transport.retract_standalone(self.room, viewer, self.page_id)

    def switch_location(self) -> None:
        if self.closed:
            raise PageLifecycleError(f"{self.page_id} page is closed for user {self.user_id}")
        if not self.base_overlay_name:
            raise PageLifecycleError(f"{self.page_id} page cannot be shown in chat")

        leaving_overlay = self.channel.is_overlay
        self.channel = DeliveryChannel() if leaving_overlay else DeliveryChannel(self.base_overlay_name)

        self.force_next_send = True
        self.set_switch_location_button()
        self.set_close_button()
        self.send()

        viewer = self.services.directory.resolve_viewer(self.user_id)
        if viewer is None:
            return
        if leaving_overlay:
            self.services.transport.deliver_overlay(self.room, viewer, self.base_overlay_name, MOVED_TO_HTML_PAGE_NOTICE)
        else:
            self.temporarily_close()

    def destroy(self) -> None:
        if self.lifecycle.is_destroyed:
            return

        for component in self.components:
            component.destroy()

        self.registry.remove(self.user_id, self)
        self.lifecycle.tear_down()
        logger.debug("%s: destroyed page for %s", self.page_id, self.user_id)

        # Only page_id / user_name / user_id stay meaningful after this point.
        self.components = []
        self.last_render = ""
        self.force_next_send = False
        self.close_button_html = ""
        self.close_button_options = None
        self.switch_location_button_html = ""

    # Identity

    def set_user(self, viewer: Viewer) -> None:
        self.user_name = viewer.name
        self.user_id = viewer.user_id

        directory = self.services.directory
        current = directory.resolve_viewer(viewer.user_id)
        self.is_room_staff = current is not None and (
            directory.has_minimum_rank(self.room, current, self.services.staff_rank) or directory.is_elevated(current)
        )

    def refresh_buttons(self) -> None:
        self.set_switch_location_button()
        self.set_close_button()

    # Commands

    def check_component_command(self, command: str, args: Sequence[str]) -> str | None:
        if self.closed:
            raise PageLifecycleError(f"{self.page_id} page is closed for user {self.user_id}")

        for component in self.components:
            if component.active and component.command_name == command:
                self.force_next_send = True
                return component.try_command(args)

        return f"Unknown sub-command '{command}'."

    def page_command(self, command: str) -> str:
        return self.command_prefix + (" " if self.global_room_page else ", ") + command

    # Buttons

    def build_quiet_button(self, message: str, label: str, options: ButtonOptions | None = None) -> str:
        disabled, style = resolve_button_options(options, readonly=self.readonly)
        return build_quiet_pm_button(
            self.room.id,
            self.services.bot_name,
            message,
            label,
            disabled=disabled,
            style=style,
        )

    def set_close_button(self, options: ButtonOptions | None = None) -> None:
        if options is not None:
            self.close_button_options = options

        if self.channel.is_overlay:
            self.close_button_html = ""
        else:
            self.close_button_html = self.build_quiet_button(
                self.page_command(CLOSE_COMMAND), "Close page", self.close_button_options
            )

    def set_switch_location_button(self) -> None:
        if self.show_switch_location_button:
            target = "HTML page" if self.channel.is_overlay else "chat"
            self.switch_location_button_html = self.build_quiet_button(
                self.page_command(SWITCH_LOCATION_COMMAND), f"Move to {target}"
            )
        else:
            self.switch_location_button_html = ""
