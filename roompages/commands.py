from __future__ import annotations

import logging
import re
from collections.abc import Callable
from dataclasses import dataclass

from roompages.pages.base import CLOSE_COMMAND, SWITCH_LOCATION_COMMAND
from roompages.pages.directory import Viewer, to_id
from roompages.pages.host import PageHost
from roompages.shop.catalog import get_catalog
from roompages.shop.page import (
    BASE_COMMAND,
    BASE_COMMAND_ALIAS,
    PAGE_ID,
    UNLOCK_RIBBON_COMMAND,
    PointsShopPage,
)

logger = logging.getLogger(__name__)

# Button values wrap the command as "/msgroom <room>, /botmsg <bot>, <command>".
_QUIET_PM_WRAPPER = re.compile(r"^/msgroom\s+[^,]*,\s*/botmsg\s+[^,]*,\s*")


@dataclass(frozen=True, slots=True)
class CommandResult:
    # Message to show the user, if any.
    message: str | None = None
    # Page type the command acted on.
    page_id: str | None = None


CommandHandler = Callable[[PageHost, Viewer, str], CommandResult]


def parse_command_message(message: str, command_character: str) -> tuple[str, str] | None:
    """Split a chat message into `(command, target)`.

    Returns None when the message is not a command. Button values can be passed in
    verbatim; their quiet-PM wrapper is stripped first.
    """

    text = _QUIET_PM_WRAPPER.sub("", message.strip(), count=1)
    if not command_character or not text.startswith(command_character):
        return None

    body = text[len(command_character) :]
    command, _, target = body.partition(" ")
    command = to_id(command)
    if not command:
        return None
    return command, target.strip()


def points_shop_command(host: PageHost, viewer: Viewer, target: str) -> CommandResult:
    targets = target.split(",")
    room = host.directory.search_room(targets[0])
    if room is None:
        return CommandResult(message=f"'{targets[0].strip()}' is not one of my rooms.")

    if not host.settings.points_shop_enabled(room.id):
        return CommandResult(message=f"The tournament points shop is not available in {room.title}.")

    cmd = to_id(targets[1]) if len(targets) > 1 else ""
    args = [t.strip() for t in targets[2:]]
    registry = host.registry(PAGE_ID)

    def new_page() -> PointsShopPage:
        return PointsShopPage(
            room,
            viewer,
            registry,
            host.services,
            r=host.require_redis(),
            catalog=get_catalog(),
            card_room_id=host.settings.trainer_card_room(room.id),
        )

    if not cmd:
        new_page().open()
        return CommandResult(page_id=PAGE_ID)

    page = registry.get(viewer.user_id)
    if cmd == CLOSE_COMMAND:
        if page is not None:
            page.close()
        return CommandResult(page_id=PAGE_ID)

    # Sub-commands for a user without a page (or with one for another room) get a fresh page.
    if not isinstance(page, PointsShopPage) or page.room.id != room.id:
        page = new_page()

    error: str | None
    if cmd == SWITCH_LOCATION_COMMAND:
        page.switch_location()
        error = None
    elif cmd == UNLOCK_RIBBON_COMMAND:
        error = page.unlock_ribbon(args[0] if args else "")
    else:
        error = page.check_component_command(cmd, args)
        if error is None:
            page.send()

    return CommandResult(message=error, page_id=PAGE_ID)


COMMANDS: dict[str, CommandHandler] = {
    BASE_COMMAND: points_shop_command,
    BASE_COMMAND_ALIAS: points_shop_command,
}


def dispatch_command(*, host: PageHost, user_id: str, command: str, target: str) -> CommandResult:
    """Entry point for chat messages and the HTTP API.

    Resolves the sender and the base command (or alias), then hands the target
    (`<room>, <sub-command>, <args...>`) to the page type's handler.
    """

    viewer = host.directory.resolve_viewer(user_id)
    if viewer is None:
        raise ValueError("User not found")

    handler = COMMANDS.get(to_id(command))
    if handler is None:
        raise ValueError(f"Unknown command: {command}")

    logger.info("command %s from %s: %s", command, viewer.user_id, target)
    return handler(host, viewer, target)


def dispatch_message(*, host: PageHost, user_id: str, message: str) -> CommandResult:
    parsed = parse_command_message(message, host.settings.command_character)
    if parsed is None:
        raise ValueError("Not a command")
    command, target = parsed
    return dispatch_command(host=host, user_id=user_id, command=command, target=target)
