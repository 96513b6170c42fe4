from __future__ import annotations

from dataclasses import dataclass
from html import escape

SELECTED_BORDER_STYLE = "border-color: #ffffff;"


@dataclass(frozen=True, slots=True)
class ButtonOptions:
    disabled: bool = False
    # Stay clickable even when the page is read-only.
    enabled_readonly: bool = False
    selected: bool = False
    selected_and_disabled: bool = False
    style: str = ""


def build_quiet_pm_button(
    room_id: str,
    bot_name: str,
    message: str,
    label: str,
    *,
    disabled: bool = False,
    style: str = "",
) -> str:
    """Render a button that quietly PMs `message` to the bot from within `room_id`.

    The label is trusted HTML (it may embed images); attribute values are escaped.
    Output depends only on the arguments so page renders can be compared verbatim.
    """

    value = f"/msgroom {room_id}, /botmsg {bot_name}, {message}"

    parts = ['<button class="button']
    if disabled:
        parts.append(' disabled" disabled')
    else:
        parts.append('"')
    if style:
        parts.append(f' style="{escape(style, quote=True)}"')
    parts.append(f' name="send" value="{escape(value, quote=True)}">')
    parts.append(label)
    parts.append("</button>")
    return "".join(parts)


def resolve_button_options(options: ButtonOptions | None, *, readonly: bool) -> tuple[bool, str]:
    """Return `(disabled, style)` for a button on a page with the given read-only flag."""

    if options is None:
        return readonly, ""

    disabled = options.disabled or options.selected_and_disabled
    if not disabled and readonly and not options.enabled_readonly:
        disabled = True

    style = options.style
    if options.selected or options.selected_and_disabled:
        if style and not style.endswith(";"):
            style += ";"
        style += SELECTED_BORDER_STYLE

    return disabled, style
