from __future__ import annotations

import math
from abc import ABC, abstractmethod
from collections.abc import Callable, Sequence

from roompages.pages.buttons import ButtonOptions

ButtonFactory = Callable[[str, str, ButtonOptions | None], str]
CommandFactory = Callable[[str], str]


class PageComponent(ABC):
    """A sub-widget embedded in a page that owns one sub-command.

    The page only looks at `command_name`, `active`, `try_command()` and `destroy()`.
    """

    def __init__(self, command_name: str, *, active: bool = True) -> None:
        self.command_name = command_name
        self.active = active
        self.destroyed = False

    @abstractmethod
    def try_command(self, args: Sequence[str]) -> str | None:
        """Handle a sub-command. Returns a user-facing error message, or None on success."""
        raise NotImplementedError

    def render(self) -> str:
        return ""

    def destroy(self) -> None:
        self.destroyed = True


class Pagination(PageComponent):
    """Splits a list of rendered rows into pages with numbered buttons.

    `page_command` turns a sub-command into the owning page's full command, and
    buttons are built with the page's button factory so read-only rules apply to them.
    """

    def __init__(
        self,
        command_name: str,
        *,
        page_command: CommandFactory,
        build_button: ButtonFactory,
        per_page: int = 10,
        rows: Sequence[str] = (),
    ) -> None:
        super().__init__(command_name)
        if per_page < 1:
            raise ValueError("per_page must be >= 1")
        self._page_command = page_command
        self.per_page = per_page
        self.current_page = 0
        self._build_button = build_button
        self._rows: list[str] = list(rows)

    @property
    def total_pages(self) -> int:
        return max(1, math.ceil(len(self._rows) / self.per_page))

    def update_rows(self, rows: Sequence[str]) -> None:
        self._rows = list(rows)
        if self.current_page >= self.total_pages:
            self.current_page = self.total_pages - 1

    def try_command(self, args: Sequence[str]) -> str | None:
        raw = args[0].strip() if args else ""
        try:
            page = int(raw)
        except ValueError:
            return f"'{raw}' is not a valid page number."
        if page < 1 or page > self.total_pages:
            return f"Page {page} does not exist."
        self.current_page = page - 1
        return None

    def render(self) -> str:
        start = self.current_page * self.per_page
        html = "".join(self._rows[start : start + self.per_page])
        if self.total_pages > 1:
            buttons = []
            for i in range(self.total_pages):
                buttons.append(
                    self._build_button(
                        self._page_command(f"{self.command_name}, {i + 1}"),
                        str(i + 1),
                        ButtonOptions(selected_and_disabled=i == self.current_page, enabled_readonly=True),
                    )
                )
            html += "<center>" + "&nbsp;".join(buttons) + "</center>"
        return html

    def destroy(self) -> None:
        self._rows = []
        super().destroy()
