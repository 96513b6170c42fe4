from __future__ import annotations

import pytest

from roompages.pages.buttons import ButtonOptions
from roompages.pages.components import Pagination


def _button(message: str, label: str, options: ButtonOptions | None) -> str:
    selected = bool(options and options.selected_and_disabled)
    return f"[{label}|{message}|{'x' if selected else ' '}]"


def _pagination(rows: int, per_page: int = 2) -> Pagination:
    return Pagination(
        "page",
        page_command=lambda command: ".note lobby, " + command,
        build_button=_button,
        per_page=per_page,
        rows=[f"<p>{i}</p>" for i in range(rows)],
    )


def test_single_page_has_no_buttons() -> None:
    p = _pagination(2)
    assert p.total_pages == 1
    assert p.render() == "<p>0</p><p>1</p>"


def test_empty_rows_still_have_one_page() -> None:
    p = _pagination(0)
    assert p.total_pages == 1
    assert p.render() == ""


def test_render_shows_current_slice_and_page_buttons() -> None:
    p = _pagination(5)
    assert p.total_pages == 3

    html = p.render()
    assert html.startswith("<p>0</p><p>1</p><center>")
    assert "[1|.note lobby, page, 1|x]" in html
    assert "[3|.note lobby, page, 3| ]" in html


def test_page_command_moves_to_requested_page() -> None:
    p = _pagination(5)

    assert p.try_command(["3"]) is None
    assert p.current_page == 2
    assert p.render().startswith("<p>4</p><center>")


def test_invalid_page_numbers_are_reported() -> None:
    p = _pagination(5)

    assert p.try_command(["abc"]) == "'abc' is not a valid page number."
    assert p.try_command([]) == "'' is not a valid page number."
    assert p.try_command(["4"]) == "Page 4 does not exist."
    assert p.try_command(["0"]) == "Page 0 does not exist."
    assert p.current_page == 0


def test_update_rows_clamps_current_page() -> None:
    p = _pagination(6)
    p.try_command(["3"])

    p.update_rows(["<p>a</p>"])

    assert p.current_page == 0
    assert p.render() == "<p>a</p>"


def test_per_page_must_be_positive() -> None:
    with pytest.raises(ValueError):
        _pagination(3, per_page=0)


def test_destroy_marks_component_destroyed() -> None:
    p = _pagination(3)
    p.destroy()
    assert p.destroyed
    assert p.render() == ""


def test_buttons_follow_the_page_command_format(make_page) -> None:
    page = make_page()
    page.global_room_page = True
    p = Pagination(
        "page",
        page_command=page.page_command,
        build_button=page.build_quiet_button,
        per_page=1,
        rows=["<p>a</p>", "<p>b</p>"],
    )

    html = p.render()

    assert 'value="/msgroom lobby, /botmsg Roompages, .note main page, 2"' in html
    assert ".note main, page" not in html
