from __future__ import annotations

from statemachine import State, StateMachine


class PageLifecycle(StateMachine):
    """Lifecycle of a single page instance.

    - phases: constructed -> open -> closing -> destroyed
    - a page can be torn down from any live phase (replaced by a newer page, rename collapse)
    - rendering/sending is not a phase; the page only consults `is_closed` before sending.
    """

    constructed = State("constructed", value="constructed", initial=True)
    opened = State("open", value="open")
    closing = State("closing", value="closing")
    destroyed = State("destroyed", value="destroyed", final=True)

    open_page = constructed.to(opened) | opened.to(opened)
    start_closing = constructed.to(closing) | opened.to(closing)
    tear_down = constructed.to(destroyed) | opened.to(destroyed) | closing.to(destroyed)

    @property
    def is_closed(self) -> bool:
        return self.current_state.id in ("closing", "destroyed")

    @property
    def is_destroyed(self) -> bool:
        return self.current_state.id == "destroyed"
