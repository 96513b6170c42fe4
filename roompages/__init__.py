"""Per-user HTML pages pushed to chat clients.

The engine lives in `roompages.pages`; concrete page types (e.g. `roompages.shop`)
build on it, and `roompages.commands` routes chat commands to them.
"""
