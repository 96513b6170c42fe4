"""Page lifecycle and rendering engine.

Kept free of FastAPI and Redis concerns (apart from the mailbox transport) so the
engine can be driven by API routes, chat command dispatch, and tests alike.
"""
