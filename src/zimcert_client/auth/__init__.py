"""Session handling for outbound API requests."""

from .session_store import (
    EnvironmentSessionStore,
    FileSessionStore,
    InMemorySessionStore,
    SessionStore,
    SessionToken,
    session_store_from_settings,
)

__all__ = [
    "SessionStore",
    "SessionToken",
    "InMemorySessionStore",
    "EnvironmentSessionStore",
    "FileSessionStore",
    "session_store_from_settings",
]
