"""Session validation."""

from .session_provider import (
    SESSION_COOKIE,
    SessionCredentials,
    SessionUser,
    BaseSessionProvider,
    SQLiteSessionProvider,
    RemoteSessionProvider,
)

__all__ = [
    "SESSION_COOKIE",
    "SessionCredentials",
    "SessionUser",
    "BaseSessionProvider",
    "SQLiteSessionProvider",
    "RemoteSessionProvider",
]
