"""Memory system for conversation persistence."""

from .models import ConversationTurn, AnonymousConversation, PersistedMessage, TurnRole
from .anonymous_cache import AnonymousConversationCache
from .sqlite_store import SQLiteMessageLog

__all__ = [
    "ConversationTurn",
    "AnonymousConversation",
    "PersistedMessage",
    "TurnRole",
    "AnonymousConversationCache",
    "SQLiteMessageLog",
]
