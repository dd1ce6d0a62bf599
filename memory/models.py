"""Memory data models."""

from datetime import datetime, timezone
from enum import Enum
from typing import Optional, List
from pydantic import BaseModel, ConfigDict, Field


class TurnRole(str, Enum):
    """Who produced a turn."""
    USER = "user"
    ASSISTANT = "assistant"


class ConversationTurn(BaseModel):
    """A single turn in a conversation."""
    model_config = ConfigDict(frozen=True, use_enum_values=True)

    role: TurnRole
    content: str


class AnonymousConversation(BaseModel):
    """Snapshot of a cached conversation for a visitor without an account."""
    session_key: str
    turns: List[ConversationTurn] = Field(default_factory=list)
    last_activity: float  # monotonic-clock seconds of the last append


class PersistedMessage(BaseModel):
    """A row of the durable conversation log."""
    id: str
    user_id: Optional[str] = None
    session_id: str
    role: TurnRole
    content: str
    site: str = "edge-ai"
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    def to_turn(self) -> ConversationTurn:
        return ConversationTurn(role=self.role, content=self.content)
