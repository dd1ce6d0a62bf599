"""Pydantic schemas shared across the assistant."""

from .chat import ChatRequest, ChatResponse, ChatResult
from .results import Outcome, FailureKind

__all__ = [
    "ChatRequest",
    "ChatResponse",
    "ChatResult",
    "Outcome",
    "FailureKind",
]
