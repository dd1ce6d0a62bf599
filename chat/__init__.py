"""Chat relay and prompt composition."""

from .prompt_builder import PromptBuilder
from .relay import ChatRelay, EMPTY_MESSAGE_REPLY, FALLBACK_REPLY, ERROR_REPLY, FAILURE_POLICY

__all__ = [
    "PromptBuilder",
    "ChatRelay",
    "EMPTY_MESSAGE_REPLY",
    "FALLBACK_REPLY",
    "ERROR_REPLY",
    "FAILURE_POLICY",
]
