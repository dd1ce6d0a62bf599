"""Base LLM client interface."""

from abc import ABC, abstractmethod
from typing import Optional, List, Dict
from pydantic import BaseModel


class Message(BaseModel):
    """Chat message."""
    role: str  # "system", "user", "assistant"
    content: str


class LLMResponse(BaseModel):
    """Response from LLM."""
    content: str
    usage: Optional[Dict[str, int]] = None
    finish_reason: Optional[str] = None


class LLMResponseError(RuntimeError):
    """Raised when a provider answers with no usable text."""


class BaseLLMClient(ABC):
    """Abstract base class for LLM clients."""

    @abstractmethod
    def chat(
        self,
        messages: List[Message],
        temperature: float = 0.7,
        max_tokens: int = 1024,
        timeout: Optional[float] = None,
        session_id: Optional[str] = None
    ) -> LLMResponse:
        """
        Send chat completion request.

        Args:
            messages: List of messages in conversation, system message first
            temperature: Sampling temperature (0-1)
            max_tokens: Maximum tokens in response
            timeout: Request timeout in seconds
            session_id: Conversation key, for providers that keep their own memory

        Returns:
            LLMResponse with the reply text

        Raises:
            RuntimeError: If the client is not configured
            LLMResponseError: If the provider returned no text
        """
        pass

    @abstractmethod
    def get_provider_name(self) -> str:
        """Get the name of the LLM provider."""
        pass

    @abstractmethod
    def get_model_name(self) -> str:
        """Get the name of the model being used."""
        pass
