"""OpenAI LLM client implementation."""

import os
import logging
from typing import Optional, List

from openai import OpenAI

from .base_client import BaseLLMClient, Message, LLMResponse, LLMResponseError

logger = logging.getLogger(__name__)


class OpenAIClient(BaseLLMClient):
    """OpenAI GPT client implementation."""

    DEFAULT_MODEL = "gpt-4o-mini"

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None
    ):
        """
        Initialize OpenAI client.

        Args:
            api_key: OpenAI API key (falls back to OPENAI_API_KEY env var)
            model: Model to use (default: gpt-4o-mini)
        """
        self.api_key = api_key or os.environ.get("OPENAI_API_KEY")
        self.model = model or self.DEFAULT_MODEL
        self.client = None

        if self.api_key:
            self.client = OpenAI(api_key=self.api_key)
            logger.info(f"OpenAI client initialized with model: {self.model}")
        else:
            logger.warning("No OpenAI API key provided")

    def chat(
        self,
        messages: List[Message],
        temperature: float = 0.7,
        max_tokens: int = 1024,
        timeout: Optional[float] = None,
        session_id: Optional[str] = None
    ) -> LLMResponse:
        """Send chat completion request to OpenAI."""
        if not self.client:
            raise RuntimeError("OpenAI client not initialized. Check API key.")

        openai_messages = [{"role": msg.role, "content": msg.content} for msg in messages]

        kwargs = {
            "model": self.model,
            "messages": openai_messages,
            "temperature": temperature,
            "max_completion_tokens": max_tokens,
        }
        if timeout is not None:
            kwargs["timeout"] = timeout

        try:
            response = self.client.chat.completions.create(**kwargs)
        except Exception as e:
            logger.error(f"OpenAI API error: {e}")
            raise

        if not response.choices:
            raise LLMResponseError("OpenAI response contained no choices")

        choice = response.choices[0]
        content = choice.message.content or ""
        if not content.strip():
            raise LLMResponseError("OpenAI response contained no text")

        usage = None
        if response.usage:
            usage = {
                "prompt_tokens": response.usage.prompt_tokens,
                "completion_tokens": response.usage.completion_tokens,
                "total_tokens": response.usage.total_tokens,
            }

        return LLMResponse(
            content=content,
            usage=usage,
            finish_reason=choice.finish_reason
        )

    def get_provider_name(self) -> str:
        """Get the provider name."""
        return "openai"

    def get_model_name(self) -> str:
        """Get the model name."""
        return self.model
