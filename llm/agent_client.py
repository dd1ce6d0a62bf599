"""Remote agent service client.

The agent service keeps its own per-session state, so alongside the new
message we forward the conversation key, the system prompt and the history
we already hold.
"""

import logging
from typing import Optional, List

import requests

from .base_client import BaseLLMClient, Message, LLMResponse, LLMResponseError

logger = logging.getLogger(__name__)


class AgentServiceClient(BaseLLMClient):
    """Client for the hosted agent API (POST {base_url}/api/chat)."""

    def __init__(
        self,
        base_url: str,
        tenant: str = "edge-ai",
        timeout: float = 30.0
    ):
        """
        Initialize agent service client.

        Args:
            base_url: Agent API base URL
            tenant: Tenant name sent with every request
            timeout: Default request timeout in seconds
        """
        self.base_url = base_url.rstrip('/')
        self.tenant = tenant
        self.timeout = timeout
        logger.info(f"Agent service client initialized: {self.base_url} (tenant={self.tenant})")

    def chat(
        self,
        messages: List[Message],
        temperature: float = 0.7,
        max_tokens: int = 1024,
        timeout: Optional[float] = None,
        session_id: Optional[str] = None
    ) -> LLMResponse:
        """Send the latest user message to the agent service."""
        system = "\n".join(m.content for m in messages if m.role == "system")
        turns = [m for m in messages if m.role != "system"]
        if not turns or turns[-1].role != "user":
            raise ValueError("Agent service requests must end with a user message")

        payload = {
            "tenant": self.tenant,
            "message": turns[-1].content,
            "sessionId": session_id or "web-anon",
            "system": system,
            "history": [{"role": m.role, "content": m.content} for m in turns[:-1]],
            "maxTokens": max_tokens,
            "temperature": temperature,
        }

        try:
            response = requests.post(
                f"{self.base_url}/api/chat",
                json=payload,
                headers={"Content-Type": "application/json", "Accept": "application/json"},
                timeout=timeout if timeout is not None else self.timeout
            )
            response.raise_for_status()
            data = response.json()
        except (requests.exceptions.RequestException, ValueError) as e:
            logger.error(f"Agent API error: {e}")
            raise

        reply = data.get("reply") if isinstance(data, dict) else None
        if not isinstance(reply, str) or not reply.strip():
            raise LLMResponseError(f"Agent API returned no reply text: {str(data)[:200]}")

        return LLMResponse(content=reply, finish_reason=data.get("finish_reason"))

    def get_provider_name(self) -> str:
        """Get the provider name."""
        return "agent"

    def get_model_name(self) -> str:
        """Get the model name."""
        return f"agent:{self.tenant}"
