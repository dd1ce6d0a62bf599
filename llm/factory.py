"""LLM client factory."""

from enum import Enum
from typing import Optional

from .base_client import BaseLLMClient
from .openai_client import OpenAIClient
from .anthropic_client import AnthropicClient
from .agent_client import AgentServiceClient


class LLMProvider(str, Enum):
    """Supported LLM providers."""
    OPENAI = "openai"
    ANTHROPIC = "anthropic"
    AGENT = "agent"


def create_llm_client(
    provider: LLMProvider,
    api_key: Optional[str] = None,
    model: Optional[str] = None,
    agent_url: Optional[str] = None,
    agent_tenant: str = "edge-ai",
    timeout: float = 30.0
) -> BaseLLMClient:
    """
    Create an LLM client for the specified provider.

    Args:
        provider: LLM provider (openai, anthropic or agent)
        api_key: API key for the provider
        model: Optional model override
        agent_url: Base URL of the agent service (agent provider only)
        agent_tenant: Tenant sent to the agent service
        timeout: Default request timeout for the agent service

    Returns:
        Configured LLM client

    Raises:
        ValueError: If provider is not supported or misconfigured
    """
    if provider == LLMProvider.OPENAI:
        return OpenAIClient(api_key=api_key, model=model)
    elif provider == LLMProvider.ANTHROPIC:
        return AnthropicClient(api_key=api_key, model=model)
    elif provider == LLMProvider.AGENT:
        if not agent_url:
            raise ValueError("agent provider requires agent_url")
        return AgentServiceClient(base_url=agent_url, tenant=agent_tenant, timeout=timeout)
    else:
        raise ValueError(f"Unsupported LLM provider: {provider}")
