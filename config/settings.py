"""Application settings."""

import os
from typing import Optional, List
from pydantic import BaseModel, Field


class Settings(BaseModel):
    """Application configuration settings."""

    # LLM Provider settings
    llm_provider: str = "anthropic"  # "anthropic", "openai" or "agent"
    llm_model: Optional[str] = None  # Override the provider's default model

    # API Keys
    openai_api_key: Optional[str] = None
    anthropic_api_key: Optional[str] = None

    # Remote agent service (llm_provider == "agent")
    agent_api_url: str = "https://agent-api-production-d953.up.railway.app"
    agent_tenant: str = "edge-ai"

    # Auth service; when set, sessions are validated remotely instead of in SQLite
    auth_url: Optional[str] = None

    # Storage
    db_path: str = "data/edge_ai.db"

    # Conversation memory
    history_limit: int = 20
    session_ttl_seconds: int = 3600
    sweep_interval_seconds: int = 900
    max_anonymous_sessions: int = 10000

    # Completion call
    completion_timeout: float = 30.0
    max_tokens: int = 1024
    temperature: float = 0.7

    # Chat defaults
    default_site: str = "edge-ai"
    anonymous_session_key: str = "web-anon"

    # HTTP
    cors_origins: List[str] = Field(
        default_factory=lambda: [
            "http://localhost:3000",
            "https://www.haba.casa",
            "https://haba.casa",
        ]
    )

    # Logging / development
    debug: bool = False
    verbose: bool = False

    def __init__(self, **data):
        # Auto-load API keys from environment if not provided
        if "openai_api_key" not in data or data["openai_api_key"] is None:
            data["openai_api_key"] = os.environ.get("OPENAI_API_KEY")

        if "anthropic_api_key" not in data or data["anthropic_api_key"] is None:
            data["anthropic_api_key"] = os.environ.get("ANTHROPIC_API_KEY")

        super().__init__(**data)

    @classmethod
    def from_env(cls, **overrides) -> "Settings":
        """
        Build settings from EDGE_* environment variables.

        Explicit keyword overrides win over the environment.
        """
        data = {}
        for name, field in cls.model_fields.items():
            raw = os.environ.get(f"EDGE_{name.upper()}")
            if raw is None:
                continue
            if field.annotation is bool:
                data[name] = raw.strip().lower() in {"1", "true", "yes", "on"}
            elif name == "cors_origins":
                data[name] = [o.strip() for o in raw.split(",") if o.strip()]
            else:
                data[name] = raw
        data.update(overrides)
        return cls(**data)

    def get_llm_api_key(self) -> Optional[str]:
        """Get the API key for the configured LLM provider."""
        if self.llm_provider == "openai":
            return self.openai_api_key
        elif self.llm_provider == "anthropic":
            return self.anthropic_api_key
        return None
