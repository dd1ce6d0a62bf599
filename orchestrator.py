"""Wires the assistant's components together from settings."""

import logging
from typing import Optional

from config.settings import Settings

# LLM components
from llm.factory import create_llm_client, LLMProvider
from llm.base_client import BaseLLMClient

# Memory components
from memory.anonymous_cache import AnonymousConversationCache
from memory.sqlite_store import SQLiteMessageLog

# Accounts and sessions
from accounts.sqlite_store import SQLiteAccountStore
from accounts.resolver import UserContextResolver
from auth.session_provider import BaseSessionProvider, SQLiteSessionProvider, RemoteSessionProvider

# Chat
from chat.prompt_builder import PromptBuilder
from chat.relay import ChatRelay

logger = logging.getLogger(__name__)


class EdgeAssistant:
    """Owns the long-lived services behind the chat and admin endpoints."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        llm_client: Optional[BaseLLMClient] = None,
        session_provider: Optional[BaseSessionProvider] = None
    ):
        """
        Initialize the assistant.

        Args:
            settings: Application settings
            llm_client: Completion client override (built from settings if None)
            session_provider: Session provider override (built from settings if None)
        """
        self.settings = settings or Settings()

        # Initialize LLM client
        self.llm_client: Optional[BaseLLMClient] = llm_client
        if self.llm_client is None:
            self._init_llm_client()

        # Initialize storage
        self.account_store = SQLiteAccountStore(db_path=self.settings.db_path)
        self.message_log = SQLiteMessageLog(db_path=self.settings.db_path)
        self.cache = AnonymousConversationCache(
            max_turns=self.settings.history_limit,
            ttl=self.settings.session_ttl_seconds,
            sweep_interval=self.settings.sweep_interval_seconds,
            max_sessions=self.settings.max_anonymous_sessions,
        )

        # Initialize sessions
        self.session_provider = session_provider or self._init_session_provider()

        self.resolver = UserContextResolver(self.account_store)
        self.prompt_builder = PromptBuilder()
        self.relay = ChatRelay(
            llm_client=self.llm_client,
            prompt_builder=self.prompt_builder,
            cache=self.cache,
            message_log=self.message_log,
            resolver=self.resolver,
            session_provider=self.session_provider,
            settings=self.settings,
        )

    def _init_llm_client(self):
        """Initialize LLM client based on settings."""
        try:
            provider = LLMProvider(self.settings.llm_provider)
        except ValueError:
            logger.error(f"Unknown LLM provider: {self.settings.llm_provider}")
            return

        if provider != LLMProvider.AGENT and not self.settings.get_llm_api_key():
            logger.warning(
                f"No API key for {self.settings.llm_provider}. "
                "Chat will answer with the fallback reply."
            )
            return

        try:
            self.llm_client = create_llm_client(
                provider=provider,
                api_key=self.settings.get_llm_api_key(),
                model=self.settings.llm_model,
                agent_url=self.settings.agent_api_url,
                agent_tenant=self.settings.agent_tenant,
                timeout=self.settings.completion_timeout,
            )
            logger.info(
                f"LLM client initialized: {self.settings.llm_provider} "
                f"({self.llm_client.get_model_name()})"
            )
        except Exception as e:
            logger.error(f"Failed to initialize LLM client: {e}")
            self.llm_client = None

    def _init_session_provider(self) -> BaseSessionProvider:
        """Remote auth service when configured, otherwise the local session table."""
        if self.settings.auth_url:
            logger.info(f"Validating sessions against {self.settings.auth_url}")
            return RemoteSessionProvider(self.settings.auth_url)
        return SQLiteSessionProvider(self.account_store)

    def start(self):
        """Start background work (the anonymous cache sweeper)."""
        self.cache.start()

    def stop(self):
        """Stop background work."""
        self.cache.stop()
