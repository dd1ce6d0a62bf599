"""Chat relay: identity -> history -> prompt -> completion -> write-back."""

import logging
from enum import Enum
from typing import Optional, List

from accounts.models import UserContext
from accounts.resolver import UserContextResolver
from auth.session_provider import BaseSessionProvider, SessionCredentials
from config.settings import Settings
from llm.base_client import BaseLLMClient, Message
from memory.anonymous_cache import AnonymousConversationCache
from memory.models import ConversationTurn, TurnRole
from memory.sqlite_store import SQLiteMessageLog
from schemas.chat import ChatResult
from schemas.results import Outcome, FailureKind

from .prompt_builder import PromptBuilder

logger = logging.getLogger(__name__)

EMPTY_MESSAGE_REPLY = "Please enter a message."
FALLBACK_REPLY = (
    "Sorry, I'm having trouble answering right now. "
    "Please try again in a moment or contact hello@edge-ai.space."
)
ERROR_REPLY = "Something went wrong. Please try again or contact hello@edge-ai.space."


class Degradation(str, Enum):
    """What the relay does instead when a stage fails."""
    ANONYMOUS = "continue as anonymous"
    EMPTY_HISTORY = "continue with empty history"
    FALLBACK_REPLY = "reply with fallback, skip persistence"
    SKIP_WRITE = "skip write, still reply"


FAILURE_POLICY = {
    "session": Degradation.ANONYMOUS,
    "context": Degradation.ANONYMOUS,
    "history": Degradation.EMPTY_HISTORY,
    "completion": Degradation.FALLBACK_REPLY,
    "persist": Degradation.SKIP_WRITE,
}


class _Exchange:
    """State of one message as it moves through the stages."""

    def __init__(self):
        self.context: Optional[UserContext] = None
        self.turns: List[ConversationTurn] = []
        self.reply: Optional[str] = None
        self.write = True

    @property
    def settled(self) -> bool:
        """True once a reply is fixed and the remaining stages are skipped."""
        return self.reply is not None


class ChatRelay:
    """Relays a visitor's message to the language model with the right memory."""

    def __init__(
        self,
        llm_client: Optional[BaseLLMClient],
        prompt_builder: PromptBuilder,
        cache: AnonymousConversationCache,
        message_log: SQLiteMessageLog,
        resolver: UserContextResolver,
        session_provider: Optional[BaseSessionProvider] = None,
        settings: Optional[Settings] = None
    ):
        """
        Initialize chat relay.

        Args:
            llm_client: Completion client (None means every call falls back)
            prompt_builder: System prompt builder
            cache: Conversation cache for anonymous visitors
            message_log: Durable log for signed-in users
            resolver: User context resolver
            session_provider: Session lookup (None treats everyone as anonymous)
            settings: Application settings
        """
        self.llm_client = llm_client
        self.prompt_builder = prompt_builder
        self.cache = cache
        self.message_log = message_log
        self.resolver = resolver
        self.session_provider = session_provider
        self.settings = settings or Settings()

    def _degrade(self, stage: str, outcome: Outcome, exchange: _Exchange) -> Degradation:
        """Apply the stage's entry in FAILURE_POLICY to the exchange."""
        action = FAILURE_POLICY[stage]
        log = logger.info if outcome.failure == FailureKind.NOT_FOUND else logger.warning
        log(f"{stage} failed ({outcome.failure.value}: {outcome.error}); {action.value}")

        if action == Degradation.ANONYMOUS:
            exchange.context = None
        elif action == Degradation.EMPTY_HISTORY:
            exchange.turns = []
        elif action == Degradation.FALLBACK_REPLY:
            exchange.reply = FALLBACK_REPLY
            exchange.write = False
        elif action == Degradation.SKIP_WRITE:
            exchange.write = False
        return action

    def _effective_key(self, exchange: _Exchange, session_key: Optional[str]) -> str:
        if exchange.context is not None:
            # One durable thread per account, whatever key the browser sent
            return f"user-{exchange.context.id}"
        # "user-" keys name account threads; a visitor cannot claim one
        if not session_key or session_key.startswith("user-"):
            return self.settings.anonymous_session_key
        return session_key

    # --- stages ---

    def _lookup_session(self, credentials: Optional[SessionCredentials]) -> Outcome:
        """Outcome value is a SessionUser or None for visitors without a session."""
        if self.session_provider is None or credentials is None or credentials.is_empty():
            return Outcome.success(None)
        try:
            return Outcome.success(self.session_provider.get_session(credentials))
        except Exception as e:
            return Outcome.fail(FailureKind.UPSTREAM_UNAVAILABLE, f"session store: {e}")

    def _resolve_context(self, credentials: Optional[SessionCredentials], exchange: _Exchange):
        session = self._lookup_session(credentials)
        if not session.ok:
            self._degrade("session", session, exchange)
            return
        if session.value is None:
            return

        context = self.resolver.resolve(session.value.id)
        if context.ok:
            exchange.context = context.value
        else:
            self._degrade("context", context, exchange)

    def _load_persisted(self, user_id: str) -> Outcome:
        try:
            messages = self.message_log.get_recent_messages(user_id, limit=self.settings.history_limit)
        except Exception as e:
            return Outcome.fail(FailureKind.UPSTREAM_UNAVAILABLE, f"message log: {e}")
        return Outcome.success([m.to_turn() for m in messages])

    def _load_cached(self, session_key: str) -> Outcome:
        try:
            return Outcome.success(self.cache.get_turns(session_key))
        except Exception as e:
            return Outcome.fail(FailureKind.UPSTREAM_UNAVAILABLE, f"conversation cache: {e}")

    def _complete(
        self,
        system_prompt: str,
        history: List[ConversationTurn],
        message: str,
        session_key: str
    ) -> Outcome:
        if self.llm_client is None:
            return Outcome.fail(FailureKind.UPSTREAM_UNAVAILABLE, "no completion client configured")

        messages = [Message(role="system", content=system_prompt)]
        messages += [Message(role=turn.role, content=turn.content) for turn in history]
        messages.append(Message(role="user", content=message))

        try:
            response = self.llm_client.chat(
                messages=messages,
                temperature=self.settings.temperature,
                max_tokens=self.settings.max_tokens,
                timeout=self.settings.completion_timeout,
                session_id=session_key
            )
        except Exception as e:
            return Outcome.fail(FailureKind.UPSTREAM_UNAVAILABLE, f"completion: {e}")

        content = getattr(response, "content", None)
        if not isinstance(content, str) or not content.strip():
            return Outcome.fail(FailureKind.INVALID_RESPONSE, "completion returned no text")
        return Outcome.success(content.strip())

    def _persist(
        self,
        exchange: _Exchange,
        session_key: str,
        message: str,
        site: str
    ) -> bool:
        try:
            if exchange.context is not None:
                self.message_log.add_messages(
                    exchange.context.id,
                    session_key,
                    [(TurnRole.USER.value, message), (TurnRole.ASSISTANT.value, exchange.reply)],
                    site=site
                )
            else:
                self.cache.append(session_key, [
                    ConversationTurn(role=TurnRole.USER, content=message),
                    ConversationTurn(role=TurnRole.ASSISTANT, content=exchange.reply),
                ])
        except Exception as e:
            self._degrade("persist", Outcome.fail(FailureKind.UPSTREAM_UNAVAILABLE, str(e)), exchange)
            return False
        return True

    # --- entry point ---

    def handle(
        self,
        message: Optional[str],
        session_key: Optional[str] = None,
        site: Optional[str] = None,
        credentials: Optional[SessionCredentials] = None
    ) -> ChatResult:
        """
        Process one chat message.

        Args:
            message: Text typed by the visitor, passed on unchanged
            session_key: Client-generated conversation key, if any
            site: Site the message came from (default: settings.default_site)
            credentials: Session credentials presented with the request

        Returns:
            ChatResult; status 400 for an empty message, otherwise 200 with
            either the model's reply or the fallback reply
        """
        if not message or not message.strip():
            return ChatResult(reply=EMPTY_MESSAGE_REPLY, status_code=400)

        site = site or self.settings.default_site
        exchange = _Exchange()

        self._resolve_context(credentials, exchange)

        effective_key = self._effective_key(exchange, session_key)

        if not exchange.settled:
            if exchange.context is not None:
                history = self._load_persisted(exchange.context.id)
            else:
                history = self._load_cached(effective_key)
            if history.ok:
                exchange.turns = history.value
            else:
                self._degrade("history", history, exchange)
                effective_key = self._effective_key(exchange, session_key)

        completed = False
        if not exchange.settled:
            system_prompt = self.prompt_builder.build(exchange.context)
            completion = self._complete(system_prompt, exchange.turns, message, effective_key)
            if completion.ok:
                exchange.reply = completion.value
                completed = True
            else:
                self._degrade("completion", completion, exchange)

        if exchange.reply is None:
            # Nothing the model said can be stored
            exchange.reply = FALLBACK_REPLY
            exchange.write = False

        persisted = False
        if completed and exchange.write:
            persisted = self._persist(exchange, effective_key, message, site)

        context = exchange.context
        debug = None
        if self.settings.debug and context is not None:
            debug = {
                "sessionKey": effective_key,
                "userId": context.id,
                "role": context.role.value,
                "organization": context.organization_name,
                "products": len(context.products),
                "historyLength": len(exchange.turns),
                "provider": self.llm_client.get_provider_name() if self.llm_client else None,
            }

        logger.info(
            f"Chat exchange: session={effective_key} authenticated={context is not None} "
            f"history={len(exchange.turns)} fallback={not completed} persisted={persisted}"
        )

        return ChatResult(
            reply=exchange.reply,
            status_code=200,
            session_key=effective_key,
            authenticated=context is not None,
            persisted=persisted,
            debug=debug,
        )
