"""In-process conversation cache for anonymous visitors."""

import logging
import threading
import time
from collections import OrderedDict
from typing import Callable, Dict, Iterable, List, Optional

from .models import AnonymousConversation, ConversationTurn

logger = logging.getLogger(__name__)


class _Entry:
    __slots__ = ("turns", "last_activity")

    def __init__(self, last_activity: float):
        self.turns: List[ConversationTurn] = []
        self.last_activity = last_activity


class AnonymousConversationCache:
    """
    Bounded, expiring map of session key -> recent turns.

    Each entry keeps at most ``max_turns`` turns (oldest dropped first) and is
    removed by ``sweep`` once idle for longer than ``ttl`` seconds. A background
    sweeper runs between ``start()`` and ``stop()``. Callers receive copies;
    nothing inside the cache is shared.

    Anonymous history lives only as long as the process.
    """

    def __init__(
        self,
        max_turns: int = 20,
        ttl: float = 3600.0,
        sweep_interval: float = 900.0,
        max_sessions: Optional[int] = 10000,
        clock: Callable[[], float] = time.monotonic
    ):
        """
        Initialize the cache.

        Args:
            max_turns: Turns kept per session key
            ttl: Idle seconds before an entry expires
            sweep_interval: Seconds between background sweeps
            max_sessions: Upper bound on tracked keys (None for unbounded);
                the least recently active key is evicted first
            clock: Time source in seconds
        """
        if max_turns < 1:
            raise ValueError("max_turns must be at least 1")
        self.max_turns = max_turns
        self.ttl = ttl
        self.sweep_interval = sweep_interval
        self.max_sessions = max_sessions
        self._clock = clock
        # Ordered by last activity, least recent first
        self._entries: "OrderedDict[str, _Entry]" = OrderedDict()
        self._lock = threading.Lock()
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, session_key: str) -> bool:
        with self._lock:
            return session_key in self._entries

    def _snapshot(self, session_key: str, entry: _Entry) -> AnonymousConversation:
        return AnonymousConversation(
            session_key=session_key,
            turns=list(entry.turns),
            last_activity=entry.last_activity,
        )

    def _ensure(self, session_key: str, now: float) -> _Entry:
        # Caller holds the lock
        entry = self._entries.get(session_key)
        if entry is None:
            if self.max_sessions is not None:
                while len(self._entries) >= self.max_sessions:
                    evicted, _ = self._entries.popitem(last=False)
                    logger.warning(f"Anonymous session cap reached, evicted {evicted}")
            entry = _Entry(now)
            self._entries[session_key] = entry
        return entry

    def get_or_create(self, session_key: str) -> AnonymousConversation:
        """Return the conversation for a key, creating an empty one if absent."""
        with self._lock:
            entry = self._ensure(session_key, self._clock())
            return self._snapshot(session_key, entry)

    def get_turns(self, session_key: str) -> List[ConversationTurn]:
        """Return the turns for a key (creating the entry if absent)."""
        return self.get_or_create(session_key).turns

    def append(
        self,
        session_key: str,
        turns: Iterable[ConversationTurn]
    ) -> AnonymousConversation:
        """
        Append turns in order, refresh activity and trim to ``max_turns``.

        The whole update happens under one lock, so a sweep or another append
        never observes a half-applied exchange.
        """
        new_turns = list(turns)
        with self._lock:
            now = self._clock()
            entry = self._ensure(session_key, now)
            entry.turns.extend(new_turns)
            if len(entry.turns) > self.max_turns:
                del entry.turns[:-self.max_turns]
            entry.last_activity = now
            self._entries.move_to_end(session_key)
            return self._snapshot(session_key, entry)

    def sweep(self, now: Optional[float] = None) -> int:
        """
        Remove entries idle for longer than the TTL.

        Returns:
            Number of entries removed
        """
        with self._lock:
            now = self._clock() if now is None else now
            expired = [
                key for key, entry in self._entries.items()
                if now - entry.last_activity > self.ttl
            ]
            for key in expired:
                del self._entries[key]
        if expired:
            logger.info(f"Swept {len(expired)} expired anonymous conversations")
        return len(expired)

    # --- lifecycle ---

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self):
        """Start the background sweeper (no-op if already running)."""
        if self.running:
            return
        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._run, name="anonymous-cache-sweeper", daemon=True
        )
        self._thread.start()
        logger.info(
            f"Anonymous cache sweeper started (ttl={self.ttl}s, interval={self.sweep_interval}s)"
        )

    def stop(self, timeout: Optional[float] = 5.0):
        """Stop the background sweeper and wait for it to exit."""
        if self._thread is None:
            return
        self._stop_event.set()
        self._thread.join(timeout)
        self._thread = None
        logger.info("Anonymous cache sweeper stopped")

    def _run(self):
        while not self._stop_event.wait(self.sweep_interval):
            try:
                self.sweep()
            except Exception:
                logger.exception("Anonymous cache sweep failed")

    def stats(self) -> Dict[str, int]:
        with self._lock:
            return {
                "sessions": len(self._entries),
                "turns": sum(len(e.turns) for e in self._entries.values()),
            }
