"""SQLite-based log of conversation messages for signed-in users."""

import sqlite3
import logging
import uuid
from pathlib import Path
from datetime import datetime, timezone
from typing import Optional, List, Tuple

from .models import PersistedMessage, TurnRole

logger = logging.getLogger(__name__)


class SQLiteMessageLog:
    """Append-only message log in the ``conversation_messages`` table."""

    def __init__(self, db_path: str = "data/edge_ai.db"):
        """
        Initialize SQLite message log.

        Args:
            db_path: Path to SQLite database file
        """
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_db()

    def _get_connection(self) -> sqlite3.Connection:
        """Get database connection with row factory."""
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def _init_db(self):
        """Initialize database schema."""
        conn = self._get_connection()
        cursor = conn.cursor()

        cursor.execute("""
            CREATE TABLE IF NOT EXISTS conversation_messages (
                id TEXT PRIMARY KEY,
                userId TEXT REFERENCES "user"(id) ON DELETE CASCADE,
                sessionId TEXT NOT NULL,
                role TEXT NOT NULL CHECK(role IN ('user', 'assistant')),
                content TEXT NOT NULL,
                site TEXT NOT NULL DEFAULT 'edge-ai',
                createdAt TIMESTAMP NOT NULL
            )
        """)

        cursor.execute(
            "CREATE INDEX IF NOT EXISTS idx_conv_user ON conversation_messages(userId)"
        )
        cursor.execute(
            "CREATE INDEX IF NOT EXISTS idx_conv_session ON conversation_messages(sessionId)"
        )

        conn.commit()
        conn.close()
        logger.info(f"Message log initialized at {self.db_path}")

    def _row_to_message(self, row: sqlite3.Row) -> PersistedMessage:
        return PersistedMessage(
            id=row["id"],
            user_id=row["userId"],
            session_id=row["sessionId"],
            role=row["role"],
            content=row["content"],
            site=row["site"],
            created_at=datetime.fromisoformat(row["createdAt"]),
        )

    def add_messages(
        self,
        user_id: Optional[str],
        session_id: str,
        turns: List[Tuple[str, str]],
        site: str = "edge-ai"
    ) -> List[PersistedMessage]:
        """
        Append messages in one transaction, in the order given.

        Args:
            user_id: Owner of the messages (None for unattributed rows)
            session_id: Conversation key
            turns: (role, content) pairs
            site: Site the exchange happened on

        Returns:
            The stored messages
        """
        stored = []
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            for role, content in turns:
                message = PersistedMessage(
                    id=str(uuid.uuid4()),
                    user_id=user_id,
                    session_id=session_id,
                    role=TurnRole(role),
                    content=content,
                    site=site,
                    created_at=datetime.now(timezone.utc),
                )
                cursor.execute(
                    """
                    INSERT INTO conversation_messages (id, userId, sessionId, role, content, site, createdAt)
                    VALUES (?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        message.id,
                        message.user_id,
                        message.session_id,
                        message.role.value,
                        message.content,
                        message.site,
                        message.created_at.isoformat(timespec="microseconds"),
                    )
                )
                stored.append(message)
            conn.commit()
        finally:
            conn.close()

        return stored

    def add_message(
        self,
        user_id: Optional[str],
        session_id: str,
        role: str,
        content: str,
        site: str = "edge-ai"
    ) -> PersistedMessage:
        """Append a single message."""
        return self.add_messages(user_id, session_id, [(role, content)], site)[0]

    def get_recent_messages(
        self,
        user_id: str,
        limit: int = 20
    ) -> List[PersistedMessage]:
        """
        Get a user's most recent messages, oldest first.

        Args:
            user_id: User ID
            limit: Maximum number of messages to return

        Returns:
            List of PersistedMessage in chronological order
        """
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(
                """
                SELECT id, userId, sessionId, role, content, site, createdAt
                FROM conversation_messages
                WHERE userId = ?
                ORDER BY createdAt DESC, rowid DESC
                LIMIT ?
                """,
                (user_id, limit)
            )
            rows = cursor.fetchall()
        finally:
            conn.close()

        return [self._row_to_message(row) for row in reversed(rows)]

    def count_messages(self, user_id: Optional[str] = None) -> int:
        """Count stored messages, optionally for one user."""
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            if user_id is None:
                cursor.execute("SELECT COUNT(*) FROM conversation_messages")
            else:
                cursor.execute(
                    "SELECT COUNT(*) FROM conversation_messages WHERE userId = ?",
                    (user_id,)
                )
            result = cursor.fetchone()
        finally:
            conn.close()

        return result[0] if result else 0
