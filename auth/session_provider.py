"""Session lookups against the authentication service."""

import logging
from abc import ABC, abstractmethod
from typing import Optional, Dict

import requests
from pydantic import BaseModel, Field

from accounts.sqlite_store import SQLiteAccountStore

logger = logging.getLogger(__name__)

SESSION_COOKIE = "better-auth.session_token"


class SessionCredentials(BaseModel):
    """Whatever the caller presented to prove who they are."""
    bearer_token: Optional[str] = None
    cookies: Dict[str, str] = Field(default_factory=dict)
    cookie_header: Optional[str] = None

    @property
    def token(self) -> Optional[str]:
        """Session token from the bearer header or the session cookie.

        The cookie value is signed as ``<token>.<signature>``; only the token
        part identifies the session.
        """
        if self.bearer_token:
            return self.bearer_token
        raw = self.cookies.get(SESSION_COOKIE)
        if raw:
            return raw.split(".", 1)[0]
        return None

    def is_empty(self) -> bool:
        return not (self.bearer_token or self.cookies or self.cookie_header)


class SessionUser(BaseModel):
    """Identity attached to a valid session."""
    id: str
    email: str
    name: Optional[str] = None


class BaseSessionProvider(ABC):
    """Validates credentials and returns the session's user."""

    @abstractmethod
    def get_session(self, credentials: SessionCredentials) -> Optional[SessionUser]:
        """
        Look up the session for the given credentials.

        Returns:
            SessionUser, or None when there is no valid session

        Raises:
            Exception: When the session store cannot be reached
        """
        pass


class SQLiteSessionProvider(BaseSessionProvider):
    """Reads the ``session`` table shared with the auth service."""

    def __init__(self, store: SQLiteAccountStore):
        self.store = store

    def get_session(self, credentials: SessionCredentials) -> Optional[SessionUser]:
        token = credentials.token
        if not token:
            return None
        user = self.store.find_session_user(token)
        if user is None:
            return None
        return SessionUser(id=user.id, email=user.email, name=user.name)


class RemoteSessionProvider(BaseSessionProvider):
    """Asks the auth service's ``/api/auth/get-session`` endpoint."""

    def __init__(self, base_url: str, timeout: float = 5.0):
        """
        Initialize remote session provider.

        Args:
            base_url: Auth service origin
            timeout: Request timeout in seconds
        """
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout

    def _get_headers(self, credentials: SessionCredentials) -> dict:
        headers = {"Accept": "application/json"}
        if credentials.cookie_header:
            headers["Cookie"] = credentials.cookie_header
        elif credentials.cookies:
            headers["Cookie"] = "; ".join(f"{k}={v}" for k, v in credentials.cookies.items())
        if credentials.bearer_token:
            headers["Authorization"] = f"Bearer {credentials.bearer_token}"
        return headers

    def get_session(self, credentials: SessionCredentials) -> Optional[SessionUser]:
        if credentials.is_empty():
            return None

        response = requests.get(
            f"{self.base_url}/api/auth/get-session",
            headers=self._get_headers(credentials),
            timeout=self.timeout
        )

        if response.status_code in (401, 403, 404):
            return None
        response.raise_for_status()

        data = response.json()
        if not isinstance(data, dict) or not isinstance(data.get("user"), dict):
            return None

        user = data["user"]
        if not user.get("id"):
            logger.warning("Auth service returned a session without a user id")
            return None

        return SessionUser(id=str(user["id"]), email=user.get("email") or "", name=user.get("name"))
