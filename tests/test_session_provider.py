"""Tests for session lookups."""

from datetime import datetime, timedelta, timezone
from unittest.mock import Mock, patch

import pytest
import requests

from accounts.sqlite_store import SQLiteAccountStore
from auth.session_provider import (
    SessionCredentials,
    SQLiteSessionProvider,
    RemoteSessionProvider,
    SESSION_COOKIE,
)


class TestSessionCredentials:
    """Test token extraction."""

    def test_bearer_wins(self):
        """Test that the bearer token is preferred over the cookie."""
        credentials = SessionCredentials(
            bearer_token="abc", cookies={SESSION_COOKIE: "xyz.sig"}
        )
        assert credentials.token == "abc"

    def test_signed_cookie(self):
        """Test that the cookie signature is dropped."""
        credentials = SessionCredentials(cookies={SESSION_COOKIE: "xyz.sig"})
        assert credentials.token == "xyz"

    def test_empty(self):
        """Test empty credentials."""
        assert SessionCredentials().is_empty() is True
        assert SessionCredentials().token is None


class TestSQLiteSessionProvider:
    """Test session lookups in the local session table."""

    @pytest.fixture(autouse=True)
    def setup(self, tmp_path):
        """Set up test fixtures."""
        self.store = SQLiteAccountStore(db_path=str(tmp_path / "auth.db"))
        self.store.create_user("a@x.com", "Ada", user_id="42")
        self.provider = SQLiteSessionProvider(self.store)

    def test_valid_session(self):
        """Test that a live token resolves to its user."""
        self.store.create_session("42", "tok", datetime.now(timezone.utc) + timedelta(hours=1))

        user = self.provider.get_session(SessionCredentials(bearer_token="tok"))

        assert user.id == "42"
        assert user.email == "a@x.com"

    def test_expired_session(self):
        """Test that an expired token resolves to nobody."""
        self.store.create_session("42", "tok", datetime.now(timezone.utc) - timedelta(seconds=1))

        assert self.provider.get_session(SessionCredentials(bearer_token="tok")) is None

    def test_unknown_token(self):
        """Test that an unknown token resolves to nobody."""
        assert self.provider.get_session(SessionCredentials(bearer_token="nope")) is None
        assert self.provider.get_session(SessionCredentials()) is None

    def test_naive_expiry_is_read_as_utc(self):
        """Test that naive and aware expiry times compare on the same clock."""
        naive_future = datetime.now(timezone.utc).replace(tzinfo=None) + timedelta(minutes=5)
        self.store.create_session("42", "naive", naive_future)

        assert self.provider.get_session(SessionCredentials(bearer_token="naive")).id == "42"


class TestRemoteSessionProvider:
    """Test the auth service client."""

    def setup_method(self):
        """Set up test fixtures."""
        self.provider = RemoteSessionProvider("https://auth.example.com/", timeout=2)
        self.credentials = SessionCredentials(
            cookies={SESSION_COOKIE: "xyz.sig"},
            cookie_header=f"{SESSION_COOKIE}=xyz.sig",
        )

    @patch('requests.get')
    def test_session_found(self, mock_get):
        """Test a valid session response."""
        mock_response = Mock()
        mock_response.status_code = 200
        mock_response.json.return_value = {
            "session": {"id": "s1"},
            "user": {"id": 42, "email": "a@x.com", "name": "Ada"},
        }
        mock_get.return_value = mock_response

        user = self.provider.get_session(self.credentials)

        assert user.id == "42"
        assert user.email == "a@x.com"
        call_args = mock_get.call_args
        assert call_args[0][0] == "https://auth.example.com/api/auth/get-session"
        assert call_args[1]["headers"]["Cookie"] == f"{SESSION_COOKIE}=xyz.sig"
        assert call_args[1]["timeout"] == 2

    @patch('requests.get')
    def test_no_session(self, mock_get):
        """Test that a null body means no session."""
        mock_get.return_value = Mock(status_code=200, json=Mock(return_value=None))

        assert self.provider.get_session(self.credentials) is None

    @patch('requests.get')
    def test_unauthorized(self, mock_get):
        """Test that 401 means no session."""
        mock_get.return_value = Mock(status_code=401)

        assert self.provider.get_session(self.credentials) is None

    @patch('requests.get')
    def test_server_error_raises(self, mock_get):
        """Test that an unhealthy auth service is an error, not anonymity."""
        mock_response = Mock(status_code=503)
        mock_response.raise_for_status.side_effect = requests.exceptions.HTTPError("503")
        mock_get.return_value = mock_response

        with pytest.raises(requests.exceptions.HTTPError):
            self.provider.get_session(self.credentials)

    @patch('requests.get')
    def test_empty_credentials_skip_request(self, mock_get):
        """Test that no request is made without credentials."""
        assert self.provider.get_session(SessionCredentials()) is None
        mock_get.assert_not_called()
