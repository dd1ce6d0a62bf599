"""Tests for the HTTP API."""

from datetime import datetime, timedelta, timezone
from unittest.mock import Mock, patch

import pytest
from fastapi.testclient import TestClient

from api.main import create_app
from chat.relay import EMPTY_MESSAGE_REPLY, ERROR_REPLY, FALLBACK_REPLY
from config.settings import Settings
from llm.base_client import BaseLLMClient, LLMResponse
from orchestrator import EdgeAssistant


class TestChatAPI:
    """Test POST /api/chat and GET /api/chat/history."""

    @pytest.fixture(autouse=True)
    def setup(self, tmp_path):
        """Set up test fixtures."""
        self.db_path = str(tmp_path / "api.db")
        self.llm = Mock(spec=BaseLLMClient)
        self.llm.chat.return_value = LLMResponse(content="Happy to help.")
        self.llm.get_provider_name.return_value = "mock"
        self.client = self._client()

    def _client(self, debug: bool = False, **kwargs) -> TestClient:
        self.assistant = EdgeAssistant(
            Settings(db_path=self.db_path, debug=debug), llm_client=self.llm
        )
        return TestClient(create_app(assistant=self.assistant), **kwargs)

    def _sign_in(self, user_id="42", email="a@x.com") -> str:
        store = self.assistant.account_store
        store.create_user(email, "Ada", user_id=user_id)
        token = f"token-{user_id}"
        store.create_session(user_id, token, datetime.now(timezone.utc) + timedelta(hours=1))
        return token

    def test_health(self):
        """Test health check endpoint."""
        response = self.client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "ok"}

    def test_anonymous_chat(self):
        """Test an anonymous message with a client session key."""
        response = self.client.post(
            "/api/chat", json={"message": "What is Edge AI?", "sessionId": "anon-1"}
        )

        assert response.status_code == 200
        assert response.json() == {"reply": "Happy to help."}
        assert len(self.assistant.cache.get_turns("anon-1")) == 2

    @pytest.mark.parametrize("body", [{"message": ""}, {"message": "   "}, {}])
    def test_empty_message(self, body):
        """Test that blank messages get a 400 with a reply."""
        response = self.client.post("/api/chat", json=body)

        assert response.status_code == 400
        assert response.json() == {"reply": EMPTY_MESSAGE_REPLY}
        self.llm.chat.assert_not_called()

    def test_malformed_body(self):
        """Test that an unparseable body still gets a reply field."""
        response = self.client.post(
            "/api/chat", content="not json", headers={"Content-Type": "application/json"}
        )

        assert response.status_code == 400
        assert response.json() == {"reply": EMPTY_MESSAGE_REPLY}

    def test_model_failure_is_a_200_apology(self):
        """Test the fallback reply over HTTP."""
        self.llm.chat.side_effect = TimeoutError("upstream timed out")

        response = self.client.post("/api/chat", json={"message": "hi"})

        assert response.status_code == 200
        assert response.json() == {"reply": FALLBACK_REPLY}

    def test_bearer_session_persists(self):
        """Test that a signed-in user's exchange is written to the log."""
        token = self._sign_in()

        response = self.client.post(
            "/api/chat",
            json={"message": "hello", "site": "haba-casa"},
            headers={"Authorization": f"Bearer {token}"},
        )

        assert response.status_code == 200
        assert "_debug" not in response.json()
        assert self.assistant.message_log.count_messages("42") == 2

    def test_cookie_session(self):
        """Test that the signed session cookie identifies the user."""
        token = self._sign_in()

        response = self.client.post(
            "/api/chat",
            json={"message": "hello"},
            headers={"Cookie": f"better-auth.session_token={token}.signature"},
        )

        assert response.status_code == 200
        assert self.assistant.message_log.count_messages("42") == 2

    def test_debug_payload(self):
        """Test that development mode adds _debug for signed-in users."""
        client = self._client(debug=True)
        token = self._sign_in()

        response = client.post(
            "/api/chat", json={"message": "hello"}, headers={"Authorization": f"Bearer {token}"}
        )

        body = response.json()
        assert body["reply"] == "Happy to help."
        assert body["_debug"]["sessionKey"] == "user-42"
        assert body["_debug"]["provider"] == "mock"

    def test_unexpected_error_still_replies(self):
        """Test the 500 path keeps the reply field."""
        client = self._client(raise_server_exceptions=False)

        with patch.object(self.assistant.relay, "handle", side_effect=RuntimeError("boom")):
            response = client.post("/api/chat", json={"message": "hello"})

        assert response.status_code == 500
        assert response.json() == {"reply": ERROR_REPLY}

    def test_history_requires_session(self):
        """Test that history is only served to signed-in users."""
        response = self.client.get("/api/chat/history")

        assert response.status_code == 401
        assert response.json() == {"error": "Unauthorized"}

    def test_history(self):
        """Test the persisted history listing."""
        token = self._sign_in()
        headers = {"Authorization": f"Bearer {token}"}
        self.client.post("/api/chat", json={"message": "hello"}, headers=headers)

        response = self.client.get("/api/chat/history", headers=headers)

        assert response.status_code == 200
        assert [(m["role"], m["content"]) for m in response.json()] == [
            ("user", "hello"),
            ("assistant", "Happy to help."),
        ]


class TestAdminAPI:
    """Test the admin endpoints."""

    @pytest.fixture(autouse=True)
    def setup(self, tmp_path):
        """Set up test fixtures."""
        self.assistant = EdgeAssistant(
            Settings(db_path=str(tmp_path / "admin.db")), llm_client=Mock(spec=BaseLLMClient)
        )
        self.store = self.assistant.account_store
        self.store.seed_products()
        self.client = TestClient(create_app(assistant=self.assistant))

    def _headers(self, user_id: str, email: str) -> dict:
        self.store.create_user(email, None, user_id=user_id)
        token = f"token-{user_id}"
        self.store.create_session(user_id, token, datetime.now(timezone.utc) + timedelta(hours=1))
        return {"Authorization": f"Bearer {token}"}

    @pytest.mark.parametrize("path", ["users", "organizations", "products", "subscriptions"])
    def test_requires_session(self, path):
        """Test that anonymous callers get 401."""
        response = self.client.get(f"/api/admin/{path}")

        assert response.status_code == 401
        assert response.json() == {"error": "Unauthorized"}

    def test_non_admin_is_forbidden(self):
        """Test that regular users get 403."""
        headers = self._headers("42", "a@x.com")

        response = self.client.get("/api/admin/users", headers=headers)

        assert response.status_code == 403
        assert response.json() == {"error": "Forbidden"}

    def test_list_users_with_roles(self):
        """Test the user listing and its email-based role."""
        headers = self._headers("7", "admin@edge-ai.space")
        self.store.create_user("a@x.com", "Ada", user_id="42")

        response = self.client.get("/api/admin/users", headers=headers)

        assert response.status_code == 200
        roles = {u["email"]: u["role"] for u in response.json()}
        assert roles == {"admin@edge-ai.space": "admin", "a@x.com": "user"}

    def test_list_organizations_counts_members(self):
        """Test member counts on the organization listing."""
        headers = self._headers("7", "stephen@edge-ai.space")
        org = self.store.create_organization("Acme", slug="acme")
        self.store.add_member(org, "7", role="owner")

        response = self.client.get("/api/admin/organizations", headers=headers)

        assert response.status_code == 200
        assert response.json()[0]["name"] == "Acme"
        assert response.json()[0]["memberCount"] == 1

    def test_list_subscriptions(self):
        """Test the subscription listing joins names."""
        headers = self._headers("1", "owner@x.com")
        org = self.store.create_organization("Acme", slug="acme")
        self.store.create_subscription(org, "prod_haba_casa", plan="pro")

        response = self.client.get("/api/admin/subscriptions", headers=headers)

        assert response.status_code == 200
        subscription = response.json()[0]
        assert subscription["organizationName"] == "Acme"
        assert subscription["productName"] == "Haba Casa"
        assert subscription["plan"] == "pro"

    def test_toggle_product(self):
        """Test disabling a product."""
        headers = self._headers("7", "admin@edge-ai.space")

        response = self.client.patch(
            "/api/admin/products",
            json={"productId": "prod_haba_casa", "active": False},
            headers=headers,
        )

        assert response.status_code == 200
        assert response.json() == {"success": True}
        products = {p["id"]: p["active"] for p in self.client.get(
            "/api/admin/products", headers=headers
        ).json()}
        assert products["prod_haba_casa"] is False
        assert products["prod_ai_agency"] is True

    @pytest.mark.parametrize("body", [
        {"productId": "prod_haba_casa"},
        {"productId": "", "active": True},
        {"productId": "prod_haba_casa", "active": "yes"},
        {},
    ])
    def test_toggle_product_invalid_body(self, body):
        """Test validation of the product update body."""
        headers = self._headers("7", "admin@edge-ai.space")

        response = self.client.patch("/api/admin/products", json=body, headers=headers)

        assert response.status_code == 400
        assert response.json() == {"error": "Invalid request data"}

    def test_store_error_is_500(self):
        """Test that store failures are reported without details."""
        headers = self._headers("7", "admin@edge-ai.space")

        with patch.object(self.store, "list_products", side_effect=RuntimeError("locked")):
            response = self.client.get("/api/admin/products", headers=headers)

        assert response.status_code == 500
        assert response.json() == {"error": "Internal Server Error"}
