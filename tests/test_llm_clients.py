"""Tests for the completion clients."""

import pytest
from unittest.mock import Mock, patch
import requests

from llm.agent_client import AgentServiceClient
from llm.anthropic_client import AnthropicClient
from llm.base_client import Message, LLMResponseError
from llm.factory import create_llm_client, LLMProvider
from llm.openai_client import OpenAIClient


def conversation():
    return [
        Message(role="system", content="You are the Edge AI assistant."),
        Message(role="user", content="hi"),
        Message(role="assistant", content="hello"),
        Message(role="user", content="what is Haba Casa?"),
    ]


class TestAgentServiceClient:
    """Test the hosted agent API client."""

    def setup_method(self):
        """Set up test fixtures."""
        self.base_url = "https://agent.example.com"
        self.client = AgentServiceClient(base_url=self.base_url + "/", tenant="edge-ai", timeout=5)

    def test_initialization_strips_trailing_slash(self):
        """Test that trailing slash is removed from base URL."""
        assert self.client.base_url == self.base_url
        assert self.client.get_provider_name() == "agent"

    @patch('requests.post')
    def test_chat_success(self, mock_post):
        """Test a successful agent call."""
        mock_response = Mock()
        mock_response.status_code = 200
        mock_response.json.return_value = {"reply": "Haba Casa is our home assistant."}
        mock_post.return_value = mock_response

        response = self.client.chat(conversation(), max_tokens=256, session_id="anon-1")

        assert response.content == "Haba Casa is our home assistant."

        call_args = mock_post.call_args
        assert call_args[0][0] == f"{self.base_url}/api/chat"
        payload = call_args[1]["json"]
        assert payload["tenant"] == "edge-ai"
        assert payload["message"] == "what is Haba Casa?"
        assert payload["sessionId"] == "anon-1"
        assert payload["system"] == "You are the Edge AI assistant."
        assert payload["history"] == [
            {"role": "user", "content": "hi"},
            {"role": "assistant", "content": "hello"},
        ]
        assert payload["maxTokens"] == 256
        assert call_args[1]["timeout"] == 5

    @patch('requests.post')
    def test_per_call_timeout(self, mock_post):
        """Test that a per-call timeout overrides the default."""
        mock_post.return_value = Mock(json=Mock(return_value={"reply": "ok"}))

        self.client.chat(conversation(), timeout=1.5)

        assert mock_post.call_args[1]["timeout"] == 1.5

    @patch('requests.post')
    def test_missing_reply_raises(self, mock_post):
        """Test that a reply-less body is a response error."""
        mock_post.return_value = Mock(json=Mock(return_value={"error": "overloaded"}))

        with pytest.raises(LLMResponseError):
            self.client.chat(conversation())

    @patch('requests.post')
    def test_http_error_propagates(self, mock_post):
        """Test that HTTP errors are raised to the caller."""
        mock_response = Mock()
        mock_response.raise_for_status.side_effect = requests.exceptions.HTTPError("502")
        mock_post.return_value = mock_response

        with pytest.raises(requests.exceptions.HTTPError):
            self.client.chat(conversation())

    @patch('requests.post')
    def test_timeout_propagates(self, mock_post):
        """Test that timeouts are raised to the caller."""
        mock_post.side_effect = requests.exceptions.Timeout("timed out")

        with pytest.raises(requests.exceptions.Timeout):
            self.client.chat(conversation())

    def test_requires_trailing_user_message(self):
        """Test that a conversation must end with the user."""
        with pytest.raises(ValueError):
            self.client.chat(conversation()[:3])


class TestOpenAIClient:
    """Test the OpenAI client with a mocked SDK."""

    def setup_method(self):
        """Set up test fixtures."""
        self.client = OpenAIClient(api_key="sk-test")
        self.client.client = Mock()

    def _completion(self, content):
        choice = Mock(finish_reason="stop")
        choice.message.content = content
        return Mock(choices=[choice], usage=None)

    def test_chat_passes_messages_and_limits(self):
        """Test the request built for the SDK."""
        self.client.client.chat.completions.create.return_value = self._completion("Hello!")

        response = self.client.chat(conversation(), temperature=0.2, max_tokens=100, timeout=3)

        assert response.content == "Hello!"
        kwargs = self.client.client.chat.completions.create.call_args.kwargs
        assert kwargs["messages"][0] == {"role": "system", "content": "You are the Edge AI assistant."}
        assert kwargs["max_completion_tokens"] == 100
        assert kwargs["temperature"] == 0.2
        assert kwargs["timeout"] == 3

    def test_empty_content_raises(self):
        """Test that an empty completion is a response error."""
        self.client.client.chat.completions.create.return_value = self._completion(None)

        with pytest.raises(LLMResponseError):
            self.client.chat(conversation())

    def test_without_key_raises(self, monkeypatch):
        """Test that an unconfigured client refuses to chat."""
        monkeypatch.delenv("OPENAI_API_KEY", raising=False)
        client = OpenAIClient()

        with pytest.raises(RuntimeError):
            client.chat(conversation())


class TestAnthropicClient:
    """Test the Anthropic client with a mocked SDK."""

    def setup_method(self):
        """Set up test fixtures."""
        self.client = AnthropicClient(api_key="sk-ant-test")
        self.client.client = Mock()

    def _message(self, *texts):
        blocks = [Mock(type="text", text=t) for t in texts]
        return Mock(content=blocks, usage=None, stop_reason="end_turn")

    def test_system_prompt_goes_out_of_band(self):
        """Test that system messages become the system parameter."""
        self.client.client.messages.create.return_value = self._message("Hi ", "there")

        response = self.client.chat(conversation(), max_tokens=64)

        assert response.content == "Hi there"
        kwargs = self.client.client.messages.create.call_args.kwargs
        assert kwargs["system"] == "You are the Edge AI assistant."
        assert [m["role"] for m in kwargs["messages"]] == ["user", "assistant", "user"]
        assert kwargs["max_tokens"] == 64
        assert "timeout" not in kwargs

    def test_empty_content_raises(self):
        """Test that a reply without text blocks is a response error."""
        self.client.client.messages.create.return_value = self._message()

        with pytest.raises(LLMResponseError):
            self.client.chat(conversation())


class TestFactory:
    """Test client creation."""

    def test_agent_provider(self):
        """Test building the agent client."""
        client = create_llm_client(LLMProvider.AGENT, agent_url="https://agent.example.com")

        assert isinstance(client, AgentServiceClient)

    def test_agent_provider_requires_url(self):
        """Test that the agent provider needs a base URL."""
        with pytest.raises(ValueError):
            create_llm_client(LLMProvider.AGENT)

    def test_openai_provider(self):
        """Test building the OpenAI client."""
        client = create_llm_client(LLMProvider.OPENAI, api_key="sk-test", model="gpt-4o")

        assert isinstance(client, OpenAIClient)
        assert client.get_model_name() == "gpt-4o"
