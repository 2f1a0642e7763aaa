"""Unit tests for ClaudeLLM provider."""

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from anthropic import APIConnectionError, APITimeoutError, RateLimitError

from mindwave.services.llm.claude import ClaudeLLM

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _make_message_response(*texts: str):
    """Build a minimal object that looks like ``anthropic.types.Message``."""
    return SimpleNamespace(content=[SimpleNamespace(text=t) for t in texts])


def _mock_settings(**overrides):
    """Return a fake Settings object with sensible defaults."""
    defaults = {
        "claude_api_key": "sk-test-key",
        "claude_model": "claude-sonnet-4-20250514",
        "remote_timeout_seconds": 60.0,
        "remote_max_attempts": 1,
    }
    defaults.update(overrides)
    return SimpleNamespace(**defaults)


def _build(mock_client, **settings_overrides) -> ClaudeLLM:
    settings = _mock_settings(**settings_overrides)
    with patch("mindwave.services.llm.claude.get_settings", return_value=settings):
        with patch("mindwave.services.llm.claude.AsyncAnthropic", return_value=mock_client):
            return ClaudeLLM()


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def mock_client():
    """Return an ``AsyncMock`` mimicking ``AsyncAnthropic``."""
    client = AsyncMock()
    client.messages.create = AsyncMock(return_value=_make_message_response('{"ok": true}'))
    return client


@pytest.fixture
def llm(mock_client):
    return _build(mock_client)


# ---------------------------------------------------------------------------
# Construction
# ---------------------------------------------------------------------------


class TestClaudeLLMInit:
    def test_client_built_without_sdk_retries(self):
        with patch("mindwave.services.llm.claude.get_settings", return_value=_mock_settings()):
            with patch("mindwave.services.llm.claude.AsyncAnthropic") as mock_cls:
                llm = ClaudeLLM()

        mock_cls.assert_called_once_with(api_key="sk-test-key", timeout=60.0, max_retries=0)
        assert llm.model_name == "claude-sonnet-4-20250514"
        assert llm.max_attempts == 1

    def test_explicit_args_override_settings(self):
        with patch("mindwave.services.llm.claude.get_settings", return_value=_mock_settings()):
            with patch("mindwave.services.llm.claude.AsyncAnthropic") as mock_cls:
                llm = ClaudeLLM(api_key="sk-custom", model="claude-opus-4-1", max_tokens=2048, temperature=0.5)

        assert mock_cls.call_args.kwargs["api_key"] == "sk-custom"
        assert llm.model_name == "claude-opus-4-1"
        assert llm.default_max_tokens == 2048
        assert llm.default_temperature == 0.5


# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------


class TestGenerate:
    async def test_plain_text(self, llm, mock_client):
        mock_client.messages.create.return_value = _make_message_response("Olá ", "mundo")

        assert await llm.generate("Say hello") == "Olá mundo"

        kwargs = mock_client.messages.create.call_args.kwargs
        assert kwargs["messages"] == [{"role": "user", "content": "Say hello"}]
        assert kwargs["temperature"] == 0.3
        assert kwargs["max_tokens"] == 1024
        assert "system" not in kwargs

    async def test_system_is_top_level(self, llm, mock_client):
        await llm.generate("prompt", system="Be precise", temperature=0.1, max_tokens=512)

        kwargs = mock_client.messages.create.call_args.kwargs
        assert kwargs["system"] == "Be precise"
        assert kwargs["temperature"] == 0.1
        assert kwargs["max_tokens"] == 512

    async def test_json_output_prefills_assistant_turn(self, llm, mock_client):
        mock_client.messages.create.return_value = _make_message_response('"mood_score": 70}')

        result = await llm.generate("prompt", json_output=True)

        assert result == '{"mood_score": 70}'
        messages = mock_client.messages.create.call_args.kwargs["messages"]
        assert messages[-1] == {"role": "assistant", "content": "{"}

    async def test_temperature_capped_at_api_maximum(self, llm, mock_client):
        await llm.generate("prompt", temperature=1.6)

        assert mock_client.messages.create.call_args.kwargs["temperature"] == 1.0


# ---------------------------------------------------------------------------
# Errors and retry
# ---------------------------------------------------------------------------


class TestErrorHandling:
    async def test_connection_error(self, llm, mock_client):
        mock_client.messages.create.side_effect = APIConnectionError(request=MagicMock())

        with pytest.raises(ConnectionError, match="unavailable"):
            await llm.generate("prompt")

    async def test_timeout_error(self, llm, mock_client):
        mock_client.messages.create.side_effect = APITimeoutError(request=MagicMock())

        with pytest.raises(TimeoutError, match="timed out"):
            await llm.generate("prompt")

    async def test_rate_limit_is_transient(self, llm, mock_client):
        mock_client.messages.create.side_effect = RateLimitError(
            message="Rate limit exceeded",
            response=MagicMock(status_code=429, headers={}),
            body={"error": {"message": "rate limited"}},
        )

        with pytest.raises(ConnectionError):
            await llm.generate("prompt")

    async def test_unexpected_error(self, llm, mock_client):
        mock_client.messages.create.side_effect = ValueError("something weird")

        with pytest.raises(RuntimeError, match="Claude API error"):
            await llm.generate("prompt")


class TestRetry:
    async def test_transient_failure_is_retried_once(self, mock_client):
        llm = _build(mock_client, remote_max_attempts=2)
        mock_client.messages.create.side_effect = [
            APIConnectionError(request=MagicMock()),
            _make_message_response("recovered"),
        ]

        assert await llm.generate("prompt") == "recovered"
        assert mock_client.messages.create.await_count == 2

    async def test_non_transient_failure_is_not_retried(self, mock_client):
        llm = _build(mock_client, remote_max_attempts=3)
        mock_client.messages.create.side_effect = ValueError("bad request")

        with pytest.raises(RuntimeError):
            await llm.generate("prompt")
        assert mock_client.messages.create.await_count == 1
