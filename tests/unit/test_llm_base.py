"""Tests for the shared BaseLLM call path (defaults, retry, request shape)."""

import pytest

from mindwave.services.llm import create_llm
from mindwave.services.llm.base import BaseLLM, ChatRequest


class ScriptedLLM(BaseLLM):
    """Replays a list of outcomes; exceptions are raised, strings returned."""

    default_temperature = 0.4
    default_max_tokens = 256

    def __init__(self, outcomes, max_attempts=1):
        self.outcomes = list(outcomes)
        self.max_attempts = max_attempts
        self.requests: list[ChatRequest] = []

    async def _complete(self, request):
        self.requests.append(request)
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


class TestChatRequest:
    def test_messages_with_system(self):
        request = ChatRequest(prompt="oi", system="sys")
        assert request.messages() == [
            {"role": "system", "content": "sys"},
            {"role": "user", "content": "oi"},
        ]

    def test_messages_without_system(self):
        assert ChatRequest(prompt="oi").messages() == [{"role": "user", "content": "oi"}]


class TestGenerate:
    async def test_provider_defaults_fill_missing_options(self):
        llm = ScriptedLLM(["{}"])

        await llm.generate("prompt")

        request = llm.requests[0]
        assert request.temperature == 0.4
        assert request.max_tokens == 256
        assert request.json_output is False

    async def test_explicit_zero_temperature_is_kept(self):
        llm = ScriptedLLM(["{}"])

        await llm.generate("prompt", temperature=0.0, json_output=True)

        assert llm.requests[0].temperature == 0.0
        assert llm.requests[0].json_output is True

    @pytest.mark.parametrize("error", [ConnectionError("reset"), TimeoutError("slow")])
    async def test_transient_errors_retried(self, error):
        llm = ScriptedLLM([error, "ok"], max_attempts=2)

        assert await llm.generate("prompt") == "ok"
        assert len(llm.requests) == 2

    async def test_attempts_are_bounded(self):
        llm = ScriptedLLM([ConnectionError("a"), ConnectionError("b"), "never"], max_attempts=2)

        with pytest.raises(ConnectionError):
            await llm.generate("prompt")
        assert len(llm.requests) == 2

    async def test_other_errors_not_retried(self):
        llm = ScriptedLLM([RuntimeError("bad key"), "never"], max_attempts=3)

        with pytest.raises(RuntimeError):
            await llm.generate("prompt")
        assert len(llm.requests) == 1


def test_unknown_provider():
    with pytest.raises(ValueError, match="Unknown LLM provider"):
        create_llm("gemini")
