"""
Claude LLM provider implementation.

Uses the Anthropic Python SDK (``anthropic.AsyncAnthropic``). The Messages
API has no JSON response switch, so JSON output is requested by prefilling
the assistant turn with ``{``; the reply continues that object and the
prefix is put back before returning.
"""

import asyncio
import logging

from anthropic import (
    APIConnectionError,
    APITimeoutError,
    AsyncAnthropic,
    InternalServerError,
    RateLimitError,
)

from mindwave.core.config import get_settings
from mindwave.services.llm.base import BaseLLM, ChatRequest

logger = logging.getLogger(__name__)

JSON_PREFILL = "{"


class ClaudeLLM(BaseLLM):
    """Claude API provider; concurrent calls are capped by a semaphore."""

    def __init__(
        self,
        api_key: str | None = None,
        model: str | None = None,
        max_tokens: int = 1024,
        temperature: float = 0.3,
        max_concurrent: int = 5,
    ) -> None:
        settings = get_settings()
        self._model = model or settings.claude_model
        self.model_name = self._model
        self.default_max_tokens = max_tokens
        self.default_temperature = temperature
        self.max_attempts = settings.remote_max_attempts
        self._semaphore = asyncio.Semaphore(max_concurrent)
        self._client = AsyncAnthropic(
            api_key=api_key or settings.claude_api_key,
            timeout=settings.remote_timeout_seconds,
            max_retries=0,
        )

    async def _complete(self, request: ChatRequest) -> str:
        messages = [{"role": "user", "content": request.prompt}]
        if request.json_output:
            messages.append({"role": "assistant", "content": JSON_PREFILL})

        params: dict = {
            "model": self._model,
            "max_tokens": request.max_tokens,
            "temperature": min(request.temperature, 1.0),
            "messages": messages,
        }
        if request.system:
            params["system"] = request.system

        async with self._semaphore:
            try:
                response = await self._client.messages.create(**params)
            except APITimeoutError as exc:
                logger.warning("Claude API timeout: %s", exc)
                raise TimeoutError(f"Claude API request timed out: {exc}") from exc
            except (APIConnectionError, RateLimitError, InternalServerError) as exc:
                logger.warning("Claude API unavailable: %s", exc)
                raise ConnectionError(f"Claude API unavailable: {exc}") from exc
            except Exception as exc:
                logger.error("Unexpected Claude API error: %s", exc)
                raise RuntimeError(f"Claude API error: {exc}") from exc

        text = "".join(getattr(block, "text", "") for block in response.content)
        if request.json_output:
            return JSON_PREFILL + text
        return text
