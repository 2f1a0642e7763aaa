"""
OpenAI chat-completions LLM provider.

Uses the OpenAI Python SDK (``openai.AsyncOpenAI``). The SDK's own retry
loop is disabled so the shared bounded retry policy is the only one in play.
JSON output maps to ``response_format={"type": "json_object"}``.
"""

import logging

from openai import (
    APIConnectionError,
    APITimeoutError,
    AsyncOpenAI,
    InternalServerError,
    RateLimitError,
)

from mindwave.core.config import get_settings
from mindwave.services.llm.base import BaseLLM, ChatRequest

logger = logging.getLogger(__name__)


class OpenAILLM(BaseLLM):
    """Chat-completions provider (``gpt-4o-mini`` by default)."""

    def __init__(
        self,
        api_key: str | None = None,
        model: str | None = None,
        temperature: float = 0.3,
        base_url: str | None = None,
    ) -> None:
        settings = get_settings()
        self._model = model or settings.openai_llm_model
        self.model_name = self._model
        self.default_temperature = temperature
        self.max_attempts = settings.remote_max_attempts
        self._client = AsyncOpenAI(
            api_key=api_key or settings.openai_api_key,
            base_url=base_url or settings.openai_base_url or None,
            timeout=settings.remote_timeout_seconds,
            max_retries=0,
        )

    async def _complete(self, request: ChatRequest) -> str:
        params: dict = {
            "model": self._model,
            "messages": request.messages(),
            "temperature": request.temperature,
            "max_tokens": request.max_tokens,
        }
        if request.json_output:
            params["response_format"] = {"type": "json_object"}

        try:
            response = await self._client.chat.completions.create(**params)
        except APITimeoutError as exc:
            logger.warning("OpenAI chat timeout: %s", exc)
            raise TimeoutError(f"OpenAI request timed out: {exc}") from exc
        except (APIConnectionError, RateLimitError, InternalServerError) as exc:
            logger.warning("OpenAI temporarily unavailable: %s", exc)
            raise ConnectionError(f"OpenAI temporarily unavailable: {exc}") from exc
        except Exception as exc:
            logger.error("Unexpected OpenAI chat error: %s", exc)
            raise RuntimeError(f"OpenAI chat error: {exc}") from exc
        return response.choices[0].message.content or ""
