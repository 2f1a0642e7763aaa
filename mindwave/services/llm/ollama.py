"""
Ollama LLM provider implementation.

Talks to a locally running Ollama server through ``ollama.AsyncClient``.
JSON output uses the server's ``format="json"`` grammar constraint.
"""

import logging

import httpx
from ollama import AsyncClient, ResponseError

from mindwave.core.config import get_settings
from mindwave.services.llm.base import BaseLLM, ChatRequest

logger = logging.getLogger(__name__)


class OllamaLLM(BaseLLM):
    """Local Ollama provider (``llama3.2`` by default)."""

    def __init__(
        self,
        base_url: str | None = None,
        model: str | None = None,
        temperature: float = 0.3,
    ) -> None:
        settings = get_settings()
        self._base_url = base_url or settings.ollama_base_url
        self._model = model or settings.ollama_model
        self.model_name = self._model
        self.default_temperature = temperature
        self.max_attempts = settings.remote_max_attempts
        self._client = AsyncClient(host=self._base_url, timeout=settings.remote_timeout_seconds)

    async def _complete(self, request: ChatRequest) -> str:
        try:
            response = await self._client.chat(
                model=self._model,
                messages=request.messages(),
                format="json" if request.json_output else "",
                options={"temperature": request.temperature, "num_predict": request.max_tokens},
            )
        except (ConnectionError, httpx.ConnectError) as exc:
            logger.warning("Ollama unreachable at %s: %s", self._base_url, exc)
            raise ConnectionError(f"Failed to connect to Ollama at {self._base_url}: {exc}") from exc
        except (TimeoutError, httpx.TimeoutException) as exc:
            logger.warning("Ollama timeout (%s): %s", self._base_url, exc)
            raise TimeoutError(f"Ollama request timed out ({self._base_url}): {exc}") from exc
        except ResponseError as exc:
            # A model that is still loading answers 503; anything else is final
            if exc.status_code == 503:
                raise ConnectionError(f"Ollama busy: {exc}") from exc
            logger.error("Ollama response error: %s", exc)
            raise RuntimeError(f"Ollama error: {exc}") from exc
        except Exception as exc:
            logger.error("Unexpected Ollama error: %s", exc)
            raise RuntimeError(f"Ollama error: {exc}") from exc
        return response.message.content or ""
