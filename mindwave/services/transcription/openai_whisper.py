"""Hosted Whisper transcription through the OpenAI audio API."""

import logging

from openai import (
    APIConnectionError,
    APITimeoutError,
    AsyncOpenAI,
    InternalServerError,
    RateLimitError,
)

from mindwave.core.config import get_settings
from mindwave.core.exceptions import TranscriptionServiceError
from mindwave.core.models import TranscriptionResult
from mindwave.core.retry import transient_retry
from mindwave.services.transcription.base import BaseSTT

logger = logging.getLogger(__name__)


class OpenAIWhisperSTT(BaseSTT):
    """Speech-to-text provider backed by ``/v1/audio/transcriptions``.

    Transient failures (timeouts, connection drops, 429 and 5xx responses)
    are retried up to ``remote_max_attempts`` times; anything else fails
    the request immediately.
    """

    def __init__(
        self,
        api_key: str | None = None,
        model: str | None = None,
        base_url: str | None = None,
    ) -> None:
        settings = get_settings()
        self._api_key = api_key or settings.openai_api_key
        self._model = model or settings.openai_stt_model
        self._max_attempts = settings.remote_max_attempts
        self._client = AsyncOpenAI(
            api_key=self._api_key,
            base_url=base_url or settings.openai_base_url or None,
            timeout=settings.remote_timeout_seconds,
            max_retries=0,
        )

    async def _call_api(
        self,
        audio: bytes,
        filename: str,
        mime_type: str,
        language: str | None,
    ) -> str:
        kwargs: dict = {"model": self._model, "file": (filename, audio, mime_type)}
        if language:
            kwargs["language"] = language
        try:
            response = await self._client.audio.transcriptions.create(**kwargs)
            return response.text
        except APITimeoutError as exc:
            logger.warning("Whisper API timeout: %s", exc)
            raise TimeoutError(f"Whisper API request timed out: {exc}") from exc
        except APIConnectionError as exc:
            logger.warning("Whisper API connection error: %s", exc)
            raise ConnectionError(f"Failed to connect to Whisper API: {exc}") from exc
        except (RateLimitError, InternalServerError) as exc:
            logger.warning("Whisper API transient error: %s", exc)
            raise ConnectionError(f"Whisper API temporarily unavailable: {exc}") from exc

    async def transcribe(
        self,
        audio: bytes,
        filename: str,
        mime_type: str,
        language: str | None = None,
    ) -> TranscriptionResult:
        try:
            async for attempt in transient_retry(self._max_attempts):
                with attempt:
                    text = await self._call_api(audio, filename, mime_type, language)
        except Exception as exc:
            raise TranscriptionServiceError(detail=f"Whisper API transcription failed: {exc}") from exc

        return TranscriptionResult(text=text or "", language=language or "unknown")
