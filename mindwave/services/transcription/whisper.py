"""Local Whisper STT implementation using faster-whisper.

The WhisperModel is loaded lazily and cached at module level to avoid
repeated initialization overhead. faster-whisper decodes the uploaded
container (webm, mp4, ogg, wav) itself, so the raw bytes are passed through.
"""

import asyncio
import io
import logging

from faster_whisper import WhisperModel

from mindwave.core.config import get_settings
from mindwave.core.exceptions import TranscriptionServiceError
from mindwave.core.models import TranscriptionResult
from mindwave.services.transcription.base import BaseSTT

logger = logging.getLogger(__name__)

_model_cache: WhisperModel | None = None


class WhisperSTT(BaseSTT):
    """Speech-to-text provider using faster-whisper (CTranslate2).

    Args:
        model_size: Whisper model size (tiny, base, small, medium, large-v3).
        device: Computation device ("cpu" or "cuda").
        compute_type: CTranslate2 compute type ("int8", "float16", etc.).
        settings: Optional Settings instance (defaults to get_settings()).
    """

    def __init__(
        self,
        model_size: str | None = None,
        device: str = "cpu",
        compute_type: str = "int8",
        settings=None,
    ) -> None:
        self._settings = settings or get_settings()
        self._model_size = model_size or self._settings.whisper_model
        self._device = device
        self._compute_type = compute_type

    def _get_model(self) -> WhisperModel:
        """Return the cached WhisperModel, loading it on first use."""
        global _model_cache  # noqa: PLW0603
        if _model_cache is None:
            logger.info(
                "Loading Whisper model: %s (device=%s, compute=%s)",
                self._model_size,
                self._device,
                self._compute_type,
            )
            _model_cache = WhisperModel(
                self._model_size,
                device=self._device,
                compute_type=self._compute_type,
            )
        return _model_cache

    def _run_transcription(
        self,
        audio: io.BytesIO,
        language: str | None = None,
        beam_size: int = 5,
    ) -> tuple:
        """Run synchronous transcription (CPU-bound).

        Must be called via asyncio.to_thread(). The segment iterator is
        materialized into a list inside this function to avoid CTranslate2
        thread-safety issues.
        """
        model = self._get_model()
        segments_iter, info = model.transcribe(
            audio,
            language=language,
            beam_size=beam_size,
            vad_filter=True,
        )
        segments = list(segments_iter)
        return segments, info

    async def transcribe(
        self,
        audio: bytes,
        filename: str,
        mime_type: str,
        language: str | None = None,
    ) -> TranscriptionResult:
        try:
            segments, info = await asyncio.to_thread(
                self._run_transcription,
                io.BytesIO(audio),
                language=language,
            )
        except Exception as exc:
            raise TranscriptionServiceError(
                detail=f"Whisper transcription of {filename} failed: {exc}"
            ) from exc

        text = " ".join(seg.text.strip() for seg in segments if seg.text.strip())
        return TranscriptionResult(
            text=text,
            language=info.language or "unknown",
            duration=info.duration,
        )
