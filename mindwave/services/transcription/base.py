"""
Abstract base class for Speech-to-Text providers.

All STT implementations (hosted Whisper API, local faster-whisper) must
implement this interface, enabling provider-agnostic transcription in the
analysis handler.
"""

from abc import ABC, abstractmethod

from mindwave.core.models import TranscriptionResult


class BaseSTT(ABC):
    """Interface that every STT provider must implement."""

    @abstractmethod
    async def transcribe(
        self,
        audio: bytes,
        filename: str,
        mime_type: str,
        language: str | None = None,
    ) -> TranscriptionResult:
        """Transcribe an encoded audio file to text.

        Args:
            audio: The complete encoded audio file (webm, mp4, wav, ogg).
            filename: Upload filename; providers use its extension to pick a decoder.
            mime_type: Declared content type of ``audio``.
            language: ISO 639-1 language hint, or None for auto-detect.

        Returns:
            The transcription. ``text`` may be empty for silence.

        Raises:
            TranscriptionServiceError: If the provider fails.
        """
