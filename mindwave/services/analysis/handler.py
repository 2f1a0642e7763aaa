"""
Transcribe-and-interpret pipeline for one voice upload.

Steps after ingress, strictly in order:

1. transcribe the audio (language hint from settings),
2. reject an empty transcript before the LLM is called,
3. interpret the transcript (full fallback on unparseable output),
4. insert exactly one ``voice_analysis`` row in one transaction,
5. build the success response.

The handler keeps no state between calls.
"""

import logging
import random

from mindwave.core.config import get_settings
from mindwave.core.exceptions import (
    EmptyTranscriptionError,
    MindwaveError,
    PersistenceError,
)
from mindwave.core.models import AnalysisResponse
from mindwave.core.utils import extension_for_mime
from mindwave.services.analysis.ingress import AudioUpload
from mindwave.services.analysis.interpreter import VoiceInterpreter
from mindwave.services.analysis.metrics import build_metric_columns, placeholder_voice_metrics
from mindwave.services.llm import BaseLLM, create_llm
from mindwave.services.storage.database import get_session
from mindwave.services.storage.repository import VoiceAnalysisRepository
from mindwave.services.transcription import BaseSTT, create_stt

logger = logging.getLogger(__name__)


class VoiceAnalysisHandler:
    """Runs transcription, interpretation and persistence for one upload.

    Args:
        stt: Speech-to-text provider.
        llm: Language-model provider used for interpretation.
        settings: Optional Settings instance (defaults to get_settings()).
        rng: Random source for the supplementary metric columns.
    """

    def __init__(
        self,
        stt: BaseSTT,
        llm: BaseLLM,
        settings=None,
        rng: random.Random | None = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._stt = stt
        self._interpreter = VoiceInterpreter(llm)
        self._rng = rng or random.Random()

    async def process(self, upload: AudioUpload) -> AnalysisResponse:
        """Analyze one validated upload.

        Raises:
            TranscriptionServiceError: The STT provider failed.
            EmptyTranscriptionError: The transcript was blank.
            InterpretationServiceError: The LLM call failed.
            PersistenceError: The row could not be stored.
        """
        filename = f"audio.{extension_for_mime(upload.mime_type)}"
        logger.info("Transcribing %s (%d bytes) for user %s", filename, upload.size, upload.user_id)
        transcription = await self._stt.transcribe(
            upload.data,
            filename=filename,
            mime_type=upload.mime_type,
            language=self._settings.transcription_language or None,
        )

        text = transcription.text.strip()
        if not text:
            raise EmptyTranscriptionError()
        logger.info("Transcription complete: %d characters", len(text))

        outcome = await self._interpreter.interpret(text)
        columns = build_metric_columns(outcome.interpretation.voice_metrics, self._rng)
        analysis = outcome.interpretation.model_copy(update={"voice_metrics": placeholder_voice_metrics(columns)})

        await self._persist(upload, text, analysis, columns, outcome.used_fallback)

        return AnalysisResponse(
            transcription=text,
            emotional_tone=analysis.emotional_tone,
            stress_indicators=analysis.stress_indicators,
            psychological_analysis=analysis.psychological_analysis,
            voice_metrics=analysis.voice_metrics,
            confidence_score=analysis.confidence_score,
        )

    async def _persist(
        self, upload: AudioUpload, text: str, analysis, columns: dict[str, float], used_fallback: bool
    ) -> None:
        try:
            async with get_session() as session:
                repo = VoiceAnalysisRepository(session)
                row = await repo.create_analysis(
                    user_id=upload.user_id,
                    transcription=text,
                    emotional_tone=analysis.emotional_tone.model_dump(),
                    stress_indicators=analysis.stress_indicators.model_dump(),
                    psychological_analysis=analysis.psychological_analysis.model_dump(),
                    voice_metrics=analysis.voice_metrics.model_dump(),
                    confidence_score=analysis.confidence_score,
                    session_duration=upload.session_duration,
                    metric_columns=columns,
                    used_fallback=used_fallback,
                )
                logger.info("Voice analysis %s stored for user %s", row.id, upload.user_id)
        except MindwaveError:
            raise
        except Exception as exc:
            logger.error("Failed to store voice analysis: %s", exc)
            raise PersistenceError(detail=f"Database error: {exc}") from exc


def create_voice_handler() -> VoiceAnalysisHandler:
    """Build a handler wired to the configured STT and LLM providers."""
    settings = get_settings()
    return VoiceAnalysisHandler(
        stt=create_stt(provider=settings.stt_provider),
        llm=create_llm(provider=settings.llm_provider),
        settings=settings,
    )
