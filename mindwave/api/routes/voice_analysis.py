"""
Voice-analysis REST endpoints.

``POST /voice-analysis`` runs one upload through ingress and the
transcribe-and-interpret handler. The two ``GET`` endpoints read back
stored analyses. Business logic lives in ``mindwave.services.analysis``.
"""

import logging
from functools import lru_cache

from fastapi import APIRouter, Depends, Query, Request

from mindwave.core.config import get_settings
from mindwave.core.exceptions import MindwaveError
from mindwave.core.models import AnalysisRecordResponse, AnalysisResponse, ErrorResponse
from mindwave.services.analysis import VoiceAnalysisHandler, create_voice_handler, read_voice_upload
from mindwave.services.storage.database import get_session
from mindwave.services.storage.models_db import VoiceAnalysis
from mindwave.services.storage.repository import VoiceAnalysisRepository

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/voice-analysis", tags=["voice-analysis"])


@lru_cache
def get_voice_handler() -> VoiceAnalysisHandler:
    """Provider-wired handler shared across requests (it holds no request state)."""
    return create_voice_handler()


def _to_response(row: VoiceAnalysis) -> AnalysisRecordResponse:
    return AnalysisRecordResponse(
        id=row.id,
        user_id=row.user_id,
        created_at=row.created_at,
        transcription=row.transcription,
        emotional_tone=row.emotional_tone,
        stress_indicators=row.stress_indicators,
        psychological_analysis=row.psychological_analysis,
        voice_metrics=row.voice_metrics,
        confidence_score=row.confidence_score,
        session_duration=row.session_duration,
        pitch_average=row.pitch_average,
        pitch_variability=row.pitch_variability,
        volume_average=row.volume_average,
        jitter=row.jitter,
        harmonics=row.harmonics,
        speech_rate=row.speech_rate,
        pause_frequency=row.pause_frequency,
        used_fallback=row.used_fallback,
    )


@router.post(
    "",
    response_model=AnalysisResponse,
    responses={400: {"model": ErrorResponse}, 415: {"model": ErrorResponse}, 502: {"model": ErrorResponse}},
)
async def analyze_voice(
    request: Request,
    handler: VoiceAnalysisHandler = Depends(get_voice_handler),
) -> AnalysisResponse:
    """Transcribe and interpret one voice recording (multipart or base64 JSON)."""
    try:
        upload = await read_voice_upload(request, get_settings())
        return await handler.process(upload)
    except MindwaveError:
        raise
    except Exception as exc:
        # Raised as a domain error so the envelope and CORS headers still apply
        logger.exception("Voice analysis failed unexpectedly")
        raise MindwaveError(detail=str(exc) or type(exc).__name__, code="INTERNAL_ERROR") from exc


@router.get("", response_model=list[AnalysisRecordResponse])
async def list_analyses(
    user_id: str = Query(..., min_length=1),
    limit: int = Query(50, ge=1, le=200),
):
    """List a user's stored analyses, newest first."""
    async with get_session() as session:
        repo = VoiceAnalysisRepository(session)
        rows = await repo.list_for_user(user_id, limit=limit)
    return [_to_response(r) for r in rows]


@router.get("/{analysis_id}", response_model=AnalysisRecordResponse)
async def get_analysis(analysis_id: int):
    """Return one stored analysis."""
    async with get_session() as session:
        repo = VoiceAnalysisRepository(session)
        row = await repo.get_analysis(analysis_id)
    return _to_response(row)
