"""
CRUD repository for the Mindwave tables.

``VoiceAnalysisRepository`` receives an ``AsyncSession`` and provides all
data-access methods.  It calls ``flush()`` rather than ``commit()`` so
that transaction boundaries are controlled by the caller (typically
:func:`get_session`).
"""

import logging
from datetime import UTC, date, datetime

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from mindwave.core.exceptions import AnalysisNotFoundError, TherapySessionConflictError
from mindwave.services.storage.models_db import (
    AIPrediction,
    AIRecommendation,
    BehavioralPatternRow,
    TherapySession,
    VoiceAnalysis,
)

logger = logging.getLogger(__name__)


class VoiceAnalysisRepository:
    """Data-access layer for the Mindwave schema.

    Args:
        session: An active SQLAlchemy ``AsyncSession``.
    """

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    # ------------------------------------------------------------------
    # Voice analyses
    # ------------------------------------------------------------------

    async def create_analysis(
        self,
        user_id: str,
        transcription: str,
        emotional_tone: dict,
        stress_indicators: dict,
        psychological_analysis: dict,
        voice_metrics: dict,
        confidence_score: float,
        session_duration: int,
        metric_columns: dict[str, float],
        used_fallback: bool = False,
    ) -> VoiceAnalysis:
        """Insert one analysis row and return it.

        Args:
            metric_columns: Values for the denormalized metric columns
                (pitch_average, pitch_variability, volume_average, jitter,
                harmonics, speech_rate, pause_frequency).
        """
        row = VoiceAnalysis(
            user_id=user_id,
            transcription=transcription,
            emotional_tone=emotional_tone,
            stress_indicators=stress_indicators,
            psychological_analysis=psychological_analysis,
            voice_metrics=voice_metrics,
            confidence_score=confidence_score,
            session_duration=session_duration,
            used_fallback=used_fallback,
            **metric_columns,
        )
        self._session.add(row)
        await self._session.flush()
        return row

    async def get_analysis(self, analysis_id: int) -> VoiceAnalysis:
        """Return an analysis by ID or raise :class:`AnalysisNotFoundError`."""
        row = await self._session.get(VoiceAnalysis, analysis_id)
        if row is None:
            raise AnalysisNotFoundError(analysis_id)
        return row

    async def list_for_user(self, user_id: str, limit: int = 50) -> list[VoiceAnalysis]:
        """Return a user's analyses, newest first."""
        stmt = (
            select(VoiceAnalysis)
            .where(VoiceAnalysis.user_id == user_id)
            .order_by(VoiceAnalysis.created_at.desc(), VoiceAnalysis.id.desc())
            .limit(limit)
        )
        result = await self._session.execute(stmt)
        return list(result.scalars().all())

    # ------------------------------------------------------------------
    # Behavioral patterns
    # ------------------------------------------------------------------

    async def upsert_pattern(
        self,
        user_id: str,
        pattern_type: str,
        pattern_data: dict,
        strength: float,
        frequency: str,
        confidence: float,
        last_observed: date | None = None,
    ) -> BehavioralPatternRow:
        """Insert or replace the pattern row for ``(user_id, pattern_type)``."""
        stmt = select(BehavioralPatternRow).where(
            BehavioralPatternRow.user_id == user_id,
            BehavioralPatternRow.pattern_type == pattern_type,
        )
        result = await self._session.execute(stmt)
        row = result.scalar_one_or_none()
        observed = last_observed or datetime.now(UTC).date()
        if row is None:
            row = BehavioralPatternRow(user_id=user_id, pattern_type=pattern_type)
            self._session.add(row)
        row.pattern_data = pattern_data
        row.strength = strength
        row.frequency = frequency
        row.confidence = confidence
        row.last_observed = observed
        await self._session.flush()
        return row

    async def list_patterns(self, user_id: str) -> list[BehavioralPatternRow]:
        stmt = (
            select(BehavioralPatternRow)
            .where(BehavioralPatternRow.user_id == user_id)
            .order_by(BehavioralPatternRow.pattern_type)
        )
        result = await self._session.execute(stmt)
        return list(result.scalars().all())

    async def list_recent_patterns(self, user_id: str, limit: int = 5) -> list[BehavioralPatternRow]:
        """Most recently updated patterns first."""
        stmt = (
            select(BehavioralPatternRow)
            .where(BehavioralPatternRow.user_id == user_id)
            .order_by(BehavioralPatternRow.updated_at.desc(), BehavioralPatternRow.id.desc())
            .limit(limit)
        )
        result = await self._session.execute(stmt)
        return list(result.scalars().all())

    # ------------------------------------------------------------------
    # Predictions
    # ------------------------------------------------------------------

    async def create_prediction(
        self,
        user_id: str,
        prediction_type: str,
        predicted_value: float,
        confidence_score: float,
        target_date: date,
        data_sources: list[str] | None = None,
        metadata: dict | None = None,
    ) -> AIPrediction:
        """Insert one prediction row."""
        row = AIPrediction(
            user_id=user_id,
            prediction_type=prediction_type,
            predicted_value=predicted_value,
            confidence_score=confidence_score,
            target_date=target_date,
            data_sources=data_sources or [],
            metadata_=metadata or {},
        )
        self._session.add(row)
        await self._session.flush()
        return row

    async def list_predictions(self, user_id: str, prediction_type: str | None = None) -> list[AIPrediction]:
        stmt = select(AIPrediction).where(AIPrediction.user_id == user_id)
        if prediction_type is not None:
            stmt = stmt.where(AIPrediction.prediction_type == prediction_type)
        stmt = stmt.order_by(AIPrediction.target_date, AIPrediction.id)
        result = await self._session.execute(stmt)
        return list(result.scalars().all())

    # ------------------------------------------------------------------
    # Therapy sessions and recommendations
    # ------------------------------------------------------------------

    async def append_therapy_messages(
        self,
        session_id: str,
        user_id: str,
        messages: list[dict],
    ) -> TherapySession:
        """Create the session row if missing and append ``messages`` to it.

        Raises:
            TherapySessionConflictError: If ``session_id`` belongs to
                another user.
        """
        row = await self._session.get(TherapySession, session_id)
        if row is None:
            row = TherapySession(id=session_id, user_id=user_id, content={"messages": []})
            self._session.add(row)
        elif row.user_id != user_id:
            raise TherapySessionConflictError(session_id)
        history = list((row.content or {}).get("messages", []))
        # Reassign so the JSON column is marked dirty
        row.content = {**(row.content or {}), "messages": history + messages}
        await self._session.flush()
        return row

    async def get_therapy_session(self, session_id: str) -> TherapySession | None:
        return await self._session.get(TherapySession, session_id)

    async def create_recommendation(
        self,
        user_id: str,
        recommendation_type: str,
        title: str,
        description: str,
        content: dict,
        priority: int,
        expires_at: datetime,
    ) -> AIRecommendation:
        row = AIRecommendation(
            user_id=user_id,
            recommendation_type=recommendation_type,
            title=title,
            description=description,
            content=content,
            priority=priority,
            expires_at=expires_at,
        )
        self._session.add(row)
        await self._session.flush()
        return row

    async def list_active_recommendations(
        self,
        user_id: str,
        now: datetime | None = None,
    ) -> list[AIRecommendation]:
        """Unexpired recommendations, highest priority (lowest number) first."""
        stmt = (
            select(AIRecommendation)
            .where(
                AIRecommendation.user_id == user_id,
                AIRecommendation.expires_at > (now or datetime.now(UTC)),
            )
            .order_by(AIRecommendation.priority, AIRecommendation.id)
        )
        result = await self._session.execute(stmt)
        return list(result.scalars().all())
