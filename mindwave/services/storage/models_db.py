"""
SQLAlchemy ORM models for the Mindwave schema.

Tables: ``voice_analysis``, ``behavioral_patterns``, ``ai_predictions``,
``therapy_sessions``, ``ai_recommendations``.
"""

from datetime import UTC, date, datetime

from sqlalchemy import Index, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.types import JSON

from mindwave.services.storage.database import Base


class VoiceAnalysis(Base):
    """One analyzed voice sample. Rows are insert-only."""

    __tablename__ = "voice_analysis"
    __table_args__ = (Index("ix_voice_analysis_user_created", "user_id", "created_at"),)

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String(64))
    created_at: Mapped[datetime] = mapped_column(default=lambda: datetime.now(UTC))
    transcription: Mapped[str] = mapped_column(Text)
    emotional_tone: Mapped[dict] = mapped_column(JSON)
    stress_indicators: Mapped[dict] = mapped_column(JSON)
    psychological_analysis: Mapped[dict] = mapped_column(JSON)
    voice_metrics: Mapped[dict] = mapped_column(JSON)
    confidence_score: Mapped[float] = mapped_column()
    session_duration: Mapped[int] = mapped_column(default=0)

    # Denormalized voice metrics
    pitch_average: Mapped[float] = mapped_column()
    pitch_variability: Mapped[float] = mapped_column()
    volume_average: Mapped[float] = mapped_column()
    jitter: Mapped[float] = mapped_column()
    harmonics: Mapped[float] = mapped_column()
    speech_rate: Mapped[float] = mapped_column()
    pause_frequency: Mapped[float] = mapped_column()

    used_fallback: Mapped[bool] = mapped_column(default=False)

    def __repr__(self) -> str:
        return f"<VoiceAnalysis id={self.id} user={self.user_id!r}>"


class BehavioralPatternRow(Base):
    """A behavioral pattern, one row per (user, pattern type)."""

    __tablename__ = "behavioral_patterns"
    __table_args__ = (UniqueConstraint("user_id", "pattern_type", name="uq_pattern_user_type"),)

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String(64), index=True)
    pattern_type: Mapped[str] = mapped_column(String(100))
    pattern_data: Mapped[dict] = mapped_column(JSON, default=dict)
    strength: Mapped[float] = mapped_column(default=0.5)
    frequency: Mapped[str] = mapped_column(String(50), default="unknown")
    confidence: Mapped[float] = mapped_column(default=0.5)
    last_observed: Mapped[date | None] = mapped_column(nullable=True)
    created_at: Mapped[datetime] = mapped_column(default=lambda: datetime.now(UTC))
    updated_at: Mapped[datetime] = mapped_column(
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
    )

    def __repr__(self) -> str:
        return f"<BehavioralPattern user={self.user_id!r} type={self.pattern_type!r}>"


class AIPrediction(Base):
    """A single predicted value for a target date."""

    __tablename__ = "ai_predictions"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String(64), index=True)
    prediction_type: Mapped[str] = mapped_column(String(50))
    predicted_value: Mapped[float] = mapped_column()
    confidence_score: Mapped[float] = mapped_column()
    target_date: Mapped[date] = mapped_column()
    data_sources: Mapped[list] = mapped_column(JSON, default=list)
    metadata_: Mapped[dict] = mapped_column("metadata", JSON, default=dict)
    created_at: Mapped[datetime] = mapped_column(default=lambda: datetime.now(UTC))

    def __repr__(self) -> str:
        return f"<AIPrediction user={self.user_id!r} target={self.target_date}>"


class TherapySession(Base):
    """A support-chat transcript, keyed by the client's session ID."""

    __tablename__ = "therapy_sessions"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    user_id: Mapped[str] = mapped_column(String(64), index=True)
    session_type: Mapped[str] = mapped_column(String(50), default="chat")
    title: Mapped[str] = mapped_column(String(200), default="AI Therapy Chat")
    content: Mapped[dict] = mapped_column(JSON, default=dict)
    created_at: Mapped[datetime] = mapped_column(default=lambda: datetime.now(UTC))
    updated_at: Mapped[datetime] = mapped_column(
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
    )

    def __repr__(self) -> str:
        return f"<TherapySession id={self.id!r} user={self.user_id!r}>"


class AIRecommendation(Base):
    """A generated recommendation, valid until ``expires_at``."""

    __tablename__ = "ai_recommendations"
    __table_args__ = (Index("ix_ai_recommendations_user_expires", "user_id", "expires_at"),)

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String(64))
    recommendation_type: Mapped[str] = mapped_column(String(50))
    title: Mapped[str] = mapped_column(String(200))
    description: Mapped[str] = mapped_column(Text, default="")
    content: Mapped[dict] = mapped_column(JSON, default=dict)
    priority: Mapped[int] = mapped_column(default=2)
    expires_at: Mapped[datetime] = mapped_column()
    created_at: Mapped[datetime] = mapped_column(default=lambda: datetime.now(UTC))

    def __repr__(self) -> str:
        return f"<AIRecommendation user={self.user_id!r} type={self.recommendation_type!r}>"
