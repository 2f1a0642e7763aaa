"""
Pydantic v2 models shared by the handler, the client, and the API layer.

v0.1.0 — Voice analysis (interpretation schema, result, response, history)
v0.2.0 — Behavioral patterns and mood predictions
v0.3.0 — Supportive chat and personalized recommendations
"""

from datetime import date, datetime
from enum import StrEnum
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

UnitFloat = Annotated[float, Field(ge=0.0, le=1.0)]
PercentFloat = Annotated[float, Field(ge=0.0, le=100.0)]

# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------


class HealthResponse(BaseModel):
    """GET /health response."""

    status: str = "ok"
    version: str = "0.1.0"
    timestamp: datetime


# ---------------------------------------------------------------------------
# Recording
# ---------------------------------------------------------------------------


class RecordingState(StrEnum):
    """Lifecycle states of a client-side recording session."""

    idle = "idle"
    recording = "recording"
    stopped = "stopped"
    analyzing = "analyzing"
    complete = "complete"
    failed = "failed"


# ---------------------------------------------------------------------------
# Transcription
# ---------------------------------------------------------------------------


class TranscriptionResult(BaseModel):
    """Text returned by a speech-to-text provider."""

    text: str
    language: str = "unknown"
    duration: float = 0.0


# ---------------------------------------------------------------------------
# Interpretation schema
# ---------------------------------------------------------------------------


class EmotionalTone(BaseModel):
    dominant: str
    confidence: UnitFloat
    emotions: dict[str, UnitFloat] = Field(default_factory=dict)


class StressIndicators(BaseModel):
    level: Literal["low", "moderate", "high"]
    score: PercentFloat
    indicators: list[str] = Field(default_factory=list)


class PsychologicalAnalysis(BaseModel):
    mood_score: PercentFloat
    energy_level: PercentFloat
    insights: list[str] = Field(default_factory=list)
    recommendations: list[str] = Field(default_factory=list)


class VoiceMetrics(BaseModel):
    """Voice metrics estimated by the model; ``None`` when not derivable."""

    pitch_average: float | None = Field(default=None, ge=0.0)
    volume_average: float | None = Field(default=None, ge=0.0)
    speech_rate: float | None = Field(default=None, ge=0.0)
    jitter: float | None = Field(default=None, ge=0.0)


class VoiceInterpretation(BaseModel):
    """The five-key object the language model must return.

    Unknown top-level keys are rejected so that a response either matches
    the whole shape or is replaced wholesale by the fallback analysis.
    """

    model_config = ConfigDict(extra="forbid")

    emotional_tone: EmotionalTone
    stress_indicators: StressIndicators
    psychological_analysis: PsychologicalAnalysis
    voice_metrics: VoiceMetrics
    confidence_score: UnitFloat


# ---------------------------------------------------------------------------
# Voice analysis API
# ---------------------------------------------------------------------------


class AnalysisResult(BaseModel):
    """Transcript plus the five structured analysis fields."""

    transcription: str
    emotional_tone: EmotionalTone
    stress_indicators: StressIndicators
    psychological_analysis: PsychologicalAnalysis
    voice_metrics: VoiceMetrics
    confidence_score: UnitFloat


class AnalysisResponse(AnalysisResult):
    """POST /voice-analysis success body."""

    success: bool = True


class ErrorResponse(BaseModel):
    """Error envelope returned for every failed request."""

    success: bool = False
    error: str
    code: str
    technical_error: str | None = None
    timestamp: datetime


class AnalysisRecordResponse(BaseModel):
    """A persisted voice analysis row as returned by the history endpoints."""

    id: int
    user_id: str
    created_at: datetime
    transcription: str
    emotional_tone: dict
    stress_indicators: dict
    psychological_analysis: dict
    voice_metrics: dict
    confidence_score: float
    session_duration: int
    pitch_average: float
    pitch_variability: float
    volume_average: float
    jitter: float
    harmonics: float
    speech_rate: float
    pause_frequency: float
    used_fallback: bool = False


# ---------------------------------------------------------------------------
# Predictions (v0.2.0)
# ---------------------------------------------------------------------------


class PredictionAction(StrEnum):
    """Supported insight actions."""

    analyze_patterns = "analyze_patterns"
    predict_mood = "predict_mood"


class PredictionRequest(BaseModel):
    """POST /predictions request body."""

    user_id: str = Field(min_length=1)
    action: PredictionAction


class BehavioralPattern(BaseModel):
    """One behavioral pattern identified across a user's analyses."""

    pattern_type: str
    pattern_data: dict = Field(default_factory=dict)
    strength: float = 0.5
    frequency: str = "unknown"
    confidence: float = 0.5


class MoodPrediction(BaseModel):
    """Predicted mood for one future day."""

    date: date
    predicted_mood: Annotated[float, Field(ge=0.0, le=10.0)]
    confidence: UnitFloat
    factors: list[str] = Field(default_factory=list)
    risk_level: Literal["low", "medium", "high"] = "low"


class PredictionResponse(BaseModel):
    """POST /predictions response; only the list for the action is filled."""

    action: PredictionAction
    analyses_considered: int = 0
    patterns: list[BehavioralPattern] = Field(default_factory=list)
    predictions: list[MoodPrediction] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Therapy support (v0.3.0)
# ---------------------------------------------------------------------------


class TherapyAction(StrEnum):
    """Supported therapy-support actions."""

    chat = "chat"
    generate_recommendations = "generate_recommendations"


class TherapyRequest(BaseModel):
    """POST /therapy request body. ``chat`` needs a non-empty ``message``."""

    user_id: str = Field(min_length=1)
    action: TherapyAction
    message: str | None = None
    session_id: str | None = Field(default=None, min_length=1, max_length=64)

    @model_validator(mode="after")
    def _chat_needs_message(self) -> "TherapyRequest":
        if self.action == TherapyAction.chat and not (self.message or "").strip():
            raise ValueError("chat requires a message")
        return self


class ChatTurn(BaseModel):
    """One message stored in a therapy session transcript."""

    role: Literal["user", "assistant"]
    content: str
    timestamp: datetime


class Recommendation(BaseModel):
    """One personalized wellbeing recommendation."""

    type: str
    title: str = Field(min_length=1)
    description: str = ""
    priority: Annotated[int, Field(ge=1, le=3)] = 2
    duration_minutes: int | None = None
    difficulty: str | None = None
    expected_benefit: str | None = None


class TherapyResponse(BaseModel):
    """POST /therapy response; ``response`` for chat, ``recommendations`` otherwise."""

    action: TherapyAction
    response: str | None = None
    session_id: str | None = None
    recommendations: list[Recommendation] = Field(default_factory=list)
