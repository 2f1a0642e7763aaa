"""
Behavioral-pattern analysis and mood prediction over a user's history.

Both actions read the user's most recent voice analyses, ask the LLM for a
JSON answer, and store the outcome: patterns are upserted (one row per
pattern type), predictions are inserted (one row per target day).
"""

import json
import logging

from pydantic import TypeAdapter, ValidationError

from mindwave.core.exceptions import PredictionError
from mindwave.core.models import (
    BehavioralPattern,
    MoodPrediction,
    PredictionAction,
    PredictionResponse,
)
from mindwave.core.utils import strip_code_fences
from mindwave.services.llm.base import BaseLLM
from mindwave.services.storage.database import get_session
from mindwave.services.storage.models_db import VoiceAnalysis
from mindwave.services.storage.repository import VoiceAnalysisRepository

logger = logging.getLogger(__name__)

HISTORY_LIMIT = 50
PATTERN_SAMPLE = 10
PREDICTION_SAMPLE = 5
PREDICTION_DAYS = 7
DATA_SOURCES = ["voice_analysis"]

PATTERN_SYSTEM_PROMPT = (
    "You are a mental health AI specialist analyzing behavioral patterns. "
    "Return valid JSON only."
)
MOOD_SYSTEM_PROMPT = "You are a mental health AI predicting mood trends. Return valid JSON only."

_predictions_adapter = TypeAdapter(list[MoodPrediction])


def summarize_analysis(row: VoiceAnalysis) -> dict:
    """Reduce a stored analysis to the fields the prompts need."""
    return {
        "date": row.created_at.isoformat(),
        "dominant_emotion": row.emotional_tone.get("dominant"),
        "stress_level": row.stress_indicators.get("level"),
        "stress_score": row.stress_indicators.get("score"),
        "mood_score": row.psychological_analysis.get("mood_score"),
        "energy_level": row.psychological_analysis.get("energy_level"),
        "speech_rate": row.speech_rate,
        "pitch_average": row.pitch_average,
        "session_duration": row.session_duration,
    }


def build_pattern_prompt(history: list[dict]) -> str:
    return (
        "Analyze the following mental health data and identify behavioral patterns:\n\n"
        f"Voice Analysis Data: {json.dumps(history, default=str)}\n\n"
        "Identify:\n"
        "1. Stress level patterns and triggers\n"
        "2. Mood fluctuation cycles\n"
        "3. Voice tone changes over time\n\n"
        "Return a JSON object whose keys are pattern types and whose values are objects "
        'with "strength" (0-1), "frequency" (string), "confidence" (0-1) and a "description".'
    )


def build_mood_prompt(history: list[dict]) -> str:
    return (
        f"Based on this mental health data, predict mood trends for the next {PREDICTION_DAYS} days:\n\n"
        f"Recent Voice Analysis: {json.dumps(history, default=str)}\n\n"
        f"Return a JSON object with a \"predictions\" array of {PREDICTION_DAYS} objects, each containing:\n"
        "- date (YYYY-MM-DD format, starting tomorrow)\n"
        "- predicted_mood (0-10 scale)\n"
        "- confidence (0-1)\n"
        "- factors (array of contributing factors)\n"
        "- risk_level (low/medium/high)"
    )


def _decode_json(raw: str):
    cleaned = strip_code_fences(raw or "")
    try:
        return json.loads(cleaned)
    except json.JSONDecodeError as exc:
        raise PredictionError(detail=f"Model output is not JSON: {cleaned[:200]}") from exc


def parse_patterns(raw: str) -> list[BehavioralPattern]:
    """Decode a ``pattern_type -> details`` object; non-object entries are skipped."""
    data = _decode_json(raw)
    if not isinstance(data, dict):
        raise PredictionError(detail="Pattern output must be a JSON object")

    patterns = []
    for pattern_type, details in data.items():
        if not isinstance(details, dict):
            continue
        try:
            patterns.append(
                BehavioralPattern(
                    pattern_type=pattern_type,
                    pattern_data=details,
                    strength=details.get("strength", 0.5),
                    frequency=str(details.get("frequency", "unknown")),
                    confidence=details.get("confidence", 0.5),
                )
            )
        except ValidationError as exc:
            raise PredictionError(detail=f"Invalid pattern {pattern_type!r}: {exc}") from exc
    return patterns


def parse_predictions(raw: str) -> list[MoodPrediction]:
    """Decode a list of daily mood predictions (bare or under ``predictions``)."""
    data = _decode_json(raw)
    if isinstance(data, dict):
        data = data.get("predictions")
    try:
        return _predictions_adapter.validate_python(data)
    except ValidationError as exc:
        raise PredictionError(detail=f"Invalid mood predictions: {exc.error_count()} errors") from exc


class InsightService:
    """Runs prediction actions for one user.

    Args:
        llm: Any provider implementing ``BaseLLM``.
    """

    def __init__(self, llm: BaseLLM) -> None:
        self._llm = llm

    async def _ask(self, prompt: str, system: str, temperature: float) -> str:
        try:
            return await self._llm.generate(prompt, system=system, temperature=temperature, json_output=True)
        except Exception as exc:
            raise PredictionError(detail=f"LLM call failed: {exc}") from exc

    async def run(self, user_id: str, action: PredictionAction) -> PredictionResponse:
        if action == PredictionAction.analyze_patterns:
            return await self.analyze_patterns(user_id)
        return await self.predict_mood(user_id)

    async def analyze_patterns(self, user_id: str) -> PredictionResponse:
        async with get_session() as session:
            repo = VoiceAnalysisRepository(session)
            rows = await repo.list_for_user(user_id, limit=HISTORY_LIMIT)
        if not rows:
            logger.info("No voice analyses for %s; skipping pattern analysis", user_id)
            return PredictionResponse(action=PredictionAction.analyze_patterns)

        history = [summarize_analysis(r) for r in rows[:PATTERN_SAMPLE]]
        raw = await self._ask(build_pattern_prompt(history), PATTERN_SYSTEM_PROMPT, 0.3)
        patterns = parse_patterns(raw)

        async with get_session() as session:
            repo = VoiceAnalysisRepository(session)
            for pattern in patterns:
                await repo.upsert_pattern(
                    user_id=user_id,
                    pattern_type=pattern.pattern_type,
                    pattern_data=pattern.pattern_data,
                    strength=pattern.strength,
                    frequency=pattern.frequency,
                    confidence=pattern.confidence,
                )
        logger.info("Stored %d behavioral patterns for %s", len(patterns), user_id)
        return PredictionResponse(
            action=PredictionAction.analyze_patterns,
            analyses_considered=len(history),
            patterns=patterns,
        )

    async def predict_mood(self, user_id: str) -> PredictionResponse:
        async with get_session() as session:
            repo = VoiceAnalysisRepository(session)
            rows = await repo.list_for_user(user_id, limit=PREDICTION_SAMPLE)
        if not rows:
            logger.info("No voice analyses for %s; skipping mood prediction", user_id)
            return PredictionResponse(action=PredictionAction.predict_mood)

        history = [summarize_analysis(r) for r in rows]
        raw = await self._ask(build_mood_prompt(history), MOOD_SYSTEM_PROMPT, 0.2)
        predictions = parse_predictions(raw)

        async with get_session() as session:
            repo = VoiceAnalysisRepository(session)
            for prediction in predictions:
                await repo.create_prediction(
                    user_id=user_id,
                    prediction_type="mood",
                    predicted_value=prediction.predicted_mood,
                    confidence_score=prediction.confidence,
                    target_date=prediction.date,
                    data_sources=DATA_SOURCES,
                    metadata={"factors": prediction.factors, "risk_level": prediction.risk_level},
                )
        logger.info("Stored %d mood predictions for %s", len(predictions), user_id)
        return PredictionResponse(
            action=PredictionAction.predict_mood,
            analyses_considered=len(history),
            predictions=predictions,
        )
