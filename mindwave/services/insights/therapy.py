"""
Supportive chat and personalized recommendations.

Both actions ground the model in the user's three most recent voice
analyses and five most recently updated behavioral patterns. ``chat``
answers one message in a CBT-informed register and, when the client sends
a ``session_id``, appends the exchange to that session's transcript.
``generate_recommendations`` asks for five recommendations and stores each
one with a seven-day expiry.
"""

import json
import logging
from datetime import UTC, datetime, timedelta

from pydantic import TypeAdapter, ValidationError

from mindwave.core.exceptions import TherapyError
from mindwave.core.models import (
    ChatTurn,
    Recommendation,
    TherapyAction,
    TherapyRequest,
    TherapyResponse,
)
from mindwave.core.utils import strip_code_fences
from mindwave.services.insights.predictor import summarize_analysis
from mindwave.services.llm.base import BaseLLM
from mindwave.services.storage.database import get_session
from mindwave.services.storage.models_db import BehavioralPatternRow
from mindwave.services.storage.repository import VoiceAnalysisRepository

logger = logging.getLogger(__name__)

RECENT_ANALYSES = 3
RECENT_PATTERNS = 5
RECOMMENDATION_COUNT = 5
RECOMMENDATION_TTL = timedelta(days=7)
RECOMMENDATION_TYPES = ("stress", "mood", "sleep", "mindfulness", "lifestyle")

CHAT_TEMPERATURE = 0.7
CHAT_MAX_TOKENS = 500
RECOMMENDATION_TEMPERATURE = 0.5

RECOMMENDATION_SYSTEM_PROMPT = (
    "You are a mental health AI generating personalized recommendations. "
    "Return valid JSON only, with every text in Brazilian Portuguese."
)

_recommendations_adapter = TypeAdapter(list[Recommendation])


def summarize_pattern(row: BehavioralPatternRow) -> dict:
    return {
        "pattern_type": row.pattern_type,
        "strength": row.strength,
        "frequency": row.frequency,
        "confidence": row.confidence,
        "description": (row.pattern_data or {}).get("description"),
    }


def build_context(analyses: list[dict], patterns: list[dict]) -> str:
    return (
        f"Recent Voice Analysis: {json.dumps(analyses, default=str)}\n"
        f"Behavioral Patterns: {json.dumps(patterns, default=str)}"
    )


def build_chat_system_prompt(context: str) -> str:
    return (
        "You are a compassionate AI therapy assistant specializing in "
        "Cognitive Behavioral Therapy (CBT).\n\n"
        f"User Context:\n{context}\n\n"
        "Guidelines:\n"
        "- Be empathetic and supportive\n"
        "- Use CBT techniques when appropriate\n"
        "- Ask thoughtful questions to help users reflect\n"
        "- Provide practical coping strategies\n"
        "- Recognize when to suggest professional help\n"
        "- Keep responses concise but meaningful\n"
        "- Personalize advice based on the user's patterns\n\n"
        "Never diagnose or replace professional therapy. "
        "Focus on guidance, support, and skill-building."
    )


def build_recommendation_prompt(context: str) -> str:
    return (
        f"Based on this user's data, generate {RECOMMENDATION_COUNT} personalized "
        "mental health recommendations IN BRAZILIAN PORTUGUESE:\n\n"
        f"{context}\n\n"
        "Cover:\n"
        "1. Stress management techniques\n"
        "2. Mood-improving activities\n"
        "3. Sleep optimization\n"
        "4. Mindfulness exercises\n"
        "5. Lifestyle adjustments\n\n"
        'Return a JSON object with a "recommendations" array of objects containing: '
        "type, title, description, priority (1-3), duration_minutes, "
        "difficulty (fácil/médio/difícil), expected_benefit.\n"
        f"The type field must be one of: {', '.join(RECOMMENDATION_TYPES)}."
    )


def parse_recommendations(raw: str) -> list[Recommendation]:
    """Decode recommendations given bare or under a ``recommendations`` key."""
    cleaned = strip_code_fences(raw or "")
    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError as exc:
        raise TherapyError(detail=f"Model output is not JSON: {cleaned[:200]}") from exc
    if isinstance(data, dict):
        data = data.get("recommendations")
    try:
        return _recommendations_adapter.validate_python(data)
    except ValidationError as exc:
        raise TherapyError(detail=f"Invalid recommendations: {exc.error_count()} errors") from exc


class TherapyService:
    """Runs therapy-support actions for one user.

    Args:
        llm: Any provider implementing ``BaseLLM``.
    """

    def __init__(self, llm: BaseLLM) -> None:
        self._llm = llm

    async def run(self, request: TherapyRequest) -> TherapyResponse:
        if request.action == TherapyAction.chat:
            return await self.chat(request.user_id, request.message or "", request.session_id)
        return await self.generate_recommendations(request.user_id)

    async def _load_context(self, user_id: str) -> str:
        async with get_session() as session:
            repo = VoiceAnalysisRepository(session)
            analyses = await repo.list_for_user(user_id, limit=RECENT_ANALYSES)
            patterns = await repo.list_recent_patterns(user_id, limit=RECENT_PATTERNS)
        return build_context(
            [summarize_analysis(r) for r in analyses],
            [summarize_pattern(p) for p in patterns],
        )

    async def _ask(self, prompt: str, **kwargs) -> str:
        try:
            return await self._llm.generate(prompt, **kwargs)
        except Exception as exc:
            raise TherapyError(detail=f"LLM call failed: {exc}") from exc

    async def chat(self, user_id: str, message: str, session_id: str | None = None) -> TherapyResponse:
        context = await self._load_context(user_id)
        sent_at = datetime.now(UTC)
        reply = (
            await self._ask(
                message,
                system=build_chat_system_prompt(context),
                temperature=CHAT_TEMPERATURE,
                max_tokens=CHAT_MAX_TOKENS,
            )
        ).strip()
        if not reply:
            raise TherapyError(detail="Model returned an empty reply")

        if session_id:
            turns = [
                ChatTurn(role="user", content=message, timestamp=sent_at),
                ChatTurn(role="assistant", content=reply, timestamp=datetime.now(UTC)),
            ]
            async with get_session() as session:
                await VoiceAnalysisRepository(session).append_therapy_messages(
                    session_id=session_id,
                    user_id=user_id,
                    messages=[t.model_dump(mode="json") for t in turns],
                )
            logger.info("Appended chat turn to therapy session %s", session_id)

        return TherapyResponse(action=TherapyAction.chat, response=reply, session_id=session_id)

    async def generate_recommendations(self, user_id: str) -> TherapyResponse:
        context = await self._load_context(user_id)
        raw = await self._ask(
            build_recommendation_prompt(context),
            system=RECOMMENDATION_SYSTEM_PROMPT,
            temperature=RECOMMENDATION_TEMPERATURE,
            json_output=True,
        )
        recommendations = parse_recommendations(raw)

        expires_at = datetime.now(UTC) + RECOMMENDATION_TTL
        async with get_session() as session:
            repo = VoiceAnalysisRepository(session)
            for rec in recommendations:
                await repo.create_recommendation(
                    user_id=user_id,
                    recommendation_type=rec.type,
                    title=rec.title,
                    description=rec.description,
                    content=rec.model_dump(),
                    priority=rec.priority,
                    expires_at=expires_at,
                )
        logger.info("Stored %d recommendations for %s", len(recommendations), user_id)
        return TherapyResponse(
            action=TherapyAction.generate_recommendations,
            recommendations=recommendations,
        )
