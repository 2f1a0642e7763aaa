"""
Structured interpretation of a voice transcript.

Sends the transcript to the configured LLM with a fixed instruction that
demands one JSON object with exactly five keys, then validates the reply
against :class:`VoiceInterpretation`. A reply that does not validate is
never merged field by field: the whole result is replaced by
``FALLBACK_INTERPRETATION``.
"""

import json
import logging
from dataclasses import dataclass

from pydantic import ValidationError

from mindwave.core.exceptions import InterpretationParseFailure, InterpretationServiceError
from mindwave.core.models import VoiceInterpretation
from mindwave.core.utils import strip_code_fences
from mindwave.services.llm.base import BaseLLM

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are an expert in voice analysis and psychology. "
    "Analyze the transcribed speech and return a detailed analysis as JSON.\n\n"
    "Rules:\n"
    "- Output ONLY one valid JSON object, no markdown fences or extra text.\n"
    "- The object has exactly these five keys:\n"
    '  - emotional_tone: {"dominant": string, "confidence": 0-1, '
    '"emotions": object mapping emotions such as "joy", "sadness", "anger" to 0-1}\n'
    '  - stress_indicators: {"level": "low" | "moderate" | "high", "score": 0-100, '
    '"indicators": [string]}\n'
    '  - psychological_analysis: {"mood_score": 0-100, "energy_level": 0-100, '
    '"insights": [string], "recommendations": [string]}\n'
    '  - voice_metrics: {"pitch_average": 150-300, "volume_average": 50-100, '
    '"speech_rate": 120-180, "jitter": 0.01-0.03}\n'
    "  - confidence_score: number from 0 to 1\n"
    "- Write insights and recommendations in the language of the transcript."
)

FALLBACK_INTERPRETATION = VoiceInterpretation.model_validate(
    {
        "emotional_tone": {
            "dominant": "neutral",
            "confidence": 0.5,
            "emotions": {"neutral": 0.7, "joy": 0.2, "sadness": 0.1},
        },
        "stress_indicators": {
            "level": "moderate",
            "score": 50,
            "indicators": ["automatic analysis unavailable"],
        },
        "psychological_analysis": {
            "mood_score": 50,
            "energy_level": 50,
            "insights": ["detailed analysis unavailable"],
            "recommendations": ["try again with a longer recording"],
        },
        "voice_metrics": {
            "pitch_average": 200,
            "volume_average": 75,
            "speech_rate": 150,
            "jitter": 0.02,
        },
        "confidence_score": 0.5,
    }
)


def build_user_prompt(transcript: str) -> str:
    return f'Analyze this transcribed text: "{transcript}"'


def parse_interpretation(raw: str) -> VoiceInterpretation:
    """Strictly decode model output into a :class:`VoiceInterpretation`.

    Raises:
        InterpretationParseFailure: If the text is not JSON or does not
            match the five-key schema.
    """
    cleaned = strip_code_fences(raw or "")
    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError as exc:
        raise InterpretationParseFailure(detail=f"Model output is not JSON: {cleaned[:200]}") from exc
    try:
        return VoiceInterpretation.model_validate(data)
    except ValidationError as exc:
        raise InterpretationParseFailure(
            detail=f"Model output does not match the analysis schema: {exc.error_count()} errors"
        ) from exc


@dataclass(frozen=True)
class InterpretationOutcome:
    interpretation: VoiceInterpretation
    used_fallback: bool = False


class VoiceInterpreter:
    """Turns a transcript into a validated five-key analysis.

    Args:
        llm: Any provider implementing ``BaseLLM``.
    """

    def __init__(self, llm: BaseLLM, temperature: float = 0.3) -> None:
        self._llm = llm
        self._temperature = temperature

    async def interpret(self, transcript: str) -> InterpretationOutcome:
        """Interpret a transcript.

        Raises:
            InterpretationServiceError: If the LLM call itself fails. Parse
                failures are recovered with the fallback analysis.
        """
        try:
            raw = await self._llm.generate(
                build_user_prompt(transcript),
                system=SYSTEM_PROMPT,
                temperature=self._temperature,
                json_output=True,
            )
        except InterpretationServiceError:
            raise
        except Exception as exc:
            raise InterpretationServiceError(detail=f"LLM call failed: {exc}") from exc

        try:
            interpretation = parse_interpretation(raw)
        except InterpretationParseFailure as exc:
            logger.warning("Using fallback analysis: %s", exc.detail)
            return InterpretationOutcome(
                interpretation=FALLBACK_INTERPRETATION.model_copy(deep=True),
                used_fallback=True,
            )
        return InterpretationOutcome(interpretation=interpretation)
