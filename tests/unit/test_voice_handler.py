"""Tests for VoiceAnalysisHandler (mocked STT/LLM, in-memory SQLite)."""

import json
import random
from unittest.mock import patch

import pytest

from mindwave.core.config import Settings
from mindwave.core.exceptions import (
    EmptyTranscriptionError,
    InterpretationServiceError,
    PersistenceError,
    TranscriptionServiceError,
)
from mindwave.core.models import TranscriptionResult
from mindwave.services.analysis.handler import VoiceAnalysisHandler
from mindwave.services.analysis.ingress import AudioUpload
from mindwave.services.storage.database import get_session
from mindwave.services.storage.repository import VoiceAnalysisRepository


def _upload(mime_type="audio/webm", user_id="user-1", duration=37) -> AudioUpload:
    return AudioUpload(data=b"\x1a\x45\xdf\xa3" * 64, mime_type=mime_type, user_id=user_id, session_duration=duration)


@pytest.fixture
def settings():
    return Settings(_env_file=None, transcription_language="pt")


@pytest.fixture
def handler(mock_stt, mock_llm, settings, use_test_db):
    return VoiceAnalysisHandler(stt=mock_stt, llm=mock_llm, settings=settings, rng=random.Random(0))


async def _rows(user_id="user-1"):
    async with get_session() as session:
        return await VoiceAnalysisRepository(session).list_for_user(user_id)


class TestProcess:
    async def test_success_returns_all_fields(self, handler, sample_interpretation):
        result = await handler.process(_upload())

        assert result.success is True
        assert result.transcription == "Hoje foi um dia tranquilo, dormi bem."
        assert result.emotional_tone.model_dump() == sample_interpretation["emotional_tone"]
        assert result.stress_indicators.level == "low"
        assert result.psychological_analysis.energy_level == 64
        assert result.voice_metrics.speech_rate == 142
        assert result.confidence_score == 0.8

    @pytest.mark.parametrize(
        ("mime", "filename"),
        [("audio/webm", "audio.webm"), ("audio/mp4", "audio.mp4"), ("audio/wav", "audio.wav"),
         ("audio/ogg", "audio.ogg"), ("audio/x-unknown", "audio.webm")],
    )
    async def test_filename_and_language_hint(self, handler, mock_stt, mime, filename):
        await handler.process(_upload(mime_type=mime))

        kwargs = mock_stt.transcribe.call_args.kwargs
        assert kwargs["filename"] == filename
        assert kwargs["mime_type"] == mime
        assert kwargs["language"] == "pt"

    async def test_persisted_row_matches_stub_output(self, handler, sample_interpretation):
        await handler.process(_upload())

        rows = await _rows()
        assert len(rows) == 1
        row = rows[0]
        assert row.transcription == "Hoje foi um dia tranquilo, dormi bem."
        assert row.stress_indicators == sample_interpretation["stress_indicators"]
        assert row.psychological_analysis == sample_interpretation["psychological_analysis"]
        assert row.session_duration == 37
        assert row.pitch_average == 180
        assert row.speech_rate == 142
        assert 10 <= row.pitch_variability <= 30
        assert row.used_fallback is False

    async def test_missing_voice_metrics_get_placeholders(self, handler, mock_llm, sample_interpretation):
        sample_interpretation["voice_metrics"] = {}
        mock_llm.generate.return_value = json.dumps(sample_interpretation)

        result = await handler.process(_upload())

        metrics = result.voice_metrics
        assert 150 <= metrics.pitch_average <= 250
        assert 50 <= metrics.volume_average <= 100
        assert metrics.speech_rate == 150
        assert 0.01 <= metrics.jitter <= 0.03

        row = (await _rows())[0]
        assert None not in row.voice_metrics.values()
        assert row.voice_metrics["pitch_average"] == row.pitch_average
        assert row.voice_metrics["jitter"] == row.jitter

    async def test_whitespace_transcript_skips_llm(self, handler, mock_stt, mock_llm):
        mock_stt.transcribe.return_value = TranscriptionResult(text="   \n", language="pt")

        with pytest.raises(EmptyTranscriptionError) as exc_info:
            await handler.process(_upload())

        assert exc_info.value.status_code == 422
        mock_llm.generate.assert_not_awaited()
        assert await _rows() == []

    async def test_transcription_failure(self, handler, mock_stt, mock_llm):
        mock_stt.transcribe.side_effect = TranscriptionServiceError(detail="503 from provider")

        with pytest.raises(TranscriptionServiceError):
            await handler.process(_upload())
        mock_llm.generate.assert_not_awaited()

    async def test_llm_failure_stores_nothing(self, handler, mock_llm):
        mock_llm.generate.side_effect = TimeoutError("slow")

        with pytest.raises(InterpretationServiceError):
            await handler.process(_upload())
        assert await _rows() == []

    async def test_unparseable_output_stores_fallback(self, handler, mock_llm):
        mock_llm.generate.return_value = "Sorry, I cannot help with that."

        result = await handler.process(_upload())

        assert result.emotional_tone.dominant == "neutral"
        assert result.confidence_score == 0.5
        rows = await _rows()
        assert rows[0].used_fallback is True
        assert rows[0].speech_rate == 150

    async def test_database_failure(self, handler):
        with patch.object(VoiceAnalysisRepository, "create_analysis", side_effect=RuntimeError("disk full")):
            with pytest.raises(PersistenceError) as exc_info:
                await handler.process(_upload())

        assert exc_info.value.status_code == 500
        assert "disk full" in exc_info.value.detail
