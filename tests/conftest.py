"""Shared pytest fixtures for the Mindwave test suite.

Provides common test fixtures used across unit and integration tests,
including mock LLM/STT providers and database setup helpers.
"""

import json
import struct
from unittest.mock import AsyncMock

import pytest

SAMPLE_INTERPRETATION = {
    "emotional_tone": {
        "dominant": "calm",
        "confidence": 0.82,
        "emotions": {"calm": 0.6, "joy": 0.3, "anxiety": 0.1},
    },
    "stress_indicators": {
        "level": "low",
        "score": 22,
        "indicators": ["steady pacing"],
    },
    "psychological_analysis": {
        "mood_score": 71,
        "energy_level": 64,
        "insights": ["speaks positively about the weekend"],
        "recommendations": ["keep the evening walks"],
    },
    "voice_metrics": {
        "pitch_average": 180.0,
        "volume_average": 62.0,
        "speech_rate": 142.0,
        "jitter": 0.015,
    },
    "confidence_score": 0.8,
}


@pytest.fixture
def sample_interpretation():
    """A well-formed five-key interpretation dict (fresh copy per test)."""
    return json.loads(json.dumps(SAMPLE_INTERPRETATION))


# ---------------------------------------------------------------------------
# LLM Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def mock_llm(sample_interpretation):
    """Create a mock LLM provider for unit testing.

    Returns:
        AsyncMock: A mock implementing the BaseLLM interface whose
        generate() returns a valid interpretation as JSON text.
    """
    from mindwave.services.llm.base import BaseLLM

    llm = AsyncMock(spec=BaseLLM)
    llm.generate.return_value = json.dumps(sample_interpretation)
    return llm


# ---------------------------------------------------------------------------
# STT Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def mock_stt():
    """Create a mock STT provider for unit testing.

    Returns:
        AsyncMock: A mock implementing the BaseSTT interface with a
        default Portuguese transcription.
    """
    from mindwave.core.models import TranscriptionResult
    from mindwave.services.transcription.base import BaseSTT

    stt = AsyncMock(spec=BaseSTT)
    stt.transcribe.return_value = TranscriptionResult(
        text="Hoje foi um dia tranquilo, dormi bem.",
        language="pt",
        duration=4.2,
    )
    return stt


# ---------------------------------------------------------------------------
# Audio Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def sample_pcm_bytes():
    """Generate 1 second of 440Hz sine-wave PCM audio (16kHz, 16-bit, mono).

    Returns:
        bytes: Raw PCM audio data.
    """
    import math

    sample_rate = 16000
    frequency = 440.0
    amplitude = 16000  # ~50% of max int16

    samples = []
    for i in range(sample_rate):
        value = int(amplitude * math.sin(2 * math.pi * frequency * i / sample_rate))
        samples.append(struct.pack("<h", value))
    return b"".join(samples)


# ---------------------------------------------------------------------------
# Database Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
async def db_engine():
    """Create an in-memory SQLite async engine with tables, dispose after test."""
    from mindwave.services.storage.database import create_engine_for_url, init_db

    engine = create_engine_for_url("sqlite+aiosqlite:///:memory:")
    await init_db(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
async def db_session(db_engine):
    """Yield an AsyncSession bound to the test engine; rolls back after test."""
    from sqlalchemy.ext.asyncio import async_sessionmaker

    factory = async_sessionmaker(db_engine, expire_on_commit=False)
    async with factory() as session:
        yield session
        await session.rollback()


@pytest.fixture
def repository(db_session):
    """Return a VoiceAnalysisRepository bound to the test session."""
    from mindwave.services.storage.repository import VoiceAnalysisRepository

    return VoiceAnalysisRepository(db_session)


@pytest.fixture
def use_test_db(db_engine):
    """Point ``get_session()`` at the in-memory engine for the test's duration."""
    from mindwave.services.storage import database

    database.bind_engine(db_engine)
    yield db_engine
    database.reset_engine()
