"""Integration test fixtures for Mindwave.

Provides an async HTTP client against a fresh application that uses an
in-memory SQLite database with real repository operations, and stubbed
STT/LLM providers injected through FastAPI dependency overrides.
"""

import pytest
from httpx import ASGITransport, AsyncClient

from mindwave.api.app import create_app
from mindwave.api.routes.predictions import get_insight_service
from mindwave.api.routes.therapy import get_therapy_service
from mindwave.api.routes.voice_analysis import get_voice_handler
from mindwave.core.config import Settings
from mindwave.services.analysis.handler import VoiceAnalysisHandler
from mindwave.services.insights import InsightService, TherapyService


@pytest.fixture
def app(mock_stt, mock_llm):
    """Create a fresh FastAPI application with stubbed providers."""
    application = create_app()
    settings = Settings(_env_file=None)
    application.dependency_overrides[get_voice_handler] = lambda: VoiceAnalysisHandler(
        stt=mock_stt, llm=mock_llm, settings=settings
    )
    application.dependency_overrides[get_insight_service] = lambda: InsightService(mock_llm)
    application.dependency_overrides[get_therapy_service] = lambda: TherapyService(mock_llm)
    return application


@pytest.fixture
async def async_client(app, use_test_db):
    """AsyncClient backed by the in-memory test engine."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
