"""
Storage module - Database access for voice analyses and insights.
"""

from mindwave.services.storage.database import (
    Base,
    bind_engine,
    close_db,
    create_engine_for_url,
    get_engine,
    get_session,
    init_db,
    reset_engine,
)
from mindwave.services.storage.models_db import (
    AIPrediction,
    AIRecommendation,
    BehavioralPatternRow,
    TherapySession,
    VoiceAnalysis,
)
from mindwave.services.storage.repository import VoiceAnalysisRepository

__all__ = [
    "AIPrediction",
    "AIRecommendation",
    "Base",
    "BehavioralPatternRow",
    "TherapySession",
    "VoiceAnalysis",
    "VoiceAnalysisRepository",
    "bind_engine",
    "close_db",
    "create_engine_for_url",
    "get_engine",
    "get_session",
    "init_db",
    "reset_engine",
]
