"""
Analysis module - Transcribe-and-interpret pipeline for voice uploads.
"""

from .handler import VoiceAnalysisHandler, create_voice_handler
from .ingress import AudioUpload, decode_base64_chunked, read_voice_upload
from .interpreter import FALLBACK_INTERPRETATION, VoiceInterpreter, parse_interpretation

__all__ = [
    "FALLBACK_INTERPRETATION",
    "AudioUpload",
    "VoiceAnalysisHandler",
    "VoiceInterpreter",
    "create_voice_handler",
    "decode_base64_chunked",
    "parse_interpretation",
    "read_voice_upload",
]
