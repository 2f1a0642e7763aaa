"""End-to-end client pipeline against the real application.

Recorder (fake capture) → AnalysisSubmitter → POST /voice-analysis →
stubbed STT/LLM → SQLite row → wearable push. The submitter talks to the
app in-process through ``ASGITransport``.
"""

import asyncio

import pytest
from httpx import ASGITransport

from mindwave.client.pipeline import analyze_recording
from mindwave.client.recorder import CaptureHandle, CapturePlatform, Recorder
from mindwave.client.submitter import AnalysisSubmitter
from mindwave.client.wearable import WearableBridge
from mindwave.core.models import RecordingState, TranscriptionResult
from mindwave.services.storage import database
from mindwave.services.storage.repository import VoiceAnalysisRepository

# ---------------------------------------------------------------------------
# Fakes
# ---------------------------------------------------------------------------


class _Handle(CaptureHandle):
    def __init__(self, on_data):
        self._on_data = on_data

    def stop(self):
        self._on_data(b"OggS-final-page")

    def release(self):
        pass


class OggOnlyPlatform(CapturePlatform):
    family = "android"

    def __init__(self):
        self.handle = None

    def is_type_supported(self, mime_type):
        return mime_type == "audio/ogg"

    def open(self, constraints, encoding, on_data, on_error):
        self.handle = _Handle(on_data)
        on_data(b"OggS-first-page|")
        return self.handle


class CollectingBridge(WearableBridge):
    def __init__(self):
        self.sent = []

    async def is_installed(self):
        return True

    async def is_reachable(self):
        return True

    async def send(self, payload):
        self.sent.append(payload)


@pytest.fixture
async def submitter(app, use_test_db):
    client = AnalysisSubmitter(base_url="http://test", transport=ASGITransport(app=app))
    yield client
    await client.aclose()


# ---------------------------------------------------------------------------
# Full pipeline
# ---------------------------------------------------------------------------


async def test_record_submit_store(submitter, mock_stt, mock_llm):
    recorder = Recorder(OggOnlyPlatform(), tick_interval=0.01)
    bridge = CollectingBridge()

    await recorder.start()
    await asyncio.sleep(0.05)
    artifact = await recorder.stop()
    result = await analyze_recording(recorder, submitter, "user-7", bridge=bridge)

    assert artifact.mime_type == "audio/ogg"
    assert recorder.state == RecordingState.complete
    assert result.transcription == "Hoje foi um dia tranquilo, dormi bem."

    stt_kwargs = mock_stt.transcribe.call_args.kwargs
    assert mock_stt.transcribe.call_args.args[0] == b"OggS-first-page|OggS-final-page"
    assert stt_kwargs["filename"] == "audio.ogg"
    mock_llm.generate.assert_awaited_once()

    async with database.get_session() as session:
        rows = await VoiceAnalysisRepository(session).list_for_user("user-7")
    assert len(rows) == 1
    assert rows[0].session_duration == recorder.session.elapsed_seconds

    await asyncio.sleep(0.01)
    assert bridge.sent[0]["mood"]["mood_score"] == result.psychological_analysis.mood_score


async def test_server_rejection_fails_session(submitter, mock_stt):
    mock_stt.transcribe.return_value = TranscriptionResult(text="", language="pt")
    recorder = Recorder(OggOnlyPlatform(), tick_interval=0.01)

    await recorder.start()
    await recorder.stop()
    result = await analyze_recording(recorder, submitter, "user-7")

    assert result is None
    assert recorder.state == RecordingState.failed
    assert recorder.session.error == "Could not process the audio. Try a clearer recording."

    recorder.reset()
    assert recorder.state == RecordingState.idle
