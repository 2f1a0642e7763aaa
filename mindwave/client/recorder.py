"""
Client-side recording session.

A :class:`Recorder` negotiates an encoding with the capture platform, keeps
an elapsed-seconds counter while capturing, buffers the chunks the platform
delivers, and on stop flushes them into one immutable :class:`AudioArtifact`.

State machine::

    idle ──start──▶ recording ──stop──▶ stopped ──begin_analysis──▶ analyzing
      ▲                 │                   │                          │
      │            capture error            │               complete / fail
      │                 ▼                   ▼                          ▼
      └────reset──── failed ◀───────────────┴──────────────── complete | failed

``start()`` is also accepted from stopped, complete and failed; it is a
no-op while recording or analyzing.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass, field

from mindwave.core.exceptions import (
    CaptureError,
    DeviceNotFoundError,
    EncodingUnsupportedError,
    MindwaveError,
    PermissionDeniedError,
)
from mindwave.core.models import AnalysisResult, RecordingState
from mindwave.core.utils import base_mime_type

logger = logging.getLogger(__name__)

STRICT_PLATFORM_FAMILIES = frozenset({"ios", "ipados", "safari"})
STRICT_SAMPLE_RATE = 44100
DEFAULT_SAMPLE_RATE = 16000


@dataclass(frozen=True)
class AudioEncoding:
    """A capture mime-type and the file extension it is uploaded with."""

    mime_type: str
    extension: str
    label: str


ENCODING_PRIORITY: tuple[AudioEncoding, ...] = (
    AudioEncoding("audio/webm;codecs=opus", "webm", "WebM Opus"),
    AudioEncoding("audio/webm", "webm", "WebM"),
    AudioEncoding("audio/mp4", "mp4", "MP4"),
    AudioEncoding("audio/wav", "wav", "WAV"),
    AudioEncoding("audio/ogg;codecs=opus", "ogg", "OGG Opus"),
    AudioEncoding("audio/ogg", "ogg", "OGG"),
)

BASIC_ENCODING = AudioEncoding("audio/webm", "webm", "WebM Basic")


@dataclass(frozen=True)
class CaptureConstraints:
    sample_rate: int = DEFAULT_SAMPLE_RATE
    channel_count: int = 1
    echo_cancellation: bool = True
    noise_suppression: bool = True
    auto_gain_control: bool = True


@dataclass(frozen=True)
class AudioArtifact:
    """The finished recording: bytes tagged with their base mime-type."""

    data: bytes
    mime_type: str
    extension: str

    @property
    def size(self) -> int:
        return len(self.data)

    @property
    def filename(self) -> str:
        return f"voice-sample.{self.extension}"


@dataclass
class RecordingSession:
    """Observable state of the current recording."""

    state: RecordingState = RecordingState.idle
    elapsed_seconds: int = 0
    encoding: AudioEncoding | None = None
    artifact: AudioArtifact | None = None
    error: str | None = None
    result: AnalysisResult | None = None
    chunks: list[bytes] = field(default_factory=list, repr=False)


# ---------------------------------------------------------------------------
# Platform contract
# ---------------------------------------------------------------------------


class CaptureHandle(ABC):
    """An open capture stream."""

    @abstractmethod
    def stop(self) -> None:
        """Stop capturing; any data still buffered is delivered through ``on_data``."""

    @abstractmethod
    def release(self) -> None:
        """Release the device. Safe to call more than once."""


class CapturePlatform(ABC):
    """The audio capture facility of the host."""

    family: str = "desktop"

    @abstractmethod
    def is_type_supported(self, mime_type: str) -> bool: ...

    @abstractmethod
    def open(
        self,
        constraints: CaptureConstraints,
        encoding: AudioEncoding,
        on_data: Callable[[bytes], None],
        on_error: Callable[[Exception], None],
    ) -> CaptureHandle:
        """Open the input device and start capturing.

        Raises:
            PermissionDeniedError: Access to the microphone was refused.
            DeviceNotFoundError: No input device is available.
            EncodingUnsupportedError: The platform cannot record at all.
        """


# ---------------------------------------------------------------------------
# Recorder
# ---------------------------------------------------------------------------


class Recorder:
    """Drives one recording session at a time on the running event loop.

    Args:
        platform: Capture platform to record from.
        tick_interval: Seconds between elapsed-counter increments.
    """

    def __init__(self, platform: CapturePlatform, tick_interval: float = 1.0) -> None:
        self._platform = platform
        self._tick_interval = tick_interval
        self._handle: CaptureHandle | None = None
        self._ticker: asyncio.Task | None = None
        self.session = RecordingSession()

    @property
    def state(self) -> RecordingState:
        return self.session.state

    def negotiate_encoding(self) -> AudioEncoding:
        """Pick the first supported encoding, or the basic fallback."""
        for encoding in ENCODING_PRIORITY:
            if self._platform.is_type_supported(encoding.mime_type):
                logger.debug("Negotiated encoding %s", encoding.label)
                return encoding
        logger.warning("No preferred encoding supported; using %s", BASIC_ENCODING.label)
        return BASIC_ENCODING

    def capture_constraints(self) -> CaptureConstraints:
        family = (self._platform.family or "").lower()
        if family in STRICT_PLATFORM_FAMILIES:
            return CaptureConstraints(sample_rate=STRICT_SAMPLE_RATE)
        return CaptureConstraints(sample_rate=DEFAULT_SAMPLE_RATE)

    async def start(self) -> RecordingSession:
        """Begin recording.

        Returns the current session unchanged if one is already recording
        or being analyzed.

        Raises:
            PermissionDeniedError, DeviceNotFoundError, EncodingUnsupportedError,
            CaptureError: The device could not be opened. The session is left
            in ``failed`` with the matching user message.
        """
        if self.session.state in (RecordingState.recording, RecordingState.analyzing):
            logger.info("start() ignored: session is %s", self.session.state)
            return self.session

        encoding = self.negotiate_encoding()
        self.session = RecordingSession(encoding=encoding)

        try:
            self._handle = self._platform.open(
                self.capture_constraints(),
                encoding,
                self._on_data,
                self._on_error,
            )
        except (PermissionDeniedError, DeviceNotFoundError, EncodingUnsupportedError, CaptureError) as exc:
            self._mark_failed(exc.user_message)
            logger.warning("Could not start recording: %s", exc.detail)
            raise
        except Exception as exc:
            error = CaptureError(detail=str(exc))
            self._mark_failed(error.user_message)
            logger.error("Could not start recording: %s", exc)
            raise error from exc

        self.session.state = RecordingState.recording
        self._ticker = asyncio.create_task(self._tick())
        logger.info("Recording started (%s)", encoding.mime_type)
        return self.session

    async def stop(self) -> AudioArtifact | None:
        """Finish recording and return the artifact; no-op outside ``recording``.

        A flush failure fails the session instead of raising, so a new
        ``start()`` is always possible afterwards.
        """
        if self.session.state != RecordingState.recording:
            return None

        await self._cancel_ticker()
        # A capture error delivered while the ticker wound down has already failed the session
        if self.session.state != RecordingState.recording:
            return None
        if self._handle is None:
            self._mark_failed(CaptureError().user_message)
            return None

        handle, self._handle = self._handle, None
        try:
            handle.stop()
        except Exception as exc:
            error = exc if isinstance(exc, CaptureError) else CaptureError(detail=str(exc))
            logger.error("Could not flush recording: %s", exc)
            self._mark_failed(error.user_message)
            return None
        finally:
            self._release(handle)

        # A capture error delivered during the flush has already failed the session
        if self.session.state != RecordingState.recording:
            return None

        encoding = self.session.encoding or BASIC_ENCODING
        artifact = AudioArtifact(
            data=b"".join(self.session.chunks),
            mime_type=base_mime_type(encoding.mime_type),
            extension=encoding.extension,
        )
        self.session.chunks.clear()
        self.session.artifact = artifact
        self.session.state = RecordingState.stopped
        logger.info("Recording stopped: %d bytes over %ds", artifact.size, self.session.elapsed_seconds)
        return artifact

    def reset(self) -> None:
        """Discard the finished session and return to ``idle``."""
        if self.session.state not in (RecordingState.stopped, RecordingState.complete, RecordingState.failed):
            logger.debug("reset() ignored: session is %s", self.session.state)
            return
        self.session = RecordingSession()

    # -- analysis transitions --

    def begin_analysis(self) -> AudioArtifact:
        if self.session.state != RecordingState.stopped:
            raise MindwaveError(
                detail=f"Cannot analyze from state {self.session.state}",
                code="INVALID_STATE",
                status_code=409,
            )
        self.session.state = RecordingState.analyzing
        self.session.error = None
        return self.session.artifact

    def complete_analysis(self, result: AnalysisResult) -> None:
        if self.session.state == RecordingState.analyzing:
            self.session.result = result
            self.session.state = RecordingState.complete

    def fail_analysis(self, message: str) -> None:
        if self.session.state == RecordingState.analyzing:
            self.session.error = message
            self.session.state = RecordingState.failed

    # -- internals --

    async def _tick(self) -> None:
        while True:
            await asyncio.sleep(self._tick_interval)
            self.session.elapsed_seconds += 1

    async def _cancel_ticker(self) -> None:
        ticker, self._ticker = self._ticker, None
        if ticker is None:
            return
        ticker.cancel()
        try:
            await ticker
        except asyncio.CancelledError:
            pass

    def _on_data(self, chunk: bytes) -> None:
        if chunk:
            self.session.chunks.append(chunk)

    def _on_error(self, exc: Exception) -> None:
        if self.session.state != RecordingState.recording:
            return
        logger.error("Capture error during recording: %s", exc)
        if self._ticker is not None:
            self._ticker.cancel()
            self._ticker = None
        handle, self._handle = self._handle, None
        if handle is not None:
            self._release(handle)
        message = exc.user_message if isinstance(exc, MindwaveError) else CaptureError().user_message
        self._mark_failed(message)

    def _release(self, handle: CaptureHandle) -> None:
        try:
            handle.release()
        except Exception as exc:
            logger.warning("Could not release capture device: %s", exc)

    def _mark_failed(self, message: str) -> None:
        self.session.state = RecordingState.failed
        self.session.error = message
        self.session.chunks.clear()
