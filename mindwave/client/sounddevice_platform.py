"""
Desktop capture platform backed by PortAudio through ``sounddevice``.

The input stream delivers 16-bit PCM on PortAudio's callback thread. The
PCM is buffered and, when the handle is stopped, encoded once into the
negotiated container (WAV or OGG) with ``soundfile``. Echo cancellation,
noise suppression and gain control are not available from PortAudio; only
the sample rate and channel count of the constraints are applied.
"""

import asyncio
import logging
import threading
from collections.abc import Callable

from mindwave.client.recorder import (
    AudioEncoding,
    CaptureConstraints,
    CaptureHandle,
    CapturePlatform,
)
from mindwave.core.exceptions import (
    CaptureError,
    DeviceNotFoundError,
    EncodingUnsupportedError,
    PermissionDeniedError,
)
from mindwave.services.audio import CONTAINER_FORMATS, AudioProcessor

logger = logging.getLogger(__name__)

_PERMISSION_MARKERS = ("permission", "denied", "not authorized")


def _load_sounddevice():
    # PortAudio is a native library; importing sounddevice fails where it is absent
    try:
        import sounddevice as sd
    except (ImportError, OSError) as exc:
        raise EncodingUnsupportedError(detail=f"sounddevice is unavailable: {exc}") from exc
    return sd


class SoundDeviceCapture(CaptureHandle):
    """Buffers PCM from an input stream and encodes it on stop."""

    def __init__(
        self,
        processor: AudioProcessor,
        mime_type: str,
        on_data: Callable[[bytes], None],
        on_error: Callable[[Exception], None],
        loop: asyncio.AbstractEventLoop,
    ) -> None:
        self._processor = processor
        self._mime_type = mime_type
        self._on_data = on_data
        self._on_error = on_error
        self._loop = loop
        self._pcm = bytearray()
        self._lock = threading.Lock()
        self._stopping = False
        self._released = False
        self.stream = None

    def audio_callback(self, indata, _frames, _time, status) -> None:
        # Runs on the PortAudio thread
        if status:
            logger.debug("Input stream status: %s", status)
        with self._lock:
            self._pcm.extend(indata.tobytes())

    def finished_callback(self) -> None:
        if not self._stopping:
            self._loop.call_soon_threadsafe(
                self._on_error, CaptureError(detail="Input stream ended unexpectedly")
            )

    def stop(self) -> None:
        self._stopping = True
        if self.stream is not None:
            self.stream.stop()
        with self._lock:
            pcm = bytes(self._pcm)
            self._pcm.clear()
        if not pcm:
            return
        try:
            self._on_data(self._processor.encode(pcm, self._mime_type))
        except Exception as exc:
            self._on_error(CaptureError(detail=f"Could not encode recording: {exc}"))

    def release(self) -> None:
        if self._released:
            return
        self._released = True
        self._stopping = True
        if self.stream is not None:
            self.stream.close()


class SoundDevicePlatform(CapturePlatform):
    """Capture from a local input device.

    Args:
        device: Optional PortAudio device index or name substring.
    """

    family = "desktop"

    def __init__(self, device: int | str | None = None) -> None:
        self._device = device

    def is_type_supported(self, mime_type: str) -> bool:
        return mime_type in CONTAINER_FORMATS

    def open(
        self,
        constraints: CaptureConstraints,
        encoding: AudioEncoding,
        on_data: Callable[[bytes], None],
        on_error: Callable[[Exception], None],
    ) -> CaptureHandle:
        if encoding.mime_type not in CONTAINER_FORMATS:
            raise EncodingUnsupportedError(detail=f"Cannot write {encoding.mime_type} containers")

        sd = _load_sounddevice()
        try:
            sd.query_devices(self._device, kind="input")
        except (ValueError, sd.PortAudioError) as exc:
            raise DeviceNotFoundError(detail=str(exc)) from exc

        processor = AudioProcessor(sample_rate=constraints.sample_rate, channels=constraints.channel_count)
        handle = SoundDeviceCapture(
            processor, encoding.mime_type, on_data, on_error, asyncio.get_running_loop()
        )
        try:
            handle.stream = sd.InputStream(
                samplerate=constraints.sample_rate,
                channels=constraints.channel_count,
                dtype="int16",
                device=self._device,
                callback=handle.audio_callback,
                finished_callback=handle.finished_callback,
            )
            handle.stream.start()
        except sd.PortAudioError as exc:
            handle.release()
            if any(marker in str(exc).lower() for marker in _PERMISSION_MARKERS):
                raise PermissionDeniedError(detail=str(exc)) from exc
            raise CaptureError(detail=str(exc)) from exc

        logger.info(
            "Input stream open: %d Hz, %d channel(s), %s",
            constraints.sample_rate,
            constraints.channel_count,
            encoding.mime_type,
        )
        return handle
