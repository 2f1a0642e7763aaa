"""Audio processing utilities for PCM data.

Converts raw PCM bytes to numpy arrays and encodes them into the
container formats the capture layer can hand to the analysis handler.
"""

import io

import numpy as np
import soundfile as sf

# mime-type -> (libsndfile format, subtype)
CONTAINER_FORMATS: dict[str, tuple[str, str]] = {
    "audio/wav": ("WAV", "PCM_16"),
    "audio/ogg": ("OGG", "VORBIS"),
    "audio/ogg;codecs=opus": ("OGG", "OPUS"),
}


class AudioProcessor:
    """Handles PCM audio data conversion and container encoding.

    Provides utilities for converting raw PCM bytes to numpy arrays and
    writing them as WAV or OGG bytes in memory.
    """

    def __init__(
        self,
        sample_rate: int = 16000,
        sample_width: int = 2,
        channels: int = 1,
    ) -> None:
        """Initialize the audio processor.

        Args:
            sample_rate: Audio sample rate in Hz (default: 16 kHz).
            sample_width: Bytes per sample (2 = 16-bit signed PCM).
            channels: Number of audio channels (1 = mono).
        """
        self.sample_rate = sample_rate
        self.sample_width = sample_width
        self.channels = channels

    def pcm_to_ndarray(self, pcm_data: bytes) -> np.ndarray:
        """Convert raw PCM bytes (16-bit signed) to a float32 numpy array.

        Multi-channel data is returned as ``(frames, channels)``.

        Raises:
            ValueError: If data length is not aligned to sample frame size.
        """
        frame_size = self.sample_width * self.channels
        if len(pcm_data) % frame_size != 0:
            raise ValueError(
                f"PCM data length ({len(pcm_data)}) is not aligned to frame size ({frame_size})"
            )
        samples = np.frombuffer(pcm_data, dtype=np.int16).astype(np.float32) / 32768.0
        if self.channels > 1:
            samples = samples.reshape(-1, self.channels)
        return samples

    def duration_seconds(self, pcm_data: bytes) -> float:
        return len(pcm_data) / (self.sample_rate * self.sample_width * self.channels)

    def encode(self, pcm_data: bytes, mime_type: str) -> bytes:
        """Encode PCM bytes into the container named by ``mime_type``.

        Raises:
            ValueError: If the mime-type has no writable container or the data is empty.
        """
        if not pcm_data:
            raise ValueError("Cannot encode empty PCM data")
        try:
            fmt, subtype = CONTAINER_FORMATS[mime_type]
        except KeyError:
            raise ValueError(f"No container encoder for {mime_type}") from None

        buf = io.BytesIO()
        sf.write(buf, self.pcm_to_ndarray(pcm_data), self.sample_rate, format=fmt, subtype=subtype)
        return buf.getvalue()
