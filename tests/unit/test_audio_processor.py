"""Tests for AudioProcessor PCM conversion and container encoding."""

import io

import numpy as np
import pytest
import soundfile as sf

from mindwave.services.audio.processor import AudioProcessor


@pytest.fixture
def processor():
    return AudioProcessor(sample_rate=16000)


class TestPcmToNdarray:
    def test_normalized_float32(self, processor, sample_pcm_bytes):
        audio = processor.pcm_to_ndarray(sample_pcm_bytes)
        assert audio.dtype == np.float32
        assert len(audio) == 16000
        assert np.max(np.abs(audio)) <= 1.0

    def test_misaligned_data(self, processor):
        with pytest.raises(ValueError, match="not aligned"):
            processor.pcm_to_ndarray(b"\x00\x01\x02")

    def test_stereo_shape(self):
        audio = AudioProcessor(channels=2).pcm_to_ndarray(b"\x00\x00" * 8)
        assert audio.shape == (4, 2)


class TestEncode:
    def test_wav_container(self, processor, sample_pcm_bytes):
        data = processor.encode(sample_pcm_bytes, "audio/wav")

        assert data[:4] == b"RIFF"
        decoded, rate = sf.read(io.BytesIO(data))
        assert rate == 16000
        assert len(decoded) == 16000

    def test_ogg_container(self, processor, sample_pcm_bytes):
        data = processor.encode(sample_pcm_bytes, "audio/ogg")
        assert data[:4] == b"OggS"

    def test_unwritable_mime(self, processor, sample_pcm_bytes):
        with pytest.raises(ValueError, match="No container encoder"):
            processor.encode(sample_pcm_bytes, "audio/webm")

    def test_empty(self, processor):
        with pytest.raises(ValueError, match="empty"):
            processor.encode(b"", "audio/wav")


def test_duration_seconds(processor, sample_pcm_bytes):
    assert processor.duration_seconds(sample_pcm_bytes) == 1.0
