"""Denormalized voice-metric columns stored with every analysis row.

The model only estimates four metrics, and may leave any of them out. Each
missing value is drawn uniformly from a plausible band; pitch variability,
harmonics and pause frequency are never estimated by the model and are
always drawn.
"""

import random

from mindwave.core.models import VoiceMetrics

PITCH_AVERAGE_BAND = (150.0, 250.0)
VOLUME_AVERAGE_BAND = (50.0, 100.0)
JITTER_BAND = (0.01, 0.03)
PITCH_VARIABILITY_BAND = (10.0, 30.0)
HARMONICS_BAND = (0.3, 0.8)
PAUSE_FREQUENCY_BAND = (0.2, 0.8)
DEFAULT_SPEECH_RATE = 150.0


def _draw(rng: random.Random, band: tuple[float, float]) -> float:
    low, high = band
    return rng.uniform(low, high)


def build_metric_columns(metrics: VoiceMetrics, rng: random.Random | None = None) -> dict[str, float]:
    """Return values for all seven metric columns.

    A model value of ``None`` or ``0`` counts as not supplied.
    """
    rng = rng or random.Random()
    return {
        "pitch_average": metrics.pitch_average or _draw(rng, PITCH_AVERAGE_BAND),
        "volume_average": metrics.volume_average or _draw(rng, VOLUME_AVERAGE_BAND),
        "jitter": metrics.jitter or _draw(rng, JITTER_BAND),
        "pitch_variability": _draw(rng, PITCH_VARIABILITY_BAND),
        "harmonics": _draw(rng, HARMONICS_BAND),
        "speech_rate": metrics.speech_rate or DEFAULT_SPEECH_RATE,
        "pause_frequency": _draw(rng, PAUSE_FREQUENCY_BAND),
    }


def placeholder_voice_metrics(columns: dict[str, float]) -> VoiceMetrics:
    """The four reported metrics, with the drawn placeholders filled in."""
    return VoiceMetrics(
        pitch_average=columns["pitch_average"],
        volume_average=columns["volume_average"],
        speech_rate=columns["speech_rate"],
        jitter=columns["jitter"],
    )
