"""
Optional companion-wearable summary push.

After a successful analysis the client sends a small mood summary to a
paired wearable. The push never affects the analysis outcome: it runs as
a background task and every failure is logged and dropped.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from datetime import UTC, datetime

from mindwave.core.models import AnalysisResult

logger = logging.getLogger(__name__)

MOOD_UPDATE = "mood_update"

# Strong references to in-flight pushes so they are not garbage collected
_pending: set[asyncio.Task] = set()


class WearableBridge(ABC):
    """Messaging channel to a paired wearable."""

    @abstractmethod
    async def is_installed(self) -> bool: ...

    @abstractmethod
    async def is_reachable(self) -> bool: ...

    @abstractmethod
    async def send(self, payload: dict) -> None: ...


class NullWearableBridge(WearableBridge):
    """Used when no wearable is paired."""

    async def is_installed(self) -> bool:
        return False

    async def is_reachable(self) -> bool:
        return False

    async def send(self, payload: dict) -> None:
        logger.debug("No wearable paired; dropping %s", payload.get("type"))


def build_mood_payload(result: AnalysisResult, now: datetime | None = None) -> dict:
    """Summarize an analysis as a ``mood_update`` message."""
    return {
        "type": MOOD_UPDATE,
        "mood": {
            "mood_score": result.psychological_analysis.mood_score,
            "energy_level": result.psychological_analysis.energy_level,
            "stress_level": result.stress_indicators.level,
            "dominant_emotion": result.emotional_tone.dominant,
        },
        "timestamp": (now or datetime.now(UTC)).isoformat(),
    }


async def push_to_wearable(bridge: WearableBridge, payload: dict) -> bool:
    """Send ``payload`` if the wearable is reachable.

    Returns:
        True if the message was handed to the bridge.
    """
    try:
        if not await bridge.is_reachable():
            logger.info("Wearable not reachable; skipping %s", payload.get("type"))
            return False
        await bridge.send(payload)
    except Exception as exc:
        logger.warning("Wearable push failed: %s", exc)
        return False
    logger.info("Sent %s to wearable", payload.get("type"))
    return True


def schedule_wearable_push(bridge: WearableBridge, result: AnalysisResult) -> asyncio.Task:
    """Start a push in the background and return its task without awaiting it."""
    task = asyncio.create_task(push_to_wearable(bridge, build_mood_payload(result)))
    _pending.add(task)
    task.add_done_callback(_pending.discard)
    return task
