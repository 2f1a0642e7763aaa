"""
Client analysis flow: submit a stopped recording and record the outcome.
"""

import logging

from mindwave.client.recorder import Recorder
from mindwave.client.submitter import AnalysisSubmitter
from mindwave.client.wearable import WearableBridge, schedule_wearable_push
from mindwave.core.exceptions import MindwaveError
from mindwave.core.models import AnalysisResult

logger = logging.getLogger(__name__)


async def analyze_recording(
    recorder: Recorder,
    submitter: AnalysisSubmitter,
    user_id: str | None,
    bridge: WearableBridge | None = None,
) -> AnalysisResult | None:
    """Run ``stopped -> analyzing -> complete | failed`` for the recorder's session.

    Returns the analysis on success. On failure the session holds the user
    message and ``None`` is returned. A wearable push, when a bridge is
    given, is started in the background and not awaited.
    """
    artifact = recorder.begin_analysis()
    try:
        result = await submitter.submit(artifact, recorder.session.elapsed_seconds, user_id)
    except MindwaveError as exc:
        logger.warning("Analysis failed: [%s] %s", exc.code, exc.detail)
        recorder.fail_analysis(exc.user_message)
        return None

    recorder.complete_analysis(result)
    logger.info("Analysis complete (confidence %.2f)", result.confidence_score)
    if bridge is not None:
        schedule_wearable_push(bridge, result)
    return result
