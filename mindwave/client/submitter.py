"""
Async HTTP client that submits a finished recording for analysis.

Uses ``httpx.AsyncClient`` against the Mindwave API. Every failure reaches
the caller as one :class:`SubmissionError` carrying the message to show the
user; the server's own ``error`` text is preferred when it sent one.
"""

import logging

import httpx
from pydantic import ValidationError

from mindwave.client.recorder import AudioArtifact
from mindwave.core.config import get_settings
from mindwave.core.exceptions import (
    GENERIC_USER_MESSAGE,
    EmptyRecordingError,
    SubmissionError,
    UnauthenticatedError,
)
from mindwave.core.models import AnalysisResult

logger = logging.getLogger(__name__)

ANALYSIS_PATH = "/api/v1/voice-analysis"


def _server_error_message(response: httpx.Response) -> str | None:
    try:
        body = response.json()
    except ValueError:
        return None
    if isinstance(body, dict) and isinstance(body.get("error"), str) and body["error"]:
        return body["error"]
    return None


class AnalysisSubmitter:
    """Posts recordings to the voice-analysis endpoint.

    Args:
        base_url: Base URL of the Mindwave API (defaults to settings.api_base_url).
        timeout: Request timeout in seconds (defaults to settings.remote_timeout_seconds).
        transport: Optional httpx transport, used to stub the network in tests.
    """

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        settings = get_settings()
        self._base_url = (base_url or settings.api_base_url).rstrip("/")
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            timeout=timeout if timeout is not None else settings.remote_timeout_seconds,
            transport=transport,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "AnalysisSubmitter":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def submit(
        self,
        artifact: AudioArtifact | None,
        duration_seconds: int,
        user_id: str | None,
    ) -> AnalysisResult:
        """Upload one artifact and return the parsed analysis.

        Raises:
            EmptyRecordingError: No artifact, or a zero-byte one.
            UnauthenticatedError: No user id.
            SubmissionError: Transport failure, non-2xx status, or ``success: false``.
        """
        if artifact is None or artifact.size == 0:
            raise EmptyRecordingError()
        if not user_id:
            raise UnauthenticatedError()

        files = {"audio": (artifact.filename, artifact.data, artifact.mime_type)}
        data = {"user_id": user_id, "session_duration": str(duration_seconds)}
        logger.info("Submitting %d bytes (%s) for analysis", artifact.size, artifact.mime_type)

        try:
            resp = await self._client.post(ANALYSIS_PATH, files=files, data=data)
            resp.raise_for_status()
        except httpx.TimeoutException as exc:
            raise SubmissionError(detail=f"Request timed out: {exc}") from None
        except httpx.HTTPStatusError as exc:
            message = _server_error_message(exc.response) or GENERIC_USER_MESSAGE
            raise SubmissionError(
                user_message=message,
                detail=f"HTTP {exc.response.status_code}: {exc.response.text[:200]}",
            ) from None
        except httpx.HTTPError as exc:
            raise SubmissionError(detail=f"Network error: {exc}") from None

        try:
            body = resp.json()
        except ValueError:
            raise SubmissionError(detail="Response is not JSON") from None
        if not isinstance(body, dict) or not body.get("success"):
            message = _server_error_message(resp) or GENERIC_USER_MESSAGE
            raise SubmissionError(user_message=message, detail="Server reported success=false")

        try:
            return AnalysisResult.model_validate(body)
        except ValidationError as exc:
            raise SubmissionError(detail=f"Malformed analysis result: {exc.error_count()} errors") from None
