"""
Mindwave exception hierarchy.

All application-specific exceptions inherit from MindwaveError, enabling
centralized error handling in the API middleware layer. Every error carries
two messages: ``detail`` is the technical description (logged and returned
only as ``technical_error``), ``user_message`` is the one sentence shown to
the end user.
"""

from datetime import UTC, datetime

GENERIC_USER_MESSAGE = "Processing failed. Please try again."


class MindwaveError(Exception):
    """Base exception for all Mindwave errors."""

    def __init__(
        self,
        detail: str = "An unexpected error occurred",
        code: str = "MINDWAVE_ERROR",
        status_code: int = 500,
        user_message: str = GENERIC_USER_MESSAGE,
    ) -> None:
        self.detail = detail
        self.code = code
        self.status_code = status_code
        self.user_message = user_message
        self.timestamp = datetime.now(UTC).isoformat()
        super().__init__(detail)


# ---------------------------------------------------------------------------
# Client capture
# ---------------------------------------------------------------------------


class PermissionDeniedError(MindwaveError):
    """Raised when the user or OS refuses microphone access."""

    def __init__(self, detail: str = "Microphone permission denied") -> None:
        super().__init__(
            detail=detail,
            code="PERMISSION_DENIED",
            status_code=403,
            user_message="Permission denied. Allow microphone access and try again.",
        )


class DeviceNotFoundError(MindwaveError):
    """Raised when no capture device is available."""

    def __init__(self, detail: str = "No input device found") -> None:
        super().__init__(
            detail=detail,
            code="DEVICE_NOT_FOUND",
            status_code=404,
            user_message="Microphone not found. Check that it is connected.",
        )


class EncodingUnsupportedError(MindwaveError):
    """Raised when the platform cannot record in any encoding at all."""

    def __init__(self, detail: str = "Audio recording is not supported") -> None:
        super().__init__(
            detail=detail,
            code="ENCODING_UNSUPPORTED",
            status_code=415,
            user_message="Audio recording is not supported on this device.",
        )


class CaptureError(MindwaveError):
    """Raised when the capture device fails while a recording is active."""

    def __init__(self, detail: str = "Capture device error") -> None:
        super().__init__(
            detail=detail,
            code="CAPTURE_ERROR",
            status_code=500,
            user_message="An error occurred during recording. Please try again.",
        )


# ---------------------------------------------------------------------------
# Local submission guards
# ---------------------------------------------------------------------------


class EmptyRecordingError(MindwaveError):
    """Raised before upload when there is no audio to submit."""

    def __init__(self) -> None:
        super().__init__(
            detail="Recording artifact is missing or empty",
            code="EMPTY_RECORDING",
            status_code=400,
            user_message="No recording found. Record your voice first.",
        )


class UnauthenticatedError(MindwaveError):
    """Raised when a submission carries no user identity."""

    def __init__(self, detail: str = "User is not authenticated") -> None:
        super().__init__(
            detail=detail,
            code="UNAUTHENTICATED",
            status_code=401,
            user_message="You need to be signed in to use this feature.",
        )


class SubmissionError(MindwaveError):
    """Raised by the client when the handler call fails for any reason."""

    def __init__(self, user_message: str = GENERIC_USER_MESSAGE, detail: str = "") -> None:
        super().__init__(
            detail=detail or user_message,
            code="SUBMISSION_FAILED",
            status_code=502,
            user_message=user_message,
        )


# ---------------------------------------------------------------------------
# Handler ingress
# ---------------------------------------------------------------------------


class UnsupportedContentTypeError(MindwaveError):
    """Raised when the request body is neither multipart nor JSON."""

    def __init__(self, content_type: str) -> None:
        super().__init__(
            detail=f"Unsupported content type: {content_type or '<none>'}",
            code="UNSUPPORTED_CONTENT_TYPE",
            status_code=415,
            user_message="Invalid audio upload. Please record again.",
        )


class MalformedPayloadError(MindwaveError):
    """Raised when the request body cannot be read or carries no audio."""

    def __init__(self, detail: str = "Invalid or missing audio data") -> None:
        super().__init__(
            detail=detail,
            code="MALFORMED_PAYLOAD",
            status_code=400,
            user_message="Invalid audio file. Please record again.",
        )


class EmptyAudioError(MindwaveError):
    """Raised when the resolved audio payload has zero bytes."""

    def __init__(self) -> None:
        super().__init__(
            detail="Audio payload is empty",
            code="EMPTY_AUDIO",
            status_code=400,
            user_message="The audio file is empty. Please record again.",
        )


class AudioTooLargeError(MindwaveError):
    """Raised when the audio payload exceeds the configured size cap."""

    def __init__(self, size: int, limit: int) -> None:
        super().__init__(
            detail=f"Audio payload of {size} bytes exceeds the {limit} byte limit",
            code="AUDIO_TOO_LARGE",
            status_code=400,
            user_message="The recording is too long. Please record a shorter sample.",
        )


# ---------------------------------------------------------------------------
# Remote services
# ---------------------------------------------------------------------------


class TranscriptionServiceError(MindwaveError):
    """Raised when the speech-to-text provider fails."""

    def __init__(self, detail: str = "Transcription failed") -> None:
        super().__init__(
            detail=detail,
            code="TRANSCRIPTION_SERVICE_ERROR",
            status_code=502,
            user_message="Could not transcribe the audio right now. Please try again.",
        )


class EmptyTranscriptionError(MindwaveError):
    """Raised when transcription succeeds but yields no words."""

    def __init__(self) -> None:
        super().__init__(
            detail="Transcription returned empty text",
            code="EMPTY_TRANSCRIPTION",
            status_code=422,
            user_message="Could not process the audio. Try a clearer recording.",
        )


class InterpretationServiceError(MindwaveError):
    """Raised when the language-model provider call itself fails."""

    def __init__(self, detail: str = "Interpretation failed") -> None:
        super().__init__(
            detail=detail,
            code="INTERPRETATION_SERVICE_ERROR",
            status_code=502,
            user_message="Could not analyze the recording right now. Please try again.",
        )


class InterpretationParseFailure(MindwaveError):
    """Raised when model output does not match the analysis schema.

    Never reaches the user: the interpreter recovers by substituting the
    complete fallback analysis.
    """

    def __init__(self, detail: str = "Model output is not a valid analysis") -> None:
        super().__init__(
            detail=detail,
            code="INTERPRETATION_PARSE_FAILURE",
            status_code=500,
        )


# ---------------------------------------------------------------------------
# Persistence and supplementary services
# ---------------------------------------------------------------------------


class PersistenceError(MindwaveError):
    """Raised when the analysis row cannot be stored."""

    def __init__(self, detail: str = "Database write failed") -> None:
        super().__init__(
            detail=detail,
            code="PERSISTENCE_ERROR",
            status_code=500,
            user_message="Could not save your analysis. Please try again.",
        )


class AnalysisNotFoundError(MindwaveError):
    """Raised when a voice analysis ID does not exist."""

    def __init__(self, analysis_id: int | str) -> None:
        super().__init__(
            detail=f"Voice analysis not found: {analysis_id}",
            code="ANALYSIS_NOT_FOUND",
            status_code=404,
            user_message="Analysis not found.",
        )


class PredictionError(MindwaveError):
    """Raised when pattern analysis or mood prediction fails."""

    def __init__(self, detail: str = "Prediction failed") -> None:
        super().__init__(
            detail=detail,
            code="PREDICTION_ERROR",
            status_code=502,
            user_message="Could not generate insights right now. Please try again.",
        )


class TherapyError(MindwaveError):
    """Raised when the support chat or recommendation generation fails."""

    def __init__(self, detail: str = "Therapy support failed") -> None:
        super().__init__(
            detail=detail,
            code="THERAPY_ERROR",
            status_code=502,
            user_message="The support assistant is unavailable right now. Please try again.",
        )


class TherapySessionConflictError(MindwaveError):
    """Raised when a session ID already belongs to another user."""

    def __init__(self, session_id: str) -> None:
        super().__init__(
            detail=f"Therapy session {session_id} belongs to another user",
            code="THERAPY_SESSION_CONFLICT",
            status_code=409,
            user_message="This conversation could not be continued. Start a new one.",
        )
