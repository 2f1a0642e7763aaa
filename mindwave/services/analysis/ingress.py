"""
Request ingress for the voice-analysis handler.

Accepts either ``multipart/form-data`` (``audio`` file, ``user_id``,
``session_duration``) or ``application/json`` with a base64 audio payload
under ``audio`` or ``audio_base64``. Everything is resolved into a single
:class:`AudioUpload` and size-checked before any remote service is touched.
"""

import base64
import binascii
import json
import logging
import uuid
from dataclasses import dataclass

from fastapi import Request
from starlette.datastructures import UploadFile

from mindwave.core.exceptions import (
    AudioTooLargeError,
    EmptyAudioError,
    MalformedPayloadError,
    UnauthenticatedError,
    UnsupportedContentTypeError,
)

logger = logging.getLogger(__name__)

DEFAULT_MIME_TYPE = "audio/webm"
BASE64_FIELDS = ("audio", "audio_base64")


@dataclass(frozen=True)
class AudioUpload:
    """Audio bytes plus the metadata that travelled with them."""

    data: bytes
    mime_type: str
    user_id: str
    session_duration: int
    file_name: str | None = None

    @property
    def size(self) -> int:
        return len(self.data)


def parse_session_duration(value) -> int:
    """Parse ``session_duration`` leniently; anything unusable becomes 0."""
    if value is None:
        return 0
    text = str(value).strip()
    try:
        seconds = int(text)
    except ValueError:
        try:
            seconds = int(float(text))
        except ValueError:
            return 0
    return max(seconds, 0)


def resolve_user_id(raw: str | None, allow_anonymous: bool) -> str:
    """Return the caller's user id, or an anonymous placeholder if allowed.

    Raises:
        UnauthenticatedError: If no id was sent and anonymous use is disabled.
    """
    user_id = (raw or "").strip()
    if user_id:
        return user_id
    if not allow_anonymous:
        raise UnauthenticatedError(detail="user_id is required")
    placeholder = f"anonymous-{uuid.uuid4()}"
    logger.info("No user_id supplied; using %s", placeholder)
    return placeholder


def _estimated_decoded_size(encoded: str) -> int:
    padding = len(encoded) - len(encoded.rstrip("="))
    return (len(encoded) * 3) // 4 - padding


def decode_base64_chunked(encoded: str, chunk_size: int = 32768, max_bytes: int | None = None) -> bytes:
    """Decode a base64 string a bounded slice at a time.

    A ``data:<mime>;base64,`` prefix and embedded whitespace are tolerated.
    When ``max_bytes`` is given the decoded size is checked up front, so an
    oversized payload is rejected without being decoded.

    Args:
        encoded: The base64 text.
        chunk_size: Characters decoded per step; rounded down to a multiple of 4.
        max_bytes: Optional cap on the decoded size.

    Raises:
        MalformedPayloadError: If the text is not valid base64.
        AudioTooLargeError: If the decoded size would exceed ``max_bytes``.
    """
    if encoded.startswith("data:") and "," in encoded:
        encoded = encoded.split(",", 1)[1]
    encoded = "".join(encoded.split())

    if len(encoded) % 4 != 0:
        raise MalformedPayloadError(detail="Base64 audio length is not a multiple of 4")

    if max_bytes is not None:
        estimated = _estimated_decoded_size(encoded)
        if estimated > max_bytes:
            raise AudioTooLargeError(size=estimated, limit=max_bytes)

    step = max(4, chunk_size - chunk_size % 4)
    decoded = bytearray()
    for start in range(0, len(encoded), step):
        try:
            decoded.extend(base64.b64decode(encoded[start : start + step], validate=True))
        except (binascii.Error, ValueError) as exc:
            raise MalformedPayloadError(detail=f"Invalid base64 audio data: {exc}") from exc
    return bytes(decoded)


def validate_audio_size(data: bytes, max_bytes: int) -> None:
    """Reject empty and oversized audio.

    Raises:
        EmptyAudioError: For a zero-byte payload.
        AudioTooLargeError: For a payload larger than ``max_bytes``.
    """
    if len(data) == 0:
        raise EmptyAudioError()
    if len(data) > max_bytes:
        raise AudioTooLargeError(size=len(data), limit=max_bytes)


async def _read_multipart(request: Request, settings) -> AudioUpload:
    try:
        form = await request.form()
    except Exception as exc:
        raise MalformedPayloadError(detail=f"Could not parse multipart body: {exc}") from exc

    audio = form.get("audio")
    if not isinstance(audio, UploadFile):
        raise MalformedPayloadError(detail="Multipart body has no 'audio' file")

    if audio.size is not None and audio.size > settings.max_audio_bytes:
        raise AudioTooLargeError(size=audio.size, limit=settings.max_audio_bytes)
    data = await audio.read()
    validate_audio_size(data, settings.max_audio_bytes)

    raw_user = form.get("user_id")
    return AudioUpload(
        data=data,
        mime_type=audio.content_type or DEFAULT_MIME_TYPE,
        user_id=resolve_user_id(raw_user if isinstance(raw_user, str) else None, settings.allow_anonymous),
        session_duration=parse_session_duration(form.get("session_duration")),
        file_name=audio.filename,
    )


async def _read_json(request: Request, settings) -> AudioUpload:
    try:
        body = json.loads(await request.body())
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise MalformedPayloadError(detail=f"Invalid JSON body: {exc}") from exc
    if not isinstance(body, dict):
        raise MalformedPayloadError(detail="JSON body must be an object")

    encoded = next((body[f] for f in BASE64_FIELDS if isinstance(body.get(f), str) and body[f]), None)
    if encoded is None:
        raise MalformedPayloadError(detail="JSON body has no 'audio' or 'audio_base64' field")

    data = decode_base64_chunked(
        encoded,
        chunk_size=settings.base64_chunk_size,
        max_bytes=settings.max_audio_bytes,
    )
    validate_audio_size(data, settings.max_audio_bytes)

    raw_user = body.get("user_id")
    return AudioUpload(
        data=data,
        mime_type=body.get("mimeType") or DEFAULT_MIME_TYPE,
        user_id=resolve_user_id(raw_user if isinstance(raw_user, str) else None, settings.allow_anonymous),
        session_duration=parse_session_duration(body.get("session_duration")),
        file_name=body.get("fileName"),
    )


async def read_voice_upload(request: Request, settings) -> AudioUpload:
    """Resolve the request body into an :class:`AudioUpload`.

    Raises:
        UnsupportedContentTypeError: Body is neither multipart nor JSON.
        MalformedPayloadError: Body unreadable or no audio present.
        EmptyAudioError / AudioTooLargeError: Audio outside the size bounds.
        UnauthenticatedError: No user id and anonymous use disabled.
    """
    content_type = request.headers.get("content-type", "").lower()
    if content_type.startswith("multipart/form-data"):
        upload = await _read_multipart(request, settings)
    elif content_type.startswith("application/json"):
        upload = await _read_json(request, settings)
    else:
        raise UnsupportedContentTypeError(content_type)

    logger.info(
        "Voice upload received: %d bytes, type=%s, duration=%ss",
        upload.size,
        upload.mime_type,
        upload.session_duration,
    )
    return upload
