"""Shared utility functions for Mindwave."""

import re


def strip_code_fences(text: str) -> str:
    """Remove markdown code fences wrapping JSON from LLM responses."""
    text = text.strip()
    if text.startswith("```"):
        text = re.sub(r"^```\w*\n?", "", text)
        text = re.sub(r"\n?```$", "", text)
    return text.strip()


def base_mime_type(mime_type: str) -> str:
    """Drop parameters such as ``;codecs=opus`` from a mime-type."""
    return mime_type.split(";", 1)[0].strip().lower()


def extension_for_mime(mime_type: str | None) -> str:
    """Pick the upload filename extension for a declared audio mime-type.

    Anything that is not recognizably MP4, WAV or OGG is sent as WebM.
    """
    mime = (mime_type or "").lower()
    if "mp4" in mime:
        return "mp4"
    if "wav" in mime:
        return "wav"
    if "ogg" in mime:
        return "ogg"
    return "webm"
