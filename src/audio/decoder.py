"""
src/audio/decoder.py
=====================
Audio Payload Decoder — LinguaRelay

Responsibility:
    - Accept an audio chunk as a ``data:`` URI or a bare base64 string
    - Return the raw bytes and the resolved MIME type
    - Reject empty or malformed payloads with ``DecodeError``

This module does NOT:
    - Inspect, resample or convert the audio itself
    - Call any external API
"""

import base64
import binascii
import logging
import re
from dataclasses import dataclass

logger = logging.getLogger("linguarelay.audio.decoder")

DEFAULT_MIME_TYPE: str = "audio/wav"

_WHITESPACE_RE = re.compile(r"\s+")
_URLSAFE_TO_STANDARD = str.maketrans("-_", "+/")


class DecodeError(ValueError):
    """Raised when an audio payload cannot be decoded. Client fault."""

    status: int = 400


@dataclass(frozen=True)
class DecodedAudio:
    data: bytes
    mime_type: str


def _b64decode(body: str) -> bytes:
    # URL-safe alphabet is accepted alongside the standard one
    compact = _WHITESPACE_RE.sub("", body).translate(_URLSAFE_TO_STANDARD)
    # Browsers occasionally strip padding
    missing = -len(compact) % 4
    if missing:
        compact += "=" * missing
    try:
        return base64.b64decode(compact, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise DecodeError(f"audioBase64 is not valid base64: {exc}") from exc


def decode_audio_payload(
    audio_base64: object,
    mime_type: str | None = None,
) -> DecodedAudio:
    """
    Decode a client audio payload.

    Args:
        audio_base64: ``data:<mime>;base64,<body>`` or bare base64 text.
        mime_type: MIME type for bare base64 (default ``audio/wav``). A
            ``data:`` URI header takes precedence.

    Returns:
        DecodedAudio with the raw bytes and resolved MIME type.

    Raises:
        DecodeError: Empty payload, ``data:`` URI without a comma,
            invalid base64, or zero decoded bytes.
    """
    if not isinstance(audio_base64, str) or not audio_base64:
        raise DecodeError("audioBase64 is empty")

    resolved_mime = (mime_type and str(mime_type).strip()) or DEFAULT_MIME_TYPE
    body = audio_base64

    if audio_base64.startswith("data:"):
        comma = audio_base64.find(",")
        if comma < 0:
            raise DecodeError("Invalid data URL for audioBase64 (no comma)")
        header = audio_base64[5:comma]
        body = audio_base64[comma + 1:]
        header_mime = header.split(";")[0].strip()
        if header_mime:
            resolved_mime = header_mime
        logger.debug(
            "Data URL header=%r mime=%s b64_len=%d",
            header, resolved_mime, len(body),
        )

    data = _b64decode(body)
    if not data:
        raise DecodeError("Decoded audio buffer is empty")

    return DecodedAudio(data=data, mime_type=resolved_mime)


def upload_filename(mime_type: str | None) -> str:
    """Filename sent with the multipart upload; the provider sniffs the extension."""
    if mime_type and "wav" in mime_type.lower():
        return "chunk.wav"
    return "chunk.webm"
