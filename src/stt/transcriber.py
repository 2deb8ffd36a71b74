"""
src/stt/transcriber.py
=======================
Speech-to-Text Client — LinguaRelay

Responsibility:
    - Upload one decoded audio chunk to the OpenAI transcription endpoint
    - Try the primary model, then a distinct fallback model once on failure
    - Raise ``TranscriptionError`` with status, model and body when both fail

This module does NOT:
    - Translate or summarize text
    - Split, resample or normalize audio
    - Touch session state
"""

import logging
from dataclasses import dataclass
from typing import Any

from openai import APIError, AsyncOpenAI

from src.audio.decoder import DecodedAudio, decode_audio_payload, upload_filename
from src.config import Settings, get_settings
from src.errors import UpstreamError, upstream_message
from src.llm.client import describe_api_error, get_openai_client
from src.openai_retry import call_with_bounded_retry

logger = logging.getLogger("linguarelay.stt.transcriber")

AUTO_LANGUAGE: str = "auto"


class TranscriptionError(UpstreamError):
    """Raised when every transcription attempt failed."""

    def __init__(
        self,
        message: str,
        status: int | None = None,
        body: str | None = None,
        model: str | None = None,
        fallback_tried: bool = False,
    ):
        super().__init__(message, status=status, body=body, model=model)
        self.fallback_tried = fallback_tried


@dataclass
class TranscriptionAttempt:
    ok: bool
    status: int | None
    text: str = ""
    body: str | None = None
    payload: Any = None


@dataclass
class TranscriptionResult:
    text: str
    model: str
    fallback_tried: bool = False


def _language_field(language: str | None) -> str | None:
    if not language:
        return None
    language = language.strip()
    if not language or language.lower() == AUTO_LANGUAGE:
        return None
    return language


async def transcribe_once(
    audio: DecodedAudio,
    model: str,
    language: str | None = None,
    client: AsyncOpenAI | None = None,
) -> TranscriptionAttempt:
    """
    One multipart upload to ``/v1/audio/transcriptions``.

    Never raises for provider failures; they come back as ``ok=False``.
    """
    client = client or get_openai_client()
    filename = upload_filename(audio.mime_type)

    request: dict[str, Any] = {
        "model": model,
        "file": (filename, audio.data, audio.mime_type),
        "response_format": "json",
    }
    lang = _language_field(language)
    if lang:
        request["language"] = lang

    logger.info(
        "Transcription request: model=%s mime=%s bytes=%d language=%s",
        model, audio.mime_type, len(audio.data), lang or AUTO_LANGUAGE,
    )

    try:
        response = await client.audio.transcriptions.create(**request)
    except APIError as exc:
        status, body, payload = describe_api_error(exc)
        logger.error(
            "Transcription failed: model=%s status=%s body=%s",
            model, status, (body or "")[:500],
        )
        return TranscriptionAttempt(ok=False, status=status, body=body, payload=payload)

    if isinstance(response, dict):
        text = response.get("text") or ""
    else:
        text = getattr(response, "text", "") or ""

    return TranscriptionAttempt(ok=True, status=200, text=text, payload=response)


async def transcribe_with_fallback(
    audio_base64: str,
    mime_type: str | None = None,
    language: str | None = None,
    settings: Settings | None = None,
    client: AsyncOpenAI | None = None,
) -> TranscriptionResult:
    """
    Decode a client payload and transcribe it, falling back once on failure.

    The fallback model is only tried when the primary attempt failed and
    the configured fallback differs from the primary.

    Raises:
        DecodeError: Payload could not be decoded (no upstream call made).
        TranscriptionError: Every attempt failed. ``model`` and
            ``fallback_tried`` describe the last attempt.
    """
    settings = settings or get_settings()
    audio = decode_audio_payload(audio_base64, mime_type)

    primary = settings.transcribe_primary_model
    fallback = settings.transcribe_fallback_model
    distinct_fallback = bool(fallback) and fallback != primary

    outcome = await call_with_bounded_retry(
        lambda model: transcribe_once(audio, model, language, client=client),
        primary_model=primary,
        fallback_model=fallback if distinct_fallback else None,
        max_attempts=2 if distinct_fallback else 1,
        label="transcribe",
    )

    attempt = outcome.result
    if not outcome.accepted:
        message = upstream_message(
            attempt.payload,
            attempt.body,
            f"Transcription failed with status {attempt.status}",
        )
        raise TranscriptionError(
            message,
            status=attempt.status,
            body=attempt.body,
            model=outcome.model,
            fallback_tried=outcome.fallback_tried,
        )

    return TranscriptionResult(
        text=attempt.text,
        model=outcome.model,
        fallback_tried=outcome.fallback_tried,
    )
