# src/stt/__init__.py
# ====================
# Speech-to-Text Layer — LinguaRelay
#
# One chunk in, one transcript out:
#   1. Decode the client payload
#   2. Upload to the primary transcription model
#   3. On failure, retry once on a distinct fallback model
#
# Public API:
#   transcribe_with_fallback(audio_base64, mime_type, language) → TranscriptionResult

from src.stt.transcriber import (  # noqa: F401
    TranscriptionError,
    TranscriptionResult,
    transcribe_with_fallback,
)

__all__ = [
    "TranscriptionError",
    "TranscriptionResult",
    "transcribe_with_fallback",
]
