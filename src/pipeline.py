"""
src/pipeline.py
================
Chunk and Recap Pipelines — LinguaRelay

Responsibility:
    1. Chunk: decode → transcribe (with fallback) → translate (with one
       retry) → commit Segment to the session in chunk arrival order
    2. Recap: snapshot session segments → generate recap (with fallback)
       → store as the session's latest recap
    3. Bootstrap: describe the effective configuration to the client

A chunk either fully completes or fails as a whole: there is no partial
result when transcription succeeds but translation does not.

This layer does NOT:
    - Build prompts or parse provider responses
    - Convert failures to HTTP responses (see src/api/routes.py)
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Sequence

from src.config import SERVER_META, Settings, get_settings
from src.languages import OUTPUT_LANGS, resolve_output_lang
from src.nlp.translator import translate_to_target
from src.sessions.models import Recap, Segment, Session
from src.sessions.store import SessionStore
from src.stt.transcriber import transcribe_with_fallback
from src.summary.recap_generator import generate_recap

logger = logging.getLogger("linguarelay.pipeline")


# ---------------------------------------------------------------------------
# Request / outcome containers
# ---------------------------------------------------------------------------


@dataclass
class ChunkRequest:
    audio_base64: str | None
    session_id: str | None = None
    chunk_id: int | str | None = None
    mime_type: str | None = None
    is_last: bool = False
    language_hint: str | None = None
    domain_hints: Sequence[str] = field(default_factory=list)
    target_lang: str | None = None


@dataclass
class ChunkOutcome:
    session: Session
    segment: Segment
    meta: dict[str, Any]


@dataclass
class RecapOutcome:
    session: Session
    recap: Recap


def _elapsed_ms(start: float) -> int:
    return int((time.perf_counter() - start) * 1000)


# ---------------------------------------------------------------------------
# Chunk pipeline
# ---------------------------------------------------------------------------


async def process_chunk(
    store: SessionStore,
    request: ChunkRequest,
    settings: Settings | None = None,
) -> ChunkOutcome:
    """
    Run one audio chunk through transcription and translation.

    Raises:
        ValueError: ``audio_base64`` missing.
        DecodeError: Payload could not be decoded.
        TranscriptionError: Both STT attempts failed.
        TranslationError: Both translation attempts failed or were empty.
    """
    settings = settings or get_settings()
    lang = resolve_output_lang(request.target_lang, settings.output_lang_default)
    language_hint = request.language_hint or settings.transcribe_language or "auto"
    session = store.get_or_create(request.session_id)

    logger.info(
        "Chunk received: session=%s chunk=%s asr_lang=%s out_lang=%s "
        "audio_b64_len=%d mime=%s",
        session.id,
        request.chunk_id,
        language_hint,
        lang.code,
        len(request.audio_base64 or ""),
        request.mime_type,
    )

    if not request.audio_base64:
        raise ValueError("audioBase64 is required")

    # Position is fixed on arrival, before the first await
    slot = store.reserve_slot(session, request.chunk_id)
    try:
        t0 = time.perf_counter()
        transcribed = await transcribe_with_fallback(
            request.audio_base64,
            request.mime_type,
            language_hint,
            settings=settings,
        )
        transcribe_ms = _elapsed_ms(t0)

        t1 = time.perf_counter()
        source_text = transcribed.text or ""
        translated_text = await translate_to_target(
            source_text,
            request.domain_hints,
            lang,
            settings=settings,
        )
        translate_ms = _elapsed_ms(t1)
    except BaseException:
        store.release_slot(session, slot)
        raise

    segment = Segment.create(
        chunk_id=request.chunk_id,
        source_text=source_text,
        translated_text=translated_text,
        output_lang=lang.code,
    )
    count = store.fill_slot(session, slot, segment)

    logger.info(
        "Chunk done: session=%s chunk=%s model=%s transcribe_ms=%d "
        "translate_ms=%d translated_len=%d segments=%d",
        session.id,
        segment.chunk_id,
        transcribed.model,
        transcribe_ms,
        translate_ms,
        len(translated_text),
        count,
    )

    meta = {
        "isLast": bool(request.is_last),
        "asrModel": transcribed.model,
        "asrLanguage": language_hint,
        "fallbackTried": transcribed.fallback_tried,
        "targetLang": lang.code,
        "targetLangName": lang.display_name,
    }
    return ChunkOutcome(session=session, segment=segment, meta=meta)


# ---------------------------------------------------------------------------
# Recap pipeline
# ---------------------------------------------------------------------------


async def recap_session(
    store: SessionStore,
    session_id: str | None,
    domain_hints: Sequence[str] | None = None,
    target_lang: str | None = None,
    settings: Settings | None = None,
) -> RecapOutcome:
    """
    Summarize everything a session has accumulated and keep it as the
    session's latest recap.

    Raises:
        RecapError: Both recap attempts failed or were empty.
    """
    settings = settings or get_settings()
    lang = resolve_output_lang(target_lang, settings.output_lang_default)
    session = store.get_or_create(session_id)

    segments = store.snapshot_segments(session)
    generated = await generate_recap(
        segments, domain_hints or [], lang, settings=settings,
    )

    recap = Recap(text=generated.text, model=generated.model, output_lang=lang.code)
    store.set_recap(session, recap)

    logger.info(
        "Recap stored: session=%s segments=%d model=%s recap_len=%d",
        session.id, len(segments), recap.model, len(recap.text),
    )
    return RecapOutcome(session=session, recap=recap)


# ---------------------------------------------------------------------------
# Bootstrap
# ---------------------------------------------------------------------------


def bootstrap_config(settings: Settings | None = None) -> dict[str, Any]:
    """Effective model/config descriptors reported by ``GET /session``."""
    settings = settings or get_settings()
    default_lang = resolve_output_lang(None, settings.output_lang_default)

    return {
        "transcription": {
            "model": settings.transcribe_primary_model,
            "fallback_model": settings.transcribe_fallback_model,
            "language": settings.transcribe_language,
        },
        "translation": {
            "model": settings.segment_model,
            "default_output_lang": default_lang.code,
        },
        "recap": {
            "model": settings.recap_model,
            "fallback_model": settings.recap_fallback_model,
            "max_chars": settings.recap_max_chars,
        },
        "realtime": {
            "model": settings.realtime_model,
            "voice": settings.realtime_voice,
        },
        "languages": [lang.to_dict() for lang in OUTPUT_LANGS.values()],
        "server": dict(SERVER_META),
    }
