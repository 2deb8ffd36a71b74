"""
src/api/routes.py
==================
HTTP surface — LinguaRelay

Responsibility:
    - GET  /session           bootstrap a session and report effective config
    - POST /transcribe-chunk  one audio chunk → transcript + translation
    - POST /recap             running summary of the session so far
    - GET  /health            liveness + build metadata
    - Convert every failure into ``{ok: false, error, detail, ...}`` with
      the upstream status when there is one, else 500

Every success body carries ``ok: true``.
"""

import json
import logging
from datetime import datetime, timezone
from typing import Any, Optional, TypeVar, Union

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ValidationError, field_validator

from src.config import SERVER_META, Settings, get_settings
from src.errors import BODY_SNIPPET_CHARS, UpstreamError
from src.pipeline import ChunkRequest, bootstrap_config, process_chunk, recap_session
from src.sessions.store import SessionStore
from src.stt.transcriber import TranscriptionError

logger = logging.getLogger("linguarelay.api")


# ---------------------------------------------------------------------------
# Request bodies
# ---------------------------------------------------------------------------


class _LenientBody(BaseModel):
    """Sloppy browser payloads degrade to defaults instead of a 422."""

    @field_validator("sessionId", mode="before", check_fields=False)
    @classmethod
    def _session_id_string(cls, value: Any) -> Optional[str]:
        return value if isinstance(value, str) and value else None

    @field_validator("domainHints", mode="before", check_fields=False)
    @classmethod
    def _hints_list(cls, value: Any) -> list[str]:
        if not isinstance(value, list):
            return []
        return [str(hint) for hint in value if hint is not None and str(hint).strip()]

    @field_validator("targetLang", mode="before", check_fields=False)
    @classmethod
    def _target_lang_string(cls, value: Any) -> Optional[str]:
        return None if value is None else str(value)


class TranscribeChunkBody(_LenientBody):
    sessionId: Optional[str] = None
    chunkId: Optional[Union[int, str]] = None
    audioBase64: Optional[str] = None
    mimeType: Optional[str] = None
    isLast: bool = False
    languageHint: Optional[str] = None
    domainHints: list[str] = []
    targetLang: Optional[str] = None

    @field_validator("audioBase64", "mimeType", "languageHint", mode="before")
    @classmethod
    def _optional_string(cls, value: Any) -> Optional[str]:
        return value if isinstance(value, str) and value else None

    @field_validator("chunkId", mode="before")
    @classmethod
    def _chunk_ordinal(cls, value: Any) -> Optional[Union[int, str]]:
        if value is None or isinstance(value, (int, str)) and not isinstance(value, bool):
            return value
        if isinstance(value, float) and value.is_integer():
            return int(value)
        return str(value)

    @field_validator("isLast", mode="before")
    @classmethod
    def _truthy(cls, value: Any) -> bool:
        return bool(value)


class RecapBody(_LenientBody):
    sessionId: Optional[str] = None
    domainHints: list[str] = []
    targetLang: Optional[str] = None


BodyT = TypeVar("BodyT", bound=_LenientBody)


# ---------------------------------------------------------------------------
# Request body reading
# ---------------------------------------------------------------------------


class RequestBodyError(ValueError):
    """Request body could not be read as JSON. Client fault."""

    status: int = 400


class PayloadTooLargeError(RequestBodyError):
    status: int = 413


async def _read_json_object(request: Request, limit: int) -> dict[str, Any]:
    """
    Read the request body as a JSON object.

    A missing, empty or non-object body reads as ``{}`` so every field
    falls back to its default. ``limit`` applies to the bytes actually
    received, so chunked uploads without Content-Length are capped too.
    """
    raw = bytearray()
    async for chunk in request.stream():
        raw.extend(chunk)
        if len(raw) > limit:
            raise PayloadTooLargeError(f"Request body exceeds {limit} bytes")

    if not raw.strip():
        return {}
    try:
        payload = json.loads(raw)
    except ValueError as exc:
        raise RequestBodyError(f"Request body is not valid JSON: {exc}") from exc
    return payload if isinstance(payload, dict) else {}


async def _parse_body(request: Request, model: type[BodyT], limit: int) -> BodyT:
    payload = await _read_json_object(request, limit)
    try:
        return model.model_validate(payload)
    except ValidationError as exc:
        raise RequestBodyError(f"Request body is invalid: {exc}") from exc


# ---------------------------------------------------------------------------
# Failure responses
# ---------------------------------------------------------------------------


def _error_status(exc: Exception) -> int:
    status = getattr(exc, "status", None)
    if isinstance(status, int) and 400 <= status <= 599:
        return status
    return 500


def _failure_body(route: str, exc: Exception, status: int) -> dict[str, Any]:
    detail = str(exc)
    upstream_status = None
    body_snippet = None
    if isinstance(exc, UpstreamError):
        upstream_status = exc.upstream_status
        body_snippet = exc.body_snippet(BODY_SNIPPET_CHARS)

    return {
        "ok": False,
        "error": f"Internal error in {route}: {detail}",
        "detail": detail,
        "status": status,
        "upstream": {
            "status": upstream_status,
            "bodySnippet": body_snippet,
        },
    }


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


# ---------------------------------------------------------------------------
# Application
# ---------------------------------------------------------------------------


def create_app(
    settings: Settings | None = None,
    store: SessionStore | None = None,
) -> FastAPI:
    """Build the relay application around one session store."""
    settings = settings or get_settings()
    store = store or SessionStore(idle_ttl_seconds=settings.session_idle_ttl_seconds)

    app = FastAPI(
        title="LinguaRelay",
        description="Chunked speech transcription, translation and running recap relay.",
        version=SERVER_META["version"],
    )
    app.state.settings = settings
    app.state.sessions = store

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def limit_body_size(request: Request, call_next):
        length = request.headers.get("content-length")
        if length and length.isdigit() and int(length) > settings.max_body_bytes:
            logger.warning(
                "Rejected %s %s: body %s bytes exceeds %d.",
                request.method, request.url.path, length, settings.max_body_bytes,
            )
            exc = PayloadTooLargeError(f"Request body exceeds {settings.max_body_bytes} bytes")
            return JSONResponse(
                status_code=413,
                content=_failure_body(request.url.path, exc, 413),
            )
        return await call_next(request)

    @app.exception_handler(RequestValidationError)
    async def validation_failed(request: Request, exc: RequestValidationError):
        logger.warning("Rejected %s %s: %s", request.method, request.url.path, exc)
        return JSONResponse(
            status_code=400,
            content=_failure_body(request.url.path, exc, 400),
        )

    # -----------------------------------------------------------------
    # Endpoints
    # -----------------------------------------------------------------

    @app.get("/session")
    async def bootstrap_session(sessionId: Optional[str] = None):
        """Create (or resume a known) session and describe the configuration."""
        try:
            session = store.get_or_create(sessionId)
            return {"ok": True, "sessionId": session.id, **bootstrap_config(settings)}
        except Exception as exc:
            logger.error("/session failed: %s", exc, exc_info=True)
            return JSONResponse(
                status_code=500,
                content={
                    "ok": False,
                    "error": "Internal error in /session",
                    "detail": str(exc),
                },
            )

    @app.post("/transcribe-chunk")
    async def transcribe_chunk(raw_request: Request):
        """Transcribe and translate one audio chunk, appending it to the session."""
        try:
            body = await _parse_body(raw_request, TranscribeChunkBody, settings.max_body_bytes)
        except RequestBodyError as exc:
            logger.warning("/transcribe-chunk rejected (%d): %s", exc.status, exc)
            return JSONResponse(
                status_code=exc.status,
                content=_failure_body("/transcribe-chunk", exc, exc.status),
            )

        mime_type = body.mimeType or "audio/wav"
        request = ChunkRequest(
            audio_base64=body.audioBase64,
            session_id=body.sessionId,
            chunk_id=body.chunkId,
            mime_type=mime_type,
            is_last=body.isLast,
            language_hint=body.languageHint,
            domain_hints=body.domainHints,
            target_lang=body.targetLang,
        )

        try:
            outcome = await process_chunk(store, request, settings=settings)
        except Exception as exc:
            status = _error_status(exc)
            logger.error("/transcribe-chunk failed (%d): %s", status, exc)
            content = _failure_body("/transcribe-chunk", exc, status)
            content["model"] = getattr(exc, "model", None)
            content["fallbackTried"] = (
                exc.fallback_tried if isinstance(exc, TranscriptionError) else False
            )
            content["requestInfo"] = {
                "chunkId": body.chunkId or None,
                "targetLang": body.targetLang,
                "mimeType": mime_type,
                "hasAudioBase64": bool(body.audioBase64),
                "audioBase64Prefix": body.audioBase64[:32] if body.audioBase64 else None,
            }
            return JSONResponse(status_code=status, content=content)

        return {
            "ok": True,
            "sessionId": outcome.session.id,
            "segment": outcome.segment.to_dict(),
            "meta": outcome.meta,
        }

    @app.post("/recap")
    async def recap(raw_request: Request):
        """Summarize everything the session has accumulated so far."""
        try:
            body = await _parse_body(raw_request, RecapBody, settings.max_body_bytes)
        except RequestBodyError as exc:
            logger.warning("/recap rejected (%d): %s", exc.status, exc)
            return JSONResponse(
                status_code=exc.status,
                content=_failure_body("/recap", exc, exc.status),
            )

        try:
            outcome = await recap_session(
                store,
                body.sessionId,
                domain_hints=body.domainHints,
                target_lang=body.targetLang,
                settings=settings,
            )
        except Exception as exc:
            status = _error_status(exc)
            logger.error("/recap failed (%d): %s", status, exc)
            return JSONResponse(
                status_code=status,
                content=_failure_body("/recap", exc, status),
            )

        return {
            "ok": True,
            "sessionId": outcome.session.id,
            "recap": outcome.recap.to_dict(),
        }

    @app.get("/health")
    async def health():
        return {"ok": True, "server": dict(SERVER_META), "time": _now_iso()}

    return app
