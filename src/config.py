"""
src/config.py
==============
Runtime configuration — LinguaRelay

Responsibility:
    - Read every environment variable the relay understands (``.env``
      supported through python-dotenv)
    - Expose them as one immutable ``Settings`` object

Model selection, recap window and default output language are all
operator-tunable; nothing else in the codebase reads ``os.environ``.
"""

import logging
import os
from dataclasses import dataclass
from functools import lru_cache

from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger("linguarelay.config")


# ---------------------------------------------------------------------------
# Build metadata reported by /health and /session
# ---------------------------------------------------------------------------

SERVER_META: dict[str, str] = {
    "name": "linguarelay",
    "version": "1.9.0",
    "builtAt": "2025-11-14T13:03:33+00:00",
}

DEFAULT_MAX_BODY_BYTES: int = 25 * 1024 * 1024


def _env_str(name: str, default: str = "") -> str:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    return value.strip()


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning("Invalid integer for %s=%r, using %d.", name, raw, default)
        return default


def _env_float(name: str) -> float | None:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return None
    try:
        return float(raw)
    except ValueError:
        logger.warning("Invalid number for %s=%r, ignoring.", name, raw)
        return None


@dataclass(frozen=True)
class Settings:
    """Effective relay configuration."""

    openai_api_key: str = ""
    openai_base_url: str | None = None
    openai_timeout_seconds: float | None = None

    transcribe_primary_model: str = "gpt-4o-mini-transcribe"
    transcribe_fallback_model: str = "gpt-4o-transcribe"
    transcribe_language: str = "auto"

    segment_model: str = "gpt-5-nano"

    recap_model: str = "gpt-5-nano"
    recap_fallback_model: str = "gpt-5-nano"
    recap_max_chars: int = 4000

    output_lang_default: str = "ja"

    realtime_model: str = "gpt-realtime-mini"
    realtime_voice: str = "alloy"

    session_idle_ttl_seconds: int = 0
    max_body_bytes: int = DEFAULT_MAX_BODY_BYTES

    host: str = "127.0.0.1"
    port: int = 3000


def load_settings() -> Settings:
    """Build ``Settings`` from the current environment."""
    recap_model = _env_str("RECAP_MODEL", "gpt-5-nano")

    return Settings(
        openai_api_key=_env_str("OPENAI_API_KEY"),
        openai_base_url=_env_str("OPENAI_BASE_URL") or None,
        openai_timeout_seconds=_env_float("OPENAI_TIMEOUT_SECONDS"),
        transcribe_primary_model=_env_str(
            "TRANSCRIBE_PRIMARY_MODEL",
            _env_str("TRANSCRIBE_MODEL", "gpt-4o-mini-transcribe"),
        ),
        transcribe_fallback_model=_env_str(
            "TRANSCRIBE_FALLBACK_MODEL", "gpt-4o-transcribe"
        ),
        transcribe_language=_env_str("TRANSCRIBE_LANGUAGE", "auto"),
        segment_model=_env_str("EN_SEGMENT_MODEL", "gpt-5-nano"),
        recap_model=recap_model,
        recap_fallback_model=_env_str("RECAP_FALLBACK_MODEL", recap_model),
        recap_max_chars=max(1, _env_int("RECAP_MAX_CHARS", 4000)),
        output_lang_default=_env_str("OUTPUT_LANG", "ja").lower(),
        realtime_model=_env_str("REALTIME_MODEL", "gpt-realtime-mini"),
        realtime_voice=_env_str("REALTIME_VOICE", "alloy"),
        session_idle_ttl_seconds=max(0, _env_int("SESSION_IDLE_TTL_SECONDS", 0)),
        max_body_bytes=_env_int("MAX_BODY_BYTES", DEFAULT_MAX_BODY_BYTES),
        host=_env_str("HOST", "127.0.0.1"),
        port=_env_int("PORT", 3000),
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Process-wide settings, read once."""
    settings = load_settings()
    if not settings.openai_api_key:
        logger.warning("OPENAI_API_KEY is not set - API calls will fail.")
    return settings
