"""
src/llm/client.py
==================
Shared OpenAI client — LinguaRelay

One ``AsyncOpenAI`` instance per process. SDK-level retries are disabled:
retry and fallback decisions belong to ``src.openai_retry``.
"""

import logging
from functools import lru_cache
from typing import Any

from openai import APIStatusError, AsyncOpenAI

from src.config import Settings, get_settings

logger = logging.getLogger("linguarelay.llm.client")


@lru_cache(maxsize=1)
def _build_client(
    api_key: str,
    base_url: str | None,
    timeout: float | None,
) -> AsyncOpenAI:
    kwargs: dict[str, Any] = {
        # A blank key still builds a client; calls then fail upstream with 401.
        "api_key": api_key or "missing-api-key",
        "max_retries": 0,
    }
    if base_url:
        kwargs["base_url"] = base_url
    if timeout is not None:
        kwargs["timeout"] = timeout
    return AsyncOpenAI(**kwargs)


def get_openai_client(settings: Settings | None = None) -> AsyncOpenAI:
    settings = settings or get_settings()
    return _build_client(
        settings.openai_api_key,
        settings.openai_base_url,
        settings.openai_timeout_seconds,
    )


def describe_api_error(exc: Exception) -> tuple[int | None, str, Any]:
    """
    Normalize an SDK exception into ``(status, body_text, payload)``.

    ``payload`` is the parsed JSON body when available, shaped like the
    provider's ``{"error": {...}}`` envelope.
    """
    if isinstance(exc, APIStatusError):
        body_text = exc.response.text
        try:
            payload = exc.response.json()
        except ValueError:
            payload = {"error": exc.body} if isinstance(exc.body, dict) else None
        return exc.status_code, body_text, payload

    # APIConnectionError / APITimeoutError: no response at all
    return None, str(exc), None
