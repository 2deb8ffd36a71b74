"""
src/llm/responses_client.py
============================
Text Generation Client — LinguaRelay

Responsibility:
    - Send one system/user prompt pair to the Responses API
    - Bias low-latency (gpt-5 family) models toward short literal output
    - Report success/failure with status and raw body instead of raising
    - Extract plain text from the response payload

This module does NOT:
    - Retry or fall back (see src/openai_retry.py)
    - Build prompts (see src/nlp/translator.py, src/summary/recap_generator.py)
"""

import json
import logging
from dataclasses import dataclass
from typing import Any

from openai import APIError, AsyncOpenAI

from src.llm.client import describe_api_error, get_openai_client
from src.llm.extraction import extract_output_text

logger = logging.getLogger("linguarelay.llm.responses")

DEFAULT_MAX_OUTPUT_TOKENS: int = 256

# Models treated as the low-latency family
LOW_LATENCY_MODEL_PREFIX: str = "gpt-5"


@dataclass
class GenerationResult:
    ok: bool
    status: int | None
    payload: Any = None
    body: str | None = None
    text: str = ""


def is_low_latency_model(model: object) -> bool:
    return isinstance(model, str) and model.startswith(LOW_LATENCY_MODEL_PREFIX)


def build_request(
    model: str,
    system_prompt: str | None = None,
    user_prompt: str | None = None,
    max_output_tokens: int | None = None,
) -> dict[str, Any]:
    """Keyword arguments for ``client.responses.create``."""
    messages: list[dict[str, Any]] = []
    if system_prompt:
        messages.append({
            "role": "system",
            "content": [{"type": "input_text", "text": system_prompt}],
        })
    if user_prompt:
        messages.append({
            "role": "user",
            "content": [{"type": "input_text", "text": user_prompt}],
        })

    request: dict[str, Any] = {
        "model": model,
        "input": messages if messages else (user_prompt or system_prompt or ""),
        "max_output_tokens": max_output_tokens or DEFAULT_MAX_OUTPUT_TOKENS,
    }

    if is_low_latency_model(model):
        request["reasoning"] = {"effort": "minimal"}
        request["text"] = {"verbosity": "low"}

    return request


def _response_payload(response: Any) -> dict[str, Any]:
    """SDK object → plain dict, keeping the aggregated ``output_text``."""
    if isinstance(response, dict):
        return response
    payload = response.model_dump(mode="json")
    aggregated = getattr(response, "output_text", None)
    if isinstance(aggregated, str):
        payload["output_text"] = aggregated
    return payload


def _usage_summary(payload: dict[str, Any]) -> dict[str, Any] | None:
    usage = payload.get("usage")
    if not isinstance(usage, dict):
        return None
    details = usage.get("output_tokens_details") or {}
    return {
        "out": usage.get("output_tokens"),
        "reason": details.get("reasoning_tokens"),
    }


async def generate(
    model: str,
    system_prompt: str | None = None,
    user_prompt: str | None = None,
    max_output_tokens: int = DEFAULT_MAX_OUTPUT_TOKENS,
    client: AsyncOpenAI | None = None,
) -> GenerationResult:
    """
    Make exactly one Responses API call.

    Args:
        model: Generation model id.
        system_prompt: Optional system message text.
        user_prompt: Optional user message text.
        max_output_tokens: Output token budget.
        client: AsyncOpenAI instance (process-wide client by default).

    Returns:
        GenerationResult. ``ok=False`` carries the upstream status (None
        for connection failures) and raw body. ``text`` may be empty even
        when ``ok`` is True.
    """
    client = client or get_openai_client()
    request = build_request(model, system_prompt, user_prompt, max_output_tokens)

    try:
        response = await client.responses.create(**request)
    except APIError as exc:
        status, body, payload = describe_api_error(exc)
        logger.error(
            "Responses call failed: model=%s status=%s body=%s",
            model, status, (body or "")[:500],
        )
        return GenerationResult(ok=False, status=status, payload=payload, body=body)

    payload = _response_payload(response)
    body = json.dumps(payload, ensure_ascii=False)
    text = extract_output_text(payload)

    logger.info(
        "Responses call OK: model=%s body_len=%d text_len=%d usage=%s",
        model, len(body), len(text), _usage_summary(payload),
    )
    return GenerationResult(ok=True, status=200, payload=payload, body=body, text=text)
