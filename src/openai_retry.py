"""
src/openai_retry.py
====================
Shared bounded retry / model fallback policy — LinguaRelay

Transcription, translation and recap all follow the same shape: try the
primary model, and if the result is unusable try again a bounded number of
times, optionally on a fallback model. This module owns that loop so the
callers only describe *what* to call and *what counts as usable*.

Usage::

    from src.openai_retry import call_with_bounded_retry

    outcome = await call_with_bounded_retry(
        lambda model: generate(model=model, user_prompt=text),
        primary_model="gpt-5-nano",
        fallback_model="gpt-5-mini",
        accept=lambda result: result.ok and bool(result.text),
    )

This module does NOT:
    - Sleep or back off between attempts
    - Create OpenAI clients or inspect provider responses
"""

import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Generic, TypeVar

logger = logging.getLogger("linguarelay.openai_retry")

T = TypeVar("T")

DEFAULT_MAX_ATTEMPTS: int = 2


@dataclass
class RetryOutcome(Generic[T]):
    """Last attempt's result, the model it used, and how many attempts ran."""

    result: T
    model: str
    attempts: int
    accepted: bool

    @property
    def fallback_tried(self) -> bool:
        return self.attempts > 1


def _is_ok(result: Any) -> bool:
    return bool(getattr(result, "ok", False))


def attempt_models(
    primary_model: str,
    fallback_model: str | None,
    max_attempts: int,
) -> list[str]:
    """Model used for each attempt: primary first, then fallback (or primary)."""
    if max_attempts < 1:
        raise ValueError(f"max_attempts must be >= 1, got {max_attempts}")
    retry_model = fallback_model or primary_model
    return [primary_model] + [retry_model] * (max_attempts - 1)


async def call_with_bounded_retry(
    call: Callable[[str], Awaitable[T]],
    primary_model: str,
    fallback_model: str | None = None,
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    accept: Callable[[T], bool] = _is_ok,
    label: str = "openai",
) -> RetryOutcome[T]:
    """
    Run ``call(model)`` until ``accept`` approves a result or attempts run out.

    Args:
        call: Coroutine factory taking the model id for this attempt.
        primary_model: Model for the first attempt.
        fallback_model: Model for every later attempt (primary when None).
        max_attempts: Total attempts, including the first.
        accept: Predicate deciding whether a result is usable.
        label: Name used in log lines.

    Returns:
        RetryOutcome for the last attempt made. ``accepted`` is False when
        every attempt was rejected; the caller decides what to raise.
    """
    models = attempt_models(primary_model, fallback_model, max_attempts)

    result: T | None = None
    for attempt, model in enumerate(models, start=1):
        result = await call(model)
        if accept(result):
            return RetryOutcome(result, model, attempt, True)

        if attempt < len(models):
            logger.warning(
                "[%s] attempt %d/%d with model=%s unusable (status=%s), "
                "retrying with model=%s",
                label,
                attempt,
                len(models),
                model,
                getattr(result, "status", None),
                models[attempt],
            )

    logger.error(
        "[%s] all %d attempt(s) unusable, last model=%s status=%s",
        label,
        len(models),
        models[-1],
        getattr(result, "status", None),
    )
    return RetryOutcome(result, models[-1], len(models), False)  # type: ignore[arg-type]
