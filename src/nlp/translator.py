"""
src/nlp/translator.py
======================
Translator — LinguaRelay

Responsibility:
    - Translate one transcribed chunk into the requested output language
    - Steer terminology with caller-supplied domain hints
    - Retry once (same model) on a failed or empty generation

The prompt forbids meta commentary, alternatives, romanization and
repetition of the source: the client renders the output verbatim.

This module does NOT:
    - Perform STT or audio processing
    - Summarize across chunks (see src/summary/recap_generator.py)
    - Touch session state
"""

import logging
from typing import Sequence

from openai import AsyncOpenAI

from src.config import Settings, get_settings
from src.errors import UpstreamError, upstream_message
from src.languages import LanguageDescriptor
from src.llm.responses_client import GenerationResult, generate
from src.openai_retry import call_with_bounded_retry

logger = logging.getLogger("linguarelay.nlp.translator")

TRANSLATION_MAX_OUTPUT_TOKENS: int = 256


class TranslationError(UpstreamError):
    """Raised when translation failed or came back empty twice."""


def _has_text(result: GenerationResult) -> bool:
    return result.ok and bool(result.text)


def build_translation_system_prompt(
    domain_hints: Sequence[str] | None,
    lang: LanguageDescriptor | None,
) -> str:
    name = lang.display_name if lang else "English"
    code = lang.code if lang else "en"

    prompt = (
        "You are a professional multilingual translator. "
        "Your only task is to rewrite or translate the input into natural, fluent "
        f"{name} (language code {code}). "
        "The source text may contain multiple languages. "
        "You must output only the final translated text, without any explanations, "
        "analysis, alternatives, romanization, or repetition of the source text. "
        "Do not write meta commentary such as 'Let us parse', 'Likely', or 'This seems'. "
        "Keep the length roughly similar to the source and do not add extra sentences "
        "beyond what is needed to express the same meaning."
    )

    if domain_hints:
        prompt += (
            f" The conversation domain is: {', '.join(domain_hints)}. "
            "Use accurate domain-specific terminology where appropriate."
        )

    return prompt


async def translate_to_target(
    source_text: str,
    domain_hints: Sequence[str] | None,
    lang: LanguageDescriptor,
    settings: Settings | None = None,
    client: AsyncOpenAI | None = None,
) -> str:
    """
    Translate ``source_text`` into ``lang``.

    Args:
        source_text: Transcription output for one chunk.
        domain_hints: Topic keywords, may be empty.
        lang: Target language.

    Returns:
        Translated text, or ``""`` when the source is blank (no API call).

    Raises:
        TranslationError: Both attempts failed or returned no text.
    """
    if not source_text or not source_text.strip():
        return ""

    settings = settings or get_settings()
    system_prompt = build_translation_system_prompt(domain_hints, lang)

    outcome = await call_with_bounded_retry(
        lambda model: generate(
            model=model,
            system_prompt=system_prompt,
            user_prompt=source_text,
            max_output_tokens=TRANSLATION_MAX_OUTPUT_TOKENS,
            client=client,
        ),
        primary_model=settings.segment_model,
        max_attempts=2,
        accept=_has_text,
        label="translate",
    )

    result = outcome.result
    if not outcome.accepted:
        message = upstream_message(
            result.payload,
            result.body,
            f"Translation failed or empty with status {result.status}",
        )
        raise TranslationError(
            message, status=result.status, body=result.body, model=outcome.model,
        )

    logger.info(
        "Translation done: input_len=%d output_len=%d attempts=%d preview=%r",
        len(source_text), len(result.text), outcome.attempts, result.text[:80],
    )
    return result.text
