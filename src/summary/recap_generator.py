"""
src/summary/recap_generator.py
===============================
Recap Generator — LinguaRelay

Responsibility:
    - Build the recap source from a session's accumulated transcript
      (source text, not translations), keeping only the most recent
      ``RECAP_MAX_CHARS`` characters
    - Ask the generation model for a fixed three-section recap:
      overall summary, agenda, key points by agenda
    - Retry once on the fallback recap model when the primary call fails
      or returns nothing

Recap constraints:
    - One summary paragraph with a language-dependent length target
    - "Agenda:" with 3–7 one-line items
    - "Key points by agenda:" with up to 3 short bullets per item
    - No extra sections, meta commentary or verbatim transcript

This module does NOT:
    - Read or write session state (see src/pipeline.py)
    - Translate individual chunks
"""

import logging
from dataclasses import dataclass
from typing import Sequence

from openai import AsyncOpenAI

from src.config import Settings, get_settings
from src.errors import UpstreamError, upstream_message
from src.languages import LanguageDescriptor
from src.llm.responses_client import GenerationResult, generate
from src.openai_retry import call_with_bounded_retry
from src.sessions.models import Segment

logger = logging.getLogger("linguarelay.summary.recap_generator")

RECAP_MAX_OUTPUT_TOKENS: int = 768


class RecapError(UpstreamError):
    """Raised when both recap attempts failed or returned no text."""


@dataclass
class RecapText:
    text: str
    model: str


# ---------------------------------------------------------------------------
# Prompt construction
# ---------------------------------------------------------------------------

_RECAP_PROMPT_TEMPLATE: str = """
You are an expert meeting note taker.

Write the recap entirely in {name} (language code {code}).

Always follow this exact structure:

1. Overall summary
   - 1 paragraph ONLY.
   - If language is English: about 50–60 words.
   - If language is Japanese: about 100–120 characters.
   - No bullet points here.

2. Agenda list
   - Title line: "Agenda:"
   - Then 3–7 agenda items as a bullet list.
   - Each agenda item must be ONE short line.

3. Key points by agenda
   - Title line: "Key points by agenda:"
   - For each agenda item, create a sub-bullet with the same agenda title,
     and under it up to 3 bullet points with key decisions, questions,
     and action items.
   - Each bullet point must be one short sentence.

Global rules:
- The whole recap must fit roughly in one screen at 16px font, so keep all text concise.
- Do NOT add extra sections, explanations, or headings beyond the three sections above.
- Do NOT include analysis of language, translations, or meta commentary.
- Do NOT repeat the raw transcript.
"""


def build_recap_system_prompt(
    domain_hints: Sequence[str] | None,
    lang: LanguageDescriptor | None,
) -> str:
    name = lang.display_name if lang else "English"
    code = lang.code if lang else "en"

    prompt = _RECAP_PROMPT_TEMPLATE.format(name=name, code=code).strip()

    if domain_hints:
        prompt += (
            f"\nThe discussion domain is: {', '.join(domain_hints)}."
            "\nUse appropriate specialist terminology for this domain."
        )
    return prompt


def build_recap_source(segments: Sequence[Segment], max_chars: int) -> str:
    """Newline-joined source text, trimmed to the trailing ``max_chars``."""
    text = "\n".join(
        seg.source_text for seg in segments if isinstance(seg.source_text, str)
    )
    if max_chars > 0 and len(text) > max_chars:
        # Most recent context wins
        text = text[-max_chars:]
    return text


def _has_text(result: GenerationResult) -> bool:
    return result.ok and bool(result.text)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


async def generate_recap(
    segments: Sequence[Segment],
    domain_hints: Sequence[str] | None,
    lang: LanguageDescriptor,
    settings: Settings | None = None,
    client: AsyncOpenAI | None = None,
) -> RecapText:
    """
    Summarize accumulated segments.

    Args:
        segments: Session segments in arrival order.
        domain_hints: Topic keywords, may be empty.
        lang: Output language of the recap.

    Returns:
        RecapText with the generated text and the model that produced it.
        Zero segments → empty text and no API call.

    Raises:
        RecapError: Primary and fallback attempts both failed or were empty.
    """
    settings = settings or get_settings()
    if not segments:
        return RecapText(text="", model=settings.recap_model)

    source = build_recap_source(segments, settings.recap_max_chars)
    system_prompt = build_recap_system_prompt(domain_hints, lang)

    logger.info(
        "Generating recap: segments=%d source_len=%d lang=%s",
        len(segments), len(source), lang.code,
    )

    outcome = await call_with_bounded_retry(
        lambda model: generate(
            model=model,
            system_prompt=system_prompt,
            user_prompt=source,
            max_output_tokens=RECAP_MAX_OUTPUT_TOKENS,
            client=client,
        ),
        primary_model=settings.recap_model,
        fallback_model=settings.recap_fallback_model,
        max_attempts=2,
        accept=_has_text,
        label="recap",
    )

    result = outcome.result
    if not outcome.accepted:
        message = upstream_message(
            result.payload,
            result.body,
            f"Recap failed or empty with status {result.status}",
        )
        raise RecapError(
            message, status=result.status, body=result.body, model=outcome.model,
        )

    return RecapText(text=result.text, model=outcome.model)
