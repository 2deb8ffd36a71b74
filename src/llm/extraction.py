"""
src/llm/extraction.py
======================
Plain-text extraction from Responses API payloads — LinguaRelay

Responses come back in more than one shape depending on model and SDK
version. Extraction is an ordered list of strategies; each returns the
text it found or ``None``, and the first hit wins.

Supported shapes:
    - ``{"output_text": "..."}``
    - ``{"output": [{"content": [{"text": "..."}]}]}``
    - ``{"output": [{"content": [{"output_text": "..."}]}]}``
    - ``{"output": [{"content": [{"type": "output_text", "data": {"text": "..."}}]}]}``
"""

from typing import Any, Callable, Optional

ExtractionStrategy = Callable[[dict[str, Any]], Optional[str]]
PartReader = Callable[[dict[str, Any]], Optional[str]]


def _clean(value: Any) -> str | None:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


# ---------------------------------------------------------------------------
# Content-part readers (applied in order, first non-empty per part)
# ---------------------------------------------------------------------------


def _part_text(part: dict[str, Any]) -> str | None:
    return _clean(part.get("text"))


def _part_output_text(part: dict[str, Any]) -> str | None:
    return _clean(part.get("output_text"))


def _part_data_text(part: dict[str, Any]) -> str | None:
    if part.get("type") != "output_text":
        return None
    data = part.get("data")
    if not isinstance(data, dict):
        return None
    return _clean(data.get("text"))


PART_READERS: tuple[PartReader, ...] = (
    _part_text,
    _part_output_text,
    _part_data_text,
)


# ---------------------------------------------------------------------------
# Payload-level strategies
# ---------------------------------------------------------------------------


def from_output_text(payload: dict[str, Any]) -> str | None:
    """Top-level aggregated ``output_text``."""
    return _clean(payload.get("output_text"))


def from_output_items(payload: dict[str, Any]) -> str | None:
    """Scan ``output[].content[]`` and join every located part with a space."""
    items = payload.get("output")
    if not isinstance(items, list):
        return None

    parts: list[str] = []
    for item in items:
        if not isinstance(item, dict):
            continue
        content = item.get("content")
        if not isinstance(content, list):
            continue
        for part in content:
            if not isinstance(part, dict):
                continue
            for reader in PART_READERS:
                text = reader(part)
                if text:
                    parts.append(text)
                    break

    if not parts:
        return None
    return " ".join(parts).strip() or None


STRATEGIES: tuple[ExtractionStrategy, ...] = (
    from_output_text,
    from_output_items,
)


def extract_output_text(payload: Any) -> str:
    """
    Extract plain text from a Responses API payload.

    Returns:
        The first strategy's non-empty result, or ``""`` when nothing is
        found. An empty result is not an error here; callers decide.
    """
    if not isinstance(payload, dict):
        return ""
    for strategy in STRATEGIES:
        text = strategy(payload)
        if text:
            return text
    return ""
