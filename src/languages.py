"""
src/languages.py
=================
Output Language Resolver — LinguaRelay

Responsibility:
    - Map a client-supplied language token to one of the supported
      output languages
    - Fall back to the configured default for absent or unknown tokens

This module does NOT:
    - Detect the spoken language (the STT model does that)
    - Perform any I/O
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class LanguageDescriptor:
    """Canonical output language."""

    code: str
    short_label: str
    display_name: str

    def to_dict(self) -> dict[str, str]:
        return {
            "code": self.code,
            "ui": self.short_label,
            "name": self.display_name,
        }


# ---------------------------------------------------------------------------
# Supported output languages
# ---------------------------------------------------------------------------

OUTPUT_LANGS: dict[str, LanguageDescriptor] = {
    "en": LanguageDescriptor("en", "EN", "English"),
    "ja": LanguageDescriptor("ja", "JP", "Japanese"),
    "zh": LanguageDescriptor("zh", "CN", "Chinese"),
    "fr": LanguageDescriptor("fr", "FR", "French"),
    "es": LanguageDescriptor("es", "ES", "Spanish"),
}

# Common spellings and native-script names, lower-cased
_ALIASES: dict[str, str] = {
    "jp": "ja",
    "ja-jp": "ja",
    "japanese": "ja",
    "日本語": "ja",
    "en-us": "en",
    "en-gb": "en",
    "english": "en",
    "cn": "zh",
    "zh-cn": "zh",
    "chinese": "zh",
    "中文": "zh",
    "fra": "fr",
    "french": "fr",
    "français": "fr",
    "spa": "es",
    "spanish": "es",
    "español": "es",
}


def _lookup(token: str) -> LanguageDescriptor | None:
    key = token.strip().lower()
    if key in OUTPUT_LANGS:
        return OUTPUT_LANGS[key]
    code = _ALIASES.get(key)
    if code is not None:
        return OUTPUT_LANGS[code]
    return None


def default_output_lang(default_token: str | None = None) -> LanguageDescriptor:
    """Resolve the configured default, falling back to Japanese then English."""
    if default_token:
        found = _lookup(str(default_token))
        if found is not None:
            return found
    return OUTPUT_LANGS.get("ja") or OUTPUT_LANGS["en"]


def resolve_output_lang(
    raw: object = None,
    default_token: str | None = None,
) -> LanguageDescriptor:
    """
    Resolve a language token to a ``LanguageDescriptor``.

    Order: absent → default; canonical code; alias (case-insensitive,
    trimmed); anything else → default. Never raises.

    Args:
        raw: Token sent by the client (any type; non-strings are stringified).
        default_token: Configured default output language token.
    """
    if raw is None:
        return default_output_lang(default_token)

    token = str(raw)
    if not token.strip():
        return default_output_lang(default_token)

    found = _lookup(token)
    if found is not None:
        return found
    return default_output_lang(default_token)
