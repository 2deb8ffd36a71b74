# src/nlp/__init__.py
# ====================
# Translation Layer — LinguaRelay
#
# Per-chunk translation into the requested output language, steered by
# caller-supplied domain hints.

from src.nlp.translator import TranslationError, translate_to_target  # noqa: F401

__all__ = ["TranslationError", "translate_to_target"]
