# src/summary/__init__.py
# ========================
# Recap Layer — LinguaRelay

from src.summary.recap_generator import RecapError, RecapText, generate_recap  # noqa: F401

__all__ = ["RecapError", "RecapText", "generate_recap"]
