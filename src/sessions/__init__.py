# src/sessions/__init__.py
# =========================
# Session state — LinguaRelay
#
# In-memory, process-lifetime. Segments land in a session in the order
# their chunks arrived, whatever order they finish in.

from src.sessions.models import Recap, Segment, SegmentSlot, Session  # noqa: F401
from src.sessions.store import SessionStore  # noqa: F401

__all__ = ["Recap", "Segment", "SegmentSlot", "Session", "SessionStore"]
