"""
src/sessions/store.py
======================
In-memory Session Store — LinguaRelay

Responsibility:
    - Map session ids to Session records for the process lifetime
    - Replace absent or unknown ids with a freshly minted session
    - Commit each session's segments in chunk arrival order: a chunk
      reserves its slot when it arrives and the slot is committed once
      every earlier slot has been filled or released
    - Optionally evict sessions idle for longer than a configured TTL

All mutation is synchronous and runs on the event loop thread, so no
two writers ever touch one session at the same time.

This module does NOT:
    - Persist anything to disk
    - Share sessions across processes
"""

import logging
import time

from src.sessions.models import Recap, Segment, SegmentSlot, Session, new_session_id

logger = logging.getLogger("linguarelay.sessions.store")


class SessionStore:
    """Process-lifetime session registry."""

    def __init__(self, idle_ttl_seconds: float = 0):
        self._sessions: dict[str, Session] = {}
        self._idle_ttl = max(0.0, float(idle_ttl_seconds or 0))

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, session_id: object) -> bool:
        return isinstance(session_id, str) and session_id in self._sessions

    def get(self, session_id: object) -> Session | None:
        if not isinstance(session_id, str):
            return None
        return self._sessions.get(session_id)

    def _mint_id(self) -> str:
        session_id = new_session_id()
        while session_id in self._sessions:
            session_id = new_session_id()
        return session_id

    def evict_idle(self, now: float | None = None) -> int:
        """Drop sessions untouched for longer than the TTL. Returns count."""
        if not self._idle_ttl:
            return 0
        now = time.monotonic() if now is None else now
        stale = [
            sid for sid, session in self._sessions.items()
            if now - session.last_access > self._idle_ttl and not session.pending
        ]
        for sid in stale:
            del self._sessions[sid]
        if stale:
            logger.info("Evicted %d idle session(s).", len(stale))
        return len(stale)

    def get_or_create(self, session_id: object = None) -> Session:
        """
        Return the session for ``session_id``, or a new one.

        Unknown, absent or non-string ids never raise; the caller gets a
        new session with a newly minted id instead.
        """
        self.evict_idle()

        session = self.get(session_id)
        if session is not None:
            session.touch()
            return session

        session = Session(id=self._mint_id())
        self._sessions[session.id] = session
        if session_id:
            logger.info(
                "Unknown session id %r replaced with %s.", session_id, session.id,
            )
        else:
            logger.info("Session created: %s", session.id)
        return session

    # ------------------------------------------------------------------
    # Mutation (arrival order per session)
    # ------------------------------------------------------------------

    def reserve_slot(self, session: Session, chunk_id: int | str | None = None) -> SegmentSlot:
        """Take the next position in ``session`` for a chunk that just arrived."""
        slot = SegmentSlot(chunk_id=chunk_id)
        session.pending.append(slot)
        session.touch()
        return slot

    def fill_slot(self, session: Session, slot: SegmentSlot, segment: Segment) -> int:
        """Complete ``slot``; returns the committed segment count."""
        slot.segment = segment
        slot.done = True
        self._flush(session)
        return len(session.segments)

    def release_slot(self, session: Session, slot: SegmentSlot) -> None:
        """Give up ``slot`` without a segment so later chunks are not held back."""
        if slot.done:
            return
        slot.done = True
        self._flush(session)

    def _flush(self, session: Session) -> None:
        while session.pending and session.pending[0].done:
            slot = session.pending.popleft()
            if slot.segment is not None:
                session.segments.append(slot.segment)
        if session.pending:
            logger.debug(
                "Session %s: %d chunk(s) waiting on chunk %s.",
                session.id, len(session.pending), session.pending[0].chunk_id,
            )
        session.touch()

    def append_segment(self, session: Session, segment: Segment) -> int:
        """Append ``segment`` behind any chunks still in flight."""
        return self.fill_slot(session, self.reserve_slot(session, segment.chunk_id), segment)

    def set_recap(self, session: Session, recap: Recap) -> None:
        session.last_recap = recap
        session.touch()

    def snapshot_segments(self, session: Session) -> list[Segment]:
        return list(session.segments)
