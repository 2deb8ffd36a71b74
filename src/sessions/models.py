"""
src/sessions/models.py
=======================
Session data model — LinguaRelay

Session, Segment and Recap records held in memory for the process
lifetime. Serialized to the client in camelCase.
"""

import secrets
import string
import time
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime, timezone

_ID_ALPHABET = string.digits + string.ascii_lowercase


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace(
        "+00:00", "Z"
    )


def to_base36(value: int) -> str:
    if value < 0:
        raise ValueError("base36 input must be non-negative")
    if value == 0:
        return "0"
    digits: list[str] = []
    while value:
        value, rem = divmod(value, 36)
        digits.append(_ID_ALPHABET[rem])
    return "".join(reversed(digits))


def _now_ms() -> int:
    return int(time.time() * 1000)


def new_session_id() -> str:
    suffix = "".join(secrets.choice(_ID_ALPHABET) for _ in range(6))
    return f"sess_{to_base36(_now_ms())}_{suffix}"


def new_segment_id(chunk_id: object) -> str:
    return f"seg_{to_base36(_now_ms())}_{chunk_id}"


@dataclass(frozen=True)
class Segment:
    """One transcribed and translated audio chunk. Immutable once stored."""

    id: str
    chunk_id: int | str
    source_text: str
    translated_text: str
    output_lang: str
    created_at: str

    @classmethod
    def create(
        cls,
        chunk_id: int | str | None,
        source_text: str,
        translated_text: str,
        output_lang: str,
    ) -> "Segment":
        chunk = chunk_id if chunk_id not in (None, "") else 0
        return cls(
            id=new_segment_id(chunk),
            chunk_id=chunk,
            source_text=source_text or "",
            translated_text=translated_text or "",
            output_lang=output_lang,
            created_at=utc_now_iso(),
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "chunkId": self.chunk_id,
            "sourceText": self.source_text,
            "translatedText": self.translated_text,
            "outputLang": self.output_lang,
            "createdAt": self.created_at,
        }


@dataclass(frozen=True)
class Recap:
    text: str
    model: str
    output_lang: str
    created_at: str = field(default_factory=utc_now_iso)

    def to_dict(self) -> dict:
        return {
            "text": self.text,
            "model": self.model,
            "outputLang": self.output_lang,
            "createdAt": self.created_at,
        }


@dataclass
class SegmentSlot:
    """A chunk's reserved position in its session, taken on arrival."""

    chunk_id: int | str | None = None
    done: bool = False
    segment: Segment | None = None


@dataclass
class Session:
    """
    One ongoing conversation.

    ``segments`` only ever receives a segment once every chunk that
    arrived before it has completed or failed; ``pending`` holds the
    reserved slots still waiting for that.
    """

    id: str
    created_at: str = field(default_factory=utc_now_iso)
    segments: list[Segment] = field(default_factory=list)
    last_recap: Recap | None = None
    last_access: float = field(default_factory=time.monotonic)
    pending: deque[SegmentSlot] = field(default_factory=deque, repr=False, compare=False)

    def touch(self) -> None:
        self.last_access = time.monotonic()

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "createdAt": self.created_at,
            "segments": [seg.to_dict() for seg in self.segments],
            "lastRecap": self.last_recap.to_dict() if self.last_recap else None,
        }
