"""Pure journal entry domain logic - no I/O dependencies."""

import copy
import time
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
ONE_MS = timedelta(milliseconds=1)


class Mood(Enum):
    """How the writer felt."""

    HAPPY = "happy"
    CALM = "calm"
    NEUTRAL = "neutral"
    SAD = "sad"
    STRESSED = "stressed"
    INSPIRED = "inspired"

    @property
    def label(self) -> str:
        return self.value.capitalize()


def now_ms() -> int:
    """Current instant in epoch milliseconds."""
    return time.time_ns() // 1_000_000


def new_entry_id() -> str:
    return str(uuid.uuid4())


def to_iso(ms: int) -> str:
    """Epoch milliseconds to an ISO-8601 UTC string."""
    return (EPOCH + timedelta(milliseconds=ms)).isoformat(timespec="milliseconds")


def from_iso(value: str) -> int:
    """ISO-8601 string to epoch milliseconds. Naive timestamps are read as UTC."""
    dt = datetime.fromisoformat(value)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return (dt - EPOCH) // ONE_MS


@dataclass
class JournalEntry:
    """A persisted journal entry."""

    id: str
    user_id: str
    title: str
    content: str
    mood: Mood
    tags: list[str] = field(default_factory=list)
    created_at: int = 0
    updated_at: int = 0
    ai_reflection: str | None = None

    def preview(self, length: int = 120) -> str:
        """First `length` characters of the content, on one line."""
        flat = " ".join(self.content.split())
        if len(flat) <= length:
            return flat
        return flat[: length - 1].rstrip() + "…"

    def to_dict(self) -> dict:
        """Wire-shaped dict of the record as stored."""
        return {
            "id": self.id,
            "user_id": self.user_id,
            "title": self.title,
            "content": self.content,
            "mood": self.mood.value,
            "tags": list(self.tags),
            "ai_reflection": self.ai_reflection,
            "created_at": to_iso(self.created_at),
            "updated_at": to_iso(self.updated_at),
        }

    @classmethod
    def from_row(cls, row: dict) -> "JournalEntry":
        """Create JournalEntry from a snake_case wire row."""
        return cls(
            id=row["id"],
            user_id=row["user_id"],
            title=row["title"],
            content=row["content"],
            mood=Mood(row["mood"]),
            tags=list(row.get("tags") or []),
            created_at=from_iso(row["created_at"]),
            updated_at=from_iso(row["updated_at"]),
            ai_reflection=row.get("ai_reflection"),
        )


@dataclass
class Draft:
    """Editor working copy. Every field is optional until persisted."""

    id: str | None = None
    user_id: str | None = None
    title: str | None = None
    content: str | None = None
    mood: Mood | None = None
    tags: list[str] | None = None
    created_at: int | None = None
    updated_at: int | None = None
    ai_reflection: str | None = None

    @classmethod
    def blank(cls) -> "Draft":
        """Fresh draft for a new entry."""
        return cls(mood=Mood.NEUTRAL, title="", content="", tags=[])

    @classmethod
    def from_entry(cls, entry: JournalEntry) -> "Draft":
        """Value copy of a stored entry. Never aliases the entry's tags."""
        return cls(
            id=entry.id,
            user_id=entry.user_id,
            title=entry.title,
            content=entry.content,
            mood=entry.mood,
            tags=copy.deepcopy(entry.tags),
            created_at=entry.created_at,
            updated_at=entry.updated_at,
            ai_reflection=entry.ai_reflection,
        )

    @property
    def is_complete(self) -> bool:
        """Title and content are both non-empty."""
        return bool(self.title) and bool(self.content)

    @property
    def character_count(self) -> int:
        return len(self.content or "")

    def to_entry(self, user_id: str, now: int) -> JournalEntry:
        """Build the full record to persist."""
        return JournalEntry(
            id=self.id or new_entry_id(),
            user_id=user_id,
            title=self.title or "",
            content=self.content or "",
            mood=self.mood or Mood.NEUTRAL,
            tags=list(self.tags or []),
            created_at=self.created_at if self.created_at is not None else now,
            updated_at=now,
            ai_reflection=self.ai_reflection,
        )


def to_row(entry: JournalEntry | Draft, now: int) -> dict:
    """
    Wire payload for an upsert.

    Generates an id when absent, stamps updated_at, keeps created_at when
    supplied. Pure function - the caller passes the clock.
    """
    if not entry.user_id:
        raise ValueError("user_id is required")
    mood = entry.mood or Mood.NEUTRAL
    return {
        "id": entry.id or new_entry_id(),
        "user_id": entry.user_id,
        "title": entry.title,
        "content": entry.content,
        "mood": mood.value,
        "tags": list(entry.tags or []),
        "ai_reflection": entry.ai_reflection,
        "created_at": to_iso(entry.created_at if entry.created_at is not None else now),
        "updated_at": to_iso(now),
    }


def sort_newest_first(entries: list[JournalEntry]) -> list[JournalEntry]:
    return sorted(entries, key=lambda e: e.created_at, reverse=True)


def filter_entries(entries: list[JournalEntry], query: str) -> list[JournalEntry]:
    """
    Case-insensitive substring search over title and content.

    Pure function - no I/O.
    """
    needle = query.strip().lower()
    if not needle:
        return list(entries)
    return [
        e for e in entries if needle in e.title.lower() or needle in e.content.lower()
    ]
