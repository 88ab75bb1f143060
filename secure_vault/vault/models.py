"""Data models for vault notes.

Notes only ever exist as plaintext inside an unlocked session. The whole
collection is serialized to a JSON array, sealed, and persisted as one record.
"""

import json
import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Optional

from .exceptions import VaultCorruptedError

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def generate_note_id() -> str:
    """Generate a collision-resistant note id (random UUID4)."""
    return str(uuid.uuid4())


def _parse_timestamp(value: Any) -> datetime:
    if not isinstance(value, str):
        raise ValueError(f"timestamp must be a string, got {type(value).__name__}")
    # fromisoformat() before 3.11 rejects a trailing Z
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _format_timestamp(value: datetime) -> str:
    return value.astimezone(timezone.utc).isoformat(timespec="microseconds").replace("+00:00", "Z")


@dataclass(frozen=True)
class Note:
    """A single secure note.

    Attributes:
        id: Stable unique identifier, immutable after creation
        title: Short title
        content: Note body
        created_at: Fixed at creation
        updated_at: Refreshed on every mutation
    """

    id: str
    title: str
    content: str
    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime = field(default_factory=utc_now)

    @classmethod
    def create(cls, title: str, content: str, now: Optional[datetime] = None) -> "Note":
        """Create a new note with a fresh id and equal timestamps."""
        stamp = now or utc_now()
        return cls(
            id=generate_note_id(),
            title=title,
            content=content,
            created_at=stamp,
            updated_at=stamp,
        )

    def revised(
        self,
        title: Optional[str] = None,
        content: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> "Note":
        """
        Return a copy with new title/content and a later ``updated_at``.

        ``id`` and ``created_at`` are carried over unchanged. If the clock
        has not moved past the previous ``updated_at`` the stamp is nudged
        forward by one microsecond so it always advances.
        """
        stamp = now or utc_now()
        if stamp <= self.updated_at:
            stamp = self.updated_at + timedelta(microseconds=1)
        return replace(
            self,
            title=self.title if title is None else title,
            content=self.content if content is None else content,
            updated_at=stamp,
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "id": self.id,
            "title": self.title,
            "content": self.content,
            "createdAt": _format_timestamp(self.created_at),
            "updatedAt": _format_timestamp(self.updated_at),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Note":
        """Create from dictionary."""
        for key in ("id", "title", "content"):
            if not isinstance(data.get(key), str):
                raise ValueError(f"note field {key!r} missing or not a string")
        return cls(
            id=data["id"],
            title=data["title"],
            content=data["content"],
            created_at=_parse_timestamp(data.get("createdAt")),
            updated_at=_parse_timestamp(data.get("updatedAt")),
        )


def dump_notes(notes: list[Note]) -> str:
    """Serialize an ordered note collection to a JSON array."""
    return json.dumps([note.to_dict() for note in notes], ensure_ascii=False)


def load_notes(data: bytes | str) -> list[Note]:
    """
    Parse a JSON array of notes.

    Raises:
        VaultCorruptedError: If the payload is not a well-formed note list
    """
    try:
        if isinstance(data, bytes):
            data = data.decode("utf-8")
        parsed = json.loads(data)
        if not isinstance(parsed, list):
            raise ValueError("vault payload is not a list")
        notes = [Note.from_dict(item) for item in parsed]
    except (UnicodeDecodeError, ValueError, TypeError, AttributeError, RecursionError) as e:
        raise VaultCorruptedError() from e

    if len({note.id for note in notes}) != len(notes):
        raise VaultCorruptedError()
    return notes
