"""Study notes."""
import uuid
from dataclasses import replace
from datetime import datetime
from typing import Optional

from study_companion.models import Note

NOTE_TYPES = ("concept", "formula", "mistake", "general")
NOTE_PRIORITIES = ("high", "medium", "low")


def create_note(title: str, subject: str = "", content: str = "", note_type: str = "general",
                priority: str = "medium", tags: Optional[list] = None,
                now: Optional[datetime] = None) -> Note:
    if note_type not in NOTE_TYPES:
        raise ValueError(f"Unknown note type: {note_type!r}")
    if priority not in NOTE_PRIORITIES:
        raise ValueError(f"Unknown priority: {priority!r}")
    stamp = (now or datetime.now()).isoformat()
    return Note(
        id=uuid.uuid4().hex,
        title=title or "Untitled",
        content=content,
        subject=subject,
        type=note_type,
        priority=priority,
        tags=list(tags or []),
        created_at=stamp,
        last_modified=stamp,
    )


def update_note(note: Note, now: Optional[datetime] = None, **changes) -> Note:
    """Return a copy with ``changes`` applied and ``last_modified`` bumped."""
    if "type" in changes and changes["type"] not in NOTE_TYPES:
        raise ValueError(f"Unknown note type: {changes['type']!r}")
    if "priority" in changes and changes["priority"] not in NOTE_PRIORITIES:
        raise ValueError(f"Unknown priority: {changes['priority']!r}")
    return replace(note, last_modified=(now or datetime.now()).isoformat(), **changes)


def filter_notes(notes: list[Note], query: str = "", note_type: str = "all") -> list[Note]:
    """Case-insensitive search over title and subject, optionally by type."""
    q = query.lower().strip()
    return [
        n for n in notes
        if (not q or q in n.title.lower() or q in n.subject.lower())
        and (note_type == "all" or n.type == note_type)
    ]


def sort_notes(notes: list[Note]) -> list[Note]:
    return sorted(notes, key=lambda n: n.last_modified, reverse=True)
