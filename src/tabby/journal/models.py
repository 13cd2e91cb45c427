"""Core data models for the daily journal.

An :class:`Entry` is one calendar day's record. Entries handed out by the
store are frozen snapshots; changes go back through the store as an
:class:`EntryPatch`.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from datetime import date, datetime, time
from enum import StrEnum
from typing import Any


class JournalField(StrEnum):
    """The text fields a user edits each day."""

    INTENTION = "intention"
    GOAL = "goal"
    REFLECTION = "reflection"


def normalize_day(value: date | datetime | str) -> date:
    """Strip time-of-day, returning the local calendar date.

    Aware datetimes are converted to local time first, so an instant is
    filed under the day it falls on for this machine. Naive datetimes are
    taken to be local already.

    Strings may be ``YYYY-MM-DD`` or any ISO-8601 date-time. A string with
    an explicit offset (``2024-03-01T00:00:00+09:00``) names its day as
    written, whatever this machine's zone. Only a trailing ``Z`` is read as
    a UTC instant and converted, which is how older backups encoded days.
    """
    if isinstance(value, str):
        parsed = _parse_iso(value)
        if isinstance(parsed, datetime) and not _is_utc_instant(value):
            return parsed.date()
        value = parsed
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone()
        return value.date()
    if isinstance(value, date):
        return value
    raise TypeError(f"Cannot interpret {value!r} as a day")


def _is_utc_instant(text: str) -> bool:
    return text.strip().endswith(("Z", "z"))


def _parse_iso(text: str) -> date | datetime:
    text = text.strip()
    if len(text) == 10:
        return date.fromisoformat(text)
    if _is_utc_instant(text):
        text = text[:-1] + "+00:00"
    return datetime.fromisoformat(text)


def day_to_wire(day: date) -> str:
    """Encode a day as its local midnight with the local offset.

    ``2024-03-01T00:00:00+09:00``: the date part is the day itself, so the
    document restores to the same days in any timezone.
    """
    return datetime.combine(day, time.min).astimezone().isoformat(timespec="seconds")


def has_text(value: str | None) -> bool:
    """Empty strings and absent values both render as "no content"."""
    return bool(value)


@dataclass(frozen=True)
class Entry:
    """One day's journal record.

    Attributes:
        id: Stable identifier assigned at creation.
        day: Local calendar date; at most one entry exists per day.
        intention: What the user means to focus on.
        goal: A concrete target for the day.
        reflection: End-of-day notes.
        mood: Optional short tag.
        created_at: Time of the first write.
        updated_at: Time of the latest field change.
    """

    id: str
    day: date
    intention: str | None = None
    goal: str | None = None
    reflection: str | None = None
    mood: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def get(self, field: JournalField) -> str | None:
        return getattr(self, field.value)

    @property
    def is_blank(self) -> bool:
        return not any(has_text(self.get(f)) for f in JournalField)

    def __repr__(self) -> str:
        return f"Entry(id='{self.id}', day={self.day.isoformat()})"


@dataclass(frozen=True)
class EntryPatch:
    """A partial update. ``None`` means "leave unchanged"; ``""`` clears."""

    intention: str | None = None
    goal: str | None = None
    reflection: str | None = None
    mood: str | None = None

    @classmethod
    def for_field(cls, field: JournalField, value: str) -> EntryPatch:
        return cls(**{field.value: value})

    def changes(self) -> dict[str, str]:
        """Return only the fields that carry a value."""
        return {f.name: getattr(self, f.name) for f in fields(self) if getattr(self, f.name) is not None}

    def is_empty(self) -> bool:
        return not self.changes()


@dataclass(frozen=True)
class ExportRecord:
    """Wire form of an entry inside a backup document."""

    day: date
    intention: str | None = None
    goal: str | None = None
    reflection: str | None = None

    @classmethod
    def from_entry(cls, entry: Entry) -> ExportRecord:
        return cls(day=entry.day, intention=entry.intention, goal=entry.goal, reflection=entry.reflection)

    def to_dict(self) -> dict[str, Any]:
        return {
            "day": day_to_wire(self.day),
            "intention": self.intention,
            "goal": self.goal,
            "reflection": self.reflection,
        }

    def as_tuple(self) -> tuple[date, str | None, str | None, str | None]:
        return (self.day, self.intention, self.goal, self.reflection)
