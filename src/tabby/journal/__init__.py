"""Daily journal entries: storage, autosave, backup and calendar browsing.

Provides the Entry model, a SQLite-backed EntryStore keyed by calendar day,
debounced autosave from editor fields, JSON backup with merge-restore, and
a windowed calendar index.
"""

from .autosave import AutosaveCoordinator, RolloverPolicy
from .backup import BackupCodec
from .calendar import CalendarIndex
from .models import Entry, EntryPatch, ExportRecord, JournalField, normalize_day
from .store import EntryStore, MergeResult

__all__ = [
    "AutosaveCoordinator",
    "BackupCodec",
    "CalendarIndex",
    "Entry",
    "EntryPatch",
    "EntryStore",
    "ExportRecord",
    "JournalField",
    "MergeResult",
    "RolloverPolicy",
    "normalize_day",
]
