"""JSON backup and merge-restore of the whole journal.

A backup is a JSON array of ``{day, intention, goal, reflection}`` objects.
``day`` is written as the entry's local midnight with its UTC offset
(``2024-03-01T00:00:00+09:00``) and imports as the date written, in any
timezone. A plain ``YYYY-MM-DD`` also imports. Older exporters wrote the
UTC instant (``2024-02-29T15:00:00Z``), some under ``date`` instead of
``day``; those instants are converted to the importing machine's local
day. Extra keys are ignored and missing text fields import as absent.

Imports are parse-then-apply: the whole document is validated before the
store is touched, and the merge itself is one store transaction.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from loguru import logger

from tabby.core.exceptions import ExportFailure, ImportFailure
from tabby.core.utils.file_io import atomic_write

from .models import ExportRecord, normalize_day
from .store import EntryStore, MergeResult

DEFAULT_BACKUP_FILENAME = "journal_backup.json"

_TEXT_FIELDS = ("intention", "goal", "reflection")
_DAY_KEYS = ("day", "date")


def encode_records(records: list[ExportRecord]) -> str:
    """Serialize records as a JSON array."""
    return json.dumps([r.to_dict() for r in records], ensure_ascii=False, indent=2)


def decode_records(document: str | bytes) -> list[ExportRecord]:
    """Parse a backup document. Raises ImportFailure on any problem."""
    if isinstance(document, bytes):
        try:
            document = document.decode("utf-8")
        except UnicodeDecodeError as e:
            raise ImportFailure(f"Backup is not valid UTF-8: {e}") from e
    if not document.strip():
        raise ImportFailure("Backup document is empty")
    try:
        data = json.loads(document)
    except json.JSONDecodeError as e:
        raise ImportFailure(f"Backup is not valid JSON: {e}") from e
    except RecursionError as e:
        raise ImportFailure("Backup is nested too deeply") from e
    if not isinstance(data, list):
        raise ImportFailure(f"Backup must be a JSON array, got {type(data).__name__}")
    return [_decode_record(item, index) for index, item in enumerate(data)]


def _encodable(text: str) -> bool:
    try:
        text.encode("utf-8")
    except UnicodeEncodeError:
        return False
    return True


def _decode_record(item: Any, index: int) -> ExportRecord:
    if not isinstance(item, dict):
        raise ImportFailure(f"Record {index} is not an object")

    raw_day = next((item[k] for k in _DAY_KEYS if k in item), None)
    if not isinstance(raw_day, str):
        raise ImportFailure(f"Record {index} has no day")
    try:
        day = normalize_day(raw_day)
    except (TypeError, ValueError, OverflowError) as e:
        raise ImportFailure(f"Record {index} has an invalid day {raw_day!r}") from e

    texts: dict[str, str | None] = {}
    for key in _TEXT_FIELDS:
        value = item.get(key)
        if value is not None and not isinstance(value, str):
            raise ImportFailure(f"Record {index} field {key!r} must be a string or null")
        if value is not None and not _encodable(value):
            raise ImportFailure(f"Record {index} field {key!r} is not valid Unicode text")
        texts[key] = value
    return ExportRecord(day=day, **texts)


class BackupCodec:
    """Export the journal to, and merge it back from, a JSON document.

    Args:
        store: Entry store to read from and merge into.
        backup_path: The well-known backup file location.
    """

    def __init__(self, store: EntryStore, backup_path: str | Path) -> None:
        self._store = store
        self.backup_path = Path(backup_path).expanduser()

    def export_all(self, path: str | Path | None = None) -> Path:
        """Write every entry to the backup file and return its path.

        The file is replaced atomically, so a failed export leaves any
        previous backup intact.
        """
        target = Path(path).expanduser() if path else self.backup_path
        records = [ExportRecord.from_entry(e) for e in self._store.fetch_all()]
        try:
            document = encode_records(records)
            atomic_write(target, document)
            if target.stat().st_size == 0:
                raise ExportFailure(f"Backup at {target} is empty after writing")
        except (OSError, TypeError, ValueError, OverflowError) as e:
            logger.error(f"Export to {target} failed: {e}")
            raise ExportFailure(f"Could not write backup to {target}: {e}") from e
        logger.info(f"Exported {len(records)} entr{'y' if len(records) == 1 else 'ies'} to {target}")
        return target

    def import_merge(self, document: str | bytes | Path) -> MergeResult:
        """Merge a backup into the store, all or nothing.

        Args:
            document: The JSON text, or the path of a backup file.
        """
        if isinstance(document, Path):
            try:
                document = document.expanduser().read_bytes()
            except OSError as e:
                raise ImportFailure(f"Cannot read backup {document}: {e}") from e
        records = decode_records(document)
        result = self._store.merge(records)
        logger.info(f"Imported {len(records)} record(s)")
        return result

    def restore(self) -> MergeResult:
        """Merge the well-known backup file into the store."""
        if not self.backup_path.exists():
            raise ImportFailure(f"No backup found at {self.backup_path}")
        return self.import_merge(self.backup_path)
