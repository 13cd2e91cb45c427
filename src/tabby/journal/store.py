"""Entry store — SQLite-backed journal entries, one row per calendar day.

The store is the only owner of durable entry data. Everything it returns
is a frozen :class:`Entry` snapshot; callers that want fresher data ask
again after a change signal.

Writes are serialised through one lock per store, so get-or-create can
never insert two rows for the same day and an update cannot interleave
with a concurrent create. The ``day`` column is also ``UNIQUE`` to guard
against a second process. Reads open their own connection and run
concurrently; each write commits before its lock is released, so any read
started afterwards observes it.
"""

from __future__ import annotations

import sqlite3
import threading
import uuid
from collections.abc import Callable, Iterable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import date, datetime
from pathlib import Path

from loguru import logger

from tabby.core.events import ChangeSignal
from tabby.core.exceptions import StorageFailure

from .models import Entry, EntryPatch, ExportRecord, normalize_day

_SCHEMA = """
CREATE TABLE IF NOT EXISTS entries (
    id TEXT PRIMARY KEY,
    day TEXT NOT NULL UNIQUE,
    intention TEXT,
    goal TEXT,
    reflection TEXT,
    mood TEXT,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
);
"""

_COLUMNS = "id, day, intention, goal, reflection, mood, created_at, updated_at"


@dataclass(frozen=True)
class MergeResult:
    """Outcome of a merge-import."""

    created: int = 0
    updated: int = 0
    unchanged: int = 0

    @property
    def total(self) -> int:
        return self.created + self.updated + self.unchanged


def _row_to_entry(row: sqlite3.Row) -> Entry:
    return Entry(
        id=row["id"],
        day=date.fromisoformat(row["day"]),
        intention=row["intention"],
        goal=row["goal"],
        reflection=row["reflection"],
        mood=row["mood"],
        created_at=datetime.fromisoformat(row["created_at"]),
        updated_at=datetime.fromisoformat(row["updated_at"]),
    )


class EntryStore:
    """Durable, day-keyed storage for journal entries.

    Args:
        db_path: SQLite database file. Parent directories are created.
        signal: Change signal published after every committed mutation.
        clock: Returns the current local time; injected for tests.
    """

    def __init__(
        self,
        db_path: str | Path,
        signal: ChangeSignal | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.db_path = Path(db_path).expanduser()
        self._signal = signal
        self._clock = clock
        self._write_lock = threading.RLock()
        self._init_db()

    # -- Connection handling -------------------------------------------------

    def _init_db(self) -> None:
        with self._operation("open"):
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            with self._connect() as conn:
                conn.execute("PRAGMA journal_mode = WAL")
                conn.executescript(_SCHEMA)

    @contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        """Yield a connection that commits on success and rolls back on error."""
        conn = sqlite3.connect(self.db_path, timeout=10.0)
        conn.row_factory = sqlite3.Row
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    @contextmanager
    def _operation(self, name: str) -> Iterator[None]:
        """Translate low-level I/O errors into StorageFailure."""
        try:
            yield
        except (sqlite3.Error, OSError, UnicodeEncodeError) as e:
            logger.error(f"Entry store {name} failed: {e}")
            raise StorageFailure(name, str(e)) from e

    def _notify(self, source: str) -> None:
        if self._signal is not None:
            self._signal.publish(source=source)

    def _now(self) -> str:
        return self._clock().isoformat(timespec="seconds")

    # -- Days ------------------------------------------------------------------

    def today(self) -> date:
        """The current local calendar day according to the store's clock."""
        return normalize_day(self._clock())

    # -- Create / read --------------------------------------------------------

    def get_or_create(self, day: date | datetime, initial: EntryPatch | None = None) -> Entry:
        """Return the entry for *day*, creating an empty one on first use.

        ``initial`` fields are applied only when the entry is created here.
        """
        target = normalize_day(day)
        created = False
        with self._write_lock, self._operation("get_or_create"):
            with self._connect() as conn:
                row = conn.execute(f"SELECT {_COLUMNS} FROM entries WHERE day = ?", (target.isoformat(),)).fetchone()
                if row is None:
                    values = (initial or EntryPatch()).changes()
                    now = self._now()
                    try:
                        conn.execute(
                            "INSERT INTO entries (id, day, intention, goal, reflection, mood, created_at, updated_at)"
                            " VALUES (?, ?, ?, ?, ?, ?, ?, ?)",
                            (
                                str(uuid.uuid4()),
                                target.isoformat(),
                                values.get("intention"),
                                values.get("goal"),
                                values.get("reflection"),
                                values.get("mood"),
                                now,
                                now,
                            ),
                        )
                        created = True
                    except sqlite3.IntegrityError:
                        # Another process won the race for this day
                        pass
                    row = conn.execute(
                        f"SELECT {_COLUMNS} FROM entries WHERE day = ?", (target.isoformat(),)
                    ).fetchone()
            entry = _row_to_entry(row)

        if created:
            logger.debug(f"Created entry {entry.id} for {target}")
            self._notify("get_or_create")
        return entry

    def get_or_create_today(self) -> Entry:
        return self.get_or_create(self.today())

    def fetch(self, day: date | datetime) -> Entry | None:
        """Exact-day lookup. Returns None when there is no entry."""
        target = normalize_day(day)
        with self._operation("fetch"), self._connect() as conn:
            row = conn.execute(f"SELECT {_COLUMNS} FROM entries WHERE day = ?", (target.isoformat(),)).fetchone()
        return _row_to_entry(row) if row else None

    def get(self, entry_id: str) -> Entry | None:
        """Look an entry up by id."""
        with self._operation("get"), self._connect() as conn:
            row = conn.execute(f"SELECT {_COLUMNS} FROM entries WHERE id = ?", (entry_id,)).fetchone()
        return _row_to_entry(row) if row else None

    def fetch_range(self, start: date | datetime, end: date | datetime) -> list[Entry]:
        """Entries from *start* to *end* inclusive, ascending by day.

        A reversed range yields an empty list.
        """
        first, last = normalize_day(start), normalize_day(end)
        if last < first:
            return []
        with self._operation("fetch_range"), self._connect() as conn:
            rows = conn.execute(
                f"SELECT {_COLUMNS} FROM entries WHERE day >= ? AND day <= ? ORDER BY day ASC",
                (first.isoformat(), last.isoformat()),
            ).fetchall()
        return [_row_to_entry(r) for r in rows]

    def fetch_all(self) -> list[Entry]:
        return self.fetch_range(date.min, date.max)

    def days_between(self, start: date, end: date) -> set[date]:
        """Days that have an entry within the inclusive range."""
        first, last = normalize_day(start), normalize_day(end)
        if last < first:
            return set()
        with self._operation("fetch_range"), self._connect() as conn:
            rows = conn.execute(
                "SELECT day FROM entries WHERE day >= ? AND day <= ?",
                (first.isoformat(), last.isoformat()),
            ).fetchall()
        return {date.fromisoformat(r["day"]) for r in rows}

    def count(self) -> int:
        with self._operation("count"), self._connect() as conn:
            return conn.execute("SELECT COUNT(*) FROM entries").fetchone()[0]

    # -- Mutations ------------------------------------------------------------

    def update(self, entry_id: str, patch: EntryPatch) -> bool:
        """Apply the non-empty fields of *patch* to an entry.

        Returns True when something was written. A missing id (the entry was
        deleted meanwhile) is a silent no-op, as is a patch that matches the
        stored values.
        """
        changes = patch.changes()
        if not changes:
            return False

        with self._write_lock, self._operation("update"):
            with self._connect() as conn:
                row = conn.execute(f"SELECT {_COLUMNS} FROM entries WHERE id = ?", (entry_id,)).fetchone()
                if row is None:
                    logger.debug(f"Update skipped, entry {entry_id} no longer exists")
                    return False
                changed = {k: v for k, v in changes.items() if row[k] != v}
                if not changed:
                    return False
                assignments = ", ".join(f"{k} = ?" for k in changed)
                conn.execute(
                    f"UPDATE entries SET {assignments}, updated_at = ? WHERE id = ?",
                    (*changed.values(), self._now(), entry_id),
                )

        logger.debug(f"Updated {', '.join(changed)} on entry {entry_id}")
        self._notify("update")
        return True

    def delete(self, entry_id: str) -> bool:
        """Remove an entry. Deleting an unknown id is a no-op."""
        with self._write_lock, self._operation("delete"):
            with self._connect() as conn:
                deleted = conn.execute("DELETE FROM entries WHERE id = ?", (entry_id,)).rowcount > 0
        if deleted:
            logger.debug(f"Deleted entry {entry_id}")
            self._notify("delete")
        return deleted

    def delete_all(self) -> int:
        """Clear the store. Returns the number of entries removed."""
        with self._write_lock, self._operation("delete_all"):
            with self._connect() as conn:
                removed = conn.execute("DELETE FROM entries").rowcount
        logger.info(f"Deleted all entries ({removed})")
        self._notify("delete_all")
        return removed

    def merge(self, records: Iterable[ExportRecord]) -> MergeResult:
        """Merge imported records by day in a single transaction.

        Existing entries keep their id and creation time and have their three
        text fields overwritten; days without an entry get a new one. Ordinary
        writes are held off until the whole merge has committed.
        """
        created = updated = unchanged = 0
        with self._write_lock, self._operation("merge"):
            with self._connect() as conn:
                conn.execute("BEGIN IMMEDIATE")
                for record in records:
                    day_key = normalize_day(record.day).isoformat()
                    row = conn.execute(
                        "SELECT id, intention, goal, reflection FROM entries WHERE day = ?", (day_key,)
                    ).fetchone()
                    now = self._now()
                    if row is None:
                        conn.execute(
                            "INSERT INTO entries (id, day, intention, goal, reflection, mood, created_at, updated_at)"
                            " VALUES (?, ?, ?, ?, ?, NULL, ?, ?)",
                            (str(uuid.uuid4()), day_key, record.intention, record.goal, record.reflection, now, now),
                        )
                        created += 1
                    elif (row["intention"], row["goal"], row["reflection"]) == (
                        record.intention,
                        record.goal,
                        record.reflection,
                    ):
                        unchanged += 1
                    else:
                        conn.execute(
                            "UPDATE entries SET intention = ?, goal = ?, reflection = ?, updated_at = ? WHERE id = ?",
                            (record.intention, record.goal, record.reflection, now, row["id"]),
                        )
                        updated += 1

        result = MergeResult(created=created, updated=updated, unchanged=unchanged)
        logger.info(f"Merged {result.total} record(s): {created} created, {updated} updated, {unchanged} unchanged")
        if created or updated:
            self._notify("merge")
        return result
