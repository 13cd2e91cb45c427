"""Autosave — debounced, per-field write-through from the editor to the store.

Every edit to a field (re)starts that field's quiet-period timer; the value
is saved once the field has been quiet for the whole period. Fields debounce
independently. Timers run on the asyncio event loop, so callbacks for the
same field never overlap.

``flush()`` cancels all timers and writes the latest value of every edited
field straight away, e.g. when the app goes to the background.
"""

from __future__ import annotations

import asyncio
from collections import defaultdict
from datetime import date
from enum import StrEnum

from loguru import logger

from tabby.core.exceptions import StorageFailure

from .models import EntryPatch, JournalField
from .store import EntryStore

DEFAULT_QUIET_PERIOD = 0.5


class RolloverPolicy(StrEnum):
    """Which day a save lands on when midnight passes before it fires.

    SAVE_TIME: the day that is current when the save runs.
    KEYSTROKE_TIME: the day that was current at the field's last edit.
    """

    SAVE_TIME = "save_time"
    KEYSTROKE_TIME = "keystroke_time"


class AutosaveCoordinator:
    """Coalesce rapid field edits into infrequent store writes.

    Args:
        store: Entry store that receives the writes.
        quiet_period: Seconds a field must go unedited before it is saved.
        rollover: Target-day rule for saves that straddle midnight.
        loop: Event loop for timers. Defaults to the loop running at the
            first edit.
    """

    def __init__(
        self,
        store: EntryStore,
        quiet_period: float = DEFAULT_QUIET_PERIOD,
        rollover: RolloverPolicy = RolloverPolicy.SAVE_TIME,
        loop: asyncio.AbstractEventLoop | None = None,
    ) -> None:
        self._store = store
        self.quiet_period = quiet_period
        self.rollover = RolloverPolicy(rollover)
        self._loop = loop
        self._values: dict[JournalField, str] = {}
        self._edit_days: dict[JournalField, date] = {}
        self._timers: dict[JournalField, asyncio.TimerHandle] = {}
        self._dirty: set[JournalField] = set()
        self._loaded_day: date | None = None

    # -- Editor state ---------------------------------------------------------

    @property
    def loaded_day(self) -> date | None:
        return self._loaded_day

    @property
    def pending(self) -> set[JournalField]:
        """Fields with a save scheduled but not yet run."""
        return set(self._timers)

    @property
    def dirty(self) -> set[JournalField]:
        """Fields whose latest value has not reached the store."""
        return set(self._dirty)

    def value(self, field: JournalField) -> str:
        return self._values.get(field, "")

    def load_today(self) -> dict[JournalField, str]:
        """Point the editor at today's entry and return its field values.

        Absent fields come back as empty strings. Fields with unsaved edits
        keep the edited value.
        """
        entry = self._store.get_or_create_today()
        self._loaded_day = entry.day
        for field in JournalField:
            if field not in self._dirty:
                self._values[field] = entry.get(field) or ""
        return {field: self._values[field] for field in JournalField}

    def check_day_change(self) -> bool:
        """Reload if the calendar day moved on since the last load.

        Outstanding edits are flushed first. Returns True if a reload happened.
        """
        if self._loaded_day is None or self._store.today() == self._loaded_day:
            return False
        logger.info(f"Day changed from {self._loaded_day} to {self._store.today()}, reloading editor")
        self.flush()
        self.load_today()
        return True

    # -- Edits ----------------------------------------------------------------

    def update_intention(self, value: str) -> None:
        self.update(JournalField.INTENTION, value)

    def update_goal(self, value: str) -> None:
        self.update(JournalField.GOAL, value)

    def update_reflection(self, value: str) -> None:
        self.update(JournalField.REFLECTION, value)

    def update(self, field: JournalField, value: str) -> None:
        """Record an edit and (re)start the field's quiet-period timer."""
        field = JournalField(field)
        self._values[field] = value
        self._dirty.add(field)
        self._edit_days[field] = self._store.today()

        previous = self._timers.pop(field, None)
        if previous is not None:
            previous.cancel()

        loop = self._loop or asyncio.get_running_loop()
        self._timers[field] = loop.call_later(self.quiet_period, self._on_quiet, field)

    def flush(self) -> bool:
        """Cancel pending timers and save every field's latest value now.

        Returns True if everything reached the store.
        """
        for handle in self._timers.values():
            handle.cancel()
        self._timers.clear()
        # Clean fields already match the store
        if not self._dirty:
            return True
        return self._save(set(self._dirty))

    def cancel(self) -> None:
        """Drop pending timers without saving."""
        for handle in self._timers.values():
            handle.cancel()
        self._timers.clear()

    # -- Saving ---------------------------------------------------------------

    def _on_quiet(self, field: JournalField) -> None:
        self._timers.pop(field, None)
        # Earlier failed saves ride along with this one
        retry = {f for f in self._dirty if f not in self._timers}
        self._save({field} | retry)

    def _target_day(self, field: JournalField, today: date) -> date:
        if self.rollover is RolloverPolicy.KEYSTROKE_TIME:
            return self._edit_days.get(field, today)
        return today

    def _save(self, fields: set[JournalField]) -> bool:
        today = self._store.today()
        by_day: dict[date, list[JournalField]] = defaultdict(list)
        for field in fields:
            by_day[self._target_day(field, today)].append(field)

        ok = True
        for day, day_fields in sorted(by_day.items()):
            patch = EntryPatch(**{f.value: self._values[f] for f in day_fields})
            try:
                entry = self._store.get_or_create(day)
                self._store.update(entry.id, patch)
            except StorageFailure as e:
                ok = False
                logger.warning(f"Autosave of {', '.join(sorted(day_fields))} for {day} failed, will retry: {e}")
                continue
            self._dirty.difference_update(day_fields)
        return ok
