"""Calendar index — a sliding window of days over a long, bounded range.

The calendar strip can scroll across decades, so only a window of days
around the focused day is materialised. Which of those days have an entry
is answered from a cached set filled by one range query; the window is
rebuilt once the focus drifts within ``buffer_days`` of either edge.
"""

from __future__ import annotations

import threading
from collections.abc import Iterator
from datetime import date, datetime, timedelta

from loguru import logger

from tabby.core.events import ChangeEvent, ChangeSignal
from tabby.core.exceptions import ConfigurationError

from .models import normalize_day
from .store import EntryStore

DEFAULT_START = date(1999, 7, 15)
DEFAULT_END = date(2050, 12, 31)
DEFAULT_WINDOW_DAYS = 365
DEFAULT_BUFFER_DAYS = 90


class CalendarIndex:
    """Windowed, lazily-expanding view over the journal's days.

    Args:
        store: Entry store used for range queries and fallbacks.
        start: First addressable day.
        end: Last addressable day.
        window_days: Number of days in the visible window.
        buffer_days: Distance from a window edge that triggers a recenter.
    """

    def __init__(
        self,
        store: EntryStore,
        start: date = DEFAULT_START,
        end: date = DEFAULT_END,
        window_days: int = DEFAULT_WINDOW_DAYS,
        buffer_days: int = DEFAULT_BUFFER_DAYS,
    ) -> None:
        if end < start:
            raise ConfigurationError(f"Calendar end {end} is before start {start}")
        if window_days < 1:
            raise ConfigurationError("Calendar window must hold at least one day")
        if not 0 <= buffer_days * 2 < window_days:
            raise ConfigurationError("Calendar buffer must be less than half the window")
        self._store = store
        self.start = start
        self.end = end
        self.window_days = window_days
        self.buffer_days = buffer_days
        self._focus: date | None = None
        self._window: tuple[date, date] | None = None
        self._entry_days: set[date] = set()
        self._signal: ChangeSignal | None = None
        # Guards _window and _entry_days; refreshes also run on the change-signal thread
        self._lock = threading.Lock()
        self._refresh_ticket = 0
        self._applied_ticket = 0

    # -- Window ---------------------------------------------------------------

    @property
    def focus_day(self) -> date | None:
        return self._focus

    @property
    def window(self) -> tuple[date, date] | None:
        """First and last day of the current window, inclusive."""
        return self._window

    def clamp(self, day: date) -> date:
        return min(max(day, self.start), self.end)

    def focus(self, day: date | datetime) -> bool:
        """Move the focus, rebuilding the window if it is near an edge.

        Returns True when the window was recentred.
        """
        self._focus = self.clamp(normalize_day(day))
        if self._window is None or self._near_edge(self._focus):
            self._recenter(self._focus)
            return True
        return False

    def _near_edge(self, day: date) -> bool:
        with self._lock:
            first, last = self._window
        if day < first or day > last:
            return True
        buffer = timedelta(days=self.buffer_days)
        # An edge pinned to the range bound cannot move any further
        near_first = first > self.start and day < first + buffer
        near_last = last < self.end and day > last - buffer
        return near_first or near_last

    def _window_around(self, center: date) -> tuple[date, date]:
        half = timedelta(days=self.window_days // 2)
        first = center - half
        last = first + timedelta(days=self.window_days - 1)
        if first < self.start:
            first = self.start
            last = min(first + timedelta(days=self.window_days - 1), self.end)
        elif last > self.end:
            last = self.end
            first = max(last - timedelta(days=self.window_days - 1), self.start)
        return first, last

    def _recenter(self, center: date) -> None:
        window = self._window_around(center)
        with self._lock:
            self._window = window
            self._entry_days = set()
        self.refresh()
        logger.debug(f"Calendar window recentred on {center}: {window[0]} .. {window[1]}")

    def refresh(self) -> bool:
        """Re-read which days in the window have entries.

        The query runs without the lock. Its result is dropped if the window
        moved meanwhile, or if a refresh that started later already landed.
        Returns True when the cache was replaced.
        """
        with self._lock:
            window = self._window
            self._refresh_ticket += 1
            ticket = self._refresh_ticket
        if window is None:
            return False
        days = {e.day for e in self._store.fetch_range(*window)}
        with self._lock:
            if self._window != window or ticket < self._applied_ticket:
                logger.debug(f"Stale calendar refresh for {window[0]} .. {window[1]} dropped")
                return False
            self._entry_days = days
            self._applied_ticket = ticket
        return True

    def days(self) -> Iterator[date]:
        """Iterate the days of the current window in order."""
        with self._lock:
            window = self._window
        if window is None:
            return
        first, last = window
        current = first
        while current <= last:
            yield current
            current += timedelta(days=1)

    # -- Lookups --------------------------------------------------------------

    def has_entry(self, day: date | datetime) -> bool:
        """Whether *day* has an entry, from the cache when it covers the day."""
        target = normalize_day(day)
        with self._lock:
            window = self._window
            if window is not None and window[0] <= target <= window[1]:
                return target in self._entry_days
        return self._store.fetch(target) is not None

    # -- Change tracking ------------------------------------------------------

    def attach(self, signal: ChangeSignal) -> None:
        """Refresh the cached window whenever the journal changes."""
        self.detach()
        signal.subscribe(self._on_change)
        self._signal = signal

    def detach(self) -> None:
        if self._signal is not None:
            self._signal.unsubscribe(self._on_change)
            self._signal = None

    def _on_change(self, event: ChangeEvent) -> None:
        self.refresh()
