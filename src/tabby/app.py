"""Service wiring — build the journal's components once and hand them out.

There are no module-level singletons: a process calls :func:`build_services`
at start-up and passes the resulting :class:`JournalServices` (or the
individual components) to whatever needs them.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime

from loguru import logger

from tabby.core.config import Config
from tabby.core.events import ChangeSignal
from tabby.journal.autosave import AutosaveCoordinator, RolloverPolicy
from tabby.journal.backup import BackupCodec
from tabby.journal.calendar import CalendarIndex
from tabby.journal.store import EntryStore
from tabby.widget.bridge import JsonFileSharedStore, RefreshFn, WidgetBridge, WidgetMirror


@dataclass
class JournalServices:
    """The long-lived components shared by every view of the journal."""

    config: Config
    signal: ChangeSignal
    store: EntryStore
    widget: WidgetBridge
    mirror: WidgetMirror
    backup: BackupCodec

    def calendar(self) -> CalendarIndex:
        """A new calendar index that follows journal changes."""
        config = self.config
        index = CalendarIndex(
            self.store,
            start=config.get_date("calendar.start", "1999-07-15"),
            end=config.get_date("calendar.end", "2050-12-31"),
            window_days=config.get_int("calendar.window_days", 365),
            buffer_days=config.get_int("calendar.buffer_days", 90),
        )
        index.attach(self.signal)
        return index

    def autosave(self, loop: asyncio.AbstractEventLoop | None = None) -> AutosaveCoordinator:
        """A new autosave coordinator for an editor."""
        return AutosaveCoordinator(
            self.store,
            quiet_period=self.config.get_float("autosave.quiet_period", 0.5),
            rollover=RolloverPolicy(str(self.config.get("autosave.rollover", "save_time"))),
            loop=loop,
        )

    def close(self) -> None:
        self.signal.close()


def build_services(
    config: Config,
    refresh: RefreshFn | None = None,
    clock: Callable[[], datetime] = datetime.now,
) -> JournalServices:
    """Create the store, change signal, widget bridge and backup codec.

    Args:
        config: Loaded configuration.
        refresh: Widget surface refresh hook, if a widget is present.
        clock: Local-time source shared by every component.
    """
    config.ensure_directories()
    signal = ChangeSignal()
    store = EntryStore(config.get_path("storage.database"), signal=signal, clock=clock)

    shared = JsonFileSharedStore(config.get("paths.shared_dir"), config.get("widget.group_id"))
    widget = WidgetBridge(shared, refresh=refresh)
    mirror = WidgetMirror(store, widget)
    mirror.attach(signal)

    backup = BackupCodec(store, config.get_path("backup.filename"))
    logger.debug(f"Journal services ready (database: {store.db_path})")
    return JournalServices(config=config, signal=signal, store=store, widget=widget, mirror=mirror, backup=backup)
