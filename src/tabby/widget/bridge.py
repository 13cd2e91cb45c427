"""Widget bridge — today's intention and goal in a cross-process key space.

The home-screen widget renders from a small shared key/value store and
never touches the entry database. The bridge writes two string keys,
reads them back, and asks the widget surface to refresh after each write.
Values are last-write-wins with no versioning; an absent key means the
widget shows a placeholder.
"""

from __future__ import annotations

import json
import threading
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol, runtime_checkable

from loguru import logger

from tabby.core.events import ChangeEvent, ChangeSignal
from tabby.core.utils.file_io import atomic_write
from tabby.journal.store import EntryStore

INTENTION_KEY = "widget_intention"
GOAL_KEY = "widget_goal"
DEFAULT_GROUP_ID = "group.com.tabby.journal"
WIDGET_KIND = "TabbyJournalWidget"

INTENTION_PLACEHOLDER = "Set your intention"
GOAL_PLACEHOLDER = "Set your goal"
NO_INTENTION = "No intention set"
NO_GOAL = "No goal set"

RefreshFn = Callable[[str], None]
"""Asks the widget surface identified by *kind* to redraw."""


@runtime_checkable
class SharedStore(Protocol):
    """String key/value storage visible to other processes."""

    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...

    def set_many(self, values: Mapping[str, str | None]) -> None:
        """Write several keys together; a ``None`` value removes its key."""
        ...


class JsonFileSharedStore:
    """Shared key space kept in ``<directory>/<group_id>.json``.

    Each write replaces the file atomically, so a reader in another process
    sees either the old or the new contents, never a mix.
    """

    def __init__(self, directory: str | Path, group_id: str = DEFAULT_GROUP_ID) -> None:
        self.group_id = group_id
        self.path = Path(directory).expanduser() / f"{group_id}.json"
        self._lock = threading.Lock()

    def _read(self) -> dict[str, str]:
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return {}
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Shared store {self.path} unreadable, treating as empty: {e}")
            return {}
        return data if isinstance(data, dict) else {}

    def get(self, key: str) -> str | None:
        value = self._read().get(key)
        return value if isinstance(value, str) else None

    def set(self, key: str, value: str) -> None:
        self.set_many({key: value})

    def set_many(self, values: Mapping[str, str | None]) -> None:
        with self._lock:
            data = self._read()
            for key, value in values.items():
                if value is None:
                    data.pop(key, None)
                else:
                    data[key] = value
            atomic_write(self.path, json.dumps(data, ensure_ascii=False))


@dataclass(frozen=True)
class WidgetSnapshot:
    """What the widget last received. ``None`` means never published."""

    intention: str | None = None
    goal: str | None = None

    @property
    def intention_text(self) -> str:
        if self.intention is None:
            return INTENTION_PLACEHOLDER
        return self.intention or NO_INTENTION

    @property
    def goal_text(self) -> str:
        if self.goal is None:
            return GOAL_PLACEHOLDER
        return self.goal or NO_GOAL


class WidgetBridge:
    """Narrow read/write channel between the app and the widget.

    Args:
        shared: The cross-process key/value store.
        refresh: Called with the widget kind after every publish.
    """

    def __init__(self, shared: SharedStore, refresh: RefreshFn | None = None) -> None:
        self._shared = shared
        self._refresh = refresh

    def publish_today(self, intention: str | None, goal: str | None) -> None:
        """Store today's intention and goal, then request a widget refresh."""
        self._shared.set_many({INTENTION_KEY: intention or "", GOAL_KEY: goal or ""})
        logger.debug("Published today's intention and goal to the widget")
        self._request_refresh()

    def clear_today(self) -> None:
        """Remove both keys so the widget falls back to its placeholders."""
        self._shared.set_many({INTENTION_KEY: None, GOAL_KEY: None})
        logger.debug("Cleared today's intention and goal from the widget")
        self._request_refresh()

    def _request_refresh(self) -> None:
        if self._refresh is not None:
            try:
                self._refresh(WIDGET_KIND)
            except Exception as e:
                logger.warning(f"Widget refresh request failed: {e}")

    def read_today(self) -> WidgetSnapshot:
        return WidgetSnapshot(intention=self._shared.get(INTENTION_KEY), goal=self._shared.get(GOAL_KEY))


class WidgetMirror:
    """Keeps the widget in step with today's entry.

    On every change signal it re-reads today's entry from the store (never
    from the event) and publishes it. When today has no entry, as after a
    delete, the widget keys are cleared.
    """

    def __init__(self, store: EntryStore, bridge: WidgetBridge) -> None:
        self._store = store
        self._bridge = bridge

    def sync(self) -> bool:
        """Publish today's entry. Returns False when today has no entry."""
        entry = self._store.fetch(self._store.today())
        if entry is None:
            self._bridge.clear_today()
            return False
        self._bridge.publish_today(entry.intention, entry.goal)
        return True

    def attach(self, signal: ChangeSignal) -> None:
        signal.subscribe(self._on_change)

    def detach(self, signal: ChangeSignal) -> None:
        signal.unsubscribe(self._on_change)

    def _on_change(self, event: ChangeEvent) -> None:
        self.sync()
