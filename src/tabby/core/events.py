"""Change signal for keeping independent journal views in step.

A process-wide publish/subscribe channel: whoever writes to the entry store
publishes a :class:`ChangeEvent`, and every subscribed view re-reads the data
it displays. Events carry only a revision marker, never entry data.

Delivery never runs on the publisher's stack. Inside a running event loop
each hook is scheduled as a task; outside one, hooks run on a single
background worker thread, so each subscriber sees events in publish order.
Hooks can be sync or async.

Usage::

    from tabby.core.events import ChangeSignal, ChangeEvent

    signal = ChangeSignal()

    def on_change(event: ChangeEvent) -> None:
        calendar.refresh()

    signal.subscribe(on_change)
    signal.publish(source="autosave")
"""

from __future__ import annotations

import asyncio
import inspect
import threading
import uuid
from concurrent.futures import Future, ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from time import time
from typing import Any

from loguru import logger

# Type alias for hook callables (sync or async)
Hook = Any  # Callable[[ChangeEvent], None] | Callable[[ChangeEvent], Awaitable[None]]


@dataclass(frozen=True)
class ChangeEvent:
    """An immutable notice that journal data changed."""

    revision: str
    sequence: int
    timestamp: float = field(default_factory=time)
    source: str = ""


class ChangeSignal:
    """Fire-and-forget broadcast to all registered subscribers."""

    def __init__(self) -> None:
        self._hooks: list[Hook] = []
        self._lock = threading.Lock()
        self._sequence = 0
        self._revision = uuid.uuid4().hex
        self._executor: ThreadPoolExecutor | None = None
        self._pending: set[Future] = set()
        self._background_tasks: set[asyncio.Task] = set()  # prevent GC of fire-and-forget tasks

    @property
    def revision(self) -> str:
        """Marker of the most recent publish."""
        return self._revision

    def subscribe(self, hook: Hook) -> None:
        """Register *hook* to receive every subsequent event."""
        with self._lock:
            self._hooks.append(hook)

    def unsubscribe(self, hook: Hook) -> None:
        """Unregister *hook*; unknown hooks are ignored."""
        with self._lock:
            try:
                self._hooks.remove(hook)
            except ValueError:
                pass

    @property
    def subscriber_count(self) -> int:
        return len(self._hooks)

    def publish(self, source: str = "") -> ChangeEvent:
        """Announce a change to every subscriber without waiting for them."""
        with self._lock:
            self._sequence += 1
            self._revision = uuid.uuid4().hex
            event = ChangeEvent(revision=self._revision, sequence=self._sequence, source=source)
            hooks = list(self._hooks)

        loop: asyncio.AbstractEventLoop | None = None
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            pass

        for hook in hooks:
            if loop is not None:
                task = loop.create_task(self._deliver_async(hook, event))
                self._background_tasks.add(task)
                task.add_done_callback(self._background_tasks.discard)
            else:
                future = self._get_executor().submit(self._deliver_blocking, hook, event)
                with self._lock:
                    self._pending.add(future)
                future.add_done_callback(self._forget_future)

        logger.debug(f"Change #{event.sequence} published by {source or 'unknown'} to {len(hooks)} subscriber(s)")
        return event

    # -- Waiting for delivery -------------------------------------------------

    def drain(self, timeout: float | None = None) -> None:
        """Block until deliveries made outside an event loop have finished."""
        with self._lock:
            pending = list(self._pending)
        if pending:
            wait(pending, timeout=timeout)

    async def settle(self) -> None:
        """Await deliveries scheduled on the running event loop."""
        while self._background_tasks:
            await asyncio.gather(*list(self._background_tasks), return_exceptions=True)

    def close(self) -> None:
        """Finish outstanding deliveries and stop the worker thread."""
        if self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None

    # -- Internal -------------------------------------------------------------

    def _get_executor(self) -> ThreadPoolExecutor:
        with self._lock:
            if self._executor is None:
                self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="change-signal")
            return self._executor

    def _forget_future(self, future: Future) -> None:
        with self._lock:
            self._pending.discard(future)

    @staticmethod
    async def _deliver_async(hook: Hook, event: ChangeEvent) -> None:
        try:
            if inspect.iscoroutinefunction(hook):
                await hook(event)
            else:
                hook(event)
        except Exception as exc:
            logger.warning(f"Change hook {hook!r} failed for change #{event.sequence}: {exc}")

    @staticmethod
    def _deliver_blocking(hook: Hook, event: ChangeEvent) -> None:
        try:
            if inspect.iscoroutinefunction(hook):
                asyncio.run(hook(event))
            else:
                hook(event)
        except Exception as exc:
            logger.warning(f"Change hook {hook!r} failed for change #{event.sequence}: {exc}")
