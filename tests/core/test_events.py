"""Tests for tabby.core.events — ChangeSignal and ChangeEvent."""

from __future__ import annotations

import asyncio
import threading
from dataclasses import FrozenInstanceError

import pytest

from tabby.core.events import ChangeEvent, ChangeSignal

pytestmark = pytest.mark.smoke


@pytest.fixture
def signal():
    sig = ChangeSignal()
    yield sig
    sig.close()


# ---------------------------------------------------------------------------
# 1. Delivery outside an event loop
# ---------------------------------------------------------------------------


def test_subscribers_receive_event_after_drain(signal):
    received: list[ChangeEvent] = []
    signal.subscribe(received.append)

    event = signal.publish(source="test")
    signal.drain(timeout=5)

    assert received == [event]
    assert event.source == "test"


def test_publish_does_not_run_hooks_on_caller_thread(signal):
    threads: list[int] = []
    signal.subscribe(lambda event: threads.append(threading.get_ident()))

    signal.publish()
    signal.drain(timeout=5)

    assert threads and threads[0] != threading.get_ident()


def test_publish_does_not_wait_for_slow_subscriber(signal):
    release = threading.Event()
    done: list[int] = []

    def slow(event: ChangeEvent) -> None:
        release.wait(5)
        done.append(event.sequence)

    signal.subscribe(slow)
    signal.publish()
    assert done == []  # publisher returned while the hook is still blocked

    release.set()
    signal.drain(timeout=5)
    assert done == [1]


def test_events_arrive_in_publish_order(signal):
    received: list[int] = []
    signal.subscribe(lambda event: received.append(event.sequence))

    for _ in range(20):
        signal.publish()
    signal.drain(timeout=5)

    assert received == list(range(1, 21))


def test_async_hook_outside_loop(signal):
    received: list[str] = []

    async def hook(event: ChangeEvent) -> None:
        await asyncio.sleep(0)
        received.append(event.revision)

    signal.subscribe(hook)
    event = signal.publish()
    signal.drain(timeout=5)

    assert received == [event.revision]


# ---------------------------------------------------------------------------
# 2. Delivery inside an event loop
# ---------------------------------------------------------------------------


async def test_in_loop_delivery_is_deferred(signal):
    received: list[ChangeEvent] = []
    signal.subscribe(received.append)

    signal.publish()
    assert received == []

    await signal.settle()
    assert len(received) == 1


async def test_in_loop_async_hook(signal):
    received: list[int] = []

    async def hook(event: ChangeEvent) -> None:
        received.append(event.sequence)

    signal.subscribe(hook)
    signal.publish()
    signal.publish()
    await signal.settle()

    assert received == [1, 2]


# ---------------------------------------------------------------------------
# 3. Subscription management and error isolation
# ---------------------------------------------------------------------------


def test_unsubscribe(signal):
    received: list[ChangeEvent] = []
    signal.subscribe(received.append)
    assert signal.subscriber_count == 1

    signal.unsubscribe(received.append)
    signal.unsubscribe(received.append)  # unknown hooks are ignored
    signal.publish()
    signal.drain(timeout=5)

    assert signal.subscriber_count == 0
    assert received == []


def test_failing_hook_does_not_block_others(signal):
    received: list[ChangeEvent] = []

    def broken(event: ChangeEvent) -> None:
        raise RuntimeError("boom")

    signal.subscribe(broken)
    signal.subscribe(received.append)
    signal.publish()
    signal.drain(timeout=5)

    assert len(received) == 1


async def test_failing_async_hook_in_loop(signal):
    received: list[ChangeEvent] = []

    async def broken(event: ChangeEvent) -> None:
        raise RuntimeError("boom")

    signal.subscribe(broken)
    signal.subscribe(received.append)
    signal.publish()
    await signal.settle()

    assert len(received) == 1


# ---------------------------------------------------------------------------
# 4. Revision markers
# ---------------------------------------------------------------------------


def test_revision_changes_on_every_publish(signal):
    initial = signal.revision
    first = signal.publish()
    second = signal.publish()

    assert len({initial, first.revision, second.revision}) == 3
    assert signal.revision == second.revision
    assert (first.sequence, second.sequence) == (1, 2)


def test_event_is_frozen():
    event = ChangeEvent(revision="abc", sequence=1)
    with pytest.raises(FrozenInstanceError):
        event.revision = "changed"  # type: ignore[misc]


def test_publish_without_subscribers(signal):
    event = signal.publish()
    signal.drain(timeout=5)
    assert event.sequence == 1
