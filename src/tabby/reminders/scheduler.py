"""Reminder scheduling — turns reminder settings into daily notifications.

The journal core only decides *what* to remind about and *when*
(identifier, title, body, hour, minute). Delivery belongs to a
:class:`ReminderScheduler`; :class:`APSchedulerReminders` is a local one
that fires a callback on a daily cron trigger.

APScheduler is imported lazily (only in :meth:`APSchedulerReminders.start`)
so the module can be imported without it.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from datetime import time
from typing import Any, Protocol, runtime_checkable

from loguru import logger

from tabby.core.exceptions import ConfigurationError

INTENTION_REMINDER_ID = "intention_reminder"
REFLECTION_REMINDER_ID = "reflection_reminder"

NotifyFn = Callable[["ReminderRequest"], None]


@dataclass(frozen=True)
class ReminderRequest:
    """Everything a notification backend needs to schedule one reminder."""

    identifier: str
    title: str
    body: str
    hour: int
    minute: int
    repeats: bool = True


def parse_clock_time(value: str | time) -> time:
    """Parse ``HH:MM`` into a time."""
    if isinstance(value, time):
        return value
    try:
        hour, _, minute = str(value).strip().partition(":")
        return time(int(hour), int(minute or 0))
    except ValueError as e:
        raise ConfigurationError(f"Reminder time must be HH:MM, got {value!r}") from e


@dataclass
class ReminderSettings:
    """Morning intention and evening reflection reminders.

    Attributes:
        intention_enabled: Whether the intention reminder is on.
        intention_time: When to prompt for the day's intention.
        reflection_enabled: Whether the reflection reminder is on.
        reflection_time: When to prompt for the evening reflection.
    """

    intention_enabled: bool = False
    intention_time: time = time(9, 0)
    reflection_enabled: bool = False
    reflection_time: time = time(21, 0)

    @classmethod
    def from_config(cls, config: Any) -> ReminderSettings:
        return cls(
            intention_enabled=config.get_bool("reminders.intention.enabled"),
            intention_time=parse_clock_time(config.get("reminders.intention.time", "09:00")),
            reflection_enabled=config.get_bool("reminders.reflection.enabled"),
            reflection_time=parse_clock_time(config.get("reminders.reflection.time", "21:00")),
        )


def build_reminders(settings: ReminderSettings) -> dict[str, ReminderRequest | None]:
    """Map each reminder id to its request, or None when it is switched off."""
    intention = ReminderRequest(
        identifier=INTENTION_REMINDER_ID,
        title="Set your intention",
        body="Take a moment to set your intention for the day.",
        hour=settings.intention_time.hour,
        minute=settings.intention_time.minute,
    )
    reflection = ReminderRequest(
        identifier=REFLECTION_REMINDER_ID,
        title="Reflect on your day",
        body="Take a moment to reflect on your day.",
        hour=settings.reflection_time.hour,
        minute=settings.reflection_time.minute,
    )
    return {
        INTENTION_REMINDER_ID: intention if settings.intention_enabled else None,
        REFLECTION_REMINDER_ID: reflection if settings.reflection_enabled else None,
    }


@runtime_checkable
class ReminderScheduler(Protocol):
    """Delivery backend for reminders."""

    def schedule(self, request: ReminderRequest) -> None:
        """Schedule (or reschedule) the reminder with ``request.identifier``."""
        ...

    def cancel(self, identifier: str) -> None:
        """Cancel a reminder; unknown identifiers are ignored."""
        ...


def sync_reminders(settings: ReminderSettings, scheduler: ReminderScheduler) -> list[ReminderRequest]:
    """Schedule enabled reminders and cancel disabled ones.

    Returns the requests that were scheduled.
    """
    scheduled: list[ReminderRequest] = []
    for identifier, request in build_reminders(settings).items():
        if request is None:
            scheduler.cancel(identifier)
        else:
            scheduler.schedule(request)
            scheduled.append(request)
    return scheduled


class APSchedulerReminders:
    """Fires ``notify(request)`` every day at each reminder's time.

    Args:
        notify: Called when a reminder is due.
        timezone: Timezone for the cron triggers. None means local time.
    """

    def __init__(self, notify: NotifyFn, timezone: str | None = None):
        self._notify = notify
        self._timezone = timezone
        self._scheduler: Any = None  # BackgroundScheduler, lazily created
        self._requests: dict[str, ReminderRequest] = {}

    @property
    def requests(self) -> dict[str, ReminderRequest]:
        return dict(self._requests)

    def schedule(self, request: ReminderRequest) -> None:
        self._requests[request.identifier] = request
        if self._scheduler is not None:
            self._add_job(request)
        logger.info(f"Reminder {request.identifier} scheduled for {request.hour:02d}:{request.minute:02d}")

    def cancel(self, identifier: str) -> None:
        if self._requests.pop(identifier, None) is None:
            return
        if self._scheduler is not None and self._scheduler.get_job(identifier):
            self._scheduler.remove_job(identifier)
        logger.info(f"Reminder {identifier} cancelled")

    # ── Lifecycle ──────────────────────────────────────────────────

    def start(self, blocking: bool = False) -> None:
        """Create the APScheduler instance, add all reminders, and start.

        With ``blocking=True`` this call does not return until shutdown.
        """
        if blocking:
            from apscheduler.schedulers.blocking import BlockingScheduler as SchedulerClass
        else:
            from apscheduler.schedulers.background import BackgroundScheduler as SchedulerClass

        kwargs = {"timezone": self._timezone} if self._timezone else {}
        self._scheduler = SchedulerClass(**kwargs)
        for request in self._requests.values():
            self._add_job(request)
        logger.info(f"Reminder scheduler starting with {len(self._requests)} reminder(s)")
        self._scheduler.start()

    def shutdown(self) -> None:
        if self._scheduler:
            self._scheduler.shutdown(wait=False)
            self._scheduler = None
            logger.info("Reminder scheduler shut down")

    def _add_job(self, request: ReminderRequest) -> None:
        from apscheduler.triggers.cron import CronTrigger

        trigger = CronTrigger(hour=request.hour, minute=request.minute, timezone=self._timezone)
        self._scheduler.add_job(
            self._fire,
            trigger=trigger,
            id=request.identifier,
            kwargs={"identifier": request.identifier},
            replace_existing=True,
        )

    def _fire(self, identifier: str) -> None:
        request = self._requests.get(identifier)
        if request is None:
            return
        logger.debug(f"Reminder fired: {identifier}")
        if not request.repeats:
            self.cancel(identifier)
        try:
            self._notify(request)
        except Exception as e:
            logger.warning(f"Reminder {identifier} notify failed: {e}")

