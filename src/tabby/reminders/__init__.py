"""Daily reminder notifications: settings, requests and scheduling."""

from .scheduler import (
    INTENTION_REMINDER_ID,
    REFLECTION_REMINDER_ID,
    APSchedulerReminders,
    ReminderRequest,
    ReminderScheduler,
    ReminderSettings,
    build_reminders,
    parse_clock_time,
    sync_reminders,
)

__all__ = [
    "APSchedulerReminders",
    "INTENTION_REMINDER_ID",
    "REFLECTION_REMINDER_ID",
    "ReminderRequest",
    "ReminderScheduler",
    "ReminderSettings",
    "build_reminders",
    "parse_clock_time",
    "sync_reminders",
]
