"""tabby reminders — show or run the daily reminders."""

from __future__ import annotations

import click

from tabby.reminders import APSchedulerReminders, ReminderRequest, ReminderSettings, build_reminders, sync_reminders

from .common import load_config


@click.command()
@click.option("--watch", is_flag=True, help="Stay running and print reminders when they are due.")
@click.pass_context
def reminders(ctx: click.Context, watch: bool) -> None:
    """List the configured reminders."""
    settings = ReminderSettings.from_config(load_config(ctx))
    for identifier, request in build_reminders(settings).items():
        if request is None:
            click.echo(f"{identifier}: off")
        else:
            click.echo(f"{identifier}: {request.hour:02d}:{request.minute:02d}  {request.title}")

    if not watch:
        return

    def notify(request: ReminderRequest) -> None:
        click.echo(f"[{request.title}] {request.body}")

    scheduler = APSchedulerReminders(notify)
    if not sync_reminders(settings, scheduler):
        click.echo("No reminders enabled.")
        return
    click.echo("Waiting for reminders. Press Ctrl+C to stop.")
    try:
        scheduler.start(blocking=True)
    except (KeyboardInterrupt, SystemExit):
        scheduler.shutdown()
