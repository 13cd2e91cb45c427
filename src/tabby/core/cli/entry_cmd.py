"""tabby today / write / show / range / delete / reset / widget — entry commands."""

from __future__ import annotations

import click

from tabby.journal.models import EntryPatch

from .common import echo_entry, open_services, parse_day


@click.command()
@click.pass_context
def today(ctx: click.Context) -> None:
    """Show today's entry, creating it if needed."""
    with open_services(ctx) as services:
        echo_entry(services.store.get_or_create_today())


@click.command()
@click.option("--day", default=None, help="Day to write (YYYY-MM-DD). Defaults to today.")
@click.option("--intention", default=None, help="Today's intention.")
@click.option("--goal", default=None, help="Today's goal.")
@click.option("--reflection", default=None, help="Evening reflection.")
@click.option("--mood", default=None, help="A short mood tag.")
@click.pass_context
def write(
    ctx: click.Context,
    day: str | None,
    intention: str | None,
    goal: str | None,
    reflection: str | None,
    mood: str | None,
) -> None:
    """Set one or more fields on an entry."""
    patch = EntryPatch(intention=intention, goal=goal, reflection=reflection, mood=mood)
    if patch.is_empty():
        raise click.UsageError("Nothing to write. Pass --intention, --goal, --reflection or --mood.")
    with open_services(ctx) as services:
        target = parse_day(day, services)
        entry = services.store.get_or_create(target)
        changed = services.store.update(entry.id, patch)
        echo_entry(services.store.fetch(target) or entry)
        if not changed:
            click.echo("(no changes)")


@click.command()
@click.argument("day", required=False)
@click.pass_context
def show(ctx: click.Context, day: str | None) -> None:
    """Show the entry for DAY (YYYY-MM-DD, default today)."""
    with open_services(ctx) as services:
        target = parse_day(day, services)
        entry = services.store.fetch(target)
        if entry is None:
            click.echo(f"No entry for {target.isoformat()}")
            return
        echo_entry(entry)


@click.command("range")
@click.argument("start")
@click.argument("end")
@click.pass_context
def range_cmd(ctx: click.Context, start: str, end: str) -> None:
    """List entries from START to END inclusive."""
    with open_services(ctx) as services:
        entries = services.store.fetch_range(parse_day(start, services), parse_day(end, services))
        if not entries:
            click.echo("No entries in range.")
            return
        for entry in entries:
            click.echo(f"{entry.day.isoformat()}  {entry.intention or '-'} | {entry.goal or '-'}")


@click.command()
@click.argument("day")
@click.pass_context
def delete(ctx: click.Context, day: str) -> None:
    """Delete the entry for DAY."""
    with open_services(ctx) as services:
        target = parse_day(day, services)
        entry = services.store.fetch(target)
        if entry is None or not services.store.delete(entry.id):
            click.echo(f"No entry for {target.isoformat()}")
            return
        click.echo(f"Deleted entry for {target.isoformat()}")


@click.command()
@click.confirmation_option(prompt="Delete every journal entry?")
@click.pass_context
def reset(ctx: click.Context) -> None:
    """Delete all entries."""
    with open_services(ctx) as services:
        removed = services.store.delete_all()
        click.echo(f"Deleted {removed} entr{'y' if removed == 1 else 'ies'}.")


@click.command()
@click.pass_context
def widget(ctx: click.Context) -> None:
    """Show what the home-screen widget displays."""
    with open_services(ctx) as services:
        services.mirror.sync()
        snapshot = services.widget.read_today()
        click.echo(f"INTENTION  {snapshot.intention_text}")
        click.echo(f"GOALS      {snapshot.goal_text}")
