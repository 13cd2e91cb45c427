"""Shared setup logic for CLI commands."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from datetime import date
from pathlib import Path

import click

from tabby.app import JournalServices
from tabby.journal.models import Entry

TABBY_DIR = Path.home() / ".tabby-journal"
CONFIG_PATH = TABBY_DIR / "config.yaml"


def load_config(ctx: click.Context):
    """Load config from --config, falling back to ~/.tabby-journal/config.yaml."""
    from tabby.core.config import Config

    obj = ctx.obj or {}
    config_file = obj.get("config_file") or str(CONFIG_PATH)
    return Config(config_file=config_file, data_dir=obj.get("data_dir"))


@contextmanager
def open_services(ctx: click.Context) -> Iterator[JournalServices]:
    """Build the journal services and wait for change delivery on exit."""
    from tabby.app import build_services
    from tabby.core.utils.logging import setup_logging_from_config

    config = load_config(ctx)
    setup_logging_from_config(config)
    services = build_services(config)
    try:
        yield services
    finally:
        services.signal.drain(timeout=5.0)
        services.close()


def parse_day(value: str | None, services: JournalServices) -> date:
    """Parse a YYYY-MM-DD argument; ``today``/empty means the current day."""
    if not value or value.lower() == "today":
        return services.store.today()
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise click.BadParameter(f"expected YYYY-MM-DD, got {value!r}") from None


def _text(value: str | None) -> str:
    return value if value else "(empty)"


def echo_entry(entry: Entry) -> None:
    click.echo(f"# {entry.day.isoformat()}")
    click.echo(f"Intention:  {_text(entry.intention)}")
    click.echo(f"Goal:       {_text(entry.goal)}")
    click.echo(f"Reflection: {_text(entry.reflection)}")
    if entry.mood:
        click.echo(f"Mood:       {entry.mood}")
