"""tabby export / import — JSON backup and merge-restore."""

from __future__ import annotations

from pathlib import Path

import click

from tabby.core.exceptions import ExportFailure, ImportFailure, StorageFailure

from .common import open_services


@click.command("export")
@click.argument("path", required=False, type=click.Path(dir_okay=False))
@click.pass_context
def export_cmd(ctx: click.Context, path: str | None) -> None:
    """Back up every entry to a JSON file."""
    with open_services(ctx) as services:
        try:
            written = services.backup.export_all(path)
        except (ExportFailure, StorageFailure) as e:
            click.echo(f"Export failed: {e}", err=True)
            ctx.exit(1)
        click.echo(f"Backup saved to {written}")


@click.command("import")
@click.argument("path", required=False, type=click.Path(dir_okay=False))
@click.pass_context
def import_cmd(ctx: click.Context, path: str | None) -> None:
    """Merge a JSON backup into the journal (default: the last export)."""
    with open_services(ctx) as services:
        try:
            result = services.backup.import_merge(Path(path)) if path else services.backup.restore()
        except (ImportFailure, StorageFailure) as e:
            click.echo(f"Import failed: {e}", err=True)
            ctx.exit(1)
        click.echo(f"Restored {result.total} entries ({result.created} new, {result.updated} updated).")
