"""Tabby CLI — entry point for the journal commands."""

import click

from tabby import __version__


@click.group()
@click.version_option(version=__version__, package_name="tabby-journal")
@click.option("--config", "config_file", type=click.Path(dir_okay=False), default=None, help="YAML or JSON config file.")
@click.option("--data-dir", type=click.Path(file_okay=False), default=None, help="Where the journal keeps its data.")
@click.pass_context
def main(ctx: click.Context, config_file: str | None, data_dir: str | None) -> None:
    """Tabby Journal — daily intention, goal and reflection."""
    ctx.ensure_object(dict)
    ctx.obj["config_file"] = config_file
    ctx.obj["data_dir"] = data_dir


# Register subcommands
from .backup_cmd import export_cmd, import_cmd
from .entry_cmd import delete, range_cmd, reset, show, today, widget, write
from .reminders_cmd import reminders

main.add_command(today)
main.add_command(write)
main.add_command(show)
main.add_command(range_cmd)
main.add_command(delete)
main.add_command(reset)
main.add_command(widget)
main.add_command(export_cmd)
main.add_command(import_cmd)
main.add_command(reminders)
