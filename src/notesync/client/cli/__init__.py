"""Command-line interface for notesync.

This module provides the main CLI entry point and assembles all commands.

Commands:
- config: View and change settings (show, set, unset, verify)
- upload: Upload a single note
- upload-folder: Upload every note in the selected folder
- harvest: Upload notes that were never uploaded
- status: Show notes waiting to be uploaded
- watch: Upload notes as they are created or renamed
"""

from __future__ import annotations

from pathlib import Path

import click

from notesync.client.cli.config import (
    CONFIG_DIR_ENV,
    configure_logging,
    get_config_dir,
    get_data_file,
    open_engine,
)
from notesync.client.cli.settings import config
from notesync.client.cli.upload import harvest, status, upload, upload_folder
from notesync.client.cli.watch import watch


@click.group()
@click.option(
    "--config-dir",
    type=click.Path(file_okay=False, path_type=Path),
    envvar=CONFIG_DIR_ENV,
    default=None,
    help="Directory holding data.json (default: ~/.notesync).",
)
@click.version_option(package_name="notesync")
@click.pass_context
def cli(ctx: click.Context, config_dir: Path | None) -> None:
    """notesync - Upload markdown notes to an ingestion endpoint."""
    ctx.ensure_object(dict)
    ctx.obj["config_dir"] = config_dir


# Settings commands
cli.add_command(config)

# Upload commands
cli.add_command(upload)
cli.add_command(upload_folder)
cli.add_command(harvest)
cli.add_command(status)
cli.add_command(watch)


def main() -> None:
    """Entry point for the CLI."""
    cli()


__all__ = [
    # Main entry points
    "cli",
    "main",
    # Config utilities
    "configure_logging",
    "get_config_dir",
    "get_data_file",
    "open_engine",
]
