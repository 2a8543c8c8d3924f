"""Watch command for the notesync CLI.

Commands:
- watch: Upload new and renamed notes as they appear
"""

from __future__ import annotations

import sys

import click

from notesync.client.cli.config import open_engine
from notesync.client.cli.upload import report_result
from notesync.client.sync.types import ConfigurationError
from notesync.client.sync.watcher import DEFAULT_SYNC_DELAY, VaultWatcher


@click.command()
@click.option(
    "--delay",
    type=float,
    default=DEFAULT_SYNC_DELAY,
    show_default=True,
    help="Seconds of quiet before changes are handled.",
)
@click.option("--no-harvest", is_flag=True, help="Skip the initial upload of new notes.")
def watch(delay: float, no_harvest: bool) -> None:
    """Watch the vault and upload notes as they are created or renamed.

    On start, notes in the selected folder that were never uploaded are
    uploaded first. Created notes are only uploaded with auto-upload on;
    renames always update the upload records.
    """
    with open_engine() as engine:
        try:
            engine.check_required_settings()
        except ConfigurationError as e:
            click.echo(f"Error: {e}", err=True)
            sys.exit(1)

        if not engine.settings.auto_upload:
            click.echo(
                "Note: auto-upload is off; new notes will not be uploaded. "
                "Enable it with 'notesync config set auto-upload on'."
            )

        if not no_harvest:
            queued = engine.initial_harvest()
            if queued:
                click.echo(f"Initial sync: uploaded {queued} new note(s)")

        click.echo(f"\nWatching {engine.vault.root_path}... (Ctrl+C to stop)\n")

        watcher = VaultWatcher(engine.vault, sync_delay_s=delay)
        try:
            with watcher:
                while True:
                    event = watcher.get_event(timeout=1.0)
                    if event is None:
                        continue
                    result = engine.handle_event(event)
                    if result is not None:
                        report_result(result)
        except KeyboardInterrupt:
            engine.cancel()
            click.echo("\nStopped watching.")
