"""Upload commands for the notesync CLI.

Commands:
- upload: Upload a single note
- upload-folder: Upload every note in the selected folder
- harvest: Upload notes that were never uploaded
- status: Show which notes are waiting to be uploaded
"""

from __future__ import annotations

import sys
import threading
from pathlib import Path

import click

from notesync.client.cli.config import open_engine
from notesync.client.status import StatusSnapshot, format_status_line
from notesync.client.sync.types import (
    FailureRecord,
    SyncError,
    UploadOutcome,
    UploadResult,
)
from notesync.client.vault import Vault


def resolve_note_path(vault: Vault, note: str) -> str:
    """Turn a NOTE argument into a vault-relative path.

    Existing filesystem paths (absolute, or relative to the working
    directory) are mapped into the vault; anything else is taken as
    already vault-relative.
    """
    candidate = Path(note).expanduser()
    if candidate.is_absolute() or candidate.exists():
        rel_path = vault.relative_path(candidate)
        if rel_path:
            return rel_path
    return note.replace("\\", "/").strip("/")


def report_result(result: UploadResult) -> None:
    """Print the outcome of a single upload."""
    if result.outcome == UploadOutcome.SUCCEEDED:
        click.echo(f"  ↑ {result.path}")
    elif result.outcome == UploadOutcome.SKIPPED:
        click.echo(f"  = {result.path} (unchanged)")
    elif result.outcome == UploadOutcome.CANCELLED:
        click.echo(f"  - {result.path} (cancelled)")
    else:
        click.echo(click.style(f"  ✗ {result.path}: {result.error}", fg="red"))


def display_failures(failures: list[FailureRecord]) -> None:
    click.echo(click.style("\nFailed uploads:", fg="red"))
    for failure in failures:
        click.echo(f"  ✗ {failure.path}: {failure.error_message}")


@click.command()
@click.argument("note")
def upload(note: str) -> None:
    """Upload a single NOTE from the selected folder.

    NOTE is a path relative to the vault, or a filesystem path inside it.
    Unchanged notes are skipped.
    """
    with open_engine() as engine:
        path = resolve_note_path(engine.vault, note)
        try:
            result = engine.upload_current_note(path)
        except SyncError as e:
            click.echo(f"Error: {e}", err=True)
            sys.exit(1)

    if result.outcome == UploadOutcome.SUCCEEDED:
        click.echo("Note uploaded successfully")
    elif result.outcome == UploadOutcome.SKIPPED:
        click.echo("Note unchanged since last upload")
    else:
        click.echo(f"Error: Upload failed: {result.error}", err=True)
        sys.exit(1)


@click.command("upload-folder")
@click.option(
    "--retry/--no-retry",
    default=None,
    help="Retry failed uploads without asking.",
)
@click.option("--no-progress", is_flag=True, help="Disable batch progress output.")
def upload_folder(retry: bool | None, no_progress: bool) -> None:
    """Upload all notes in the selected folder.

    Notes are uploaded in small concurrent batches. Unchanged notes are
    skipped and count as succeeded.
    """
    progress_lock = threading.Lock()
    last_progress: str | None = None

    def on_status(snapshot: StatusSnapshot) -> None:
        nonlocal last_progress
        if no_progress or not snapshot.progress:
            return
        with progress_lock:
            if snapshot.progress != last_progress:
                last_progress = snapshot.progress
                click.echo(format_status_line(snapshot))

    with open_engine(status_callback=on_status) as engine:
        try:
            result = engine.upload_selected_folder()
        except SyncError as e:
            click.echo(f"Error: {e}", err=True)
            sys.exit(1)

        if result.total == 0:
            click.echo(f"No markdown files found in {engine.scope.describe()}")
            return

        click.echo(f"Upload complete: {result.succeeded} succeeded, {result.failed} failed")
        if not result.failed:
            return

        display_failures(result.failures)
        if retry is None:
            retry = click.confirm("\nRetry failed uploads?", default=False)
        if retry:
            retried = engine.retry_failed()
            succeeded = sum(1 for r in retried if r.ok)
            click.echo(f"Retry complete: {succeeded} succeeded, {len(retried) - succeeded} failed")

        if engine.failures:
            sys.exit(1)


@click.command()
def harvest() -> None:
    """Upload notes in the selected folder that were never uploaded.

    Notes with an upload record are not checked for changes; use
    upload-folder for that.
    """
    with open_engine() as engine:
        try:
            engine.check_required_settings()
        except SyncError as e:
            click.echo(f"Error: {e}", err=True)
            sys.exit(1)

        if engine.get_folder_from_settings() is None:
            click.echo(f"Error: Cannot find folder: {engine.settings.selected_folder}", err=True)
            sys.exit(1)

        queued = engine.initial_harvest()
        if queued:
            click.echo(f"Initial sync: uploaded {queued} new note(s)")
        else:
            click.echo("No new notes to upload.")

        if engine.failures:
            display_failures(engine.failures)
            sys.exit(1)


@click.command()
@click.option("--verbose", "-v", is_flag=True, help="List pending notes.")
def status(verbose: bool) -> None:
    """Show notes waiting to be uploaded."""
    with open_engine() as engine:
        scope = engine.scope
        click.echo(f"Vault:    {engine.vault.root_path}")
        if not scope.is_selected:
            click.echo("Folder:   (not set)")
            return
        click.echo(f"Folder:   {scope.describe()}")
        click.echo(f"Uploaded: {len(engine.records)} note(s)")

        pending = engine.pending_notes()
        if not pending:
            click.echo(format_status_line(StatusSnapshot()))
            return

        click.echo(f"⟳ {len(pending)} note(s) new or changed")
        if verbose:
            for file in pending:
                marker = "~" if file.path in engine.records else "+"
                click.echo(f"  {marker} {file.path}")
