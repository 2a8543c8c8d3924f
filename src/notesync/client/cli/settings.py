"""Settings commands for the notesync CLI.

Commands:
- config show: Display the stored settings
- config set: Change a setting
- config unset: Reset a setting to its default
- config verify: Check the selected folder
"""

from __future__ import annotations

import sys
from pathlib import Path

import click

from notesync.client.cli.config import get_settings_store, load_settings
from notesync.client.settings import Settings
from notesync.core.config import DEFAULT_ENDPOINT

SETTING_KEYS = (
    "api-token",
    "vault",
    "folder",
    "endpoint",
    "auto-upload",
    "upload-images",
    "debug",
)
BOOLEAN_KEYS = {
    "auto-upload": "auto_upload",
    "upload-images": "upload_images",
    "debug": "debug_mode",
}


def mask_token(token: str) -> str:
    """Hide all but the last four characters of a token."""
    if not token:
        return "(not set)"
    if len(token) <= 4:
        return "****"
    return "****" + token[-4:]


def describe_folder(folder: str | None) -> str:
    if folder is None:
        return "(not set)"
    return folder or "/ (vault root)"


def on_off(value: bool) -> str:
    return "on" if value else "off"


@click.group()
def config() -> None:
    """View and change notesync settings."""


@config.command()
def show() -> None:
    """Show the current settings."""
    store = get_settings_store()
    settings, records = load_settings(store)

    click.echo(f"Data file:      {store.path}")
    click.echo(f"Vault:          {settings.vault_path or '(not set)'}")
    click.echo(f"Folder:         {describe_folder(settings.selected_folder)}")
    click.echo(f"API token:      {mask_token(settings.api_token)}")
    click.echo(f"Endpoint:       {settings.endpoint_url}")
    click.echo(f"Auto upload:    {on_off(settings.auto_upload)}")
    click.echo(f"Upload images:  {on_off(settings.upload_images)}")
    click.echo(f"Debug mode:     {on_off(settings.debug_mode)}")
    click.echo(f"Uploaded notes: {len(records)}")


@config.command("set")
@click.argument("key", type=click.Choice(SETTING_KEYS))
@click.argument("value")
def set_(key: str, value: str) -> None:
    """Set KEY to VALUE.

    Booleans (auto-upload, upload-images, debug) accept on/off, true/false,
    yes/no or 1/0. Use "/" as the folder to sync the whole vault.
    """
    store = get_settings_store()
    settings, records = load_settings(store)

    if key in BOOLEAN_KEYS:
        try:
            flag = click.BOOL.convert(value, None, None)
        except click.BadParameter as e:
            click.echo(f"Error: {e.format_message()}", err=True)
            sys.exit(1)
        setattr(settings, BOOLEAN_KEYS[key], flag)
    elif key == "api-token":
        settings.api_token = value.strip()
    elif key == "vault":
        vault_path = Path(value).expanduser().resolve()
        if not vault_path.is_dir():
            click.echo(f"Error: Vault path must be a directory: {value}", err=True)
            sys.exit(1)
        settings.vault_path = str(vault_path)
    elif key == "folder":
        settings.selected_folder = "" if value in ("", "/") else value
        _warn_missing_folder(settings)
    elif key == "endpoint":
        settings.endpoint_url = value.rstrip("/")

    store.save(settings, records)
    click.echo(f"Set {key}.")


@config.command()
@click.argument("key", type=click.Choice(("api-token", "vault", "folder", "endpoint")))
def unset(key: str) -> None:
    """Reset KEY to its default (unset)."""
    store = get_settings_store()
    settings, records = load_settings(store)

    if key == "api-token":
        settings.api_token = ""
    elif key == "vault":
        settings.vault_path = None
    elif key == "folder":
        settings.selected_folder = None
    elif key == "endpoint":
        settings.endpoint_url = DEFAULT_ENDPOINT

    store.save(settings, records)
    click.echo(f"Unset {key}.")


def _warn_missing_folder(settings: Settings) -> None:
    """Warn when the selected folder does not exist in the vault."""
    if not settings.vault_path or not settings.selected_folder:
        return
    folder_path = Path(settings.vault_path) / settings.selected_folder
    if not folder_path.is_dir():
        click.echo(f"Warning: Folder not found in vault: {settings.selected_folder}", err=True)


@config.command()
def verify() -> None:
    """Check that the selected folder exists and list its notes."""
    from notesync.client.cli.config import open_vault
    from notesync.client.sync.scope import FolderScope

    store = get_settings_store()
    settings, _ = load_settings(store)

    if settings.selected_folder is None:
        click.echo("No folder selected. Run 'notesync config set folder PATH' first.", err=True)
        sys.exit(1)

    vault = open_vault(settings)
    scope = FolderScope(settings.selected_folder)
    folder = scope.get_folder(vault)
    if folder is None:
        click.echo(
            f'Error: Folder "{settings.selected_folder}" not found. Please check the path.',
            err=True,
        )
        sys.exit(1)

    files = FolderScope.enumerate(folder)
    if folder.is_root:
        click.echo(f"Root folder selected. Found {len(files)} markdown files in your vault.")
        return

    names = ", ".join(f.name for f in files[:3])
    more = "..." if len(files) > 3 else ""
    click.echo("Folder verification:")
    click.echo(f"- Folder: {settings.selected_folder}")
    click.echo(f"- Markdown files: {len(files)}")
    click.echo(f"- First few files: {names}{more}")
