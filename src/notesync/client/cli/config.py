"""Configuration utilities for the notesync CLI.

This module provides shared configuration functions used across CLI commands.
"""

from __future__ import annotations

import logging
import os
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

import click

from notesync.client.api import IngestClient
from notesync.client.settings import Settings, SettingsStore
from notesync.client.state import UploadRecordStore
from notesync.client.status import StatusCallback
from notesync.client.sync.engine import SyncEngine
from notesync.client.vault import Vault

CONFIG_DIR_ENV = "NOTESYNC_CONFIG_DIR"
DATA_FILE_NAME = "data.json"
LOG_FORMAT = "[notesync] %(message)s"


class ClickEchoHandler(logging.Handler):
    """Logging handler writing through click.echo to stderr."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            click.echo(self.format(record), err=True)
        except Exception:
            self.handleError(record)


def get_config_dir() -> Path:
    """Get the configuration directory for notesync.

    The global ``--config-dir`` option wins over the environment variable.

    Returns:
        Path to ~/.notesync or the configured directory.
    """
    ctx = click.get_current_context(silent=True)
    if ctx is not None:
        obj = ctx.find_root().obj
        if isinstance(obj, dict) and obj.get("config_dir"):
            return Path(obj["config_dir"]).expanduser()

    env_dir = os.environ.get(CONFIG_DIR_ENV)
    if env_dir:
        return Path(env_dir).expanduser()
    return Path.home() / ".notesync"


def get_data_file() -> Path:
    """Get the path to the data file."""
    return get_config_dir() / DATA_FILE_NAME


def get_settings_store() -> SettingsStore:
    return SettingsStore(get_data_file())


def load_settings(store: SettingsStore) -> tuple[Settings, UploadRecordStore]:
    """Load settings, exiting with an error message if the file is corrupt."""
    try:
        return store.load()
    except (OSError, ValueError) as e:
        click.echo(f"Error: Cannot read {store.path}: {e}", err=True)
        sys.exit(1)


def configure_logging(debug: bool) -> None:
    """Route notesync logs to stderr; DEBUG in debug mode, else WARNING."""
    notesync_logger = logging.getLogger("notesync")
    for handler in notesync_logger.handlers[:]:
        notesync_logger.removeHandler(handler)

    handler = ClickEchoHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    notesync_logger.addHandler(handler)
    notesync_logger.setLevel(logging.DEBUG if debug else logging.WARNING)


def open_vault(settings: Settings) -> Vault:
    """Open the configured vault, exiting if it is missing."""
    if not settings.vault_path:
        click.echo("Error: No vault configured. Run 'notesync config set vault PATH' first.", err=True)
        sys.exit(1)

    try:
        return Vault(Path(settings.vault_path).expanduser())
    except ValueError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


@contextmanager
def open_engine(status_callback: StatusCallback | None = None) -> Iterator[SyncEngine]:
    """Build a SyncEngine from the stored settings.

    The HTTP client is closed when the block exits.
    """
    store = get_settings_store()
    settings, records = load_settings(store)
    configure_logging(settings.debug_mode)
    vault = open_vault(settings)

    with IngestClient(settings.server_config()) as client:
        yield SyncEngine(
            client,
            vault,
            settings,
            records,
            store=store,
            status_callback=status_callback,
        )
