"""Persisted settings for the sync client.

This module provides:
- Settings: User settings (token, selected folder, upload options)
- SettingsStore: JSON data file holding settings and upload records

The data file keeps the camelCase layout
``{apiToken, autoUpload, uploadImages, selectedFolder, debugMode,
vaultPath, endpointUrl, uploaded}``. A missing or null ``selectedFolder``
means no folder is selected; an empty string means the vault root.
"""

from __future__ import annotations

import json
import logging
import os
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from notesync.client.state import UploadRecordStore
from notesync.core.config import DEFAULT_ENDPOINT, ServerConfig

logger = logging.getLogger(__name__)


@dataclass
class Settings:
    """User settings.

    Attributes:
        api_token: Bearer token for the endpoint.
        auto_upload: Upload notes created or renamed inside the folder.
        upload_images: Send embedded images along with notes.
        selected_folder: Folder to sync. None = unset, "" = vault root.
        debug_mode: Enable debug logging.
        vault_path: Local directory holding the notes.
        endpoint_url: Ingestion endpoint URL.
    """

    api_token: str = ""
    auto_upload: bool = False
    upload_images: bool = True
    selected_folder: str | None = None
    debug_mode: bool = False
    vault_path: str | None = None
    endpoint_url: str = DEFAULT_ENDPOINT

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Settings:
        """Create from the persisted data file, applying defaults."""
        defaults = cls()
        return cls(
            api_token=data.get("apiToken", defaults.api_token) or "",
            auto_upload=bool(data.get("autoUpload", defaults.auto_upload)),
            upload_images=bool(data.get("uploadImages", defaults.upload_images)),
            selected_folder=data.get("selectedFolder", defaults.selected_folder),
            debug_mode=bool(data.get("debugMode", defaults.debug_mode)),
            vault_path=data.get("vaultPath", defaults.vault_path),
            endpoint_url=data.get("endpointUrl") or defaults.endpoint_url,
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to the persisted data file layout (without records)."""
        return {
            "apiToken": self.api_token,
            "autoUpload": self.auto_upload,
            "uploadImages": self.upload_images,
            "selectedFolder": self.selected_folder,
            "debugMode": self.debug_mode,
            "vaultPath": self.vault_path,
            "endpointUrl": self.endpoint_url,
        }

    @property
    def is_folder_selected(self) -> bool:
        """Check if a folder (possibly the root) is selected."""
        return self.selected_folder is not None

    def server_config(self, timeout: float = 30.0) -> ServerConfig:
        """Build the endpoint configuration from these settings."""
        return ServerConfig(
            endpoint_url=self.endpoint_url,
            token=self.api_token,
            timeout=timeout,
        )


class SettingsStore:
    """Loads and saves settings plus upload records as one JSON file."""

    def __init__(self, path: Path) -> None:
        """Initialize the store.

        Args:
            path: Path to the JSON data file.
        """
        self._path = Path(path)
        self._lock = threading.Lock()

    @property
    def path(self) -> Path:
        """Get the data file path."""
        return self._path

    def load_data(self) -> dict[str, Any] | None:
        """Load the raw data file.

        Returns:
            Parsed JSON object, or None on first run.
        """
        if not self._path.exists():
            return None
        data = json.loads(self._path.read_text(encoding="utf-8"))
        if not isinstance(data, dict):
            raise ValueError(f"Invalid data file: {self._path}")
        return data

    def load(self) -> tuple[Settings, UploadRecordStore]:
        """Load settings and upload records, using defaults on first run."""
        data = self.load_data()
        if data is None:
            logger.debug(f"No data file at {self._path}, using defaults")
            return Settings(), UploadRecordStore()
        return Settings.from_dict(data), UploadRecordStore.from_dict(data.get("uploaded"))

    def save(self, settings: Settings, records: UploadRecordStore) -> None:
        """Persist settings and records atomically.

        Writes to a temporary file next to the data file, then replaces it.
        """
        data = settings.to_dict()
        data["uploaded"] = records.to_dict()

        with self._lock:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path = self._path.with_name(self._path.name + ".tmp")
            tmp_path.write_text(json.dumps(data, indent=2), encoding="utf-8")
            os.replace(tmp_path, self._path)
