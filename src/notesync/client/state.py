"""Upload records for change detection.

This module provides:
- UploadRecord: Proof that a given content hash was uploaded for a path
- UploadRecordStore: Thread-safe map from note path to its last upload

Architecture:
    The store lives in memory and is owned by the SyncEngine. It is
    persisted as part of the settings data file (see settings.py) under
    the ``uploaded`` key, in the shape ``{path: {"ts": ..., "sha": ...}}``.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

logger = logging.getLogger(__name__)


def utc_timestamp() -> str:
    """Current time as an ISO 8601 UTC string with millisecond precision."""
    return datetime.now(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


@dataclass(frozen=True)
class UploadRecord:
    """Represents the last successful upload of a note.

    Attributes:
        path: Vault-relative path of the note.
        timestamp: ISO 8601 time of the upload.
        content_hash: SHA-256 of the content that was uploaded.
    """

    path: str
    timestamp: str
    content_hash: str

    @classmethod
    def from_dict(cls, path: str, data: dict[str, Any]) -> UploadRecord:
        """Create from a persisted ``{"ts", "sha"}`` entry."""
        return cls(path=path, timestamp=data["ts"], content_hash=data["sha"])

    def to_dict(self) -> dict[str, str]:
        """Convert to the persisted entry shape."""
        return {"ts": self.timestamp, "sha": self.content_hash}


class UploadRecordStore:
    """In-memory upload records keyed by current note path."""

    def __init__(self, records: dict[str, UploadRecord] | None = None) -> None:
        """Initialize the store.

        Args:
            records: Existing records keyed by path.
        """
        self._lock = threading.RLock()
        self._records: dict[str, UploadRecord] = dict(records or {})

    @classmethod
    def from_dict(cls, data: dict[str, dict[str, Any]] | None) -> UploadRecordStore:
        """Load from the persisted ``uploaded`` mapping.

        Malformed entries are dropped with a warning.
        """
        records: dict[str, UploadRecord] = {}
        for path, entry in (data or {}).items():
            try:
                records[path] = UploadRecord.from_dict(path, entry)
            except (KeyError, TypeError):
                logger.warning(f"Ignoring malformed upload record for {path}")
        return cls(records)

    def to_dict(self) -> dict[str, dict[str, str]]:
        """Convert to the persisted ``uploaded`` mapping."""
        with self._lock:
            return {path: record.to_dict() for path, record in self._records.items()}

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

    def __contains__(self, path: object) -> bool:
        with self._lock:
            return path in self._records

    # === Record operations ===

    def get(self, path: str) -> UploadRecord | None:
        """Get the upload record for a path.

        Args:
            path: Vault-relative path of the note.

        Returns:
            UploadRecord if found, None otherwise.
        """
        with self._lock:
            return self._records.get(path)

    def is_unchanged(self, path: str, content_hash: str) -> bool:
        """Check if content with this hash was already uploaded for path."""
        record = self.get(path)
        return record is not None and record.content_hash == content_hash

    def mark_uploaded(
        self,
        path: str,
        content_hash: str,
        timestamp: str | None = None,
    ) -> UploadRecord:
        """Create or overwrite the record for a path (upsert).

        Args:
            path: Vault-relative path.
            content_hash: Hash of the uploaded content.
            timestamp: Upload time, defaults to now.

        Returns:
            The stored record.
        """
        record = UploadRecord(
            path=path,
            timestamp=timestamp or utc_timestamp(),
            content_hash=content_hash,
        )
        with self._lock:
            self._records[path] = record
        return record

    def rename(self, old_path: str, new_path: str) -> bool:
        """Move a record to a new path, keeping its hash and timestamp.

        Args:
            old_path: Previous path of the note.
            new_path: Current path of the note.

        Returns:
            True if a record existed under old_path and was moved.
        """
        with self._lock:
            record = self._records.pop(old_path, None)
            if record is None:
                return False
            self._records[new_path] = UploadRecord(
                path=new_path,
                timestamp=record.timestamp,
                content_hash=record.content_hash,
            )
        logger.debug(f"Path changed, migrated record: {old_path} -> {new_path}")
        return True
