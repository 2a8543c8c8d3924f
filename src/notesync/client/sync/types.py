"""Shared types and dataclasses for sync operations.

This module provides:
- SyncError and subclasses: Exception classes raised by the engine
- UploadOutcome, UploadResult: Result of a single note upload
- FailureRecord: A note whose most recent upload failed
- BatchResult: Aggregate result of a folder upload
- VaultEventKind, VaultEvent: Change-feed events consumed by the engine
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class SyncError(Exception):
    """Base exception for sync errors."""


class ConfigurationError(SyncError):
    """Required settings are missing; raised before any I/O."""


class ScopeViolationError(SyncError):
    """A note outside the selected folder was submitted for upload."""


class UploadError(SyncError):
    """Failed to build or send an upload."""


class UploadCancelledError(UploadError):
    """Upload was cancelled before the request was sent."""


class UploadOutcome(Enum):
    """Terminal state of a single note upload."""

    SKIPPED = "skipped"  # Content hash matches the upload record
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    CANCELLED = "cancelled"


@dataclass
class UploadResult:
    """Result of a note upload.

    Attributes:
        path: Vault-relative path of the note.
        outcome: How the upload ended.
        error: Error message when the upload failed.
        response: Decoded JSON body returned by the endpoint on success.
    """

    path: str
    outcome: UploadOutcome
    error: str | None = None
    response: Any = None

    @property
    def ok(self) -> bool:
        """Check if the note is now in sync (uploaded or unchanged)."""
        return self.outcome in (UploadOutcome.SUCCEEDED, UploadOutcome.SKIPPED)


@dataclass(frozen=True)
class FailureRecord:
    """A note whose most recent upload attempt failed."""

    path: str
    error_message: str


@dataclass
class BatchResult:
    """Result of a folder upload run."""

    results: list[UploadResult] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.results)

    @property
    def succeeded(self) -> int:
        """Number of notes uploaded or skipped as unchanged."""
        return sum(1 for r in self.results if r.ok)

    @property
    def skipped(self) -> int:
        return sum(1 for r in self.results if r.outcome == UploadOutcome.SKIPPED)

    @property
    def failed(self) -> int:
        return sum(1 for r in self.results if r.outcome == UploadOutcome.FAILED)

    @property
    def cancelled(self) -> int:
        return sum(1 for r in self.results if r.outcome == UploadOutcome.CANCELLED)

    @property
    def failures(self) -> list[FailureRecord]:
        """Failure records for this run, in upload order."""
        return [
            FailureRecord(path=r.path, error_message=r.error or "Unknown error")
            for r in self.results
            if r.outcome == UploadOutcome.FAILED
        ]


class VaultEventKind(Enum):
    """Type of change reported by the vault change feed."""

    CREATED = "created"
    RENAMED = "renamed"


@dataclass
class VaultEvent:
    """A change to a note in the vault.

    Attributes:
        kind: What happened.
        path: Current vault-relative path.
        old_path: Previous path, for RENAMED events.
        timestamp: Unix timestamp when the change was observed.
    """

    kind: VaultEventKind
    path: str
    old_path: str | None = None
    timestamp: float = field(default_factory=time.time)
