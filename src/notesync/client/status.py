"""Sync status reporting.

This module provides:
- StatusSnapshot: In-flight/failure counts handed to the status callback
- format_status_line: One-line text for terminals and status bars
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

from notesync.core.types import SyncState


@dataclass(frozen=True)
class StatusSnapshot:
    """Engine status at a point in time.

    Attributes:
        in_flight: Number of uploads currently running.
        failed: Number of notes whose last upload failed.
        progress: Batch progress text during a folder upload.
    """

    in_flight: int = 0
    failed: int = 0
    progress: str | None = None

    @property
    def state(self) -> SyncState:
        """Overall state; running uploads take precedence over failures."""
        if self.in_flight:
            return SyncState.SYNCING
        if self.failed:
            return SyncState.ERROR
        return SyncState.IDLE


# Type alias for status callback
StatusCallback = Callable[[StatusSnapshot], None]


def format_status_line(snapshot: StatusSnapshot) -> str:
    """Render a snapshot as a short status line."""
    if snapshot.progress:
        return f"⟳ {snapshot.progress}"
    if snapshot.in_flight:
        return f"⟳ {snapshot.in_flight} uploading…"
    if snapshot.failed:
        return f"⚠ {snapshot.failed} failed"
    return "✓ Synced"
