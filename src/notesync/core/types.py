"""Shared types for notesync."""

from __future__ import annotations

from enum import Enum


class SyncState(str, Enum):
    """Overall sync state shown to the user.

    Derived from the engine's in-flight counter and failure set.
    """

    IDLE = "idle"
    SYNCING = "syncing"
    ERROR = "error"
