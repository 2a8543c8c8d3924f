"""Core module - Shared hashing, configuration and types."""

from notesync.core.config import DEFAULT_ENDPOINT, ServerConfig
from notesync.core.hashing import compute_content_hash
from notesync.core.types import SyncState

__all__ = [
    # Config
    "DEFAULT_ENDPOINT",
    "ServerConfig",
    # Hashing
    "compute_content_hash",
    # Types
    "SyncState",
]
