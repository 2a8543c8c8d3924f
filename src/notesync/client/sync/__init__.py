"""Note synchronization.

Architecture:
    VaultWatcher → queue → SyncEngine → IngestClient

Components:
- **SyncEngine**: Hash-based change detection, batched folder uploads,
  failure tracking and retry
- **FolderScope**: Which notes the selected folder covers
- **extract_front_matter**: Flat YAML-like metadata with book entries
- **collect_images**: Images embedded in a note, resolved in the vault
- **VaultWatcher**: watchdog-based feed of created and renamed notes
"""

from notesync.client.sync.assets import (
    ImageResolution,
    collect_images,
    extract_image_links,
    resolve_images,
)
from notesync.client.sync.engine import BATCH_DELAY, BATCH_SIZE, SyncEngine
from notesync.client.sync.frontmatter import extract_front_matter, parse_book_entry
from notesync.client.sync.scope import FolderScope
from notesync.client.sync.types import (
    BatchResult,
    ConfigurationError,
    FailureRecord,
    ScopeViolationError,
    SyncError,
    UploadCancelledError,
    UploadError,
    UploadOutcome,
    UploadResult,
    VaultEvent,
    VaultEventKind,
)
from notesync.client.sync.watcher import VaultEventHandler, VaultWatcher

__all__ = [
    # Engine
    "BATCH_DELAY",
    "BATCH_SIZE",
    "SyncEngine",
    "FolderScope",
    # Parsing
    "extract_front_matter",
    "parse_book_entry",
    "ImageResolution",
    "collect_images",
    "extract_image_links",
    "resolve_images",
    # Types and exceptions
    "BatchResult",
    "ConfigurationError",
    "FailureRecord",
    "ScopeViolationError",
    "SyncError",
    "UploadCancelledError",
    "UploadError",
    "UploadOutcome",
    "UploadResult",
    "VaultEvent",
    "VaultEventKind",
    # Watcher
    "VaultEventHandler",
    "VaultWatcher",
]
