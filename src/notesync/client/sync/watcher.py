"""Vault change feed built on watchdog.

This module provides:
- VaultEventHandler: Collects created/moved file events with debouncing
- VaultWatcher: Watches a vault and puts VaultEvents on a queue

Only file creations and moves are reported; the engine re-hashes notes on
upload, so content edits need no event of their own.
"""

from __future__ import annotations

import logging
import queue
import threading
from pathlib import Path
from typing import TYPE_CHECKING

from watchdog.events import (
    FileCreatedEvent,
    FileMovedEvent,
    FileSystemEvent,
    FileSystemEventHandler,
)
from watchdog.observers import Observer

from notesync.client.sync.types import VaultEvent, VaultEventKind

if TYPE_CHECKING:
    from watchdog.observers.api import BaseObserver

    from notesync.client.vault import Vault

logger = logging.getLogger(__name__)

DEFAULT_SYNC_DELAY = 1.0  # seconds after the last event before flushing


def _event_path(raw: str | bytes) -> Path:
    if isinstance(raw, bytes):
        raw = raw.decode("utf-8", errors="replace")
    return Path(raw)


class VaultEventHandler(FileSystemEventHandler):
    """Turns watchdog events into pending VaultEvents, flushed after a delay."""

    def __init__(
        self,
        vault: Vault,
        event_queue: queue.Queue[VaultEvent],
        sync_delay_s: float = DEFAULT_SYNC_DELAY,
    ) -> None:
        """Initialize the handler.

        Args:
            vault: Vault being watched.
            event_queue: Queue receiving flushed events.
            sync_delay_s: Quiet period before pending events are flushed.
        """
        super().__init__()
        self._vault = vault
        self._event_queue = event_queue
        self._sync_delay_s = sync_delay_s

        # Pending events keyed by vault-relative path
        self._pending: dict[str, VaultEvent] = {}
        self._lock = threading.Lock()
        self._timer: threading.Timer | None = None

    def _to_vault_path(self, path: Path) -> str | None:
        """Vault-relative path, or None when outside the vault or ignored."""
        rel_path = self._vault.relative_path(path)
        if not rel_path or self._vault.is_ignored(rel_path):
            return None
        return rel_path

    def _schedule_flush(self) -> None:
        """Restart the flush timer. Caller holds the lock."""
        if self._timer:
            self._timer.cancel()

        self._timer = threading.Timer(self._sync_delay_s, self.flush)
        self._timer.daemon = True
        self._timer.start()

    def flush(self) -> None:
        """Move pending events to the queue."""
        with self._lock:
            events = list(self._pending.values())
            self._pending.clear()
            self._timer = None

        if events:
            self._vault.invalidate()
        for event in events:
            self._event_queue.put(event)
            logger.debug(f"Watcher queued event: {event}")

    def on_created(self, event: FileSystemEvent) -> None:
        """Handle created event."""
        if not isinstance(event, FileCreatedEvent):
            return
        path = self._to_vault_path(_event_path(event.src_path))
        if path is None:
            return

        with self._lock:
            self._pending[path] = VaultEvent(kind=VaultEventKind.CREATED, path=path)
            self._schedule_flush()

    def on_moved(self, event: FileSystemEvent) -> None:
        """Handle moved event.

        A move of a file created within the same window is reported as a
        creation at the destination. A move from an ignored location (an
        editor's temp file) is a creation as well.
        """
        if not isinstance(event, FileMovedEvent):
            return
        dest = self._to_vault_path(_event_path(event.dest_path))
        if dest is None:
            return
        src = self._to_vault_path(_event_path(event.src_path))

        with self._lock:
            previous = self._pending.pop(src, None) if src else None
            if src is None or (previous and previous.kind == VaultEventKind.CREATED):
                new_event = VaultEvent(kind=VaultEventKind.CREATED, path=dest)
            else:
                # Chained renames keep the first known path
                old_path = previous.old_path if previous and previous.old_path else src
                new_event = VaultEvent(kind=VaultEventKind.RENAMED, path=dest, old_path=old_path)
            self._pending[dest] = new_event
            self._schedule_flush()

    def stop(self) -> None:
        """Stop any pending timer."""
        with self._lock:
            if self._timer:
                self._timer.cancel()
                self._timer = None


class VaultWatcher:
    """Watches a vault for created and renamed notes.

    Events are put on ``event_queue`` after ``sync_delay_s`` of quiet.
    """

    def __init__(
        self,
        vault: Vault,
        event_queue: queue.Queue[VaultEvent] | None = None,
        sync_delay_s: float = DEFAULT_SYNC_DELAY,
    ) -> None:
        self._vault = vault
        self._event_queue: queue.Queue[VaultEvent] = (
            event_queue if event_queue is not None else queue.Queue()
        )
        self._handler = VaultEventHandler(vault, self._event_queue, sync_delay_s)
        self._observer: BaseObserver = Observer()
        self._running = False

    @property
    def event_queue(self) -> queue.Queue[VaultEvent]:
        """Get the event queue."""
        return self._event_queue

    @property
    def handler(self) -> VaultEventHandler:
        return self._handler

    @property
    def is_running(self) -> bool:
        """Check if the watcher is running."""
        return self._running

    def start(self) -> None:
        """Start watching for changes."""
        if self._running:
            return

        self._observer.schedule(self._handler, str(self._vault.root_path), recursive=True)
        self._observer.start()
        self._running = True
        logger.info(f"Watching {self._vault.root_path}")

    def stop(self) -> None:
        """Stop watching and drop pending events."""
        if not self._running:
            return

        self._handler.stop()
        self._observer.stop()
        self._observer.join(timeout=5.0)
        self._running = False

    def get_event(self, timeout: float | None = None) -> VaultEvent | None:
        """Wait for the next event.

        Returns:
            The event, or None on timeout.
        """
        try:
            return self._event_queue.get(timeout=timeout)
        except queue.Empty:
            return None

    def __enter__(self) -> VaultWatcher:
        """Context manager entry."""
        self.start()
        return self

    def __exit__(self, *args: object) -> None:
        """Context manager exit."""
        self.stop()

