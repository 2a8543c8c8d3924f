"""Tests for the vault change feed."""

import logging
import queue
from collections.abc import Callable
from pathlib import Path

import pytest
from watchdog.events import (
    DirCreatedEvent,
    FileCreatedEvent,
    FileModifiedEvent,
    FileMovedEvent,
)

from notesync.client.sync.types import VaultEvent, VaultEventKind
from notesync.client.sync.watcher import VaultEventHandler, VaultWatcher
from notesync.client.vault import Vault

VaultFactory = Callable[[dict[str, str | bytes]], Vault]


@pytest.fixture
def vault(make_vault: VaultFactory) -> Vault:
    return make_vault({"Notes/a.md": "A"})


@pytest.fixture
def events() -> queue.Queue[VaultEvent]:
    return queue.Queue()


@pytest.fixture
def handler(vault: Vault, events: queue.Queue[VaultEvent]):
    """Handler with a long delay; tests flush explicitly."""
    handler = VaultEventHandler(vault, events, sync_delay_s=60.0)
    yield handler
    handler.stop()


def drain(events: queue.Queue[VaultEvent]) -> list[tuple[VaultEventKind, str, str | None]]:
    items = []
    while not events.empty():
        event = events.get_nowait()
        items.append((event.kind, event.path, event.old_path))
    return items


def abs_path(vault: Vault, rel_path: str) -> str:
    return str(vault.root_path / rel_path)


class TestVaultEventHandler:
    """Tests for event conversion and debouncing."""

    def test_created_file(self, vault: Vault, handler: VaultEventHandler, events) -> None:
        """A created file should become a CREATED event."""
        handler.on_created(FileCreatedEvent(abs_path(vault, "Notes/b.md")))
        handler.flush()

        assert drain(events) == [(VaultEventKind.CREATED, "Notes/b.md", None)]

    def test_moved_file(self, vault: Vault, handler: VaultEventHandler, events) -> None:
        """A move should become a RENAMED event with the old path."""
        handler.on_moved(
            FileMovedEvent(abs_path(vault, "Notes/a.md"), abs_path(vault, "Notes/z.md"))
        )
        handler.flush()

        assert drain(events) == [(VaultEventKind.RENAMED, "Notes/z.md", "Notes/a.md")]

    def test_nothing_before_flush(self, vault: Vault, handler: VaultEventHandler, events) -> None:
        """Events should wait for the quiet period."""
        handler.on_created(FileCreatedEvent(abs_path(vault, "Notes/b.md")))

        assert events.empty()

    def test_create_then_move_is_create(
        self, vault: Vault, handler: VaultEventHandler, events
    ) -> None:
        """A file created and renamed within the window is a single creation."""
        handler.on_created(FileCreatedEvent(abs_path(vault, "Notes/Untitled.md")))
        handler.on_moved(
            FileMovedEvent(abs_path(vault, "Notes/Untitled.md"), abs_path(vault, "Notes/Idea.md"))
        )
        handler.flush()

        assert drain(events) == [(VaultEventKind.CREATED, "Notes/Idea.md", None)]

    def test_chained_moves_keep_first_path(
        self, vault: Vault, handler: VaultEventHandler, events
    ) -> None:
        """Two renames within the window should report the original path."""
        handler.on_moved(FileMovedEvent(abs_path(vault, "Notes/a.md"), abs_path(vault, "Notes/b.md")))
        handler.on_moved(FileMovedEvent(abs_path(vault, "Notes/b.md"), abs_path(vault, "Notes/c.md")))
        handler.flush()

        assert drain(events) == [(VaultEventKind.RENAMED, "Notes/c.md", "Notes/a.md")]

    def test_move_from_ignored_is_create(
        self, vault: Vault, handler: VaultEventHandler, events
    ) -> None:
        """An editor saving through a temp file should look like a creation."""
        handler.on_moved(
            FileMovedEvent(abs_path(vault, "Notes/a.md.tmp"), abs_path(vault, "Notes/a.md"))
        )
        handler.flush()

        assert drain(events) == [(VaultEventKind.CREATED, "Notes/a.md", None)]

    def test_ignored_paths(self, vault: Vault, handler: VaultEventHandler, events) -> None:
        """Vault internals and paths outside the vault should be dropped."""
        handler.on_created(FileCreatedEvent(abs_path(vault, ".obsidian/workspace.json")))
        handler.on_created(FileCreatedEvent(str(vault.root_path.parent / "outside.md")))
        handler.on_moved(
            FileMovedEvent(abs_path(vault, "Notes/a.md"), abs_path(vault, ".trash/a.md"))
        )
        handler.flush()

        assert drain(events) == []

    def test_directories_and_modifications_ignored(
        self, vault: Vault, handler: VaultEventHandler, events
    ) -> None:
        """Only file creations and moves should be reported."""
        handler.on_created(DirCreatedEvent(abs_path(vault, "Notes/Sub")))
        handler.on_modified(FileModifiedEvent(abs_path(vault, "Notes/a.md")))
        handler.flush()

        assert drain(events) == []

    def test_flush_logs_queued_events(
        self, vault: Vault, handler: VaultEventHandler, caplog: pytest.LogCaptureFixture
    ) -> None:
        """Every queued event should be logged at debug level."""
        caplog.set_level(logging.DEBUG, logger="notesync.client.sync.watcher")

        handler.on_created(FileCreatedEvent(abs_path(vault, "Notes/b.md")))
        handler.flush()

        assert "Watcher queued event:" in caplog.text
        assert "Notes/b.md" in caplog.text

    def test_flush_invalidates_vault_index(
        self, vault: Vault, handler: VaultEventHandler, events
    ) -> None:
        """New files should be resolvable after a flush."""
        assert vault.resolve_link("new.png") is None
        (vault.root_path / "Notes" / "new.png").write_bytes(b"png")

        handler.on_created(FileCreatedEvent(abs_path(vault, "Notes/new.png")))
        handler.flush()

        assert vault.resolve_link("new.png") is not None


class TestVaultWatcher:
    """Tests for the watchdog-backed watcher."""

    def test_start_stop(self, vault: Vault) -> None:
        """Should start and stop cleanly."""
        watcher = VaultWatcher(vault)

        watcher.start()
        assert watcher.is_running is True
        watcher.stop()
        assert watcher.is_running is False

    def test_context_manager(self, vault: Vault) -> None:
        """Should stop when leaving the context."""
        with VaultWatcher(vault) as watcher:
            assert watcher.is_running is True
        assert watcher.is_running is False

    def test_get_event_timeout(self, vault: Vault) -> None:
        """Should return None when nothing happened."""
        watcher = VaultWatcher(vault)
        assert watcher.get_event(timeout=0.01) is None

    def test_detects_new_note(self, vault: Vault) -> None:
        """Creating a note on disk should produce a CREATED event."""
        with VaultWatcher(vault, sync_delay_s=0.1) as watcher:
            note = vault.root_path / "Notes" / "fresh.md"
            note.write_text("# Fresh\n")

            event = watcher.get_event(timeout=5.0)

        assert event is not None
        assert event.kind == VaultEventKind.CREATED
        assert event.path == "Notes/fresh.md"

    def test_detects_rename(self, vault: Vault) -> None:
        """Renaming a note on disk should produce a RENAMED event."""
        with VaultWatcher(vault, sync_delay_s=0.1) as watcher:
            Path(vault.root_path / "Notes" / "a.md").rename(vault.root_path / "Notes" / "b.md")

            event = watcher.get_event(timeout=5.0)

        assert event is not None
        assert event.kind == VaultEventKind.RENAMED
        assert event.path == "Notes/b.md"
        assert event.old_path == "Notes/a.md"
