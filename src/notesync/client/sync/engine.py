"""Sync engine uploading changed notes.

This module provides:
- SyncEngine: Decides which notes changed and uploads them

Per-note flow:
    read → hash → skip if the upload record has the same hash
    → front matter + images → POST → record + persist

Folder uploads run in batches: every note of a batch is uploaded
concurrently and the whole batch settles before the next one starts,
with a short pause between batches.
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor, wait
from typing import TYPE_CHECKING

import httpx

from notesync.client.api import APIError, NotePayload
from notesync.client.state import UploadRecordStore
from notesync.client.status import StatusCallback, StatusSnapshot
from notesync.client.sync.assets import collect_images
from notesync.client.sync.frontmatter import extract_front_matter
from notesync.client.sync.scope import FolderScope
from notesync.client.sync.types import (
    BatchResult,
    ConfigurationError,
    FailureRecord,
    ScopeViolationError,
    UploadCancelledError,
    UploadError,
    UploadOutcome,
    UploadResult,
    VaultEvent,
    VaultEventKind,
)
from notesync.core.hashing import compute_content_hash

if TYPE_CHECKING:
    from notesync.client.api import IngestClient
    from notesync.client.settings import Settings, SettingsStore
    from notesync.client.vault import Vault, VaultFile, VaultFolder

logger = logging.getLogger(__name__)

BATCH_SIZE = 5
BATCH_DELAY = 0.5  # seconds between batches

# Errors that fail a single note without affecting the others
UPLOAD_EXCEPTIONS: tuple[type[Exception], ...] = (
    APIError,
    UploadError,
    httpx.HTTPError,
    OSError,
    ValueError,
)


class SyncEngine:
    """Uploads new and changed notes to the ingestion endpoint."""

    def __init__(
        self,
        client: IngestClient,
        vault: Vault,
        settings: Settings,
        records: UploadRecordStore | None = None,
        store: SettingsStore | None = None,
        status_callback: StatusCallback | None = None,
        batch_size: int = BATCH_SIZE,
        batch_delay: float = BATCH_DELAY,
    ) -> None:
        """Initialize the sync engine.

        Args:
            client: HTTP client for the ingestion endpoint.
            vault: Vault holding the notes.
            settings: User settings (token, folder, upload options).
            records: Upload records loaded at startup.
            store: Where settings and records are persisted after changes.
            status_callback: Optional callback for status updates.
            batch_size: Concurrent uploads per batch in folder uploads.
            batch_delay: Pause between batches in seconds.
        """
        self._client = client
        self._vault = vault
        self._settings = settings
        self._records = records if records is not None else UploadRecordStore()
        self._store = store
        self._status_callback = status_callback
        self._batch_size = max(batch_size, 1)
        self._batch_delay = batch_delay

        self._lock = threading.Lock()
        self._in_flight = 0
        self._failures: dict[str, FailureRecord] = {}
        self._progress: str | None = None
        self._cancel_event = threading.Event()

    # === State ===

    @property
    def settings(self) -> Settings:
        return self._settings

    @property
    def records(self) -> UploadRecordStore:
        return self._records

    @property
    def vault(self) -> Vault:
        return self._vault

    @property
    def scope(self) -> FolderScope:
        """Scope for the currently selected folder."""
        return FolderScope(self._settings.selected_folder)

    @property
    def in_flight(self) -> int:
        """Number of uploads currently running."""
        with self._lock:
            return self._in_flight

    @property
    def failures(self) -> list[FailureRecord]:
        """Notes whose most recent upload failed."""
        with self._lock:
            return list(self._failures.values())

    def status(self) -> StatusSnapshot:
        """Get the current status snapshot."""
        with self._lock:
            return StatusSnapshot(
                in_flight=self._in_flight,
                failed=len(self._failures),
                progress=self._progress,
            )

    def _emit_status(self) -> None:
        if self._status_callback:
            self._status_callback(self.status())

    def _persist(self) -> None:
        """Save settings and records through the settings store."""
        if self._store is None:
            return
        try:
            self._store.save(self._settings, self._records)
        except OSError as e:
            logger.error(f"Failed to save sync state to {self._store.path}: {e}")

    def cancel(self) -> None:
        """Request cancellation of running operations.

        Uploads that have not sent their request yet end as CANCELLED,
        folder uploads stop before the next batch.
        """
        logger.info("Cancellation requested")
        self._cancel_event.set()

    @property
    def cancel_requested(self) -> bool:
        return self._cancel_event.is_set()

    # === Settings checks ===

    def check_required_settings(self) -> None:
        """Ensure an API token and a folder are configured.

        Raises:
            ConfigurationError: If either is missing.
        """
        if not self._settings.api_token or not self._settings.api_token.strip():
            raise ConfigurationError("Please configure your API token in plugin settings")
        if not self._settings.is_folder_selected:
            raise ConfigurationError("Please select a folder for sync in plugin settings")

    def get_folder_from_settings(self) -> VaultFolder | None:
        """Get the selected folder, the vault root for ""."""
        return self.scope.get_folder(self._vault)

    # === Single note ===

    def upload_note(self, file: VaultFile) -> UploadResult:
        """Upload a note unless its content is unchanged.

        Transport and remote errors are recorded in the failure set and
        returned as a FAILED result, never raised.

        Args:
            file: Note to upload.

        Returns:
            UploadResult describing the outcome.
        """
        with self._lock:
            self._in_flight += 1
        self._emit_status()

        try:
            return self._upload(file)
        finally:
            with self._lock:
                self._in_flight -= 1
            self._emit_status()

    def _upload(self, file: VaultFile) -> UploadResult:
        logger.debug(f"Starting upload for note: {file.path}")

        try:
            content = self._vault.read(file)
        except (OSError, ValueError) as e:
            return self._record_failure(file.path, str(e))

        content_hash = compute_content_hash(content)
        if self._records.is_unchanged(file.path, content_hash):
            logger.debug(f"Skip - unchanged: {file.path}")
            return UploadResult(path=file.path, outcome=UploadOutcome.SKIPPED)

        try:
            payload = self._build_payload(file, content)
            if self._cancel_event.is_set():
                raise UploadCancelledError(f"Upload of {file.path} cancelled")
            response = self._client.upload_note(payload)
        except UploadCancelledError as e:
            logger.info(str(e))
            return UploadResult(path=file.path, outcome=UploadOutcome.CANCELLED, error=str(e))
        except UPLOAD_EXCEPTIONS as e:
            return self._record_failure(file.path, str(e) or type(e).__name__)

        self._records.mark_uploaded(file.path, content_hash)
        with self._lock:
            self._failures.pop(file.path, None)
        self._persist()

        logger.info(f"Uploaded {file.path}")
        logger.debug(f"Upload successful, API response: {response}")
        return UploadResult(path=file.path, outcome=UploadOutcome.SUCCEEDED, response=response)

    def _build_payload(self, file: VaultFile, content: str) -> NotePayload:
        front_matter = extract_front_matter(content)
        logger.debug(f"Extracted front matter: {front_matter}")

        images = []
        if self._settings.upload_images:
            images = collect_images(content, self._vault, file.path)
            if images:
                logger.debug(f"Adding {len(images)} images to {file.path}")

        return NotePayload(
            name=file.name,
            content=content,
            front_matter=front_matter,
            images=images,
        )

    def _record_failure(self, path: str, message: str) -> UploadResult:
        logger.warning(f"Failed to upload {path}: {message}")
        with self._lock:
            self._failures[path] = FailureRecord(path=path, error_message=message)
        return UploadResult(path=path, outcome=UploadOutcome.FAILED, error=message)

    def upload_current_note(self, path: str) -> UploadResult:
        """Upload one note on user request.

        Args:
            path: Vault-relative path of the note.

        Raises:
            ConfigurationError: If token or folder are not configured.
            UploadError: If the path is not a markdown note.
            ScopeViolationError: If the note is outside the selected folder.
        """
        self.check_required_settings()

        file = self._vault.get_file(path)
        if file is None or not file.is_markdown:
            raise UploadError(f"No markdown note at {path}")

        scope = self.scope
        if not scope.in_scope(file.path):
            raise ScopeViolationError(
                f'Note "{file.name}" is not in the {scope.describe()}. '
                "Only notes in the selected folder can be uploaded."
            )

        logger.debug(f"Uploading current note: {file.path}")
        self._cancel_event.clear()
        return self.upload_note(file)

    # === Folders ===

    def upload_folder(self, folder: VaultFolder) -> BatchResult:
        """Upload every note under a folder in paced, concurrent batches.

        The failure set is replaced by the failures of this run.

        Args:
            folder: Folder to upload recursively.

        Returns:
            BatchResult with one UploadResult per note.
        """
        files = FolderScope.enumerate(folder)
        result = BatchResult()
        label = folder.path or "/"

        if not files:
            logger.info(f"No markdown files found in {label}")
            return result

        logger.info(f"Starting upload of {len(files)} notes from {label}")
        self._cancel_event.clear()

        batches = [
            files[start:start + self._batch_size]
            for start in range(0, len(files), self._batch_size)
        ]

        with ThreadPoolExecutor(
            max_workers=self._batch_size,
            thread_name_prefix="notesync-upload",
        ) as executor:
            for index, batch in enumerate(batches):
                if self._cancel_event.is_set():
                    pending = [f for b in batches[index:] for f in b]
                    logger.info(f"Folder upload cancelled, {len(pending)} notes not started")
                    result.results.extend(
                        UploadResult(path=f.path, outcome=UploadOutcome.CANCELLED)
                        for f in pending
                    )
                    break

                first = index * self._batch_size + 1
                self._set_progress(
                    f"Uploading batch {index + 1}/{len(batches)} "
                    f"({first}-{first + len(batch) - 1} of {len(files)})"
                )

                futures = [executor.submit(self.upload_note, file) for file in batch]
                wait(futures)
                for file, future in zip(batch, futures, strict=True):
                    result.results.append(self._settle(file, future))

                if index < len(batches) - 1:
                    self._cancel_event.wait(self._batch_delay)

        with self._lock:
            self._failures = {f.path: f for f in result.failures}
            self._progress = None
        self._emit_status()

        logger.info(f"Upload complete: {result.succeeded} succeeded, {result.failed} failed")
        return result

    def _settle(self, file: VaultFile, future: Future[UploadResult]) -> UploadResult:
        """Turn a finished upload future into a result, even if it raised."""
        error = future.exception()
        if error is None:
            return future.result()
        logger.error(f"Unexpected error uploading {file.path}: {error!r}")
        return self._record_failure(file.path, str(error) or type(error).__name__)

    def _set_progress(self, progress: str | None) -> None:
        with self._lock:
            self._progress = progress
        self._emit_status()

    def upload_selected_folder(self) -> BatchResult:
        """Upload the folder selected in settings.

        Raises:
            ConfigurationError: If settings are incomplete or the folder is missing.
        """
        self.check_required_settings()

        folder = self.get_folder_from_settings()
        if folder is None:
            raise ConfigurationError(f"Cannot find folder: {self._settings.selected_folder}")

        logger.debug(f"Folder found: {folder.path or '/'}, starting upload")
        return self.upload_folder(folder)

    def initial_harvest(self) -> int:
        """Upload every note of the selected folder that was never uploaded.

        Notes that already have a record are not re-checked, even if they
        changed while the agent was not running.

        Returns:
            Number of notes queued for upload.
        """
        try:
            self.check_required_settings()
        except ConfigurationError as e:
            logger.debug(f"Settings incomplete, skipping initial harvest: {e}")
            return 0

        folder = self.get_folder_from_settings()
        if folder is None:
            logger.debug("Selected folder not found, skipping initial harvest")
            return 0

        self._cancel_event.clear()
        queued = 0
        for file in FolderScope.enumerate(folder):
            if self._cancel_event.is_set():
                break
            if file.path in self._records:
                continue
            queued += 1
            self.upload_note(file)

        if queued:
            logger.info(f"Initial sync: uploaded {queued} new note(s)")
        return queued

    def pending_notes(self) -> list[VaultFile]:
        """List notes of the selected folder that are new or changed.

        Returns:
            Notes whose content hash differs from their upload record,
            empty when no folder is selected or it does not exist.
        """
        folder = self.get_folder_from_settings()
        if folder is None:
            return []

        pending = []
        for file in FolderScope.enumerate(folder):
            try:
                content = self._vault.read(file)
            except (OSError, ValueError) as e:
                logger.debug(f"Cannot read {file.path}: {e}")
                pending.append(file)
                continue
            if not self._records.is_unchanged(file.path, compute_content_hash(content)):
                pending.append(file)
        return pending

    def retry_failed(self, paths: list[str] | None = None) -> list[UploadResult]:
        """Upload failed notes again, one after another.

        Args:
            paths: Paths to retry. Defaults to every failed note.

        Returns:
            Results for the paths that still exist.
        """
        if paths is None:
            paths = [f.path for f in self.failures]

        self._cancel_event.clear()
        results: list[UploadResult] = []
        for path in paths:
            file = self._vault.get_file(path)
            if file is None:
                logger.debug(f"Not retrying {path}: file no longer exists")
                continue
            results.append(self.upload_note(file))
        return results

    # === Change feed ===

    def handle_created(self, file: VaultFile) -> UploadResult | None:
        """Upload a newly created note when auto-upload applies."""
        if not self._settings.auto_upload:
            return None
        if not file.is_markdown or not self.scope.in_scope(file.path):
            return None
        if file.path in self._records:
            return None
        return self.upload_note(file)

    def handle_renamed(self, file: VaultFile, old_path: str) -> UploadResult | None:
        """Follow a rename: move the upload record, then re-upload if changed.

        A pure rename keeps the content hash, so the upload is skipped.
        """
        if not file.is_markdown:
            return None

        if self._records.rename(old_path, file.path):
            self._persist()

        if self.scope.in_scope(file.path) and self._settings.auto_upload:
            return self.upload_note(file)
        return None

    def handle_event(self, event: VaultEvent) -> UploadResult | None:
        """Dispatch a change-feed event."""
        file = self._vault.get_file(event.path)
        if file is None:
            logger.debug(f"Ignoring {event.kind.value} event for missing file {event.path}")
            return None

        if event.kind == VaultEventKind.RENAMED and event.old_path is not None:
            return self.handle_renamed(file, event.old_path)
        return self.handle_created(file)
