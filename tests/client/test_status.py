"""Tests for status snapshots."""

from notesync.client.status import StatusSnapshot, format_status_line
from notesync.core.types import SyncState


class TestStatusSnapshot:
    """Tests for StatusSnapshot."""

    def test_idle(self) -> None:
        """No uploads and no failures should be idle."""
        assert StatusSnapshot().state == SyncState.IDLE

    def test_syncing_wins_over_failures(self) -> None:
        """Running uploads should take precedence."""
        assert StatusSnapshot(in_flight=2, failed=1).state == SyncState.SYNCING

    def test_error(self) -> None:
        """Failures without running uploads should be an error state."""
        assert StatusSnapshot(failed=3).state == SyncState.ERROR


class TestFormatStatusLine:
    """Tests for format_status_line."""

    def test_synced(self) -> None:
        assert format_status_line(StatusSnapshot()) == "✓ Synced"

    def test_uploading(self) -> None:
        assert format_status_line(StatusSnapshot(in_flight=3)) == "⟳ 3 uploading…"

    def test_failed(self) -> None:
        assert format_status_line(StatusSnapshot(failed=2)) == "⚠ 2 failed"

    def test_progress(self) -> None:
        """Batch progress should be shown while a folder upload runs."""
        snapshot = StatusSnapshot(in_flight=5, progress="Uploading batch 1/2 (1-5 of 7)")
        assert format_status_line(snapshot) == "⟳ Uploading batch 1/2 (1-5 of 7)"
