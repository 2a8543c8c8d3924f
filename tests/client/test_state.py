"""Tests for upload records."""

import re

from notesync.client.state import UploadRecord, UploadRecordStore, utc_timestamp


class TestUtcTimestamp:
    """Tests for utc_timestamp."""

    def test_format(self) -> None:
        """Should be ISO 8601 UTC with milliseconds and a Z suffix."""
        assert re.fullmatch(r"\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}\.\d{3}Z", utc_timestamp())


class TestUploadRecord:
    """Tests for UploadRecord serialization."""

    def test_to_dict(self) -> None:
        """Should use the persisted ts/sha keys."""
        record = UploadRecord(path="Notes/a.md", timestamp="2025-01-01T00:00:00.000Z", content_hash="abc")
        assert record.to_dict() == {"ts": "2025-01-01T00:00:00.000Z", "sha": "abc"}

    def test_from_dict(self) -> None:
        """Should read the persisted entry shape."""
        record = UploadRecord.from_dict("Notes/a.md", {"ts": "t", "sha": "h"})
        assert record == UploadRecord(path="Notes/a.md", timestamp="t", content_hash="h")


class TestUploadRecordStore:
    """Tests for UploadRecordStore."""

    def test_empty_store(self) -> None:
        """A new store should have no records."""
        store = UploadRecordStore()
        assert len(store) == 0
        assert store.get("Notes/a.md") is None
        assert "Notes/a.md" not in store

    def test_mark_uploaded(self) -> None:
        """Should create a record with the given hash."""
        store = UploadRecordStore()

        record = store.mark_uploaded("Notes/a.md", "hash1")

        assert record.content_hash == "hash1"
        assert store.get("Notes/a.md") == record
        assert "Notes/a.md" in store

    def test_mark_uploaded_overwrites(self) -> None:
        """A second upload should replace the previous record."""
        store = UploadRecordStore()
        store.mark_uploaded("Notes/a.md", "hash1", timestamp="t1")

        store.mark_uploaded("Notes/a.md", "hash2", timestamp="t2")

        record = store.get("Notes/a.md")
        assert record is not None
        assert record.content_hash == "hash2"
        assert record.timestamp == "t2"
        assert len(store) == 1

    def test_is_unchanged(self) -> None:
        """Should compare against the stored hash."""
        store = UploadRecordStore()
        store.mark_uploaded("Notes/a.md", "hash1")

        assert store.is_unchanged("Notes/a.md", "hash1") is True
        assert store.is_unchanged("Notes/a.md", "hash2") is False
        assert store.is_unchanged("Notes/b.md", "hash1") is False

    def test_rename_moves_record(self) -> None:
        """Should move the record and keep hash and timestamp."""
        store = UploadRecordStore()
        store.mark_uploaded("Notes/old.md", "hash1", timestamp="t1")

        assert store.rename("Notes/old.md", "Notes/new.md") is True

        assert store.get("Notes/old.md") is None
        assert store.get("Notes/new.md") == UploadRecord(
            path="Notes/new.md", timestamp="t1", content_hash="hash1"
        )

    def test_rename_without_record(self) -> None:
        """Renaming an unknown path should do nothing."""
        store = UploadRecordStore()

        assert store.rename("Notes/old.md", "Notes/new.md") is False
        assert len(store) == 0

    def test_dict_round_trip(self) -> None:
        """Should persist and reload records."""
        store = UploadRecordStore()
        store.mark_uploaded("Notes/a.md", "hash1", timestamp="t1")

        reloaded = UploadRecordStore.from_dict(store.to_dict())

        assert reloaded.get("Notes/a.md") == store.get("Notes/a.md")

    def test_from_dict_drops_malformed(self) -> None:
        """Malformed entries should be skipped."""
        store = UploadRecordStore.from_dict(
            {
                "good.md": {"ts": "t", "sha": "h"},
                "missing-sha.md": {"ts": "t"},
                "not-a-dict.md": None,  # type: ignore[dict-item]
            }
        )

        assert len(store) == 1
        assert "good.md" in store

    def test_from_dict_none(self) -> None:
        """A missing mapping should give an empty store."""
        assert len(UploadRecordStore.from_dict(None)) == 0
