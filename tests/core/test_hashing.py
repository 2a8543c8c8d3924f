"""Tests for content hashing."""

from __future__ import annotations

from notesync.core.hashing import compute_content_hash

EMPTY_SHA256 = "e3b0c44298fc1c149afbf4c8996fb92427ae41e4649b934ca495991b7852b855"
ABC_SHA256 = "ba7816bf8f01cfea414140de5dae2223b00361a396177a9cb410ff61f20015ad"


class TestComputeContentHash:
    """Tests for compute_content_hash."""

    def test_known_vectors(self) -> None:
        """Should match the SHA-256 test vectors."""
        assert compute_content_hash("") == EMPTY_SHA256
        assert compute_content_hash("abc") == ABC_SHA256

    def test_lowercase_hex(self) -> None:
        """Should return 64 lowercase hex characters."""
        digest = compute_content_hash("# Note\n")
        assert len(digest) == 64
        assert digest == digest.lower()
        int(digest, 16)

    def test_deterministic(self) -> None:
        """Same content should give the same hash."""
        assert compute_content_hash("hello") == compute_content_hash("hello")

    def test_sensitive_to_any_change(self) -> None:
        """A single changed character should change the hash."""
        assert compute_content_hash("hello") != compute_content_hash("hellp")

    def test_line_endings_matter(self) -> None:
        """CRLF and LF content should hash differently."""
        assert compute_content_hash("a\nb") != compute_content_hash("a\r\nb")

    def test_unicode_hashed_as_utf8(self) -> None:
        """Should hash the UTF-8 encoding of the text."""
        import hashlib

        text = "Café ☕"
        assert compute_content_hash(text) == hashlib.sha256(text.encode("utf-8")).hexdigest()
