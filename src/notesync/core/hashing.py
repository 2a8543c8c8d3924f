"""Content fingerprinting for change detection.

SHA-256 digests are only used as an equality oracle: a note whose digest
matches its upload record has not changed since it was last sent.
"""

import hashlib


def compute_content_hash(content: str) -> str:
    """Compute SHA-256 hash of text content.

    Args:
        content: Note text.

    Returns:
        64-character lowercase hexadecimal digest of the UTF-8 bytes.
    """
    return hashlib.sha256(content.encode("utf-8")).hexdigest()
