"""Shared configuration classes for notesync.

This module defines the connection settings for the remote ingestion endpoint.
"""

from __future__ import annotations

from dataclasses import dataclass

DEFAULT_ENDPOINT = "https://www.idealite.xyz/api/obsidian/note-upload"


@dataclass
class ServerConfig:
    """Configuration for talking to the note ingestion endpoint.

    Attributes:
        endpoint_url: Full URL notes are POSTed to.
        token: Bearer token. Empty string means no Authorization header.
        timeout: Request timeout in seconds.
        verify_ssl: Whether to verify SSL certificates (default True).
    """

    endpoint_url: str = DEFAULT_ENDPOINT
    token: str = ""
    timeout: float = 30.0
    verify_ssl: bool = True

    def __post_init__(self) -> None:
        """Normalize endpoint URL."""
        self.endpoint_url = self.endpoint_url.rstrip("/")
