"""HTTP client for the note ingestion endpoint.

This module provides:
- IngestClient: HTTP client posting notes as multipart payloads
- NotePayload, ImagePart: What gets sent for one note
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any

import httpx

from notesync.core.config import ServerConfig

logger = logging.getLogger(__name__)


class APIError(Exception):
    """Base exception for API errors."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class AuthenticationError(APIError):
    """Authentication failed."""


@dataclass
class ImagePart:
    """An image attached to a note upload."""

    name: str
    data: bytes
    mime_type: str = "application/octet-stream"


@dataclass
class NotePayload:
    """Everything sent for a single note.

    Attributes:
        name: File name of the note (e.g. "Reading.md").
        content: Full note text.
        front_matter: Parsed front matter, sent as a JSON string when present.
        images: Embedded images to upload with the note.
    """

    name: str
    content: str
    front_matter: dict[str, Any] | None = None
    images: list[ImagePart] = field(default_factory=list)

    def to_multipart(self) -> tuple[dict[str, str], list[tuple[str, tuple[str, bytes, str]]]]:
        """Build httpx ``data`` and ``files`` arguments.

        Returns:
            Tuple of form fields and file parts.
        """
        data: dict[str, str] = {}
        if self.front_matter is not None:
            data["frontMatter"] = json.dumps(self.front_matter)

        files = [("markdown", (self.name, self.content.encode("utf-8"), "text/markdown"))]
        for image in self.images:
            files.append(("images[]", (image.name, image.data, image.mime_type)))
        return data, files


class IngestClient:
    """HTTP client for the note ingestion endpoint."""

    def __init__(self, config: ServerConfig) -> None:
        """Initialize the ingest client.

        Args:
            config: Endpoint URL, token and timeout.
        """
        self._config = config
        headers = {}
        if config.token:
            headers["Authorization"] = f"Bearer {config.token}"
        self._client = httpx.Client(
            timeout=config.timeout,
            verify=config.verify_ssl,
            headers=headers,
        )

    @property
    def config(self) -> ServerConfig:
        """Get the client configuration."""
        return self._config

    def close(self) -> None:
        """Close the HTTP client."""
        self._client.close()

    def __enter__(self) -> IngestClient:
        """Context manager entry."""
        return self

    def __exit__(self, *args: object) -> None:
        """Context manager exit."""
        self.close()

    def _handle_response(self, response: httpx.Response) -> httpx.Response:
        """Raise an APIError for any non-2xx response.

        The message carries the status code and, when the body is JSON with
        an ``error`` field, that error text.
        """
        if response.is_success:
            return response

        detail = None
        try:
            body = response.json()
        except ValueError:
            body = None
        if isinstance(body, dict) and body.get("error"):
            detail = body["error"]

        message = f"Upload failed with status: {response.status_code}"
        if detail:
            message += f" - {detail}"

        if response.status_code == 401:
            raise AuthenticationError(message, 401)
        raise APIError(message, response.status_code)

    def upload_note(self, payload: NotePayload) -> Any:
        """Upload one note with its front matter and images.

        Args:
            payload: The note to send.

        Returns:
            Decoded JSON response body (None for an empty body).

        Raises:
            APIError: If the endpoint answered with a non-2xx status.
            httpx.HTTPError: On transport failures, including timeouts.
        """
        data, files = payload.to_multipart()
        logger.debug(
            f"Sending POST request to: {self._config.endpoint_url} "
            f"({len(payload.images)} images)"
        )
        response = self._handle_response(
            self._client.post(self._config.endpoint_url, data=data, files=files)
        )
        if not response.content:
            return None
        return response.json()
