"""Tests for the ingestion endpoint client."""

import json

import httpx
import pytest
from pytest_httpx import HTTPXMock

from notesync.client.api import (
    APIError,
    AuthenticationError,
    ImagePart,
    IngestClient,
    NotePayload,
)
from notesync.core.config import ServerConfig

ENDPOINT = "http://test/api/note-upload"


def make_config(endpoint_url: str = ENDPOINT, token: str = "token123") -> ServerConfig:
    """Create a ServerConfig for testing."""
    return ServerConfig(endpoint_url=endpoint_url, token=token)


def make_payload(**kwargs) -> NotePayload:
    defaults = {"name": "Reading.md", "content": "# Reading\n"}
    defaults.update(kwargs)
    return NotePayload(**defaults)


class TestNotePayload:
    """Tests for NotePayload multipart encoding."""

    def test_markdown_part(self) -> None:
        """Should send the note under the markdown field."""
        data, files = make_payload().to_multipart()

        assert data == {}
        assert files == [("markdown", ("Reading.md", b"# Reading\n", "text/markdown"))]

    def test_front_matter_as_json(self) -> None:
        """Should serialize front matter as a JSON string."""
        payload = make_payload(front_matter={"title": "X", "tags": ["a", "b"]})

        data, _ = payload.to_multipart()

        assert json.loads(data["frontMatter"]) == {"title": "X", "tags": ["a", "b"]}

    def test_empty_front_matter_still_sent(self) -> None:
        """An empty but present front matter block should be sent."""
        data, _ = make_payload(front_matter={}).to_multipart()
        assert data == {"frontMatter": "{}"}

    def test_images_repeat_field(self) -> None:
        """Each image should be its own images[] part, in order."""
        payload = make_payload(
            images=[
                ImagePart(name="a.png", data=b"A", mime_type="image/png"),
                ImagePart(name="b.jpg", data=b"B", mime_type="image/jpeg"),
            ]
        )

        _, files = payload.to_multipart()

        assert files[1:] == [
            ("images[]", ("a.png", b"A", "image/png")),
            ("images[]", ("b.jpg", b"B", "image/jpeg")),
        ]


class TestIngestClient:
    """Tests for IngestClient."""

    def test_upload_sends_bearer_token(self, httpx_mock: HTTPXMock) -> None:
        """Should authenticate with the configured token."""
        httpx_mock.add_response(url=ENDPOINT, method="POST", json={"ok": True})

        with IngestClient(make_config()) as client:
            client.upload_note(make_payload())

        request = httpx_mock.get_request()
        assert request is not None
        assert request.headers["Authorization"] == "Bearer token123"

    def test_upload_without_token(self, httpx_mock: HTTPXMock) -> None:
        """Should omit the Authorization header without a token."""
        httpx_mock.add_response(url=ENDPOINT, method="POST", json={})

        with IngestClient(make_config(token="")) as client:
            client.upload_note(make_payload())

        request = httpx_mock.get_request()
        assert request is not None
        assert "Authorization" not in request.headers

    def test_upload_multipart_body(self, httpx_mock: HTTPXMock) -> None:
        """Should post markdown, front matter and images as multipart."""
        httpx_mock.add_response(url=ENDPOINT, method="POST", json={})
        payload = make_payload(
            front_matter={"title": "Reading"},
            images=[ImagePart(name="cover.png", data=b"\x89PNG", mime_type="image/png")],
        )

        with IngestClient(make_config()) as client:
            client.upload_note(payload)

        request = httpx_mock.get_request()
        assert request is not None
        assert request.headers["Content-Type"].startswith("multipart/form-data")
        body = request.read()
        assert b'name="markdown"; filename="Reading.md"' in body
        assert b'name="frontMatter"' in body
        assert b'{"title": "Reading"}' in body
        assert b'name="images[]"; filename="cover.png"' in body

    def test_upload_returns_json(self, httpx_mock: HTTPXMock) -> None:
        """Should return the decoded response body."""
        httpx_mock.add_response(url=ENDPOINT, method="POST", json={"id": 7})

        with IngestClient(make_config()) as client:
            assert client.upload_note(make_payload()) == {"id": 7}

    def test_upload_empty_body(self, httpx_mock: HTTPXMock) -> None:
        """An empty 2xx body should return None."""
        httpx_mock.add_response(url=ENDPOINT, method="POST", status_code=204)

        with IngestClient(make_config()) as client:
            assert client.upload_note(make_payload()) is None

    def test_error_with_json_detail(self, httpx_mock: HTTPXMock) -> None:
        """Should include the error field of a JSON error body."""
        httpx_mock.add_response(
            url=ENDPOINT, method="POST", status_code=500, json={"error": "Database down"}
        )

        with IngestClient(make_config()) as client, pytest.raises(APIError) as exc_info:
            client.upload_note(make_payload())

        assert str(exc_info.value) == "Upload failed with status: 500 - Database down"
        assert exc_info.value.status_code == 500

    def test_error_without_json(self, httpx_mock: HTTPXMock) -> None:
        """Should fall back to the status code for non-JSON bodies."""
        httpx_mock.add_response(url=ENDPOINT, method="POST", status_code=502, text="Bad Gateway")

        with IngestClient(make_config()) as client, pytest.raises(APIError) as exc_info:
            client.upload_note(make_payload())

        assert str(exc_info.value) == "Upload failed with status: 502"

    def test_unauthorized(self, httpx_mock: HTTPXMock) -> None:
        """401 should raise AuthenticationError."""
        httpx_mock.add_response(
            url=ENDPOINT, method="POST", status_code=401, json={"error": "Invalid token"}
        )

        with IngestClient(make_config()) as client, pytest.raises(AuthenticationError) as exc_info:
            client.upload_note(make_payload())

        assert exc_info.value.status_code == 401
        assert "Invalid token" in str(exc_info.value)

    def test_timeout_propagates(self, httpx_mock: HTTPXMock) -> None:
        """Transport timeouts should surface as httpx errors."""
        httpx_mock.add_exception(httpx.ReadTimeout("timed out"))

        with IngestClient(make_config()) as client, pytest.raises(httpx.TimeoutException):
            client.upload_note(make_payload())
