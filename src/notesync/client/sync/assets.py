"""Image references embedded in notes.

This module provides:
- extract_image_links: Raw link text for the three embed syntaxes
- resolve_image / is_image_file / get_mime_type: Link to vault file
- collect_images: Resolved, readable images ready for upload

Every reference gets an ImageResolution result. References that do not
resolve, are not images, or cannot be read are logged and dropped; they
never fail the note upload.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import TYPE_CHECKING
from urllib.parse import unquote

from notesync.client.api import ImagePart

if TYPE_CHECKING:
    from notesync.client.vault import Vault, VaultFile

logger = logging.getLogger(__name__)

# ![alt](path/to/image.png)
MARKDOWN_IMAGE_PATTERN = re.compile(r"!\[.*?\]\((.*?)\)")
# ![[image.png]]
WIKI_EMBED_PATTERN = re.compile(r"!\[\[(.*?)\]\]")
# <img src="path/to/image.png" />
HTML_IMAGE_PATTERN = re.compile(r"<img[^>]+src=[\"']([^\"']+)[\"'][^>]*>")
# ![alt](image.png "title")
LINK_TITLE_PATTERN = re.compile(r"\s+([\"']).*\1$")

IMAGE_MIME_TYPES = {
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "png": "image/png",
    "gif": "image/gif",
    "svg": "image/svg+xml",
    "webp": "image/webp",
    "bmp": "image/bmp",
    "tiff": "image/tiff",
    "tif": "image/tiff",
}
DEFAULT_MIME_TYPE = "application/octet-stream"


@dataclass
class ImageResolution:
    """Outcome of processing one image reference.

    Attributes:
        link: Raw link text from the note.
        file: Resolved vault file, if any.
        data: Image bytes when the file was read.
        error: Why the reference was dropped.
    """

    link: str
    file: VaultFile | None = None
    data: bytes | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.file is not None and self.data is not None

    def to_part(self) -> ImagePart:
        """Convert a successful resolution to an upload part."""
        if self.file is None or self.data is None:
            raise ValueError(f"Image {self.link!r} was not resolved")
        return ImagePart(
            name=self.file.name,
            data=self.data,
            mime_type=get_mime_type(self.file.extension),
        )


def extract_image_links(document: str) -> list[str]:
    """Collect raw image link text from a note.

    Markdown images come first, then wiki embeds, then HTML img tags;
    within each syntax links are in document order.
    """
    links: list[str] = []
    for pattern in (MARKDOWN_IMAGE_PATTERN, WIKI_EMBED_PATTERN, HTML_IMAGE_PATTERN):
        links.extend(m.group(1) for m in pattern.finditer(document) if m.group(1))
    return links


def clean_link(link: str) -> str:
    """Strip title, fragment, query, wiki alias and percent-encoding from a link."""
    link = LINK_TITLE_PATTERN.sub("", link.strip()).strip("<>")
    link = link.split("#")[0].split("?")[0].split("|")[0]
    return unquote(link).strip()


def get_mime_type(extension: str) -> str:
    """Map a file extension to a MIME type."""
    return IMAGE_MIME_TYPES.get(extension.lower(), DEFAULT_MIME_TYPE)


def is_image_file(file: VaultFile) -> bool:
    """Check if a file has a supported image extension."""
    return file.extension.lower() in IMAGE_MIME_TYPES


def resolve_image(link: str, vault: Vault, source_path: str = "") -> VaultFile | None:
    """Resolve a raw link to a vault file.

    Args:
        link: Raw link text.
        vault: Vault to search.
        source_path: Path of the note containing the link.

    Returns:
        The linked file, or None if nothing matches.
    """
    linkpath = clean_link(link)
    if not linkpath or "://" in linkpath:
        return None
    return vault.resolve_link(linkpath, source_path)


def resolve_images(document: str, vault: Vault, source_path: str = "") -> list[ImageResolution]:
    """Resolve and read every image referenced by a note."""
    links = extract_image_links(document)
    logger.debug(f"Found {len(links)} image links in {source_path or 'note'}")

    resolutions: list[ImageResolution] = []
    for link in links:
        logger.debug(f"Resolving image link: {link}")
        file = resolve_image(link, vault, source_path)
        if file is None or not is_image_file(file):
            logger.debug(f"Image file not found or not an image: {link}")
            resolutions.append(
                ImageResolution(link=link, file=file, error="not found or not an image")
            )
            continue
        try:
            data = vault.read_binary(file)
        except OSError as e:
            logger.warning(f"Error processing image {link}: {e}")
            resolutions.append(ImageResolution(link=link, file=file, error=str(e)))
            continue
        resolutions.append(ImageResolution(link=link, file=file, data=data))
    return resolutions


def collect_images(document: str, vault: Vault, source_path: str = "") -> list[ImagePart]:
    """Build upload parts for the images of a note, dropping failures."""
    return [r.to_part() for r in resolve_images(document, vault, source_path) if r.ok]
