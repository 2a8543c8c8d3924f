"""Local vault access.

This module provides:
- Vault: File-tree access over a local notes directory
- VaultFile, VaultFolder: Vault entries addressed by POSIX paths relative
  to the vault root (the root folder's path is "")

Link resolution follows the usual note-app rules on a best-effort basis:
exact path, path relative to the linking note, then lookup by file name
preferring the shortest matching path.
"""

from __future__ import annotations

import logging
import os
import threading
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath

from notesync.client.ignore import IgnorePatterns

logger = logging.getLogger(__name__)

MARKDOWN_EXTENSION = "md"


@dataclass(frozen=True)
class VaultFile:
    """A file in the vault."""

    path: str

    @property
    def name(self) -> str:
        """File name with extension."""
        return PurePosixPath(self.path).name

    @property
    def basename(self) -> str:
        """File name without extension."""
        return PurePosixPath(self.path).stem

    @property
    def extension(self) -> str:
        """Extension without the leading dot, as written on disk."""
        return PurePosixPath(self.path).suffix[1:]

    @property
    def parent_path(self) -> str:
        """Path of the containing folder ("" for the root)."""
        parent = str(PurePosixPath(self.path).parent)
        return "" if parent == "." else parent

    @property
    def is_markdown(self) -> bool:
        return self.extension == MARKDOWN_EXTENSION


@dataclass(frozen=True)
class VaultFolder:
    """A folder in the vault. Children are listed on access."""

    path: str
    vault: Vault = field(repr=False, compare=False)

    @property
    def name(self) -> str:
        return PurePosixPath(self.path).name

    @property
    def is_root(self) -> bool:
        return self.path == ""

    @property
    def children(self) -> list[VaultFile | VaultFolder]:
        """Direct children in natural (name-sorted) order."""
        return self.vault.list_children(self)


class Vault:
    """File-tree access over a local directory of notes."""

    def __init__(self, root: Path, ignore_patterns: list[str] | None = None) -> None:
        """Initialize the vault.

        Args:
            root: Vault directory.
            ignore_patterns: Additional patterns to ignore.
        """
        self._root = Path(root).resolve()
        if not self._root.is_dir():
            raise ValueError(f"Vault path must be a directory: {root}")

        self._ignore = IgnorePatterns(ignore_patterns)

        self._lock = threading.Lock()
        self._name_index: dict[str, list[str]] | None = None

    @property
    def root_path(self) -> Path:
        """Get the vault directory."""
        return self._root

    def absolute_path(self, path: str) -> Path:
        """Convert a vault-relative path to an absolute filesystem path."""
        return self._root / path if path else self._root

    def relative_path(self, path: Path) -> str | None:
        """Convert an absolute filesystem path to a vault-relative POSIX path.

        Returns:
            Relative path, or None when the path is outside the vault.
        """
        try:
            rel = Path(path).resolve().relative_to(self._root)
        except ValueError:
            return None
        rel_str = str(rel).replace("\\", "/")
        return "" if rel_str == "." else rel_str

    def is_ignored(self, path: str) -> bool:
        """Check if a vault-relative path is ignored."""
        return self._ignore.should_ignore(self.absolute_path(path), self._root)

    # === Lookup ===

    def get_root(self) -> VaultFolder:
        """Get the root folder."""
        return VaultFolder("", self)

    def get_folder(self, path: str) -> VaultFolder | None:
        """Get a folder by path.

        Args:
            path: Vault-relative folder path; "" is the root.

        Returns:
            VaultFolder if it exists, None otherwise.
        """
        path = path.strip("/")
        if not path:
            return self.get_root()
        if self.is_ignored(path) or not self.absolute_path(path).is_dir():
            return None
        return VaultFolder(path, self)

    def get_file(self, path: str) -> VaultFile | None:
        """Get a file by path.

        Args:
            path: Vault-relative file path.

        Returns:
            VaultFile if it exists, None otherwise.
        """
        path = path.strip("/")
        if not path or self.is_ignored(path) or not self.absolute_path(path).is_file():
            return None
        return VaultFile(path)

    def list_children(self, folder: VaultFolder) -> list[VaultFile | VaultFolder]:
        """List direct children of a folder, sorted by name."""
        children: list[VaultFile | VaultFolder] = []
        base = self.absolute_path(folder.path)
        try:
            entries = sorted(os.scandir(base), key=lambda e: e.name)
        except OSError as e:
            logger.warning(f"Cannot list folder {folder.path or '/'}: {e}")
            return children

        for entry in entries:
            rel = f"{folder.path}/{entry.name}" if folder.path else entry.name
            if entry.is_symlink() or self._ignore.matches(rel, is_dir=entry.is_dir()):
                continue
            if entry.is_dir():
                children.append(VaultFolder(rel, self))
            elif entry.is_file():
                children.append(VaultFile(rel))
        return children

    def iter_files(self, folder: VaultFolder | None = None) -> list[VaultFile]:
        """List all files under a folder, depth-first."""
        files: list[VaultFile] = []
        for child in (folder or self.get_root()).children:
            if isinstance(child, VaultFolder):
                files.extend(self.iter_files(child))
            else:
                files.append(child)
        return files

    # === Content ===

    def read(self, file: VaultFile) -> str:
        """Read a note as text, without newline translation."""
        with open(self.absolute_path(file.path), encoding="utf-8", newline="") as f:
            return f.read()

    def read_binary(self, file: VaultFile) -> bytes:
        """Read a file as bytes."""
        return self.absolute_path(file.path).read_bytes()

    # === Link resolution ===

    def invalidate(self) -> None:
        """Drop the cached name index after the tree changed."""
        with self._lock:
            self._name_index = None

    def _get_name_index(self) -> dict[str, list[str]]:
        with self._lock:
            if self._name_index is None:
                index: dict[str, list[str]] = {}
                for file in self.iter_files():
                    index.setdefault(file.name.lower(), []).append(file.path)
                self._name_index = index
            return self._name_index

    def resolve_link(self, linkpath: str, source_path: str = "") -> VaultFile | None:
        """Resolve a link target to a vault file.

        Args:
            linkpath: Link target without fragment or query.
            source_path: Path of the note containing the link.

        Returns:
            The best matching file, or None.
        """
        linkpath = linkpath.strip().lstrip("/")
        if not linkpath:
            return None

        candidates = [linkpath]
        source_dir = VaultFile(source_path).parent_path if source_path else ""
        if source_dir:
            candidates.append(os.path.normpath(f"{source_dir}/{linkpath}").replace("\\", "/"))
        if not PurePosixPath(linkpath).suffix:
            candidates.extend(f"{c}.{MARKDOWN_EXTENSION}" for c in list(candidates))

        for candidate in candidates:
            if candidate.startswith(".."):
                continue
            file = self.get_file(candidate)
            if file is not None:
                return file

        # Fall back to lookup by file name, shortest path wins
        if not PurePosixPath(linkpath).suffix:
            linkpath = f"{linkpath}.{MARKDOWN_EXTENSION}"
        name = PurePosixPath(linkpath).name
        matches = self._get_name_index().get(name.lower(), [])
        if "/" in linkpath:
            suffix = "/" + linkpath.lower()
            matches = [m for m in matches if ("/" + m.lower()).endswith(suffix)]
        if not matches:
            return None
        return VaultFile(min(matches, key=lambda p: (p.count("/"), len(p), p)))
