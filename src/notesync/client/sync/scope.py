"""Folder scope for synchronization.

The selected folder decides which notes may be uploaded:

- None: no folder selected, nothing is in scope.
- "": the vault root. Enumeration covers the whole vault, but single-note
  path checks never match, so notes at the root are not uploaded
  individually or automatically.
- "Notes" or "Notes/": notes whose path starts with "Notes/".
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from notesync.client.vault import VaultFile, VaultFolder

if TYPE_CHECKING:
    from notesync.client.vault import Vault


class FolderScope:
    """Predicate and enumerator over the selected folder."""

    def __init__(self, folder: str | None) -> None:
        """Initialize the scope.

        Args:
            folder: Selected folder path. None = unset, "" = vault root.
        """
        self._folder = folder

    @property
    def folder(self) -> str | None:
        return self._folder

    @property
    def is_selected(self) -> bool:
        """Check if a folder (possibly the root) is selected."""
        return self._folder is not None

    @property
    def prefix(self) -> str | None:
        """Path prefix notes must start with, or None when nothing matches."""
        if not self._folder:
            return None
        return self._folder if self._folder.endswith("/") else self._folder + "/"

    def in_scope(self, path: str) -> bool:
        """Check if a note path lies inside the selected folder."""
        prefix = self.prefix
        return prefix is not None and path.startswith(prefix)

    def describe(self) -> str:
        """Human-readable name of the selected folder."""
        if self._folder == "":
            return "root folder"
        return self._folder or "selected folder"

    def get_folder(self, vault: Vault) -> VaultFolder | None:
        """Look up the selected folder in the vault.

        Returns:
            The folder (the root for ""), or None if unset or missing.
        """
        if self._folder is None:
            return None
        return vault.get_folder(self._folder)

    @staticmethod
    def enumerate(folder: VaultFolder) -> list[VaultFile]:
        """Collect all markdown notes under a folder, recursively."""
        files: list[VaultFile] = []
        for child in folder.children:
            if isinstance(child, VaultFolder):
                files.extend(FolderScope.enumerate(child))
            elif child.is_markdown:
                files.append(child)
        return files
