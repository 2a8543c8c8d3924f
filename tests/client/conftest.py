"""Shared fixtures for client tests."""

from collections.abc import Callable
from pathlib import Path

import pytest

from notesync.client.vault import Vault

VaultFactory = Callable[[dict[str, str | bytes]], Vault]


@pytest.fixture
def make_vault(tmp_path: Path) -> VaultFactory:
    """Create a vault on disk from a {relative path: content} mapping."""

    def _make(files: dict[str, str | bytes]) -> Vault:
        root = tmp_path / "vault"
        root.mkdir(exist_ok=True)
        for rel_path, content in files.items():
            path = root / rel_path
            path.parent.mkdir(parents=True, exist_ok=True)
            if isinstance(content, bytes):
                path.write_bytes(content)
            else:
                path.write_bytes(content.encode("utf-8"))
        return Vault(root)

    return _make
