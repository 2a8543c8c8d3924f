"""Ignore rules for vault traversal.

A vault holds more than notes: the editor's own configuration folder, a
trash folder, version control data and the odd swap file. None of these
should ever be listed, watched or uploaded.

Rules use a small subset of gitignore syntax:
- ``name`` or ``*.ext``: matches any path component, so a rule for a folder
  also hides everything below it.
- ``folder/``: matches directories only (and their contents).
- ``dir/pattern``: anchored at the vault root, matched against the full path
  or any of its parent folders.
"""

from __future__ import annotations

import fnmatch
from dataclasses import dataclass
from pathlib import Path

DEFAULT_IGNORE_PATTERNS = [
    ".obsidian",
    ".trash",
    ".git",
    ".DS_Store",
    "Thumbs.db",
    "*.tmp",
    "*.swp",
    "~*",
]


@dataclass(frozen=True)
class IgnoreRule:
    """A single parsed ignore pattern."""

    glob: str
    dir_only: bool = False
    anchored: bool = False

    @classmethod
    def parse(cls, pattern: str) -> IgnoreRule:
        dir_only = pattern.endswith("/")
        glob = pattern.strip("/")
        return cls(glob=glob, dir_only=dir_only, anchored="/" in glob)

    def matches(self, parts: list[str], is_dir: bool) -> bool:
        # Only components known to be directories can satisfy a folder rule
        dirs = parts if is_dir else parts[:-1]
        candidates = dirs if self.dir_only else parts

        if self.anchored:
            return any(
                fnmatch.fnmatchcase("/".join(parts[: i + 1]), self.glob)
                for i in range(len(candidates))
            )

        return any(fnmatch.fnmatchcase(part, self.glob) for part in candidates)


class IgnorePatterns:
    """Decides which vault paths are invisible to notesync."""

    def __init__(self, patterns: list[str] | None = None) -> None:
        """Initialize with the default rules plus any extra patterns.

        Args:
            patterns: Additional patterns for this vault.
        """
        self._rules: list[IgnoreRule] = []
        for pattern in [*DEFAULT_IGNORE_PATTERNS, *(patterns or [])]:
            self.add_pattern(pattern)

    def add_pattern(self, pattern: str) -> None:
        """Add a pattern. Blank patterns are dropped."""
        pattern = pattern.strip()
        if not pattern.strip("/"):
            return
        self._rules.append(IgnoreRule.parse(pattern))

    def should_ignore(self, path: Path, base_path: Path) -> bool:
        """Check an absolute path below the vault root.

        Symlinks are always ignored. Paths outside ``base_path`` are not
        this object's business and are never reported as ignored.
        """
        if path.is_symlink():
            return True

        try:
            rel_path = path.relative_to(base_path).as_posix()
        except ValueError:
            return False

        return self.matches(rel_path, is_dir=path.is_dir())

    def matches(self, rel_path: str, is_dir: bool = False) -> bool:
        """Check a vault-relative POSIX path against the rules."""
        parts = [part for part in rel_path.split("/") if part and part != "."]
        if not parts:
            return False
        return any(rule.matches(parts, is_dir) for rule in self._rules)
