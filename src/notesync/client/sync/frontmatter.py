"""Front matter extraction for notes.

Only a flat subset of YAML is understood: ``key: value`` scalars and
``key:`` followed by ``- item`` lines. Anything else inside the block is
ignored rather than reported, so a note with odd metadata still uploads.

A ``books`` key gets special treatment: every entry is split on the first
" by " into ``{"title": ..., "author": ...}``.
"""

from __future__ import annotations

import re
from typing import Any

FRONT_MATTER_PATTERN = re.compile(r"\A---\r?\n(.*?)\r?\n---(?:\r?\n|\Z)", re.DOTALL)
NUMBER_PATTERN = re.compile(r"-?[0-9]+(\.[0-9]+)?")
BOOLEAN_VALUES = {"true": True, "false": False}
LIST_MARKER = "-"
BOOK_SEPARATOR_PATTERN = re.compile(r" by ", re.IGNORECASE)

Scalar = str | int | float | bool


def coerce_scalar(text: str) -> Scalar:
    """Convert a raw value to bool, number or string.

    Args:
        text: Trimmed value text.

    Returns:
        True/False for case-insensitive "true"/"false", an int or float for
        numeric text, otherwise the text with one layer of matching quotes
        removed.
    """
    lowered = text.lower()
    if lowered in BOOLEAN_VALUES:
        return BOOLEAN_VALUES[lowered]
    match = NUMBER_PATTERN.fullmatch(text)
    if match:
        return float(text) if match.group(1) else int(text)
    if len(text) >= 2 and text[0] == text[-1] and text[0] in "\"'":
        return text[1:-1]
    return text


def parse_book_entry(entry: str) -> dict[str, str]:
    """Split a "Title by Author" entry.

    The first case-insensitive " by " after the start of the entry
    separates title from author. Without one the whole entry is the title.
    """
    match = BOOK_SEPARATOR_PATTERN.search(entry)
    if match and match.start() > 0:
        return {
            "title": entry[: match.start()].strip(),
            "author": entry[match.end() :].strip(),
        }
    return {"title": entry.strip(), "author": ""}


def extract_front_matter(document: str) -> dict[str, Any] | None:
    """Extract the front matter block at the head of a note.

    Args:
        document: Full note text.

    Returns:
        Ordered mapping of keys to scalars or lists, or None when the note
        does not start with a ``---`` fenced block.
    """
    match = FRONT_MATTER_PATTERN.match(document)
    if not match:
        return None

    data: dict[str, Any] = {}
    list_key: str | None = None

    for raw_line in match.group(1).split("\n"):
        line = raw_line.rstrip("\r")
        if not line.strip():
            continue

        stripped = line.lstrip()
        indented = len(stripped) != len(line)
        is_list_item = stripped.startswith(LIST_MARKER)

        if not indented and not is_list_item and ":" in line:
            key, _, rest = line.partition(":")
            key = key.strip()
            value = rest.strip()
            if value:
                data[key] = coerce_scalar(value)
                list_key = None
            else:
                data[key] = []
                list_key = key
        elif is_list_item and list_key is not None:
            item = stripped[len(LIST_MARKER):].strip()
            data[list_key].append(coerce_scalar(item))

    books = data.get("books")
    if isinstance(books, list):
        data["books"] = [parse_book_entry(str(entry)) for entry in books]
    elif isinstance(books, str):
        data["books"] = [parse_book_entry(books)]

    return data
