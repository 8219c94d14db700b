"""Lesson document parser — YAML frontmatter plus Markdown body.

A document opens with a ``---`` line, carries a YAML mapping, and closes the
block with the next ``---`` line; everything after that is the body::

    ---
    id: what-is-ai
    title: What is AI?
    ---
    # Lesson text...

A document without an opening fence has no metadata and is all body.
"""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path
from typing import Any

import yaml

FENCE = "---"


class DocumentParseError(ValueError):
    """Metadata block cannot be split from the body or is not a YAML mapping."""


def _is_fence(line: str) -> bool:
    return line.rstrip("\r\n").rstrip() == FENCE


def _load_metadata(block: str) -> dict[str, Any]:
    try:
        data = yaml.safe_load(block)
    except yaml.YAMLError as e:
        raise DocumentParseError(f"Invalid frontmatter: {e}") from e
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise DocumentParseError(f"Frontmatter must be a mapping, got {type(data).__name__}")
    return data


def _collect_block(lines: Iterable[str]) -> tuple[str, bool]:
    """Gather lines up to the closing fence; report whether it was found."""
    block: list[str] = []
    for line in lines:
        if _is_fence(line):
            return "".join(block), True
        block.append(line)
    return "".join(block), False


def split_document(text: str) -> tuple[dict[str, Any], str]:
    """Split a document into its metadata mapping and its body."""
    text = text.removeprefix("\ufeff")
    lines = text.splitlines(keepends=True)
    if not lines or not _is_fence(lines[0]):
        return {}, text

    rest = iter(lines[1:])
    block, closed = _collect_block(rest)
    if not closed:
        raise DocumentParseError("Frontmatter block is never closed")

    body = "".join(rest)
    return _load_metadata(block), body


def read_document(path: Path) -> tuple[dict[str, Any], str]:
    """Read and split a document file."""
    return split_document(path.read_text(encoding="utf-8"))


def read_metadata(path: Path) -> dict[str, Any]:
    """Read a document's metadata only, stopping at the closing fence."""
    with path.open(encoding="utf-8-sig") as fh:
        first = fh.readline()
        if not _is_fence(first):
            return {}
        block, closed = _collect_block(fh)
    if not closed:
        raise DocumentParseError("Frontmatter block is never closed")
    return _load_metadata(block)
