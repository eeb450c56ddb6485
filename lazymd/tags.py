"""Front-matter tag extraction and the tag-to-files index.

Only the leading ``---`` block of a document is parsed. ``tags`` may be a YAML
list or a comma-separated string.
"""

from __future__ import annotations

import os
import re
from dataclasses import dataclass, field
from pathlib import Path

import yaml

from .document import read_text
from .tree_model import is_document_name, should_skip_dir

_FRONT_MATTER_RE = re.compile(r"\A\ufeff?---[ \t]*\r?\n(.*?)\r?\n(?:---|\.\.\.)[ \t]*(?:\r?\n|\Z)", re.DOTALL)


class TagError(ValueError):
    """Raised when a document's front matter cannot be parsed."""


def normalize_tags(value: object) -> list[str]:
    """Trim, drop empties, and de-duplicate tags while keeping their order."""
    raw: list[str] = []
    if isinstance(value, str):
        raw.extend(value.split(","))
    elif isinstance(value, (list, tuple)):
        raw.extend(item for item in value if isinstance(item, str))

    seen: set[str] = set()
    tags: list[str] = []
    for tag in raw:
        trimmed = tag.strip()
        if not trimmed or trimmed in seen:
            continue
        seen.add(trimmed)
        tags.append(trimmed)
    return tags


def parse_front_matter_tags(text: str) -> list[str]:
    match = _FRONT_MATTER_RE.match(text)
    if match is None:
        return []
    try:
        metadata = yaml.safe_load(match.group(1))
    except yaml.YAMLError as exc:
        raise TagError(f"invalid front matter: {exc}") from exc
    if not isinstance(metadata, dict):
        return []
    return normalize_tags(metadata.get("tags"))


def read_front_matter_tags(path: Path) -> list[str]:
    """Return the tags declared in ``path``'s front matter (may be empty)."""
    try:
        return parse_front_matter_tags(read_text(path))
    except TagError as exc:
        raise TagError(f"{path}: {exc}") from exc


@dataclass
class TagIndex:
    """Sorted tags and, for each, the sorted files that declare it."""

    tags: list[str] = field(default_factory=list)
    files_by_tag: dict[str, list[str]] = field(default_factory=dict)

    def add(self, tag: str, file: str) -> None:
        files = self.files_by_tag.setdefault(tag, [])
        if file not in files:
            files.append(file)

    def finalize(self) -> None:
        for files in self.files_by_tag.values():
            files.sort()
        self.tags = sorted(self.files_by_tag)

    def is_empty(self) -> bool:
        return not self.tags


def build_tag_index(target: Path) -> TagIndex:
    """Index tags for every document under a directory, or for a single file.

    Directory entries use slash-separated paths relative to ``target``.
    """
    index = TagIndex()
    if not target.is_dir():
        for tag in read_front_matter_tags(target):
            index.add(tag, target.name)
        index.finalize()
        return index

    for dirpath, dirnames, filenames in os.walk(target):
        dirnames[:] = [name for name in dirnames if not should_skip_dir(name)]
        for name in filenames:
            if not is_document_name(name):
                continue
            path = Path(dirpath) / name
            rel = path.relative_to(target).as_posix()
            for tag in read_front_matter_tags(path):
                index.add(tag, rel)
    index.finalize()
    return index


__all__ = [
    "TagError",
    "TagIndex",
    "build_tag_index",
    "normalize_tags",
    "parse_front_matter_tags",
    "read_front_matter_tags",
]
