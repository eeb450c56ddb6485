"""Eager tree construction from known relative document paths."""

from __future__ import annotations

import os
from collections.abc import Iterable
from pathlib import Path

from .loader import is_document_name, should_skip_dir
from .node import Node, join_relative


def build_tree(root_name: str, paths: Iterable[str]) -> Node:
    """Build a fully populated tree mirroring slash-separated ``paths``.

    Intermediate directories are created on demand. A file whose name already
    exists under its parent is skipped, so the first occurrence wins.
    """
    root = Node.new_root(root_name)

    for rel in paths:
        parts = rel.split("/")
        current = root
        current_path = ""
        for part in parts[:-1]:
            current_path = join_relative(current_path, part)
            child = current.child_by_name(part)
            if child is None:
                child = current.add_child(Node(name=part, path=current_path, is_dir=True))
            current = child

        name = parts[-1]
        if current.child_by_name(name) is not None:
            continue
        current.add_child(Node(name=name, path=join_relative(current_path, name)))

    root.sort_recursive()
    return root


def insert_path(root: Node, rel: str) -> None:
    """Merge one path into ``root``, forcing its last segment to be a file.

    Surrounding slashes are ignored and empty paths are skipped. If the last
    segment already exists as a directory it is converted into a file leaf.
    """
    trimmed = rel.strip("/")
    if not trimmed:
        return

    parts = trimmed.split("/")
    current = root
    parent_path = ""
    for i, part in enumerate(parts):
        is_last = i == len(parts) - 1
        child_path = join_relative(parent_path, part)
        child = current.child_by_name(part)
        if child is None:
            child = current.add_child(Node(name=part, path=child_path, is_dir=not is_last))
        elif not is_last and not child.is_dir:
            child.is_dir = True
        current = child
        parent_path = child_path
    current.mark_file()


def build_filtered_tree(root_name: str, paths: Iterable[str]) -> Node:
    """Build a tree containing only ``paths`` (used by tag-filtered sessions)."""
    root = Node.new_root(root_name)
    for rel in paths:
        insert_path(root, rel)
    root.sort_recursive()
    return root


def collect_document_paths(root: Path) -> list[str]:
    """Walk ``root`` and return relative slash paths of every document.

    Skip-listed directories are pruned below the root (the root itself is
    always walked). Results are sorted case-insensitively.
    """
    files: list[str] = []
    for dirpath, dirnames, filenames in os.walk(root, onerror=_raise_walk_error):
        dirnames[:] = [name for name in dirnames if not should_skip_dir(name)]
        rel_dir = Path(dirpath).relative_to(root).as_posix()
        prefix = "" if rel_dir == "." else rel_dir
        for name in filenames:
            if is_document_name(name):
                files.append(join_relative(prefix, name))

    files.sort(key=str.lower)
    return files


def _raise_walk_error(error: OSError) -> None:
    raise error


__all__ = [
    "build_filtered_tree",
    "build_tree",
    "collect_document_paths",
    "insert_path",
]
