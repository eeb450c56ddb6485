"""Child-listing strategies for lazily expanded tree nodes.

``FSLoader`` reads the real filesystem and remembers, per directory, whether
its subtree holds any document. ``PathListLoader`` answers from a precomputed
list of relative paths. Both only return immediate children.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Iterable
from pathlib import Path
from typing import Protocol

from .node import Node, join_relative

logger = logging.getLogger(__name__)

DOCUMENT_SUFFIXES: tuple[str, ...] = (".md", ".mdx", ".markdown")
SKIPPED_DIR_NAMES: frozenset[str] = frozenset(
    {".git", "node_modules", ".hg", ".svn", ".idea", ".vscode"}
)


def is_document_name(name: str) -> bool:
    """Return whether ``name`` has a recognized Markdown suffix."""
    return name.lower().endswith(DOCUMENT_SUFFIXES)


def should_skip_dir(name: str) -> bool:
    """Return whether a directory is a metadata/dependency dir never browsed."""
    return name.lower() in SKIPPED_DIR_NAMES


class Loader(Protocol):
    def list(self, path: str) -> list[Node]:
        """Return immediate children of the directory at root-relative ``path``."""
        ...


class FSLoader:
    """Filesystem-backed loader rooted at one directory.

    The subtree cache is filled on every ``has_markdown`` call, recursive
    calls included, and is never invalidated.
    """

    def __init__(self, root: Path | str) -> None:
        self.root = Path(root)
        self.cache: dict[str, bool] = {}

    def _abs(self, rel_path: str) -> Path:
        if not rel_path:
            return self.root
        return self.root.joinpath(*rel_path.split("/"))

    def list(self, path: str) -> list[Node]:
        directory = self._abs(path)
        if not directory.is_dir():
            if not directory.exists():
                raise FileNotFoundError(f"no such directory: {directory}")
            raise NotADirectoryError(f"path is not a directory: {directory}")

        nodes: list[Node] = []
        with os.scandir(directory) as entries:
            for entry in entries:
                name = entry.name
                if entry.is_dir(follow_symlinks=False):
                    if should_skip_dir(name):
                        continue
                    child_path = join_relative(path, name)
                    if not self.has_markdown(child_path):
                        continue
                    nodes.append(Node(name=name, path=child_path, is_dir=True))
                    continue
                if not is_document_name(name):
                    continue
                nodes.append(Node(name=name, path=join_relative(path, name)))
        logger.debug("listed %d children under %r", len(nodes), path)
        return nodes

    def has_markdown(self, path: str) -> bool:
        """Return whether the subtree at ``path`` contains at least one document."""
        cached = self.cache.get(path)
        if cached is not None:
            return cached

        with os.scandir(self._abs(path)) as entries:
            for entry in entries:
                name = entry.name
                if entry.is_dir(follow_symlinks=False):
                    if should_skip_dir(name):
                        continue
                    if self.has_markdown(join_relative(path, name)):
                        self.cache[path] = True
                        return True
                    continue
                if is_document_name(name):
                    self.cache[path] = True
                    return True

        self.cache[path] = False
        return False


class PathListLoader:
    """Loader over a fixed set of relative document paths."""

    def __init__(self, paths: Iterable[str]) -> None:
        self._files: dict[str, list[str]] = {}
        self._dirs: dict[str, list[str]] = {"": []}
        for raw in paths:
            rel = raw.strip("/")
            if not rel:
                continue
            parent = ""
            parts = rel.split("/")
            for part in parts[:-1]:
                child = join_relative(parent, part)
                if child not in self._dirs:
                    self._dirs[child] = []
                    self._dirs.setdefault(parent, []).append(part)
                parent = child
            names = self._files.setdefault(parent, [])
            if parts[-1] not in names:
                names.append(parts[-1])

    def list(self, path: str) -> list[Node]:
        if path not in self._dirs:
            raise FileNotFoundError(f"no such directory: {path!r}")
        nodes = [
            Node(name=name, path=join_relative(path, name), is_dir=True)
            for name in self._dirs[path]
        ]
        seen = set(self._dirs[path])
        for name in self._files.get(path, []):
            if name in seen:
                continue
            nodes.append(Node(name=name, path=join_relative(path, name)))
        return nodes


__all__ = [
    "DOCUMENT_SUFFIXES",
    "SKIPPED_DIR_NAMES",
    "FSLoader",
    "Loader",
    "PathListLoader",
    "is_document_name",
    "should_skip_dir",
]
