"""Tree node datatype with lazy child loading and ordering rules."""

from __future__ import annotations

import weakref
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .loader import Loader


def node_sort_key(node: Node) -> tuple[bool, str]:
    """Directories first, then case-insensitive name order."""
    return (not node.is_dir, node.name.lower())


def join_relative(base: str, part: str) -> str:
    """Join a root-relative slash path with one more segment."""
    if not base:
        return part
    return f"{base}/{part}"


@dataclass(eq=False)
class Node:
    """One file or directory row in the navigable tree.

    ``children`` are owned by this node. ``parent`` is a weak back-reference
    used only for ascending; it never keeps a node alive.
    """

    name: str
    path: str = ""
    is_dir: bool = False
    is_open: bool = False
    children: list[Node] = field(default_factory=list)
    loader: Loader | None = field(default=None, repr=False)
    loaded: bool = False
    _parent_ref: weakref.ref[Node] | None = field(default=None, repr=False)

    @classmethod
    def new_root(cls, name: str, loader: Loader | None = None) -> Node:
        """Create an open root directory node with an empty path."""
        return cls(name=name, path="", is_dir=True, is_open=True, loader=loader)

    @property
    def parent(self) -> Node | None:
        if self._parent_ref is None:
            return None
        return self._parent_ref()

    @parent.setter
    def parent(self, value: Node | None) -> None:
        self._parent_ref = weakref.ref(value) if value is not None else None

    def child_by_name(self, name: str) -> Node | None:
        for child in self.children:
            if child.name == name:
                return child
        return None

    def add_child(self, child: Node) -> Node:
        child.parent = self
        self.children.append(child)
        return child

    def sort_children(self) -> None:
        self.children.sort(key=node_sort_key)

    def sort_recursive(self) -> None:
        """Apply the directory-first ordering at every level below this node."""
        if not self.children:
            return
        self.sort_children()
        for child in self.children:
            if child.is_dir:
                child.sort_recursive()

    def mark_file(self) -> None:
        """Turn this node into a file leaf, dropping any directory state."""
        self.is_dir = False
        self.is_open = False
        self.children = []

    def ensure_loaded(self) -> None:
        """Populate children from the loader on first use.

        Does nothing for files, already-loaded directories, and nodes without a
        loader. Listing errors propagate and leave ``loaded`` false so a later
        call can retry.
        """
        if not self.is_dir or self.loaded or self.loader is None:
            return

        children = self.loader.list(self.path)
        self.children = list(children)
        for child in self.children:
            child.parent = self
            child.loader = self.loader
        self.sort_children()
        self.loaded = True


__all__ = ["Node", "join_relative", "node_sort_key"]
