"""Tree-pane selection state and navigation intents.

Selection is a single index into the flat rows. Every intent leaves the index
clamped to the rows and the scroll window covering it. Loader errors raised
while expanding propagate after restoring the previous open state.
"""

from __future__ import annotations

from ..tree_model import Node
from .flatten import FlatLine, flatten_tree


def clamp(value: int, low: int, high: int) -> int:
    return max(low, min(value, high))


class TreeSelection:
    """Flat rows, selected index, and scroll window for one tree."""

    def __init__(self, root: Node, height: int = 0) -> None:
        self.root = root
        self.lines: list[FlatLine] = []
        self.selected = 0
        self.start = 0
        self.height = height
        self.max_width = 0

    def rebuild(self) -> int:
        """Recompute visible rows; returns the widest label."""
        lines, max_width = flatten_tree(self.root)
        self.lines = lines
        self.max_width = max_width
        return max_width

    def current_node(self) -> Node | None:
        if not self.lines or not 0 <= self.selected < len(self.lines):
            return None
        return self.lines[self.selected].node

    def index_for_path(self, path: str) -> int:
        for idx, line in enumerate(self.lines):
            if line.node.path == path:
                return idx
        return -1

    def _select_path_or_clamp(self, path: str) -> None:
        idx = self.index_for_path(path)
        if idx >= 0:
            self.selected = idx
        elif self.lines:
            self.selected = clamp(self.selected, 0, len(self.lines) - 1)
        else:
            self.selected = 0
        self.ensure_visible()

    def set_height(self, height: int) -> None:
        self.height = max(0, height)
        self.ensure_visible()

    def page_step(self) -> int:
        return max(1, self.height // 2)

    def move(self, delta: int) -> None:
        if not self.lines:
            return
        self.selected = clamp(self.selected + delta, 0, len(self.lines) - 1)
        self.ensure_visible()

    def select_top(self) -> None:
        if self.lines:
            self.selected = 0
            self.ensure_visible()

    def select_bottom(self) -> None:
        if self.lines:
            self.selected = len(self.lines) - 1
            self.ensure_visible()

    def ensure_visible(self) -> None:
        """Scroll the minimum amount needed to keep the selection on screen."""
        if not self.lines or self.height <= 0:
            return
        if self.selected < self.start:
            self.start = self.selected
            return
        bottom = self.start + self.height - 1
        if self.selected > bottom:
            self.start = self.selected - self.height + 1

    def expand_path(self, path: str) -> None:
        """Open every directory along ``path`` so its row becomes visible."""
        if not path:
            return
        self.root.is_open = True
        current = self.root
        for part in path.split("/"):
            current.ensure_loaded()
            child = current.child_by_name(part)
            if child is None:
                return
            if child.is_dir:
                child.is_open = True
            current = child

    def refresh(self, select_path: str = "") -> None:
        """Reveal ``select_path``, rebuild rows, and select it (or clamp)."""
        self.root.ensure_loaded()
        self.expand_path(select_path)
        self.rebuild()
        self._select_path_or_clamp(select_path)

    def expand_or_descend(self) -> Node | None:
        """Open a closed directory, step into an open one, or return a file.

        The returned node is the file the caller should open; directories
        return ``None``.
        """
        node = self.current_node()
        if node is None:
            return None
        if not node.is_dir:
            return node

        if not node.is_open:
            node.is_open = True
            try:
                node.ensure_loaded()
                self.rebuild()
            except OSError:
                node.is_open = False
                raise
            self._select_path_or_clamp(node.path)
            return None

        node.ensure_loaded()
        if node.children:
            self.move(1)
        return None

    def collapse_or_ascend(self) -> None:
        """Close an open directory, otherwise select the parent row."""
        node = self.current_node()
        if node is None:
            return
        if node.is_dir and node.is_open:
            node.is_open = False
            self.rebuild()
            self._select_path_or_clamp(node.path)
            return
        parent = node.parent
        if parent is not None:
            self.refresh(parent.path)


__all__ = ["TreeSelection", "clamp"]
