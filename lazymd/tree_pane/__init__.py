"""Tree-pane row projection and selection navigation."""

from .flatten import FlatLine, flatten_tree, format_tree_label
from .selection import TreeSelection, clamp

__all__ = [
    "FlatLine",
    "TreeSelection",
    "clamp",
    "flatten_tree",
    "format_tree_label",
]
