"""Projection of the node tree into visible tree-pane rows."""

from __future__ import annotations

from dataclasses import dataclass

from ..ansi import display_width
from ..tree_model import Node


@dataclass(frozen=True)
class FlatLine:
    """One visible tree row: the node, its rendered label, and its depth."""

    node: Node
    label: str
    depth: int


def format_tree_label(node: Node, depth: int) -> str:
    """Render ``node`` as an indented row with an open/closed marker."""
    if depth == 0:
        return f"{node.name}/"
    indent = "  " * (depth - 1)
    if node.is_dir:
        indicator = "- " if node.is_open else "+ "
    else:
        indicator = "  "
    label = f"{indent}{indicator}{node.name}"
    if node.is_dir:
        label += "/"
    return label


def flatten_tree(root: Node) -> tuple[list[FlatLine], int]:
    """Walk open directories depth-first and return rows plus max label width.

    Open directories are loaded before descending, so a listing error from the
    loader propagates to the caller.
    """
    lines: list[FlatLine] = []
    max_width = 0

    def walk(node: Node, depth: int) -> None:
        nonlocal max_width
        label = format_tree_label(node, depth)
        max_width = max(max_width, display_width(label))
        lines.append(FlatLine(node=node, label=label, depth=depth))
        if node.is_dir and node.is_open:
            node.ensure_loaded()
            for child in node.children:
                walk(child, depth + 1)

    walk(root, 0)
    return lines, max_width


__all__ = ["FlatLine", "flatten_tree", "format_tree_label"]
