"""Domain model for the navigable document tree.

This package contains non-UI tree primitives:
- the ``Node`` entity with ownership and ordering rules
- loaders that list a directory's children on demand
- eager builders from precomputed relative path lists
"""

from __future__ import annotations

from .build import build_filtered_tree, build_tree, collect_document_paths, insert_path
from .loader import (
    DOCUMENT_SUFFIXES,
    SKIPPED_DIR_NAMES,
    FSLoader,
    Loader,
    PathListLoader,
    is_document_name,
    should_skip_dir,
)
from .node import Node, join_relative, node_sort_key

__all__ = [
    "Node",
    "join_relative",
    "node_sort_key",
    "Loader",
    "FSLoader",
    "PathListLoader",
    "DOCUMENT_SUFFIXES",
    "SKIPPED_DIR_NAMES",
    "is_document_name",
    "should_skip_dir",
    "build_tree",
    "build_filtered_tree",
    "insert_path",
    "collect_document_paths",
]
