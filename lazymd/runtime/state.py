from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from ..viewport import Viewport


@dataclass
class AppState:
    raw_content: str = ""
    rendered: str = ""
    header_path: str = ""
    root_dir: Path | None = None
    display_root: str = ""
    active_abs_path: str = ""
    tree_visible: bool = True
    tree_focus: bool = False
    tree_width: int = 0
    tree_width_pref: int | None = None
    wrap_width: int = 0
    width: int = 0
    height: int = 0
    show_help: bool = False
    status_message: str = ""
    status_kind: str = "info"
    pending_key: str = ""
    search_editing: bool = False
    search_buffer: str = ""
    content: Viewport = field(default_factory=Viewport)
    dirty: bool = True


def compose_display_path(root: str, rel: str) -> str:
    """Join the display root and a slash-separated relative path for headers."""
    if not root:
        return rel
    if not rel:
        return root + "/"
    return f"{root}/{rel}"


__all__ = ["AppState", "compose_display_path"]
