"""Frame composition for the terminal UI.

Builds one full-screen frame as a string: the tree panel, a divider, the
content panel, and the status line; or the modal help page while help is
open. Nothing here mutates session state.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from .ansi import clip_ansi_line, display_width
from .runtime.session import CONTENT_PADDING

if TYPE_CHECKING:
    from .runtime.session import Session

RESET = "\033[0m"
REVERSE = "\033[7m"
FRAME_START = "\033[H\033[J"
DIVIDER = "\033[2m│\033[0m"
DIVIDER_FOCUSED = "\033[38;5;81m│\033[0m"
ERROR_STYLE = "\033[1;38;5;203m"
BOX_STYLE = "\033[38;5;45m"
KEY_STYLE = "\033[38;5;229m"
HEADING_STYLE = "\033[1;38;5;81m"
HELP_HINT = "│ ? Help"
HELP_TITLE = " lazymd help "


def _keys(*bindings: tuple[str, str]) -> str:
    return "  " + "   ".join(f"{KEY_STYLE}{keys}{RESET} {action}" for keys, action in bindings)


HELP_LINES: tuple[str, ...] = (
    "",
    f"{HEADING_STYLE}General{RESET}",
    _keys(("?", "toggle help"), ("q/Esc", "close help")),
    _keys(("Ctrl+H/Ctrl+L", "focus tree / content")),
    _keys(("t", "show/hide tree pane"), ("Shift+Left/Right", "resize tree")),
    _keys(("/", "search"), ("n/N", "next/previous match")),
    _keys(("q/Ctrl+C", "quit")),
    "",
    f"{HEADING_STYLE}Tree pane{RESET}",
    _keys(("j/k", "move"), ("Ctrl+D/U", "half panel"), ("gg/G", "top/bottom")),
    _keys(("l/Enter", "open file or expand"), ("h", "collapse/parent")),
    _keys(("Ctrl+J/K", "scroll content"), ("Ctrl+F/B", "half page content")),
    "",
    f"{HEADING_STYLE}Content pane{RESET}",
    _keys(("j/k", "line"), ("Ctrl+D/U", "half page"), ("Space/b", "page")),
    _keys(("gg/G", "top/bottom")),
    "",
    f"\033[2;38;5;250mPress ? / Esc / q to close{RESET}",
)


def _restyle(text: str, sgr: str) -> str:
    # Re-apply the highlight after every reset inside the text.
    if not text:
        return text
    return f"\033[{sgr}m" + text.replace(RESET, f"\033[0;{sgr}m") + RESET


def selected_with_ansi(text: str) -> str:
    """Reverse-video the focused selection while keeping its colors."""
    return _restyle(text, "7")


def selected_inactive(text: str) -> str:
    return _restyle(text, "48;5;237")


def build_status_line(left_text: str, width: int, right_text: str = HELP_HINT) -> str:
    """Left text and a right-aligned hint within ``width - 1`` columns."""
    usable = max(1, width - 1)
    hint_width = display_width(right_text)
    if usable <= hint_width:
        return right_text[-usable:]
    left = clip_ansi_line(left_text, max(0, usable - hint_width - 1))
    return left + " " * (usable - display_width(left) - hint_width) + right_text


def _pad(text: str, width: int) -> str:
    used = display_width(text)
    if used < width:
        return text + " " * (width - used)
    return text


def _scroll_label(session: Session) -> str:
    content = session.state.content
    total = content.total_lines()
    if total <= 0:
        return ""
    start = min(content.y_offset + 1, total)
    end = min(content.y_offset + content.height, total)
    return f"({start}-{end}/{total})"


def status_text(session: Session) -> tuple[str, bool]:
    """Left status text and whether it reports an error."""
    state = session.state
    if state.search_editing:
        return f"/{state.search_buffer}_", False
    if state.status_message:
        return state.status_message, state.status_kind == "error"
    parts = [state.header_path or ""]
    search_status = session.search.status_text()
    if search_status:
        parts.append(search_status)
    scroll = _scroll_label(session)
    if scroll:
        parts.append(scroll)
    return "  ".join(part for part in parts if part), False


def _tree_row(session: Session, row: int, width: int) -> str:
    tree = session.tree
    idx = tree.start + row
    if idx >= len(tree.lines):
        return ""
    text = clip_ansi_line(tree.lines[idx].label, width)
    if idx == tree.selected:
        text = selected_with_ansi(text) if session.state.tree_focus else selected_inactive(text)
    return text


def build_frame(session: Session) -> str:
    """Compose the full-screen frame for the current session state."""
    state = session.state
    width = max(1, state.width)
    height = max(2, state.height)
    if state.show_help:
        return build_help_page(width, height)

    tree_width = state.tree_width if session.tree_shown() else 0
    divider = DIVIDER_FOCUSED if state.tree_focus else DIVIDER
    text_width = max(1, state.content.width - CONTENT_PADDING)
    visible = state.content.visible_lines()

    rows: list[str] = []
    for row in range(max(1, height - 1)):
        cells: list[str] = []
        if tree_width > 0:
            cells.append(_pad(_tree_row(session, row, tree_width), tree_width))
            cells.append(divider)
        if row < len(visible):
            text = clip_ansi_line(visible[row], text_width)
            cells.append(" " + text)
            if "\033" in text:
                cells.append(RESET)
        rows.append("".join(cells))

    left, is_error = status_text(session)
    status_style = ERROR_STYLE if is_error else REVERSE
    rows.append(f"{status_style}{build_status_line(left, width)}{RESET}")
    return FRAME_START + "\r\n".join(rows)


def build_help_page(width: int, height: int) -> str:
    """Draw the key reference as a bordered box centered on a cleared screen."""
    box_width = min(76, max(40, width - 10))
    box_height = min(len(HELP_LINES) + 3, max(8, height - 2))
    left = max(0, (width - box_width) // 2) + 1
    top = max(0, (height - box_height) // 2) + 1
    inner = box_width - 2
    body_rows = box_height - 2
    shown = min(len(HELP_LINES), body_rows - 1)

    border = "─" * inner
    title_at = max(1, (inner - len(HELP_TITLE)) // 2)
    title = f"\033[1m{HELP_TITLE}\033[22m"
    rows = [f"{BOX_STYLE}╭{border[:title_at]}{title}{border[title_at + len(HELP_TITLE):]}╮{RESET}"]
    for idx in range(body_rows):
        text = HELP_LINES[idx] if idx < shown else ""
        cell = _pad(clip_ansi_line(text, inner - 2), inner - 2)
        rows.append(f"{BOX_STYLE}│{RESET} {cell}{RESET} {BOX_STYLE}│{RESET}")
    rows.append(f"{BOX_STYLE}╰{border}╯{RESET}")

    placed = (f"\033[{top + offset};{left}H{row}" for offset, row in enumerate(rows))
    return FRAME_START + "".join(placed)


__all__ = [
    "HELP_LINES",
    "build_frame",
    "build_help_page",
    "build_status_line",
    "selected_inactive",
    "selected_with_ansi",
    "status_text",
]
