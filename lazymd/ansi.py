"""Column arithmetic for styled terminal text.

Escape sequences pass through untouched and occupy no cells. Tabs snap to
8-column stops and East Asian wide characters take two cells, so panel edges
stay aligned whatever the renderer emits.
"""

from __future__ import annotations

import re
import unicodedata
from collections.abc import Iterator

ANSI_ESCAPE_RE = re.compile(r"\x1b\[[0-9;?]*[ -/]*[@-~]|\x1b\][^\x07\x1b]*(?:\x07|\x1b\\)")
TAB_STOP = 8


def strip_ansi(text: str) -> str:
    """Drop CSI and OSC sequences, leaving only the printable text."""
    if "\x1b" not in text:
        return text
    return ANSI_ESCAPE_RE.sub("", text)


def char_display_width(ch: str, col: int) -> int:
    """Cells taken by ``ch`` when it starts at column ``col``."""
    if ch == "\t":
        return TAB_STOP - col % TAB_STOP
    if unicodedata.combining(ch):
        return 0
    return 2 if unicodedata.east_asian_width(ch) in ("W", "F") else 1


def iter_segments(text: str) -> Iterator[tuple[str, bool]]:
    """Split ``text`` into ``(segment, is_escape)`` pairs.

    A segment is either one whole escape sequence or one character.
    """
    pos = 0
    end = len(text)
    while pos < end:
        if text[pos] == "\x1b":
            match = ANSI_ESCAPE_RE.match(text, pos)
            if match is not None:
                yield match.group(0), True
                pos = match.end()
                continue
        yield text[pos], False
        pos += 1


def display_width(text: str) -> int:
    """Cells needed to show one styled line."""
    width = 0
    for ch in strip_ansi(text):
        width += char_display_width(ch, width)
    return width


def clip_ansi_line(text: str, max_cols: int) -> str:
    """Keep the prefix of ``text`` that fits in ``max_cols`` cells.

    Escapes inside the kept prefix survive and tabs become spaces. A wide
    character that would straddle the edge is dropped.
    """
    if max_cols <= 0 or not text:
        return ""

    kept: list[str] = []
    used = 0
    for segment, is_escape in iter_segments(text):
        if is_escape:
            kept.append(segment)
            continue
        if used >= max_cols:
            break
        cells = char_display_width(segment, used)
        if used + cells > max_cols:
            break
        kept.append(" " * cells if segment == "\t" else segment)
        used += cells
    return "".join(kept)


def wrap_ansi_line(text: str, width: int) -> list[str]:
    """Break one styled line into rows of at most ``width`` cells.

    Rows end at the last space when the row has one; longer words are split.
    The space a row breaks on is dropped.
    """
    if width <= 0 or not text:
        return [text]

    rows: list[str] = []
    row: list[str] = []
    used = 0
    space_at = -1
    for segment, is_escape in iter_segments(text):
        if is_escape:
            row.append(segment)
            continue

        cells = char_display_width(segment, used)
        if used > 0 and used + cells > width:
            head = "".join(row[: space_at + 1]).rstrip(" ") if space_at >= 0 else ""
            if segment != " " and strip_ansi(head).strip():
                rows.append(head)
                row = row[space_at + 1 :]
            else:
                rows.append("".join(row))
                row = []
            used = display_width("".join(row))
            space_at = -1
            if segment == " ":
                continue
            cells = char_display_width(segment, used)

        if segment == " ":
            space_at = len(row)
        row.append(" " * cells if segment == "\t" else segment)
        used += cells

    rows.append("".join(row))
    return rows


def wrap_ansi_text(text: str, width: int) -> str:
    """Wrap every line of ``text``; ``width <= 0`` leaves it unchanged."""
    if width <= 0:
        return text
    return "\n".join(row for line in text.split("\n") for row in wrap_ansi_line(line, width))


__all__ = [
    "ANSI_ESCAPE_RE",
    "TAB_STOP",
    "char_display_width",
    "clip_ansi_line",
    "display_width",
    "iter_segments",
    "strip_ansi",
    "wrap_ansi_line",
    "wrap_ansi_text",
]
