"""Document loading and terminal rendering.

Markdown is colorized with Pygments, then wrapped to the content width with
ANSI-aware wrapping. Control bytes are neutralized before anything reaches
the terminal.
"""

from __future__ import annotations

import re
from functools import lru_cache
from pathlib import Path

from pygments import highlight
from pygments.formatters import Terminal256Formatter
from pygments.lexers import MarkdownLexer
from pygments.styles import get_style_by_name
from pygments.util import ClassNotFound

from .ansi import wrap_ansi_text

DEFAULT_STYLE = "monokai"

# C0 controls except tab/newline/carriage return, DEL, and C1 controls.
_UNSAFE_CONTROL_RE = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f-\x9f]")
_LEXER = MarkdownLexer(stripnl=False)


class RenderError(Exception):
    """Raised when a document cannot be converted to terminal text."""


def read_text(path: Path) -> str:
    """Decode ``path`` as UTF-8 (a leading BOM is dropped), else as latin-1."""
    data = path.read_bytes()
    try:
        return data.decode("utf-8-sig")
    except UnicodeDecodeError:
        return data.decode("latin-1")


def open_document(root_dir: Path, rel_path: str) -> str:
    """Read the document at slash-separated ``rel_path`` under ``root_dir``."""
    return read_text(document_abs_path(root_dir, rel_path))


def document_abs_path(root_dir: Path, rel_path: str) -> Path:
    if not rel_path:
        return root_dir
    return root_dir.joinpath(*rel_path.split("/"))


def _escape_control(match: re.Match[str]) -> str:
    return f"\\x{ord(match.group(0)):02x}"


def sanitize_terminal_text(source: str) -> str:
    """Show control bytes as ``\\xNN`` so document text cannot drive the terminal."""
    return _UNSAFE_CONTROL_RE.sub(_escape_control, source)


def normalize_style(style: str) -> str:
    """Return ``style`` when Pygments knows it, otherwise the default style."""
    try:
        get_style_by_name(style)
    except ClassNotFound:
        return DEFAULT_STYLE
    return style


@lru_cache(maxsize=None)
def _formatter_for_style(style: str) -> Terminal256Formatter:
    return Terminal256Formatter(style=normalize_style(style))


def render_document(
    raw: str,
    wrap_width: int,
    style: str = DEFAULT_STYLE,
    no_color: bool = False,
) -> str:
    """Convert raw Markdown into styled terminal text wrapped at ``wrap_width``.

    ``wrap_width <= 0`` disables wrapping. Raises ``RenderError`` when the
    highlighter fails.
    """
    text = sanitize_terminal_text(raw.replace("\r\n", "\n"))
    if not no_color and text:
        try:
            text = highlight(text, _LEXER, _formatter_for_style(style))
        except Exception as exc:
            raise RenderError(f"failed to render document: {exc}") from exc
        if not raw.endswith("\n") and text.endswith("\n"):
            text = text[:-1]
    return wrap_ansi_text(text, wrap_width)


__all__ = [
    "DEFAULT_STYLE",
    "RenderError",
    "document_abs_path",
    "normalize_style",
    "open_document",
    "read_text",
    "render_document",
    "sanitize_terminal_text",
]
