"""Single-threaded controller that applies messages to session state.

Every key press, resize, and watch event is handed to ``Session.handle`` one
at a time from the main loop. Recoverable failures (listing, reading,
rendering, watch setup) never propagate out of ``handle``; they land in the
status slot on ``AppState`` and the previous state is kept.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from pathlib import Path

from ..config import save_show_tree, save_tree_width
from ..document import DEFAULT_STYLE, RenderError, document_abs_path, open_document, read_text, render_document
from ..messages import FileChanged, KeyPressed, Message, Resized, WatchError
from ..search import TextSearch
from ..tree_model import Node
from ..tree_pane import TreeSelection, clamp
from ..watch import FileWatcher
from .state import AppState, compose_display_path

logger = logging.getLogger(__name__)

MIN_CONTENT_WIDTH = 20
MIN_TREE_PANEL_WIDTH = 18
TREE_LABEL_PADDING = 4
TREE_RESIZE_STEP = 2
CONTENT_PADDING = 2
STATUS_ROWS = 1
SEARCH_CHAR_LIMIT = 256


class Session:
    """Own the tree selection, search, and watcher for one viewer session."""

    def __init__(
        self,
        state: AppState,
        root: Node | None = None,
        *,
        selection_path: str = "",
        watcher: FileWatcher | None = None,
        style: str = DEFAULT_STYLE,
        no_color: bool = False,
        load_document: Callable[[Path, str], str] = open_document,
        persist_tree_width: Callable[[int], None] = save_tree_width,
        persist_show_tree: Callable[[bool], None] = save_show_tree,
    ) -> None:
        self.state = state
        self.tree = TreeSelection(root) if root is not None else None
        self.search = TextSearch()
        self.watcher = watcher
        self.style = style
        self.no_color = no_color
        self._load_document = load_document
        self._persist_tree_width = persist_tree_width
        self._persist_show_tree = persist_show_tree

        if self.tree is None:
            state.tree_visible = False
            state.tree_focus = False
        else:
            self._refresh_tree(selection_path)

    # Status slot

    def set_error(self, error: Exception | str) -> None:
        self.state.status_message = str(error)
        self.state.status_kind = "error"

    def set_info(self, message: str) -> None:
        self.state.status_message = message
        self.state.status_kind = "info"

    def clear_status(self) -> None:
        self.state.status_message = ""
        self.state.status_kind = "info"

    # Message dispatch

    def handle(self, message: Message) -> bool:
        """Apply one message; returns False when the session should quit."""
        self.state.dirty = True
        if isinstance(message, KeyPressed):
            return self.handle_key(message.key)
        if isinstance(message, Resized):
            self.resize(message.width, message.height)
        elif isinstance(message, FileChanged):
            self.handle_file_event(message)
        elif isinstance(message, WatchError):
            logger.warning("watcher reported: %s", message.error)
            self.set_error(message.error)
        return True

    def handle_key(self, key: str) -> bool:
        state = self.state
        if state.search_editing:
            self._handle_search_prompt_key(key)
            return True

        if key != "g":
            state.pending_key = ""

        if state.show_help:
            state.pending_key = ""
            if key in {"q", "?", "esc"}:
                state.show_help = False
            return True

        self.clear_status()

        if key in {"q", "ctrl+c"}:
            return False
        if key == "?":
            state.show_help = True
            state.pending_key = ""
            return True
        if key == "ctrl+h":
            if self.tree_shown():
                state.tree_focus = True
            return True
        if key == "ctrl+l":
            state.tree_focus = False
            return True
        if key == "t":
            self.toggle_tree()
            return True
        if key == "/":
            self.enter_search_prompt()
            return True
        if key == "n":
            self.next_search_match()
            return True
        if key == "N":
            self.previous_search_match()
            return True
        if key in {"shift+left", "shift+right"}:
            self.adjust_tree_width(-TREE_RESIZE_STEP if key == "shift+left" else TREE_RESIZE_STEP)
            return True

        if state.tree_focus and self.tree_shown():
            try:
                self._handle_tree_key(key)
            except OSError as exc:
                logger.warning("tree load failed: %s", exc)
                self.set_error(exc)
            self._sync_layout()
            return True

        self._handle_content_key(key)
        return True

    def _consume_pending_g(self) -> bool:
        """Return True on the second ``g`` of ``gg``; arm the slot otherwise."""
        if self.state.pending_key == "g":
            self.state.pending_key = ""
            return True
        self.state.pending_key = "g"
        return False

    def _handle_tree_key(self, key: str) -> None:
        tree = self.tree
        content = self.state.content
        if key in {"j", "down"}:
            tree.move(1)
        elif key in {"k", "up"}:
            tree.move(-1)
        elif key == "ctrl+d":
            tree.move(tree.page_step())
        elif key == "ctrl+u":
            tree.move(-tree.page_step())
        elif key == "ctrl+j":
            content.scroll_down(1)
        elif key == "ctrl+k":
            content.scroll_up(1)
        elif key == "ctrl+f":
            content.half_page_down()
        elif key == "ctrl+b":
            content.half_page_up()
        elif key in {"l", "right", "enter"}:
            node = tree.expand_or_descend()
            if node is not None:
                self.open_file(node)
        elif key in {"h", "left"}:
            tree.collapse_or_ascend()
        elif key == "g":
            if self._consume_pending_g():
                tree.select_top()
        elif key == "G":
            tree.select_bottom()

    def _handle_content_key(self, key: str) -> None:
        content = self.state.content
        if key in {"j", "down"}:
            content.scroll_down(1)
        elif key in {"k", "up"}:
            content.scroll_up(1)
        elif key in {"ctrl+d", "d"}:
            content.half_page_down()
        elif key in {"ctrl+u", "u"}:
            content.half_page_up()
        elif key in {"pgdown", " ", "f"}:
            content.page_down()
        elif key in {"pgup", "b"}:
            content.page_up()
        elif key == "g":
            if self._consume_pending_g():
                content.goto_top()
        elif key == "G":
            content.goto_bottom()

    # Tree

    def tree_shown(self) -> bool:
        return self.tree is not None and self.state.tree_visible

    def _refresh_tree(self, select_path: str = "") -> None:
        try:
            self.tree.refresh(select_path)
        except OSError as exc:
            logger.warning("tree refresh failed: %s", exc)
            self.set_error(exc)

    def toggle_tree(self) -> None:
        if self.tree is None:
            return
        state = self.state
        state.tree_visible = not state.tree_visible
        if not state.tree_visible:
            state.tree_focus = False
        self._persist_show_tree(state.tree_visible)
        self.resize(state.width, state.height)

    def adjust_tree_width(self, delta: int) -> None:
        if not self.tree_shown() or self.state.width <= 0:
            return
        state = self.state
        current = state.tree_width or self.preferred_tree_width()
        max_panel = max(state.width // 2, MIN_TREE_PANEL_WIDTH)
        state.tree_width_pref = clamp(current + delta, MIN_TREE_PANEL_WIDTH, max_panel)
        if self.tree_panel_width(state.width) == state.tree_width:
            return
        self.resize(state.width, state.height)
        self._persist_tree_width(state.tree_width)

    def preferred_tree_width(self) -> int:
        if self.state.tree_width_pref:
            return self.state.tree_width_pref
        max_width = self.tree.max_width if self.tree is not None else 0
        return max(max_width + TREE_LABEL_PADDING, MIN_TREE_PANEL_WIDTH)

    def tree_panel_width(self, total_width: int) -> int:
        """Tree panel columns for ``total_width``; 0 while the tree is hidden."""
        if not self.tree_shown():
            return 0
        max_panel = max(total_width // 2, MIN_TREE_PANEL_WIDTH)
        width = clamp(self.preferred_tree_width(), MIN_TREE_PANEL_WIDTH, max_panel)
        if total_width - width < MIN_CONTENT_WIDTH:
            width = max(total_width - MIN_CONTENT_WIDTH, 0)
        return min(width, total_width)

    def _sync_layout(self) -> None:
        # Tree labels can widen after a load; reflow only when the panel changes.
        state = self.state
        if state.width > 0 and self.tree_panel_width(state.width) != state.tree_width:
            self.resize(state.width, state.height)

    # Layout and rendering

    def resize(self, width: int, height: int) -> None:
        """Recompute panel geometry and re-render content at the new wrap width."""
        if width <= 0 or height <= STATUS_ROWS:
            return
        state = self.state
        state.width = width
        state.height = height

        tree_width = self.tree_panel_width(width)
        content_width = width - tree_width
        if tree_width > 0:
            content_width -= 1
        content_width = max(content_width, MIN_CONTENT_WIDTH)
        body_height = max(height - STATUS_ROWS, 1)

        state.tree_width = tree_width
        state.content.width = content_width
        state.content.height = body_height
        state.wrap_width = max(content_width - CONTENT_PADDING, 0)
        if self.tree is not None:
            self.tree.set_height(body_height)

        self.render_content()

    def render_content(self) -> bool:
        state = self.state
        try:
            rendered = render_document(state.raw_content, state.wrap_width, self.style, self.no_color)
        except RenderError as exc:
            logger.warning("render failed: %s", exc)
            self.set_error(exc)
            return False
        self.clear_status()
        state.rendered = rendered
        state.content.set_content(rendered)
        self._on_content_changed()
        return True

    def _on_content_changed(self) -> None:
        found = self.search.on_content_changed(self.state.rendered)
        if found is None:
            return
        if not found:
            self.set_info(f"no match for '{self.search.query}'")
            return
        self.goto_search_match()

    # Documents and watching

    def open_file(self, node: Node) -> None:
        """Read ``node``'s document, show it from the top, and watch it."""
        state = self.state
        if state.root_dir is None:
            return
        try:
            raw = self._load_document(state.root_dir, node.path)
        except OSError as exc:
            logger.warning("open failed for %s: %s", node.path, exc)
            self.set_error(exc)
            return
        abs_path = document_abs_path(state.root_dir, node.path)
        state.raw_content = raw
        state.active_abs_path = str(abs_path)
        state.header_path = compose_display_path(state.display_root, node.path)
        rendered = self.render_content()
        state.content.goto_top()
        if rendered:
            self.start_watching(state.active_abs_path)

    def start_watching(self, path: str) -> None:
        if self.watcher is None or not path:
            return
        try:
            self.watcher.start_watching(path)
        except OSError as exc:
            logger.warning("cannot watch %s: %s", path, exc)
            self.set_error(exc)

    def handle_file_event(self, message: FileChanged) -> None:
        if self.watcher is None or not self.watcher.is_watched(message.path):
            logger.debug("ignoring %s event for %s", message.op, message.path)
            return
        logger.debug("reloading after %s event", message.op)
        self.reload_active_file()

    def reload_active_file(self) -> None:
        """Re-read the open document, keeping the scroll offset where possible."""
        state = self.state
        if not state.active_abs_path:
            return
        try:
            raw = read_text(Path(state.active_abs_path))
        except OSError as exc:
            logger.warning("reload failed: %s", exc)
            self.set_error(exc)
            return
        offset = state.content.y_offset
        state.raw_content = raw
        if self.render_content():
            state.content.set_y_offset(offset)

    # Search

    def enter_search_prompt(self) -> None:
        self.state.search_editing = True
        self.state.pending_key = ""
        self.state.search_buffer = self.search.query

    def _handle_search_prompt_key(self, key: str) -> None:
        state = self.state
        if key == "enter":
            query = state.search_buffer.strip()
            state.search_editing = False
            if not query:
                self.search.clear()
                self.clear_status()
                return
            self.perform_search(query)
        elif key in {"esc", "ctrl+c"}:
            state.search_editing = False
        elif key == "backspace":
            state.search_buffer = state.search_buffer[:-1]
        elif key == "ctrl+u":
            state.search_buffer = ""
        elif len(key) == 1 and key.isprintable() and len(state.search_buffer) < SEARCH_CHAR_LIMIT:
            state.search_buffer += key

    def perform_search(self, query: str) -> None:
        if not self.search.perform(self.state.rendered, query):
            self.set_info(f"no match for '{self.search.query}'")
            return
        self.clear_status()
        self.goto_search_match()

    def next_search_match(self) -> None:
        if not self.search.matches:
            return
        self.search.next()
        self.goto_search_match()

    def previous_search_match(self) -> None:
        if not self.search.matches:
            return
        self.search.previous()
        self.goto_search_match()

    def goto_search_match(self) -> None:
        """Scroll so the current match line is the top row, clamped to the end."""
        line = self.search.current_line()
        if line is None:
            return
        content = self.state.content
        max_offset = max(content.total_lines() - content.height, 0)
        content.set_y_offset(clamp(line, 0, max_offset))

    def close(self) -> None:
        if self.watcher is not None:
            self.watcher.stop()


__all__ = [
    "CONTENT_PADDING",
    "MIN_CONTENT_WIDTH",
    "MIN_TREE_PANEL_WIDTH",
    "STATUS_ROWS",
    "Session",
]
