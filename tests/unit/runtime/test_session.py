"""Tests for the session controller: keys, layout, documents, watch, search."""

from __future__ import annotations

import tempfile
import unittest
from pathlib import Path
from unittest import mock

from lazymd.document import RenderError
from lazymd.messages import FileChanged, KeyPressed, Resized, WatchError
from lazymd.runtime import AppState, Session
from lazymd.tree_model import FSLoader, Node, build_filtered_tree
from lazymd.watch import FileWatcher, normalize_path

LONG_NAME = "a-very-long-document-name.md"


class _FakeObserver:
    def __init__(self) -> None:
        self.daemon = False

    def start(self) -> None:
        pass

    def schedule(self, handler, path: str, recursive: bool = False):
        return object()

    def unschedule(self, watch) -> None:
        pass

    def stop(self) -> None:
        pass

    def join(self, timeout: float | None = None) -> None:
        pass


class _RejectingObserver(_FakeObserver):
    def schedule(self, handler, path: str, recursive: bool = False):
        raise PermissionError("watch denied")


def _numbered(count: int, prefix: str = "line") -> str:
    return "\n".join(f"{prefix} {idx}" for idx in range(1, count + 1))


class SessionTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self._tmp.cleanup)
        self.root = Path(self._tmp.name) / "docs"
        (self.root / "sub").mkdir(parents=True)
        (self.root / "a.md").write_text(_numbered(40), encoding="utf-8")
        (self.root / "b.md").write_text("# B\n", encoding="utf-8")
        (self.root / "sub" / LONG_NAME).write_text("nested\n", encoding="utf-8")
        (self.root / "notes.txt").write_text("not a document\n", encoding="utf-8")
        self.saved_widths: list[int] = []
        self.saved_visibility: list[bool] = []

    def make_session(self, observer_factory=_FakeObserver, **kwargs) -> Session:
        state = AppState(
            header_path="docs/",
            root_dir=self.root,
            display_root="docs",
            tree_visible=True,
            tree_focus=True,
        )
        session = Session(
            state,
            Node.new_root("docs", FSLoader(self.root)),
            watcher=FileWatcher(observer_factory=observer_factory),
            no_color=True,
            persist_tree_width=self.saved_widths.append,
            persist_show_tree=self.saved_visibility.append,
            **kwargs,
        )
        session.handle(Resized(width=80, height=12))
        return session

    def press(self, session: Session, *keys: str) -> bool:
        result = True
        for key in keys:
            result = session.handle(KeyPressed(key=key))
        return result

    def open_path(self, session: Session, rel: str) -> None:
        session.tree.selected = session.tree.index_for_path(rel)
        self.press(session, "enter")


class SessionLayoutTests(SessionTestCase):
    def test_initial_rows_and_layout(self) -> None:
        session = self.make_session()
        labels = [line.label for line in session.tree.lines]
        self.assertEqual(labels, ["docs/", "+ sub/", "  a.md", "  b.md"])

        state = session.state
        self.assertEqual(state.tree_width, 18)
        self.assertEqual(state.content.width, 80 - 18 - 1)
        self.assertEqual(state.wrap_width, state.content.width - 2)
        self.assertEqual(state.content.height, 11)
        self.assertEqual(session.tree.height, 11)

    def test_invalid_resize_is_ignored(self) -> None:
        session = self.make_session()
        session.handle(Resized(width=0, height=40))
        session.handle(Resized(width=100, height=1))
        self.assertEqual((session.state.width, session.state.height), (80, 12))

    def test_tree_panel_grows_with_expanded_labels(self) -> None:
        session = self.make_session()
        session.tree.selected = session.tree.index_for_path("sub")
        self.press(session, "l")

        self.assertEqual(session.tree.max_width, len("    " + LONG_NAME))
        self.assertEqual(session.state.tree_width, len("    " + LONG_NAME) + 4)
        self.assertEqual(session.state.content.width, 80 - session.state.tree_width - 1)

    def test_toggle_tree_persists_and_frees_width(self) -> None:
        session = self.make_session()
        self.press(session, "t")

        state = session.state
        self.assertFalse(state.tree_visible)
        self.assertFalse(state.tree_focus)
        self.assertEqual(state.tree_width, 0)
        self.assertEqual(state.content.width, 80)
        self.assertEqual(self.saved_visibility, [False])

        self.press(session, "t")
        self.assertTrue(state.tree_visible)
        self.assertEqual(state.tree_width, 18)
        self.assertEqual(self.saved_visibility, [False, True])

    def test_tree_resize_keys_persist_changed_width_only(self) -> None:
        session = self.make_session()
        self.press(session, "shift+left")
        self.assertEqual(session.state.tree_width, 18)
        self.assertEqual(self.saved_widths, [])

        self.press(session, "shift+right")
        self.assertEqual(session.state.tree_width, 20)
        self.assertEqual(session.state.content.width, 80 - 20 - 1)
        self.assertEqual(self.saved_widths, [20])

    def test_focus_keys(self) -> None:
        session = self.make_session()
        self.press(session, "ctrl+l")
        self.assertFalse(session.state.tree_focus)
        self.press(session, "ctrl+h")
        self.assertTrue(session.state.tree_focus)

        self.press(session, "t", "ctrl+h")
        self.assertFalse(session.state.tree_focus)

    def test_session_without_tree(self) -> None:
        session = Session(AppState(raw_content=_numbered(3)), no_color=True)
        session.handle(Resized(width=40, height=10))

        self.assertIsNone(session.tree)
        self.assertFalse(session.tree_shown())
        self.assertEqual(session.state.content.width, 40)
        self.assertEqual(session.state.content.lines, ["line 1", "line 2", "line 3"])
        self.press(session, "t")
        self.assertFalse(session.state.tree_visible)

    def test_selection_path_is_revealed_and_selected(self) -> None:
        root = build_filtered_tree("docs", ["a.md", "sub/x.md"])
        session = Session(AppState(root_dir=self.root, display_root="docs"), root, selection_path="sub/x.md")
        self.assertEqual(session.tree.current_node().path, "sub/x.md")


class SessionKeyTests(SessionTestCase):
    def test_quit_keys(self) -> None:
        session = self.make_session()
        self.assertFalse(session.handle(KeyPressed(key="q")))
        self.assertFalse(session.handle(KeyPressed(key="ctrl+c")))

    def test_help_closes_only_on_dedicated_keys(self) -> None:
        session = self.make_session()
        self.open_path(session, "a.md")
        self.press(session, "ctrl+l", "?")
        self.assertTrue(session.state.show_help)

        self.press(session, "j", "G")
        self.assertTrue(session.state.show_help)
        self.assertEqual(session.state.content.y_offset, 0)

        self.assertTrue(self.press(session, "q"))
        self.assertFalse(session.state.show_help)

        self.press(session, "?", "esc")
        self.assertFalse(session.state.show_help)

    def test_content_scrolling_keys(self) -> None:
        session = self.make_session()
        self.open_path(session, "a.md")
        self.press(session, "ctrl+l")
        content = session.state.content

        self.press(session, "j", "j")
        self.assertEqual(content.y_offset, 2)
        self.press(session, "d")
        self.assertEqual(content.y_offset, 7)
        self.press(session, "u")
        self.assertEqual(content.y_offset, 2)
        self.press(session, " ")
        self.assertEqual(content.y_offset, 13)
        self.press(session, "b")
        self.assertEqual(content.y_offset, 2)
        self.press(session, "G")
        self.assertEqual(content.y_offset, 29)
        self.press(session, "pgdown")
        self.assertEqual(content.y_offset, 29)

    def test_gg_needs_two_presses(self) -> None:
        session = self.make_session()
        self.open_path(session, "a.md")
        self.press(session, "ctrl+l", "G", "g")
        self.assertEqual(session.state.pending_key, "g")
        self.assertEqual(session.state.content.y_offset, 29)

        self.press(session, "g")
        self.assertEqual(session.state.pending_key, "")
        self.assertEqual(session.state.content.y_offset, 0)

    def test_other_key_clears_pending_g(self) -> None:
        session = self.make_session()
        self.open_path(session, "a.md")
        self.press(session, "ctrl+l", "G", "g", "k", "g")
        self.assertEqual(session.state.pending_key, "g")
        self.assertEqual(session.state.content.y_offset, 28)

    def test_tree_navigation_keys(self) -> None:
        session = self.make_session()
        tree = session.tree
        self.press(session, "j", "j")
        self.assertEqual(tree.current_node().path, "a.md")
        self.press(session, "G")
        self.assertEqual(tree.current_node().path, "b.md")
        self.press(session, "g", "g")
        self.assertEqual(tree.selected, 0)

    def test_tree_focus_scrolls_content_with_ctrl_keys(self) -> None:
        session = self.make_session()
        self.open_path(session, "a.md")
        self.press(session, "ctrl+j", "ctrl+j", "ctrl+f")
        self.assertEqual(session.state.content.y_offset, 7)
        self.press(session, "ctrl+k", "ctrl+b")
        self.assertEqual(session.state.content.y_offset, 1)
        self.assertEqual(session.tree.current_node().path, "a.md")

    def test_expand_descend_and_ascend(self) -> None:
        session = self.make_session()
        tree = session.tree
        tree.selected = tree.index_for_path("sub")
        self.press(session, "l")
        self.assertTrue(tree.current_node().is_open)
        self.assertEqual(tree.current_node().path, "sub")

        self.press(session, "l")
        self.assertEqual(tree.current_node().path, f"sub/{LONG_NAME}")

        self.press(session, "enter")
        self.assertEqual(session.state.header_path, f"docs/sub/{LONG_NAME}")
        self.assertEqual(session.state.raw_content, "nested\n")

        self.press(session, "h")
        self.assertEqual(tree.current_node().path, "sub")
        self.press(session, "h")
        self.assertFalse(tree.current_node().is_open)


class SessionDocumentTests(SessionTestCase):
    def test_open_file_shows_document_from_top_and_watches_it(self) -> None:
        session = self.make_session()
        self.open_path(session, "a.md")
        state = session.state

        self.assertEqual(state.header_path, "docs/a.md")
        self.assertEqual(state.active_abs_path, str(self.root / "a.md"))
        self.assertEqual(state.content.total_lines(), 40)
        self.assertEqual(state.content.y_offset, 0)
        self.assertEqual(session.watcher.watched_file, normalize_path(self.root / "a.md"))

    def test_read_failure_lands_in_status_slot_and_keeps_content(self) -> None:
        def deny(root_dir: Path, rel_path: str) -> str:
            raise PermissionError("denied")

        session = self.make_session(load_document=deny)
        self.open_path(session, "a.md")

        state = session.state
        self.assertEqual(state.status_message, "denied")
        self.assertEqual(state.status_kind, "error")
        self.assertEqual(state.raw_content, "")
        self.assertEqual(state.header_path, "docs/")
        self.assertEqual(session.watcher.watched_file, "")

        self.press(session, "j")
        self.assertEqual(state.status_message, "")

    def test_render_failure_skips_watching(self) -> None:
        session = self.make_session()
        with mock.patch("lazymd.runtime.session.render_document", side_effect=RenderError("bad markup")):
            self.open_path(session, "a.md")

        self.assertEqual(session.state.status_message, "bad markup")
        self.assertEqual(session.state.status_kind, "error")
        self.assertEqual(session.watcher.watched_file, "")

    def test_watch_failure_still_shows_document(self) -> None:
        session = self.make_session(observer_factory=_RejectingObserver)
        self.open_path(session, "a.md")

        self.assertEqual(session.state.content.total_lines(), 40)
        self.assertEqual(session.state.status_message, "watch denied")
        self.assertEqual(session.state.status_kind, "error")

    def test_watch_error_message_is_reported(self) -> None:
        session = self.make_session()
        self.assertTrue(session.handle(WatchError(error=RuntimeError("inotify limit"))))
        self.assertEqual(session.state.status_message, "inotify limit")
        self.assertEqual(session.state.status_kind, "error")

    def test_reload_keeps_offset_and_ignores_other_files(self) -> None:
        session = self.make_session()
        self.open_path(session, "a.md")
        self.press(session, "ctrl+l", *["j"] * 10)
        state = session.state
        self.assertEqual(state.content.y_offset, 10)

        (self.root / "a.md").write_text(_numbered(50, "row"), encoding="utf-8")
        session.handle(FileChanged(path=str(self.root / "b.md"), op="write"))
        self.assertEqual(state.content.lines[0], "line 1")

        session.handle(FileChanged(path=str(self.root / "a.md"), op="write"))
        self.assertEqual(state.content.lines[0], "row 1")
        self.assertEqual(state.content.total_lines(), 50)
        self.assertEqual(state.content.y_offset, 10)

        (self.root / "a.md").write_text(_numbered(5, "row"), encoding="utf-8")
        session.handle(FileChanged(path=str(self.root / "a.md"), op="write"))
        self.assertEqual(state.content.total_lines(), 5)
        self.assertEqual(state.content.y_offset, 0)

    def test_reload_failure_keeps_previous_content(self) -> None:
        session = self.make_session()
        self.open_path(session, "a.md")
        (self.root / "a.md").unlink()

        session.handle(FileChanged(path=str(self.root / "a.md"), op="remove"))
        self.assertEqual(session.state.content.total_lines(), 40)
        self.assertEqual(session.state.status_kind, "error")


class SessionSearchTests(SessionTestCase):
    def search(self, session: Session, query: str) -> None:
        self.press(session, "/", "ctrl+u", *query, "enter")

    def test_search_prompt_edits_buffer(self) -> None:
        session = self.make_session()
        self.press(session, "/", "q", "x", "backspace")
        self.assertTrue(session.state.search_editing)
        self.assertEqual(session.state.search_buffer, "q")

        self.press(session, "esc")
        self.assertFalse(session.state.search_editing)
        self.assertEqual(session.search.query, "")

    def test_search_jumps_and_cycles_with_clamping(self) -> None:
        session = self.make_session()
        self.open_path(session, "a.md")
        self.search(session, "line 3")
        content = session.state.content

        self.assertFalse(session.state.search_editing)
        self.assertEqual(len(session.search.matches), 11)
        self.assertEqual(content.y_offset, 2)

        self.press(session, "n")
        self.assertEqual(session.search.current_line(), 29)
        self.assertEqual(content.y_offset, 29)
        self.press(session, "n")
        self.assertEqual(session.search.current_line(), 30)
        self.assertEqual(content.y_offset, 29)

        self.press(session, "N", "N", "N")
        self.assertEqual(session.search.current_line(), 38)

    def test_prompt_prefills_active_query(self) -> None:
        session = self.make_session()
        self.open_path(session, "a.md")
        self.search(session, "line 3")
        self.press(session, "/")
        self.assertEqual(session.state.search_buffer, "line 3")

    def test_no_match_reports_info(self) -> None:
        session = self.make_session()
        self.open_path(session, "a.md")
        self.search(session, "zz")

        self.assertEqual(session.state.status_message, "no match for 'zz'")
        self.assertEqual(session.state.status_kind, "info")
        self.assertEqual(session.state.content.y_offset, 0)

    def test_empty_query_clears_search(self) -> None:
        session = self.make_session()
        self.open_path(session, "a.md")
        self.search(session, "line 3")
        self.search(session, "   ")

        self.assertEqual(session.search.query, "")
        self.assertEqual(session.search.matches, [])

    def test_reload_reconciles_current_match(self) -> None:
        session = self.make_session()
        self.open_path(session, "a.md")
        self.search(session, "line 3")
        self.press(session, "n")
        self.assertEqual(session.search.current_line(), 29)

        (self.root / "a.md").write_text("title\n" + _numbered(40), encoding="utf-8")
        session.handle(FileChanged(path=str(self.root / "a.md"), op="write"))
        self.assertEqual(session.search.current_line(), 30)

    def test_reload_without_match_keeps_query(self) -> None:
        session = self.make_session()
        self.open_path(session, "a.md")
        self.search(session, "line 3")

        (self.root / "a.md").write_text("nothing here", encoding="utf-8")
        session.handle(FileChanged(path=str(self.root / "a.md"), op="write"))
        self.assertEqual(session.search.query, "line 3")
        self.assertEqual(session.state.status_message, "no match for 'line 3'")


if __name__ == "__main__":
    unittest.main()
