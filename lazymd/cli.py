"""Command-line front door for lazymd.

Parses CLI options, validates the target path, and builds the initial session
for a directory, a single document, or a tag-filtered set of documents. Then
hands the session to the interactive loop.
"""

from __future__ import annotations

import argparse
import logging
import os
import sys
from collections.abc import Callable, Mapping
from pathlib import Path

from .config import load_show_tree, load_style_name, load_tree_width
from .document import DEFAULT_STYLE, normalize_style, read_text
from .runtime import AppState, Session, run_main_loop
from .runtime.terminal import TerminalController
from .tags import TagError, TagIndex, build_tag_index
from .tree_model import FSLoader, Node, build_filtered_tree, build_tree, collect_document_paths
from .watch import FileWatcher

logger = logging.getLogger(__name__)

LOG_FILE_ENV = "LAZYMD_LOG_FILE"
LOG_LEVEL_ENV = "LAZYMD_LOG_LEVEL"
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def configure_logging(environ: Mapping[str, str] = os.environ) -> logging.Handler | None:
    """Attach a file handler to the package logger when ``LAZYMD_LOG_FILE`` is set.

    Nothing is logged to the terminal: the TUI owns the screen while it runs.
    """
    log_file = environ.get(LOG_FILE_ENV, "").strip()
    if not log_file:
        return None
    level = logging.getLevelName(environ.get(LOG_LEVEL_ENV, "INFO").strip().upper())
    if not isinstance(level, int):
        level = logging.INFO
    handler = logging.FileHandler(log_file, encoding="utf-8")
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    package_logger = logging.getLogger("lazymd")
    package_logger.addHandler(handler)
    package_logger.setLevel(level)
    return handler


def _display_root_name(root_dir: Path) -> str:
    return root_dir.name or str(root_dir)


def _relative_display_path(path: Path) -> str:
    try:
        return Path(os.path.relpath(path, Path.cwd())).as_posix()
    except ValueError:
        return path.as_posix()


def _session_options(args: argparse.Namespace) -> dict[str, object]:
    style = args.style or load_style_name() or DEFAULT_STYLE
    return {"style": normalize_style(style), "no_color": args.no_color}


def build_directory_session(root_dir: Path, args: argparse.Namespace) -> Session:
    """Tree session rooted at ``root_dir``; lazy unless ``--eager`` was given."""
    root_name = _display_root_name(root_dir)
    try:
        if args.eager:
            paths = collect_document_paths(root_dir)
            root = build_tree(root_name, paths)
            has_documents = bool(paths)
        else:
            loader = FSLoader(root_dir)
            root = Node.new_root(root_name, loader)
            has_documents = loader.has_markdown("")
    except OSError as exc:
        raise SystemExit(f"Cannot read directory {root_dir}: {exc}") from exc

    show_tree = load_show_tree()
    state = AppState(
        raw_content="" if has_documents else f"No Markdown files found in {root_name}.",
        header_path=root_name + "/",
        root_dir=root_dir,
        display_root=root_name,
        tree_visible=show_tree,
        tree_focus=show_tree,
        tree_width_pref=load_tree_width(),
    )
    return Session(state, root, watcher=FileWatcher(), **_session_options(args))


def build_file_session(path: Path, args: argparse.Namespace) -> Session:
    """Single-document session that watches ``path`` for changes."""
    try:
        raw = read_text(path)
    except OSError as exc:
        raise SystemExit(f"Cannot read {path}: {exc}") from exc

    state = AppState(
        raw_content=raw,
        header_path=_relative_display_path(path),
        active_abs_path=str(path),
        tree_visible=False,
    )
    session = Session(state, watcher=FileWatcher(), **_session_options(args))
    session.start_watching(state.active_abs_path)
    return session


def build_tag_session(
    root_dir: Path,
    rel_paths: list[str],
    tag: str,
    args: argparse.Namespace,
) -> Session:
    """Tree session limited to ``rel_paths``, with the first one selected."""
    if not rel_paths:
        raise SystemExit(f"No files match tag {tag!r}.")
    root_name = _display_root_name(root_dir)
    root = build_filtered_tree(root_name, rel_paths)
    state = AppState(
        raw_content=f'Select a file tagged "{tag}".',
        header_path=f"{root_name}/ (tag: {tag})",
        root_dir=root_dir,
        display_root=root_name,
        tree_visible=True,
        tree_focus=True,
        tree_width_pref=load_tree_width(),
    )
    return Session(
        state,
        root,
        selection_path=rel_paths[0],
        watcher=FileWatcher(),
        **_session_options(args),
    )


def print_tag_menu(index: TagIndex, write: Callable[[str], object] = print) -> None:
    write("Tags found:")
    for number, tag in enumerate(index.tags, start=1):
        write(f"  {number}) {tag} ({len(index.files_by_tag[tag])} files)")
    write("  0) cancel")


def print_tagged_files(tag: str, files: list[str], write: Callable[[str], object] = print) -> None:
    write(f'Files tagged "{tag}":')
    for file in files:
        write(f"  - {file}")


def prompt_tag_selection(
    limit: int,
    read: Callable[[str], str] = input,
    write: Callable[[str], object] = print,
) -> int | None:
    """Ask for a menu number until a valid one arrives.

    Returns the 0-based tag index, or ``None`` when the user cancels with 0
    or closes stdin.
    """
    while True:
        try:
            value = read("Enter a number (0 to cancel): ").strip()
        except EOFError:
            return None
        if not value:
            write("Input is empty. Enter a number.")
            continue
        try:
            choice = int(value)
        except ValueError:
            write("Enter a number.")
            continue
        if choice == 0:
            return None
        if choice < 0 or choice > limit:
            write("Invalid number.")
            continue
        return choice - 1


def select_tag_session(path: Path, args: argparse.Namespace) -> Session | None:
    """Run the tag menu for ``path``; returns ``None`` when nothing was chosen."""
    try:
        index = build_tag_index(path)
    except (OSError, TagError) as exc:
        raise SystemExit(str(exc)) from exc
    if index.is_empty():
        print("No front-matter tags found under the given path.")
        return None

    print_tag_menu(index)
    selection = prompt_tag_selection(len(index.tags))
    if selection is None:
        print("Tag selection cancelled.")
        return None

    tag = index.tags[selection]
    print_tagged_files(tag, index.files_by_tag[tag])
    root_dir = path if path.is_dir() else path.parent
    return build_tag_session(root_dir, index.files_by_tag[tag], tag, args)


def run_session(session: Session) -> None:
    stdin_fd = sys.stdin.fileno()
    terminal = TerminalController(stdin_fd, sys.stdout.fileno())
    try:
        run_main_loop(session, terminal, stdin_fd)
    finally:
        session.close()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="lazymd",
        description="Browse a directory of Markdown documents in the terminal.",
    )
    parser.add_argument("path", nargs="?", default=None, help="Markdown file or directory. Defaults to current directory.")
    parser.add_argument("-t", "--tags", action="store_true", help="Pick a front-matter tag and browse its files.")
    parser.add_argument("--style", default=None, help="Pygments style name (default: config or monokai).")
    parser.add_argument("--no-color", action="store_true", help="Disable syntax colors.")
    parser.add_argument("--eager", action="store_true", help="Scan the whole directory up front instead of lazily.")
    return parser


def main(argv: list[str] | None = None, default_path: Path | None = None) -> None:
    """Parse CLI arguments and launch lazymd on a file or directory.

    ``default_path`` is primarily for tests; when omitted the current working
    directory is used.
    """
    args = build_parser().parse_args(argv)
    configure_logging()

    if default_path is None:
        default_path = Path.cwd()
    path = Path(args.path) if args.path else default_path
    if not path.exists():
        raise SystemExit(f"Path not found: {path}")
    path = path.resolve()
    logger.info("starting on %s", path)

    if args.tags:
        session = select_tag_session(path, args)
        if session is None:
            return
    elif path.is_dir():
        session = build_directory_session(path, args)
    else:
        session = build_file_session(path, args)

    run_session(session)


if __name__ == "__main__":
    main()
