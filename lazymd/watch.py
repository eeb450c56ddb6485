"""Change notifications for the open document.

A single watchdog observer is created on first use and kept for the process
lifetime. Its handler runs on the observer thread and is the only producer on
a bounded queue; the control loop is the only consumer. At most one file is
watched, through a subscription on its containing directory.
"""

from __future__ import annotations

import logging
import os
import threading
from collections.abc import Callable
from queue import Empty, Full, Queue

from watchdog.events import (
    EVENT_TYPE_CREATED,
    EVENT_TYPE_DELETED,
    EVENT_TYPE_MODIFIED,
    EVENT_TYPE_MOVED,
    FileSystemEvent,
    FileSystemEventHandler,
)
from watchdog.observers import Observer

from .messages import FileChanged, Message, WatchError

logger = logging.getLogger(__name__)

WATCH_QUEUE_SIZE = 10
_PUT_RETRY_SECONDS = 0.1

RELAYED_OPS: dict[str, str] = {
    EVENT_TYPE_CREATED: "create",
    EVENT_TYPE_MODIFIED: "write",
    EVENT_TYPE_MOVED: "rename",
    EVENT_TYPE_DELETED: "remove",
}


def normalize_path(path: str | os.PathLike[str]) -> str:
    """Absolute, normalized form used to compare watched and reported paths."""
    return os.path.normpath(os.path.abspath(os.fsdecode(path)))


class _RelayHandler(FileSystemEventHandler):
    """Forward relevant file events from the observer thread into the queue."""

    def __init__(
        self,
        emit: Callable[[Message], None],
        directory_gone: Callable[[str], None] | None = None,
    ) -> None:
        super().__init__()
        self._emit = emit
        self._directory_gone = directory_gone

    def on_any_event(self, event: FileSystemEvent) -> None:
        try:
            op = RELAYED_OPS.get(event.event_type)
            if op is None:
                return
            if event.is_directory:
                if op in ("remove", "rename") and self._directory_gone is not None:
                    self._directory_gone(os.fsdecode(event.src_path))
                return
            self._emit(FileChanged(path=os.fsdecode(event.src_path), op=op))
            dest_path = getattr(event, "dest_path", "")
            if op == "rename" and dest_path:
                self._emit(FileChanged(path=os.fsdecode(dest_path), op=op))
        except Exception as exc:
            logger.exception("watch relay failed")
            self._emit(WatchError(error=exc))


class FileWatcher:
    """Watch one file via its directory and relay events as messages."""

    def __init__(
        self,
        observer_factory: Callable[[], object] = Observer,
        queue_size: int = WATCH_QUEUE_SIZE,
    ) -> None:
        self.events: Queue[Message] = Queue(maxsize=queue_size)
        self.watch_dir = ""
        self.watched_file = ""
        self._observer_factory = observer_factory
        self._observer = None
        self._watch = None
        # Set on the observer thread; consumed by the next start_watching.
        self._lost_dir = ""
        self._handler = _RelayHandler(self._emit, self._directory_gone)
        self._stopped = threading.Event()

    def _emit(self, message: Message) -> None:
        # Block while the control loop is behind, but give up once stopped.
        while not self._stopped.is_set():
            try:
                self.events.put(message, timeout=_PUT_RETRY_SECONDS)
                return
            except Full:
                continue

    def _directory_gone(self, path: str) -> None:
        directory = self.watch_dir
        if not directory or normalize_path(path) != directory:
            return
        self._lost_dir = directory
        logger.debug("watched directory %s went away", directory)
        self._emit(WatchError(error=FileNotFoundError(f"watched directory removed: {directory}")))

    def _drop_watch(self, observer) -> None:
        if self._watch is not None:
            try:
                observer.unschedule(self._watch)
            except KeyError:
                logger.debug("watch on %s was already gone", self.watch_dir)
            self._watch = None
        self.watch_dir = ""

    def _ensure_observer(self):
        if self._observer is None:
            observer = self._observer_factory()
            observer.daemon = True
            observer.start()
            self._observer = observer
        return self._observer

    def start_watching(self, path: str | os.PathLike[str]) -> None:
        """Make ``path`` the watched file, resubscribing only on directory change.

        Raises ``OSError`` when the observer cannot subscribe; the watcher
        stays usable for later calls.
        """
        path = normalize_path(path)
        observer = self._ensure_observer()

        if self._lost_dir and self._lost_dir == self.watch_dir:
            self._lost_dir = ""
            self._drop_watch(observer)

        directory = os.path.dirname(path)
        if directory != self.watch_dir:
            self._drop_watch(observer)
            self._watch = observer.schedule(self._handler, directory, recursive=False)
            self.watch_dir = directory
            logger.debug("watching directory %s", directory)

        self.watched_file = path

    def is_watched(self, path: str) -> bool:
        return bool(self.watched_file) and normalize_path(path) == self.watched_file

    def drain(self) -> list[Message]:
        """Return all pending messages in arrival order without blocking."""
        out: list[Message] = []
        while True:
            try:
                out.append(self.events.get_nowait())
            except Empty:
                break
        return out

    def stop(self) -> None:
        self._stopped.set()
        if self._observer is None:
            return
        self._observer.stop()
        self._observer.join(timeout=1.0)
        self._observer = None
        self._watch = None
        self.watch_dir = ""


__all__ = ["FileWatcher", "RELAYED_OPS", "WATCH_QUEUE_SIZE", "normalize_path"]
