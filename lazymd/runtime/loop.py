"""Interactive loop that turns terminal activity into session messages.

The loop is the only thread that touches session state. Each iteration turns
terminal size changes, queued watch events, and one decoded key into messages
and hands them to the session one at a time.
"""

from __future__ import annotations

import os
import shutil
from collections.abc import Callable

from ..input import read_key
from ..messages import KeyPressed, Resized
from ..render import build_frame
from .session import Session
from .terminal import TerminalController

KEY_POLL_TIMEOUT_MS = 120


def run_main_loop(
    session: Session,
    terminal: TerminalController,
    stdin_fd: int,
    *,
    get_terminal_size: Callable[[tuple[int, int]], os.terminal_size] = shutil.get_terminal_size,
    key_reader: Callable[..., str] = read_key,
) -> None:
    """Run the interactive loop until a handled message asks to quit."""
    state = session.state
    size: tuple[int, int] | None = None

    with terminal.raw_mode():
        while True:
            term = get_terminal_size((80, 24))
            if (term.columns, term.lines) != size:
                size = (term.columns, term.lines)
                if not session.handle(Resized(width=term.columns, height=term.lines)):
                    break

            if session.watcher is not None:
                for message in session.watcher.drain():
                    session.handle(message)

            if state.dirty:
                terminal.write(build_frame(session))
                state.dirty = False

            try:
                key = key_reader(stdin_fd, timeout_ms=KEY_POLL_TIMEOUT_MS)
            except KeyboardInterrupt:
                continue
            if key == "":
                continue
            if not session.handle(KeyPressed(key=key)):
                break


__all__ = ["KEY_POLL_TIMEOUT_MS", "run_main_loop"]
