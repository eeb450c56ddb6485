"""Raw-mode and alternate-screen handling for the interactive session."""

from __future__ import annotations

import contextlib
import os
import termios
import tty

ENTER_SCREEN = b"\x1b[?1049h\x1b[?25l"
LEAVE_SCREEN = b"\x1b[?25h\x1b[?1049l"


class TerminalController:
    """Switch the tty into raw mode and back, and write frames to it.

    The tty attributes are captured at construction so they can be restored
    exactly, even after a crash inside ``raw_mode``.
    """

    def __init__(self, stdin_fd: int, stdout_fd: int) -> None:
        self.stdin_fd = stdin_fd
        self.stdout_fd = stdout_fd
        self._original_attrs = termios.tcgetattr(stdin_fd)

    def enable_tui_mode(self) -> None:
        tty.setraw(self.stdin_fd, termios.TCSAFLUSH)
        os.write(self.stdout_fd, ENTER_SCREEN)

    def disable_tui_mode(self) -> None:
        os.write(self.stdout_fd, LEAVE_SCREEN)
        termios.tcsetattr(self.stdin_fd, termios.TCSAFLUSH, self._original_attrs)

    def write(self, frame: str) -> None:
        os.write(self.stdout_fd, frame.encode("utf-8", errors="replace"))

    @contextlib.contextmanager
    def raw_mode(self):
        """Run the body on the alternate screen; the tty is always restored."""
        self.enable_tui_mode()
        try:
            yield self
        finally:
            self.disable_tui_mode()


__all__ = ["ENTER_SCREEN", "LEAVE_SCREEN", "TerminalController"]
