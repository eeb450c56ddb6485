"""Public runtime orchestration entry points.

This package groups the session controller, its state, terminal control, and
the main loop that feeds messages to the controller.
"""

from __future__ import annotations

from .session import Session
from .state import AppState, compose_display_path


def run_main_loop(*args, **kwargs):
    """Lazily import loop runner to avoid package-import cycles."""
    from .loop import run_main_loop as _run_main_loop

    return _run_main_loop(*args, **kwargs)


__all__ = [
    "AppState",
    "Session",
    "compose_display_path",
    "run_main_loop",
]
