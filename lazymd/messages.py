"""Discrete messages consumed one at a time by the session controller."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class KeyPressed:
    key: str


@dataclass(frozen=True)
class Resized:
    width: int
    height: int


@dataclass(frozen=True)
class FileChanged:
    """A create/write/rename/remove event reported for ``path``."""

    path: str
    op: str


@dataclass(frozen=True)
class WatchError:
    error: Exception


Message = KeyPressed | Resized | FileChanged | WatchError


__all__ = ["FileChanged", "KeyPressed", "Message", "Resized", "WatchError"]
