"""Key decoding for raw-mode stdin.

``read_key`` turns the bytes of one key press into a name such as ``"j"``,
``"G"``, ``"ctrl+d"``, ``"enter"``, ``"esc"``, ``"pgdown"`` or
``"shift+left"``. An ESC byte waits briefly for the rest of a sequence so a
bare Escape is still recognized without a second key press.
"""

from __future__ import annotations

import os
import select

ESC_SEQUENCE_TIMEOUT_MS = 25
# Bytes read while probing an escape sequence that belong to the next key.
_PENDING_BYTES: list[bytes] = []

_SPECIAL_BYTES: dict[bytes, str] = {
    b"\r": "enter",
    b"\t": "tab",
    b"\x7f": "backspace",
}

_CSI_FINAL_KEYS: dict[bytes, str] = {
    b"A": "up",
    b"B": "down",
    b"C": "right",
    b"D": "left",
    b"H": "home",
    b"F": "end",
}

_CSI_MODIFIERS: dict[bytes, str] = {
    b"2": "shift+",
    b"3": "alt+",
    b"5": "ctrl+",
}


def _read_byte_within(fd: int, timeout_ms: int) -> bytes | None:
    readable, _, _ = select.select([fd], [], [], max(timeout_ms, 0) / 1000)
    if not readable:
        return None
    return os.read(fd, 1) or None


def _utf8_length(lead: int) -> int:
    for length, floor in ((4, 0xF0), (3, 0xE0), (2, 0xC0)):
        if lead >= floor:
            return length
    return 1


def decode_control_byte(ch: bytes) -> str | None:
    """Name a single non-printable byte, or ``None`` for printable input."""
    special = _SPECIAL_BYTES.get(ch)
    if special is not None:
        return special
    code = ch[0]
    if 1 <= code <= 26:
        return "ctrl+" + chr(ord("a") + code - 1)
    if code == 0:
        return "ctrl+@"
    return None


def _first_byte(fd: int, timeout_ms: int | None) -> bytes | None:
    if _PENDING_BYTES:
        return _PENDING_BYTES.pop(0)
    if timeout_ms is None:
        return os.read(fd, 1) or None
    return _read_byte_within(fd, timeout_ms)


def _decode_text(fd: int, lead: bytes) -> str:
    raw = lead
    for _ in range(_utf8_length(lead[0]) - 1):
        more = _read_byte_within(fd, ESC_SEQUENCE_TIMEOUT_MS)
        if more is None:
            break
        raw += more
    return raw.decode("utf-8", errors="replace")


def _decode_escape(fd: int) -> str:
    def follow() -> bytes | None:
        return _read_byte_within(fd, ESC_SEQUENCE_TIMEOUT_MS)

    introducer = follow()
    if introducer is None:
        return "esc"
    if introducer not in (b"[", b"O"):
        _PENDING_BYTES.append(introducer)
        return "esc"

    final = follow()
    if final is None:
        return "esc"
    if final in _CSI_FINAL_KEYS:
        return _CSI_FINAL_KEYS[final]
    if final in (b"5", b"6"):
        if follow() != b"~":
            return "esc"
        return "pgup" if final == b"5" else "pgdown"
    if final == b"1" and follow() == b";":
        modifier = follow()
        key = follow()
        prefix = _CSI_MODIFIERS.get(modifier) if modifier else None
        name = _CSI_FINAL_KEYS.get(key) if key else None
        if prefix and name:
            return prefix + name
    return "esc"


def read_key(fd: int, timeout_ms: int | None = None) -> str:
    """Read one key name from ``fd``; returns ``""`` when nothing arrived in time."""
    first = _first_byte(fd, timeout_ms)
    if first is None:
        return ""
    if first == b"\x1b":
        return _decode_escape(fd)
    return decode_control_byte(first) or _decode_text(fd, first)


__all__ = ["ESC_SEQUENCE_TIMEOUT_MS", "decode_control_byte", "read_key"]
