"""In-document text search over rendered output.

Match positions are 0-based line numbers in the plain-text form of the
rendered content (escape sequences stripped), so they line up with the rows
the content viewport shows.
"""

from __future__ import annotations

from .ansi import strip_ansi


def find_matches(rendered: str, query: str) -> list[int]:
    """Return the line of every case-insensitive, non-overlapping match start."""
    query = query.strip()
    if not query or not rendered:
        return []

    needle = query.lower()
    matches: list[int] = []
    for line_no, line in enumerate(strip_ansi(rendered).split("\n")):
        haystack = line.lower()
        pos = haystack.find(needle)
        while pos != -1:
            matches.append(line_no)
            pos = haystack.find(needle, pos + len(needle))
    return matches


def closest_match_index(matches: list[int], line: int) -> int:
    """Index of the match nearest ``line``; ties go to the lowest index."""
    if not matches:
        return 0
    best_index = 0
    best_diff = abs(matches[0] - line)
    for idx in range(1, len(matches)):
        diff = abs(matches[idx] - line)
        if diff < best_diff:
            best_diff = diff
            best_index = idx
    return best_index


class TextSearch:
    """Active query, its match lines, and the current match index."""

    def __init__(self) -> None:
        self.query = ""
        self.matches: list[int] = []
        self.index = -1

    @property
    def active(self) -> bool:
        return bool(self.query)

    def clear(self) -> None:
        self.query = ""
        self.matches = []
        self.index = -1

    def current_line(self) -> int | None:
        if not self.matches or not 0 <= self.index < len(self.matches):
            return None
        return self.matches[self.index]

    def perform(self, rendered: str, query: str) -> bool:
        """Run a fresh search; returns False when nothing matches."""
        self.query = query.strip()
        self.matches = find_matches(rendered, self.query)
        if not self.matches:
            self.index = -1
            return False
        self.index = 0
        return True

    def next(self) -> None:
        if not self.matches:
            return
        if self.index < 0:
            self.index = 0
        else:
            self.index = (self.index + 1) % len(self.matches)

    def previous(self) -> None:
        if not self.matches:
            return
        if self.index <= 0:
            self.index = len(self.matches) - 1
        else:
            self.index -= 1

    def on_content_changed(self, rendered: str) -> bool | None:
        """Re-run the active query against new content.

        Keeps the current match on the line closest to the previous one.
        Returns ``None`` without an active query, False when the new content
        has no match (the query is kept), True otherwise.
        """
        if not self.query:
            return None

        prev_line = self.current_line()
        self.matches = find_matches(rendered, self.query)
        if not self.matches:
            self.index = -1
            return False

        if prev_line is not None:
            self.index = closest_match_index(self.matches, prev_line)
        elif not 0 <= self.index < len(self.matches):
            self.index = 0
        return True

    def status_text(self) -> str:
        if not self.query:
            return ""
        if not self.matches or self.index < 0:
            return f"/{self.query} (0/0)"
        return f"/{self.query} ({self.index + 1}/{len(self.matches)})"


__all__ = ["TextSearch", "closest_match_index", "find_matches"]
