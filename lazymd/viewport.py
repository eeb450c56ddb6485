"""Scrollable line viewport used by the content and tree panels."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class Viewport:
    """Fixed-size window over a list of lines with a vertical offset."""

    width: int = 0
    height: int = 0
    y_offset: int = 0
    lines: list[str] = field(default_factory=list)

    def set_content(self, text: str) -> None:
        self.lines = text.split("\n")
        self.set_y_offset(self.y_offset)

    def total_lines(self) -> int:
        return len(self.lines)

    def max_y_offset(self) -> int:
        return max(0, len(self.lines) - self.height)

    def set_y_offset(self, offset: int) -> None:
        self.y_offset = max(0, min(offset, self.max_y_offset()))

    def scroll_down(self, n: int = 1) -> None:
        self.set_y_offset(self.y_offset + n)

    def scroll_up(self, n: int = 1) -> None:
        self.set_y_offset(self.y_offset - n)

    def half_page_down(self) -> None:
        self.scroll_down(max(1, self.height // 2))

    def half_page_up(self) -> None:
        self.scroll_up(max(1, self.height // 2))

    def page_down(self) -> None:
        self.scroll_down(max(1, self.height))

    def page_up(self) -> None:
        self.scroll_up(max(1, self.height))

    def goto_top(self) -> None:
        self.y_offset = 0

    def goto_bottom(self) -> None:
        self.y_offset = self.max_y_offset()

    def visible_lines(self) -> list[str]:
        return self.lines[self.y_offset : self.y_offset + self.height]


__all__ = ["Viewport"]
