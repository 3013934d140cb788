"""Terminal building blocks: messages, styles, a selectable list and a scrolling viewport."""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

Command = Callable[[], Any]


@dataclass(frozen=True)
class KeyMsg:
    """A key press, named like "enter", "up", "ctrl+c" or a single character."""

    key: str

    def __str__(self) -> str:
        return self.key


@dataclass(frozen=True)
class WindowSizeMsg:
    width: int
    height: int


@dataclass(frozen=True)
class Quit:
    """Message asking the program to stop; the class itself serves as the command sending it."""


def batch(*commands: Optional[Command]) -> Optional[Command]:
    """Combine commands into one; the combined command returns the tuple of commands to run."""
    valid = tuple(cmd for cmd in commands if cmd is not None)
    if len(valid) <= 1:
        return valid[0] if valid else None
    return lambda: valid


@dataclass(frozen=True)
class Style:
    """Margins (top, right, bottom, left) and simple text attributes for a block of text."""

    margin: tuple[int, int, int, int] = (0, 0, 0, 0)
    foreground: str | None = None
    bold: bool = False
    italic: bool = False

    def frame_size(self) -> tuple[int, int]:
        top, right, bottom, left = self.margin
        return left + right, top + bottom

    def render(self, text: str) -> str:
        top, right, bottom, left = self.margin
        lines = text.split("\n")
        width = max(len(line) for line in lines)
        codes = [c for c, on in (("1", self.bold), ("3", self.italic)) if on]
        if self.foreground is not None:
            codes.append(f"38;5;{self.foreground}")
        prefix, suffix = (f"\x1b[{';'.join(codes)}m", "\x1b[0m") if codes else ("", "")
        blank = " " * (left + width + right)
        body = [
            " " * left + prefix + line + suffix + " " * (width - len(line) + right)
            for line in lines
        ]
        return "\n".join([blank] * top + body + [blank] * bottom)


class FilterState(Enum):
    UNFILTERED = "unfiltered"
    FILTERING = "filtering"
    FILTER_APPLIED = "filter applied"


def _fuzzy_match(needle: str, haystack: str) -> bool:
    remaining = iter(haystack.lower())
    return all(ch in remaining for ch in needle.lower())


_HELP_TEXT = "↑/k up • ↓/j down • / filter • q quit"


class ListModel:
    """A paginated, optionally filterable list of items with a title and a description each."""

    def __init__(
        self,
        items: Iterable[Any] = (),
        title: str = "",
        width: int = 0,
        height: int = 0,
        *,
        show_title: bool = True,
        show_status_bar: bool = True,
        show_help: bool = True,
        filtering_enabled: bool = True,
    ) -> None:
        self.items = list(items)
        self.title = title
        self.width = width
        self.height = height
        self.show_title = show_title
        self.show_status_bar = show_status_bar
        self.show_help = show_help
        self.filtering_enabled = filtering_enabled
        self.cursor = 0
        self.filter_text = ""
        self.filter_state = FilterState.UNFILTERED

    def set_items(self, items: Iterable[Any]) -> Optional[Command]:
        self.items = list(items)
        self._clamp()
        return None

    def set_size(self, width: int, height: int) -> None:
        self.width, self.height = width, height
        self._clamp()

    def visible_items(self) -> list[Any]:
        """The items shown, after any filter."""
        if self.filter_state is FilterState.UNFILTERED or not self.filter_text:
            return list(self.items)
        return [i for i in self.items if _fuzzy_match(self.filter_text, i.filter_value)]

    def selected_item(self) -> Any:
        visible = self.visible_items()
        return visible[min(self.cursor, len(visible) - 1)] if visible else None

    def _clamp(self) -> None:
        self.cursor = max(0, min(self.cursor, len(self.visible_items()) - 1))

    def _header(self) -> list[str]:
        if self.filter_state is FilterState.FILTERING:
            return [f"Filter: {self.filter_text}", ""]
        return [self.title, ""] if self.show_title and self.title else []

    def _per_page(self) -> int:
        if self.height <= 0:
            return max(1, len(self.visible_items()))
        chrome = 1 + len(self._header()) + 2 * self.show_status_bar + 2 * self.show_help
        return max(1, (self.height - chrome + 1) // 3)

    def _reset_filter(self) -> None:
        self.filter_text = ""
        self.filter_state = FilterState.UNFILTERED
        self._clamp()

    def update(self, msg: Any) -> Optional[Command]:
        """Handle a message; returns a command to run, if any."""
        if not isinstance(msg, KeyMsg):
            return None
        key = msg.key
        if key == "ctrl+c":
            return Quit
        if self.filter_state is FilterState.FILTERING:
            if key == "esc":
                self._reset_filter()
                return None
            if key == "enter":
                self.filter_state = (
                    FilterState.FILTER_APPLIED if self.filter_text else FilterState.UNFILTERED
                )
            elif key == "backspace":
                self.filter_text = self.filter_text[:-1]
            elif len(key) == 1:
                self.filter_text += key
            else:
                return None
            self.cursor = 0
            return None

        if key == "esc" and self.filter_state is FilterState.FILTER_APPLIED:
            self._reset_filter()
            return None
        if key in ("q", "esc"):
            return Quit
        if key == "/" and self.filtering_enabled:
            self.filter_state = FilterState.FILTERING
            self.cursor = 0
            return None

        count, per_page = len(self.visible_items()), self._per_page()
        page_start = self.cursor // per_page * per_page
        if key in ("up", "k"):
            self.cursor -= 1
        elif key in ("down", "j"):
            self.cursor += 1
        elif key in ("left", "h", "pgup"):
            self.cursor = page_start - per_page
        elif key in ("right", "l", "pgdown") and page_start + per_page < count:
            self.cursor = page_start + per_page
        elif key in ("home", "g"):
            self.cursor = 0
        elif key in ("end", "G"):
            self.cursor = count - 1
        self._clamp()
        return None

    def view(self) -> str:
        """Render the list as text."""
        lines = self._header()
        visible = self.visible_items()
        if self.show_status_bar:
            count = len(visible)
            status = {0: "No items", 1: "1 item"}.get(count, f"{count} items")
            if len(self.items) > count:
                status += f" • {len(self.items) - count} filtered"
            lines += [status, ""]

        if not visible:
            lines.append("No items.")
        else:
            per_page = self._per_page()
            page = self.cursor // per_page
            start = page * per_page
            for index, item in enumerate(visible[start : start + per_page], start):
                marker = "│ " if index == self.cursor else "  "
                lines += [marker + item.title, marker + item.description, ""]
            lines.pop()
            pages = -(-len(visible) // per_page)
            if pages > 1:
                lines += ["", "".join("•" if p == page else "○" for p in range(pages))]

        if self.show_help:
            lines += ["", _HELP_TEXT]
        if self.width > 0:
            lines = [line[: self.width] for line in lines]
        return "\n".join(lines)


class Viewport:
    """A window onto text taller than the screen, scrolled with the keyboard."""

    def __init__(self, width: int = 0, height: int = 0) -> None:
        self.width = width
        self.height = height
        self.y_offset = 0
        self._lines: list[str] = []

    def set_content(self, text: str) -> None:
        self._lines = text.split("\n")
        self._scroll_to(self.y_offset)

    def _max_offset(self) -> int:
        return max(0, len(self._lines) - self.height) if self.height > 0 else 0

    def _scroll_to(self, offset: int) -> None:
        self.y_offset = max(0, min(offset, self._max_offset()))

    def update(self, msg: Any) -> Optional[Command]:
        """Scroll in response to a key; never returns a command."""
        if not isinstance(msg, KeyMsg):
            return None
        page, half = max(1, self.height), max(1, self.height // 2)
        moves = {"down": 1, "j": 1, "up": -1, "k": -1, "pgdown": page, "f": page, " ": page,
                 "pgup": -page, "b": -page, "d": half, "u": -half}
        if msg.key in moves:
            self._scroll_to(self.y_offset + moves[msg.key])
        elif msg.key in ("home", "g"):
            self._scroll_to(0)
        elif msg.key in ("end", "G"):
            self._scroll_to(self._max_offset())
        return None

    def view(self) -> str:
        shown = list(self._lines)
        if self.height > 0:
            shown = shown[self.y_offset : self.y_offset + self.height]
            shown += [""] * (self.height - len(shown))
        if self.width > 0:
            shown = [line[: self.width] for line in shown]
        return "\n".join(shown)