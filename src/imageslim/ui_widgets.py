"""
Immutable widgets used by the screens: text field, spinner and viewport.

Every operation returns a new instance so screen state can be replaced
wholesale on each transition.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Tuple

from imageslim.ui_events import (
    KEY_BACKSPACE,
    KEY_DELETE,
    KEY_DOWN,
    KEY_END,
    KEY_HOME,
    KEY_LEFT,
    KEY_PGDOWN,
    KEY_PGUP,
    KEY_RIGHT,
    KEY_RUNE,
    KEY_UP,
    KeyEvent,
)

# A rendered line is a sequence of (text, style token) segments.
Segment = Tuple[str, str]
Line = Tuple[Segment, ...]

SPINNER_FRAMES = ("⣾", "⣽", "⣻", "⢿", "⡿", "⣟", "⣯", "⣷")
SPINNER_INTERVAL_SEC = 0.1


def _printable(text: str) -> str:
    return "".join(ch for ch in text if ch.isprintable())


@dataclass(frozen=True)
class TextField:
    value: str = ""
    cursor: int = 0
    placeholder: str = ""
    width: int = 20
    char_limit: int = 0  # 0 = unlimited

    @classmethod
    def create(cls, value: str, *, placeholder: str = "", width: int = 20, char_limit: int = 0) -> "TextField":
        return cls(value=value, cursor=len(value), placeholder=placeholder, width=width, char_limit=char_limit)

    def insert(self, text: str) -> "TextField":
        text = _printable(text)
        if self.char_limit > 0:
            text = text[: max(0, self.char_limit - len(self.value))]
        if not text:
            return self
        value = self.value[: self.cursor] + text + self.value[self.cursor :]
        return replace(self, value=value, cursor=self.cursor + len(text))

    def backspace(self) -> "TextField":
        if self.cursor == 0:
            return self
        value = self.value[: self.cursor - 1] + self.value[self.cursor :]
        return replace(self, value=value, cursor=self.cursor - 1)

    def delete(self) -> "TextField":
        if self.cursor >= len(self.value):
            return self
        return replace(self, value=self.value[: self.cursor] + self.value[self.cursor + 1 :])

    def move_to(self, position: int) -> "TextField":
        return replace(self, cursor=max(0, min(len(self.value), position)))

    def handle_key(self, event: KeyEvent) -> "TextField":
        key = event.key
        if key == KEY_RUNE:
            return self.insert(event.text)
        if key == KEY_BACKSPACE or key == "ctrl+h":
            return self.backspace()
        if key == KEY_DELETE or key == "ctrl+d":
            return self.delete()
        if key == KEY_LEFT or key == "ctrl+b":
            return self.move_to(self.cursor - 1)
        if key == KEY_RIGHT or key == "ctrl+f":
            return self.move_to(self.cursor + 1)
        if key == KEY_HOME or key == "ctrl+a":
            return self.move_to(0)
        if key == KEY_END or key == "ctrl+e":
            return self.move_to(len(self.value))
        if key == "ctrl+u":
            return replace(self, value=self.value[self.cursor :], cursor=0)
        if key == "ctrl+k":
            return replace(self, value=self.value[: self.cursor])
        return self

    def visible(self) -> Tuple[str, str, str]:
        """Split the visible window into (before cursor, under cursor, after cursor).

        The window scrolls horizontally so the cursor always stays inside
        ``width`` columns.
        """
        start = max(0, self.cursor - self.width + 1)
        window = self.value[start : start + self.width]
        pos = self.cursor - start
        return window[:pos], window[pos : pos + 1], window[pos + 1 :]


@dataclass(frozen=True)
class Spinner:
    frame: int = 0
    frames: Tuple[str, ...] = SPINNER_FRAMES

    def tick(self) -> "Spinner":
        return replace(self, frame=(self.frame + 1) % len(self.frames))

    def view(self) -> str:
        return self.frames[self.frame % len(self.frames)]


@dataclass(frozen=True)
class Viewport:
    """Scrollable window over a fixed list of rendered lines."""

    lines: Tuple[Line, ...] = ()
    width: int = 40
    height: int = 5
    offset: int = 0

    @property
    def max_offset(self) -> int:
        return max(0, len(self.lines) - self.height)

    @property
    def at_top(self) -> bool:
        return self.offset <= 0

    @property
    def at_bottom(self) -> bool:
        return self.offset >= self.max_offset

    def scroll_percent(self) -> float:
        if self.height >= len(self.lines):
            return 1.0
        return min(1.0, max(0.0, self.offset / (len(self.lines) - self.height)))

    def scroll_to(self, offset: int) -> "Viewport":
        return replace(self, offset=max(0, min(self.max_offset, offset)))

    def scroll_by(self, delta: int) -> "Viewport":
        return self.scroll_to(self.offset + delta)

    def resized(self, width: int, height: int) -> "Viewport":
        return replace(self, width=width, height=height).scroll_to(self.offset)

    def handle_key(self, event: KeyEvent) -> "Viewport":
        key = event.key
        half = max(1, self.height // 2)
        if key == KEY_UP or event.is_rune("k"):
            return self.scroll_by(-1)
        if key == KEY_DOWN or event.is_rune("j"):
            return self.scroll_by(1)
        if key == KEY_PGUP or event.is_rune("b"):
            return self.scroll_by(-self.height)
        if key == KEY_PGDOWN or event.is_rune("f") or event.is_rune(" "):
            return self.scroll_by(self.height)
        if key == "ctrl+u" or event.is_rune("u"):
            return self.scroll_by(-half)
        if key == "ctrl+d" or event.is_rune("d"):
            return self.scroll_by(half)
        if key == KEY_HOME or event.is_rune("g"):
            return self.scroll_to(0)
        if key == KEY_END or event.is_rune("G"):
            return self.scroll_to(self.max_offset)
        return self

    def visible_lines(self) -> Tuple[Line, ...]:
        return self.lines[self.offset : self.offset + self.height]
