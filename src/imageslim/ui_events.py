"""Events fed into the state machine and effects it asks the driver to perform."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from imageslim.command_builder import RunConfiguration
from imageslim.gm_runner import RunOutcome

# Normalised key names produced by the terminal driver.
KEY_RUNE = "rune"
KEY_ENTER = "enter"
KEY_ESC = "esc"
KEY_TAB = "tab"
KEY_SHIFT_TAB = "shift+tab"
KEY_UP = "up"
KEY_DOWN = "down"
KEY_LEFT = "left"
KEY_RIGHT = "right"
KEY_HOME = "home"
KEY_END = "end"
KEY_PGUP = "pgup"
KEY_PGDOWN = "pgdown"
KEY_BACKSPACE = "backspace"
KEY_DELETE = "delete"
KEY_CTRL_C = "ctrl+c"


@dataclass(frozen=True)
class KeyEvent:
    """A single keystroke.

    ``key`` is one of the ``KEY_*`` names or ``ctrl+<letter>``; for printable
    input it is :data:`KEY_RUNE` and ``text`` holds the characters.
    """

    key: str
    text: str = ""

    @classmethod
    def rune(cls, text: str) -> "KeyEvent":
        return cls(KEY_RUNE, text)

    def is_rune(self, text: str) -> bool:
        return self.key == KEY_RUNE and self.text == text


@dataclass(frozen=True)
class ResizeEvent:
    width: int
    height: int


@dataclass(frozen=True)
class TickEvent:
    """Spinner animation tick."""


@dataclass(frozen=True)
class RunCompleted:
    outcome: RunOutcome


Event = Union[KeyEvent, ResizeEvent, TickEvent, RunCompleted]


@dataclass(frozen=True)
class Quit:
    pass


@dataclass(frozen=True)
class StartRun:
    config: RunConfiguration


Effect = Union[Quit, StartRun]
