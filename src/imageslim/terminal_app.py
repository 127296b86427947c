"""
curses driver: decodes keys, paints rendered lines and owns the background run.

All model changes happen on this thread through
:func:`imageslim.state_machine.update`; the only other thread is the
:class:`~imageslim.background.BackgroundRun` worker.
"""

from __future__ import annotations

import curses
import locale
import os
import time
from functools import partial
from typing import Dict, List, Optional, Sequence, Union

from loguru import logger

from imageslim import gm_runner
from imageslim.background import BackgroundRun
from imageslim.command_builder import RunConfiguration
from imageslim.gm_runner import RunnerSettings
from imageslim.runtime_logging import SessionSummary
from imageslim.state_machine import update
from imageslim.ui_events import (
    KEY_BACKSPACE,
    KEY_CTRL_C,
    KEY_DELETE,
    KEY_DOWN,
    KEY_END,
    KEY_ENTER,
    KEY_ESC,
    KEY_HOME,
    KEY_LEFT,
    KEY_PGDOWN,
    KEY_PGUP,
    KEY_RIGHT,
    KEY_SHIFT_TAB,
    KEY_TAB,
    KEY_UP,
    Event,
    KeyEvent,
    Quit,
    ResizeEvent,
    RunCompleted,
    StartRun,
    TickEvent,
)
from imageslim.ui_state import FormDefaults, TerminalSize, initial_model
from imageslim.ui_text_presenter import render
from imageslim.ui_theme_tokens import PALETTE, STYLES
from imageslim.ui_widgets import SPINNER_INTERVAL_SEC, Line

MARGIN_TOP = 1
MARGIN_LEFT = 2

_SPECIAL_KEYS = {
    curses.KEY_UP: KEY_UP,
    curses.KEY_DOWN: KEY_DOWN,
    curses.KEY_LEFT: KEY_LEFT,
    curses.KEY_RIGHT: KEY_RIGHT,
    curses.KEY_HOME: KEY_HOME,
    curses.KEY_END: KEY_END,
    curses.KEY_PPAGE: KEY_PGUP,
    curses.KEY_NPAGE: KEY_PGDOWN,
    curses.KEY_BACKSPACE: KEY_BACKSPACE,
    curses.KEY_DC: KEY_DELETE,
    curses.KEY_BTAB: KEY_SHIFT_TAB,
    curses.KEY_ENTER: KEY_ENTER,
}

_CONTROL_CHARS = {
    "\t": KEY_TAB,
    "\n": KEY_ENTER,
    "\r": KEY_ENTER,
    "\x1b": KEY_ESC,
    "\x7f": KEY_BACKSPACE,
    "\x08": KEY_BACKSPACE,
    "\x03": KEY_CTRL_C,
}

_ATTRIBUTES = {
    "bold": curses.A_BOLD,
    "dim": curses.A_DIM,
    "reverse": curses.A_REVERSE,
    "italic": getattr(curses, "A_ITALIC", 0),
}

_COLOR_NAMES = {
    "magenta": curses.COLOR_MAGENTA,
    "green": curses.COLOR_GREEN,
    "red": curses.COLOR_RED,
    "white": curses.COLOR_WHITE,
    "yellow": curses.COLOR_YELLOW,
}


def decode_key(ch: Union[str, int]) -> Optional[KeyEvent]:
    """Map a ``get_wch()`` result to a :class:`KeyEvent` (``None`` if unknown)."""
    if isinstance(ch, int):
        name = _SPECIAL_KEYS.get(ch)
        return KeyEvent(name) if name else None

    if ch in _CONTROL_CHARS:
        return KeyEvent(_CONTROL_CHARS[ch])
    if len(ch) == 1 and 1 <= ord(ch) <= 26:
        return KeyEvent(f"ctrl+{chr(ord(ch) + 96)}")
    if ch.isprintable():
        return KeyEvent.rune(ch)
    return None


class TerminalApp:
    def __init__(
        self,
        defaults: FormDefaults = FormDefaults(),
        *,
        settings: RunnerSettings = RunnerSettings(),
        summary: Optional[SessionSummary] = None,
    ) -> None:
        self.defaults = defaults
        self.settings = settings
        self.summary = summary or SessionSummary(None)
        self._background: Optional[BackgroundRun] = None
        self._styles: Dict[str, int] = {}

    def probe(self) -> bool:
        found = gm_runner.gm_available(self.settings)
        if not found:
            logger.warning(f"'{self.settings.gm_binary}' not found in PATH")
        return found

    def run(self) -> None:
        locale.setlocale(locale.LC_ALL, "")
        os.environ.setdefault("ESCDELAY", "25")
        try:
            curses.wrapper(self._main)
        finally:
            if self._background is not None and self._background.in_flight:
                logger.warning("Exited while a gm run was still in flight")
            self.summary.finalize()

    def _main(self, stdscr: "curses.window") -> None:
        curses.raw()
        try:
            curses.curs_set(0)
        except curses.error:
            pass
        stdscr.keypad(True)
        stdscr.timeout(int(SPINNER_INTERVAL_SEC * 1000))
        self._styles = _init_styles()

        height, width = stdscr.getmaxyx()
        model = initial_model(self.defaults, probe=self.probe, size=TerminalSize(width, height))
        logger.info(f"UI started ({width}x{height})")

        next_tick = time.monotonic() + SPINNER_INTERVAL_SEC
        while True:
            self._paint(stdscr, render(model))

            for event in self._next_events(stdscr):
                transition = update(model, event, probe=self.probe)
                model = transition.model
                for effect in transition.effects:
                    if isinstance(effect, Quit):
                        logger.info("Quit")
                        return
                    if isinstance(effect, StartRun):
                        self._start_run(effect.config)

            now = time.monotonic()
            if now >= next_tick:
                model = update(model, TickEvent(), probe=self.probe).model
                next_tick = now + SPINNER_INTERVAL_SEC

    def _next_events(self, stdscr: "curses.window") -> List[Event]:
        if self._background is not None:
            outcome = self._background.poll()
            if outcome is not None:
                self._background = None
                self.summary.record_outcome(outcome)
                return [RunCompleted(outcome)]

        try:
            ch = stdscr.get_wch()
        except curses.error:
            # input timeout
            return []

        if ch == curses.KEY_RESIZE:
            curses.update_lines_cols()
            height, width = stdscr.getmaxyx()
            return [ResizeEvent(width, height)]

        event = decode_key(ch)
        return [event] if event is not None else []

    def _start_run(self, config: RunConfiguration) -> None:
        self.summary.record_start(config)
        runner = partial(gm_runner.run, settings=self.settings)
        self._background = BackgroundRun(config, runner).start()

    def _paint(self, stdscr: "curses.window", lines: Sequence[Line]) -> None:
        stdscr.erase()
        height, width = stdscr.getmaxyx()
        for row, line in enumerate(lines):
            y = MARGIN_TOP + row
            if y >= height:
                break
            x = MARGIN_LEFT
            for text, style in line:
                if x >= width - 1:
                    break
                if not text:
                    continue
                try:
                    stdscr.addnstr(y, x, text, width - 1 - x, self._styles.get(style, 0))
                except curses.error:
                    # writing into the last cell raises even though it succeeds
                    pass
                x += len(text)
        stdscr.noutrefresh()
        curses.doupdate()


def _init_styles() -> Dict[str, int]:
    pairs: Dict[str, int] = {}
    if curses.has_colors():
        curses.start_color()
        background = 0
        try:
            curses.use_default_colors()
            background = -1
        except curses.error:
            pass
        use_256 = curses.COLORS >= 256
        for index, (name, (xterm_index, fallback)) in enumerate(PALETTE.items(), start=1):
            foreground = xterm_index if use_256 else _COLOR_NAMES[fallback]
            try:
                curses.init_pair(index, foreground, background)
            except curses.error:
                continue
            pairs[name] = curses.color_pair(index)

    styles: Dict[str, int] = {}
    for token, (palette_name, attributes) in STYLES.items():
        attr = pairs.get(palette_name, 0) if palette_name else 0
        for attribute in attributes:
            attr |= _ATTRIBUTES[attribute]
        styles[token] = attr
    return styles


def run_tui(
    defaults: FormDefaults = FormDefaults(),
    *,
    settings: RunnerSettings = RunnerSettings(),
    summary: Optional[SessionSummary] = None,
) -> None:
    """Run the interactive UI until the user quits."""
    TerminalApp(defaults, settings=settings, summary=summary).run()
