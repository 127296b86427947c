"""
Pure text builders for every screen.

``render(model)`` turns an :class:`~imageslim.ui_state.AppModel` into a list
of lines, each a tuple of ``(text, style token)`` segments. Nothing here
touches the terminal; :mod:`imageslim.terminal_app` paints the result.
"""

from __future__ import annotations

from typing import Iterable, List, Sequence, Tuple

from imageslim.command_builder import OutputMode
from imageslim.errors import describe_failure
from imageslim.gm_runner import RunOutcome
from imageslim.ui_state import (
    AppModel,
    DoneScreen,
    ErrorScreen,
    FocusPosition,
    FormScreen,
    RunningScreen,
)
from imageslim.ui_widgets import Line, Viewport

MIN_VIEWPORT_WIDTH = 40
MIN_VIEWPORT_HEIGHT = 5
VIEWPORT_MARGIN_X = 4
VIEWPORT_RESERVED_ROWS = 10

TITLE_TEXT = "ImageSlim — Batch Image Resize & Compress"
SUBTITLE_TEXT = "Powered by GraphicsMagick"
MODE_LABELS = {
    OutputMode.PRESERVE: "Preserve originals  →  write to output/ folder",
    OutputMode.OVERWRITE: "Overwrite files in-place  →  gm mogrify",
}
FIELD_LABELS = {
    FocusPosition.DIRECTORY: "Base directory",
    FocusPosition.RESIZE: "Resize  (W×H)",
    FocusPosition.QUALITY: "JPEG quality  (1–100)",
}
GM_MISSING_LINES = (
    "⚠  'gm' not found in PATH — install GraphicsMagick first",
    "   macOS: brew install graphicsmagick   Debian/Ubuntu: apt install graphicsmagick",
)
FORM_HELP = "[Tab] next field   [↑↓] change mode   [Enter] run   [Ctrl+C / q] quit"
RUNNING_HELP = "[q / Ctrl+C] quit"
DONE_HELP = "[r] run again   [Enter / q] quit"
ERROR_HELP = "[r] try again   [Enter / q] quit"
NO_OUTPUT_TEXT = "(no output)"


def viewport_width(term_width: int) -> int:
    """Content width of the output view, with a small side margin."""
    return max(MIN_VIEWPORT_WIDTH, term_width - VIEWPORT_MARGIN_X)


def viewport_height(term_height: int) -> int:
    """Visible output rows, leaving room for the banner and help lines."""
    return max(MIN_VIEWPORT_HEIGHT, term_height - VIEWPORT_RESERVED_ROWS)


def _line(*segments: Tuple[str, str]) -> Line:
    return tuple(segments)


def _blank() -> Line:
    return ()


def plain_text(lines: Iterable[Line]) -> str:
    """Concatenate rendered lines without styling (handy for logs and tests)."""
    return "\n".join("".join(text for text, _style in line) for line in lines)


def clip_line(line: Line, width: int) -> Line:
    """Cut a line down to at most *width* characters."""
    remaining = width
    clipped: List[Tuple[str, str]] = []
    for text, style in line:
        if remaining <= 0:
            break
        part = text[:remaining]
        clipped.append((part, style))
        remaining -= len(part)
    return tuple(clipped)


def build_output_content(outcome: RunOutcome) -> Tuple[Line, ...]:
    """Lines shown in the scrollable output view after a run."""
    lines: List[Line] = [_line((text, "cmd")) for text in outcome.command_description.splitlines()]
    lines.append(_blank())
    if outcome.output.strip():
        for text in outcome.output.replace("\r\n", "\n").split("\n"):
            lines.append(_line((text.expandtabs(4).replace("\r", ""), "plain")))
        if lines and lines[-1] == (("", "plain"),):
            lines.pop()
    else:
        lines.append(_line((NO_OUTPUT_TEXT, "subtitle")))
    return tuple(lines)


def build_result_viewport(outcome: RunOutcome, term_width: int, term_height: int) -> Viewport:
    return Viewport(
        lines=build_output_content(outcome),
        width=viewport_width(term_width),
        height=viewport_height(term_height),
    )


def scroll_hint(viewport: Viewport) -> str:
    if viewport.at_top and viewport.at_bottom:
        return ""
    return f"↑↓ / PgUp PgDn to scroll   {int(viewport.scroll_percent() * 100)}%"


def render_text_field(screen: FormScreen, position: FocusPosition) -> List[Line]:
    focused = screen.focus == position
    label = FIELD_LABELS[position]
    text_field = screen.field(position)

    label_line = _line((label, "focused_label" if focused else "label"))
    border = ("│ ", "focused_border" if focused else "blurred_border")

    if not focused:
        if text_field.value:
            before, under, after = text_field.visible()
            return [label_line, _line(border, (before + under + after, "plain"))]
        return [label_line, _line(border, (text_field.placeholder, "placeholder"))]

    if not text_field.value:
        placeholder = text_field.placeholder
        return [
            label_line,
            _line(border, (placeholder[:1] or " ", "cursor"), (placeholder[1:], "placeholder")),
        ]

    before, under, after = text_field.visible()
    return [
        label_line,
        _line(border, (before, "plain"), (under or " ", "cursor"), (after, "plain")),
    ]


def render_mode_selector(screen: FormScreen) -> List[Line]:
    focused = screen.focus == FocusPosition.MODE
    lines: List[Line] = [_line(("Output mode", "focused_label" if focused else "label"))]
    for mode, label in MODE_LABELS.items():
        selected = mode == screen.output_mode
        radio = "●" if selected else "○"
        text = f"  {radio}  {label}"
        if selected:
            style = "selected_mode" if focused else "bold"
        else:
            style = "unselected_mode"
        lines.append(_line((text, style)))
    return lines


def render_form(screen: FormScreen) -> List[Line]:
    lines: List[Line] = [
        _line((TITLE_TEXT, "title")),
        _line((SUBTITLE_TEXT, "subtitle")),
        _blank(),
    ]
    if not screen.gm_found:
        lines.extend(_line((text, "warning")) for text in GM_MISSING_LINES)
        lines.append(_blank())

    for position in (FocusPosition.DIRECTORY, FocusPosition.RESIZE, FocusPosition.QUALITY):
        lines.extend(render_text_field(screen, position))
        lines.append(_blank())

    lines.extend(render_mode_selector(screen))
    lines.append(_blank())
    lines.append(_line((FORM_HELP, "help")))
    return lines


def render_running(screen: RunningScreen) -> List[Line]:
    return [
        _line(("Processing…", "title")),
        _blank(),
        _line(
            (screen.spinner.view(), "spinner"),
            ("  ", "plain"),
            ("Running GraphicsMagick — please wait…", "subtitle"),
        ),
        _blank(),
        _line((RUNNING_HELP, "help")),
    ]


def _render_viewport(viewport: Viewport) -> List[Line]:
    lines = [clip_line(line, viewport.width) for line in viewport.visible_lines()]
    hint = scroll_hint(viewport)
    lines.append(_line((hint, "help")) if hint else _blank())
    return lines


def render_done(screen: DoneScreen) -> List[Line]:
    lines: List[Line] = [
        _line(("✓  Done!", "success")),
        _line(("All files processed successfully.", "subtitle")),
        _blank(),
    ]
    lines.extend(_render_viewport(screen.viewport))
    lines.append(_line((DONE_HELP, "help")))
    return lines


def render_error(screen: ErrorScreen) -> List[Line]:
    lines: List[Line] = [
        _line(("✗  Error", "error")),
        _line((describe_failure(screen.outcome.failure), "subtitle")),
        _blank(),
    ]
    lines.extend(_render_viewport(screen.viewport))
    lines.append(_line((ERROR_HELP, "help")))
    return lines


def render(model: AppModel) -> Sequence[Line]:
    screen = model.screen
    if isinstance(screen, FormScreen):
        return render_form(screen)
    if isinstance(screen, RunningScreen):
        return render_running(screen)
    if isinstance(screen, DoneScreen):
        return render_done(screen)
    if isinstance(screen, ErrorScreen):
        return render_error(screen)
    raise TypeError(f"unknown screen: {type(screen).__name__}")
