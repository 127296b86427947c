from imageslim.errors import CommandExitError
from imageslim.gm_runner import RunOutcome
from imageslim.state_machine import update
from imageslim.ui_events import KeyEvent, RunCompleted
from imageslim.ui_state import FormDefaults, TerminalSize, initial_model
from imageslim.ui_text_presenter import (
    FORM_HELP,
    GM_MISSING_LINES,
    NO_OUTPUT_TEXT,
    build_output_content,
    clip_line,
    plain_text,
    render,
    scroll_hint,
    viewport_height,
    viewport_width,
)
from imageslim.ui_widgets import Viewport


def _form(gm_found: bool = True):
    return initial_model(FormDefaults(directory="/srv/images"), probe=lambda: gm_found, size=TerminalSize(100, 40))


def _after_run(outcome: RunOutcome):
    model = update(_form(), KeyEvent("enter"), probe=lambda: True).model
    return update(model, RunCompleted(outcome), probe=lambda: True).model


def test_viewport_dimensions_are_clamped() -> None:
    assert viewport_width(120) == 116
    assert viewport_width(30) == 40
    assert viewport_width(0) == 40
    assert viewport_height(40) == 30
    assert viewport_height(12) == 5
    assert viewport_height(0) == 5


def test_form_renders_fields_and_help() -> None:
    text = plain_text(render(_form()))

    assert "Base directory" in text
    assert "/srv/images" in text
    assert "Resize  (W×H)" in text
    assert "JPEG quality  (1–100)" in text
    assert "●  Preserve originals" in text
    assert "○  Overwrite files in-place" in text
    assert FORM_HELP in text
    assert GM_MISSING_LINES[0] not in text


def test_form_shows_warning_banner_when_gm_missing() -> None:
    text = plain_text(render(_form(gm_found=False)))

    assert GM_MISSING_LINES[0] in text
    assert "Base directory" in text


def test_focused_field_is_highlighted_with_cursor() -> None:
    lines = render(_form())
    styles = {style for line in lines for _text, style in line}

    assert "focused_label" in styles
    assert "cursor" in styles
    assert "focused_border" in styles


def test_mode_selector_highlight_when_focused() -> None:
    model = update(_form(), KeyEvent("shift+tab"), probe=lambda: True).model
    lines = render(model)

    selected = [line for line in lines if line and line[0][1] == "selected_mode"]
    assert len(selected) == 1
    assert "Preserve originals" in selected[0][0][0]


def test_running_screen_shows_spinner() -> None:
    model = update(_form(), KeyEvent("enter"), probe=lambda: True).model
    text = plain_text(render(model))

    assert "Processing…" in text
    assert "⣾" in text


def test_done_screen_shows_command_and_output() -> None:
    outcome = RunOutcome(command_description="(in /srv/images)\nfind . -type f", output="converted a.jpg\n")
    text = plain_text(render(_after_run(outcome)))

    assert "✓  Done!" in text
    assert "(in /srv/images)" in text
    assert "find . -type f" in text
    assert "converted a.jpg" in text
    assert "[r] run again" in text


def test_error_screen_shows_failure_description() -> None:
    outcome = RunOutcome(command_description="(in /x)\ncmd", output="", failure=CommandExitError(127))
    text = plain_text(render(_after_run(outcome)))

    assert "✗  Error" in text
    assert "exit status 127" in text
    assert NO_OUTPUT_TEXT in text
    assert "[r] try again" in text


def test_build_output_content_styles_command() -> None:
    lines = build_output_content(RunOutcome(command_description="(in /x)\ncmd", output="a\tb\r\nc\n"))

    assert lines[0] == (("(in /x)", "cmd"),)
    assert lines[1] == (("cmd", "cmd"),)
    assert lines[2] == ()
    assert lines[3] == (("a   b", "plain"),)
    assert lines[4] == (("c", "plain"),)
    assert len(lines) == 5


def test_scroll_hint() -> None:
    short = Viewport(lines=(((("x", "plain"),),) * 2), height=5)
    assert scroll_hint(short) == ""

    long = Viewport(lines=(((("x", "plain"),),) * 15), height=5)
    assert scroll_hint(long) == "↑↓ / PgUp PgDn to scroll   0%"
    assert scroll_hint(long.scroll_to(10)).endswith("100%")


def test_clip_line() -> None:
    line = (("abc", "a"), ("defg", "b"))
    assert clip_line(line, 5) == (("abc", "a"), ("de", "b"))
    assert clip_line(line, 3) == (("abc", "a"),)
