"""
Screen states of the terminal UI.

The current screen is a tagged variant: exactly one of :class:`FormScreen`,
:class:`RunningScreen`, :class:`DoneScreen` or :class:`ErrorScreen`, each
carrying only what that screen needs. :class:`AppModel` adds the terminal
size and the session defaults that survive a restart.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import IntEnum
from typing import Callable, Optional, Tuple, Union

from imageslim.command_builder import (
    DEFAULT_QUALITY,
    DEFAULT_RESIZE,
    FormValues,
    OutputMode,
    default_directory,
)
from imageslim.gm_runner import RunOutcome
from imageslim.ui_widgets import Spinner, TextField, Viewport


class FocusPosition(IntEnum):
    DIRECTORY = 0
    RESIZE = 1
    QUALITY = 2
    MODE = 3

    def next(self) -> "FocusPosition":
        return FocusPosition((self + 1) % len(FocusPosition))

    def previous(self) -> "FocusPosition":
        return FocusPosition((self - 1) % len(FocusPosition))


TEXT_FOCUS_POSITIONS = (FocusPosition.DIRECTORY, FocusPosition.RESIZE, FocusPosition.QUALITY)


@dataclass(frozen=True)
class TerminalSize:
    width: int = 0
    height: int = 0


@dataclass(frozen=True)
class FormDefaults:
    """Initial form values. ``directory=None`` means the current directory."""

    directory: Optional[str] = None
    resize: str = DEFAULT_RESIZE
    quality: str = str(DEFAULT_QUALITY)
    output_mode: OutputMode = OutputMode.PRESERVE

    def resolved_directory(self) -> str:
        return self.directory if self.directory is not None else default_directory()


@dataclass(frozen=True)
class FormScreen:
    fields: Tuple[TextField, TextField, TextField]
    focus: FocusPosition = FocusPosition.DIRECTORY
    output_mode: OutputMode = OutputMode.PRESERVE
    gm_found: bool = True

    def field(self, position: FocusPosition) -> TextField:
        return self.fields[position]

    def with_field(self, position: FocusPosition, text_field: TextField) -> "FormScreen":
        fields = list(self.fields)
        fields[position] = text_field
        return replace(self, fields=tuple(fields))

    def values(self) -> FormValues:
        return FormValues(
            directory=self.fields[FocusPosition.DIRECTORY].value,
            resize=self.fields[FocusPosition.RESIZE].value,
            quality=self.fields[FocusPosition.QUALITY].value,
            output_mode=self.output_mode,
        )


@dataclass(frozen=True)
class RunningScreen:
    spinner: Spinner = field(default_factory=Spinner)


@dataclass(frozen=True)
class DoneScreen:
    outcome: RunOutcome
    viewport: Viewport


@dataclass(frozen=True)
class ErrorScreen:
    outcome: RunOutcome
    viewport: Viewport


Screen = Union[FormScreen, RunningScreen, DoneScreen, ErrorScreen]
ResultScreen = (DoneScreen, ErrorScreen)


@dataclass(frozen=True)
class AppModel:
    screen: Screen
    size: TerminalSize = TerminalSize()
    defaults: FormDefaults = FormDefaults()


def new_form(defaults: FormDefaults, *, gm_found: bool) -> FormScreen:
    """Build a fresh form from *defaults*."""
    directory = TextField.create(
        defaults.resolved_directory(),
        placeholder="e.g. ~/Pictures or /srv/images",
        width=52,
    )
    resize = TextField.create(defaults.resize, placeholder="e.g. 1200x1200", width=20)
    quality = TextField.create(defaults.quality, placeholder="1–100", width=10, char_limit=3)
    return FormScreen(
        fields=(directory, resize, quality),
        focus=FocusPosition.DIRECTORY,
        output_mode=defaults.output_mode,
        gm_found=gm_found,
    )


def initial_model(
    defaults: FormDefaults = FormDefaults(),
    *,
    probe: Callable[[], bool],
    size: TerminalSize = TerminalSize(),
) -> AppModel:
    return AppModel(screen=new_form(defaults, gm_found=probe()), size=size, defaults=defaults)
