"""
Screen state machine.

``update(model, event)`` is the only place screens change. It returns a
:class:`Transition`: the replacement model plus any effects the terminal
driver must carry out (quitting, starting the background run).

    Form --enter--> Running --outcome ok--> Done  --r--> Form
                            --failure---> Error --r--> Form
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Callable, Tuple

from loguru import logger

from imageslim import command_builder
from imageslim.command_builder import OutputMode
from imageslim.ui_events import (
    KEY_CTRL_C,
    KEY_DOWN,
    KEY_ENTER,
    KEY_ESC,
    KEY_SHIFT_TAB,
    KEY_TAB,
    KEY_UP,
    Effect,
    Event,
    KeyEvent,
    Quit,
    ResizeEvent,
    RunCompleted,
    StartRun,
    TickEvent,
)
from imageslim.ui_state import (
    AppModel,
    DoneScreen,
    ErrorScreen,
    FocusPosition,
    FormScreen,
    ResultScreen,
    RunningScreen,
    TerminalSize,
    new_form,
)
from imageslim.ui_text_presenter import build_result_viewport, viewport_height, viewport_width


@dataclass(frozen=True)
class Transition:
    model: AppModel
    effects: Tuple[Effect, ...] = ()

    @property
    def quits(self) -> bool:
        return any(isinstance(effect, Quit) for effect in self.effects)


def _stay(model: AppModel) -> Transition:
    return Transition(model)


def _quit(model: AppModel) -> Transition:
    return Transition(model, (Quit(),))


def update(model: AppModel, event: Event, *, probe: Callable[[], bool]) -> Transition:
    """Apply *event* to *model*.

    *probe* reports whether ``gm`` is reachable; it is called whenever a new
    form is created after a restart.
    """
    if isinstance(event, ResizeEvent):
        return _stay(_on_resize(model, event))

    if isinstance(event, KeyEvent) and event.key == KEY_CTRL_C:
        return _quit(model)

    screen = model.screen
    if isinstance(screen, FormScreen):
        return _update_form(model, screen, event)
    if isinstance(screen, RunningScreen):
        return _update_running(model, screen, event)
    if isinstance(screen, ResultScreen):
        return _update_result(model, screen, event, probe)
    raise TypeError(f"unknown screen: {type(screen).__name__}")


def _on_resize(model: AppModel, event: ResizeEvent) -> AppModel:
    size = TerminalSize(event.width, event.height)
    screen = model.screen
    if isinstance(screen, ResultScreen):
        viewport = screen.viewport.resized(viewport_width(size.width), viewport_height(size.height))
        screen = replace(screen, viewport=viewport)
    return replace(model, screen=screen, size=size)


def _update_form(model: AppModel, screen: FormScreen, event: Event) -> Transition:
    if not isinstance(event, KeyEvent):
        # ticks and stray completion events have no meaning here
        return _stay(model)

    key = event.key
    if key == KEY_ESC:
        return _quit(model)

    if key == KEY_TAB:
        return _stay(replace(model, screen=replace(screen, focus=screen.focus.next())))
    if key == KEY_SHIFT_TAB:
        return _stay(replace(model, screen=replace(screen, focus=screen.focus.previous())))

    if key == KEY_ENTER:
        config = command_builder.build(screen.values())
        logger.info(f"Form submitted: {config}")
        return Transition(replace(model, screen=RunningScreen()), (StartRun(config),))

    on_mode = screen.focus == FocusPosition.MODE
    if key == KEY_UP:
        if on_mode and screen.output_mode > OutputMode.PRESERVE:
            screen = replace(screen, output_mode=OutputMode(screen.output_mode - 1))
        return _stay(replace(model, screen=screen))
    if key == KEY_DOWN:
        if on_mode and screen.output_mode < OutputMode.OVERWRITE:
            screen = replace(screen, output_mode=OutputMode(screen.output_mode + 1))
        return _stay(replace(model, screen=screen))

    if on_mode:
        # text fields swallow every rune, so "q" only quits from the selector
        if event.is_rune("q"):
            return _quit(model)
        return _stay(model)

    text_field = screen.field(screen.focus).handle_key(event)
    return _stay(replace(model, screen=screen.with_field(screen.focus, text_field)))


def _update_running(model: AppModel, screen: RunningScreen, event: Event) -> Transition:
    if isinstance(event, TickEvent):
        return _stay(replace(model, screen=replace(screen, spinner=screen.spinner.tick())))

    if isinstance(event, RunCompleted):
        outcome = event.outcome
        viewport = build_result_viewport(outcome, model.size.width, model.size.height)
        if outcome.failure is None:
            return _stay(replace(model, screen=DoneScreen(outcome=outcome, viewport=viewport)))
        return _stay(replace(model, screen=ErrorScreen(outcome=outcome, viewport=viewport)))

    if isinstance(event, KeyEvent) and (event.key == KEY_ESC or event.is_rune("q")):
        logger.warning("Quit requested while gm is still running; the child process may keep running")
        return _quit(model)
    return _stay(model)


def _update_result(model: AppModel, screen, event: Event, probe: Callable[[], bool]) -> Transition:
    if not isinstance(event, KeyEvent):
        return _stay(model)

    if event.key in (KEY_ESC, KEY_ENTER) or event.is_rune("q"):
        return _quit(model)

    if event.is_rune("r"):
        form = new_form(model.defaults, gm_found=probe())
        return _stay(AppModel(screen=form, size=model.size, defaults=model.defaults))

    return _stay(replace(model, screen=replace(screen, viewport=screen.viewport.handle_key(event))))
