"""
Error types raised by the GraphicsMagick runner and their display text.
"""

from __future__ import annotations

from typing import Optional

COMMAND_NOT_FOUND_STATUS = 127


class ImageSlimError(Exception):
    """Base class for errors surfaced on the error screen."""


class CommandLaunchError(ImageSlimError):
    """The shell pipeline could not be started at all."""

    def __init__(self, cause: OSError) -> None:
        super().__init__(f"could not start command: {cause}")
        self.cause = cause


class CommandExitError(ImageSlimError):
    """The shell pipeline finished with a non-zero exit status."""

    def __init__(self, returncode: int) -> None:
        super().__init__(f"exit status {returncode}")
        self.returncode = returncode


def describe_failure(error: Optional[BaseException]) -> str:
    """Return a one-line, user-facing description of a run failure."""
    if error is None:
        return ""
    if isinstance(error, CommandExitError):
        if error.returncode == COMMAND_NOT_FOUND_STATUS:
            return f"{error} (command not found: is GraphicsMagick installed?)"
        if error.returncode < 0:
            return f"{error} (terminated by signal {-error.returncode})"
        return str(error)
    if isinstance(error, ImageSlimError):
        return str(error)

    # subprocess/OS errors that escaped the runner
    message = str(error)
    if not message:
        return type(error).__name__
    return f"{type(error).__name__}: {message}"
