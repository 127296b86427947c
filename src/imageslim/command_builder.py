"""
Turns the raw form text into a validated run configuration.

Invalid or empty values never raise: every field falls back to its default so
a submit always produces something runnable.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from enum import IntEnum
from pathlib import Path

from loguru import logger

DEFAULT_PATTERN = "*.jpg"
DEFAULT_RESIZE = "1200x1200"
DEFAULT_QUALITY = 80
QUALITY_LIMITS = (1, 100)


class OutputMode(IntEnum):
    PRESERVE = 0
    OVERWRITE = 1


@dataclass(frozen=True)
class FormValues:
    """Raw values as typed into the form."""

    directory: str
    resize: str
    quality: str
    output_mode: OutputMode = OutputMode.PRESERVE


@dataclass(frozen=True)
class RunConfiguration:
    base_directory: Path
    file_pattern: str
    resize_geometry: str
    quality: int
    overwrite_in_place: bool


def expand_home(path: str) -> str:
    """Replace a leading ``~/`` with the user's home directory."""
    if path.startswith("~/"):
        try:
            home = Path.home()
        except RuntimeError:
            return path
        return str(home / path[2:])
    return path


def parse_quality(text: str) -> int:
    """Parse a JPEG quality, falling back to the default when out of range."""
    min_val, max_val = QUALITY_LIMITS
    try:
        value = int(text.strip())
    except ValueError:
        logger.debug(f"Quality is not a number, using default: {text!r} -> {DEFAULT_QUALITY}")
        return DEFAULT_QUALITY
    if not min_val <= value <= max_val:
        logger.debug(f"Quality out of range, using default: {value} -> {DEFAULT_QUALITY}")
        return DEFAULT_QUALITY
    return value


def build(values: FormValues) -> RunConfiguration:
    """Build a :class:`RunConfiguration` from the current form values."""
    directory = expand_home(values.directory.strip())
    if not directory:
        directory = "."

    resize = values.resize.strip()
    if not resize:
        resize = DEFAULT_RESIZE

    return RunConfiguration(
        base_directory=Path(directory),
        file_pattern=DEFAULT_PATTERN,
        resize_geometry=resize,
        quality=parse_quality(values.quality),
        overwrite_in_place=values.output_mode == OutputMode.OVERWRITE,
    )


def default_directory() -> str:
    """Directory the form starts with: wherever the terminal was opened."""
    try:
        return os.getcwd()
    except OSError:
        return "."
