"""
GraphicsMagick batch runner.

The run is a single shell pipeline executed under ``bash -lc`` so that
pipes and ``while read`` loops work, and so that the login shell PATH (which
usually contains the ``gm`` binary on macOS) is active.

Overwrite mode::

    find . -type f -iname '*.jpg' -exec gm mogrify -resize G -quality Q {} +

Preserve mode mirrors every match into ``output/<relative path>`` with
``gm convert``; originals are never written.
"""

from __future__ import annotations

import shlex
import shutil
import subprocess
from dataclasses import dataclass
from typing import Optional, Tuple

from loguru import logger

from imageslim.command_builder import RunConfiguration
from imageslim.errors import CommandExitError, CommandLaunchError

OUTPUT_DIR_NAME = "output"
DEFAULT_GM_BINARY = "gm"
DEFAULT_SHELL = ("bash", "-lc")


@dataclass(frozen=True)
class RunnerSettings:
    gm_binary: str = DEFAULT_GM_BINARY
    shell: Tuple[str, ...] = DEFAULT_SHELL


@dataclass(frozen=True)
class RunOutcome:
    """Result of one batch run, handed back to the UI exactly once."""

    command_description: str
    output: str
    failure: Optional[Exception] = None

    @property
    def succeeded(self) -> bool:
        return self.failure is None


def gm_available(settings: RunnerSettings = RunnerSettings()) -> bool:
    """Whether the configured ``gm`` binary can be found on PATH."""
    return shutil.which(settings.gm_binary) is not None


def build_shell_command(config: RunConfiguration, settings: RunnerSettings = RunnerSettings()) -> str:
    """Return the shell pipeline for *config*, relative to its base directory."""
    gm = shlex.quote(settings.gm_binary)
    pattern = shlex.quote(config.file_pattern)
    geometry = shlex.quote(config.resize_geometry)
    quality = int(config.quality)

    if config.overwrite_in_place:
        # "-exec ... +" makes find itself exit non-zero when any gm call fails
        return (
            f"find . -type f -iname {pattern} "
            f"-exec {gm} mogrify -resize {geometry} -quality {quality} {{}} +"
        )

    # NUL-separated names survive newlines, leading whitespace and backslashes.
    # The output tree is pruned so a second run does not nest output/output.
    # pipefail keeps find errors (unreadable subdirectories) in the exit status.
    return (
        "set -o pipefail; "
        f"mkdir -p {OUTPUT_DIR_NAME} && "
        f"find . -path ./{OUTPUT_DIR_NAME} -prune -o -type f -iname {pattern} -print0 | "
        "{ status=0; while IFS= read -r -d '' f; do "
        f'out="{OUTPUT_DIR_NAME}/${{f#./}}"; '
        'mkdir -p "$(dirname "$out")" && '
        f'{gm} convert "$f" -resize {geometry} -quality {quality} "$out" || status=1; '
        "done; exit $status; }"
    )


def describe_command(config: RunConfiguration, shell_cmd: str) -> str:
    return f"(in {config.base_directory})\n{shell_cmd}"


def run(config: RunConfiguration, settings: RunnerSettings = RunnerSettings()) -> RunOutcome:
    """Execute the batch for *config* and capture stdout and stderr together.

    Blocks until the pipeline exits; the UI calls this from a background
    thread (see :mod:`imageslim.background`).
    """
    shell_cmd = build_shell_command(config, settings)
    description = describe_command(config, shell_cmd)
    mode = "overwrite" if config.overwrite_in_place else "preserve"
    logger.info(
        f"Starting gm batch: dir={config.base_directory} mode={mode} "
        f"resize={config.resize_geometry} quality={config.quality}"
    )
    logger.debug(f"Pipeline: {shell_cmd}")

    try:
        completed = subprocess.run(
            [*settings.shell, shell_cmd],
            cwd=config.base_directory,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            check=False,
        )
    except OSError as e:
        logger.error(f"Could not start pipeline in {config.base_directory}: {e}")
        return RunOutcome(
            command_description=description,
            output="",
            failure=CommandLaunchError(e),
        )

    output = completed.stdout.decode("utf-8", errors="replace")
    if output:
        logger.debug(f"Pipeline output:\n{output.rstrip()}")

    if completed.returncode != 0:
        logger.error(f"gm batch failed with exit status {completed.returncode}")
        return RunOutcome(
            command_description=description,
            output=output,
            failure=CommandExitError(completed.returncode),
        )

    logger.info("gm batch finished successfully")
    return RunOutcome(command_description=description, output=output)
