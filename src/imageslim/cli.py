"""Command line entry point for the ``imageslim`` terminal UI."""

from __future__ import annotations

import argparse
import curses
import sys
from importlib import metadata
from pathlib import Path
from typing import Optional, Sequence

from loguru import logger

from imageslim.command_builder import QUALITY_LIMITS, OutputMode
from imageslim.gm_runner import DEFAULT_GM_BINARY, RunnerSettings
from imageslim.runtime_logging import SessionSummary, open_session, setup_logging
from imageslim.terminal_app import run_tui
from imageslim.ui_state import FormDefaults


def _version() -> str:
    try:
        return metadata.version("imageslim")
    except metadata.PackageNotFoundError:
        return "unknown"


def _build_arg_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="imageslim",
        description="Interactive batch resize / recompress of JPEG files with GraphicsMagick",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    p.add_argument("-d", "--dir", default=None, help="initial base directory (default: current directory)")
    p.add_argument("-r", "--resize", default="1200x1200", help="initial resize geometry (WxH)")
    p.add_argument("-q", "--quality", type=_quality_arg, default=80, help="initial JPEG quality (1-100)")
    p.add_argument("--overwrite", action="store_true", help="start with in-place overwrite mode selected")
    p.add_argument("--gm-binary", default=DEFAULT_GM_BINARY, help="GraphicsMagick executable name or path")
    p.add_argument("--log-dir", type=Path, default=None, help="directory for session logs")
    p.add_argument("--no-log-file", action="store_true", help="do not write a session log")
    p.add_argument("--verbose", "-v", action="count", default=0, help="more detailed logs (repeatable)")
    p.add_argument("--version", action="version", version=f"%(prog)s {_version()}")
    return p


def form_defaults_from_args(args: argparse.Namespace) -> FormDefaults:
    return FormDefaults(
        directory=args.dir,
        resize=args.resize,
        quality=str(args.quality),
        output_mode=OutputMode.OVERWRITE if args.overwrite else OutputMode.PRESERVE,
    )


def _quality_arg(value: str) -> int:
    low, high = QUALITY_LIMITS
    try:
        quality = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid quality: {value!r}") from None
    if not low <= quality <= high:
        raise argparse.ArgumentTypeError(f"quality must be between {low} and {high}: {quality}")
    return quality


def _file_level(verbose: int) -> str:
    if verbose >= 2:
        return "TRACE"
    if verbose == 1:
        return "DEBUG"
    return "INFO"


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = _build_arg_parser().parse_args(argv)

    summary_path = None
    if args.no_log_file:
        setup_logging(None)
    else:
        try:
            session = open_session(args.log_dir)
        except OSError as e:
            print(f"imageslim: cannot create log directory: {e}", file=sys.stderr)
            setup_logging(None)
        else:
            setup_logging(session.log_path, file_level=_file_level(args.verbose))
            summary_path = session.summary_path

    defaults = form_defaults_from_args(args)
    settings = RunnerSettings(gm_binary=args.gm_binary)
    logger.info(f"imageslim {_version()} starting: defaults={defaults} gm={settings.gm_binary}")

    try:
        run_tui(defaults, settings=settings, summary=SessionSummary(summary_path))
    except curses.error as e:
        logger.exception("Terminal UI failed")
        print(f"Error running imageslim: {e}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        return 130
    return 0


def run() -> None:
    sys.exit(main())
