"""
Session log for the terminal UI.

Every launch writes ``session_<YYYYmmdd_HHMMSS>.log`` (loguru file sink) and
``session_<id>.json``, a summary of each gm batch started from the form.
Only the newest sessions are kept in the log directory.
"""

from __future__ import annotations

import json
import os
import re
import sys
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Dict, List, Mapping, Optional

from loguru import logger

from imageslim.command_builder import RunConfiguration
from imageslim.errors import describe_failure
from imageslim.gm_runner import RunOutcome

APP_DIR_NAME = "imageslim"
KEEP_SESSIONS = 20
_SESSION_ID_FORMAT = "%Y%m%d_%H%M%S"
_SESSION_FILE_RE = re.compile(r"^session_(\d{8}_\d{6})\.(log|json)$")
_FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {function}: {message}"
_CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<cyan>{function}</cyan>: <white>{message}</white>"
)


@dataclass(frozen=True)
class SessionFiles:
    session_id: str
    log_path: Path
    summary_path: Path


def default_log_dir(*, env: Optional[Mapping[str, str]] = None, home: Optional[Path] = None) -> Path:
    """``$XDG_STATE_HOME/imageslim/logs``, else ``~/.local/state/imageslim/logs``."""
    env = os.environ if env is None else env
    state_home = env.get("XDG_STATE_HOME")
    if state_home:
        return Path(state_home) / APP_DIR_NAME / "logs"
    return (home or Path.home()) / ".local" / "state" / APP_DIR_NAME / "logs"


def open_session(
    log_dir: Optional[Path] = None,
    *,
    keep: int = KEEP_SESSIONS,
    now: Optional[datetime] = None,
) -> SessionFiles:
    """Create the log directory, drop old sessions and name this session's files."""
    log_dir = log_dir or default_log_dir()
    log_dir.mkdir(parents=True, exist_ok=True)
    forget_old_sessions(log_dir, keep=max(0, keep - 1))

    session_id = (now or datetime.now()).strftime(_SESSION_ID_FORMAT)
    return SessionFiles(
        session_id=session_id,
        log_path=log_dir / f"session_{session_id}.log",
        summary_path=log_dir / f"session_{session_id}.json",
    )


def forget_old_sessions(log_dir: Path, *, keep: int) -> List[Path]:
    """Delete the log and summary of every session but the newest *keep*.

    Session ids sort chronologically, so file names decide the order.
    Files that do not look like session files are left alone.
    """
    sessions: Dict[str, List[Path]] = {}
    for path in log_dir.iterdir():
        match = _SESSION_FILE_RE.match(path.name)
        if match and path.is_file():
            sessions.setdefault(match.group(1), []).append(path)

    removed = []
    for session_id in sorted(sessions, reverse=True)[keep:]:
        for path in sessions[session_id]:
            try:
                path.unlink()
            except FileNotFoundError:
                continue
            removed.append(path)
    return removed


def setup_logging(
    log_file: Optional[Path] = None,
    *,
    file_level: str = "DEBUG",
    console_level: Optional[str] = None,
) -> None:
    """Configure loguru sinks.

    No console sink is added unless *console_level* is given: while curses
    owns the screen anything written to stderr would corrupt the display.
    """
    logger.remove()
    if console_level is not None:
        logger.add(sys.stderr, format=_CONSOLE_FORMAT, colorize=True, level=console_level)
    if log_file is not None:
        logger.add(log_file, format=_FILE_FORMAT, level=file_level, encoding="utf-8")


class SessionSummary:
    """Every gm batch of the session, rewritten to ``summary_path`` after each run."""

    def __init__(self, summary_path: Optional[Path], *, now: Callable[[], datetime] = datetime.now) -> None:
        self.summary_path = summary_path
        self._now = now
        self.payload: Dict[str, Any] = {
            "started_at": self._timestamp(),
            "finished_at": None,
            "runs": [],
        }
        self._current: Optional[Dict[str, Any]] = None

    def _timestamp(self) -> str:
        return self._now().isoformat(timespec="seconds")

    def record_start(self, config: RunConfiguration) -> None:
        self._current = {
            "started_at": self._timestamp(),
            "directory": str(config.base_directory),
            "pattern": config.file_pattern,
            "resize": config.resize_geometry,
            "quality": config.quality,
            "mode": "overwrite" if config.overwrite_in_place else "preserve",
        }

    def record_outcome(self, outcome: RunOutcome) -> None:
        entry = self._current or {}
        entry.update(
            {
                "finished_at": self._timestamp(),
                "command": outcome.command_description,
                "succeeded": outcome.succeeded,
                "failure": describe_failure(outcome.failure) or None,
            }
        )
        self.payload["runs"].append(entry)
        self._current = None
        self.write()

    def finalize(self) -> None:
        self.payload["finished_at"] = self._timestamp()
        self.write()

    def write(self) -> None:
        if self.summary_path is None:
            return
        # written beside the target, then renamed over it
        tmp_path = self.summary_path.with_name(self.summary_path.name + ".tmp")
        try:
            with tmp_path.open("w", encoding="utf-8") as fh:
                json.dump(self.payload, fh, ensure_ascii=False, indent=2)
            tmp_path.replace(self.summary_path)
        except OSError:
            logger.exception("Failed to write session summary")
