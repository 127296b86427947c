from __future__ import annotations

import json
from datetime import datetime
from pathlib import Path

from loguru import logger

from imageslim import runtime_logging
from imageslim.command_builder import RunConfiguration
from imageslim.errors import CommandExitError
from imageslim.gm_runner import RunOutcome
from imageslim.runtime_logging import SessionSummary


def _touch_session(log_dir: Path, session_id: str) -> None:
    (log_dir / f"session_{session_id}.log").write_text("log", encoding="utf-8")
    (log_dir / f"session_{session_id}.json").write_text("{}", encoding="utf-8")


def test_default_log_dir_uses_xdg_state_home(tmp_path: Path) -> None:
    env = {"XDG_STATE_HOME": str(tmp_path / "state")}

    assert runtime_logging.default_log_dir(env=env, home=tmp_path / "home") == tmp_path / "state" / "imageslim" / "logs"


def test_default_log_dir_falls_back_to_home(tmp_path: Path) -> None:
    assert runtime_logging.default_log_dir(env={}, home=tmp_path) == tmp_path / ".local" / "state" / "imageslim" / "logs"


def test_open_session_names_log_and_summary(tmp_path: Path) -> None:
    files = runtime_logging.open_session(tmp_path / "logs", now=datetime(2026, 2, 12, 9, 30, 45))

    assert files.session_id == "20260212_093045"
    assert (tmp_path / "logs").is_dir()
    assert files.log_path == tmp_path / "logs" / "session_20260212_093045.log"
    assert files.summary_path == tmp_path / "logs" / "session_20260212_093045.json"


def test_open_session_keeps_only_newest_sessions(tmp_path: Path) -> None:
    for day in range(1, 6):
        _touch_session(tmp_path, f"2026020{day}_120000")
    (tmp_path / "notes.log").write_text("keep", encoding="utf-8")

    runtime_logging.open_session(tmp_path, keep=3, now=datetime(2026, 2, 12, 12, 0, 0))

    # two older sessions survive, the new one makes three
    assert sorted(p.name for p in tmp_path.iterdir()) == [
        "notes.log",
        "session_20260204_120000.json",
        "session_20260204_120000.log",
        "session_20260205_120000.json",
        "session_20260205_120000.log",
    ]


def test_forget_old_sessions_removes_log_and_summary_together(tmp_path: Path) -> None:
    _touch_session(tmp_path, "20251220_120000")
    (tmp_path / "session_20260101_080000.log").write_text("log only", encoding="utf-8")

    removed = runtime_logging.forget_old_sessions(tmp_path, keep=1)

    assert {p.name for p in removed} == {"session_20251220_120000.log", "session_20251220_120000.json"}
    assert (tmp_path / "session_20260101_080000.log").exists()


def test_setup_logging_writes_file_sink(tmp_path: Path) -> None:
    log_file = tmp_path / "session.log"

    runtime_logging.setup_logging(log_file, file_level="INFO")
    logger.debug("hidden detail")
    logger.info("gm batch finished")
    logger.remove()

    content = log_file.read_text(encoding="utf-8")
    assert "gm batch finished" in content
    assert "| INFO     |" in content
    assert "hidden detail" not in content


def test_session_summary_records_runs(tmp_path: Path) -> None:
    path = tmp_path / "session_20260212_093045.json"
    summary = SessionSummary(path, now=lambda: datetime(2026, 2, 12, 9, 30, 45))
    config = RunConfiguration(
        base_directory=Path("/srv/images"),
        file_pattern="*.jpg",
        resize_geometry="1200x1200",
        quality=80,
        overwrite_in_place=True,
    )

    summary.record_start(config)
    summary.record_outcome(RunOutcome(command_description="(in /srv/images)\nfind .", output="", failure=CommandExitError(1)))
    summary.finalize()

    payload = json.loads(path.read_text(encoding="utf-8"))
    assert payload["finished_at"] == "2026-02-12T09:30:45"
    assert len(payload["runs"]) == 1
    run = payload["runs"][0]
    assert run["mode"] == "overwrite"
    assert run["quality"] == 80
    assert run["succeeded"] is False
    assert run["failure"] == "exit status 1"
    assert [p.name for p in tmp_path.iterdir()] == [path.name]


def test_session_summary_without_path_writes_nothing(tmp_path: Path) -> None:
    summary = SessionSummary(None)
    summary.record_outcome(RunOutcome(command_description="x", output=""))
    summary.finalize()

    assert summary.payload["runs"][0]["succeeded"] is True
    assert list(tmp_path.iterdir()) == []
