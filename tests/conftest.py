"""Shared fixtures: a fake gm script, a failing gm and a directory with a real JPEG."""

from __future__ import annotations

import stat
from pathlib import Path

import pytest
from loguru import logger
from PIL import Image

from imageslim.gm_runner import RunnerSettings

# Stand-in for GraphicsMagick: "convert SRC ... OUT" copies SRC to OUT and
# appends a marker; "mogrify ... FILES" appends the marker to every file.
FAKE_GM_SCRIPT = """#!/usr/bin/env bash
sub="$1"; shift
case "$sub" in
  convert)
    src="$1"; shift
    for last in "$@"; do :; done
    cp "$src" "$last" && printf 'resized' >> "$last"
    echo "converted $src -> $last"
    ;;
  mogrify)
    files=()
    while [ $# -gt 0 ]; do
      case "$1" in
        -resize|-quality) shift 2 ;;
        *) files+=("$1"); shift ;;
      esac
    done
    for f in "${files[@]}"; do printf 'resized' >> "$f"; echo "mogrified $f"; done
    ;;
  *)
    echo "unknown subcommand $sub" >&2; exit 2
    ;;
esac
"""

FAILING_GM_SCRIPT = """#!/usr/bin/env bash
echo "gm: simulated failure for $*" >&2
exit 1
"""


@pytest.fixture(autouse=True)
def _quiet_logger():
    """Keep loguru quiet during tests."""
    logger.remove()
    yield


def _write_script(path: Path, body: str) -> Path:
    path.write_text(body, encoding="utf-8")
    path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return path


@pytest.fixture
def fake_gm(tmp_path: Path) -> RunnerSettings:
    """RunnerSettings pointing at a fake gm script (plain bash, no login shell)."""
    (tmp_path / "bin").mkdir()
    script = _write_script(tmp_path / "bin" / "gm", FAKE_GM_SCRIPT)
    return RunnerSettings(gm_binary=str(script), shell=("bash", "-c"))


@pytest.fixture
def failing_gm(tmp_path: Path) -> RunnerSettings:
    (tmp_path / "failbin").mkdir()
    script = _write_script(tmp_path / "failbin" / "gm", FAILING_GM_SCRIPT)
    return RunnerSettings(gm_binary=str(script), shell=("bash", "-c"))


@pytest.fixture
def image_dir(tmp_path: Path) -> Path:
    """Directory with one real JPEG ``a.jpg``."""
    base = tmp_path / "images"
    base.mkdir()
    img = Image.new("RGB", (1920, 1080), color=(255, 0, 0))
    img.save(base / "a.jpg", "JPEG", quality=95)
    return base
