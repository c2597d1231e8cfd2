"""Locate ffmpeg tools and probe video metadata."""

from __future__ import annotations

import shutil
import subprocess
from pathlib import Path

from .utils import subprocess_flags as _subprocess_flags

_PROBE_DURATION_ARGS = ["-v", "error", "-show_entries", "format=duration", "-of", "csv=p=0"]


def _require_cmd(cmd: str) -> str:
    """Return the full path of ``cmd`` or raise if it is not installed."""
    found = shutil.which(cmd)
    if found is None:
        raise RuntimeError(f"'{cmd}' is required but was not found on PATH (install ffmpeg)")
    return found


def ffprobe_duration_seconds(video_path: Path) -> float:
    """Container duration of ``video_path`` in seconds, used to clamp windows.

    Raises:
        FileNotFoundError: the video does not exist.
        RuntimeError: ffprobe is missing, fails on the file or reports no duration.
    """
    video_path = Path(video_path)
    if not video_path.is_file():
        raise FileNotFoundError(f"Video not found: {video_path}")
    ffprobe = _require_cmd("ffprobe")

    proc = subprocess.run(
        [ffprobe, *_PROBE_DURATION_ARGS, str(video_path)],
        capture_output=True,
        text=True,
        **_subprocess_flags(),
    )
    if proc.returncode != 0:
        detail = (proc.stderr or "").strip() or f"exit code {proc.returncode}"
        raise RuntimeError(f"ffprobe could not read {video_path.name}: {detail}")

    raw = (proc.stdout or "").strip()
    try:
        return float(raw)
    except ValueError as e:
        raise RuntimeError(f"ffprobe reported no usable duration for {video_path.name}: {raw!r}") from e
