import subprocess
from pathlib import Path

import pytest

import chathighlights.ffmpeg as ffmpeg
from chathighlights.ffmpeg import _require_cmd, ffprobe_duration_seconds


@pytest.fixture
def video(tmp_path: Path, monkeypatch) -> Path:
    monkeypatch.setattr(ffmpeg, "_require_cmd", lambda cmd: cmd)
    path = tmp_path / "vod.mp4"
    path.write_bytes(b"\x00")
    return path


def _fake_run(returncode: int, stdout: str = "", stderr: str = ""):
    def run(cmd, **kwargs):
        return subprocess.CompletedProcess(cmd, returncode, stdout=stdout, stderr=stderr)

    return run


def test_duration_is_parsed(video: Path, monkeypatch):
    monkeypatch.setattr(ffmpeg.subprocess, "run", _fake_run(0, stdout="7215.480000\n"))
    assert ffprobe_duration_seconds(video) == pytest.approx(7215.48)


def test_ffprobe_failure_becomes_runtime_error(video: Path, monkeypatch):
    monkeypatch.setattr(ffmpeg.subprocess, "run", _fake_run(1, stderr="vod.mp4: Invalid data found when processing input"))
    with pytest.raises(RuntimeError, match="Invalid data found"):
        ffprobe_duration_seconds(video)


def test_missing_duration_becomes_runtime_error(video: Path, monkeypatch):
    monkeypatch.setattr(ffmpeg.subprocess, "run", _fake_run(0, stdout="N/A\n"))
    with pytest.raises(RuntimeError, match="no usable duration"):
        ffprobe_duration_seconds(video)


def test_missing_video(tmp_path: Path):
    with pytest.raises(FileNotFoundError):
        ffprobe_duration_seconds(tmp_path / "missing.mp4")


def test_require_cmd_names_missing_executable(monkeypatch):
    monkeypatch.setattr(ffmpeg.shutil, "which", lambda _cmd: None)
    with pytest.raises(RuntimeError, match="'ffprobe'"):
        _require_cmd("ffprobe")
