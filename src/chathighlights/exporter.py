from __future__ import annotations

import logging
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, List, Optional, Sequence

from .ffmpeg import _require_cmd
from .utils import subprocess_flags as _subprocess_flags
from .windows import HighlightWindow

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ClipSpec:
    video_path: Path
    start_s: float
    end_s: float
    output_path: Path

    # Stream copy is fast but cuts on keyframes; re-encode for exact cuts.
    reencode: bool = False
    vcodec: str = "libx264"
    preset: str = "veryfast"
    crf: int = 20
    acodec: str = "aac"
    abitrate: str = "128k"

    @property
    def duration_s(self) -> float:
        return max(0.0, float(self.end_s) - float(self.start_s))


def clip_output_path(video_path: Path, out_dir: Path, index: int) -> Path:
    video_path = Path(video_path)
    return Path(out_dir) / f"{video_path.stem}_{index:03d}{video_path.suffix or '.mp4'}"


def clip_specs_for_windows(
    video_path: Path,
    windows: Sequence[HighlightWindow],
    out_dir: Path,
    *,
    reencode: bool = False,
) -> List[ClipSpec]:
    return [
        ClipSpec(
            video_path=Path(video_path),
            start_s=w.start_s,
            end_s=w.end_s,
            output_path=clip_output_path(video_path, out_dir, w.index),
            reencode=reencode,
        )
        for w in windows
    ]


def build_trim_command(spec: ClipSpec) -> list[str]:
    _require_cmd("ffmpeg")
    cmd = [
        "ffmpeg",
        "-hide_banner",
        "-nostdin",
        "-y",
        "-ss",
        f"{spec.start_s:.3f}",
        "-i",
        str(spec.video_path),
        "-t",
        f"{spec.duration_s:.3f}",
    ]
    if spec.reencode:
        cmd += [
            "-c:v",
            spec.vcodec,
            "-preset",
            spec.preset,
            "-crf",
            str(spec.crf),
            "-c:a",
            spec.acodec,
            "-b:a",
            spec.abitrate,
        ]
    else:
        cmd += ["-c", "copy", "-avoid_negative_ts", "make_zero"]
    cmd += ["-progress", "pipe:1", "-nostats"]

    spec.output_path.parent.mkdir(parents=True, exist_ok=True)
    cmd.append(str(spec.output_path))
    return cmd


def build_concat_command(list_path: Path, output_path: Path) -> list[str]:
    _require_cmd("ffmpeg")
    return [
        "ffmpeg",
        "-hide_banner",
        "-nostdin",
        "-y",
        "-f",
        "concat",
        "-safe",
        "0",
        "-i",
        str(list_path),
        "-c",
        "copy",
        str(output_path),
    ]


def write_concat_list(clips: Sequence[Path], list_path: Path) -> Path:
    lines = []
    for clip in clips:
        escaped = str(Path(clip).resolve()).replace("'", "'\\''")
        lines.append(f"file '{escaped}'\n")
    list_path.parent.mkdir(parents=True, exist_ok=True)
    list_path.write_text("".join(lines), encoding="utf-8")
    return list_path


def run_clip_export(
    spec: ClipSpec,
    *,
    on_progress: Optional[Callable[[float, str], None]] = None,
) -> Path:
    """Run the ffmpeg trim for ``spec``, optionally reporting progress (0..1)."""
    cmd = build_trim_command(spec)
    duration = max(0.01, spec.duration_s)

    if on_progress:
        on_progress(0.0, "starting")

    proc = subprocess.Popen(
        cmd,
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
        text=True,
        **_subprocess_flags(),
    )
    stdout, stderr = proc.communicate()

    for line in (stdout or "").splitlines():
        # ffmpeg -progress emits key=value
        k, sep, v = line.strip().partition("=")
        if not sep or not on_progress:
            continue
        if k == "out_time_ms":
            try:
                frac = min(1.0, max(0.0, (int(v) / 1_000_000.0) / duration))
            except ValueError:
                continue
            on_progress(frac, "encoding")

    if proc.returncode != 0:
        raise RuntimeError(f"ffmpeg clip export failed (exit={proc.returncode}). {(stderr or '').strip()}")
    if on_progress:
        on_progress(1.0, "done")
    logger.info("Exported clip %.2fs..%.2fs to %s", spec.start_s, spec.end_s, spec.output_path)
    return spec.output_path


def concat_clips(clips: Sequence[Path], output_path: Path) -> Path:
    output_path = Path(output_path)
    list_path = write_concat_list(clips, output_path.with_suffix(".concat.txt"))
    cmd = build_concat_command(list_path, output_path)
    proc = subprocess.run(cmd, capture_output=True, text=True, **_subprocess_flags())
    if proc.returncode != 0:
        raise RuntimeError(f"ffmpeg concat failed (exit={proc.returncode}). {proc.stderr.strip()}")
    logger.info("Concatenated %d clips into %s", len(clips), output_path)
    return output_path


def export_highlights(
    video_path: Path,
    windows: Sequence[HighlightWindow],
    out_dir: Path,
    *,
    concat: bool = False,
    reencode: bool = False,
    on_progress: Optional[Callable[[int, int, float, str], None]] = None,
) -> List[Path]:
    """Trim one clip per window; with ``concat`` also join them into ``<stem>_highlights``.

    Returns:
        Clip paths in window order, followed by the joined file when ``concat`` is set.
    """
    specs = clip_specs_for_windows(video_path, windows, out_dir, reencode=reencode)
    outputs: List[Path] = []
    for n, spec in enumerate(specs, start=1):

        def _prog(frac: float, msg: str, _n: int = n) -> None:
            if on_progress:
                on_progress(_n, len(specs), frac, msg)

        outputs.append(run_clip_export(spec, on_progress=_prog))

    if concat and outputs:
        video_path = Path(video_path)
        joined = Path(out_dir) / f"{video_path.stem}_highlights{video_path.suffix or '.mp4'}"
        outputs.append(concat_clips(outputs[: len(specs)], joined))
    return outputs
