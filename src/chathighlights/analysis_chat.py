from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import numpy as np

from .chat.events import ChatEvent
from .chat.normalize import load_chat_log
from .engagement import SelectionCriterion, build_histogram, derive
from .errors import InvalidInputError, InvalidRangeError
from .ffmpeg import ffprobe_duration_seconds
from .peaks import BucketInterval, detect_growth_windows, detect_top_windows
from .utils import utc_iso
from .windows import HighlightWindow, to_window

logger = logging.getLogger(__name__)

MODES = ("growth", "top")


@dataclass(frozen=True)
class HighlightConfig:
    mode: str = "growth"
    interval_seconds: float = 15.0
    selection: Optional[str] = None
    prelude_seconds: float = 10.0
    skip_empty_windows: bool = True

    # growth mode
    growth_rate_trigger: float = 2.8
    breakoff_percentage: float = 0.3

    # top mode
    top_count: int = 10
    decay_tolerance: float = 0.5

    def __post_init__(self) -> None:
        if self.mode not in MODES:
            raise InvalidInputError(f"unknown highlight mode {self.mode!r} (expected one of {MODES})")
        if not self.interval_seconds > 0:
            raise InvalidInputError(f"interval must be > 0, got {self.interval_seconds}")
        if self.prelude_seconds < 0:
            raise InvalidInputError(f"prelude must be >= 0, got {self.prelude_seconds}")

    @property
    def criterion(self) -> SelectionCriterion:
        return SelectionCriterion.parse(self.selection)

    @classmethod
    def from_profile(cls, profile: Dict[str, Any], **overrides: Any) -> "HighlightConfig":
        """Build a config from a loaded profile; ``None`` overrides are ignored."""
        analysis = profile.get("analysis", {})
        chat_cfg = analysis.get("chat", {})
        hl_cfg = analysis.get("highlights", {})
        growth_cfg = hl_cfg.get("growth", {})
        top_cfg = hl_cfg.get("top", {})

        values: Dict[str, Any] = {
            "mode": str(hl_cfg.get("mode", cls.mode)),
            "interval_seconds": float(chat_cfg.get("interval_seconds", cls.interval_seconds)),
            "selection": chat_cfg.get("selection", cls.selection),
            "prelude_seconds": float(hl_cfg.get("prelude_seconds", cls.prelude_seconds)),
            "skip_empty_windows": bool(hl_cfg.get("skip_empty_windows", cls.skip_empty_windows)),
            "growth_rate_trigger": float(growth_cfg.get("trigger", cls.growth_rate_trigger)),
            "breakoff_percentage": float(growth_cfg.get("breakoff", cls.breakoff_percentage)),
            "top_count": int(top_cfg.get("count", cls.top_count)),
            "decay_tolerance": float(top_cfg.get("decay_tolerance", cls.decay_tolerance)),
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)


@dataclass
class ChatHighlights:
    """Result of one analysis run."""

    config: HighlightConfig
    counts: np.ndarray
    derivative: np.ndarray
    intervals: List[BucketInterval]
    windows: List[HighlightWindow]
    video_max_length_s: float
    skipped: int = 0
    generated_at: str = field(default_factory=utc_iso)

    @property
    def peak_count(self) -> int:
        """Largest bucket value, used to scale heatmaps."""
        return int(self.counts.max()) if len(self.counts) else 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "method": f"chat_{self.config.mode}",
            "config": asdict(self.config),
            "generated_at": self.generated_at,
            "histogram": {
                "interval_seconds": self.config.interval_seconds,
                "counts": [int(c) for c in self.counts],
                "max": self.peak_count,
            },
            "video_max_length_s": self.video_max_length_s,
            "intervals": [[iv.start, iv.end] for iv in self.intervals],
            "windows": [w.to_dict() for w in self.windows],
            "skipped": self.skipped,
        }


def select_intervals(counts: np.ndarray, derivative: np.ndarray, cfg: HighlightConfig) -> List[BucketInterval]:
    if cfg.mode == "top":
        return detect_top_windows(counts, count=cfg.top_count, decay_tolerance=cfg.decay_tolerance)
    return detect_growth_windows(
        counts,
        derivative,
        growth_rate_trigger=cfg.growth_rate_trigger,
        breakoff_percentage=cfg.breakoff_percentage,
    )


def compute_chat_highlights(
    events: Sequence[ChatEvent],
    cfg: Optional[HighlightConfig] = None,
    *,
    video_max_length_s: Optional[float] = None,
) -> ChatHighlights:
    """Histogram -> derivative -> detector -> timestamp windows.

    Args:
        events: Chat events sorted by offset.
        cfg: Analysis settings (defaults when omitted).
        video_max_length_s: End clamp for windows. Defaults to the histogram span.
    """
    cfg = cfg or HighlightConfig()
    interval_s = cfg.interval_seconds

    counts = build_histogram(events, interval_s, cfg.criterion)
    derivative = derive(counts, interval_s)
    intervals = select_intervals(counts, derivative, cfg)

    if video_max_length_s is None:
        video_max_length_s = len(counts) * interval_s

    windows: List[HighlightWindow] = []
    skipped = 0
    for iv in intervals:
        try:
            window = to_window(
                iv,
                interval_s,
                cfg.prelude_seconds,
                video_max_length_s,
                index=len(windows),
            )
        except InvalidRangeError as e:
            if not cfg.skip_empty_windows:
                raise
            skipped += 1
            logger.warning("Skipping highlight: %s", e)
            continue
        windows.append(window)

    logger.info(
        "Chat highlights (%s): %d buckets, peak %d, %d intervals, %d windows, %d skipped",
        cfg.mode,
        len(counts),
        int(counts.max()) if len(counts) else 0,
        len(intervals),
        len(windows),
        skipped,
    )
    return ChatHighlights(
        config=cfg,
        counts=counts,
        derivative=derivative,
        intervals=intervals,
        windows=windows,
        video_max_length_s=float(video_max_length_s),
        skipped=skipped,
    )


def compute_chat_highlights_from_file(
    chat_path: Path,
    cfg: Optional[HighlightConfig] = None,
    *,
    video_path: Optional[Path] = None,
) -> ChatHighlights:
    log = load_chat_log(Path(chat_path))
    video_max_length_s = None
    if video_path is not None:
        video_max_length_s = ffprobe_duration_seconds(Path(video_path))
    return compute_chat_highlights(log.events, cfg, video_max_length_s=video_max_length_s)
