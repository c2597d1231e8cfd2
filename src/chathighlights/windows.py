"""Map bucket intervals to clip timestamps."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Dict

from .errors import InvalidInputError, InvalidRangeError
from .peaks import BucketInterval


@dataclass(frozen=True)
class HighlightWindow:
    """A clip range on the video timeline, in seconds."""

    index: int  # 0-based clip number, in emission order
    start_s: float
    end_s: float

    @property
    def duration_s(self) -> float:
        return self.end_s - self.start_s

    def to_dict(self) -> Dict[str, Any]:
        return {
            "index": self.index,
            "start_s": self.start_s,
            "end_s": self.end_s,
            "duration_s": self.duration_s,
            "start": format_timestamp(self.start_s),
            "end": format_timestamp(self.end_s),
        }


def to_window(
    interval: BucketInterval,
    bucket_interval_s: float,
    prelude_s: float,
    video_max_length_s: float,
    *,
    index: int = 0,
) -> HighlightWindow:
    """Convert ``interval`` to seconds.

    The start is moved ``prelude_s`` earlier and clamped at 0; the end is
    clamped at ``video_max_length_s``.

    Raises:
        InvalidRangeError: the clamped window is empty or inverted.
    """
    start_s = max(0.0, interval.start * float(bucket_interval_s) - float(prelude_s))
    end_s = min(float(video_max_length_s), interval.end * float(bucket_interval_s))
    if end_s <= start_s:
        raise InvalidRangeError(
            f"window for buckets [{interval.start}, {interval.end}) is empty after clamping "
            f"({start_s:.2f}s..{end_s:.2f}s)"
        )
    return HighlightWindow(index=index, start_s=start_s, end_s=end_s)


def format_timestamp(seconds: float, *, millis: bool = False) -> str:
    """Format seconds as ``hh:mm:ss`` (``hh:mm:ss.fff`` with ``millis``)."""
    total_ms = int(round(max(0.0, float(seconds)) * 1000.0))
    if not millis:
        total_ms -= total_ms % 1000
    h, rem = divmod(total_ms, 3_600_000)
    m, rem = divmod(rem, 60_000)
    s, ms = divmod(rem, 1000)
    out = f"{h:02d}:{m:02d}:{s:02d}"
    if millis:
        out += f".{ms:03d}"
    return out


_HHMMSS_RE = re.compile(r"^(\d+):([0-5]\d):([0-5]\d(?:\.\d+)?)$")


def parse_timestamp(value: str) -> float:
    """Parse ``hh:mm:ss`` (fractional seconds allowed) into seconds."""
    m = _HHMMSS_RE.match(value.strip())
    if not m:
        raise InvalidInputError(
            f"Invalid timestamp {value!r}. Correct format: hh:mm:ss. Example: 02:12:00"
        )
    return int(m.group(1)) * 3600 + int(m.group(2)) * 60 + float(m.group(3))
