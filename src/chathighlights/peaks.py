from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List

import numpy as np

from .errors import InsufficientDataError, InvalidInputError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BucketInterval:
    """Half-open range of histogram buckets ``[start, end)``."""

    start: int
    end: int

    def __len__(self) -> int:
        return self.end - self.start


def _check_fraction(name: str, value: float) -> float:
    value = float(value)
    if not 0.0 < value <= 1.0:
        raise InvalidInputError(f"{name} must be in (0, 1], got {value}")
    return value


def detect_growth_windows(
    counts: np.ndarray,
    derivative: np.ndarray,
    *,
    growth_rate_trigger: float,
    breakoff_percentage: float,
) -> List[BucketInterval]:
    """Open a window where engagement grows fast, close it once it decays.

    A window opens at bucket ``i`` when ``derivative[i] >= growth_rate_trigger``.
    A new trigger inside an open window moves its start to the newer bucket.
    The window closes at the first bucket whose count falls below
    ``breakoff_percentage`` of the maximum count seen since the window start;
    that bucket is included. A window still open at the end of the scan runs
    to the end of the histogram.

    Args:
        counts: Engagement histogram.
        derivative: ``derive(counts, interval_s)``.
        growth_rate_trigger: Minimum rate of change (events/s per bucket) that opens a window.
        breakoff_percentage: Fraction of the local max in (0, 1].

    Returns:
        Bucket intervals in scan order. They may overlap or touch.
    """
    counts = np.asarray(counts)
    derivative = np.asarray(derivative, dtype=np.float64)
    if len(derivative) != max(0, len(counts) - 1):
        raise InvalidInputError(
            f"derivative length {len(derivative)} does not match histogram length {len(counts)}"
        )
    breakoff = _check_fraction("breakoff_percentage", breakoff_percentage)
    trigger = float(growth_rate_trigger)

    windows: List[BucketInterval] = []
    hit = False
    start = 0
    for i in range(len(derivative)):
        if derivative[i] >= trigger:
            start = i
            hit = True
        elif hit:
            local_max = counts[start : i + 1].max()
            if counts[i] < local_max * breakoff:
                windows.append(BucketInterval(start, i + 1))
                hit = False

    if hit:
        windows.append(BucketInterval(start, len(counts)))

    logger.debug(
        "Growth detector (trigger=%.3f, breakoff=%.2f) emitted %d windows: %s",
        trigger,
        breakoff,
        len(windows),
        [(w.start, w.end) for w in windows],
    )
    return windows


def detect_top_windows(
    counts: np.ndarray,
    *,
    count: int,
    decay_tolerance: float,
) -> List[BucketInterval]:
    """Greedy selection of the ``count`` largest buckets.

    Each pick takes the current maximum (lowest index on ties) and extends
    forward while the original counts stay at or above
    ``peak_value * decay_tolerance``, stopping one bucket before the first
    bucket that fails. The extension never reaches the final bucket. Only the
    peak bucket is removed from further selection, so windows may overlap.

    Raises:
        InsufficientDataError: ``count`` exceeds the number of non-zero buckets.
    """
    counts = np.asarray(counts)
    count = int(count)
    if count < 1:
        raise InvalidInputError(f"count must be >= 1, got {count}")
    tolerance = _check_fraction("decay_tolerance", decay_tolerance)

    available = int(np.count_nonzero(counts > 0))
    if count > available:
        raise InsufficientDataError(
            f"requested {count} peaks but only {available} buckets have engagement"
        )

    # Private working copy; peaks are zeroed here, never in ``counts``.
    work = np.array(counts, dtype=np.float64, copy=True)
    n = len(work)
    windows: List[BucketInterval] = []
    for _ in range(count):
        peak = int(np.argmax(work))
        peak_value = work[peak]

        j = 1
        while peak + j < n - 1 and counts[peak + j] >= peak_value * tolerance:
            j += 1
        j -= 1

        windows.append(BucketInterval(peak, peak + j + 1))
        work[peak] = 0.0

    logger.debug(
        "Top-N detector (count=%d, tolerance=%.2f) emitted %s",
        count,
        tolerance,
        [(w.start, w.end) for w in windows],
    )
    return windows
