"""Engagement histogram and its rate of change.

The histogram counts matching chat events per fixed-width time bucket:
bucket ``i`` covers ``[i * interval_s, (i + 1) * interval_s)`` seconds.
Buckets are created for every event (filtered or not) so the histogram
always spans the full chat log.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Iterable, Optional

import numpy as np

from .chat.events import ChatEvent
from .errors import InvalidInputError

logger = logging.getLogger(__name__)

# Selection value accepted on the command line meaning "count every event".
NO_SELECTION = "noSelection"


@dataclass(frozen=True)
class SelectionCriterion:
    """Per-event filter applied before counting.

    ``substring=None`` matches every event; otherwise the (case-sensitive)
    substring must occur in the event text.
    """

    substring: Optional[str] = None

    @classmethod
    def match_all(cls) -> "SelectionCriterion":
        return cls(None)

    @classmethod
    def parse(cls, value: Optional[str]) -> "SelectionCriterion":
        if value is None or value == "" or value == NO_SELECTION:
            return cls.match_all()
        return cls(value)

    @property
    def is_match_all(self) -> bool:
        return self.substring is None

    def matches(self, event: ChatEvent) -> bool:
        if self.substring is None:
            return True
        return self.substring in event.text

    def describe(self) -> str:
        return NO_SELECTION if self.substring is None else repr(self.substring)


def _readonly(arr: np.ndarray) -> np.ndarray:
    arr.flags.writeable = False
    return arr


def build_histogram(
    events: Iterable[ChatEvent],
    interval_s: float,
    criterion: Optional[SelectionCriterion] = None,
) -> np.ndarray:
    """Count matching events per ``interval_s`` bucket.

    Args:
        events: Chat events sorted by ``offset_s`` ascending (ties allowed).
        interval_s: Bucket width in seconds, must be > 0.
        criterion: Event filter. ``None`` counts every event.

    Returns:
        Read-only int64 array of length ``floor(max_offset / interval_s) + 1``
        (empty for an empty log).

    Raises:
        InvalidInputError: non-positive interval, a negative or non-finite
            offset, or events out of order.
    """
    interval_s = float(interval_s)
    if not interval_s > 0:
        raise InvalidInputError(f"interval must be > 0, got {interval_s}")
    if criterion is None:
        criterion = SelectionCriterion.match_all()

    counts: list[int] = []
    prev_offset = -math.inf
    for n, event in enumerate(events):
        offset = float(event.offset_s)
        if not math.isfinite(offset):
            raise InvalidInputError(f"event {n} has non-finite offset {offset}")
        if offset < 0:
            raise InvalidInputError(f"event {n} has negative offset {offset}")
        if offset < prev_offset:
            raise InvalidInputError(
                f"events are not ordered by offset: event {n} at {offset}s follows {prev_offset}s"
            )
        prev_offset = offset

        idx = math.floor(offset / interval_s)
        # Grow lazily so filtered-out events still extend the timeline.
        while len(counts) <= idx:
            counts.append(0)
        if criterion.matches(event):
            counts[idx] += 1

    hist = np.asarray(counts, dtype=np.int64)
    logger.debug(
        "Built histogram: %d buckets of %.2fs, %d matching events (selection=%s)",
        len(hist),
        interval_s,
        int(hist.sum()),
        criterion.describe(),
    )
    return _readonly(hist)


def derive(counts: np.ndarray, interval_s: float) -> np.ndarray:
    """Forward difference quotient ``(counts[i+1] - counts[i]) / interval_s``."""
    counts = np.asarray(counts, dtype=np.float64)
    if len(counts) < 2:
        return _readonly(np.zeros(0, dtype=np.float64))
    return _readonly(np.diff(counts) / float(interval_s))
