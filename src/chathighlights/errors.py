"""Error types raised by the highlight analysis core."""

from __future__ import annotations


class HighlightError(ValueError):
    """Base class for analysis failures reported to the caller."""


class InvalidInputError(HighlightError):
    """Non-positive interval, malformed event ordering or out-of-range parameter."""


class InsufficientDataError(HighlightError):
    """More peaks were requested than there are non-zero buckets."""


class InvalidRangeError(HighlightError):
    """A mapped window is empty or inverted after clamping."""
