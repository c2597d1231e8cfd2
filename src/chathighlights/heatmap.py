"""Render an engagement histogram as a PNG bar image."""

from __future__ import annotations

import logging
from pathlib import Path

import numpy as np
from PIL import Image

from .errors import InvalidInputError

logger = logging.getLogger(__name__)

BAR_WIDTH_PX = 10
HEIGHT_PER_BUCKET_PX = 5
BAR_COLOR = (255, 0, 0, 255)
# Above this the RGBA buffer gets large enough to be worth a warning.
LARGE_HEATMAP_BYTES = 256 * 1024 * 1024


def heatmap_nbytes(bucket_count: int) -> int:
    """RGBA buffer size for ``bucket_count`` buckets; grows with its square."""
    return (bucket_count * BAR_WIDTH_PX) * (bucket_count * HEIGHT_PER_BUCKET_PX) * 4


def heatmap_array(counts: np.ndarray) -> np.ndarray:
    """RGBA pixels for ``counts``; bars grow down from the top row.

    The image is ``10 * n`` wide and ``5 * n`` tall for ``n`` buckets and
    each bar is scaled against the histogram maximum. Memory is quadratic in
    ``n``: 2400 buckets (10 hours at 15s) need about 1.15 GB, so long VODs
    should use a wider ``interval_s``.
    """
    counts = np.asarray(counts, dtype=np.int64)
    n = len(counts)
    if n == 0:
        raise InvalidInputError("cannot render a heatmap for an empty histogram")
    max_val = int(counts.max())
    if max_val <= 0:
        raise InvalidInputError("cannot render a heatmap: histogram has no engagement")

    nbytes = heatmap_nbytes(n)
    if nbytes > LARGE_HEATMAP_BYTES:
        logger.warning(
            "Heatmap for %d buckets needs %.1f MB; use a wider interval for a smaller image",
            n,
            nbytes / 1e6,
        )

    width = n * BAR_WIDTH_PX
    height = n * HEIGHT_PER_BUCKET_PX
    bar_heights = (height * counts) // max_val

    pixels = np.zeros((height, width, 4), dtype=np.uint8)
    for i, bar in enumerate(bar_heights):
        if bar <= 0:
            continue
        x0 = i * BAR_WIDTH_PX
        pixels[: int(bar), x0 : x0 + BAR_WIDTH_PX] = BAR_COLOR
    return pixels


def render_heatmap(counts: np.ndarray, out_path: Path) -> Path:
    out_path = Path(out_path)
    pixels = heatmap_array(counts)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    Image.fromarray(pixels).save(out_path)
    logger.info("Wrote heatmap %dx%d to %s", pixels.shape[1], pixels.shape[0], out_path)
    return out_path
