from pathlib import Path

import numpy as np
import pytest
from PIL import Image

from chathighlights.errors import InvalidInputError
from chathighlights.heatmap import LARGE_HEATMAP_BYTES, heatmap_array, heatmap_nbytes, render_heatmap


def test_heatmap_dimensions_and_bar_heights():
    pixels = heatmap_array(np.array([2, 4, 0, 1]))
    assert pixels.shape == (20, 40, 4)

    red = pixels[..., 0] == 255
    # floor(20 * count / 4) rows from the top, 10 px per bucket
    assert red[:, 0:10].sum(axis=0).tolist() == [10] * 10
    assert red[:, 10:20].sum(axis=0).tolist() == [20] * 10
    assert not red[:, 20:30].any()
    assert red[:5, 30:40].all() and not red[5:, 30:40].any()
    assert red[0, 0] and not red[19, 0]


@pytest.mark.parametrize("counts", [[], [0, 0, 0]])
def test_heatmap_rejects_empty_signal(counts):
    with pytest.raises(InvalidInputError):
        heatmap_array(np.array(counts, dtype=np.int64))


def test_render_heatmap_writes_png(tmp_path: Path):
    out = render_heatmap(np.array([1, 3, 2]), tmp_path / "maps" / "chat.png")
    with Image.open(out) as img:
        assert img.size == (30, 15)
        assert img.mode == "RGBA"
        assert img.getpixel((15, 0)) == (255, 0, 0, 255)
        assert img.getpixel((0, 14)) == (0, 0, 0, 0)


def test_heatmap_memory_grows_quadratically():
    assert heatmap_nbytes(4) == 40 * 20 * 4
    # 10 hours of 15s buckets
    assert heatmap_nbytes(2400) == 1_152_000_000
    assert heatmap_nbytes(2400) > LARGE_HEATMAP_BYTES
    assert heatmap_nbytes(200) < LARGE_HEATMAP_BYTES
