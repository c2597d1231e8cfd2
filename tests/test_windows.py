import pytest

from chathighlights.errors import InvalidInputError, InvalidRangeError
from chathighlights.peaks import BucketInterval
from chathighlights.windows import HighlightWindow, format_timestamp, parse_timestamp, to_window


def test_to_window_applies_prelude():
    w = to_window(BucketInterval(4, 6), 15, 10, 3600, index=2)
    assert w == HighlightWindow(index=2, start_s=50.0, end_s=90.0)
    assert w.duration_s == 40.0


def test_to_window_clamps_start_at_zero():
    w = to_window(BucketInterval(1, 3), 15, 20, 3600)
    assert w.start_s == 0.0
    assert w.end_s == 45.0


def test_to_window_clamps_end_at_video_length():
    w = to_window(BucketInterval(2, 10), 15, 0, 100.5)
    assert w.start_s == 30.0
    assert w.end_s == 100.5


def test_to_window_empty_after_clamping():
    with pytest.raises(InvalidRangeError):
        to_window(BucketInterval(10, 12), 15, 0, 120)


def test_to_window_to_dict_has_display_times():
    d = to_window(BucketInterval(240, 244), 15, 0, 7200, index=0).to_dict()
    assert d["start"] == "01:00:00"
    assert d["end"] == "01:01:00"
    assert d["index"] == 0


@pytest.mark.parametrize(
    "seconds, millis, expected",
    [
        (0, False, "00:00:00"),
        (59.6, False, "00:00:59"),
        (3723.25, True, "01:02:03.250"),
        (90061, False, "25:01:01"),
        (-3, False, "00:00:00"),
    ],
)
def test_format_timestamp(seconds, millis, expected):
    assert format_timestamp(seconds, millis=millis) == expected


def test_parse_timestamp():
    assert parse_timestamp("02:12:00") == 7920
    assert parse_timestamp(" 00:00:01.5 ") == 1.5


@pytest.mark.parametrize("value", ["2:12", "aa:bb:cc", "00:61:00", ""])
def test_parse_timestamp_invalid(value):
    with pytest.raises(InvalidInputError, match="hh:mm:ss"):
        parse_timestamp(value)
