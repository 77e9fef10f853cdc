import pytest

from errors import ConfigurationError
from options import DecoderOptions, TimeBase, parse_multi


def test_parse_multi():
    assert parse_multi("400,1200", 2, int) == [400, 1200]
    assert parse_multi(" 0.5 , 2 ", 2, float) == [0.5, 2.0]
    assert parse_multi("b,2,2.0", 3, str) == ["b", "2", "2.0"]


def test_parse_multi_errors():
    with pytest.raises(ConfigurationError):
        parse_multi("400", 2, int, "-F")
    with pytest.raises(ConfigurationError):
        parse_multi("400,abc", 2, int, "-F")


def test_default_options_validate():
    options = DecoderOptions().validate()
    assert options.decoder == "threshold"
    assert options.freq is None


@pytest.mark.parametrize("kwargs", [
    {"wpm": 0},
    {"ts_length": 0},
    {"ts_length": 1.5},
    {"sigma": -1},
    {"frange": (1200, 400)},
    {"clip_level": 0},
    {"clip_level": 40000},
    {"level": 0},
    {"decoder": "neural"},
    {"filter_code": "x"},
    {"filter_order": 0},
    {"offset": -1},
])
def test_invalid_options(kwargs):
    with pytest.raises(ConfigurationError):
        DecoderOptions(**kwargs).validate()


def test_timebase():
    tb = TimeBase(8000, 15, 0.1)
    assert tb.tu_millis == pytest.approx(80.0)
    assert tb.frames_per_slice == 64
    assert tb.slice_millis == pytest.approx(8.0)
    assert tb.slices(1.8) == 18
    assert tb.slices(5.3) == 53
    assert tb.slices(1.7) == 17
    assert tb.nof_slices(8000) == 125
    assert tb.seconds(10) == pytest.approx(0.08)


def test_timebase_offset():
    tb = TimeBase(8000, 15, 0.1, offset=30)
    assert tb.seconds(0) == 30
    # 125 slices of 8 ms is one second
    assert tb.timestamp(125) == 31


def test_timebase_too_fine():
    with pytest.raises(ConfigurationError):
        TimeBase(8000, 15, 0.0001)
