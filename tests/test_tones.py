import numpy as np
import pytest

from decoders.tones import Dash, Dot, find_drop, find_rise, lsq, segment_mean


def test_lsq_recovers_line():
    sig = 2.0 + 0.5 * np.arange(30)
    fit = lsq(sig, 10, 4)
    assert fit.a == pytest.approx(7.0)
    assert fit.b == pytest.approx(0.5)


def test_lsq_window_outside_array():
    sig = np.zeros(10)
    assert lsq(sig, 2, 3) is None
    assert lsq(sig, 7, 3) is None
    assert lsq(sig, 5, 3) is not None


def test_segment_mean():
    sig = np.array([1.0, 2.0, 3.0, 4.0])
    assert segment_mean(sig, 1, 3) == pytest.approx(2.5)
    assert segment_mean(sig, 3, 3) == 0.0


def test_find_rise_and_drop():
    sig = np.zeros(100)
    sig[40:70] = 1.0
    # a dash centred on 55, 15 slices either side
    assert abs(find_rise(sig, 55, 15, 5) - 40) <= 1
    assert abs(find_drop(sig, 55, 15, 5) - 70) <= 1


def test_tone_symbols():
    assert Dot(5, 0, 10).symbol == "."
    assert Dash(15, 0, 30, 0.9, ceiling=1.0).symbol == "-"


def test_tone_centre_must_be_inside():
    with pytest.raises(ValueError):
        Dot(20, 0, 10)
