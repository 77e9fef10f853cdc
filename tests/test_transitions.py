import numpy as np
import pytest

from errors import NoCodeError, NoSignalError
from options import TimeBase
from transitions import NO_ACC, find_transitions

TB = TimeBase(8000, 15, 0.1)  # 10 slices per TU
K = 0.524


def square(n, tones):
    sig = np.zeros(n)
    for begin, end in tones:
        sig[begin:end] = 1.0
    return sig, np.ones(n), np.zeros(n)


def test_alternating_rise_and_fall():
    sig, cei, flo = square(200, [(20, 30), (40, 70), (100, 110)])
    result = find_transitions(sig, cei, flo, TB, 1.0, K)
    trans = result.transitions
    assert [t.q for t in trans] == [20, 30, 40, 70, 100, 110]
    assert [t.rise for t in trans] == [True, False] * 3
    assert result.threshold_max == pytest.approx(K)
    assert result.ceiling_max == 1.0


def test_dip_accumulators():
    sig, cei, flo = square(200, [(20, 30), (40, 70), (100, 110)])
    trans = find_transitions(sig, cei, flo, TB, 1.0, K).transitions
    # the first rise has no silence before it within a character space
    assert trans[0].dip_acc == NO_ACC
    # 10 silent slices, each K**2 below threshold
    assert trans[2].dip_acc == pytest.approx(10 * K ** 2)
    # 30 silent slices is longer than the character space limit
    assert trans[4].dip_acc == NO_ACC
    assert trans[1].spike_acc == pytest.approx(10 * (1 - K) ** 2)


def test_silent_tu():
    sig, cei, flo = square(200, [(20, 30), (40, 70)])
    result = find_transitions(sig, cei, flo, TB, 1.0, K)
    assert result.silent_tu == pytest.approx(10 * (K / 2) ** 2)


def test_notch_kept_when_deep_enough():
    sig, cei, flo = square(200, [(20, 40), (43, 63)])
    trans = find_transitions(sig, cei, flo, TB, 1.0, K, dip_limit=0.005).transitions
    assert [t.q for t in trans] == [20, 40, 43, 63]


def test_notch_removed_with_high_dip_limit():
    sig, cei, flo = square(200, [(20, 40), (43, 63)])
    trans = find_transitions(sig, cei, flo, TB, 1.0, K, dip_limit=2.0).transitions
    assert [t.q for t in trans] == [20, 63]
    assert [t.rise for t in trans] == [True, False]


def test_very_short_dip_always_removed():
    sig, cei, flo = square(200, [(20, 40), (42, 62)])
    trans = find_transitions(sig, cei, flo, TB, 1.0, K, dip_limit=0.0).transitions
    assert [t.q for t in trans] == [20, 62]


def test_very_short_spike_always_removed():
    sig, cei, flo = square(200, [(20, 30), (60, 62), (100, 110)])
    trans = find_transitions(sig, cei, flo, TB, 1.0, K, spike_limit=0.0).transitions
    assert [t.q for t in trans] == [20, 30, 100, 110]


def test_long_dash_split():
    sig, cei, flo = square(200, [(10, 80)])
    trans = find_transitions(sig, cei, flo, TB, 1.0, K).transitions
    assert [t.q for t in trans] == [10, 40, 50, 80]
    assert [t.rise for t in trans] == [True, False, True, False]
    assert trans[2].dip_acc == NO_ACC
    assert trans[1].spike_acc == pytest.approx(trans[3].spike_acc)


def test_long_dash_kept_when_disabled():
    sig, cei, flo = square(200, [(10, 80)])
    trans = find_transitions(sig, cei, flo, TB, 1.0, K, break_long_dash=False).transitions
    assert [t.q for t in trans] == [10, 80]


def test_no_signal():
    sig, cei, flo = square(200, [])
    with pytest.raises(NoSignalError):
        find_transitions(sig, cei, flo, TB, 1.0, K)


def test_no_code():
    sig, cei, flo = square(200, [(150, 200)])
    with pytest.raises(NoCodeError):
        find_transitions(sig, cei, flo, TB, 1.0, K)


def test_everything_removed_is_no_signal():
    sig, cei, flo = square(200, [(20, 21)])
    with pytest.raises(NoSignalError):
        find_transitions(sig, cei, flo, TB, 1.0, K)
