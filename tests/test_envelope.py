import numpy as np
import pytest

from data_gen import generate_sample
from envelope import extract_envelope, gaussian_kernel, gaussian_smooth, phase_angles, slice_iq_absolute
from errors import ConfigurationError
from lowpass import (LowpassButterworth, LowpassChebyshevI, LowpassNone, LowpassTimeSliceSum,
                     LowpassWindow, create_lowpass)
from options import TimeBase
from thresholds import levels

FRAME_RATE = 8000


@pytest.mark.parametrize("code, cls", [
    ("b", LowpassButterworth),
    ("cI", LowpassChebyshevI),
    ("w", LowpassWindow),
    ("t", LowpassTimeSliceSum),
    ("n", LowpassNone),
])
def test_create_lowpass(code, cls):
    assert isinstance(create_lowpass(code, FRAME_RATE, 80.0), cls)


def test_create_lowpass_errors():
    with pytest.raises(ConfigurationError):
        create_lowpass("x", FRAME_RATE, 80.0)
    # 400/TU at 80 ms is 5000 Hz, above Nyquist
    with pytest.raises(ConfigurationError):
        create_lowpass("b", FRAME_RATE, 80.0, cutoff=400)


def test_lowpass_per_slice_dc():
    x = np.ones(64 * 50)
    for code in ("b", "cI", "w", "t", "n"):
        y = create_lowpass(code, FRAME_RATE, 80.0).per_slice(x, 64, 50)
        assert len(y) == 50
        assert y[-1] == pytest.approx(1.0, abs=0.2)


def test_gaussian_kernel():
    kernel = gaussian_kernel(0.33, 0.1)
    assert len(kernel) % 2 == 1
    half = len(kernel) // 2
    assert kernel[half] == 1.0
    np.testing.assert_allclose(kernel, kernel[::-1])
    assert kernel[0] >= 0.005


def test_gaussian_smooth_keeps_length_and_centre():
    x = np.zeros(41)
    x[20] = 1.0
    kernel = gaussian_kernel(0.33, 0.1)
    y = gaussian_smooth(x, kernel)
    assert len(y) == len(x)
    assert np.argmax(y) == 20
    assert y.sum() == pytest.approx(kernel.sum() / len(kernel))


def test_extract_envelope():
    samples, _ = generate_sample("t", wpm=15)
    tb = TimeBase(FRAME_RATE, 15, 0.1)
    fps = tb.frames_per_slice
    lp = [create_lowpass("b", FRAME_RATE, tb.tu_millis) for _ in range(2)]
    sig = extract_envelope(samples, 700, 32767, FRAME_RATE, fps, 0.1, 0.33, *lp)
    assert len(sig) == len(samples) // fps
    assert not sig.flags.writeable
    # the dash starts after 1 s of silence, at slice 125
    assert sig[50] < 0.05 * sig.max()
    assert 125 < np.argmax(sig) < 160


def test_phase_angles_zero_in_silence():
    samples, _ = generate_sample("t", wpm=15)
    tb = TimeBase(FRAME_RATE, 15, 0.1)
    fps = tb.frames_per_slice
    lp = [create_lowpass("b", FRAME_RATE, tb.tu_millis) for _ in range(2)]
    sig = extract_envelope(samples, 700, 32767, FRAME_RATE, fps, 0.1, 0.33, *lp)
    cei, flo = levels(sig, tb)
    cos_sum, sin_sum = slice_iq_absolute(samples, 700, 32767, FRAME_RATE, fps)
    phase = phase_angles(cos_sum, sin_sum, sig, cei, flo, 1.0, 0.524)
    assert len(phase) == len(sig)
    assert phase[10] == 0.0
    assert np.all(np.abs(phase) <= np.pi)


def test_phase_gate_includes_floor():
    n = 40
    sig = np.full(n, 0.5)
    cei = np.ones(n)
    cos_sum = np.ones(n)
    sin_sum = np.ones(n)
    phase = phase_angles(cos_sum, sin_sum, sig, cei, np.zeros(n), 1.0, 0.524)
    assert phase[20] == pytest.approx(np.pi / 4)
    # 0.48 + 0.2*0.524*(1 - 0.48) is above the signal
    raised = phase_angles(cos_sum, sin_sum, sig, cei, np.full(n, 0.48), 1.0, 0.524)
    assert np.all(raised == 0.0)


def test_carrier_angle_counts_from_file_start():
    samples, _ = generate_sample("t", wpm=15)
    fps = 64  # 125 slices per second
    full_cos, full_sin = slice_iq_absolute(samples, 700, 32767, FRAME_RATE, fps)
    cos_sum, sin_sum = slice_iq_absolute(samples[FRAME_RATE:], 700, 32767, FRAME_RATE, fps, offset=1.0)
    np.testing.assert_allclose(cos_sum, full_cos[125:], rtol=1e-6, atol=1e-3)
    np.testing.assert_allclose(sin_sum, full_sin[125:], rtol=1e-6, atol=1e-3)
