import numpy as np
import pytest

from clipping import find_clip_level, signal_average
from data_gen import generate_sample
from frequency import find_frequency, slice_frames

FRAME_RATE = 8000
FPS = 48  # 0.1 TU at 20 WPM


def test_slice_frames_drops_tail():
    frames = slice_frames(np.arange(100), 16)
    assert frames.shape == (6, 16)
    assert frames[1, 0] == 16


@pytest.mark.parametrize("freq", [700, 555, 1010])
def test_find_frequency(freq):
    samples, _ = generate_sample("paris", wpm=20, frequency=freq)
    found, pairs = find_frequency(samples, FRAME_RATE, FPS, 400, 1200)
    assert abs(found - freq) <= 1
    assert pairs[found] == max(pairs.values())
    assert list(pairs) == sorted(pairs)


def test_find_frequency_noisy():
    samples, _ = generate_sample("paris", wpm=20, snr_db=0, frequency=640, seed=3)
    found, _ = find_frequency(samples, FRAME_RATE, FPS, 400, 1200)
    assert abs(found - 640) <= 2


def test_clip_level_below_tone_amplitude():
    samples, _ = generate_sample("paris", wpm=20, amplitude=8000)
    level = find_clip_level(samples, 700, FRAME_RATE, FPS)
    assert 4000 < level < 8000


def test_clip_level_ignores_impulses():
    samples, _ = generate_sample("paris", wpm=20, amplitude=2000)
    rng = np.random.default_rng(1)
    spiked = samples.astype(np.int32)
    spiked[rng.integers(0, len(samples), 20)] = 20000
    spiked = spiked.astype(np.int16)

    level = find_clip_level(spiked, 700, FRAME_RATE, FPS)
    assert level < 2000
    clipped = signal_average(spiked, 700, level, FRAME_RATE, FPS)
    unclipped = signal_average(spiked, 700, 32767, FRAME_RATE, FPS)
    # 5 % of the correlated signal is removed, to within 0.5 % of the rest
    ratio = clipped / unclipped
    assert 1 - 0.05 - 0.005 * 0.95 < ratio < 1 - 0.05


def test_clip_level_of_clean_tone_in_band():
    samples, _ = generate_sample("paris", wpm=20, amplitude=8000)
    level = find_clip_level(samples, 700, FRAME_RATE, FPS)
    clipped = signal_average(samples, 700, level, FRAME_RATE, FPS)
    unclipped = signal_average(samples, 700, 32767, FRAME_RATE, FPS)
    ratio = clipped / unclipped
    assert 1 - 0.05 - 0.005 * 0.95 < ratio < 1 - 0.05
