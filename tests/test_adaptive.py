import numpy as np
import pytest

from adaptive import (Segment, analyze_segments, best_frequency, extract_adaptive_envelope, frequency_at,
                      segment_clip_level, signal_loss)
from data_gen import generate_sample
from errors import ConfigurationError, NoSignalError
from frequency import slice_frames
from options import DecoderOptions, TimeBase
from pipeline import decode_samples

FRAME_RATE = 8000
TB = TimeBase(FRAME_RATE, 20, 0.1)  # 48 frames per slice, chunks of 480
DRIFT = 8.0  # Hz per second
TEXT = "paris paris paris"


@pytest.fixture(scope="module")
def drifting():
    return generate_sample(TEXT, wpm=20, frequency=650, drift=DRIFT)


def test_best_frequency_of_steady_tone():
    samples, _ = generate_sample("paris", wpm=20, frequency=655)
    chunks = slice_frames(samples, 480)
    assert best_frequency(chunks, FRAME_RATE, 400, 1200) == pytest.approx(655, abs=1.0)


def test_segment_clip_level():
    samples, _ = generate_sample("paris", wpm=20, frequency=700, amplitude=8000)
    chunks = slice_frames(samples, 480)
    assert signal_loss(chunks, 700, 32767, FRAME_RATE) == 0.0
    level = segment_clip_level(chunks, 700, FRAME_RATE, int(np.max(np.abs(chunks))))
    assert 0.9 * 8000 < level < 8000
    assert 0.0 < signal_loss(chunks, 700, level, FRAME_RATE) <= 0.01


def test_frequency_interpolates_between_valid_segments():
    segments = [
        Segment(0, 0, 100, 600.0, 1, 1.0, True),
        Segment(1, 100, 100, 900.0, 1, 0.1, False),
        Segment(2, 200, 100, 700.0, 1, 1.0, True),
    ]
    # midpoints 49 and 249, the weak segment is skipped
    assert frequency_at(segments, 0) == pytest.approx(600.0)
    assert frequency_at(segments, 149) == pytest.approx(650.0)
    assert frequency_at(segments, 1000) == pytest.approx(700.0)


def test_segments_follow_drift(drifting):
    samples, frame_rate = drifting
    segments = analyze_segments(samples, frame_rate, TB.frames_per_slice, (400, 1200))
    assert [s.index for s in segments] == list(range(len(segments)))
    # trailing second of silence
    assert not segments[-1].valid

    valid = [s for s in segments if s.valid]
    assert len(valid) >= 5
    freqs = [s.frequency for s in valid]
    assert freqs == sorted(freqs)
    keyed = [s for s in valid if s.base >= frame_rate and s.base + s.size <= len(samples) - frame_rate]
    assert keyed
    for s in keyed:
        assert s.frequency == pytest.approx(650 + DRIFT * s.midpoint / frame_rate, abs=5.0)


def test_adaptive_detector_decodes_drifting_tone(drifting):
    samples, frame_rate = drifting
    result = decode_samples(samples, frame_rate, DecoderOptions(wpm=20, detector="adaptive"))
    assert result.text == TEXT
    assert result.segments
    assert result.frequency_pairs == {}
    assert 650 < result.frequency < 730


def test_adaptive_envelope_of_single_dash():
    samples, _ = generate_sample("t", wpm=15)
    tb = TimeBase(FRAME_RATE, 15, 0.1)
    sig, segments = extract_adaptive_envelope(samples, FRAME_RATE, tb.frames_per_slice, tb.tu_millis,
                                              0.33, (400, 1200))
    assert len(sig) == len(samples) // tb.frames_per_slice
    assert not sig.flags.writeable
    assert segments[0].valid
    # the dash covers slices 125 to 145
    assert 125 <= np.argmax(sig) <= 145
    assert sig[50] < 0.05 * sig.max()


def test_silence_raises():
    with pytest.raises(NoSignalError):
        analyze_segments(np.zeros(20000, dtype=np.int16), FRAME_RATE, 48, (400, 1200))
    with pytest.raises(NoSignalError):
        analyze_segments(np.zeros(100, dtype=np.int16), FRAME_RATE, 48, (400, 1200))


def test_adaptive_options_validated():
    with pytest.raises(ConfigurationError):
        DecoderOptions(detector="adaptive", freq=700).validate()
    with pytest.raises(ConfigurationError):
        DecoderOptions(detector="adaptive", clip_level=5000).validate()
    with pytest.raises(ConfigurationError):
        DecoderOptions(detector="adaptive", phase_data=True).validate()
    with pytest.raises(ConfigurationError):
        DecoderOptions(detector="coherent").validate()
