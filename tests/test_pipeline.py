import io

import numpy as np
import pytest

from data_gen import generate_sample
from errors import ConfigurationError, NoSignalError
from formatter import Formatter
from morse_tree import build_standard_morse_tree
from options import DecoderOptions
from pipeline import decode_samples
from plotting import PlotCollector


def test_decode_sos():
    samples, frame_rate = generate_sample("sos", wpm=20)
    result = decode_samples(samples, frame_rate, DecoderOptions(wpm=20))
    assert result.text == "sos"
    assert abs(result.frequency - 700) <= 1
    assert 0 < result.clip_level <= 8000
    assert len(result.sig) == len(result.cei) == len(result.flo)
    assert result.wpm.char_wpm == pytest.approx(20, rel=0.2)


@pytest.mark.parametrize("decoder", ["threshold", "pattern", "dips", "least-squares", "sliding-line"])
def test_decode_sos_default_options(decoder):
    samples, frame_rate = generate_sample("sos", wpm=15)
    result = decode_samples(samples, frame_rate, DecoderOptions(decoder=decoder))
    assert result.text == "sos"


def test_decode_is_repeatable():
    samples, frame_rate = generate_sample("paris", wpm=18, snr_db=15, seed=7)
    options = DecoderOptions(wpm=18)
    tree = build_standard_morse_tree()
    first = decode_samples(samples, frame_rate, options, tree=tree)
    second = decode_samples(samples, frame_rate, options, tree=tree)
    assert first.text == second.text
    assert first.chars == second.chars
    np.testing.assert_array_equal(first.sig, second.sig)


def test_digest_is_stable():
    samples, frame_rate = generate_sample("paris paris", wpm=20)
    digests = []
    for _ in range(2):
        result = decode_samples(samples, frame_rate, DecoderOptions(wpm=20))
        formatter = Formatter(stream=io.StringIO())
        for ch in result.chars:
            formatter.add(ch.word_break, ch.text, ch.timestamp)
        formatter.flush()
        digests.append(formatter.digest())
    assert digests[0] == digests[1]


def test_given_frequency_skips_search():
    samples, frame_rate = generate_sample("paris", wpm=20)
    result = decode_samples(samples, frame_rate, DecoderOptions(wpm=20, freq=700, clip_level=8000))
    assert result.text == "paris"
    assert result.frequency_pairs == {}
    assert result.clip_level == 8000


def test_noisy_recording():
    samples, frame_rate = generate_sample("paris", wpm=20, snr_db=10, seed=1)
    result = decode_samples(samples, frame_rate, DecoderOptions(wpm=20))
    assert result.text == "paris"


def test_silence_is_no_signal():
    with pytest.raises(NoSignalError):
        decode_samples(np.zeros(3 * 8000, dtype=np.int16), 8000, DecoderOptions(wpm=20))


def test_too_short_is_no_signal():
    with pytest.raises(NoSignalError):
        decode_samples(np.zeros(10, dtype=np.int16), 8000, DecoderOptions(wpm=20))


def test_bad_options():
    samples, frame_rate = generate_sample("e", wpm=20)
    with pytest.raises(ConfigurationError):
        decode_samples(samples, frame_rate, DecoderOptions(decoder="neural"))


def test_phase_and_plot_data():
    samples, frame_rate = generate_sample("paris", wpm=20)
    collector = PlotCollector(0.5, 2.5)
    result = decode_samples(samples, frame_rate, DecoderOptions(wpm=20, phase_data=True),
                            plot_collector=collector)
    assert result.phase is not None
    assert len(result.phase) == len(result.sig)
    assert collector.signal
    assert all(0.5 <= s[0] <= 2.5 for s in collector.signal)
    assert collector.decoded
