import numpy as np
import pytest
import scipy.io.wavfile

from audio_io import load_wav, to_int16, write_wav
from errors import AudioFormatError, ConfigurationError


@pytest.fixture
def wav_path(tmp_path):
    path = tmp_path / "tone.wav"
    samples = (np.arange(8000 * 5) % 200 - 100).astype(np.int16)
    write_wav(str(path), 8000, samples)
    return str(path), samples


def test_round_trip(wav_path):
    path, samples = wav_path
    frame_rate, loaded = load_wav(path)
    assert frame_rate == 8000
    assert loaded.dtype == np.int16
    np.testing.assert_array_equal(loaded, samples)


def test_offset_and_length(wav_path):
    path, samples = wav_path
    _, loaded = load_wav(path, offset=1, length=2)
    np.testing.assert_array_equal(loaded, samples[8000:24000])


def test_length_too_large_is_truncated(wav_path, caplog):
    path, samples = wav_path
    _, loaded = load_wav(path, offset=2, length=10)
    assert len(loaded) == 3 * 8000
    assert "too large" in caplog.text


def test_offset_errors(wav_path):
    path, _ = wav_path
    with pytest.raises(ConfigurationError):
        load_wav(path, offset=6)
    with pytest.raises(ConfigurationError):
        load_wav(path, offset=-1)
    with pytest.raises(ConfigurationError):
        load_wav(path, length=-1)


def test_stereo_is_averaged(tmp_path):
    path = str(tmp_path / "stereo.wav")
    left = np.full(800, 1000, dtype=np.int16)
    right = np.full(800, 3000, dtype=np.int16)
    scipy.io.wavfile.write(path, 8000, np.stack([left, right], axis=1))
    _, loaded = load_wav(path)
    assert np.all(loaded == 2000)


def test_too_many_channels(tmp_path):
    path = str(tmp_path / "quad.wav")
    scipy.io.wavfile.write(path, 8000, np.zeros((800, 4), dtype=np.int16))
    with pytest.raises(AudioFormatError):
        load_wav(path)


def test_big_endian_rejected(tmp_path):
    path = tmp_path / "rifx.wav"
    path.write_bytes(b"RIFX" + b"\0" * 40)
    with pytest.raises(AudioFormatError):
        load_wav(str(path))


def test_not_a_wav_file(tmp_path):
    path = tmp_path / "junk.wav"
    path.write_bytes(b"this is not audio at all, not even close")
    with pytest.raises(AudioFormatError):
        load_wav(str(path))


def test_to_int16():
    np.testing.assert_array_equal(to_int16(np.array([128, 138], dtype=np.uint8)), [0, 1000])
    np.testing.assert_array_equal(to_int16(np.array([0x10000, -0x20000], dtype=np.int32)), [1, -2])
    np.testing.assert_array_equal(to_int16(np.array([0.0, 0.5, -1.0], dtype=np.float32)), [0, 16383, -32767])
    assert to_int16(np.array([1, 2], dtype=np.int16)).dtype == np.int16
