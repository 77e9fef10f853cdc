"""WAV file access: 16-bit mono samples with an offset and a length in seconds."""

import logging
from typing import Optional, Tuple

import numpy as np
import scipy.io.wavfile

from errors import AudioFormatError, ConfigurationError

logger = logging.getLogger(__name__)


def to_int16(data: np.ndarray) -> np.ndarray:
    """Convert one channel of any supported sample type to int16."""
    if data.dtype == np.uint8:
        return ((data.astype(np.int32) - 128) * 100).astype(np.int16)
    if data.dtype == np.int16:
        return data
    if data.dtype == np.int32:
        # 24-bit data arrives left-justified in int32; keep the top 16 bits
        return (data >> 16).astype(np.int16)
    if np.issubdtype(data.dtype, np.floating):
        return np.clip(data * 32767, -32768, 32767).astype(np.int16)
    raise AudioFormatError(f"cannot handle sample type: {data.dtype}")


def load_wav(path: str, offset: int = 0, length: Optional[int] = None) -> Tuple[int, np.ndarray]:
    """
    Read a WAV file into int16 mono samples.

    Args:
        path: file to read
        offset: seconds to skip at the start
        length: seconds to keep, or None for the rest of the file

    Returns:
        (frame_rate, samples)
    """
    if offset < 0:
        raise ConfigurationError("offset cannot be negative")
    with open(path, "rb") as f:
        magic = f.read(4)
    if magic == b"RIFX":
        raise AudioFormatError("cannot handle big-endian WAV file")

    try:
        frame_rate, data = scipy.io.wavfile.read(path)
    except ValueError as e:
        raise AudioFormatError(f"cannot read WAV file: {e}") from e
    logger.info("frame rate: %d", frame_rate)

    if data.ndim == 2:
        nch = data.shape[1]
        logger.info("nof. channels: %d", nch)
        if nch > 2:
            raise AudioFormatError(f"cannot handle {nch} channels")
        left = to_int16(data[:, 0]).astype(np.int32)
        right = to_int16(data[:, 1]).astype(np.int32) if nch == 2 else left
        samples = ((left + right) // 2).astype(np.int16)
    else:
        samples = to_int16(data)

    frame_length = len(samples)
    logger.info(".wav file length: %.1f s", frame_length / frame_rate)
    offset_frames = offset * frame_rate
    if offset_frames > frame_length:
        raise ConfigurationError(f"offset too large, WAV file length is: {frame_length / frame_rate:.1f} s")

    available = frame_length - offset_frames
    nof_frames = available
    if length is not None:
        if length < 0:
            raise ConfigurationError("length cannot be negative")
        if length * frame_rate > available:
            logger.warning("option -l too large, using value: %d", available // frame_rate)
        else:
            nof_frames = length * frame_rate
    return frame_rate, samples[offset_frames:offset_frames + nof_frames].copy()


def write_wav(path: str, frame_rate: int, samples: np.ndarray):
    scipy.io.wavfile.write(path, frame_rate, np.asarray(samples, dtype=np.int16))
