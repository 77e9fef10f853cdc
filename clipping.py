"""Clip level estimation: suppress impulsive noise without eating the tone."""

import logging

import numpy as np

import config
from frequency import slice_frames, slice_iq

logger = logging.getLogger(__name__)


def signal_average(samples: np.ndarray, freq: float, clip_level: int,
                   frame_rate: int, frames_per_slice: int) -> float:
    """Average per-slice correlation magnitude at freq, amplitudes clipped to +/-clip_level."""
    frames = slice_frames(np.clip(samples, -clip_level, clip_level), frames_per_slice)
    if frames.shape[0] == 0:
        return 0.0
    sin_acc, cos_acc = slice_iq(frames, freq, frame_rate)
    return float(np.mean(np.sqrt(sin_acc * sin_acc + cos_acc * cos_acc) / frames_per_slice))


def find_clip_level(samples: np.ndarray, freq: float, frame_rate: int, frames_per_slice: int,
                    strength: float = config.CLIP_STRENGTH,
                    precision: float = config.CLIP_PRECISION) -> int:
    """
    Binary search for the clip level that removes `strength` of the
    correlated signal, to within `precision*(1 - strength)`.
    """
    delta = precision * (1.0 - strength)
    u_no_clip = signal_average(samples, freq, config.INT16_MAX, frame_rate, frames_per_slice)
    logger.debug("clip level: %d, signal: %f", config.INT16_MAX, u_no_clip)

    hi = config.INT16_MAX
    lo = 0
    while True:
        midpoint = (hi + lo) // 2
        if midpoint == lo:
            return hi
        u_new = signal_average(samples, freq, midpoint, frame_rate, frames_per_slice)
        if (1 - strength) * u_no_clip > u_new > (1 - strength - delta) * u_no_clip:
            logger.debug("using clip level: %d", midpoint)
            return midpoint
        elif u_new >= (1 - strength) * u_no_clip:
            hi = midpoint
        else:
            lo = midpoint
