"""
Tone frequency estimation by single-bin correlation.

For every candidate frequency the samples of each time slice are
correlated against a sine and a cosine table; the squared magnitudes are
summed over the whole capture and the frequency with the largest sum wins.
"""

import logging
from typing import Dict, Tuple

import numpy as np

import config

logger = logging.getLogger(__name__)


def slice_frames(samples: np.ndarray, frames_per_slice: int) -> np.ndarray:
    """View the samples as a (slices, frames_per_slice) matrix, dropping the incomplete tail."""
    n = len(samples) // frames_per_slice
    return np.asarray(samples[:n * frames_per_slice], dtype=np.float64).reshape(n, frames_per_slice)


def trig_table(freq: float, frames_per_slice: int, frame_rate: int) -> Tuple[np.ndarray, np.ndarray]:
    angles = 2 * np.pi * freq * np.arange(frames_per_slice) / frame_rate
    return np.sin(angles), np.cos(angles)


def slice_iq(frames: np.ndarray, freq: float, frame_rate: int) -> Tuple[np.ndarray, np.ndarray]:
    """Per-slice sine and cosine correlation sums."""
    sin_t, cos_t = trig_table(freq, frames.shape[1], frame_rate)
    return frames @ sin_t, frames @ cos_t


def r2_sum(frames: np.ndarray, freq: float, frame_rate: int) -> float:
    sin_acc, cos_acc = slice_iq(frames, freq, frame_rate)
    return float(np.sum(sin_acc * sin_acc + cos_acc * cos_acc))


def find_frequency(samples: np.ndarray, frame_rate: int, frames_per_slice: int,
                   f0: int, f1: int) -> Tuple[int, Dict[int, float]]:
    """
    Estimate the tone frequency within [f0, f1].

    Returns:
        best frequency (Hz), and the energy of every frequency tried
    """
    frames = slice_frames(samples, frames_per_slice)
    logger.debug("search for frequency in range: %d to %d", f0, f1)
    pairs: Dict[int, float] = {}

    f_best = -1
    best = -1.0
    for f in range(f0, f1 + 1, config.FREQ_STEP_COARSE):
        energy = r2_sum(frames, f, frame_rate)
        pairs[f] = energy
        if energy > best:
            best = energy
            f_best = f

    g0 = max(0, f_best - config.FREQ_FINE_STEPS * config.FREQ_STEP_FINE)
    g1 = f_best + config.FREQ_FINE_STEPS * config.FREQ_STEP_FINE
    for f in range(g0, g1 + 1, config.FREQ_STEP_FINE):
        energy = pairs[f] if f in pairs else r2_sum(frames, f, frame_rate)
        pairs[f] = energy
        if energy > best:
            best = energy
            f_best = f

    if f_best == g0 or f_best == g1:
        logger.warning("frequency may not be optimal, try a wider range")
    return f_best, dict(sorted(pairs.items()))
