"""
Local floor and ceiling of the envelope.

For every slice a weighted histogram is built over a window of
+/- NOF_TU_FOR_HISTOGRAM TUs. Slices close to the centre weigh more. The
ceiling discards the low end of the histogram mass and averages what is
left; the floor discards the high end.
"""

import logging
from typing import Tuple

import numpy as np

import config
from options import TimeBase

logger = logging.getLogger(__name__)


def histogram_width(timebase: TimeBase) -> int:
    """Half width of the histogram window, in slices."""
    return int(config.NOF_TU_FOR_HISTOGRAM * timebase.tu_millis / timebase.slice_millis)


def proximity_points(width: int, focus: float) -> np.ndarray:
    """Integer weight for every distance 0..width from the centre slice."""
    x = np.arange(width + 1)
    return np.rint(config.HIST_POINTS / (1 + (focus * x / max(width, 1)) ** 2)).astype(np.int64)


def _window_histogram(sig: np.ndarray, q: int, width: int, points: np.ndarray) -> Tuple[np.ndarray, float]:
    q1 = max(q - width, 0)
    q2 = min(q + width, len(sig))
    window = sig[q1:q2]
    sig_max = float(window.max()) if len(window) else 0.0
    if sig_max <= 0.0:
        return np.zeros(config.HIST_SIZE, dtype=np.int64), 0.0
    index = np.rint((config.HIST_SIZE - 1) * window / sig_max).astype(np.int64)
    weights = points[np.abs(np.arange(q1, q2) - q)]
    return np.bincount(index, weights=weights, minlength=config.HIST_SIZE).astype(np.int64), sig_max


def _remove_low(hist: np.ndarray, fraction: float) -> np.ndarray:
    """Take round(fraction*mass) away, starting from the lowest bin."""
    count = int(round(fraction * int(hist.sum())))
    before = np.cumsum(hist) - hist
    return hist - np.minimum(hist, np.maximum(count - before, 0))


def _bin_average(hist: np.ndarray, sig_max: float) -> float:
    total = int(hist.sum())
    if total == 0:
        return 0.0
    k = np.arange(len(hist))
    return float(np.dot(hist, k) * sig_max / (config.HIST_SIZE - 1) / total)


def local_ceiling(sig: np.ndarray, q: int, width: int, points: np.ndarray = None) -> float:
    if points is None:
        points = proximity_points(width, config.CEILING_FOCUS)
    hist, sig_max = _window_histogram(sig, q, width, points)
    return _bin_average(_remove_low(hist, config.CEILING_REMOVE_FRACTION), sig_max)


def local_floor(sig: np.ndarray, q: int, width: int, points: np.ndarray = None) -> float:
    if points is None:
        points = proximity_points(width, config.FLOOR_FOCUS)
    hist, sig_max = _window_histogram(sig, q, width, points)
    # removing from the high end is removing from the low end of the reversed histogram
    kept = _remove_low(hist[::-1], config.FLOOR_REMOVE_FRACTION)[::-1]
    return _bin_average(kept, sig_max)


def levels(sig: np.ndarray, timebase: TimeBase) -> Tuple[np.ndarray, np.ndarray]:
    """
    Compute the per-slice ceiling and floor arrays.

    Returns:
        (cei, flo), both read-only and of the same length as sig
    """
    width = histogram_width(timebase)
    logger.debug("histogram half-width (nof. slices): %d", width)
    cei_points = proximity_points(width, config.CEILING_FOCUS)
    flo_points = proximity_points(width, config.FLOOR_FOCUS)
    n = len(sig)
    cei = np.empty(n)
    flo = np.empty(n)
    for q in range(n):
        cei[q] = local_ceiling(sig, q, width, cei_points)
        flo[q] = local_floor(sig, q, width, flo_points)
    cei.setflags(write=False)
    flo.setflags(write=False)
    return cei, flo


def threshold(flo, cei, level: float, k_threshold: float):
    """Decision threshold; works on scalars and arrays alike."""
    return flo + level * k_threshold * (cei - flo)
