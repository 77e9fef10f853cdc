"""
Adaptive envelope detection for tones that drift in frequency.

The recording is cut into segments of equal length. Every segment gets its
own tone frequency and clip level. The per-slice signal is a
Gaussian-weighted coherent sum over a short chunk centred on the slice, at
a frequency interpolated between the midpoints of the segments that carry
enough signal.
"""

import logging
import time
from dataclasses import dataclass, replace
from typing import List, Tuple

import numpy as np
import scipy.optimize

import config
from errors import NoSignalError
from frequency import slice_frames

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Segment:
    index: int
    base: int
    size: int
    frequency: float
    clip_level: int
    strength: float
    valid: bool = False

    @property
    def midpoint(self) -> int:
        return self.base + (self.size // 2 if self.size % 2 == 1 else self.size // 2 - 1)


def chunk_strength(chunks: np.ndarray, freqs, frame_rate: int) -> np.ndarray:
    """Mean correlation magnitude per sample over all chunks, for every frequency in freqs."""
    k = np.arange(chunks.shape[1])
    table = np.exp(-2j * np.pi * np.outer(k, np.atleast_1d(freqs)) / frame_rate)
    return np.mean(np.abs(chunks @ table), axis=0) / chunks.shape[1]


def best_frequency(chunks: np.ndarray, frame_rate: int, f0: float, f1: float) -> float:
    """
    Grid search over [f0, f1] at a quarter of the chunk's frequency
    resolution, then a bounded scalar refinement around the best grid point.
    """
    if f1 <= f0:
        return float(f0)
    step = config.ADAPTIVE_GRID_STEP * frame_rate / chunks.shape[1]
    grid = np.linspace(f0, f1, int(np.ceil((f1 - f0) / step)) + 1)
    j = int(np.argmax(chunk_strength(chunks, grid, frame_rate)))
    if j == 0 or j == len(grid) - 1:
        logger.debug("segment frequency at the edge of the search range: %.1f", grid[j])
    lo = grid[max(0, j - 1)]
    hi = grid[min(len(grid) - 1, j + 1)]
    result = scipy.optimize.minimize_scalar(
        lambda u: -chunk_strength(chunks, u, frame_rate)[0],
        bounds=(lo, hi), method="bounded", options={"xatol": config.ADAPTIVE_FREQ_PREC})
    return float(result.x)


def signal_loss(chunks: np.ndarray, freq: float, clip_level: int, frame_rate: int) -> float:
    """Fraction of the correlated signal lost by clipping at clip_level."""
    raw = chunk_strength(chunks, freq, frame_rate)[0]
    if raw == 0.0:
        return 0.0
    clipped = chunk_strength(np.clip(chunks, -clip_level, clip_level), freq, frame_rate)[0]
    return 1.0 - clipped / raw


def segment_clip_level(chunks: np.ndarray, freq: float, frame_rate: int, max_abs: int,
                       acceptable: float = config.ADAPTIVE_CLIP_LOSS) -> int:
    """
    Lower the clip level from the segment peak until clipping costs more
    than `acceptable`, then raise it in small steps until it no longer does.
    """
    x = float(max_abs)
    while signal_loss(chunks, freq, int(round(x)), frame_rate) <= acceptable:
        x *= 0.7
    y = 1.05 * x
    while signal_loss(chunks, freq, int(round(y)), frame_rate) > acceptable:
        y *= 1.05
    return max(1, min(config.INT16_MAX, int(round(y))))


def make_segment(index: int, samples: np.ndarray, base: int, chunk_size: int, nof_chunk: int,
                 frame_rate: int, frange: Tuple[int, int]) -> Segment:
    size = chunk_size * nof_chunk
    chunks = slice_frames(samples[base:base + size], chunk_size)
    max_abs = int(np.max(np.abs(chunks)))
    if max_abs == 0:
        return Segment(index, base, size, 0.5 * (frange[0] + frange[1]), 1, 0.0)
    freq = best_frequency(chunks, frame_rate, *frange)
    clip_level = segment_clip_level(chunks, freq, frame_rate, max_abs)
    strength = float(chunk_strength(np.clip(chunks, -clip_level, clip_level), freq, frame_rate)[0])
    logger.debug("segment %d: frequency %.1f, clip level %d, strength %.2f",
                 index, freq, clip_level, strength)
    return Segment(index, base, size, freq, clip_level, strength)


def analyze_segments(samples: np.ndarray, frame_rate: int, frames_per_slice: int,
                     frange: Tuple[int, int],
                     coh_factor: int = config.ADAPTIVE_COH_FACTOR,
                     seg_factor: int = config.ADAPTIVE_SEG_FACTOR) -> List[Segment]:
    """
    Cut the samples into segments of seg_factor chunks; a shorter trailing
    segment takes whatever whole chunks remain. Segments whose strength
    reaches ADAPTIVE_STRENGTH_LIMIT of the strongest are marked valid.

    Raises:
        NoSignalError: no whole chunk, or nothing but silence
    """
    chunk_size = frames_per_slice * coh_factor
    seg_size = chunk_size * seg_factor
    segments: List[Segment] = []
    base = 0
    while base + seg_size <= len(samples):
        segments.append(make_segment(len(segments), samples, base, chunk_size, seg_factor, frame_rate, frange))
        base += seg_size
    nof_chunk = (len(samples) - base) // chunk_size
    if nof_chunk > 0:
        segments.append(make_segment(len(segments), samples, base, chunk_size, nof_chunk, frame_rate, frange))
    if not segments:
        raise NoSignalError("recording shorter than one coherence chunk")

    strength_max = max(s.strength for s in segments)
    if strength_max <= 0.0:
        raise NoSignalError()
    segments = [replace(s, valid=s.strength >= config.ADAPTIVE_STRENGTH_LIMIT * strength_max)
                for s in segments]
    logger.info("nof. segments: %d, valid: %d", len(segments), sum(s.valid for s in segments))
    return segments


def frequency_at(segments: List[Segment], frame_index) -> np.ndarray:
    """Tone frequency at the given sample index, linear between valid segment midpoints."""
    valid = [s for s in segments if s.valid]
    return np.interp(frame_index, [s.midpoint for s in valid], [s.frequency for s in valid])


def extract_adaptive_envelope(samples: np.ndarray, frame_rate: int, frames_per_slice: int,
                              tu_millis: float, sigma: float, frange: Tuple[int, int],
                              coh_factor: int = config.ADAPTIVE_COH_FACTOR,
                              seg_factor: int = config.ADAPTIVE_SEG_FACTOR
                              ) -> Tuple[np.ndarray, List[Segment]]:
    """
    Compute sig[q], one value per whole slice, and return it with the
    segment analysis it was computed from.
    """
    t_begin = time.time()
    segments = analyze_segments(samples, frame_rate, frames_per_slice, frange, coh_factor, seg_factor)
    nof_slices = len(samples) // frames_per_slice
    hi_max = nof_slices * frames_per_slice
    seg_slices = coh_factor * seg_factor
    half = coh_factor // 2
    odd = coh_factor % 2
    # samples per sigma
    scale = tu_millis * frame_rate * sigma / 1000.0

    x = np.asarray(samples, dtype=np.float64)
    freqs = frequency_at(segments, np.arange(nof_slices) * frames_per_slice)
    sig = np.empty(nof_slices)
    for q in range(nof_slices):
        lo = max(0, (q - half) * frames_per_slice)
        hi = min(hi_max, (q + half + odd) * frames_per_slice)
        clip_level = segments[min(q // seg_slices, len(segments) - 1)].clip_level
        k = np.arange(hi - lo)
        weight = np.exp(-((k - (hi - lo - 1) / 2) / scale) ** 2)
        amp = np.clip(x[lo:hi], -clip_level, clip_level)
        acc = np.dot(weight * amp, np.exp(-2j * np.pi * freqs[q] * k / frame_rate))
        sig[q] = abs(acc) / np.sum(weight)

    logger.info("adaptive detection took ms: %d", int(1000 * (time.time() - t_begin)))
    sig.setflags(write=False)
    return sig, segments
