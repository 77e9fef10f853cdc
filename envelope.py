"""
Envelope extraction.

The clipped sample stream is mixed down at the tone frequency into an
in-phase and a quadrature channel, each channel is low-pass filtered and
sampled once per time slice, and the per-slice magnitude is smoothed with a
truncated Gaussian kernel.
"""

import concurrent.futures
import logging
import math
import time
from typing import Tuple

import numpy as np
import scipy.ndimage

import config
from lowpass import LowpassBase
from thresholds import threshold

logger = logging.getLogger(__name__)

PHASE_WIDTH = 7  # half width (slices) of the phase angle averaging window


def mix(samples: np.ndarray, freq: float, clip_level: int, frame_rate: int, phase: float) -> np.ndarray:
    amp = np.clip(samples, -clip_level, clip_level).astype(np.float64)
    n = np.arange(len(samples))
    return amp * np.sin(2 * np.pi * freq * n / frame_rate + phase)


def filter_channel(samples: np.ndarray, freq: float, clip_level: int, frame_rate: int,
                   frames_per_slice: int, lowpass: LowpassBase, phase: float) -> np.ndarray:
    nof_slices = len(samples) // frames_per_slice
    return lowpass.per_slice(mix(samples, freq, clip_level, frame_rate, phase),
                             frames_per_slice, nof_slices)


def gaussian_kernel(sigma: float, ts_length: float, eps: float = config.GAUSS_EPS) -> np.ndarray:
    """
    Gaussian weights in slice units, truncated where the weight drops below
    eps. The size is always odd so the kernel is centred on a slice.
    """
    half = int(round((sigma / ts_length) * math.sqrt(-2 * math.log(eps))))
    j = np.arange(-half, half + 1)
    return np.exp(-((j * ts_length / sigma) ** 2) / 2)


def gaussian_smooth(magnitude: np.ndarray, kernel: np.ndarray) -> np.ndarray:
    return scipy.ndimage.convolve1d(magnitude, kernel, mode="constant", cval=0.0) / len(kernel)


def extract_envelope(samples: np.ndarray, freq: float, clip_level: int, frame_rate: int,
                     frames_per_slice: int, ts_length: float, sigma: float,
                     lowpass_i: LowpassBase, lowpass_q: LowpassBase) -> np.ndarray:
    """
    Compute sig[q], one value per whole slice.

    The I and Q channels are filtered concurrently and joined before the
    magnitudes are combined.
    """
    t_begin = time.time()
    with concurrent.futures.ThreadPoolExecutor(max_workers=2) as executor:
        future_i = executor.submit(filter_channel, samples, freq, clip_level, frame_rate,
                                   frames_per_slice, lowpass_i, 0.0)
        future_q = executor.submit(filter_channel, samples, freq, clip_level, frame_rate,
                                   frames_per_slice, lowpass_q, math.pi / 2)
        out_i = future_i.result()
        out_q = future_q.result()
    magnitude = np.sqrt(out_i * out_i + out_q * out_q)

    kernel = gaussian_kernel(sigma, ts_length)
    logger.debug("nof. gaussian terms: %d", len(kernel))
    sig = gaussian_smooth(magnitude, kernel)
    logger.info("filtering took ms: %d", int(1000 * (time.time() - t_begin)))
    sig.setflags(write=False)
    return sig


def slice_iq_absolute(samples: np.ndarray, freq: float, clip_level: int, frame_rate: int,
                      frames_per_slice: int, offset: float = 0.0) -> Tuple[np.ndarray, np.ndarray]:
    """
    Per-slice cosine and sine sums against a carrier running in absolute
    time; offset is the start of the samples within the file, in seconds.
    """
    nof_slices = len(samples) // frames_per_slice
    amp = np.clip(samples[:nof_slices * frames_per_slice], -clip_level, clip_level).astype(np.float64)
    angle = 2 * np.pi * freq * (offset + np.arange(len(amp)) / frame_rate)
    cos_sum = (amp * np.cos(angle)).reshape(nof_slices, frames_per_slice).sum(axis=1)
    sin_sum = (amp * np.sin(angle)).reshape(nof_slices, frames_per_slice).sum(axis=1)
    return cos_sum, sin_sum


def phase_angles(cos_sum: np.ndarray, sin_sum: np.ndarray, sig: np.ndarray,
                 cei: np.ndarray, flo: np.ndarray, level: float, k_threshold: float) -> np.ndarray:
    """
    Amplitude-weighted carrier phase per slice; 0.0 where the local average
    is below the threshold taken at 0.2*level.
    """
    n = len(sig)
    result = np.zeros(n)
    weight = sig * sig
    for k in range(n):
        j0 = max(0, k - PHASE_WIDTH)
        j1 = min(n - 1, k + PHASE_WIDTH) + 1
        amp_ave = np.mean(sig[j0:j1])
        if amp_ave < threshold(flo[k], cei[k], 0.2 * level, k_threshold):
            continue
        sumx = np.dot(weight[j0:j1], cos_sum[j0:j1])
        sumy = np.dot(weight[j0:j1], sin_sum[j0:j1])
        result[k] = math.atan2(sumy, sumx)
    return result
