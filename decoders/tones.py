"""Dots, dashes and the local line fits used to find them."""

from dataclasses import dataclass
from typing import NamedTuple, Optional

import numpy as np

DET_EPS = 1e-12


class LineFit(NamedTuple):
    a: float  # intercept at the window centre
    b: float  # slope per slice


@dataclass(frozen=True)
class Tone:
    k: int
    rise: int
    drop: int
    strength: float = 0.0

    def __post_init__(self):
        if not self.rise <= self.k <= self.drop:
            raise ValueError(f"tone centre outside its extent: {self.k}, {self.rise}, {self.drop}")

    @property
    def symbol(self) -> str:
        raise NotImplementedError


@dataclass(frozen=True)
class Dot(Tone):
    @property
    def symbol(self) -> str:
        return "."


@dataclass(frozen=True)
class Dash(Tone):
    ceiling: float = 0.0

    @property
    def symbol(self) -> str:
        return "-"


def lsq(sig: np.ndarray, k: int, j_max: int, weights: np.ndarray = None) -> Optional[LineFit]:
    """
    Weighted least-squares line through sig[k-j_max .. k+j_max].

    Returns None when the window leaves the array or the fit is degenerate.
    """
    if k - j_max < 0 or k + j_max >= len(sig):
        return None
    j = np.arange(-j_max, j_max + 1)
    w = np.ones(len(j)) if weights is None else weights
    y = sig[k - j_max:k + j_max + 1]
    sum_w = w.sum()
    sum_jw = np.dot(j, w)
    sum_jjw = np.dot(j * j, w)
    r1 = np.dot(w, y)
    r2 = np.dot(j * w, y)
    det = sum_w * sum_jjw - sum_jw * sum_jw
    if abs(det) < DET_EPS:
        return None
    return LineFit(float((r1 * sum_jjw - r2 * sum_jw) / det), float((sum_w * r2 - sum_jw * r1) / det))


def segment_mean(sig: np.ndarray, i1: int, i2: int) -> float:
    """Mean level over [i1, i2); 0.0 for an empty range."""
    if i2 <= i1:
        return 0.0
    return float(np.mean(sig[max(i1, 0):i2]))


def find_rise(sig: np.ndarray, k: int, j_dash: int, j_dot: int) -> int:
    """Slice of steepest ascent near k - j_dash."""
    best = 0.0
    q_best = k - j_dash
    for q in range(k - j_dash - j_dot, k - j_dash + j_dot):
        u = lsq(sig, q, j_dot)
        if u is not None and u.b > best:
            best = u.b
            q_best = q
    return q_best


def find_drop(sig: np.ndarray, k: int, j_dash: int, j_dot: int) -> int:
    """Slice of steepest descent near k + j_dash."""
    best = 0.0
    q_best = k + j_dash
    for q in range(k + j_dash - j_dot, k + j_dash + j_dot):
        u = lsq(sig, q, j_dot)
        if u is not None and u.b < best:
            best = u.b
            q_best = q
    return q_best
