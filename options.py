"""
Run options and the time base derived from them.

`DecoderOptions` carries everything a single decode run needs; `TimeBase`
turns the tentative WPM and slice length into slice counts.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Tuple

import config
from errors import ConfigurationError


def parse_multi(text: str, count: int, kind=float, name: str = "option") -> List:
    """
    Parse a comma-separated multi-value option such as "400,1200".

    Args:
        text: raw option value
        count: required number of values
        kind: conversion applied to each value (int, float or str)
        name: option name used in error messages
    """
    parts = [p.strip() for p in text.split(",")]
    if len(parts) != count:
        raise ConfigurationError(
            f"{name}: expecting {count} comma-separated values, got {len(parts)}")
    try:
        return [kind(p) for p in parts]
    except ValueError:
        raise ConfigurationError(f"{name}: cannot parse '{text}'") from None


@dataclass
class DecoderOptions:
    wpm: float = config.DEFAULT_WPM
    frange: Tuple[int, int] = config.DEFAULT_FRANGE
    freq: Optional[int] = None
    clip_level: Optional[int] = None
    level: float = config.DEFAULT_LEVEL
    ts_length: float = config.DEFAULT_TS_LENGTH
    sigma: float = config.DEFAULT_SIGMA
    decoder: str = config.DEFAULT_DECODER
    detector: str = config.DEFAULT_DETECTOR
    dip_limit: float = config.DEFAULT_DIP_SPIKE[0]
    spike_limit: float = config.DEFAULT_DIP_SPIKE[1]
    break_long_dash: bool = True
    filter_code: str = config.DEFAULT_FILTER
    filter_order: int = config.DEFAULT_FILTER_ORDER
    filter_cutoff: float = config.DEFAULT_FILTER_CUTOFF
    space_expansion: float = config.DEFAULT_SPACE_EXPANSION
    timestamps: bool = False
    offset: int = 0
    phase_data: bool = False
    plot_interval: Optional[Tuple[float, float]] = field(default=None)

    def validate(self) -> "DecoderOptions":
        if self.wpm <= 0:
            raise ConfigurationError(f"WPM must be positive, got {self.wpm}")
        if self.ts_length <= 0 or self.ts_length > 1:
            raise ConfigurationError(f"slice length out of range: {self.ts_length}")
        if self.sigma <= 0:
            raise ConfigurationError(f"sigma must be positive, got {self.sigma}")
        f0, f1 = self.frange
        if f0 < 0 or f1 < f0:
            raise ConfigurationError(f"bad frequency range: {f0},{f1}")
        if self.freq is not None and self.freq <= 0:
            raise ConfigurationError(f"frequency must be positive, got {self.freq}")
        if self.clip_level is not None and not 0 < self.clip_level <= config.INT16_MAX:
            raise ConfigurationError(f"clip level out of range: {self.clip_level}")
        if self.level <= 0:
            raise ConfigurationError(f"level must be positive, got {self.level}")
        if self.decoder not in config.THRESHOLD:
            raise ConfigurationError(
                f"no such decoder: '{self.decoder}', choose from {', '.join(config.THRESHOLD)}")
        if self.detector not in config.DETECTORS:
            raise ConfigurationError(
                f"no such detector: '{self.detector}', choose from {', '.join(config.DETECTORS)}")
        if self.detector == "adaptive" and (self.freq is not None or self.clip_level is not None):
            raise ConfigurationError("the adaptive detector finds frequency and clip level per segment")
        if self.detector == "adaptive" and self.phase_data:
            raise ConfigurationError("phase data needs a fixed frequency, not available with the adaptive detector")
        if self.filter_code not in config.FILTER_CODES:
            raise ConfigurationError(f"no such filter supported: '{self.filter_code}'")
        if self.filter_order < 1:
            raise ConfigurationError(f"filter order must be at least 1, got {self.filter_order}")
        if self.filter_cutoff <= 0:
            raise ConfigurationError(f"filter cutoff must be positive, got {self.filter_cutoff}")
        if self.offset < 0:
            raise ConfigurationError("offset cannot be negative")
        return self


class TimeBase:
    """Slice geometry of one run. All decoder limits are derived from here."""

    def __init__(self, frame_rate: int, wpm: float, ts_length: float, offset: int = 0):
        self.frame_rate = frame_rate
        self.wpm = wpm
        self.tu_millis = 1200.0 / wpm
        self.ts_length = ts_length
        self.frames_per_slice = int(ts_length * frame_rate * self.tu_millis / 1000.0)
        self.offset = offset
        if self.frames_per_slice < 1:
            raise ConfigurationError(
                f"time slice shorter than one sample at {frame_rate} Hz, {wpm} WPM")

    def slices(self, limit_tu: float) -> int:
        """Convert a duration in TU to a number of slices."""
        return int(round(limit_tu * self.tu_millis * self.frame_rate / (1000 * self.frames_per_slice)))

    def nof_slices(self, nof_frames: int) -> int:
        return nof_frames // self.frames_per_slice

    def seconds(self, q: float) -> float:
        """Time of slice q, counted from the start of the file."""
        return self.offset + q * self.frames_per_slice / self.frame_rate

    def timestamp(self, q: int) -> int:
        return self.offset + int(round(q * self.ts_length * self.tu_millis / 1000))

    @property
    def slice_millis(self) -> float:
        return 1000.0 * self.frames_per_slice / self.frame_rate
