"""
Low-pass filters applied to a mixed-down channel.

Each filter consumes the full mixed sample stream and yields one value per
time slice: the filter output at the last sample of the slice.
"""

import numpy as np
import scipy.signal

import config
from errors import ConfigurationError


class LowpassBase:
    name = "base"

    def filter(self, x: np.ndarray) -> np.ndarray:
        """Filter the whole stream sample by sample."""
        raise NotImplementedError

    def per_slice(self, x: np.ndarray, frames_per_slice: int, nof_slices: int) -> np.ndarray:
        y = self.filter(x[:nof_slices * frames_per_slice])
        return y[frames_per_slice - 1::frames_per_slice][:nof_slices]


class LowpassIIR(LowpassBase):
    def __init__(self, b: np.ndarray, a: np.ndarray):
        self.b = b
        self.a = a

    def filter(self, x: np.ndarray) -> np.ndarray:
        return scipy.signal.lfilter(self.b, self.a, x)


class LowpassButterworth(LowpassIIR):
    name = "b"

    def __init__(self, order: int, frame_rate: int, cutoff_hz: float):
        b, a = scipy.signal.butter(order, cutoff_hz, btype="low", fs=frame_rate)
        super().__init__(b, a)


class LowpassChebyshevI(LowpassIIR):
    name = "cI"

    def __init__(self, order: int, frame_rate: int, cutoff_hz: float,
                 ripple_db: float = config.CHEBYSHEV_RIPPLE_DB):
        b, a = scipy.signal.cheby1(order, ripple_db, cutoff_hz, btype="low", fs=frame_rate)
        super().__init__(b, a)


class LowpassWindow(LowpassBase):
    """Moving average over round(frame_rate/cutoff) samples."""
    name = "w"

    def __init__(self, frame_rate: int, cutoff_hz: float):
        self.size = max(1, int(round(frame_rate / cutoff_hz)))

    def filter(self, x: np.ndarray) -> np.ndarray:
        return scipy.signal.lfilter(np.full(self.size, 1.0 / self.size), [1.0], x)


class LowpassTimeSliceSum(LowpassBase):
    """Mean over each slice, restarting at every slice boundary."""
    name = "t"

    def filter(self, x: np.ndarray) -> np.ndarray:
        return x

    def per_slice(self, x: np.ndarray, frames_per_slice: int, nof_slices: int) -> np.ndarray:
        return x[:nof_slices * frames_per_slice].reshape(nof_slices, frames_per_slice).mean(axis=1)


class LowpassNone(LowpassBase):
    name = "n"

    def filter(self, x: np.ndarray) -> np.ndarray:
        return x


def create_lowpass(code: str, frame_rate: int, tu_millis: float,
                   order: int = config.DEFAULT_FILTER_ORDER,
                   cutoff: float = config.DEFAULT_FILTER_CUTOFF) -> LowpassBase:
    """
    Build a filter from its option code. The cutoff is given in units of
    1/TU and converted to Hz here.
    """
    cutoff_hz = cutoff * 1000.0 / tu_millis
    if code in ("b", "cI") and cutoff_hz >= frame_rate / 2:
        raise ConfigurationError(f"filter cutoff {cutoff_hz:.1f} Hz exceeds the Nyquist frequency")
    if code == "b":
        return LowpassButterworth(order, frame_rate, cutoff_hz)
    elif code == "cI":
        return LowpassChebyshevI(order, frame_rate, cutoff_hz)
    elif code == "w":
        return LowpassWindow(frame_rate, cutoff_hz)
    elif code == "t":
        return LowpassTimeSliceSum()
    elif code == "n":
        return LowpassNone()
    raise ConfigurationError(f"no such filter supported: '{code}'")
