"""
Diagnostic plots.

`PlotCollector` gathers per-slice envelope data and the decoded trace for
a time interval during a run; the `plot_*` functions render PNG files.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Tuple

import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt

logger = logging.getLogger(__name__)


@dataclass
class PlotCollector:
    begin: float
    end: float
    signal: List[Tuple[float, float, float, float, float]] = field(default_factory=list)
    decoded: List[Tuple[float, float]] = field(default_factory=list)

    def in_range(self, seconds: float) -> bool:
        return self.begin <= seconds <= self.end

    def add_signal(self, seconds: float, sig: float, threshold: float, ceiling: float, floor: float):
        if self.in_range(seconds):
            self.signal.append((seconds, sig, threshold, ceiling, floor))

    def add_decoded(self, seconds: float, value: float):
        self.decoded.append((seconds, value))


def plot_signal(collector: PlotCollector, path: str):
    if not collector.signal:
        logger.warning("nothing to plot in interval %.1f .. %.1f s", collector.begin, collector.end)
        return
    t, sig, thr, cei, flo = zip(*collector.signal)
    plt.figure(figsize=(14, 5))
    plt.plot(t, sig, label="signal")
    plt.plot(t, thr, label="threshold", linestyle="--")
    plt.plot(t, cei, label="ceiling", alpha=0.6)
    plt.plot(t, flo, label="floor", alpha=0.6)
    if collector.decoded:
        decoded = sorted(collector.decoded)
        plt.plot([d[0] for d in decoded], [d[1] for d in decoded], label="decoded", color="black")
    plt.xlabel("Time (s)")
    plt.ylabel("Amplitude")
    plt.grid(True, linestyle="--", alpha=0.5)
    plt.legend()
    plt.tight_layout()
    plt.savefig(path)
    plt.close()
    logger.info("signal plot saved to %s", path)


def plot_frequency(pairs: Dict[int, float], path: str):
    freqs = list(pairs.keys())
    plt.figure(figsize=(10, 5))
    plt.plot(freqs, [pairs[f] for f in freqs], marker=".")
    plt.xlabel("Frequency (Hz)")
    plt.ylabel("Correlation energy")
    plt.grid(True, linestyle="--", alpha=0.5)
    plt.tight_layout()
    plt.savefig(path)
    plt.close()
    logger.info("frequency plot saved to %s", path)


def plot_phase(points: List[Tuple[float, float]], path: str):
    plt.figure(figsize=(14, 4))
    plt.plot([p[0] for p in points], [p[1] for p in points], ".", markersize=2)
    plt.xlabel("Time (s)")
    plt.ylabel("Phase (rad)")
    plt.ylim(-3.3, 3.3)
    plt.grid(True, linestyle="--", alpha=0.5)
    plt.tight_layout()
    plt.savefig(path)
    plt.close()
    logger.info("phase plot saved to %s", path)
