"""
One complete decode run over an in-memory sample array.

frequency -> clip level -> envelope -> floor/ceiling -> decoder

The adaptive detector replaces the first three steps with a per-segment
analysis.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

import numpy as np

import config
from adaptive import Segment, extract_adaptive_envelope
from clipping import find_clip_level
from decoders import DecodedChar, DecoderKind, create_decoder
from envelope import extract_envelope, phase_angles, slice_iq_absolute
from errors import NoSignalError
from frequency import find_frequency
from lowpass import create_lowpass
from morse_tree import MorseTree, build_standard_morse_tree
from options import DecoderOptions, TimeBase
from plotting import PlotCollector
from thresholds import levels, threshold
from wpm import WpmReport, log_report

logger = logging.getLogger(__name__)


@dataclass
class DecodeResult:
    text: str
    chars: List[DecodedChar]
    wpm: WpmReport
    frequency: int
    clip_level: int
    timebase: TimeBase
    sig: np.ndarray
    cei: np.ndarray
    flo: np.ndarray
    frequency_pairs: Dict[int, float] = field(default_factory=dict)
    phase: Optional[np.ndarray] = None
    segments: List[Segment] = field(default_factory=list)


def basic_envelope(samples: np.ndarray, frame_rate: int, timebase: TimeBase,
                   options: DecoderOptions) -> Tuple[np.ndarray, int, int, Dict[int, float]]:
    """One frequency and one clip level for the whole recording."""
    fps = timebase.frames_per_slice
    pairs: Dict[int, float] = {}
    if options.freq is None:
        freq, pairs = find_frequency(samples, frame_rate, fps, *options.frange)
    else:
        freq = options.freq
    logger.info("using frequency: %d", freq)

    if options.clip_level is None:
        clip_level = find_clip_level(samples, freq, frame_rate, fps)
    else:
        clip_level = options.clip_level
    logger.info("clip level: %d", clip_level)

    def lowpass():
        return create_lowpass(options.filter_code, frame_rate, timebase.tu_millis,
                              options.filter_order, options.filter_cutoff)

    sig = extract_envelope(samples, freq, clip_level, frame_rate, fps,
                           options.ts_length, options.sigma, lowpass(), lowpass())
    return sig, freq, clip_level, pairs


def decode_samples(samples: np.ndarray, frame_rate: int, options: DecoderOptions = None,
                   tree: MorseTree = None, plot_collector: PlotCollector = None) -> DecodeResult:
    """
    Decode int16 mono samples. Nothing is written anywhere; the caller
    decides what to do with the result.

    Raises:
        CwDecoderError: on any configuration or detection failure
    """
    options = (options or DecoderOptions()).validate()
    kind = DecoderKind.parse(options.decoder)
    timebase = TimeBase(frame_rate, options.wpm, options.ts_length, options.offset)
    fps = timebase.frames_per_slice
    logger.info("time slice: %.3f ms", timebase.slice_millis)
    logger.info("frames per time slice: %d", fps)
    if timebase.nof_slices(len(samples)) == 0:
        raise NoSignalError("recording shorter than one time slice")

    segments: List[Segment] = []
    if options.detector == "adaptive":
        sig, segments = extract_adaptive_envelope(samples, frame_rate, fps, timebase.tu_millis,
                                                  options.sigma, options.frange)
        freq = int(round(np.mean([s.frequency for s in segments if s.valid])))
        clip_level = max(s.clip_level for s in segments)
        pairs = {}
        logger.info("mean segment frequency: %d", freq)
    else:
        sig, freq, clip_level, pairs = basic_envelope(samples, frame_rate, timebase, options)
    cei, flo = levels(sig, timebase)

    k_threshold = config.THRESHOLD[kind.value]
    if plot_collector is not None:
        thr = threshold(flo, cei, options.level, k_threshold)
        for q in range(len(sig)):
            plot_collector.add_signal(timebase.seconds(q), sig[q], thr[q], cei[q], flo[q])

    phase = None
    if options.phase_data:
        cos_sum, sin_sum = slice_iq_absolute(samples, freq, clip_level, frame_rate, fps, timebase.offset)
        phase = phase_angles(cos_sum, sin_sum, sig, cei, flo, options.level, k_threshold)

    if tree is None:
        tree = build_standard_morse_tree()
    decoder = create_decoder(kind, sig, cei, flo, timebase, tree, options, plot_collector)
    outcome = decoder.execute()

    report = outcome.wpm.report(timebase.tu_millis, timebase.ts_length)
    log_report(report)
    return DecodeResult(outcome.text, list(outcome.chars), report, freq, clip_level, timebase,
                        sig, cei, flo, pairs, phase, segments)
