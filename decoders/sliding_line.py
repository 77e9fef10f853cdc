"""
Sliding-line decoder.

A short line is fitted around every slice; the slice counts as tone when
the fitted level is above the threshold. Runs of tone become dots or
dashes by their length, after very thin or very weak runs are dropped.
"""

import logging
from typing import List

import config
from decoders.base import DecodeOutcome, DecoderBase
from decoders.tones import Dash, Dot, Tone, lsq

logger = logging.getLogger(__name__)


class SlidingLineDecoder(DecoderBase):
    name = "sliding-line"

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        ts = self.timebase.ts_length
        self.j_dot = int(round(config.LSQ_DOT_SMALL_TU / ts))
        self.j_dash = int(round(config.LSQ_DASH_TU / ts))

    def find_tones(self) -> List[Tone]:
        sig, cei = self.sig, self.cei
        ts = self.timebase.ts_length
        tones: List[Tone] = []
        high_begin = 0
        is_high = False
        acc = 0.0
        acc_max = 0.0
        thin = 0
        for k in range(self.j_dash, len(sig) - self.j_dash):
            thr = self.threshold(k)
            r = lsq(sig, k, self.j_dot)
            if r is None:
                continue
            high = r.a > thr
            if not is_high and high:
                high_begin = k
                acc = r.a - thr
                acc_max = cei[k] - thr
                is_high = True
            elif is_high and high:
                acc += r.a - thr
                acc_max += cei[k] - thr
            elif is_high:
                width = k - high_begin
                k_middle = (high_begin + k + 1) // 2
                if width * ts < config.SLIDING_THIN_TU or acc < config.SLIDING_THIN_MASS * acc_max:
                    thin += 1
                elif width < self.dash_limit:
                    tones.append(Dot(k_middle, high_begin, k))
                else:
                    tones.append(Dash(k_middle, high_begin, k, ceiling=r.a))
                is_high = False
                acc = 0.0
                acc_max = 0.0
        logger.debug("nof. thin tones ignored: %d", thin)
        return tones

    def execute(self) -> DecodeOutcome:
        return self.decode_tones(self.find_tones())
