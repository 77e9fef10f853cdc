"""
Dips-finding decoder.

Character boundaries come from the transitions. Inside a character the
tones are separated by looking for dips: local maxima of a smoothed
"distance below ceiling" curve. The spans between accepted dips are then
classified as dots or dashes by their length relative to the longest span.
"""

import logging
import math
from dataclasses import dataclass
from typing import List

import numpy as np

import config
from decoders.base import DecodeOutcome, DecoderBase
from morse_tree import ROOT

logger = logging.getLogger(__name__)

# strengths of the virtual dips that bracket every character
LEFT_EDGE_STRENGTH = 9999.8
RIGHT_EDGE_STRENGTH = 9999.9


@dataclass(frozen=True)
class Dip:
    q: int
    strength: float


def dip_weights(ts_length: float) -> np.ndarray:
    """Smoothing weights for d = 1, 2, ... until they drop below the table limit."""
    weights = []
    d = 1
    while True:
        w = math.exp(-((d * ts_length / config.DIP_SIGMA) ** 2) / 2)
        if w < config.DIP_EXPTABLE_LIM:
            return np.array(weights)
        weights.append(w)
        d += 1


class DipsFindingDecoder(DecoderBase):
    name = "dips"

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        ts = self.timebase.ts_length
        self.half_tu = int(round(1.0 / (2 * ts)))
        self.weights = dip_weights(ts)

    def dip_strength(self, k1: int, k2: int) -> np.ndarray:
        """Normalized dip strength for every slice in [k1, k2)."""
        sig, cei, flo = self.sig, self.cei, self.flo
        ts = self.timebase.ts_length
        n = len(sig)
        e1 = min(k1, n - 1)
        e2 = min(max(k2, 0), n - 1)
        z = (cei[e1] - flo[e1] + cei[e2] - flo[e2]) * (1 / (2 * ts)) * config.DIP_SIGMA
        if z <= 0:
            z = 1.0
        strength = np.zeros(max(k2 - k1, 0))
        for k in range(k1, k2):
            acc = cei[k] - sig[k]
            for d, w in enumerate(self.weights, start=1):
                if k - d < 0 or k + d >= n:
                    break
                acc += w * ((cei[k] - sig[k + d]) + (cei[k] - sig[k - d]))
            strength[k - k1] = acc / z
        return strength

    def find_dips(self, q1: int, q2: int) -> List[Dip]:
        """Significant dips of the character spanning [q1, q2], in time order."""
        half_tu = self.half_tu
        k1 = q1 + half_tu
        k2 = q2 - half_tu
        count_max = int(round(((q2 - q1) * self.timebase.ts_length + 3) / 2))
        strength = self.dip_strength(k1, k2)

        dips: List[Dip] = []
        prev_dip = Dip(q1 - half_tu, LEFT_EDGE_STRENGTH)
        pprev = 0.0
        prev = 0.0
        for k in range(k1, k2):
            s = strength[k - k1]
            if k >= k1 + 2 and s < prev and prev >= pprev:
                d = Dip(k - 1, prev)
                if d.q - prev_dip.q < config.DIP_MERGE_LIM * 2 * half_tu:
                    prev_dip = Dip((d.q + prev_dip.q) // 2, max(d.strength, prev_dip.strength))
                else:
                    dips.append(prev_dip)
                    prev_dip = d
            pprev = prev
            prev = s
        dips.append(prev_dip)
        dips.append(Dip(q2 + half_tu, RIGHT_EDGE_STRENGTH))

        selected: List[Dip] = []
        for d in sorted(dips, key=lambda x: -x.strength):
            if len(selected) >= count_max + 1:
                logger.debug("too many dips in character at slice %d, max: %d", q1, count_max)
                break
            if d.strength < config.DIP_STRENGTH_MIN:
                break
            selected.append(d)
        return sorted(selected, key=lambda x: x.q)

    def classify(self, dips: List[Dip]) -> str:
        """Turn the spans between dips into a dot/dash code."""
        half_tu = self.half_tu
        extents: List[int] = []
        for a, b in zip(dips, dips[1:]):
            extent = b.q - a.q
            if extent > config.DIP_TWODASHMIN * half_tu:
                e1 = extent // 2
                extents.extend([e1, extent - e1])
            else:
                extents.append(extent)
        if not extents:
            return ""
        extent_max = max(extents)
        if len(extents) == 1:
            return "-" if extents[0] > config.DIP_DASHMIN * half_tu else "."
        if extent_max <= config.DIP_DASHMIN * half_tu:
            return "." * len(extents)
        return "".join("-" if e / extent_max > config.DIP_DASHQUOTIENT else "." for e in extents)

    def decode_char(self, q1: int, q2: int):
        dips = self.find_dips(q1, q2)
        self.plot_tone(q1, q2)
        code = self.classify(dips)
        p = self.tree.walk(code) if code else ROOT
        logger.debug("char at slice %d decoded: %s", q1, self.tree.text(p))
        if p != ROOT:
            self.emit(False, self.tree.text(p))
        self.wpm.add_char(self.tree.n_tus(p), q2 - q1)

    def execute(self) -> DecodeOutcome:
        trans = self.find_transitions().transitions
        begin_char = trans[0].q
        prev_tone = False
        for t, tr in enumerate(trans):
            if not prev_tone and tr.rise and t > 0:
                gap = tr.q - trans[t - 1].q
                if gap > self.word_space_limit:
                    self.decode_char(begin_char, trans[t - 1].q)
                    self.emit(True, "", tr.q)
                    self.wpm.add_word_space(gap)
                    begin_char = tr.q
                elif gap > self.char_space_limit:
                    self.decode_char(begin_char, trans[t - 1].q)
                    self.wpm.add_char_space(gap)
                    begin_char = tr.q
            prev_tone = tr.rise

        # an unterminated last tone is dropped
        if not trans[-1].rise:
            self.decode_char(begin_char, trans[-1].q)
        self.emit(True, "")
        return self.outcome
