"""
Pattern-matching decoder.

Transitions are grouped into whole characters. The envelope of each
character, measured against a threshold interpolated between the floor
and ceiling snapshots at its first and last transition, is correlated
with a HI/LO template of every known code. Templates whose nominal length
is far from the measured length are penalized by a Gaussian prior.
"""

import logging
import math
from dataclasses import dataclass, field
from typing import Dict, List, Optional

import numpy as np

import config
from decoders.base import DecodeOutcome, DecoderBase
from morse_tree import STANDARD_CODES, nominal_tus, placeholder_text
from thresholds import threshold
from transitions import Transition

logger = logging.getLogger(__name__)

# nominal TUs assumed for a character that matches no template
UNMATCHED_TUS = 5


class CharTemplate:
    def __init__(self, text: Optional[str], code: str):
        self.code = code
        self.text = placeholder_text(code) if text is None else text
        size = sum(1 if x == "." else 3 for x in code) + len(code) - 1
        pattern = np.full(size, config.PATTERN_LO, dtype=np.float64)
        index = 0
        for x in code:
            width = 1 if x == "." else 3
            pattern[index:index + width] = config.PATTERN_HI
            index += width + 1
        self.pattern = pattern

    def __len__(self):
        return len(self.pattern)


def build_templates() -> Dict[int, List[CharTemplate]]:
    """Templates grouped by their length in TUs."""
    templates: Dict[int, List[CharTemplate]] = {}
    for text, code in STANDARD_CODES:
        tmpl = CharTemplate(text, code)
        templates.setdefault(len(tmpl), []).append(tmpl)
    return dict(sorted(templates.items()))


@dataclass
class CharData:
    transitions: List[Transition] = field(default_factory=list)

    def is_word_space(self) -> bool:
        return not self.transitions

    def is_complete(self) -> bool:
        return bool(self.transitions) and not self.transitions[-1].rise

    @property
    def first(self) -> Transition:
        return self.transitions[0]

    @property
    def last(self) -> Transition:
        return self.transitions[-1]


class PatternMatchDecoder(DecoderBase):
    name = "pattern"

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.templates = build_templates()

    def split_chars(self, trans) -> List[CharData]:
        """Group transitions into characters; an empty CharData is a word space."""
        chars: List[CharData] = []
        current = CharData()
        prev_tone = False
        for t, tr in enumerate(trans):
            if not prev_tone and tr.rise:
                gap = tr.q - trans[t - 1].q if t > 0 else 0
                if t > 0 and gap > self.word_space_limit:
                    chars.append(current)
                    chars.append(CharData())
                    current = CharData()
                elif t > 0 and gap > self.char_space_limit:
                    chars.append(current)
                    current = CharData()
            current.transitions.append(tr)
            prev_tone = tr.rise
        if current.is_complete():
            chars.append(current)
        return chars

    def match(self, cd: CharData) -> Optional[CharTemplate]:
        """Best scoring template, or None if nothing scores above zero."""
        q0 = cd.first.q
        q_size = cd.last.q - q0
        if q_size <= 0:
            return None
        tu_class = self.timebase.ts_length * q_size

        qq = np.arange(q_size)
        ceiling = cd.first.ceiling + (cd.last.ceiling - cd.first.ceiling) / q_size * qq
        floor = cd.first.floor + (cd.last.floor - cd.first.floor) / q_size * qq
        u = self.sig[q0:q0 + q_size] - threshold(floor, ceiling, self.options.level, self.k_threshold)

        best = None
        best_score = 0.0
        for size, candidates in self.templates.items():
            weight = math.exp(-((tu_class - size) / config.PATTERN_SIGMA) ** 2 / 2)
            for cand in candidates:
                index = (len(cand) * qq) // q_size
                score = weight * float(np.dot(u, cand.pattern[index]))
                if score > best_score:
                    best_score = score
                    best = cand
        return best

    def plot_template(self, cd: CharData, tmpl: CharTemplate):
        q0 = cd.first.q
        step = (cd.last.q - q0) / len(tmpl)
        prev = config.PATTERN_LO
        for i, value in enumerate(tmpl.pattern):
            if value != prev:
                self.plot_decoded(q0 + i * step, prev == config.PATTERN_LO)
                self.plot_decoded(q0 + i * step + 0.1, prev != config.PATTERN_LO)
            prev = value
        self.plot_decoded(cd.last.q, True)
        self.plot_decoded(cd.last.q + 0.1, False)

    def execute(self) -> DecodeOutcome:
        trans = self.find_transitions().transitions
        chars = self.split_chars(trans)

        wpm = self.wpm
        prev: Optional[CharData] = None
        word_gap = False
        for cd in chars:
            if cd.is_word_space():
                word_gap = True
                continue
            if prev is not None:
                gap = cd.first.q - prev.last.q
                if word_gap:
                    wpm.add_word_space(gap)
                    self.emit(True, "", cd.first.q)
                else:
                    wpm.add_char_space(gap)
            word_gap = False

            tmpl = self.match(cd)
            if tmpl is None:
                logger.debug("no template matches the character at slice %d", cd.first.q)
                self.emit(False, config.UNMATCHED_TEXT)
                wpm.add_char(UNMATCHED_TUS, cd.last.q - cd.first.q)
            else:
                self.emit(False, tmpl.text)
                wpm.add_char(nominal_tus(tmpl.code), cd.last.q - cd.first.q)
                self.plot_template(cd, tmpl)
            prev = cd

        if prev is not None:
            self.emit(True, "")
        return self.outcome
