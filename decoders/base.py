"""
Shared machinery of the decoder strategies.

A decoder never writes text directly. It collects `DecodedChar` entries
and speed counters in a `DecodeOutcome` that the caller replays into a
formatter once the whole run has succeeded.
"""

import logging
from dataclasses import dataclass, field
from typing import List, NamedTuple, Optional

import numpy as np

import config
from errors import NoSignalError
from morse_tree import ROOT, MorseTree
from options import DecoderOptions, TimeBase
from thresholds import threshold
from transitions import TransitionResult, find_transitions
from wpm import WpmAccumulator

logger = logging.getLogger(__name__)

# decoded trace levels in the signal plot, relative to the largest ceiling
PLOT_LOW = 1 / 20
PLOT_HIGH = 2 / 20


class DecodedChar(NamedTuple):
    word_break: bool
    text: str
    timestamp: Optional[int] = None


@dataclass
class DecodeOutcome:
    chars: List[DecodedChar] = field(default_factory=list)
    wpm: WpmAccumulator = field(default_factory=WpmAccumulator)

    @property
    def text(self) -> str:
        """The decoded words joined by single spaces."""
        words = []
        current = ""
        for ch in self.chars:
            current += ch.text
            if ch.word_break:
                if current:
                    words.append(current)
                current = ""
        if current:
            words.append(current)
        return " ".join(words)


class DecoderBase:
    """
    Base class of all decoder strategies.

    Subclasses implement `execute()`. The envelope and its companions are
    read-only here.
    """
    name = "base"

    def __init__(self, sig: np.ndarray, cei: np.ndarray, flo: np.ndarray,
                 timebase: TimeBase, tree: MorseTree, options: DecoderOptions,
                 plot_collector=None):
        self.sig = sig
        self.cei = cei
        self.flo = flo
        self.timebase = timebase
        self.tree = tree
        self.options = options
        self.plot_collector = plot_collector
        self.k_threshold = config.THRESHOLD[self.name]
        self.ceiling_max = float(np.max(cei)) if len(cei) else 0.0

        spexp = options.space_expansion
        self.word_space_limit = timebase.slices(spexp * config.WORD_SPACE_LIMIT[self.name])
        self.char_space_limit = timebase.slices(spexp * config.CHAR_SPACE_LIMIT[self.name])
        self.dash_limit = timebase.slices(config.DASH_LIMIT[self.name])

        self.outcome = DecodeOutcome()

    def execute(self) -> DecodeOutcome:
        raise NotImplementedError

    @property
    def wpm(self) -> WpmAccumulator:
        return self.outcome.wpm

    def threshold(self, q: int) -> float:
        return threshold(self.flo[q], self.cei[q], self.options.level, self.k_threshold)

    def find_transitions(self) -> TransitionResult:
        o = self.options
        result = find_transitions(self.sig, self.cei, self.flo, self.timebase, o.level, self.k_threshold,
                                  dip_limit=o.dip_limit, spike_limit=o.spike_limit,
                                  break_long_dash=o.break_long_dash, char_space=self.char_space_limit)
        self.ceiling_max = result.ceiling_max
        return result

    def emit(self, word_break: bool, text: str, q: Optional[int] = None):
        """Append a character; q, when given, stamps a word break."""
        ts = None
        if word_break and q is not None and self.options.timestamps:
            ts = self.timebase.timestamp(q)
        self.outcome.chars.append(DecodedChar(word_break, text, ts))

    def walk(self, node_id: int, symbol: str) -> int:
        return self.tree.child(node_id, symbol)

    def close_char(self, node_id: int, word_break: bool, q: Optional[int] = None) -> int:
        """Emit the character at node_id, if any, and return to the root."""
        if node_id != ROOT:
            self.emit(word_break, self.tree.text(node_id), q)
        return ROOT

    def decode_tones(self, tones) -> DecodeOutcome:
        """
        Walk a time-ordered sequence of dots and dashes, splitting
        characters and words on the gap between one tone's drop and the
        next tone's rise.
        """
        if not tones:
            raise NoSignalError()

        wpm = self.wpm
        p = ROOT
        prev = None
        q_char_begin = 0
        for tone in tones:
            if prev is None:
                q_char_begin = tone.rise
            else:
                gap = tone.rise - prev.drop
                if gap > self.word_space_limit:
                    wpm.add_char(self.tree.n_tus(p), prev.drop - q_char_begin)
                    wpm.add_word_space(gap)
                    p = self.close_char(p, True, tone.k)
                    q_char_begin = tone.rise
                elif gap > self.char_space_limit:
                    wpm.add_char(self.tree.n_tus(p), prev.drop - q_char_begin)
                    wpm.add_char_space(gap)
                    p = self.close_char(p, False)
                    q_char_begin = tone.rise
            p = self.walk(p, tone.symbol)
            self.plot_tone(tone.rise, tone.drop)
            prev = tone

        if p != ROOT:
            wpm.add_char(self.tree.n_tus(p), prev.drop - q_char_begin)
            self.close_char(p, True)
        return self.outcome

    def plot_decoded(self, q: float, high: bool):
        if self.plot_collector is None:
            return
        seconds = self.timebase.seconds(q)
        if self.plot_collector.in_range(seconds):
            self.plot_collector.add_decoded(
                seconds, (PLOT_HIGH if high else PLOT_LOW) * self.ceiling_max)

    def plot_tone(self, rise: int, drop: int):
        """Square pulse on the decoded trace from rise to drop."""
        if self.plot_collector is None:
            return
        if not (self.plot_collector.in_range(self.timebase.seconds(rise))
                and self.plot_collector.in_range(self.timebase.seconds(drop + 1))):
            return
        self.plot_decoded(rise, False)
        self.plot_decoded(rise + 1, True)
        self.plot_decoded(drop, True)
        self.plot_decoded(drop + 1, False)
