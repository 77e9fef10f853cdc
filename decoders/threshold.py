"""Tone/silence decoder: classify the cleaned transitions by duration."""

import logging

from decoders.base import DecodeOutcome, DecoderBase
from morse_tree import ROOT

logger = logging.getLogger(__name__)


class ThresholdDecoder(DecoderBase):
    name = "threshold"

    def execute(self) -> DecodeOutcome:
        trans = self.find_transitions().transitions

        for tr in trans:
            self.plot_decoded(tr.q, tr.rise)

        wpm = self.wpm
        p = ROOT
        q_char_begin = trans[0].q
        prev_tone = False
        for t, tr in enumerate(trans):
            if not prev_tone and tr.rise:
                if t > 0:
                    gap = tr.q - trans[t - 1].q
                    if gap > self.word_space_limit:
                        wpm.add_char(self.tree.n_tus(p), trans[t - 1].q - q_char_begin)
                        wpm.add_word_space(gap)
                        p = self.close_char(p, True, tr.q)
                        q_char_begin = tr.q
                    elif gap > self.char_space_limit:
                        wpm.add_char(self.tree.n_tus(p), trans[t - 1].q - q_char_begin)
                        wpm.add_char_space(gap)
                        p = self.close_char(p, False)
                        q_char_begin = tr.q
            elif prev_tone and not tr.rise:
                width = tr.q - trans[t - 1].q
                p = self.walk(p, "-" if width > self.dash_limit else ".")
            else:
                raise RuntimeError(f"transitions do not alternate at slice {tr.q}")
            prev_tone = tr.rise

        if p != ROOT:
            wpm.add_char(self.tree.n_tus(p), trans[-1].q - q_char_begin)
            self.close_char(p, True)
        return self.outcome
