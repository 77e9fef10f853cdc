"""Effective speed statistics gathered while decoding."""

import logging
from dataclasses import dataclass
from typing import Optional

logger = logging.getLogger(__name__)

WORD_SPACE_TUS = 7
CHAR_SPACE_TUS = 3


@dataclass(frozen=True)
class WpmReport:
    char_wpm: Optional[float]
    char_space_expansion: Optional[float]
    word_space_expansion: Optional[float]
    effective_wpm: Optional[float]


@dataclass
class WpmAccumulator:
    """
    Nominal TUs and actual slice ticks spent inside characters, in
    inter-character spaces and in inter-word spaces.
    """
    ch_cus: int = 0
    ch_ticks: int = 0
    sp_cus_c: int = 0
    sp_ticks_c: int = 0
    sp_cus_w: int = 0
    sp_ticks_w: int = 0

    def add_char(self, n_tus: int, ticks: int):
        self.ch_cus += n_tus
        self.ch_ticks += ticks

    def add_char_space(self, ticks: int):
        self.sp_cus_c += CHAR_SPACE_TUS
        self.sp_ticks_c += ticks

    def add_word_space(self, ticks: int):
        self.sp_cus_w += WORD_SPACE_TUS
        self.sp_ticks_w += ticks

    def report(self, tu_millis: float, ts_length: float) -> WpmReport:
        char_wpm = None
        if self.ch_ticks > 0:
            char_wpm = 1200 * self.ch_cus / (self.ch_ticks * tu_millis * ts_length)
        char_exp = None
        if self.sp_cus_c > 0:
            char_exp = self.sp_ticks_c * ts_length / self.sp_cus_c
        word_exp = None
        if self.sp_cus_w > 0:
            word_exp = self.sp_ticks_w * ts_length / self.sp_cus_w
        effective = None
        ticks = self.sp_ticks_w + self.sp_ticks_c + self.ch_ticks
        if ticks > 0:
            cus = self.sp_cus_w + self.sp_cus_c + self.ch_cus
            effective = 1200 * cus / (ticks * tu_millis * ts_length)
        return WpmReport(char_wpm, char_exp, word_exp, effective)


def log_report(report: WpmReport):
    if report.char_wpm is not None:
        logger.info("within-characters WPM rating: %.1f", report.char_wpm)
    if report.char_space_expansion is not None:
        logger.info("expansion of inter-char spaces: %.3f", report.char_space_expansion)
    if report.word_space_expansion is not None:
        logger.info("expansion of inter-word spaces: %.3f", report.word_space_expansion)
    if report.effective_wpm is not None:
        logger.info("effective WPM: %.1f", report.effective_wpm)
