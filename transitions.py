"""
Rise/fall detection against the adaptive threshold.

The envelope is digitized into an alternating list of transitions. Short
false silences inside a tone (dips) and short false tones inside a silence
(spikes) are then removed, and tones too long to be a single dash are
optionally split in two.
"""

import logging
from dataclasses import dataclass, replace
from typing import List, Optional, Tuple

import numpy as np

import config
from errors import NoCodeError, NoSignalError
from options import TimeBase
from thresholds import threshold

logger = logging.getLogger(__name__)

NO_ACC = -1.0


@dataclass(frozen=True)
class Transition:
    q: int
    rise: bool
    dip_acc: float
    spike_acc: float
    ceiling: float
    floor: float


@dataclass(frozen=True)
class TransitionResult:
    transitions: Tuple[Transition, ...]
    threshold_max: float
    ceiling_max: float
    silent_tu: float


def detect(sig: np.ndarray, cei: np.ndarray, flo: np.ndarray, level: float, k_threshold: float,
           char_space: int) -> Tuple[List[Transition], float, float]:
    """
    Scan for threshold crossings, accumulating the squared threshold
    deficit of every silence and every tone.
    """
    trans: List[Transition] = []
    tone = False
    dip_acc = 0.0
    spike_acc = 0.0
    threshold_max = 0.0
    ceiling_max = 0.0
    for q in range(len(sig)):
        thr = threshold(flo[q], cei[q], level, k_threshold)
        threshold_max = max(threshold_max, thr)
        ceiling_max = max(ceiling_max, cei[q])
        deficit = (thr - sig[q]) ** 2
        if not tone and sig[q] > thr:
            if trans and q - trans[-1].q <= char_space:
                acc = dip_acc
            else:
                acc = NO_ACC
            trans.append(Transition(q, True, acc, NO_ACC, cei[q], flo[q]))
            tone = True
            spike_acc = deficit
        elif tone and sig[q] < thr:
            trans.append(Transition(q, False, NO_ACC, spike_acc, cei[q], flo[q]))
            tone = False
            dip_acc = deficit
        elif tone:
            spike_acc += deficit
        else:
            dip_acc += deficit
    return trans, float(threshold_max), float(ceiling_max)


def compact(trans: List[Optional[Transition]]) -> List[Transition]:
    return [t for t in trans if t is not None]


def remove_dips(trans: List[Transition], limit: float, very_short: int) -> List[Transition]:
    """
    Drop every weak or very short silence between two tones. The spike
    accumulator of the removed fall is carried into the following fall.
    """
    work: List[Optional[Transition]] = list(trans)
    removed = 0
    for t in range(1, len(work)):
        tr = work[t]
        prev = work[t - 1]
        if tr is None or prev is None or not tr.rise or tr.dip_acc == NO_ACC:
            continue
        if tr.dip_acc < limit or tr.q - prev.q <= very_short:
            if t + 1 < len(work) and work[t + 1] is not None:
                nxt = work[t + 1]
                work[t + 1] = replace(nxt, spike_acc=nxt.spike_acc + prev.spike_acc)
            work[t - 1] = None
            work[t] = None
            removed += 1
    logger.debug("nof. dips removed: %d", removed)
    return compact(work)


def remove_spikes(trans: List[Transition], limit: float, very_short: int) -> List[Transition]:
    """Drop every weak or very short tone."""
    if not any(t.spike_acc > 0 for t in trans):
        return trans
    work: List[Optional[Transition]] = list(trans)
    removed = 0
    for t in range(1, len(work)):
        tr = work[t]
        prev = work[t - 1]
        if tr is None or prev is None or tr.rise or tr.spike_acc == NO_ACC:
            continue
        if tr.spike_acc < limit or tr.q - prev.q <= very_short:
            work[t - 1] = None
            work[t] = None
            removed += 1
    logger.debug("nof. spikes removed: %d", removed)
    return compact(work)


def split_long_dashes(trans: List[Transition], two_dash: int, half_gap: int,
                      cei: np.ndarray, flo: np.ndarray) -> List[Transition]:
    """Insert a fall and a rise in the middle of every tone longer than two dashes."""
    result: List[Transition] = []
    for t, tr in enumerate(trans):
        if not tr.rise and t > 0 and trans[t - 1].rise and tr.q - trans[t - 1].q > two_dash:
            start = trans[t - 1].q
            mid = start + (tr.q - start) // 2
            q1 = mid - half_gap
            q2 = mid + half_gap
            acc = tr.spike_acc / 2
            logger.debug("split long dash at slice: %d", mid)
            result.append(Transition(q1, False, NO_ACC, acc, cei[q1], flo[q1]))
            result.append(Transition(q2, True, NO_ACC, NO_ACC, cei[q2], flo[q2]))
            result.append(replace(tr, spike_acc=acc))
        else:
            result.append(tr)
    return result


def find_transitions(sig: np.ndarray, cei: np.ndarray, flo: np.ndarray, timebase: TimeBase,
                     level: float, k_threshold: float,
                     dip_limit: float = config.DEFAULT_DIP_SPIKE[0],
                     spike_limit: float = config.DEFAULT_DIP_SPIKE[1],
                     break_long_dash: bool = True,
                     char_space: Optional[int] = None) -> TransitionResult:
    """
    Produce the cleaned, alternating transition list.

    Raises:
        NoSignalError: no transitions at all
        NoCodeError: a single transition
    """
    if char_space is None:
        char_space = timebase.slices(config.CHAR_SPACE_LIMIT[config.DEFAULT_DECODER])
    trans, threshold_max, ceiling_max = detect(sig, cei, flo, level, k_threshold, char_space)
    logger.debug("nof. transitions: %d", len(trans))
    if len(trans) == 0:
        raise NoSignalError()
    if len(trans) == 1:
        raise NoCodeError()

    ts_length = timebase.ts_length
    silent_tu = (1.0 / ts_length) * (0.5 * threshold_max) ** 2
    very_short = int(round(config.VERY_SHORT_TU / ts_length))

    trans = remove_dips(trans, dip_limit * silent_tu, very_short)
    trans = remove_spikes(trans, spike_limit * silent_tu, very_short)

    if break_long_dash:
        half_gap = int(round(config.LONG_DASH_SPLIT_TU / ts_length))
        trans = split_long_dashes(trans, timebase.slices(config.TWO_DASH_LIMIT), half_gap, cei, flo)

    if len(trans) == 0:
        raise NoSignalError()
    if len(trans) == 1:
        raise NoCodeError()
    return TransitionResult(tuple(trans), threshold_max, ceiling_max, silent_tu)
