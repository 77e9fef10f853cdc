"""
Least-squares decoder.

Dashes and dots are located independently by fitting straight lines to
the envelope over windows the size of a dash and of a dot; a maximum of
the fitted level shows up as a sign change of the fitted slope. Dash
candidates must also look flat when cut into three and four segments.
Detections that contradict each other are then resolved.
"""

import logging
from typing import Dict, List, Optional

import numpy as np

import config
from decoders.base import DecodeOutcome, DecoderBase
from decoders.tones import Dash, Dot, LineFit, Tone, find_drop, find_rise, lsq, segment_mean

logger = logging.getLogger(__name__)

NO_SLOPE = LineFit(0.0, float("inf"))


def rel_strength(x: float, ceiling: float, floor: float) -> float:
    if ceiling <= floor:
        return 0.0
    return (x - floor) / (ceiling - floor)


def _nearest_below(keys: List[int], key: int) -> Optional[int]:
    lower = [k for k in keys if k < key]
    return lower[-1] if lower else None


def _nearest_above(keys: List[int], key: int) -> Optional[int]:
    for k in keys:
        if k > key:
            return k
    return None


def _floor_key(keys: List[int], key: int) -> Optional[int]:
    lower = [k for k in keys if k <= key]
    return lower[-1] if lower else None


class LeastSquaresDecoder(DecoderBase):
    name = "least-squares"

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        ts = self.timebase.ts_length
        self.j_dot = int(round(config.LSQ_DOT_TU / ts))
        self.j_dot_small = int(round(config.LSQ_DOT_SMALL_TU / ts))
        self.j_dash = int(round(config.LSQ_DASH_TU / ts))

    def segments_ok(self, rise: int, drop: int) -> bool:
        """
        A dash should not sag in the middle. Cut it in three and in four
        segments and compare the inner segment levels with the outer ones.
        """
        sig = self.sig
        length = drop - rise
        i2 = rise + length // 3
        i3 = i2 + length // 3 + length % 3
        aa = segment_mean(sig, rise, i2)
        bb = segment_mean(sig, i2, i3)
        cc = segment_mean(sig, i3, drop)
        if not bb > config.LSQ_MIDDLE_DIP * (aa + cc) / 2:
            logger.debug("dropping dash after 3-segment analysis, slice: %d", rise)
            return False

        mm = length % 4
        j2 = rise + length // 4
        j3 = j2 + length // 4 + (mm + 1) // 2
        j4 = j3 + length // 4 + mm // 2
        xa = segment_mean(sig, rise, j2)
        xb = segment_mean(sig, j2, j3)
        xc = segment_mean(sig, j3, j4)
        xd = segment_mean(sig, j4, drop)
        quad = config.LSQ_QUAD_DIP
        if xc > quad * (xa + xb + xd) / 3 and xb > quad * (xa + xc + xd) / 3:
            return True
        logger.debug("dropping dash after 4-segment analysis, slice: %d", rise)
        return False

    def find_dashes(self) -> Dict[int, Dash]:
        sig, cei, flo = self.sig, self.cei, self.flo
        j_dot, j_dash = self.j_dot, self.j_dash
        limit = self.options.level * config.LSQ_DASH_STRENGTH
        dashes: Dict[int, Dash] = {}
        prev_fit = NO_SLOPE
        prev_dash: Optional[Dash] = None
        for k in range(j_dash + 2 * j_dot, len(sig) - j_dash - 2 * j_dot):
            if prev_dash is not None and k < prev_dash.drop + 2 * j_dot:
                continue
            r = lsq(sig, k, j_dash)
            if r is None:
                continue
            if prev_fit.b >= 0.0 and r.b < 0.0:
                if prev_fit.b > -r.b:
                    k_best, a = k, r.a
                else:
                    k_best, a = k - 1, prev_fit.a
                strength = rel_strength(a, cei[k_best], flo[k_best])
                if strength > limit:
                    rise = find_rise(sig, k_best, j_dash, j_dot)
                    drop = find_drop(sig, k_best, j_dash, j_dot)
                    if rise < drop and self.segments_ok(rise, drop):
                        dash = Dash((rise + drop) // 2, rise, drop, strength, ceiling=a)
                        dashes[dash.k] = dash
                        prev_dash = dash
            prev_fit = r

        # of two overlapping dashes keep the stronger one
        removals = set()
        pre: Optional[Dash] = None
        for key in sorted(dashes):
            dd = dashes[key]
            if pre is not None and pre.drop >= dd.rise:
                if segment_mean(sig, pre.rise, pre.drop) < segment_mean(sig, dd.rise, dd.drop):
                    removals.add(pre.k)
                else:
                    removals.add(key)
            pre = dd
        for key in removals:
            logger.debug("overlapping dash removed at slice: %d", key)
            del dashes[key]
        return dashes

    def find_dots(self) -> Dict[int, Dot]:
        sig, cei, flo = self.sig, self.cei, self.flo
        j_dot, j_small = self.j_dot, self.j_dot_small
        skip = int(round(0.6 * self.j_dash))
        j_fat = int(round(config.LSQ_FAT_DOT * j_dot))
        limit = self.options.level * config.LSQ_DOT_STRENGTH
        dots: Dict[int, Dot] = {}
        prev_fit = NO_SLOPE
        previous: Optional[Dot] = None
        for k in range(3 * j_small, len(sig) - 3 * j_small):
            if previous is not None and k < previous.drop + skip:
                continue
            r = lsq(sig, k, j_small)
            if r is None:
                continue
            if prev_fit.b >= 0.0 and r.b < 0.0:
                if prev_fit.b > -r.b:
                    k_best, a = k, r.a
                else:
                    k_best, a = k - 1, prev_fit.a
                strength = rel_strength(a, cei[k_best], flo[k_best])
                if strength > limit:
                    for width in (j_dot, j_fat):
                        u1 = lsq(sig, k_best - width, j_dot)
                        u2 = lsq(sig, k_best + width, j_dot)
                        if u1 is not None and u2 is not None and u1.b > 0 and u2.b < 0:
                            dot = Dot(k_best, k_best - width, k_best + width, strength)
                            dots[k_best] = dot
                            previous = dot
                            break
            prev_fit = r
        return dots

    def below_threshold(self, q: int) -> bool:
        return self.sig[q] < self.threshold(q)

    def resolve_brackets(self, dashes: Dict[int, Dash], dots: Dict[int, Dot]):
        """
        A dash whose centre is a dip bracketed by two nearby dots is really
        two dots; a dot whose centre is a dip squeezed between two nearby
        dashes is noise.
        """
        j_dot = self.j_dot
        tolerance = 2 * j_dot + j_dot // 2
        dot_keys = sorted(dots)
        for key in sorted(dashes):
            k1 = _nearest_below(dot_keys, key)
            k2 = _nearest_above(dot_keys, key)
            if (k1 is not None and k2 is not None and key - k1 <= tolerance
                    and k2 - key <= tolerance and self.below_threshold(key)):
                logger.debug("dash bracketed by dots removed at slice: %d", key)
                del dashes[key]

        dash_keys = sorted(dashes)
        for key in dot_keys:
            k1 = _nearest_below(dash_keys, key)
            k2 = _nearest_above(dash_keys, key)
            if (k1 is not None and k2 is not None and dashes[k1].drop >= key - j_dot
                    and dashes[k2].rise <= key + j_dot and self.below_threshold(key)):
                logger.debug("dot squeezed between dashes removed at slice: %d", key)
                del dots[key]

    def remove_covered_dots(self, dashes: Dict[int, Dash], dots: Dict[int, Dot]):
        dash_keys = sorted(dashes)
        for key in sorted(dots):
            dot = dots[key]
            k1 = _floor_key(dash_keys, key)
            k2 = _nearest_above(dash_keys, key)
            if ((k1 is not None and dashes[k1].drop >= dot.rise)
                    or (k2 is not None and dot.drop >= dashes[k2].rise)):
                del dots[key]

    def merge_clusters(self, tones: Dict[int, Tone]) -> Dict[int, Tone]:
        """Replace runs of same-kind tones closer than a dot width by one tone."""
        clusters: List[List[Tone]] = []
        for key in sorted(tones):
            if clusters and key - clusters[-1][0].k < self.j_dot:
                clusters[-1].append(tones[key])
            else:
                clusters.append([tones[key]])

        merged: Dict[int, Tone] = {}
        for members in clusters:
            if len(members) == 1:
                tone = members[0]
            elif isinstance(members[0], Dot):
                k = int(round(np.mean([m.k for m in members])))
                tone = Dot(k, k - self.j_dot, k + self.j_dot, max(m.strength for m in members))
            else:
                rise = min(m.rise for m in members)
                drop = max(m.drop for m in members)
                tone = Dash((rise + drop) // 2, rise, drop, max(m.strength for m in members),
                            ceiling=float(np.mean([m.ceiling for m in members])))
            merged[tone.k] = tone
        return merged

    def execute(self) -> DecodeOutcome:
        dashes = self.merge_clusters(self.find_dashes())
        dots = self.merge_clusters(self.find_dots())
        self.resolve_brackets(dashes, dots)
        self.remove_covered_dots(dashes, dots)
        logger.debug("nof. dashes: %d, nof. dots: %d", len(dashes), len(dots))

        tones = sorted(list(dashes.values()) + list(dots.values()), key=lambda t: t.k)
        return self.decode_tones(tones)
