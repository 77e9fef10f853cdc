"""Decoder strategies, selected by `DecoderKind`."""

from enum import Enum

from decoders.base import DecodedChar, DecodeOutcome, DecoderBase
from decoders.dips_finding import DipsFindingDecoder
from decoders.least_squares import LeastSquaresDecoder
from decoders.pattern_match import PatternMatchDecoder
from decoders.sliding_line import SlidingLineDecoder
from decoders.threshold import ThresholdDecoder
from errors import ConfigurationError


class DecoderKind(Enum):
    THRESHOLD = "threshold"
    PATTERN = "pattern"
    DIPS = "dips"
    LEAST_SQUARES = "least-squares"
    SLIDING_LINE = "sliding-line"

    @classmethod
    def parse(cls, name: str) -> "DecoderKind":
        try:
            return cls(name)
        except ValueError:
            choices = ", ".join(k.value for k in cls)
            raise ConfigurationError(f"no such decoder: '{name}', choose from {choices}") from None


DECODERS = {
    DecoderKind.THRESHOLD: ThresholdDecoder,
    DecoderKind.PATTERN: PatternMatchDecoder,
    DecoderKind.DIPS: DipsFindingDecoder,
    DecoderKind.LEAST_SQUARES: LeastSquaresDecoder,
    DecoderKind.SLIDING_LINE: SlidingLineDecoder,
}


def create_decoder(kind, sig, cei, flo, timebase, tree, options, plot_collector=None) -> DecoderBase:
    if not isinstance(kind, DecoderKind):
        kind = DecoderKind.parse(kind)
    return DECODERS[kind](sig, cei, flo, timebase, tree, options, plot_collector)


__all__ = [
    "DecodedChar",
    "DecodeOutcome",
    "DecoderBase",
    "DecoderKind",
    "create_decoder",
]
