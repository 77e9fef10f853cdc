import argparse
import logging
import os
import sys
from typing import List, Optional

import config
from audio_io import load_wav
from errors import CwDecoderError
from formatter import Formatter
from options import DecoderOptions, parse_multi
from pipeline import decode_samples
from plotting import PlotCollector, plot_frequency, plot_phase, plot_signal

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Decode Morse code (CW) from a WAV file")
    parser.add_argument("wav", type=str, help="Path to .wav file")
    parser.add_argument("-w", dest="wpm", type=float, default=config.DEFAULT_WPM, help="Tentative speed (WPM)")
    parser.add_argument("-F", dest="frange", type=str,
                        default=f"{config.DEFAULT_FRANGE[0]},{config.DEFAULT_FRANGE[1]}",
                        help="Frequency search range LOW,HIGH (Hz)")
    parser.add_argument("-f", dest="freq", type=int, default=None, help="Tone frequency (Hz), skips the search")
    parser.add_argument("-c", dest="clip", type=int, default=None, help="Clip level, skips the search")
    parser.add_argument("-u", dest="level", type=float, default=config.DEFAULT_LEVEL, help="Threshold adjustment")
    parser.add_argument("-o", dest="offset", type=int, default=0, help="Offset (s)")
    parser.add_argument("-l", dest="length", type=int, default=None, help="Length (s)")
    parser.add_argument("-q", dest="ts_length", type=float, default=config.DEFAULT_TS_LENGTH,
                        help="Time slice length (TU)")
    parser.add_argument("-y", dest="sigma", type=float, default=config.DEFAULT_SIGMA,
                        help="Gaussian smoothing sigma (TU)")
    parser.add_argument("-D", dest="dip_spike", type=str,
                        default=f"{config.DEFAULT_DIP_SPIKE[0]},{config.DEFAULT_DIP_SPIKE[1]}",
                        help="Dip and spike removal strengths DIP,SPIKE")
    parser.add_argument("-d", dest="decoder", type=str, default=config.DEFAULT_DECODER,
                        help=f"Decoder: {', '.join(config.THRESHOLD)}")
    parser.add_argument("-A", dest="adaptive", action="store_true",
                        help="Adaptive detector: frequency and clip level per segment, follows a drifting tone")
    parser.add_argument("-H", dest="filter", type=str,
                        default=f"{config.DEFAULT_FILTER},{config.DEFAULT_FILTER_ORDER},{config.DEFAULT_FILTER_CUTOFF}",
                        help="Low-pass filter FILTER,ORDER,CUTOFF (filter: b, cI, w, t or n)")
    parser.add_argument("-t", dest="timestamps", action="store_true", help="Emit timestamps")
    parser.add_argument("-T", dest="text_format", type=str, default=f"L,{config.LINE_LENGTH}",
                        help="Text format CASE[,LINELEN], CASE is L, U or C")
    parser.add_argument("-S", dest="freq_plot", action="store_true", help="Plot the frequency search")
    parser.add_argument("-P", dest="signal_plot", action="store_true", help="Plot the signal")
    parser.add_argument("-Q", dest="phase_plot", action="store_true", help="Plot the phase angle")
    parser.add_argument("-Z", dest="plot_interval", type=str, default=None, help="Plot interval START,LENGTH (s)")
    parser.add_argument("--plot-dir", type=str, default=".", help="Directory for plot files")
    parser.add_argument("--digest", action="store_true", help="Print the MD5 digest of the text")
    parser.add_argument("-v", dest="verbose", action="count", default=0, help="Verbosity, may be repeated")
    return parser


def options_from_args(args) -> DecoderOptions:
    frange = parse_multi(args.frange, 2, int, "-F")
    dip, spike = parse_multi(args.dip_spike, 2, float, "-D")
    filter_code, order_text, cutoff_text = parse_multi(args.filter, 3, str, "-H")
    filter_order = parse_multi(order_text, 1, int, "-H")[0]
    filter_cutoff = parse_multi(cutoff_text, 1, float, "-H")[0]

    plot_interval = None
    if args.plot_interval is not None:
        start, length = parse_multi(args.plot_interval, 2, float, "-Z")
        plot_interval = (start, start + length)

    return DecoderOptions(
        wpm=args.wpm,
        frange=(frange[0], frange[1]),
        freq=args.freq,
        clip_level=args.clip,
        level=args.level,
        ts_length=args.ts_length,
        sigma=args.sigma,
        decoder=args.decoder,
        detector="adaptive" if args.adaptive else config.DEFAULT_DETECTOR,
        dip_limit=dip,
        spike_limit=spike,
        filter_code=filter_code,
        filter_order=filter_order,
        filter_cutoff=filter_cutoff,
        timestamps=args.timestamps,
        offset=args.offset,
        phase_data=args.phase_plot,
        plot_interval=plot_interval,
    ).validate()


def run(args) -> int:
    options = options_from_args(args)
    formatter = Formatter.from_option(args.text_format)
    frame_rate, samples = load_wav(args.wav, args.offset, args.length)

    collector = None
    if args.signal_plot:
        begin, end = options.plot_interval or (args.offset, args.offset + len(samples) / frame_rate)
        collector = PlotCollector(begin, end)

    result = decode_samples(samples, frame_rate, options, plot_collector=collector)

    for ch in result.chars:
        formatter.add(ch.word_break, ch.text, ch.timestamp)
    formatter.flush()
    if args.digest:
        print(formatter.digest())

    if args.freq_plot:
        if result.frequency_pairs:
            plot_frequency(result.frequency_pairs, os.path.join(args.plot_dir, "frequency.png"))
        else:
            logger.warning("no frequency search was made, no frequency plot")
    if collector is not None:
        plot_signal(collector, os.path.join(args.plot_dir, "signal.png"))
    if args.phase_plot and result.phase is not None:
        tb = result.timebase
        points = [(tb.seconds(q), p) for q, p in enumerate(result.phase)]
        if options.plot_interval is not None:
            begin, end = options.plot_interval
            points = [pt for pt in points if begin <= pt[0] <= end]
        plot_phase(points, os.path.join(args.plot_dir, "phase.png"))
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    level = logging.WARNING if args.verbose == 0 else logging.INFO if args.verbose == 1 else logging.DEBUG
    logging.basicConfig(level=level, format="%(levelname)s: %(name)s: %(message)s")

    if not os.path.exists(args.wav):
        print(f"Error: WAV file {args.wav} not found.", file=sys.stderr)
        return 1
    try:
        return run(args)
    except CwDecoderError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
