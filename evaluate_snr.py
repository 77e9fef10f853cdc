import argparse
import logging
import os
from typing import Dict, List

import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt
import numpy as np
from tqdm import tqdm

import config
from data_gen import generate_sample
from errors import CwDecoderError
from metrics import calculate_cer
from options import DecoderOptions
from pipeline import decode_samples

logger = logging.getLogger(__name__)


def evaluate_point(decoder: str, snr_db: float, wpm: float, texts: List[str], samples: int,
                   seed: int = 0) -> float:
    """Average CER of one decoder at one SNR over texts x samples recordings."""
    options = DecoderOptions(wpm=wpm, decoder=decoder)
    cers = []
    for i, text in enumerate(texts):
        for s in range(samples):
            recording, frame_rate = generate_sample(text, wpm=wpm, snr_db=snr_db,
                                                    seed=seed + 1000 * i + s)
            try:
                decoded = decode_samples(recording, frame_rate, options).text
            except CwDecoderError as e:
                logger.debug("%s at %.1f dB: %s", decoder, snr_db, e)
                decoded = ""
            cer = calculate_cer(text, decoded)
            cers.append(cer)
            if len(cers) <= 2:
                logger.info("SNR:%5.1fdB | Ref:%-25s | Hyp:%-25s | CER:%.4f", snr_db, text, decoded, cer)
    return float(np.mean(cers))


def main():
    parser = argparse.ArgumentParser(description="Character error rate versus SNR for each decoder")
    parser.add_argument("--decoders", type=str, default=",".join(config.THRESHOLD),
                        help="Comma-separated decoder names")
    parser.add_argument("--wpm", type=float, default=20)
    parser.add_argument("--samples", type=int, default=2, help="Recordings per text and SNR point")
    parser.add_argument("--output", type=str, default="snr_performance.png")
    parser.add_argument("-v", dest="verbose", action="store_true")
    args = parser.parse_args()
    logging.basicConfig(level=logging.INFO if args.verbose else logging.WARNING)

    decoders = [d.strip() for d in args.decoders.split(",")]
    snrs = np.arange(config.EVAL_SNR_MIN, config.EVAL_SNR_MAX + 1, config.EVAL_SNR_STEP)
    results: Dict[str, List[float]] = {d: [] for d in decoders}

    for snr in tqdm(snrs):
        for decoder in decoders:
            results[decoder].append(
                evaluate_point(decoder, float(snr), args.wpm, config.EVAL_TEXTS, args.samples))

    for decoder in decoders:
        print(f"{decoder:>14s}: " + " ".join(f"{c:.3f}" for c in results[decoder]))

    plt.figure(figsize=(10, 6))
    for decoder in decoders:
        plt.plot(snrs, results[decoder], marker='o', label=decoder)
    plt.axhline(y=0.1, color='red', linestyle='--', alpha=0.5, label='CER 10% (Usable)')
    plt.axhline(y=0.05, color='green', linestyle='--', alpha=0.5, label='CER 5% (Near Perfect)')
    plt.grid(True, which='both', linestyle='--', alpha=0.5)
    plt.xlabel("SNR (dB)")
    plt.ylabel("Character Error Rate (CER)")
    plt.title(f"Decoder Robustness: SNR vs CER at {args.wpm:g} WPM")
    plt.legend()
    plt.ylim(-0.05, 1.05)
    out_dir = os.path.dirname(args.output)
    if out_dir:
        os.makedirs(out_dir, exist_ok=True)
    plt.savefig(args.output)
    plt.close()
    print(f"Plot saved to {args.output}")


if __name__ == "__main__":
    main()
