"""
CW Data Generator module.
Synthesizes Morse code recordings with keying artifacts and HF channel
simulation (noise, fading, receiver filter) for tests and evaluation.
"""

import argparse
import logging
from typing import Dict, List, Optional, Tuple

import numpy as np
import scipy.signal

import config
from audio_io import write_wav
from morse_tree import build_standard_morse_tree

logger = logging.getLogger(__name__)

# Timing classes
DIT = 1
DAH = 2
INTRA_SPACE = 3
CHAR_SPACE = 4
WORD_SPACE = 5


class MorseGenerator:
    def __init__(self, sample_rate: int = config.SAMPLE_RATE, rng: np.random.Generator = None):
        self.sample_rate = sample_rate
        self.rng = rng if rng is not None else np.random.default_rng()
        self.codes: Dict[str, str] = build_standard_morse_tree().codes()

    def text_to_tokens(self, word: str) -> List[str]:
        """Split a word into characters, keeping <XX> prosigns whole."""
        word = word.lower()
        tokens = []
        i = 0
        while i < len(word):
            if word[i] == '<':
                end = word.find('>', i)
                if end != -1:
                    token = word[i:end + 1].upper()
                    if token in self.codes:
                        tokens.append(token)
                        i = end + 1
                        continue
            # "ch" has its own code but is sent as c h here
            if word[i] in self.codes:
                tokens.append(word[i])
            else:
                logger.warning("no code for character %r, skipped", word[i])
            i += 1
        return tokens

    def text_to_morse(self, text: str) -> str:
        return " ".join(self.codes[t] for t in self.text_to_tokens(text.replace(" ", "")))

    def generate_timing(self, text: str, wpm: float = 20, farnsworth_wpm: float = None,
                        jitter: float = 0.0, weight: float = 1.0) -> List[Tuple[int, float]]:
        """
        Generate timing sequence (class_id, duration_sec) for the given text.
        Classes: 1: Dit, 2: Dah, 3: Intra-char space, 4: Inter-char space, 5: Inter-word space
        """
        if farnsworth_wpm is None:
            farnsworth_wpm = wpm

        dot_len = 1.2 / wpm
        char_space_len = 3 * 1.2 / farnsworth_wpm
        word_space_len = 7 * 1.2 / farnsworth_wpm

        timing = []
        words = [w for w in text.split(' ') if w]
        for i, word in enumerate(words):
            tokens = self.text_to_tokens(word)
            for j, token in enumerate(tokens):
                code = self.codes[token]
                for k, symbol in enumerate(code):
                    if symbol == '.':
                        timing.append((DIT, dot_len * weight))
                    else:
                        timing.append((DAH, dot_len * 3 * weight))
                    if jitter > 0:
                        cls, duration = timing[-1]
                        timing[-1] = (cls, duration * (1 + self.rng.uniform(-jitter, jitter)))
                    if k < len(code) - 1:
                        timing.append((INTRA_SPACE, dot_len))
                if j < len(tokens) - 1:
                    timing.append((CHAR_SPACE, char_space_len))
            if i < len(words) - 1:
                timing.append((WORD_SPACE, word_space_len))
        return timing

    def generate_waveform(self, timing: List[Tuple[int, float]], frequency: float = 700.0,
                          rise_time: float = 0.005, lead: float = 1.0, tail: float = 1.0,
                          drift: float = 0.0) -> np.ndarray:
        """
        Convert a timing sequence to a unit amplitude float waveform with
        raised-cosine keying edges. A nonzero drift (Hz per second) sweeps
        the tone linearly from `frequency` at the start of the recording.
        """
        total_duration = lead + sum(t[1] for t in timing) + tail
        waveform = np.zeros(int(round(total_duration * self.sample_rate)))

        t_pos = lead
        for class_id, duration in timing:
            start = int(round(t_pos * self.sample_rate))
            t_pos += duration
            if class_id not in (DIT, DAH):
                continue
            end = int(round(t_pos * self.sample_rate))
            num_samples = end - start
            t = np.arange(start, end) / self.sample_rate
            sig = np.sin(2 * np.pi * (frequency * t + 0.5 * drift * t * t))

            # Apply envelope (rise/fall) to avoid clicks
            envelope = np.ones(num_samples)
            n_rise = min(int(rise_time * self.sample_rate), num_samples // 2)
            if n_rise > 0:
                rise = 0.5 * (1 - np.cos(np.pi * np.arange(n_rise) / n_rise))
                envelope[:n_rise] = rise
                envelope[-n_rise:] = rise[::-1]
            waveform[start:end] = sig * envelope
        return waveform


class HFChannelSimulator:
    def __init__(self, sample_rate: int = config.SAMPLE_RATE, rng: np.random.Generator = None):
        self.sample_rate = sample_rate
        self.rng = rng if rng is not None else np.random.default_rng()

    def apply_fading(self, waveform: np.ndarray, speed_hz: float = 0.1, min_fading: float = 0.05) -> np.ndarray:
        """Apply Rayleigh-like fading using filtered Gaussian noise."""
        if speed_hz <= 0:
            return waveform
        n_samples = len(waveform)
        # Low-pass filter to simulate fading speed (Doppler spread)
        nyquist = 0.5 * self.sample_rate
        b, a = scipy.signal.butter(2, speed_hz / nyquist, btype='low')
        r_real = scipy.signal.lfilter(b, a, self.rng.standard_normal(n_samples))
        r_imag = scipy.signal.lfilter(b, a, self.rng.standard_normal(n_samples))

        fading = np.sqrt(r_real ** 2 + r_imag ** 2)
        fading /= (np.mean(fading) + 1e-12)
        fading = np.clip(fading, min_fading, 2.0)
        return waveform * fading

    def apply_noise(self, waveform: np.ndarray, snr_db: float = 10.0, impulse_prob: float = 0.0) -> np.ndarray:
        """Apply AWGN and impulse noise."""
        # SNR is relative to the power of a unit sine during the mark state
        mark_power = 0.5
        noise_power = mark_power / (10 ** (snr_db / 10))
        noise = self.rng.normal(0, np.sqrt(noise_power), len(waveform))

        impulses = np.zeros(len(waveform))
        if impulse_prob > 0:
            n_impulses = int(len(waveform) * impulse_prob)
            indices = self.rng.integers(0, len(waveform), n_impulses)
            impulses[indices] = self.rng.uniform(-1, 1, n_impulses)
        return waveform + noise + impulses

    def apply_filter(self, waveform: np.ndarray, center_freq: float = 700.0, bandwidth: float = 500.0) -> np.ndarray:
        """Apply Bandpass filter (Receiver characteristic)."""
        nyquist = 0.5 * self.sample_rate
        low = (center_freq - bandwidth / 2) / nyquist
        high = (center_freq + bandwidth / 2) / nyquist
        b, a = scipy.signal.butter(4, [max(0.01, low), min(0.99, high)], btype='band')
        return scipy.signal.lfilter(b, a, waveform)


def generate_sample(text: str, wpm: float = 20, snr_db: Optional[float] = None,
                    sample_rate: int = config.SAMPLE_RATE, frequency: float = 700.0,
                    amplitude: float = 8000.0, jitter: float = 0.0, weight: float = 1.0,
                    fading_speed: float = 0.0, min_fading: float = 0.05,
                    farnsworth_wpm: float = None, drift: float = 0.0,
                    seed: int = 0) -> Tuple[np.ndarray, int]:
    """
    Synthesize one int16 recording of `text`. The same seed always gives
    the same samples. snr_db None means a clean signal with no channel
    effects at all.

    Returns:
        (samples, sample_rate)
    """
    rng = np.random.default_rng(seed)
    gen = MorseGenerator(sample_rate=sample_rate, rng=rng)
    sim = HFChannelSimulator(sample_rate=sample_rate, rng=rng)

    timing = gen.generate_timing(text, wpm=wpm, farnsworth_wpm=farnsworth_wpm, jitter=jitter, weight=weight)
    waveform = gen.generate_waveform(timing, frequency=frequency, drift=drift)

    if snr_db is not None:
        waveform = sim.apply_fading(waveform, speed_hz=fading_speed, min_fading=min_fading)
        waveform = sim.apply_noise(waveform, snr_db=snr_db)
        waveform = sim.apply_filter(waveform, center_freq=frequency)

    samples = np.clip(np.round(waveform * amplitude), -32768, 32767).astype(np.int16)
    return samples, sample_rate


def main():
    parser = argparse.ArgumentParser(description="Write a synthetic CW recording to a WAV file")
    parser.add_argument("text", type=str, help="Text to send")
    parser.add_argument("-o", "--output", type=str, default="sample_cw.wav")
    parser.add_argument("--wpm", type=float, default=20)
    parser.add_argument("--snr", type=float, default=None, help="SNR in dB, omit for a clean signal")
    parser.add_argument("--freq", type=float, default=700.0)
    parser.add_argument("--jitter", type=float, default=0.0)
    parser.add_argument("--fading", type=float, default=0.0, help="Fading speed (Hz)")
    parser.add_argument("--drift", type=float, default=0.0, help="Frequency drift (Hz/s)")
    parser.add_argument("--seed", type=int, default=0)
    args = parser.parse_args()

    print(f"Generating sample: {args.text}")
    samples, sample_rate = generate_sample(args.text, wpm=args.wpm, snr_db=args.snr, frequency=args.freq,
                                           jitter=args.jitter, fading_speed=args.fading, drift=args.drift,
                                           seed=args.seed)
    write_wav(args.output, sample_rate, samples)
    print(f"Saved to {args.output}")


if __name__ == "__main__":
    main()
