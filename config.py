"""
Global Configuration for the CW envelope decoder.
Centralizing all tuning constants so that detection, decoding, the
command line and the synthetic test generator agree on the same values.
"""

# Audio / DSP Parameters
SAMPLE_RATE = 8000          # Sample rate used by the synthetic generator (Hz)
INT16_MAX = 32767           # Upper bound of the clip level search
DEFAULT_FRANGE = (400, 1200)  # Frequency search range (Hz)
FREQ_STEP_COARSE = 10       # Coarse frequency sweep step (Hz)
FREQ_STEP_FINE = 1          # Fine frequency sweep step (Hz)
FREQ_FINE_STEPS = 18        # Fine sweep extends this many steps each side

# Clip level search
CLIP_STRENGTH = 0.05        # Fraction of correlated energy the clipping may remove
CLIP_PRECISION = 0.005      # Width of the acceptance band, relative

# Timing Parameters
DEFAULT_WPM = 15.0          # Tentative speed, defines the TU
DEFAULT_TS_LENGTH = 0.10    # Time slice length in TU
DEFAULT_SIGMA = 0.33        # Gaussian smoothing sigma in TU
GAUSS_EPS = 0.01            # Gaussian kernel is truncated below this weight
DEFAULT_LEVEL = 1.0         # Relative threshold adjustment
DEFAULT_DIP_SPIKE = (0.005, 0.005)  # Dip and spike removal strengths
VERY_SHORT_TU = 0.2         # Dips and spikes at most this long (TU) are always removed
LONG_DASH_SPLIT_TU = 0.5    # Half width of the gap inserted into an over-long dash

# Low-pass filter bank
DEFAULT_FILTER = "b"        # b: Butterworth, cI: Chebyshev I, w: window, t: slice sum, n: none
DEFAULT_FILTER_ORDER = 2
DEFAULT_FILTER_CUTOFF = 2.0  # Cutoff in units of 1/TU
CHEBYSHEV_RIPPLE_DB = 1.5
FILTER_CODES = ("b", "cI", "w", "t", "n")

# Histogram-based floor and ceiling
NOF_TU_FOR_HISTOGRAM = 30   # Half width of the histogram window (TU)
HIST_SIZE = 100             # Number of histogram bins
HIST_POINTS = 500           # Weight given to the centre slice
CEILING_FOCUS = 3.0         # Larger value narrows the ceiling proximity weight
FLOOR_FOCUS = 4.0           # Larger value narrows the floor proximity weight
CEILING_REMOVE_FRACTION = 0.70  # Low-end mass removed before averaging the ceiling
FLOOR_REMOVE_FRACTION = 0.50    # High-end mass removed before averaging the floor

# Adaptive detector
DETECTORS = ("basic", "adaptive")
DEFAULT_DETECTOR = "basic"
ADAPTIVE_COH_FACTOR = 10    # Coherence chunk length in slices
ADAPTIVE_SEG_FACTOR = 20    # Segment length in chunks
ADAPTIVE_STRENGTH_LIMIT = 0.35  # Weaker segments, relative to the strongest, get no frequency
ADAPTIVE_CLIP_LOSS = 0.01   # Acceptable loss of correlated signal when clipping a segment
ADAPTIVE_GRID_STEP = 0.25   # Coarse frequency grid step, in units of 1/chunk length
ADAPTIVE_FREQ_PREC = 0.2    # Frequency refinement tolerance (Hz)

# Character and word boundaries per decoder (TU)
WORD_SPACE_LIMIT = {        # words break <---------+---------> words stick
    "threshold": 5.3,
    "pattern": 5.3,
    "dips": 5.3,
    "least-squares": 5.3,
    "sliding-line": 5.3,
}
CHAR_SPACE_LIMIT = {        # chars break <---------+---------> chars cluster
    "threshold": 1.8,
    "pattern": 1.8,
    "dips": 1.8,
    "least-squares": 1.8,
    "sliding-line": 1.8,
}
DASH_LIMIT = {
    "threshold": 1.7,
    "pattern": 1.7,
    "dips": 1.7,
    "least-squares": 1.7,
    "sliding-line": 1.7,
}
TWO_DASH_LIMIT = 6.0
DEFAULT_SPACE_EXPANSION = 1.0

# Threshold calibration per decoder (K in flo + level*K*(cei - flo))
THRESHOLD = {
    "threshold": 0.524,
    "pattern": 0.524,
    "dips": 0.524,
    "least-squares": 0.524,
    "sliding-line": 0.55,
}
DEFAULT_DECODER = "threshold"

# Pattern matching
PATTERN_HI = 10
PATTERN_LO = -35
PATTERN_SIGMA = 0.7         # Width of the duration prior (TU)
UNMATCHED_TEXT = "???"

# Dips finding
DIP_SIGMA = 0.2             # Smoothing of the dip strength curve (TU)
DIP_EXPTABLE_LIM = 0.01     # Smoothing weights below this are dropped
DIP_MERGE_LIM = 0.5         # Dips closer than this (TU) are merged
DIP_STRENGTH_MIN = 0.5      # Weaker dips are ignored
DIP_DASHMIN = 6.0           # Beep extent (half TUs) above which a lone beep is a dash
DIP_TWODASHMIN = 13.0       # Beep extent (half TUs) above which a beep is split in two
DIP_DASHQUOTIENT = 0.7      # Extent relative to the longest beep above which it is a dash

# Least squares
LSQ_DOT_TU = 0.50
LSQ_DOT_SMALL_TU = 0.40
LSQ_DASH_TU = 1.5
LSQ_DASH_STRENGTH = 0.6
LSQ_DOT_STRENGTH = 0.55
LSQ_MIDDLE_DIP = 0.85
LSQ_QUAD_DIP = 0.75
LSQ_FAT_DOT = 1.3

# Sliding line
SLIDING_THIN_TU = 0.15
SLIDING_THIN_MASS = 0.04

# Output formatting
LINE_LENGTH = 72
CASE_MODES = ("L", "U", "C")

# Evaluation Parameters
EVAL_SNR_MIN = -6
EVAL_SNR_MAX = 20
EVAL_SNR_STEP = 2
EVAL_TEXTS = [
    "cq cq de sm5xyz k",
    "ur rst 599 599",
    "name bob qth stockholm",
    "tnx fer qso 73",
    "pse qrs",
]
