"""
Character error rate of decoded text against a reference, with
bracketed prosigns and placeholders counted as single characters.
"""

import re
from typing import List

# <AS>, <SK>, ... and placeholders such as [.-.-.]
TOKEN_RE = re.compile(r"<[A-Za-z]+>|\[[.\-]+\]|\?\?\?|.", re.DOTALL)


def tokenize(text: str) -> List[str]:
    """Split text into single characters, keeping multi-character tokens whole."""
    return TOKEN_RE.findall(text)


def edit_distance(a: List[str], b: List[str]) -> int:
    """Token edit distance, keeping only one row of the table."""
    prev = list(range(len(b) + 1))
    for i, x in enumerate(a, 1):
        row = [i]
        for j, y in enumerate(b, 1):
            row.append(min(prev[j] + 1, row[j - 1] + 1, prev[j - 1] + (x != y)))
        prev = row
    return prev[-1]


def calculate_cer(ref: str, hyp: str) -> float:
    """Character Error Rate, ignoring case and spaces."""
    ref_tokens = tokenize(ref.lower().replace(" ", ""))
    hyp_tokens = tokenize(hyp.lower().replace(" ", ""))
    if not ref_tokens:
        return 1.0 if hyp_tokens else 0.0
    return edit_distance(ref_tokens, hyp_tokens) / len(ref_tokens)
