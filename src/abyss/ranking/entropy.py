"""Shannon entropy of file content as an information-density signal.

Dense, hand-written code spreads its bytes over many symbols; generated or
repetitive boilerplate concentrates them.
"""

from __future__ import annotations

import math
from collections import Counter

# log2(256): the entropy of uniformly random bytes
MAX_BYTE_ENTROPY = 8.0


def shannon_entropy(data: bytes) -> float:
    """Entropy of the byte distribution in bits per byte (0 to 8)."""
    if not data:
        return 0.0
    total = len(data)
    entropy = 0.0
    for count in Counter(data).values():
        p = count / total
        entropy -= p * math.log2(p)
    return entropy


def normalized_entropy(data: bytes) -> float:
    """Entropy scaled into [0, 1]."""
    return min(1.0, max(0.0, shannon_entropy(data) / MAX_BYTE_ENTROPY))
