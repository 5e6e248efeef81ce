"""
Toy repetition code: every bit is sent ``factor`` times and recovered by majority vote.
"""

import numpy as np


def repetition_encode(bits, factor: int) -> np.ndarray:
    """Repeat each bit ``factor`` consecutive times."""
    bits = np.asarray(bits, dtype=np.uint8).reshape(-1)
    if factor == 1:
        return bits.copy()
    return np.repeat(bits, factor)


def repetition_decode(coded, factor: int) -> np.ndarray:
    """Majority-vote decode; a trailing incomplete group is decoded from the copies present."""
    coded = np.asarray(coded, dtype=np.uint8).reshape(-1)
    if factor == 1:
        return coded.copy()

    full = len(coded) // factor
    decoded = (coded[: full * factor].reshape(full, factor).sum(axis=1) * 2 > factor).astype(
        np.uint8
    )

    tail = coded[full * factor :]
    if len(tail):
        decoded = np.append(decoded, np.uint8(tail.sum() * 2 > len(tail)))
    return decoded
