"""
Forward and inverse discrete Fourier transforms over complex sample vectors.

Power-of-two lengths use a recursive radix-2 FFT; every other length falls back
to an exact direct DFT so the engine accepts any vector length.
"""

import logging

import numpy as np

logger = logging.getLogger(__name__)


def is_power_of_two(n: int) -> bool:
    """True for 1, 2, 4, 8, ..."""
    return n > 0 and (n & (n - 1)) == 0


def _radix2_fft(samples: np.ndarray) -> np.ndarray:
    n = len(samples)
    if n == 1:
        return samples.copy()

    even = _radix2_fft(samples[0::2])
    odd = _radix2_fft(samples[1::2])
    twiddled = np.exp(-2j * np.pi * np.arange(n // 2) / n) * odd

    return np.concatenate([even + twiddled, even - twiddled])


def _direct_dft(samples: np.ndarray) -> np.ndarray:
    n = len(samples)
    k = np.arange(n)
    kernel = np.exp(-2j * np.pi * np.outer(k, k) / n)
    return kernel @ samples


def forward_transform(samples) -> np.ndarray:
    """Forward transform ``X[k] = sum_n x[n] e^{-2 pi i k n / N}``.

    Args:
        samples: 1-D sequence of complex samples

    Returns:
        Complex128 array of the same length. Vectors of length 0 or 1 are
        returned unchanged.
    """
    x = np.asarray(samples, dtype=np.complex128).reshape(-1)
    if len(x) <= 1:
        return x.copy()

    if is_power_of_two(len(x)):
        return _radix2_fft(x)

    logger.debug(f"Length {len(x)} is not a power of two, using direct DFT")
    return _direct_dft(x)


def inverse_transform(samples) -> np.ndarray:
    """Inverse transform via conjugate, forward transform, conjugate, scale by 1/N."""
    x = np.asarray(samples, dtype=np.complex128).reshape(-1)
    if len(x) <= 1:
        return x.copy()

    return np.conj(forward_transform(np.conj(x))) / len(x)


def forward_transform_rows(grid: np.ndarray) -> np.ndarray:
    """Apply :func:`forward_transform` to every row of a 2-D array."""
    grid = np.atleast_2d(np.asarray(grid, dtype=np.complex128))
    return np.vstack([forward_transform(row) for row in grid]) if len(grid) else grid.copy()


def inverse_transform_rows(grid: np.ndarray) -> np.ndarray:
    """Apply :func:`inverse_transform` to every row of a 2-D array."""
    grid = np.atleast_2d(np.asarray(grid, dtype=np.complex128))
    return np.vstack([inverse_transform(row) for row in grid]) if len(grid) else grid.copy()
