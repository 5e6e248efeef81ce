"""
Bit-to-constellation mapping, hard-decision demodulation and adaptive scheme selection.

Constellation tables are built once at import time and are read-only afterwards.
"""

import logging
from types import MappingProxyType
from typing import Mapping

import numpy as np

from .models import ModulationScheme

logger = logging.getLogger(__name__)

QPSK_LEVEL = 0.707

# Square QAM grids: coordinate = (value mod side - center) * scale on each axis
_SQUARE_QAM_SCALES = {
    ModulationScheme.QAM16: 2.0 / 3.0,
    ModulationScheme.QAM64: 1.0 / 4.5,
    ModulationScheme.QAM256: 1.0 / 7.5,
}


def _square_qam_points(bits_per_symbol: int, scale: float) -> np.ndarray:
    side = 1 << (bits_per_symbol // 2)
    center = (side - 1) / 2.0
    values = np.arange(side * side)
    real = ((values % side) - center) * scale
    imag = ((values // side) - center) * scale
    return real + 1j * imag


def _build_constellations() -> Mapping[ModulationScheme, np.ndarray]:
    tables = {
        ModulationScheme.BPSK: np.array([-1.0 + 0.0j, 1.0 + 0.0j]),
        ModulationScheme.QPSK: QPSK_LEVEL
        * np.array([-1.0 - 1.0j, -1.0 + 1.0j, 1.0 - 1.0j, 1.0 + 1.0j]),
    }
    for scheme, scale in _SQUARE_QAM_SCALES.items():
        tables[scheme] = _square_qam_points(scheme.bits_per_symbol, scale)

    for table in tables.values():
        table.setflags(write=False)
    return MappingProxyType(tables)


CONSTELLATIONS: Mapping[ModulationScheme, np.ndarray] = _build_constellations()


def constellation(scheme: ModulationScheme) -> np.ndarray:
    """Read-only constellation table indexed by symbol value."""
    return CONSTELLATIONS[scheme]


def bits_to_values(bits, bits_per_symbol: int) -> np.ndarray:
    """Group bits MSB-first into integers, zero-padding the final group."""
    bits = np.asarray(bits, dtype=np.int64).reshape(-1)
    remainder = len(bits) % bits_per_symbol
    if remainder:
        bits = np.concatenate([bits, np.zeros(bits_per_symbol - remainder, dtype=np.int64)])
    weights = 1 << np.arange(bits_per_symbol - 1, -1, -1)
    return bits.reshape(-1, bits_per_symbol) @ weights


def values_to_bits(values, bits_per_symbol: int) -> np.ndarray:
    """Expand integers MSB-first into ``bits_per_symbol`` bits each."""
    values = np.asarray(values, dtype=np.int64).reshape(-1, 1)
    shifts = np.arange(bits_per_symbol - 1, -1, -1)
    return ((values >> shifts) & 1).astype(np.uint8).reshape(-1)


def modulate(bits, scheme: ModulationScheme) -> np.ndarray:
    """Map bits to constellation points.

    Args:
        bits: Sequence of 0/1 values
        scheme: Modulation scheme

    Returns:
        Complex array of length ``ceil(len(bits) / bits_per_symbol)``
    """
    bits = np.asarray(bits).reshape(-1)
    if bits.size == 0:
        return np.zeros(0, dtype=np.complex128)

    values = bits_to_values(bits, scheme.bits_per_symbol)
    return CONSTELLATIONS[scheme][values].astype(np.complex128)


def demodulate_hard(samples) -> np.ndarray:
    """One bit per sample from the sign of the dominant axis.

    If ``|real| > |imag|`` the bit is the sign of the real part, otherwise the
    sign of the imaginary part. Only BPSK is fully recovered by this rule;
    higher-order schemes lose all but one bit per symbol.
    """
    samples = np.asarray(samples, dtype=np.complex128).reshape(-1)
    real_dominant = np.abs(samples.real) > np.abs(samples.imag)
    decisions = np.where(real_dominant, samples.real > 0, samples.imag > 0)
    return decisions.astype(np.uint8)


def demodulate(samples, scheme: ModulationScheme) -> np.ndarray:
    """Minimum-distance hard decision, ``bits_per_symbol`` bits per sample."""
    samples = np.asarray(samples, dtype=np.complex128).reshape(-1)
    if samples.size == 0:
        return np.zeros(0, dtype=np.uint8)

    table = CONSTELLATIONS[scheme]
    distances = np.abs(samples[:, np.newaxis] - table[np.newaxis, :])
    values = np.argmin(distances, axis=1)
    return values_to_bits(values, scheme.bits_per_symbol)


# Highest order first
_SELECTION_ORDER = (
    ModulationScheme.QAM256,
    ModulationScheme.QAM64,
    ModulationScheme.QAM16,
    ModulationScheme.QPSK,
)


def effective_snr(snr_db: float, doppler_shift_hz: float) -> float:
    """SNR penalized by 1 dB per 100 Hz of Doppler shift."""
    return snr_db - abs(doppler_shift_hz) / 100.0


def select_modulation(snr_db: float, doppler_shift_hz: float = 0.0) -> ModulationScheme:
    """Pick the highest-order scheme whose threshold the effective SNR strictly exceeds."""
    snr = effective_snr(snr_db, doppler_shift_hz)
    for scheme in _SELECTION_ORDER:
        if snr > scheme.min_snr_db:
            return scheme
    return ModulationScheme.BPSK
