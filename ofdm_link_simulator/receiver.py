"""
Receiver chain: cyclic-prefix removal, forward transform, pilot-based channel
estimation, zero-forcing equalization and hard-decision demodulation.

The receiver shares the frame layout with the transmitter (prefix length, pilot
and data bin positions) rather than estimating it blindly.
"""

import logging
from dataclasses import dataclass
from typing import Optional

import numpy as np

from .error_handling import SimulationError
from .frame_builder import PILOT_SYMBOL, FrameLayout
from .models import ModulationScheme, SimulationSettings
from .modulation import demodulate, demodulate_hard
from .transform import forward_transform_rows

logger = logging.getLogger(__name__)


@dataclass(eq=False)
class ReceiverOutput:
    """What the receiver recovered from one frame.

    Attributes:
        channel_estimate: Estimated channel per bin [ofdm_symbols x fft_size]
        decoded_bits: Hard-decision bits
        equalized_symbols: Equalized data symbols in stream order
        frequency_domain: Received grid after the forward transform
    """

    channel_estimate: np.ndarray
    decoded_bits: np.ndarray
    equalized_symbols: np.ndarray
    frequency_domain: np.ndarray


class Receiver:
    """Recovers bits from channel output given the transmitter's frame layout."""

    def __init__(self, settings: Optional[SimulationSettings] = None):
        """Initialize receiver.

        Args:
            settings: Core constants (defaults if None)
        """
        self.settings = settings or SimulationSettings()

    def remove_cyclic_prefix(self, received: np.ndarray, layout: FrameLayout) -> np.ndarray:
        """Split the stream into OFDM symbols and drop each prefix.

        Returns:
            Time-domain symbols [ofdm_symbols x fft_size]

        Raises:
            SimulationError: If the stream length does not match the layout
        """
        received = np.asarray(received, dtype=np.complex128).reshape(-1)
        expected = layout.num_ofdm_symbols * layout.symbol_length
        if len(received) != expected:
            raise SimulationError(
                f"Received {len(received)} samples, frame layout expects {expected}",
                stage="cyclic_prefix_removal",
            )

        symbols = received.reshape(layout.num_ofdm_symbols, layout.symbol_length)
        return symbols[:, layout.cyclic_prefix_length :]

    @staticmethod
    def estimate_channel(freq_symbol: np.ndarray, pilot_bins: np.ndarray) -> np.ndarray:
        """Channel estimate of one OFDM symbol from its pilot bins.

        Pilot bins take the received sample divided by the known pilot value.
        Bins between two pilots are linearly interpolated; bins outside the
        pilot span default to unity gain.
        """
        estimate = np.ones(len(freq_symbol), dtype=np.complex128)
        if len(pilot_bins) == 0:
            return estimate

        pilot_estimates = freq_symbol[pilot_bins] / PILOT_SYMBOL
        inner = np.arange(pilot_bins[0], pilot_bins[-1] + 1)
        estimate[inner] = np.interp(inner, pilot_bins, pilot_estimates.real) + 1j * np.interp(
            inner, pilot_bins, pilot_estimates.imag
        )
        return estimate

    def equalize(self, received: np.ndarray, estimate: np.ndarray) -> np.ndarray:
        """Zero-forcing equalization; bins with near-zero gain are forced to zero."""
        gain = np.abs(estimate) ** 2
        usable = gain >= self.settings.min_channel_gain

        equalized = np.zeros_like(received, dtype=np.complex128)
        equalized[usable] = received[usable] * np.conj(estimate[usable]) / gain[usable]
        return equalized

    def demodulate(self, symbols: np.ndarray, scheme: ModulationScheme) -> np.ndarray:
        """Apply the configured decision rule."""
        if self.settings.decision_rule == "nearest":
            return demodulate(symbols, scheme)
        return demodulate_hard(symbols)

    def receive(
        self,
        channel_output: np.ndarray,
        layout: FrameLayout,
        scheme: ModulationScheme,
        num_bits: Optional[int] = None,
    ) -> ReceiverOutput:
        """Run the full receiver chain.

        Args:
            channel_output: Received time-domain samples
            layout: Layout of the transmitted frame
            scheme: Modulation scheme used by the transmitter
            num_bits: Number of transmitted (coded) bits; decoded bits are truncated to it

        Returns:
            ReceiverOutput with estimate, bits and equalized symbols
        """
        time_symbols = self.remove_cyclic_prefix(channel_output, layout)
        freq = forward_transform_rows(time_symbols)

        estimate = np.vstack(
            [
                self.estimate_channel(row, np.flatnonzero(pilots))
                for row, pilots in zip(freq, layout.pilot_mask)
            ]
        )
        equalized_grid = self.equalize(freq, estimate)

        # Row-major order of the data mask is the stream fill order
        data_symbols = equalized_grid[layout.data_mask][: layout.num_data_symbols]
        bits = self.demodulate(data_symbols, scheme)
        if num_bits is not None:
            bits = bits[:num_bits]

        logger.debug(
            f"Received {layout.num_ofdm_symbols} OFDM symbol(s): "
            f"{len(data_symbols)} data symbols, {len(bits)} bits "
            f"({self.settings.decision_rule} decisions)"
        )

        return ReceiverOutput(
            channel_estimate=estimate,
            decoded_bits=bits,
            equalized_symbols=data_symbols,
            frequency_domain=freq,
        )
