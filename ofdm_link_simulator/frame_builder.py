"""
OFDM frame assembly: pilot insertion, subcarrier mapping and cyclic-prefix framing.

A frame holds as many OFDM symbols as the pilot-augmented symbol stream needs.
Each OFDM symbol centers the active subcarriers in the transform grid, skips the
bins withheld for interference avoidance, and carries its own cyclic prefix.
"""

import logging
import math
from dataclasses import dataclass
from typing import Iterable, Optional, Sequence, Tuple

import numpy as np

from .models import Agent, MultipathTap, OFDMParameters, SimulationSettings
from .transform import inverse_transform_rows
from .validation import ValidationError

logger = logging.getLogger(__name__)

PILOT_SYMBOL = 1.0 + 0.0j


@dataclass(frozen=True, eq=False)
class FrameLayout:
    """Bin bookkeeping shared between the frame builder and the receiver.

    Attributes:
        fft_size: Transform size of each OFDM symbol
        cyclic_prefix_length: Prefix length used for each OFDM symbol
        data_bins: Bins filled by the symbol stream, in fill order
        withheld_bins: Active bins withheld for interference avoidance
        pilot_mask: True where a pilot was placed [ofdm_symbols x fft_size]
        data_mask: True where a data symbol was placed [ofdm_symbols x fft_size]
        num_data_symbols: Number of modulated data symbols carried
    """

    fft_size: int
    cyclic_prefix_length: int
    data_bins: np.ndarray
    withheld_bins: Tuple[int, ...]
    pilot_mask: np.ndarray
    data_mask: np.ndarray
    num_data_symbols: int

    @property
    def num_ofdm_symbols(self) -> int:
        return self.pilot_mask.shape[0]

    @property
    def symbol_length(self) -> int:
        """Samples per OFDM symbol including its cyclic prefix."""
        return self.fft_size + self.cyclic_prefix_length

    @property
    def num_pilots(self) -> int:
        return int(self.pilot_mask.sum())

    @property
    def pilot_overhead(self) -> float:
        """Fraction of occupied bins spent on pilots."""
        occupied = self.num_pilots + self.num_data_symbols
        return self.num_pilots / occupied if occupied else 0.0


@dataclass(eq=False)
class Frame:
    """A built frame: transmitted samples, mapped grid and its layout."""

    samples: np.ndarray
    grid: np.ndarray
    layout: FrameLayout

    @property
    def cyclic_prefix_length(self) -> int:
        return self.layout.cyclic_prefix_length


class FrameBuilder:
    """Builds time-domain OFDM frames from modulated symbols."""

    def __init__(self, settings: Optional[SimulationSettings] = None):
        """Initialize frame builder.

        Args:
            settings: Core constants (defaults if None)
        """
        self.settings = settings or SimulationSettings()

    def pilot_spacing(self, num_subcarriers: int) -> int:
        """Data symbols between consecutive pilots."""
        return max(1, num_subcarriers // self.settings.pilot_divisor)

    def insert_pilots(self, symbols, num_subcarriers: int) -> Tuple[np.ndarray, np.ndarray]:
        """Insert a pilot right after every ``pilot_spacing``-th data symbol.

        Returns:
            Tuple of (symbol stream, boolean pilot flags of the same length)
        """
        symbols = np.asarray(symbols, dtype=np.complex128).reshape(-1)
        spacing = self.pilot_spacing(num_subcarriers)

        followed_by_pilot = (np.arange(len(symbols)) % spacing) == 0
        # Data symbol i lands at i plus the number of pilots inserted before it
        data_positions = np.arange(len(symbols)) + np.cumsum(followed_by_pilot) - followed_by_pilot
        pilot_positions = data_positions[followed_by_pilot] + 1

        stream = np.zeros(len(symbols) + len(pilot_positions), dtype=np.complex128)
        is_pilot = np.zeros(len(stream), dtype=bool)
        stream[data_positions] = symbols
        stream[pilot_positions] = PILOT_SYMBOL
        is_pilot[pilot_positions] = True

        return stream, is_pilot

    def active_bins(self, params: OFDMParameters) -> np.ndarray:
        """Active subcarrier bins centered in the grid with symmetric guard bands."""
        start = (params.fft_size - params.num_subcarriers) // 2
        return np.arange(start, start + params.num_subcarriers)

    def withheld_bins(self, fft_size: int, agents: Iterable[Agent]) -> np.ndarray:
        """Bins around the spectral center withheld while a strong agent is on air."""
        strong = [
            agent
            for agent in agents
            if agent.is_transmitting
            and agent.interference_level > self.settings.avoidance_threshold
        ]
        if not strong:
            return np.zeros(0, dtype=np.int64)

        center = fft_size // 2
        width = self.settings.avoidance_half_width
        bins = np.arange(center - width, center + width + 1)
        logger.debug(
            f"{len(strong)} strong transmitting agent(s), withholding bins {bins[0]}..{bins[-1]}"
        )
        return bins[(bins >= 0) & (bins < fft_size)]

    def data_bins(self, params: OFDMParameters, agents: Iterable[Agent]) -> np.ndarray:
        """Active bins available to the symbol stream, in fill order."""
        active = self.active_bins(params)
        withheld = self.withheld_bins(params.fft_size, agents)
        return active[~np.isin(active, withheld)]

    def map_to_subcarriers(
        self,
        stream: np.ndarray,
        is_pilot: np.ndarray,
        params: OFDMParameters,
        agents: Sequence[Agent] = (),
    ) -> Tuple[np.ndarray, np.ndarray, np.ndarray, np.ndarray]:
        """Pack the symbol stream into as many OFDM symbols as needed.

        Returns:
            Tuple of (grid, pilot_mask, data_mask, data_bins); unused bins hold zero

        Raises:
            ValidationError: If interference avoidance leaves no bin for data
        """
        bins = self.data_bins(params, agents)
        capacity = len(bins)
        if capacity == 0:
            raise ValidationError(
                "No subcarriers left for data after interference avoidance "
                f"({params.num_subcarriers} active subcarriers)"
            )

        num_symbols = max(1, math.ceil(len(stream) / capacity))
        grid = np.zeros((num_symbols, params.fft_size), dtype=np.complex128)
        pilot_mask = np.zeros(grid.shape, dtype=bool)
        data_mask = np.zeros(grid.shape, dtype=bool)

        positions = np.arange(len(stream))
        rows = positions // capacity
        cols = bins[positions % capacity]
        grid[rows, cols] = stream
        pilot_mask[rows, cols] = is_pilot
        data_mask[rows, cols] = ~is_pilot

        return grid, pilot_mask, data_mask, bins

    def cyclic_prefix_length(self, multipath: Iterable[MultipathTap], default: int) -> int:
        """Prefix long enough for the worst multipath spread plus a fixed margin."""
        max_delay = max((tap.delay_seconds for tap in multipath), default=0.0)
        required = math.ceil(max_delay * self.settings.delay_sample_rate)
        return max(int(default), required + self.settings.cp_margin_samples)

    @staticmethod
    def add_cyclic_prefix(symbols_time: np.ndarray, cp_length: int) -> np.ndarray:
        """Prepend the last ``cp_length`` samples of each row to that row.

        Prefixes longer than the symbol wrap around cyclically.
        """
        symbols_time = np.atleast_2d(symbols_time)
        fft_size = symbols_time.shape[1]
        indices = np.arange(-cp_length, fft_size) % fft_size
        return symbols_time[:, indices]

    def build_frame(
        self,
        symbols,
        params: OFDMParameters,
        agents: Sequence[Agent] = (),
        multipath: Iterable[MultipathTap] = (),
    ) -> Frame:
        """Build a complete frame from modulated data symbols.

        Args:
            symbols: Modulated data symbols
            params: OFDM waveform parameters
            agents: Agents on air, the transmitter included (drive interference avoidance)
            multipath: Channel taps (drive the adaptive cyclic prefix)

        Returns:
            Frame with the time-domain samples, mapped grid and layout
        """
        symbols = np.asarray(symbols, dtype=np.complex128).reshape(-1)
        stream, is_pilot = self.insert_pilots(symbols, params.num_subcarriers)
        grid, pilot_mask, data_mask, bins = self.map_to_subcarriers(
            stream, is_pilot, params, agents
        )

        cp_length = self.cyclic_prefix_length(multipath, params.cyclic_prefix_length)
        time_symbols = inverse_transform_rows(grid)
        samples = self.add_cyclic_prefix(time_symbols, cp_length).reshape(-1)

        withheld = self.withheld_bins(params.fft_size, agents)
        layout = FrameLayout(
            fft_size=params.fft_size,
            cyclic_prefix_length=cp_length,
            data_bins=bins,
            withheld_bins=tuple(int(b) for b in np.intersect1d(withheld, self.active_bins(params))),
            pilot_mask=pilot_mask,
            data_mask=data_mask,
            num_data_symbols=len(symbols),
        )

        logger.debug(
            f"Built frame: {layout.num_ofdm_symbols} OFDM symbol(s), "
            f"{len(symbols)} data symbols, {layout.num_pilots} pilots, cp={cp_length}"
        )

        return Frame(samples=samples, grid=grid, layout=layout)
