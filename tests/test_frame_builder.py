"""
Tests for OFDM frame assembly.
"""

import numpy as np
import pytest

from ofdm_link_simulator.frame_builder import PILOT_SYMBOL, FrameBuilder
from ofdm_link_simulator.models import Agent, MultipathTap, OFDMParameters, SimulationSettings
from ofdm_link_simulator.transform import forward_transform_rows
from ofdm_link_simulator.validation import ValidationError


class TestPilotInsertion:
    """Test pilot placement in the symbol stream."""

    def setup_method(self):
        self.builder = FrameBuilder()

    def test_pilot_spacing(self):
        assert self.builder.pilot_spacing(64) == 3
        assert self.builder.pilot_spacing(16) == 1
        assert self.builder.pilot_spacing(1) == 1

    def test_pilot_follows_every_spacing_th_symbol(self):
        """With spacing 3, pilots follow data symbols 0, 3, 6, ..."""
        symbols = np.arange(1, 8) * 1j
        stream, is_pilot = self.builder.insert_pilots(symbols, 64)

        assert len(stream) == 7 + 3
        np.testing.assert_array_equal(np.flatnonzero(is_pilot), [1, 5, 9])
        np.testing.assert_array_equal(stream[~is_pilot], symbols)
        assert np.all(stream[is_pilot] == PILOT_SYMBOL)

    def test_spacing_one_interleaves(self):
        stream, is_pilot = self.builder.insert_pilots([-1, -1], 10)
        np.testing.assert_array_equal(is_pilot, [False, True, False, True])

    def test_empty_stream(self):
        stream, is_pilot = self.builder.insert_pilots([], 64)
        assert len(stream) == 0 and len(is_pilot) == 0


class TestSubcarrierMapping:
    """Test mapping of the stream onto transform bins."""

    def setup_method(self):
        self.builder = FrameBuilder()

    def test_active_bins_centered(self):
        params = OFDMParameters(fft_size=64, num_subcarriers=48)
        bins = self.builder.active_bins(params)
        assert bins[0] == 8 and bins[-1] == 55

    def test_guard_bands_empty(self):
        params = OFDMParameters(fft_size=64, num_subcarriers=48)
        frame = self.builder.build_frame(np.ones(40), params)

        assert np.all(frame.grid[:, :8] == 0)
        assert np.all(frame.grid[:, 56:] == 0)

    def test_multi_symbol_frame(self):
        """64 data symbols plus 22 pilots need two 64-bin OFDM symbols."""
        params = OFDMParameters(fft_size=64, num_subcarriers=64)
        frame = self.builder.build_frame(np.ones(64), params)

        layout = frame.layout
        assert layout.num_ofdm_symbols == 2
        assert layout.num_pilots == 22
        assert layout.data_mask.sum() == 64
        assert frame.samples.shape == (2 * (64 + 16),)
        # Unused tail of the last OFDM symbol is zero
        assert np.all(frame.grid[1, 22:] == 0)

    def test_pilot_overhead(self):
        params = OFDMParameters(fft_size=64, num_subcarriers=64)
        layout = self.builder.build_frame(np.ones(64), params).layout
        assert layout.pilot_overhead == pytest.approx(22 / 86)

    def test_interference_avoidance_withholds_center(self):
        params = OFDMParameters(fft_size=64, num_subcarriers=64)
        strong = Agent("jammer", "stationary", is_transmitting=True, interference_level=0.8)
        frame = self.builder.build_frame(np.ones(10), params, agents=[strong])

        assert frame.layout.withheld_bins == tuple(range(22, 43))
        assert not frame.layout.data_mask[:, 22:43].any()
        assert not frame.layout.pilot_mask[:, 22:43].any()

    def test_weak_or_silent_interferers_ignored(self):
        params = OFDMParameters(fft_size=64, num_subcarriers=64)
        weak = Agent("a", "mobile", is_transmitting=True, interference_level=0.5)
        silent = Agent("b", "mobile", is_transmitting=False, interference_level=0.9)
        frame = self.builder.build_frame(np.ones(10), params, agents=[weak, silent])

        assert frame.layout.withheld_bins == ()

    def test_no_capacity_raises(self):
        """All active bins inside the withheld window leaves nothing for data."""
        params = OFDMParameters(fft_size=64, num_subcarriers=16)
        strong = Agent("jammer", "mobile", is_transmitting=True, interference_level=1.0)
        with pytest.raises(ValidationError, match="No subcarriers"):
            self.builder.build_frame(np.ones(4), params, agents=[strong])


class TestCyclicPrefix:
    """Test cyclic prefix sizing and construction."""

    def setup_method(self):
        self.builder = FrameBuilder()

    def test_default_without_multipath(self):
        assert self.builder.cyclic_prefix_length([], 16) == 16

    def test_grows_with_delay_spread(self):
        taps = [MultipathTap(0.002, 0.5), MultipathTap(0.0105, 0.2)]
        assert self.builder.cyclic_prefix_length(taps, 16) == 11 + 10

    def test_prefix_covers_max_delay(self):
        """The prefix is always at least the largest tap delay in samples."""
        for delay in [0.0, 0.001, 0.02, 0.05, 0.1]:
            taps = [MultipathTap(delay, 0.3)]
            assert self.builder.cyclic_prefix_length(taps, 4) >= np.ceil(delay * 1000)

    def test_prefix_copies_symbol_tail(self):
        symbols = np.arange(8).reshape(1, 8) + 0j
        with_cp = FrameBuilder.add_cyclic_prefix(symbols, 3)
        np.testing.assert_array_equal(with_cp[0], [5, 6, 7, 0, 1, 2, 3, 4, 5, 6, 7])

    def test_prefix_longer_than_symbol_wraps(self):
        symbols = np.array([[1, 2]], dtype=complex)
        with_cp = FrameBuilder.add_cyclic_prefix(symbols, 3)
        np.testing.assert_array_equal(with_cp[0], [2, 1, 2, 1, 2])

    def test_frame_prefix_matches_tail(self):
        params = OFDMParameters(fft_size=32, num_subcarriers=24, cyclic_prefix_length=8)
        frame = self.builder.build_frame(np.ones(10) * -1, params)
        samples = frame.samples
        np.testing.assert_allclose(samples[:8], samples[32:40])


class TestFrameContents:
    """Test that the time-domain frame carries the mapped grid."""

    def test_grid_recovered_by_forward_transform(self):
        builder = FrameBuilder(SimulationSettings(pilot_divisor=4))
        params = OFDMParameters(fft_size=16, num_subcarriers=12, cyclic_prefix_length=4)
        frame = builder.build_frame(np.array([1, -1, 1, 1, -1], dtype=complex), params)

        # No multipath: the prefix still carries the fixed margin
        assert frame.cyclic_prefix_length == 10
        symbol_length = frame.layout.symbol_length
        time_symbols = frame.samples.reshape(-1, symbol_length)[:, frame.cyclic_prefix_length :]
        np.testing.assert_allclose(forward_transform_rows(time_symbols), frame.grid, atol=1e-12)

    def test_layout_records_cp(self):
        builder = FrameBuilder()
        params = OFDMParameters(fft_size=64, num_subcarriers=64, cyclic_prefix_length=4)
        frame = builder.build_frame(np.ones(8), params, multipath=[MultipathTap(0.02, 0.1)])
        assert frame.cyclic_prefix_length == 30
        assert len(frame.samples) == frame.layout.num_ofdm_symbols * (64 + 30)
