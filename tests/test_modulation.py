"""
Tests for constellation mapping, demodulation, adaptive selection and the repetition code.
"""

import numpy as np
import pytest

from ofdm_link_simulator.coding import repetition_decode, repetition_encode
from ofdm_link_simulator.models import ModulationScheme
from ofdm_link_simulator.modulation import (
    bits_to_values,
    constellation,
    demodulate,
    demodulate_hard,
    effective_snr,
    modulate,
    select_modulation,
    values_to_bits,
)


class TestConstellations:
    """Test constellation tables."""

    @pytest.mark.parametrize(
        "scheme,size", [(s, 2**s.bits_per_symbol) for s in ModulationScheme]
    )
    def test_table_sizes(self, scheme, size):
        assert len(constellation(scheme)) == size

    def test_bpsk_points(self):
        np.testing.assert_array_equal(constellation(ModulationScheme.BPSK), [-1, 1])

    def test_qpsk_points(self):
        expected = 0.707 * np.array([-1 - 1j, -1 + 1j, 1 - 1j, 1 + 1j])
        np.testing.assert_allclose(constellation(ModulationScheme.QPSK), expected)

    def test_16qam_grid(self):
        """Value v maps to ((v % 4) - 1.5, (v // 4) - 1.5) scaled by 2/3."""
        table = constellation(ModulationScheme.QAM16)
        assert table[0] == pytest.approx((-1.5 - 1.5j) * 2 / 3)
        assert table[5] == pytest.approx((-0.5 - 0.5j) * 2 / 3)
        assert table[15] == pytest.approx((1.5 + 1.5j) * 2 / 3)

    def test_64qam_and_256qam_extremes(self):
        assert constellation(ModulationScheme.QAM64)[63] == pytest.approx((3.5 + 3.5j) / 4.5)
        assert constellation(ModulationScheme.QAM256)[0] == pytest.approx((-7.5 - 7.5j) / 7.5)

    def test_tables_are_read_only(self):
        with pytest.raises(ValueError):
            constellation(ModulationScheme.BPSK)[0] = 0


class TestBitGrouping:
    """Test MSB-first bit grouping."""

    def test_msb_first(self):
        np.testing.assert_array_equal(bits_to_values([1, 0, 0, 1], 2), [2, 1])

    def test_final_group_zero_padded(self):
        np.testing.assert_array_equal(bits_to_values([1, 1, 1], 2), [3, 2])

    def test_values_to_bits(self):
        np.testing.assert_array_equal(values_to_bits([5], 4), [0, 1, 0, 1])


class TestModulate:
    """Test bit-to-symbol mapping."""

    def test_bpsk_mapping(self):
        np.testing.assert_array_equal(modulate([0, 1, 1, 0], ModulationScheme.BPSK), [-1, 1, 1, -1])

    @pytest.mark.parametrize("scheme", list(ModulationScheme))
    def test_output_length(self, scheme):
        bits = np.ones(13, dtype=np.uint8)
        expected = -(-13 // scheme.bits_per_symbol)
        assert len(modulate(bits, scheme)) == expected

    def test_empty_input(self):
        assert len(modulate([], ModulationScheme.QPSK)) == 0

    def test_qpsk_padding(self):
        """A trailing single bit is padded with zero."""
        symbols = modulate([1], ModulationScheme.QPSK)
        assert symbols[0] == pytest.approx(0.707 * (1 - 1j))


class TestDemodulate:
    """Test both hard-decision rules."""

    @pytest.mark.parametrize("scheme", list(ModulationScheme))
    def test_nearest_rule_round_trip(self, scheme):
        """Noiseless round trip is exact for every scheme."""
        rng = np.random.default_rng(7)
        bits = rng.integers(0, 2, size=scheme.bits_per_symbol * 40).astype(np.uint8)
        np.testing.assert_array_equal(demodulate(modulate(bits, scheme), scheme), bits)

    def test_dominant_axis_bpsk_round_trip(self):
        bits = np.array([0, 1, 1, 0, 1, 0, 0, 1], dtype=np.uint8)
        np.testing.assert_array_equal(
            demodulate_hard(modulate(bits, ModulationScheme.BPSK)), bits
        )

    def test_dominant_axis_rule(self):
        """Sign of the real part when it dominates, otherwise sign of the imaginary part."""
        samples = [2 + 1j, -2 + 1j, 1 + 2j, 1 - 2j, 1 + 1j]
        np.testing.assert_array_equal(demodulate_hard(samples), [1, 0, 1, 0, 1])

    def test_dominant_axis_one_bit_per_symbol(self):
        symbols = modulate(np.ones(8, dtype=np.uint8), ModulationScheme.QAM16)
        assert len(demodulate_hard(symbols)) == len(symbols)

    def test_nearest_rule_tolerates_small_noise(self):
        bits = np.array([1, 0, 1, 1, 0, 0, 1, 0], dtype=np.uint8)
        symbols = modulate(bits, ModulationScheme.QAM16) + 0.05 * (1 + 1j)
        np.testing.assert_array_equal(demodulate(symbols, ModulationScheme.QAM16), bits)


class TestSelectModulation:
    """Test adaptive scheme selection."""

    @pytest.mark.parametrize(
        "snr,doppler,expected",
        [
            (35.0, 0.0, ModulationScheme.QAM256),
            (28.0, 0.0, ModulationScheme.QAM64),
            (22.0, 0.0, ModulationScheme.QAM16),
            (17.0, 0.0, ModulationScheme.QPSK),
            (10.0, 0.0, ModulationScheme.BPSK),
            (25.0, 0.0, ModulationScheme.QAM16),
            (15.0, 0.0, ModulationScheme.BPSK),
            (26.0, 200.0, ModulationScheme.QAM16),
        ],
    )
    def test_thresholds(self, snr, doppler, expected):
        """Thresholds must be strictly exceeded; Doppler costs 1 dB per 100 Hz."""
        assert select_modulation(snr, doppler) == expected

    def test_doppler_sign_ignored(self):
        assert select_modulation(30.0, -150.0) == select_modulation(30.0, 150.0)

    def test_effective_snr(self):
        assert effective_snr(20.0, 250.0) == pytest.approx(17.5)

    def test_monotonic_in_snr(self):
        """Higher SNR never selects fewer bits per symbol."""
        orders = [select_modulation(snr).bits_per_symbol for snr in np.linspace(-10, 50, 121)]
        assert orders == sorted(orders)

    def test_monotonic_in_doppler(self):
        orders = [select_modulation(32.0, d).bits_per_symbol for d in np.linspace(0, 3000, 61)]
        assert orders == sorted(orders, reverse=True)


class TestRepetitionCode:
    """Test the toy repetition code."""

    def test_factor_one_is_identity(self):
        bits = np.array([1, 0, 1], dtype=np.uint8)
        np.testing.assert_array_equal(repetition_encode(bits, 1), bits)
        np.testing.assert_array_equal(repetition_decode(bits, 1), bits)

    def test_encode_repeats(self):
        np.testing.assert_array_equal(repetition_encode([1, 0], 3), [1, 1, 1, 0, 0, 0])

    def test_majority_corrects_single_error(self):
        coded = np.array([1, 0, 1, 0, 0, 1], dtype=np.uint8)
        np.testing.assert_array_equal(repetition_decode(coded, 3), [1, 0])

    def test_incomplete_tail(self):
        coded = np.array([1, 1, 1, 1, 1], dtype=np.uint8)
        np.testing.assert_array_equal(repetition_decode(coded, 3), [1, 1])
