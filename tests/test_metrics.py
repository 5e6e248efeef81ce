"""
Tests for link metrics, scheme comparison and channel quality assessment.
"""

import math

import numpy as np
import pytest

from ofdm_link_simulator.metrics import (
    MetricsEngine,
    analyze_channel_quality,
    channel_capacity,
    count_bit_errors,
    estimate_throughput_mbps,
    mobility_penalty,
    papr_db,
    quality_bucket,
)
from ofdm_link_simulator.models import Agent, ChannelParameters, ModulationScheme, MultipathTap


def make_agents(transmitting: int, silent: int = 0):
    agents = [Agent(f"tx{i}", "mobile", is_transmitting=True) for i in range(transmitting)]
    agents += [Agent(f"idle{i}", "stationary") for i in range(silent)]
    return agents


class TestBasicMetrics:
    """Test standalone metric helpers."""

    def test_bit_errors_positionwise(self):
        assert count_bit_errors([1, 0, 1, 1], [1, 1, 1, 0]) == 2

    def test_bit_errors_count_length_difference(self):
        assert count_bit_errors([1, 0, 1, 1], [1, 0]) == 2
        assert count_bit_errors([1], [1, 0, 0]) == 2

    def test_papr_constant_amplitude(self):
        samples = np.exp(1j * np.linspace(0, 2 * np.pi, 50))
        assert papr_db(samples) == pytest.approx(0.0, abs=1e-9)

    def test_papr_single_peak(self):
        samples = np.zeros(4, dtype=complex)
        samples[0] = 1.0
        assert papr_db(samples) == pytest.approx(10 * math.log10(4))

    def test_papr_degenerate_inputs(self):
        assert papr_db([]) == 0.0
        assert papr_db(np.zeros(8)) == 0.0

    def test_channel_capacity(self):
        assert channel_capacity(0.0) == pytest.approx(1.0)
        assert channel_capacity(30.0) == pytest.approx(math.log2(1001))

    @pytest.mark.parametrize(
        "snr,expected",
        [(30.0, "excellent"), (25.1, "excellent"), (25.0, "good"), (20.0, "fair"),
         (15.0, "poor"), (5.0, "poor")],
    )
    def test_quality_buckets(self, snr, expected):
        assert quality_bucket(snr) == expected


class TestMetricsEngine:
    """Test the metrics record of a transmission."""

    def setup_method(self):
        self.engine = MetricsEngine()

    def test_perfect_transmission(self):
        bits = np.tile([1, 0], 32)
        channel = ChannelParameters(snr_db=30.0)
        record = self.engine.compute_metrics(bits, bits, 2.0, channel)

        assert record.bit_errors == 0
        assert record.bit_error_rate == 0.0
        assert record.symbol_error_rate == 0.0
        assert record.throughput_bps == pytest.approx(64 / 2.0 * 1000)
        assert record.channel_quality == "excellent"

    def test_symbol_error_rate_multiplier(self):
        bits = np.zeros(10)
        received = bits.copy()
        received[0] = 1
        record = self.engine.compute_metrics(bits, received, 1.0, ChannelParameters(snr_db=10.0))

        assert record.bit_error_rate == pytest.approx(0.1)
        assert record.symbol_error_rate == pytest.approx(0.6)

    def test_extended_metrics(self):
        channel = ChannelParameters(
            snr_db=20.0,
            doppler_shift_hz=150.0,
            bandwidth_hz=1e6,
            multipath=[MultipathTap(0.002, 0.5), MultipathTap(0.0105, 0.2)],
        )
        record = self.engine.compute_metrics(
            np.ones(100),
            np.ones(100),
            1.0,
            channel,
            agents=make_agents(2, 2),
            modulation=ModulationScheme.QPSK,
            pilot_overhead=0.25,
        )

        assert record.snr_effective_db == pytest.approx(17.0)
        assert record.spectral_efficiency == pytest.approx(1e-4)
        assert record.doppler_impact == pytest.approx(0.5)
        assert record.link_margin_db == pytest.approx(5.0)
        assert record.signal_to_interference_db == pytest.approx(16.0)
        assert record.interference_level == pytest.approx(0.5)
        assert record.pilot_overhead == 0.25
        assert record.modulation == ModulationScheme.QPSK
        assert record.jitter_ms == pytest.approx(1.5)
        assert record.mobility_penalty == pytest.approx(0.15)
        assert record.multipath_delay_s == pytest.approx(0.0105)
        assert record.frame_error_rate == 0.0
        assert record.packet_loss_percent == 0.0

    def test_link_layer_rates_follow_error_rates(self):
        bits = np.zeros(100)
        received = bits.copy()
        received[:2] = 1
        record = self.engine.compute_metrics(bits, received, 1.0, ChannelParameters(snr_db=10.0))

        assert record.frame_error_rate == pytest.approx(0.16)
        assert record.packet_loss_percent == pytest.approx(12.0)
        assert record.jitter_ms == 0.0
        assert record.multipath_delay_s == 0.0

    def test_mobility_penalty_without_agents(self):
        record = self.engine.compute_metrics([1], [1], 1.0, ChannelParameters(snr_db=10.0))
        assert record.mobility_penalty == 0.0
        assert mobility_penalty([Agent("m", "mobile")]) == pytest.approx(0.3)

    def test_papr_from_samples(self):
        samples = np.ones(16, dtype=complex)
        record = self.engine.compute_metrics(
            [1], [1], 1.0, ChannelParameters(snr_db=10.0), transmitted_samples=samples
        )
        assert record.papr_db == pytest.approx(0.0)


class TestSchemeComparison:
    """Test the projected enhanced-waveform comparison."""

    def test_comparison_figures(self):
        engine = MetricsEngine()
        channel = ChannelParameters(snr_db=20.0, doppler_shift_hz=150.0)
        sent = np.zeros(10)
        received = sent.copy()
        received[:2] = 1
        metrics = engine.compute_metrics(sent, received, 1.0, channel)

        comparison = engine.compare_schemes(metrics)

        assert comparison.baseline.name == "OFDM"
        assert comparison.enhanced.name == "OTFS"
        assert comparison.enhanced.throughput_bps == pytest.approx(
            metrics.throughput_bps * 1.25
        )
        assert comparison.throughput_gain_percent == pytest.approx(25.0)
        assert comparison.enhanced.bit_error_rate == pytest.approx(0.2 * 0.7)
        assert comparison.baseline.doppler_tolerance == pytest.approx(0.5)
        assert comparison.enhanced.doppler_tolerance == pytest.approx(0.85)
        assert comparison.ber_improvement_percent == pytest.approx(30.0)
        assert comparison.doppler_resilience_percent == pytest.approx(70.0)


class TestChannelQualityAnalysis:
    """Test the lightweight channel assessment."""

    def test_quality_and_doppler_buckets(self):
        summary = analyze_channel_quality(ChannelParameters(snr_db=22.0, doppler_shift_hz=150.0))
        assert summary.overall_quality == "good"
        assert summary.doppler_severity == "high"

    def test_doppler_threshold_is_strict(self):
        summary = analyze_channel_quality(ChannelParameters(snr_db=22.0, doppler_shift_hz=-100.0))
        assert summary.doppler_severity == "low"

    def test_interference_level_and_metadata(self):
        summary = analyze_channel_quality(ChannelParameters(snr_db=10.0), make_agents(3, 1))
        assert summary.interference_level == pytest.approx(0.6)
        assert summary.metadata == {"transmitting_agents": 3, "total_agents": 4}

    def test_recommended_modulation(self):
        summary = analyze_channel_quality(ChannelParameters(snr_db=28.0))
        assert summary.recommended_modulation == ModulationScheme.QAM64

    def test_throughput_estimate(self):
        assert estimate_throughput_mbps(ChannelParameters(snr_db=30.0), []) == pytest.approx(100.0)
        assert estimate_throughput_mbps(
            ChannelParameters(snr_db=15.0, doppler_shift_hz=250.0), make_agents(2)
        ) == pytest.approx(100.0 * 0.5 * 0.5 * 0.8)

    def test_throughput_penalty_floors(self):
        estimate = estimate_throughput_mbps(
            ChannelParameters(snr_db=60.0, doppler_shift_hz=1000.0), make_agents(10)
        )
        assert estimate == pytest.approx(100.0 * 1.0 * 0.1 * 0.3)
