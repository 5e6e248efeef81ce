"""
End-to-end tests for the transmission pipeline.
"""

import numpy as np
import pytest

from ofdm_link_simulator.channel import UniformSource
from ofdm_link_simulator.error_handling import ErrorHandler
from ofdm_link_simulator.models import (
    Agent,
    ChannelParameters,
    Failure,
    ModulationScheme,
    MultipathTap,
    OFDMParameters,
    SimulationSettings,
    TransmissionJob,
    TransmissionResult,
)
from ofdm_link_simulator.pipeline import STAGES, TransmissionPipeline

ALTERNATING_BITS = np.tile([1, 0], 32).astype(np.uint8)


def make_job(bits=ALTERNATING_BITS, snr_db=30.0, modulation="bpsk", **kwargs):
    ofdm = OFDMParameters(fft_size=64, num_subcarriers=64, modulation=modulation)
    channel = kwargs.pop("channel", None) or ChannelParameters(snr_db=snr_db)
    return TransmissionJob(bits=bits, ofdm_params=ofdm, channel_params=channel, **kwargs)


class TestSuccessfulTransmission:
    """Test transmissions that complete."""

    def setup_method(self):
        self.pipeline = TransmissionPipeline(random_source=UniformSource(42))

    def test_clean_channel_exact_recovery(self):
        """64 alternating bits over a 30 dB channel decode without error."""
        outcome = self.pipeline.run_transmission(make_job())

        assert isinstance(outcome, TransmissionResult)
        assert outcome.success
        np.testing.assert_array_equal(outcome.decoded_bits, ALTERNATING_BITS)
        assert outcome.metrics.bit_error_rate == 0.0
        assert outcome.metrics.channel_quality == "excellent"
        assert outcome.modulation == ModulationScheme.BPSK

    def test_result_shapes(self):
        outcome = self.pipeline.run_transmission(make_job())

        assert outcome.num_ofdm_symbols == 2
        assert outcome.cyclic_prefix_length == 16
        assert outcome.time_domain_samples.shape == (160,)
        assert outcome.received_samples.shape == (160,)
        assert outcome.frequency_domain_samples.shape == (2, 64)
        assert outcome.channel_estimate.shape == (2, 64)
        assert len(outcome.equalized_symbols) == 64
        assert outcome.processing_duration_ms >= 0
        assert outcome.comparison.baseline.name == "OFDM"

    def test_low_snr_produces_errors(self):
        outcome = self.pipeline.run_transmission(make_job(snr_db=5.0))

        assert outcome.success
        assert outcome.metrics.bit_error_rate > 0
        assert outcome.metrics.channel_quality == "poor"

    def test_adaptive_modulation_selection(self):
        outcome = self.pipeline.run_transmission(make_job(snr_db=22.0, modulation="auto"))
        assert outcome.modulation == ModulationScheme.QAM16
        assert outcome.metrics.modulation == ModulationScheme.QAM16

    @pytest.mark.parametrize("scheme", list(ModulationScheme))
    def test_nearest_rule_round_trip_all_schemes(self, scheme):
        pipeline = TransmissionPipeline(
            SimulationSettings(decision_rule="nearest"), random_source=UniformSource(5)
        )
        bits = np.random.default_rng(3).integers(0, 2, size=120).astype(np.uint8)
        outcome = pipeline.run_transmission(make_job(bits=bits, snr_db=100.0, modulation=scheme))

        assert outcome.success
        np.testing.assert_array_equal(outcome.decoded_bits, bits)

    def test_mobile_transmitter_doppler_and_multipath(self):
        channel = ChannelParameters(
            snr_db=40.0, doppler_shift_hz=50.0, multipath=[MultipathTap(0.002, 0.3)]
        )
        agents = (Agent("rover", "mobile", is_transmitting=True, velocity=(3.0, 4.0)),)
        outcome = self.pipeline.run_transmission(
            make_job(channel=channel, agents=agents, transmitter_id="rover")
        )

        assert outcome.success
        assert outcome.metrics.bit_error_rate == 0.0

    def test_stationary_transmitter_reflection(self):
        agents = (Agent("base", "stationary", is_transmitting=True, movement_state="sitting"),)
        outcome = self.pipeline.run_transmission(
            make_job(snr_db=40.0, agents=agents, transmitter_id="base")
        )

        assert outcome.success
        assert outcome.metrics.bit_error_rate == 0.0

    def test_strong_transmitter_withholds_center_bins(self):
        """A transmitting agent above the avoidance threshold clears the center band even when
        it is the transmitter itself."""
        agents = (Agent("tx", "mobile", is_transmitting=True, interference_level=0.9),)
        outcome = self.pipeline.run_transmission(
            make_job(snr_db=40.0, agents=agents, transmitter_id="tx")
        )

        assert outcome.success
        assert not np.any(outcome.frequency_domain_samples[:, 22:43])
        np.testing.assert_array_equal(outcome.decoded_bits, ALTERNATING_BITS)

    def test_unknown_transmitter_still_succeeds(self):
        outcome = self.pipeline.run_transmission(make_job(transmitter_id="ghost"))
        assert outcome.success

    def test_adaptive_cyclic_prefix(self):
        channel = ChannelParameters(snr_db=40.0, multipath=[MultipathTap(0.02, 0.2)])
        outcome = self.pipeline.run_transmission(make_job(channel=channel))
        assert outcome.cyclic_prefix_length == 30

    def test_repetition_coding(self):
        pipeline = TransmissionPipeline(
            SimulationSettings(repetition_factor=3), random_source=UniformSource(8)
        )
        outcome = pipeline.run_transmission(make_job(snr_db=30.0))

        np.testing.assert_array_equal(outcome.decoded_bits, ALTERNATING_BITS)
        assert outcome.num_ofdm_symbols > 2

    def test_request_id_carried(self):
        job = make_job(request_id=17)
        assert self.pipeline.run_transmission(job).request_id == 17

    def test_progress_reported_per_stage(self):
        progress = []
        self.pipeline.run_transmission(make_job(), progress_callback=lambda *a: progress.append(a))

        assert [stage for stage, _ in progress] == list(STAGES)
        assert progress[-1][1] == pytest.approx(1.0)
        fractions = [fraction for _, fraction in progress]
        assert fractions == sorted(fractions)

    def test_stateless_between_jobs(self):
        """The same job with the same seed gives the same result on fresh pipelines."""
        first = TransmissionPipeline(random_source=UniformSource(9)).run_transmission(
            make_job(snr_db=8.0)
        )
        second = TransmissionPipeline(random_source=UniformSource(9)).run_transmission(
            make_job(snr_db=8.0)
        )
        np.testing.assert_array_equal(first.decoded_bits, second.decoded_bits)
        np.testing.assert_array_equal(first.received_samples, second.received_samples)


class TestFailures:
    """Test that malformed jobs produce structured failures."""

    def setup_method(self):
        self.handler = ErrorHandler()
        self.pipeline = TransmissionPipeline(
            random_source=UniformSource(1), error_handler=self.handler
        )

    def test_empty_bits(self):
        outcome = self.pipeline.run_transmission(make_job(bits=[]))

        assert isinstance(outcome, Failure)
        assert not outcome.success
        assert outcome.reason.startswith("validation failed")
        assert outcome.category == "validation_error"
        assert outcome.error_id is not None
        assert self.handler.statistics["total_errors"] == 1

    def test_non_binary_bits(self):
        outcome = self.pipeline.run_transmission(make_job(bits=[0, 1, 2]))
        assert isinstance(outcome, Failure)
        assert "0 and 1" in outcome.reason

    def test_duplicate_agents(self):
        agents = (Agent("a", "mobile"), Agent("a", "stationary"))
        outcome = self.pipeline.run_transmission(make_job(agents=agents))
        assert isinstance(outcome, Failure)
        assert "duplicate" in outcome.reason

    def test_no_data_capacity(self):
        ofdm = OFDMParameters(fft_size=64, num_subcarriers=16, modulation="bpsk")
        jammer = Agent("jammer", "mobile", is_transmitting=True, interference_level=0.9)
        job = TransmissionJob(
            bits=ALTERNATING_BITS,
            ofdm_params=ofdm,
            channel_params=ChannelParameters(snr_db=20.0),
            agents=(jammer,),
        )

        outcome = self.pipeline.run_transmission(job)

        assert isinstance(outcome, Failure)
        assert outcome.reason.startswith("framing failed")

    def test_failure_carries_request_id(self):
        outcome = self.pipeline.run_transmission(make_job(bits=[], request_id=4))
        assert outcome.request_id == 4
        assert outcome.processing_duration_ms >= 0


class TestChannelAnalysis:
    """Test the stage-skipping quality assessment."""

    def test_analysis_without_transmission(self):
        pipeline = TransmissionPipeline()
        summary = pipeline.analyze_channel_quality(
            ChannelParameters(snr_db=26.0, doppler_shift_hz=20.0)
        )
        assert summary.overall_quality == "excellent"
        assert summary.doppler_severity == "low"
