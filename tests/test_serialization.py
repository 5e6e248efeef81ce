"""
Tests for plain-data conversion of jobs and outcomes.
"""

import json

import numpy as np
import pytest

from ofdm_link_simulator.channel import UniformSource
from ofdm_link_simulator.models import (
    Agent,
    ChannelParameters,
    Failure,
    ModulationScheme,
    MultipathTap,
    OFDMParameters,
    TransmissionJob,
)
from ofdm_link_simulator.pipeline import TransmissionPipeline
from ofdm_link_simulator.serialization import (
    complex_to_pairs,
    job_from_dict,
    job_to_dict,
    outcome_to_dict,
    pairs_to_complex,
    quality_summary_to_dict,
    result_to_dict,
)


@pytest.fixture
def job():
    return TransmissionJob(
        bits=[1, 0, 1, 1],
        ofdm_params=OFDMParameters(fft_size=32, num_subcarriers=24, modulation="qpsk"),
        channel_params=ChannelParameters(
            snr_db=18.0, doppler_shift_hz=-40.0, multipath=[MultipathTap(0.001, 0.4)]
        ),
        agents=(
            Agent("rover", "mobile", is_transmitting=True, velocity=(1.0, 2.0)),
            Agent("base", "stationary", movement_state="walking", interference_level=0.3),
        ),
        transmitter_id="rover",
        request_id=3,
    )


@pytest.fixture
def result():
    job = TransmissionJob(
        bits=np.tile([0, 1], 8),
        ofdm_params=OFDMParameters(fft_size=16, num_subcarriers=16, modulation="bpsk"),
        channel_params=ChannelParameters(snr_db=30.0),
    )
    return TransmissionPipeline(random_source=UniformSource(0)).run_transmission(job)


class TestComplexPairs:
    """Test complex array encoding."""

    def test_pairs_layout(self):
        assert complex_to_pairs([1 + 2j, -3j]) == [[1.0, 2.0], [0.0, -3.0]]

    def test_pairs_decode(self):
        np.testing.assert_array_equal(pairs_to_complex([[1, 2], [0, -3]]), [1 + 2j, -3j])

    def test_pairs_keep_grid_shape(self):
        grid = np.array([[1 + 1j, 2], [3j, -1]])
        pairs = complex_to_pairs(grid)

        assert pairs == [[[1.0, 1.0], [2.0, 0.0]], [[0.0, 3.0], [-1.0, 0.0]]]
        np.testing.assert_array_equal(pairs_to_complex(pairs), grid)

    def test_empty_pairs(self):
        assert complex_to_pairs([]) == []
        assert pairs_to_complex([]).size == 0


class TestJobSerialization:
    """Test job conversion."""

    def test_job_dict_is_json_safe(self, job):
        data = job_to_dict(job)
        json.dumps(data)

        assert data["bits"] == [1, 0, 1, 1]
        assert data["ofdm_params"]["modulation"] == "qpsk"
        assert data["agents"][0]["kind"] == "mobile"
        assert data["agents"][1]["movement_state"] == "walking"

    def test_job_rebuilt(self, job):
        rebuilt = job_from_dict(json.loads(json.dumps(job_to_dict(job))))

        np.testing.assert_array_equal(rebuilt.bits, job.bits)
        assert rebuilt.ofdm_params == job.ofdm_params
        assert rebuilt.channel_params == job.channel_params
        assert rebuilt.agents == job.agents
        assert rebuilt.transmitter_id == "rover"
        assert rebuilt.request_id == 3

    def test_adaptive_modulation_tag(self):
        params = OFDMParameters(fft_size=16, num_subcarriers=8)
        job = TransmissionJob([1], params, ChannelParameters(snr_db=1.0))
        assert job_to_dict(job)["ofdm_params"]["modulation"] == "auto"


class TestOutcomeSerialization:
    """Test result and failure conversion."""

    def test_result_dict(self, result):
        data = result_to_dict(result)
        json.dumps(data)

        assert data["success"] is True
        assert data["modulation"] == "bpsk"
        assert data["metrics"]["modulation"] == "bpsk"
        assert data["comparison"]["enhanced"]["name"] == "OTFS"
        assert len(data["samples"]["time_domain"]) == len(result.time_domain_samples)
        np.testing.assert_allclose(
            pairs_to_complex(data["samples"]["received"]), result.received_samples
        )

    def test_result_grids_keep_symbol_rows(self, result):
        """Subcarrier grid and channel estimate stay one list per OFDM symbol."""
        samples = result_to_dict(result)["samples"]
        rows, bins = result.frequency_domain_samples.shape

        assert len(samples["frequency_domain"]) == rows
        assert all(len(row) == bins for row in samples["frequency_domain"])
        assert len(samples["channel_estimate"]) == result.channel_estimate.shape[0]
        np.testing.assert_allclose(
            pairs_to_complex(samples["frequency_domain"]), result.frequency_domain_samples
        )
        np.testing.assert_allclose(
            pairs_to_complex(samples["channel_estimate"]), result.channel_estimate
        )

    def test_result_without_samples(self, result):
        assert "samples" not in result_to_dict(result, include_samples=False)

    def test_failure_dict(self):
        failure = Failure(reason="validation failed: x", processing_duration_ms=0.5, request_id=2)
        data = outcome_to_dict(failure)

        assert data["success"] is False
        assert data["reason"] == "validation failed: x"
        assert data["request_id"] == 2

    def test_quality_summary_dict(self):
        pipeline = TransmissionPipeline()
        summary = pipeline.analyze_channel_quality(ChannelParameters(snr_db=28.0))
        data = quality_summary_to_dict(summary)

        json.dumps(data)
        assert data["recommended_modulation"] == ModulationScheme.QAM64.value
