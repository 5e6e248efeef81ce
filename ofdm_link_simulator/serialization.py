"""
Plain-data conversion of jobs, results and summaries.

Complex arrays are written as nested lists of ``[real, imag]`` pairs that keep the
array shape, and enums as their tag values, so every dictionary produced here can
go straight to ``json.dump``.
"""

from dataclasses import asdict
from typing import Any, Dict, List

import numpy as np

from .models import (
    Agent,
    ChannelParameters,
    Failure,
    MetricsRecord,
    MultipathTap,
    OFDMParameters,
    QualitySummary,
    SchemeComparison,
    TransmissionJob,
    TransmissionOutcome,
    TransmissionResult,
)


def complex_to_pairs(values) -> List[Any]:
    """Convert a complex array into ``[re, im]`` pairs, keeping its shape.

    A 1-D array becomes ``[[re, im], ...]``; a 2-D grid becomes one such list per row.
    """
    array = np.asarray(values, dtype=np.complex128)
    return np.stack([array.real, array.imag], axis=-1).tolist()


def pairs_to_complex(pairs) -> np.ndarray:
    """Inverse of ``complex_to_pairs``."""
    array = np.asarray(pairs, dtype=np.float64)
    if array.size == 0:
        return np.zeros(0, dtype=np.complex128)
    return array[..., 0] + 1j * array[..., 1]


def ofdm_params_to_dict(params: OFDMParameters) -> Dict[str, Any]:
    return {
        "fft_size": params.fft_size,
        "num_subcarriers": params.num_subcarriers,
        "cyclic_prefix_length": params.cyclic_prefix_length,
        "modulation": params.modulation.value if params.modulation else "auto",
    }


def channel_params_to_dict(channel: ChannelParameters) -> Dict[str, Any]:
    return {
        "snr_db": channel.snr_db,
        "doppler_shift_hz": channel.doppler_shift_hz,
        "bandwidth_hz": channel.bandwidth_hz,
        "multipath": [
            {"delay_seconds": tap.delay_seconds, "amplitude": tap.amplitude}
            for tap in channel.multipath
        ],
    }


def channel_params_from_dict(data: Dict[str, Any]) -> ChannelParameters:
    return ChannelParameters(
        snr_db=data["snr_db"],
        doppler_shift_hz=data.get("doppler_shift_hz", 0.0),
        bandwidth_hz=data.get("bandwidth_hz", 20e6),
        multipath=tuple(MultipathTap(**tap) for tap in data.get("multipath", ())),
    )


def agent_to_dict(agent: Agent) -> Dict[str, Any]:
    return {
        "id": agent.id,
        "kind": agent.kind.value,
        "is_transmitting": agent.is_transmitting,
        "interference_level": agent.interference_level,
        "velocity": list(agent.velocity) if agent.velocity is not None else None,
        "movement_state": agent.movement_state.value if agent.movement_state else None,
        "distance_factor": agent.distance_factor,
    }


def agent_from_dict(data: Dict[str, Any]) -> Agent:
    return Agent(
        id=data["id"],
        kind=data["kind"],
        is_transmitting=data.get("is_transmitting", False),
        interference_level=data.get("interference_level", 0.0),
        velocity=data.get("velocity"),
        movement_state=data.get("movement_state"),
        distance_factor=data.get("distance_factor", 1.0),
    )


def job_to_dict(job: TransmissionJob) -> Dict[str, Any]:
    """Serialize a transmission job."""
    return {
        "bits": [int(bit) for bit in job.bits],
        "ofdm_params": ofdm_params_to_dict(job.ofdm_params),
        "channel_params": channel_params_to_dict(job.channel_params),
        "agents": [agent_to_dict(agent) for agent in job.agents],
        "transmitter_id": job.transmitter_id,
        "request_id": job.request_id,
    }


def job_from_dict(data: Dict[str, Any]) -> TransmissionJob:
    """Rebuild a transmission job; parameter validation runs as usual.

    Raises:
        KeyError: If a required field is missing
        ValidationError: If a parameter is invalid
    """
    return TransmissionJob(
        bits=np.asarray(data["bits"]),
        ofdm_params=OFDMParameters(**data["ofdm_params"]),
        channel_params=channel_params_from_dict(data["channel_params"]),
        agents=tuple(agent_from_dict(agent) for agent in data.get("agents", ())),
        transmitter_id=data.get("transmitter_id"),
        request_id=data.get("request_id"),
    )


def metrics_to_dict(metrics: MetricsRecord) -> Dict[str, Any]:
    data = asdict(metrics)
    data["modulation"] = metrics.modulation.value
    return data


def comparison_to_dict(comparison: SchemeComparison) -> Dict[str, Any]:
    return asdict(comparison)


def result_to_dict(result: TransmissionResult, include_samples: bool = True) -> Dict[str, Any]:
    """Serialize a successful result.

    Args:
        result: Result to serialize
        include_samples: Whether to include the sample arrays (they dominate the size)
    """
    data = {
        "success": True,
        "request_id": result.request_id,
        "modulation": result.modulation.value,
        "cyclic_prefix_length": result.cyclic_prefix_length,
        "num_ofdm_symbols": result.num_ofdm_symbols,
        "processing_duration_ms": result.processing_duration_ms,
        "decoded_bits": [int(bit) for bit in result.decoded_bits],
        "metrics": metrics_to_dict(result.metrics),
        "comparison": comparison_to_dict(result.comparison),
    }

    if include_samples:
        data["samples"] = {
            "time_domain": complex_to_pairs(result.time_domain_samples),
            "frequency_domain": complex_to_pairs(result.frequency_domain_samples),
            "received": complex_to_pairs(result.received_samples),
            "channel_estimate": complex_to_pairs(result.channel_estimate),
            "equalized_symbols": complex_to_pairs(result.equalized_symbols),
        }

    return data


def failure_to_dict(failure: Failure) -> Dict[str, Any]:
    data = asdict(failure)
    data["success"] = False
    return data


def outcome_to_dict(outcome: TransmissionOutcome, include_samples: bool = True) -> Dict[str, Any]:
    """Serialize either kind of pipeline outcome."""
    if isinstance(outcome, Failure):
        return failure_to_dict(outcome)
    return result_to_dict(outcome, include_samples=include_samples)


def quality_summary_to_dict(summary: QualitySummary) -> Dict[str, Any]:
    data = asdict(summary)
    data["recommended_modulation"] = summary.recommended_modulation.value
    return data
