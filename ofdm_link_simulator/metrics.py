"""
Quality metrics for a transmission and lightweight channel assessment.

Besides the measured error rates and waveform statistics, this module projects
the figures of an enhanced, Doppler-resilient waveform (OTFS) from the measured
OFDM metrics. The projection is illustrative: no OTFS chain is simulated.
"""

import logging
import math
from typing import Optional, Sequence

import numpy as np

from .models import (
    Agent,
    ChannelParameters,
    MetricsRecord,
    ModulationScheme,
    QualitySummary,
    SchemeComparison,
    WaveformProfile,
)
from .modulation import select_modulation

logger = logging.getLogger(__name__)

# Strictly-greater SNR thresholds, best bucket first
QUALITY_THRESHOLDS = ((25.0, "excellent"), (20.0, "good"), (15.0, "fair"))
DOPPLER_SEVERITY_THRESHOLD_HZ = 100.0


def quality_bucket(snr_db: float) -> str:
    """Qualitative channel quality from SNR."""
    for threshold, label in QUALITY_THRESHOLDS:
        if snr_db > threshold:
            return label
    return "poor"


def count_bit_errors(input_bits, received_bits) -> int:
    """Position-wise mismatches over the common prefix plus the length difference."""
    sent = np.asarray(input_bits).reshape(-1)
    received = np.asarray(received_bits).reshape(-1)
    overlap = min(len(sent), len(received))

    mismatches = int(np.count_nonzero(sent[:overlap] != received[:overlap]))
    return mismatches + abs(len(sent) - len(received))


def papr_db(samples) -> float:
    """Peak-to-average power ratio in dB; 0 for an empty or all-zero signal."""
    power = np.abs(np.asarray(samples, dtype=np.complex128)) ** 2
    if power.size == 0:
        return 0.0

    average = float(np.mean(power))
    if average <= 0:
        return 0.0
    return 10.0 * math.log10(float(np.max(power)) / average)


def channel_capacity(snr_db: float) -> float:
    """Shannon capacity in bits/s/Hz."""
    return math.log2(1.0 + 10.0 ** (snr_db / 10.0))


def doppler_impact(doppler_shift_hz: float) -> float:
    """Doppler shift normalized to 300 Hz."""
    return abs(doppler_shift_hz) / 300.0


def transmitting_count(agents: Sequence[Agent]) -> int:
    return sum(1 for agent in agents if agent.is_transmitting)


def mobility_penalty(agents: Sequence[Agent], scale: float = 0.3) -> float:
    """Share of mobile agents among all agents, scaled by ``scale``; 0 without agents."""
    if not agents:
        return 0.0
    mobile = sum(1 for agent in agents if agent.is_mobile)
    return mobile / len(agents) * scale


class MetricsEngine:
    """Computes the metrics record and the scheme comparison of a transmission."""

    SYMBOL_ERROR_MULTIPLIER = 6.0
    REQUIRED_SNR_DB = 15.0
    INTERFERER_PENALTY_DB = 2.0
    ENHANCED_BER_FACTOR = 0.7
    ENHANCED_DOPPLER_FACTOR = 0.3
    ENHANCED_THROUGHPUT_DOPPLER_GAIN = 0.5
    FRAME_ERROR_MULTIPLIER = 8.0
    JITTER_MS_PER_HZ = 0.01

    def compute_metrics(
        self,
        input_bits,
        received_bits,
        processing_duration_ms: float,
        channel: ChannelParameters,
        transmitted_samples: Optional[np.ndarray] = None,
        agents: Sequence[Agent] = (),
        modulation: ModulationScheme = ModulationScheme.BPSK,
        pilot_overhead: float = 0.0,
    ) -> MetricsRecord:
        """Compute the metrics record of one transmission.

        Args:
            input_bits: Bits handed to the transmitter
            received_bits: Bits recovered by the receiver
            processing_duration_ms: Wall-clock duration of the run
            channel: Channel parameters of the run
            transmitted_samples: Transmitted frame including cyclic prefixes
            agents: Agents sharing the medium
            modulation: Scheme used for the run
            pilot_overhead: Fraction of occupied bins spent on pilots

        Returns:
            MetricsRecord
        """
        num_bits = len(np.asarray(input_bits).reshape(-1))
        bit_errors = count_bit_errors(input_bits, received_bits)
        ber = bit_errors / num_bits if num_bits else 0.0
        ser = ber * self.SYMBOL_ERROR_MULTIPLIER

        duration_ms = max(processing_duration_ms, 1e-6)
        active = transmitting_count(agents)

        record = MetricsRecord(
            bit_errors=bit_errors,
            bit_error_rate=ber,
            symbol_error_rate=ser,
            papr_db=papr_db(transmitted_samples) if transmitted_samples is not None else 0.0,
            channel_capacity=channel_capacity(channel.snr_db),
            throughput_bps=num_bits / duration_ms * 1000.0,
            processing_duration_ms=processing_duration_ms,
            snr_effective_db=channel.snr_db - abs(channel.doppler_shift_hz) / 50.0,
            spectral_efficiency=num_bits / channel.bandwidth_hz,
            doppler_impact=doppler_impact(channel.doppler_shift_hz),
            link_margin_db=channel.snr_db - self.REQUIRED_SNR_DB,
            signal_to_interference_db=channel.snr_db - active * self.INTERFERER_PENALTY_DB,
            interference_level=active / len(agents) if agents else 0.0,
            pilot_overhead=pilot_overhead,
            frame_error_rate=ber * self.FRAME_ERROR_MULTIPLIER,
            jitter_ms=abs(channel.doppler_shift_hz) * self.JITTER_MS_PER_HZ,
            packet_loss_percent=ser * 100.0,
            mobility_penalty=mobility_penalty(agents),
            multipath_delay_s=channel.max_tap_delay,
            modulation=modulation,
            channel_quality=quality_bucket(channel.snr_db),
        )

        logger.debug(
            f"Metrics: {bit_errors} bit errors / {num_bits} bits (BER={ber:.4g}), "
            f"PAPR={record.papr_db:.2f}dB, capacity={record.channel_capacity:.2f}b/s/Hz"
        )

        return record

    def compare_schemes(self, metrics: MetricsRecord) -> SchemeComparison:
        """Project enhanced-waveform figures from measured OFDM metrics."""
        impact = metrics.doppler_impact
        baseline = WaveformProfile(
            name="OFDM",
            throughput_bps=metrics.throughput_bps,
            doppler_tolerance=1.0 - impact,
            bit_error_rate=metrics.bit_error_rate,
            complexity="Medium",
        )
        enhanced = WaveformProfile(
            name="OTFS",
            throughput_bps=metrics.throughput_bps
            * (1.0 + impact * self.ENHANCED_THROUGHPUT_DOPPLER_GAIN),
            doppler_tolerance=1.0 - impact * self.ENHANCED_DOPPLER_FACTOR,
            bit_error_rate=metrics.bit_error_rate * self.ENHANCED_BER_FACTOR,
            complexity="High",
        )

        if baseline.throughput_bps > 0:
            gain = (enhanced.throughput_bps - baseline.throughput_bps) / baseline.throughput_bps
        else:
            gain = 0.0

        return SchemeComparison(
            baseline=baseline,
            enhanced=enhanced,
            throughput_gain_percent=gain * 100.0,
            ber_improvement_percent=(1.0 - self.ENHANCED_BER_FACTOR) * 100.0,
            doppler_resilience_percent=(1.0 - self.ENHANCED_DOPPLER_FACTOR) * 100.0,
        )


BASE_RATE_MBPS = 100.0


def estimate_throughput_mbps(channel: ChannelParameters, agents: Sequence[Agent]) -> float:
    """Crude throughput estimate from SNR, Doppler and interferer-count penalties."""
    snr_factor = min(1.0, channel.snr_db / 30.0)
    doppler_penalty = max(0.1, 1.0 - abs(channel.doppler_shift_hz) / 500.0)
    interference_penalty = max(0.3, 1.0 - transmitting_count(agents) * 0.1)
    return BASE_RATE_MBPS * snr_factor * doppler_penalty * interference_penalty


def analyze_channel_quality(
    channel: ChannelParameters, agents: Sequence[Agent] = ()
) -> QualitySummary:
    """Assess channel quality without running the transmission pipeline.

    Args:
        channel: Channel parameters
        agents: Agents sharing the medium

    Returns:
        QualitySummary with quality and Doppler buckets and a throughput estimate
    """
    severity = (
        "high" if abs(channel.doppler_shift_hz) > DOPPLER_SEVERITY_THRESHOLD_HZ else "low"
    )
    active = transmitting_count(agents)

    return QualitySummary(
        overall_quality=quality_bucket(channel.snr_db),
        doppler_severity=severity,
        interference_level=active * 0.2,
        recommended_modulation=select_modulation(channel.snr_db, channel.doppler_shift_hz),
        throughput_estimate_mbps=estimate_throughput_mbps(channel, agents),
        metadata={"transmitting_agents": active, "total_agents": len(agents)},
    )
