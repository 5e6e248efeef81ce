"""
Core data models for the OFDM link simulator.

This module defines the value types exchanged between the simulation stages and
with the job orchestrator: transmission configuration, channel description,
interfering agents, and the result/failure bundles produced per job. Every value
is created fresh per job; nothing here is shared between jobs.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Tuple, Union

import numpy as np


class ModulationScheme(Enum):
    """Supported constellation schemes, tagged by their conventional names."""

    BPSK = "bpsk"
    QPSK = "qpsk"
    QAM16 = "16qam"
    QAM64 = "64qam"
    QAM256 = "256qam"

    @property
    def bits_per_symbol(self) -> int:
        """Number of bits carried by one constellation point."""
        return _BITS_PER_SYMBOL[self.value]

    @property
    def min_snr_db(self) -> float:
        """Effective SNR that must be strictly exceeded to select this scheme."""
        return _MIN_SNR_DB[self.value]

    @classmethod
    def from_tag(cls, tag: str) -> "ModulationScheme":
        """Look up a scheme by tag, accepting e.g. ``"16qam"``, ``"16-QAM"`` or ``"QAM16"``."""
        normalized = tag.strip().lower().replace("-", "").replace("_", "")
        aliases = {"qam16": "16qam", "qam64": "64qam", "qam256": "256qam"}
        normalized = aliases.get(normalized, normalized)
        for scheme in cls:
            if scheme.value == normalized:
                return scheme
        raise ValueError(f"Unknown modulation scheme '{tag}'")


_BITS_PER_SYMBOL = {"bpsk": 1, "qpsk": 2, "16qam": 4, "64qam": 6, "256qam": 8}
_MIN_SNR_DB = {"bpsk": float("-inf"), "qpsk": 15.0, "16qam": 20.0, "64qam": 25.0, "256qam": 30.0}


class AgentKind(Enum):
    """Whether an agent moves relative to the receiver."""

    MOBILE = "mobile"
    STATIONARY = "stationary"


class MovementState(Enum):
    """Activity of a stationary agent."""

    SITTING = "sitting"
    WALKING = "walking"


@dataclass(frozen=True)
class OFDMParameters:
    """Configuration of the OFDM waveform.

    Attributes:
        fft_size: Number of bins of the transform grid
        num_subcarriers: Number of active subcarriers centered in the grid
        cyclic_prefix_length: Minimum cyclic prefix length in samples
        modulation: Forced modulation scheme, or None for adaptive selection
    """

    fft_size: int
    num_subcarriers: int
    cyclic_prefix_length: int = 16
    modulation: Optional[ModulationScheme] = None

    def __post_init__(self):
        """Validate configuration parameters after initialization."""
        from .validation import ConfigValidator

        if isinstance(self.modulation, str):
            tag = self.modulation
            scheme = None if tag.strip().lower() == "auto" else ModulationScheme.from_tag(tag)
            object.__setattr__(self, "modulation", scheme)

        ConfigValidator.validate_ofdm_parameters(self)

    @property
    def is_adaptive(self) -> bool:
        """True when the scheme is chosen from channel conditions per job."""
        return self.modulation is None


@dataclass(frozen=True)
class MultipathTap:
    """A single channel reflector: delayed, attenuated copy of the signal."""

    delay_seconds: float
    amplitude: float

    def __post_init__(self):
        from .validation import ConfigValidator

        ConfigValidator.validate_multipath_tap(self)


@dataclass(frozen=True)
class ChannelParameters:
    """Synthetic wireless channel description.

    Attributes:
        snr_db: Signal-to-noise ratio in dB
        doppler_shift_hz: Signed Doppler frequency offset in Hz
        multipath: Reflectors of the channel (order irrelevant, duplicates allowed)
        bandwidth_hz: Occupied bandwidth in Hz
    """

    snr_db: float
    doppler_shift_hz: float = 0.0
    multipath: Tuple[MultipathTap, ...] = ()
    bandwidth_hz: float = 20e6

    def __post_init__(self):
        from .validation import ConfigValidator

        object.__setattr__(self, "multipath", tuple(self.multipath))
        ConfigValidator.validate_channel_parameters(self)

    @property
    def max_tap_delay(self) -> float:
        """Largest tap delay in seconds (0 for a single-path channel)."""
        return max((tap.delay_seconds for tap in self.multipath), default=0.0)


@dataclass(frozen=True)
class Agent:
    """A party sharing the medium: the transmitter itself or an interferer.

    Attributes:
        id: Unique agent identifier
        kind: Mobile or stationary
        is_transmitting: Whether the agent is currently on air
        interference_level: Interference power in [0, 1]
        velocity: 2-D velocity, mobile agents only
        movement_state: Sitting or walking, stationary agents only
        distance_factor: Path-loss scaling applied to the agent's interference
    """

    id: str
    kind: AgentKind
    is_transmitting: bool = False
    interference_level: float = 0.0
    velocity: Optional[Tuple[float, float]] = None
    movement_state: Optional[MovementState] = None
    distance_factor: float = 1.0

    def __post_init__(self):
        from .validation import ConfigValidator

        if isinstance(self.kind, str):
            object.__setattr__(self, "kind", AgentKind(self.kind))
        if isinstance(self.movement_state, str):
            object.__setattr__(self, "movement_state", MovementState(self.movement_state))
        if self.velocity is not None:
            object.__setattr__(self, "velocity", tuple(float(v) for v in self.velocity))

        ConfigValidator.validate_agent(self)

    @property
    def is_mobile(self) -> bool:
        return self.kind == AgentKind.MOBILE

    @property
    def speed(self) -> float:
        """Magnitude of the velocity vector (0 for stationary agents)."""
        if self.velocity is None:
            return 0.0
        return float(np.hypot(*self.velocity))


@dataclass(frozen=True, eq=False)
class TransmissionJob:
    """Immutable input bundle for one pipeline run.

    The bit array is copied and marked read-only so a job can cross a thread
    boundary by value. Bit contents are validated by the pipeline, which reports
    malformed input as a Failure rather than raising.
    """

    bits: np.ndarray
    ofdm_params: OFDMParameters
    channel_params: ChannelParameters
    agents: Tuple[Agent, ...] = ()
    transmitter_id: Optional[str] = None
    request_id: Optional[int] = None

    def __post_init__(self):
        bits = np.array(self.bits, copy=True).reshape(-1)
        bits.setflags(write=False)
        object.__setattr__(self, "bits", bits)
        object.__setattr__(self, "agents", tuple(self.agents))

    @property
    def transmitter(self) -> Optional[Agent]:
        """The agent originating this transmission, if it is one of ``agents``."""
        if self.transmitter_id is None:
            return None
        for agent in self.agents:
            if agent.id == self.transmitter_id:
                return agent
        return None

    @property
    def interferers(self) -> Tuple[Agent, ...]:
        """Every other agent currently transmitting."""
        return tuple(
            agent
            for agent in self.agents
            if agent.id != self.transmitter_id and agent.is_transmitting
        )


@dataclass(frozen=True)
class SimulationSettings:
    """Fixed constants of the simulation core, loaded once from configuration.

    Attributes:
        symbol_duration_s: Duration used to turn a Doppler offset into a phase
        delay_sample_rate: Samples per second used to turn tap delays into sample offsets
        platform_reflection_delay: Echo delay in samples for stationary transmitters
        platform_reflection_gain: Echo gain for stationary transmitters
        pilot_divisor: Pilot spacing is ``num_subcarriers // pilot_divisor``
        avoidance_half_width: Bins withheld on each side of the spectral center
        avoidance_threshold: Interference level above which bins are withheld
        cp_margin_samples: Margin added to the multipath spread for the cyclic prefix
        decision_rule: ``"dominant_axis"`` or ``"nearest"``
        min_channel_gain: Squared channel magnitude below which equalization outputs zero
        repetition_factor: Odd bit repetition factor (1 disables coding)
    """

    symbol_duration_s: float = 0.001
    delay_sample_rate: float = 1000.0
    platform_reflection_delay: int = 5
    platform_reflection_gain: float = 0.3
    pilot_divisor: int = 20
    avoidance_half_width: int = 10
    avoidance_threshold: float = 0.5
    cp_margin_samples: int = 10
    decision_rule: str = "dominant_axis"
    min_channel_gain: float = 0.01
    repetition_factor: int = 1

    def __post_init__(self):
        from .validation import ConfigValidator

        ConfigValidator.validate_simulation_settings(self)


@dataclass
class MetricsRecord:
    """Quality metrics of one transmission.

    The link-layer figures (frame error rate, jitter, packet loss) are first-order
    approximations derived from the bit and symbol error rates and the Doppler shift.
    """

    bit_errors: int
    bit_error_rate: float
    symbol_error_rate: float
    papr_db: float
    channel_capacity: float
    throughput_bps: float
    processing_duration_ms: float
    snr_effective_db: float
    spectral_efficiency: float
    doppler_impact: float
    link_margin_db: float
    signal_to_interference_db: float
    interference_level: float
    pilot_overhead: float
    frame_error_rate: float
    jitter_ms: float
    packet_loss_percent: float
    mobility_penalty: float
    multipath_delay_s: float
    modulation: ModulationScheme
    channel_quality: str


@dataclass
class WaveformProfile:
    """Headline figures of one waveform in a scheme comparison."""

    name: str
    throughput_bps: float
    doppler_tolerance: float
    bit_error_rate: float
    complexity: str


@dataclass
class SchemeComparison:
    """Measured OFDM figures against the projected enhanced waveform."""

    baseline: WaveformProfile
    enhanced: WaveformProfile
    throughput_gain_percent: float
    ber_improvement_percent: float
    doppler_resilience_percent: float


@dataclass(eq=False)
class TransmissionResult:
    """Output bundle of a successful pipeline run.

    Attributes:
        time_domain_samples: Transmitted samples including cyclic prefixes
        frequency_domain_samples: Mapped subcarrier grid [ofdm_symbols x fft_size]
        received_samples: Channel output
        decoded_bits: Bits recovered by the receiver
        channel_estimate: Estimated channel response [ofdm_symbols x fft_size]
        equalized_symbols: Equalized data symbols in stream order
        metrics: Quality metrics
        comparison: Projection against the enhanced waveform
        modulation: Scheme used for this job
        cyclic_prefix_length: Prefix length actually used per OFDM symbol
        num_ofdm_symbols: Number of OFDM symbols in the frame
        processing_duration_ms: Wall-clock duration of the run
        request_id: Identifier of the originating request, if tagged
    """

    time_domain_samples: np.ndarray
    frequency_domain_samples: np.ndarray
    received_samples: np.ndarray
    decoded_bits: np.ndarray
    channel_estimate: np.ndarray
    equalized_symbols: np.ndarray
    metrics: MetricsRecord
    comparison: SchemeComparison
    modulation: ModulationScheme
    cyclic_prefix_length: int
    num_ofdm_symbols: int
    processing_duration_ms: float
    request_id: Optional[int] = None

    @property
    def success(self) -> bool:
        return True


@dataclass
class Failure:
    """Structured failure returned instead of a result."""

    reason: str
    processing_duration_ms: float
    category: str = "system_error"
    error_id: Optional[str] = None
    request_id: Optional[int] = None

    @property
    def success(self) -> bool:
        return False


@dataclass
class QualitySummary:
    """Lightweight channel assessment used for periodic status display."""

    overall_quality: str
    doppler_severity: str
    interference_level: float
    recommended_modulation: ModulationScheme
    throughput_estimate_mbps: float
    metadata: dict = field(default_factory=dict)


TransmissionOutcome = Union[TransmissionResult, Failure]
