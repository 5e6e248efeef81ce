"""
Input validation for OFDM link simulator parameters.

This module validates every configuration value before it reaches the
simulation core, so malformed input is reported as a structured failure with a
readable reason instead of surfacing as an arithmetic error mid-pipeline.
"""

import math
from typing import TYPE_CHECKING

import numpy as np

from .error_handling import ErrorCategory, ErrorSeverity, OFDMError

if TYPE_CHECKING:
    from .models import (
        Agent,
        ChannelParameters,
        MultipathTap,
        OFDMParameters,
        SimulationSettings,
        TransmissionJob,
    )


class ValidationError(OFDMError):
    """Exception for malformed simulation input."""

    def __init__(self, message: str):
        super().__init__(message, ErrorCategory.VALIDATION_ERROR, ErrorSeverity.LOW)


def _is_integer(value) -> bool:
    return isinstance(value, (int, np.integer)) and not isinstance(value, bool)


def _is_number(value) -> bool:
    return isinstance(value, (int, float, np.integer, np.floating)) and not isinstance(value, bool)


class ConfigValidator:
    """Validator class for all simulation parameters."""

    MIN_FFT_SIZE = 2
    MAX_FFT_SIZE = 65536
    MIN_SUBCARRIERS = 1
    MAX_BANDWIDTH = 1e12  # Hz
    DECISION_RULES = ("dominant_axis", "nearest")

    @classmethod
    def validate_ofdm_parameters(cls, params: "OFDMParameters") -> None:
        """Validate OFDM waveform parameters.

        Args:
            params: OFDMParameters instance to validate

        Raises:
            ValidationError: If any parameter is invalid
        """
        from .models import ModulationScheme

        if not _is_integer(params.fft_size):
            raise ValidationError("fft_size must be an integer")
        if params.fft_size < cls.MIN_FFT_SIZE:
            raise ValidationError(f"fft_size must be >= {cls.MIN_FFT_SIZE}")
        if params.fft_size > cls.MAX_FFT_SIZE:
            raise ValidationError(f"fft_size must be <= {cls.MAX_FFT_SIZE}")

        if not _is_integer(params.num_subcarriers):
            raise ValidationError("num_subcarriers must be an integer")
        if params.num_subcarriers < cls.MIN_SUBCARRIERS:
            raise ValidationError(f"num_subcarriers must be >= {cls.MIN_SUBCARRIERS}")
        if params.num_subcarriers > params.fft_size:
            raise ValidationError(
                f"num_subcarriers ({params.num_subcarriers}) cannot exceed "
                f"fft_size ({params.fft_size})"
            )

        if not _is_integer(params.cyclic_prefix_length):
            raise ValidationError("cyclic_prefix_length must be an integer")
        if params.cyclic_prefix_length < 0:
            raise ValidationError("cyclic_prefix_length must be >= 0")

        if params.modulation is not None and not isinstance(params.modulation, ModulationScheme):
            raise ValidationError("modulation must be a ModulationScheme or None")

    @classmethod
    def validate_multipath_tap(cls, tap: "MultipathTap") -> None:
        """Validate a multipath tap.

        Raises:
            ValidationError: If delay or amplitude is invalid
        """
        if not _is_number(tap.delay_seconds) or not math.isfinite(tap.delay_seconds):
            raise ValidationError("multipath delay_seconds must be a finite number")
        if tap.delay_seconds < 0:
            raise ValidationError("multipath delay_seconds must be >= 0")
        if not _is_number(tap.amplitude) or not math.isfinite(tap.amplitude):
            raise ValidationError("multipath amplitude must be a finite number")

    @classmethod
    def validate_channel_parameters(cls, params: "ChannelParameters") -> None:
        """Validate channel parameters.

        Raises:
            ValidationError: If any parameter is invalid
        """
        from .models import MultipathTap

        if not _is_number(params.snr_db) or not math.isfinite(params.snr_db):
            raise ValidationError("snr_db must be a finite number")
        if not _is_number(params.doppler_shift_hz) or not math.isfinite(params.doppler_shift_hz):
            raise ValidationError("doppler_shift_hz must be a finite number")
        if not _is_number(params.bandwidth_hz):
            raise ValidationError("bandwidth_hz must be a number")
        if params.bandwidth_hz <= 0:
            raise ValidationError("bandwidth_hz must be positive")
        if params.bandwidth_hz > cls.MAX_BANDWIDTH:
            raise ValidationError(f"bandwidth_hz must be <= {cls.MAX_BANDWIDTH}")

        for i, tap in enumerate(params.multipath):
            if not isinstance(tap, MultipathTap):
                raise ValidationError(f"multipath entry {i} must be a MultipathTap")

    @classmethod
    def validate_agent(cls, agent: "Agent") -> None:
        """Validate an agent description.

        Raises:
            ValidationError: If any attribute is invalid
        """
        from .models import AgentKind, MovementState

        if not isinstance(agent.id, str) or not agent.id:
            raise ValidationError("agent id must be a non-empty string")
        if not isinstance(agent.kind, AgentKind):
            raise ValidationError(f"agent {agent.id}: kind must be an AgentKind")
        if not _is_number(agent.interference_level):
            raise ValidationError(f"agent {agent.id}: interference_level must be a number")
        if not 0.0 <= agent.interference_level <= 1.0:
            raise ValidationError(f"agent {agent.id}: interference_level must be in [0, 1]")
        if not _is_number(agent.distance_factor) or agent.distance_factor < 0:
            raise ValidationError(f"agent {agent.id}: distance_factor must be >= 0")

        if agent.velocity is not None:
            if agent.kind != AgentKind.MOBILE:
                raise ValidationError(f"agent {agent.id}: only mobile agents have a velocity")
            if len(agent.velocity) != 2:
                raise ValidationError(f"agent {agent.id}: velocity must be a 2-vector")

        if agent.movement_state is not None:
            if agent.kind != AgentKind.STATIONARY:
                raise ValidationError(
                    f"agent {agent.id}: only stationary agents have a movement_state"
                )
            if not isinstance(agent.movement_state, MovementState):
                raise ValidationError(f"agent {agent.id}: movement_state must be a MovementState")

    @classmethod
    def validate_simulation_settings(cls, settings: "SimulationSettings") -> None:
        """Validate simulation core constants.

        Raises:
            ValidationError: If any setting is invalid
        """
        if settings.symbol_duration_s <= 0:
            raise ValidationError("symbol_duration_s must be positive")
        if settings.delay_sample_rate <= 0:
            raise ValidationError("delay_sample_rate must be positive")
        if not _is_integer(settings.platform_reflection_delay) or (
            settings.platform_reflection_delay < 0
        ):
            raise ValidationError("platform_reflection_delay must be a non-negative integer")
        if not _is_integer(settings.pilot_divisor) or settings.pilot_divisor < 1:
            raise ValidationError("pilot_divisor must be a positive integer")
        if not _is_integer(settings.avoidance_half_width) or settings.avoidance_half_width < 0:
            raise ValidationError("avoidance_half_width must be a non-negative integer")
        if not 0.0 <= settings.avoidance_threshold <= 1.0:
            raise ValidationError("avoidance_threshold must be in [0, 1]")
        if not _is_integer(settings.cp_margin_samples) or settings.cp_margin_samples < 0:
            raise ValidationError("cp_margin_samples must be a non-negative integer")
        if settings.decision_rule not in cls.DECISION_RULES:
            raise ValidationError(f"decision_rule must be one of {cls.DECISION_RULES}")
        if settings.min_channel_gain < 0:
            raise ValidationError("min_channel_gain must be >= 0")
        if (
            not _is_integer(settings.repetition_factor)
            or settings.repetition_factor < 1
            or settings.repetition_factor % 2 == 0
        ):
            raise ValidationError("repetition_factor must be a positive odd integer")

    @classmethod
    def validate_bits(cls, bits: np.ndarray) -> np.ndarray:
        """Validate a bit sequence and return it as a uint8 array.

        Raises:
            ValidationError: If the sequence is empty or holds values other than 0/1
        """
        bits = np.asarray(bits)
        if bits.size == 0:
            raise ValidationError("input bits cannot be empty")
        if bits.dtype.kind not in "biu":
            raise ValidationError("input bits must be integers or booleans")
        if not np.all((bits == 0) | (bits == 1)):
            raise ValidationError("input bits must contain only 0 and 1")
        return bits.astype(np.uint8).reshape(-1)

    @classmethod
    def validate_transmission_job(cls, job: "TransmissionJob") -> np.ndarray:
        """Validate a complete job, returning its bits as a uint8 array.

        Raises:
            ValidationError: If the job is malformed
        """
        bits = cls.validate_bits(job.bits)
        cls.validate_ofdm_parameters(job.ofdm_params)
        cls.validate_channel_parameters(job.channel_params)

        seen = set()
        for agent in job.agents:
            cls.validate_agent(agent)
            if agent.id in seen:
                raise ValidationError(f"duplicate agent id '{agent.id}'")
            seen.add(agent.id)

        return bits
