"""
Synthetic wireless channel: Doppler rotation, multipath, platform reflection,
additive noise and co-channel interference applied to a time-domain frame.

Noise is drawn from an injectable uniform source so tests can drive the channel
deterministically without changing its numeric behavior.
"""

import logging
import math
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np

from .models import Agent, AgentKind, ChannelParameters, SimulationSettings

logger = logging.getLogger(__name__)


class RandomSource(ABC):
    """Source of uniform floats in [0, 1)."""

    @abstractmethod
    def next(self) -> float:
        """Return the next uniform float in [0, 1)."""

    def draw(self, count: int) -> np.ndarray:
        """Return ``count`` consecutive values as an array."""
        return np.fromiter((self.next() for _ in range(count)), dtype=np.float64, count=count)


class UniformSource(RandomSource):
    """NumPy-backed uniform source; unseeded unless a seed is given."""

    def __init__(self, seed: Optional[int] = None):
        self._rng = np.random.default_rng(seed)

    def next(self) -> float:
        return float(self._rng.random())

    def draw(self, count: int) -> np.ndarray:
        return self._rng.random(count)


@dataclass(frozen=True)
class InterferenceContext:
    """What the channel needs to know about the parties on air.

    Attributes:
        transmitter_kind: Kind of the transmitting agent, None if unknown
        interferers: Other agents currently transmitting
    """

    transmitter_kind: Optional[AgentKind] = None
    interferers: Tuple[Agent, ...] = ()


class ChannelSimulator:
    """Applies channel impairments to a time-domain frame.

    Mobile transmitters see Doppler rotation and the configured multipath taps;
    stationary transmitters see a single fixed platform reflection instead.
    Every transmission gets additive noise and interference from other agents.
    """

    def __init__(
        self,
        settings: Optional[SimulationSettings] = None,
        random_source: Optional[RandomSource] = None,
    ):
        """Initialize channel simulator.

        Args:
            settings: Core constants (defaults if None)
            random_source: Uniform source for noise (unseeded if None)
        """
        self.settings = settings or SimulationSettings()
        self.random_source = random_source or UniformSource()

    def _uniform_noise(self, length: int, scale: float) -> np.ndarray:
        """Zero-mean uniform complex noise, ``scale`` wide on each axis."""
        draws = self.random_source.draw(2 * length).reshape(length, 2)
        return ((draws[:, 0] - 0.5) + 1j * (draws[:, 1] - 0.5)) * scale

    def doppler_phase(self, doppler_shift_hz: float) -> float:
        """Constant phase rotation applied to a whole frame."""
        return 2.0 * math.pi * doppler_shift_hz * self.settings.symbol_duration_s

    def apply_doppler(self, samples: np.ndarray, doppler_shift_hz: float) -> np.ndarray:
        """Rotate every sample by the same Doppler phase."""
        return samples * np.exp(1j * self.doppler_phase(doppler_shift_hz))

    def delay_in_samples(self, delay_seconds: float) -> int:
        return int(math.floor(delay_seconds * self.settings.delay_sample_rate))

    @staticmethod
    def add_echo(
        processed: np.ndarray, original: np.ndarray, delay: int, gain: float
    ) -> np.ndarray:
        """Add ``gain * original[i - delay]`` into ``processed[i]`` for every valid i."""
        if 0 <= delay < len(original):
            processed[delay:] += gain * original[: len(original) - delay]
        return processed

    def apply_multipath(
        self, processed: np.ndarray, original: np.ndarray, channel: ChannelParameters
    ) -> np.ndarray:
        """Superpose one delayed copy of the original signal per tap."""
        for tap in channel.multipath:
            self.add_echo(
                processed, original, self.delay_in_samples(tap.delay_seconds), tap.amplitude
            )
        return processed

    def noise_power(self, snr_db: float) -> float:
        return 10.0 ** (-snr_db / 10.0)

    def apply_channel(
        self,
        frame: np.ndarray,
        channel: ChannelParameters,
        context: Optional[InterferenceContext] = None,
    ) -> np.ndarray:
        """Pass a time-domain frame through the channel.

        Args:
            frame: Transmitted samples
            channel: Channel parameters
            context: Transmitter kind and active interferers

        Returns:
            Received samples, same length as ``frame``
        """
        context = context or InterferenceContext()
        original = np.asarray(frame, dtype=np.complex128).reshape(-1)
        processed = original.copy()
        length = len(processed)

        is_mobile = context.transmitter_kind == AgentKind.MOBILE
        is_stationary = context.transmitter_kind == AgentKind.STATIONARY

        # Doppler must come before multipath and noise
        if is_mobile and abs(channel.doppler_shift_hz) > 1:
            processed = self.apply_doppler(processed, channel.doppler_shift_hz)

        if is_mobile and channel.multipath:
            processed = self.apply_multipath(processed, original, channel)

        if is_stationary:
            processed = self.add_echo(
                processed,
                original,
                self.settings.platform_reflection_delay,
                self.settings.platform_reflection_gain,
            )

        processed = processed + self._uniform_noise(
            length, math.sqrt(self.noise_power(channel.snr_db))
        )

        for interferer in context.interferers:
            if not interferer.is_transmitting:
                continue
            level = interferer.interference_level * interferer.distance_factor
            processed = processed + self._uniform_noise(length, level)

        logger.debug(
            f"Channel applied: {length} samples, snr={channel.snr_db}dB, "
            f"doppler={channel.doppler_shift_hz}Hz, transmitter={context.transmitter_kind}, "
            f"{len(context.interferers)} interferer(s)"
        )

        return processed
