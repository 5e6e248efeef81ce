"""
End-to-end transmission pipeline.

``TransmissionPipeline.run_transmission`` runs one job through coding,
modulation, framing, the channel, the receiver and the metrics engine. It is a
pure synchronous computation: it keeps no state between jobs and never raises,
returning either a TransmissionResult or a structured Failure.
"""

import logging
import time
from typing import Callable, Optional, Sequence

import numpy as np

from .channel import ChannelSimulator, InterferenceContext, RandomSource
from .coding import repetition_decode, repetition_encode
from .error_handling import ErrorHandler, create_error_context
from .frame_builder import FrameBuilder
from .metrics import MetricsEngine, analyze_channel_quality
from .models import (
    Agent,
    ChannelParameters,
    Failure,
    ModulationScheme,
    QualitySummary,
    SimulationSettings,
    TransmissionJob,
    TransmissionOutcome,
    TransmissionResult,
)
from .modulation import modulate, select_modulation
from .receiver import Receiver
from .validation import ConfigValidator

logger = logging.getLogger(__name__)

STAGES = (
    "validation",
    "channel_coding",
    "modulation_selection",
    "modulation",
    "framing",
    "channel",
    "receiver",
    "metrics",
)

ProgressCallback = Callable[[str, float], None]


class TransmissionPipeline:
    """Runs transmission jobs through the simulated transceiver.

    The pipeline holds only immutable settings and its stage components, so one
    instance can serve any number of jobs.
    """

    def __init__(
        self,
        settings: Optional[SimulationSettings] = None,
        random_source: Optional[RandomSource] = None,
        error_handler: Optional[ErrorHandler] = None,
        log_stage_timing: bool = False,
    ):
        """Initialize the pipeline.

        Args:
            settings: Core constants (defaults if None)
            random_source: Uniform source for channel noise (unseeded if None)
            error_handler: Handler recording failures (creates new if None)
            log_stage_timing: Whether to log the duration of every stage
        """
        self.settings = settings or SimulationSettings()
        self.log_stage_timing = log_stage_timing
        self.frame_builder = FrameBuilder(self.settings)
        self.channel_simulator = ChannelSimulator(self.settings, random_source)
        self.receiver = Receiver(self.settings)
        self.metrics_engine = MetricsEngine()
        self._error_handler = error_handler or ErrorHandler()

        logger.info(
            f"TransmissionPipeline initialized: decision_rule={self.settings.decision_rule}, "
            f"repetition_factor={self.settings.repetition_factor}"
        )

    @property
    def error_handler(self) -> ErrorHandler:
        return self._error_handler

    @staticmethod
    def select_scheme(job: TransmissionJob) -> ModulationScheme:
        """Forced scheme if configured, otherwise adaptive selection from the channel."""
        if job.ofdm_params.modulation is not None:
            return job.ofdm_params.modulation
        channel = job.channel_params
        return select_modulation(channel.snr_db, channel.doppler_shift_hz)

    def run_transmission(
        self, job: TransmissionJob, progress_callback: Optional[ProgressCallback] = None
    ) -> TransmissionOutcome:
        """Run one job through the full pipeline.

        Args:
            job: Transmission job
            progress_callback: Called with (stage name, completed fraction) after each stage

        Returns:
            TransmissionResult on success, Failure otherwise
        """
        start_time = time.perf_counter()
        stage = STAGES[0]
        stage_start = [start_time]

        def completed(name: str) -> None:
            if self.log_stage_timing:
                now = time.perf_counter()
                logger.info(f"Stage {name}: {(now - stage_start[0]) * 1000.0:.3f}ms")
                stage_start[0] = now
            if progress_callback is not None:
                progress_callback(name, (STAGES.index(name) + 1) / len(STAGES))

        try:
            bits = ConfigValidator.validate_transmission_job(job)
            completed(stage)

            stage = "channel_coding"
            factor = self.settings.repetition_factor
            coded = repetition_encode(bits, factor)
            completed(stage)

            stage = "modulation_selection"
            scheme = self.select_scheme(job)
            completed(stage)

            stage = "modulation"
            symbols = modulate(coded, scheme)
            completed(stage)

            stage = "framing"
            channel = job.channel_params
            # Avoidance considers every agent on air, the transmitter included
            frame = self.frame_builder.build_frame(
                symbols, job.ofdm_params, job.agents, channel.multipath
            )
            completed(stage)

            stage = "channel"
            transmitter = job.transmitter
            if job.transmitter_id is not None and transmitter is None:
                logger.warning(
                    f"Transmitter '{job.transmitter_id}' is not among the agents, "
                    f"mobility effects are not applied"
                )
            context = InterferenceContext(
                transmitter_kind=transmitter.kind if transmitter else None,
                interferers=job.interferers,
            )
            received = self.channel_simulator.apply_channel(frame.samples, channel, context)
            completed(stage)

            stage = "receiver"
            output = self.receiver.receive(received, frame.layout, scheme, num_bits=len(coded))
            decoded = repetition_decode(output.decoded_bits, factor)
            completed(stage)

            stage = "metrics"
            duration_ms = (time.perf_counter() - start_time) * 1000.0
            metrics = self.metrics_engine.compute_metrics(
                bits,
                decoded,
                duration_ms,
                channel,
                transmitted_samples=frame.samples,
                agents=job.agents,
                modulation=scheme,
                pilot_overhead=frame.layout.pilot_overhead,
            )
            comparison = self.metrics_engine.compare_schemes(metrics)
            completed(stage)

        except Exception as error:
            duration_ms = (time.perf_counter() - start_time) * 1000.0
            request_id = getattr(job, "request_id", None)
            context = create_error_context(
                "run_transmission", "TransmissionPipeline", stage=stage, request_id=request_id
            )
            report = self._error_handler.handle_error(error, context)
            return Failure(
                reason=f"{stage} failed: {error}",
                processing_duration_ms=duration_ms,
                category=report.category.value,
                error_id=report.error_id,
                request_id=request_id,
            )

        logger.info(
            f"Transmission complete: {len(bits)} bits, {scheme.value}, "
            f"BER={metrics.bit_error_rate:.4g}, {duration_ms:.1f}ms"
        )

        return TransmissionResult(
            time_domain_samples=frame.samples,
            frequency_domain_samples=frame.grid,
            received_samples=received,
            decoded_bits=np.asarray(decoded, dtype=np.uint8),
            channel_estimate=output.channel_estimate,
            equalized_symbols=output.equalized_symbols,
            metrics=metrics,
            comparison=comparison,
            modulation=scheme,
            cyclic_prefix_length=frame.cyclic_prefix_length,
            num_ofdm_symbols=frame.layout.num_ofdm_symbols,
            processing_duration_ms=duration_ms,
            request_id=job.request_id,
        )

    def analyze_channel_quality(
        self, channel: ChannelParameters, agents: Sequence[Agent] = ()
    ) -> QualitySummary:
        """Stage-skipping channel assessment for periodic status display."""
        return analyze_channel_quality(channel, agents)
