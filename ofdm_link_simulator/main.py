"""
Main interface and high-level API for the OFDM link simulator.

This module wires configuration, the transmission pipeline, the job
orchestrator and result export into a single entry point, and offers
convenience helpers for sending text messages over the simulated link.
"""

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Union

import numpy as np

from .channel import RandomSource
from .config_manager import get_config
from .error_handling import ErrorHandler, create_error_context, get_memory_info, get_system_info
from .models import (
    Agent,
    ChannelParameters,
    OFDMParameters,
    QualitySummary,
    TransmissionJob,
    TransmissionOutcome,
    TransmissionResult,
)
from .orchestrator import JobOrchestrator
from .pipeline import TransmissionPipeline
from .result_export import ResultExporter, ResultVisualizer

logger = logging.getLogger(__name__)

PACKAGE_LOGGER = "ofdm_link_simulator"


def text_to_bits(text: str) -> np.ndarray:
    """UTF-8 encode ``text`` into bits, most significant bit first."""
    return np.unpackbits(np.frombuffer(text.encode("utf-8"), dtype=np.uint8))


def bits_to_text(bits) -> str:
    """Decode bits produced by ``text_to_bits``; trailing partial bytes are dropped."""
    bits = np.asarray(bits, dtype=np.uint8).reshape(-1)
    usable = len(bits) - len(bits) % 8
    return np.packbits(bits[:usable]).tobytes().decode("utf-8", errors="replace")


class OFDMLinkSimulator:
    """Main interface of the OFDM link simulator.

    Example:
        >>> with OFDMLinkSimulator() as simulator:
        ...     outcome = simulator.transmit("hello")
        ...     print(bits_to_text(outcome.decoded_bits))
    """

    def __init__(
        self,
        config_file: Optional[str] = None,
        ofdm_params: Optional[OFDMParameters] = None,
        channel_params: Optional[ChannelParameters] = None,
        random_source: Optional[RandomSource] = None,
        create_default_config: bool = True,
    ):
        """Initialize the simulator.

        Args:
            config_file: Path to configuration file (uses config.toml if None)
            ofdm_params: Default waveform parameters (loads from config if None)
            channel_params: Default channel parameters (loads from config if None)
            random_source: Uniform source for channel noise (unseeded if None)
            create_default_config: Create default config file if it doesn't exist

        Raises:
            RuntimeError: If system initialization fails
        """
        self._error_handler = ErrorHandler()
        self._orchestrators: List[JobOrchestrator] = []

        try:
            self.config_manager = get_config(config_file, create_default_config)

            logging_config = self.config_manager.get_logging_config()
            logging.getLogger(PACKAGE_LOGGER).setLevel(logging_config["level"].upper())

            self.ofdm_params = ofdm_params or self.config_manager.create_ofdm_parameters_object()
            self.channel_params = (
                channel_params or self.config_manager.create_channel_parameters_object()
            )
            self.settings = self.config_manager.create_simulation_settings_object()

            self.pipeline = TransmissionPipeline(
                self.settings,
                random_source=random_source,
                error_handler=self._error_handler,
                log_stage_timing=logging_config["log_stage_timing"],
            )

            self._last_outcome: Optional[TransmissionOutcome] = None

            logger.info(
                f"OFDMLinkSimulator initialized: fft_size={self.ofdm_params.fft_size}, "
                f"subcarriers={self.ofdm_params.num_subcarriers}, "
                f"modulation={'auto' if self.ofdm_params.is_adaptive else self.ofdm_params.modulation.value}"
            )

        except Exception as e:
            context = create_error_context("system_initialization", "OFDMLinkSimulator")
            self._error_handler.handle_error(e, context)
            raise RuntimeError(f"Failed to initialize OFDM link simulator: {e}")

    @property
    def error_handler(self) -> ErrorHandler:
        return self._error_handler

    @property
    def last_outcome(self) -> Optional[TransmissionOutcome]:
        return self._last_outcome

    def build_job(
        self,
        data: Union[str, Sequence[int], np.ndarray],
        agents: Sequence[Agent] = (),
        transmitter_id: Optional[str] = None,
        ofdm_params: Optional[OFDMParameters] = None,
        channel_params: Optional[ChannelParameters] = None,
    ) -> TransmissionJob:
        """Assemble a job from a message or bit sequence and the simulator defaults."""
        bits = text_to_bits(data) if isinstance(data, str) else np.asarray(data)
        return TransmissionJob(
            bits=bits,
            ofdm_params=ofdm_params or self.ofdm_params,
            channel_params=channel_params or self.channel_params,
            agents=tuple(agents),
            transmitter_id=transmitter_id,
        )

    def transmit(
        self,
        data: Union[str, Sequence[int], np.ndarray],
        agents: Sequence[Agent] = (),
        transmitter_id: Optional[str] = None,
        ofdm_params: Optional[OFDMParameters] = None,
        channel_params: Optional[ChannelParameters] = None,
    ) -> TransmissionOutcome:
        """Run one transmission synchronously.

        Args:
            data: Text message (sent as UTF-8) or bit sequence
            agents: Agents sharing the medium
            transmitter_id: Id of the transmitting agent among ``agents``
            ofdm_params: Waveform parameters (simulator default if None)
            channel_params: Channel parameters (simulator default if None)

        Returns:
            TransmissionResult or Failure
        """
        job = self.build_job(data, agents, transmitter_id, ofdm_params, channel_params)
        self._last_outcome = self.pipeline.run_transmission(job)
        return self._last_outcome

    def analyze_channel(
        self,
        channel_params: Optional[ChannelParameters] = None,
        agents: Sequence[Agent] = (),
    ) -> QualitySummary:
        """Assess channel quality without transmitting."""
        return self.pipeline.analyze_channel_quality(channel_params or self.channel_params, agents)

    def create_orchestrator(self, **kwargs) -> JobOrchestrator:
        """Create a background orchestrator using the configured scheduler settings.

        Keyword arguments override the configured values and are passed on to
        ``JobOrchestrator``. Orchestrators are shut down with the simulator.
        """
        options: Dict[str, Any] = dict(self.config_manager.get_scheduler_config())
        options.update(kwargs)

        orchestrator = JobOrchestrator(self.pipeline, **options)
        self._orchestrators.append(orchestrator)
        return orchestrator

    def export_result(
        self,
        result: TransmissionResult,
        filename: str,
        format: str = "numpy",
        output_dir: Optional[Union[str, Path]] = None,
        include_visualization: bool = False,
    ) -> List[Path]:
        """Export a result and optionally its plot report.

        Returns:
            List of paths to exported files
        """
        exporter = ResultExporter(output_dir)
        exported_files = [exporter.export_result(result, filename, format)]

        if include_visualization:
            report_dir = exporter.output_dir / f"{filename}_report"
            exported_files.append(ResultVisualizer().create_result_report(result, report_dir))

        logger.info(f"Exported result to {len(exported_files)} files")
        return exported_files

    def get_system_info(self) -> Dict[str, Any]:
        """Get configuration and runtime information."""
        return {
            "ofdm_params": {
                "fft_size": self.ofdm_params.fft_size,
                "num_subcarriers": self.ofdm_params.num_subcarriers,
                "cyclic_prefix_length": self.ofdm_params.cyclic_prefix_length,
                "modulation": (
                    "auto" if self.ofdm_params.is_adaptive else self.ofdm_params.modulation.value
                ),
            },
            "configuration": self.config_manager.to_dict(),
            "system": get_system_info(),
            "memory": get_memory_info(),
            "errors": self._error_handler.get_error_statistics(),
            "active_orchestrators": len(self._orchestrators),
        }

    def shutdown(self) -> None:
        """Shut down every orchestrator created by this simulator."""
        for orchestrator in self._orchestrators:
            orchestrator.shutdown()
        self._orchestrators.clear()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.shutdown()

    def __repr__(self) -> str:
        return (
            f"OFDMLinkSimulator(fft_size={self.ofdm_params.fft_size}, "
            f"snr={self.channel_params.snr_db}dB, "
            f"config='{self.config_manager.config_file}')"
        )


def create_simulator(config_file: Optional[str] = None, **kwargs) -> OFDMLinkSimulator:
    """Create an OFDMLinkSimulator with default settings.

    Args:
        config_file: Path to configuration file
        **kwargs: Additional arguments passed to OFDMLinkSimulator
    """
    return OFDMLinkSimulator(config_file=config_file, **kwargs)


def quick_transmit(
    message: str, snr_db: float = 20.0, config_file: Optional[str] = None
) -> TransmissionOutcome:
    """Send a text message once over a single-path channel at ``snr_db``."""
    with create_simulator(config_file) as simulator:
        return simulator.transmit(message, channel_params=ChannelParameters(snr_db=snr_db))
