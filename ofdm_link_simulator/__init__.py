"""
OFDM Link Simulator Package

Simulates an OFDM wireless link end to end: adaptive modulation, pilot-aided
framing, a synthetic channel with Doppler, multipath and interference, receiver
equalization and link quality metrics, driven by a non-blocking job orchestrator.
"""

from .channel import ChannelSimulator, InterferenceContext, RandomSource, UniformSource
from .coding import repetition_decode, repetition_encode
from .config_manager import ConfigurationError, ConfigurationManager, get_config
from .error_handling import ErrorHandler, OFDMError, SchedulingError, SimulationError
from .frame_builder import Frame, FrameBuilder, FrameLayout
from .main import OFDMLinkSimulator, bits_to_text, create_simulator, quick_transmit, text_to_bits
from .metrics import MetricsEngine, analyze_channel_quality
from .models import (
    Agent,
    AgentKind,
    ChannelParameters,
    Failure,
    MetricsRecord,
    ModulationScheme,
    MovementState,
    MultipathTap,
    OFDMParameters,
    QualitySummary,
    SchemeComparison,
    SimulationSettings,
    TransmissionJob,
    TransmissionResult,
    WaveformProfile,
)
from .modulation import demodulate, demodulate_hard, modulate, select_modulation
from .orchestrator import JobOrchestrator, JobTicket
from .pipeline import TransmissionPipeline
from .receiver import Receiver
from .result_export import ResultExporter, ResultVisualizer
from .transform import forward_transform, inverse_transform
from .validation import ConfigValidator, ValidationError

__version__ = "0.1.0"
__all__ = [
    # Core data models
    "ModulationScheme",
    "AgentKind",
    "MovementState",
    "OFDMParameters",
    "MultipathTap",
    "ChannelParameters",
    "Agent",
    "TransmissionJob",
    "SimulationSettings",
    "MetricsRecord",
    "WaveformProfile",
    "SchemeComparison",
    "TransmissionResult",
    "Failure",
    "QualitySummary",
    # Validation, configuration and errors
    "ConfigValidator",
    "ValidationError",
    "ConfigurationManager",
    "ConfigurationError",
    "get_config",
    "ErrorHandler",
    "OFDMError",
    "SimulationError",
    "SchedulingError",
    # Signal processing
    "forward_transform",
    "inverse_transform",
    "modulate",
    "demodulate",
    "demodulate_hard",
    "select_modulation",
    "repetition_encode",
    "repetition_decode",
    "FrameBuilder",
    "FrameLayout",
    "Frame",
    "ChannelSimulator",
    "InterferenceContext",
    "RandomSource",
    "UniformSource",
    "Receiver",
    "MetricsEngine",
    "analyze_channel_quality",
    # Pipeline and scheduling
    "TransmissionPipeline",
    "JobOrchestrator",
    "JobTicket",
    # Export and visualization
    "ResultExporter",
    "ResultVisualizer",
    # Main interface (primary API)
    "OFDMLinkSimulator",
    "create_simulator",
    "quick_transmit",
    "text_to_bits",
    "bits_to_text",
]
