"""
Configuration management using Dynaconf for centralized parameter handling.

Parameters are loaded from a TOML file (created with defaults when missing) and
can be overridden through ``OFDMSIM_``-prefixed environment variables. The
simulation core never reads configuration directly: it receives the frozen
objects built by the ``create_*_object`` factories.
"""

import logging
from pathlib import Path
from typing import Any, Dict, Optional

from dynaconf import Dynaconf

from .error_handling import ErrorCategory, ErrorSeverity, OFDMError

logger = logging.getLogger(__name__)

DEFAULT_CONFIG = """# OFDM Link Simulator Configuration
# All configurable parameters of the transmission simulation

[ofdm]
fft_size = 64
num_subcarriers = 64
cyclic_prefix_length = 16  # minimum; grows with the multipath spread
modulation = "auto"  # "auto" for adaptive selection, or bpsk/qpsk/16qam/64qam/256qam

[channel]
snr_db = 20.0
doppler_shift_hz = 0.0
bandwidth_hz = 20e6
symbol_duration_s = 0.001  # converts a Doppler offset into a phase rotation
delay_sample_rate = 1000.0  # converts tap delays into sample offsets
platform_reflection_delay = 5  # samples
platform_reflection_gain = 0.3

[framing]
pilot_divisor = 20  # pilot spacing = num_subcarriers // pilot_divisor
avoidance_half_width = 10  # bins withheld on each side of the center
avoidance_threshold = 0.5
cp_margin_samples = 10

[receiver]
decision_rule = "dominant_axis"  # "dominant_axis" or "nearest"
min_channel_gain = 0.01

[coding]
repetition_factor = 1  # odd; 1 disables coding

[scheduler]
cooldown_s = 2.0
analysis_interval_s = 1.0
max_analysis_agents = 10

[logging]
level = "INFO"  # DEBUG, INFO, WARNING, ERROR, CRITICAL
log_stage_timing = true
"""

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class ConfigurationError(OFDMError):
    """Exception raised for configuration-related errors."""

    def __init__(self, message: str):
        super().__init__(message, ErrorCategory.CONFIGURATION_ERROR, ErrorSeverity.HIGH)


class ConfigurationManager:
    """Centralized configuration manager using Dynaconf."""

    def __init__(self, config_file: Optional[str] = None, create_default: bool = True):
        """Initialize configuration manager.

        Args:
            config_file: Path to configuration file (defaults to config.toml)
            create_default: Whether to create default config if file doesn't exist
        """
        self.config_file = str(config_file or "config.toml")
        self.config_path = Path(self.config_file)

        if not self.config_path.exists() and create_default:
            self._create_default_config()

        # Top-level tables are settings sections, not Dynaconf environments
        try:
            self.settings = Dynaconf(
                settings_files=[self.config_file],
                load_dotenv=True,
                envvar_prefix="OFDMSIM",
            )
        except Exception as e:
            raise ConfigurationError(f"Failed to load configuration: {e}")

        self._validate_configuration()

        logger.info(f"Configuration loaded from {self.config_file}")

    def _create_default_config(self) -> None:
        self.config_path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.config_path, "w") as f:
            f.write(DEFAULT_CONFIG)

        logger.info(f"Created default configuration file: {self.config_file}")

    def _validate_configuration(self) -> None:
        """Validate configuration parameters, aggregating every problem found."""
        errors = []

        try:
            ofdm = self.get_ofdm_config()

            if ofdm["fft_size"] <= 0:
                errors.append("ofdm.fft_size must be positive")
            if ofdm["num_subcarriers"] <= 0:
                errors.append("ofdm.num_subcarriers must be positive")
            if ofdm["num_subcarriers"] > ofdm["fft_size"]:
                errors.append(
                    f"ofdm.num_subcarriers ({ofdm['num_subcarriers']}) cannot exceed "
                    f"ofdm.fft_size ({ofdm['fft_size']})"
                )
            if ofdm["cyclic_prefix_length"] < 0:
                errors.append("ofdm.cyclic_prefix_length must be non-negative")

        except Exception as e:
            errors.append(f"Error validating OFDM configuration: {e}")

        try:
            channel = self.get_channel_config()

            if channel["bandwidth_hz"] <= 0:
                errors.append("channel.bandwidth_hz must be positive")
            if channel["symbol_duration_s"] <= 0:
                errors.append("channel.symbol_duration_s must be positive")
            if channel["delay_sample_rate"] <= 0:
                errors.append("channel.delay_sample_rate must be positive")
            if channel["platform_reflection_delay"] < 0:
                errors.append("channel.platform_reflection_delay must be non-negative")

        except Exception as e:
            errors.append(f"Error validating channel configuration: {e}")

        try:
            framing = self.get_framing_config()

            if framing["pilot_divisor"] < 1:
                errors.append("framing.pilot_divisor must be at least 1")
            if not 0 <= framing["avoidance_threshold"] <= 1:
                errors.append("framing.avoidance_threshold must be between 0 and 1")

        except Exception as e:
            errors.append(f"Error validating framing configuration: {e}")

        try:
            receiver = self.get_receiver_config()

            if receiver["decision_rule"] not in ("dominant_axis", "nearest"):
                errors.append("receiver.decision_rule must be 'dominant_axis' or 'nearest'")

            factor = self.get_coding_config()["repetition_factor"]
            if factor < 1 or factor % 2 == 0:
                errors.append("coding.repetition_factor must be a positive odd integer")

        except Exception as e:
            errors.append(f"Error validating receiver configuration: {e}")

        try:
            scheduler = self.get_scheduler_config()

            if scheduler["cooldown_s"] < 0:
                errors.append("scheduler.cooldown_s must be non-negative")
            if scheduler["max_analysis_agents"] < 0:
                errors.append("scheduler.max_analysis_agents must be non-negative")

            if self.get_logging_config()["level"].upper() not in LOG_LEVELS:
                errors.append(f"logging.level must be one of {LOG_LEVELS}")

        except Exception as e:
            errors.append(f"Error validating scheduler configuration: {e}")

        if errors:
            error_msg = "Configuration validation failed:\n" + "\n".join(
                f"  - {error}" for error in errors
            )
            raise ConfigurationError(error_msg)

    def get_ofdm_config(self) -> Dict[str, Any]:
        """Get OFDM waveform configuration.

        Returns:
            Dictionary with OFDM configuration
        """
        return {
            "fft_size": int(self.settings.get("ofdm.fft_size", 64)),
            "num_subcarriers": int(self.settings.get("ofdm.num_subcarriers", 64)),
            "cyclic_prefix_length": int(self.settings.get("ofdm.cyclic_prefix_length", 16)),
            "modulation": str(self.settings.get("ofdm.modulation", "auto")),
        }

    def get_channel_config(self) -> Dict[str, Any]:
        """Get channel configuration.

        Returns:
            Dictionary with channel configuration
        """
        return {
            "snr_db": float(self.settings.get("channel.snr_db", 20.0)),
            "doppler_shift_hz": float(self.settings.get("channel.doppler_shift_hz", 0.0)),
            "bandwidth_hz": float(self.settings.get("channel.bandwidth_hz", 20e6)),
            "symbol_duration_s": float(self.settings.get("channel.symbol_duration_s", 0.001)),
            "delay_sample_rate": float(self.settings.get("channel.delay_sample_rate", 1000.0)),
            "platform_reflection_delay": int(
                self.settings.get("channel.platform_reflection_delay", 5)
            ),
            "platform_reflection_gain": float(
                self.settings.get("channel.platform_reflection_gain", 0.3)
            ),
        }

    def get_framing_config(self) -> Dict[str, Any]:
        return {
            "pilot_divisor": int(self.settings.get("framing.pilot_divisor", 20)),
            "avoidance_half_width": int(self.settings.get("framing.avoidance_half_width", 10)),
            "avoidance_threshold": float(self.settings.get("framing.avoidance_threshold", 0.5)),
            "cp_margin_samples": int(self.settings.get("framing.cp_margin_samples", 10)),
        }

    def get_receiver_config(self) -> Dict[str, Any]:
        return {
            "decision_rule": str(self.settings.get("receiver.decision_rule", "dominant_axis")),
            "min_channel_gain": float(self.settings.get("receiver.min_channel_gain", 0.01)),
        }

    def get_coding_config(self) -> Dict[str, Any]:
        return {"repetition_factor": int(self.settings.get("coding.repetition_factor", 1))}

    def get_scheduler_config(self) -> Dict[str, Any]:
        """Get job scheduling configuration.

        Returns:
            Dictionary with scheduler configuration
        """
        return {
            "cooldown_s": float(self.settings.get("scheduler.cooldown_s", 2.0)),
            "analysis_interval_s": float(self.settings.get("scheduler.analysis_interval_s", 1.0)),
            "max_analysis_agents": int(self.settings.get("scheduler.max_analysis_agents", 10)),
        }

    def get_logging_config(self) -> Dict[str, Any]:
        """Get logging configuration.

        Returns:
            Dictionary with logging configuration
        """
        return {
            "level": str(self.settings.get("logging.level", "INFO")),
            "log_stage_timing": bool(self.settings.get("logging.log_stage_timing", True)),
        }

    def get(self, key: str, default: Any = None) -> Any:
        """Get a configuration value by key.

        Args:
            key: Configuration key (supports dot notation, e.g., 'ofdm.fft_size')
            default: Default value if key is not found

        Returns:
            Configuration value
        """
        return self.settings.get(key, default)

    def set(self, key: str, value: Any) -> None:
        """Set a configuration value in memory (supports dot notation)."""
        self.settings.set(key, value)

    def reload(self) -> None:
        """Reload configuration from file."""
        try:
            self.settings.reload()
            self._validate_configuration()
            logger.info("Configuration reloaded successfully")
        except ConfigurationError:
            raise
        except Exception as e:
            raise ConfigurationError(f"Failed to reload configuration: {e}")

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary."""
        return {
            "ofdm": self.get_ofdm_config(),
            "channel": self.get_channel_config(),
            "framing": self.get_framing_config(),
            "receiver": self.get_receiver_config(),
            "coding": self.get_coding_config(),
            "scheduler": self.get_scheduler_config(),
            "logging": self.get_logging_config(),
        }

    def create_ofdm_parameters_object(self):
        """Create OFDMParameters object from configuration.

        Returns:
            OFDMParameters instance
        """
        from .models import OFDMParameters

        return OFDMParameters(**self.get_ofdm_config())

    def create_channel_parameters_object(self):
        """Create ChannelParameters object (single path) from configuration.

        Returns:
            ChannelParameters instance
        """
        from .models import ChannelParameters

        channel = self.get_channel_config()
        return ChannelParameters(
            snr_db=channel["snr_db"],
            doppler_shift_hz=channel["doppler_shift_hz"],
            bandwidth_hz=channel["bandwidth_hz"],
        )

    def create_simulation_settings_object(self):
        """Create the frozen SimulationSettings consumed by the simulation core.

        Returns:
            SimulationSettings instance
        """
        from .models import SimulationSettings

        channel = self.get_channel_config()
        return SimulationSettings(
            symbol_duration_s=channel["symbol_duration_s"],
            delay_sample_rate=channel["delay_sample_rate"],
            platform_reflection_delay=channel["platform_reflection_delay"],
            platform_reflection_gain=channel["platform_reflection_gain"],
            **self.get_framing_config(),
            **self.get_receiver_config(),
            **self.get_coding_config(),
        )

    def __repr__(self) -> str:
        return f"ConfigurationManager(config_file='{self.config_file}')"


# Global configuration instance
_global_config: Optional[ConfigurationManager] = None


def get_config(
    config_file: Optional[str] = None, create_default: bool = True
) -> ConfigurationManager:
    """Get global configuration instance.

    Args:
        config_file: Path to configuration file
        create_default: Whether to create default config if file doesn't exist

    Returns:
        ConfigurationManager instance
    """
    global _global_config

    if _global_config is None or config_file is not None:
        _global_config = ConfigurationManager(config_file, create_default)

    return _global_config


def reload_config() -> None:
    """Reload global configuration."""
    if _global_config is not None:
        _global_config.reload()


def reset_config() -> None:
    """Reset global configuration (force reload on next access)."""
    global _global_config
    _global_config = None
