#!/usr/bin/env python3
"""
Configuration Management Demo

This script demonstrates the centralized configuration management system
using Dynaconf and TOML files for the OFDM link simulator.
"""

import os
import tempfile
from pathlib import Path

from ofdm_link_simulator import (
    ConfigurationError,
    ConfigurationManager,
    TransmissionJob,
    TransmissionPipeline,
    text_to_bits,
)


def main():
    """Main demonstration function."""
    print("=" * 60)
    print("OFDM LINK SIMULATOR - CONFIGURATION MANAGEMENT DEMO")
    print("=" * 60)

    print("1. DEFAULT CONFIGURATION CREATION:")
    print("-" * 40)

    config_file = "config.toml"
    if not Path(config_file).exists():
        print(f"Creating default configuration file: {config_file}")
    else:
        print(f"Using existing configuration file: {config_file}")

    try:
        config_manager = ConfigurationManager(config_file)
        print(f"✓ Configuration loaded successfully from {config_file}")
    except ConfigurationError as e:
        print(f"✗ Configuration error: {e}")
        return

    print()

    print("2. CONFIGURATION SECTIONS:")
    print("-" * 40)

    for section_name, section_config in config_manager.to_dict().items():
        print(f"{section_name.title()} Configuration:")
        for key, value in section_config.items():
            print(f"  {key}: {value}")
        print()

    print("3. CONFIGURATION ACCESS METHODS:")
    print("-" * 40)

    print(f"Direct access - ofdm.fft_size: {config_manager.get('ofdm.fft_size')}")
    print(f"Access with default - custom.parameter: {config_manager.get('custom.parameter', 42)}")

    config_manager.set("scheduler.cooldown_s", 0.5)
    print(f"Set and get - scheduler.cooldown_s: {config_manager.get('scheduler.cooldown_s')}")
    print()

    print("4. ENVIRONMENT OVERRIDES:")
    print("-" * 40)

    os.environ["OFDMSIM_CHANNEL__SNR_DB"] = "12.0"
    try:
        overridden = ConfigurationManager(config_file)
        print(f"OFDMSIM_CHANNEL__SNR_DB=12.0 -> channel.snr_db: "
              f"{overridden.get_channel_config()['snr_db']}")
    finally:
        del os.environ["OFDMSIM_CHANNEL__SNR_DB"]
    print()

    print("5. CONFIGURATION VALIDATION:")
    print("-" * 40)

    with tempfile.TemporaryDirectory() as temp_dir:
        bad_file = Path(temp_dir) / "bad_config.toml"
        bad_file.write_text(
            "[ofdm]\nfft_size = 32\nnum_subcarriers = 64\n\n[coding]\nrepetition_factor = 2\n"
        )
        try:
            ConfigurationManager(str(bad_file), create_default=False)
        except ConfigurationError as e:
            print("✓ Invalid configuration rejected:")
            print(e)
    print()

    print("6. INTEGRATION WITH THE PIPELINE:")
    print("-" * 40)

    ofdm_params = config_manager.create_ofdm_parameters_object()
    channel_params = config_manager.create_channel_parameters_object()
    settings = config_manager.create_simulation_settings_object()

    print(f"OFDM parameters: {ofdm_params}")
    print(f"Channel parameters: {channel_params}")
    print(f"Simulation settings: decision_rule={settings.decision_rule}, "
          f"repetition_factor={settings.repetition_factor}")

    pipeline = TransmissionPipeline(settings)
    outcome = pipeline.run_transmission(
        TransmissionJob(text_to_bits("configured"), ofdm_params, channel_params)
    )
    if outcome.success:
        print(f"✓ Transmission with configured parameters: BER={outcome.metrics.bit_error_rate:.4f}")
    else:
        print(f"✗ Transmission failed: {outcome.reason}")

    print()
    print("=" * 60)
    print("CONFIGURATION DEMO COMPLETED")
    print("=" * 60)


if __name__ == "__main__":
    main()
