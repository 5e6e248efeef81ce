#!/usr/bin/env python3
"""
Quick start demonstration of the OFDM Link Simulator.

This example shows the simplest way to get started with the system,
sending a text message over the simulated link in a few lines of code.

Run with: uv run python examples/quick_start_demo.py
"""

from ofdm_link_simulator import (
    ChannelParameters,
    OFDMLinkSimulator,
    OFDMParameters,
    bits_to_text,
    quick_transmit,
)


def quick_start_example():
    """Demonstrate the quickest way to use the system."""
    print("🚀 OFDM Link Simulator - Quick Start")
    print("=" * 50)

    # Method 1: Use the convenience function (simplest)
    print("\n1️⃣ Using the convenience function:")

    outcome = quick_transmit("Hello, OFDM!", snr_db=25.0)
    if outcome.success:
        print(f"✓ Decoded message: {bits_to_text(outcome.decoded_bits)!r}")
        print(f"✓ Modulation: {outcome.modulation.value}")
        print(f"✓ Bit error rate: {outcome.metrics.bit_error_rate:.4f}")
    else:
        print(f"✗ Transmission failed: {outcome.reason}")

    # Method 2: Use main interface (more control)
    print("\n2️⃣ Using main interface:")

    with OFDMLinkSimulator() as simulator:
        ofdm = OFDMParameters(fft_size=64, num_subcarriers=64, modulation="bpsk")

        for snr_db in (30.0, 10.0, 3.0):
            outcome = simulator.transmit(
                "link budget", ofdm_params=ofdm, channel_params=ChannelParameters(snr_db=snr_db)
            )
            print(
                f"✓ SNR {snr_db:5.1f} dB: BER={outcome.metrics.bit_error_rate:.4f}, "
                f"quality={outcome.metrics.channel_quality}, "
                f"text={bits_to_text(outcome.decoded_bits)!r}"
            )

        summary = simulator.analyze_channel(ChannelParameters(snr_db=22.0, doppler_shift_hz=150.0))
        print(
            f"✓ Channel analysis: {summary.overall_quality}, Doppler {summary.doppler_severity}, "
            f"recommended {summary.recommended_modulation.value}"
        )

    print("\n✅ Quick start completed! The system is working correctly.")
    print("\nNext steps:")
    print("• Check examples/main_interface_demo.py for comprehensive features")
    print("• Check examples/orchestrator_demo.py for background jobs")
    print("• Modify config.toml to customize parameters")


if __name__ == "__main__":
    quick_start_example()
