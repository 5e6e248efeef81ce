#!/usr/bin/env python3
"""
Comprehensive demonstration of the OFDM Link Simulator main interface.

This example showcases the key features of the high-level API, including:
- Text transmission over the simulated link
- Adaptive modulation across channel conditions
- Doppler, multipath and interfering agents
- Channel quality analysis and the OFDM/OTFS comparison
- Export functionality

Run with: uv run python examples/main_interface_demo.py
"""

import tempfile
from pathlib import Path

from ofdm_link_simulator import (
    Agent,
    ChannelParameters,
    MultipathTap,
    OFDMParameters,
    SimulationSettings,
    TransmissionJob,
    TransmissionPipeline,
    bits_to_text,
    create_simulator,
    text_to_bits,
)


def demo_basic_usage():
    """Demonstrate basic usage of the main interface."""
    print("=" * 60)
    print("BASIC USAGE DEMONSTRATION")
    print("=" * 60)

    with create_simulator() as simulator:
        print(f"✓ Created simulator: {simulator}")

        system_info = simulator.get_system_info()
        print(f"✓ FFT size: {system_info['ofdm_params']['fft_size']}")
        print(f"✓ Modulation: {system_info['ofdm_params']['modulation']}")
        print(f"✓ Process memory: {system_info['memory']['process_memory_mb']:.1f} MB")

        outcome = simulator.transmit("The quick brown fox")
        if outcome.success:
            print(f"✓ Received: {bits_to_text(outcome.decoded_bits)!r}")
            print(f"✓ OFDM symbols: {outcome.num_ofdm_symbols}, CP: {outcome.cyclic_prefix_length}")
        else:
            print(f"✗ {outcome.reason}")


def demo_adaptive_modulation():
    """Demonstrate adaptive modulation selection."""
    print("\n" + "=" * 60)
    print("ADAPTIVE MODULATION")
    print("=" * 60)

    pipeline = TransmissionPipeline(SimulationSettings(decision_rule="nearest"))
    ofdm = OFDMParameters(fft_size=64, num_subcarriers=64)

    for snr_db, doppler in [(35.0, 0.0), (28.0, 0.0), (22.0, 0.0), (22.0, 400.0), (10.0, 0.0)]:
        channel = ChannelParameters(snr_db=snr_db, doppler_shift_hz=doppler)
        job = TransmissionJob(text_to_bits("adaptive"), ofdm, channel)
        outcome = pipeline.run_transmission(job)
        print(
            f"✓ SNR {snr_db:4.1f} dB, Doppler {doppler:5.1f} Hz -> {outcome.modulation.value:>6}, "
            f"BER={outcome.metrics.bit_error_rate:.4f}, "
            f"spectral efficiency={outcome.metrics.spectral_efficiency:.0f} b/s/Hz"
        )


def demo_mobility_and_interference():
    """Demonstrate Doppler, multipath and interfering agents."""
    print("\n" + "=" * 60)
    print("MOBILITY AND INTERFERENCE")
    print("=" * 60)

    agents = [
        Agent("rover", "mobile", is_transmitting=True, velocity=(4.0, 3.0)),
        Agent("relay", "stationary", is_transmitting=True, interference_level=0.3),
        Agent("drone", "mobile", is_transmitting=True, interference_level=0.7),
        Agent("sensor", "stationary", movement_state="sitting", interference_level=0.9),
    ]
    channel = ChannelParameters(
        snr_db=30.0,
        doppler_shift_hz=80.0,
        multipath=[MultipathTap(0.002, 0.4), MultipathTap(0.005, 0.2)],
    )

    with create_simulator() as simulator:
        outcome = simulator.transmit(
            "moving target",
            agents=agents,
            transmitter_id="rover",
            ofdm_params=OFDMParameters(fft_size=64, num_subcarriers=64, modulation="bpsk"),
            channel_params=channel,
        )

    if not outcome.success:
        print(f"✗ {outcome.reason}")
        return

    metrics = outcome.metrics
    print(f"✓ Received: {bits_to_text(outcome.decoded_bits)!r}")
    print(f"✓ Cyclic prefix grown to {outcome.cyclic_prefix_length} samples")
    print(f"✓ Interference level: {metrics.interference_level:.1f}")
    print(f"✓ Effective SNR: {metrics.snr_effective_db:.1f} dB")
    print(f"✓ Doppler impact: {metrics.doppler_impact:.2f}")
    print(f"✓ Pilot overhead: {metrics.pilot_overhead:.1%}")


def demo_channel_analysis():
    """Demonstrate channel quality analysis and scheme comparison."""
    print("\n" + "=" * 60)
    print("CHANNEL ANALYSIS AND SCHEME COMPARISON")
    print("=" * 60)

    agents = [Agent(f"agent{i}", "mobile", is_transmitting=i % 2 == 0) for i in range(5)]

    with create_simulator() as simulator:
        summary = simulator.analyze_channel(
            ChannelParameters(snr_db=18.0, doppler_shift_hz=250.0), agents
        )
        print(f"✓ Quality: {summary.overall_quality}")
        print(f"✓ Doppler severity: {summary.doppler_severity}")
        print(f"✓ Interference: {summary.interference_level:.1f}")
        print(f"✓ Recommended modulation: {summary.recommended_modulation.value}")
        print(f"✓ Throughput estimate: {summary.throughput_estimate_mbps:.2f} Mbps")

        outcome = simulator.transmit(
            "comparison", channel_params=ChannelParameters(snr_db=25.0, doppler_shift_hz=300.0)
        )
        if outcome.success:
            comparison = outcome.comparison
            for profile in (comparison.baseline, comparison.enhanced):
                print(
                    f"  {profile.name:>4}: throughput={profile.throughput_bps / 1e6:8.2f} Mbps, "
                    f"Doppler tolerance={profile.doppler_tolerance:.2f}, "
                    f"complexity={profile.complexity}"
                )
            print(f"✓ Throughput gain: {comparison.throughput_gain_percent:.1f}%")


def demo_export():
    """Demonstrate result export."""
    print("\n" + "=" * 60)
    print("EXPORT FUNCTIONALITY")
    print("=" * 60)

    with create_simulator() as simulator:
        outcome = simulator.transmit("export")
        if not outcome.success:
            print(f"✗ {outcome.reason}")
            return

        with tempfile.TemporaryDirectory() as temp_dir:
            exported = simulator.export_result(
                outcome, "demo_result", format="json", output_dir=temp_dir
            )
            for path in exported:
                print(f"✓ Exported: {Path(path).name} ({Path(path).stat().st_size} bytes)")


def main():
    demo_basic_usage()
    demo_adaptive_modulation()
    demo_mobility_and_interference()
    demo_channel_analysis()
    demo_export()

    print("\n✅ Main interface demonstration completed!")


if __name__ == "__main__":
    main()
