#!/usr/bin/env python3
"""
Background job orchestration demo.

Submits transmissions and periodic channel analyses to a JobOrchestrator the
way an interactive front end would: requests never block the caller, only the
latest request's result is delivered, and new transmissions are throttled by a
cooldown.

Run with: uv run python examples/orchestrator_demo.py
"""

import logging
import threading
import time

from ofdm_link_simulator import (
    Agent,
    ChannelParameters,
    OFDMParameters,
    bits_to_text,
    create_simulator,
)

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(name)s %(levelname)s %(message)s")


def main():
    print("=" * 60)
    print("JOB ORCHESTRATION DEMO")
    print("=" * 60)

    finished = threading.Event()

    def on_result(outcome):
        if outcome.success:
            print(
                f"  [result #{outcome.request_id}] {bits_to_text(outcome.decoded_bits)!r} "
                f"BER={outcome.metrics.bit_error_rate:.4f} "
                f"({outcome.processing_duration_ms:.1f} ms)"
            )
        else:
            print(f"  [failure #{outcome.request_id}] {outcome.reason}")
        finished.set()

    def on_analysis(summary):
        print(
            f"  [analysis] quality={summary.overall_quality}, "
            f"Doppler={summary.doppler_severity}, "
            f"throughput={summary.throughput_estimate_mbps:.2f} Mbps"
        )

    def on_progress(request_id, stage, fraction):
        print(f"  [progress #{request_id}] {stage:<22} {fraction:6.1%}")

    agents = [
        Agent("rover", "mobile", is_transmitting=True, velocity=(2.0, 1.0)),
        Agent("beacon", "stationary", is_transmitting=True, interference_level=0.2),
    ]
    channel = ChannelParameters(snr_db=28.0, doppler_shift_hz=60.0)
    ofdm = OFDMParameters(fft_size=64, num_subcarriers=64, modulation="bpsk")

    with create_simulator() as simulator:
        orchestrator = simulator.create_orchestrator(
            cooldown_s=1.0,
            on_result=on_result,
            on_analysis=on_analysis,
            on_progress=on_progress,
        )

        print("\n1. Periodic analysis while idle:")
        if orchestrator.analysis_due:
            ticket = orchestrator.request_analysis(channel, agents)
            orchestrator.wait(ticket, timeout=5.0)
        time.sleep(0.1)

        print("\n2. Transmission with progress reporting:")
        job = simulator.build_job("background", agents, "rover", ofdm, channel)
        ticket = orchestrator.submit_transmission(job)
        print(f"  submitted request #{ticket.request_id}")

        print("\n3. Requests while busy or cooling down are rejected:")
        rejected = orchestrator.submit_transmission(job)
        print(f"  second submission accepted: {rejected is not None}")

        finished.wait(5.0)
        print(f"  busy after delivery: {orchestrator.is_busy}")

        print("\n4. After the cooldown a new transmission is accepted:")
        time.sleep(orchestrator.cooldown_s)
        finished.clear()
        ticket = orchestrator.submit_transmission(job)
        print(f"  submitted request #{ticket.request_id}")
        finished.wait(5.0)

    print("\n✅ Orchestration demo completed!")


if __name__ == "__main__":
    main()
