#!/usr/bin/env python3
"""
Error Handling Demonstration for the OFDM Link Simulator

This script demonstrates how malformed jobs become structured failures instead
of exceptions, how errors are classified, and how the diagnostic report
summarizes what went wrong.
"""

from ofdm_link_simulator import (
    Agent,
    ChannelParameters,
    ErrorHandler,
    OFDMParameters,
    SchedulingError,
    SimulationError,
    TransmissionJob,
    TransmissionPipeline,
    ValidationError,
)
from ofdm_link_simulator.error_handling import create_error_context


def demonstrate_error_classification():
    """Demonstrate error classification and handling."""
    print("=" * 60)
    print("ERROR CLASSIFICATION DEMONSTRATION")
    print("=" * 60)

    error_handler = ErrorHandler()

    test_errors = [
        ValueError("Invalid parameter value"),
        FloatingPointError("overflow in equalizer"),
        RuntimeError("worker thread died"),
        ValidationError("input bits cannot be empty"),
        SimulationError("channel estimate diverged", stage="receiver"),
        SchedulingError("orchestrator is shut down", request_id=4),
    ]

    for i, error in enumerate(test_errors):
        print(f"\nTest {i + 1}: {type(error).__name__}")
        print(f"Message: {error}")

        context = create_error_context(f"test_operation_{i}", "DemoComponent", test_id=i)
        report = error_handler.handle_error(error, context)

        print(f"Category: {report.category.value}")
        print(f"Severity: {report.severity.value}")

    return error_handler


def demonstrate_pipeline_failures():
    """Show malformed jobs turning into Failure outcomes."""
    print("\n" + "=" * 60)
    print("PIPELINE FAILURE DEMONSTRATION")
    print("=" * 60)

    error_handler = ErrorHandler()
    pipeline = TransmissionPipeline(error_handler=error_handler)
    ofdm = OFDMParameters(fft_size=64, num_subcarriers=16, modulation="bpsk")
    channel = ChannelParameters(snr_db=20.0)

    jobs = {
        "empty payload": TransmissionJob([], ofdm, channel),
        "non-binary payload": TransmissionJob([0, 1, 2], ofdm, channel),
        "duplicate agents": TransmissionJob(
            [1, 0], ofdm, channel, agents=(Agent("a", "mobile"), Agent("a", "stationary"))
        ),
        "jammed spectrum": TransmissionJob(
            [1, 0],
            ofdm,
            channel,
            agents=(Agent("jammer", "mobile", is_transmitting=True, interference_level=0.9),),
        ),
    }

    for name, job in jobs.items():
        outcome = pipeline.run_transmission(job)
        print(f"\n{name}:")
        print(f"  success: {outcome.success}")
        print(f"  reason: {outcome.reason}")
        print(f"  category: {outcome.category}")
        print(f"  error id: {outcome.error_id}")

    return error_handler


def main():
    classified = demonstrate_error_classification()
    failures = demonstrate_pipeline_failures()

    print("\n" + "=" * 60)
    print("ERROR STATISTICS")
    print("=" * 60)
    stats = failures.get_error_statistics()
    print(f"Total pipeline errors: {stats['total_errors']}")
    for category, count in stats["category_breakdown"].items():
        print(f"  {category}: {count}")

    print("\n" + classified.generate_diagnostic_report())


if __name__ == "__main__":
    main()
