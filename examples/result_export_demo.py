#!/usr/bin/env python3
"""
Result Export and Visualization Demo

This example demonstrates the export and visualization capabilities of the
OFDM link simulator, including:
- Exporting transmission results as NumPy archives and JSON
- Loading an exported archive back
- Generating a plot report with constellation, spectrum and time-domain views
"""

import tempfile
from pathlib import Path

import matplotlib

matplotlib.use("Agg")

from ofdm_link_simulator import (  # noqa: E402
    ChannelParameters,
    MultipathTap,
    OFDMParameters,
    ResultExporter,
    ResultVisualizer,
    TransmissionJob,
    TransmissionPipeline,
    text_to_bits,
)


def create_sample_result():
    """Run one 16-QAM transmission over a multipath channel."""
    print("Running sample transmission...")

    job = TransmissionJob(
        bits=text_to_bits("Export and visualize this transmission."),
        ofdm_params=OFDMParameters(fft_size=64, num_subcarriers=48, modulation="16qam"),
        channel_params=ChannelParameters(
            snr_db=24.0, doppler_shift_hz=30.0, multipath=[MultipathTap(0.003, 0.25)]
        ),
    )
    outcome = TransmissionPipeline().run_transmission(job)
    if not outcome.success:
        raise RuntimeError(outcome.reason)

    print(f"✓ {outcome.num_ofdm_symbols} OFDM symbols, BER={outcome.metrics.bit_error_rate:.4f}")
    return outcome


def demonstrate_export(result, output_dir: Path):
    print("\n" + "=" * 60)
    print("EXPORT")
    print("=" * 60)

    exporter = ResultExporter(output_dir)

    npz_path = exporter.export_result(result, "sample", format="numpy")
    json_path = exporter.export_result(result, "sample", format="json", include_samples=False)
    print(f"✓ NumPy archive: {npz_path.name} ({npz_path.stat().st_size} bytes)")
    print(f"✓ JSON summary: {json_path.name} ({json_path.stat().st_size} bytes)")

    loaded = ResultExporter.load_numpy_export(npz_path)
    metadata = loaded["metadata"]
    print(f"✓ Loaded archive: modulation={metadata['modulation']}, "
          f"{len(loaded['received_samples'])} received samples")


def demonstrate_visualization(result, output_dir: Path):
    print("\n" + "=" * 60)
    print("VISUALIZATION")
    print("=" * 60)

    report_dir = ResultVisualizer().create_result_report(result, output_dir / "report")
    for path in sorted(report_dir.iterdir()):
        print(f"✓ {path.name}")

    print("\nSummary report:")
    print((report_dir / "summary_report.txt").read_text())


def main():
    result = create_sample_result()

    with tempfile.TemporaryDirectory() as temp_dir:
        output_dir = Path(temp_dir)
        demonstrate_export(result, output_dir)
        demonstrate_visualization(result, output_dir)

    print("✅ Export demonstration completed!")


if __name__ == "__main__":
    main()
