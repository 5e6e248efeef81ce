"""
Export and visualization of transmission results.

Results can be written as compressed NumPy archives (all sample arrays plus a
JSON metadata string) or as a single JSON document, and plotted with matplotlib
for inspection of constellations, spectra and channel estimates.
"""

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Dict, Optional, Union

import matplotlib.pyplot as plt
import numpy as np
from matplotlib.figure import Figure

from .models import TransmissionResult
from .modulation import constellation
from .serialization import comparison_to_dict, metrics_to_dict, result_to_dict

logger = logging.getLogger(__name__)

SUPPORTED_FORMATS = ("numpy", "json")


class ResultExporter:
    """Writes transmission results to disk."""

    def __init__(self, output_dir: Optional[Union[str, Path]] = None):
        """Initialize the result exporter.

        Args:
            output_dir: Directory for exported files. If None, uses current directory.
        """
        self.output_dir = Path(output_dir) if output_dir else Path.cwd()
        self.output_dir.mkdir(parents=True, exist_ok=True)

    def export_result(
        self,
        result: TransmissionResult,
        filename: str,
        format: str = "numpy",
        include_samples: bool = True,
    ) -> Path:
        """Export a transmission result to file.

        Args:
            result: Result to export
            filename: Base filename (without extension); a timestamp is appended
            format: Export format ("numpy" or "json")
            include_samples: Whether JSON exports carry the sample arrays

        Returns:
            Path to exported file

        Raises:
            ValueError: If format is not supported
        """
        if format not in SUPPORTED_FORMATS:
            raise ValueError(f"Unsupported format: {format}. Supported: {list(SUPPORTED_FORMATS)}")

        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        base_filename = f"{filename}_{timestamp}"

        if format == "numpy":
            filepath = self._export_numpy(result, base_filename)
        else:
            filepath = self._export_json(result, base_filename, include_samples)

        logger.info(f"Exported result to {filepath}")
        return filepath

    def _export_numpy(self, result: TransmissionResult, filename: str) -> Path:
        filepath = self.output_dir / f"{filename}.npz"

        metadata = {
            "request_id": result.request_id,
            "modulation": result.modulation.value,
            "cyclic_prefix_length": result.cyclic_prefix_length,
            "num_ofdm_symbols": result.num_ofdm_symbols,
            "processing_duration_ms": result.processing_duration_ms,
            "metrics": metrics_to_dict(result.metrics),
            "comparison": comparison_to_dict(result.comparison),
            "export_timestamp": datetime.now().isoformat(),
        }

        np.savez_compressed(
            filepath,
            time_domain_samples=result.time_domain_samples,
            frequency_domain_samples=result.frequency_domain_samples,
            received_samples=result.received_samples,
            decoded_bits=result.decoded_bits,
            channel_estimate=result.channel_estimate,
            equalized_symbols=result.equalized_symbols,
            metadata=json.dumps(metadata),
        )
        return filepath

    def _export_json(self, result: TransmissionResult, filename: str, include_samples: bool) -> Path:
        filepath = self.output_dir / f"{filename}.json"

        export_data = result_to_dict(result, include_samples=include_samples)
        export_data["export_timestamp"] = datetime.now().isoformat()

        with open(filepath, "w") as f:
            json.dump(export_data, f, indent=2)

        return filepath

    @staticmethod
    def load_numpy_export(filepath: Union[str, Path]) -> Dict[str, object]:
        """Load arrays and decoded metadata from a NumPy export.

        Raises:
            FileNotFoundError: If the file does not exist
        """
        filepath = Path(filepath)
        if not filepath.exists():
            raise FileNotFoundError(f"Export file not found: {filepath}")

        with np.load(filepath) as data:
            loaded = {key: data[key] for key in data.files if key != "metadata"}
            loaded["metadata"] = json.loads(str(data["metadata"]))

        return loaded


class ResultVisualizer:
    """Plots for inspecting a single transmission."""

    def plot_constellation(
        self,
        result: TransmissionResult,
        title: Optional[str] = None,
        save_path: Optional[Union[str, Path]] = None,
    ) -> Figure:
        """Scatter the equalized data symbols over the ideal constellation."""
        fig, ax = plt.subplots(figsize=(6, 6))

        symbols = result.equalized_symbols
        ideal = constellation(result.modulation)
        ax.scatter(symbols.real, symbols.imag, s=12, alpha=0.6, label="Equalized")
        ax.scatter(ideal.real, ideal.imag, s=40, marker="x", color="red", label="Ideal")

        ax.axhline(0, color="gray", linewidth=0.5)
        ax.axvline(0, color="gray", linewidth=0.5)
        ax.set_xlabel("In-phase")
        ax.set_ylabel("Quadrature")
        ax.set_aspect("equal", adjustable="datalim")
        ax.set_title(title or f"Constellation - {result.modulation.value.upper()}")
        ax.legend()
        ax.grid(True, alpha=0.3)
        plt.tight_layout()

        if save_path:
            fig.savefig(save_path, dpi=150, bbox_inches="tight")

        return fig

    def plot_spectrum(
        self,
        result: TransmissionResult,
        title: str = "Subcarrier Magnitudes",
        save_path: Optional[Union[str, Path]] = None,
    ) -> Figure:
        """Plot transmitted grid magnitudes and the channel estimate per bin."""
        fig, (ax1, ax2) = plt.subplots(2, 1, figsize=(12, 8))

        grid = np.atleast_2d(result.frequency_domain_samples)
        bins = np.arange(grid.shape[1])
        for index, row in enumerate(grid):
            ax1.plot(bins, np.abs(row), alpha=0.7, label=f"OFDM symbol {index}")
        ax1.set_xlabel("Bin")
        ax1.set_ylabel("|X[k]|")
        ax1.set_title("Transmitted grid")
        ax1.grid(True, alpha=0.3)
        if len(grid) <= 8:
            ax1.legend()

        estimate = np.atleast_2d(result.channel_estimate)
        ax2.plot(bins, np.abs(estimate).mean(axis=0), label="|H| (mean)")
        ax2.plot(bins, np.angle(estimate).mean(axis=0), label="arg H (mean)", alpha=0.7)
        ax2.set_xlabel("Bin")
        ax2.set_title("Channel estimate")
        ax2.legend()
        ax2.grid(True, alpha=0.3)

        fig.suptitle(title)
        plt.tight_layout()

        if save_path:
            fig.savefig(save_path, dpi=150, bbox_inches="tight")

        return fig

    def plot_time_domain(
        self,
        result: TransmissionResult,
        title: str = "Time Domain",
        save_path: Optional[Union[str, Path]] = None,
    ) -> Figure:
        """Overlay transmitted and received sample magnitudes."""
        fig, ax = plt.subplots(figsize=(12, 4))

        ax.plot(np.abs(result.time_domain_samples), label="Transmitted", alpha=0.8)
        ax.plot(np.abs(result.received_samples), label="Received", alpha=0.6)
        ax.set_xlabel("Sample")
        ax.set_ylabel("Magnitude")
        ax.set_title(title)
        ax.legend()
        ax.grid(True, alpha=0.3)
        plt.tight_layout()

        if save_path:
            fig.savefig(save_path, dpi=150, bbox_inches="tight")

        return fig

    def create_result_report(
        self, result: TransmissionResult, output_dir: Optional[Union[str, Path]] = None
    ) -> Path:
        """Write all plots and a text summary into ``output_dir``.

        Returns:
            Path to report directory
        """
        if output_dir is None:
            output_dir = Path(f"transmission_report_{datetime.now().strftime('%Y%m%d_%H%M%S')}")
        else:
            output_dir = Path(output_dir)

        output_dir.mkdir(parents=True, exist_ok=True)

        for name, plot in (
            ("constellation", self.plot_constellation),
            ("spectrum", self.plot_spectrum),
            ("time_domain", self.plot_time_domain),
        ):
            fig = plot(result, save_path=output_dir / f"{name}.png")
            plt.close(fig)

        self._generate_summary_report(result, output_dir)
        return output_dir

    def _generate_summary_report(self, result: TransmissionResult, output_dir: Path):
        report_path = output_dir / "summary_report.txt"
        metrics = result.metrics
        comparison = result.comparison

        with open(report_path, "w") as f:
            f.write("OFDM Transmission Report\n")
            f.write("=" * 40 + "\n\n")

            f.write(f"Modulation: {result.modulation.value}\n")
            f.write(f"OFDM symbols: {result.num_ofdm_symbols}\n")
            f.write(f"Cyclic prefix: {result.cyclic_prefix_length} samples\n")
            f.write(f"Processing time: {result.processing_duration_ms:.2f} ms\n\n")

            f.write("Metrics:\n")
            f.write(f"  Bit errors: {metrics.bit_errors}\n")
            f.write(f"  BER: {metrics.bit_error_rate:.6f}\n")
            f.write(f"  PAPR: {metrics.papr_db:.2f} dB\n")
            f.write(f"  Capacity: {metrics.channel_capacity:.2f} b/s/Hz\n")
            f.write(f"  Link margin: {metrics.link_margin_db:.1f} dB\n")
            f.write(f"  Frame error rate: {metrics.frame_error_rate:.6f}\n")
            f.write(f"  Packet loss: {metrics.packet_loss_percent:.2f}%\n")
            f.write(f"  Jitter: {metrics.jitter_ms:.2f} ms\n")
            f.write(f"  Mobility penalty: {metrics.mobility_penalty:.1%}\n")
            f.write(f"  Max multipath delay: {metrics.multipath_delay_s * 1000.0:.2f} ms\n")
            f.write(f"  Channel quality: {metrics.channel_quality}\n\n")

            f.write(f"{comparison.baseline.name} vs {comparison.enhanced.name}:\n")
            f.write(f"  Throughput gain: {comparison.throughput_gain_percent:.1f}%\n")
            f.write(f"  BER improvement: {comparison.ber_improvement_percent:.1f}%\n")
            f.write(f"  Doppler resilience: {comparison.doppler_resilience_percent:.1f}%\n")
