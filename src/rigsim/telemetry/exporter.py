"""
Telemetry exporter - Write recorded channels to disk.

Provides:
- CSV export (one row per tick, one column per channel)
- JSON export with channel statistics
"""

from dataclasses import dataclass
from typing import Dict, List
from pathlib import Path
import csv
import json
import logging
import numpy as np

from rigsim.telemetry.recorder import TelemetryRecorder

logger = logging.getLogger(__name__)


class NumpyEncoder(json.JSONEncoder):
    """JSON encoder that handles numpy types."""

    def default(self, obj):
        if isinstance(obj, np.integer):
            return int(obj)
        if isinstance(obj, np.floating):
            return float(obj)
        if isinstance(obj, np.ndarray):
            return obj.tolist()
        return super().default(obj)


@dataclass
class ExporterConfig:
    """Exporter configuration."""
    output_dir: str = "./telemetry_data"
    include_metadata: bool = True


class TelemetryExporter:
    """Export recorded telemetry to files."""

    def __init__(self, config: ExporterConfig | None = None):
        """Initialize exporter.

        Args:
            config: Exporter configuration
        """
        self.config = config or ExporterConfig()
        self._output_path = Path(self.config.output_dir)
        self._output_path.mkdir(parents=True, exist_ok=True)

    def export_csv(
        self,
        recorder: TelemetryRecorder,
        filename: str = "telemetry.csv",
        channels: List[str] | None = None,
    ) -> Path:
        """Export telemetry to CSV.

        Rows are joined on tick number; a channel without a sample at a tick
        leaves its cell empty.

        Args:
            recorder: Recorder with data
            filename: Output filename
            channels: Full channel names to export (None = all)

        Returns:
            Path to exported file
        """
        output_file = self._output_path / filename

        # Get channels to export
        if channels is None:
            channels = list(recorder.channels.keys())

        # Build rows keyed by tick
        rows: Dict[int, Dict[str, str]] = {}
        times: Dict[int, float] = {}
        for name in channels:
            channel = recorder.get_channel(name)
            if channel is None:
                continue
            precision = channel.config.precision
            for tick, time, value in zip(
                channel.get_ticks(), channel.get_times(), channel.get_values()
            ):
                tick = int(tick)
                times[tick] = float(time)
                rows.setdefault(tick, {})[name] = f"{value:.{precision}f}"

        # Write header, then one row per tick
        with open(output_file, "w", newline="") as f:
            writer = csv.writer(f)
            writer.writerow(["tick", "time"] + channels)
            for tick in sorted(rows):
                row = [str(tick), f"{times[tick]:.4f}"]
                row.extend(rows[tick].get(name, "") for name in channels)
                writer.writerow(row)

        logger.info(f"Exported {len(rows)} ticks to {output_file}")
        return output_file

    def export_json(
        self,
        recorder: TelemetryRecorder,
        filename: str = "telemetry.json",
    ) -> Path:
        """Export telemetry to JSON.

        Args:
            recorder: Recorder with data
            filename: Output filename

        Returns:
            Path to exported file
        """
        output_file = self._output_path / filename

        data = {
            "metadata": recorder.get_state() if self.config.include_metadata else {},
            "channels": {},
        }
        # Collect per-channel series
        for name, channel in recorder.channels.items():
            data["channels"][name] = {
                "unit": channel.unit,
                "ticks": channel.get_ticks(),
                "times": channel.get_times(),
                "values": channel.get_values(),
            }

        with open(output_file, "w") as f:
            json.dump(data, f, indent=2, cls=NumpyEncoder)

        logger.info(f"Exported {len(data['channels'])} channels to {output_file}")
        return output_file
