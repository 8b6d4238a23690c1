"""
Telemetry module - Per-tick force pipeline recording.

This module contains:
- TelemetryRecorder: Records per-vehicle channels each tick
- TelemetryChannel: Individual data channel
- TelemetryExporter: Export telemetry to CSV/JSON
- ForceTrace: Debug segments of the last tick's contributions
"""

from rigsim.telemetry.recorder import TelemetryRecorder, RecorderConfig
from rigsim.telemetry.channel import TelemetryChannel, ChannelConfig
from rigsim.telemetry.exporter import TelemetryExporter, ExporterConfig
from rigsim.telemetry.trace import ForceTrace

__all__ = [
    "TelemetryRecorder",
    "RecorderConfig",
    "TelemetryChannel",
    "ChannelConfig",
    "TelemetryExporter",
    "ExporterConfig",
    "ForceTrace",
]
