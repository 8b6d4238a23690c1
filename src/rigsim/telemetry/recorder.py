"""
Telemetry recorder - Per-vehicle force pipeline channels.

Provides:
- Standard per-vehicle channels (net force, torque, speed, contact, contributions)
- Channels created on first sight of a vehicle
- Tick decimation
"""

from dataclasses import dataclass
from typing import Dict, Iterable, List, Mapping, Optional
import logging
import numpy as np

from rigsim.core.contribution import ForceContribution
from rigsim.telemetry.channel import ChannelConfig, TelemetryChannel
from rigsim.vehicle.vehicle import Tire, Vehicle

logger = logging.getLogger(__name__)


# Per-vehicle channel templates: key -> (unit, precision)
VEHICLE_CHANNELS: Dict[str, tuple[str, int]] = {
    "force_x": ("N", 3),
    "force_y": ("N", 3),
    "force_z": ("N", 3),
    "torque": ("N*m", 3),
    "speed": ("m/s", 3),
    "speed_ratio": ("", 4),
    "grounded_tires": ("", 0),
    "contributions": ("", 0),
}


def channel_name(vehicle_id: int, key: str) -> str:
    """Full channel name for a vehicle quantity, e.g. ``vehicle0.force_y``."""
    return f"vehicle{vehicle_id}.{key}"


@dataclass
class RecorderConfig:
    """Recorder configuration."""
    sample_every: int = 1     # Record every Nth tick
    channels: List[str] | None = None  # Channel keys to record (None = all)
    buffer_size: int = 100000  # Per-channel buffer size


class TelemetryRecorder:
    """Records force pipeline telemetry per vehicle.

    Called by the simulator after aggregation with the vehicles, the
    contributions accepted this tick and the tires probed this tick.
    """

    def __init__(self, config: RecorderConfig | None = None):
        """Initialize recorder.

        Args:
            config: Recorder configuration
        """
        self.config = config or RecorderConfig()
        keys = self.config.channels or list(VEHICLE_CHANNELS.keys())
        unknown = set(keys) - set(VEHICLE_CHANNELS)
        if unknown:
            raise ValueError(f"Unknown telemetry channels: {sorted(unknown)}")
        self._keys = keys
        self._channels: Dict[str, TelemetryChannel] = {}
        self._samples_taken: int = 0

    @property
    def channels(self) -> Dict[str, TelemetryChannel]:
        """All channels by full name."""
        return self._channels

    @property
    def samples_taken(self) -> int:
        return self._samples_taken

    def get_channel(self, name: str) -> Optional[TelemetryChannel]:
        """Get channel by full name."""
        return self._channels.get(name)

    def vehicle_channel(self, vehicle_id: int, key: str) -> Optional[TelemetryChannel]:
        """Get a vehicle's channel by its short key."""
        return self._channels.get(channel_name(vehicle_id, key))

    def _ensure_channels(self, vehicle_id: int) -> None:
        for key in self._keys:
            name = channel_name(vehicle_id, key)
            if name not in self._channels:
                unit, precision = VEHICLE_CHANNELS[key]
                self._channels[name] = TelemetryChannel(ChannelConfig(
                    name=name,
                    unit=unit,
                    precision=precision,
                    buffer_size=self.config.buffer_size,
                ))

    def record(
        self,
        tick: int,
        time: float,
        vehicles: Mapping[int, Vehicle],
        contributions: Iterable[ForceContribution] = (),
        tires: Iterable[Tire] = (),
    ) -> bool:
        """Record one tick.

        Args:
            tick: Tick number
            time: Simulation time
            vehicles: Vehicles by id, with this tick's external force written
            contributions: Contributions accepted this tick
            tires: Tires probed this tick

        Returns:
            True if the tick was sampled
        """
        if tick % max(self.config.sample_every, 1) != 0:
            return False

        contribution_counts: Dict[int, int] = {}
        for contribution in contributions:
            contribution_counts[contribution.vehicle_id] = (
                contribution_counts.get(contribution.vehicle_id, 0) + 1
            )
        grounded_counts: Dict[int, int] = {}
        for tire in tires:
            if tire.is_grounded:
                grounded_counts[tire.vehicle_id] = grounded_counts.get(tire.vehicle_id, 0) + 1

        for vehicle_id, vehicle in vehicles.items():
            self._ensure_channels(vehicle_id)
            force = vehicle.external_force.force
            max_speed = vehicle.config.max_speed
            values = {
                "force_x": force[0],
                "force_y": force[1],
                "force_z": force[2],
                "torque": float(np.linalg.norm(vehicle.external_force.torque)),
                "speed": vehicle.speed,
                "speed_ratio": vehicle.speed / max_speed if max_speed > 0.0 else 0.0,
                "grounded_tires": grounded_counts.get(vehicle_id, 0),
                "contributions": contribution_counts.get(vehicle_id, 0),
            }
            for key in self._keys:
                self._channels[channel_name(vehicle_id, key)].record(tick, time, values[key])

        self._samples_taken += 1
        return True

    def get_current_values(self) -> Dict[str, float]:
        """Most recent value of each channel."""
        return {name: ch.last_value for name, ch in self._channels.items()}

    def get_statistics(self) -> Dict[str, Dict]:
        """Statistics for all channels."""
        return {name: ch.get_state() for name, ch in self._channels.items()}

    def clear(self) -> None:
        """Clear all recorded data."""
        for channel in self._channels.values():
            channel.clear()
        self._samples_taken = 0

    def get_state(self) -> dict:
        """Get recorder state.

        Returns:
            Dictionary containing recorder state
        """
        return {
            "sample_every": self.config.sample_every,
            "samples_taken": self._samples_taken,
            "total_samples": sum(ch.count for ch in self._channels.values()),
            "channels": self.get_statistics(),
        }
