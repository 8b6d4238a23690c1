"""
Telemetry channel - One recorded per-tick quantity.

Provides:
- Bounded time-series storage (tick, time, value)
- Running statistics over the retained samples
"""

from collections import deque
from dataclasses import dataclass
from typing import Deque, Tuple
import logging
import math
import numpy as np

logger = logging.getLogger(__name__)


@dataclass
class ChannelConfig:
    """Configuration for a telemetry channel."""
    name: str = "unnamed"
    unit: str = ""
    precision: int = 3
    buffer_size: int = 10000


class TelemetryChannel:
    """Single telemetry data channel.

    Keeps the most recent ``buffer_size`` samples. Statistics cover the
    retained samples only.
    """

    def __init__(self, config: ChannelConfig | None = None, name: str = "channel"):
        """Initialize channel.

        Args:
            config: Channel configuration
            name: Channel name (used if config not provided)
        """
        if config is None:
            config = ChannelConfig(name=name)
        self.config = config
        self._samples: Deque[Tuple[int, float, float]] = deque(maxlen=config.buffer_size)
        self.skipped: int = 0

    @property
    def name(self) -> str:
        return self.config.name

    @property
    def unit(self) -> str:
        return self.config.unit

    @property
    def count(self) -> int:
        """Number of retained samples."""
        return len(self._samples)

    @property
    def min_value(self) -> float:
        return float(np.min(self.get_values())) if self._samples else 0.0

    @property
    def max_value(self) -> float:
        return float(np.max(self.get_values())) if self._samples else 0.0

    @property
    def mean(self) -> float:
        return float(np.mean(self.get_values())) if self._samples else 0.0

    @property
    def last_value(self) -> float:
        """Most recent value."""
        return self._samples[-1][2] if self._samples else 0.0

    def record(self, tick: int, time: float, value: float) -> bool:
        """Append a sample. Non-finite values are skipped and logged.

        Args:
            tick: Pipeline tick number
            time: Simulation time in seconds
            value: Sample value

        Returns:
            True if the sample was stored
        """
        value = float(value)
        if not math.isfinite(value):
            self.skipped += 1
            logger.error(f"Channel {self.name} skipped non-finite value {value} at tick {tick}")
            return False
        self._samples.append((tick, time, value))
        return True

    def get_ticks(self) -> np.ndarray:
        return np.array([s[0] for s in self._samples], dtype=int)

    def get_times(self) -> np.ndarray:
        return np.array([s[1] for s in self._samples], dtype=float)

    def get_values(self) -> np.ndarray:
        return np.array([s[2] for s in self._samples], dtype=float)

    def get_last_n(self, n: int) -> np.ndarray:
        """Get the last N values."""
        return self.get_values()[-n:] if n > 0 else np.array([])

    def value_at_tick(self, tick: int) -> float | None:
        """Value recorded at a tick, or None if not retained."""
        for sample_tick, _, value in reversed(self._samples):
            if sample_tick == tick:
                return value
            if sample_tick < tick:
                break
        return None

    def clear(self) -> None:
        """Clear all recorded data."""
        self._samples.clear()
        self.skipped = 0

    def get_state(self) -> dict:
        """Get channel statistics.

        Returns:
            Dictionary with channel summary
        """
        if not self._samples:
            return {"name": self.name, "unit": self.unit, "count": 0,
                    "min": None, "max": None, "mean": None, "last": None}
        precision = self.config.precision
        return {
            "name": self.name,
            "unit": self.unit,
            "count": self.count,
            "min": round(self.min_value, precision),
            "max": round(self.max_value, precision),
            "mean": round(self.mean, precision),
            "last": round(self.last_value, precision),
        }
