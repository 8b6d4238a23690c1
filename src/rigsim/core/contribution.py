"""
Force contributions - The unit of exchange between force models and the aggregator.
"""

from dataclasses import dataclass
from enum import Enum
import numpy as np


class ForceSource(Enum):
    """Force model that produced a contribution."""
    SUSPENSION = "suspension"
    DRIVETRAIN = "drivetrain"
    FRICTION = "friction"
    CORNERING = "cornering"


@dataclass(frozen=True)
class ForceContribution:
    """One (vehicle, world point, world force) entry for the current tick."""
    vehicle_id: int
    point: np.ndarray
    force: np.ndarray
    source: ForceSource
    tick: int = 0

    def is_finite(self) -> bool:
        """True if both point and force are free of NaN/inf."""
        return bool(np.all(np.isfinite(self.point)) and np.all(np.isfinite(self.force)))

    @property
    def magnitude(self) -> float:
        return float(np.linalg.norm(self.force))
