"""
Cornering component - Lateral grip at every grounded tire.

Each grounded tire tries to cancel a ``grip`` fraction of its sideways
velocity within one tick. The velocity change is turned into an
acceleration with a fixed rate constant and into a force with the
vehicle's per-tire mass share.

grip ~ 0 lets the tire slide freely (drift setups), grip ~ 1 approximates
a tire that does not slide at all.
"""

from dataclasses import dataclass
from typing import Optional
import numpy as np

from rigsim.core.contribution import ForceContribution, ForceSource
from rigsim.vehicle.sample import TireSample


# Ticks per second assumed when converting a velocity change to a force.
DEFAULT_CORNERING_RATE_HZ = 60.0


def cornering_force_magnitude(
    lateral_velocity: float,
    grip: float,
    mass: float,
    num_tires: int,
    rate_hz: float = DEFAULT_CORNERING_RATE_HZ,
) -> float:
    """Signed lateral force along the tire's steering axis.

    Args:
        lateral_velocity: Tire-point velocity along the steering axis (m/s)
        grip: Tire grip in [0, 1]
        mass: Vehicle mass (kg)
        num_tires: Tires sharing the vehicle mass
        rate_hz: Rate constant turning a velocity change into an acceleration

    Returns:
        Force in N (opposes lateral_velocity)
    """
    if num_tires <= 0:
        return 0.0
    desired_velocity_change = -lateral_velocity * grip
    desired_acceleration = desired_velocity_change * rate_hz
    return desired_acceleration * (mass / num_tires)


@dataclass
class Cornering:
    """Lateral tire force model.

    ``rate_hz`` is a tunable: the force assumes the velocity change is
    delivered over 1 / rate_hz seconds, independent of the real tick length.
    """
    rate_hz: float = DEFAULT_CORNERING_RATE_HZ
    source: ForceSource = ForceSource.CORNERING

    def lateral_velocity(self, sample: TireSample) -> float:
        """Sideways velocity of the tire point (positive = sliding left)."""
        return float(np.dot(sample.world.lateral_axis(), sample.point_velocity))

    def contribute(self, sample: TireSample) -> Optional[ForceContribution]:
        """Compute the cornering contribution for one tire.

        Args:
            sample: Tire snapshot for this tick

        Returns:
            Contribution along the steering axis, or None while airborne
        """
        if sample.distance_to_ground is None:
            return None

        steering_direction = sample.world.lateral_axis()
        magnitude = cornering_force_magnitude(
            self.lateral_velocity(sample),
            sample.grip,
            sample.mass,
            sample.num_tires,
            self.rate_hz,
        )
        return ForceContribution(
            vehicle_id=sample.vehicle_id,
            point=sample.point.copy(),
            force=steering_direction * magnitude,
            source=self.source,
            tick=sample.tick,
        )
