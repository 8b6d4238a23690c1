"""
Friction component - Constant kinetic friction at driven tires.

A simplified kinetic-friction approximation rather than a slip-ratio
curve: each driven, grounded tire of a moving vehicle receives a force of
constant magnitude

    (mass / driven_tires) * mu * g

along its drive axis, signed against the tire-point velocity component on
the tire's local +X axis.
"""

from dataclasses import dataclass
from typing import Optional
import numpy as np

from rigsim.core.contribution import ForceContribution, ForceSource
from rigsim.vehicle.sample import TireSample


@dataclass
class FrictionConfig:
    """Friction constants."""
    coefficient_of_friction: float = 0.5
    gravity: float = 9.81


def friction_magnitude(mass: float, driven_tires: int, config: FrictionConfig) -> float:
    """Per-tire friction magnitude.

    Args:
        mass: Vehicle mass (kg)
        driven_tires: Number of engine-connected tires on the vehicle
        config: Friction constants

    Returns:
        Force magnitude in N (0 if the vehicle has no driven tires)
    """
    if driven_tires <= 0:
        return 0.0
    return (mass / driven_tires) * config.coefficient_of_friction * config.gravity


class Friction:
    """Longitudinal slip friction model."""

    source = ForceSource.FRICTION

    def __init__(self, config: FrictionConfig | None = None):
        """Initialize friction model.

        Args:
            config: Friction constants. Uses mu=0.5, g=9.81 if None.
        """
        self.config = config or FrictionConfig()

    def contribute(self, sample: TireSample) -> Optional[ForceContribution]:
        """Compute the friction contribution for one tire.

        Args:
            sample: Tire snapshot for this tick

        Returns:
            Opposing contribution, or None for airborne/undriven tires and
            vehicles at rest
        """
        if not sample.connected_to_engine or sample.distance_to_ground is None:
            return None
        if sample.vehicle_speed <= 0.0:
            return None

        axis = sample.world.drive_axis()
        sign = 1.0 if float(np.dot(sample.point_velocity, axis)) < 0.0 else -1.0
        magnitude = friction_magnitude(sample.mass, sample.num_driven_tires, self.config)
        return ForceContribution(
            vehicle_id=sample.vehicle_id,
            point=sample.point.copy(),
            force=axis * (sign * magnitude),
            source=self.source,
            tick=sample.tick,
        )
