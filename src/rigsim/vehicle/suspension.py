"""
Suspension component - Raycast spring-damper per tire.

Simulates:
- Spring force proportional to compression below the rest length
- Damping proportional to the closing velocity along the tire's up axis

Spring rate and shock are tuned per vehicle class (trailers run much
softer springs and heavier relative damping) so the body settles without
an explicit damping-ratio computation.
"""

from dataclasses import dataclass
from typing import Optional
import numpy as np

from rigsim.core.contribution import ForceContribution, ForceSource
from rigsim.vehicle.sample import TireSample


def suspension_force_magnitude(
    spring_offset: float,
    distance_to_ground: float,
    spring_power: float,
    closing_velocity: float,
    shock: float,
) -> float:
    """Signed spring-damper force along the tire's up axis.

    Args:
        spring_offset: Suspension rest length (m)
        distance_to_ground: Probe hit distance (m)
        spring_power: Spring rate (N/m)
        closing_velocity: Tire-point velocity along the up axis (m/s)
        shock: Damping coefficient (N*s/m)

    Returns:
        (spring_offset - d) * spring_power - v_closing * shock
    """
    offset = spring_offset - distance_to_ground
    return offset * spring_power - closing_velocity * shock


@dataclass
class Suspension:
    """Spring-damper force model."""

    source: ForceSource = ForceSource.SUSPENSION

    def compression(self, sample: TireSample) -> float:
        """Compression of the spring (positive when compressed)."""
        if sample.distance_to_ground is None:
            return 0.0
        return sample.config.spring_offset - sample.distance_to_ground

    def contribute(self, sample: TireSample) -> Optional[ForceContribution]:
        """Compute the suspension contribution for one tire.

        Args:
            sample: Tire snapshot for this tick

        Returns:
            Contribution along the tire up axis, or None while airborne
        """
        if sample.distance_to_ground is None:
            return None

        spring_direction = sample.world.up()
        closing_velocity = float(np.dot(spring_direction, sample.point_velocity))
        magnitude = suspension_force_magnitude(
            sample.config.spring_offset,
            sample.distance_to_ground,
            sample.config.spring_power,
            closing_velocity,
            sample.config.shock,
        )
        return ForceContribution(
            vehicle_id=sample.vehicle_id,
            point=sample.point.copy(),
            force=spring_direction * magnitude,
            source=self.source,
            tick=sample.tick,
        )
