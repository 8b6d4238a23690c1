"""
Steering actuator - Rotates turnable tires toward the commanded angle.

Actuation is instantaneous: no rate limiting and no return-to-center
damping. The new orientation is read by the next tick's contact sensor
and cornering model.
"""

from typing import Iterable
import numpy as np

from rigsim.core.transform import Y_AXIS, quat_from_axis_angle
from rigsim.vehicle.config import VehicleConfig
from rigsim.vehicle.vehicle import Tire


def steer_angle(steer_multiplier: float, turn_radius: float) -> float:
    """Tire yaw in radians (positive = turning left).

    Args:
        steer_multiplier: Combined steering input, clamped to [-1, 1]
        turn_radius: Maximum tire yaw from the vehicle config

    Returns:
        Yaw angle about the vehicle's up axis
    """
    return float(np.clip(steer_multiplier, -1.0, 1.0)) * turn_radius


class Steering:
    """Steering actuator for one vehicle's tires."""

    def actuate(
        self,
        tires: Iterable[Tire],
        config: VehicleConfig,
        steer_multiplier: float,
    ) -> int:
        """Set the local yaw of every turnable tire.

        Args:
            tires: Tires of a single vehicle
            config: That vehicle's configuration
            steer_multiplier: Combined steering input in [-1, 1]

        Returns:
            Number of tires rotated
        """
        rotation = quat_from_axis_angle(Y_AXIS, steer_angle(steer_multiplier, config.turn_radius))
        turned = 0
        for tire in tires:
            if tire.turns:
                tire.local_transform.rotation = rotation.copy()
                turned += 1
        return turned
