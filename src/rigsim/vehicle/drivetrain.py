"""
Drivetrain component - Engine power delivery at the driven tires.

Simulates:
- A fixed power curve over the speed ratio (speed / max speed)
- Signed driver throttle (forward and brake/reverse)
- Longitudinal force along each driven tire's drive axis
"""

from dataclasses import dataclass
from typing import Optional
import math
import numpy as np

from rigsim.core.contribution import ForceContribution, ForceSource
from rigsim.vehicle.sample import TireSample


# Segment boundaries of the power curve
RAMP_END = 0.4
PLATEAU_END = 0.698


def power_curve(speed_ratio: float) -> float:
    """Fraction of ``max_force`` available at a given speed ratio.

    Pieces:
        r < 0:             0.5 (not reachable, speed is a magnitude)
        0 <= r < 0.4:      -log10(-0.5 r + 0.3)   (ramp from ~0.52 to 1)
        0.4 <= r <= 0.698: 1.0                    (torque plateau)
        0.698 < r <= 1:    log10(-5 r + 6) + 0.6  (fall-off to 0.6)
        r > 1:             0.0                    (no force past max speed)

    Args:
        speed_ratio: Vehicle speed divided by its max speed

    Returns:
        Power multiplier
    """
    if speed_ratio < 0.0:
        return 0.5
    if speed_ratio < RAMP_END:
        return -math.log10(-0.5 * speed_ratio + 0.3)
    if speed_ratio <= PLATEAU_END:
        return 1.0
    if speed_ratio <= 1.0:
        return math.log10(-5.0 * speed_ratio + 6.0) + 0.6
    return 0.0


def speed_ratio(speed: float, max_speed: float) -> Optional[float]:
    """Speed as a fraction of max speed, or None for a non-driven vehicle.

    A zero, negative or non-finite ``max_speed`` marks the vehicle as
    non-driven instead of producing a non-finite ratio.
    """
    if not (math.isfinite(max_speed) and max_speed > 0.0):
        return None
    ratio = abs(speed) / max_speed
    if not math.isfinite(ratio):
        return None
    return ratio


def available_force(speed: float, max_speed: float, max_force: float) -> float:
    """Longitudinal force available at full throttle (0 if non-driven)."""
    ratio = speed_ratio(speed, max_speed)
    if ratio is None:
        return 0.0
    return max_force * power_curve(ratio)


@dataclass
class Drivetrain:
    """Engine force model for engine-connected tires."""

    source: ForceSource = ForceSource.DRIVETRAIN

    def contribute(self, sample: TireSample) -> Optional[ForceContribution]:
        """Compute the drive contribution for one tire.

        Args:
            sample: Tire snapshot (carries the signed throttle)

        Returns:
            Contribution along the tire drive axis, or None when the tire is
            airborne, not driven, or the vehicle has no usable max speed
        """
        if not sample.connected_to_engine or sample.distance_to_ground is None:
            return None

        ratio = speed_ratio(sample.vehicle_speed, sample.config.max_speed)
        if ratio is None:
            return None

        force_at_tire = sample.config.max_force * power_curve(ratio)
        force = sample.world.drive_axis() * (force_at_tire * sample.throttle)
        return ForceContribution(
            vehicle_id=sample.vehicle_id,
            point=sample.point.copy(),
            force=np.asarray(force, dtype=float),
            source=self.source,
            tick=sample.tick,
        )
