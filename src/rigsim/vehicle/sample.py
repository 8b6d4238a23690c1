"""
Tire samples - Read-only per-tire snapshot consumed by the force models.
"""

from dataclasses import dataclass
import numpy as np

from rigsim.core.transform import Transform
from rigsim.vehicle.config import VehicleConfig
from rigsim.vehicle.vehicle import Tire, Vehicle, clamp_grip


@dataclass(frozen=True)
class TireSample:
    """Everything a force model may read about one tire during one tick.

    Taken after the ground-contact sensor has run, so ``distance_to_ground``
    is final for the tick.
    """
    vehicle_id: int
    tick: int
    config: VehicleConfig
    world: Transform
    point_velocity: np.ndarray
    vehicle_velocity: np.ndarray
    mass: float
    num_tires: int
    num_driven_tires: int
    connected_to_engine: bool
    grip: float
    distance_to_ground: float | None
    throttle: float = 0.0

    @property
    def is_grounded(self) -> bool:
        return self.distance_to_ground is not None

    @property
    def point(self) -> np.ndarray:
        """Tire world position (force application point)."""
        return self.world.translation

    @property
    def vehicle_speed(self) -> float:
        return float(np.linalg.norm(self.vehicle_velocity))

    @classmethod
    def take(
        cls,
        vehicle: Vehicle,
        tire: Tire,
        config: VehicleConfig,
        tick: int,
        point_velocity: np.ndarray,
        num_tires: int,
        num_driven_tires: int,
        throttle: float = 0.0,
    ) -> "TireSample":
        """Snapshot a tire and its vehicle.

        Args:
            vehicle: Owning vehicle
            tire: Tire to sample
            config: Config snapshot for this tick
            tick: Tick number
            point_velocity: Solver velocity at the tire's world position
            num_tires: Tires on the vehicle
            num_driven_tires: Engine-connected tires on the vehicle
            throttle: Signed driver throttle in [-1, 1]

        Returns:
            Immutable sample
        """
        return cls(
            vehicle_id=vehicle.vehicle_id,
            tick=tick,
            config=config,
            world=tire.world_transform(vehicle),
            point_velocity=np.asarray(point_velocity, dtype=float).copy(),
            vehicle_velocity=vehicle.linear_velocity.copy(),
            mass=float(vehicle.mass),
            num_tires=num_tires,
            num_driven_tires=num_driven_tires,
            connected_to_engine=tire.connected_to_engine,
            # Direct attribute edits bypass set_grip
            grip=clamp_grip(tire.grip),
            distance_to_ground=tire.distance_to_ground,
            throttle=throttle,
        )
