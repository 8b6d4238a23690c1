"""
Vehicle - Rigid body records and tire layout.

Defines:
- VehicleRole: leading (driven, steered) or following (towed) vehicle
- ExternalForce: net force/torque handed to the physics solver
- Vehicle: one rigid body with its configuration and motion state
- Tire: per-wheel record referencing its vehicle by id
- Spawn layout: tire placement and the canonical spawn pose
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional
import numpy as np

from rigsim.core.transform import Transform, vec3, quat_identity
from rigsim.vehicle.config import TUNABLE_RANGES, VehicleConfig


class VehicleRole(Enum):
    """Role of a vehicle in a car/trailer rig.

    The role decides which side of the origin the vehicle spawns on and
    whether its front tires are driven and steered.
    """
    LEADING = "leading"
    FOLLOWING = "following"

    @property
    def spawn_sign(self) -> float:
        """+1 for the leading vehicle, -1 (mirrored in X) for the follower."""
        return 1.0 if self is VehicleRole.LEADING else -1.0

    @property
    def drives_front_axle(self) -> bool:
        """Whether front tires receive engine force and steering."""
        return self is VehicleRole.LEADING


class TirePosition(Enum):
    """Tire positions on the vehicle."""
    FRONT_LEFT = "FL"
    FRONT_RIGHT = "FR"
    REAR_LEFT = "RL"
    REAR_RIGHT = "RR"

    @property
    def is_front(self) -> bool:
        return self in (TirePosition.FRONT_LEFT, TirePosition.FRONT_RIGHT)

    @property
    def is_left(self) -> bool:
        return self in (TirePosition.FRONT_LEFT, TirePosition.REAR_LEFT)


@dataclass
class ExternalForce:
    """Net external force and torque on a rigid body (world frame)."""
    force: np.ndarray = field(default_factory=vec3)
    torque: np.ndarray = field(default_factory=vec3)

    @classmethod
    def at_point(
        cls,
        force: np.ndarray,
        point: np.ndarray,
        center_of_mass: np.ndarray,
    ) -> "ExternalForce":
        """Force applied at a world point, expressed about the center of mass.

        Args:
            force: Force vector (N)
            point: Application point (world)
            center_of_mass: Body center of mass (world)

        Returns:
            ExternalForce with torque (P - C) x F
        """
        force = np.asarray(force, dtype=float)
        torque = np.cross(np.asarray(point, dtype=float) - center_of_mass, force)
        return cls(force=force.copy(), torque=torque)

    def reset(self) -> None:
        """Zero force and torque."""
        self.force = vec3()
        self.torque = vec3()

    def is_zero(self) -> bool:
        return not np.any(self.force) and not np.any(self.torque)


@dataclass
class Vehicle:
    """One rigid body driven by the force pipeline.

    ``transform``, ``linear_velocity`` and ``angular_velocity`` are owned by
    the physics solver; the pipeline only reads them (Reset excepted).
    ``external_force`` is written once per tick by the force aggregator.

    Without an explicit ``mass`` the body takes its collider mass and keeps
    following the collider geometry as the config is edited.
    """
    vehicle_id: int
    config: VehicleConfig
    role: VehicleRole = VehicleRole.LEADING
    name: str = "Vehicle"
    transform: Transform = field(default_factory=Transform)
    linear_velocity: np.ndarray = field(default_factory=vec3)
    angular_velocity: np.ndarray = field(default_factory=vec3)
    mass: float | None = None
    external_force: ExternalForce = field(default_factory=ExternalForce)
    mass_from_collider: bool = field(default=False, init=False)

    def __post_init__(self):
        self.linear_velocity = np.asarray(self.linear_velocity, dtype=float).copy()
        self.angular_velocity = np.asarray(self.angular_velocity, dtype=float).copy()
        if self.mass is None:
            self.mass_from_collider = True
            self.mass = self.config.collider_mass()

    def sync_mass(self, config: VehicleConfig | None = None) -> float:
        """Recompute a collider-derived mass from the current geometry.

        Args:
            config: Config to read the geometry from (uses self.config if None)

        Returns:
            Mass in kg (unchanged for an explicitly given mass)
        """
        if self.mass_from_collider:
            self.mass = (config or self.config).collider_mass()
        return self.mass

    @property
    def center_of_mass(self) -> np.ndarray:
        """World-space center of mass (the body origin)."""
        return self.transform.translation

    @property
    def speed(self) -> float:
        """Magnitude of the linear velocity in m/s."""
        return float(np.linalg.norm(self.linear_velocity))

    def velocity_at_point(self, point: np.ndarray) -> np.ndarray:
        """Rigid-body velocity of a world point: v + w x (p - c)."""
        return self.linear_velocity + np.cross(
            self.angular_velocity, np.asarray(point, dtype=float) - self.center_of_mass
        )

    def reset_motion(self) -> None:
        """Snap to the spawn pose and clear velocity and external force."""
        self.transform = spawn_transform(self.config, self.role)
        self.linear_velocity = vec3()
        self.angular_velocity = vec3()
        self.external_force.reset()

    def get_state(self) -> dict:
        """Get current vehicle state for telemetry."""
        return {
            "vehicle_id": self.vehicle_id,
            "name": self.name,
            "role": self.role.value,
            "position": self.transform.translation.tolist(),
            "rotation": self.transform.rotation.tolist(),
            "speed_mps": self.speed,
            "mass_kg": self.mass,
            "force": self.external_force.force.tolist(),
            "torque": self.external_force.torque.tolist(),
        }


@dataclass
class Tire:
    """A wheel attached to a vehicle.

    ``distance_to_ground`` is None while airborne and is rewritten each tick
    by the ground-contact sensor. ``grip`` is kept inside [0, 1].
    """
    tire_id: int
    vehicle_id: int
    position: TirePosition
    local_transform: Transform = field(default_factory=Transform)
    connected_to_engine: bool = False
    turns: bool = False
    grip: float = 0.7
    distance_to_ground: Optional[float] = None

    def __post_init__(self):
        self.grip = clamp_grip(self.grip)

    def set_grip(self, grip: float) -> float:
        """Change the tire grip, clamped into [0, 1].

        Returns:
            The stored grip
        """
        self.grip = clamp_grip(grip)
        return self.grip

    @property
    def is_grounded(self) -> bool:
        return self.distance_to_ground is not None

    def world_transform(self, vehicle: Vehicle) -> Transform:
        """Tire pose in world space given its vehicle."""
        return vehicle.transform.mul_transform(self.local_transform)

    def get_state(self) -> dict:
        """Get current tire state for telemetry."""
        return {
            "position": self.position.value,
            "connected_to_engine": self.connected_to_engine,
            "turns": self.turns,
            "grip": self.grip,
            "distance_to_ground": self.distance_to_ground,
        }


def clamp_grip(grip: float) -> float:
    """Clamp a grip value into the [0, 1] tuning range."""
    low, high = TUNABLE_RANGES["starting_tire_grip"]
    return float(np.clip(grip, low, high))


def spawn_transform(config: VehicleConfig, role: VehicleRole) -> Transform:
    """Canonical spawn pose for a vehicle.

    The leading vehicle sits at +(length + anchor.x), the follower mirrored
    at -(length + anchor.x); both rest at their half height.
    """
    x = role.spawn_sign * (config.length + config.anchor_point[0])
    return Transform(translation=vec3(x, config.height, 0.0), rotation=quat_identity())


def tire_mount_point(config: VehicleConfig, position: TirePosition) -> np.ndarray:
    """Local mount point of a tire on the vehicle body."""
    x = config.wheelbase if position.is_front else -config.wheelbase
    z = -config.width * 1.1 if position.is_left else config.width * 1.1
    return vec3(x + config.wheel_offset, -config.height / 6.0, z)


def build_tires(
    config: VehicleConfig,
    role: VehicleRole,
    vehicle_id: int,
    first_tire_id: int = 0,
) -> List[Tire]:
    """Create the four tires of a vehicle.

    Front tires of a leading vehicle are driven and steered; every tire
    starts with the configured grip.

    Args:
        config: Vehicle configuration
        role: Vehicle role
        vehicle_id: Owning vehicle id
        first_tire_id: Id assigned to the first tire

    Returns:
        Tires in FR, FL, RR, RL order
    """
    order = (
        TirePosition.FRONT_RIGHT,
        TirePosition.FRONT_LEFT,
        TirePosition.REAR_RIGHT,
        TirePosition.REAR_LEFT,
    )
    tires = []
    for offset, position in enumerate(order):
        powered = role.drives_front_axle and position.is_front
        tires.append(Tire(
            tire_id=first_tire_id + offset,
            vehicle_id=vehicle_id,
            position=position,
            local_transform=Transform(translation=tire_mount_point(config, position)),
            connected_to_engine=powered,
            turns=powered,
            grip=config.starting_tire_grip,
        ))
    return tires
