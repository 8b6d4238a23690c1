"""
World - Flat arena of vehicles, tires and joints.

Manages:
- Vehicles and tires keyed by id (tires reference vehicles by id)
- Spawning a vehicle with its four tires
- Spherical coupling joints between a leading and a following vehicle
- Global time and frame count
"""

from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional, Tuple
import logging
import numpy as np

from rigsim.vehicle.config import VehicleConfig
from rigsim.vehicle.vehicle import Tire, Vehicle, VehicleRole, build_tires, spawn_transform

logger = logging.getLogger(__name__)


@dataclass
class Joint:
    """Spherical coupling between two vehicles.

    Stored for the solver; the force pipeline never reads it.
    """
    joint_id: int
    leading_id: int
    following_id: int
    local_anchor1: np.ndarray = field(default_factory=lambda: np.zeros(3))
    local_anchor2: np.ndarray = field(default_factory=lambda: np.zeros(3))
    kind: str = "spherical"

    def get_state(self) -> dict:
        return {
            "joint_id": self.joint_id,
            "kind": self.kind,
            "leading_id": self.leading_id,
            "following_id": self.following_id,
            "local_anchor1": self.local_anchor1.tolist(),
            "local_anchor2": self.local_anchor2.tolist(),
        }


class World:
    """World state container for the force pipeline.

    Vehicles and tires live in separate id-keyed tables. A tire may name a
    vehicle that does not exist; such tires are reported by
    ``unresolved_tires`` and left out of the tick by the simulator.
    """

    def __init__(self):
        self._vehicles: Dict[int, Vehicle] = {}
        self._tires: Dict[int, Tire] = {}
        self._joints: Dict[int, Joint] = {}
        self._next_vehicle_id: int = 0
        self._next_tire_id: int = 0
        self._next_joint_id: int = 0

        # Timing
        self._time: float = 0.0
        self._frame: int = 0

    @property
    def time(self) -> float:
        """Current simulation time in seconds."""
        return self._time

    @property
    def frame(self) -> int:
        """Current frame number."""
        return self._frame

    @property
    def vehicles(self) -> Dict[int, Vehicle]:
        """Vehicles by id (insertion order)."""
        return self._vehicles

    @property
    def tires(self) -> List[Tire]:
        """All tires in id order."""
        return [self._tires[tire_id] for tire_id in sorted(self._tires)]

    @property
    def joints(self) -> List[Joint]:
        return list(self._joints.values())

    @property
    def vehicle_count(self) -> int:
        return len(self._vehicles)

    def add_vehicle(self, vehicle: Vehicle) -> int:
        """Add a vehicle, assigning it a fresh id.

        Args:
            vehicle: Vehicle to add

        Returns:
            Vehicle ID
        """
        vehicle_id = self._next_vehicle_id
        self._next_vehicle_id += 1

        vehicle.vehicle_id = vehicle_id
        self._vehicles[vehicle_id] = vehicle
        return vehicle_id

    def add_tire(self, tire: Tire) -> int:
        """Add a tire, assigning it a fresh id.

        The tire's vehicle_id is not checked here.

        Args:
            tire: Tire to add

        Returns:
            Tire ID
        """
        tire_id = self._next_tire_id
        self._next_tire_id += 1

        tire.tire_id = tire_id
        self._tires[tire_id] = tire
        return tire_id

    def spawn_vehicle(
        self,
        config: VehicleConfig,
        role: VehicleRole = VehicleRole.LEADING,
        name: str | None = None,
    ) -> Vehicle:
        """Create a vehicle at its spawn pose with four tires.

        Args:
            config: Vehicle configuration (owned by the vehicle afterwards)
            role: Leading (driven, steered) or following vehicle
            name: Display name

        Returns:
            The spawned vehicle
        """
        # Body at the spawn pose, then its tires
        vehicle = Vehicle(
            vehicle_id=-1,
            config=config,
            role=role,
            name=name or role.value.capitalize(),
            transform=spawn_transform(config, role),
        )
        vehicle_id = self.add_vehicle(vehicle)
        for tire in build_tires(config, role, vehicle_id):
            self.add_tire(tire)

        logger.info(
            f"Spawned {vehicle.name} (id={vehicle_id}, role={role.value}) "
            f"at {vehicle.transform.translation.round(3).tolist()}, mass={vehicle.mass:.2f}"
        )
        return vehicle

    def couple(self, leading_id: int, following_id: int) -> Joint:
        """Join two vehicles with a spherical joint at their anchor points.

        Args:
            leading_id: Towing vehicle
            following_id: Towed vehicle

        Returns:
            The stored joint

        Raises:
            KeyError: If either vehicle does not exist
        """
        leading = self._vehicles[leading_id]
        following = self._vehicles[following_id]

        # Joint keeps its own copy of each anchor
        joint = Joint(
            joint_id=self._next_joint_id,
            leading_id=leading_id,
            following_id=following_id,
            local_anchor1=leading.config.anchor_point.copy(),
            local_anchor2=following.config.anchor_point.copy(),
        )
        self._next_joint_id += 1
        self._joints[joint.joint_id] = joint
        logger.info(f"Coupled vehicle {following_id} to vehicle {leading_id}")
        return joint

    def spawn_rig(
        self,
        leading_config: VehicleConfig,
        following_config: VehicleConfig,
    ) -> Tuple[Vehicle, Vehicle, Joint]:
        """Spawn a coupled leading/following pair.

        Returns:
            (leading vehicle, following vehicle, joint)
        """
        # Spawn both bodies, then couple them
        leading = self.spawn_vehicle(leading_config, VehicleRole.LEADING, "Car")
        following = self.spawn_vehicle(following_config, VehicleRole.FOLLOWING, "Trailer")
        joint = self.couple(leading.vehicle_id, following.vehicle_id)
        return leading, following, joint

    def get_vehicle(self, vehicle_id: int) -> Optional[Vehicle]:
        """Get vehicle by ID.

        Args:
            vehicle_id: Vehicle ID

        Returns:
            Vehicle if found, None otherwise
        """
        return self._vehicles.get(vehicle_id)

    def get_tire(self, tire_id: int) -> Optional[Tire]:
        return self._tires.get(tire_id)

    def tires_of(self, vehicle_id: int) -> List[Tire]:
        """Tires referencing a vehicle, in id order."""
        return [tire for tire in self.tires if tire.vehicle_id == vehicle_id]

    def resolved_tires(self) -> Iterator[Tuple[Tire, Vehicle]]:
        """Tires whose vehicle exists, paired with that vehicle."""
        for tire in self.tires:
            vehicle = self._vehicles.get(tire.vehicle_id)
            if vehicle is not None:
                yield tire, vehicle

    def unresolved_tires(self) -> List[Tire]:
        """Tires whose vehicle_id names no vehicle."""
        return [tire for tire in self.tires if tire.vehicle_id not in self._vehicles]

    def remove_vehicle(self, vehicle_id: int) -> bool:
        """Remove a vehicle and its joints.

        Its tires stay in the arena and become unresolved.

        Args:
            vehicle_id: ID of vehicle to remove

        Returns:
            True if the vehicle was removed
        """
        if vehicle_id not in self._vehicles:
            return False

        del self._vehicles[vehicle_id]
        # Drop joints that reference the removed vehicle
        self._joints = {
            joint_id: joint for joint_id, joint in self._joints.items()
            if vehicle_id not in (joint.leading_id, joint.following_id)
        }
        return True

    def advance_time(self, dt: float) -> None:
        """Advance simulation time.

        Args:
            dt: Time step in seconds
        """
        self._time += dt
        self._frame += 1

    def reset(self) -> None:
        """Remove everything and rewind time."""
        # Clear entities
        self._vehicles.clear()
        self._tires.clear()
        self._joints.clear()
        # Restart id allocation and timing
        self._next_vehicle_id = 0
        self._next_tire_id = 0
        self._next_joint_id = 0
        self._time = 0.0
        self._frame = 0

    def get_state(self) -> dict:
        """Get world state for serialization.

        Returns:
            Dictionary containing world state
        """
        return {
            "time": self._time,
            "frame": self._frame,
            "vehicles": {vid: v.get_state() for vid, v in self._vehicles.items()},
            "tires": {
                tire.tire_id: {"vehicle_id": tire.vehicle_id, **tire.get_state()}
                for tire in self.tires
            },
            "joints": [joint.get_state() for joint in self._joints.values()],
        }
