"""
Ground-contact sensor - Per-tire downward probe.

Each tire casts a ray from its world position along its world down axis,
no longer than the vehicle's suspension rest length, against fixed
colliders only. The hit distance (or None) is stored on the tire for the
force models of the same tick.
"""

from dataclasses import dataclass
from typing import Iterable, Optional, Tuple
import logging

from rigsim.simulation.physics import PhysicsBackend, QueryFilter
from rigsim.vehicle.config import VehicleConfig
from rigsim.vehicle.vehicle import Tire, Vehicle

logger = logging.getLogger(__name__)


@dataclass
class ContactReport:
    """Outcome of one sensor pass."""
    probed: int = 0
    grounded: int = 0

    @property
    def airborne(self) -> int:
        return self.probed - self.grounded


class GroundContactSensor:
    """Raycast ground probe for all tires."""

    def __init__(
        self,
        backend: PhysicsBackend,
        query_filter: QueryFilter = QueryFilter.ONLY_FIXED,
    ):
        """Initialize sensor.

        Args:
            backend: Solver used for ray casts
            query_filter: Collider selection (vehicles themselves are dynamic
                and are skipped by the default)
        """
        self.backend = backend
        self.query_filter = query_filter

    def probe(self, tire: Tire, vehicle: Vehicle, config: VehicleConfig) -> Optional[float]:
        """Measure one tire's distance to the ground.

        Args:
            tire: Tire to probe
            vehicle: Owning vehicle
            config: Vehicle config snapshot for this tick

        Returns:
            Hit distance in [0, spring_offset], or None when airborne
        """
        world = tire.world_transform(vehicle)
        return self.backend.cast_ray(
            world.translation,
            world.down(),
            config.spring_offset,
            self.query_filter,
        )

    def sense(self, entries: Iterable[Tuple[Tire, Vehicle, VehicleConfig]]) -> ContactReport:
        """Probe every tire and store the result on it.

        Args:
            entries: (tire, owning vehicle, config snapshot) triples

        Returns:
            ContactReport with probe and grounded counts
        """
        report = ContactReport()
        for tire, vehicle, config in entries:
            tire.distance_to_ground = self.probe(tire, vehicle, config)
            report.probed += 1
            if tire.distance_to_ground is not None:
                report.grounded += 1

        logger.debug(f"Contact sensor: {report.grounded}/{report.probed} tires grounded")
        return report
