"""
Force aggregator - Per-tick collection and summation of force contributions.

Provides:
- ForceAggregator: per-vehicle contribution lists for exactly one tick
- Net force and torque about each vehicle's center of mass
- Exact zeros for vehicles that received nothing

Summation uses math.fsum per component, so the result does not depend on
the order in which contributions were submitted.
"""

from typing import Dict, Iterable, List, Mapping, Optional
import logging
import math
import numpy as np

from rigsim.core.contribution import ForceContribution
from rigsim.errors import PipelineOrderError, StaleContributionError
from rigsim.vehicle.vehicle import ExternalForce, Vehicle

logger = logging.getLogger(__name__)


def _fsum3(vectors: List[np.ndarray]) -> np.ndarray:
    """Correctly rounded component-wise sum of 3-vectors."""
    return np.array([math.fsum(v[axis] for v in vectors) for axis in range(3)])


class ForceAggregator:
    """Collects contributions for one tick and writes ExternalForce.

    Lifecycle per tick: begin_tick -> submit* -> aggregate. Aggregation
    seals the tick; later submissions are rejected until the next
    begin_tick.
    """

    def __init__(self):
        self._contributions: Dict[int, List[ForceContribution]] = {}
        self._tick: Optional[int] = None
        self._sealed: bool = True
        self._dropped: int = 0

    @property
    def tick(self) -> Optional[int]:
        """Tick currently accepting contributions (None before the first)."""
        return self._tick

    @property
    def is_sealed(self) -> bool:
        return self._sealed

    @property
    def dropped_count(self) -> int:
        """Non-finite contributions dropped this tick."""
        return self._dropped

    def begin_tick(self, tick: int, vehicle_ids: Iterable[int]) -> None:
        """Clear all contributions and open a new tick.

        Args:
            tick: Tick number contributions must carry
            vehicle_ids: Vehicles taking part in this tick
        """
        self._contributions = {vehicle_id: [] for vehicle_id in vehicle_ids}
        self._tick = tick
        self._sealed = False
        self._dropped = 0

    def submit(self, contribution: ForceContribution) -> bool:
        """Add a contribution to the current tick.

        Args:
            contribution: Force contribution from a force model

        Returns:
            True if stored, False if dropped for being non-finite

        Raises:
            StaleContributionError: Wrong tick, sealed tick or unknown vehicle
        """
        if self._tick is None or self._sealed:
            raise StaleContributionError(
                f"Contribution from {contribution.source.value} arrived outside an open tick"
            )
        if contribution.tick != self._tick:
            raise StaleContributionError(
                f"Contribution for tick {contribution.tick} submitted during tick {self._tick}"
            )
        if contribution.vehicle_id not in self._contributions:
            raise StaleContributionError(
                f"Contribution for unknown vehicle {contribution.vehicle_id}"
            )
        if not contribution.is_finite():
            self._dropped += 1
            logger.error(
                f"Dropped non-finite {contribution.source.value} contribution "
                f"for vehicle {contribution.vehicle_id} at tick {self._tick}"
            )
            return False

        self._contributions[contribution.vehicle_id].append(contribution)
        return True

    def submit_all(self, contributions: Iterable[Optional[ForceContribution]]) -> int:
        """Submit several contributions, skipping None.

        Returns:
            Number of contributions stored
        """
        stored = 0
        for contribution in contributions:
            if contribution is not None and self.submit(contribution):
                stored += 1
        return stored

    def contributions_for(self, vehicle_id: int) -> List[ForceContribution]:
        """Contributions received for a vehicle this tick."""
        return list(self._contributions.get(vehicle_id, []))

    def all_contributions(self) -> List[ForceContribution]:
        """Every contribution received this tick."""
        return [c for contributions in self._contributions.values() for c in contributions]

    def seal(self) -> None:
        """Stop accepting contributions for the current tick."""
        if self._tick is None:
            raise PipelineOrderError("Cannot seal the aggregator before begin_tick")
        self._sealed = True

    def net_force(self, vehicle: Vehicle) -> ExternalForce:
        """Sum this tick's contributions for one vehicle.

        Torque is taken about the vehicle translation: sum of (P - C) x F.

        Args:
            vehicle: Vehicle whose contributions to sum

        Returns:
            ExternalForce (exact zeros when nothing was submitted)
        """
        contributions = self._contributions.get(vehicle.vehicle_id, [])
        if not contributions:
            return ExternalForce()

        center = vehicle.transform.translation
        forces = [np.asarray(c.force, dtype=float) for c in contributions]
        torques = [np.cross(c.point - center, c.force) for c in contributions]
        return ExternalForce(force=_fsum3(forces), torque=_fsum3(torques))

    def aggregate(self, vehicles: Mapping[int, Vehicle]) -> Dict[int, ExternalForce]:
        """Seal the tick and write every vehicle's external force.

        Args:
            vehicles: All vehicles by id (vehicles outside the tick get zeros)

        Returns:
            Mapping of vehicle id to the written ExternalForce

        Raises:
            PipelineOrderError: If no tick was opened
        """
        self.seal()
        results: Dict[int, ExternalForce] = {}
        for vehicle_id, vehicle in vehicles.items():
            external = self.net_force(vehicle)
            vehicle.external_force = external
            results[vehicle_id] = external

        logger.debug(
            f"Aggregated {len(self.all_contributions())} contributions "
            f"for {len(results)} vehicles at tick {self._tick}"
        )
        return results

    def get_state(self) -> dict:
        """Get aggregator state for telemetry."""
        return {
            "tick": self._tick,
            "sealed": self._sealed,
            "dropped": self._dropped,
            "contributions": {
                vehicle_id: len(contributions)
                for vehicle_id, contributions in self._contributions.items()
            },
        }
