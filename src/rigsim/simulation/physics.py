"""
Physics boundary - Queries the force pipeline needs from a rigid-body solver.

Provides:
- PhysicsBackend: the two solver queries (ray cast, point velocity)
- QueryFilter: collider selection for ray casts
- StaticScene: reference backend over infinite planes and oriented boxes

Integration, collision response and joints stay with the external solver;
the pipeline only reads from it through PhysicsBackend.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Protocol, Union
import numpy as np

from rigsim.core.transform import Transform, vec3, quat_inverse, quat_rotate_vector
from rigsim.vehicle.vehicle import Vehicle


class QueryFilter(Enum):
    """Which colliders a ray cast may hit."""
    ALL = "all"
    ONLY_FIXED = "only_fixed"

    def accepts(self, fixed: bool) -> bool:
        return self is QueryFilter.ALL or fixed


class PhysicsBackend(Protocol):
    """Solver queries used by the force pipeline."""

    def cast_ray(
        self,
        origin: np.ndarray,
        direction: np.ndarray,
        max_distance: float,
        query_filter: QueryFilter,
    ) -> Optional[float]:
        """Distance to the first hit along the ray, or None on a miss."""
        ...

    def velocity_at_point(self, vehicle: Vehicle, point: np.ndarray) -> np.ndarray:
        """World velocity of a point rigidly attached to the vehicle."""
        ...


@dataclass
class PhysicsConfig:
    """Ray cast configuration."""
    # Rays whose direction is this close to parallel with a surface miss it
    parallel_epsilon: float = 1e-9


@dataclass
class Plane:
    """Infinite plane (solid half-space below the normal)."""
    point: np.ndarray = field(default_factory=vec3)
    normal: np.ndarray = field(default_factory=lambda: vec3(0.0, 1.0, 0.0))
    fixed: bool = True

    def __post_init__(self):
        self.point = np.asarray(self.point, dtype=float).copy()
        normal = np.asarray(self.normal, dtype=float)
        self.normal = normal / np.linalg.norm(normal)


@dataclass
class Box:
    """Oriented box given by its pose and half extents."""
    transform: Transform = field(default_factory=Transform)
    half_extents: np.ndarray = field(default_factory=lambda: vec3(1.0, 1.0, 1.0))
    fixed: bool = True

    def __post_init__(self):
        self.half_extents = np.asarray(self.half_extents, dtype=float).copy()


Collider = Union[Plane, Box]


class StaticScene:
    """Reference PhysicsBackend over a list of simple colliders.

    Ray casts treat colliders as solid: a ray starting inside one reports a
    hit at distance 0. Point velocities come from the vehicle's own rigid
    body state.
    """

    def __init__(
        self,
        colliders: List[Collider] | None = None,
        config: PhysicsConfig | None = None,
    ):
        """Initialize scene.

        Args:
            colliders: Initial colliders
            config: Ray cast configuration. Uses defaults if None.
        """
        self.config = config or PhysicsConfig()
        self.colliders: List[Collider] = list(colliders or [])

    @classmethod
    def with_ground(cls, height: float = 0.0) -> "StaticScene":
        """Scene with a single fixed ground plane at y = height."""
        return cls([Plane(point=vec3(0.0, height, 0.0))])

    def add(self, collider: Collider) -> Collider:
        """Add a collider to the scene.

        Args:
            collider: Plane or Box

        Returns:
            The added collider
        """
        self.colliders.append(collider)
        return collider

    def cast_ray(
        self,
        origin: np.ndarray,
        direction: np.ndarray,
        max_distance: float,
        query_filter: QueryFilter = QueryFilter.ALL,
    ) -> Optional[float]:
        """Cast a ray and return the nearest hit distance.

        Args:
            origin: Ray start (world)
            direction: Ray direction (normalized internally)
            max_distance: Maximum hit distance
            query_filter: Collider selection

        Returns:
            Distance along the normalized direction, or None on a miss
        """
        origin = np.asarray(origin, dtype=float)
        direction = np.asarray(direction, dtype=float)
        norm = np.linalg.norm(direction)
        if norm == 0.0 or max_distance < 0.0:
            return None
        direction = direction / norm

        nearest: Optional[float] = None
        for collider in self.colliders:
            if not query_filter.accepts(collider.fixed):
                continue
            if isinstance(collider, Plane):
                hit = self._cast_plane(collider, origin, direction)
            else:
                hit = self._cast_box(collider, origin, direction)
            if hit is None or hit > max_distance:
                continue
            if nearest is None or hit < nearest:
                nearest = hit
        return nearest

    def velocity_at_point(self, vehicle: Vehicle, point: np.ndarray) -> np.ndarray:
        """Rigid-body velocity of a world point on the vehicle."""
        return vehicle.velocity_at_point(point)

    def _cast_plane(
        self,
        plane: Plane,
        origin: np.ndarray,
        direction: np.ndarray,
    ) -> Optional[float]:
        height = float(np.dot(plane.normal, origin - plane.point))
        if height <= 0.0:
            return 0.0
        denom = float(np.dot(plane.normal, direction))
        if denom > -self.config.parallel_epsilon:
            return None
        return -height / denom

    def _cast_box(
        self,
        box: Box,
        origin: np.ndarray,
        direction: np.ndarray,
    ) -> Optional[float]:
        # Slab test in the box frame
        local_origin = box.transform.inverse_transform_point(origin)
        local_dir = quat_rotate_vector(quat_inverse(box.transform.rotation), direction)

        t_min, t_max = 0.0, np.inf
        for axis in range(3):
            extent = box.half_extents[axis]
            o, d = local_origin[axis], local_dir[axis]
            if abs(d) < self.config.parallel_epsilon:
                if o < -extent or o > extent:
                    return None
                continue
            t1 = (-extent - o) / d
            t2 = (extent - o) / d
            if t1 > t2:
                t1, t2 = t2, t1
            t_min = max(t_min, t1)
            t_max = min(t_max, t2)
            if t_min > t_max:
                return None
        return float(t_min)
