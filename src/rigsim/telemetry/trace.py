"""
Force trace - Debug line segments for the last tick's contributions.

Each contribution becomes a segment from its application point along its
force, scaled down so typical suspension forces stay a few units long.
Renderers can draw the segments; tests can inspect them directly.
"""

from dataclasses import dataclass
from typing import Iterable, List
import numpy as np

from rigsim.core.contribution import ForceContribution, ForceSource


# World units of segment length per newton
FORCE_DRAW_SCALE = 0.04


@dataclass(frozen=True)
class ForceSegment:
    """One debug segment."""
    vehicle_id: int
    source: ForceSource
    start: np.ndarray
    end: np.ndarray

    @property
    def length(self) -> float:
        return float(np.linalg.norm(self.end - self.start))


class ForceTrace:
    """Keeps the segments of the most recent tick."""

    def __init__(self, scale: float = FORCE_DRAW_SCALE):
        self.scale = scale
        self.tick: int | None = None
        self._segments: List[ForceSegment] = []

    @property
    def segments(self) -> List[ForceSegment]:
        return list(self._segments)

    def capture(self, tick: int, contributions: Iterable[ForceContribution]) -> int:
        """Replace the trace with this tick's contributions.

        Args:
            tick: Tick number
            contributions: Contributions accepted by the aggregator

        Returns:
            Number of segments captured
        """
        self.tick = tick
        self._segments = [
            ForceSegment(
                vehicle_id=c.vehicle_id,
                source=c.source,
                start=c.point.copy(),
                end=c.point + c.force * self.scale,
            )
            for c in contributions
        ]
        return len(self._segments)

    def for_source(self, source: ForceSource) -> List[ForceSegment]:
        return [s for s in self._segments if s.source is source]

    def clear(self) -> None:
        self.tick = None
        self._segments = []
