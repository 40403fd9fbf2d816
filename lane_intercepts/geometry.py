"""Plain 2-D geometry on pixel-space line segments."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

Point = Tuple[float, float]

# Cross products below this magnitude mean the two lines are parallel.
PARALLEL_EPS = 1e-8


class DegenerateSegmentError(ValueError):
    """Raised when a direction is requested for a zero-length segment."""


@dataclass(frozen=True)
class LineSegment:
    x1: int
    y1: int
    x2: int
    y2: int

    @classmethod
    def from_array(cls, values: Sequence[float]) -> "LineSegment":
        x1, y1, x2, y2 = (int(v) for v in values)
        return cls(x1, y1, x2, y2)

    @property
    def start(self) -> Tuple[int, int]:
        return self.x1, self.y1

    @property
    def end(self) -> Tuple[int, int]:
        return self.x2, self.y2

    @property
    def length(self) -> float:
        return length(self)

    @property
    def midpoint(self) -> Point:
        return midpoint(self)

    def direction(self) -> Point:
        return direction(self)

    def oriented(self) -> Tuple[Tuple[int, int], Tuple[int, int]]:
        """
        Return ``(upper, lower)`` endpoints.

        Image rows grow downward, so the endpoint with the larger row is the
        lower one. A horizontal segment keeps its first endpoint as lower.
        """
        if self.y1 >= self.y2:
            return self.end, self.start
        return self.start, self.end

    def as_tuple(self) -> Tuple[int, int, int, int]:
        return self.x1, self.y1, self.x2, self.y2


def length(segment: LineSegment) -> float:
    return math.hypot(segment.x2 - segment.x1, segment.y2 - segment.y1)


def midpoint(segment: LineSegment) -> Point:
    return (segment.x1 + segment.x2) * 0.5, (segment.y1 + segment.y2) * 0.5


def direction(segment: LineSegment) -> Point:
    norm = length(segment)
    if norm == 0.0:
        raise DegenerateSegmentError(f"zero-length segment has no direction: {segment.as_tuple()}")
    return (segment.x2 - segment.x1) / norm, (segment.y2 - segment.y1) / norm


def segment_angle_deg(segment: LineSegment) -> float:
    """Angle of the segment in degrees, measured with the y axis pointing up."""
    return math.degrees(math.atan2(segment.y1 - segment.y2, segment.x2 - segment.x1))


def intersect(a0: Point, a1: Point, b0: Point, b1: Point) -> Optional[Point]:
    """
    Intersect the infinite line through ``a0 -> a1`` with the one through ``b0 -> b1``.

    Returns ``None`` for parallel (or coincident) lines.
    """
    dx_a, dy_a = a1[0] - a0[0], a1[1] - a0[1]
    dx_b, dy_b = b1[0] - b0[0], b1[1] - b0[1]

    cross = dx_a * dy_b - dy_a * dx_b
    if abs(cross) < PARALLEL_EPS:
        return None

    ox, oy = b0[0] - a0[0], b0[1] - a0[1]
    t = (ox * dy_b - oy * dx_b) / cross
    return a0[0] + dx_a * t, a0[1] + dy_a * t
