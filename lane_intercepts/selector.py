"""Pick the innermost left and right boundary crossings of the reference row."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Optional

from .aggregation import RepresentativeSegment
from .geometry import Point, intersect

logger = logging.getLogger(__name__)

LEFT = "left"
RIGHT = "right"


@dataclass(frozen=True)
class Intercept:
    point: Point
    anchor: Point

    @property
    def x(self) -> int:
        return int(round(self.point[0]))

    @property
    def y(self) -> int:
        return int(round(self.point[1]))


@dataclass(frozen=True)
class LaneCandidates:
    left: Optional[Intercept] = None
    right: Optional[Intercept] = None

    @property
    def left_x(self) -> Optional[int]:
        return None if self.left is None else self.left.x

    @property
    def right_x(self) -> Optional[int]:
        return None if self.right is None else self.right.x


def reference_intercept(rep: RepresentativeSegment, width: int, height: int) -> Optional[Point]:
    """Where the line through ``rep`` crosses row ``height``, or None if it never does."""
    return intersect(rep.lower, rep.upper, (0.0, float(height)), (float(width), float(height)))


class LaneSelector:
    """
    Running best-candidate state for a single frame.

    ``offer`` keeps, on each side of the region's centre column, the crossing
    closest to that column. A crossing exactly on the centre column is
    ignored.
    """

    def __init__(self, width: int, height: int) -> None:
        self.width = int(width)
        self.height = int(height)
        self.center = self.width // 2
        self.left: Optional[Intercept] = None
        self.right: Optional[Intercept] = None

    def offer(self, rep: RepresentativeSegment) -> Optional[str]:
        """Consider one representative segment; return the side it updated, if any."""
        point = reference_intercept(rep, self.width, self.height)
        if point is None:
            logger.debug("Skipping segment parallel to the reference row: %s", rep)
            return None

        x = int(round(point[0]))
        if x > self.center and (self.right is None or x < self.right.x):
            self.right = Intercept(point=point, anchor=rep.lower)
            return RIGHT
        if x < self.center and (self.left is None or x > self.left.x):
            self.left = Intercept(point=point, anchor=rep.upper)
            return LEFT
        return None

    @property
    def candidates(self) -> LaneCandidates:
        return LaneCandidates(left=self.left, right=self.right)


def select_lanes(reps: Iterable[RepresentativeSegment], width: int, height: int) -> LaneCandidates:
    selector = LaneSelector(width, height)
    for rep in reps:
        selector.offer(rep)
    return selector.candidates
