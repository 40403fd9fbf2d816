"""Overlays for inspecting detection results. Nothing here feeds back into geometry."""

from __future__ import annotations

from typing import Optional, Sequence, Tuple

import cv2
import numpy as np

from .geometry import LineSegment, Point
from .selector import Intercept, LaneCandidates

Color = Tuple[int, int, int]

BOUNDARY_COLOR: Color = (0, 255, 255)
CLUSTER_COLORS: Sequence[Color] = ((255, 0, 0), (0, 255, 0), (0, 0, 255))
OTHER_CLUSTER_COLOR: Color = (0, 0, 0)


def _shifted(point: Point, shift: int) -> Tuple[int, int]:
    return int(round(point[0])), int(round(point[1])) + int(shift)


def _as_bgr(image: np.ndarray) -> np.ndarray:
    if image.ndim == 2:
        return cv2.cvtColor(image, cv2.COLOR_GRAY2BGR)
    return image.copy()


def draw_lane_boundaries(
    image: np.ndarray,
    candidates: LaneCandidates,
    shift: int = 0,
    color: Color = BOUNDARY_COLOR,
    thickness: int = 6,
) -> np.ndarray:
    """Draw each found boundary from its anchor to where it meets the reference row."""
    out = _as_bgr(image)
    sides: Sequence[Optional[Intercept]] = (candidates.left, candidates.right)
    for intercept in sides:
        if intercept is None:
            continue
        cv2.line(out, _shifted(intercept.anchor, shift), _shifted(intercept.point, shift), color, int(thickness))
    return out


def draw_clusters(
    image: np.ndarray,
    segments: Sequence[LineSegment],
    labels: Sequence[int],
    shift: int = 0,
    thickness: int = 6,
) -> np.ndarray:
    """Colour segments by cluster: the first three groups get blue, green, red."""
    if len(segments) != len(labels):
        raise ValueError("segments and labels must have the same length")

    out = _as_bgr(image)
    for seg, label in zip(segments, labels):
        color = CLUSTER_COLORS[label] if label < len(CLUSTER_COLORS) else OTHER_CLUSTER_COLOR
        cv2.line(out, _shifted(seg.start, shift), _shifted(seg.end, shift), color, int(thickness))
    return out
