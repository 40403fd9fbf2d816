"""Collapse each cluster to one mean segment."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Sequence, Tuple

import numpy as np

from .geometry import LineSegment, Point


@dataclass(frozen=True)
class RepresentativeSegment:
    upper: Point
    lower: Point
    members: Tuple[int, ...] = ()


def mean_segment(segments: Sequence[LineSegment], members: Sequence[int] = ()) -> RepresentativeSegment:
    """Average upper endpoints with upper endpoints and lower with lower."""
    if not segments:
        raise ValueError("cannot aggregate an empty cluster")

    oriented = np.array([seg.oriented() for seg in segments], dtype=np.float64)  # (n, 2, 2)
    upper = oriented[:, 0, :].mean(axis=0)
    lower = oriented[:, 1, :].mean(axis=0)
    return RepresentativeSegment(
        upper=(float(upper[0]), float(upper[1])),
        lower=(float(lower[0]), float(lower[1])),
        members=tuple(members),
    )


def aggregate_clusters(
    segments: Sequence[LineSegment],
    clusters: Sequence[Sequence[int]],
) -> List[RepresentativeSegment]:
    return [mean_segment([segments[i] for i in cluster], members=cluster) for cluster in clusters]
