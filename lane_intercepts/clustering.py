"""Group raw segments that belong to the same painted marking."""

from __future__ import annotations

import logging
import math
from typing import Callable, List, Sequence, Tuple, TypeVar

from .geometry import DegenerateSegmentError, LineSegment

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Segments within ~6 degrees of each other (either orientation) may merge.
MIN_ABS_COSINE = math.cos(math.pi / 30)
# Midpoints must lie within this fraction of the longer segment's length.
PROXIMITY_RATIO = 0.2


def is_equal(a: LineSegment, b: LineSegment) -> bool:
    """Return True when ``a`` and ``b`` look like pieces of the same marking."""
    try:
        ax, ay = a.direction()
        bx, by = b.direction()
    except DegenerateSegmentError:
        return False

    if abs(ax * bx + ay * by) < MIN_ABS_COSINE:
        return False

    (mx1, my1), (mx2, my2) = a.midpoint, b.midpoint
    dist = math.hypot(mx1 - mx2, my1 - my2)
    return dist <= max(a.length, b.length) * PROXIMITY_RATIO


class DisjointSet:
    """Union-find over ``0..n-1`` with path compression and union by rank."""

    def __init__(self, size: int) -> None:
        self._parent = list(range(size))
        self._rank = [0] * size

    def find(self, i: int) -> int:
        root = i
        while self._parent[root] != root:
            root = self._parent[root]
        while self._parent[i] != root:
            self._parent[i], i = root, self._parent[i]
        return root

    def union(self, i: int, j: int) -> bool:
        ri, rj = self.find(i), self.find(j)
        if ri == rj:
            return False
        if self._rank[ri] < self._rank[rj]:
            ri, rj = rj, ri
        self._parent[rj] = ri
        if self._rank[ri] == self._rank[rj]:
            self._rank[ri] += 1
        return True


def partition(items: Sequence[T], predicate: Callable[[T, T], bool]) -> Tuple[List[int], int]:
    """
    Split ``items`` into classes of the transitive closure of ``predicate``.

    Returns per-item labels numbered by first appearance, and the class count.
    """
    n = len(items)
    sets = DisjointSet(n)
    for i in range(n):
        for j in range(i + 1, n):
            if predicate(items[i], items[j]):
                sets.union(i, j)

    labels: List[int] = []
    root_label = {}
    for i in range(n):
        root = sets.find(i)
        if root not in root_label:
            root_label[root] = len(root_label)
        labels.append(root_label[root])
    return labels, len(root_label)


def clusters_from_labels(labels: Sequence[int], n_clusters: int) -> List[List[int]]:
    clusters: List[List[int]] = [[] for _ in range(n_clusters)]
    for idx, label in enumerate(labels):
        clusters[label].append(idx)
    return clusters


def cluster_segments(segments: Sequence[LineSegment]) -> Tuple[List[List[int]], List[int]]:
    """Return ``(clusters, labels)`` where each cluster lists segment indices."""
    labels, n_clusters = partition(segments, is_equal)
    logger.debug("Clustered %d segments into %d groups", len(segments), n_clusters)
    return clusters_from_labels(labels, n_clusters), labels
