import itertools
import random

import pytest

from lane_intercepts.aggregation import aggregate_clusters, mean_segment
from lane_intercepts.clustering import DisjointSet, cluster_segments, is_equal, partition
from lane_intercepts.geometry import LineSegment


def _rep_set(segments):
    clusters, _ = cluster_segments(segments)
    reps = aggregate_clusters(segments, clusters)
    return sorted((round(r.upper[0], 9), round(r.upper[1], 9), round(r.lower[0], 9), round(r.lower[1], 9)) for r in reps)


def test_near_collinear_overlapping_segments_are_equal():
    a = LineSegment(10, 300, 50, 280)
    b = LineSegment(12, 299, 52, 279)
    assert is_equal(a, b)
    assert is_equal(b, a)


def test_reversed_segment_is_still_equal():
    a = LineSegment(10, 300, 50, 280)
    b = LineSegment(52, 279, 12, 299)
    assert is_equal(a, b)


def test_distant_parallel_segments_are_not_equal():
    # same direction, but the midpoints are ~43 px apart for ~45 px segments
    a = LineSegment(10, 300, 50, 280)
    b = LineSegment(48, 281, 90, 260)
    assert not is_equal(a, b)


def test_crossing_segments_are_not_equal():
    a = LineSegment(0, 0, 100, 100)
    b = LineSegment(0, 100, 100, 0)
    assert not is_equal(a, b)


def test_angle_just_outside_tolerance_is_rejected():
    a = LineSegment(0, 0, 1000, 0)
    b = LineSegment(0, 0, 1000, 120)  # ~6.8 degrees
    assert not is_equal(a, b)
    c = LineSegment(0, 0, 1000, 90)  # ~5.1 degrees
    assert is_equal(a, c)


def test_degenerate_segment_is_never_equal():
    point = LineSegment(5, 5, 5, 5)
    assert not is_equal(point, point)
    assert not is_equal(point, LineSegment(0, 5, 10, 5))


def test_disjoint_set_union_and_find():
    sets = DisjointSet(5)
    assert sets.union(0, 1)
    assert sets.union(3, 4)
    assert not sets.union(1, 0)
    assert sets.find(0) == sets.find(1)
    assert sets.find(3) == sets.find(4)
    assert sets.find(2) not in (sets.find(0), sets.find(3))


def test_partition_labels_follow_first_appearance():
    labels, n = partition([1, 10, 2, 11, 50], lambda a, b: abs(a - b) <= 1)
    assert n == 3
    assert labels == [0, 1, 0, 1, 2]


def test_partition_merges_transitive_chains():
    # 0~1 and 1~2 but not 0~2: all three still end up together
    labels, n = partition([0, 1, 2], lambda a, b: abs(a - b) == 1)
    assert n == 1
    assert labels == [0, 0, 0]


def test_chain_of_segments_merges_into_one_cluster():
    a = LineSegment(0, 0, 100, 0)
    b = LineSegment(15, 0, 115, 0)
    c = LineSegment(30, 0, 130, 0)
    assert is_equal(a, b) and is_equal(b, c)
    assert not is_equal(a, c)

    clusters, labels = cluster_segments([a, b, c])
    assert clusters == [[0, 1, 2]]
    assert labels == [0, 0, 0]


def test_clusters_partition_every_segment_once():
    segments = [
        LineSegment(10, 300, 50, 280),
        LineSegment(12, 299, 52, 279),
        LineSegment(190, 300, 150, 280),
        LineSegment(5, 5, 5, 5),
        LineSegment(0, 100, 100, 0),
    ]
    clusters, labels = cluster_segments(segments)
    flat = sorted(itertools.chain.from_iterable(clusters))
    assert flat == list(range(len(segments)))
    assert all(clusters)
    assert len(clusters) == 4
    assert labels[0] == labels[1]
    for label, cluster in enumerate(clusters):
        assert all(labels[i] == label for i in cluster)


def test_empty_input_gives_no_clusters():
    clusters, labels = cluster_segments([])
    assert clusters == []
    assert labels == []


def test_mean_segment_averages_matching_endpoint_roles():
    # second segment is listed bottom-up; orientation must still pair upper with upper
    rep = mean_segment([LineSegment(10, 300, 50, 280), LineSegment(52, 279, 12, 299)])
    assert rep.upper == pytest.approx((51.0, 279.5))
    assert rep.lower == pytest.approx((11.0, 299.5))


def test_mean_segment_rejects_empty_cluster():
    with pytest.raises(ValueError):
        mean_segment([])


def test_aggregation_keeps_members():
    segments = [LineSegment(0, 0, 100, 0), LineSegment(0, 200, 0, 300)]
    clusters, _ = cluster_segments(segments)
    reps = aggregate_clusters(segments, clusters)
    assert [rep.members for rep in reps] == [(0,), (1,)]


def test_aggregation_is_independent_of_input_order():
    segments = [
        LineSegment(10, 300, 50, 280),
        LineSegment(12, 299, 52, 279),
        LineSegment(11, 300, 49, 281),
        LineSegment(190, 300, 150, 280),
        LineSegment(188, 299, 148, 279),
        LineSegment(0, 0, 100, 100),
    ]
    expected = _rep_set(segments)
    rng = random.Random(7)
    for _ in range(10):
        shuffled = segments[:]
        rng.shuffle(shuffled)
        assert _rep_set(shuffled) == expected
