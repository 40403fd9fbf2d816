import numpy as np
import pytest

from lane_intercepts.config import DetectorConfig
from lane_intercepts.detection import (
    AdaptiveThreshold,
    DetectionState,
    FrameTooSmallError,
    HoughSegmentDetector,
    extract_region,
    hough_lines,
    rasterize_polar_lines,
    rasterize_segments,
    region_top,
)
from lane_intercepts.geometry import LineSegment


class _CountingSearch:
    """Pretends the detector returns ``hits`` lines once the vote drops to ``works_at``."""

    def __init__(self, works_at, hits=5):
        self.works_at = works_at
        self.hits = hits
        self.votes = []

    def __call__(self, vote):
        self.votes.append(vote)
        if self.works_at is not None and vote <= self.works_at:
            return list(range(self.hits))
        return []


def test_seed_relaxes_from_default_state():
    controller = AdaptiveThreshold(DetectorConfig())
    assert controller.initial_state() == DetectionState(vote_threshold=20, line_count=0)
    assert AdaptiveThreshold(DetectorConfig(initial_vote=30)).initial_state().vote_threshold == 30
    assert controller.seed(controller.initial_state()) == 45


def test_seed_resets_when_previous_search_was_exhausted():
    controller = AdaptiveThreshold(DetectorConfig())
    assert controller.seed(DetectionState(vote_threshold=0, line_count=0)) == 100
    assert controller.seed(DetectionState(vote_threshold=-5, line_count=1)) == 100


def test_seed_resets_when_too_many_lines():
    controller = AdaptiveThreshold(DetectorConfig())
    assert controller.seed(DetectionState(vote_threshold=30, line_count=3)) == 100
    assert controller.seed(DetectionState(vote_threshold=30, line_count=2)) == 55
    assert controller.seed(DetectionState(vote_threshold=30, line_count=1)) == 55


def test_search_lowers_vote_until_enough_lines():
    controller = AdaptiveThreshold(DetectorConfig())
    detect = _CountingSearch(works_at=30)
    lines, state = controller.search(detect, controller.initial_state())
    assert detect.votes == [45, 40, 35, 30]
    assert len(lines) == 5
    assert state == DetectionState(vote_threshold=25, line_count=5)


def test_search_stops_at_zero_vote():
    controller = AdaptiveThreshold(DetectorConfig())
    detect = _CountingSearch(works_at=None)
    lines, state = controller.search(detect, controller.initial_state())
    assert detect.votes == [45, 40, 35, 30, 25, 20, 15, 10, 5]
    assert lines == []
    assert state == DetectionState(vote_threshold=0, line_count=0)
    assert controller.seed(state) == 100


def test_search_keeps_last_attempt_when_short_of_target():
    controller = AdaptiveThreshold(DetectorConfig())
    detect = _CountingSearch(works_at=10, hits=3)
    lines, state = controller.search(detect, controller.initial_state())
    assert detect.votes[-1] == 5
    assert len(lines) == 3
    assert state == DetectionState(vote_threshold=0, line_count=3)


def test_region_top_is_proportional_to_width():
    assert region_top(12, 5.0 / 12.0) == 5
    assert region_top(640, 5.0 / 12.0) == 266
    assert region_top(1200, 5.0 / 12.0) == 500


def test_extract_region_crops_below_shift_and_drops_last_column():
    frame = np.zeros((480, 640, 3), dtype=np.uint8)
    region = extract_region(frame, DetectorConfig())
    assert region.shift == 266
    assert (region.width, region.height) == (639, 480 - 266)
    assert region.edges.dtype == np.uint8


def test_extract_region_rejects_empty_and_too_wide_frames():
    with pytest.raises(FrameTooSmallError):
        extract_region(np.zeros((0, 0, 3), dtype=np.uint8), DetectorConfig())
    with pytest.raises(FrameTooSmallError):
        extract_region(np.zeros((100, 640, 3), dtype=np.uint8), DetectorConfig())


def test_blank_edges_produce_no_lines():
    edges = np.zeros((120, 160), dtype=np.uint8)
    assert hough_lines(edges, 10) == []
    assert HoughSegmentDetector().detect(edges, 10, 20.0, 5.0) == []


def test_probabilistic_detector_finds_drawn_segment():
    edges = np.zeros((200, 200), dtype=np.uint8)
    edges[20:180, 100] = 255
    segments = HoughSegmentDetector().detect(edges, 50, 100.0, 5.0)
    assert segments
    assert all(isinstance(s, LineSegment) for s in segments)
    assert all(abs(s.x1 - 100) <= 1 and abs(s.x2 - 100) <= 1 for s in segments)


def test_rasterize_polar_lines_keeps_only_lane_like_angles():
    shape = (100, 200)
    steep = rasterize_polar_lines([(50.0, np.pi / 3)], shape, 8)
    assert steep.any()
    vertical = rasterize_polar_lines([(50.0, 0.0)], shape, 8)
    horizontal = rasterize_polar_lines([(50.0, np.pi / 2)], shape, 8)
    assert not vertical.any()
    assert not horizontal.any()


def test_rasterize_segments_filters_by_angle():
    shape = (100, 200)
    diagonal = rasterize_segments([LineSegment(10, 90, 60, 20)], shape, 6)
    flat = rasterize_segments([LineSegment(10, 50, 190, 52)], shape, 6)
    assert diagonal.any()
    assert not flat.any()


def test_standard_hough_keeps_markings_at_25_degrees():
    edges = np.zeros((200, 400), dtype=np.uint8)
    # rises to the right, 25 degrees from horizontal
    xs = np.arange(20, 320)
    ys = np.round(180 - (xs - 20) * np.tan(np.radians(25.0))).astype(int)
    edges[ys, xs] = 255
    lines = hough_lines(edges, 100)
    assert lines
    mask = rasterize_polar_lines(lines, edges.shape, 8)
    assert mask[ys[150], xs[150]] == 255
