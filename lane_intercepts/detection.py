"""Edge extraction, Hough line detection and the adaptive vote threshold."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, List, Protocol, Sequence, Tuple, TypeVar

import cv2
import numpy as np

from .config import DetectorConfig
from .geometry import LineSegment, segment_angle_deg

logger = logging.getLogger(__name__)

T = TypeVar("T")
PolarLine = Tuple[float, float]  # rho, theta

HOUGH_RHO = 1.0
HOUGH_THETA = np.pi / 180.0

# Standard Hough lines are kept only when 9 to 45 degrees from horizontal.
_THETA_WINDOWS = ((np.pi / 4.0, 9.0 * np.pi / 20.0), (11.0 * np.pi / 20.0, 3.0 * np.pi / 4.0))


class FrameTooSmallError(ValueError):
    """The frame is empty or has no rows below the analysis region's top."""


@dataclass(frozen=True)
class DetectionState:
    """Outcome of the previous adaptive search: final vote and how many lines it produced."""

    vote_threshold: int
    line_count: int


@dataclass(frozen=True)
class AnalysisRegion:
    gray: np.ndarray
    edges: np.ndarray
    shift: int

    @property
    def width(self) -> int:
        return int(self.edges.shape[1])

    @property
    def height(self) -> int:
        return int(self.edges.shape[0])


class LineDetector(Protocol):
    def detect(
        self,
        edge_map: np.ndarray,
        vote_threshold: int,
        length_min: float,
        gap_max: float,
    ) -> List[LineSegment]: ...


class HoughSegmentDetector:
    """Probabilistic Hough transform at 1 px / 1 degree resolution."""

    def __init__(self, rho: float = HOUGH_RHO, theta: float = HOUGH_THETA) -> None:
        self.rho = rho
        self.theta = theta

    def detect(
        self,
        edge_map: np.ndarray,
        vote_threshold: int,
        length_min: float,
        gap_max: float,
    ) -> List[LineSegment]:
        found = cv2.HoughLinesP(
            edge_map,
            self.rho,
            self.theta,
            int(vote_threshold),
            minLineLength=float(length_min),
            maxLineGap=float(gap_max),
        )
        if found is None:
            return []
        return [LineSegment.from_array(row) for row in found.reshape((-1, 4))]


def hough_lines(edge_map: np.ndarray, vote_threshold: int) -> List[PolarLine]:
    found = cv2.HoughLines(edge_map, HOUGH_RHO, HOUGH_THETA, int(vote_threshold))
    if found is None:
        return []
    return [(float(rho), float(theta)) for rho, theta in found.reshape((-1, 2))]


class AdaptiveThreshold:
    """
    Chooses the vote threshold for the standard Hough search.

    The seed is reset high when the previous search ran out of votes or
    returned more lines than the desired band, otherwise it is relaxed
    upward. From the seed the vote is lowered step by step until enough lines
    come back or the vote reaches zero.
    """

    def __init__(self, config: DetectorConfig) -> None:
        self.config = config

    def initial_state(self) -> DetectionState:
        return DetectionState(vote_threshold=self.config.initial_vote, line_count=0)

    def seed(self, prior: DetectionState) -> int:
        if prior.vote_threshold < 1 or prior.line_count > self.config.band_max:
            return self.config.reset_vote
        return prior.vote_threshold + self.config.relax_step

    def search(self, detect: Callable[[int], Sequence[T]], prior: DetectionState) -> Tuple[List[T], DetectionState]:
        vote = self.seed(prior)
        start = vote
        lines: List[T] = []
        attempts = 0
        while len(lines) < self.config.min_lines and vote > 0:
            lines = list(detect(vote))
            attempts += 1
            vote -= self.config.retry_step

        logger.debug(
            "Hough search: seed=%d attempts=%d lines=%d next_vote=%d",
            start,
            attempts,
            len(lines),
            vote,
        )
        return lines, DetectionState(vote_threshold=vote, line_count=len(lines))


def _to_gray(bgr: np.ndarray) -> np.ndarray:
    if bgr.ndim == 2:
        return bgr
    return cv2.cvtColor(bgr, cv2.COLOR_BGR2GRAY)


def _blur(image: np.ndarray, k: int) -> np.ndarray:
    return cv2.GaussianBlur(image, (int(k), int(k)), 0)


def _canny(gray: np.ndarray, low: int, high: int) -> np.ndarray:
    return cv2.Canny(gray, int(low), int(high))


def region_top(frame_width: int, ratio: float) -> int:
    """First analysed row. Proportional to the frame width, not its height."""
    return int(round(ratio * frame_width, 6))


def extract_region(frame: np.ndarray, config: DetectorConfig) -> AnalysisRegion:
    """Blur, convert to gray, crop the analysis region and compute its edges."""
    if frame is None or frame.size == 0:
        raise FrameTooSmallError("Empty image provided")

    rows, cols = frame.shape[:2]
    shift = region_top(cols, config.roi_top_ratio)
    if shift >= rows or cols < 2:
        raise FrameTooSmallError(f"Frame {cols}x{rows} is too small for an analysis region starting at row {shift}")

    blurred = _blur(frame, config.gaussian_kernel)
    gray = _to_gray(blurred)
    roi = np.ascontiguousarray(gray[shift:rows, 0 : cols - 1])
    edges = _canny(roi, config.canny_low, config.canny_high)
    return AnalysisRegion(gray=roi, edges=edges, shift=shift)


def _in_theta_window(theta: float) -> bool:
    return any(lo < theta < hi for lo, hi in _THETA_WINDOWS)


def rasterize_polar_lines(lines: Sequence[PolarLine], shape: Tuple[int, int], thickness: int) -> np.ndarray:
    """Draw the lane-like standard Hough lines from row 0 to the last row."""
    mask = np.zeros(shape, dtype=np.uint8)
    rows = shape[0]
    for rho, theta in lines:
        if not _in_theta_window(theta):
            continue
        cos_t, sin_t = np.cos(theta), np.sin(theta)
        pt1 = (int(round(rho / cos_t)), 0)
        pt2 = (int(round((rho - rows * sin_t) / cos_t)), rows)
        cv2.line(mask, pt1, pt2, 255, int(thickness))
    return mask


def _lane_like_angle(angle: float) -> bool:
    return (10.0 < angle < 90.0) or (-90.0 < angle < -10.0) or (90.0 < angle < 150.0)


def rasterize_segments(segments: Sequence[LineSegment], shape: Tuple[int, int], thickness: int) -> np.ndarray:
    """Draw the probabilistic Hough segments whose angle looks lane-like."""
    mask = np.zeros(shape, dtype=np.uint8)
    for seg in segments:
        if _lane_like_angle(segment_angle_deg(seg)):
            cv2.line(mask, seg.start, seg.end, 255, int(thickness))
    return mask


def detect_segments(
    frame: np.ndarray,
    prior: DetectionState,
    config: DetectorConfig,
    detector: LineDetector,
) -> Tuple[List[LineSegment], AnalysisRegion, DetectionState]:
    """
    Produce the raw segments of one frame.

    Two independent detections are intersected so that only edges confirmed
    by both the adaptive standard Hough search and the probabilistic
    transform survive; the probabilistic detector then runs once more on the
    edges of that combined mask.
    """
    region = extract_region(frame, config)
    shape = region.edges.shape[:2]

    controller = AdaptiveThreshold(config)
    polar, state = controller.search(lambda vote: hough_lines(region.edges, vote), prior)
    hough_mask = rasterize_polar_lines(polar, shape, config.hough_thickness)

    first_pass = detector.detect(region.edges, config.hough_p_vote, config.min_line_length, config.max_line_gap)
    hough_p_mask = rasterize_segments(first_pass, shape, config.hough_p_thickness)

    combined = cv2.bitwise_and(hough_p_mask, hough_mask)
    _, inverted = cv2.threshold(combined, config.mask_threshold, 255, cv2.THRESH_BINARY_INV)
    refined_edges = _canny(inverted, config.refine_canny_low, config.refine_canny_high)

    segments = detector.detect(refined_edges, config.hough_p_vote, config.min_line_length, config.max_line_gap)
    logger.debug(
        "Detection: polar=%d first_pass=%d segments=%d shift=%d",
        len(polar),
        len(first_pass),
        len(segments),
        region.shift,
    )
    return segments, region, state
