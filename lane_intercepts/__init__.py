"""Lane boundary intercepts (raw Hough segments → clusters → left/right crossings)."""

from .aggregation import RepresentativeSegment, aggregate_clusters
from .clustering import cluster_segments, is_equal
from .config import DetectorConfig
from .detection import AdaptiveThreshold, DetectionState, FrameTooSmallError, HoughSegmentDetector
from .geometry import DegenerateSegmentError, LineSegment, intersect
from .pipeline import (
    FrameRecord,
    FrameResult,
    LanePipeline,
    locate_lanes,
    process_frame,
    run_directory,
)
from .selector import Intercept, LaneCandidates, LaneSelector, select_lanes

__all__ = [
    "AdaptiveThreshold",
    "DegenerateSegmentError",
    "DetectionState",
    "DetectorConfig",
    "FrameRecord",
    "FrameResult",
    "FrameTooSmallError",
    "HoughSegmentDetector",
    "Intercept",
    "LaneCandidates",
    "LanePipeline",
    "LaneSelector",
    "LineSegment",
    "RepresentativeSegment",
    "aggregate_clusters",
    "cluster_segments",
    "intersect",
    "is_equal",
    "locate_lanes",
    "process_frame",
    "run_directory",
    "select_lanes",
]
