"""Per-frame lane intercept pipeline and the directory driver around it."""

from __future__ import annotations

import csv
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Iterator, List, Optional, Sequence, Tuple

import cv2
import numpy as np

from .aggregation import RepresentativeSegment, aggregate_clusters
from .clustering import cluster_segments
from .config import DetectorConfig
from .detection import (
    AdaptiveThreshold,
    DetectionState,
    FrameTooSmallError,
    HoughSegmentDetector,
    LineDetector,
    detect_segments,
    region_top,
)
from .geometry import LineSegment
from .render import draw_clusters, draw_lane_boundaries
from .selector import LaneCandidates, select_lanes

logger = logging.getLogger(__name__)

MISSING_TOKEN = "None"


@dataclass(frozen=True)
class LaneFrame:
    """Geometric outcome for one set of raw segments."""

    segments: List[LineSegment]
    labels: List[int]
    representatives: List[RepresentativeSegment]
    candidates: LaneCandidates


@dataclass(frozen=True)
class FrameRecord:
    frame_id: str
    left_x: Optional[int]
    right_x: Optional[int]

    def to_row(self) -> List[str]:
        def fmt(value: Optional[int]) -> str:
            return MISSING_TOKEN if value is None else str(int(value))

        return [self.frame_id, fmt(self.left_x), fmt(self.right_x)]


@dataclass(frozen=True)
class FrameResult:
    record: FrameRecord
    lanes: LaneFrame
    region_size: Tuple[int, int]  # width, height
    shift: int
    overlay: Optional[np.ndarray] = field(default=None, repr=False, compare=False)
    cluster_overlay: Optional[np.ndarray] = field(default=None, repr=False, compare=False)


def locate_lanes(segments: Sequence[LineSegment], width: int, height: int) -> LaneFrame:
    """Cluster raw segments, average each cluster and pick the boundaries either side of centre."""
    segments = list(segments)
    clusters, labels = cluster_segments(segments)
    reps = aggregate_clusters(segments, clusters)
    candidates = select_lanes(reps, width, height)
    return LaneFrame(segments=segments, labels=labels, representatives=reps, candidates=candidates)


def process_frame(
    frame: np.ndarray,
    frame_id: str,
    prior: DetectionState,
    config: Optional[DetectorConfig] = None,
    detector: Optional[LineDetector] = None,
    render: bool = False,
    render_clusters: bool = False,
) -> Tuple[FrameResult, DetectionState]:
    """
    Run detection and lane selection on one frame.

    Returns the frame's result and the detection state to hand to the next
    frame. Raises FrameTooSmallError for frames too small to analyse.
    """
    config = config or DetectorConfig()
    detector = detector or HoughSegmentDetector()

    segments, region, state = detect_segments(frame, prior, config, detector)
    lanes = locate_lanes(segments, region.width, region.height)
    record = FrameRecord(frame_id, lanes.candidates.left_x, lanes.candidates.right_x)

    overlay = draw_lane_boundaries(frame, lanes.candidates, shift=region.shift) if render else None
    cluster_overlay = (
        draw_clusters(frame, lanes.segments, lanes.labels, shift=region.shift) if render_clusters else None
    )
    result = FrameResult(
        record=record,
        lanes=lanes,
        region_size=(region.width, region.height),
        shift=region.shift,
        overlay=overlay,
        cluster_overlay=cluster_overlay,
    )
    return result, state


def list_frame_files(directory: Path) -> List[Path]:
    """Files of ``directory`` in name order. Raises if the directory cannot be listed."""
    directory = Path(directory)
    if not directory.exists():
        raise FileNotFoundError(f"Input directory does not exist: {directory}")
    if not directory.is_dir():
        raise NotADirectoryError(f"Input path is not a directory: {directory}")
    return sorted((p for p in directory.iterdir() if p.is_file()), key=lambda p: p.name)


def iter_frames(paths: Iterable[Path]) -> Iterator[Tuple[str, np.ndarray]]:
    for path in paths:
        image = cv2.imread(str(path))
        if image is None or image.size == 0:
            logger.warning("Skipping unreadable frame %s", path.name)
            continue
        yield path.name, image


class LanePipeline:
    """Feeds frames through ``process_frame``, carrying the detection state between them."""

    def __init__(
        self,
        config: Optional[DetectorConfig] = None,
        detector: Optional[LineDetector] = None,
        render: bool = False,
        render_clusters: bool = False,
    ) -> None:
        self.config = config or DetectorConfig()
        self.detector = detector or HoughSegmentDetector()
        self.render = render
        self.render_clusters = render_clusters
        self._controller = AdaptiveThreshold(self.config)

    def run(self, frames: Iterable[Tuple[str, np.ndarray]]) -> Iterator[FrameResult]:
        state = self._controller.initial_state()
        for frame_id, frame in frames:
            if not self.config.persist_threshold:
                state = self._controller.initial_state()
            try:
                result, next_state = process_frame(
                    frame,
                    frame_id,
                    state,
                    self.config,
                    self.detector,
                    render=self.render,
                    render_clusters=self.render_clusters,
                )
            except FrameTooSmallError as exc:
                logger.warning("Skipping frame %s: %s", frame_id, exc)
                continue

            state = next_state
            logger.info(
                "%s: left=%s right=%s segments=%d clusters=%d vote=%d",
                frame_id,
                result.record.left_x,
                result.record.right_x,
                len(result.lanes.segments),
                len(result.lanes.representatives),
                state.vote_threshold,
            )
            yield result


def write_intercepts(records: Iterable[FrameRecord], path: Path) -> int:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    count = 0
    with path.open("w", encoding="utf-8", newline="") as handle:
        writer = csv.writer(handle, lineterminator="\n")
        for record in records:
            writer.writerow(record.to_row())
            count += 1
    return count


def _write_image(path: Path, image: np.ndarray) -> None:
    if not cv2.imwrite(str(path), image):
        logger.warning("Could not write overlay %s", path)


def run_directory(
    input_dir: Path,
    output_csv: Path,
    config: Optional[DetectorConfig] = None,
    processed_dir: Optional[Path] = None,
    detector: Optional[LineDetector] = None,
    debug_dir: Optional[Path] = None,
) -> List[FrameRecord]:
    """
    Process every image in ``input_dir`` and write one CSV row per processed frame.

    ``processed_dir`` receives ``processed_<name>`` boundary overlays and
    ``debug_dir`` receives ``clusters_<name>`` images with raw segments
    coloured by cluster.
    """
    paths = list_frame_files(Path(input_dir))
    pipeline = LanePipeline(
        config=config,
        detector=detector,
        render=processed_dir is not None,
        render_clusters=debug_dir is not None,
    )

    for out_dir in (processed_dir, debug_dir):
        if out_dir is not None:
            Path(out_dir).mkdir(parents=True, exist_ok=True)

    records: List[FrameRecord] = []
    for result in pipeline.run(iter_frames(paths)):
        records.append(result.record)
        name = result.record.frame_id
        if processed_dir is not None and result.overlay is not None:
            _write_image(Path(processed_dir) / f"processed_{name}", result.overlay)
        if debug_dir is not None and result.cluster_overlay is not None:
            _write_image(Path(debug_dir) / f"clusters_{name}", result.cluster_overlay)

    write_intercepts(records, Path(output_csv))
    return records


def generate_synthetic_road(width: int = 640, height: int = 480, offset_px: int = 0) -> np.ndarray:
    """
    Draw a simple road scene: dark asphalt with two bright markings.

    The markings rise from near the bottom corners toward the centre at 25
    degrees from horizontal, inside the analysed region below row
    ``5 * width / 12``. ``offset_px`` slides both of them sideways.
    """
    img = np.full((height, width, 3), 40, dtype=np.uint8)
    margin = max(2, width // 64)
    run = int(width * 0.47)
    rise = int(round(run * np.tan(np.radians(25.0))))
    bottom = height - 5
    top = max(bottom - rise, region_top(width, DetectorConfig().roi_top_ratio) + 5)

    left_bottom = (margin + offset_px, bottom)
    left_top = (margin + run + offset_px, top)
    right_bottom = (width - 1 - margin + offset_px, bottom)
    right_top = (width - 1 - margin - run + offset_px, top)
    thickness = max(2, width // 80)
    cv2.line(img, left_bottom, left_top, (255, 255, 255), thickness)
    cv2.line(img, right_bottom, right_top, (255, 255, 255), thickness)
    return img
