import argparse
import logging
from pathlib import Path

import cv2

from .config import DetectorConfig
from .pipeline import generate_synthetic_road, run_directory

logger = logging.getLogger("lane_intercepts")


def _cmd_generate(args: argparse.Namespace) -> int:
    img = generate_synthetic_road(width=args.width, height=args.height, offset_px=args.offset)
    args.output.parent.mkdir(parents=True, exist_ok=True)
    cv2.imwrite(str(args.output), img)
    print(f"Wrote synthetic image to {args.output}")
    return 0


def _load_config(args: argparse.Namespace) -> DetectorConfig:
    config = DetectorConfig.from_file(args.config) if args.config else DetectorConfig()
    return config.with_overrides(
        persist_threshold=True if args.persist_threshold else None,
        gaussian_kernel=args.gaussian_kernel,
        min_line_length=args.min_line_length,
        max_line_gap=args.max_line_gap,
    )


def _cmd_run(args: argparse.Namespace) -> int:
    try:
        config = _load_config(args)
    except (OSError, ValueError) as exc:
        logger.error("Invalid configuration: %s", exc)
        return 1
    logger.debug("Detector config: %s", config.to_dict())

    try:
        records = run_directory(
            args.input,
            args.output,
            config=config,
            processed_dir=args.processed_dir,
            debug_dir=args.debug_overlays,
        )
    except (FileNotFoundError, NotADirectoryError) as exc:
        logger.error("%s", exc)
        return 1

    found_left = sum(1 for r in records if r.left_x is not None)
    found_right = sum(1 for r in records if r.right_x is not None)
    print(f"Processed {len(records)} frames (left found in {found_left}, right in {found_right})")
    print(f"Wrote intercepts to {args.output}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Lane boundary intercepts from road images (OpenCV)")
    p.add_argument("--log-level", default="WARNING", choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    sub = p.add_subparsers(dest="cmd", required=True)

    r = sub.add_parser("run", help="Compute left/right intercepts for every image in a directory")
    r.add_argument("input", type=Path, help="Directory of frames, processed in file-name order")
    r.add_argument("--output", type=Path, default=Path("intercepts.csv"))
    r.add_argument("--processed-dir", type=Path, help="Optional directory for processed_<name> overlays")
    r.add_argument("--debug-overlays", type=Path, help="Optional directory for clusters_<name> images")
    r.add_argument("--config", type=Path, help="JSON file of detector settings")
    r.add_argument(
        "--persist-threshold",
        action="store_true",
        help="Carry the Hough vote threshold from one frame to the next",
    )
    r.add_argument("--gaussian-kernel", type=int, default=None)
    r.add_argument("--min-line-length", type=float, default=None)
    r.add_argument("--max-line-gap", type=float, default=None)
    r.set_defaults(func=_cmd_run)

    g = sub.add_parser("generate", help="Generate a synthetic road image")
    g.add_argument("--output", type=Path, required=True)
    g.add_argument("--width", type=int, default=640)
    g.add_argument("--height", type=int, default=480)
    g.add_argument("--offset", type=int, default=0, help="pixels to slide both markings sideways")
    g.set_defaults(func=_cmd_generate)

    return p


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=getattr(logging, args.log_level), format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    return int(args.func(args))


if __name__ == "__main__":
    raise SystemExit(main())
