"""Tunables for the edge and Hough stages of lane detection."""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict


@dataclass(frozen=True)
class DetectorConfig:
    """Detection parameters. Defaults match the road footage the tool was tuned on."""

    gaussian_kernel: int = 17
    # Rows above ``roi_top_ratio * frame width`` are ignored (sky, horizon).
    roi_top_ratio: float = 5.0 / 12.0
    canny_low: int = 20
    canny_high: int = 50

    # Adaptive standard Hough search
    initial_vote: int = 20
    reset_vote: int = 100
    relax_step: int = 25
    retry_step: int = 5
    min_lines: int = 5
    band_max: int = 2
    persist_threshold: bool = False

    # Probabilistic Hough
    hough_p_vote: int = 90
    min_line_length: float = 250.0
    max_line_gap: float = 120.0

    # Mask combination
    hough_thickness: int = 8
    hough_p_thickness: int = 6
    mask_threshold: int = 80
    refine_canny_low: int = 30
    refine_canny_high: int = 65

    def __post_init__(self) -> None:
        if self.gaussian_kernel <= 0 or self.gaussian_kernel % 2 == 0:
            raise ValueError("gaussian_kernel must be a positive odd integer")
        if not 0.0 <= self.roi_top_ratio < 1.0:
            raise ValueError("roi_top_ratio must be in [0, 1)")
        if self.retry_step <= 0:
            raise ValueError("retry_step must be positive")

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def with_overrides(self, **overrides: Any) -> DetectorConfig:
        """Return a copy with the non-None ``overrides`` applied."""
        return replace(self, **{k: v for k, v in overrides.items() if v is not None})

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> DetectorConfig:
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ValueError(f"Unknown detector config keys: {', '.join(unknown)}")
        return cls(**data)

    @classmethod
    def from_file(cls, path: str | Path) -> DetectorConfig:
        """Load overrides from a JSON object; missing keys keep their defaults."""
        json_path = Path(path)
        with json_path.open("r", encoding="utf-8") as handle:
            data = json.load(handle)
        if not isinstance(data, dict):
            raise ValueError(f"Config file must hold a JSON object: {json_path}")
        return cls.from_dict(data)
