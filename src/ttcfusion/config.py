"""Tuning parameters for the TTC fusion pipeline."""

from __future__ import annotations

from dataclasses import dataclass, fields
from pathlib import Path

import yaml


@dataclass(frozen=True)
class CropBounds:
    """Ego-lane region of interest for range points (vehicle frame, meters).

    Attributes:
        min_x: Minimum forward distance
        max_x: Maximum forward distance
        max_y: Maximum absolute lateral offset
        min_z: Minimum height
        max_z: Maximum height
        min_r: Minimum reflectivity
    """

    min_x: float = 2.0
    max_x: float = 20.0
    max_y: float = 2.0
    min_z: float = -1.5
    max_z: float = -0.9
    min_r: float = 0.1

    def __post_init__(self) -> None:
        if self.min_x > self.max_x:
            raise ValueError(f"min_x ({self.min_x}) exceeds max_x ({self.max_x})")
        if self.min_z > self.max_z:
            raise ValueError(f"min_z ({self.min_z}) exceeds max_z ({self.max_z})")
        if self.max_y < 0:
            raise ValueError(f"max_y must be non-negative, got {self.max_y}")


_MOTION_MODELS = ("cvm", "cam")


@dataclass(frozen=True)
class TTCConfig:
    """Thresholds used by clustering, association, and both TTC estimators.

    Attributes:
        shrink_factor: Fraction by which regions are inset before range
            points are assigned to them. Must be in [0, 1).
        iou_threshold: Minimum intersection-over-union for two regions in
            consecutive frames to be associated
        keypoint_distance_threshold: Keypoint matches whose displacement is
            more than this many standard deviations from the mean are dropped
        keypoint_shrink_factor: Region inset used when filtering keypoint
            matches. Must be in [0, 1).
        range_distance_threshold: Standard deviations of forward distance
            tolerated before a range point is rejected
        range_reflectivity_threshold: Standard deviations of reflectivity
            tolerated before a range point is rejected
        motion_model: "cvm" (constant velocity) or "cam" (constant acceleration)
        min_keypoint_distance: Minimum pixel distance between two keypoints
            in the current frame for their distance ratio to be used.
            Depends on image resolution.
        crop: Optional ego-lane crop applied to each frame's range points
    """

    shrink_factor: float = 0.10
    iou_threshold: float = 0.7
    keypoint_distance_threshold: float = 1.7
    keypoint_shrink_factor: float = 0.10
    range_distance_threshold: float = 2.0
    range_reflectivity_threshold: float = 1.6
    motion_model: str = "cvm"
    min_keypoint_distance: float = 100.0
    crop: CropBounds | None = None

    def __post_init__(self) -> None:
        for name in ("shrink_factor", "keypoint_shrink_factor"):
            value = getattr(self, name)
            if not 0.0 <= value < 1.0:
                raise ValueError(f"{name} must be in [0, 1), got {value}")

        if not 0.0 <= self.iou_threshold <= 1.0:
            raise ValueError(f"iou_threshold must be in [0, 1], got {self.iou_threshold}")

        for name in (
            "keypoint_distance_threshold",
            "range_distance_threshold",
            "range_reflectivity_threshold",
            "min_keypoint_distance",
        ):
            value = getattr(self, name)
            if value < 0:
                raise ValueError(f"{name} must be non-negative, got {value}")

        if self.motion_model not in _MOTION_MODELS:
            raise ValueError(
                f"Unknown motion_model '{self.motion_model}', "
                f"expected one of {_MOTION_MODELS}"
            )

    @classmethod
    def from_yaml(cls, yaml_path: str | Path) -> TTCConfig:
        """Load configuration from a YAML file.

        Missing keys keep their defaults. A `crop` mapping enables the
        ego-lane crop; `crop: null` or no key disables it.

        Raises:
            FileNotFoundError: If the file doesn't exist
            ValueError: If the file contains unknown keys or invalid values
        """
        path = Path(yaml_path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {yaml_path}")

        with open(path, "r") as f:
            data = yaml.safe_load(f) or {}

        if not isinstance(data, dict):
            raise ValueError(f"Expected a mapping at the top of {yaml_path}")

        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise ValueError(f"Unknown config keys in {yaml_path}: {sorted(unknown)}")

        crop_data = data.pop("crop", None)
        crop = CropBounds(**crop_data) if crop_data is not None else None

        return cls(crop=crop, **data)
