"""TTC Fusion - lidar and camera time-to-collision estimation."""

__version__ = "0.1.0"

# Re-export main classes for convenient imports
from .calibration import Calibration
from .config import CropBounds, TTCConfig
from .frame import FrameBuffer, SensorFrame
from .io import load_kitti_velodyne, read_results, write_results
from .perception import (
    KeypointMatches,
    RangePoints,
    Rect,
    Region,
    cluster_keypoint_matches,
    cluster_range_points,
    match_regions,
)
from .pipeline import FrameResult, FrameTiming, RegionTTC, TTCPipeline, TTCRun
from .ttc import (
    KinematicState,
    MotionModel,
    RangeTTCEstimator,
    TTCResult,
    TTCStatus,
    VisionTTCEstimator,
)

__all__ = [
    "__version__",
    # Configuration / calibration
    "Calibration",
    "TTCConfig",
    "CropBounds",
    # Frames
    "SensorFrame",
    "FrameBuffer",
    # Perception
    "RangePoints",
    "KeypointMatches",
    "Rect",
    "Region",
    "cluster_range_points",
    "cluster_keypoint_matches",
    "match_regions",
    # Estimators
    "RangeTTCEstimator",
    "VisionTTCEstimator",
    "KinematicState",
    "MotionModel",
    "TTCResult",
    "TTCStatus",
    # Pipeline
    "TTCPipeline",
    "TTCRun",
    "FrameResult",
    "FrameTiming",
    "RegionTTC",
    # I/O
    "load_kitti_velodyne",
    "write_results",
    "read_results",
]
