"""Time-to-collision estimators."""

from .range_ttc import (
    KinematicState,
    MotionModel,
    RangeTTCEstimator,
    RangeTTCOutcome,
    constant_acceleration_ttc,
    constant_velocity_ttc,
    reject_outliers,
)
from .result import TTCResult, TTCStatus
from .vision_ttc import VisionTTCEstimator, median

__all__ = [
    # Results
    "TTCResult",
    "TTCStatus",
    # Range
    "RangeTTCEstimator",
    "RangeTTCOutcome",
    "KinematicState",
    "MotionModel",
    "reject_outliers",
    "constant_velocity_ttc",
    "constant_acceleration_ttc",
    # Vision
    "VisionTTCEstimator",
    "median",
]
