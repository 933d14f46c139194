"""Perception inputs and their attribution to tracked regions."""

from .association import match_regions
from .clustering import cluster_keypoint_matches, cluster_range_points
from .keypoints import KeypointMatches, keypoints_to_array
from .range_points import RangePoints
from .region import Rect, Region, find_region

__all__ = [
    # Inputs
    "RangePoints",
    "KeypointMatches",
    "keypoints_to_array",
    # Regions
    "Rect",
    "Region",
    "find_region",
    # Attribution
    "cluster_range_points",
    "cluster_keypoint_matches",
    # Association
    "match_regions",
]
