"""Attribution of range points and keypoint matches to image regions."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import numpy as np

from .keypoints import KeypointMatches
from .range_points import RangePoints
from .region import Region

if TYPE_CHECKING:
    from ..calibration import Calibration

logger = logging.getLogger(__name__)


def cluster_range_points(
    regions: list[Region],
    range_points: RangePoints,
    calibration: Calibration,
    shrink_factor: float = 0.10,
) -> int:
    """Assign each range point to the single region enclosing its projection.

    Every region is shrunk by `shrink_factor` before the containment test
    to keep points near region edges out. A point whose projection falls
    inside more than one shrunk region is ambiguous and dropped, as is a
    point inside none. Points at zero or negative depth are never
    assigned, since their projections are mirrored or undefined.
    Each region's `range_points` is replaced.

    Args:
        regions: Regions of the current frame
        range_points: Range points of the current frame
        calibration: Range sensor to camera calibration
        shrink_factor: Fraction by which regions are inset, in [0, 1)

    Returns:
        Number of points assigned to a region
    """
    if len(regions) == 0:
        return 0

    pixels = calibration.project(range_points)
    in_front = calibration.depth(range_points) > 0.0

    # (num_regions, num_points) containment matrix
    inside = np.array(
        [region.rect.shrink(shrink_factor).contains(pixels) for region in regions],
        dtype=bool,
    ).reshape(len(regions), len(range_points))
    inside &= in_front

    unambiguous = inside.sum(axis=0) == 1

    assigned = 0
    for region, region_mask in zip(regions, inside):
        mask = region_mask & unambiguous
        region.range_points = range_points.subset(mask)
        assigned += len(region.range_points)

    logger.debug(
        "Assigned %d of %d range points to %d regions",
        assigned,
        len(range_points),
        len(regions),
    )
    return assigned


def cluster_keypoint_matches(
    region: Region,
    kpts_prev: np.ndarray,
    kpts_curr: np.ndarray,
    matches: KeypointMatches,
    distance_threshold: float = 1.7,
    shrink_factor: float = 0.10,
) -> KeypointMatches:
    """Select the keypoint matches that belong to a region.

    The mean and standard deviation of match displacement are taken over
    the full match list, so every region is filtered against the motion
    of the whole image. A match is kept when both of its keypoints lie
    inside the shrunk region and its displacement is within
    `distance_threshold` standard deviations of the mean.

    Args:
        region: Current frame region; its `keypoint_matches` is replaced
        kpts_prev: Nx2 previous frame keypoint positions
        kpts_curr: Mx2 current frame keypoint positions
        matches: All matches between the two frames
        distance_threshold: Allowed deviation in standard deviations
        shrink_factor: Fraction by which the region is inset, in [0, 1)

    Returns:
        The matches assigned to the region
    """
    if len(matches) == 0:
        region.keypoint_matches = KeypointMatches.empty()
        return region.keypoint_matches

    pts_prev, pts_curr = matches.positions(kpts_prev, kpts_curr)
    displacement = np.linalg.norm(pts_curr - pts_prev, axis=1)
    mean = float(displacement.mean())
    std = float(displacement.std())

    box = region.rect.shrink(shrink_factor)
    in_box = box.contains(pts_prev) & box.contains(pts_curr)
    consistent = np.abs(displacement - mean) <= distance_threshold * std

    region.keypoint_matches = matches.subset(in_box & consistent)

    logger.debug(
        "Region %d kept %d of %d keypoint matches (%d inside, mean shift %.2fpx, std %.2fpx)",
        region.region_id,
        len(region.keypoint_matches),
        len(matches),
        int(in_box.sum()),
        mean,
        std,
    )
    return region.keypoint_matches
