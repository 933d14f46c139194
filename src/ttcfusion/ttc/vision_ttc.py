"""Time-to-collision from the scale change of matched keypoints."""

from __future__ import annotations

import logging

import numpy as np

from ..perception.keypoints import KeypointMatches
from .result import TTCResult, TTCStatus

logger = logging.getLogger(__name__)


def median(values: np.ndarray) -> float:
    """Median of a non-empty array.

    Odd counts return the middle element of the sorted values, even counts
    the mean of the two elements around the midpoint.
    """
    ordered = np.sort(np.asarray(values, dtype=np.float64))
    n = len(ordered)
    if n == 0:
        raise ValueError("Median of an empty array is undefined")
    mid = n // 2
    if n % 2 == 1:
        return float(ordered[mid])
    return float((ordered[mid - 1] + ordered[mid]) / 2.0)


class VisionTTCEstimator:
    """Estimates time-to-collision from keypoint distance ratios.

    For every pair of matched keypoints in a region, the ratio of their
    distance in the current frame to their distance in the previous frame
    measures how much the object has grown in the image. With the median
    ratio h, TTC = -dT / (1 - h).
    """

    def __init__(self, min_distance: float = 100.0) -> None:
        """Initialize vision estimator.

        Args:
            min_distance: Minimum distance in pixels between two keypoints
                in the current frame for their ratio to be used. Pairs that
                close together give noisy ratios; the right value depends on
                image resolution and region size.
        """
        self._min_distance = min_distance

    def distance_ratios(
        self,
        kpts_prev: np.ndarray,
        kpts_curr: np.ndarray,
        matches: KeypointMatches,
    ) -> np.ndarray:
        """Compute distance ratios over all unordered pairs of matches.

        Pairs whose previous-frame distance is zero, or whose current-frame
        distance is below `min_distance`, are skipped.

        Returns:
            (K,) array of ratios, possibly empty
        """
        if len(matches) < 2:
            return np.empty(0, dtype=np.float64)

        pts_prev, pts_curr = matches.positions(kpts_prev, kpts_curr)
        i, j = np.triu_indices(len(matches), k=1)

        dist_prev = np.linalg.norm(pts_prev[i] - pts_prev[j], axis=1)
        dist_curr = np.linalg.norm(pts_curr[i] - pts_curr[j], axis=1)

        valid = (dist_prev > np.finfo(np.float64).eps) & (
            dist_curr >= self._min_distance
        )
        return dist_curr[valid] / dist_prev[valid]

    def estimate(
        self,
        kpts_prev: np.ndarray,
        kpts_curr: np.ndarray,
        matches: KeypointMatches,
        dt: float,
    ) -> TTCResult:
        """Estimate TTC from the region's keypoint matches.

        Args:
            kpts_prev: Nx2 previous frame keypoint positions
            kpts_curr: Mx2 current frame keypoint positions
            matches: Keypoint matches assigned to the region
            dt: Time between the frames in seconds

        Returns:
            TTCResult; EMPTY_INPUT when no pair is usable, DIVISION_GUARD
            when the median ratio is exactly 1 (no scale change)
        """
        ratios = self.distance_ratios(kpts_prev, kpts_curr, matches)
        if len(ratios) == 0:
            logger.debug("Vision TTC: no usable keypoint pairs among %d matches", len(matches))
            return TTCResult.not_computable(TTCStatus.EMPTY_INPUT)

        median_ratio = median(ratios)
        if median_ratio == 1.0:
            return TTCResult.not_computable(TTCStatus.DIVISION_GUARD)

        ttc = -dt / (1.0 - median_ratio)
        logger.debug(
            "Vision TTC: %d ratios, median %.4f -> %.3fs", len(ratios), median_ratio, ttc
        )
        return TTCResult.ok(ttc)

    @property
    def min_distance(self) -> float:
        return self._min_distance
