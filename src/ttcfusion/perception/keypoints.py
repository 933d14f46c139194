"""Keypoint positions and cross-frame keypoint matches."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

import cv2
import numpy as np


def keypoints_to_array(keypoints: np.ndarray | Sequence[cv2.KeyPoint]) -> np.ndarray:
    """Return Nx2 array of keypoint (x, y) pixel positions.

    Args:
        keypoints: Nx2 array of positions, or a sequence of OpenCV KeyPoint
            objects as produced by any OpenCV feature detector

    Returns:
        Nx2 float64 array
    """
    if isinstance(keypoints, np.ndarray):
        points = keypoints
    elif len(keypoints) == 0:
        return np.empty((0, 2), dtype=np.float64)
    elif isinstance(keypoints[0], cv2.KeyPoint):
        points = cv2.KeyPoint_convert(list(keypoints))
    else:
        points = np.asarray(keypoints)

    points = np.asarray(points, dtype=np.float64)
    if points.size == 0:
        return np.empty((0, 2), dtype=np.float64)
    if points.ndim != 2 or points.shape[1] != 2:
        raise ValueError(f"Keypoints must be Nx2, got {points.shape}")
    return points


@dataclass
class KeypointMatches:
    """Keypoint correspondences between the previous and current frame.

    Attributes:
        prev_indices: Indices into previous frame's keypoints array
        curr_indices: Indices into current frame's keypoints array
    """

    prev_indices: np.ndarray  # (N,) int
    curr_indices: np.ndarray  # (N,) int

    def __post_init__(self) -> None:
        self.prev_indices = np.asarray(self.prev_indices, dtype=np.int64).reshape(-1)
        self.curr_indices = np.asarray(self.curr_indices, dtype=np.int64).reshape(-1)
        if len(self.prev_indices) != len(self.curr_indices):
            raise ValueError(
                f"Match index arrays differ in length: "
                f"{len(self.prev_indices)} vs {len(self.curr_indices)}"
            )

    @classmethod
    def empty(cls) -> KeypointMatches:
        return cls(
            prev_indices=np.empty(0, dtype=np.int64),
            curr_indices=np.empty(0, dtype=np.int64),
        )

    @classmethod
    def from_pairs(cls, pairs: Sequence[tuple[int, int]]) -> KeypointMatches:
        """Build matches from (prev_index, curr_index) pairs."""
        if len(pairs) == 0:
            return cls.empty()
        arr = np.asarray(pairs, dtype=np.int64)
        return cls(prev_indices=arr[:, 0], curr_indices=arr[:, 1])

    @classmethod
    def from_dmatches(cls, matches: Sequence[cv2.DMatch]) -> KeypointMatches:
        """Build matches from OpenCV DMatch objects.

        The previous frame is the query set and the current frame the train
        set, the order used when matching previous descriptors against
        current ones.
        """
        return cls.from_pairs([(m.queryIdx, m.trainIdx) for m in matches])

    def subset(self, mask: np.ndarray) -> KeypointMatches:
        """Return new KeypointMatches holding copies of the selected matches."""
        return KeypointMatches(
            prev_indices=self.prev_indices[mask].copy(),
            curr_indices=self.curr_indices[mask].copy(),
        )

    def within_bounds(self, num_prev: int, num_curr: int) -> KeypointMatches:
        """Return the matches whose indices address existing keypoints.

        Args:
            num_prev: Number of keypoints in the previous frame
            num_curr: Number of keypoints in the current frame
        """
        valid = (
            (self.prev_indices >= 0)
            & (self.prev_indices < num_prev)
            & (self.curr_indices >= 0)
            & (self.curr_indices < num_curr)
        )
        if valid.all():
            return self
        return self.subset(valid)

    def positions(
        self, kpts_prev: np.ndarray, kpts_curr: np.ndarray
    ) -> tuple[np.ndarray, np.ndarray]:
        """Look up matched keypoint positions.

        Args:
            kpts_prev: Nx2 previous frame keypoint positions
            kpts_curr: Mx2 current frame keypoint positions

        Returns:
            Tuple of (prev_points, curr_points), each Kx2 for K matches
        """
        return kpts_prev[self.prev_indices], kpts_curr[self.curr_indices]

    def __len__(self) -> int:
        """Return number of matches."""
        return len(self.prev_indices)
