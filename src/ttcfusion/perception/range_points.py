"""Range sensor point container."""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from ..config import CropBounds


@dataclass
class RangePoints:
    """Range points in vehicle coordinates.

    Attributes:
        points: Nx4 array of [x, y, z, r] rows, where x is forward distance,
            y lateral offset, z height (meters), and r reflectivity in [0, 1]
    """

    points: np.ndarray  # (N, 4) float64

    def __post_init__(self) -> None:
        """Ensure points is an Nx4 float64 array."""
        points = np.asarray(self.points, dtype=np.float64)
        if points.size == 0:
            points = points.reshape(0, 4)
        if points.ndim != 2 or points.shape[1] != 4:
            raise ValueError(f"Range points must be Nx4, got {points.shape}")
        self.points = points

    @classmethod
    def empty(cls) -> RangePoints:
        return cls(points=np.empty((0, 4), dtype=np.float64))

    @property
    def x(self) -> np.ndarray:
        return self.points[:, 0]

    @property
    def y(self) -> np.ndarray:
        return self.points[:, 1]

    @property
    def z(self) -> np.ndarray:
        return self.points[:, 2]

    @property
    def r(self) -> np.ndarray:
        return self.points[:, 3]

    @property
    def xyz(self) -> np.ndarray:
        """Return Nx3 array of point positions."""
        return self.points[:, :3]

    def subset(self, mask: np.ndarray) -> RangePoints:
        """Return a new container holding a copy of the selected rows.

        Args:
            mask: Boolean mask or integer index array over the points
        """
        return RangePoints(points=self.points[mask].copy())

    def crop(self, bounds: CropBounds) -> RangePoints:
        """Keep only points inside the ego-lane region of interest."""
        mask = (
            (self.x >= bounds.min_x)
            & (self.x <= bounds.max_x)
            & (np.abs(self.y) <= bounds.max_y)
            & (self.z >= bounds.min_z)
            & (self.z <= bounds.max_z)
            & (self.r >= bounds.min_r)
        )
        return self.subset(mask)

    def __len__(self) -> int:
        """Return number of points."""
        return len(self.points)
