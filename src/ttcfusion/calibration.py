"""Range sensor to camera calibration and point projection."""

from __future__ import annotations

from pathlib import Path

import numpy as np
import yaml

from .perception.range_points import RangePoints


class Calibration:
    """Fixed calibration between the range sensor and the camera.

    A range point is mapped to pixels by the composed transform
    `projection @ rectification @ extrinsic` applied to the homogeneous
    point [x, y, z, 1], followed by perspective division.
    """

    def __init__(
        self,
        extrinsic: np.ndarray,
        rectification: np.ndarray,
        projection: np.ndarray,
        frame_rate: float,
    ) -> None:
        """Initialize calibration.

        Args:
            extrinsic: 4x4 range sensor to camera transform (rotation and
                translation)
            rectification: 3x3 or 4x4 rectifying rotation. A 3x3 rotation is
                embedded into a 4x4 homogeneous matrix.
            projection: 3x4 intrinsic projection matrix after rectification
            frame_rate: Sensor frame rate in Hz

        Raises:
            ValueError: If a matrix has the wrong shape or frame_rate <= 0
        """
        extrinsic = np.asarray(extrinsic, dtype=np.float64)
        if extrinsic.shape != (4, 4):
            raise ValueError(f"Extrinsic transform must be 4x4, got {extrinsic.shape}")

        rectification = np.asarray(rectification, dtype=np.float64)
        if rectification.shape == (3, 3):
            R_rect = np.eye(4, dtype=np.float64)
            R_rect[:3, :3] = rectification
            rectification = R_rect
        if rectification.shape != (4, 4):
            raise ValueError(
                f"Rectifying rotation must be 3x3 or 4x4, got {rectification.shape}"
            )

        projection = np.asarray(projection, dtype=np.float64)
        if projection.shape != (3, 4):
            raise ValueError(f"Projection matrix must be 3x4, got {projection.shape}")

        if frame_rate <= 0:
            raise ValueError(f"Frame rate must be positive, got {frame_rate}")

        self._extrinsic = extrinsic
        self._rectification = rectification
        self._projection = projection
        self._frame_rate = float(frame_rate)

        # Composed once; the matrices never change after loading
        self._transform = projection @ rectification @ extrinsic  # (3, 4)

    @classmethod
    def from_yaml(cls, yaml_path: str | Path) -> Calibration:
        """Load calibration from a YAML file.

        Expected keys: `extrinsic` (4x4), `rectification` (3x3 or 4x4),
        `projection` (3x4), each as nested rows or a flat row-major list,
        and `frame_rate` (Hz).

        Raises:
            FileNotFoundError: If file doesn't exist
            ValueError: If a key is missing or a matrix is malformed
        """
        path = Path(yaml_path)
        if not path.exists():
            raise FileNotFoundError(f"Calibration file not found: {yaml_path}")

        with open(path, "r") as f:
            data = yaml.safe_load(f) or {}

        matrices = {}
        for key, rows in (("extrinsic", 4), ("rectification", None), ("projection", 3)):
            values = data.get(key)
            if values is None:
                raise ValueError(f"Missing '{key}' in {yaml_path}")
            matrix = np.asarray(values, dtype=np.float64)
            if matrix.ndim == 1:
                if rows is None:
                    rows = 3 if matrix.size == 9 else 4
                if matrix.size % rows != 0:
                    raise ValueError(f"Invalid '{key}' matrix in {yaml_path}")
                matrix = matrix.reshape(rows, -1)
            matrices[key] = matrix

        frame_rate = data.get("frame_rate")
        if frame_rate is None:
            raise ValueError(f"Missing 'frame_rate' in {yaml_path}")

        return cls(
            extrinsic=matrices["extrinsic"],
            rectification=matrices["rectification"],
            projection=matrices["projection"],
            frame_rate=float(frame_rate),
        )

    def project(self, points: np.ndarray | RangePoints) -> np.ndarray:
        """Project 3D range points into the image.

        Points at zero or negative depth are not filtered here; a point
        behind the camera projects to a mirrored pixel and a zero depth
        yields inf/nan. Callers mask such points with `depth()`.

        Args:
            points: RangePoints or Nx3 (or wider) array whose first three
                columns are x, y, z in vehicle coordinates

        Returns:
            Nx2 array of (u, v) pixel coordinates
        """
        Y = self._image_coordinates(points)

        with np.errstate(divide="ignore", invalid="ignore"):
            uv = Y[:2, :] / Y[2:3, :]

        return uv.T

    def depth(self, points: np.ndarray | RangePoints) -> np.ndarray:
        """Return the (N,) homogeneous image depth of each point.

        Positive for points in front of the camera.
        """
        return self._image_coordinates(points)[2].copy()

    def _image_coordinates(self, points: np.ndarray | RangePoints) -> np.ndarray:
        """Apply the composed transform, returning a 3xN array."""
        if isinstance(points, RangePoints):
            xyz = points.xyz
        else:
            xyz = np.atleast_2d(np.asarray(points, dtype=np.float64))[:, :3]

        if xyz.size == 0:
            return np.empty((3, 0), dtype=np.float64)

        # Homogeneous coordinates (4xN)
        X = np.vstack([xyz.T, np.ones((1, len(xyz)))])
        return self._transform @ X

    @property
    def extrinsic(self) -> np.ndarray:
        return self._extrinsic.copy()

    @property
    def rectification(self) -> np.ndarray:
        return self._rectification.copy()

    @property
    def projection(self) -> np.ndarray:
        return self._projection.copy()

    @property
    def frame_rate(self) -> float:
        """Return sensor frame rate in Hz."""
        return self._frame_rate

    @property
    def dt(self) -> float:
        """Return time between consecutive frames in seconds."""
        return 1.0 / self._frame_rate
