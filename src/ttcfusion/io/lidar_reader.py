"""KITTI velodyne point cloud reader."""

from __future__ import annotations

from pathlib import Path

import numpy as np

from ..perception.range_points import RangePoints

_BYTES_PER_POINT = 16  # 4 x float32


def load_kitti_velodyne(path: str | Path) -> RangePoints:
    """Load a KITTI velodyne scan.

    Binary format: consecutive little-endian float32 quadruples
    [x, y, z, reflectivity] in the sensor frame.

    Args:
        path: Path to a velodyne .bin file

    Returns:
        RangePoints holding every point in the scan

    Raises:
        FileNotFoundError: If file doesn't exist
        ValueError: If the file size is not a whole number of points
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Velodyne scan not found: {path}")

    size = path.stat().st_size
    if size % _BYTES_PER_POINT != 0:
        raise ValueError(
            f"Invalid velodyne scan {path}: {size} bytes is not a multiple "
            f"of {_BYTES_PER_POINT}"
        )

    data = np.fromfile(path, dtype="<f4").reshape(-1, 4)
    return RangePoints(points=data)


def kitti_velodyne_path(sequence_dir: str | Path, frame_index: int, fill_width: int = 10) -> Path:
    """Return the path of a frame's scan inside a KITTI sequence.

    Example:
        >>> kitti_velodyne_path("2011_09_26_drive_0001_sync", 3)
        PosixPath('2011_09_26_drive_0001_sync/velodyne_points/data/0000000003.bin')
    """
    return Path(sequence_dir) / "velodyne_points" / "data" / f"{frame_index:0{fill_width}d}.bin"
