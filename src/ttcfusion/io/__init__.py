"""File I/O for range scans and TTC results."""

from .lidar_reader import kitti_velodyne_path, load_kitti_velodyne
from .results_writer import format_ttc, read_results, write_results

__all__ = [
    "load_kitti_velodyne",
    "kitti_velodyne_path",
    "write_results",
    "read_results",
    "format_ttc",
]
