"""Shared fixtures: a forward-looking pinhole camera and synthetic vehicles."""

import numpy as np
import pytest

from ttcfusion import Calibration, KeypointMatches, RangePoints, Rect, Region, SensorFrame

FOCAL = 700.0
CX = 600.0
CY = 200.0

# Vehicle frame (x forward, y left, z up) -> camera frame (x right, y down, z forward)
EXTRINSIC = np.array(
    [
        [0.0, -1.0, 0.0, 0.0],
        [0.0, 0.0, -1.0, 0.0],
        [1.0, 0.0, 0.0, 0.0],
        [0.0, 0.0, 0.0, 1.0],
    ]
)
PROJECTION = np.array(
    [
        [FOCAL, 0.0, CX, 0.0],
        [0.0, FOCAL, CY, 0.0],
        [0.0, 0.0, 1.0, 0.0],
    ]
)


def pixel(x: float, y: float, z: float) -> tuple[float, float]:
    """Expected pixel of a vehicle-frame point under the test camera."""
    return (CX - FOCAL * y / x, CY - FOCAL * z / x)


def make_vehicle_calibration(frame_rate: float = 10.0) -> Calibration:
    return Calibration(EXTRINSIC, np.eye(4), PROJECTION, frame_rate=frame_rate)


def vehicle_points(distance: float, lateral: float = 0.0, reflectivity: float = 0.5) -> RangePoints:
    """5x5 grid of points on a flat rear face at a single distance."""
    ys, zs = np.meshgrid(np.linspace(-0.5, 0.5, 5) + lateral, np.linspace(-0.5, 0.5, 5))
    n = ys.size
    return RangePoints(
        np.column_stack(
            [np.full(n, distance), ys.ravel(), zs.ravel(), np.full(n, reflectivity)]
        )
    )


def vehicle_region(region_id: int, distance: float, lateral: float = 0.0) -> Region:
    """Region spanning +/- 1m around the vehicle's rear face."""
    u0, v0 = pixel(distance, lateral + 1.0, 1.0)
    u1, v1 = pixel(distance, lateral - 1.0, -1.0)
    return Region(region_id=region_id, rect=Rect(u0, v0, u1 - u0, v1 - v0), label="car")


def vehicle_keypoints(distance: float, lateral: float = 0.0) -> np.ndarray:
    """4x4 grid of texture keypoints on the rear face."""
    offsets = np.linspace(-0.8, 0.8, 4)
    return np.array(
        [pixel(distance, lateral + dy, dz) for dy in offsets for dz in offsets]
    )


def vehicle_frame(
    frame_id: int,
    vehicles: dict[int, tuple[float, float]],
    with_matches: bool = True,
) -> SensorFrame:
    """Build a frame from {region_id: (distance, lateral)}.

    Keypoints are laid out per vehicle in region ID order, so identical
    vehicle sets give index-aligned keypoints across frames.
    """
    regions = []
    clouds = []
    keypoints = []
    for region_id, (distance, lateral) in sorted(vehicles.items()):
        regions.append(vehicle_region(region_id, distance, lateral))
        clouds.append(vehicle_points(distance, lateral).points)
        keypoints.append(vehicle_keypoints(distance, lateral))

    kpts = np.vstack(keypoints)
    matches = None
    if with_matches and frame_id > 0:
        idx = np.arange(len(kpts))
        matches = KeypointMatches(prev_indices=idx, curr_indices=idx)

    return SensorFrame(
        frame_id=frame_id,
        regions=regions,
        range_points=RangePoints(np.vstack(clouds)),
        keypoints=kpts,
        matches=matches,
    )


@pytest.fixture
def calibration() -> Calibration:
    """Test camera looking straight ahead at 10 Hz."""
    return make_vehicle_calibration()
