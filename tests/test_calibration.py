"""Tests for Calibration projection and loading."""

from pathlib import Path

import numpy as np
import pytest
import yaml

from conftest import EXTRINSIC, PROJECTION, pixel
from ttcfusion import Calibration, RangePoints

KITTI_CALIBRATION = Path(__file__).parent.parent / "config" / "kitti_2011_09_26.yaml"


class TestProjection:
    """Projection of range points into the image."""

    def test_point_on_optical_axis(self, calibration: Calibration):
        """A point straight ahead lands on the principal point."""
        uv = calibration.project(np.array([[10.0, 0.0, 0.0]]))
        assert uv.shape == (1, 2)
        assert uv[0] == pytest.approx([600.0, 200.0])

    def test_off_axis_points(self, calibration: Calibration):
        """Left and up in the vehicle frame map to smaller u and v."""
        points = np.array([[10.0, 1.0, 0.0], [10.0, 0.0, -1.0], [20.0, -2.0, 0.5]])
        uv = calibration.project(points)

        for row, expected in zip(uv, [pixel(*p) for p in points]):
            assert row == pytest.approx(expected)

    def test_accepts_range_points(self, calibration: Calibration):
        """RangePoints are projected using their x, y, z columns."""
        cloud = RangePoints(np.array([[10.0, 0.0, 0.0, 0.9], [5.0, 0.5, 0.0, 0.1]]))
        uv = calibration.project(cloud)
        assert uv[0] == pytest.approx([600.0, 200.0])
        assert uv[1] == pytest.approx(pixel(5.0, 0.5, 0.0))

    def test_empty_input(self, calibration: Calibration):
        uv = calibration.project(RangePoints.empty())
        assert uv.shape == (0, 2)

    def test_zero_depth_is_not_finite(self, calibration: Calibration):
        """Zero depth is passed through as a non-finite pixel, not an error."""
        uv = calibration.project(np.array([[0.0, 1.0, 0.0]]))
        assert not np.isfinite(uv).all()

    def test_depth(self, calibration: Calibration):
        """Depth is positive ahead of the sensor and negative behind it."""
        depth = calibration.depth(np.array([[10.0, 0.0, 0.0], [-5.0, 1.0, 0.0]]))
        assert depth == pytest.approx([10.0, -5.0])

    def test_depth_empty_input(self, calibration: Calibration):
        assert calibration.depth(RangePoints.empty()).shape == (0,)

    def test_matches_composed_transform(self):
        """Projection equals P @ R_rect @ RT followed by perspective division."""
        calib = Calibration.from_yaml(KITTI_CALIBRATION)
        point = np.array([8.0, 0.3, -1.1, 1.0])

        Y = calib.projection @ calib.rectification @ calib.extrinsic @ point
        expected = Y[:2] / Y[2]

        assert calib.project(point[None, :3])[0] == pytest.approx(expected)


class TestCalibrationConstruction:
    """Validation and derived values."""

    def test_rectification_3x3_is_embedded(self):
        R = np.array([[0.0, -1.0, 0.0], [1.0, 0.0, 0.0], [0.0, 0.0, 1.0]])
        calib = Calibration(EXTRINSIC, R, PROJECTION, frame_rate=10.0)

        rect = calib.rectification
        assert rect.shape == (4, 4)
        assert np.allclose(rect[:3, :3], R)
        assert np.allclose(rect[3], [0.0, 0.0, 0.0, 1.0])
        assert np.allclose(rect[:3, 3], 0.0)

    def test_dt_from_frame_rate(self, calibration: Calibration):
        assert calibration.frame_rate == 10.0
        assert calibration.dt == pytest.approx(0.1)

    @pytest.mark.parametrize(
        "extrinsic, rectification, projection",
        [
            (np.eye(3), np.eye(4), PROJECTION),
            (EXTRINSIC, np.eye(2), PROJECTION),
            (EXTRINSIC, np.eye(4), np.eye(3)),
        ],
    )
    def test_invalid_shapes(self, extrinsic, rectification, projection):
        with pytest.raises(ValueError):
            Calibration(extrinsic, rectification, projection, frame_rate=10.0)

    def test_non_positive_frame_rate(self):
        with pytest.raises(ValueError, match="Frame rate must be positive"):
            Calibration(EXTRINSIC, np.eye(4), PROJECTION, frame_rate=0.0)


class TestCalibrationYaml:
    """Loading calibration from YAML files."""

    def test_load_kitti(self):
        calib = Calibration.from_yaml(KITTI_CALIBRATION)
        assert calib.frame_rate == 10.0
        assert calib.projection[0, 0] == pytest.approx(721.5377)
        assert calib.extrinsic[2, 3] == pytest.approx(-0.2717806)

    def test_flat_lists(self, tmp_path: Path):
        """Row-major flat lists are reshaped."""
        path = tmp_path / "calib.yaml"
        path.write_text(
            yaml.safe_dump(
                {
                    "extrinsic": EXTRINSIC.ravel().tolist(),
                    "rectification": np.eye(3).ravel().tolist(),
                    "projection": PROJECTION.ravel().tolist(),
                    "frame_rate": 20,
                }
            )
        )

        calib = Calibration.from_yaml(path)
        assert np.allclose(calib.extrinsic, EXTRINSIC)
        assert np.allclose(calib.projection, PROJECTION)
        assert calib.dt == pytest.approx(0.05)

    def test_missing_file(self, tmp_path: Path):
        with pytest.raises(FileNotFoundError, match="Calibration file not found"):
            Calibration.from_yaml(tmp_path / "missing.yaml")

    def test_missing_key(self, tmp_path: Path):
        path = tmp_path / "calib.yaml"
        path.write_text(yaml.safe_dump({"extrinsic": EXTRINSIC.tolist(), "frame_rate": 10}))

        with pytest.raises(ValueError, match="Missing 'rectification'"):
            Calibration.from_yaml(path)
