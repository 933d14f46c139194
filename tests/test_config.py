"""Tests for TTCConfig validation and YAML loading."""

from pathlib import Path

import pytest
import yaml

from ttcfusion import CropBounds, TTCConfig

DEFAULT_CONFIG = Path(__file__).parent.parent / "config" / "default.yaml"


class TestTTCConfig:

    def test_defaults(self):
        config = TTCConfig()
        assert config.shrink_factor == 0.10
        assert config.iou_threshold == 0.7
        assert config.keypoint_distance_threshold == 1.7
        assert config.range_distance_threshold == 2.0
        assert config.range_reflectivity_threshold == 1.6
        assert config.motion_model == "cvm"
        assert config.crop is None

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"shrink_factor": 1.0},
            {"shrink_factor": -0.1},
            {"keypoint_shrink_factor": 1.5},
            {"iou_threshold": 1.2},
            {"range_distance_threshold": -1.0},
            {"min_keypoint_distance": -5.0},
            {"motion_model": "ukf"},
        ],
    )
    def test_invalid_values(self, kwargs):
        with pytest.raises(ValueError):
            TTCConfig(**kwargs)


class TestConfigYaml:

    def test_load_default_file(self):
        config = TTCConfig.from_yaml(DEFAULT_CONFIG)
        assert config.motion_model == "cvm"
        assert config.min_keypoint_distance == 100.0
        assert config.crop == CropBounds()

    def test_partial_file_keeps_defaults(self, tmp_path: Path):
        path = tmp_path / "config.yaml"
        path.write_text(yaml.safe_dump({"motion_model": "cam", "iou_threshold": 0.5}))

        config = TTCConfig.from_yaml(path)
        assert config.motion_model == "cam"
        assert config.iou_threshold == 0.5
        assert config.shrink_factor == 0.10
        assert config.crop is None

    def test_empty_file(self, tmp_path: Path):
        path = tmp_path / "config.yaml"
        path.write_text("")
        assert TTCConfig.from_yaml(path) == TTCConfig()

    def test_crop_overrides(self, tmp_path: Path):
        path = tmp_path / "config.yaml"
        path.write_text(yaml.safe_dump({"crop": {"max_x": 30.0, "max_y": 1.5}}))

        crop = TTCConfig.from_yaml(path).crop
        assert crop.max_x == 30.0
        assert crop.max_y == 1.5
        assert crop.min_x == 2.0

    def test_unknown_key(self, tmp_path: Path):
        path = tmp_path / "config.yaml"
        path.write_text(yaml.safe_dump({"shrink": 0.2}))

        with pytest.raises(ValueError, match="Unknown config keys"):
            TTCConfig.from_yaml(path)

    def test_not_a_mapping(self, tmp_path: Path):
        path = tmp_path / "config.yaml"
        path.write_text("- 1\n- 2\n")

        with pytest.raises(ValueError, match="Expected a mapping"):
            TTCConfig.from_yaml(path)

    def test_missing_file(self, tmp_path: Path):
        with pytest.raises(FileNotFoundError, match="Config file not found"):
            TTCConfig.from_yaml(tmp_path / "missing.yaml")
