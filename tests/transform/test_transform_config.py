"""
Unit tests for the transform config_loader module.
"""

import copy
import tempfile
from pathlib import Path

import pytest
import yaml

from src.transform.config_loader import load_config
from src.transform.types import TransformConfig

VALID_CONFIG = {
    "numerics": {
        "pivot_epsilon": 1.0e-12,
        "denominator_epsilon": 1.0e-4,
        "degeneracy_tolerance": 1.0e-9,
    },
    "resampling": {"tile_size": 64, "max_workers": 4},
    "output": {"max_dimension": 2000, "trim_crop_to_bounds": False},
    "export": {"png_quality_threshold": 0.8, "default_quality": 0.7},
}


def _write_temp_config(raw) -> Path:
    with tempfile.NamedTemporaryFile(mode="w", suffix=".yaml", delete=False) as f:
        yaml.dump(raw, f)
        return Path(f.name)


class TestLoadConfig:
    """Tests for load_config function."""

    def test_load_default_config(self):
        """Test loading the default configuration file."""
        config = load_config()

        assert isinstance(config, TransformConfig)
        assert config.numerics.pivot_epsilon == 1e-12
        assert config.numerics.denominator_epsilon == 1e-4
        assert config.resampling.tile_size == 256
        assert config.resampling.max_workers == 1
        assert config.output.max_dimension == 10000
        assert config.output.trim_crop_to_bounds is True
        assert config.export.png_quality_threshold == 0.95
        assert config.export.default_quality == 0.9

    def test_load_custom_config(self):
        """Test loading a custom configuration file."""
        temp_path = _write_temp_config(VALID_CONFIG)

        try:
            config = load_config(temp_path)

            assert config.resampling.tile_size == 64
            assert config.resampling.max_workers == 4
            assert config.output.max_dimension == 2000
            assert config.output.trim_crop_to_bounds is False
            assert config.export.png_quality_threshold == 0.8
        finally:
            temp_path.unlink()

    def test_missing_file_raises_error(self):
        """Test that missing config file raises FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            load_config(Path("nonexistent_config.yaml"))

    def test_missing_section_raises_error(self):
        raw = copy.deepcopy(VALID_CONFIG)
        del raw["resampling"]
        temp_path = _write_temp_config(raw)

        try:
            with pytest.raises(ValueError, match="Invalid configuration file"):
                load_config(temp_path)
        finally:
            temp_path.unlink()

    @pytest.mark.parametrize(
        "section, key, value, message",
        [
            ("numerics", "pivot_epsilon", 0.0, "pivot_epsilon must be positive"),
            ("numerics", "denominator_epsilon", -1.0, "denominator_epsilon"),
            ("resampling", "tile_size", 0, "tile_size must be at least 1"),
            ("resampling", "max_workers", 0, "max_workers must be at least 1"),
            ("output", "max_dimension", 0, "max_dimension must be at least 1"),
            ("export", "png_quality_threshold", 1.5, "png_quality_threshold"),
            ("export", "default_quality", -0.1, "default_quality"),
        ],
    )
    def test_invalid_values(self, section, key, value, message):
        """Test that out-of-range values are rejected."""
        raw = copy.deepcopy(VALID_CONFIG)
        raw[section][key] = value
        temp_path = _write_temp_config(raw)

        try:
            with pytest.raises(ValueError, match=message):
                load_config(temp_path)
        finally:
            temp_path.unlink()
