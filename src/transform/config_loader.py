"""
Configuration loader for the Transform module.

Loads and validates configuration from config.yaml file.
"""

import logging
from pathlib import Path
from typing import Any, Dict

from src.transform.types import (
    ExportConfig,
    NumericsConfig,
    OutputConfig,
    ResamplingConfig,
    TransformConfig,
)
from src.utils.io import load_yaml

logger = logging.getLogger(__name__)

# Default configuration path (relative to this file)
DEFAULT_CONFIG_PATH = Path(__file__).parent / "config.yaml"


def load_config(config_path: Path = DEFAULT_CONFIG_PATH) -> TransformConfig:
    """
    Load transform configuration from YAML file.

    Args:
        config_path: Path to the configuration YAML file.

    Returns:
        Validated TransformConfig object.

    Raises:
        FileNotFoundError: If config file doesn't exist.
        ValueError: If config is invalid or missing required fields.

    Example:
        >>> config = load_config()
        >>> print(config.resampling.tile_size)
        256
    """
    config_path = Path(config_path)
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    logger.debug(f"Loading transform config from {config_path}")

    raw_config = load_yaml(config_path)

    try:
        config = _parse_config(raw_config)
        _validate_config(config)
        logger.info("Successfully loaded transform configuration")
        return config
    except (KeyError, TypeError, ValueError) as e:
        raise ValueError(f"Invalid configuration file: {e}") from e


def _parse_config(raw: Dict[str, Any]) -> TransformConfig:
    """Parse raw dictionary into structured config objects."""
    return TransformConfig(
        numerics=NumericsConfig(
            pivot_epsilon=float(raw["numerics"]["pivot_epsilon"]),
            denominator_epsilon=float(raw["numerics"]["denominator_epsilon"]),
            degeneracy_tolerance=float(raw["numerics"]["degeneracy_tolerance"]),
        ),
        resampling=ResamplingConfig(
            tile_size=int(raw["resampling"]["tile_size"]),
            max_workers=int(raw["resampling"]["max_workers"]),
        ),
        output=OutputConfig(
            max_dimension=int(raw["output"]["max_dimension"]),
            trim_crop_to_bounds=bool(raw["output"]["trim_crop_to_bounds"]),
        ),
        export=ExportConfig(
            png_quality_threshold=float(raw["export"]["png_quality_threshold"]),
            default_quality=float(raw["export"]["default_quality"]),
        ),
    )


def _validate_config(config: TransformConfig) -> None:
    """
    Validate configuration values for logical consistency.

    Raises:
        ValueError: If any configuration value is invalid.
    """
    numerics = config.numerics
    for name in ("pivot_epsilon", "denominator_epsilon", "degeneracy_tolerance"):
        if getattr(numerics, name) <= 0:
            raise ValueError(f"{name} must be positive")

    if config.resampling.tile_size < 1:
        raise ValueError("tile_size must be at least 1")

    if config.resampling.max_workers < 1:
        raise ValueError("max_workers must be at least 1")

    if config.output.max_dimension < 1:
        raise ValueError("max_dimension must be at least 1")

    if not 0.0 <= config.export.png_quality_threshold <= 1.0:
        raise ValueError("png_quality_threshold must be within [0, 1]")

    if not 0.0 <= config.export.default_quality <= 1.0:
        raise ValueError("default_quality must be within [0, 1]")

    logger.debug("Configuration validation passed")
