"""
I/O Utilities

File input/output operations: YAML configuration files and decoded rasters.
"""

from pathlib import Path
from typing import Any, Dict, Union

import cv2
import numpy as np
import yaml

from src.common.types import Raster


def load_yaml(file_path: Path) -> Dict[str, Any]:
    """Load YAML file."""
    with open(file_path, "r", encoding="utf-8") as f:
        return yaml.safe_load(f)


def load_raster(file_path: Union[str, Path]) -> Raster:
    """
    Decode an image file into an RGBA8 raster.

    Grayscale and BGR(A) images are converted; 16-bit images are reduced
    to 8 bits per channel.

    Raises:
        FileNotFoundError: If the file does not exist.
        ValueError: If OpenCV cannot decode the file.
    """
    file_path = Path(file_path)
    if not file_path.exists():
        raise FileNotFoundError(f"Image not found: {file_path}")

    image = cv2.imread(str(file_path), cv2.IMREAD_UNCHANGED)
    if image is None:
        raise ValueError(f"Could not decode image: {file_path}")

    if image.dtype == np.uint16:
        image = (image >> 8).astype(np.uint8)

    if image.ndim == 2:
        rgba = cv2.cvtColor(image, cv2.COLOR_GRAY2RGBA)
    elif image.shape[2] == 3:
        rgba = cv2.cvtColor(image, cv2.COLOR_BGR2RGBA)
    else:
        rgba = cv2.cvtColor(image, cv2.COLOR_BGRA2RGBA)

    return Raster(data=rgba)


def save_bytes(data: bytes, file_path: Path) -> Path:
    """Write encoded bytes, creating parent directories."""
    file_path.parent.mkdir(parents=True, exist_ok=True)
    with open(file_path, "wb") as f:
        f.write(data)
    return file_path
