"""
Raster export: format selection, encoding and output naming.

High quality settings are written losslessly as PNG (keeping alpha),
lower settings as JPEG with the quality mapped onto 0-100.
"""

import logging
import re
from enum import Enum
from pathlib import Path
from typing import Union

import cv2

from src.common.types import Raster
from src.utils.io import save_bytes

logger = logging.getLogger(__name__)

DEFAULT_PNG_QUALITY_THRESHOLD = 0.95
DEFAULT_QUALITY = 0.9


class ImageFormat(Enum):
    """Supported output encodings."""

    PNG = "png"
    JPEG = "jpg"

    @property
    def extension(self) -> str:
        return self.value

    @property
    def mime_type(self) -> str:
        return "image/png" if self is ImageFormat.PNG else "image/jpeg"


def _validate_quality(quality: float) -> float:
    quality = float(quality)
    if not 0.0 <= quality <= 1.0:
        raise ValueError(f"Quality must be within [0, 1], got {quality}")
    return quality


def select_format(
    quality: float, png_threshold: float = DEFAULT_PNG_QUALITY_THRESHOLD
) -> ImageFormat:
    """
    Choose the output encoding for a quality setting.

    Example:
        >>> select_format(0.95)
        <ImageFormat.PNG: 'png'>
        >>> select_format(0.9)
        <ImageFormat.JPEG: 'jpg'>
    """
    quality = _validate_quality(quality)
    return ImageFormat.PNG if quality >= png_threshold else ImageFormat.JPEG


def encode_raster(
    raster: Raster,
    quality: float = DEFAULT_QUALITY,
    png_threshold: float = DEFAULT_PNG_QUALITY_THRESHOLD,
) -> bytes:
    """
    Encode a raster as PNG or JPEG bytes.

    JPEG has no alpha channel; transparent pixels are written with their
    stored color values.

    Raises:
        ValueError: If quality is outside [0, 1] or encoding fails.
    """
    image_format = select_format(quality, png_threshold)

    if image_format is ImageFormat.PNG:
        image = cv2.cvtColor(raster.data, cv2.COLOR_RGBA2BGRA)
        ok, buffer = cv2.imencode(".png", image)
    else:
        jpeg_quality = int(round(quality * 100))
        image = cv2.cvtColor(raster.data, cv2.COLOR_RGBA2BGR)
        ok, buffer = cv2.imencode(
            ".jpg", image, [cv2.IMWRITE_JPEG_QUALITY, jpeg_quality]
        )

    if not ok:
        raise ValueError(f"Failed to encode raster as {image_format.name}")

    logger.debug(
        f"Encoded {raster.width}x{raster.height} raster as {image_format.name} "
        f"({buffer.size} bytes)"
    )

    return buffer.tobytes()


def build_output_filename(
    source_name: str, warped: bool, image_format: ImageFormat
) -> str:
    """
    Derive the download name from the source file name.

    Example:
        >>> build_output_filename("receipt.jpeg", True, ImageFormat.PNG)
        'receipt-perspective-corrected.png'
        >>> build_output_filename("scan", False, ImageFormat.JPEG)
        'scan-cropped.jpg'
    """
    base_name = re.sub(r"\.[^/.]+$", "", Path(source_name).name) or "image"
    suffix = "perspective-corrected" if warped else "cropped"
    return f"{base_name}-{suffix}.{image_format.extension}"


def export_raster(
    raster: Raster,
    output_dir: Union[str, Path],
    source_name: str,
    warped: bool,
    quality: float = DEFAULT_QUALITY,
    png_threshold: float = DEFAULT_PNG_QUALITY_THRESHOLD,
) -> Path:
    """
    Encode a raster and write it next to other exports.

    Args:
        raster: The cropped or warped raster.
        output_dir: Directory to write into (created if missing).
        source_name: Original file name, used for the output name.
        warped: Whether perspective correction was applied.
        quality: Quality setting in [0, 1].
        png_threshold: Quality at or above which PNG is used.

    Returns:
        Path of the written file.
    """
    image_format = select_format(quality, png_threshold)
    data = encode_raster(raster, quality, png_threshold)

    output_path = Path(output_dir) / build_output_filename(
        source_name, warped, image_format
    )
    save_bytes(data, output_path)

    logger.info(f"Exported {raster.width}x{raster.height} raster to {output_path}")

    return output_path
