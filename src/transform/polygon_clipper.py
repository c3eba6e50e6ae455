"""
Polygon clipping for crops without perspective correction.

Pixels outside the selected quadrilateral become fully transparent,
pixels inside are copied unchanged.
"""

import logging

import cv2
import numpy as np

from src.common.types import Raster
from src.transform.errors import InvalidOutputDimensionsError
from src.transform.quad_geometry import QuadLike, as_quad_array, pixel_bounds

logger = logging.getLogger(__name__)

# Fractional bits used when rasterizing the polygon (1/256 pixel precision)
_SUBPIXEL_SHIFT = 8

# Width of the outline band re-tested against pixel centers (3 px each side)
_BAND_KERNEL = np.ones((7, 7), dtype=np.uint8)


def point_in_polygon(x: float, y: float, contour: np.ndarray) -> bool:
    """True if (x, y) lies inside the contour or on its boundary."""
    return cv2.pointPolygonTest(contour, (float(x), float(y)), False) >= 0


def quadrilateral_mask(width: int, height: int, quad: QuadLike) -> np.ndarray:
    """
    Rasterize a quadrilateral into a boolean coverage mask.

    Corners are given in continuous pixel space where pixel (i, j) spans
    [i, i+1) x [j, j+1). A pixel is covered when its center
    (i + 0.5, j + 0.5) lies inside the quadrilateral or on its boundary.

    ``fillPoly`` gives a coarse mask that may run up to about one pixel
    past the right and bottom edges. Pixels well inside it are kept as is;
    the band around its outline is decided by an exact center test.

    Args:
        width: Mask width.
        height: Mask height.
        quad: 4 corners in pixel space, in drawing order.

    Returns:
        Boolean array of shape (height, width), True inside the polygon.
    """
    quad = as_quad_array(quad)
    fixed = np.round((quad - 0.5) * (1 << _SUBPIXEL_SHIFT)).astype(np.int32)

    coarse = np.zeros((height, width), dtype=np.uint8)
    cv2.fillPoly(coarse, [fixed.reshape(-1, 1, 2)], 255, cv2.LINE_8, _SUBPIXEL_SHIFT)

    # Outside the image counts as uncovered, so edge pixels land in the band
    interior = cv2.erode(
        coarse, _BAND_KERNEL, borderType=cv2.BORDER_CONSTANT, borderValue=0
    ).astype(bool)
    band = cv2.dilate(coarse, _BAND_KERNEL).astype(bool) & ~interior

    contour = quad.astype(np.float32).reshape(-1, 1, 2)
    mask = interior.copy()
    for row, col in zip(*np.nonzero(band)):
        mask[row, col] = point_in_polygon(col + 0.5, row + 0.5, contour)

    return mask


def clip_to_quadrilateral(source: Raster, quad: QuadLike) -> Raster:
    """
    Restrict a raster to the interior of a straight-edged quadrilateral.

    Args:
        source: Input raster; not modified.
        quad: 4 corners in pixel space, in drawing order.

    Returns:
        New raster of the same size with every pixel outside the
        quadrilateral set to (0, 0, 0, 0).

    Example:
        >>> clipped = clip_to_quadrilateral(raster, [[20, 20], [80, 20], [80, 80], [20, 80]])
        >>> clipped.width == raster.width
        True
    """
    mask = quadrilateral_mask(source.width, source.height, quad)

    clipped = np.zeros_like(source.data)
    clipped[mask] = source.data[mask]

    logger.debug(
        f"Clipped {source.width}x{source.height} raster, "
        f"{int(mask.sum())} pixels inside quadrilateral"
    )

    return Raster(data=clipped)


def crop_to_bounds(raster: Raster, quad: QuadLike) -> Raster:
    """
    Trim a raster to the integer bounding box of a quadrilateral.

    The box uses floor of the minima and ceil of the maxima, clamped to
    the raster.

    Raises:
        InvalidOutputDimensionsError: If the box has no pixels inside the raster.
    """
    x0, y0, x1, y1 = pixel_bounds(quad)
    x0, x1 = max(0, x0), min(raster.width, x1)
    y0, y1 = max(0, y0), min(raster.height, y1)

    if x1 <= x0 or y1 <= y0:
        raise InvalidOutputDimensionsError(
            f"Quadrilateral bounds ({x0}, {y0})-({x1}, {y1}) do not overlap the "
            f"{raster.width}x{raster.height} raster"
        )

    logger.debug(f"Cropping to bounds ({x0}, {y0})-({x1}, {y1})")

    return Raster(data=np.ascontiguousarray(raster.data[y0:y1, x0:x1]))
