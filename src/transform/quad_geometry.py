"""
Geometric checks for four-corner selections.

Validates that a quadrilateral can support a perspective transform before
any linear system is built, and derives output sizes from its geometry.
"""

import itertools
import logging
import math
from typing import Tuple, Union

import numpy as np

from src.common.types import CornerPoints
from src.transform.errors import DegenerateQuadrilateralError

logger = logging.getLogger(__name__)

DEFAULT_DEGENERACY_TOLERANCE = 1e-9

_BOUNDS_DECIMALS = 6

QuadLike = Union[np.ndarray, list, CornerPoints]


def as_quad_array(points: QuadLike) -> np.ndarray:
    """
    Convert a quadrilateral to a (4, 2) float64 array.

    Raises:
        ValueError: If the input does not hold exactly 4 points.
    """
    if isinstance(points, CornerPoints):
        return points.to_numpy()

    quad = np.array(points, dtype=np.float64)
    if quad.shape != (4, 2):
        raise ValueError(
            f"Expected exactly 4 points with shape (4, 2), got shape {quad.shape}"
        )
    return quad


def signed_area(points: QuadLike) -> float:
    """
    Shoelace area of the polygon in the given vertex order.

    Positive for clockwise order in image coordinates (y pointing down).
    A self-intersecting "bow-tie" order can yield zero.
    """
    quad = as_quad_array(points)
    x, y = quad[:, 0], quad[:, 1]
    return 0.5 * float(np.dot(x, np.roll(y, -1)) - np.dot(np.roll(x, -1), y))


def _triangle_area(p1: np.ndarray, p2: np.ndarray, p3: np.ndarray) -> float:
    v1 = p2 - p1
    v2 = p3 - p1
    return 0.5 * abs(float(v1[0] * v2[1] - v1[1] * v2[0]))


def _area_tolerance(quad: np.ndarray, tolerance: float) -> float:
    extent = quad.max(axis=0) - quad.min(axis=0)
    diagonal_sq = float(extent[0] ** 2 + extent[1] ** 2)
    return tolerance * max(diagonal_sq, 1.0)


def has_collinear_triple(
    points: QuadLike, tolerance: float = DEFAULT_DEGENERACY_TOLERANCE
) -> bool:
    """
    Check whether any three of the four corners are (nearly) collinear.

    Coincident corners count as collinear.

    Args:
        points: 4 corner points, any order.
        tolerance: Triangle-area threshold relative to the squared
                   bounding-box diagonal.
    """
    quad = as_quad_array(points)
    limit = _area_tolerance(quad, tolerance)
    return any(
        _triangle_area(quad[i], quad[j], quad[k]) <= limit
        for i, j, k in itertools.combinations(range(4), 3)
    )


def is_degenerate(
    points: QuadLike, tolerance: float = DEFAULT_DEGENERACY_TOLERANCE
) -> bool:
    """True if the quadrilateral has collinear corners or encloses no area."""
    quad = as_quad_array(points)
    if has_collinear_triple(quad, tolerance):
        return True
    return abs(signed_area(quad)) <= _area_tolerance(quad, tolerance)


def ensure_non_degenerate(
    points: QuadLike,
    tolerance: float = DEFAULT_DEGENERACY_TOLERANCE,
    label: str = "quadrilateral",
) -> np.ndarray:
    """
    Validate a quadrilateral before it is used for estimation.

    Returns:
        The quadrilateral as a (4, 2) float64 array.

    Raises:
        DegenerateQuadrilateralError: If corners are collinear or the
            enclosed area is zero.
    """
    quad = as_quad_array(points)

    if has_collinear_triple(quad, tolerance):
        raise DegenerateQuadrilateralError(
            f"Three or more corners of the {label} are collinear: {quad.tolist()}"
        )

    if abs(signed_area(quad)) <= _area_tolerance(quad, tolerance):
        raise DegenerateQuadrilateralError(
            f"The {label} encloses no area: {quad.tolist()}"
        )

    return quad


def is_convex(points: QuadLike) -> bool:
    """
    Check if 4 ordered points form a convex quadrilateral.

    Consecutive edge cross products all share a sign for a convex polygon;
    mixed signs indicate concavity or self-intersection.

    Args:
        points: Ordered points [TL, TR, BR, BL] with shape (4, 2).
    """
    quad = as_quad_array(points)
    cross_products = []

    for i in range(4):
        v1 = quad[(i + 1) % 4] - quad[i]
        v2 = quad[(i + 2) % 4] - quad[(i + 1) % 4]
        cross_products.append(v1[0] * v2[1] - v1[1] * v2[0])

    signs = [cp > 1e-6 for cp in cross_products]
    convex = all(signs) or not any(signs)

    if not convex:
        logger.debug(f"Non-convex quadrilateral. Cross products: {cross_products}")

    return convex


def bounding_box(points: QuadLike) -> Tuple[float, float, float, float]:
    """Return (min_x, min_y, max_x, max_y) of the corners."""
    quad = as_quad_array(points)
    min_x, min_y = quad.min(axis=0)
    max_x, max_y = quad.max(axis=0)
    return float(min_x), float(min_y), float(max_x), float(max_y)


def pixel_bounds(points: QuadLike) -> Tuple[int, int, int, int]:
    """
    Integer bounding box enclosing the corners.

    Returns:
        Tuple (x0, y0, x1, y1) with floor of the minima and ceil of the maxima.
    """
    # Snap away scaling artifacts such as 0.07 * 100 = 7.000000000000001
    min_x, min_y, max_x, max_y = (
        round(v, _BOUNDS_DECIMALS) for v in bounding_box(points)
    )
    return (
        math.floor(min_x),
        math.floor(min_y),
        math.ceil(max_x),
        math.ceil(max_y),
    )


def compute_output_size(points: QuadLike) -> Tuple[int, int]:
    """
    Default size of a warped export: the integer bounding box of the corners.

    Args:
        points: 4 corner points in pixel space.

    Returns:
        Tuple (width, height).

    Example:
        >>> compute_output_size([[20, 20], [80, 20], [80, 80], [20, 80]])
        (60, 60)
    """
    x0, y0, x1, y1 = pixel_bounds(points)
    width, height = x1 - x0, y1 - y0

    logger.debug(f"Output size from bounds: {width} x {height}")

    return width, height
