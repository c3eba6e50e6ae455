"""
Corner classification for user-dragged quadrilaterals.

Dragged points can end up in any order, or even crossed. The homography
direction must come from geometry rather than input order, otherwise the
warp is flipped or mirrored.
"""

import logging

import numpy as np

from src.transform.quad_geometry import QuadLike, as_quad_array

logger = logging.getLogger(__name__)

CORNER_LABELS = ("top-left", "top-right", "bottom-right", "bottom-left")


def classify_corners(points: QuadLike) -> np.ndarray:
    """
    Label 4 points as Top-Left, Top-Right, Bottom-Right, Bottom-Left.

    For each corner of the points' bounding box (min-x/min-y, max-x/min-y,
    max-x/max-y, min-x/max-y) the input point with the smallest Euclidean
    distance to it is chosen. Ties go to the earlier input point.

    This is a heuristic, not a convex-hull sort. It is stable for
    perspective-skewed rectangles, but self-intersecting or very thin
    quadrilaterals can be labelled inconsistently, and the same input
    point may be chosen for two corners. Callers should pass a simple,
    roughly convex quadrilateral.

    Args:
        points: 4 points, shape (4, 2), or CornerPoints.

    Returns:
        Array of shape (4, 2) ordered [TL, TR, BR, BL].

    Raises:
        ValueError: If input does not contain exactly 4 points.

    Example:
        >>> pts = np.array([[300, 150], [100, 200], [320, 400], [80, 380]])
        >>> classify_corners(pts)[0]
        array([100., 200.])
    """
    quad = as_quad_array(points)

    min_x, min_y = quad.min(axis=0)
    max_x, max_y = quad.max(axis=0)
    box_corners = np.array(
        [
            [min_x, min_y],  # Top-Left
            [max_x, min_y],  # Top-Right
            [max_x, max_y],  # Bottom-Right
            [min_x, max_y],  # Bottom-Left
        ]
    )

    # distances[c, p]: distance from bounding-box corner c to input point p
    distances = np.hypot(
        box_corners[:, None, 0] - quad[None, :, 0],
        box_corners[:, None, 1] - quad[None, :, 1],
    )
    # argmin returns the first occurrence, which gives input-order tie-breaking
    chosen = np.argmin(distances, axis=1)
    ordered = quad[chosen]

    if len(set(chosen.tolist())) < 4:
        logger.warning(
            f"Corner classification reused an input point (indices {chosen.tolist()}); "
            "the quadrilateral may be self-intersecting or too thin"
        )

    logger.debug(
        f"Classified corners: TL={ordered[0]}, TR={ordered[1]}, "
        f"BR={ordered[2]}, BL={ordered[3]}"
    )

    return ordered
