"""
Homography estimation from four point correspondences.

Builds the 8x8 linear system for the projective coefficients a11..a32
(a33 fixed to 1) and solves it with the pivoting solver.
"""

import logging
from typing import Optional

import numpy as np

from src.transform.linear_solver import DEFAULT_PIVOT_EPSILON, solve
from src.transform.quad_geometry import (
    DEFAULT_DEGENERACY_TOLERANCE,
    QuadLike,
    ensure_non_degenerate,
)
from src.transform.types import DEFAULT_DENOMINATOR_EPSILON, Homography, NumericsConfig

logger = logging.getLogger(__name__)


def build_linear_system(src: np.ndarray, dst: np.ndarray):
    """
    Stack two equations per correspondence into an 8x8 system.

    For each (sx, sy) -> (dx, dy):
        a11*sx + a12*sy + a13 - dx*a31*sx - dx*a32*sy = dx
        a21*sx + a22*sy + a23 - dy*a31*sx - dy*a32*sy = dy

    Returns:
        Tuple (A, b) with shapes (8, 8) and (8,).
    """
    A = np.zeros((8, 8), dtype=np.float64)
    b = np.zeros(8, dtype=np.float64)

    for i, ((sx, sy), (dx, dy)) in enumerate(zip(src, dst)):
        A[2 * i] = [sx, sy, 1.0, 0.0, 0.0, 0.0, -dx * sx, -dx * sy]
        b[2 * i] = dx
        A[2 * i + 1] = [0.0, 0.0, 0.0, sx, sy, 1.0, -dy * sx, -dy * sy]
        b[2 * i + 1] = dy

    return A, b


def estimate_homography(
    src: QuadLike,
    dst: QuadLike,
    numerics: Optional[NumericsConfig] = None,
) -> Homography:
    """
    Estimate the projective transform mapping src corners onto dst corners.

    Both quadrilaterals are validated before any system is built.

    Args:
        src: 4 source points in pixel space, shape (4, 2).
        dst: 4 destination points in pixel space, same order as src.
        numerics: Optional tolerances; module defaults are used if None.

    Returns:
        Homography with a33 = 1.

    Raises:
        ValueError: If either input does not hold exactly 4 points.
        DegenerateQuadrilateralError: If either quadrilateral has collinear
            corners or zero area.
        SingularSystemError: If the linear solve finds no usable pivot.

    Example:
        >>> square = [[0, 0], [10, 0], [10, 10], [0, 10]]
        >>> H = estimate_homography(square, square)
        >>> round(H.a11, 6), round(H.a13, 6)
        (1.0, 0.0)
    """
    if numerics is None:
        pivot_epsilon = DEFAULT_PIVOT_EPSILON
        denominator_epsilon = DEFAULT_DENOMINATOR_EPSILON
        degeneracy_tolerance = DEFAULT_DEGENERACY_TOLERANCE
    else:
        pivot_epsilon = numerics.pivot_epsilon
        denominator_epsilon = numerics.denominator_epsilon
        degeneracy_tolerance = numerics.degeneracy_tolerance

    src_quad = ensure_non_degenerate(
        src, degeneracy_tolerance, label="source quadrilateral"
    )
    dst_quad = ensure_non_degenerate(
        dst, degeneracy_tolerance, label="destination quadrilateral"
    )

    A, b = build_linear_system(src_quad, dst_quad)
    coefficients = solve(A, b, epsilon=pivot_epsilon)

    homography = Homography.from_coefficients(
        coefficients, denominator_epsilon=denominator_epsilon
    )

    logger.debug(f"Estimated homography coefficients: {homography.coefficients()}")

    return homography
