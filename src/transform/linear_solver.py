"""
Dense linear system solver.

Gaussian elimination with partial pivoting for square systems A @ x = b.
Used to derive homography coefficients (n = 8) but not tied to that size.
"""

import logging
from typing import Sequence, Union

import numpy as np

from src.transform.errors import SingularSystemError

logger = logging.getLogger(__name__)

DEFAULT_PIVOT_EPSILON = 1e-12

ArrayLike = Union[np.ndarray, Sequence[Sequence[float]]]


def solve(
    A: ArrayLike,
    b: Union[np.ndarray, Sequence[float]],
    epsilon: float = DEFAULT_PIVOT_EPSILON,
) -> np.ndarray:
    """
    Solve the square linear system A @ x = b.

    At each elimination step the remaining row with the largest absolute
    value in the pivot column is swapped into place before eliminating.
    The upper-triangular augmented matrix is then back-substituted from
    the last row to the first.

    Args:
        A: Coefficient matrix of shape (n, n).
        b: Right-hand side of length n.
        epsilon: Pivot threshold relative to the largest |A[i, j]|
                 (the scale never drops below 1).

    Returns:
        Solution vector of length n (float64).

    Raises:
        ValueError: If A is not square or b has the wrong length.
        SingularSystemError: If no pivot above the threshold exists.

    Example:
        >>> solve([[2.0, 1.0], [1.0, 3.0]], [3.0, 5.0])
        array([0.8, 1.4])
    """
    A = np.asarray(A, dtype=np.float64)
    b = np.asarray(b, dtype=np.float64)

    if A.ndim != 2 or A.shape[0] != A.shape[1]:
        raise ValueError(f"Expected a square coefficient matrix, got shape {A.shape}")

    n = A.shape[0]
    if b.shape != (n,):
        raise ValueError(f"Expected right-hand side of shape ({n},), got {b.shape}")

    if not (np.all(np.isfinite(A)) and np.all(np.isfinite(b))):
        raise SingularSystemError("Linear system contains non-finite values")

    # Augmented copy [A | b]; inputs are left untouched
    augmented = np.hstack([A, b.reshape(n, 1)])

    tolerance = epsilon * max(1.0, float(np.abs(A).max()) if n else 1.0)

    # Forward elimination
    for col in range(n):
        pivot_row = col + int(np.argmax(np.abs(augmented[col:, col])))
        pivot = augmented[pivot_row, col]

        if abs(pivot) < tolerance:
            raise SingularSystemError(
                f"Pivot {abs(pivot):.3e} in column {col} is below tolerance "
                f"{tolerance:.3e}; the system is singular"
            )

        if pivot_row != col:
            augmented[[col, pivot_row]] = augmented[[pivot_row, col]]

        factors = augmented[col + 1 :, col] / augmented[col, col]
        augmented[col + 1 :, col:] -= np.outer(factors, augmented[col, col:])

    # Back substitution
    solution = np.zeros(n, dtype=np.float64)
    for row in range(n - 1, -1, -1):
        tail = augmented[row, row + 1 : n] @ solution[row + 1 :]
        solution[row] = (augmented[row, n] - tail) / augmented[row, row]

    if not np.all(np.isfinite(solution)):
        raise SingularSystemError("Back substitution produced non-finite values")

    logger.debug(f"Solved {n}x{n} system")

    return solution
