"""
Data types and structures for the Transform module.

Provides type-safe containers for configuration, homographies, tiles and
results.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

import numpy as np

from src.common.types import Raster

# |denominator| below this marks a point with no valid image under the projection
DEFAULT_DENOMINATOR_EPSILON = 1e-4


class TransformMode(Enum):
    """What to produce from the selected quadrilateral."""

    CROP = "crop"  # Clip to the quadrilateral, no perspective correction
    WARP = "warp"  # Map the quadrilateral onto an axis-aligned rectangle


class TransformStatus(Enum):
    """Outcome of a processor run."""

    SUCCESS = "SUCCESS"
    FAILED = "FAILED"


class FailureReason(Enum):
    """Specific reasons a transform request failed."""

    DEGENERATE_QUADRILATERAL = "Degenerate Quadrilateral"
    SINGULAR_SYSTEM = "Singular System"
    INVALID_OUTPUT_DIMENSIONS = "Invalid Output Dimensions"
    CANCELLED = "Cancelled"
    NONE = "None"  # No failure


@dataclass
class NumericsConfig:
    """Tolerances used by the solver, the estimator and the resampler."""

    pivot_epsilon: float  # Relative to the largest |A[i, j]|
    denominator_epsilon: float
    degeneracy_tolerance: float  # Relative to the squared bounding-box diagonal


@dataclass
class ResamplingConfig:
    """Configuration for the tiled resampler."""

    tile_size: int
    max_workers: int


@dataclass
class OutputConfig:
    """Limits and options for the produced raster."""

    max_dimension: int
    trim_crop_to_bounds: bool


@dataclass
class ExportConfig:
    """Encoder options."""

    png_quality_threshold: float
    default_quality: float


@dataclass
class TransformConfig:
    """Complete transform module configuration."""

    numerics: NumericsConfig
    resampling: ResamplingConfig
    output: OutputConfig
    export: ExportConfig


@dataclass(frozen=True)
class Homography:
    """
    Projective transform between two planes, a33 fixed to 1.

    Maps (x, y) to (x', y') with:
        denom = a31*x + a32*y + 1
        x' = (a11*x + a12*y + a13) / denom
        y' = (a21*x + a22*y + a23) / denom
    """

    a11: float
    a12: float
    a13: float
    a21: float
    a22: float
    a23: float
    a31: float
    a32: float
    denominator_epsilon: float = DEFAULT_DENOMINATOR_EPSILON

    a33 = 1.0

    def __post_init__(self):
        if not all(np.isfinite(c) for c in self.coefficients()):
            raise ValueError(
                f"Homography coefficients must be finite, got {self.coefficients()}"
            )

    @classmethod
    def from_coefficients(
        cls, coefficients, denominator_epsilon: float = DEFAULT_DENOMINATOR_EPSILON
    ) -> "Homography":
        """Build from the 8 solved unknowns [a11, a12, a13, a21, a22, a23, a31, a32]."""
        values = [float(c) for c in coefficients]
        if len(values) != 8:
            raise ValueError(f"Expected 8 coefficients, got {len(values)}")
        return cls(*values, denominator_epsilon=denominator_epsilon)

    def coefficients(self) -> Tuple[float, ...]:
        """The 8 free coefficients in row-major order."""
        return (
            self.a11,
            self.a12,
            self.a13,
            self.a21,
            self.a22,
            self.a23,
            self.a31,
            self.a32,
        )

    def to_matrix(self) -> np.ndarray:
        """3x3 matrix representation."""
        return np.array(
            [
                [self.a11, self.a12, self.a13],
                [self.a21, self.a22, self.a23],
                [self.a31, self.a32, self.a33],
            ],
            dtype=np.float64,
        )

    def map_point(self, x: float, y: float) -> Optional[Tuple[float, float]]:
        """
        Apply the transform to a single point.

        Returns:
            The mapped (x', y'), or None when the point maps to infinity.
        """
        denom = self.a31 * x + self.a32 * y + self.a33
        if abs(denom) < self.denominator_epsilon:
            return None
        return (
            (self.a11 * x + self.a12 * y + self.a13) / denom,
            (self.a21 * x + self.a22 * y + self.a23) / denom,
        )

    def map_grid(
        self, xs: np.ndarray, ys: np.ndarray
    ) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
        """
        Vectorized form of map_point.

        Args:
            xs: X coordinates (any shape).
            ys: Y coordinates, broadcastable against xs.

        Returns:
            Tuple (mapped_x, mapped_y, valid). Entries where valid is False
            have no image and hold NaN.
        """
        denom = self.a31 * xs + self.a32 * ys + self.a33
        valid = np.abs(denom) >= self.denominator_epsilon
        safe = np.where(valid, denom, 1.0)
        mapped_x = (self.a11 * xs + self.a12 * ys + self.a13) / safe
        mapped_y = (self.a21 * xs + self.a22 * ys + self.a23) / safe
        return (
            np.where(valid, mapped_x, np.nan),
            np.where(valid, mapped_y, np.nan),
            valid,
        )


@dataclass(frozen=True)
class Tile:
    """A disjoint rectangle of the destination raster, in pixels."""

    x: int
    y: int
    width: int
    height: int

    @property
    def slices(self) -> Tuple[slice, slice]:
        """Row and column slices addressing this tile in an (H, W, C) array."""
        return slice(self.y, self.y + self.height), slice(self.x, self.x + self.width)


@dataclass
class TransformResult:
    """
    Output from the transform pipeline.

    Attributes:
        status: SUCCESS or FAILED.
        mode: The requested transform mode.
        raster: The produced raster (None on failure).
        failure_reason: Specific reason if failed, NONE otherwise.
        output_width: Width of the produced (or requested) raster.
        output_height: Height of the produced (or requested) raster.
        message: Error message from the failing stage, empty on success.
    """

    status: TransformStatus
    mode: TransformMode
    raster: Optional[Raster]
    failure_reason: FailureReason
    output_width: int
    output_height: int
    message: str = ""

    def is_success(self) -> bool:
        """Check if the transform succeeded."""
        return self.status == TransformStatus.SUCCESS

    def get_error_message(self) -> str:
        """Get human-readable error message."""
        if self.is_success():
            return "Transform completed"

        reason_messages = {
            FailureReason.DEGENERATE_QUADRILATERAL: (
                "Selected corners are collinear or enclose no area"
            ),
            FailureReason.SINGULAR_SYSTEM: "Perspective transform could not be solved",
            FailureReason.INVALID_OUTPUT_DIMENSIONS: (
                f"Invalid output dimensions {self.output_width}x{self.output_height}"
            ),
            FailureReason.CANCELLED: "Transform was cancelled",
        }

        text = reason_messages.get(
            self.failure_reason, f"Failed: {self.failure_reason.value}"
        )
        if self.message:
            text = f"{text}: {self.message}"
        return text
