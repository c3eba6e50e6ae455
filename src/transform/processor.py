"""
Main processor for the Transform module.

Orchestrates the complete pipeline:
1. Scale the normalized corners to source pixel space
2. Validate the quadrilateral and the output size
3. Crop (clip to the quadrilateral) or warp (perspective correction)

Geometry and numerics errors abort the request and are reported as a
single failed result; they are never retried.
"""

import logging
import threading
from pathlib import Path
from typing import Optional, Union

import numpy as np

from src.common.types import CornerPoints, Raster
from src.transform.config_loader import load_config
from src.transform.editor_state import EditorState
from src.transform.errors import (
    DegenerateQuadrilateralError,
    InvalidOutputDimensionsError,
    SingularSystemError,
    TransformCancelledError,
    TransformError,
)
from src.transform.polygon_clipper import clip_to_quadrilateral, crop_to_bounds
from src.transform.quad_geometry import compute_output_size, ensure_non_degenerate
from src.transform.resampler import warp_perspective
from src.transform.types import (
    FailureReason,
    TransformConfig,
    TransformMode,
    TransformResult,
    TransformStatus,
)

logger = logging.getLogger(__name__)

_FAILURE_REASONS = {
    DegenerateQuadrilateralError: FailureReason.DEGENERATE_QUADRILATERAL,
    SingularSystemError: FailureReason.SINGULAR_SYSTEM,
    InvalidOutputDimensionsError: FailureReason.INVALID_OUTPUT_DIMENSIONS,
    TransformCancelledError: FailureReason.CANCELLED,
}


class TransformProcessor:
    """
    Produces cropped or perspective-corrected rasters from four corners.

    The processor holds configuration only; every call is a pure function
    of its raster, corners and requested size.

    Example:
        >>> processor = TransformProcessor()
        >>> corners = CornerPoints.from_list([[0.1, 0.1], [0.9, 0.3], [0.9, 0.7], [0.1, 0.9]])
        >>> result = processor.process(raster, corners, TransformMode.WARP)
        >>> if result.is_success():
        ...     warped = result.raster
    """

    def __init__(
        self,
        config: Optional[TransformConfig] = None,
        config_path: Optional[Path] = None,
    ):
        """
        Initialize the transform processor.

        Args:
            config: Pre-loaded configuration object. If None, will load from file.
            config_path: Path to config file. If None, uses default location.
        """
        if config is not None:
            self.config = config
            logger.info("Using provided configuration")
        else:
            self.config = load_config(config_path) if config_path else load_config()
            logger.info("Loaded configuration from file")

    def process(
        self,
        raster: Raster,
        corners: Union[CornerPoints, list],
        mode: TransformMode = TransformMode.WARP,
        out_width: Optional[int] = None,
        out_height: Optional[int] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> TransformResult:
        """
        Execute the transform pipeline.

        Args:
            raster: Source raster (RGBA8).
            corners: 4 normalized corners, CornerPoints or [[x, y], ...].
            mode: CROP or WARP.
            out_width: Warp output width; defaults to the corners' bounding box.
            out_height: Warp output height; defaults to the corners' bounding box.
            cancel_event: Optional flag checked between tiles.

        Returns:
            TransformResult with the produced raster or the failure reason.

        Raises:
            ValueError: If corners are malformed (wrong count, outside [0, 1]).
        """
        if not isinstance(corners, CornerPoints):
            corners = CornerPoints.from_list(corners)

        quad = corners.to_pixel_space(raster.width, raster.height)

        logger.info(f"Starting {mode.value} of {raster.width}x{raster.height} raster")

        width, height = compute_output_size(quad)
        if mode == TransformMode.WARP:
            width = out_width if out_width is not None else width
            height = out_height if out_height is not None else height

        try:
            if mode == TransformMode.CROP:
                output = self._crop(raster, quad)
            else:
                output = self._warp(raster, quad, width, height, cancel_event)
        except TransformError as e:
            reason = _FAILURE_REASONS.get(type(e), FailureReason.NONE)
            logger.error(f"Transform failed ({reason.value}): {e}")
            return TransformResult(
                status=TransformStatus.FAILED,
                mode=mode,
                raster=None,
                failure_reason=reason,
                output_width=width,
                output_height=height,
                message=str(e),
            )

        logger.info(f"Transform produced {output.width}x{output.height} raster")

        return TransformResult(
            status=TransformStatus.SUCCESS,
            mode=mode,
            raster=output,
            failure_reason=FailureReason.NONE,
            output_width=output.width,
            output_height=output.height,
        )

    def process_state(
        self,
        raster: Raster,
        state: EditorState,
        cancel_event: Optional[threading.Event] = None,
    ) -> TransformResult:
        """Run the transform selected by an editor session."""
        return self.process(
            raster, state.corner_points(), state.mode, cancel_event=cancel_event
        )

    def _crop(self, raster: Raster, quad: np.ndarray) -> Raster:
        ensure_non_degenerate(quad, self.config.numerics.degeneracy_tolerance)

        clipped = clip_to_quadrilateral(raster, quad)
        if not self.config.output.trim_crop_to_bounds:
            return clipped

        return crop_to_bounds(clipped, quad)

    def _warp(
        self,
        raster: Raster,
        quad: np.ndarray,
        width: int,
        height: int,
        cancel_event: Optional[threading.Event],
    ) -> Raster:
        return warp_perspective(
            raster,
            quad,
            width,
            height,
            tile_size=self.config.resampling.tile_size,
            max_workers=self.config.resampling.max_workers,
            cancel_event=cancel_event,
            numerics=self.config.numerics,
            max_dimension=self.config.output.max_dimension,
        )


def process_transform(
    raster: Raster,
    corners: Union[CornerPoints, list],
    mode: TransformMode = TransformMode.WARP,
    out_width: Optional[int] = None,
    out_height: Optional[int] = None,
    config: Optional[TransformConfig] = None,
) -> TransformResult:
    """
    Convenience function for one-shot transform processing.

    Example:
        >>> result = process_transform(raster, [[0.2, 0.2], [0.8, 0.2], [0.8, 0.8], [0.2, 0.8]])
        >>> result.output_width, result.output_height
        (60, 60)
    """
    processor = TransformProcessor(config=config)
    return processor.process(raster, corners, mode, out_width, out_height)
