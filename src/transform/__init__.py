"""
Quadrilateral Crop & Perspective Transform Engine

Turns four user-placed corners on a raster into either a crop restricted to
the quadrilateral or a perspective-corrected rectangle.

Pipeline stages:
1. Corner classification (TL, TR, BR, BL from geometry)
2. Homography estimation (8x8 system, partial-pivoting solver)
3. Tiled bilinear resampling, or polygon clipping for plain crops
"""

from src.transform.config_loader import load_config
from src.transform.corner_classifier import classify_corners
from src.transform.editor_state import EditorState
from src.transform.errors import (
    DegenerateQuadrilateralError,
    InvalidOutputDimensionsError,
    SingularSystemError,
    TransformCancelledError,
    TransformError,
)
from src.transform.homography import estimate_homography
from src.transform.linear_solver import solve
from src.transform.polygon_clipper import clip_to_quadrilateral, crop_to_bounds
from src.transform.processor import TransformProcessor, process_transform
from src.transform.resampler import partition_tiles, warp_perspective
from src.transform.types import (
    FailureReason,
    Homography,
    Tile,
    TransformConfig,
    TransformMode,
    TransformResult,
    TransformStatus,
)

__all__ = [
    "TransformProcessor",
    "process_transform",
    "load_config",
    "classify_corners",
    "estimate_homography",
    "solve",
    "clip_to_quadrilateral",
    "crop_to_bounds",
    "partition_tiles",
    "warp_perspective",
    "EditorState",
    "FailureReason",
    "Homography",
    "Tile",
    "TransformConfig",
    "TransformMode",
    "TransformResult",
    "TransformStatus",
    "TransformError",
    "DegenerateQuadrilateralError",
    "InvalidOutputDimensionsError",
    "SingularSystemError",
    "TransformCancelledError",
]
