"""
Perspective resampling of a raster through a homography.

Every destination pixel is mapped back into the source with the
destination -> source homography and sampled with bilinear interpolation.
The destination is processed in square tiles so that peak extra memory is
one tile buffer (per worker) plus the source, whatever the output size.
"""

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from typing import List, Optional

import numpy as np

from src.common.types import RGBA_CHANNELS, Raster
from src.transform.corner_classifier import classify_corners
from src.transform.errors import InvalidOutputDimensionsError, TransformCancelledError
from src.transform.homography import estimate_homography
from src.transform.quad_geometry import QuadLike, is_convex
from src.transform.types import Homography, NumericsConfig, Tile

logger = logging.getLogger(__name__)

DEFAULT_TILE_SIZE = 256
DEFAULT_MAX_DIMENSION = 10000

# Mapped coordinates this far below zero are solver round-off, not misses
_COORDINATE_SNAP = 1e-7


def validate_output_dimensions(
    width: int, height: int, max_dimension: int = DEFAULT_MAX_DIMENSION
) -> None:
    """
    Reject output sizes that are non-positive or unreasonably large.

    Raises:
        InvalidOutputDimensionsError: If width/height is <= 0 or > max_dimension.
    """
    for name, value in (("width", width), ("height", height)):
        if isinstance(value, bool) or not isinstance(value, (int, np.integer)):
            raise InvalidOutputDimensionsError(
                f"Output {name} must be an integer, got {value!r}"
            )
        if value <= 0:
            raise InvalidOutputDimensionsError(
                f"Output {name} must be positive, got {value}"
            )
        if value > max_dimension:
            raise InvalidOutputDimensionsError(
                f"Output {name} {value} exceeds the maximum of {max_dimension}"
            )


def partition_tiles(width: int, height: int, tile_size: int) -> List[Tile]:
    """
    Split a width x height rectangle into disjoint tiles, row by row.

    Edge tiles are clipped to the rectangle.

    Example:
        >>> [(t.x, t.y, t.width, t.height) for t in partition_tiles(300, 100, 256)]
        [(0, 0, 256, 100), (256, 0, 44, 100)]
    """
    if tile_size <= 0:
        raise ValueError(f"tile_size must be positive, got {tile_size}")

    return [
        Tile(
            x=x,
            y=y,
            width=min(tile_size, width - x),
            height=min(tile_size, height - y),
        )
        for y in range(0, height, tile_size)
        for x in range(0, width, tile_size)
    ]


def sample_bilinear(
    source: np.ndarray, sx: np.ndarray, sy: np.ndarray
) -> np.ndarray:
    """
    Bilinear samples of an (H, W, C) uint8 array at in-bounds positions.

    With x1 = floor(sx), x2 = min(x1 + 1, W - 1) (same for y) and weights
    wx = sx - x1, wy = sy - y1:
        top = p11 * (1 - wx) + p12 * wx
        bottom = p21 * (1 - wx) + p22 * wx
        value = round(top * (1 - wy) + bottom * wy)
    Halves round up.

    Args:
        source: Source pixels, shape (H, W, C).
        sx: X positions in [0, W), shape (N,).
        sy: Y positions in [0, H), shape (N,).

    Returns:
        uint8 array of shape (N, C).
    """
    height, width = source.shape[:2]

    x1 = np.floor(sx).astype(np.intp)
    y1 = np.floor(sy).astype(np.intp)
    x2 = np.minimum(x1 + 1, width - 1)
    y2 = np.minimum(y1 + 1, height - 1)

    wx = (sx - x1)[:, None]
    wy = (sy - y1)[:, None]

    p11 = source[y1, x1].astype(np.float64)
    p12 = source[y1, x2].astype(np.float64)
    p21 = source[y2, x1].astype(np.float64)
    p22 = source[y2, x2].astype(np.float64)

    top = p11 * (1.0 - wx) + p12 * wx
    bottom = p21 * (1.0 - wx) + p22 * wx
    value = np.floor(top * (1.0 - wy) + bottom * wy + 0.5)

    return np.clip(value, 0, 255).astype(np.uint8)


def render_tile(source: np.ndarray, homography: Homography, tile: Tile) -> np.ndarray:
    """
    Resample one destination tile.

    Destination pixels whose source position falls outside the source
    raster, or maps to infinity, stay (0, 0, 0, 0).

    Args:
        source: Shared read-only source pixels, shape (H, W, 4).
        homography: Destination -> source mapping.
        tile: The destination region to render.

    Returns:
        Tile buffer of shape (tile.height, tile.width, 4).
    """
    src_height, src_width = source.shape[:2]
    buffer = np.zeros((tile.height, tile.width, RGBA_CHANNELS), dtype=np.uint8)

    xs, ys = np.meshgrid(
        np.arange(tile.x, tile.x + tile.width, dtype=np.float64),
        np.arange(tile.y, tile.y + tile.height, dtype=np.float64),
    )
    sx, sy, valid = homography.map_grid(xs, ys)

    with np.errstate(invalid="ignore"):
        sx = np.where((sx < 0) & (sx > -_COORDINATE_SNAP), 0.0, sx)
        sy = np.where((sy < 0) & (sy > -_COORDINATE_SNAP), 0.0, sy)
        inside_x = (sx >= 0) & (sx < src_width)
        inside_y = (sy >= 0) & (sy < src_height)
    covered = valid & inside_x & inside_y

    if covered.any():
        buffer[covered] = sample_bilinear(source, sx[covered], sy[covered])

    return buffer


def resample(
    source: Raster,
    homography: Homography,
    out_width: int,
    out_height: int,
    tile_size: int = DEFAULT_TILE_SIZE,
    max_workers: int = 1,
    cancel_event: Optional[threading.Event] = None,
) -> Raster:
    """
    Render a destination raster through a destination -> source homography.

    Tiles write into disjoint regions of the destination, so they can run
    on a thread pool without locking. The cancellation flag is checked
    before each tile starts.

    Raises:
        TransformCancelledError: If cancel_event is set before all tiles ran.
    """
    tiles = partition_tiles(out_width, out_height, tile_size)
    destination = np.zeros((out_height, out_width, RGBA_CHANNELS), dtype=np.uint8)
    source_pixels = source.data

    def _run(tile: Tile) -> None:
        if cancel_event is not None and cancel_event.is_set():
            raise TransformCancelledError(
                f"Cancelled before tile at ({tile.x}, {tile.y})"
            )
        rows, cols = tile.slices
        destination[rows, cols] = render_tile(source_pixels, homography, tile)

    logger.debug(
        f"Resampling {out_width}x{out_height} in {len(tiles)} tiles "
        f"(tile_size={tile_size}, workers={max_workers})"
    )

    if max_workers <= 1 or len(tiles) == 1:
        for tile in tiles:
            _run(tile)
    else:
        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            futures = [executor.submit(_run, tile) for tile in tiles]
            try:
                for future in futures:
                    future.result()
            finally:
                for future in futures:
                    future.cancel()

    return Raster(data=destination)


def warp_perspective(
    source: Raster,
    src_quad: QuadLike,
    out_width: int,
    out_height: int,
    tile_size: int = DEFAULT_TILE_SIZE,
    max_workers: int = 1,
    cancel_event: Optional[threading.Event] = None,
    numerics: Optional[NumericsConfig] = None,
    max_dimension: int = DEFAULT_MAX_DIMENSION,
) -> Raster:
    """
    Map a source quadrilateral onto an out_width x out_height rectangle.

    The quadrilateral corners are classified into [TL, TR, BR, BL] and
    paired with (0, 0), (W, 0), (W, H), (0, H). The destination -> source
    homography is estimated directly, so no matrix inversion is needed.

    Args:
        source: Input raster; not modified.
        src_quad: 4 corners in source pixel space, any order.
        out_width: Output width in pixels.
        out_height: Output height in pixels.
        tile_size: Edge length of the square processing tiles.
        max_workers: Threads used for tiles (1 = run inline).
        cancel_event: Optional flag checked between tiles.
        numerics: Optional solver/estimator tolerances.
        max_dimension: Upper bound for out_width and out_height.

    Returns:
        New raster of size out_width x out_height. Pixels with no source
        coverage are fully transparent.

    Raises:
        InvalidOutputDimensionsError: If the output size is invalid.
        DegenerateQuadrilateralError: If src_quad is degenerate.
        SingularSystemError: If the homography cannot be solved.
        TransformCancelledError: If cancelled between tiles.

    Example:
        >>> warped = warp_perspective(raster, [[20, 20], [80, 20], [80, 80], [20, 80]], 60, 60)
        >>> warped.width, warped.height
        (60, 60)
    """
    validate_output_dimensions(out_width, out_height, max_dimension)

    ordered = classify_corners(src_quad)
    if not is_convex(ordered):
        logger.warning(
            "Selection is not a convex quadrilateral; corner labelling "
            "may be inconsistent and the warp may be folded"
        )

    dst_quad = np.array(
        [
            [0, 0],  # Top-Left
            [out_width, 0],  # Top-Right
            [out_width, out_height],  # Bottom-Right
            [0, out_height],  # Bottom-Left
        ],
        dtype=np.float64,
    )

    homography = estimate_homography(dst_quad, ordered, numerics)

    warped = resample(
        source,
        homography,
        out_width,
        out_height,
        tile_size=tile_size,
        max_workers=max_workers,
        cancel_event=cancel_event,
    )

    logger.info(
        f"Warped {source.width}x{source.height} source to {out_width}x{out_height}"
    )

    return warped
