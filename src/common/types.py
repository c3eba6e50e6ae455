"""
Common type definitions for the quadwarp transform engine.

This module provides Pydantic-based type definitions for the core data
structures handed across module boundaries: points, the four-corner
selection and RGBA rasters.

These types provide:
- Type validation and conversion
- Consistent interfaces across modules
- Helper methods for common operations
- Integration with numpy arrays and OpenCV
"""

from typing import List, Tuple, Union

import cv2
import numpy as np
from pydantic import BaseModel, Field, field_validator

RGBA_CHANNELS = 4


class Point(BaseModel):
    """
    Type-safe representation of a 2D point (x, y).

    Coordinates are kept as floats so that sub-pixel positions survive
    the round trip between normalized and pixel space.

    Attributes:
        x: X-coordinate (horizontal).
        y: Y-coordinate (vertical).

    Example:
        >>> point = Point(x=10.5, y=20)
        >>> arr = point.to_numpy()  # array([10.5, 20. ])
        >>> point2 = Point.from_numpy(np.array([15.0, 25.0]))
    """

    x: float = Field(..., description="X-coordinate (horizontal)")
    y: float = Field(..., description="Y-coordinate (vertical)")

    @field_validator("x", "y", mode="before")
    @classmethod
    def _convert_to_float(cls, v: Union[int, float]) -> float:
        """Reject non-numeric and non-finite coordinates."""
        if isinstance(v, bool) or not isinstance(v, (int, float, np.number)):
            raise ValueError(f"Coordinate must be numeric, got {type(v)}")
        v = float(v)
        if not np.isfinite(v):
            raise ValueError(f"Coordinate must be finite, got {v}")
        return v

    @classmethod
    def from_numpy(cls, arr: np.ndarray) -> "Point":
        """
        Create Point from numpy array.

        Args:
            arr: Numpy array of shape (2,) with [x, y] coordinates.

        Returns:
            Point instance.

        Raises:
            ValueError: If array shape is not (2,).
        """
        arr = np.asarray(arr)
        if arr.shape != (2,):
            raise ValueError(f"Expected array of shape (2,), got {arr.shape}")
        return cls(x=float(arr[0]), y=float(arr[1]))

    def to_numpy(self, dtype: type = np.float64) -> np.ndarray:
        """Convert Point to a numpy array of shape (2,)."""
        return np.array([self.x, self.y], dtype=dtype)

    def to_tuple(self) -> Tuple[float, float]:
        """Convert Point to tuple (x, y)."""
        return (self.x, self.y)

    def distance_to(self, other: "Point") -> float:
        """
        Calculate Euclidean distance to another point.

        Args:
            other: Target point.

        Returns:
            Euclidean distance as float.
        """
        return float(np.hypot(self.x - other.x, self.y - other.y))

    def __repr__(self) -> str:
        return f"Point(x={self.x}, y={self.y})"


class NormalizedPoint(Point):
    """
    A point expressed as a fraction of the raster's width and height.

    Both coordinates must lie in [0, 1]; (0, 0) is the top-left corner of
    the image and (1, 1) the bottom-right corner.
    """

    x: float = Field(..., ge=0.0, le=1.0, description="Fraction of image width")
    y: float = Field(..., ge=0.0, le=1.0, description="Fraction of image height")

    def to_pixel(self, width: int, height: int) -> Point:
        """Scale to pixel coordinates of a raster with the given size."""
        return Point(x=self.x * width, y=self.y * height)


class CornerPoints(BaseModel):
    """
    The four user-placed corners of the selection, in normalized space.

    Order is only significant insofar as it must be consistent between
    source and destination correspondences; the corner classifier derives
    the geometric labelling (TL, TR, BR, BL) independently of input order.

    Example:
        >>> corners = CornerPoints.from_list([[0.2, 0.2], [0.8, 0.2], [0.8, 0.8], [0.2, 0.8]])
        >>> corners.to_pixel_space(100, 100)[1]
        array([80., 20.])
    """

    points: List[NormalizedPoint] = Field(..., description="Exactly four corners")

    @field_validator("points")
    @classmethod
    def _validate_count(cls, v: List[NormalizedPoint]) -> List[NormalizedPoint]:
        if len(v) != 4:
            raise ValueError(f"Expected exactly 4 corner points, got {len(v)}")
        return v

    @classmethod
    def from_list(cls, coords: list) -> "CornerPoints":
        """
        Create CornerPoints from a list of [x, y] pairs or Point objects.

        Raises:
            ValueError: If a pair does not contain exactly 2 elements.
        """
        points = []
        for item in coords:
            if isinstance(item, Point):
                points.append(NormalizedPoint(x=item.x, y=item.y))
                continue
            if len(item) != 2:
                raise ValueError(f"Expected [x, y] pairs, got {item!r}")
            points.append(NormalizedPoint(x=item[0], y=item[1]))
        return cls(points=points)

    def to_numpy(self) -> np.ndarray:
        """Normalized coordinates as a (4, 2) float64 array."""
        return np.array([p.to_tuple() for p in self.points], dtype=np.float64)

    def to_pixel_space(self, width: int, height: int) -> np.ndarray:
        """
        Scale the corners to pixel coordinates.

        Args:
            width: Raster width in pixels.
            height: Raster height in pixels.

        Returns:
            Array of shape (4, 2) in the same order as ``points``.
        """
        return self.to_numpy() * np.array([width, height], dtype=np.float64)


class Raster(BaseModel):
    """
    Type-safe wrapper for an RGBA8 image held as a numpy array.

    The array is row-major with shape (H, W, 4) and dtype uint8. Transform
    operations never modify a raster in place; they return a new one.

    Attributes:
        data: The underlying numpy array containing pixel data.

    Example:
        >>> raster = Raster.blank(640, 480)
        >>> print(raster.width, raster.height)  # 640 480
        >>> int(raster.data[..., 3].max())
        0
    """

    data: np.ndarray = Field(..., description="RGBA pixel data as numpy array")

    model_config = {"arbitrary_types_allowed": True}

    @field_validator("data")
    @classmethod
    def _validate_image(cls, v: np.ndarray) -> np.ndarray:
        """
        Validate that the numpy array is an RGBA8 image.

        Raises:
            ValueError: If array is not a valid RGBA8 image.
        """
        if not isinstance(v, np.ndarray):
            raise ValueError(f"Expected numpy.ndarray, got {type(v)}")

        if v.size == 0:
            raise ValueError("Image array is empty")

        if v.ndim != 3 or v.shape[2] != RGBA_CHANNELS:
            raise ValueError(f"Expected RGBA image of shape (H, W, 4), got {v.shape}")

        if v.dtype != np.uint8:
            raise ValueError(
                f"Expected uint8 dtype for image, got {v.dtype}. "
                "Images should be in range [0, 255]"
            )

        return v

    @classmethod
    def blank(cls, width: int, height: int) -> "Raster":
        """Create a fully transparent raster of the given size."""
        return cls(data=np.zeros((height, width, RGBA_CHANNELS), dtype=np.uint8))

    @classmethod
    def from_array(cls, array: np.ndarray) -> "Raster":
        """
        Build an RGBA raster from a grayscale, RGB or RGBA uint8 array.

        Channel order of the input is assumed to be RGB(A). Missing alpha
        becomes fully opaque.

        Raises:
            ValueError: If the array has an unsupported shape.
        """
        array = np.asarray(array)
        if array.ndim == 2:
            rgba = cv2.cvtColor(array, cv2.COLOR_GRAY2RGBA)
        elif array.ndim == 3 and array.shape[2] == 1:
            rgba = cv2.cvtColor(array[..., 0], cv2.COLOR_GRAY2RGBA)
        elif array.ndim == 3 and array.shape[2] == 3:
            rgba = cv2.cvtColor(array, cv2.COLOR_RGB2RGBA)
        elif array.ndim == 3 and array.shape[2] == 4:
            rgba = array.copy()
        else:
            raise ValueError(
                f"Expected grayscale, RGB or RGBA image, got shape {array.shape}"
            )
        return cls(data=np.ascontiguousarray(rgba))

    @property
    def shape(self) -> Tuple[int, ...]:
        """Get image shape (H, W, 4)."""
        return self.data.shape

    @property
    def height(self) -> int:
        """Get image height in pixels."""
        return int(self.data.shape[0])

    @property
    def width(self) -> int:
        """Get image width in pixels."""
        return int(self.data.shape[1])

    @property
    def alpha(self) -> np.ndarray:
        """View of the alpha channel, shape (H, W)."""
        return self.data[..., 3]

    def to_numpy(self) -> np.ndarray:
        """Get underlying numpy array."""
        return self.data

    def copy(self) -> "Raster":
        """Create a deep copy of the raster."""
        return Raster(data=self.data.copy())

    def __repr__(self) -> str:
        return f"Raster(width={self.width}, height={self.height})"
