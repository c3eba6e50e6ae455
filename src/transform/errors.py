"""
Exception types raised by the transform engine.

Geometry and numerics failures abort the whole transform. Per-pixel "no
coverage" (a destination pixel whose source position falls outside the
source raster) is a normal outcome and has no exception type.
"""


class TransformError(ValueError):
    """Base class for failures that abort a crop or warp request."""


class DegenerateQuadrilateralError(TransformError):
    """The quadrilateral has collinear corners or encloses no area."""


class SingularSystemError(TransformError):
    """The linear system has no pivot above the numerical tolerance."""


class InvalidOutputDimensionsError(TransformError):
    """Requested output width/height is non-positive or exceeds the limit."""


class TransformCancelledError(TransformError):
    """The cancellation flag was set between two tiles."""
