"""
Editor state owned by the caller.

Holds the corner positions and the crop/warp toggles of an editing
session. The transform functions never keep state between calls; a UI
passes this object (or the CornerPoints it yields) into them.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Tuple

from src.common.types import CornerPoints
from src.transform.types import TransformMode

logger = logging.getLogger(__name__)

# Square inset from the image edges: TL, TR, BR, BL
DEFAULT_POINTS: Tuple[Tuple[float, float], ...] = (
    (0.2, 0.2),
    (0.8, 0.2),
    (0.8, 0.8),
    (0.2, 0.8),
)


def _default_points() -> List[Tuple[float, float]]:
    return list(DEFAULT_POINTS)


def _clamp_unit(value: float) -> float:
    return max(0.0, min(1.0, float(value)))


@dataclass
class EditorState:
    """
    Corner positions (normalized) and crop/warp flags of one session.

    Example:
        >>> state = EditorState()
        >>> state.update_point(1, 0.9, 0.1)
        >>> state.toggle_warp()
        >>> state.is_cropped, state.is_warped
        (True, True)
    """

    points: List[Tuple[float, float]] = field(default_factory=_default_points)
    is_cropped: bool = False
    is_warped: bool = False

    def update_point(self, index: int, x: float, y: float) -> None:
        """
        Move one corner; the position is clamped to the image.

        Raises:
            IndexError: If index is not in 0..3.
        """
        if not 0 <= index < len(self.points):
            raise IndexError(f"Corner index {index} out of range")
        self.points[index] = (_clamp_unit(x), _clamp_unit(y))

    def reset(self) -> None:
        """Restore the default corners and clear both flags."""
        self.points = _default_points()
        self.is_cropped = False
        self.is_warped = False

    def set_crop_status(self, status: bool) -> None:
        """Set the crop flag; any change of crop state clears the warp flag."""
        self.is_cropped = status
        self.is_warped = False

    def set_warp_status(self, status: bool) -> None:
        self.is_warped = status

    def toggle_crop(self) -> None:
        self.set_crop_status(not self.is_cropped)

    def toggle_warp(self) -> None:
        """Toggle perspective correction, cropping first if needed."""
        if not self.is_cropped:
            self.set_crop_status(True)
            self.set_warp_status(True)
        else:
            self.set_warp_status(not self.is_warped)
        logger.debug(
            f"Warp toggled: cropped={self.is_cropped}, warped={self.is_warped}"
        )

    @property
    def mode(self) -> TransformMode:
        """Transform to apply on export."""
        return TransformMode.WARP if self.is_warped else TransformMode.CROP

    def corner_points(self) -> CornerPoints:
        """Validated snapshot of the current corners."""
        return CornerPoints.from_list(self.points)
