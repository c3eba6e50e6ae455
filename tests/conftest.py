"""
Pytest Configuration and Shared Fixtures

This file contains pytest configuration and fixtures that are available
to all test modules.
"""

import numpy as np
import pytest


@pytest.fixture
def sample_quadrilateral_points():
    """Fixture providing sample 4-corner points (pixel space, shuffled order)."""
    return np.array(
        [
            [300, 150],  # Top-right area
            [100, 200],  # Top-left area
            [320, 400],  # Bottom-right area
            [80, 380],  # Bottom-left area
        ],
        dtype=np.float64,
    )


@pytest.fixture
def gradient_array():
    """100x100 opaque RGBA array whose pixels encode their own position."""
    ys, xs = np.mgrid[0:100, 0:100]
    image = np.zeros((100, 100, 4), dtype=np.uint8)
    image[..., 0] = (xs * 2).astype(np.uint8)
    image[..., 1] = (ys * 2).astype(np.uint8)
    image[..., 2] = ((xs * 7 + ys * 13) % 256).astype(np.uint8)
    image[..., 3] = 255
    return image


@pytest.fixture
def gradient_raster(gradient_array):
    """Raster wrapper around gradient_array."""
    from src.common.types import Raster

    return Raster(data=gradient_array)


@pytest.fixture
def sample_document_raster():
    """Fixture providing a photographed-document-like raster."""
    import cv2

    from src.common.types import Raster

    # Dark background
    image = np.full((300, 400, 3), 40, dtype=np.uint8)

    # Light, perspective-skewed page
    pts = np.array([[60, 40], [340, 80], [330, 250], [70, 270]], dtype=np.int32)
    cv2.fillPoly(image, [pts], (235, 235, 235))
    cv2.putText(
        image,
        "INVOICE",
        (120, 160),
        cv2.FONT_HERSHEY_SIMPLEX,
        1.2,
        (20, 20, 20),
        2,
    )

    return Raster.from_array(image), pts.astype(np.float64)
