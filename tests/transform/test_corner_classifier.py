"""
Unit tests for the corner_classifier module.
"""

import numpy as np
import pytest

from src.common.types import CornerPoints
from src.transform.corner_classifier import classify_corners


class TestClassifyCorners:
    """Test suite for classify_corners."""

    def test_shuffled_points(self, sample_quadrilateral_points):
        """Test basic classification of a shuffled quadrilateral."""
        ordered = classify_corners(sample_quadrilateral_points)

        assert ordered.shape == (4, 2), "Output should have shape (4, 2)"
        np.testing.assert_array_equal(ordered[0], [100, 200])  # TL
        np.testing.assert_array_equal(ordered[1], [300, 150])  # TR
        np.testing.assert_array_equal(ordered[2], [320, 400])  # BR
        np.testing.assert_array_equal(ordered[3], [80, 380])  # BL

    def test_idempotent_on_canonical_order(self):
        """Classifying an already canonical [TL, TR, BR, BL] is a no-op."""
        canonical = np.array(
            [[10, 10], [90, 30], [90, 70], [10, 90]], dtype=np.float64
        )

        once = classify_corners(canonical)
        twice = classify_corners(once)

        np.testing.assert_array_equal(once, canonical)
        np.testing.assert_array_equal(twice, once)

    def test_every_permutation_gives_same_labels(self):
        """Input order must not affect the labelling of a skewed rectangle."""
        import itertools

        canonical = np.array(
            [[12, 8], [95, 20], [88, 75], [5, 92]], dtype=np.float64
        )

        for perm in itertools.permutations(range(4)):
            ordered = classify_corners(canonical[list(perm)])
            np.testing.assert_array_equal(ordered, canonical)

    def test_accepts_corner_points_and_lists(self):
        """Test that CornerPoints and plain lists are accepted."""
        corners = CornerPoints.from_list(
            [[0.8, 0.8], [0.2, 0.2], [0.2, 0.8], [0.8, 0.2]]
        )

        ordered = classify_corners(corners)
        from_list = classify_corners(corners.to_numpy().tolist())

        np.testing.assert_allclose(
            ordered, [[0.2, 0.2], [0.8, 0.2], [0.8, 0.8], [0.2, 0.8]]
        )
        np.testing.assert_array_equal(ordered, from_list)

    def test_tie_broken_by_input_order(self):
        """Equidistant candidates resolve to the earlier input point."""
        # Diamond: every vertex is equidistant from two bounding-box corners
        diamond = np.array([[50, 0], [100, 50], [50, 100], [0, 50]], dtype=np.float64)

        ordered = classify_corners(diamond)

        np.testing.assert_array_equal(ordered[0], [50, 0])  # TL: (50,0) before (0,50)
        np.testing.assert_array_equal(ordered[1], [50, 0])  # TR: (50,0) before (100,50)
        np.testing.assert_array_equal(ordered[2], [100, 50])  # BR
        np.testing.assert_array_equal(ordered[3], [50, 100])  # BL

    def test_invalid_count(self):
        """Test that function raises ValueError for wrong number of points."""
        with pytest.raises(ValueError, match="Expected exactly 4 points"):
            classify_corners(np.array([[100, 200], [300, 150]]))
