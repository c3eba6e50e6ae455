"""
Integration tests for the main transform processor.
"""

import dataclasses
import logging
import threading

import numpy as np
import pytest

from src.transform.config_loader import load_config
from src.transform.editor_state import EditorState
from src.transform.processor import TransformProcessor, process_transform
from src.transform.types import FailureReason, TransformMode, TransformStatus

COLLINEAR = [[0.1, 0.1], [0.2, 0.2], [0.3, 0.3], [0.4, 0.4]]
SQUARE = [[0.2, 0.2], [0.8, 0.2], [0.8, 0.8], [0.2, 0.8]]


def _normalized(raster, pts):
    return (pts / np.array([raster.width, raster.height])).tolist()


class TestTransformProcessor:
    """Tests for TransformProcessor class."""

    def test_initialization_default_config(self):
        """Test processor initialization with default config."""
        processor = TransformProcessor()

        assert processor.config is not None
        assert processor.config.resampling.tile_size == 256

    def test_document_warp(self, sample_document_raster):
        """A skewed page is mapped onto its bounding-box sized rectangle."""
        raster, pts = sample_document_raster
        processor = TransformProcessor()

        result = processor.process(raster, _normalized(raster, pts))

        assert result.status == TransformStatus.SUCCESS
        assert result.is_success() is True
        assert result.failure_reason == FailureReason.NONE
        assert (result.output_width, result.output_height) == (280, 230)
        assert (result.raster.width, result.raster.height) == (280, 230)
        # The page fills the output: bright and opaque in the interior
        interior = result.raster.data[20:-20, 20:-20]
        assert (interior[..., 3] == 255).all()
        assert interior[..., :3].mean() > 150

    def test_explicit_output_size(self, sample_document_raster):
        raster, pts = sample_document_raster

        result = TransformProcessor().process(
            raster, _normalized(raster, pts), TransformMode.WARP, 300, 120
        )

        assert result.is_success()
        assert (result.raster.width, result.raster.height) == (300, 120)

    def test_document_crop(self, sample_document_raster):
        """Crop keeps the page pixels and clears everything outside it."""
        raster, pts = sample_document_raster

        result = TransformProcessor().process(
            raster, _normalized(raster, pts), TransformMode.CROP
        )

        assert result.is_success()
        assert result.mode == TransformMode.CROP
        cropped = result.raster
        assert (cropped.width, cropped.height) == (280, 230)
        # Crop origin is (60, 40); (200, 160) is inside the page
        np.testing.assert_array_equal(cropped.data[120, 140], raster.data[160, 200])
        # Outside the slanted left and top edges
        assert cropped.alpha[229, 0] == 0
        assert cropped.alpha[0, 279] == 0

    def test_crop_ignores_requested_size(self, gradient_raster):
        result = TransformProcessor().process(
            gradient_raster, SQUARE, TransformMode.CROP, out_width=10, out_height=10
        )

        assert (result.raster.width, result.raster.height) == (60, 60)

    def test_crop_without_trim_keeps_source_size(self, gradient_raster):
        config = load_config()
        config.output = dataclasses.replace(config.output, trim_crop_to_bounds=False)

        result = TransformProcessor(config=config).process(
            gradient_raster, SQUARE, TransformMode.CROP
        )

        assert (result.raster.width, result.raster.height) == (100, 100)
        assert result.raster.alpha[0, 0] == 0

    @pytest.mark.parametrize("mode", [TransformMode.CROP, TransformMode.WARP])
    def test_collinear_corners_rejected(self, gradient_raster, mode):
        result = TransformProcessor().process(gradient_raster, COLLINEAR, mode)

        assert result.status == TransformStatus.FAILED
        assert result.failure_reason == FailureReason.DEGENERATE_QUADRILATERAL
        assert result.raster is None
        assert "collinear" in result.get_error_message()

    def test_corner_reuse_warned_once(self, gradient_raster, caplog):
        """A diamond reuses an input point; the warning is logged a single time."""
        diamond = [[0.5, 0.0], [1.0, 0.5], [0.5, 1.0], [0.0, 0.5]]

        with caplog.at_level(logging.WARNING):
            result = TransformProcessor().process(gradient_raster, diamond)

        reuse = [r for r in caplog.records if "reused an input point" in r.message]
        assert len(reuse) == 1
        assert result.failure_reason == FailureReason.DEGENERATE_QUADRILATERAL

    @pytest.mark.parametrize("width", [0, -3, 20000])
    def test_invalid_output_dimensions(self, gradient_raster, width):
        result = TransformProcessor().process(
            gradient_raster, SQUARE, TransformMode.WARP, out_width=width
        )

        assert result.failure_reason == FailureReason.INVALID_OUTPUT_DIMENSIONS
        assert result.raster is None

    def test_singular_system_reported(self, gradient_raster):
        config = load_config()
        config.numerics = dataclasses.replace(config.numerics, pivot_epsilon=1e6)

        result = TransformProcessor(config=config).process(gradient_raster, SQUARE)

        assert result.failure_reason == FailureReason.SINGULAR_SYSTEM

    def test_cancelled(self, gradient_raster):
        cancel = threading.Event()
        cancel.set()

        result = TransformProcessor().process(
            gradient_raster, SQUARE, cancel_event=cancel
        )

        assert result.failure_reason == FailureReason.CANCELLED
        assert result.get_error_message().startswith("Transform was cancelled")

    def test_malformed_corners_raise(self, gradient_raster):
        processor = TransformProcessor()
        outside = [[0.2, 0.2], [1.2, 0.2], [0.8, 0.8], [0.2, 0.8]]

        with pytest.raises(ValueError):
            processor.process(gradient_raster, SQUARE[:3])

        with pytest.raises(ValueError):
            processor.process(gradient_raster, outside)

    def test_process_state(self, sample_document_raster):
        raster, _ = sample_document_raster
        state = EditorState()
        processor = TransformProcessor()

        cropped = processor.process_state(raster, state)
        state.toggle_warp()
        warped = processor.process_state(raster, state)

        assert cropped.mode == TransformMode.CROP
        assert warped.mode == TransformMode.WARP
        assert (warped.output_width, warped.output_height) == (240, 180)


class TestProcessTransform:
    """Tests for the convenience function."""

    def test_square_warp_matches_direct_crop(self, gradient_raster):
        result = process_transform(gradient_raster, SQUARE)

        assert result.is_success()
        assert (result.output_width, result.output_height) == (60, 60)
        diff = np.abs(
            result.raster.data.astype(np.int16)
            - gradient_raster.data[20:80, 20:80].astype(np.int16)
        )
        assert diff.max() <= 1

    def test_success_message(self, gradient_raster):
        result = process_transform(gradient_raster, SQUARE, TransformMode.CROP)

        assert result.get_error_message() == "Transform completed"
