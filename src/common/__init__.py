"""
Common types shared across modules.

This module provides standardized data types for the quadwarp engine,
ensuring consistency and type safety between the transform core and the
exporter.
"""

from src.common.types import CornerPoints, NormalizedPoint, Point, Raster

__all__ = ["CornerPoints", "NormalizedPoint", "Point", "Raster"]
