"""
Export of transformed rasters to PNG/JPEG files.
"""

from src.export.exporter import (
    ImageFormat,
    build_output_filename,
    encode_raster,
    export_raster,
    select_format,
)

__all__ = [
    "ImageFormat",
    "build_output_filename",
    "encode_raster",
    "export_raster",
    "select_format",
]
