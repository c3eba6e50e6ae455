"""
Shared Utilities

Common functions used across all modules.
"""

from src.utils.io import load_raster, load_yaml, save_bytes

__all__ = [
    "load_raster",
    "load_yaml",
    "save_bytes",
]
