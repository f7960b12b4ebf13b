"""Core module with fundamental classes and functions for pyScanConvert."""

from ._exceptions import ScanConvertError, UnsupportedMethodError, GeometryError
from .datamodel import ScanConvertBaseModel
from ._grids import Grid
from ._progress import ProgressReporter, TqdmProgress, validate_progress

__all__ = [
    "ScanConvertError",
    "UnsupportedMethodError",
    "GeometryError",
    "ScanConvertBaseModel",
    "Grid",
    "ProgressReporter",
    "TqdmProgress",
    "validate_progress",
]
