"""
Python package for scan conversion of curvilinear volumes.

Resamples images acquired on non-Cartesian (e.g. fan or sector shaped) grids onto
uniform Cartesian grids with one of eight resampling methods.

Import as follows:

    from pyScanConvert import (
        CurvilinearImage,
        SectorMapping,
        Grid,
        scan_convert,
    )

Use the documentation, docstrings or examples for a detailed overview.
"""

from importlib.metadata import version, PackageNotFoundError
import logging

from .core import Grid, ScanConvertError, UnsupportedMethodError, GeometryError
from .geometry import AffineMapping, SectorMapping, CurvilinearMapping
from .image import CurvilinearImage, PointCloud, image_to_point_cloud
from .resampling import ResamplingMethod, ResamplingOptions, scan_convert
from .io import load_image, save_image

try:
    __version__ = version(__name__)
except PackageNotFoundError:
    # package is not installed
    pass

# Logging is not exposed by default and needs to be configured by the user.
logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "__version__",
    "Grid",
    "ScanConvertError",
    "UnsupportedMethodError",
    "GeometryError",
    "AffineMapping",
    "SectorMapping",
    "CurvilinearMapping",
    "CurvilinearImage",
    "PointCloud",
    "image_to_point_cloud",
    "ResamplingMethod",
    "ResamplingOptions",
    "scan_convert",
    "load_image",
    "save_image",
]
