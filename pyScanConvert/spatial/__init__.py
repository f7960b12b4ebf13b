"""Spatial search structures for point and cell queries."""

from ._locator import (
    PointLocator,
    CellLocator,
    hexahedron_shape_functions,
    hexahedron_shape_derivatives,
)

__all__ = [
    "PointLocator",
    "CellLocator",
    "hexahedron_shape_functions",
    "hexahedron_shape_derivatives",
]
