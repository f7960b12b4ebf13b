"""Geometry module: coordinate mappings between index and physical space."""

from ._mapping import CoordinateMapping, AffineMapping, SectorMapping, CurvilinearMapping

__all__ = [
    "CoordinateMapping",
    "AffineMapping",
    "SectorMapping",
    "CurvilinearMapping",
]
