"""
Bidirectional coordinate mappings between image index space and physical space.

Classes
-------
- CoordinateMapping: Abstract interface of all mappings.
- AffineMapping: Origin / spacing / direction mapping of Cartesian images.
- SectorMapping: Fan (sector) shaped acquisition geometry with analytic inverse.
- CurvilinearMapping: Arbitrary forward mapping, inverted by a seeded Newton iteration.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Callable, ClassVar, Optional

import numpy as np
import SimpleITK as sitk
from numpydantic import NDArray, Shape
from pydantic import Field, PrivateAttr, field_validator
from scipy.spatial import cKDTree
from typing_extensions import Self

from pyScanConvert.core import Grid, ScanConvertBaseModel, GeometryError

logger = logging.getLogger(__name__)


def _as_points(values: Any) -> np.ndarray:
    """Return values as a float64 array of shape (N, 3)."""
    points = np.asarray(values, dtype=np.float64)
    if points.ndim == 1:
        points = points.reshape((1, -1))
    if points.ndim != 2 or points.shape[1] != 3:
        raise ValueError(f"Expected coordinates of shape (N, 3), got {points.shape}")
    return points


class CoordinateMapping(ScanConvertBaseModel, ABC):
    """
    Abstract mapping from continuous image indices to physical points and back.

    Attributes
    ----------
    is_affine : bool
        True if the mapping is affine, i.e. the image is Cartesian.
    """

    is_affine: ClassVar[bool] = False

    @abstractmethod
    def index_to_physical(self, index: np.ndarray) -> np.ndarray:
        """
        Map continuous indices (N, 3) to physical points (N, 3).

        Parameters
        ----------
        index : np.ndarray
            Continuous [i, j, k] indices.

        Returns
        -------
        np.ndarray
            Physical coordinates.
        """

    @abstractmethod
    def physical_to_index(self, points: np.ndarray) -> np.ndarray:
        """
        Map physical points (N, 3) to continuous indices (N, 3).

        Rows that cannot be inverted are NaN.

        Parameters
        ----------
        points : np.ndarray
            Physical coordinates.

        Returns
        -------
        np.ndarray
            Continuous [i, j, k] indices.
        """

    def check_shape(self, shape: tuple[int, int, int]) -> None:
        """Raise a GeometryError if the mapping cannot describe an image of this shape."""


class AffineMapping(CoordinateMapping):
    """
    Mapping of a Cartesian image: ``p = origin + D diag(spacing) index``.

    Attributes
    ----------
    origin : np.ndarray
        Physical position of index (0, 0, 0).
    spacing : np.ndarray
        Distance between adjacent samples along each index axis.
    direction : np.ndarray
        Direction cosines (columns are the index axes).
    """

    is_affine: ClassVar[bool] = True

    origin: NDArray[Shape["3"], np.floating] = Field(
        default=np.array([0.0, 0.0, 0.0], dtype=np.float64)
    )
    spacing: NDArray[Shape["3"], np.floating] = Field(
        default=np.array([1.0, 1.0, 1.0], dtype=np.float64)
    )
    direction: NDArray[Shape["3,3"], np.floating] = Field(default=np.eye(3, dtype=np.float64))

    @field_validator("origin", "spacing", mode="before")
    @classmethod
    def _check_vector(cls, value: Any) -> Any:
        try:
            value = np.asarray(value, dtype=np.float64).reshape((3,))
        except ValueError as exc:
            raise ValueError("value must be convertible to a numpy array of length 3") from exc
        return value

    @field_validator("spacing", mode="after")
    @classmethod
    def _check_spacing(cls, value: np.ndarray) -> np.ndarray:
        if np.any(value <= 0):
            raise ValueError(f"spacing must be positive, got {value}")
        return value

    @field_validator("direction", mode="before")
    @classmethod
    def _check_direction(cls, value: Any) -> Any:
        try:
            value = np.asarray(value, dtype=np.float64).reshape((3, 3))
        except ValueError as exc:
            raise ValueError("direction must be convertible to a 3x3 numpy matrix") from exc
        if abs(np.linalg.det(value)) < 1e-12:
            raise ValueError("direction must be a non-singular matrix")
        return value

    @property
    def matrix(self) -> np.ndarray:
        """The linear part ``D diag(spacing)``."""
        return np.matmul(self.direction, np.diag(self.spacing))

    @classmethod
    def from_grid(cls, grid: Grid) -> Self:
        """Create the mapping of the lattice described by a Grid."""
        return cls(origin=grid.origin, spacing=grid.resolution_vector, direction=grid.direction)

    @classmethod
    def from_sitk_image(cls, image: sitk.Image) -> Self:
        """Create the mapping described by the geometry of a SimpleITK image."""
        return cls.from_grid(Grid.from_sitk_image(image))

    def index_to_physical(self, index: np.ndarray) -> np.ndarray:
        index = _as_points(index)
        return self.origin + np.matmul(index, self.matrix.T)

    def physical_to_index(self, points: np.ndarray) -> np.ndarray:
        points = _as_points(points)
        inverse = np.linalg.inv(self.matrix)
        return np.matmul(points - self.origin, inverse.T)


class SectorMapping(CoordinateMapping):
    """
    Fan shaped (sector) acquisition geometry.

    Index axis 0 runs over the lateral angle, centred on the y axis, index axis 1 over
    the radius and index axis 2 over the (linear) elevation:

    - ``theta = (i - (lateral_size - 1) / 2) * lateral_angular_separation``
    - ``r = first_sample_distance + j * radius_sample_size``
    - ``p = origin + (r sin(theta), r cos(theta), k * elevation_sample_size)``

    Attributes
    ----------
    lateral_size : int
        Number of samples along the lateral (angle) axis.
    lateral_angular_separation : float
        Angle between adjacent scan lines in radians.
    radius_sample_size : float
        Distance between adjacent samples along a scan line.
    first_sample_distance : float
        Distance of the first sample of each scan line from the apex.
    elevation_sample_size : float
        Distance between adjacent samples along the elevation axis.
    origin : np.ndarray
        Physical position of the apex.
    """

    lateral_size: int = Field(ge=1)
    lateral_angular_separation: float = Field(gt=0)
    radius_sample_size: float = Field(gt=0)
    first_sample_distance: float = Field(default=0.0, ge=0)
    elevation_sample_size: float = Field(default=1.0, gt=0)
    origin: NDArray[Shape["3"], np.floating] = Field(
        default=np.array([0.0, 0.0, 0.0], dtype=np.float64)
    )

    @field_validator("origin", mode="before")
    @classmethod
    def _check_origin(cls, value: Any) -> Any:
        try:
            value = np.asarray(value, dtype=np.float64).reshape((3,))
        except ValueError as exc:
            raise ValueError("origin must be convertible to a numpy array of length 3") from exc
        return value

    @property
    def _lateral_center(self) -> float:
        return (self.lateral_size - 1) / 2.0

    def check_shape(self, shape: tuple[int, int, int]) -> None:
        if shape[0] != self.lateral_size:
            raise GeometryError(
                f"Sector mapping describes {self.lateral_size} scan lines, "
                f"image has {shape[0]}"
            )

    def index_to_physical(self, index: np.ndarray) -> np.ndarray:
        index = _as_points(index)
        theta = (index[:, 0] - self._lateral_center) * self.lateral_angular_separation
        radius = self.first_sample_distance + index[:, 1] * self.radius_sample_size

        points = np.empty_like(index)
        points[:, 0] = radius * np.sin(theta)
        points[:, 1] = radius * np.cos(theta)
        points[:, 2] = index[:, 2] * self.elevation_sample_size
        return points + self.origin

    def physical_to_index(self, points: np.ndarray) -> np.ndarray:
        local = _as_points(points) - self.origin
        theta = np.arctan2(local[:, 0], local[:, 1])
        radius = np.hypot(local[:, 0], local[:, 1])

        index = np.empty_like(local)
        index[:, 0] = theta / self.lateral_angular_separation + self._lateral_center
        index[:, 1] = (radius - self.first_sample_distance) / self.radius_sample_size
        index[:, 2] = local[:, 2] / self.elevation_sample_size
        return index


class CurvilinearMapping(CoordinateMapping):
    """
    Mapping given by an arbitrary (smooth) forward function.

    The inverse is computed per point with a Newton iteration using a finite
    difference Jacobian. Each iteration is seeded with the integer index whose
    physical position is closest to the query point.

    Attributes
    ----------
    forward : Callable[[np.ndarray], np.ndarray]
        Vectorized mapping of (N, 3) continuous indices to (N, 3) physical points.
    index_shape : tuple[int, int, int]
        Shape of the image the mapping belongs to (used for seeding).
    max_iterations : int
        Maximum number of Newton steps.
    tolerance : float
        Physical distance below which a point counts as inverted.
    step : float
        Index increment used for the finite difference Jacobian.
    """

    forward: Callable[[np.ndarray], np.ndarray]
    index_shape: tuple[int, int, int]
    max_iterations: int = Field(default=25, ge=1)
    tolerance: float = Field(default=1e-8, gt=0)
    step: float = Field(default=1e-4, gt=0)

    _seed_tree: Optional[cKDTree] = PrivateAttr(default=None)

    @field_validator("index_shape", mode="before")
    @classmethod
    def _check_index_shape(cls, value: Any) -> tuple[int, int, int]:
        value = tuple(int(v) for v in value)
        if len(value) != 3 or any(v < 1 for v in value):
            raise ValueError(f"index_shape must have 3 positive entries, got {value}")
        return value

    def check_shape(self, shape: tuple[int, int, int]) -> None:
        if tuple(shape) != self.index_shape:
            raise GeometryError(
                f"Mapping was defined for shape {self.index_shape}, image has {tuple(shape)}"
            )

    def index_to_physical(self, index: np.ndarray) -> np.ndarray:
        index = _as_points(index)
        points = np.asarray(self.forward(index), dtype=np.float64)
        if points.shape != index.shape:
            raise GeometryError(
                f"Forward mapping returned shape {points.shape}, expected {index.shape}"
            )
        return points

    def _seeds(self, points: np.ndarray) -> np.ndarray:
        if self._seed_tree is None:
            grid_index = np.stack(
                np.meshgrid(*[np.arange(n) for n in self.index_shape], indexing="ij"), axis=-1
            ).reshape((-1, 3))
            self._seed_tree = cKDTree(self.index_to_physical(grid_index))
            logger.debug("Built seed tree over %d samples", grid_index.shape[0])

        _, nearest = self._seed_tree.query(points)
        return np.stack(np.unravel_index(nearest, self.index_shape), axis=-1).astype(np.float64)

    def _jacobian(self, index: np.ndarray, mapped: np.ndarray) -> np.ndarray:
        jacobian = np.empty((index.shape[0], 3, 3))
        for d in range(3):
            shifted = index.copy()
            shifted[:, d] += self.step
            jacobian[:, :, d] = (self.index_to_physical(shifted) - mapped) / self.step
        return jacobian

    def physical_to_index(self, points: np.ndarray) -> np.ndarray:
        points = _as_points(points)
        index = self._seeds(points)
        active = np.arange(points.shape[0])
        residual_norm = np.full(points.shape[0], np.inf)

        for _ in range(self.max_iterations):
            mapped = self.index_to_physical(index[active])
            residual = mapped - points[active]
            residual_norm[active] = np.linalg.norm(residual, axis=1)

            still_active = residual_norm[active] > self.tolerance
            active = active[still_active]
            if active.size == 0:
                break

            jacobian = self._jacobian(index[active], mapped[still_active])
            # pinv copes with degenerate (collapsed) axes
            delta = np.matmul(np.linalg.pinv(jacobian), residual[still_active][:, :, None])
            index[active] -= delta[:, :, 0]
        else:
            mapped = self.index_to_physical(index[active])
            residual_norm[active] = np.linalg.norm(mapped - points[active], axis=1)

        failed = ~(residual_norm <= self.tolerance)
        if np.any(failed):
            logger.debug("Newton inversion did not converge for %d points", np.sum(failed))
            index[failed] = np.nan
        return index
