from typing import Any, Union
from typing_extensions import Self
from pydantic import (
    Field,
    field_validator,
    computed_field,
)
from numpydantic import NDArray, Shape
import numpy as np
import SimpleITK as sitk

from .datamodel import ScanConvertBaseModel


class Grid(ScanConvertBaseModel):
    """
    Class representing a Cartesian sampling lattice in the physical world system.

    Attributes
    ----------
    resolution : dict[str, float]
        The spacing of the grid in the x, y, and z directions.
    dimensions : tuple[int, int, int]
        The number of lattice points in the x, y, and z directions.
    origin : np.ndarray
        The physical position of lattice point (0, 0, 0).
    direction : np.ndarray
        The direction cosines of the grid axes (columns).
    """

    resolution: dict[str, float]
    dimensions: tuple[int, int, int]
    origin: NDArray[Shape["3"], np.floating] = Field(
        default=np.array([0.0, 0.0, 0.0], dtype=np.float64)
    )
    direction: NDArray[Shape["3,3"], np.floating] = Field(default=np.eye(3, dtype=np.float64))

    @computed_field
    @property
    def num_voxels(self) -> int:
        """Number of lattice points in the grid."""
        return int(np.prod(self.dimensions))

    @property
    def x(self) -> np.ndarray:
        """Return the x coordinates along the first grid axis."""
        return np.arange(self.dimensions[0]) * self.resolution["x"] + self.origin[0]

    @property
    def y(self) -> np.ndarray:
        """Return the y coordinates along the second grid axis."""
        return np.arange(self.dimensions[1]) * self.resolution["y"] + self.origin[1]

    @property
    def z(self) -> np.ndarray:
        """Return the z coordinates along the third grid axis."""
        return np.arange(self.dimensions[2]) * self.resolution["z"] + self.origin[2]

    @property
    def resolution_vector(self) -> np.ndarray:
        """Return the resolution as a vector."""
        return np.array([self.resolution["x"], self.resolution["y"], self.resolution["z"]])

    @property
    def physical_extent(self) -> np.ndarray:
        """Physical position of the last lattice point, ``origin + D (size - 1) spacing``."""
        steps = (np.array(self.dimensions, dtype=np.float64) - 1.0) * self.resolution_vector
        return self.origin + np.matmul(self.direction, steps)

    @field_validator("resolution", mode="before")
    @classmethod
    def _cast_resolution(cls, value: Any) -> Any:
        """Accept a sequence of three spacings in x, y, z order."""
        if isinstance(value, dict):
            return value
        try:
            value = np.asarray(value, dtype=np.float64).reshape((3,))
        except (ValueError, TypeError) as exc:
            raise ValueError("resolution must be a dict or convertible to 3 floats") from exc
        return dict(zip(["x", "y", "z"], value.tolist()))

    @field_validator("resolution", mode="after")
    @classmethod
    def _check_resolution(cls, value: dict[str, float]) -> dict[str, float]:
        """Check if resolution has the correct structure and values."""
        if not all(key in value for key in ["x", "y", "z"]):
            raise ValueError("resolution must have keys 'x', 'y', 'z'")

        for _, v in value.items():
            if v <= 0:
                raise ValueError(f"resolution values must be positive floats, got {v}")

        return value

    @field_validator("dimensions", mode="before")
    @classmethod
    def _check_dimensions(cls, value: Any) -> tuple[int, int, int]:
        """Check if dimensions has the correct structure and values."""
        value = tuple(value)
        if len(value) != 3:
            raise ValueError("dimensions must have exactly 3 elements")

        checked = []
        for dim in value:
            try:
                tmpdim = int(dim)
            except (ValueError, TypeError):
                raise ValueError(f"dimension value could not be casted into int, got {dim}")

            if tmpdim < 0:
                raise ValueError(f"dimension values must be non-negative integers, got {tmpdim}")
            checked.append(tmpdim)

        return tuple(checked)

    @field_validator("origin", mode="before")
    @classmethod
    def _check_origin(cls, value: Any) -> Any:
        """Check if origin has the correct shape (3,) and values."""
        try:
            value = np.asarray(value, dtype=np.float64).reshape((3,))
        except ValueError as exc:
            raise ValueError("origin must be convertible to a 1D numpy array of length 3") from exc
        return value

    @field_validator("direction", mode="before")
    @classmethod
    def _check_direction(cls, value: Any) -> Any:
        """Check if direction has the correct shape (3x3)."""

        try:
            value = np.asarray(value, dtype=np.float64).reshape((3, 3))
        except ValueError as exc:
            raise ValueError("direction must be convertible to a 3x3 numpy matrix") from exc
        return value

    @classmethod
    def from_sitk_image(cls, sitk_image: sitk.Image) -> Self:
        """
        Create a Grid object from a SimpleITK image.

        Parameters
        ----------
        sitk_image : sitk.Image
            The SimpleITK image to create the Grid object from.

        Returns
        -------
        Grid
            The Grid object created from the SimpleITK image.
        """
        keys = ["x", "y", "z"]
        resolution = dict(zip(keys, sitk_image.GetSpacing()))
        dimensions = sitk_image.GetSize()
        origin = sitk_image.GetOrigin()
        direction = sitk_image.GetDirection()
        return cls(
            resolution=resolution, dimensions=dimensions, origin=origin, direction=direction
        )

    @classmethod
    def from_size_spacing(
        cls,
        size: Union[tuple[int, int, int], list[int], np.ndarray],
        spacing: Union[tuple[float, float, float], list[float], np.ndarray],
        origin: Union[tuple[float, float, float], list[float], np.ndarray] = (0.0, 0.0, 0.0),
        direction: Union[list[float], np.ndarray] = None,
    ) -> Self:
        """
        Create a Grid from the size / spacing / origin / direction quadruple.

        Parameters
        ----------
        size : array_like
            Number of lattice points per axis.
        spacing : array_like
            Physical distance between adjacent lattice points per axis.
        origin : array_like, optional
            Physical position of lattice point (0, 0, 0).
        direction : array_like, optional
            3x3 direction matrix (or its 9 row-major entries). Identity by default.

        Returns
        -------
        Grid
            The grid object.
        """
        if direction is None:
            direction = np.eye(3)
        return cls(
            resolution=spacing,
            dimensions=tuple(np.asarray(size).reshape(-1).tolist()),
            origin=origin,
            direction=direction,
        )

    @classmethod
    def from_bounds(
        cls,
        lower: Union[list[float], np.ndarray],
        upper: Union[list[float], np.ndarray],
        spacing: Union[float, list[float], np.ndarray],
    ) -> Self:
        """
        Create the smallest axis-aligned grid covering a physical bounding box.

        Parameters
        ----------
        lower : array_like
            Lower corner of the box.
        upper : array_like
            Upper corner of the box.
        spacing : float or array_like
            Isotropic or per-axis spacing of the grid.

        Returns
        -------
        Grid
            A grid with origin at ``lower`` whose last lattice point lies at or beyond
            ``upper``.
        """
        lower = np.asarray(lower, dtype=np.float64).reshape((3,))
        upper = np.asarray(upper, dtype=np.float64).reshape((3,))
        spacing = np.broadcast_to(np.asarray(spacing, dtype=np.float64), (3,))

        if np.any(upper < lower):
            raise ValueError("upper bounds must not be smaller than lower bounds")

        dimensions = np.ceil((upper - lower) / spacing - 1e-9).astype(int) + 1

        return cls(
            resolution=spacing,
            dimensions=tuple(dimensions.tolist()),
            origin=lower,
            direction=np.eye(3),
        )
