"""
Interpolation kernels for scattered data (point cloud) resampling.

Classes
-------
- InterpolationKernel: Abstract kernel combining the samples around a query point.
- GaussianKernel: Gaussian weights within the footprint radius.
- LinearKernel: Weights falling linearly to zero at the footprint radius.
- ShepardKernel: Inverse distance weights.
- VoronoiKernel: Value of the single nearest sample.
"""

from abc import ABC, abstractmethod
from typing import ClassVar, Optional

import numpy as np
from pydantic import Field, model_validator
from typing_extensions import Self

from pyScanConvert.core import ScanConvertBaseModel, UnsupportedMethodError
from pyScanConvert.spatial import PointLocator
from ._methods import ResamplingMethod
from ._options import ResamplingOptions


def weighted_average(
    values: np.ndarray, weights: np.ndarray, indptr: np.ndarray, null_value: float = 0.0
) -> np.ndarray:
    """
    Normalized weighted average over CSR neighbourhoods.

    Parameters
    ----------
    values : np.ndarray
        Sample value of each neighbourhood entry.
    weights : np.ndarray
        Weight of each neighbourhood entry. Infinite weights (coincident samples)
        take over their neighbourhood.
    indptr : np.ndarray
        (Q + 1,) neighbourhood offsets.
    null_value : float, optional
        Result for empty neighbourhoods.

    Returns
    -------
    np.ndarray
        (Q,) averages. Neighbourhoods whose weights sum to zero are averaged uniformly.
    """
    num_query = indptr.shape[0] - 1
    counts = np.diff(indptr)
    result = np.full(num_query, null_value, dtype=np.float64)
    if weights.size == 0:
        return result

    owner = np.repeat(np.arange(num_query), counts)
    values = np.asarray(values, dtype=np.float64)

    singular = np.isinf(weights)
    if np.any(singular):
        has_singular = np.bincount(owner[singular], minlength=num_query) > 0
        weights = np.where(has_singular[owner], singular.astype(np.float64), weights)

    weight_sum = np.bincount(owner, weights=weights, minlength=num_query)
    value_sum = np.bincount(owner, weights=weights * values, minlength=num_query)

    degenerate = (weight_sum == 0.0) & (counts > 0)
    if np.any(degenerate):
        uniform_sum = np.bincount(owner, weights=values, minlength=num_query)
        value_sum[degenerate] = uniform_sum[degenerate]
        weight_sum[degenerate] = counts[degenerate]

    nonempty = counts > 0
    result[nonempty] = value_sum[nonempty] / weight_sum[nonempty]
    return result


class InterpolationKernel(ScanConvertBaseModel, ABC):
    """
    Abstract scattered data interpolation kernel.

    Attributes
    ----------
    radius : float
        Footprint radius. Samples farther away do not contribute.
    null_value : float
        Result for query points without samples in the footprint.
    """

    name: ClassVar[str]
    requires_radius: ClassVar[bool] = True

    radius: Optional[float] = Field(default=None, gt=0)
    null_value: float = Field(default=0.0)

    @model_validator(mode="after")
    def _check_radius(self) -> Self:
        if self.requires_radius and self.radius is None:
            raise ValueError(f"{self.name} kernel requires a radius")
        return self

    @abstractmethod
    def compute_weights(self, distances: np.ndarray) -> np.ndarray:
        """
        Compute the (unnormalized) weights of samples at the given distances.

        Parameters
        ----------
        distances : np.ndarray
            Distances of the samples to their query point, all within the radius.

        Returns
        -------
        np.ndarray
            Non-negative weights (may be infinite for coincident samples).
        """

    def interpolate(
        self,
        query: np.ndarray,
        points: np.ndarray,
        values: np.ndarray,
        locator: PointLocator,
    ) -> np.ndarray:
        """
        Interpolate the samples at the query points.

        Parameters
        ----------
        query : np.ndarray
            (Q, 3) query positions.
        points : np.ndarray
            (N, 3) sample positions the locator was built on.
        values : np.ndarray
            (N,) sample values.
        locator : PointLocator
            Spatial index over ``points``.

        Returns
        -------
        np.ndarray
            (Q,) interpolated values.
        """
        indptr, indices = locator.points_within_radius(query, self.radius)
        owner = np.repeat(np.arange(query.shape[0]), np.diff(indptr))
        distances = np.linalg.norm(points[indices] - query[owner], axis=1)
        weights = self.compute_weights(distances)
        return weighted_average(values[indices], weights, indptr, self.null_value)


class GaussianKernel(InterpolationKernel):
    """
    Gaussian kernel, ``w = exp(-(sharpness * d / radius)^2)``.

    With the default sharpness of 2 the weights fall to exp(-4) at the footprint edge.
    """

    name: ClassVar[str] = "Gaussian"

    sharpness: float = Field(default=2.0, gt=0)

    def compute_weights(self, distances: np.ndarray) -> np.ndarray:
        return np.exp(-((self.sharpness * distances / self.radius) ** 2))


class LinearKernel(InterpolationKernel):
    """Linear kernel, ``w = 1 - d / radius``."""

    name: ClassVar[str] = "Linear"

    def compute_weights(self, distances: np.ndarray) -> np.ndarray:
        return np.clip(1.0 - distances / self.radius, 0.0, None)


class ShepardKernel(InterpolationKernel):
    """Shepard (inverse distance) kernel, ``w = 1 / d^power``."""

    name: ClassVar[str] = "Shepard"

    power: float = Field(default=2.0, gt=0)

    def compute_weights(self, distances: np.ndarray) -> np.ndarray:
        with np.errstate(divide="ignore"):
            return 1.0 / distances**self.power


class VoronoiKernel(InterpolationKernel):
    """Nearest sample assignment. No radius bound, never returns the null value."""

    name: ClassVar[str] = "Voronoi"
    requires_radius: ClassVar[bool] = False

    def compute_weights(self, distances: np.ndarray) -> np.ndarray:
        # the nearest sample is not a function of a single distance
        raise NotImplementedError(
            "Voronoi kernel has no distance weights, the nearest sample is found by interpolate"
        )

    def interpolate(
        self,
        query: np.ndarray,
        points: np.ndarray,
        values: np.ndarray,
        locator: PointLocator,
    ) -> np.ndarray:
        _, nearest = locator.nearest(query)
        return np.asarray(values[nearest], dtype=np.float64)


def create_kernel(
    method: ResamplingMethod, radius: float, options: ResamplingOptions = None
) -> InterpolationKernel:
    """
    Create the interpolation kernel of a kernel resampling method.

    Parameters
    ----------
    method : ResamplingMethod
        One of the VTK kernel methods.
    radius : float
        Footprint radius (ignored by the Voronoi kernel).
    options : ResamplingOptions, optional
        Kernel shape parameters and null value.

    Returns
    -------
    InterpolationKernel
        The kernel.

    Raises
    ------
    UnsupportedMethodError
        If the method is not a kernel method.
    """
    if options is None:
        options = ResamplingOptions()

    if method == ResamplingMethod.VTK_GAUSSIAN_KERNEL:
        return GaussianKernel(
            radius=radius, sharpness=options.gaussian_sharpness, null_value=options.null_value
        )
    if method == ResamplingMethod.VTK_LINEAR_KERNEL:
        return LinearKernel(radius=radius, null_value=options.null_value)
    if method == ResamplingMethod.VTK_SHEPARD_KERNEL:
        return ShepardKernel(
            radius=radius, power=options.shepard_power, null_value=options.null_value
        )
    if method == ResamplingMethod.VTK_VORONOI_KERNEL:
        return VoronoiKernel(null_value=options.null_value)
    raise UnsupportedMethodError(f"Unexpected interpolation kernel: {method}")
