"""Kernel based scattered data resampling on the point cloud of the input."""

import logging

import numpy as np

from pyScanConvert.core import Grid
from pyScanConvert.image import CurvilinearImage, image_to_point_cloud
from pyScanConvert.spatial import PointLocator
from ._base import ResamplerBase
from ._kernels import InterpolationKernel, create_kernel
from ._methods import ResamplingMethod

logger = logging.getLogger(__name__)


class PointInterpolatorResampler(ResamplerBase):
    """
    Resampler combining the point cloud samples around each output lattice point.

    The kernel radius is ``radius_factor`` (1.1 by default) times the largest output
    spacing, independent of the kernel. Output points without samples in the
    footprint receive the null value of the kernel.
    """

    short_name = "point_interpolator"
    name = "Kernel Point Interpolator"
    methods = (
        ResamplingMethod.VTK_GAUSSIAN_KERNEL,
        ResamplingMethod.VTK_LINEAR_KERNEL,
        ResamplingMethod.VTK_SHEPARD_KERNEL,
        ResamplingMethod.VTK_VORONOI_KERNEL,
    )

    def kernel_radius(self, grid: Grid) -> float:
        """Footprint radius derived from the output spacing."""
        return self.options.radius_factor * float(np.max(grid.resolution_vector))

    def create_kernel(self, grid: Grid) -> InterpolationKernel:
        """Create the kernel of the configured method for an output grid."""
        return create_kernel(self.method, self.kernel_radius(grid), self.options)

    def _resample(self, image: CurvilinearImage, grid: Grid) -> tuple[np.ndarray, Grid]:
        kernel = self.create_kernel(grid)
        logger.debug("Using %s kernel with radius %s.", kernel.name, kernel.radius)

        cloud = image_to_point_cloud(image, structured=False, progress=self.progress.span(0, 0.1))
        locator = PointLocator(cloud.points, workers=self.options.num_workers)
        self.progress.update(0.2, "Point locator")

        values = cloud.values.astype(np.float64)

        def evaluate(positions: np.ndarray) -> np.ndarray:
            return kernel.interpolate(positions, cloud.points, values, locator)

        result = self._evaluate_on_grid(grid, evaluate, self.progress.span(0.2, 1.0))
        return result, grid
