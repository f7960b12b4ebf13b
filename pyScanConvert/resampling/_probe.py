"""Cell probing resampling on the structured point cloud of the input."""

import logging

import numpy as np

from pyScanConvert.core import Grid
from pyScanConvert.image import CurvilinearImage, image_to_point_cloud
from pyScanConvert.spatial import CellLocator, hexahedron_shape_functions
from ._base import ResamplerBase
from ._methods import ResamplingMethod

logger = logging.getLogger(__name__)


class ProbeResampler(ResamplerBase):
    """
    Resampler probing the hexahedral cells of the converted input.

    The input is converted into a structured point set, the cell containing each
    output lattice point is located and the cell corner values are blended with the
    trilinear shape functions. Lattice points outside all cells receive the default
    value.

    Notes
    -----
    With ``probe_use_direction`` disabled the output lattice is laid out axis aligned,
    ignoring the direction of the output grid, and the output image carries an
    identity direction.
    """

    short_name = "probe"
    name = "Cell Probe Resampler"
    methods = (ResamplingMethod.VTK_PROBE_FILTER,)

    def _resample(self, image: CurvilinearImage, grid: Grid) -> tuple[np.ndarray, Grid]:
        cloud = image_to_point_cloud(image, structured=True, progress=self.progress.span(0, 0.1))

        locator = CellLocator(cloud.structured_points(), workers=self.options.num_workers)
        self.progress.update(0.2, "Cell locator")

        values = cloud.values.astype(np.float64)
        corner_ids = locator.corner_ids
        default_value = self.options.default_value

        def evaluate(positions: np.ndarray) -> np.ndarray:
            cell_ids, pcoords = locator.locate_cells(positions)
            found = cell_ids >= 0
            result = np.full(positions.shape[0], default_value, dtype=np.float64)
            if np.any(found):
                weights = hexahedron_shape_functions(pcoords[found])
                corner_values = values[corner_ids[cell_ids[found]]]
                result[found] = np.sum(weights * corner_values, axis=1)
            logger.debug("Located %d of %d probe points.", np.sum(found), found.size)
            return result

        use_direction = self.options.probe_use_direction
        output_grid = grid
        if not use_direction:
            output_grid = Grid(
                resolution=grid.resolution,
                dimensions=grid.dimensions,
                origin=grid.origin,
                direction=np.eye(3),
            )

        result = self._evaluate_on_grid(
            output_grid, evaluate, self.progress.span(0.2, 1.0), use_direction=use_direction
        )
        return result, output_grid
