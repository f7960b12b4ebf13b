"""Direct structured resampling by inverse coordinate mapping."""

import logging

import numpy as np
from scipy.ndimage import map_coordinates

from pyScanConvert.core import Grid, UnsupportedMethodError
from pyScanConvert.image import CurvilinearImage
from ._base import ResamplerBase
from ._methods import ResamplingMethod
from ._perf import windowed_sinc_interpolate

logger = logging.getLogger(__name__)


def continuous_index_inside(cindex: np.ndarray, shape: tuple[int, int, int]) -> np.ndarray:
    """
    Check which continuous indices lie inside the image buffer.

    A sample covers the half open interval [i - 0.5, i + 0.5), so the buffer spans
    [-0.5, n - 0.5) along each axis. Non-invertible (NaN) indices are outside.
    """
    upper = np.asarray(shape, dtype=np.float64) - 0.5
    with np.errstate(invalid="ignore"):
        return np.all((cindex >= -0.5) & (cindex < upper), axis=1)


def nearest_neighbor_interpolate(data: np.ndarray, cindex: np.ndarray) -> np.ndarray:
    """Value of the sample at the rounded (half up) index."""
    return map_coordinates(data, cindex.T, output=np.float64, order=0, mode="nearest")


def linear_interpolate(data: np.ndarray, cindex: np.ndarray) -> np.ndarray:
    """Trilinear blend of the 8 surrounding samples, border samples repeat outwards."""
    return map_coordinates(data, cindex.T, output=np.float64, order=1, mode="nearest")


class DirectResampler(ResamplerBase):
    """
    Resampler evaluating the input directly at the inverse mapped output positions.

    For every output lattice point the physical position is mapped back into
    continuous input indices, where the input is interpolated with nearest
    neighbour, trilinear or Lanczos windowed sinc interpolation. Points outside the
    input buffer receive the default value.
    """

    short_name = "direct"
    name = "Direct Structured Resampler"
    methods = (
        ResamplingMethod.ITK_NEAREST_NEIGHBOR,
        ResamplingMethod.ITK_LINEAR,
        ResamplingMethod.ITK_WINDOWED_SINC,
    )

    def _resample(self, image: CurvilinearImage, grid: Grid) -> tuple[np.ndarray, Grid]:
        data = np.ascontiguousarray(image.data, dtype=np.float64)
        interpolate = self._get_interpolator()
        default_value = self.options.default_value

        def evaluate(positions: np.ndarray) -> np.ndarray:
            cindex = image.mapping.physical_to_index(positions)
            inside = continuous_index_inside(cindex, image.shape)
            values = np.full(positions.shape[0], default_value, dtype=np.float64)
            if np.any(inside):
                values[inside] = interpolate(data, np.ascontiguousarray(cindex[inside]))
            return values

        values = self._evaluate_on_grid(grid, evaluate, self.progress)
        return values, grid

    def _get_interpolator(self):
        if self.method == ResamplingMethod.ITK_NEAREST_NEIGHBOR:
            return nearest_neighbor_interpolate
        if self.method == ResamplingMethod.ITK_LINEAR:
            return linear_interpolate
        if self.method == ResamplingMethod.ITK_WINDOWED_SINC:
            radius = self.options.sinc_radius

            def _sinc(data: np.ndarray, cindex: np.ndarray) -> np.ndarray:
                return windowed_sinc_interpolate(data, cindex, radius)

            return _sinc

        msg = "Unsupported resampling method in DirectResampler"
        logger.error(msg)
        raise UnsupportedMethodError(msg)
