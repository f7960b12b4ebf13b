"""Scan conversion of curvilinear images onto Cartesian grids."""

import logging
from typing import Callable, Union

import numpy as np
import SimpleITK as sitk

from pyScanConvert.core import Grid, ProgressReporter, UnsupportedMethodError
from pyScanConvert.image import CurvilinearImage, validate_image
from ._factory import get_resampler
from ._methods import ResamplingMethod
from ._options import ResamplingOptions, validate_options

logger = logging.getLogger(__name__)


def scan_convert(
    image: Union[CurvilinearImage, sitk.Image, dict],
    size: Union[tuple[int, int, int], list[int], np.ndarray] = None,
    spacing: Union[tuple[float, float, float], list[float], np.ndarray] = None,
    origin: Union[tuple[float, float, float], list[float], np.ndarray] = (0.0, 0.0, 0.0),
    direction: Union[list[float], np.ndarray] = None,
    method: Union[str, ResamplingMethod] = ResamplingMethod.ITK_LINEAR,
    progress: Union[ProgressReporter, Callable[[float, str], None]] = None,
    grid: Grid = None,
    options: Union[ResamplingOptions, dict] = None,
) -> sitk.Image:
    """
    Resample an image onto a Cartesian output grid.

    The output grid is given either as ``grid`` or by ``size``, ``spacing``,
    ``origin`` and ``direction``.

    Parameters
    ----------
    image : Union[CurvilinearImage, sitk.Image, dict]
        The input image.
    size : array_like, optional
        Number of output voxels per axis.
    spacing : array_like, optional
        Output spacing per axis.
    origin : array_like, optional
        Physical position of output voxel (0, 0, 0).
    direction : array_like, optional
        Output direction matrix (3x3 or 9 row-major entries). Identity by default.
    method : Union[str, ResamplingMethod], optional
        One of ``ITKNearestNeighbor``, ``ITKLinear``, ``ITKWindowedSinc``,
        ``VTKProbeFilter``, ``VTKGaussianKernel``, ``VTKLinearKernel``,
        ``VTKShepardKernel`` or ``VTKVoronoiKernel``. Unknown names behave like
        ``ITKLinear`` unless ``options.strict_method`` is set.
    progress : Union[ProgressReporter, Callable], optional
        Progress sink receiving (fraction, message) milestones.
    grid : Grid, optional
        The output grid. Mutually exclusive with size / spacing.
    options : Union[ResamplingOptions, dict], optional
        Resampling options.

    Returns
    -------
    sitk.Image
        The output image.

    Raises
    ------
    UnsupportedMethodError
        If the method cannot be served. Nothing is produced in that case.
    """
    options = validate_options(options)
    image = validate_image(image)

    if grid is None:
        if size is None or spacing is None:
            raise TypeError("Either grid or size and spacing must be provided.")
        grid = Grid.from_size_spacing(size, spacing, origin, direction)
    elif size is not None or spacing is not None:
        raise TypeError("Only one of grid or size / spacing must be provided.")

    try:
        resampler = get_resampler(method, options=options, progress=progress)
    except UnsupportedMethodError as exc:
        logger.error("Scan conversion failed: %s", exc)
        raise

    return resampler.resample(image, grid)
