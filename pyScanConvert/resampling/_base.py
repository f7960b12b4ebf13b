"""Base class for all resamplers."""

import logging
import time
from abc import ABC, abstractmethod
from typing import Callable, ClassVar, Union

import numpy as np
import SimpleITK as sitk

from pyScanConvert.core import Grid, ProgressReporter, UnsupportedMethodError, validate_progress
from pyScanConvert.core.np2sitk import array_to_sitk_image, linear_indices_to_grid_coordinates
from pyScanConvert.image import CurvilinearImage, validate_image
from ._methods import ResamplingMethod, resolve_method
from ._options import ResamplingOptions, validate_options

logger = logging.getLogger(__name__)


class ResamplerBase(ABC):
    """
    Abstract interface for all resamplers.

    A resampler serves one family of resampling methods and converts an input image
    into a SimpleITK image on a Cartesian output grid.

    Parameters
    ----------
    method : Union[str, ResamplingMethod]
        The resampling method to run. Must be one of ``methods``.
    options : Union[ResamplingOptions, dict], optional
        Resampling options.
    progress : Union[ProgressReporter, Callable], optional
        Progress sink. Defaults to a no-op reporter.

    Attributes
    ----------
    short_name : str
        The short name of the resampler.
    name : str
        The name of the resampler.
    methods : tuple[ResamplingMethod, ...]
        The methods served by the resampler.
    """

    short_name: ClassVar[str]
    name: ClassVar[str]
    methods: ClassVar[tuple[ResamplingMethod, ...]] = NotImplemented

    def __init__(
        self,
        method: Union[str, ResamplingMethod],
        options: Union[ResamplingOptions, dict] = None,
        progress: Union[ProgressReporter, Callable[[float, str], None]] = None,
    ):
        self.options = validate_options(options)
        self.progress = validate_progress(progress)

        method = resolve_method(method, strict=True)
        if method not in self.methods:
            msg = f"Unsupported resampling method '{method.value}' for {self.name}"
            logger.error(msg)
            raise UnsupportedMethodError(msg)
        self.method = method

    def resample(self, image: Union[CurvilinearImage, sitk.Image], grid: Grid) -> sitk.Image:
        """
        Resample an image onto an output grid.

        Parameters
        ----------
        image : Union[CurvilinearImage, sitk.Image]
            The input image. It is not modified.
        grid : Grid
            The output grid.

        Returns
        -------
        sitk.Image
            The fully populated output image.
        """
        image = validate_image(image)
        if not isinstance(grid, Grid):
            grid = Grid.model_validate(grid)
        if grid.num_voxels == 0:
            raise ValueError(f"Output grid with dimensions {grid.dimensions} is empty")

        t = time.time()
        logger.info(
            "Resampling image of shape %s onto %s grid with %s.",
            image.shape,
            grid.dimensions,
            self.method.value,
        )
        self.progress.update(0.0, self.method.value)

        values, output_grid = self._resample(image, grid)
        output = array_to_sitk_image(self._cast(values), output_grid)

        self.progress.update(1.0, "Done")
        logger.info("Resampling finished in %f seconds.", time.time() - t)
        return output

    @abstractmethod
    def _resample(self, image: CurvilinearImage, grid: Grid) -> tuple[np.ndarray, Grid]:
        """Return the output values shaped like the grid and the grid they live on."""
        raise NotImplementedError("Method '_resample' must be implemented.")

    def _evaluate_on_grid(
        self,
        grid: Grid,
        evaluate: Callable[[np.ndarray], np.ndarray],
        progress: ProgressReporter,
        use_direction: bool = True,
    ) -> np.ndarray:
        """
        Evaluate a function of physical positions at all grid points, in chunks.

        Returns
        -------
        np.ndarray
            Values with shape ``grid.dimensions``.
        """
        num_voxels = grid.num_voxels
        chunk_size = self.options.chunk_size
        values = np.empty(num_voxels, dtype=np.float64)

        for start in range(0, num_voxels, chunk_size):
            stop = min(start + chunk_size, num_voxels)
            positions = linear_indices_to_grid_coordinates(
                np.arange(start, stop), grid, index_type="sitk", use_direction=use_direction
            )
            values[start:stop] = evaluate(positions)
            progress.update(stop / num_voxels, f"{stop}/{num_voxels} points")

        return values.reshape(grid.dimensions)

    def _cast(self, values: np.ndarray) -> np.ndarray:
        """Cast the values to the output pixel type, clamping integers to their range."""
        dtype = self.options.output_dtype
        if dtype.kind in "ui":
            info = np.iinfo(dtype)
            values = np.clip(np.nan_to_num(values), info.min, info.max)
        return values.astype(dtype)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(method={self.method.value!r})"
