"""Conversion of images into explicit (position, value) sample sets."""

import logging
import time
from typing import Optional

import numpy as np
from pydantic import Field, field_validator, model_validator
from typing_extensions import Self

from pyScanConvert.core import ScanConvertBaseModel, ProgressReporter
from ._image import CurvilinearImage

logger = logging.getLogger(__name__)


class PointCloud(ScanConvertBaseModel):
    """
    Explicit samples of an image.

    Attributes
    ----------
    points : np.ndarray
        (N, 3) physical sample positions.
    values : np.ndarray
        (N,) scalar sample values.
    dimensions : tuple[int, int, int], optional
        Structured shape of the samples (C order). None for unstructured clouds.
    """

    points: np.ndarray
    values: np.ndarray
    dimensions: Optional[tuple[int, int, int]] = Field(default=None)

    @field_validator("points", mode="before")
    @classmethod
    def _check_points(cls, value) -> np.ndarray:
        value = np.asarray(value, dtype=np.float64)
        if value.ndim != 2 or value.shape[1] != 3:
            raise ValueError(f"points must have shape (N, 3), got {value.shape}")
        return value

    @field_validator("values", mode="before")
    @classmethod
    def _check_values(cls, value) -> np.ndarray:
        return np.asarray(value).reshape(-1)

    @model_validator(mode="after")
    def _check_consistency(self) -> Self:
        if self.points.shape[0] != self.values.shape[0]:
            raise ValueError(
                f"Got {self.points.shape[0]} points but {self.values.shape[0]} values"
            )
        if self.dimensions is not None and int(np.prod(self.dimensions)) != self.num_points:
            raise ValueError(
                f"Structured dimensions {self.dimensions} do not match {self.num_points} points"
            )
        return self

    @property
    def num_points(self) -> int:
        """Number of samples."""
        return int(self.points.shape[0])

    @property
    def is_structured(self) -> bool:
        """Whether the (i, j, k) adjacency of the samples is known."""
        return self.dimensions is not None

    def structured_points(self) -> np.ndarray:
        """Return the positions reshaped to (n0, n1, n2, 3)."""
        if not self.is_structured:
            raise ValueError("Point cloud is unstructured")
        return self.points.reshape(tuple(self.dimensions) + (3,))

    def structured_values(self) -> np.ndarray:
        """Return the values reshaped to (n0, n1, n2)."""
        if not self.is_structured:
            raise ValueError("Point cloud is unstructured")
        return self.values.reshape(tuple(self.dimensions))


def image_to_point_cloud(
    image: CurvilinearImage,
    structured: bool = True,
    progress: ProgressReporter = None,
) -> PointCloud:
    """
    Convert an image into one (position, value) sample per voxel.

    Parameters
    ----------
    image : CurvilinearImage
        The image to convert.
    structured : bool, optional
        Keep the structured shape so cells can be rebuilt. Default is True.
    progress : ProgressReporter, optional
        Receives a milestone after the conversion.

    Returns
    -------
    PointCloud
        The samples in C order of ``image.data``.
    """
    t = time.time()
    points = image.mapping.index_to_physical(image.index_grid())
    cloud = PointCloud(
        points=points,
        values=image.data.reshape(-1),
        dimensions=image.shape if structured else None,
    )
    logger.debug(
        "Converted image of shape %s to %d points in %f seconds.",
        image.shape,
        cloud.num_points,
        time.time() - t,
    )
    if progress is not None:
        progress.update(1.0, "Point cloud conversion")
    return cloud
