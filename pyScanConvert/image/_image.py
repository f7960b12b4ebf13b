"""Module for handling (curvilinear) input images in pyScanConvert.

Defines the CurvilinearImage pydantic model and factories.
"""

import logging
from typing import Any, Union
from typing_extensions import Self

import numpy as np
import SimpleITK as sitk
from pydantic import field_validator, model_validator, SerializeAsAny

from pyScanConvert.core import ScanConvertBaseModel
from pyScanConvert.core.np2sitk import sitk_image_to_array
from pyScanConvert.geometry import CoordinateMapping, AffineMapping

logger = logging.getLogger(__name__)


class CurvilinearImage(ScanConvertBaseModel):
    """
    A scalar volume sampled on a (possibly) curvilinear grid.

    The samples are indexed [i, j, k]; the mapping turns (continuous) indices into
    physical positions and back. The image is treated as immutable while being
    resampled.

    Attributes
    ----------
    data : np.ndarray
        Scalar samples with shape (n0, n1, n2).
    mapping : CoordinateMapping
        Index to physical space mapping of the samples.
    """

    data: np.ndarray
    mapping: SerializeAsAny[CoordinateMapping]

    @field_validator("data", mode="before")
    @classmethod
    def _check_data(cls, value: Any) -> np.ndarray:
        """Check that the samples form a 2D or 3D scalar array."""
        value = np.asarray(value)
        if value.ndim == 2:
            value = value[:, :, np.newaxis]
        if value.ndim != 3:
            raise ValueError(f"Image data must be 2D or 3D, got {value.ndim} dimensions")
        if value.dtype == object or np.iscomplexobj(value):
            raise ValueError(f"Unsupported pixel type: {value.dtype}")
        if value.size == 0:
            raise ValueError("Image data must not be empty")
        return value

    @model_validator(mode="after")
    def _check_mapping_shape(self) -> Self:
        """Check that the mapping can describe an image of this shape."""
        self.mapping.check_shape(self.data.shape)
        return self

    @property
    def shape(self) -> tuple[int, int, int]:
        """Number of samples along each index axis."""
        return tuple(int(n) for n in self.data.shape)

    @property
    def num_voxels(self) -> int:
        """Number of samples in the image."""
        return int(self.data.size)

    @property
    def is_cartesian(self) -> bool:
        """Whether the image lives on an affine (Cartesian) lattice."""
        return self.mapping.is_affine

    def index_grid(self) -> np.ndarray:
        """
        Integer indices of all samples.

        Returns
        -------
        np.ndarray
            (N, 3) array in C order of ``data``.
        """
        return np.stack(
            np.meshgrid(*[np.arange(n) for n in self.shape], indexing="ij"), axis=-1
        ).reshape((-1, 3))

    def physical_bounds(self) -> tuple[np.ndarray, np.ndarray]:
        """
        Axis-aligned physical bounding box of all sample positions.

        Returns
        -------
        tuple[np.ndarray, np.ndarray]
            Lower and upper corner.
        """
        points = self.mapping.index_to_physical(self.index_grid())
        return points.min(axis=0), points.max(axis=0)

    @classmethod
    def from_sitk_image(cls, image: sitk.Image, mapping: CoordinateMapping = None) -> Self:
        """
        Create an image from a SimpleITK image.

        Parameters
        ----------
        image : sitk.Image
            The (scalar, 2D or 3D) source image.
        mapping : CoordinateMapping, optional
            The index to physical mapping. Defaults to the affine geometry of the image.

        Returns
        -------
        CurvilinearImage
            The image model.
        """
        if image.GetNumberOfComponentsPerPixel() != 1:
            raise ValueError("Only scalar images can be scan converted")

        data = sitk_image_to_array(image)
        if mapping is None:
            if image.GetDimension() == 2:
                spacing = list(image.GetSpacing()) + [1.0]
                origin = list(image.GetOrigin()) + [0.0]
                direction = np.eye(3)
                direction[:2, :2] = np.asarray(image.GetDirection()).reshape((2, 2))
                mapping = AffineMapping(origin=origin, spacing=spacing, direction=direction)
            else:
                mapping = AffineMapping.from_sitk_image(image)
        return cls(data=data, mapping=mapping)


def create_image(data: Union[np.ndarray, sitk.Image], mapping: CoordinateMapping = None):
    """
    Create a CurvilinearImage from an array or a SimpleITK image.

    Parameters
    ----------
    data : Union[np.ndarray, sitk.Image]
        The samples. Arrays are indexed [i, j, k].
    mapping : CoordinateMapping, optional
        The index to physical mapping. Required for arrays.

    Returns
    -------
    CurvilinearImage
        The image model.
    """
    if isinstance(data, sitk.Image):
        return CurvilinearImage.from_sitk_image(data, mapping)
    if mapping is None:
        logger.warning("No coordinate mapping given. Assuming unit spaced Cartesian samples.")
        mapping = AffineMapping()
    return CurvilinearImage(data=data, mapping=mapping)


def validate_image(image: Union[CurvilinearImage, sitk.Image, dict]) -> CurvilinearImage:
    """
    Validate an input image and return a CurvilinearImage.

    Parameters
    ----------
    image : Union[CurvilinearImage, sitk.Image, dict]
        An image model, a SimpleITK image or a dictionary with ``data`` and ``mapping``.

    Returns
    -------
    CurvilinearImage
        The validated image.
    """
    if isinstance(image, CurvilinearImage):
        return image
    if isinstance(image, sitk.Image):
        return CurvilinearImage.from_sitk_image(image)
    if isinstance(image, dict):
        return CurvilinearImage.model_validate(image)
    raise ValueError(f"Unsupported image type: {type(image)}")
