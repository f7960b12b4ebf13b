"""Reading and writing images through SimpleITK."""

import logging
import os
from typing import Union

import SimpleITK as sitk

from pyScanConvert.geometry import CoordinateMapping
from pyScanConvert.image import CurvilinearImage

logger = logging.getLogger(__name__)


def load_image(
    path: Union[str, os.PathLike], mapping: CoordinateMapping = None
) -> CurvilinearImage:
    """
    Load an image file as input for the scan conversion.

    Parameters
    ----------
    path : Union[str, os.PathLike]
        Any file format readable by SimpleITK.
    mapping : CoordinateMapping, optional
        Coordinate mapping of the samples. Defaults to the geometry stored in the file.

    Returns
    -------
    CurvilinearImage
        The image.
    """
    if not os.path.isfile(path):
        raise FileNotFoundError(f"Image file {path} does not exist")

    logger.info("Loading image %s", path)
    image = sitk.ReadImage(str(path))
    return CurvilinearImage.from_sitk_image(image, mapping)


def save_image(
    image: sitk.Image, path: Union[str, os.PathLike], use_compression: bool = False
) -> None:
    """
    Write an output image.

    Parameters
    ----------
    image : sitk.Image
        The image to write.
    path : Union[str, os.PathLike]
        Destination, the file format follows the extension.
    use_compression : bool, optional
        Whether to compress the pixel data if the format supports it.
    """
    logger.info("Writing image %s", path)
    sitk.WriteImage(image, str(path), use_compression)
