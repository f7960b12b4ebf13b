"""Helpers for conversion between numpy and SimpleITK."""

from typing import Literal
import SimpleITK as sitk
import numpy as np
from ._grids import Grid


def sitk_image_to_array(image: sitk.Image, dtype: np.dtype = None) -> np.ndarray:
    """
    Return the pixel data of a SimpleITK image indexed like the image, i.e. [i, j, k].

    SimpleITK hands out arrays in (k, j, i) order, so the axes are reversed.

    Parameters
    ----------
    image : sitk.Image
        The image to convert.
    dtype : np.dtype, optional
        Data type of the returned array. Default keeps the pixel type.

    Returns
    -------
    np.ndarray
        The pixel data with axis 0 along the first image index.
    """
    arr = sitk.GetArrayFromImage(image)
    arr = np.ascontiguousarray(arr.transpose(tuple(range(arr.ndim))[::-1]))
    if dtype is not None:
        arr = arr.astype(dtype, copy=False)
    return arr


def array_to_sitk_image(array: np.ndarray, grid: Grid) -> sitk.Image:
    """
    Create a SimpleITK image from an [i, j, k] indexed array placed on a grid.

    Parameters
    ----------
    array : np.ndarray
        Array with shape ``grid.dimensions``.
    grid : Grid
        The geometry of the image.

    Returns
    -------
    sitk.Image
        The image carrying the spacing, origin and direction of the grid.

    Raises
    ------
    ValueError
        If the array shape does not match the grid dimensions.
    """
    if tuple(array.shape) != tuple(grid.dimensions):
        raise ValueError(
            f"Array of shape {array.shape} does not match grid dimensions {grid.dimensions}"
        )

    image = sitk.GetImageFromArray(np.ascontiguousarray(array.transpose(2, 1, 0)), False)
    image.SetSpacing(grid.resolution_vector.tolist())
    image.SetOrigin(grid.origin.tolist())
    image.SetDirection(grid.direction.ravel().tolist())
    return image


def linear_indices_to_grid_coordinates(
    indices: np.ndarray,
    grid: Grid,
    index_type: Literal["numpy", "sitk"] = "numpy",
    dtype: np.dtype = np.float64,
    use_direction: bool = True,
) -> np.ndarray:
    """
    Convert linear indices to physical grid coordinates.

    Parameters
    ----------
    indices : np.ndarray
        A 1D numpy array of linear indices.
    grid : Grid
        The image grid on which the indices lie.
    index_type : Literal["numpy", "sitk"], optional
        The ordering of the indices. 'numpy' refers to C-ordering of the (k, j, i) shaped
        array SimpleITK returns (first image index fastest), 'sitk' refers to C-ordering
        of an [i, j, k] indexed array (last image index fastest). Default is 'numpy'.
    dtype : np.dtype, optional
        The data type of the output coordinates. Default is np.float64.
    use_direction : bool, optional
        Whether the direction matrix of the grid is applied. Default is True.

    Returns
    -------
    np.ndarray
        A (N, 3) numpy array of physical coordinates.
    """

    # this is a manual reimplementation of np.unravel_index
    # to avoid the overhead of creating a tuple of arrays
    if index_type == "numpy":
        _, d1, d2 = grid.dimensions[::-1]
        order = [0, 1, 2]
    elif index_type == "sitk":
        _, d1, d2 = grid.dimensions
        order = [2, 1, 0]
    else:
        raise ValueError("Invalid index type. Must be 'numpy' or 'sitk'.")

    v = np.empty((3, np.asarray(indices).size), dtype=dtype)
    tmp, v[order[0]] = np.divmod(indices, d2)
    v[order[2]], v[order[1]] = np.divmod(tmp, d1)

    spacing_diag = np.diag(grid.resolution_vector).astype(dtype)
    origin = grid.origin.astype(dtype)

    if use_direction:
        transform = np.matmul(grid.direction.astype(dtype), spacing_diag)
    else:
        transform = spacing_diag

    physical_point = origin + np.matmul(transform, v).T

    return physical_point
