"""Resampling method identifiers and their resolution from strings."""

import logging
from enum import Enum
from typing import Union

from pyScanConvert.core import UnsupportedMethodError

logger = logging.getLogger(__name__)


class ResamplingMethod(str, Enum):
    """The eight supported resampling strategies."""

    ITK_NEAREST_NEIGHBOR = "ITKNearestNeighbor"
    ITK_LINEAR = "ITKLinear"
    ITK_WINDOWED_SINC = "ITKWindowedSinc"
    VTK_PROBE_FILTER = "VTKProbeFilter"
    VTK_GAUSSIAN_KERNEL = "VTKGaussianKernel"
    VTK_LINEAR_KERNEL = "VTKLinearKernel"
    VTK_SHEPARD_KERNEL = "VTKShepardKernel"
    VTK_VORONOI_KERNEL = "VTKVoronoiKernel"


DEFAULT_METHOD = ResamplingMethod.ITK_LINEAR


def available_methods() -> list[str]:
    """Return the names of all resampling methods."""
    return [method.value for method in ResamplingMethod]


def resolve_method(
    method: Union[str, ResamplingMethod, None], strict: bool = False
) -> ResamplingMethod:
    """
    Resolve a method name to a ResamplingMethod.

    Parameters
    ----------
    method : Union[str, ResamplingMethod, None]
        The method (name). None selects the default method.
    strict : bool, optional
        If True, unknown names raise instead of falling back to the default.

    Returns
    -------
    ResamplingMethod
        The resolved method.

    Raises
    ------
    UnsupportedMethodError
        If ``strict`` is set and the name is unknown.

    Notes
    -----
    Unknown names fall back to ``ITKLinear`` unless ``strict`` is set. The fallback is
    logged as a warning since it may hide typos.
    """
    if method is None:
        return DEFAULT_METHOD
    if isinstance(method, ResamplingMethod):
        return method

    try:
        return ResamplingMethod(method)
    except ValueError:
        if strict:
            raise UnsupportedMethodError(
                f"Unknown scan conversion resampling method '{method}'. "
                f"Available methods: {', '.join(available_methods())}"
            ) from None

    logger.warning(
        "Unknown resampling method '%s'. Falling back to '%s'.", method, DEFAULT_METHOD.value
    )
    return DEFAULT_METHOD
