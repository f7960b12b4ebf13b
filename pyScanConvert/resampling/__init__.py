"""Resampling methods for scan conversion and their dispatch."""

from ._methods import ResamplingMethod, resolve_method, available_methods, DEFAULT_METHOD
from ._options import ResamplingOptions, validate_options
from ._kernels import (
    InterpolationKernel,
    GaussianKernel,
    LinearKernel,
    ShepardKernel,
    VoronoiKernel,
    create_kernel,
    weighted_average,
)
from ._base import ResamplerBase
from ._direct import DirectResampler
from ._probe import ProbeResampler
from ._point_interpolator import PointInterpolatorResampler

from ._factory import get_resampler, get_available_resamplers, register_resampler
from ._scan_convert import scan_convert

register_resampler(DirectResampler)
register_resampler(ProbeResampler)
register_resampler(PointInterpolatorResampler)

__all__ = [
    "ResamplingMethod",
    "resolve_method",
    "available_methods",
    "DEFAULT_METHOD",
    "ResamplingOptions",
    "validate_options",
    "InterpolationKernel",
    "GaussianKernel",
    "LinearKernel",
    "ShepardKernel",
    "VoronoiKernel",
    "create_kernel",
    "weighted_average",
    "ResamplerBase",
    "DirectResampler",
    "ProbeResampler",
    "PointInterpolatorResampler",
    "get_resampler",
    "get_available_resamplers",
    "register_resampler",
    "scan_convert",
]
