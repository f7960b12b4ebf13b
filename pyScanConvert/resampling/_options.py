"""Configuration of the resamplers."""

from typing import Any, Union

import numpy as np
from pydantic import Field, field_validator

from pyScanConvert.core import ScanConvertBaseModel

# Scalar pixel types SimpleITK can store
SUPPORTED_PIXEL_TYPES = (
    "uint8",
    "uint16",
    "uint32",
    "uint64",
    "int8",
    "int16",
    "int32",
    "int64",
    "float32",
    "float64",
)


class ResamplingOptions(ScanConvertBaseModel):
    """
    Options shared by all resamplers.

    Attributes
    ----------
    default_value : float
        Value of output points outside the input domain (direct and probe resampling).
    null_value : float
        Value of output points without samples in the kernel footprint.
    radius_factor : float
        Kernel radius as multiple of the largest output spacing.
    gaussian_sharpness : float
        Sharpness s of the Gaussian kernel, weights are ``exp(-(s d / r)^2)``.
    shepard_power : float
        Exponent p of the inverse distance weights ``1 / d^p``.
    sinc_radius : int
        Radius of the Lanczos windowed sinc kernel.
    output_pixel_type : str
        Numpy dtype name of the output image.
    chunk_size : int
        Number of output points evaluated per batch.
    num_workers : int
        Number of workers for spatial queries (-1 uses all cores).
    probe_use_direction : bool
        Whether the probe resampler honours the direction of the output grid.
    strict_method : bool
        Whether unknown method names raise instead of falling back to linear.
    """

    default_value: float = Field(default=0.0)
    null_value: float = Field(default=0.0)
    radius_factor: float = Field(default=1.1, gt=0)
    gaussian_sharpness: float = Field(default=2.0, gt=0)
    shepard_power: float = Field(default=2.0, gt=0)
    sinc_radius: int = Field(default=3, ge=1)
    output_pixel_type: str = Field(default="float32")
    chunk_size: int = Field(default=65536, ge=1)
    num_workers: int = Field(default=1)
    probe_use_direction: bool = Field(default=True)
    strict_method: bool = Field(default=False)

    @field_validator("output_pixel_type", mode="before")
    @classmethod
    def _check_pixel_type(cls, value: Any) -> str:
        """Accept numpy dtypes and check SimpleITK can store the type."""
        try:
            dtype = np.dtype(value)
        except TypeError as exc:
            raise ValueError(f"Invalid output pixel type: {value}") from exc
        if dtype.name not in SUPPORTED_PIXEL_TYPES:
            raise ValueError(
                f"Unsupported output pixel type {dtype}, "
                f"expected one of {', '.join(SUPPORTED_PIXEL_TYPES)}"
            )
        return dtype.name

    @field_validator("num_workers", mode="after")
    @classmethod
    def _check_workers(cls, value: int) -> int:
        if value == 0 or value < -1:
            raise ValueError(f"num_workers must be positive or -1, got {value}")
        return value

    @property
    def output_dtype(self) -> np.dtype:
        return np.dtype(self.output_pixel_type)


def validate_options(options: Union[ResamplingOptions, dict, None] = None) -> ResamplingOptions:
    """
    Validate resampling options.

    Parameters
    ----------
    options : Union[ResamplingOptions, dict, None]
        Options model, dictionary (snake_case or camelCase keys) or None for defaults.

    Returns
    -------
    ResamplingOptions
        The validated options.
    """
    if options is None:
        return ResamplingOptions()
    if isinstance(options, ResamplingOptions):
        return options
    return ResamplingOptions.model_validate(options)
