import warnings
import logging
from typing import Callable, Type, Union

from pyScanConvert.core import ProgressReporter, UnsupportedMethodError
from ._base import ResamplerBase
from ._methods import ResamplingMethod, resolve_method
from ._options import ResamplingOptions, validate_options

RESAMPLERS = {}

logger = logging.getLogger(__name__)


def register_resampler(resampler_cls: Type[ResamplerBase]) -> None:
    """
    Register a new resampler.

    Parameters
    ----------
    resampler_cls : type
        A Resampler class.
    """
    if not issubclass(resampler_cls, ResamplerBase):
        raise ValueError("Resampler must be a subclass of ResamplerBase.")

    if getattr(resampler_cls, "short_name", None) is None:
        raise ValueError("Resampler must have a 'short_name' attribute.")

    if getattr(resampler_cls, "name", None) is None:
        raise ValueError("Resampler must have a 'name' attribute.")

    if resampler_cls.methods is NotImplemented or not resampler_cls.methods:
        raise ValueError("Resampler must have a 'methods' attribute.")

    resampler_name = resampler_cls.short_name
    if resampler_name in RESAMPLERS:
        warnings.warn(f"Resampler '{resampler_name}' is already registered.")
    else:
        RESAMPLERS[resampler_name] = resampler_cls


def get_available_resamplers(
    method: Union[str, ResamplingMethod] = None,
) -> dict[str, Type[ResamplerBase]]:
    """
    Get the registered resamplers, optionally only those serving a method.

    Parameters
    ----------
    method : Union[str, ResamplingMethod], optional
        A resampling method.

    Returns
    -------
    dict
        Resampler classes by short name.
    """
    if method is None:
        return dict(RESAMPLERS)

    method = resolve_method(method, strict=True)
    return {name: cls for name, cls in RESAMPLERS.items() if method in cls.methods}


def get_resampler(
    method: Union[str, ResamplingMethod] = None,
    options: Union[ResamplingOptions, dict] = None,
    progress: Union[ProgressReporter, Callable[[float, str], None]] = None,
) -> ResamplerBase:
    """
    Factory function to get the resampler for a method.

    Parameters
    ----------
    method : Union[str, ResamplingMethod], optional
        The method (name). Unknown names fall back to ``ITKLinear`` unless
        ``options.strict_method`` is set. None selects ``ITKLinear``.
    options : Union[ResamplingOptions, dict], optional
        Resampling options.
    progress : Union[ProgressReporter, Callable], optional
        Progress sink.

    Returns
    -------
    ResamplerBase
        A resampler configured for the method.

    Raises
    ------
    UnsupportedMethodError
        If the method cannot be resolved or no resampler serves it.
    """
    options = validate_options(options)
    method = resolve_method(method, strict=options.strict_method)

    resamplers = get_available_resamplers(method)
    if len(resamplers) <= 0:
        msg = f"No resampler available for method '{method.value}'."
        logger.error(msg)
        raise UnsupportedMethodError(msg)

    resampler_cls = next(iter(resamplers.values()))
    return resampler_cls(method, options=options, progress=progress)
