"""Progress reporting for long running conversions."""

import logging
from typing import Callable, Optional, Union

from tqdm import tqdm

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[float, str], None]


class ProgressReporter:
    """
    Observational side channel for coarse-grained progress milestones.

    Parameters
    ----------
    callback : Callable[[float, str], None], optional
        Called with the completed fraction in [0, 1] and a short message. Without a
        callback, updates are only logged at debug level.
    """

    def __init__(self, callback: Optional[ProgressCallback] = None):
        self.callback = callback
        self._fraction = 0.0

    @property
    def fraction(self) -> float:
        """Last reported fraction."""
        return self._fraction

    def update(self, fraction: float, message: str = "") -> None:
        """Report that ``fraction`` of the work is done."""
        self._fraction = min(max(float(fraction), 0.0), 1.0)
        logger.debug("Progress %5.1f%% %s", 100.0 * self._fraction, message)
        if self.callback is not None:
            self.callback(self._fraction, message)

    def span(self, start: float, stop: float) -> "ProgressReporter":
        """Return a reporter mapping [0, 1] onto [start, stop] of this one."""

        def _forward(fraction: float, message: str) -> None:
            self.update(start + (stop - start) * fraction, message)

        return ProgressReporter(_forward)


class TqdmProgress:
    """Progress callback driving a tqdm bar (percent based)."""

    def __init__(self, desc: str = "Scan conversion", leave: bool = False):
        self._bar = tqdm(total=100, desc=desc, unit="%", leave=leave)

    def __call__(self, fraction: float, message: str) -> None:
        target = int(round(100 * fraction))
        if target > self._bar.n:
            self._bar.update(target - self._bar.n)
        if message:
            self._bar.set_postfix_str(message)

    def close(self) -> None:
        self._bar.close()


def validate_progress(
    progress: Optional[Union[ProgressReporter, ProgressCallback]] = None,
) -> ProgressReporter:
    """Turn ``None``, a callback or a reporter into a ProgressReporter."""
    if isinstance(progress, ProgressReporter):
        return progress
    if progress is None or callable(progress):
        return ProgressReporter(progress)
    raise TypeError(f"Unsupported progress sink: {type(progress)}")
