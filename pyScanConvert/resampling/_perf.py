from numba import njit, prange
import numpy as np


@njit(nogil=True, cache=True)
def _lanczos_weight(x: float, radius: int) -> float:
    """Lanczos windowed sinc ``sinc(x) * sinc(x / radius)`` with support (-radius, radius)."""
    if x == 0.0:
        return 1.0
    ax = abs(x)
    if ax >= radius:
        return 0.0
    px = np.pi * x
    return radius * np.sin(px) * np.sin(px / radius) / (px * px)


@njit(parallel=True, nogil=True, cache=True)
def windowed_sinc_interpolate(
    data: np.ndarray, cindex: np.ndarray, radius: int
) -> np.ndarray:
    """Interpolate a volume at continuous indices with a Lanczos windowed sinc kernel.

    Parameters
    ----------
    data : np.ndarray
        The (n0, n1, n2) volume.
    cindex : np.ndarray
        Continuous indices (Mx3), all inside the volume.
    radius : int
        Kernel radius. A neighbourhood of 2 * radius + 1 samples per axis is visited.

    Returns
    -------
    np.ndarray
        The interpolated values (M,). Weights are normalized to sum to one and
        neighbours beyond the border repeat the border sample (zero flux Neumann).
    """
    num_points = cindex.shape[0]
    width = 2 * radius + 1
    shape = data.shape
    out = np.empty(num_points, dtype=np.float64)

    for p in prange(num_points):
        weights = np.empty((3, width), dtype=np.float64)
        indices = np.empty((3, width), dtype=np.int64)
        for d in range(3):
            base = np.floor(cindex[p, d])
            for o in range(width):
                offset = base + (o - radius)
                weights[d, o] = _lanczos_weight(cindex[p, d] - offset, radius)
                ix = int(offset)
                if ix < 0:
                    ix = 0
                elif ix > shape[d] - 1:
                    ix = shape[d] - 1
                indices[d, o] = ix

        total = 0.0
        weight_sum = 0.0
        for a in range(width):
            wa = weights[0, a]
            if wa == 0.0:
                continue
            for b in range(width):
                wab = wa * weights[1, b]
                if wab == 0.0:
                    continue
                for c in range(width):
                    w = wab * weights[2, c]
                    total += w * data[indices[0, a], indices[1, b], indices[2, c]]
                    weight_sum += w

        if weight_sum != 0.0:
            out[p] = total / weight_sum
        else:
            out[p] = 0.0

    return out
