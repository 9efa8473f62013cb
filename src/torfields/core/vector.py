"""Row-wise 3-vector algebra for (N, 3) arrays."""

from __future__ import annotations

import numpy as np
from numba import njit


@njit(cache=True)
def _cross_kernel(a: np.ndarray, b: np.ndarray) -> np.ndarray:
    n = a.shape[0]
    out = np.empty((n, 3))
    for i in range(n):
        out[i, 0] = a[i, 1] * b[i, 2] - a[i, 2] * b[i, 1]
        out[i, 1] = a[i, 2] * b[i, 0] - a[i, 0] * b[i, 2]
        out[i, 2] = a[i, 0] * b[i, 1] - a[i, 1] * b[i, 0]
    return out


@njit(cache=True)
def _normalize_kernel(a: np.ndarray) -> np.ndarray:
    n = a.shape[0]
    out = np.empty((n, 3))
    for i in range(n):
        mag = np.sqrt(a[i, 0] * a[i, 0] + a[i, 1] * a[i, 1] + a[i, 2] * a[i, 2])
        if mag == 0.0:
            out[i, :] = np.nan
            continue
        out[i, 0] = a[i, 0] / mag
        out[i, 1] = a[i, 1] / mag
        out[i, 2] = a[i, 2] / mag
    return out


def cross(a: np.ndarray, b: np.ndarray) -> np.ndarray:
    """Cross product of each row of ``a`` with the matching row of ``b``.

    Args:
        a: Array of shape (N, 3).
        b: Array of shape (N, 3).

    Returns:
        Array of shape (N, 3).
    """
    return _cross_kernel(
        np.ascontiguousarray(a, dtype=np.float64),
        np.ascontiguousarray(b, dtype=np.float64),
    )


def normalize(a: np.ndarray) -> np.ndarray:
    """Scale each row of ``a`` to unit length.

    Zero rows produce NaN; callers filter them with their confinement flags.
    """
    return _normalize_kernel(np.ascontiguousarray(a, dtype=np.float64))


def magnitude(a: np.ndarray) -> np.ndarray:
    """Euclidean norm of each row."""
    return np.sqrt(np.sum(a * a, axis=-1))
