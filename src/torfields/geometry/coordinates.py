"""Cartesian, cylindrical and toroidal coordinate transforms.

Conventions:
    Cylindrical (R, phi, Z): x = R cos(phi), y = R sin(phi), z = Z.
    Toroidal (r, theta, zeta) about a magnetic axis at (R0, Zo):
        x = (R0 + r cos(theta)) sin(zeta)
        y = (R0 + r cos(theta)) cos(zeta)
        z = Zo + r sin(theta)

A particle is confined while its minor radius is strictly less than the
plasma minor radius ``a``.
"""

from __future__ import annotations

import numpy as np
from numba import njit


@njit(cache=True)
def _cart_to_cyl_kernel(X: np.ndarray) -> np.ndarray:
    n = X.shape[0]
    Y = np.empty((n, 3))
    for i in range(n):
        Y[i, 0] = np.sqrt(X[i, 0] * X[i, 0] + X[i, 1] * X[i, 1])
        Y[i, 1] = np.arctan2(X[i, 1], X[i, 0])
        if Y[i, 1] < 0.0:
            Y[i, 1] += 2.0 * np.pi
        Y[i, 2] = X[i, 2]
    return Y


@njit(cache=True)
def _cart_to_tor_kernel(
    X: np.ndarray, R0: float, Zo: float, a: float, flag: np.ndarray, check: bool,
) -> np.ndarray:
    n = X.shape[0]
    Y = np.empty((n, 3))
    for i in range(n):
        R = np.sqrt(X[i, 0] * X[i, 0] + X[i, 1] * X[i, 1])
        dR = R - R0
        dZ = X[i, 2] - Zo
        Y[i, 0] = np.sqrt(dR * dR + dZ * dZ)
        Y[i, 1] = np.arctan2(dZ, dR)
        if Y[i, 1] < 0.0:
            Y[i, 1] += 2.0 * np.pi
        Y[i, 2] = np.arctan2(X[i, 0], X[i, 1])
        if Y[i, 2] < 0.0:
            Y[i, 2] += 2.0 * np.pi
        if check and Y[i, 0] >= a:
            flag[i] = 0
    return Y


@njit(cache=True)
def _cyl_check_kernel(
    Y: np.ndarray, R0: float, Zo: float, a: float, flag: np.ndarray,
) -> None:
    for i in range(Y.shape[0]):
        dR = Y[i, 0] - R0
        dZ = Y[i, 2] - Zo
        if np.sqrt(dR * dR + dZ * dZ) >= a:
            flag[i] = 0


def cart_to_cyl(X: np.ndarray) -> np.ndarray:
    """Cartesian (N, 3) positions to cylindrical (R, phi, Z), phi in [0, 2 pi)."""
    return _cart_to_cyl_kernel(np.ascontiguousarray(X, dtype=np.float64))


def cart_to_tor(X: np.ndarray, R0: float, Zo: float = 0.0) -> np.ndarray:
    """Cartesian (N, 3) positions to toroidal (r, theta, zeta) about the axis (R0, Zo)."""
    flag = np.ones(X.shape[0], dtype=np.int64)
    return _cart_to_tor_kernel(
        np.ascontiguousarray(X, dtype=np.float64), R0, Zo, np.inf, flag, False,
    )


def cart_to_tor_check_if_confined(
    X: np.ndarray, R0: float, a: float, flag: np.ndarray, Zo: float = 0.0,
) -> np.ndarray:
    """Toroidal coordinates of ``X``, clearing ``flag`` where r >= a.

    ``flag`` is modified in place and must be an int64 array.
    """
    return _cart_to_tor_kernel(
        np.ascontiguousarray(X, dtype=np.float64), R0, Zo, a, flag, True,
    )


def cyl_check_if_confined(
    Y: np.ndarray, R0: float, a: float, flag: np.ndarray, Zo: float = 0.0,
) -> None:
    """Clear ``flag`` in place for cylindrical positions outside the plasma."""
    _cyl_check_kernel(np.ascontiguousarray(Y, dtype=np.float64), R0, Zo, a, flag)


def tor_to_cart(Y: np.ndarray, R0: float, Zo: float = 0.0) -> np.ndarray:
    """Toroidal (r, theta, zeta) positions to Cartesian."""
    r, theta, zeta = Y[:, 0], Y[:, 1], Y[:, 2]
    R = R0 + r * np.cos(theta)
    return np.column_stack((R * np.sin(zeta), R * np.cos(zeta), Zo + r * np.sin(theta)))


def cyl_to_cart(Y: np.ndarray) -> np.ndarray:
    """Cylindrical (R, phi, Z) positions to Cartesian."""
    R, phi, Z = Y[:, 0], Y[:, 1], Y[:, 2]
    return np.column_stack((R * np.cos(phi), R * np.sin(phi), Z))


def cyl_to_cart_vector(F: np.ndarray, phi: np.ndarray) -> np.ndarray:
    """Rotate (F_R, F_phi, F_Z) components into Cartesian at azimuth ``phi``."""
    cp = np.cos(phi)
    sp = np.sin(phi)
    return np.column_stack((
        F[:, 0] * cp - F[:, 1] * sp,
        F[:, 0] * sp + F[:, 1] * cp,
        F[:, 2],
    ))
