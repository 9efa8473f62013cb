"""Tridiagonal systems of the 1-D SC-E solve.

Row ``i`` of the system reads

    a[i] u[i-1] + b[i] u[i] + c[i] u[i+1] = r[i]

The Thomas sweep solves rows 1..n-2 with the edge value u[n-1] = 0. The
axis value u[0] is not solved for; it is extrapolated from u[1] and u[2]
afterwards.
"""

from __future__ import annotations

import numpy as np
from numba import njit

from torfields.constants import mu_0
from torfields.errors import TridiagonalSolveError

# ============================================================
# Thomas algorithm
# ============================================================


@njit(cache=True)
def _thomas_kernel(
    a: np.ndarray,
    b: np.ndarray,
    c: np.ndarray,
    r: np.ndarray,
) -> tuple[np.ndarray, int]:
    """Forward sweep over rows 1..n-2, back substitution from n-3 to 1.

    Returns:
        Solution (u[0] and u[n-1] left at zero) and the index of the first
        zero pivot, or -1 on success.
    """
    n = b.shape[0]
    u = np.zeros(n)
    gam = np.zeros(n)

    bet = b[1]
    if bet == 0.0:
        return u, 1
    u[1] = r[1] / bet
    for i in range(2, n - 1):
        gam[i] = c[i - 1] / bet
        bet = b[i] - a[i] * gam[i]
        if bet == 0.0:
            return u, i
        u[i] = (r[i] - a[i] * u[i - 1]) / bet

    for i in range(n - 3, 0, -1):
        u[i] -= gam[i + 1] * u[i + 1]

    return u, -1


def thomas_solve(a: np.ndarray, b: np.ndarray, c: np.ndarray, r: np.ndarray) -> np.ndarray:
    """Solve the interior rows of a tridiagonal system.

    Args:
        a: Sub-diagonal, length n.
        b: Main diagonal, length n.
        c: Super-diagonal, length n.
        r: Right-hand side, length n.

    Returns:
        Solution of length n with u[0] = u[n-1] = 0.

    Raises:
        TridiagonalSolveError: A pivot is exactly zero.
    """
    u, failed = _thomas_kernel(
        np.ascontiguousarray(a, dtype=np.float64),
        np.ascontiguousarray(b, dtype=np.float64),
        np.ascontiguousarray(c, dtype=np.float64),
        np.ascontiguousarray(r, dtype=np.float64),
    )
    if failed >= 0:
        raise TridiagonalSolveError(failed)
    return u


# ============================================================
# Radial (cylindrical average) system
# ============================================================


def radial_coefficients(n: int) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    """Bands of the radial operator: a[i] = (i-1)/i, b = -2, c[i] = (i+1)/i."""
    a = np.zeros(n)
    b = np.full(n, -2.0)
    c = np.zeros(n)
    i = np.arange(1, n, dtype=np.float64)
    a[1:] = (i - 1.0) / i
    c[1:] = (i + 1.0) / i
    return a, b, c


def radial_rhs(dJdt: np.ndarray, dr: float) -> np.ndarray:
    return 2.0 * dr**2 * mu_0 * dJdt


def radial_axis_value(u: np.ndarray) -> float:
    """Second-order regular-axis extrapolation (4 u1 - u2) / 3."""
    return (4.0 * u[1] - u[2]) / 3.0


def solve_radial(dJdt: np.ndarray, dr: float) -> np.ndarray:
    """Inductive potential on the minor-radius grid."""
    a, b, c = radial_coefficients(len(dJdt))
    u = thomas_solve(a, b, c, radial_rhs(dJdt, dr))
    u[0] = radial_axis_value(u)
    return u


# ============================================================
# Flux-surface system
# ============================================================


def flux_coefficients(
    alpha: np.ndarray, beta: np.ndarray, dpsi: float,
) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    """Bands from the flux metric alpha = d2A/dpsi2, beta = dA/dpsi."""
    alpha = np.asarray(alpha, dtype=np.float64)
    beta = np.asarray(beta, dtype=np.float64)
    a = -alpha * dpsi / 2.0 + beta
    b = -2.0 * beta
    c = alpha * dpsi / 2.0 + beta
    return a, b, c


def flux_rhs(dJdt: np.ndarray, dpsi: float) -> np.ndarray:
    return dpsi**2 * mu_0 * dJdt


def fold_axis_row(
    a: np.ndarray, b: np.ndarray, c: np.ndarray, r: np.ndarray,
) -> tuple[np.ndarray, np.ndarray, np.ndarray, np.ndarray]:
    """Eliminate the axis unknown from row 1 using row 0.

    Row 0 is the mirrored axis stencil c[0] u0 + b[0] u1 + a[0] u2 = r[0].
    Returns modified copies.
    """
    a, b, c, r = (np.array(x, dtype=np.float64) for x in (a, b, c, r))
    f = a[1] / c[0]
    c[1] -= f * a[0]
    b[1] -= f * b[0]
    r[1] -= f * r[0]
    return a, b, c, r


def flux_axis_value(u: np.ndarray) -> float:
    """Linear axis extrapolation 2 u1 - u2."""
    return 2.0 * u[1] - u[2]


def solve_flux(dJdt: np.ndarray, dpsi: float, alpha: np.ndarray, beta: np.ndarray) -> np.ndarray:
    """Inductive potential on the poloidal-flux grid."""
    a, b, c = flux_coefficients(alpha, beta, dpsi)
    a, b, c, r = fold_axis_row(a, b, c, flux_rhs(dJdt, dpsi))
    u = thomas_solve(a, b, c, r)
    u[0] = flux_axis_value(u)
    return u
