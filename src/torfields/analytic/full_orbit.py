"""Full-orbit analytic tokamak field.

Evaluates B and E in Cartesian components from toroidal particle coordinates
(r, theta, zeta) using the large-aspect-ratio model

    q(r)    = qo (1 + r^2 / lam^2)
    B_theta = sign * (r/R0) * B0 / (q(r) (1 + (r/R0) cos(theta)))
    B_zeta  = B0 / (1 + (r/R0) cos(theta))
    E_zeta  = -E0 / (1 + (r/R0) cos(theta))
"""

from __future__ import annotations

import numpy as np
from numba import njit

from torfields.config import EquilibriumConfig

# =====================================================================
# Numba-accelerated kernel
# =====================================================================

@njit(cache=True)
def _full_orbit_kernel(
    Y: np.ndarray,
    B0: float,
    R0: float,
    qo: float,
    lam: float,
    bp_sign: float,
    E0: float,
    B: np.ndarray,
    E: np.ndarray,
    flag: np.ndarray,
) -> None:
    """Write B (and E when E0 != 0) for every flagged particle."""
    with_E = E0 != 0.0
    for i in range(Y.shape[0]):
        if flag[i] == 0:
            continue
        r = Y[i, 0]
        ct = np.cos(Y[i, 1])
        st = np.sin(Y[i, 1])
        cz = np.cos(Y[i, 2])
        sz = np.sin(Y[i, 2])

        eta = r / R0
        denom = 1.0 + eta * ct
        q = qo * (1.0 + (r / lam) ** 2)
        Bp = bp_sign * eta * B0 / (q * denom)
        Bzeta = B0 / denom

        B[i, 0] = Bzeta * cz - Bp * st * sz
        B[i, 1] = -Bzeta * sz - Bp * st * cz
        B[i, 2] = Bp * ct

        if with_E:
            Ezeta = -E0 / denom
            E[i, 0] = Ezeta * cz
            E[i, 1] = -Ezeta * sz
            E[i, 2] = 0.0


def full_orbit_fields(
    eq: EquilibriumConfig,
    Y: np.ndarray,
    B: np.ndarray,
    E: np.ndarray,
    flag: np.ndarray | None = None,
) -> None:
    """Evaluate the full-orbit analytic field in place.

    When ``eq.E0`` is exactly zero, ``E`` is left untouched.

    Args:
        eq: Equilibrium parameters.
        Y: Toroidal coordinates (r, theta, zeta), shape (N, 3).
        B: Output magnetic field, Cartesian, shape (N, 3).
        E: Output electric field, Cartesian, shape (N, 3).
        flag: Confinement flag; unflagged particles are not written.
    """
    if flag is None:
        flag = np.ones(Y.shape[0], dtype=np.int64)
    _full_orbit_kernel(
        np.ascontiguousarray(Y, dtype=np.float64),
        eq.B0, eq.major_radius, eq.qo, eq.lam, eq.bp_sign, eq.E0,
        B, E, flag,
    )
