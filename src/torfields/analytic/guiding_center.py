"""Guiding-center analytic tokamak field.

Evaluates, from cylindrical particle coordinates (R, phi, Z), the magnetic
field, toroidal electric field, poloidal flux, grad|B| and curl(b) of the
large-aspect-ratio equilibrium

    qprof = 1 + rm^2 / lam^2,   rm^2 = (R - R0)^2 + Z^2
    B_R   =  B0 Z / (qo qprof R)
    B_phi = -B0 R0 / R
    B_Z   = -B0 (R - R0) / (qo qprof R)
    E_phi =  E0 R0 / R

grad|B| and curl(b) follow from the closed-form partial derivatives of the
field components; there is no dependence on phi.
"""

from __future__ import annotations

import numpy as np
from numba import njit

from torfields.analytic.pulse import pulse_amplitude
from torfields.config import EquilibriumConfig, PulseConfig

# =====================================================================
# Numba-accelerated kernels
# =====================================================================

@njit(cache=True)
def _gc_kernel(
    Y: np.ndarray,
    B0: float,
    R0: float,
    Zo: float,
    qo: float,
    lam: float,
    E0: float,
    rotate: bool,
    B: np.ndarray,
    E: np.ndarray,
    gradB: np.ndarray,
    curlb: np.ndarray,
    psi_p: np.ndarray,
    flag: np.ndarray,
) -> None:
    lam2 = lam * lam
    for i in range(Y.shape[0]):
        if flag[i] == 0:
            continue
        R = Y[i, 0]
        phi = Y[i, 1]
        Z = Y[i, 2] - Zo
        dR = R - R0

        rm = np.sqrt(dR * dR + Z * Z)
        qprof = 1.0 + rm * rm / lam2
        rm_cos = dR  # rm * cos(theta)

        psi_p[i] = R * lam2 * B0 / (2.0 * qo * (R0 + rm_cos)) * np.log(qprof)

        scale = B0 / (qo * qprof * R)
        BR = scale * Z
        BPHI = -B0 * R0 / R
        BZ = -scale * dR

        dRBR = -scale * Z * (1.0 / R + 2.0 * dR / (lam2 * qprof))
        dRBPHI = B0 * R0 / (R * R)
        dRBZ = scale * (-R0 / R + 2.0 * dR * dR / (lam2 * qprof))
        dZBR = scale * (1.0 - 2.0 * Z * Z / (lam2 * qprof))
        dZBZ = scale * dR * 2.0 * Z / (lam2 * qprof)

        Bmag = np.sqrt(BR * BR + BPHI * BPHI + BZ * BZ)
        gradB_R = (BR * dRBR + BPHI * dRBPHI + BZ * dRBZ) / Bmag
        gradB_Z = (BR * dZBR + BZ * dZBZ) / Bmag

        Bmag2 = Bmag * Bmag
        dRbhatPHI = (Bmag * dRBPHI - BPHI * gradB_R) / Bmag2
        dRbhatZ = (Bmag * dRBZ - BZ * gradB_R) / Bmag2
        dZbhatR = (Bmag * dZBR - BR * gradB_Z) / Bmag2
        dZbhatPHI = -BPHI * gradB_Z / Bmag2

        gradB[i, 0] = gradB_R
        gradB[i, 1] = 0.0
        gradB[i, 2] = gradB_Z

        curlb[i, 0] = -dZbhatPHI
        curlb[i, 1] = dZbhatR - dRbhatZ
        curlb[i, 2] = BPHI / (Bmag * R) + dRbhatPHI

        EPHI = E0 * R0 / R
        if rotate:
            cp = np.cos(phi)
            sp = np.sin(phi)
            B[i, 0] = BR * cp - BPHI * sp
            B[i, 1] = BR * sp + BPHI * cp
            B[i, 2] = BZ
            E[i, 0] = -EPHI * sp
            E[i, 1] = EPHI * cp
            E[i, 2] = 0.0
        else:
            B[i, 0] = BR
            B[i, 1] = BPHI
            B[i, 2] = BZ
            E[i, 0] = 0.0
            E[i, 1] = EPHI
            E[i, 2] = 0.0


@njit(cache=True)
def _bmag_kernel(
    Y: np.ndarray, B0: float, R0: float, Zo: float, qo: float, lam: float, E0: float,
) -> tuple[np.ndarray, np.ndarray]:
    n = Y.shape[0]
    Bmag = np.empty(n)
    EPHI = np.empty(n)
    lam2 = lam * lam
    for i in range(n):
        R = Y[i, 0]
        Z = Y[i, 2] - Zo
        dR = R - R0
        qprof = 1.0 + (dR * dR + Z * Z) / lam2
        scale = B0 / (qo * qprof * R)
        BR = scale * Z
        BPHI = -B0 * R0 / R
        BZ = -scale * dR
        Bmag[i] = np.sqrt(BR * BR + BPHI * BPHI + BZ * BZ)
        EPHI[i] = E0 * R0 / R
    return Bmag, EPHI


# =====================================================================
# Public API
# =====================================================================

def guiding_center_fields(
    eq: EquilibriumConfig,
    Y: np.ndarray,
    B: np.ndarray,
    E: np.ndarray,
    gradB: np.ndarray,
    curlb: np.ndarray,
    psi_p: np.ndarray,
    flag: np.ndarray | None = None,
    rotate: bool = False,
    pulse: PulseConfig | None = None,
    time: float | None = None,
) -> None:
    """Evaluate the guiding-center analytic field in place.

    Args:
        eq: Equilibrium parameters.
        Y: Cylindrical coordinates (R, phi, Z), shape (N, 3).
        B: Output magnetic field, shape (N, 3).
        E: Output electric field, shape (N, 3).
        gradB: Output grad|B| in (R, phi, Z), shape (N, 3).
        curlb: Output curl(b) in (R, phi, Z), shape (N, 3).
        psi_p: Output poloidal flux, shape (N,).
        flag: Confinement flag; unflagged particles are not written.
        rotate: Rotate B and E through each particle's azimuth into
            Cartesian components (initialization from Cartesian positions).
        pulse: Optional dynamic E-field pulse, added when enabled.
        time: Physical time used by the pulse.
    """
    if flag is None:
        flag = np.ones(Y.shape[0], dtype=np.int64)
    Y = np.ascontiguousarray(Y, dtype=np.float64)
    _gc_kernel(
        Y, eq.B0, eq.major_radius, eq.Zo, eq.qo, eq.lam, eq.E0, rotate,
        B, E, gradB, curlb, psi_p, flag,
    )
    if pulse is not None and pulse.enabled and time is not None:
        add = pulse_amplitude(pulse, eq.major_radius, Y[:, 0], time) * flag
        if rotate:
            E[:, 0] -= add * np.sin(Y[:, 1])
            E[:, 1] += add * np.cos(Y[:, 1])
        else:
            E[:, 1] += add


def analytical_bmag(eq: EquilibriumConfig, Y: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
    """|B| and E_phi of the guiding-center field at cylindrical positions."""
    return _bmag_kernel(
        np.ascontiguousarray(Y, dtype=np.float64),
        eq.B0, eq.major_radius, eq.Zo, eq.qo, eq.lam, eq.E0,
    )


def analytical_electric_field_cyl(
    eq: EquilibriumConfig,
    Y: np.ndarray,
    E: np.ndarray,
    flag: np.ndarray | None = None,
) -> None:
    """Write the Cartesian analytic E field at cylindrical positions.

    Skipped entirely when ``eq.E0`` is zero.
    """
    if eq.E0 == 0.0:
        return
    Ephi = eq.E0 * eq.major_radius / Y[:, 0]
    sel = slice(None) if flag is None else flag.astype(bool)
    E[sel, 0] = -(Ephi * np.sin(Y[:, 1]))[sel]
    E[sel, 1] = (Ephi * np.cos(Y[:, 1]))[sel]
    E[sel, 2] = 0.0
