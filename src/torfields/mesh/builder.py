"""Structured (R, phi, Z) field mesh and its analytic population.

Vector fields on the mesh have shape ``(3, nR, nZ)`` (axisymmetric) or
``(3, nR, nPHI, nZ)`` where axis 0 is the (R, phi, Z) component.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import numpy as np

from torfields.analytic.guiding_center import guiding_center_fields
from torfields.config import EquilibriumConfig, MeshConfig
from torfields.constants import twopi

logger = logging.getLogger(__name__)

# Outermost layers of R and Z excluded from the valid region
_FLAG_GHOST = 2


@dataclass
class MeshFields:
    """Mesh-sampled fields.

    Attributes:
        R: Radial grid lines, shape (nR,).
        Z: Vertical grid lines, shape (nZ,).
        B: Magnetic field components.
        PHI: Toroidal grid lines in [0, 2 pi), shape (nPHI,); None when
            axisymmetric.
        E: Electric field components, or None when not sampled.
        psi_p: Poloidal flux, shape of one component, or None.
        gradB: grad|B| components, filled by the auxiliary-field generator.
        curlb: curl(b) components, filled by the auxiliary-field generator.
        dBdR, dBdPHI, dBdZ: Optional field derivatives.
        flag: Validity flag (1 inside the usable region).
    """

    R: np.ndarray
    Z: np.ndarray
    B: np.ndarray
    PHI: np.ndarray | None = None
    E: np.ndarray | None = None
    psi_p: np.ndarray | None = None
    gradB: np.ndarray | None = None
    curlb: np.ndarray | None = None
    dBdR: np.ndarray | None = None
    dBdPHI: np.ndarray | None = None
    dBdZ: np.ndarray | None = None
    flag: np.ndarray | None = None

    def __post_init__(self) -> None:
        expected = (3, len(self.R), len(self.Z)) if self.PHI is None else (
            3, len(self.R), len(self.PHI), len(self.Z)
        )
        if self.B.shape != expected:
            raise ValueError(f"B must have shape {expected}, got {self.B.shape}")

    @property
    def axisymmetric(self) -> bool:
        return self.PHI is None

    @property
    def shape(self) -> tuple[int, ...]:
        """Shape of a single scalar component."""
        return self.B.shape[1:]

    def radius_grid(self) -> np.ndarray:
        """R broadcast to the shape of a scalar component."""
        if self.axisymmetric:
            return np.broadcast_to(self.R[:, None], self.shape)
        return np.broadcast_to(self.R[:, None, None], self.shape)


def validity_flag(shape: tuple[int, ...], ghost: int = _FLAG_GHOST) -> np.ndarray:
    """1 everywhere except the ``ghost`` outermost R and Z layers."""
    flag = np.ones(shape, dtype=np.int64)
    flag[:ghost] = 0
    flag[-ghost:] = 0
    flag[..., :ghost] = 0
    flag[..., -ghost:] = 0
    return flag


def build_analytic_mesh(
    eq: EquilibriumConfig,
    mesh: MeshConfig,
) -> MeshFields:
    """Sample the guiding-center analytic field on a structured mesh.

    The mesh spans R in [R0 - a, R0 + a] and Z in [Zo - a, Zo + a]. For
    ``mesh.nPHI > 1`` the toroidal grid is phi_k = 2 pi k / nPHI.

    Args:
        eq: Equilibrium parameters.
        mesh: Mesh resolution and sampled quantities.

    Returns:
        Populated mesh with B, psi_p, E (when ``mesh.Efield``) and flags.
    """
    R0, a = eq.major_radius, eq.minor_radius
    R = np.linspace(R0 - a, R0 + a, mesh.nR)
    Z = np.linspace(eq.Zo - a, eq.Zo + a, mesh.nZ)

    RR, ZZ = np.meshgrid(R, Z, indexing="ij")
    n = RR.size
    Y = np.column_stack((RR.ravel(), np.zeros(n), ZZ.ravel()))
    B = np.zeros((n, 3))
    E = np.zeros((n, 3))
    psi = np.zeros(n)
    guiding_center_fields(eq, Y, B, E, np.zeros((n, 3)), np.zeros((n, 3)), psi)

    B2 = B.T.reshape(3, mesh.nR, mesh.nZ)
    E2 = E.T.reshape(3, mesh.nR, mesh.nZ)
    psi2 = psi.reshape(mesh.nR, mesh.nZ)

    if mesh.axisymmetric:
        PHI = None
        Bm, Em, psim = B2, E2, psi2
    else:
        PHI = twopi * np.arange(mesh.nPHI) / mesh.nPHI
        Bm = np.repeat(B2[:, :, None, :], mesh.nPHI, axis=2)
        Em = np.repeat(E2[:, :, None, :], mesh.nPHI, axis=2)
        psim = np.repeat(psi2[:, None, :], mesh.nPHI, axis=1)

    logger.info(
        "Analytic mesh: nR=%d nPHI=%d nZ=%d, R=[%.3f, %.3f] m",
        mesh.nR, mesh.nPHI, mesh.nZ, R[0], R[-1],
    )

    return MeshFields(
        R=R,
        Z=Z,
        B=Bm,
        PHI=PHI,
        E=Em if mesh.Efield else None,
        psi_p=psim,
        flag=validity_flag(Bm.shape[1:]),
    )
