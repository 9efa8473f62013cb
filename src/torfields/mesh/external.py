"""Initialization of the field mesh from pre-loaded external data.

The loader that reads mesh files is outside this package; it hands over a
:class:`MeshData` whose arrays follow the :class:`MeshFields` layout. This
module applies the data-availability rules:

- B missing: fatal.
- Poloidal flux missing while required: fatal.
- Field derivatives missing while required: zero-filled with a warning.
- Electric field missing: analytic E_phi = E0 R0 / R on the mesh.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import numpy as np

from torfields.config import EquilibriumConfig, MeshConfig
from torfields.errors import FieldDataError
from torfields.mesh.auxiliary import compute_gc_fields
from torfields.mesh.builder import MeshFields

logger = logging.getLogger(__name__)


@dataclass
class MeshData:
    """Externally loaded mesh arrays; any quantity may be absent."""

    R: np.ndarray
    Z: np.ndarray
    PHI: np.ndarray | None = None
    B: np.ndarray | None = None
    E: np.ndarray | None = None
    psi_p: np.ndarray | None = None
    dBdR: np.ndarray | None = None
    dBdPHI: np.ndarray | None = None
    dBdZ: np.ndarray | None = None
    flag: np.ndarray | None = None
    metric_alpha: np.ndarray | None = None
    metric_beta: np.ndarray | None = None


def analytic_mesh_efield(eq: EquilibriumConfig, mesh: MeshFields) -> np.ndarray:
    """Toroidal E_phi = E0 R0 / R sampled on the mesh."""
    E = np.zeros_like(mesh.B)
    E[1] = eq.E0 * eq.major_radius / mesh.radius_grid()
    return E


def initialize_external_fields(
    eq: EquilibriumConfig,
    cfg: MeshConfig,
    data: MeshData,
    guiding_center: bool = True,
) -> MeshFields:
    """Build a :class:`MeshFields` from loaded data.

    Args:
        eq: Equilibrium parameters (for the analytic E fallback).
        cfg: Mesh configuration naming the required quantities.
        data: Loaded arrays.
        guiding_center: Compute grad|B| and curl(b) on the mesh.

    Returns:
        Initialized mesh.

    Raises:
        FieldDataError: B, or the poloidal flux when ``cfg.Bflux``, is missing.
    """
    if data.B is None:
        raise FieldDataError("magnetic field is not present in the loaded mesh data")
    if cfg.Bflux and data.psi_p is None:
        raise FieldDataError("poloidal flux is required but not present in the loaded mesh data")

    mesh = MeshFields(
        R=np.asarray(data.R, dtype=np.float64),
        Z=np.asarray(data.Z, dtype=np.float64),
        B=np.asarray(data.B, dtype=np.float64),
        PHI=None if data.PHI is None else np.asarray(data.PHI, dtype=np.float64),
        psi_p=data.psi_p,
        dBdR=data.dBdR,
        dBdPHI=data.dBdPHI,
        dBdZ=data.dBdZ,
    )

    if cfg.dBfield:
        missing = [
            name for name in ("dBdR", "dBdPHI", "dBdZ")
            if getattr(mesh, name) is None and not (name == "dBdPHI" and mesh.axisymmetric)
        ]
        if missing:
            logger.warning("Field derivatives %s not in mesh data; zero-filled", missing)
            for name in missing:
                setattr(mesh, name, np.zeros_like(mesh.B))

    if data.E is not None:
        mesh.E = np.asarray(data.E, dtype=np.float64)
    elif cfg.Efield:
        logger.info("Electric field not in mesh data; using analytic E_phi = E0 R0/R")
        mesh.E = analytic_mesh_efield(eq, mesh)

    mesh.flag = (
        np.asarray(data.flag, dtype=np.int64) if data.flag is not None
        else np.ones(mesh.shape, dtype=np.int64)
    )

    if guiding_center:
        compute_gc_fields(mesh)

    logger.info(
        "External mesh initialized: shape=%s, psi_p=%s, E=%s",
        mesh.shape, mesh.psi_p is not None, mesh.E is not None,
    )
    return mesh
