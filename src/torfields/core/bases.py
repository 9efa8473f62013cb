"""Core enumerations and shared data structures.

Defines the data contracts shared by every field evaluator:
- ``FieldModel``: closed set of field-evaluation paths
- ``ParticleBatch``: index-aligned per-particle inputs and outputs
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

import numpy as np


class FieldModel(str, Enum):
    """Field-evaluation path, selected once at configuration time."""

    FULL_ORBIT_ANALYTICAL = "fo_analytical"
    GC_ANALYTICAL_INIT = "gc_analytical_init"
    GC_ANALYTICAL = "gc_analytical"
    MESH_INTERPOLATED = "mesh"
    UNIFORM = "uniform"

    @property
    def guiding_center(self) -> bool:
        return self in (FieldModel.GC_ANALYTICAL_INIT, FieldModel.GC_ANALYTICAL)


_VECTOR_FIELDS = ("X", "Y", "V", "B", "E", "gradB", "curlb")
_SCALAR_FIELDS = ("flag_con", "flag_col", "hint", "psi_p")


@dataclass
class ParticleBatch:
    """A chunk of particles and the field values evaluated at them.

    Attributes:
        X: Cartesian positions, shape (N, 3).
        Y: Model coordinates, shape (N, 3). Toroidal (r, theta, zeta) for the
            full-orbit model, cylindrical (R, phi, Z) for guiding-center.
        V: Velocity (full orbit) or (p_parallel, mu, unused) (guiding center).
        flag_con: Confinement flag, 1 while the particle is inside the domain.
        flag_col: Collisional-validity flag used by SC-E deposition.
        hint: Opaque interpolation hint (lower radial cell index on a mesh).
        B: Magnetic field output, shape (N, 3).
        E: Electric field output, shape (N, 3).
        gradB: Gradient of |B| output (guiding center only).
        curlb: Curl of the field unit vector output (guiding center only).
        psi_p: Poloidal flux output, shape (N,).
        mass: Species rest mass in units of the reference mass (1 for the
            species that sets the normalization).
    """

    X: np.ndarray
    Y: np.ndarray
    V: np.ndarray
    flag_con: np.ndarray
    flag_col: np.ndarray
    hint: np.ndarray
    B: np.ndarray
    E: np.ndarray
    gradB: np.ndarray
    curlb: np.ndarray
    psi_p: np.ndarray
    mass: float = 1.0

    def __post_init__(self) -> None:
        n = self.X.shape[0]
        for name in _VECTOR_FIELDS:
            arr = getattr(self, name)
            if arr.shape != (n, 3):
                raise ValueError(f"{name} must have shape ({n}, 3), got {arr.shape}")
        for name in _SCALAR_FIELDS:
            arr = getattr(self, name)
            if arr.shape != (n,):
                raise ValueError(f"{name} must have shape ({n},), got {arr.shape}")

    def __len__(self) -> int:
        return self.X.shape[0]

    @classmethod
    def allocate(cls, n: int, mass: float = 1.0) -> ParticleBatch:
        """Allocate a zeroed batch of ``n`` particles with all flags set."""
        return cls(
            X=np.zeros((n, 3)),
            Y=np.zeros((n, 3)),
            V=np.zeros((n, 3)),
            flag_con=np.ones(n, dtype=np.int64),
            flag_col=np.ones(n, dtype=np.int64),
            hint=np.zeros(n, dtype=np.int64),
            B=np.zeros((n, 3)),
            E=np.zeros((n, 3)),
            gradB=np.zeros((n, 3)),
            curlb=np.zeros((n, 3)),
            psi_p=np.zeros(n),
            mass=mass,
        )

    @property
    def mask(self) -> np.ndarray:
        """Multiplicative deposition mask ``flag_con * flag_col``."""
        return self.flag_con * self.flag_col
