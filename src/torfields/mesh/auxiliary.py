"""Finite-difference grad|B| and curl(b) on a structured field mesh.

Derivatives use one-sided differences on the R and Z boundaries and
centred differences ``(f[i+1] - f[i-1]) / (x[i+1] - x[i-1])`` inside. The
toroidal direction of a 3-D mesh is periodic. In cylindrical components

    curl(b)_R   = (1/R) db_Z/dphi - db_phi/dZ
    curl(b)_phi = db_R/dZ - db_Z/dR
    curl(b)_Z   = (1/R) d(R b_phi)/dR - (1/R) db_R/dphi

with the radial term evaluated as a difference of ``R b_phi``. No validity
checks are made: a zero |B| yields inf/NaN in the outputs.
"""

from __future__ import annotations

import numpy as np

from torfields.constants import twopi
from torfields.mesh.builder import MeshFields


def _partial(f: np.ndarray, x: np.ndarray, axis: int) -> np.ndarray:
    """Non-periodic derivative of ``f`` along ``axis`` with grid lines ``x``."""
    f = np.moveaxis(f, axis, 0)
    shape = (-1,) + (1,) * (f.ndim - 1)
    out = np.empty_like(f)
    out[1:-1] = (f[2:] - f[:-2]) / (x[2:] - x[:-2]).reshape(shape)
    out[0] = (f[1] - f[0]) / (x[1] - x[0])
    out[-1] = (f[-1] - f[-2]) / (x[-1] - x[-2])
    return np.moveaxis(out, 0, axis)


def _partial_periodic(f: np.ndarray, phi: np.ndarray, axis: int) -> np.ndarray:
    """Centred derivative along a periodic toroidal axis."""
    f_plus = np.roll(f, -1, axis=axis)
    f_minus = np.roll(f, 1, axis=axis)
    span = np.mod(np.roll(phi, -1) - np.roll(phi, 1), twopi)
    shape = [1] * f.ndim
    shape[axis] = -1
    return (f_plus - f_minus) / span.reshape(shape)


def _radial_metric(f: np.ndarray, R: np.ndarray) -> np.ndarray:
    """(1/R) d(R f)/dR along axis 0."""
    shape = (-1,) + (1,) * (f.ndim - 1)
    Rb = R.reshape(shape)
    return _partial(Rb * f, R, axis=0) / Rb


def _unit_and_magnitude(B: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
    Bmag = np.sqrt(np.sum(B * B, axis=0))
    return B / Bmag, Bmag


def compute_gc_fields_2d(mesh: MeshFields) -> None:
    """Fill ``mesh.gradB`` and ``mesh.curlb`` on an axisymmetric (R, Z) mesh."""
    R, Z = mesh.R, mesh.Z
    bhat, Bmag = _unit_and_magnitude(mesh.B)

    gradB = np.zeros_like(mesh.B)
    gradB[0] = _partial(Bmag, R, axis=0)
    gradB[2] = _partial(Bmag, Z, axis=1)

    curlb = np.empty_like(mesh.B)
    curlb[0] = -_partial(bhat[1], Z, axis=1)
    curlb[1] = _partial(bhat[0], Z, axis=1) - _partial(bhat[2], R, axis=0)
    curlb[2] = _radial_metric(bhat[1], R)

    mesh.gradB = gradB
    mesh.curlb = curlb


def compute_gc_fields_3d(mesh: MeshFields) -> None:
    """Fill ``mesh.gradB`` and ``mesh.curlb`` on an (R, phi, Z) mesh."""
    R, PHI, Z = mesh.R, mesh.PHI, mesh.Z
    bhat, Bmag = _unit_and_magnitude(mesh.B)
    Rb = R[:, None, None]

    gradB = np.empty_like(mesh.B)
    gradB[0] = _partial(Bmag, R, axis=0)
    gradB[1] = _partial_periodic(Bmag, PHI, axis=1) / Rb
    gradB[2] = _partial(Bmag, Z, axis=2)

    curlb = np.empty_like(mesh.B)
    curlb[0] = _partial_periodic(bhat[2], PHI, axis=1) / Rb - _partial(bhat[1], Z, axis=2)
    curlb[1] = _partial(bhat[0], Z, axis=2) - _partial(bhat[2], R, axis=0)
    curlb[2] = _radial_metric(bhat[1], R) - _partial_periodic(bhat[0], PHI, axis=1) / Rb

    mesh.gradB = gradB
    mesh.curlb = curlb


def compute_gc_fields(mesh: MeshFields) -> None:
    """Dispatch to the 2-D or 3-D generator from the mesh dimensionality."""
    if mesh.axisymmetric:
        compute_gc_fields_2d(mesh)
    else:
        compute_gc_fields_3d(mesh)
