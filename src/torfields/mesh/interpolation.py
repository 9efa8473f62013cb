"""Interpolation of mesh-sampled fields and of the 1-D SC-E profile.

``MeshInterpolator`` wraps :class:`scipy.interpolate.RegularGridInterpolator`
over the (R, Z) or (R, phi, Z) mesh, treating phi as periodic.
``ProfileInterpolant`` wraps a cubic B-spline over the 1-D self-consistent
electric field and is rebuilt after every SC-E solve.
"""

from __future__ import annotations

import logging

import numpy as np
from scipy.interpolate import RegularGridInterpolator, make_interp_spline

from torfields.constants import twopi
from torfields.mesh.builder import MeshFields

logger = logging.getLogger(__name__)

_VECTOR_QUANTITIES = ("B", "E", "gradB", "curlb")


class MeshInterpolator:
    """Trilinear (bilinear when axisymmetric) interpolation on a field mesh.

    Positions outside the mesh, or whose nearest node carries a zero validity
    flag, are marked unconfined and their outputs are left untouched.
    """

    def __init__(self, mesh: MeshFields) -> None:
        self.mesh = mesh
        if mesh.axisymmetric:
            self._points = (mesh.R, mesh.Z)
        else:
            self._points = (mesh.R, np.append(mesh.PHI, mesh.PHI[0] + twopi), mesh.Z)

        self._vector: dict[str, RegularGridInterpolator] = {}
        for name in _VECTOR_QUANTITIES:
            arr = getattr(mesh, name)
            if arr is not None:
                self._vector[name] = self._make(np.moveaxis(arr, 0, -1))
        self._psi = self._make(mesh.psi_p) if mesh.psi_p is not None else None
        flag = mesh.flag if mesh.flag is not None else np.ones(mesh.shape, dtype=np.int64)
        self._flag = self._make(flag.astype(np.float64), method="nearest")

    def _make(self, values: np.ndarray, method: str = "linear") -> RegularGridInterpolator:
        if not self.mesh.axisymmetric:
            values = np.concatenate((values, values[:, :1]), axis=1)
        return RegularGridInterpolator(
            self._points, values, method=method, bounds_error=False, fill_value=np.nan,
        )

    def _query_points(self, Y: np.ndarray) -> np.ndarray:
        if self.mesh.axisymmetric:
            return np.column_stack((Y[:, 0], Y[:, 2]))
        return np.column_stack((Y[:, 0], np.mod(Y[:, 1], twopi), Y[:, 2]))

    def interpolate(
        self,
        Y: np.ndarray,
        flag: np.ndarray,
        hint: np.ndarray,
        outputs: dict[str, np.ndarray],
    ) -> None:
        """Interpolate mesh quantities at cylindrical positions ``Y``.

        Args:
            Y: Cylindrical (R, phi, Z) positions, shape (N, 3).
            flag: Confinement flag, cleared in place outside the valid region.
            hint: Lower radial cell index, updated in place.
            outputs: Arrays keyed by quantity name ('B', 'E', 'gradB',
                'curlb', 'psi_p') to fill for confined positions. Quantities
                absent from the mesh are skipped.
        """
        pts = self._query_points(Y)
        valid = self._flag(pts)
        inside = np.isfinite(valid) & (valid > 0.5) & (flag != 0)
        flag[~inside] = 0

        hint[:] = np.clip(np.searchsorted(self.mesh.R, Y[:, 0]) - 1, 0, len(self.mesh.R) - 2)

        if not np.any(inside):
            return
        sub = pts[inside]
        for name, interp in self._vector.items():
            if name in outputs:
                outputs[name][inside] = interp(sub)
        if self._psi is not None and "psi_p" in outputs:
            outputs["psi_p"][inside] = self._psi(sub)


class ProfileInterpolant:
    """Cubic spline over a 1-D profile, zero outside the grid."""

    def __init__(self) -> None:
        self.grid: np.ndarray | None = None
        self._spline = None

    @property
    def ready(self) -> bool:
        return self._spline is not None

    def reinitialize(self, grid: np.ndarray, values: np.ndarray) -> None:
        """Rebuild the spline over ``values`` sampled on ``grid``."""
        self.grid = np.asarray(grid, dtype=np.float64)
        k = min(3, len(self.grid) - 1)
        self._spline = make_interp_spline(self.grid, np.asarray(values, dtype=np.float64), k=k)
        logger.debug("Profile interpolant rebuilt on %d points", len(self.grid))

    def __call__(self, x: np.ndarray) -> np.ndarray:
        if self._spline is None:
            raise RuntimeError("profile interpolant used before reinitialize()")
        x = np.asarray(x, dtype=np.float64)
        out = np.asarray(self._spline(x), dtype=np.float64)
        outside = (x < self.grid[0]) | (x > self.grid[-1])
        return np.where(outside, 0.0, out)
