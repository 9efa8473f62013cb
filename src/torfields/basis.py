"""Field-aligned orthonormal basis for particle initialization."""

from __future__ import annotations

import numpy as np

from torfields.core.bases import FieldModel, ParticleBatch
from torfields.core.field_manager import FieldManager
from torfields.core.vector import cross, normalize
from torfields.evaluate import get_fields
from torfields.geometry.coordinates import cart_to_cyl, cyl_to_cart_vector

# Models whose B output is in cylindrical components
_CYLINDRICAL_OUTPUT = (FieldModel.GC_ANALYTICAL, FieldModel.MESH_INTERPOLATED)


def unit_vectors(
    fields: FieldManager,
    X: np.ndarray,
    hint: np.ndarray | None = None,
) -> tuple[np.ndarray, np.ndarray, np.ndarray, np.ndarray, np.ndarray]:
    """Build b1 = B/|B|, b2 = b1 x z / |b1 x z|, b3 = b1 x b2 / |b1 x b2|.

    The field is evaluated through :func:`get_fields` on a temporary batch
    positioned at ``X``; all vectors are returned in Cartesian components.

    Args:
        fields: Field descriptor.
        X: Cartesian positions, shape (N, 3).
        hint: Interpolation hints to start from; updated copy is returned.

    Returns:
        ``(b1, b2, b3, flag, hint)``. Rows whose flag is 0 are zero and must
        not be used.
    """
    X = np.ascontiguousarray(X, dtype=np.float64)
    n = X.shape[0]
    batch = ParticleBatch.allocate(n)
    batch.X[:] = X
    batch.Y[:] = cart_to_cyl(X)
    if hint is not None:
        batch.hint[:] = hint

    get_fields(fields, batch)

    B = batch.B
    if fields.model in _CYLINDRICAL_OUTPUT and fields.guiding_center:
        B = cyl_to_cart_vector(B, batch.Y[:, 1])

    ok = batch.flag_con.astype(bool)
    b1 = np.zeros((n, 3))
    b2 = np.zeros((n, 3))
    b3 = np.zeros((n, 3))
    if np.any(ok):
        zhat = np.zeros((int(ok.sum()), 3))
        zhat[:, 2] = 1.0
        b1[ok] = normalize(B[ok])
        b2[ok] = normalize(cross(b1[ok], zhat))
        b3[ok] = normalize(cross(b1[ok], b2[ok]))

    return b1, b2, b3, batch.flag_con.copy(), batch.hint.copy()
