"""Single dispatch entry used by the orbit integrator.

``get_fields`` evaluates B and E (plus poloidal flux, grad|B| and curl(b)
for guiding-center models) for every particle of a batch, according to the
field model fixed in the :class:`FieldManager`. Confinement flags are updated
first; outputs of unconfined particles are not written.

Output frames:
    FULL_ORBIT_ANALYTICAL: Cartesian B, E.
    GC_ANALYTICAL_INIT: Cartesian B, E; cylindrical grad|B|, curl(b).
    GC_ANALYTICAL: cylindrical (R, phi, Z).
    MESH_INTERPOLATED: cylindrical for guiding centers, Cartesian otherwise.
    UNIFORM: Cartesian.
"""

from __future__ import annotations

import numpy as np

from torfields.analytic.full_orbit import full_orbit_fields
from torfields.analytic.guiding_center import guiding_center_fields
from torfields.analytic.pulse import pulse_amplitude
from torfields.analytic.uniform import uniform_fields
from torfields.core.bases import FieldModel, ParticleBatch
from torfields.core.field_manager import FieldManager
from torfields.errors import FieldConfigurationError
from torfields.geometry.coordinates import (
    cart_to_cyl,
    cart_to_tor_check_if_confined,
    cyl_check_if_confined,
    cyl_to_cart_vector,
)


def get_fields(fields: FieldManager, batch: ParticleBatch, time: float | None = None) -> None:
    """Evaluate the configured field model for ``batch`` in place.

    Args:
        fields: Field descriptor.
        batch: Particle batch; ``X`` (full orbit, init) or ``Y`` (guiding
            center) must be set.
        time: Physical time, used by the electric-field pulse.

    Raises:
        FieldConfigurationError: The field model is not supported.
    """
    eq = fields.eq
    R0, a, Zo = eq.major_radius, eq.minor_radius, eq.Zo

    match fields.model:
        case FieldModel.FULL_ORBIT_ANALYTICAL:
            batch.Y[:] = cart_to_tor_check_if_confined(batch.X, R0, a, batch.flag_con, Zo=Zo)
            full_orbit_fields(eq, batch.Y, batch.B, batch.E, batch.flag_con)

        case FieldModel.GC_ANALYTICAL_INIT:
            batch.Y[:] = cart_to_cyl(batch.X)
            cyl_check_if_confined(batch.Y, R0, a, batch.flag_con, Zo=Zo)
            guiding_center_fields(
                eq, batch.Y, batch.B, batch.E, batch.gradB, batch.curlb, batch.psi_p,
                flag=batch.flag_con, rotate=True, pulse=fields.pulse, time=time,
            )

        case FieldModel.GC_ANALYTICAL:
            cyl_check_if_confined(batch.Y, R0, a, batch.flag_con, Zo=Zo)
            guiding_center_fields(
                eq, batch.Y, batch.B, batch.E, batch.gradB, batch.curlb, batch.psi_p,
                flag=batch.flag_con, rotate=False, pulse=fields.pulse, time=time,
            )

        case FieldModel.MESH_INTERPOLATED:
            _interpolate_mesh(fields, batch, time)

        case FieldModel.UNIFORM:
            uniform_fields(eq.B0, eq.E0, batch.B, batch.E)

        case _:
            raise FieldConfigurationError(f"unsupported field model: {fields.model!r}")

    if fields.sc is not None and fields.guiding_center:
        _add_sc_field(fields, batch)


def _interpolate_mesh(fields: FieldManager, batch: ParticleBatch, time: float | None) -> None:
    if fields.interpolator is None:
        raise FieldConfigurationError("mesh field model selected but no mesh interpolator exists")

    if fields.guiding_center:
        outputs = {
            "B": batch.B, "E": batch.E, "gradB": batch.gradB,
            "curlb": batch.curlb, "psi_p": batch.psi_p,
        }
        fields.interpolator.interpolate(batch.Y, batch.flag_con, batch.hint, outputs)
        if time is not None and fields.pulse.enabled:
            batch.E[:, 1] += (
                pulse_amplitude(fields.pulse, fields.eq.major_radius, batch.Y[:, 0], time)
                * batch.flag_con
            )
        return

    Y = cart_to_cyl(batch.X)
    B = np.zeros_like(batch.B)
    E = np.zeros_like(batch.E)
    fields.interpolator.interpolate(Y, batch.flag_con, batch.hint, {"B": B, "E": E})
    inside = batch.flag_con.astype(bool)
    batch.B[inside] = cyl_to_cart_vector(B[inside], Y[inside, 1])
    if fields.mesh.E is not None:
        batch.E[inside] = cyl_to_cart_vector(E[inside], Y[inside, 1])


def _add_sc_field(fields: FieldManager, batch: ParticleBatch) -> None:
    """Add the SC-E toroidal field to E_phi of confined guiding centers."""
    Ephi = fields.sc.field_at(batch) * batch.flag_con
    if fields.model is FieldModel.GC_ANALYTICAL_INIT:
        phi = batch.Y[:, 1]
        batch.E[:, 0] -= Ephi * np.sin(phi)
        batch.E[:, 1] += Ephi * np.cos(phi)
    else:
        batch.E[:, 1] += Ephi
