"""Closed-form tokamak equilibrium fields."""

from torfields.analytic.full_orbit import full_orbit_fields
from torfields.analytic.guiding_center import (
    analytical_bmag,
    analytical_electric_field_cyl,
    guiding_center_fields,
)
from torfields.analytic.pulse import add_pulse, pulse_amplitude, pulse_time
from torfields.analytic.uniform import uniform_fields

__all__ = [
    "add_pulse",
    "analytical_bmag",
    "analytical_electric_field_cyl",
    "full_orbit_fields",
    "guiding_center_fields",
    "pulse_amplitude",
    "pulse_time",
    "uniform_fields",
]
