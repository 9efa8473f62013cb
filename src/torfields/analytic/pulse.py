"""Dynamic toroidal electric-field pulse.

The pulse is Gaussian in time with an error-function rise and is added on
top of the equilibrium toroidal electric field:

    E_add(R, t) = R0 E_dyn / R * exp(-(t - t_p)^2 / (2 w^2))
                  * (1 + erf(-10 (t - t_p) / (sqrt(2) w))) / 2
"""

from __future__ import annotations

import numpy as np
from scipy.special import erf

from torfields.config import PulseConfig


def pulse_time(init_time: float, step: int, substep: float, dt: float) -> float:
    """Physical time of an orbit sub-stage.

    Args:
        init_time: Simulation start time.
        step: Completed orbit steps.
        substep: Fraction of the current step (0 for the start of a step).
        dt: Orbit timestep.
    """
    return init_time + (step + substep) * dt


def pulse_amplitude(pulse: PulseConfig, R0: float, R: np.ndarray, time: float) -> np.ndarray:
    """Pulse contribution to E_phi at major radius ``R`` and ``time``."""
    dt = time - pulse.E_pulse
    w = pulse.E_width
    envelope = np.exp(-dt**2 / (2.0 * w**2)) * 0.5 * (1.0 + erf(-10.0 * dt / (np.sqrt(2.0) * w)))
    return R0 * pulse.E_dyn / np.asarray(R) * envelope


def add_pulse(
    pulse: PulseConfig,
    R0: float,
    E_phi: np.ndarray,
    R: np.ndarray,
    time: float,
    flag: np.ndarray | None = None,
) -> None:
    """Add the pulse to ``E_phi`` in place when the pulse is enabled."""
    if not pulse.enabled:
        return
    add = pulse_amplitude(pulse, R0, R, time)
    if flag is not None:
        add = add * flag
    E_phi += add
