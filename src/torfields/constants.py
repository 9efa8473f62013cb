"""Physical constants used by the field and SC-E modules.

All values sourced from ``scipy.constants`` (CODATA 2018).
Import from here instead of defining local constants.
"""

import scipy.constants as _sc

# Electromagnetic
e = _sc.e                     # Elementary charge [C]
mu_0 = _sc.mu_0               # Vacuum permeability [H/m]
c = _sc.c                     # Speed of light [m/s]

# Masses
m_e = _sc.m_e                 # Electron mass [kg]

# Mathematical
pi = _sc.pi
twopi = 2.0 * _sc.pi
