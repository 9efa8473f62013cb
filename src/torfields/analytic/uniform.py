"""Uniform field model: B = B0 x, E = E0 x."""

from __future__ import annotations

import numpy as np


def uniform_fields(B0: float, E0: float, B: np.ndarray, E: np.ndarray) -> None:
    """Fill ``B`` and ``E`` (shape (N, 3)) with constant fields along x."""
    B[:] = 0.0
    B[:, 0] = B0
    E[:] = 0.0
    E[:, 0] = E0
