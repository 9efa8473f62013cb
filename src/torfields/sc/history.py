"""Three-level current-density history for the BDF2 time derivative."""

from __future__ import annotations

import numpy as np


class CurrentHistory:
    """Fixed-capacity ring of the three most recent current profiles.

    ``push`` inserts a new profile and evicts the oldest, so the levels
    always shift in lock-step.
    """

    def __init__(self, n: int) -> None:
        self._slots = np.zeros((3, n))
        self._head = 0

    @property
    def newest(self) -> np.ndarray:
        return self._slots[self._head]

    @property
    def previous(self) -> np.ndarray:
        return self._slots[(self._head + 1) % 3]

    @property
    def oldest(self) -> np.ndarray:
        return self._slots[(self._head + 2) % 3]

    def push(self, J: np.ndarray) -> None:
        """Insert ``J`` as the newest level, discarding the oldest."""
        self._head = (self._head - 1) % 3
        self._slots[self._head] = J

    def seed(self, J: np.ndarray) -> None:
        """Fill all three levels with ``J`` (zero initial time derivative)."""
        self._slots[:] = J
        self._head = 0

    def time_derivative(self, dt: float) -> np.ndarray:
        """Second-order backward difference (3 J1 - 4 J2 + J3) / (2 dt).

        Evaluated from level differences so equal levels give exactly zero.
        """
        J1, J2, J3 = self.newest, self.previous, self.oldest
        return (3.0 * (J1 - J2) - (J2 - J3)) / (2.0 * dt)

    def levels(self) -> np.ndarray:
        """Copy of the levels ordered newest, previous, oldest."""
        return np.stack((self.newest, self.previous, self.oldest))

    def restore(self, levels: np.ndarray) -> None:
        """Inverse of :meth:`levels`."""
        self._slots[:] = levels
        self._head = 0
