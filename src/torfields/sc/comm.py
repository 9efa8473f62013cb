"""Collective communication for the SC-E solver.

The solver needs exactly two collectives: an element-wise sum of the
deposited current across all workers, and a fatal abort. ``MPICommunicator``
maps them onto ``MPI.COMM_WORLD.Allreduce`` / ``Abort``; ``SerialCommunicator``
serves single-process runs.
"""

from __future__ import annotations

import sys
from abc import ABC, abstractmethod

import numpy as np


class Communicator(ABC):
    """Abstract collective-operation interface."""

    @property
    @abstractmethod
    def rank(self) -> int:
        """Rank of this worker."""

    @property
    @abstractmethod
    def size(self) -> int:
        """Number of cooperating workers."""

    @abstractmethod
    def allreduce_sum(self, local: np.ndarray) -> np.ndarray:
        """Blocking element-wise sum of ``local`` over all workers.

        Every worker receives an identical copy of the result.
        """

    @abstractmethod
    def abort(self, code: int = 1) -> None:
        """Terminate every worker."""


class SerialCommunicator(Communicator):
    """Single-worker communicator."""

    @property
    def rank(self) -> int:
        return 0

    @property
    def size(self) -> int:
        return 1

    def allreduce_sum(self, local: np.ndarray) -> np.ndarray:
        return np.array(local, dtype=np.float64, copy=True)

    def abort(self, code: int = 1) -> None:
        sys.exit(code)


class MPICommunicator(Communicator):
    """Communicator over an mpi4py intracommunicator (``COMM_WORLD`` by default)."""

    def __init__(self, comm=None) -> None:
        from mpi4py import MPI

        self._MPI = MPI
        self.comm = comm if comm is not None else MPI.COMM_WORLD

    @property
    def rank(self) -> int:
        return self.comm.Get_rank()

    @property
    def size(self) -> int:
        return self.comm.Get_size()

    def allreduce_sum(self, local: np.ndarray) -> np.ndarray:
        send = np.ascontiguousarray(local, dtype=np.float64)
        recv = np.empty_like(send)
        self.comm.Allreduce(send, recv, op=self._MPI.SUM)
        return recv

    def abort(self, code: int = 1) -> None:
        self.comm.Abort(code)


def default_communicator() -> Communicator:
    """``MPICommunicator`` when running under more than one MPI rank."""
    try:
        from mpi4py import MPI
    except ImportError:
        return SerialCommunicator()
    if MPI.COMM_WORLD.Get_size() > 1:
        return MPICommunicator(MPI.COMM_WORLD)
    return SerialCommunicator()
