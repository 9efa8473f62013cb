"""Fatal error taxonomy for field evaluation and the SC-E solver.

Every error raised here is terminal for the run: callers are expected to let
it propagate to :func:`abort_on_fatal`, which logs it and aborts all workers
through the communicator. Recoverable situations (missing electric field on a
loaded mesh, E0 == 0, pulse disabled) never raise.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from torfields.sc.comm import Communicator

logger = logging.getLogger(__name__)


class FatalFieldError(Exception):
    """Base class for unrecoverable field-subsystem failures."""


class FieldConfigurationError(FatalFieldError, ValueError):
    """Unsupported field model or unsupported mean-field request."""


class FieldDataError(FatalFieldError, RuntimeError):
    """A required mesh quantity is absent from the loaded field data."""


class TridiagonalSolveError(FatalFieldError, ArithmeticError):
    """Zero pivot encountered during the Thomas forward sweep."""

    def __init__(self, index: int) -> None:
        super().__init__(f"tridiagonal solve failed: zero pivot at row {index}")
        self.index = index


@contextmanager
def abort_on_fatal(comm: Communicator) -> Iterator[None]:
    """Abort every cooperating worker if a :class:`FatalFieldError` escapes.

    Args:
        comm: Communicator whose ``abort`` terminates the run.
    """
    try:
        yield
    except FatalFieldError as exc:
        logger.critical("Fatal field error on rank %d: %s", comm.rank, exc)
        comm.abort(1)
        raise
