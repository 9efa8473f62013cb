"""HDF5 checkpoints of the SC-E solver.

Layout of a checkpoint file::

    /                 attrs: format, step_count, [config_json]
    /sc_e             attrs: 0-d entries of the state (Ip0, dt_E, time)
    /sc_e/<name>      datasets: grid, J (3 x n history), E, J0

The state dict is the one produced by ``FieldManager.checkpoint`` and is
handed back unchanged to ``FieldManager.restart``.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import numpy as np

from torfields.errors import FieldDataError

logger = logging.getLogger(__name__)

try:
    import h5py

    HAS_H5PY = True
except ImportError:
    HAS_H5PY = False
    logger.warning("h5py not available; SC-E checkpoints disabled")

CHECKPOINT_FORMAT = "torfields-sc-e/1"
_GROUP = "sc_e"


def save_sc_checkpoint(
    filename: str | Path,
    state: dict[str, np.ndarray],
    step_count: int,
    config_json: str | None = None,
) -> None:
    """Write ``state`` to ``filename``, replacing any existing file.

    Scalars go to attributes of the ``sc_e`` group and profiles to
    datasets. Without h5py this logs a warning and writes nothing.
    """
    if not HAS_H5PY:
        logger.warning("Skipping SC-E checkpoint %s: h5py not installed", filename)
        return

    with h5py.File(filename, "w") as f:
        f.attrs["format"] = CHECKPOINT_FORMAT
        f.attrs["step_count"] = int(step_count)
        if config_json is not None:
            f.attrs["config_json"] = config_json

        grp = f.create_group(_GROUP)
        for name, value in state.items():
            arr = np.asarray(value)
            if arr.ndim == 0:
                grp.attrs[name] = arr.item()
            else:
                grp.create_dataset(name, data=arr)

    logger.info(
        "SC-E checkpoint written to %s (step %d, %d entries)", filename, step_count, len(state),
    )


def load_sc_checkpoint(filename: str | Path) -> dict[str, Any]:
    """Read a checkpoint written by :func:`save_sc_checkpoint`.

    Returns:
        ``{"state": ..., "time": ..., "step_count": ..., "config_json": ...}``
        where ``state`` feeds ``FieldManager.restart`` and ``config_json``
        is ``None`` when none was stored.

    Raises:
        RuntimeError: h5py is not installed.
        FieldDataError: The file is not an SC-E checkpoint of a known format.
    """
    if not HAS_H5PY:
        raise RuntimeError("Cannot load SC-E checkpoint: h5py not installed")

    with h5py.File(filename, "r") as f:
        fmt = f.attrs.get("format")
        if isinstance(fmt, bytes):
            fmt = fmt.decode()
        if fmt != CHECKPOINT_FORMAT or _GROUP not in f:
            raise FieldDataError(f"{filename} is not an SC-E checkpoint (format={fmt!r})")

        grp = f[_GROUP]
        state: dict[str, Any] = {name: np.array(grp[name]) for name in grp}
        state.update({name: float(value) for name, value in grp.attrs.items()})

        config_json = f.attrs.get("config_json")
        if isinstance(config_json, bytes):
            config_json = config_json.decode()
        step_count = int(f.attrs["step_count"])

    time = float(state.get("time", 0.0))
    logger.info("SC-E checkpoint read from %s (t=%.4e s, step %d)", filename, time, step_count)
    return {
        "state": state,
        "time": time,
        "step_count": step_count,
        "config_json": None if config_json is None else str(config_json),
    }
