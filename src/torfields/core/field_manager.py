"""Field manager: the single field descriptor of a simulation.

Owns the equilibrium parameters, the selected field model, the optional
structured mesh with its interpolator, and the optional SC-E solver. One
instance is created at initialization and passed explicitly to every
evaluator.
"""

from __future__ import annotations

import logging

import numpy as np

from torfields.config import FieldsConfig
from torfields.core.bases import FieldModel
from torfields.errors import FieldConfigurationError, FieldDataError
from torfields.mesh.auxiliary import compute_gc_fields
from torfields.mesh.builder import MeshFields, build_analytic_mesh
from torfields.mesh.external import MeshData, initialize_external_fields
from torfields.mesh.interpolation import MeshInterpolator
from torfields.sc.comm import Communicator, default_communicator
from torfields.sc.solver import SelfConsistentEField, SubcycleSchedule

logger = logging.getLogger(__name__)


class FieldManager:
    """Field descriptor shared by all evaluators.

    Args:
        config: Validated field configuration.
        comm: Communicator for the SC-E reduction and fatal aborts; by
            default MPI ``COMM_WORLD`` under more than one rank, else serial.
        mesh_data: Pre-loaded mesh arrays for an external mesh; also the
            source of the flux metric for a flux-geometry SC-E solve.
    """

    def __init__(
        self,
        config: FieldsConfig,
        comm: Communicator | None = None,
        mesh_data: MeshData | None = None,
    ) -> None:
        self.config = config
        self.model = config.field_model
        self.eq = config.equilibrium
        self.pulse = config.pulse
        self.comm = comm if comm is not None else default_communicator()

        self.mesh: MeshFields | None = None
        self.interpolator: MeshInterpolator | None = None
        self.sc: SelfConsistentEField | None = None
        self.schedule: SubcycleSchedule | None = None

        if config.mesh is not None:
            if config.mesh.source == "external":
                if mesh_data is None:
                    raise FieldDataError("external mesh requested but no mesh data was supplied")
                self.mesh = initialize_external_fields(
                    self.eq, config.mesh, mesh_data, guiding_center=self.guiding_center,
                )
            else:
                self.mesh = build_analytic_mesh(self.eq, config.mesh)
                if self.guiding_center:
                    compute_gc_fields(self.mesh)
            if self.model is FieldModel.MESH_INTERPOLATED:
                self.interpolator = MeshInterpolator(self.mesh)

        if config.sc.enabled:
            metric = None
            if (
                mesh_data is not None
                and mesh_data.metric_alpha is not None
                and mesh_data.metric_beta is not None
            ):
                metric = (mesh_data.metric_alpha, mesh_data.metric_beta)
            self.sc = SelfConsistentEField(
                config.sc, self.eq, config.scales, comm=self.comm, metric=metric,
            )
            self.schedule = self.sc.define_subcycle(config.time.dt, config.time.t_skip)

        logger.info(
            "FieldManager: model=%s, mesh=%s, sc=%s",
            self.model.value,
            None if self.mesh is None else self.mesh.shape,
            None if self.sc is None else config.sc.geometry,
        )

    @property
    def guiding_center(self) -> bool:
        """Particles carry guiding-center coordinates."""
        if self.model is FieldModel.MESH_INTERPOLATED:
            return self.config.guiding_center
        return self.model.guiding_center

    # --- Diagnostics ---

    def mean_field(self, which: str) -> float:
        """Mean |B| or |E| over the mesh nodes.

        Args:
            which: 'B' or 'E'.

        Raises:
            FieldConfigurationError: ``which`` is neither 'B' nor 'E'.
            FieldDataError: No mesh, or the requested field is not on it.
        """
        if which not in ("B", "E"):
            raise FieldConfigurationError(f"mean field must be 'B' or 'E', got '{which}'")
        if self.mesh is None:
            raise FieldDataError("mean field requires a field mesh")
        F = getattr(self.mesh, which)
        if F is None:
            raise FieldDataError(f"{which} is not present on the field mesh")
        return float(np.mean(np.sqrt(np.sum(F * F, axis=0))))

    # --- Checkpoint/restart ---

    def checkpoint(self) -> dict[str, np.ndarray]:
        """SC-E state arrays needed to resume the run."""
        if self.sc is None:
            return {}
        state = self.sc.state
        return {
            "grid": state.grid.copy(),
            "J": state.history.levels(),
            "E": state.E.copy(),
            "J0": state.J0.copy(),
            "Ip0": np.array(state.Ip0),
            "dt_E": np.array(state.dt_E),
            "time": np.array(state.time),
        }

    def restart(self, data: dict[str, np.ndarray]) -> None:
        """Restore SC-E state saved by :meth:`checkpoint` and refresh the field.

        The field is re-derived from the stored unnormalized profile, then
        the saved current history is put back so subsequent steps continue
        the BDF2 sequence.
        """
        if self.sc is None:
            raise FieldConfigurationError("restart data given but the SC-E solver is disabled")
        state = self.sc.state
        if data["grid"].shape != state.grid.shape:
            raise FieldDataError(
                f"checkpoint grid has {data['grid'].shape[0]} points, expected {state.grid.shape[0]}"
            )
        state.time = float(data["time"])
        self.sc.reinit(data["J0"])
        state.history.restore(data["J"])
        state.Ip0 = float(data["Ip0"])
