"""Self-consistent toroidal electric field (SC-E) on a 1-D grid.

The solver runs on a coarser cadence than the orbit integrator. Each update
follows a strict three-phase protocol:

1. every worker deposits its local guiding centers onto a private buffer;
2. a blocking all-reduce sums the buffers so every worker holds the same
   current density;
3. every worker repeats the same serial tridiagonal solve, rescales the
   result to the internal electric-field unit and rebuilds its interpolant.

State machine: ``init`` (from a live ensemble) or ``reinit`` (from a stored
profile), then any number of ``step`` calls.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Iterable
from dataclasses import dataclass

import numpy as np

from torfields.config import EquilibriumConfig, ScaleConfig, SelfConsistentConfig
from torfields.constants import pi
from torfields.core.bases import ParticleBatch
from torfields.errors import FieldConfigurationError, FieldDataError
from torfields.mesh.interpolation import ProfileInterpolant
from torfields.sc.comm import Communicator, SerialCommunicator
from torfields.sc.deposition import (
    DepositionPolicy,
    deposit_flux_raw,
    deposit_radial_raw,
    flux_current_density,
    radial_current_density,
)
from torfields.sc.history import CurrentHistory
from torfields.sc.tridiagonal import solve_flux, solve_radial

logger = logging.getLogger(__name__)

_SUBCYCLE_RTOL = 1e-12


@dataclass(frozen=True)
class SubcycleSchedule:
    """Integer coupling between the orbit and SC-E timesteps.

    Attributes:
        subcycle: Orbit steps per SC-E update, floor(dt_target / dt_orbit).
        t_skip: Orbit steps between outputs (reset to ``subcycle``).
        outputs_per_cycle: Previous output interval divided by ``subcycle``.
        dt_E: Effective SC-E timestep, subcycle * dt_orbit.
    """

    subcycle: int
    t_skip: int
    outputs_per_cycle: int
    dt_E: float


def define_subcycle(dt_target: float, dt_orbit: float, t_skip: int) -> SubcycleSchedule:
    """Round the requested SC-E timestep down to a multiple of the orbit step.

    Raises:
        FieldConfigurationError: ``dt_target`` is shorter than one orbit step.
    """
    # Relative slack absorbs representation error of decimal timesteps (1e-6 / 1e-9)
    subcycle = int(math.floor(dt_target / dt_orbit * (1.0 + _SUBCYCLE_RTOL)))
    if subcycle < 1:
        raise FieldConfigurationError(
            f"SC-E timestep {dt_target:.3e} is shorter than the orbit timestep {dt_orbit:.3e}"
        )
    return SubcycleSchedule(
        subcycle=subcycle,
        t_skip=subcycle,
        outputs_per_cycle=t_skip // subcycle,
        dt_E=subcycle * dt_orbit,
    )


@dataclass
class SelfConsistentState:
    """Grid, current history and field of the SC-E solver.

    Attributes:
        geometry: 'radial' (minor radius) or 'flux' (poloidal flux).
        grid: Uniform 1-D grid starting at the magnetic axis.
        history: Normalized current densities (newest, previous, oldest).
        E: Field on the grid in internal electric-field units.
        J0: Reduced but unnormalized current of the last init, for reinit.
        Ip_exp: Prescribed total plasma current.
        Ip0: Normalization Ip_exp / sampled current.
        dt_E: Effective SC-E timestep.
        dt_target: Requested SC-E timestep; never overwritten.
        alpha: Flux metric d2A/dpsi2 on the grid (flux geometry).
        beta: Flux metric dA/dpsi on the grid (flux geometry).
        time: Physical time of the last update.
        initialized: Whether ``init`` or ``reinit`` has run.
    """

    geometry: str
    grid: np.ndarray
    history: CurrentHistory
    E: np.ndarray
    J0: np.ndarray
    Ip_exp: float
    dt_E: float
    dt_target: float
    Ip0: float = 1.0
    alpha: np.ndarray | None = None
    beta: np.ndarray | None = None
    time: float = 0.0
    initialized: bool = False

    @property
    def spacing(self) -> float:
        return float(self.grid[1] - self.grid[0])


class SelfConsistentEField:
    """Deposit, reduce and solve for the inductive toroidal electric field.

    Args:
        cfg: SC-E configuration.
        eq: Equilibrium (magnetic axis, minor radius, edge flux).
        scales: Internal unit scales.
        comm: Collective communicator (serial by default).
        interpolant: Collaborator rebuilt after every solve.
        metric: ``(alpha, beta)`` flux metric arrays; required for the flux
            geometry.
    """

    def __init__(
        self,
        cfg: SelfConsistentConfig,
        eq: EquilibriumConfig,
        scales: ScaleConfig | None = None,
        comm: Communicator | None = None,
        interpolant: ProfileInterpolant | None = None,
        metric: tuple[np.ndarray, np.ndarray] | None = None,
    ) -> None:
        self.cfg = cfg
        self.eq = eq
        self.scales = scales if scales is not None else ScaleConfig()
        self.comm = comm if comm is not None else SerialCommunicator()
        self.interpolant = interpolant if interpolant is not None else ProfileInterpolant()
        self.policy = DepositionPolicy(cfg.deposition_policy)

        n = cfg.dim_1D
        if cfg.geometry == "radial":
            grid = np.linspace(0.0, eq.minor_radius, n)
        else:
            psi_lim = cfg.psip_lim if cfg.psip_lim is not None else eq.psip_edge
            grid = np.linspace(0.0, psi_lim, n)

        alpha = beta = None
        if cfg.geometry == "flux":
            if metric is None:
                raise FieldDataError("flux-geometry SC-E requires the flux metric (alpha, beta)")
            alpha, beta = (np.asarray(m, dtype=np.float64) for m in metric)
            if alpha.shape != (n,) or beta.shape != (n,):
                raise FieldDataError(
                    f"flux metric must have shape ({n},), got {alpha.shape} and {beta.shape}"
                )

        self.state = SelfConsistentState(
            geometry=cfg.geometry,
            grid=grid,
            history=CurrentHistory(n),
            E=np.zeros(n),
            J0=np.zeros(n),
            Ip_exp=cfg.Ip_exp,
            dt_E=cfg.dt_E_SC,
            dt_target=cfg.dt_E_SC,
            alpha=alpha,
            beta=beta,
        )

    # --- Scheduling ---

    def define_subcycle(self, dt_orbit: float, t_skip: int) -> SubcycleSchedule:
        """Fix the SC-E cadence from the requested timestep.

        Always derived from the stored request, so repeated calls give the
        same schedule.
        """
        schedule = define_subcycle(self.state.dt_target, dt_orbit, t_skip)
        self.state.dt_E = schedule.dt_E
        if self.comm.rank == 0:
            logger.info(
                "SC-E subcycling: %d orbit steps per update, dt_E=%.4e s",
                schedule.subcycle, schedule.dt_E,
            )
        return schedule

    # --- Deposition ---

    def deposit(self, batches: Iterable[ParticleBatch]) -> np.ndarray:
        """Local current density of this worker's particles (before reduction)."""
        state = self.state
        raw = np.zeros(len(state.grid))
        length = self.scales.length
        for batch in batches:
            if state.geometry == "radial":
                raw += deposit_radial_raw(
                    batch, state.grid, self.eq.major_radius / length, self.eq.Zo / length,
                    self.policy, length_scale=length,
                )
            else:
                raw += deposit_flux_raw(
                    batch, state.grid, self.policy,
                    flux_scale=self.scales.magnetic_field * length**2,
                )
        if state.geometry == "radial":
            return radial_current_density(raw, state.grid, self.policy)
        return flux_current_density(raw, state.grid, self.policy)

    def sample(self, batches: Iterable[ParticleBatch]) -> np.ndarray:
        """Deposit locally and sum across all workers."""
        return self.comm.allreduce_sum(self.deposit(batches))

    def total_current(self, J: np.ndarray) -> float:
        """Trapezoidal current integral over the grid."""
        grid = self.state.grid
        d = self.state.spacing
        w = np.ones(len(grid))
        w[0] = w[-1] = 0.5
        if self.state.geometry == "radial":
            return float(2.0 * pi * d * np.sum(w * J * grid))
        return float(d * np.sum(w * J))

    # --- State machine ---

    def init(self, batches: Iterable[ParticleBatch]) -> np.ndarray:
        """Normalize to the prescribed current and solve from a live ensemble."""
        J = self.sample(batches)
        self.state.J0 = J.copy()
        return self._normalize_and_solve(J)

    def reinit(self, J0: np.ndarray | None = None) -> np.ndarray:
        """Re-derive the field from a stored unnormalized current profile."""
        if J0 is not None:
            self.state.J0 = np.asarray(J0, dtype=np.float64).copy()
        return self._normalize_and_solve(self.state.J0)

    def step(self, batches: Iterable[ParticleBatch], time: float | None = None) -> np.ndarray:
        """Advance the field by one SC-E timestep."""
        if not self.state.initialized:
            raise RuntimeError("SC-E step() called before init() or reinit()")
        J = self.sample(batches)
        self.state.history.push(J * self.state.Ip0)
        if time is not None:
            self.state.time = time
        return self._solve_and_publish()

    def _normalize_and_solve(self, J: np.ndarray) -> np.ndarray:
        Isam = self.total_current(J)
        if Isam == 0.0:
            raise FieldDataError("sampled plasma current is zero; cannot normalize to Ip_exp")
        self.state.Ip0 = self.state.Ip_exp / Isam
        self.state.history.seed(J * self.state.Ip0)
        self.state.initialized = True
        if self.comm.rank == 0:
            logger.info(
                "SC-E initialized: I_sampled=%.4e, Ip_exp=%.4e, Ip0=%.4e",
                Isam, self.state.Ip_exp, self.state.Ip0,
            )
        return self._solve_and_publish()

    def _solve_and_publish(self) -> np.ndarray:
        state = self.state
        dJdt = state.history.time_derivative(state.dt_E)
        if state.geometry == "radial":
            u = solve_radial(dJdt, state.spacing)
        else:
            u = solve_flux(dJdt, state.spacing, state.alpha, state.beta)

        if self.comm.rank == 0:
            h = state.history
            logger.debug(
                "SC-E update: J1=%.4e J2=%.4e J3=%.4e E(axis)=%.4e",
                h.newest[1], h.previous[1], h.oldest[1], u[0],
            )

        state.E = u / self.scales.electric_field
        self.interpolant.reinitialize(state.grid, state.E)
        return state.E

    # --- Evaluation ---

    def coordinate(self, batch: ParticleBatch) -> np.ndarray:
        """Grid coordinate of each particle (minor radius or poloidal flux)."""
        length = self.scales.length
        if self.state.geometry == "radial":
            R0 = self.eq.major_radius / length
            Zo = self.eq.Zo / length
            return np.sqrt((batch.Y[:, 0] - R0) ** 2 + (batch.Y[:, 2] - Zo) ** 2) * length
        return np.maximum(batch.psi_p * self.scales.magnetic_field * length**2, 0.0)

    def field_at(self, batch: ParticleBatch) -> np.ndarray:
        """SC-E toroidal field at each particle, zero before initialization."""
        if not self.state.initialized:
            return np.zeros(len(batch))
        return self.interpolant(self.coordinate(batch))
