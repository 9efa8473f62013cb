"""Pydantic v2 configuration system for toroidal field evaluation.

Provides validated, typed configuration with submodels for the analytic
equilibrium, the optional electric-field pulse, the field mesh, the
self-consistent E-field (SC-E) solver, timestepping and unit scales.
Supports JSON I/O and cross-field validation.
"""

from __future__ import annotations

import json
import math
from pathlib import Path

from pydantic import BaseModel, Field, model_validator

from torfields.constants import c, e, m_e
from torfields.core.bases import FieldModel


class EquilibriumConfig(BaseModel):
    """Large-aspect-ratio analytic tokamak equilibrium."""

    B0: float = Field(..., gt=0, description="On-axis toroidal field [T]")
    major_radius: float = Field(..., gt=0, description="Magnetic axis major radius R0 [m]")
    minor_radius: float = Field(..., gt=0, description="Plasma minor radius a [m]")
    qa: float = Field(..., gt=0, description="Safety factor at the plasma edge")
    qo: float = Field(..., gt=0, description="Safety factor on axis")
    current_direction: str = Field(
        "PARALLEL",
        description="Plasma current relative to the toroidal field: 'PARALLEL' or 'ANTI-PARALLEL'",
    )
    E0: float = Field(0.0, description="Toroidal electric field amplitude on axis [V/m]")
    Zo: float = Field(0.0, description="Vertical position of the magnetic axis [m]")

    @model_validator(mode="after")
    def check_profile(self) -> EquilibriumConfig:
        if self.minor_radius >= self.major_radius:
            raise ValueError("minor_radius must be less than major_radius")
        if self.qa <= self.qo:
            raise ValueError("qa must be greater than qo")
        if self.current_direction not in ("PARALLEL", "ANTI-PARALLEL"):
            raise ValueError(
                f"current_direction must be 'PARALLEL' or 'ANTI-PARALLEL', "
                f"got '{self.current_direction}'"
            )
        return self

    @property
    def lam(self) -> float:
        """Safety-factor profile width: q(r) = qo (1 + r^2 / lam^2)."""
        return self.minor_radius / math.sqrt(self.qa / self.qo - 1.0)

    @property
    def bp_sign(self) -> float:
        return 1.0 if self.current_direction == "PARALLEL" else -1.0

    @property
    def psip_edge(self) -> float:
        """Poloidal flux at r = a on the outboard midplane."""
        lam = self.lam
        return lam**2 * self.B0 / (2.0 * self.qo) * math.log(1.0 + (self.minor_radius / lam) ** 2)


class PulseConfig(BaseModel):
    """Dynamic toroidal electric-field pulse."""

    enabled: bool = Field(False, description="Add the Gaussian E-field pulse")
    E_dyn: float = Field(0.0, description="Pulse amplitude on axis [V/m]")
    E_pulse: float = Field(0.0, ge=0, description="Pulse centre time [s]")
    E_width: float = Field(1.0, gt=0, description="Pulse width [s]")


class MeshConfig(BaseModel):
    """Structured (R, phi, Z) field mesh."""

    nR: int = Field(64, ge=3, description="Radial grid points")
    nPHI: int = Field(1, ge=1, description="Toroidal grid points (1 = axisymmetric)")
    nZ: int = Field(64, ge=3, description="Vertical grid points")
    source: str = Field("analytic", description="Mesh source: 'analytic' or 'external'")
    Bflux: bool = Field(False, description="Poloidal flux is required on the mesh")
    dBfield: bool = Field(False, description="Field derivatives are required on the mesh")
    Efield: bool = Field(True, description="Electric field is sampled on the mesh")

    @model_validator(mode="after")
    def validate_source(self) -> MeshConfig:
        if self.source not in ("analytic", "external"):
            raise ValueError(f"mesh source must be 'analytic' or 'external', got '{self.source}'")
        if self.nPHI == 2:
            raise ValueError("nPHI must be 1 (axisymmetric) or at least 3")
        return self

    @property
    def axisymmetric(self) -> bool:
        return self.nPHI == 1


class SelfConsistentConfig(BaseModel):
    """1-D self-consistent toroidal electric field."""

    enabled: bool = Field(False, description="Evolve the SC-E field")
    geometry: str = Field("radial", description="Solve coordinate: 'radial' or 'flux'")
    dim_1D: int = Field(100, ge=4, description="1-D grid points")
    dt_E_SC: float = Field(1e-7, gt=0, description="Requested SC-E update interval [s]")
    Ip_exp: float = Field(1e6, description="Experimental plasma current [A]")
    deposition: str | None = Field(
        None,
        description="Deposition policy 'ngp', 'linear' or 'gaussian' (None = geometry default)",
    )
    psip_lim: float | None = Field(
        None, gt=0,
        description="Flux grid limit [Wb/rad] (None = analytic edge flux)",
    )

    @model_validator(mode="after")
    def validate_choices(self) -> SelfConsistentConfig:
        if self.geometry not in ("radial", "flux"):
            raise ValueError(f"geometry must be 'radial' or 'flux', got '{self.geometry}'")
        if self.deposition is not None and self.deposition not in ("ngp", "linear", "gaussian"):
            raise ValueError(
                f"deposition must be 'ngp', 'linear' or 'gaussian', got '{self.deposition}'"
            )
        if self.Ip_exp == 0.0:
            raise ValueError("Ip_exp must be non-zero")
        return self

    @property
    def deposition_policy(self) -> str:
        if self.deposition is not None:
            return self.deposition
        return "ngp" if self.geometry == "radial" else "gaussian"


class TimeConfig(BaseModel):
    """Orbit-integrator timestepping."""

    dt: float = Field(1e-9, gt=0, description="Orbit timestep [s]")
    t_steps: int = Field(1000, ge=1, description="Number of orbit steps")
    t_skip: int = Field(10, ge=1, description="Orbit steps between outputs")
    init_time: float = Field(0.0, description="Simulation start time [s]")


class ScaleConfig(BaseModel):
    """Characteristic scales of the dimensionless internal representation."""

    length: float = Field(1.0, gt=0, description="Length scale [m]")
    magnetic_field: float = Field(1.0, gt=0, description="Magnetic field scale [T]")
    electric_field: float = Field(1.0, gt=0, description="Electric field scale [V/m]")

    @classmethod
    def relativistic(cls, B0: float, mass: float = m_e, charge: float = e) -> ScaleConfig:
        """Scales built from the cyclotron frequency and the speed of light."""
        wc = abs(charge) * B0 / mass
        return cls(length=c / wc, magnetic_field=B0, electric_field=c * B0)


class FieldsConfig(BaseModel):
    """Top-level field configuration."""

    field_model: FieldModel = Field(FieldModel.GC_ANALYTICAL, description="Field-evaluation path")
    guiding_center: bool = Field(
        True, description="Particles carry guiding-center coordinates (mesh path only)",
    )

    equilibrium: EquilibriumConfig
    pulse: PulseConfig = Field(default_factory=PulseConfig)
    mesh: MeshConfig | None = Field(None, description="Field mesh (required for the mesh path)")
    sc: SelfConsistentConfig = Field(default_factory=SelfConsistentConfig)
    time: TimeConfig = Field(default_factory=TimeConfig)
    scales: ScaleConfig = Field(default_factory=ScaleConfig)

    @model_validator(mode="after")
    def validate_model(self) -> FieldsConfig:
        if self.field_model is FieldModel.MESH_INTERPOLATED and self.mesh is None:
            raise ValueError("field_model 'mesh' requires a mesh section")
        if self.sc.enabled:
            gc = self.field_model.guiding_center or (
                self.field_model is FieldModel.MESH_INTERPOLATED and self.guiding_center
            )
            if not gc:
                raise ValueError("self-consistent E field requires a guiding-center field model")
            if self.sc.dt_E_SC < self.time.dt:
                raise ValueError("sc.dt_E_SC must be at least one orbit timestep")
        if (
            self.sc.enabled
            and self.sc.geometry == "flux"
            and self.field_model is FieldModel.MESH_INTERPOLATED
            and self.mesh is not None
            and not self.mesh.Bflux
        ):
            raise ValueError("flux-geometry SC-E on a mesh requires mesh.Bflux")
        return self

    # --- I/O helpers ---

    @classmethod
    def from_file(cls, path: str | Path) -> FieldsConfig:
        """Load configuration from a JSON file."""
        path = Path(path)
        with path.open() as f:
            data = json.load(f)
        return cls(**data)

    def to_json(self, path: str | Path | None = None) -> str:
        """Serialize to JSON string, optionally writing to file."""
        out = self.model_dump_json(indent=2)
        if path is not None:
            Path(path).write_text(out)
        return out
