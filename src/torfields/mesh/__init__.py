"""Structured field mesh: population, auxiliary fields and interpolation."""

from torfields.mesh.auxiliary import compute_gc_fields, compute_gc_fields_2d, compute_gc_fields_3d
from torfields.mesh.builder import MeshFields, build_analytic_mesh, validity_flag
from torfields.mesh.external import MeshData, initialize_external_fields
from torfields.mesh.interpolation import MeshInterpolator, ProfileInterpolant

__all__ = [
    "MeshData",
    "MeshFields",
    "MeshInterpolator",
    "ProfileInterpolant",
    "build_analytic_mesh",
    "compute_gc_fields",
    "compute_gc_fields_2d",
    "compute_gc_fields_3d",
    "initialize_external_fields",
    "validity_flag",
]
