"""Tests for the structured field mesh: analytic population, auxiliary
grad|B| / curl(b) generation, external-data rules and interpolation."""

from __future__ import annotations

import logging

import numpy as np
import pytest

from torfields.analytic.guiding_center import guiding_center_fields
from torfields.config import EquilibriumConfig, MeshConfig
from torfields.errors import FieldDataError
from torfields.mesh.auxiliary import compute_gc_fields, compute_gc_fields_2d
from torfields.mesh.builder import MeshFields, build_analytic_mesh, validity_flag
from torfields.mesh.external import MeshData, initialize_external_fields
from torfields.mesh.interpolation import MeshInterpolator, ProfileInterpolant

# ============================================================
# Helpers
# ============================================================


def _analytic_on_nodes(eq, mesh):
    """Closed-form GC outputs at the (R, Z) nodes, in mesh layout (3, nR, nZ)."""
    RR, ZZ = np.meshgrid(mesh.R, mesh.Z, indexing="ij")
    n = RR.size
    Y = np.column_stack((RR.ravel(), np.zeros(n), ZZ.ravel()))
    B, E = np.zeros((n, 3)), np.zeros((n, 3))
    gradB, curlb = np.zeros((n, 3)), np.zeros((n, 3))
    psi = np.zeros(n)
    guiding_center_fields(eq, Y, B, E, gradB, curlb, psi)
    shape = (3, len(mesh.R), len(mesh.Z))
    return gradB.T.reshape(shape), curlb.T.reshape(shape)


def _interior_error(numeric, exact):
    return np.max(np.abs(numeric[:, 1:-1, 1:-1] - exact[:, 1:-1, 1:-1]))


# ============================================================
# Analytic mesh
# ============================================================


class TestBuilder:
    def test_axisymmetric_shape(self, eq):
        mesh = build_analytic_mesh(eq, MeshConfig(nR=10, nZ=12))
        assert mesh.axisymmetric
        assert mesh.B.shape == (3, 10, 12)
        assert mesh.psi_p.shape == (10, 12)
        assert mesh.R[0] == pytest.approx(eq.major_radius - eq.minor_radius)
        assert mesh.R[-1] == pytest.approx(eq.major_radius + eq.minor_radius)

    def test_toroidal_grid_excludes_endpoint(self, eq):
        mesh = build_analytic_mesh(eq, MeshConfig(nR=8, nPHI=6, nZ=8))
        assert mesh.B.shape == (3, 8, 6, 8)
        np.testing.assert_allclose(mesh.PHI, 2.0 * np.pi * np.arange(6) / 6)

    def test_efield_optional(self, eq):
        mesh = build_analytic_mesh(eq, MeshConfig(nR=8, nZ=8, Efield=False))
        assert mesh.E is None

    def test_efield_toroidal(self, eq_params):
        eq = EquilibriumConfig(**eq_params, E0=1.0)
        mesh = build_analytic_mesh(eq, MeshConfig(nR=8, nZ=8))
        np.testing.assert_allclose(mesh.E[1], eq.major_radius / mesh.radius_grid(), rtol=1e-12)
        np.testing.assert_array_equal(mesh.E[0], 0.0)

    def test_bad_field_shape_rejected(self):
        with pytest.raises(ValueError, match="B must have shape"):
            MeshFields(R=np.linspace(1, 2, 4), Z=np.linspace(-1, 1, 5), B=np.zeros((3, 5, 4)))


class TestValidityFlag:
    def test_two_ghost_layers(self):
        flag = validity_flag((6, 7))
        assert flag.sum() == 2 * 3
        assert np.all(flag[2:4, 2:5] == 1)

    def test_phi_not_ghosted(self):
        flag = validity_flag((6, 4, 7))
        assert flag.sum() == 2 * 4 * 3


# ============================================================
# Auxiliary fields
# ============================================================


class TestAuxiliaryFields:
    def test_constant_toroidal_field(self):
        R = np.linspace(1.0, 2.0, 11)
        Z = np.linspace(-0.5, 0.5, 9)
        B = np.zeros((3, 11, 9))
        B[1] = -3.0
        mesh = MeshFields(R=R, Z=Z, B=B)
        compute_gc_fields_2d(mesh)

        np.testing.assert_array_equal(mesh.gradB, 0.0)
        np.testing.assert_array_equal(mesh.curlb[0], 0.0)
        np.testing.assert_array_equal(mesh.curlb[1], 0.0)
        np.testing.assert_allclose(mesh.curlb[2], np.broadcast_to(-1.0 / R[:, None], (11, 9)),
                                   rtol=1e-12)

    def test_second_order_convergence(self, eq):
        errors = []
        for n in (21, 41):
            mesh = build_analytic_mesh(eq, MeshConfig(nR=n, nZ=n))
            compute_gc_fields_2d(mesh)
            gradB, curlb = _analytic_on_nodes(eq, mesh)
            errors.append((_interior_error(mesh.gradB, gradB), _interior_error(mesh.curlb, curlb)))

        (g1, c1), (g2, c2) = errors
        assert g1 / g2 > 3.0
        assert c1 / c2 > 3.0

    def test_interior_accuracy(self, eq):
        mesh = build_analytic_mesh(eq, MeshConfig(nR=81, nZ=81))
        compute_gc_fields(mesh)
        gradB, curlb = _analytic_on_nodes(eq, mesh)
        scale = np.max(np.abs(gradB))
        assert _interior_error(mesh.gradB, gradB) < 1e-2 * scale

    def test_axisymmetric_3d_matches_2d(self, eq):
        mesh2 = build_analytic_mesh(eq, MeshConfig(nR=16, nZ=16))
        mesh3 = build_analytic_mesh(eq, MeshConfig(nR=16, nPHI=6, nZ=16))
        compute_gc_fields(mesh2)
        compute_gc_fields(mesh3)
        for k in range(6):
            np.testing.assert_allclose(mesh3.gradB[:, :, k, :], mesh2.gradB, rtol=1e-13, atol=1e-15)
            np.testing.assert_allclose(mesh3.curlb[:, :, k, :], mesh2.curlb, rtol=1e-13, atol=1e-15)

    def test_periodic_toroidal_derivative(self):
        nPHI = 8
        R = np.linspace(1.0, 2.0, 6)
        PHI = 2.0 * np.pi * np.arange(nPHI) / nPHI
        Z = np.linspace(-0.5, 0.5, 5)
        B = np.zeros((3, 6, nPHI, 5))
        B[1] = -(1.0 + 0.1 * np.cos(PHI))[None, :, None]
        mesh = MeshFields(R=R, Z=Z, B=B, PHI=PHI)
        compute_gc_fields(mesh)

        h = 2.0 * np.pi / nPHI
        expected = -0.1 * np.sin(PHI)[None, :, None] * np.sin(h) / h / R[:, None, None]
        np.testing.assert_allclose(mesh.gradB[1], np.broadcast_to(expected, (6, nPHI, 5)),
                                   rtol=1e-12, atol=1e-14)
        np.testing.assert_allclose(mesh.curlb[2], np.broadcast_to(-1.0 / R[:, None, None],
                                                                  (6, nPHI, 5)), rtol=1e-12)


# ============================================================
# External mesh data
# ============================================================


class TestExternalFields:
    @pytest.fixture
    def source(self, eq):
        return build_analytic_mesh(eq, MeshConfig(nR=12, nZ=12))

    def test_missing_B_is_fatal(self, eq, source):
        data = MeshData(R=source.R, Z=source.Z)
        with pytest.raises(FieldDataError, match="magnetic field"):
            initialize_external_fields(eq, MeshConfig(source="external"), data)

    def test_missing_flux_is_fatal_when_required(self, eq, source):
        data = MeshData(R=source.R, Z=source.Z, B=source.B)
        with pytest.raises(FieldDataError, match="poloidal flux"):
            initialize_external_fields(eq, MeshConfig(source="external", Bflux=True), data)

    def test_missing_flux_allowed_when_not_required(self, eq, source):
        data = MeshData(R=source.R, Z=source.Z, B=source.B)
        mesh = initialize_external_fields(eq, MeshConfig(source="external"), data)
        assert mesh.psi_p is None

    def test_missing_derivatives_zero_filled(self, eq, source, caplog):
        data = MeshData(R=source.R, Z=source.Z, B=source.B)
        cfg = MeshConfig(source="external", dBfield=True)
        with caplog.at_level(logging.WARNING, logger="torfields.mesh.external"):
            mesh = initialize_external_fields(eq, cfg, data)
        np.testing.assert_array_equal(mesh.dBdR, 0.0)
        np.testing.assert_array_equal(mesh.dBdZ, 0.0)
        # axisymmetric: no toroidal derivative needed
        assert mesh.dBdPHI is None
        assert any("zero-filled" in rec.message for rec in caplog.records)

    def test_missing_efield_uses_analytic(self, eq_params):
        eq = EquilibriumConfig(**eq_params, E0=0.5)
        source = build_analytic_mesh(eq, MeshConfig(nR=12, nZ=12))
        data = MeshData(R=source.R, Z=source.Z, B=source.B, psi_p=source.psi_p)
        mesh = initialize_external_fields(eq, MeshConfig(source="external"), data)
        np.testing.assert_allclose(mesh.E, source.E, rtol=1e-12)

    def test_default_flag_and_gc_fields(self, eq, source):
        data = MeshData(R=source.R, Z=source.Z, B=source.B)
        mesh = initialize_external_fields(eq, MeshConfig(source="external"), data)
        np.testing.assert_array_equal(mesh.flag, 1)
        compute_gc_fields(source)
        np.testing.assert_allclose(mesh.gradB, source.gradB, rtol=1e-12)

    def test_no_gc_fields_for_full_orbit(self, eq, source):
        data = MeshData(R=source.R, Z=source.Z, B=source.B)
        mesh = initialize_external_fields(
            eq, MeshConfig(source="external"), data, guiding_center=False,
        )
        assert mesh.gradB is None


# ============================================================
# Interpolation
# ============================================================


class TestMeshInterpolator:
    @pytest.fixture
    def eq_E(self, eq_params):
        return EquilibriumConfig(**eq_params, E0=1.0)

    @pytest.fixture
    def mesh(self, eq_E):
        mesh = build_analytic_mesh(eq_E, MeshConfig(nR=101, nZ=101))
        compute_gc_fields(mesh)
        return mesh

    def _outputs(self, n):
        return {
            "B": np.zeros((n, 3)), "E": np.zeros((n, 3)), "gradB": np.zeros((n, 3)),
            "curlb": np.zeros((n, 3)), "psi_p": np.zeros(n),
        }

    def test_matches_analytic(self, eq_E, mesh, rng):
        n = 30
        rm = 0.3 * rng.uniform(0.0, 1.0, n)
        theta = rng.uniform(0.0, 2.0 * np.pi, n)
        Y = np.column_stack((1.5 + rm * np.cos(theta), np.zeros(n), rm * np.sin(theta)))
        flag = np.ones(n, dtype=np.int64)
        hint = np.zeros(n, dtype=np.int64)
        out = self._outputs(n)
        MeshInterpolator(mesh).interpolate(Y, flag, hint, out)

        exact = self._outputs(n)
        guiding_center_fields(eq_E, Y, exact["B"], exact["E"], exact["gradB"],
                              exact["curlb"], exact["psi_p"])
        assert np.all(flag == 1)
        np.testing.assert_allclose(out["B"], exact["B"], rtol=1e-3, atol=1e-3)
        np.testing.assert_allclose(out["E"], exact["E"], rtol=1e-3, atol=1e-4)
        np.testing.assert_allclose(out["psi_p"], exact["psi_p"], atol=1e-3 * eq_E.psip_edge)

    def test_outside_mesh_unconfined(self, mesh):
        h = mesh.R[1] - mesh.R[0]
        Y = np.array([
            [1.5 + 0.6, 0.0, 0.0],           # beyond the mesh
            [mesh.R[0] + 0.4 * h, 0.0, 0.0],  # in the ghost layer
            [1.5, 0.0, 0.0],
        ])
        flag = np.ones(3, dtype=np.int64)
        out = self._outputs(3)
        out["B"][:] = -9.0
        MeshInterpolator(mesh).interpolate(Y, flag, np.zeros(3, dtype=np.int64), out)
        np.testing.assert_array_equal(flag, [0, 0, 1])
        np.testing.assert_array_equal(out["B"][:2], -9.0)

    def test_unconfined_input_stays_unconfined(self, mesh):
        Y = np.array([[1.5, 0.0, 0.0]])
        flag = np.zeros(1, dtype=np.int64)
        out = self._outputs(1)
        MeshInterpolator(mesh).interpolate(Y, flag, np.zeros(1, dtype=np.int64), out)
        assert flag[0] == 0
        np.testing.assert_array_equal(out["B"], 0.0)

    def test_hint_is_lower_radial_index(self, mesh):
        Y = np.array([[mesh.R[40] + 1e-4, 0.0, 0.0]])
        hint = np.zeros(1, dtype=np.int64)
        MeshInterpolator(mesh).interpolate(Y, np.ones(1, dtype=np.int64), hint, {})
        assert hint[0] == 40

    def test_periodic_phi(self, eq):
        mesh2 = build_analytic_mesh(eq, MeshConfig(nR=21, nZ=21))
        mesh3 = build_analytic_mesh(eq, MeshConfig(nR=21, nPHI=4, nZ=21))
        Y = np.array([[1.6, 2.0 * np.pi - 0.01, 0.05], [1.6, -0.3, 0.05], [1.6, 7.0, 0.05]])
        B2, B3 = np.zeros((3, 3)), np.zeros((3, 3))
        MeshInterpolator(mesh2).interpolate(
            Y, np.ones(3, dtype=np.int64), np.zeros(3, dtype=np.int64), {"B": B2})
        flag = np.ones(3, dtype=np.int64)
        MeshInterpolator(mesh3).interpolate(Y, flag, np.zeros(3, dtype=np.int64), {"B": B3})
        assert np.all(flag == 1)
        np.testing.assert_allclose(B3, B2, rtol=1e-12)


class TestProfileInterpolant:
    def test_cubic_reproduces_quadratic(self):
        grid = np.linspace(0.0, 1.0, 11)
        interp = ProfileInterpolant()
        assert not interp.ready
        interp.reinitialize(grid, grid**2)
        assert interp.ready
        np.testing.assert_allclose(interp(np.array([0.37, 0.9])), [0.37**2, 0.81], rtol=1e-10)

    def test_zero_outside_grid(self):
        grid = np.linspace(0.0, 1.0, 11)
        interp = ProfileInterpolant()
        interp.reinitialize(grid, np.ones(11))
        np.testing.assert_array_equal(interp(np.array([-0.1, 1.2])), 0.0)

    def test_use_before_reinitialize(self):
        with pytest.raises(RuntimeError):
            ProfileInterpolant()(np.array([0.5]))

    def test_short_grid_lowers_degree(self):
        interp = ProfileInterpolant()
        interp.reinitialize(np.array([0.0, 0.5, 1.0]), np.array([0.0, 1.0, 2.0]))
        assert interp(np.array([0.25]))[0] == pytest.approx(0.5)
