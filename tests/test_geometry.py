"""Tests for coordinate transforms, confinement checks and vector helpers."""

from __future__ import annotations

import numpy as np
import pytest

from torfields.core.vector import cross, magnitude, normalize
from torfields.geometry.coordinates import (
    cart_to_cyl,
    cart_to_tor,
    cart_to_tor_check_if_confined,
    cyl_check_if_confined,
    cyl_to_cart,
    cyl_to_cart_vector,
    tor_to_cart,
)

# ============================================================
# Vector helpers
# ============================================================


class TestVector:
    def test_cross_matches_numpy(self, rng):
        A = rng.normal(size=(10, 3))
        B = rng.normal(size=(10, 3))
        np.testing.assert_allclose(cross(A, B), np.cross(A, B), rtol=1e-14, atol=1e-14)

    def test_normalize_unit_length(self, rng):
        A = rng.normal(size=(10, 3))
        np.testing.assert_allclose(magnitude(normalize(A)), 1.0, rtol=1e-14)

    def test_normalize_zero_row_is_nan(self):
        out = normalize(np.zeros((1, 3)))
        assert np.all(np.isnan(out))

    def test_magnitude(self):
        assert magnitude(np.array([[3.0, 4.0, 0.0]]))[0] == pytest.approx(5.0)


# ============================================================
# Coordinate transforms
# ============================================================


class TestCylindrical:
    def test_phi_in_range(self):
        X = np.array([[1.0, 0.0, 0.0], [0.0, -1.0, 0.5], [-1.0, -1e-12, 0.0]])
        Y = cart_to_cyl(X)
        assert np.all(Y[:, 1] >= 0.0)
        assert np.all(Y[:, 1] < 2.0 * np.pi)
        assert Y[1, 1] == pytest.approx(1.5 * np.pi)
        assert Y[1, 2] == 0.5

    def test_round_trip(self, rng):
        X = rng.normal(size=(50, 3))
        np.testing.assert_allclose(cyl_to_cart(cart_to_cyl(X)), X, rtol=1e-12, atol=1e-12)

    def test_vector_rotation(self):
        F = np.array([[1.0, 2.0, 3.0]])
        out = cyl_to_cart_vector(F, np.array([np.pi / 2]))
        np.testing.assert_allclose(out, [[-2.0, 1.0, 3.0]], atol=1e-14)


class TestToroidal:
    def test_round_trip(self, rng):
        n = 50
        Y = np.column_stack((
            rng.uniform(0.05, 0.4, n),
            rng.uniform(0.0, 2.0 * np.pi, n),
            rng.uniform(0.0, 2.0 * np.pi, n),
        ))
        X = tor_to_cart(Y, 1.5)
        np.testing.assert_allclose(cart_to_tor(X, 1.5), Y, rtol=1e-10, atol=1e-12)

    def test_zeta_measured_from_y_axis(self):
        X = np.array([[0.0, 2.0, 0.0], [2.0, 0.0, 0.0]])
        Y = cart_to_tor(X, 1.5)
        assert Y[0, 2] == pytest.approx(0.0)
        assert Y[1, 2] == pytest.approx(np.pi / 2)
        assert Y[0, 0] == pytest.approx(0.5)

    def test_confinement_flag(self):
        X = np.array([[0.0, 1.7, 0.0], [0.0, 2.0, 0.0], [0.0, 2.1, 0.0]])
        flag = np.ones(3, dtype=np.int64)
        cart_to_tor_check_if_confined(X, 1.5, 0.5, flag)
        # r = a is outside
        np.testing.assert_array_equal(flag, [1, 0, 0])

    def test_confinement_never_sets_flag(self):
        X = np.array([[0.0, 1.5, 0.0]])
        flag = np.zeros(1, dtype=np.int64)
        cart_to_tor_check_if_confined(X, 1.5, 0.5, flag)
        assert flag[0] == 0


class TestCylindricalConfinement:
    def test_minor_radius_check(self):
        Y = np.array([[1.5, 0.0, 0.49], [1.5, 0.0, 0.5], [1.0, 3.0, 0.0], [1.9, 1.0, 0.0]])
        flag = np.ones(4, dtype=np.int64)
        cyl_check_if_confined(Y, 1.5, 0.5, flag)
        np.testing.assert_array_equal(flag, [1, 0, 0, 1])

    def test_offset_axis(self):
        Y = np.array([[1.5, 0.0, 0.55], [1.5, 0.0, -0.3], [1.5, 0.0, 0.0]])
        flag = np.ones(3, dtype=np.int64)
        cyl_check_if_confined(Y, 1.5, 0.5, flag, Zo=0.3)
        np.testing.assert_array_equal(flag, [1, 0, 1])


def test_toroidal_round_trip_offset_axis():
    Y = np.array([[0.3, 1.0, 0.5], [0.1, 4.0, 2.0]])
    X = tor_to_cart(Y, 1.5, Zo=0.25)
    np.testing.assert_allclose(cart_to_tor(X, 1.5, Zo=0.25), Y, rtol=1e-10, atol=1e-12)
    flag = np.ones(2, dtype=np.int64)
    cart_to_tor_check_if_confined(X, 1.5, 0.2, flag, Zo=0.25)
    np.testing.assert_array_equal(flag, [0, 1])
