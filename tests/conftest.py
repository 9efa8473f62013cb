"""Pytest configuration and shared fixtures."""

from __future__ import annotations

import numpy as np
import pytest

from torfields.analytic.guiding_center import guiding_center_fields
from torfields.config import EquilibriumConfig, FieldsConfig
from torfields.core.bases import ParticleBatch


@pytest.fixture
def eq_params():
    """Small circular equilibrium, q from 1 on axis to 3 at the edge."""
    return {
        "B0": 2.0,
        "major_radius": 1.5,
        "minor_radius": 0.5,
        "qa": 3.0,
        "qo": 1.0,
    }


@pytest.fixture
def eq(eq_params):
    return EquilibriumConfig(**eq_params)


@pytest.fixture
def sample_config_dict(eq_params):
    """Minimal valid FieldsConfig as a dictionary."""
    return {
        "field_model": "gc_analytical",
        "equilibrium": dict(eq_params),
    }


@pytest.fixture
def small_config(sample_config_dict):
    return FieldsConfig(**sample_config_dict)


@pytest.fixture
def rng():
    return np.random.default_rng(1234)


def make_gc_batch(
    eq: EquilibriumConfig,
    n: int,
    rng: np.random.Generator,
    p_par: float = 0.5,
    r_max: float = 0.9,
) -> ParticleBatch:
    """Guiding centers spread over the plasma cross-section with fields evaluated."""
    batch = ParticleBatch.allocate(n)
    rm = eq.minor_radius * r_max * np.sqrt(rng.uniform(0.0, 1.0, n))
    theta = rng.uniform(0.0, 2.0 * np.pi, n)
    batch.Y[:, 0] = eq.major_radius + rm * np.cos(theta)
    batch.Y[:, 1] = rng.uniform(0.0, 2.0 * np.pi, n)
    batch.Y[:, 2] = eq.Zo + rm * np.sin(theta)
    batch.V[:, 0] = p_par
    guiding_center_fields(
        eq, batch.Y, batch.B, batch.E, batch.gradB, batch.curlb, batch.psi_p,
        flag=batch.flag_con,
    )
    return batch


@pytest.fixture
def gc_batch(eq, rng):
    """200 guiding centers inside 90% of the minor radius."""
    return make_gc_batch(eq, 200, rng)


@pytest.fixture
def batch_factory(eq, rng):
    """Build guiding-center batches on the shared equilibrium."""

    def _make(n: int, **kwargs) -> ParticleBatch:
        return make_gc_batch(eq, n, rng, **kwargs)

    return _make
