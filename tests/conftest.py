# tests/conftest.py
import os

# keep tests deterministic and lightweight
os.environ.setdefault("XLA_PYTHON_CLIENT_PREALLOCATE", "false")
os.environ.setdefault("JAX_PLATFORM_NAME", "cpu")

import pytest
import numpy as np

import matplotlib
matplotlib.use("Agg")  # no GUI in CI

from holsteinfa.model import HolsteinModel


@pytest.fixture(scope="session")
def rng():
    return np.random.default_rng(0)


@pytest.fixture
def make_model():
    """Factory for small models: ncells unit cells of `norbits` orbitals."""
    def _make(ncells=3, norbits=2, Ltau=8, beta=2.0, omega=(0.5, 2.0), lam=(0.3, 0.7), mu=0.0, phi=None):
        def per_site(v):
            arr = np.atleast_1d(np.asarray(v, dtype=float))
            if arr.size == 1:
                arr = np.full(norbits, arr[0])
            return np.tile(arr[:norbits], ncells)
        return HolsteinModel(
            beta=beta, Ltau=Ltau, norbits=norbits,
            omega=per_site(omega), lam=per_site(lam), mu=per_site(mu), phi=phi,
        )
    return _make


@pytest.fixture
def small_model(make_model, rng):
    m = make_model()
    m.phi[:] = rng.standard_normal(len(m))
    return m
