import numpy as np
import pytest

from holsteinfa.fourier import FourierAccelerator
from holsteinfa.langevin import LangevinDynamics
from holsteinfa.model import PhononAction


def test_phonon_force_matches_analytic_gradient(small_model):
    m = small_model
    phi = m.phi.reshape(m.nsites, m.Ltau)
    dtau = m.dtau
    w2 = (m.omega ** 2)[:, None]
    lap = 2.0 * phi - np.roll(phi, -1, axis=1) - np.roll(phi, 1, axis=1)
    expected = dtau * (w2 * phi + lap / dtau**2)

    force = np.asarray(PhononAction(m).force(m.phi))
    np.testing.assert_allclose(force.reshape(m.nsites, m.Ltau), expected, rtol=1e-12, atol=1e-12)


def test_step_without_acceleration_is_plain_langevin(small_model):
    dt = 0.01
    m = small_model
    action = PhononAction(m)
    acc = FourierAccelerator(m, mass=1.0, dt=dt, omega_min=10.0, omega_max=10.0)
    assert np.all(acc.Q == 1.0)

    phi0 = m.phi.copy()
    f = np.asarray(action.force(phi0))
    eta = np.random.default_rng(5).standard_normal(len(m))
    expected = phi0 - dt * f + np.sqrt(2.0 * dt) * eta

    LangevinDynamics(m, dt).step(m, acc, action.force, np.random.default_rng(5))
    np.testing.assert_allclose(m.phi, expected, rtol=1e-12, atol=1e-12)


def test_accelerated_step_matches_fft_reference(small_model):
    dt = 0.02
    m = small_model
    action = PhononAction(m)
    acc = FourierAccelerator(m, mass=0.8, dt=dt)
    shape = (m.nsites, m.Ltau)
    Q = acc.Q.reshape(shape)

    phi0 = m.phi.copy()
    f = np.asarray(action.force(phi0)).reshape(shape)
    eta = np.random.default_rng(9).standard_normal(len(m)).reshape(shape)
    drift = np.fft.ifft(Q * np.fft.fft(f, axis=1), axis=1).real
    noise = np.fft.ifft(np.sqrt(Q) * np.fft.fft(eta, axis=1), axis=1).real
    expected = phi0.reshape(shape) - dt * drift + np.sqrt(2.0 * dt) * noise

    LangevinDynamics(m, dt).step(m, acc, action.force, np.random.default_rng(9))
    np.testing.assert_allclose(m.phi.reshape(shape), expected, rtol=1e-12, atol=1e-12)


def test_phi_is_updated_in_place(small_model):
    m = small_model
    buf = m.phi
    action = PhononAction(m)
    acc = FourierAccelerator(m, mass=1.0, dt=0.01)
    dyn = LangevinDynamics(m, 0.01)
    rng = np.random.default_rng(0)
    for _ in range(3):
        dyn.step(m, acc, action.force, rng)
    assert m.phi is buf
    assert np.all(np.isfinite(m.phi))


def test_nonpositive_dt_raises(small_model):
    with pytest.raises(ValueError):
        LangevinDynamics(small_model, 0.0)
