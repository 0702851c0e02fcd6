import tracemalloc

import numpy as np
import pytest

from holsteinfa.greens import ConstantGreensEstimator, TabulatedGreensEstimator
from holsteinfa.measurements import (
    OBSERVABLES,
    LocalMeasurements,
    Observable,
    accumulate,
    format_local_measurements,
    initialize_local_measurements_file,
    local_measurements_header,
    normalize,
    reset,
    write_local_measurements,
)
from holsteinfa.model import HolsteinModel


def _reference(model, G1, G2):
    """Straight per-(site, τ) loop over the defining formulas."""
    out = np.zeros((len(OBSERVABLES), model.norbits))
    Ltau, dtau = model.Ltau, model.dtau
    norm = (model.nsites // model.norbits) * Ltau
    phi = model.phi
    for site in range(model.nsites):
        o = site % model.norbits
        for tau in range(Ltau):
            p = phi[site * Ltau + tau]
            dp = phi[site * Ltau + (tau + 1) % Ltau] - p
            g1, g2 = G1[site, tau], G2[site, tau]
            out[0, o] += (2.0 - g1 - g2) / norm
            out[1, o] += (1.0 - g1) * (1.0 - g2) / norm
            out[2, o] += (0.5 / dtau - dp * dp / (2 * dtau * dtau)) / norm
            out[3, o] += model.omega[site] ** 2 * p * p / 2.0 / norm
            out[4, o] += model.lam[site] * p * (2.0 - g1 - g2) / norm
            out[5, o] += p / norm
            out[6, o] += p * p / norm
    return out


def test_matches_per_site_loop(small_model, rng):
    shape = (small_model.nsites, small_model.Ltau)
    G1, G2 = rng.random(shape), rng.random(shape)
    c = LocalMeasurements(small_model)
    accumulate(c, small_model, TabulatedGreensEstimator(G1), TabulatedGreensEstimator(G2))
    np.testing.assert_allclose(c.data, _reference(small_model, G1, G2), rtol=1e-12, atol=1e-14)


def test_accumulate_reset_accumulate_equals_single(small_model, rng):
    shape = (small_model.nsites, small_model.Ltau)
    est_a = TabulatedGreensEstimator(rng.random(shape))
    est_b = TabulatedGreensEstimator(rng.random(shape))

    once = LocalMeasurements(small_model)
    accumulate(once, small_model, est_a, est_b)

    twice = LocalMeasurements(small_model)
    accumulate(twice, small_model, est_a, est_b)
    reset(twice)
    assert np.all(twice.data == 0.0)
    accumulate(twice, small_model, est_a, est_b)
    assert np.array_equal(once.data, twice.data)


def test_half_filling_density_is_exactly_one(make_model):
    model = make_model(ncells=2, norbits=2, Ltau=8)  # two sites per orbital
    est = ConstantGreensEstimator(0.5)
    c = LocalMeasurements(model)
    accumulate(c, model, est, est)
    assert np.all(c["density"] == 1.0)
    assert np.all(c["double_occ"] == 0.25)

    bin_size = 5
    reset(c)
    for _ in range(bin_size):
        accumulate(c, model, est, est)
    normalize(c, bin_size)
    assert np.all(c["density"] == 1.0)
    assert np.all(c["phi"] == 0.0)

    ncalls = model.sites_per_orbital * model.Ltau
    reset(c)
    for _ in range(ncalls):
        accumulate(c, model, est, est)
    normalize(c, ncalls)
    assert np.all(c["density"] == 1.0)


def test_single_site_alternating_field():
    model = HolsteinModel(beta=1.0, Ltau=4, norbits=1, omega=[1.0], lam=[0.0], mu=[0.0],
                          phi=[1.0, -1.0, 1.0, -1.0])
    assert model.dtau == 0.25
    est = ConstantGreensEstimator(0.0)
    c = LocalMeasurements(model)
    accumulate(c, model, est, est)
    assert c["phonon_pot"][0] == 0.5
    assert c["density"][0] == 2.0
    assert c["double_occ"][0] == 1.0
    assert c["elph_energy"][0] == 0.0
    assert c["phi"][0] == 0.0
    assert c["phi_squared"][0] == 1.0
    # 1/(2Δτ) - (±2)²/(2Δτ²) = 2 - 32
    assert c["phonon_kin"][0] == -30.0


def test_time_axis_wraps():
    model = HolsteinModel(beta=3.0, Ltau=3, norbits=1, omega=[0.0], lam=[0.0], mu=[0.0],
                          phi=[0.0, 0.0, 1.0])
    est = ConstantGreensEstimator(0.5)
    c = LocalMeasurements(model)
    accumulate(c, model, est, est)
    # dtau = 1: jumps 0->0, 0->1, 1->0 (wrap); KE = 1/2 - Δϕ²/2 per slice
    assert c["phonon_kin"][0] == pytest.approx((0.5 + 0.0 + 0.0) / 3.0)


def test_orbitals_are_kept_apart(make_model):
    model = make_model(ncells=3, norbits=2, Ltau=4)
    phi = model.phi.reshape(model.nsites, model.Ltau)
    phi[0::2] = 2.0  # orbit 0 only
    est = ConstantGreensEstimator(0.5)
    c = LocalMeasurements(model)
    accumulate(c, model, est, est)
    assert c["phi"][0] == pytest.approx(2.0)
    assert c["phi"][1] == 0.0
    assert c["phi_squared"][0] == pytest.approx(4.0)


def test_estimator_only_sees_diagonal_equal_time(small_model):
    calls = []

    class Recorder:
        def estimate(self, i, j, tau1, tau2):
            calls.append((i, j, tau1, tau2))
            return 0.5

    c = LocalMeasurements(small_model)
    accumulate(c, small_model, Recorder(), Recorder())
    assert len(calls) == 2 * small_model.nsites * small_model.Ltau
    assert all(i == j and t1 == t2 for i, j, t1, t2 in calls)


def test_contract_violations_raise(small_model, make_model):
    c = LocalMeasurements(small_model)
    with pytest.raises(ValueError):
        normalize(c, 0)
    other = make_model(ncells=1)
    est = ConstantGreensEstimator()
    with pytest.raises(ValueError):
        accumulate(c, other, est, est)


def test_container_name_and_enum_lookup_agree(small_model):
    c = LocalMeasurements(small_model)
    c.data[Observable.PHONON_POT, 1] = 3.0
    assert c["phonon_pot"][1] == 3.0
    assert list(c) == list(OBSERVABLES)
    assert c.as_dict()["phonon_pot"][1] == 3.0


def test_table_layout(tmp_path, make_model):
    model = make_model(ncells=1, norbits=2)
    c = LocalMeasurements(model)
    c.data[:] = np.arange(c.data.size, dtype=float).reshape(c.data.shape) / 8.0
    header = local_measurements_header()
    assert header == "orbit,density,double_occ,phonon_kin,phonon_pot,elph_energy,phi,phi_squared"
    rows = format_local_measurements(c).splitlines()
    assert rows[0] == "1,0.000000,0.250000,0.500000,0.750000,1.000000,1.250000,1.500000"
    assert rows[1].startswith("2,0.125000,0.375000")

    path = initialize_local_measurements_file(str(tmp_path / "local_measurements.out"))
    write_local_measurements(path, c)
    write_local_measurements(path, c)
    lines = open(path).read().splitlines()
    assert lines[0] == header
    assert len(lines) == 1 + 2 * model.norbits


def test_accumulate_reuses_owned_scratch(make_model):
    model = make_model(ncells=64, norbits=2, Ltau=64)
    model.phi[:] = np.linspace(-1.0, 1.0, len(model))
    est = ConstantGreensEstimator(0.5)
    c = LocalMeasurements(model)
    buffers = [c.g1, c.g2, c.dphi, c.occupation, c.work, c.omega2, c.site_terms]
    accumulate(c, model, est, est)

    tracemalloc.start()
    try:
        tracemalloc.reset_peak()
        base, _ = tracemalloc.get_traced_memory()
        accumulate(c, model, est, est)
        _, peak = tracemalloc.get_traced_memory()
    finally:
        tracemalloc.stop()

    assert peak - base < model.phi.nbytes // 4
    assert all(a is b for a, b in zip(buffers, [c.g1, c.g2, c.dphi, c.occupation, c.work, c.omega2, c.site_terms]))


def test_normalize_rejects_fractional_bin_size(small_model):
    c = LocalMeasurements(small_model)
    c.data[:] = 4.0
    with pytest.raises(ValueError):
        normalize(c, 2.5)
    normalize(c, np.int64(2))
    assert np.all(c.data == 2.0)
    normalize(c, 2.0)
    assert np.all(c.data == 1.0)
