import numpy as np
import pytest

from holsteinfa.indexing import flat_index, next_tau, orbital_of, site_and_tau, site_view


def test_flat_index_is_a_bijection():
    nsites, Ltau = 5, 7
    seen = {flat_index(tau, site, Ltau) for site in range(nsites) for tau in range(Ltau)}
    assert seen == set(range(nsites * Ltau))
    for site in range(nsites):
        for tau in range(Ltau):
            assert site_and_tau(flat_index(tau, site, Ltau), Ltau) == (site, tau)


def test_site_block_is_contiguous():
    Ltau = 6
    assert flat_index(Ltau - 1, 2, Ltau) - flat_index(0, 2, Ltau) == Ltau - 1
    assert flat_index(0, 3, Ltau) == flat_index(Ltau - 1, 2, Ltau) + 1


def test_next_tau_wraps():
    assert next_tau(0, 4) == 1
    assert next_tau(3, 4) == 0
    assert next_tau(0, 1) == 0


def test_orbital_of_cycles_within_cell():
    assert [orbital_of(s, 3) for s in range(7)] == [0, 1, 2, 0, 1, 2, 0]


def test_site_view_matches_flat_index_and_shares_memory():
    nsites, Ltau = 4, 5
    v = np.arange(nsites * Ltau, dtype=float)
    view = site_view(v, Ltau)
    assert view.shape == (nsites, Ltau)
    for site in range(nsites):
        for tau in range(Ltau):
            assert view[site, tau] == v[flat_index(tau, site, Ltau)]
    view[2, 3] = -1.0
    assert v[flat_index(3, 2, Ltau)] == -1.0


def test_site_view_rejects_wrong_length():
    with pytest.raises(ValueError):
        site_view(np.zeros(10), 3)
