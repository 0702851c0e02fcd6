# holsteinfa/indexing.py
"""
Flat (site, tau) indexing shared by every component.

The phonon field, the acceleration vector Q and every frequency-domain vector
are stored flat, with the Ltau time slices of one site contiguous:

    index = site * Ltau + tau,   0 <= tau < Ltau,   0 <= site < nsites

so reshaping a flat vector to (nsites, Ltau) gives a per-site view.
"""

from __future__ import annotations

import numpy as np

__all__ = [
    "flat_index",
    "site_and_tau",
    "next_tau",
    "orbital_of",
    "site_view",
]


def flat_index(tau: int, site: int, Ltau: int) -> int:
    """Flat index of time slice `tau` on `site`."""
    return site * Ltau + tau


def site_and_tau(index: int, Ltau: int) -> tuple[int, int]:
    """Inverse of flat_index: index -> (site, tau)."""
    site, tau = divmod(index, Ltau)
    return site, tau


def next_tau(tau: int, Ltau: int) -> int:
    """Periodic successor on the imaginary-time axis (Ltau-1 -> 0)."""
    return (tau + 1) % Ltau


def orbital_of(site: int, norbits: int) -> int:
    """
    Orbital (sublattice) type of a site. Sites are numbered cell by cell,
    so site = cell * norbits + orbit.
    """
    return site % norbits


def site_view(v: np.ndarray, Ltau: int) -> np.ndarray:
    """
    (nsites, Ltau) view of a flat vector, view[site, tau] == v[flat_index(tau, site, Ltau)].
    Never copies; raises if `v` cannot be viewed that way.
    """
    if v.ndim != 1 or v.shape[0] % Ltau != 0:
        raise ValueError(f"flat vector of shape {v.shape} is not a multiple of Ltau={Ltau}")
    if not v.flags.c_contiguous:
        raise ValueError("site_view needs a contiguous flat vector")
    # contiguous 1-D reshape is always a view
    return v.reshape(v.shape[0] // Ltau, Ltau)
