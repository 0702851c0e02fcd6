# holsteinfa/measurements.py
"""
Local (on-site, equal-time) measurements, accumulated per orbital type.

One call to `accumulate` adds one sample: for every site and time slice,
with two independent estimates G1, G2 of G_ii(τ,τ),

    density      2 - G1 - G2
    double_occ   (1 - G1)(1 - G2)
    phonon_kin   1/(2Δτ) - (ϕ(τ+1) - ϕ(τ))² / (2Δτ²)
    phonon_pot   ω² ϕ(τ)² / 2
    elph_energy  λ ϕ(τ) (2 - G1 - G2)
    phi          ϕ(τ)
    phi_squared  ϕ(τ)²

each divided by (sites per orbital) * Ltau, so a single call adds the
site/time average for each orbital. Using two estimates keeps the product
in double_occ unbiased.
"""

from __future__ import annotations

from enum import IntEnum

import numpy as np

from .indexing import next_tau, site_view

__all__ = [
    "Observable",
    "OBSERVABLES",
    "LocalMeasurements",
    "accumulate",
    "normalize",
    "reset",
    "local_measurements_header",
    "format_local_measurements",
    "initialize_local_measurements_file",
    "write_local_measurements",
]


class Observable(IntEnum):
    DENSITY = 0
    DOUBLE_OCC = 1
    PHONON_KIN = 2
    PHONON_POT = 3
    ELPH_ENERGY = 4
    PHI = 5
    PHI_SQUARED = 6

    @property
    def label(self) -> str:
        return self.name.lower()


OBSERVABLES = tuple(o.label for o in Observable)


class LocalMeasurements:
    """
    Running per-orbital sums, data[observable, orbit].

    Also owns the scratch used by `accumulate` (Green's estimates, Δϕ, the
    occupation and one work array, all (nsites, Ltau)) so a sample does not
    allocate.
    """

    def __init__(self, model):
        self.nsites = int(model.nsites)
        self.Ltau = int(model.Ltau)
        self.norbits = int(model.norbits)
        self.normalization = model.sites_per_orbital * self.Ltau

        self.data = np.zeros((len(Observable), self.norbits), dtype=np.float64)
        self.site_orbital = np.array([model.orbital(site) for site in range(self.nsites)], dtype=np.intp)

        shape = (self.nsites, self.Ltau)
        self.g1 = np.empty(shape, dtype=np.float64)
        self.g2 = np.empty(shape, dtype=np.float64)
        self.dphi = np.empty(shape, dtype=np.float64)
        self.occupation = np.empty(shape, dtype=np.float64)
        self.work = np.empty(shape, dtype=np.float64)
        self.omega2 = np.empty(self.nsites, dtype=np.float64)
        self.site_terms = np.empty((len(Observable), self.nsites), dtype=np.float64)

    def __getitem__(self, key) -> np.ndarray:
        if isinstance(key, str):
            key = Observable[key.upper()]
        return self.data[key]

    def __iter__(self):
        return iter(OBSERVABLES)

    def as_dict(self) -> dict[str, np.ndarray]:
        return {o.label: self.data[o].copy() for o in Observable}


def accumulate(container: LocalMeasurements, model, estimator_a, estimator_b) -> None:
    """Add one sample of every local observable to `container`."""
    if (model.nsites, model.Ltau, model.norbits) != (
        container.nsites, container.Ltau, container.norbits
    ):
        raise ValueError("model geometry does not match the measurement container")

    Ltau = container.Ltau
    dtau = model.dtau
    g1, g2 = container.g1, container.g2
    for site in range(container.nsites):
        for tau in range(Ltau):
            g1[site, tau] = estimator_a.estimate(site, site, tau, tau)
            g2[site, tau] = estimator_b.estimate(site, site, tau, tau)

    phi = site_view(model.phi, Ltau)
    dphi, n, work = container.dphi, container.occupation, container.work
    terms = container.site_terms

    # ϕ(τ+1) - ϕ(τ) with the periodic wrap in the last column
    last = Ltau - 1
    np.subtract(phi[:, 1:], phi[:, :-1], out=dphi[:, :-1])
    np.subtract(phi[:, next_tau(last, Ltau)], phi[:, last], out=dphi[:, last])

    np.add(g1, g2, out=n)
    np.subtract(2.0, n, out=n)
    np.sum(n, axis=1, out=terms[Observable.DENSITY])

    # g1, g2 are scratch from here on
    np.subtract(1.0, g1, out=g1)
    np.subtract(1.0, g2, out=g2)
    np.multiply(g1, g2, out=work)
    np.sum(work, axis=1, out=terms[Observable.DOUBLE_OCC])

    np.multiply(dphi, dphi, out=work)
    work /= -2.0 * dtau * dtau
    work += 0.5 / dtau
    np.sum(work, axis=1, out=terms[Observable.PHONON_KIN])

    np.sum(phi, axis=1, out=terms[Observable.PHI])
    np.multiply(phi, phi, out=work)
    np.sum(work, axis=1, out=terms[Observable.PHI_SQUARED])

    omega2 = container.omega2
    np.multiply(model.omega, model.omega, out=omega2)
    work *= omega2[:, None]
    work *= 0.5
    np.sum(work, axis=1, out=terms[Observable.PHONON_POT])

    np.multiply(phi, n, out=work)
    work *= model.lam[:, None]
    np.sum(work, axis=1, out=terms[Observable.ELPH_ENERGY])

    terms /= container.normalization
    np.add.at(container.data, (slice(None), container.site_orbital), terms)


def normalize(container: LocalMeasurements, bin_size: int) -> None:
    """Turn `bin_size` accumulated samples into the bin average."""
    n = int(bin_size)
    if n != bin_size or n < 1:
        raise ValueError(f"bin_size must be a positive integer, got {bin_size}")
    container.data /= n


def reset(container: LocalMeasurements) -> None:
    container.data.fill(0.0)


# -------------------- persisted table --------------------
def local_measurements_header() -> str:
    return "orbit," + ",".join(OBSERVABLES)


def format_local_measurements(container: LocalMeasurements) -> str:
    """One row per orbital: 1-based orbit label then %.6f values, header order."""
    lines = []
    for orbit in range(container.norbits):
        row = str(orbit + 1) + "".join(f",{container.data[o, orbit]:.6f}" for o in Observable)
        lines.append(row + "\n")
    return "".join(lines)


def initialize_local_measurements_file(path: str) -> str:
    with open(path, "w") as f:
        f.write(local_measurements_header() + "\n")
    return path


def write_local_measurements(path: str, container: LocalMeasurements) -> None:
    with open(path, "a") as f:
        f.write(format_local_measurements(container))
