# holsteinfa/model.py
"""
Minimal Holstein model adapter.

Holds what the accelerator and the measurements read: per-site phonon
frequency ω, electron-phonon coupling λ, chemical potential μ, the imaginary
time discretization (β, Ltau) and the flat phonon field ϕ. Lattice geometry
beyond "norbits sites per unit cell, cells in a row" is not modelled here.
"""

from __future__ import annotations

from dataclasses import dataclass, field

import equinox as eqx
import jax

jax.config.update("jax_enable_x64", True)
import jax.numpy as jnp
import numpy as np

from .indexing import flat_index, orbital_of, site_and_tau

__all__ = ["HolsteinModel", "PhononAction", "build_holstein_model", "write_phonons", "load_phonons"]


def _frozen(a) -> np.ndarray:
    a = np.array(a, dtype=np.float64, copy=True).reshape(-1)
    a.flags.writeable = False
    return a


@dataclass
class HolsteinModel:
    beta: float
    Ltau: int
    norbits: int
    omega: np.ndarray  # (nsites,)
    lam: np.ndarray    # (nsites,)
    mu: np.ndarray     # (nsites,)
    phi: np.ndarray = field(default=None)  # (nsites*Ltau,) flat, see indexing.py

    def __post_init__(self):
        self.Ltau = int(self.Ltau)
        self.norbits = int(self.norbits)
        self.beta = float(self.beta)
        if self.Ltau < 1:
            raise ValueError(f"Ltau must be >= 1, got {self.Ltau}")
        if not self.beta > 0.0:
            raise ValueError(f"beta must be positive, got {self.beta}")
        self.omega = _frozen(self.omega)
        self.lam = _frozen(self.lam)
        self.mu = _frozen(self.mu)
        nsites = self.omega.shape[0]
        if self.lam.shape[0] != nsites or self.mu.shape[0] != nsites:
            raise ValueError("omega, lam and mu must have one entry per site")
        if self.norbits < 1 or nsites % self.norbits != 0:
            raise ValueError(f"nsites={nsites} is not a multiple of norbits={self.norbits}")
        if self.phi is None:
            self.phi = np.zeros(nsites * self.Ltau, dtype=np.float64)
        else:
            self.phi = np.ascontiguousarray(self.phi, dtype=np.float64).reshape(-1)
            if self.phi.shape[0] != nsites * self.Ltau:
                raise ValueError(
                    f"phi has length {self.phi.shape[0]}, expected nsites*Ltau={nsites * self.Ltau}"
                )

    @property
    def nsites(self) -> int:
        return self.omega.shape[0]

    @property
    def dtau(self) -> float:
        return self.beta / self.Ltau

    @property
    def sites_per_orbital(self) -> int:
        return self.nsites // self.norbits

    def orbital(self, site: int) -> int:
        return orbital_of(site, self.norbits)

    def __len__(self) -> int:
        return self.nsites * self.Ltau


class PhononAction(eqx.Module):
    """Bare (non-interacting) phonon action on the flat field.

    S = Δτ Σ_{i,τ} [ ω_i² ϕ_i(τ)²/2 + (ϕ_i(τ+1) - ϕ_i(τ))² / (2Δτ²) ]

    The fermionic part of the Holstein action is not included.
    """
    omega: jnp.ndarray
    dtau: float
    Ltau: int = eqx.field(static=True)

    def __init__(self, model: HolsteinModel):
        self.omega = jnp.asarray(model.omega, dtype=jnp.float64)
        self.dtau = float(model.dtau)
        self.Ltau = int(model.Ltau)

    def __call__(self, phi: jnp.ndarray) -> jnp.ndarray:
        phi = jnp.reshape(phi, (-1, self.Ltau))
        dphi = jnp.roll(phi, -1, axis=1) - phi
        kin = jnp.sum(dphi * dphi) / (2.0 * self.dtau * self.dtau)
        pot = 0.5 * jnp.sum((self.omega[:, None] ** 2) * phi * phi)
        return self.dtau * (kin + pot)

    @eqx.filter_jit
    def force(self, phi: jnp.ndarray) -> jnp.ndarray:
        """∂S/∂ϕ on the flat field."""
        return jax.grad(self.__call__)(phi)


def build_holstein_model(cfg) -> HolsteinModel:
    """
    Chain of `ncells` identical unit cells with per-orbital ω, λ, μ taken from
    cfg (a ModelConfig). Scalars are broadcast to every orbital.
    """
    norbits = int(cfg.norbits)
    ncells = int(cfg.ncells)

    def per_orbit(v, name):
        arr = np.atleast_1d(np.asarray(v, dtype=np.float64))
        if arr.shape[0] == 1:
            arr = np.full(norbits, arr[0])
        if arr.shape[0] != norbits:
            raise ValueError(f"model.{name} needs 1 or norbits={norbits} values, got {arr.shape[0]}")
        return np.tile(arr, ncells)

    model = HolsteinModel(
        beta=cfg.beta,
        Ltau=cfg.Ltau,
        norbits=norbits,
        omega=per_orbit(cfg.omega, "omega"),
        lam=per_orbit(cfg.lam, "lam"),
        mu=per_orbit(cfg.mu, "mu"),
    )
    if cfg.phi_file:
        load_phonons(cfg.phi_file, model)
    elif cfg.phi_init != 0.0:
        rng = np.random.default_rng(cfg.seed)
        model.phi[:] = cfg.phi_init * rng.standard_normal(len(model))
    return model


# -------------------- phonon field file --------------------
def write_phonons(path: str, model: HolsteinModel) -> str:
    """
    Final field as `site,tau,phi` rows, 1-based site and time labels, one row
    per flat index in storage order.
    """
    lines = ["site,tau,phi\n"]
    for index, value in enumerate(model.phi):
        site, tau = site_and_tau(index, model.Ltau)
        lines.append(f"{site + 1},{tau + 1},{value:.6f}\n")
    with open(path, "w") as f:
        f.write("".join(lines))
    return path


def load_phonons(path: str, model: HolsteinModel) -> HolsteinModel:
    """Fill model.phi in place from a file written by `write_phonons`."""
    raw = np.loadtxt(path, delimiter=",", skiprows=1, ndmin=2)
    if raw.shape != (len(model), 3):
        raise ValueError(f"{path}: expected {len(model)} rows of site,tau,phi, got shape {raw.shape}")
    site = raw[:, 0].astype(int) - 1
    tau = raw[:, 1].astype(int) - 1
    if site.min() < 0 or site.max() >= model.nsites or tau.min() < 0 or tau.max() >= model.Ltau:
        raise ValueError(f"{path}: site/tau labels outside {model.nsites} sites x {model.Ltau} slices")
    model.phi[flat_index(tau, site, model.Ltau)] = raw[:, 2]
    return model
