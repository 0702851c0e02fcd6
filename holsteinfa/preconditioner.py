# holsteinfa/preconditioner.py
"""
Fourier-acceleration matrix Q.

Q is diagonal in the Matsubara-momentum basis of each site's imaginary-time
axis. For a site with phonon frequency ω and momentum index k (unnormalized
FFT ordering, k=0 is DC):

    Q_k = (m² + Δτ ω² + 4/Δτ) / (m² + Δτ ω² + (2 - 2 cos(2πk/Ltau))/Δτ)

so every mode of the harmonic phonon action relaxes on the same Langevin
time scale. Q_k >= 1, with equality at the zone boundary k = Ltau/2.
"""

from __future__ import annotations

import math
from functools import partial

import jax

jax.config.update("jax_enable_x64", True)
import jax.numpy as jnp
import numpy as np

from .indexing import site_view

__all__ = ["element_Q", "preconditioner_coefficients", "update_preconditioner"]


def element_Q(k: int, omega: float, dtau: float, mass: float, Ltau: int) -> float:
    """Single matrix element, written exactly as the defining ratio."""
    floor = mass * mass + dtau * omega * omega
    return (floor + 4.0 / dtau) / (floor + (2.0 - 2.0 * math.cos(2.0 * math.pi * k / Ltau)) / dtau)


@partial(jax.jit, static_argnames=("Ltau",))
def preconditioner_coefficients(omega: jnp.ndarray, dtau, mass, Ltau: int) -> jnp.ndarray:
    """
    Q_k for every site in `omega` -> (nsel, Ltau).

    Evaluated as 1 + 2(1 + c_k) / (Δτ(m² + Δτω²) + 2 - 2c_k), c_k = cos(2πk/Ltau),
    which is the same ratio multiplied through by Δτ; it gives exactly 1 at
    c_k = -1 and needs no special case for ω = 0 since m > 0.
    """
    omega = jnp.asarray(omega, jnp.float64)
    # host-side constant (Ltau is static); libm cos gives exactly -1 at k = Ltau/2
    c = jnp.asarray(np.cos(2.0 * np.pi * np.arange(Ltau) / Ltau))

    def one_site(w):
        floor = dtau * (mass * mass + dtau * w * w)
        return 1.0 + 2.0 * (1.0 + c) / (floor + 2.0 - 2.0 * c)

    return jax.vmap(one_site)(omega)


def update_preconditioner(
    Q: np.ndarray,
    model,
    mass: float,
    dt: float,
    omega_min: float = -np.inf,
    omega_max: float = np.inf,
) -> np.ndarray:
    """
    Rebuild Q in place for sites with omega_min < ω < omega_max; other sites
    keep their current entries. Returns the indices of the updated sites.

    `dt` (Langevin step) and the model's λ, μ are part of the signature but do
    not enter the coefficients.
    """
    Ltau = model.Ltau
    if Q.shape != (len(model),):
        raise ValueError(f"Q has shape {Q.shape}, model needs ({len(model)},)")
    if not mass > 0.0:
        raise ValueError(f"Fourier acceleration mass must be positive, got {mass}")

    omega = model.omega
    selected = np.flatnonzero((omega_min < omega) & (omega < omega_max))
    if selected.size == 0:
        return selected

    table = preconditioner_coefficients(omega[selected], float(model.dtau), float(mass), Ltau)
    site_view(Q, Ltau)[selected, :] = np.asarray(table)
    return selected
