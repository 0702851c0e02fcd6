# holsteinfa/fourier.py
"""
Fourier acceleration engine.

FourierAccelerator owns
  - Q: the diagonal acceleration matrix (flat, one entry per (site, τ))
  - vi, nui: complex (nsites, Ltau) scratch pair, time / frequency side
  - qpow: real scratch for Q**power

forward/inverse transform every site's imaginary-time series along the last
axis of the scratch pair. Sites never mix. All arrays are allocated once in
__init__ and reused by every call; one instance per thread of work.
"""

from __future__ import annotations

import numpy as np

from .indexing import site_view
from .preconditioner import update_preconditioner

__all__ = ["FourierAccelerator", "accelerate"]


def accelerate(v: np.ndarray, Q: np.ndarray, power: float = 1.0, work: np.ndarray | None = None) -> None:
    """
    In place v *= Q**power (power=1 for forces, 0.5 for noise, 0 is identity).

    power 1 and 0 never allocate; other powers are raised into `work` (a real
    array shaped like Q) when given, else into a temporary.
    """
    if v.shape != Q.shape:
        raise ValueError(f"vector shape {v.shape} does not match Q shape {Q.shape}")
    if power == 0.0:
        return
    if power == 1.0:
        v *= Q
        return
    if work is None:
        work = np.empty_like(Q)
    elif work.shape != Q.shape:
        raise ValueError(f"work shape {work.shape} does not match Q shape {Q.shape}")
    np.power(Q, power, out=work)
    v *= work


class FourierAccelerator:

    def __init__(self, model, mass: float, dt: float,
                 omega_min: float = -np.inf, omega_max: float = np.inf):
        self.nsites = int(model.nsites)
        self.Ltau = int(model.Ltau)
        self.mass = float(mass)
        self.dt = float(dt)

        shape = (self.nsites, self.Ltau)
        self.vi = np.zeros(shape, dtype=np.complex128)
        self.nui = np.zeros(shape, dtype=np.complex128)
        self.qpow = np.empty(self.nsites * self.Ltau, dtype=np.float64)

        # sites outside the window keep Q = 1 (plain Langevin)
        self.Q = np.ones(self.nsites * self.Ltau, dtype=np.float64)
        update_preconditioner(self.Q, model, self.mass, self.dt, omega_min, omega_max)

    def __len__(self) -> int:
        return self.nsites * self.Ltau

    def _check(self, v: np.ndarray, name: str) -> None:
        if v.shape != (len(self),):
            raise ValueError(
                f"{name} has shape {v.shape}, accelerator is sized for "
                f"nsites*Ltau = {self.nsites}*{self.Ltau}"
            )

    def update_Q(self, model, mass: float, dt: float,
                 omega_min: float = -np.inf, omega_max: float = np.inf) -> np.ndarray:
        """Re-tune Q for sites with omega_min < ω < omega_max."""
        if model.nsites != self.nsites or model.Ltau != self.Ltau:
            raise ValueError("model geometry does not match the accelerator")
        self.mass = float(mass)
        self.dt = float(dt)
        return update_preconditioner(self.Q, model, self.mass, self.dt, omega_min, omega_max)

    def forward(self, dst: np.ndarray, src: np.ndarray) -> None:
        """dst <- FFT_τ(Re src), per site. dst must be complex."""
        self._check(src, "src")
        self._check(dst, "dst")
        # Re(src) only; the imaginary part of the buffer is cleared by the copy
        np.copyto(self.vi, site_view(src, self.Ltau).real)
        np.fft.fft(self.vi, axis=-1, out=self.nui)
        site_view(dst, self.Ltau)[...] = self.nui

    def inverse(self, dst: np.ndarray, src: np.ndarray) -> None:
        """dst <- Re IFFT_τ(src), per site. Any imaginary residue is dropped."""
        self._check(src, "src")
        self._check(dst, "dst")
        np.copyto(self.nui, site_view(src, self.Ltau))
        np.fft.ifft(self.nui, axis=-1, out=self.vi)
        site_view(dst, self.Ltau)[...] = self.vi.real

    def accelerate(self, v: np.ndarray, power: float = 1.0) -> None:
        """In place v *= Q**power with the owned Q."""
        self._check(v, "v")
        accelerate(v, self.Q, power, work=self.qpow)
