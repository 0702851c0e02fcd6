# holsteinfa/langevin.py
"""
Fourier-accelerated Langevin update of the phonon field.

    ϕ <- ϕ - dt F⁻¹[ Q F[∂S/∂ϕ] ] + sqrt(2 dt) F⁻¹[ Q^{1/2} F[η] ],   η ~ N(0, 1)

F is the per-site transform along imaginary time (FourierAccelerator), so
stiff high-frequency modes and soft low-frequency modes decorrelate on
comparable Langevin times with a single dt.
"""

from __future__ import annotations

from typing import Callable

import numpy as np

__all__ = ["LangevinDynamics"]


class LangevinDynamics:
    """Euler–Maruyama integrator with owned work vectors (sized once per model)."""

    def __init__(self, model, dt: float):
        if not dt > 0.0:
            raise ValueError(f"Langevin time step must be positive, got {dt}")
        self.dt = float(dt)
        n = len(model)
        self.dSdphi = np.zeros(n, dtype=np.float64)
        self.eta = np.zeros(n, dtype=np.float64)
        self.freq = np.zeros(n, dtype=np.complex128)
        self.drift = np.zeros(n, dtype=np.float64)
        self.noise = np.zeros(n, dtype=np.float64)

    def step(self, model, accelerator, force: Callable, rng: np.random.Generator) -> None:
        """Advance model.phi by one step in place. `force(phi)` returns ∂S/∂ϕ."""
        self.dSdphi[:] = np.asarray(force(model.phi), dtype=np.float64)
        rng.standard_normal(out=self.eta)

        accelerator.forward(self.freq, self.dSdphi)
        accelerator.accelerate(self.freq, 1.0)
        accelerator.inverse(self.drift, self.freq)

        accelerator.forward(self.freq, self.eta)
        accelerator.accelerate(self.freq, 0.5)
        accelerator.inverse(self.noise, self.freq)

        model.phi -= self.dt * self.drift
        model.phi += np.sqrt(2.0 * self.dt) * self.noise
