# holsteinfa/greens.py
"""
Green's-function estimator interface.

The stochastic estimator itself (random vectors + fermion matrix solve) is
external. The measurements only ask for equal-site, equal-time elements
G_ii(τ,τ) = ⟨c_i(τ) c_i†(τ)⟩.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

import numpy as np

__all__ = ["GreensEstimator", "ConstantGreensEstimator", "TabulatedGreensEstimator"]


@runtime_checkable
class GreensEstimator(Protocol):
    def estimate(self, i: int, j: int, tau1: int, tau2: int) -> float: ...


class ConstantGreensEstimator:
    """G_ii(τ,τ) = value everywhere. value=0.5 is the decoupled half-filled limit."""

    def __init__(self, value: float = 0.5):
        self.value = float(value)

    def estimate(self, i: int, j: int, tau1: int, tau2: int) -> float:
        return self.value


class TabulatedGreensEstimator:
    """Equal-time diagonal estimates read from a (nsites, Ltau) table."""

    def __init__(self, table):
        self.table = np.asarray(table, dtype=np.float64)
        if self.table.ndim != 2:
            raise ValueError(f"table must be (nsites, Ltau), got shape {self.table.shape}")

    def estimate(self, i: int, j: int, tau1: int, tau2: int) -> float:
        if i != j or tau1 != tau2:
            raise ValueError("only equal-site, equal-time elements are tabulated")
        return float(self.table[i, tau1])
