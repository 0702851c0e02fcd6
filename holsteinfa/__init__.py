"""Fourier-accelerated Langevin sampling and local measurements for the Holstein model."""

from .fourier import FourierAccelerator, accelerate
from .greens import ConstantGreensEstimator, GreensEstimator, TabulatedGreensEstimator
from .indexing import flat_index, orbital_of, site_view
from .langevin import LangevinDynamics
from .measurements import (
    OBSERVABLES,
    LocalMeasurements,
    Observable,
    accumulate,
    normalize,
    reset,
)
from .model import HolsteinModel, PhononAction, build_holstein_model
from .preconditioner import update_preconditioner
from .simulation import run_simulation
from .stats import binned_statistics

__version__ = "0.1.0"
