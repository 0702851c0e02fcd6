# examples/phonon_chain.py
# Programmatic run: build the config in Python, sample, print the binned table.
from holsteinfa.io_config import FullConfig, LangevinConfig, MeasurementConfig, ModelConfig, PathsConfig
from holsteinfa.simulation import run_simulation
from holsteinfa.stats import format_local_stats

cfg = FullConfig(
    model=ModelConfig(beta=4.0, Ltau=32, norbits=1, ncells=8, omega=1.0, phi_init=0.1),
    langevin=LangevinConfig(dt=0.05, mass=1.0, burnin=100, meas_freq=2),
    measurements=MeasurementConfig(num_bins=20, bin_size=5, nbins=10),
    paths=PathsConfig(outdir="outputs/phonon_chain"),
).validate()

info = run_simulation(cfg)
print(format_local_stats(info["stats"]))
# The bare oscillator gives <phonon_pot> = <phonon_kin> -> omega/4 coth(beta omega/2) as dtau -> 0.
