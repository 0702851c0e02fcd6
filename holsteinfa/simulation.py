# holsteinfa/simulation.py
"""
Driver for a Fourier-accelerated Langevin run.

The Langevin force is the bare phonon action gradient and the Green's
function estimates come from the decoupled half-filled reference
(G_ii = 1/2); a production run swaps in the fermion solve and a stochastic
estimator through the same `force` / `estimate` hooks.
"""

from __future__ import annotations

import os
import time

import numpy as np
from tqdm.auto import tqdm

from .fourier import FourierAccelerator
from .greens import ConstantGreensEstimator
from .io_config import FullConfig, write_simulation_summary
from .langevin import LangevinDynamics
from .measurements import (
    LocalMeasurements,
    accumulate,
    initialize_local_measurements_file,
    normalize,
    reset,
    write_local_measurements,
)
from .model import PhononAction, build_holstein_model, write_phonons
from .post import save_summary
from .pretty import info_line
from .stats import format_local_stats, summarize_local_measurements

__all__ = ["run_simulation"]


def run_simulation(cfg: FullConfig, progress: bool = True, estimators=None, force=None) -> dict:
    lg, ms = cfg.langevin, cfg.measurements

    model = build_holstein_model(cfg.model)
    accelerator = FourierAccelerator(model, lg.mass, lg.dt, lg.omega_min, lg.omega_max)
    dynamics = LangevinDynamics(model, lg.dt)
    if force is None:
        if np.any(model.lam != 0.0):
            info_line("[run] lam != 0 but the bare phonon force omits the fermion term")
        force = PhononAction(model).force
    if estimators is None:
        estimators = (ConstantGreensEstimator(0.5), ConstantGreensEstimator(0.5))
    est_a, est_b = estimators
    rng = np.random.default_rng(lg.seed)

    os.makedirs(cfg.paths.outdir, exist_ok=True)
    outfile = initialize_local_measurements_file(os.path.join(cfg.paths.outdir, cfg.paths.outfile))
    container = LocalMeasurements(model)

    t_sim = t_meas = t_write = 0.0
    nsteps = lg.burnin + ms.num_bins * ms.bin_size * lg.meas_freq
    with tqdm(total=nsteps, desc="langevin", disable=not progress) as bar:
        t0 = time.perf_counter()
        for _ in range(lg.burnin):
            dynamics.step(model, accelerator, force, rng)
            bar.update()
        t_sim += time.perf_counter() - t0

        for _ in range(ms.num_bins):
            reset(container)
            for _ in range(ms.bin_size):
                t0 = time.perf_counter()
                for _ in range(lg.meas_freq):
                    dynamics.step(model, accelerator, force, rng)
                bar.update(lg.meas_freq)
                t1 = time.perf_counter()
                accumulate(container, model, est_a, est_b)
                t2 = time.perf_counter()
                t_sim += t1 - t0
                t_meas += t2 - t1
            t0 = time.perf_counter()
            normalize(container, ms.bin_size)
            write_local_measurements(outfile, container)
            t_write += time.perf_counter() - t0

    stats = summarize_local_measurements(outfile, model.norbits, ms.nbins)
    statsfile = os.path.join(cfg.paths.outdir, cfg.paths.statsfile)
    with open(statsfile, "w") as f:
        f.write(format_local_stats(stats))

    summary_png = os.path.splitext(outfile)[0] + "_summary.png"
    save_summary(outfile, summary_png)

    timing = {"simulation": t_sim, "measurement": t_meas, "write": t_write}
    phononfile = write_phonons(os.path.join(cfg.paths.outdir, cfg.paths.phononfile), model)
    summaryfile = write_simulation_summary(
        os.path.join(cfg.paths.outdir, cfg.paths.summaryfile), cfg, timing
    )

    meta = {
        "model": cfg.model.__dict__,
        "langevin": cfg.langevin.__dict__,
        "measurements": cfg.measurements.__dict__,
        "timing": timing,
        "timestamp": time.strftime("%Y-%m-%d %H:%M:%S"),
    }
    return {
        "outfile": outfile,
        "statsfile": statsfile,
        "summary": summary_png,
        "summaryfile": summaryfile,
        "phononfile": phononfile,
        "stats": stats,
        "phi": model.phi.copy(),
        "meta": meta,
    }
