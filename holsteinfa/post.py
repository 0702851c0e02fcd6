from __future__ import annotations

import os

import matplotlib.pyplot as plt
import numpy as np

from .stats import read_local_measurements


def panel_bin_trace(ax: plt.Axes, name: str, orbit: np.ndarray, values: np.ndarray) -> None:
    """Per-bin values of one observable, one line per orbital."""
    for o in np.unique(orbit):
        y = values[orbit == o]
        ax.plot(np.arange(y.shape[0]), y, marker=".", lw=1.0, label=f"orbit {o}")
        ax.axhline(float(np.mean(y)), ls="--", lw=0.8, color=ax.lines[-1].get_color())
    ax.set_title(name)
    ax.set_xlabel("bin")


def save_summary(table_path: str, out_png: str) -> str:
    """Grid of per-bin traces, one panel per column of the local-measurement table."""
    names, orbit, values = read_local_measurements(table_path)
    ncols = 3
    nrows = max(1, -(-len(names) // ncols))
    fig, axs = plt.subplots(nrows, ncols, figsize=(4.2 * ncols, 3.0 * nrows),
                            constrained_layout=True, squeeze=False)
    for j, name in enumerate(names):
        panel_bin_trace(axs.flat[j], name, orbit, values[:, j])
    for ax in list(axs.flat)[len(names):]:
        ax.set_visible(False)
    axs.flat[0].legend(frameon=True, fontsize="small")

    os.makedirs(os.path.dirname(out_png) or ".", exist_ok=True)
    fig.savefig(out_png, dpi=150)
    plt.close(fig)
    return out_png
