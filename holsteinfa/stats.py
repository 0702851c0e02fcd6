# holsteinfa/stats.py
"""
Binned (blocking) statistics for correlated Monte Carlo series, and the
summary of the persisted local-measurement table.
"""

from __future__ import annotations

import numpy as np

from .measurements import OBSERVABLES

__all__ = [
    "bin_means",
    "binned_statistics",
    "read_local_measurements",
    "summarize_local_measurements",
    "format_local_stats",
]


def bin_means(data, nbins: int) -> np.ndarray:
    """Means of `nbins` contiguous equal-length windows of `data`."""
    data = np.asarray(data, dtype=np.float64).reshape(-1)
    nbins = int(nbins)
    if nbins < 1 or data.shape[0] % nbins != 0:
        raise ValueError(f"{data.shape[0]} samples cannot be split into {nbins} equal bins")
    return data.reshape(nbins, -1).mean(axis=1)


def binned_statistics(data, nbins: int) -> tuple[float, float]:
    """
    Grand mean of the window means and its standard error,
    std(window means, ddof=1) / sqrt(nbins).
    """
    if int(nbins) < 2:
        raise ValueError(f"need at least 2 bins for an error estimate, got {nbins}")
    means = bin_means(data, nbins)
    avg = float(np.mean(means))
    err = float(np.std(means, ddof=1) / np.sqrt(means.shape[0]))
    return avg, err


def read_local_measurements(path: str) -> tuple[list[str], np.ndarray, np.ndarray]:
    """
    Parse the local-measurement table.
    Returns (names, orbit (nrows,) 1-based ints, values (nrows, nnames)).
    """
    with open(path) as f:
        header = f.readline().strip().split(",")
    if not header or header[0] != "orbit":
        raise ValueError(f"{path}: expected a header starting with 'orbit'")
    raw = np.loadtxt(path, delimiter=",", skiprows=1, ndmin=2)
    names = header[1:]
    if raw.shape[0] and raw.shape[1] != len(names) + 1:
        raise ValueError(f"{path}: rows have {raw.shape[1]} columns, header has {len(header)}")
    return names, raw[:, 0].astype(int), raw[:, 1:]


def summarize_local_measurements(
    path: str, norbits: int, nbins: int
) -> dict[tuple[str, int], tuple[float, float]]:
    """
    (name, orbit) -> (avg, std) for every column/orbital of the table, with the
    per-bin rows re-binned into `nbins` bins. Orbit keys are 1-based as in the file.
    """
    names, orbit, values = read_local_measurements(path)
    if values.shape[0] % norbits != 0:
        raise ValueError(f"{values.shape[0]} rows is not a whole number of bins for norbits={norbits}")

    out: dict[tuple[str, int], tuple[float, float]] = {}
    for j, name in enumerate(names):
        for o in range(1, norbits + 1):
            out[(name, o)] = binned_statistics(values[orbit == o, j], nbins)
    return out


def format_local_stats(stats: dict[tuple[str, int], tuple[float, float]]) -> str:
    """`measurement orbit avg std` table, observables in the canonical order first."""
    order = {name: i for i, name in enumerate(OBSERVABLES)}
    keys = sorted(stats, key=lambda k: (order.get(k[0], len(order)), k[0], k[1]))
    lines = ["measurement orbit avg std\n"]
    for name, o in keys:
        avg, sd = stats[(name, o)]
        lines.append(f"{name} {o:d}  {avg:.6f}  {sd:.6f}\n")
    return "".join(lines)
