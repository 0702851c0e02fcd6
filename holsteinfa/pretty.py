# holsteinfa/pretty.py
from __future__ import annotations
import os
from typing import Any, Dict

# Detect Rich availability (optional dependency)
_RICH_AVAIL = False
try:
    from rich.console import Console
    from rich.table import Table
    from rich.panel import Panel
    from rich.box import ROUNDED
    _RICH_AVAIL = True
except ImportError:  # pragma: no cover
    pass

# Runtime switches (set by init_pretty)
_USE_RICH = False
_console = None  # type: ignore[misc]


def info_line(msg: str) -> None:
    """Print a single status line (respects Rich/NO_COLOR settings)."""
    if _USE_RICH:
        _console.print(msg)
    else:
        print(msg)


def init_pretty(prefer_rich: bool = True) -> None:
    """Initialize pretty output.
    - Disables color if NO_COLOR is set (case-insensitive).
    - Uses Rich only if available, preferred, and NO_COLOR is not set.
    """
    global _USE_RICH, _console

    no_color_env = any(k.upper() == "NO_COLOR" for k in os.environ.keys())
    if no_color_env or not (prefer_rich and _RICH_AVAIL):
        _USE_RICH = False
        _console = None
        if prefer_rich and not _RICH_AVAIL and not no_color_env:
            print("Note: nicer terminal output available via `pip install rich`.")
        return
    _USE_RICH = True
    _console = Console()


def _preflight_rows(cfg) -> list[tuple[str, str]]:
    m, lg, ms = cfg.model, cfg.langevin, cfg.measurements
    nsites = int(m.ncells) * int(m.norbits)
    dtau = float(m.beta) / int(m.Ltau)
    nsteps = int(lg.burnin) + ms.num_bins * ms.bin_size * int(lg.meas_freq)
    return [
        ("lattice", f"{m.ncells} cells x {m.norbits} orbitals = {nsites} sites"),
        ("beta, Ltau, dtau", f"{m.beta}, {m.Ltau}, {dtau:.4g}"),
        ("omega / lam / mu", f"{m.omega} / {m.lam} / {m.mu}"),
        ("field length", f"{nsites * int(m.Ltau)} reals"),
        ("Langevin dt", f"{lg.dt}"),
        ("FA mass, window", f"{lg.mass}, ({lg.omega_min}, {lg.omega_max})"),
        ("burn-in, meas_freq", f"{lg.burnin}, {lg.meas_freq}"),
        ("bins x bin_size", f"{ms.num_bins} x {ms.bin_size} (errors from {ms.nbins} bins)"),
        ("total Langevin steps", f"{nsteps}"),
        ("will write (table)", os.path.join(cfg.paths.outdir, cfg.paths.outfile)),
        ("will write (stats)", os.path.join(cfg.paths.outdir, cfg.paths.statsfile)),
    ]


def print_preflight(path: str, cfg) -> None:
    rows = _preflight_rows(cfg)
    if _USE_RICH:
        header = Panel.fit(
            "[bold cyan]HOLSTEIN-FA preflight[/bold cyan]\n"
            f"[dim]input:[/dim] {path}",
            border_style="cyan", box=ROUNDED
        )
        _console.print(header)
        t = Table(box=ROUNDED, show_lines=False)
        t.add_column("Key", style="bold dim", no_wrap=True)
        t.add_column("Value")
        for key, val in rows:
            t.add_row(key, val)
        _console.print(t)
        _console.print()
    else:
        print("\n" + "-" * 64)
        print(" HOLSTEIN-FA preflight")
        print("-" * 64)
        print(f" {'input file':<21}: {path}")
        for key, val in rows:
            print(f" {key:<21}: {val}")
        print("-" * 64 + "\n")


def print_summary(cfg, info: Dict[str, Any], elapsed_s: float) -> None:
    stats = info.get("stats", {})
    if _USE_RICH:
        header = Panel.fit(
            "[bold green]HOLSTEIN-FA run summary[/bold green]",
            border_style="green", box=ROUNDED
        )
        _console.print(header)
        t = Table(box=ROUNDED, show_lines=False)
        t.add_column("measurement", style="bold dim", no_wrap=True)
        t.add_column("orbit")
        t.add_column("avg", justify="right")
        t.add_column("std", justify="right")
        for (name, orbit), (avg, sd) in stats.items():
            t.add_row(name, str(orbit), f"{avg:.6f}", f"{sd:.6f}")
        _console.print(t)
        o = Table(box=ROUNDED, show_lines=False)
        o.add_column("Key", style="bold dim", no_wrap=True)
        o.add_column("Value")
        o.add_row("table", info.get("outfile", "<unknown>"))
        o.add_row("stats", info.get("statsfile", "<unknown>"))
        if info.get("summary"):
            o.add_row("summary (png)", info["summary"])
        if info.get("summaryfile"):
            o.add_row("run summary", info["summaryfile"])
        if info.get("phononfile"):
            o.add_row("final field", info["phononfile"])
        for key, seconds in info.get("meta", {}).get("timing", {}).items():
            o.add_row(f"{key} time", f"{seconds:.3f} s")
        o.add_row("wall time", f"{elapsed_s:.3f} s")
        _console.print(o)
        _console.print()
    else:
        print("\n" + "=" * 64)
        print(" HOLSTEIN-FA run summary")
        print("=" * 64)
        for (name, orbit), (avg, sd) in stats.items():
            print(f" {name:<12} {orbit:>3d}  {avg:>12.6f}  {sd:>10.6f}")
        print(f" table            : {info.get('outfile', '<unknown>')}")
        print(f" stats            : {info.get('statsfile', '<unknown>')}")
        if info.get("summary"):
            print(f" summary (png)    : {info['summary']}")
        if info.get("summaryfile"):
            print(f" run summary      : {info['summaryfile']}")
        if info.get("phononfile"):
            print(f" final field      : {info['phononfile']}")
        for key, seconds in info.get("meta", {}).get("timing", {}).items():
            print(f" {key + ' time':<17}: {seconds:.3f} s")
        print(f" wall time        : {elapsed_s:.3f} s")
        print("=" * 64 + "\n")
