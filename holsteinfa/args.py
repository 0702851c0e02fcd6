from __future__ import annotations
import argparse
import os

DEFAULT_TOML = "examples/holstein_chain.toml"


def resolve_input_path(ref: str | None) -> str:
    """Turn a path or case name into a TOML file path.

    Tried in order: `ref` itself, `<ref>.toml`, `examples/<ref>.toml`
    (also `examples/<ref>` when the extension is given). No ref means the
    bundled holstein_chain case. Unresolved refs are returned unchanged so
    the open() in read_toml reports them.
    """
    if not ref:
        return DEFAULT_TOML
    name = ref if ref.endswith(".toml") else f"{ref}.toml"
    for cand in (ref, name, os.path.join("examples", name)):
        if os.path.isfile(cand):
            return cand
    return ref


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        description="Fourier-accelerated Langevin sampling of Holstein phonons from a TOML config"
    )
    p.add_argument(
        "input",
        nargs="?",
        help="TOML path or base name (e.g. 'holstein_chain' or 'path/to/case.toml')",
    )
    p.add_argument(
        "--input",
        dest="input_flag",
        help="Optional: TOML path or base name (same as positional)",
    )
    p.add_argument(
        "-n", "--dry-run",
        action="store_true",
        help="Print preflight info and exit without running the simulation",
    )
    p.add_argument(
        "--no-rich",
        action="store_true",
        help="Force plain text output (ignore Rich even if installed)",
    )
    p.add_argument(
        "--no-progress",
        action="store_true",
        help="Disable the progress bar",
    )
    return p


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse CLI args and attach a resolved `path` field."""
    p = build_parser()
    args = p.parse_args(argv)
    ref = args.input_flag or args.input
    args.path = resolve_input_path(ref)
    return args
