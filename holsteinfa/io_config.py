from __future__ import annotations

import json
import math
from dataclasses import asdict, dataclass, field

import tomllib
from tomllib import TOMLDecodeError


@dataclass
class ModelConfig:
    beta: float = 4.0
    Ltau: int = 40
    norbits: int = 1
    ncells: int = 4
    omega: float | list[float] = 1.0  # per orbital (scalar broadcasts)
    lam: float | list[float] = 0.0
    mu: float | list[float] = 0.0
    phi_init: float = 0.0  # std of the random initial field; 0 -> start from ϕ=0
    phi_file: str = ""  # restart from a phonon_config.out; overrides phi_init
    seed: int = 0


@dataclass
class LangevinConfig:
    dt: float = 0.05
    mass: float = 1.0  # Fourier acceleration mass
    omega_min: float = float("-inf")  # accelerate sites with omega_min < ω < omega_max
    omega_max: float = float("inf")
    burnin: int = 200
    meas_freq: int = 1  # Langevin steps between measurements
    seed: int = 0


@dataclass
class MeasurementConfig:
    num_bins: int = 20   # bins written to local_measurements.out
    bin_size: int = 10   # measurements averaged into one written bin
    nbins: int = 10      # bins used for the error bars in the summary


@dataclass
class PathsConfig:
    outdir: str = "outputs"
    outfile: str = "local_measurements.out"
    statsfile: str = "local_measurements_stats.out"
    summaryfile: str = "simulation_summary.toml"
    phononfile: str = "phonon_config.out"


@dataclass
class FullConfig:
    model: ModelConfig = field(default_factory=ModelConfig)
    langevin: LangevinConfig = field(default_factory=LangevinConfig)
    measurements: MeasurementConfig = field(default_factory=MeasurementConfig)
    paths: PathsConfig = field(default_factory=PathsConfig)

    def validate(self) -> "FullConfig":
        m = self.measurements
        if m.num_bins < 1:
            raise ValueError(f"measurements.num_bins must be >= 1, got {m.num_bins}")
        if m.nbins < 2:
            raise ValueError(f"measurements.nbins must be >= 2 for an error estimate, got {m.nbins}")
        if m.num_bins % m.nbins != 0:
            raise ValueError(
                f"measurements.nbins={m.nbins} must divide measurements.num_bins={m.num_bins}"
            )
        if self.langevin.meas_freq < 1 or m.bin_size < 1:
            raise ValueError("langevin.meas_freq and measurements.bin_size must be >= 1")
        return self


def read_toml(path: str) -> FullConfig:
    with open(path, "rb") as f:
        try:
            raw = tomllib.load(f)
        except TOMLDecodeError as e:
            raise SystemExit(f"TOML parse error in {path}: {e}")
    model = ModelConfig(**raw.get("model", {}))
    langevin = LangevinConfig(**raw.get("langevin", {}))
    measurements = MeasurementConfig(**raw.get("measurements", {}))
    paths = PathsConfig(**raw.get("paths", {}))
    return FullConfig(model=model, langevin=langevin, measurements=measurements, paths=paths).validate()


def _toml_value(v) -> str:
    if isinstance(v, bool):
        return "true" if v else "false"
    if isinstance(v, int):
        return str(v)
    if isinstance(v, float):
        if math.isinf(v):
            return "inf" if v > 0 else "-inf"
        if math.isnan(v):
            return "nan"
        return repr(v)
    if isinstance(v, (list, tuple)):
        return "[" + ", ".join(_toml_value(x) for x in v) + "]"
    return json.dumps(str(v))


def format_simulation_summary(cfg: FullConfig, timing: dict[str, float]) -> str:
    """
    The run's config followed by a [timing] table (seconds, %.6f). The text is
    valid TOML, so `read_toml` on it gives back the config that was run.
    """
    lines = ["# HOLSTEIN-FA simulation summary\n"]
    for section, values in asdict(cfg).items():
        lines.append(f"\n[{section}]\n")
        for key, v in values.items():
            lines.append(f"{key} = {_toml_value(v)}\n")
    lines.append("\n[timing]\n")
    for key, seconds in timing.items():
        lines.append(f"{key} = {seconds:.6f}\n")
    lines.append(f"total = {sum(timing.values()):.6f}\n")
    return "".join(lines)


def write_simulation_summary(path: str, cfg: FullConfig, timing: dict[str, float]) -> str:
    with open(path, "w") as f:
        f.write(format_simulation_summary(cfg, timing))
    return path
