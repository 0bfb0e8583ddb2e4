"""
Lyapunov engine configuration.

All embedding and fitting parameters are supplied by the caller. No
auto-tuning happens here: J and m come from the config, never from the data.

Defaults live in lyapunov.yaml next to this module. A manifest's
`lyapunov:` block overrides them key by key.
"""

import math
from dataclasses import dataclass, asdict, fields, replace as _replace
from pathlib import Path
from typing import Dict, Any, Optional, Union
import yaml

DEFAULT_CONFIG_PATH = Path(__file__).parent / "lyapunov.yaml"

METRICS = ("euclidean", "manhattan", "chebyshev")
ALGORITHMS = ("brute", "kdtree")


@dataclass(frozen=True)
class LyapunovConfig:
    """Parameters for one Rosenstein run."""
    delay: int = 1               # J
    dimension: int = 2           # m
    horizon: int = 25            # T_max
    dt: float = 1.0              # sampling interval
    window: int = 10             # W, regression window
    metric: str = "euclidean"
    algorithm: str = "brute"     # brute, kdtree
    n_jobs: int = 1
    min_separation: Optional[float] = None  # None = mean period from spectrum

    def validate(self) -> "LyapunovConfig":
        """Raise ValueError on parameters that can never produce a run."""
        for name in ("delay", "dimension", "horizon", "window", "n_jobs"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int):
                raise ValueError(f"{name} must be an integer, got {value!r}")
        if self.delay < 1:
            raise ValueError(f"delay must be >= 1, got {self.delay}")
        if self.dimension < 1:
            raise ValueError(f"dimension must be >= 1, got {self.dimension}")
        if self.horizon < 0:
            raise ValueError(f"horizon must be >= 0, got {self.horizon}")
        if not self.dt > 0:
            raise ValueError(f"dt must be > 0, got {self.dt}")
        if self.n_jobs == 0:
            raise ValueError("n_jobs must be non-zero (-1 = all cores)")
        if self.metric not in METRICS:
            raise ValueError(f"Unknown metric: {self.metric}. Use one of {METRICS}.")
        if self.algorithm not in ALGORITHMS:
            raise ValueError(f"Unknown algorithm: {self.algorithm}. Use one of {ALGORITHMS}.")
        if self.min_separation is not None:
            sep = self.min_separation
            if isinstance(sep, bool) or not isinstance(sep, (int, float)):
                raise ValueError(f"min_separation must be a number, got {sep!r}")
            if not math.isfinite(sep) or sep < 0:
                raise ValueError(f"min_separation must be finite and >= 0, got {sep}")
        return self

    def replace(self, **overrides) -> "LyapunovConfig":
        """Copy with overrides applied. Unknown keys raise ValueError."""
        _check_keys(overrides)
        return _replace(self, **overrides)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, raw: Optional[Dict[str, Any]]) -> "LyapunovConfig":
        raw = dict(raw or {})
        _check_keys(raw)
        if "dt" in raw:
            raw["dt"] = float(raw["dt"])
        return cls(**raw)


def _check_keys(raw: Dict[str, Any]) -> None:
    known = {f.name for f in fields(LyapunovConfig)}
    unknown = sorted(set(raw) - known)
    if unknown:
        raise ValueError(
            f"Unknown lyapunov config keys: {', '.join(unknown)}. "
            f"Known: {', '.join(sorted(known))}"
        )


def load_config(
    config_path: Optional[Union[str, Path]] = None,
    overrides: Optional[Dict[str, Any]] = None,
) -> LyapunovConfig:
    """
    Load configuration from YAML.

    Args:
        config_path: YAML file with a top-level `lyapunov:` block (or the
            parameters at top level). Defaults to the shipped lyapunov.yaml.
        overrides: Applied on top of the file values.

    Returns:
        Validated LyapunovConfig
    """
    path = Path(config_path) if config_path is not None else DEFAULT_CONFIG_PATH

    with open(path) as f:
        raw = yaml.safe_load(f) or {}

    if "lyapunov" in raw:
        raw = raw["lyapunov"] or {}

    if config_path is not None and path != DEFAULT_CONFIG_PATH:
        # Partial files layer over the shipped defaults
        raw = {**_load_defaults(), **raw}

    if overrides:
        raw = {**raw, **overrides}

    return LyapunovConfig.from_dict(raw).validate()


def _load_defaults() -> Dict[str, Any]:
    with open(DEFAULT_CONFIG_PATH) as f:
        raw = yaml.safe_load(f) or {}
    return raw.get("lyapunov", raw) or {}
