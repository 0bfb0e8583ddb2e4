"""
Rosenstein — largest Lyapunov exponent from a scalar time series.

Public API:
    from rosenstein import estimate_lyapunov
    estimate = estimate_lyapunov(y, delay=1, dimension=2, horizon=25, window=10)
    estimate.exponent

    from rosenstein import run
    run(data_path)          # manifest.yaml + observations -> parquet outputs

Layers:
    rosenstein.core         Engines — numpy in, dataclasses out, no file I/O
    rosenstein.stages       Runners — read observations, call engines, write parquet
    rosenstein.io           Parquet I/O (reader, writer, manifest)
    rosenstein.validation   Input validation
"""

from rosenstein.core import (
    LyapunovConfig,
    LyapunovEstimate,
    estimate_lyapunov,
    load_config,
    RosensteinError,
    InsufficientData,
    DegenerateSpectrum,
    NoEligibleNeighbor,
    RegressionWindowTooSmall,
    DegenerateDivergence,
)
from rosenstein.run import run

__all__ = [
    "run",
    "estimate_lyapunov",
    "LyapunovConfig",
    "LyapunovEstimate",
    "load_config",
    "RosensteinError",
    "InsufficientData",
    "DegenerateSpectrum",
    "NoEligibleNeighbor",
    "RegressionWindowTooSmall",
    "DegenerateDivergence",
]
