"""
Lyapunov Engine.

Largest Lyapunov exponent from a single scalar series, Rosenstein's method:

    1. Embed           x -> X (M x m), delay J
    2. Mean period     mu = 1 / power-weighted mean frequency
    3. Neighbors       closest e(i) with |i - e(i)| > mu, d > 0
    4. Divergence      y(t) = <ln d_k(t)>, t = 0..T_max
    5. Regression      slope of y over t = 0..W

Reference:
    Rosenstein, Collins & De Luca (1993)
    "A practical method for calculating largest Lyapunov exponents
    from small data sets", Physica D 65, 117-134

The engine computes, callers interpret:
    λ > 0: Chaos (trajectories diverge)
    λ ≈ 0: Quasi-periodic (trajectories parallel)
    λ < 0: Stable (trajectories converge)

Every stage raises a typed RosensteinError on failure and the run stops
there. There is no partial estimate.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Any, Optional

import numpy as np

from rosenstein.core.config import LyapunovConfig
from rosenstein.core.divergence import DivergenceCurve, track_divergence
from rosenstein.core.embedding import n_embedded, time_delay_embedding
from rosenstein.core.errors import InsufficientData, RegressionWindowTooSmall
from rosenstein.core.neighbors import NeighborMap, find_nearest_neighbors
from rosenstein.core.regression import (
    LeastSquares,
    RegressionResult,
    estimate_exponent,
    least_squares,
)
from rosenstein.core.spectral import Periodogram, mean_period, scipy_periodogram

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LyapunovEstimate:
    """Result of one pipeline run."""
    exponent: float
    regression: RegressionResult
    curve: DivergenceCurve
    neighbors: NeighborMap
    mean_period: float
    n_vectors: int
    config: LyapunovConfig

    def to_dict(self) -> Dict[str, Any]:
        """Scalar diagnostics as one flat row."""
        return {
            'lyapunov': self.exponent,
            'intercept': self.regression.intercept,
            'stderr': self.regression.stderr,
            'r_squared': self.regression.r_squared,
            'mean_period': self.mean_period,
            'n_vectors': self.n_vectors,
            'n_neighbors': len(self.neighbors),
            'n_excluded': self.curve.total_excluded,
            'embedding_dim': self.config.dimension,
            'embedding_tau': self.config.delay,
            'horizon': self.config.horizon,
            'window': self.regression.window,
            'dt': self.config.dt,
        }


def validate_series(y: np.ndarray) -> np.ndarray:
    """Return y as a float64 1D array; raise ValueError on NaN/Inf or wrong shape."""
    y = np.asarray(y, dtype=np.float64)
    if y.ndim != 1:
        raise ValueError(f"series must be 1D, got shape {y.shape}")
    if not np.all(np.isfinite(y)):
        raise ValueError(
            f"series contains {int(np.sum(~np.isfinite(y)))} non-finite values"
        )
    return y


def estimate_lyapunov(
    y: np.ndarray,
    config: Optional[LyapunovConfig] = None,
    periodogram_fn: Periodogram = scipy_periodogram,
    solver: LeastSquares = least_squares,
    **overrides,
) -> LyapunovEstimate:
    """
    Estimate the largest Lyapunov exponent of a scalar series.

    Args:
        y: Uniformly sampled scalar series
        config: Run parameters (defaults: LyapunovConfig())
        periodogram_fn: PeriodogramEstimator capability
        solver: LeastSquaresSolver capability
        **overrides: Individual config fields, e.g. horizon=25, window=10

    Returns:
        LyapunovEstimate

    Raises:
        InsufficientData, DegenerateSpectrum, NoEligibleNeighbor,
        DegenerateDivergence, RegressionWindowTooSmall
    """
    config = (config or LyapunovConfig())
    if overrides:
        config = config.replace(**overrides)
    config.validate()

    y = validate_series(y)

    # Fail before the O(M^2) search when the parameters cannot work
    n_vectors = n_embedded(len(y), config.delay, config.dimension)
    if n_vectors - config.horizon <= 0:
        raise InsufficientData(
            f"series of length {len(y)} gives {max(n_vectors, 0)} embedded rows; "
            f"horizon {config.horizon} needs more than {config.horizon}"
        )
    if config.window < 2 or config.window > config.horizon:
        raise RegressionWindowTooSmall(config.window, config.horizon)

    embedded = time_delay_embedding(y, config.delay, config.dimension)
    logger.debug(
        "embedded %d samples -> %s (J=%d, m=%d)",
        len(y), embedded.shape, config.delay, config.dimension,
    )

    if config.min_separation is None:
        mu = mean_period(y, periodogram_fn)
    else:
        mu = float(config.min_separation)

    neighbors = find_nearest_neighbors(
        embedded,
        mean_period=mu,
        horizon=config.horizon,
        metric=config.metric,
        algorithm=config.algorithm,
        n_jobs=config.n_jobs,
    )

    curve = track_divergence(
        embedded,
        neighbors,
        horizon=config.horizon,
        dt=config.dt,
        metric=config.metric,
        n_jobs=config.n_jobs,
    )

    regression = estimate_exponent(curve, config.window, solver=solver)

    logger.info(
        "lyapunov: λ=%.4f (r²=%.3f, mu=%.2f, %d pairs, %d excluded)",
        regression.slope, regression.r_squared, mu,
        len(neighbors), curve.total_excluded,
    )

    return LyapunovEstimate(
        exponent=regression.slope,
        regression=regression,
        curve=curve,
        neighbors=neighbors,
        mean_period=mu,
        n_vectors=len(embedded),
        config=config,
    )
