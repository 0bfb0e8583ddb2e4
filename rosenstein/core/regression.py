"""
Slope of the divergence curve.

Only the early part of the curve grows linearly; later the pairs saturate
at the attractor diameter. The fit therefore uses offsets 0..W:

    y(t) ~ intercept + slope * t

slope is the largest Lyapunov exponent per unit time, intercept
approximates E[ln C], the mean log initial separation.
"""

from dataclasses import dataclass, asdict
from typing import Callable, Dict, Any

import numpy as np
from scipy.stats import linregress

from rosenstein.core.divergence import DivergenceCurve
from rosenstein.core.errors import RegressionWindowTooSmall


@dataclass(frozen=True)
class RegressionResult:
    slope: float
    intercept: float
    stderr: float
    intercept_stderr: float
    r_squared: float
    p_value: float
    window: int
    n_points: int

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


LeastSquares = Callable[[np.ndarray, np.ndarray], Dict[str, float]]


def least_squares(x: np.ndarray, y: np.ndarray) -> Dict[str, float]:
    """Ordinary least squares via scipy.stats.linregress."""
    fit = linregress(x, y)
    return {
        'slope': float(fit.slope),
        'intercept': float(fit.intercept),
        'stderr': float(fit.stderr),
        'intercept_stderr': float(fit.intercept_stderr),
        'r_squared': float(fit.rvalue ** 2),
        'p_value': float(fit.pvalue),
    }


def estimate_exponent(
    curve: DivergenceCurve,
    window: int,
    solver: LeastSquares = least_squares,
) -> RegressionResult:
    """
    Fit a line to the first window + 1 points of the divergence curve.

    Args:
        curve: Divergence curve
        window: W, 2 <= W <= len(curve) - 1
        solver: LeastSquares capability

    Returns:
        RegressionResult; slope is the Lyapunov exponent estimate

    Raises:
        RegressionWindowTooSmall: W outside [2, len(curve) - 1]
    """
    available = len(curve) - 1
    if isinstance(window, bool) or int(window) != window or window < 2 or window > available:
        raise RegressionWindowTooSmall(window, available)
    window = int(window)

    x = np.asarray(curve.time[:window + 1], dtype=np.float64)
    y = np.asarray(curve.mean_log_distance[:window + 1], dtype=np.float64)
    fit = solver(x, y)

    return RegressionResult(
        slope=fit['slope'],
        intercept=fit['intercept'],
        stderr=fit['stderr'],
        intercept_stderr=fit['intercept_stderr'],
        r_squared=fit['r_squared'],
        p_value=fit['p_value'],
        window=window,
        n_points=window + 1,
    )
