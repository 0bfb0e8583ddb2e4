"""
Rosenstein engines — numpy in, dataclasses out, no file I/O.

    embedding    phase-space reconstruction
    spectral     mean period (Theiler window) from the periodogram
    distance     metric capability shared by neighbors and divergence
    neighbors    exclusion-constrained nearest-neighbor search
    divergence   mean log-distance curve
    regression   slope of the early curve
    lyapunov     the composed pipeline
"""

from .config import LyapunovConfig, load_config
from .distance import DistanceMetric, get_metric
from .divergence import DivergenceCurve, track_divergence
from .embedding import time_delay_embedding
from .errors import (
    RosensteinError,
    InsufficientData,
    DegenerateSpectrum,
    NoEligibleNeighbor,
    RegressionWindowTooSmall,
    DegenerateDivergence,
)
from .lyapunov import LyapunovEstimate, estimate_lyapunov
from .neighbors import NeighborMap, find_nearest_neighbors
from .regression import RegressionResult, estimate_exponent, least_squares
from .spectral import mean_period, scipy_periodogram

__all__ = [
    'LyapunovConfig',
    'load_config',
    'DistanceMetric',
    'get_metric',
    'DivergenceCurve',
    'track_divergence',
    'time_delay_embedding',
    'RosensteinError',
    'InsufficientData',
    'DegenerateSpectrum',
    'NoEligibleNeighbor',
    'RegressionWindowTooSmall',
    'DegenerateDivergence',
    'LyapunovEstimate',
    'estimate_lyapunov',
    'NeighborMap',
    'find_nearest_neighbors',
    'RegressionResult',
    'estimate_exponent',
    'least_squares',
    'mean_period',
    'scipy_periodogram',
]
